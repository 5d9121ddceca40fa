from __future__ import annotations

from io import BytesIO
from typing import TYPE_CHECKING, Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from jobflow.services.formatting import format_duration

if TYPE_CHECKING:
    from jobflow.services.time_balance_calc import TimeBalance

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

EXPORT_HEADERS = [
    "Datum",
    "Start Tijd",
    "Eind Tijd",
    "Gewerkte Uren",
    "Project",
    "Locatie",
    "Beschrijving",
    "Pauze (min)",
    "Type",
    "Dienst",
    "Goedgekeurd",
    "Notities",
]

BRAND_FILL = PatternFill(fill_type="solid", fgColor="0B4F73")
STRIPE_FILL = PatternFill(fill_type="solid", fgColor="F7FBFE")
UNAPPROVED_FILL = PatternFill(fill_type="solid", fgColor="FFF3CD")
SHORTAGE_FILL = PatternFill(fill_type="solid", fgColor="FDE2E1")
LABEL_FILL = PatternFill(fill_type="solid", fgColor="EAF4F9")

HEADER_FONT = Font(bold=True, color="FFFFFF")
LABEL_FONT = Font(bold=True, color="0F172A")
TITLE_FONT = Font(bold=True, color="0B4F73", size=14)

GRID_SIDE = Side(style="thin", color="D5E2EC")
GRID_BORDER = Border(left=GRID_SIDE, right=GRID_SIDE, top=GRID_SIDE, bottom=GRID_SIDE)

MAX_COLUMN_WIDTH = 45


def _write_title(ws: Worksheet, text: str, width: int) -> None:
    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=width)
    title = ws.cell(row=1, column=1, value=text)
    title.font = TITLE_FONT
    title.alignment = Alignment(horizontal="left", vertical="center")


def _write_label_rows(ws: Worksheet, rows: list[tuple[str, Any]], *, fill_for: dict[str, PatternFill] | None = None) -> None:
    for label, value in rows:
        ws.append([label, value])
        label_cell, value_cell = ws[ws.max_row][0], ws[ws.max_row][1]
        label_cell.font = LABEL_FONT
        label_cell.fill = LABEL_FILL
        label_cell.border = GRID_BORDER
        value_cell.border = GRID_BORDER
        if fill_for and label in fill_for:
            value_cell.fill = fill_for[label]


def _write_header(ws: Worksheet, headers: list[str]) -> int:
    ws.append(headers)
    row = ws.max_row
    for cell in ws[row]:
        cell.font = HEADER_FONT
        cell.fill = BRAND_FILL
        cell.border = GRID_BORDER
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
    return row


def _fit_columns(ws: Worksheet) -> None:
    widths: dict[int, int] = {}
    for row in ws.iter_rows():
        for cell in row:
            if cell.value is None or cell.coordinate in ws.merged_cells:
                continue
            widths[cell.column] = max(widths.get(cell.column, 0), len(str(cell.value)))
    for column, width in widths.items():
        ws.column_dimensions[get_column_letter(column)].width = min(width + 2, MAX_COLUMN_WIDTH)


def _write_entries_sheet(ws: Worksheet, rows: list[dict[str, Any]], *, user_name: str, period_label: str) -> None:
    ws.title = "Urenregistratie"
    _write_title(ws, f"Urenregistratie {user_name}", len(EXPORT_HEADERS))
    _write_label_rows(ws, [("Periode", period_label), ("Aantal registraties", len(rows))])
    ws.append([])

    header_row = _write_header(ws, EXPORT_HEADERS)
    for index, row in enumerate(rows):
        ws.append([row.get(header) for header in EXPORT_HEADERS])
        if row.get("Goedgekeurd") == "Nee":
            fill = UNAPPROVED_FILL
        elif index % 2:
            fill = STRIPE_FILL
        else:
            fill = None
        for cell in ws[ws.max_row]:
            cell.border = GRID_BORDER
            if fill is not None:
                cell.fill = fill

    ws.freeze_panes = ws.cell(row=header_row + 1, column=1)
    _fit_columns(ws)


def _write_balance_sheet(ws: Worksheet, balance: TimeBalance, *, user_name: str, period_label: str) -> None:
    _write_title(ws, f"Saldo {user_name}", 2)
    productivity = balance.productivity
    _write_label_rows(
        ws,
        [
            ("Periode", period_label),
            ("Verwachte uren", format_duration(balance.expected_hours)),
            ("Gewerkte uren", format_duration(balance.actual_hours)),
            ("Overtime", format_duration(balance.overtime_hours)),
            ("Tekort", format_duration(balance.shortage_hours)),
            ("Weekend uren", format_duration(balance.weekend_hours)),
            ("Avond uren", format_duration(balance.evening_hours)),
            ("Nacht uren", format_duration(balance.night_hours)),
            ("Feestdag uren", format_duration(balance.holiday_hours)),
            ("Automatische pauze", format_duration(balance.auto_break_deducted)),
            ("Compensatie opgebouwd", format_duration(balance.compensation_hours)),
            ("Compensatie opgenomen", format_duration(balance.used_compensation_hours)),
            ("Compensatie saldo", format_duration(balance.compensation_balance)),
            ("Productiviteit", f"{round(productivity)}%" if productivity is not None else "n.v.t."),
        ],
        fill_for={"Tekort": SHORTAGE_FILL} if balance.shortage_hours > 0 else None,
    )
    _fit_columns(ws)


def build_time_export_xlsx_bytes(
    rows: list[dict[str, Any]],
    *,
    user_name: str,
    period_label: str,
    balance: TimeBalance | None = None,
) -> bytes:
    wb = Workbook()
    _write_entries_sheet(wb.active, rows, user_name=user_name, period_label=period_label)
    if balance is not None:
        _write_balance_sheet(wb.create_sheet("Saldo"), balance, user_name=user_name, period_label=period_label)

    output = BytesIO()
    wb.save(output)
    return output.getvalue()
