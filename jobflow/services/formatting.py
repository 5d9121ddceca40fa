from __future__ import annotations

from datetime import date, datetime
from math import floor
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jobflow.services.time_balance_calc import Period, TimeBalance


def format_duration(hours: float) -> str:
    whole_hours = floor(hours)
    minutes = floor((hours - whole_hours) * 60 + 0.5)
    if minutes == 60:
        whole_hours += 1
        minutes = 0
    return f"{whole_hours}u {minutes}m"


def format_date_nl(value: date | datetime) -> str:
    return f"{value.day}-{value.month}-{value.year}"


def format_period_nl(period: Period) -> str:
    return f"{format_date_nl(period.start)} - {format_date_nl(period.end)}"


def format_time_balance(balance: TimeBalance) -> str:
    lines = [
        f"Periode: {format_period_nl(balance.period)}",
        f"Gewerkt: {format_duration(balance.actual_hours)} / {format_duration(balance.expected_hours)}",
        f"Overtime: {format_duration(balance.overtime_hours)}",
        f"Compensatie saldo: {format_duration(balance.compensation_balance)}",
    ]
    if balance.shortage_hours > 0:
        lines.append(f"TEKORT: {format_duration(balance.shortage_hours)}")
    else:
        lines.append("TARGET BEHAALD")
    return "\n".join(lines)
