from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from jobflow.enums import (
    ContractType,
    EscalationLevel,
    ReportPeriod,
    ShortageSeverity,
    UserRole,
    WorkType,
)
from jobflow.errors import ApiError, InsufficientCompensationError
from jobflow.models import TimeEntry, User
from jobflow.schemas import (
    MAX_COMPENSATION_HOURS_PER_DAY,
    ApproveCompensationResponse,
    AutoNotificationRead,
    AutoNotificationsResponse,
    BreakValidationRequest,
    BreakValidationResponse,
    BulkCompensationEntryRead,
    BulkCompensationRequest,
    BulkCompensationResponse,
    CompensationBalanceRead,
    CompensationEntryRead,
    CompensationOverviewResponse,
    ContractInfo,
    ExportResponse,
    ExportSummary,
    FormattedBalance,
    IndividualReportRead,
    LoadedHoursRead,
    PeriodRead,
    PersonalAlertRead,
    ReportSummaryRead,
    ShortageAlertRead,
    ShortagesResponse,
    ShortageSummary,
    TeamInsightRead,
    TeamReportResponse,
    TeamStatsRead,
    TimeBalanceRead,
    TimeBalanceResponse,
    UseCompensationRequest,
    UseCompensationResponse,
    UserSummary,
)
from jobflow.services.compensation_balance import (
    SqlCompensationBalanceRepository,
    entry_hours,
)
from jobflow.services.exports import build_time_export_xlsx_bytes
from jobflow.services.formatting import (
    format_date_nl,
    format_duration,
    format_period_nl,
    format_time_balance,
)
from jobflow.services.insights import (
    compensation_recommendations,
    escalation_level,
    personal_alerts,
    personal_recommendations,
    team_insights,
    team_shortage_recommendations,
)
from jobflow.services.time_balance_calc import (
    BulkCompensationAction,
    Period,
    ShortageAlert,
    TimeBalance,
    TimeBalanceCalculator,
    TimeEntry as CalcTimeEntry,
    is_evening_shift,
)
from jobflow.settings import get_settings, get_time_zone

logger = logging.getLogger("jobflow.time_tracking")

PART_TIME_CONTRACT_HOURS = 32
COMPENSATION_DAY_START = time(9, 0)
RECENT_COMPENSATION_ENTRIES = 20
COMPENSATION_HISTORY_LIMIT = 100
REPORTED_ROLES = (UserRole.EMPLOYEE, UserRole.MANAGER)

_PART_TIME_CONTRACTS = {ContractType.PERMANENT_PART_TIME, ContractType.TEMPORARY_PART_TIME}


def _to_local(value: datetime, tz: ZoneInfo) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz)


def _localize(value: datetime, tz: ZoneInfo) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def _to_utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc)


def _day_bounds(start_day: date, end_day: date, tz: ZoneInfo) -> Period:
    start = datetime.combine(start_day, time.min, tzinfo=tz)
    end = datetime.combine(end_day, time.max, tzinfo=tz)
    return Period(start=start, end=end)


def _shift_month(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def resolve_period(
    period: ReportPeriod | str = ReportPeriod.CURRENT_MONTH,
    *,
    now: datetime | None = None,
    tz: ZoneInfo | None = None,
) -> Period:
    """Translate a named reporting period into local, day-inclusive bounds.

    Weeks start on Monday. Unknown names fall back to the current month.
    """
    zone = tz or get_time_zone()
    today = _to_local(now or datetime.now(timezone.utc), zone).date()
    try:
        named = ReportPeriod(period)
    except ValueError:
        named = ReportPeriod.CURRENT_MONTH

    month_start = today.replace(day=1)
    next_month_start = _shift_month(month_start, 1)
    if named == ReportPeriod.CURRENT_WEEK:
        week_start = today - timedelta(days=today.weekday())
        return _day_bounds(week_start, week_start + timedelta(days=6), zone)
    if named == ReportPeriod.LAST_MONTH:
        return _day_bounds(_shift_month(month_start, -1), month_start - timedelta(days=1), zone)
    if named == ReportPeriod.LAST_3_MONTHS:
        return _day_bounds(_shift_month(month_start, -3), next_month_start - timedelta(days=1), zone)
    return _day_bounds(month_start, next_month_start - timedelta(days=1), zone)


def contract_hours_per_week(contract_type: ContractType | None, calculator: TimeBalanceCalculator) -> float:
    if contract_type in _PART_TIME_CONTRACTS:
        return PART_TIME_CONTRACT_HOURS
    if contract_type == ContractType.ZERO_HOURS:
        return 0
    return calculator.resolve_weekly_hours()


def to_calc_entry(row: TimeEntry, tz: ZoneInfo) -> CalcTimeEntry:
    return CalcTimeEntry(
        id=str(row.id),
        user_id=row.user_id,
        clock_in=_to_local(row.start_time, tz),
        clock_out=_to_local(row.end_time, tz) if row.end_time is not None else None,
        total_break_minutes=row.total_break_minutes,
        work_type=row.work_type or WorkType.REGULAR,
        project_id=row.project_id,
        location=row.location,
        notes=row.notes or row.description,
        approved=bool(row.approved),
        approved_by=row.approved_by,
        approved_at=row.approved_at,
    )


def _period_read(period: Period) -> PeriodRead:
    return PeriodRead(start=period.start, end=period.end, formatted=format_period_nl(period))


def _formatted_balance(balance: TimeBalance, *, detailed: bool) -> FormattedBalance:
    productivity = balance.productivity
    formatted = FormattedBalance(
        expected_hours=format_duration(balance.expected_hours),
        actual_hours=format_duration(balance.actual_hours),
        overtime_hours=format_duration(balance.overtime_hours),
        compensation_balance=format_duration(balance.compensation_balance),
        shortage_hours=format_duration(balance.shortage_hours) if balance.shortage_hours > 0 else None,
        productivity=round(productivity) if productivity is not None else None,
    )
    if detailed:
        formatted.weekend_hours = format_duration(balance.weekend_hours)
        formatted.evening_hours = format_duration(balance.evening_hours)
        formatted.night_hours = format_duration(balance.night_hours)
        formatted.holiday_hours = format_duration(balance.holiday_hours)
        formatted.auto_break_deducted = format_duration(balance.auto_break_deducted)
    return formatted


def _get_user_or_404(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _list_entries(
    db: Session,
    *,
    start: datetime,
    end: datetime,
    user_ids: list[str] | None = None,
) -> list[TimeEntry]:
    stmt = (
        select(TimeEntry)
        .where(
            TimeEntry.start_time >= _to_utc(start),
            TimeEntry.start_time <= _to_utc(end),
        )
        .order_by(TimeEntry.start_time.asc(), TimeEntry.id.asc())
    )
    if user_ids is not None:
        stmt = stmt.where(TimeEntry.user_id.in_(user_ids))
    return list(db.scalars(stmt).all())


def _list_user_entries(db: Session, *, user_id: str, period: Period) -> list[TimeEntry]:
    return _list_entries(db, start=period.start, end=period.end, user_ids=[user_id])


def _list_reported_users(db: Session) -> list[User]:
    stmt = (
        select(User)
        .where(User.role.in_(REPORTED_ROLES), User.archived.is_(False))
        .order_by(User.name.asc(), User.id.asc())
    )
    return list(db.scalars(stmt).all())


def _entries_by_user(rows: list[TimeEntry], tz: ZoneInfo) -> dict[str, list[CalcTimeEntry]]:
    grouped: dict[str, list[CalcTimeEntry]] = defaultdict(list)
    for row in rows:
        grouped[row.user_id].append(to_calc_entry(row, tz))
    return grouped


def _in_period(entry: CalcTimeEntry, period: Period) -> bool:
    return period.start <= entry.clock_in <= period.end


def _history_weeks(period: Period, weeks: int) -> list[Period]:
    anchor = period.start.date() - timedelta(days=period.start.weekday())
    history: list[Period] = []
    for index in range(1, weeks + 1):
        week_start = anchor - timedelta(days=7 * index)
        history.append(_day_bounds(week_start, week_start + timedelta(days=6), period.start.tzinfo))
    return history


def get_time_balance(
    db: Session,
    calculator: TimeBalanceCalculator,
    *,
    user_id: str,
    period: Period,
) -> TimeBalanceResponse:
    tz = get_time_zone()
    user = _get_user_or_404(db, user_id)
    weekly_hours = contract_hours_per_week(user.contract_type, calculator)

    rows = _list_user_entries(db, user_id=user.id, period=period)
    entries = [to_calc_entry(row, tz) for row in rows]
    balance = calculator.calculate_time_balance(entries, period, weekly_hours, user_id=user.id)

    return TimeBalanceResponse(
        user=UserSummary.model_validate(user),
        balance=TimeBalanceRead.model_validate(balance),
        contract_info=ContractInfo(
            type=user.contract_type,
            hours_per_week=weekly_hours,
            hourly_rate=user.hourly_rate,
        ),
        formatted=_formatted_balance(balance, detailed=True),
        summary_text=format_time_balance(balance),
        recommendations=personal_recommendations(balance, calculator.rules),
        alerts=[PersonalAlertRead.model_validate(alert) for alert in personal_alerts(balance)],
    )


def _enrich_alert(alert: ShortageAlert, user: User | None) -> ShortageAlertRead:
    level = escalation_level(alert.consecutive_weeks_short)
    return ShortageAlertRead(
        user_id=alert.user_id,
        user_name=user.name if user is not None else "Onbekend",
        user_email=user.email if user is not None else None,
        contract_type=user.contract_type if user is not None else None,
        expected_hours=alert.expected_hours,
        actual_hours=alert.actual_hours,
        shortage_hours=alert.shortage_hours,
        formatted_shortage=format_duration(alert.shortage_hours),
        period=alert.period,
        severity=alert.severity,
        notified=alert.notified,
        consecutive_weeks_short=alert.consecutive_weeks_short,
        suggested_actions=alert.suggested_actions,
        auto_notification_sent=alert.auto_notification_sent,
        manager_notified=alert.manager_notified,
        action_required=alert.consecutive_weeks_short >= 2,
        escalation_level=level,
    )


def get_shortages(
    db: Session,
    calculator: TimeBalanceCalculator,
    *,
    period: Period,
) -> ShortagesResponse:
    tz = get_time_zone()
    users = _list_reported_users(db)
    users_by_id = {user.id: user for user in users}
    history_periods = _history_weeks(period, get_settings().shortage_history_weeks)
    range_start = min([period.start, *(week.start for week in history_periods)])

    rows = _list_entries(db, start=range_start, end=period.end, user_ids=list(users_by_id))
    grouped = _entries_by_user(rows, tz)

    balances: list[TimeBalance] = []
    history: list[list[TimeBalance]] = [[] for _ in history_periods]
    for user in users:
        weekly_hours = contract_hours_per_week(user.contract_type, calculator)
        user_entries = grouped.get(user.id, [])
        current = [entry for entry in user_entries if _in_period(entry, period)]
        balances.append(calculator.calculate_time_balance(current, period, weekly_hours, user_id=user.id))
        for index, week in enumerate(history_periods):
            week_entries = [entry for entry in user_entries if _in_period(entry, week)]
            history[index].append(
                calculator.calculate_time_balance(week_entries, week, weekly_hours, user_id=user.id)
            )

    alerts = calculator.detect_shortages(
        balances,
        history,
        user_names={user.id: user.name for user in users},
    )
    enriched = [_enrich_alert(alert, users_by_id.get(alert.user_id)) for alert in alerts]

    return ShortagesResponse(
        period=_period_read(period),
        alerts=enriched,
        summary=ShortageSummary(
            total_alerts=len(enriched),
            critical_alerts=sum(1 for item in enriched if item.severity == ShortageSeverity.CRITICAL),
            warning_alerts=sum(1 for item in enriched if item.severity == ShortageSeverity.WARNING),
            escalation_required=sum(1 for item in enriched if item.escalation_level == EscalationLevel.HIGH),
            action_required=sum(1 for item in enriched if item.action_required),
        ),
        recommendations=team_shortage_recommendations(alerts),
    )


def get_compensation_overview(
    db: Session,
    calculator: TimeBalanceCalculator,
    repository: SqlCompensationBalanceRepository,
    *,
    user_id: str,
) -> CompensationOverviewResponse:
    tz = get_time_zone()
    _get_user_or_404(db, user_id)
    totals = repository.get_totals(user_id)
    rows = repository.list_compensation_entries(user_id, limit=COMPENSATION_HISTORY_LIMIT)

    weekend_hours = 0.0
    evening_hours = 0.0
    for row in rows:
        if row.work_type != WorkType.OVERTIME or row.end_time is None:
            continue
        start = _to_local(row.start_time, tz)
        end = _to_local(row.end_time, tz)
        if start.weekday() >= 5:
            weekend_hours += entry_hours(row)
        elif is_evening_shift(start, end):
            evening_hours += entry_hours(row)

    rules = calculator.rules
    current = totals.current
    return CompensationOverviewResponse(
        compensation_balance=CompensationBalanceRead(
            earned=totals.earned,
            used=totals.used,
            current=current,
            formatted={
                "earned": format_duration(totals.earned),
                "used": format_duration(totals.used),
                "current": format_duration(current),
            },
        ),
        breakdown={
            "weekend_hours": LoadedHoursRead(
                hours=weekend_hours,
                formatted=format_duration(weekend_hours),
                compensation=weekend_hours * (rules.weekend_multiplier - 1),
            ),
            "evening_hours": LoadedHoursRead(
                hours=evening_hours,
                formatted=format_duration(evening_hours),
                compensation=evening_hours * (rules.evening_multiplier - 1),
            ),
        },
        recent_entries=[
            CompensationEntryRead(
                id=row.id,
                date=format_date_nl(_to_local(row.start_time, tz)),
                hours=format_duration(entry_hours(row)),
                type="Opgebouwd" if row.work_type == WorkType.OVERTIME else "Opgenomen",
                description=row.description,
                location=row.location or "Niet opgegeven",
                approved=bool(row.approved),
            )
            for row in rows[:RECENT_COMPENSATION_ENTRIES]
        ],
        can_use_compensation=current > 0,
        max_usable_hours=max(0.0, min(current, MAX_COMPENSATION_HOURS_PER_DAY)),
        recommendations=compensation_recommendations(current, weekend_hours, evening_hours),
    )


def get_team_report(
    db: Session,
    calculator: TimeBalanceCalculator,
    *,
    period: Period,
) -> TeamReportResponse:
    tz = get_time_zone()
    users = _list_reported_users(db)
    rows = _list_entries(db, start=period.start, end=period.end, user_ids=[user.id for user in users])
    grouped = _entries_by_user(rows, tz)

    balances: list[TimeBalance] = []
    individual_reports: list[IndividualReportRead] = []
    for user in users:
        weekly_hours = contract_hours_per_week(user.contract_type, calculator)
        entries = [entry for entry in grouped.get(user.id, []) if _in_period(entry, period)]
        balance = calculator.calculate_time_balance(entries, period, weekly_hours, user_id=user.id)
        balances.append(balance)
        individual_reports.append(
            IndividualReportRead(
                user_id=user.id,
                user_name=user.name,
                role=user.role,
                contract_type=user.contract_type,
                balance=TimeBalanceRead.model_validate(balance),
                formatted=_formatted_balance(balance, detailed=False),
            )
        )

    report = calculator.generate_time_report(balances)
    summary = report.summary
    total_hours_worked = sum(balance.actual_hours for balance in balances)

    return TeamReportResponse(
        period=_period_read(period),
        team_stats=TeamStatsRead(
            total_employees=len(users),
            total_hours_worked=total_hours_worked,
            total_overtime_hours=summary.total_overtime_hours,
            total_compensation_balance=summary.total_compensation_balance,
            total_shortage_hours=summary.total_shortage_hours,
            average_productivity=summary.average_productivity,
            formatted={
                "total_hours_worked": format_duration(total_hours_worked),
                "total_overtime_hours": format_duration(summary.total_overtime_hours),
                "total_compensation_balance": format_duration(summary.total_compensation_balance),
                "total_shortage_hours": format_duration(summary.total_shortage_hours),
                "average_productivity": round(summary.average_productivity),
            },
        ),
        summary=ReportSummaryRead.model_validate(summary),
        individual_reports=individual_reports,
        insights=[
            TeamInsightRead.model_validate(insight)
            for insight in team_insights(
                balances,
                average_productivity=summary.average_productivity,
                total_overtime_hours=summary.total_overtime_hours,
                total_shortage_hours=summary.total_shortage_hours,
            )
        ],
        recommendations=report.recommendations,
    )


def build_export_rows(
    db: Session,
    calculator: TimeBalanceCalculator,
    *,
    user_id: str,
    period: Period,
) -> tuple[User, list[dict[str, str | int]]]:
    user = _get_user_or_404(db, user_id)
    rows = _list_user_entries(db, user_id=user.id, period=period)
    return user, _export_rows(rows, calculator, get_time_zone())


def build_export_workbook(
    db: Session,
    calculator: TimeBalanceCalculator,
    *,
    user_id: str,
    period: Period,
) -> tuple[str, bytes]:
    """Return ``(filename, xlsx bytes)`` with the entries sheet and a balance sheet."""
    tz = get_time_zone()
    user = _get_user_or_404(db, user_id)
    rows = _list_user_entries(db, user_id=user.id, period=period)
    balance = calculator.calculate_time_balance(
        [to_calc_entry(row, tz) for row in rows],
        period,
        contract_hours_per_week(user.contract_type, calculator),
        user_id=user.id,
    )
    payload = build_time_export_xlsx_bytes(
        _export_rows(rows, calculator, tz),
        user_name=user.name,
        period_label=format_period_nl(period),
        balance=balance,
    )
    filename = f"uren-{user.id}-{period.start.date().isoformat()}-{period.end.date().isoformat()}.xlsx"
    return filename, payload


def _export_rows(
    rows: list[TimeEntry],
    calculator: TimeBalanceCalculator,
    tz: ZoneInfo,
) -> list[dict[str, str | int]]:
    export_rows: list[dict[str, str | int]] = []
    for row in sorted(rows, key=lambda item: item.start_time, reverse=True):
        entry = calculator.annotate_entry(to_calc_entry(row, tz))
        clock_out = entry.clock_out
        export_rows.append(
            {
                "Datum": format_date_nl(entry.clock_in),
                "Start Tijd": entry.clock_in.strftime("%H:%M:%S"),
                "Eind Tijd": clock_out.strftime("%H:%M:%S") if clock_out is not None else "Nog bezig",
                "Gewerkte Uren": format_duration(entry_hours(row)),
                "Project": row.project_id or "Geen project",
                "Locatie": row.location or "Niet opgegeven",
                "Beschrijving": row.description or "",
                "Pauze (min)": row.total_break_minutes or 0,
                "Type": entry.work_type.value,
                "Dienst": entry.shift_type.value if entry.shift_type is not None else "",
                "Goedgekeurd": "Ja" if row.approved else "Nee",
                "Notities": row.notes or "",
            }
        )
    return export_rows


def export_time_data(
    db: Session,
    calculator: TimeBalanceCalculator,
    *,
    user_id: str,
    period: Period,
) -> ExportResponse:
    user, rows = build_export_rows(db, calculator, user_id=user_id, period=period)
    return ExportResponse(
        export_data=rows,
        summary=ExportSummary(
            total_entries=len(rows),
            period=format_period_nl(period),
            user=user.name or "Onbekend",
        ),
    )


def process_auto_notifications(
    db: Session,
    calculator: TimeBalanceCalculator,
    *,
    now: datetime | None = None,
) -> AutoNotificationsResponse:
    period = resolve_period(ReportPeriod.CURRENT_MONTH, now=now)
    shortages = get_shortages(db, calculator, period=period)

    notifications: list[AutoNotificationRead] = []
    for alert in shortages.alerts:
        if alert.auto_notification_sent or alert.severity != ShortageSeverity.CRITICAL:
            continue
        logger.info(
            "shortage_auto_notification",
            extra={
                "user_id": alert.user_id,
                "shortage_hours": alert.shortage_hours,
                "consecutive_weeks_short": alert.consecutive_weeks_short,
            },
        )
        notifications.append(
            AutoNotificationRead(
                user_id=alert.user_id,
                user_name=alert.user_name,
                type="SHORTAGE_ALERT",
                message=f"Je hebt {alert.formatted_shortage} te kort gewerkt",
                severity=alert.severity,
            )
        )

    return AutoNotificationsResponse(
        notifications_sent=notifications,
        total_sent=len(notifications),
        message=f"{len(notifications)} automatische notificaties verzonden",
    )


def _compensation_entry(
    *,
    user_id: str,
    day: date,
    hours: float,
    description: str,
    tz: ZoneInfo,
) -> TimeEntry:
    start = datetime.combine(day, COMPENSATION_DAY_START, tzinfo=tz)
    end = start + timedelta(hours=hours)
    return TimeEntry(
        user_id=user_id,
        start_time=_to_utc(start),
        end_time=_to_utc(end),
        total_break_minutes=0,
        work_type=WorkType.COMPENSATION_USED,
        description=description,
        hours_worked=hours,
        approved=False,
    )


def use_compensation_time(
    db: Session,
    repository: SqlCompensationBalanceRepository,
    payload: UseCompensationRequest,
    *,
    now: datetime | None = None,
) -> UseCompensationResponse:
    tz = get_time_zone()
    today = _to_local(now or datetime.now(timezone.utc), tz).date()

    if payload.hours > MAX_COMPENSATION_HOURS_PER_DAY:
        raise ApiError(400, "INVALID_HOURS", "Maximaal 8 uur per dag toegestaan")
    if payload.day < today:
        raise ApiError(400, "DATE_IN_PAST", "Kan geen verlof aanvragen voor verleden datums")

    _get_user_or_404(db, payload.user_id)

    day_bounds = _day_bounds(payload.day, payload.day, tz)
    existing = db.scalar(
        select(TimeEntry).where(
            TimeEntry.user_id == payload.user_id,
            TimeEntry.work_type == WorkType.COMPENSATION_USED,
            TimeEntry.start_time >= _to_utc(day_bounds.start),
            TimeEntry.start_time <= _to_utc(day_bounds.end),
        )
    )
    if existing is not None:
        raise ApiError(400, "DUPLICATE_REQUEST", "Er bestaat al een compensatie aanvraag voor deze datum")

    available = repository.get_available_balance(payload.user_id)
    if payload.hours > available:
        raise InsufficientCompensationError(
            "Niet genoeg compensatie uren. "
            f"Beschikbaar: {format_duration(available)}, Aangevraagd: {format_duration(payload.hours)}"
        )

    entry = _compensation_entry(
        user_id=payload.user_id,
        day=payload.day,
        hours=payload.hours,
        description=f"Compensatie uren opgenomen: {format_duration(payload.hours)} ({payload.type.value})",
        tz=tz,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)

    logger.info(
        "compensation_requested",
        extra={"user_id": payload.user_id, "entry_id": entry.id, "hours": payload.hours},
    )
    return UseCompensationResponse(
        message=f"{format_duration(payload.hours)} compensatie uren aangevraagd voor {format_date_nl(payload.day)}",
        entry_id=entry.id,
        day=payload.day,
        hours_used=payload.hours,
        remaining_balance=available - payload.hours,
    )


def process_bulk_compensation_request(
    db: Session,
    calculator: TimeBalanceCalculator,
    repository: SqlCompensationBalanceRepository,
    payload: BulkCompensationRequest,
) -> BulkCompensationResponse:
    tz = get_time_zone()
    _get_user_or_404(db, payload.user_id)
    total_hours = payload.hours_per_day * len(payload.dates)
    action = BulkCompensationAction(
        user_id=payload.user_id,
        dates=list(payload.dates),
        hours_per_day=payload.hours_per_day,
        type=payload.type,
        reason=payload.reason,
        total_hours=total_hours,
    )
    result = calculator.process_bulk_compensation(action, repository)
    if not result.success:
        logger.warning(
            "bulk_compensation_rejected",
            extra={
                "user_id": payload.user_id,
                "requested_by": payload.requested_by,
                "total_hours": total_hours,
                "remaining_balance": result.remaining_balance,
            },
        )
        raise InsufficientCompensationError(result.message)

    created: list[tuple[TimeEntry, date]] = []
    for request_entry in result.entries:
        row = _compensation_entry(
            user_id=payload.user_id,
            day=request_entry.date,
            hours=request_entry.hours,
            description=f"Bulk compensatie: {request_entry.reason}",
            tz=tz,
        )
        db.add(row)
        created.append((row, request_entry.date))
    db.commit()
    for row, _ in created:
        db.refresh(row)

    logger.info(
        "compensation_requested",
        extra={
            "user_id": payload.user_id,
            "requested_by": payload.requested_by,
            "entry_ids": [row.id for row, _ in created],
            "hours": total_hours,
        },
    )
    return BulkCompensationResponse(
        message=result.message,
        entries=[
            BulkCompensationEntryRead(id=row.id, day=day, hours=payload.hours_per_day, type=payload.type)
            for row, day in created
        ],
        total_hours=total_hours,
        remaining_balance=result.remaining_balance,
    )


def approve_compensation_request(
    db: Session,
    *,
    entry_id: int,
    approver_id: str,
    now: datetime | None = None,
) -> ApproveCompensationResponse:
    entry = db.get(TimeEntry, entry_id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")
    if entry.work_type != WorkType.COMPENSATION_USED:
        raise ApiError(400, "NOT_A_COMPENSATION_REQUEST", "Entry is not a compensation request")
    if entry.approved:
        raise ApiError(400, "ALREADY_APPROVED", "Request already approved")

    approved_at = now or datetime.now(timezone.utc)
    entry.approved = True
    entry.approved_by = approver_id
    entry.approved_at = approved_at
    db.commit()

    user = db.get(User, entry.user_id)
    logger.info(
        "compensation_approved",
        extra={"entry_id": entry_id, "user_id": entry.user_id, "approved_by": approver_id},
    )
    return ApproveCompensationResponse(
        message=f"Compensatie aanvraag goedgekeurd voor {user.name if user is not None else 'Onbekend'}",
        entry_id=entry_id,
        approved_at=approved_at,
        approved_by=approver_id,
    )


def preview_break_validation(
    calculator: TimeBalanceCalculator,
    payload: BreakValidationRequest,
) -> BreakValidationResponse:
    """Check break rules for an unsaved shift; naive times are read as local wall clock."""
    tz = get_time_zone()
    entry = CalcTimeEntry(
        id="preview",
        user_id="preview",
        clock_in=_localize(payload.clock_in, tz),
        clock_out=_localize(payload.clock_out, tz) if payload.clock_out is not None else None,
        total_break_minutes=payload.total_break_minutes,
    )
    return BreakValidationResponse.model_validate(calculator.validate_break_rules(entry))
