from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from math import ceil
from typing import Any, Protocol

from jobflow.enums import (
    CompensationRequestStatus,
    CompensationType,
    ShiftType,
    ShortageSeverity,
    WorkType,
)
from jobflow.services.formatting import format_duration, format_period_nl
from jobflow.services.holiday_calendar import HolidayCalendar

CRITICAL_SHORTAGE_HOURS = 8
LONG_SHIFT_MIN_BREAK_MINUTES = 30

EVENING_START = time(18, 0)
NIGHT_START = time(22, 0)
NIGHT_END = time(6, 0)


@dataclass(frozen=True)
class WorkingTimeRules:
    standard_working_hours: float = 40
    overtime_threshold: float = 40
    compensation_time_multiplier: float = 1.0
    max_compensation_balance: float = 80
    shortage_threshold: float = 4
    break_minimum_minutes: float = 30
    break_required_after_hours: float = 6
    weekend_multiplier: float = 1.5
    evening_multiplier: float = 1.25
    night_multiplier: float = 1.5
    holiday_multiplier: float = 2.0
    auto_break_after_hours: float = 6
    auto_break_minutes: float = 30
    flexible_work_week: bool = False
    contract_hours_per_week: float | None = None
    max_daily_hours: float = 12
    min_rest_between_shifts: float = 11

    def with_overrides(self, **overrides: Any) -> WorkingTimeRules:
        return replace(self, **overrides)


@dataclass
class TimeEntry:
    id: str
    user_id: str
    clock_in: datetime
    clock_out: datetime | None = None
    break_start: datetime | None = None
    break_end: datetime | None = None
    total_break_minutes: float | None = None
    work_type: WorkType = WorkType.REGULAR
    project_id: str | None = None
    location: str | None = None
    notes: str | None = None
    approved: bool = False
    approved_by: str | None = None
    approved_at: datetime | None = None
    calculated_hours: float | None = None
    compensation_earned: float | None = None
    is_weekend: bool | None = None
    is_evening: bool | None = None
    is_night: bool | None = None
    is_holiday: bool | None = None
    auto_break_applied: bool | None = None
    shift_type: ShiftType | None = None


@dataclass(frozen=True)
class Period:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class HourBreakdown:
    regular_hours: float = 0.0
    weekend_hours: float = 0.0
    evening_hours: float = 0.0
    night_hours: float = 0.0
    holiday_hours: float = 0.0
    auto_break_deducted: float = 0.0


@dataclass(frozen=True)
class WorkedHours:
    hours: float
    breakdown: HourBreakdown


@dataclass(frozen=True)
class TimeBalance:
    user_id: str
    regular_hours: float
    overtime_hours: float
    compensation_hours: float
    used_compensation_hours: float
    shortage_hours: float
    expected_hours: float
    actual_hours: float
    break_hours: float
    weekend_hours: float
    evening_hours: float
    night_hours: float
    holiday_hours: float
    auto_break_deducted: float
    period: Period

    @property
    def compensation_balance(self) -> float:
        return self.compensation_hours - self.used_compensation_hours

    @property
    def productivity(self) -> float | None:
        """Actual hours as a percentage of expected hours, ``None`` without a target."""
        if self.expected_hours <= 0:
            return None
        return self.actual_hours / self.expected_hours * 100


@dataclass
class ShortageAlert:
    user_id: str
    user_name: str
    expected_hours: float
    actual_hours: float
    shortage_hours: float
    period: str
    severity: ShortageSeverity
    consecutive_weeks_short: int
    suggested_actions: list[str]
    notified: bool = False
    auto_notification_sent: bool = False
    manager_notified: bool = False


@dataclass(frozen=True)
class BulkCompensationAction:
    user_id: str
    dates: list[date]
    hours_per_day: float
    type: CompensationType
    reason: str
    total_hours: float


@dataclass(frozen=True)
class CompensationRequestEntry:
    date: date
    hours: float
    type: CompensationType
    reason: str
    status: CompensationRequestStatus = CompensationRequestStatus.PENDING_APPROVAL


@dataclass(frozen=True)
class BulkCompensationResult:
    success: bool
    message: str
    entries: list[CompensationRequestEntry]
    remaining_balance: float


@dataclass(frozen=True)
class BreakValidation:
    valid: bool
    message: str | None = None


@dataclass(frozen=True)
class CompensationAllowance:
    allowed: bool
    max_allowed: float | None = None


@dataclass(frozen=True)
class ReportSummary:
    total_regular_hours: float
    total_overtime_hours: float
    total_compensation_balance: float
    total_shortage_hours: float
    average_productivity: float


@dataclass(frozen=True)
class TimeReport:
    summary: ReportSummary
    alerts: list[ShortageAlert]
    recommendations: list[str] = field(default_factory=list)


class CompensationBalanceLookup(Protocol):
    def get_available_balance(self, user_id: str) -> float: ...


def _number(value: float) -> str:
    return f"{value:g}"


def weeks_between(start: date | datetime, end: date | datetime) -> float:
    """Calendar-day based week count: ``ceil(days) / 7``."""
    seconds = abs((end - start).total_seconds())
    return ceil(seconds / 86400) / 7


def worked_hours(clock_in: datetime, clock_out: datetime, break_minutes: float = 0) -> float:
    total_minutes = (clock_out - clock_in).total_seconds() / 60
    return max(0.0, (total_minutes - break_minutes) / 60)


def _overlaps_daily_window(
    clock_in: datetime,
    clock_out: datetime,
    *,
    window_start: time,
    window_hours: int,
) -> bool:
    day = clock_in.date() - timedelta(days=1)
    while day <= clock_out.date():
        start = datetime.combine(day, window_start, tzinfo=clock_in.tzinfo)
        end = start + timedelta(hours=window_hours)
        if clock_in < end and clock_out > start:
            return True
        day += timedelta(days=1)
    return False


def is_night_shift(clock_in: datetime, clock_out: datetime) -> bool:
    return _overlaps_daily_window(clock_in, clock_out, window_start=NIGHT_START, window_hours=8)


def is_evening_shift(clock_in: datetime, clock_out: datetime) -> bool:
    return _overlaps_daily_window(clock_in, clock_out, window_start=EVENING_START, window_hours=6)


class TimeBalanceCalculator:
    """Time balance, overtime and compensation ("tijd voor tijd") rules.

    Instances are stateless apart from their rules and holiday calendar, so one
    calculator can serve any number of users and periods.
    """

    def __init__(
        self,
        rules: WorkingTimeRules | None = None,
        *,
        holiday_calendar: HolidayCalendar | None = None,
        **rule_overrides: Any,
    ) -> None:
        base_rules = rules or WorkingTimeRules()
        self.rules = base_rules.with_overrides(**rule_overrides) if rule_overrides else base_rules
        self.holiday_calendar = holiday_calendar or HolidayCalendar()

    def calculate_detailed_worked_hours(self, entry: TimeEntry) -> WorkedHours:
        if entry.clock_out is None:
            return WorkedHours(hours=0.0, breakdown=HourBreakdown())

        clock_in = entry.clock_in
        clock_out = entry.clock_out
        total_minutes = (clock_out - clock_in).total_seconds() / 60
        explicit_break_minutes = entry.total_break_minutes or 0

        auto_break_deducted = 0.0
        if total_minutes / 60 >= self.rules.auto_break_after_hours and not entry.total_break_minutes:
            auto_break_deducted = self.rules.auto_break_minutes / 60

        net_minutes = total_minutes - explicit_break_minutes - auto_break_deducted * 60
        hours = max(0.0, net_minutes / 60)

        if self.holiday_calendar.is_holiday(clock_in):
            breakdown = HourBreakdown(holiday_hours=hours, auto_break_deducted=auto_break_deducted)
        elif clock_in.weekday() >= 5:
            breakdown = HourBreakdown(weekend_hours=hours, auto_break_deducted=auto_break_deducted)
        elif is_night_shift(clock_in, clock_out):
            breakdown = HourBreakdown(night_hours=hours, auto_break_deducted=auto_break_deducted)
        elif is_evening_shift(clock_in, clock_out):
            breakdown = HourBreakdown(evening_hours=hours, auto_break_deducted=auto_break_deducted)
        else:
            breakdown = HourBreakdown(regular_hours=hours, auto_break_deducted=auto_break_deducted)

        return WorkedHours(hours=hours, breakdown=breakdown)

    def annotate_entry(self, entry: TimeEntry) -> TimeEntry:
        """Return a copy of ``entry`` with the derived flags and cached hours filled in."""
        if entry.clock_out is None:
            return replace(entry, calculated_hours=0.0, compensation_earned=0.0)

        result = self.calculate_detailed_worked_hours(entry)
        breakdown = result.breakdown
        rules = self.rules
        is_weekend = entry.clock_in.weekday() >= 5
        is_night = is_night_shift(entry.clock_in, entry.clock_out)
        is_evening = is_evening_shift(entry.clock_in, entry.clock_out)

        if is_weekend:
            shift_type = ShiftType.WEEKEND
        elif is_night:
            shift_type = ShiftType.NIGHT
        elif is_evening:
            shift_type = ShiftType.EVENING
        else:
            shift_type = ShiftType.DAY

        compensation = (
            breakdown.weekend_hours * (rules.weekend_multiplier - 1)
            + breakdown.evening_hours * (rules.evening_multiplier - 1)
            + breakdown.night_hours * (rules.night_multiplier - 1)
            + breakdown.holiday_hours * (rules.holiday_multiplier - 1)
        )
        return replace(
            entry,
            is_weekend=is_weekend,
            is_evening=is_evening,
            is_night=is_night,
            is_holiday=self.holiday_calendar.is_holiday(entry.clock_in),
            auto_break_applied=breakdown.auto_break_deducted > 0,
            calculated_hours=result.hours,
            compensation_earned=compensation,
            shift_type=shift_type,
        )

    def resolve_weekly_hours(self, contract_hours: float | None = None) -> float:
        if contract_hours is not None:
            return contract_hours
        if self.rules.contract_hours_per_week is not None:
            return self.rules.contract_hours_per_week
        return self.rules.standard_working_hours

    def calculate_time_balance(
        self,
        entries: list[TimeEntry],
        period: Period,
        contract_hours: float | None = None,
        *,
        user_id: str | None = None,
    ) -> TimeBalance:
        weekly_hours = self.resolve_weekly_hours(contract_hours)

        total_worked = 0.0
        weekend_hours = 0.0
        evening_hours = 0.0
        night_hours = 0.0
        holiday_hours = 0.0
        auto_break_deducted = 0.0
        used_compensation = 0.0

        for entry in entries:
            if entry.clock_out is None:
                continue
            if entry.work_type == WorkType.REGULAR:
                result = self.calculate_detailed_worked_hours(entry)
                total_worked += result.hours
                weekend_hours += result.breakdown.weekend_hours
                evening_hours += result.breakdown.evening_hours
                night_hours += result.breakdown.night_hours
                holiday_hours += result.breakdown.holiday_hours
                auto_break_deducted += result.breakdown.auto_break_deducted
            elif entry.work_type == WorkType.COMPENSATION_USED:
                used_compensation += worked_hours(entry.clock_in, entry.clock_out)

        break_hours = sum((entry.total_break_minutes or 0) for entry in entries) / 60
        expected_hours = weeks_between(period.start, period.end) * weekly_hours

        # Regular hours are capped by the period target, overtime by the weekly target.
        regular_hours = min(total_worked, expected_hours)
        overtime_hours = max(0.0, total_worked - weekly_hours)

        rules = self.rules
        compensation = overtime_hours * rules.compensation_time_multiplier
        compensation += weekend_hours * (rules.weekend_multiplier - 1)
        compensation += evening_hours * (rules.evening_multiplier - 1)
        compensation += night_hours * (rules.night_multiplier - 1)
        compensation += holiday_hours * (rules.holiday_multiplier - 1)

        if user_id is None:
            user_id = entries[0].user_id if entries else ""

        return TimeBalance(
            user_id=user_id,
            regular_hours=regular_hours,
            overtime_hours=overtime_hours,
            compensation_hours=compensation,
            used_compensation_hours=used_compensation,
            shortage_hours=max(0.0, expected_hours - total_worked),
            expected_hours=expected_hours,
            actual_hours=total_worked,
            break_hours=break_hours,
            weekend_hours=weekend_hours,
            evening_hours=evening_hours,
            night_hours=night_hours,
            holiday_hours=holiday_hours,
            auto_break_deducted=auto_break_deducted,
            period=period,
        )

    def detect_shortages(
        self,
        balances: list[TimeBalance],
        history: list[list[TimeBalance]] | None = None,
        *,
        user_names: dict[str, str] | None = None,
    ) -> list[ShortageAlert]:
        names = user_names or {}
        alerts: list[ShortageAlert] = []
        for balance in balances:
            if balance.shortage_hours < self.rules.shortage_threshold:
                continue

            consecutive = self._consecutive_short_weeks(balance, history)
            alerts.append(
                ShortageAlert(
                    user_id=balance.user_id,
                    user_name=names.get(balance.user_id, f"User {balance.user_id}"),
                    expected_hours=balance.expected_hours,
                    actual_hours=balance.actual_hours,
                    shortage_hours=balance.shortage_hours,
                    period=format_period_nl(balance.period),
                    severity=(
                        ShortageSeverity.CRITICAL
                        if balance.shortage_hours >= CRITICAL_SHORTAGE_HOURS
                        else ShortageSeverity.WARNING
                    ),
                    consecutive_weeks_short=consecutive,
                    suggested_actions=self._shortage_actions(balance.shortage_hours, consecutive),
                    manager_notified=consecutive >= 3,
                )
            )
        return alerts

    def _consecutive_short_weeks(
        self,
        balance: TimeBalance,
        history: list[list[TimeBalance]] | None,
    ) -> int:
        run = 1
        if not history:
            return run

        earlier = sorted(
            (
                past
                for batch in history
                for past in batch
                if past.user_id == balance.user_id and past.period.start < balance.period.start
            ),
            key=lambda past: past.period.start,
            reverse=True,
        )
        for past in earlier:
            if past.shortage_hours < self.rules.shortage_threshold:
                break
            run += 1
        return run

    @staticmethod
    def _shortage_actions(shortage_hours: float, consecutive_weeks: int) -> list[str]:
        if shortage_hours <= 4:
            actions = [
                "Plan extra uren deze week",
                "Overleg met manager over flexibele uren",
            ]
        elif shortage_hours <= 8:
            actions = [
                "Plan inhaaldag deze week",
                "Gebruik compensatie uren indien beschikbaar",
                "Overleg met planning over extra shifts",
            ]
        else:
            actions = [
                "Urgent: Plan meerdere inhaaldagen",
                "Manager gesprek vereist",
                "Evalueer werkbelasting en planning",
            ]

        if consecutive_weeks >= 2:
            actions.append("Structureel probleem: evalueer contract uren")
            actions.append("Bespreek werkdruk met HR")
        if consecutive_weeks >= 3:
            actions.append("Escalatie naar management")
            actions.append("Mogelijk contract aanpassing nodig")
        return actions

    def process_bulk_compensation(
        self,
        action: BulkCompensationAction,
        balance_lookup: CompensationBalanceLookup,
    ) -> BulkCompensationResult:
        available = balance_lookup.get_available_balance(action.user_id)
        needed = action.total_hours

        if needed > available:
            return BulkCompensationResult(
                success=False,
                message=(
                    "Niet genoeg compensatie uren. "
                    f"Beschikbaar: {format_duration(available)}, Nodig: {format_duration(needed)}"
                ),
                entries=[],
                remaining_balance=available,
            )

        entries = [
            CompensationRequestEntry(
                date=day,
                hours=action.hours_per_day,
                type=action.type,
                reason=action.reason,
            )
            for day in action.dates
        ]
        return BulkCompensationResult(
            success=True,
            message=f"{len(action.dates)} dagen compensatie aangevraagd ({format_duration(needed)})",
            entries=entries,
            remaining_balance=available - needed,
        )

    def validate_break_rules(self, entry: TimeEntry) -> BreakValidation:
        if entry.clock_out is None:
            return BreakValidation(valid=True)

        hours = worked_hours(entry.clock_in, entry.clock_out)
        break_minutes = entry.total_break_minutes or 0

        if break_minutes < self.rules.break_minimum_minutes:
            return BreakValidation(
                valid=False,
                message=f"Minimum {_number(self.rules.break_minimum_minutes)} minuten pauze vereist",
            )

        if hours > self.rules.break_required_after_hours and break_minutes < LONG_SHIFT_MIN_BREAK_MINUTES:
            return BreakValidation(
                valid=False,
                message=(
                    f"Na {_number(self.rules.break_required_after_hours)} uur werken is minimaal "
                    f"{LONG_SHIFT_MIN_BREAK_MINUTES} minuten pauze verplicht"
                ),
            )

        return BreakValidation(valid=True)

    def generate_time_report(self, balances: list[TimeBalance]) -> TimeReport:
        productivities = [b.productivity for b in balances if b.productivity is not None]
        summary = ReportSummary(
            total_regular_hours=sum(b.regular_hours for b in balances),
            total_overtime_hours=sum(b.overtime_hours for b in balances),
            total_compensation_balance=sum(b.compensation_balance for b in balances),
            total_shortage_hours=sum(b.shortage_hours for b in balances),
            average_productivity=sum(productivities) / len(productivities) if productivities else 0.0,
        )
        alerts = self.detect_shortages(balances)
        return TimeReport(
            summary=summary,
            alerts=alerts,
            recommendations=self._report_recommendations(summary, alerts),
        )

    @staticmethod
    def _report_recommendations(summary: ReportSummary, alerts: list[ShortageAlert]) -> list[str]:
        recommendations: list[str] = []
        if summary.total_shortage_hours > 20:
            recommendations.append(
                "WAARSCHUWING: Er zijn significante tekorten gedetecteerd. Overweeg rooster aanpassingen."
            )
        if summary.total_overtime_hours > summary.total_regular_hours * 0.2:
            recommendations.append("OVERTIME: Hoge overtime uren. Mogelijk extra personeel nodig.")
        if summary.total_compensation_balance > 200:
            recommendations.append(
                "COMPENSATIE: Veel opgebouwde compensatie uren. Stimuleer opname om burnout te voorkomen."
            )
        if summary.average_productivity < 80:
            recommendations.append(
                "PRODUCTIVITEIT: Lage productiviteit gedetecteerd. Analyseer oorzaken en ondersteun medewerkers."
            )
        if alerts:
            recommendations.append(
                f"TEKORTEN: {len(alerts)} medewerkers hebben tekorten. Directe aandacht vereist."
            )
        return recommendations

    def calculate_compensation_time(
        self,
        overtime_hours: float,
        is_weekend: bool = False,
        is_holiday: bool = False,
    ) -> float:
        multiplier = self.rules.compensation_time_multiplier
        if is_weekend:
            multiplier += 0.5
        if is_holiday:
            multiplier += 1.0
        return overtime_hours * multiplier

    def can_earn_compensation(self, current_balance: float, new_hours: float) -> CompensationAllowance:
        if current_balance + new_hours <= self.rules.max_compensation_balance:
            return CompensationAllowance(allowed=True)
        return CompensationAllowance(
            allowed=False,
            max_allowed=max(0.0, self.rules.max_compensation_balance - current_balance),
        )
