from __future__ import annotations

from datetime import date, datetime, timedelta
import unittest
from zoneinfo import ZoneInfo

from jobflow.enums import CompensationRequestStatus, CompensationType, ShiftType, ShortageSeverity, WorkType
from jobflow.services.time_balance_calc import (
    BulkCompensationAction,
    Period,
    TimeBalance,
    TimeBalanceCalculator,
    TimeEntry,
    WorkingTimeRules,
    is_evening_shift,
    is_night_shift,
    weeks_between,
)

AMS = ZoneInfo("Europe/Amsterdam")


def _at(year: int, month: int, day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=AMS)


def _entry(
    clock_in: datetime,
    clock_out: datetime | None,
    *,
    break_minutes: float | None = None,
    work_type: WorkType = WorkType.REGULAR,
    user_id: str = "u1",
) -> TimeEntry:
    return TimeEntry(
        id=f"{user_id}-{clock_in.isoformat()}",
        user_id=user_id,
        clock_in=clock_in,
        clock_out=clock_out,
        total_break_minutes=break_minutes,
        work_type=work_type,
    )


def _balance(
    user_id: str,
    *,
    start: datetime,
    shortage_hours: float = 0.0,
    actual_hours: float = 40.0,
    expected_hours: float = 40.0,
    overtime_hours: float = 0.0,
    compensation_hours: float = 0.0,
) -> TimeBalance:
    return TimeBalance(
        user_id=user_id,
        regular_hours=min(actual_hours, expected_hours),
        overtime_hours=overtime_hours,
        compensation_hours=compensation_hours,
        used_compensation_hours=0.0,
        shortage_hours=shortage_hours,
        expected_hours=expected_hours,
        actual_hours=actual_hours,
        break_hours=0.0,
        weekend_hours=0.0,
        evening_hours=0.0,
        night_hours=0.0,
        holiday_hours=0.0,
        auto_break_deducted=0.0,
        period=Period(start=start, end=start + timedelta(days=6)),
    )


class _FixedBalance:
    def __init__(self, available: float):
        self.available = available
        self.calls: list[str] = []

    def get_available_balance(self, user_id: str) -> float:
        self.calls.append(user_id)
        return self.available


WEEK_OF_MARCH_4 = Period(start=_at(2024, 3, 4, 0), end=_at(2024, 3, 11, 0))


class WorkedHoursTests(unittest.TestCase):
    def setUp(self) -> None:
        self.calculator = TimeBalanceCalculator()

    def test_auto_break_applied_at_threshold_without_break(self) -> None:
        result = self.calculator.calculate_detailed_worked_hours(
            _entry(_at(2024, 3, 4, 9), _at(2024, 3, 4, 15))
        )

        self.assertAlmostEqual(result.hours, 5.5)
        self.assertAlmostEqual(result.breakdown.auto_break_deducted, 0.5)
        self.assertAlmostEqual(result.breakdown.regular_hours, 5.5)

    def test_explicit_break_suppresses_auto_break(self) -> None:
        result = self.calculator.calculate_detailed_worked_hours(
            _entry(_at(2024, 3, 4, 9), _at(2024, 3, 4, 15), break_minutes=15)
        )

        self.assertAlmostEqual(result.hours, 5.75)
        self.assertEqual(result.breakdown.auto_break_deducted, 0)

    def test_short_shift_has_no_auto_break(self) -> None:
        result = self.calculator.calculate_detailed_worked_hours(
            _entry(_at(2024, 3, 4, 9), _at(2024, 3, 4, 14, 59))
        )

        self.assertEqual(result.breakdown.auto_break_deducted, 0)
        self.assertAlmostEqual(result.hours, 5 + 59 / 60)

    def test_open_entry_counts_zero(self) -> None:
        result = self.calculator.calculate_detailed_worked_hours(_entry(_at(2024, 3, 4, 9), None))

        self.assertEqual(result.hours, 0)
        self.assertEqual(result.breakdown.regular_hours, 0)
        self.assertEqual(result.breakdown.auto_break_deducted, 0)

    def test_break_longer_than_shift_clamps_to_zero(self) -> None:
        result = self.calculator.calculate_detailed_worked_hours(
            _entry(_at(2024, 3, 4, 9), _at(2024, 3, 4, 9, 30), break_minutes=60)
        )

        self.assertEqual(result.hours, 0)

    def test_exactly_one_bucket_is_filled(self) -> None:
        entries = [
            _entry(_at(2024, 3, 4, 9), _at(2024, 3, 4, 17)),
            _entry(_at(2024, 3, 5, 14), _at(2024, 3, 5, 19)),
            _entry(_at(2024, 3, 5, 22), _at(2024, 3, 6, 6)),
            _entry(_at(2024, 3, 9, 10), _at(2024, 3, 9, 14)),
            _entry(_at(2024, 12, 25, 23), _at(2024, 12, 26, 2)),
        ]
        for entry in entries:
            breakdown = self.calculator.calculate_detailed_worked_hours(entry).breakdown
            buckets = [
                breakdown.regular_hours,
                breakdown.weekend_hours,
                breakdown.evening_hours,
                breakdown.night_hours,
                breakdown.holiday_hours,
            ]
            self.assertEqual(sum(1 for value in buckets if value > 0), 1, entry.clock_in)

    def test_christmas_night_shift_counts_as_holiday(self) -> None:
        result = self.calculator.calculate_detailed_worked_hours(
            _entry(_at(2024, 12, 25, 23), _at(2024, 12, 26, 2))
        )

        self.assertAlmostEqual(result.breakdown.holiday_hours, 3)
        self.assertEqual(result.breakdown.night_hours, 0)

    def test_weekend_wins_over_evening(self) -> None:
        result = self.calculator.calculate_detailed_worked_hours(
            _entry(_at(2024, 3, 9, 16), _at(2024, 3, 9, 20))
        )

        self.assertAlmostEqual(result.breakdown.weekend_hours, 4)
        self.assertEqual(result.breakdown.evening_hours, 0)

    def test_night_and_evening_windows(self) -> None:
        self.assertTrue(is_night_shift(_at(2024, 3, 5, 5), _at(2024, 3, 5, 7)))
        self.assertTrue(is_night_shift(_at(2024, 3, 5, 21), _at(2024, 3, 5, 23)))
        self.assertFalse(is_night_shift(_at(2024, 3, 5, 6), _at(2024, 3, 5, 21)))
        self.assertTrue(is_evening_shift(_at(2024, 3, 5, 14), _at(2024, 3, 5, 19)))
        self.assertFalse(is_evening_shift(_at(2024, 3, 5, 9), _at(2024, 3, 5, 18)))

    def test_annotate_entry_sets_flags_and_shift_type(self) -> None:
        annotated = self.calculator.annotate_entry(_entry(_at(2024, 3, 9, 10), _at(2024, 3, 9, 14)))

        self.assertTrue(annotated.is_weekend)
        self.assertFalse(annotated.is_holiday)
        self.assertFalse(annotated.auto_break_applied)
        self.assertEqual(annotated.shift_type, ShiftType.WEEKEND)
        self.assertAlmostEqual(annotated.calculated_hours, 4)
        self.assertAlmostEqual(annotated.compensation_earned, 2)


class TimeBalanceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.calculator = TimeBalanceCalculator()

    def test_week_with_weekday_and_saturday_shift(self) -> None:
        entries = [
            _entry(_at(2024, 3, 4, 9), _at(2024, 3, 4, 17)),
            _entry(_at(2024, 3, 9, 10), _at(2024, 3, 9, 14)),
        ]

        balance = self.calculator.calculate_time_balance(entries, WEEK_OF_MARCH_4)

        self.assertEqual(balance.user_id, "u1")
        self.assertAlmostEqual(balance.expected_hours, 40)
        self.assertAlmostEqual(balance.actual_hours, 11.5)
        self.assertAlmostEqual(balance.regular_hours, 11.5)
        self.assertAlmostEqual(balance.weekend_hours, 4)
        self.assertAlmostEqual(balance.auto_break_deducted, 0.5)
        self.assertAlmostEqual(balance.shortage_hours, 28.5)
        self.assertEqual(balance.overtime_hours, 0)
        self.assertAlmostEqual(balance.compensation_hours, 2)
        self.assertAlmostEqual(balance.productivity, 28.75)

    def test_overtime_earns_compensation(self) -> None:
        entries = [
            _entry(_at(2024, 3, day, 8), _at(2024, 3, day, 17, 30), break_minutes=30)
            for day in range(4, 9)
        ]

        balance = self.calculator.calculate_time_balance(entries, WEEK_OF_MARCH_4)

        self.assertAlmostEqual(balance.actual_hours, 45)
        self.assertAlmostEqual(balance.regular_hours, 40)
        self.assertAlmostEqual(balance.overtime_hours, 5)
        self.assertAlmostEqual(balance.compensation_hours, 5)
        self.assertEqual(balance.shortage_hours, 0)
        self.assertAlmostEqual(balance.break_hours, 2.5)

    def test_used_compensation_is_tracked_separately(self) -> None:
        entries = [
            _entry(_at(2024, 3, 4, 9), _at(2024, 3, 4, 13), break_minutes=0),
            _entry(_at(2024, 3, 5, 9), _at(2024, 3, 5, 13), work_type=WorkType.COMPENSATION_USED),
            _entry(_at(2024, 3, 6, 9), _at(2024, 3, 6, 17), work_type=WorkType.SICK),
        ]

        balance = self.calculator.calculate_time_balance(entries, WEEK_OF_MARCH_4)

        self.assertAlmostEqual(balance.actual_hours, 4)
        self.assertAlmostEqual(balance.used_compensation_hours, 4)
        self.assertAlmostEqual(balance.compensation_balance, -4)

    def test_month_expectation_scales_with_days(self) -> None:
        period = Period(start=_at(2024, 3, 1, 0), end=datetime(2024, 3, 31, 23, 59, 59, 999999, tzinfo=AMS))

        balance = self.calculator.calculate_time_balance([], period, user_id="u9")

        self.assertAlmostEqual(balance.expected_hours, 31 / 7 * 40)
        self.assertAlmostEqual(balance.shortage_hours, 31 / 7 * 40)
        self.assertEqual(balance.user_id, "u9")

    def test_contract_hours_override_rules(self) -> None:
        balance = self.calculator.calculate_time_balance([], WEEK_OF_MARCH_4, 32)
        self.assertAlmostEqual(balance.expected_hours, 32)

        zero_hours = self.calculator.calculate_time_balance([], WEEK_OF_MARCH_4, 0)
        self.assertEqual(zero_hours.expected_hours, 0)
        self.assertIsNone(zero_hours.productivity)

    def test_rule_overrides_change_multipliers(self) -> None:
        calculator = TimeBalanceCalculator(weekend_multiplier=2.0)
        balance = calculator.calculate_time_balance(
            [_entry(_at(2024, 3, 9, 10), _at(2024, 3, 9, 14))],
            WEEK_OF_MARCH_4,
        )

        self.assertEqual(calculator.rules.weekend_multiplier, 2.0)
        self.assertAlmostEqual(balance.compensation_hours, 4)

    def test_rules_contract_hours_used_when_no_contract_given(self) -> None:
        calculator = TimeBalanceCalculator(WorkingTimeRules(contract_hours_per_week=36))
        self.assertEqual(calculator.resolve_weekly_hours(), 36)
        self.assertEqual(calculator.resolve_weekly_hours(24), 24)

    def test_weeks_between_is_day_based(self) -> None:
        self.assertEqual(weeks_between(date(2024, 3, 4), date(2024, 3, 11)), 1)
        self.assertEqual(weeks_between(date(2024, 3, 11), date(2024, 3, 4)), 1)
        self.assertAlmostEqual(weeks_between(_at(2024, 3, 4, 0), _at(2024, 3, 4, 12)), 1 / 7)


class ShortageDetectionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.calculator = TimeBalanceCalculator()
        self.current_start = _at(2024, 3, 4, 0)

    def test_threshold_and_severity(self) -> None:
        balances = [
            _balance("below", start=self.current_start, shortage_hours=3.9),
            _balance("warning", start=self.current_start, shortage_hours=4),
            _balance("critical", start=self.current_start, shortage_hours=8),
        ]

        alerts = self.calculator.detect_shortages(balances, user_names={"warning": "Sanne"})

        self.assertEqual([alert.user_id for alert in alerts], ["warning", "critical"])
        self.assertEqual(alerts[0].severity, ShortageSeverity.WARNING)
        self.assertEqual(alerts[0].user_name, "Sanne")
        self.assertEqual(alerts[1].severity, ShortageSeverity.CRITICAL)
        self.assertEqual(alerts[1].user_name, "User critical")
        self.assertEqual(alerts[0].period, "4-3-2024 - 10-3-2024")

    def test_suggested_actions_by_shortage_size(self) -> None:
        small = self.calculator.detect_shortages([_balance("a", start=self.current_start, shortage_hours=4)])
        medium = self.calculator.detect_shortages([_balance("a", start=self.current_start, shortage_hours=6)])
        large = self.calculator.detect_shortages([_balance("a", start=self.current_start, shortage_hours=12)])

        self.assertEqual(
            small[0].suggested_actions,
            ["Plan extra uren deze week", "Overleg met manager over flexibele uren"],
        )
        self.assertEqual(medium[0].suggested_actions[0], "Plan inhaaldag deze week")
        self.assertEqual(len(medium[0].suggested_actions), 3)
        self.assertEqual(large[0].suggested_actions[0], "Urgent: Plan meerdere inhaaldagen")
        self.assertEqual(small[0].consecutive_weeks_short, 1)
        self.assertFalse(small[0].manager_notified)

    def test_consecutive_weeks_counts_unbroken_history(self) -> None:
        history = [
            [_balance("a", start=_at(2024, 2, 26, 0), shortage_hours=6)],
            [_balance("a", start=_at(2024, 2, 19, 0), shortage_hours=5)],
            [_balance("a", start=_at(2024, 2, 12, 0), shortage_hours=0)],
            [_balance("a", start=_at(2024, 2, 5, 0), shortage_hours=9)],
        ]

        alerts = self.calculator.detect_shortages(
            [_balance("a", start=self.current_start, shortage_hours=10)],
            history,
        )

        alert = alerts[0]
        self.assertEqual(alert.consecutive_weeks_short, 3)
        self.assertTrue(alert.manager_notified)
        self.assertIn("Structureel probleem: evalueer contract uren", alert.suggested_actions)
        self.assertIn("Escalatie naar management", alert.suggested_actions)

    def test_history_of_other_users_and_later_periods_is_ignored(self) -> None:
        history = [
            [
                _balance("b", start=_at(2024, 2, 26, 0), shortage_hours=6),
                _balance("a", start=_at(2024, 3, 11, 0), shortage_hours=6),
            ],
        ]

        alerts = self.calculator.detect_shortages(
            [_balance("a", start=self.current_start, shortage_hours=6)],
            history,
        )

        self.assertEqual(alerts[0].consecutive_weeks_short, 1)


class CompensationRulesTests(unittest.TestCase):
    def setUp(self) -> None:
        self.calculator = TimeBalanceCalculator()

    def test_bulk_compensation_rejected_when_balance_too_low(self) -> None:
        action = BulkCompensationAction(
            user_id="u1",
            dates=[date(2024, 4, 2), date(2024, 4, 3)],
            hours_per_day=8,
            type=CompensationType.VACATION,
            reason="Vakantie",
            total_hours=16,
        )
        lookup = _FixedBalance(10)

        result = self.calculator.process_bulk_compensation(action, lookup)

        self.assertFalse(result.success)
        self.assertEqual(result.entries, [])
        self.assertEqual(result.remaining_balance, 10)
        self.assertEqual(
            result.message,
            "Niet genoeg compensatie uren. Beschikbaar: 10u 0m, Nodig: 16u 0m",
        )
        self.assertEqual(lookup.calls, ["u1"])

    def test_bulk_compensation_creates_pending_entries(self) -> None:
        action = BulkCompensationAction(
            user_id="u1",
            dates=[date(2024, 4, 2), date(2024, 4, 3)],
            hours_per_day=8,
            type=CompensationType.FLEX,
            reason="Verhuizing",
            total_hours=16,
        )

        result = self.calculator.process_bulk_compensation(action, _FixedBalance(20))

        self.assertTrue(result.success)
        self.assertEqual(result.message, "2 dagen compensatie aangevraagd (16u 0m)")
        self.assertEqual(result.remaining_balance, 4)
        self.assertEqual([entry.date for entry in result.entries], action.dates)
        for entry in result.entries:
            self.assertEqual(entry.status, CompensationRequestStatus.PENDING_APPROVAL)
            self.assertEqual(entry.hours, 8)
            self.assertEqual(entry.reason, "Verhuizing")

    def test_compensation_time_multipliers(self) -> None:
        self.assertEqual(self.calculator.calculate_compensation_time(4), 4)
        self.assertEqual(self.calculator.calculate_compensation_time(4, is_weekend=True), 6)
        self.assertEqual(self.calculator.calculate_compensation_time(4, is_holiday=True), 8)
        self.assertEqual(self.calculator.calculate_compensation_time(4, is_weekend=True, is_holiday=True), 10)

    def test_can_earn_compensation_caps_at_maximum(self) -> None:
        self.assertTrue(self.calculator.can_earn_compensation(70, 10).allowed)

        capped = self.calculator.can_earn_compensation(78, 5)
        self.assertFalse(capped.allowed)
        self.assertEqual(capped.max_allowed, 2)

        over = self.calculator.can_earn_compensation(90, 1)
        self.assertFalse(over.allowed)
        self.assertEqual(over.max_allowed, 0)


class BreakValidationTests(unittest.TestCase):
    def test_minimum_break_required(self) -> None:
        calculator = TimeBalanceCalculator()
        result = calculator.validate_break_rules(
            _entry(_at(2024, 3, 4, 9), _at(2024, 3, 4, 17), break_minutes=15)
        )

        self.assertFalse(result.valid)
        self.assertEqual(result.message, "Minimum 30 minuten pauze vereist")

    def test_valid_break(self) -> None:
        calculator = TimeBalanceCalculator()
        result = calculator.validate_break_rules(
            _entry(_at(2024, 3, 4, 9), _at(2024, 3, 4, 17), break_minutes=30)
        )

        self.assertTrue(result.valid)
        self.assertIsNone(result.message)

    def test_open_entry_is_valid(self) -> None:
        calculator = TimeBalanceCalculator()
        self.assertTrue(calculator.validate_break_rules(_entry(_at(2024, 3, 4, 9), None)).valid)

    def test_long_shift_rule_with_lower_minimum(self) -> None:
        calculator = TimeBalanceCalculator(break_minimum_minutes=15)

        long_shift = calculator.validate_break_rules(
            _entry(_at(2024, 3, 4, 9), _at(2024, 3, 4, 17), break_minutes=20)
        )
        short_shift = calculator.validate_break_rules(
            _entry(_at(2024, 3, 4, 9), _at(2024, 3, 4, 13), break_minutes=20)
        )

        self.assertFalse(long_shift.valid)
        self.assertEqual(long_shift.message, "Na 6 uur werken is minimaal 30 minuten pauze verplicht")
        self.assertTrue(short_shift.valid)


class TimeReportTests(unittest.TestCase):
    def test_summary_and_recommendations(self) -> None:
        calculator = TimeBalanceCalculator()
        start = _at(2024, 3, 4, 0)
        balances = [
            _balance("a", start=start, actual_hours=48, overtime_hours=8, compensation_hours=8),
            _balance("b", start=start, actual_hours=16, shortage_hours=24),
            _balance("c", start=start, actual_hours=10, expected_hours=0),
        ]

        report = calculator.generate_time_report(balances)

        self.assertAlmostEqual(report.summary.total_overtime_hours, 8)
        self.assertAlmostEqual(report.summary.total_shortage_hours, 24)
        self.assertAlmostEqual(report.summary.total_compensation_balance, 8)
        self.assertAlmostEqual(report.summary.average_productivity, (120 + 40) / 2)
        self.assertEqual([alert.user_id for alert in report.alerts], ["b"])
        self.assertIn(
            "WAARSCHUWING: Er zijn significante tekorten gedetecteerd. Overweeg rooster aanpassingen.",
            report.recommendations,
        )
        self.assertIn(
            "TEKORTEN: 1 medewerkers hebben tekorten. Directe aandacht vereist.",
            report.recommendations,
        )

    def test_empty_report(self) -> None:
        report = TimeBalanceCalculator().generate_time_report([])

        self.assertEqual(report.summary.average_productivity, 0)
        self.assertEqual(report.alerts, [])
        self.assertEqual(
            report.recommendations,
            ["PRODUCTIVITEIT: Lage productiviteit gedetecteerd. Analyseer oorzaken en ondersteun medewerkers."],
        )


if __name__ == "__main__":
    unittest.main()
