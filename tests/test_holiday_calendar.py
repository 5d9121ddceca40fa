from __future__ import annotations

from datetime import date, datetime
import unittest
from zoneinfo import ZoneInfo

from jobflow.services.holiday_calendar import HolidayCalendar

DUTCH_HOLIDAYS_2024 = {
    date(2024, 1, 1),
    date(2024, 3, 29),
    date(2024, 3, 31),
    date(2024, 4, 1),
    date(2024, 4, 27),
    date(2024, 5, 5),
    date(2024, 5, 9),
    date(2024, 5, 19),
    date(2024, 5, 20),
    date(2024, 12, 25),
    date(2024, 12, 26),
}


class HolidayCalendarTests(unittest.TestCase):
    def test_dutch_calendar_2024(self) -> None:
        calendar = HolidayCalendar()

        observances = calendar.observances(2024)

        self.assertTrue(DUTCH_HOLIDAYS_2024 <= observances, DUTCH_HOLIDAYS_2024 - observances)
        self.assertNotIn(date(2024, 3, 4), observances)
        self.assertNotIn(date(2024, 12, 24), observances)

    def test_is_holiday_uses_local_calendar_day(self) -> None:
        calendar = HolidayCalendar()
        amsterdam = ZoneInfo("Europe/Amsterdam")

        self.assertTrue(calendar.is_holiday(datetime(2024, 12, 25, 23, 0, tzinfo=amsterdam)))
        self.assertTrue(calendar.is_holiday(date(2024, 5, 9)))
        self.assertFalse(calendar.is_holiday(datetime(2024, 12, 24, 23, 30, tzinfo=amsterdam)))

    def test_holidays_follow_easter_in_other_years(self) -> None:
        calendar = HolidayCalendar()

        observances = calendar.observances(2025)

        self.assertIn(date(2025, 4, 18), observances)
        self.assertIn(date(2025, 4, 21), observances)
        self.assertIn(date(2025, 5, 29), observances)
        self.assertIn(date(2025, 6, 9), observances)

    def test_optional_observances_can_be_disabled(self) -> None:
        calendar = HolidayCalendar(include_good_friday=False, liberation_day_every_year=False)

        observances = calendar.observances(2024)

        self.assertNotIn(date(2024, 3, 29), observances)
        self.assertNotIn(date(2024, 5, 5), observances)
        self.assertIn(date(2024, 12, 25), observances)

    def test_extra_dates_are_added_for_their_year(self) -> None:
        calendar = HolidayCalendar(extra_dates=[date(2024, 12, 24), date(2025, 12, 31)])

        self.assertTrue(calendar.is_holiday(date(2024, 12, 24)))
        self.assertTrue(calendar.is_holiday(date(2025, 12, 31)))
        self.assertNotIn(date(2025, 12, 31), calendar.observances(2024))

    def test_observances_are_cached_per_year(self) -> None:
        calendar = HolidayCalendar()

        self.assertIs(calendar.observances(2024), calendar.observances(2024))


if __name__ == "__main__":
    unittest.main()
