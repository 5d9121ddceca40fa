from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timedelta

import holidays
from dateutil.easter import easter


class HolidayCalendar:
    """Public holidays for any year, extended with company observances.

    The statutory calendar comes from the ``holidays`` package. Good Friday and
    Liberation Day (5 May, every year rather than only lustrum years) are added
    on top when enabled, together with any configured extra closing days.
    """

    def __init__(
        self,
        country: str = "NL",
        *,
        include_good_friday: bool = True,
        liberation_day_every_year: bool = True,
        extra_dates: Iterable[date] = (),
    ) -> None:
        self.country = country
        self.include_good_friday = include_good_friday
        self.liberation_day_every_year = liberation_day_every_year
        self.extra_dates = frozenset(extra_dates)
        self._by_year: dict[int, frozenset[date]] = {}

    def observances(self, year: int) -> frozenset[date]:
        cached = self._by_year.get(year)
        if cached is not None:
            return cached

        days = set(holidays.country_holidays(self.country, years=year).keys())
        if self.include_good_friday:
            days.add(easter(year) - timedelta(days=2))
        if self.liberation_day_every_year:
            days.add(date(year, 5, 5))
        days.update(day for day in self.extra_dates if day.year == year)

        result = frozenset(days)
        self._by_year[year] = result
        return result

    def is_holiday(self, value: date | datetime) -> bool:
        day = value.date() if isinstance(value, datetime) else value
        return day in self.observances(day.year)
