from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from jobflow.db import get_db
from jobflow.services.compensation_balance import SqlCompensationBalanceRepository
from jobflow.services.holiday_calendar import HolidayCalendar
from jobflow.services.time_balance_calc import TimeBalanceCalculator, WorkingTimeRules
from jobflow.settings import Settings, get_settings


def build_working_time_rules(settings: Settings) -> WorkingTimeRules:
    return WorkingTimeRules(
        standard_working_hours=settings.standard_working_hours,
        overtime_threshold=settings.overtime_threshold,
        compensation_time_multiplier=settings.compensation_time_multiplier,
        max_compensation_balance=settings.max_compensation_balance,
        shortage_threshold=settings.shortage_threshold,
        break_minimum_minutes=settings.break_minimum_minutes,
        break_required_after_hours=settings.break_required_after_hours,
        weekend_multiplier=settings.weekend_multiplier,
        evening_multiplier=settings.evening_multiplier,
        night_multiplier=settings.night_multiplier,
        holiday_multiplier=settings.holiday_multiplier,
        auto_break_after_hours=settings.auto_break_after_hours,
        auto_break_minutes=settings.auto_break_minutes,
        contract_hours_per_week=settings.contract_hours_per_week,
    )


@lru_cache
def get_holiday_calendar() -> HolidayCalendar:
    settings = get_settings()
    return HolidayCalendar(
        settings.holiday_country,
        include_good_friday=settings.holiday_include_good_friday,
        liberation_day_every_year=settings.holiday_liberation_day_every_year,
        extra_dates=settings.holiday_extra_dates,
    )


def get_time_tracker() -> TimeBalanceCalculator:
    return TimeBalanceCalculator(
        build_working_time_rules(get_settings()),
        holiday_calendar=get_holiday_calendar(),
    )


def get_balance_repository(db: Session = Depends(get_db)) -> SqlCompensationBalanceRepository:
    return SqlCompensationBalanceRepository(db)
