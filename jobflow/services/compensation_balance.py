from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from jobflow.enums import WorkType
from jobflow.models import TimeEntry
from jobflow.services.time_balance_calc import worked_hours

COMPENSATION_WORK_TYPES = (WorkType.OVERTIME, WorkType.COMPENSATION_USED)


@dataclass(frozen=True)
class CompensationTotals:
    earned: float
    used: float

    @property
    def current(self) -> float:
        return self.earned - self.used


def entry_hours(entry: TimeEntry) -> float:
    if entry.end_time is None:
        return 0.0
    return worked_hours(entry.start_time, entry.end_time)


def summarize_compensation(entries: list[TimeEntry]) -> CompensationTotals:
    earned = 0.0
    used = 0.0
    for entry in entries:
        if entry.work_type == WorkType.OVERTIME:
            earned += entry_hours(entry)
        elif entry.work_type == WorkType.COMPENSATION_USED:
            used += entry_hours(entry)
    return CompensationTotals(earned=earned, used=used)


class SqlCompensationBalanceRepository:
    """Compensation bank backed by the ``time_entries`` table.

    OVERTIME entries add to the bank, COMPENSATION_USED entries draw from it,
    pending requests included.
    """

    def __init__(self, db: Session):
        self.db = db

    def list_compensation_entries(self, user_id: str, *, limit: int | None = None) -> list[TimeEntry]:
        stmt = (
            select(TimeEntry)
            .where(
                TimeEntry.user_id == user_id,
                TimeEntry.work_type.in_(COMPENSATION_WORK_TYPES),
            )
            .order_by(TimeEntry.start_time.desc(), TimeEntry.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.scalars(stmt).all())

    def get_totals(self, user_id: str) -> CompensationTotals:
        return summarize_compensation(self.list_compensation_entries(user_id))

    def get_available_balance(self, user_id: str) -> float:
        return self.get_totals(user_id).current
