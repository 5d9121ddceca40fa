from __future__ import annotations

import enum


class WorkType(str, enum.Enum):
    REGULAR = "REGULAR"
    OVERTIME = "OVERTIME"
    COMPENSATION_USED = "COMPENSATION_USED"
    SICK = "SICK"
    VACATION = "VACATION"


class ShiftType(str, enum.Enum):
    DAY = "DAY"
    EVENING = "EVENING"
    NIGHT = "NIGHT"
    WEEKEND = "WEEKEND"


class CompensationType(str, enum.Enum):
    VACATION = "VACATION"
    PERSONAL = "PERSONAL"
    SICK = "SICK"
    FLEX = "FLEX"


class CompensationRequestStatus(str, enum.Enum):
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"


class ShortageSeverity(str, enum.Enum):
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class EscalationLevel(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


class ContractType(str, enum.Enum):
    PERMANENT_FULL_TIME = "PERMANENT_FULL_TIME"
    PERMANENT_PART_TIME = "PERMANENT_PART_TIME"
    TEMPORARY_FULL_TIME = "TEMPORARY_FULL_TIME"
    TEMPORARY_PART_TIME = "TEMPORARY_PART_TIME"
    ZERO_HOURS = "ZERO_HOURS"
    FREELANCE = "FREELANCE"


class ReportPeriod(str, enum.Enum):
    CURRENT_WEEK = "current_week"
    CURRENT_MONTH = "current_month"
    LAST_MONTH = "last_month"
    LAST_3_MONTHS = "last_3_months"
