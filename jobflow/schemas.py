from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from jobflow.enums import (
    CompensationType,
    ContractType,
    EscalationLevel,
    ShortageSeverity,
    UserRole,
)

MAX_COMPENSATION_HOURS_PER_DAY = 8


class PeriodRead(BaseModel):
    start: datetime
    end: datetime
    formatted: str | None = None

    model_config = ConfigDict(from_attributes=True)


class TimeBalanceRead(BaseModel):
    user_id: str
    regular_hours: float
    overtime_hours: float
    compensation_hours: float
    used_compensation_hours: float
    compensation_balance: float
    shortage_hours: float
    expected_hours: float
    actual_hours: float
    break_hours: float
    weekend_hours: float
    evening_hours: float
    night_hours: float
    holiday_hours: float
    auto_break_deducted: float
    productivity: float | None = None
    period: PeriodRead

    model_config = ConfigDict(from_attributes=True)


class FormattedBalance(BaseModel):
    expected_hours: str
    actual_hours: str
    overtime_hours: str
    compensation_balance: str
    shortage_hours: str | None = None
    weekend_hours: str | None = None
    evening_hours: str | None = None
    night_hours: str | None = None
    holiday_hours: str | None = None
    auto_break_deducted: str | None = None
    productivity: int | None = None


class UserSummary(BaseModel):
    id: str
    name: str
    email: str
    contract_type: ContractType | None = None

    model_config = ConfigDict(from_attributes=True)


class ContractInfo(BaseModel):
    type: ContractType | None = None
    hours_per_week: float
    hourly_rate: float | None = None


class PersonalAlertRead(BaseModel):
    type: str
    message: str
    action: str
    priority: str

    model_config = ConfigDict(from_attributes=True)


class TimeBalanceResponse(BaseModel):
    user: UserSummary
    balance: TimeBalanceRead
    contract_info: ContractInfo
    formatted: FormattedBalance
    summary_text: str
    recommendations: list[str]
    alerts: list[PersonalAlertRead]


class ShortageAlertRead(BaseModel):
    user_id: str
    user_name: str
    user_email: str | None = None
    contract_type: ContractType | None = None
    expected_hours: float
    actual_hours: float
    shortage_hours: float
    formatted_shortage: str
    period: str
    severity: ShortageSeverity
    notified: bool
    consecutive_weeks_short: int
    suggested_actions: list[str]
    auto_notification_sent: bool
    manager_notified: bool
    action_required: bool
    escalation_level: EscalationLevel


class ShortageSummary(BaseModel):
    total_alerts: int
    critical_alerts: int
    warning_alerts: int
    escalation_required: int
    action_required: int


class ShortagesResponse(BaseModel):
    period: PeriodRead
    alerts: list[ShortageAlertRead]
    summary: ShortageSummary
    recommendations: list[str]


class CompensationBalanceRead(BaseModel):
    earned: float
    used: float
    current: float
    formatted: dict[str, str]


class LoadedHoursRead(BaseModel):
    hours: float
    formatted: str
    compensation: float


class CompensationEntryRead(BaseModel):
    id: int
    date: str
    hours: str
    type: str
    description: str | None = None
    location: str
    approved: bool


class CompensationOverviewResponse(BaseModel):
    compensation_balance: CompensationBalanceRead
    breakdown: dict[str, LoadedHoursRead]
    recent_entries: list[CompensationEntryRead]
    can_use_compensation: bool
    max_usable_hours: float
    recommendations: list[str]


class ReportSummaryRead(BaseModel):
    total_regular_hours: float
    total_overtime_hours: float
    total_compensation_balance: float
    total_shortage_hours: float
    average_productivity: float

    model_config = ConfigDict(from_attributes=True)


class TeamStatsRead(BaseModel):
    total_employees: int
    total_hours_worked: float
    total_overtime_hours: float
    total_compensation_balance: float
    total_shortage_hours: float
    average_productivity: float
    formatted: dict[str, str | int]


class IndividualReportRead(BaseModel):
    user_id: str
    user_name: str
    role: UserRole
    contract_type: ContractType | None = None
    balance: TimeBalanceRead
    formatted: FormattedBalance


class TeamInsightRead(BaseModel):
    type: str
    title: str
    value: str
    details: str
    trend: str

    model_config = ConfigDict(from_attributes=True)


class TeamReportResponse(BaseModel):
    period: PeriodRead
    team_stats: TeamStatsRead
    summary: ReportSummaryRead
    individual_reports: list[IndividualReportRead]
    insights: list[TeamInsightRead]
    recommendations: list[str]


class ExportSummary(BaseModel):
    total_entries: int
    period: str
    user: str


class ExportResponse(BaseModel):
    export_data: list[dict[str, Any]]
    summary: ExportSummary


class AutoNotificationRead(BaseModel):
    user_id: str
    user_name: str
    type: str
    message: str
    severity: ShortageSeverity


class AutoNotificationsResponse(BaseModel):
    notifications_sent: list[AutoNotificationRead]
    total_sent: int
    message: str


class UseCompensationRequest(BaseModel):
    user_id: str = Field(min_length=1)
    hours: float = Field(gt=0)
    day: date
    type: CompensationType = CompensationType.VACATION


class UseCompensationResponse(BaseModel):
    message: str
    entry_id: int
    day: date
    hours_used: float
    remaining_balance: float
    requires_approval: bool = True


class BulkCompensationRequest(BaseModel):
    user_id: str = Field(min_length=1)
    dates: list[date] = Field(min_length=1)
    hours_per_day: float = Field(gt=0, le=MAX_COMPENSATION_HOURS_PER_DAY)
    type: CompensationType
    reason: str = ""
    total_hours: float | None = Field(default=None, ge=0)
    requested_by: str | None = None

    @model_validator(mode="after")
    def fill_total_hours(self) -> "BulkCompensationRequest":
        if len(set(self.dates)) != len(self.dates):
            raise ValueError("dates must not contain duplicates")
        expected = self.hours_per_day * len(self.dates)
        if self.total_hours is not None and abs(self.total_hours - expected) > 1e-6:
            raise ValueError("total_hours must equal hours_per_day times the number of dates")
        self.total_hours = expected
        return self


class BulkCompensationEntryRead(BaseModel):
    id: int
    day: date
    hours: float
    type: CompensationType


class BulkCompensationResponse(BaseModel):
    message: str
    entries: list[BulkCompensationEntryRead]
    total_hours: float
    remaining_balance: float
    requires_approval: bool = True


class ApproveCompensationRequest(BaseModel):
    approver_id: str = Field(min_length=1)


class ApproveCompensationResponse(BaseModel):
    message: str
    entry_id: int
    approved_at: datetime
    approved_by: str


class BreakValidationRequest(BaseModel):
    clock_in: datetime
    clock_out: datetime | None = None
    total_break_minutes: float | None = Field(default=None, ge=0)


class BreakValidationResponse(BaseModel):
    valid: bool
    message: str | None = None

    model_config = ConfigDict(from_attributes=True)
