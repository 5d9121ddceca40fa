from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from jobflow.db import get_db
from jobflow.dependencies import get_balance_repository, get_time_tracker
from jobflow.enums import ReportPeriod
from jobflow.schemas import (
    ApproveCompensationRequest,
    ApproveCompensationResponse,
    AutoNotificationsResponse,
    BreakValidationRequest,
    BreakValidationResponse,
    BulkCompensationRequest,
    BulkCompensationResponse,
    CompensationOverviewResponse,
    ExportResponse,
    ShortagesResponse,
    TeamReportResponse,
    TimeBalanceResponse,
    UseCompensationRequest,
    UseCompensationResponse,
)
from jobflow.services.compensation_balance import SqlCompensationBalanceRepository
from jobflow.services.exports import XLSX_MEDIA_TYPE
from jobflow.services.time_balance_calc import TimeBalanceCalculator
from jobflow.services.time_tracking import (
    approve_compensation_request,
    build_export_workbook,
    export_time_data,
    get_compensation_overview,
    get_shortages,
    get_team_report,
    get_time_balance,
    preview_break_validation,
    process_auto_notifications,
    process_bulk_compensation_request,
    resolve_period,
    use_compensation_time,
)

router = APIRouter(prefix="/api/time-tracking", tags=["time-tracking"])


@router.get("/balance", response_model=TimeBalanceResponse)
def read_time_balance(
    request: Request,
    user_id: str = Query(..., min_length=1),
    period: str = Query(default=ReportPeriod.CURRENT_MONTH.value),
    db: Session = Depends(get_db),
    calculator: TimeBalanceCalculator = Depends(get_time_tracker),
) -> TimeBalanceResponse:
    request.state.user_id = user_id
    return get_time_balance(db, calculator, user_id=user_id, period=resolve_period(period))


@router.get("/shortages", response_model=ShortagesResponse)
def read_shortages(
    period: str = Query(default=ReportPeriod.CURRENT_MONTH.value),
    db: Session = Depends(get_db),
    calculator: TimeBalanceCalculator = Depends(get_time_tracker),
) -> ShortagesResponse:
    return get_shortages(db, calculator, period=resolve_period(period))


@router.get("/compensation", response_model=CompensationOverviewResponse)
def read_compensation_overview(
    request: Request,
    user_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    calculator: TimeBalanceCalculator = Depends(get_time_tracker),
    repository: SqlCompensationBalanceRepository = Depends(get_balance_repository),
) -> CompensationOverviewResponse:
    request.state.user_id = user_id
    return get_compensation_overview(db, calculator, repository, user_id=user_id)


@router.get("/report", response_model=TeamReportResponse)
def read_team_report(
    period: str = Query(default=ReportPeriod.CURRENT_MONTH.value),
    db: Session = Depends(get_db),
    calculator: TimeBalanceCalculator = Depends(get_time_tracker),
) -> TeamReportResponse:
    return get_team_report(db, calculator, period=resolve_period(period))


@router.get("/export", response_model=ExportResponse)
def read_export(
    user_id: str = Query(..., min_length=1),
    period: str = Query(default=ReportPeriod.CURRENT_MONTH.value),
    db: Session = Depends(get_db),
    calculator: TimeBalanceCalculator = Depends(get_time_tracker),
) -> ExportResponse:
    return export_time_data(db, calculator, user_id=user_id, period=resolve_period(period))


@router.get("/export.xlsx")
def download_export(
    user_id: str = Query(..., min_length=1),
    period: str = Query(default=ReportPeriod.CURRENT_MONTH.value),
    db: Session = Depends(get_db),
    calculator: TimeBalanceCalculator = Depends(get_time_tracker),
) -> Response:
    filename, payload = build_export_workbook(db, calculator, user_id=user_id, period=resolve_period(period))
    return Response(
        content=payload,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/auto-notifications", response_model=AutoNotificationsResponse)
def run_auto_notifications(
    db: Session = Depends(get_db),
    calculator: TimeBalanceCalculator = Depends(get_time_tracker),
) -> AutoNotificationsResponse:
    return process_auto_notifications(db, calculator)


@router.post(
    "/compensation/use",
    response_model=UseCompensationResponse,
    status_code=status.HTTP_201_CREATED,
)
def use_compensation(
    payload: UseCompensationRequest,
    request: Request,
    db: Session = Depends(get_db),
    repository: SqlCompensationBalanceRepository = Depends(get_balance_repository),
) -> UseCompensationResponse:
    request.state.user_id = payload.user_id
    return use_compensation_time(db, repository, payload)


@router.post(
    "/compensation/bulk",
    response_model=BulkCompensationResponse,
    status_code=status.HTTP_201_CREATED,
)
def request_bulk_compensation(
    payload: BulkCompensationRequest,
    request: Request,
    db: Session = Depends(get_db),
    calculator: TimeBalanceCalculator = Depends(get_time_tracker),
    repository: SqlCompensationBalanceRepository = Depends(get_balance_repository),
) -> BulkCompensationResponse:
    request.state.user_id = payload.user_id
    return process_bulk_compensation_request(db, calculator, repository, payload)


@router.post("/compensation/{entry_id}/approve", response_model=ApproveCompensationResponse)
def approve_compensation(
    entry_id: int,
    payload: ApproveCompensationRequest,
    db: Session = Depends(get_db),
) -> ApproveCompensationResponse:
    return approve_compensation_request(db, entry_id=entry_id, approver_id=payload.approver_id)


@router.post("/break-validation", response_model=BreakValidationResponse)
def validate_breaks(
    payload: BreakValidationRequest,
    calculator: TimeBalanceCalculator = Depends(get_time_tracker),
) -> BreakValidationResponse:
    return preview_break_validation(calculator, payload)
