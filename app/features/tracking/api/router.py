"""
Hour-tracking routes.

Admin endpoints expose the weekly reminder run, manual reminders and the
dashboard; user endpoints expose a member's own weekly and monthly
summaries (admins may read anyone's).
"""

from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from app.auth.verify import admin_dependency, auth_dependency
from app.features.tracking.api.schemas import (
    AdminDashboardResponse,
    DeliveryOutcomeResponse,
    MonthlySummaryResponse,
    ReminderReportResponse,
    ReminderRunResponse,
    WeeklySummaryResponse,
)
from app.features.tracking.errors import (
    InvalidDateError,
    NotFoundError,
    ReminderDeliveryError,
    ReminderRunConflictError,
)
from app.features.tracking.services.dashboard import dashboard_aggregator
from app.features.tracking.services.delivery import reminder_delivery_service
from app.features.tracking.services.reminder_engine import reminder_engine
from app.features.tracking.services.summaries import tracking_summary_service
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["tracking"])


def _raise_http_error(error: Exception, operation: str, **context) -> NoReturn:
    if isinstance(error, InvalidDateError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error)) from error
    if isinstance(error, NotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error)) from error
    if isinstance(error, ReminderRunConflictError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error)) from error
    if isinstance(error, ReminderDeliveryError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error)) from error

    logger.error(
        "Tracking request failed",
        operation=operation,
        error=str(error),
        error_type=type(error).__name__,
        **context,
    )
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {operation.replace('_', ' ')}",
    ) from error


def _require_self_or_admin(claims: dict, user_id: str) -> None:
    if claims.get("sub") != user_id and claims.get("role") != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed")


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@router.get("/admin/reminders/weekly", response_model=ReminderReportResponse)
async def get_weekly_reminder_targets(
    week_start: str | None = Query(
        default=None, alias="weekStart", description="Monday of the week (YYYY-MM-DD)"
    ),
    claims: dict = Depends(admin_dependency),
):
    """Reminder targets for a week; the previous week by default."""
    try:
        report = await reminder_engine.get_reminder_targets(week_start)
    except Exception as e:
        _raise_http_error(e, "get_reminder_targets", week_start=week_start)

    return ReminderReportResponse.from_domain(report)


@router.post("/admin/reminders/weekly/run", response_model=ReminderRunResponse)
async def run_weekly_reminders_now(
    week_start: str | None = Query(default=None, alias="weekStart"),
    claims: dict = Depends(admin_dependency),
):
    """Resolve the week's run and deliver its reminders now (manual trigger or backfill)."""
    try:
        computation = await reminder_engine.get_or_compute_run(week_start)
        delivery = await reminder_delivery_service.deliver_reminders(
            computation.run.week_start_date, computation.targets
        )
    except Exception as e:
        _raise_http_error(e, "run_weekly_reminders", week_start=week_start)

    logger.info(
        "Manual reminder run triggered",
        admin_id=claims.get("sub"),
        run_id=computation.run.id,
        **delivery.to_dict(),
    )
    return ReminderRunResponse.from_domain(computation, delivery)


@router.post("/admin/users/{user_id}/reminder", response_model=DeliveryOutcomeResponse)
async def send_user_reminder(
    user_id: str = Path(..., min_length=1),
    claims: dict = Depends(admin_dependency),
):
    try:
        outcome = await reminder_delivery_service.send_manual_reminder(user_id)
    except Exception as e:
        _raise_http_error(e, "send_reminder", user_id=user_id)

    logger.info("Manual reminder sent", admin_id=claims.get("sub"), user_id=user_id)
    return DeliveryOutcomeResponse.from_domain(outcome)


@router.get("/admin/dashboard", response_model=AdminDashboardResponse)
async def get_admin_dashboard(claims: dict = Depends(admin_dependency)):
    try:
        dashboard = await dashboard_aggregator.build_dashboard()
    except Exception as e:
        _raise_http_error(e, "build_dashboard")

    return AdminDashboardResponse.from_domain(dashboard)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@router.get("/users/{user_id}/summary/weekly", response_model=list[WeeklySummaryResponse])
async def get_user_weekly_summary(
    user_id: str,
    weeks: int = Query(default=4, ge=1, le=52, description="Number of weeks, newest first"),
    claims: dict = Depends(auth_dependency),
):
    _require_self_or_admin(claims, user_id)
    try:
        summaries = await tracking_summary_service.get_weekly_summary(user_id, weeks)
    except Exception as e:
        _raise_http_error(e, "get_weekly_summary", user_id=user_id)

    return [WeeklySummaryResponse.from_domain(summary) for summary in summaries]


@router.get("/users/{user_id}/summary/monthly", response_model=MonthlySummaryResponse)
async def get_user_monthly_summary(
    user_id: str,
    month: str | None = Query(default=None, description="YYYY-MM; current month by default"),
    claims: dict = Depends(auth_dependency),
):
    _require_self_or_admin(claims, user_id)
    try:
        summary = await tracking_summary_service.get_monthly_summary(user_id, month)
    except Exception as e:
        _raise_http_error(e, "get_monthly_summary", user_id=user_id, month=month)

    return MonthlySummaryResponse.from_domain(summary)
