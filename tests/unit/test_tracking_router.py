"""
Tests for the tracking HTTP routes.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from app.features.tracking.api import router as tracking_router
from app.features.tracking.domain.models import (
    AdminDashboard,
    DeliveryOutcome,
    DeliveryReport,
    MissingPreviousWeek,
    MissingTwoWeeks,
    ReminderComputation,
    ReminderReport,
    ReminderRun,
    ReminderRunStatus,
    ReminderSummaryCounts,
    ReminderTargetSummary,
    StatusCounts,
    WeeklyStatus,
    WeeklySummary,
)
from app.features.tracking.errors import (
    InvalidDateError,
    NotFoundError,
    ReminderDeliveryError,
    ReminderRunConflictError,
)
from app.main import app

GENERATED_AT = datetime(2024, 1, 22, 6, 0, tzinfo=UTC)
WEEK = date(2024, 1, 15)

client = TestClient(app)


@pytest.fixture(autouse=True)
def clear_overrides():
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def as_admin(apply_auth_override):
    apply_auth_override(app, admin=True)


@pytest.fixture
def as_user(apply_auth_override):
    apply_auth_override(app)


def sample_report() -> ReminderReport:
    target = ReminderTargetSummary(
        user_id="u1",
        user_name="Ana",
        user_email="ana@example.com",
        phone_number=None,
        chat_handle="42",
        last_reminder_sent_at=None,
        status=WeeklyStatus.UNDER_TARGET,
        total_hours=Decimal("1.5"),
    )
    return ReminderReport(
        week_start_date=WEEK,
        generated_at=GENERATED_AT,
        run_id="run-1",
        targets=[target],
        summary=ReminderSummaryCounts(missing=0, under_target=1, total=1),
    )


def test_weekly_reminders_serialized_in_camel_case(monkeypatch, as_admin):
    monkeypatch.setattr(
        tracking_router.reminder_engine,
        "get_reminder_targets",
        AsyncMock(return_value=sample_report()),
    )

    response = client.get("/admin/reminders/weekly", params={"weekStart": "2024-01-15"})

    assert response.status_code == 200
    data = response.json()
    assert data["weekStartDate"] == "2024-01-15"
    assert data["runId"] == "run-1"
    assert data["summary"] == {"missing": 0, "underTarget": 1, "total": 1}
    assert data["targets"][0]["userName"] == "Ana"
    assert data["targets"][0]["totalHours"] == 1.5
    assert data["targets"][0]["status"] == "under_target"


def test_weekly_reminders_non_monday_is_400(monkeypatch, as_admin):
    monkeypatch.setattr(
        tracking_router.reminder_engine,
        "get_reminder_targets",
        AsyncMock(side_effect=InvalidDateError("2024-01-16 is not a Monday")),
    )

    response = client.get("/admin/reminders/weekly", params={"weekStart": "2024-01-16"})

    assert response.status_code == 400


def test_weekly_reminders_pending_run_is_409(monkeypatch, as_admin):
    monkeypatch.setattr(
        tracking_router.reminder_engine,
        "get_reminder_targets",
        AsyncMock(side_effect=ReminderRunConflictError(WEEK)),
    )

    response = client.get("/admin/reminders/weekly")

    assert response.status_code == 409


def test_unexpected_error_is_500(monkeypatch, as_admin):
    monkeypatch.setattr(
        tracking_router.reminder_engine,
        "get_reminder_targets",
        AsyncMock(side_effect=RuntimeError("db down")),
    )

    response = client.get("/admin/reminders/weekly")

    assert response.status_code == 500


def test_admin_routes_require_admin_role(as_user):
    response = client.get("/admin/dashboard", headers={"Authorization": "Bearer whatever"})

    assert response.status_code == 403


def test_admin_routes_require_token():
    response = client.get("/admin/dashboard")

    assert response.status_code in (401, 403)


def test_manual_run_delivers(monkeypatch, as_admin):
    run = ReminderRun(
        id="run-1",
        week_start_date=WEEK,
        run_at=GENERATED_AT,
        status=ReminderRunStatus.COMPLETED,
        total_targets=1,
    )
    monkeypatch.setattr(
        tracking_router.reminder_engine,
        "get_or_compute_run",
        AsyncMock(return_value=ReminderComputation(run=run, targets=[])),
    )
    monkeypatch.setattr(
        tracking_router.reminder_delivery_service,
        "deliver_reminders",
        AsyncMock(
            return_value=DeliveryReport(
                week_start_date=WEEK,
                outcomes=[DeliveryOutcome(user_id="u1", sent=False, skipped_reason="cooldown")],
            )
        ),
    )

    response = client.post("/admin/reminders/weekly/run", params={"weekStart": "2024-01-15"})

    assert response.status_code == 200
    data = response.json()
    assert data["runStatus"] == "completed"
    assert data["delivery"]["skipped"] == 1
    assert data["delivery"]["outcomes"][0]["skippedReason"] == "cooldown"


@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (NotFoundError("User u9 not found"), 404),
        (ReminderDeliveryError("User has not connected Telegram"), 400),
    ],
)
def test_manual_reminder_errors(monkeypatch, as_admin, error, status_code):
    monkeypatch.setattr(
        tracking_router.reminder_delivery_service,
        "send_manual_reminder",
        AsyncMock(side_effect=error),
    )

    response = client.post("/admin/users/u9/reminder")

    assert response.status_code == status_code


def test_dashboard(monkeypatch, as_admin):
    dashboard = AdminDashboard(
        recent_entries=[],
        missing_previous_week=MissingPreviousWeek(week_start_date=WEEK, users=[]),
        missing_two_weeks=MissingTwoWeeks(week_start_dates=[date(2024, 1, 8), WEEK], users=[]),
        status_counts=StatusCounts(met=3),
        circle_metrics=[],
    )
    monkeypatch.setattr(
        tracking_router.dashboard_aggregator,
        "build_dashboard",
        AsyncMock(return_value=dashboard),
    )

    response = client.get("/admin/dashboard")

    assert response.status_code == 200
    data = response.json()
    assert data["statusCounts"] == {"missing": 0, "zeroReason": 0, "underTarget": 0, "met": 3}
    assert data["missingTwoWeeks"]["weekStartDates"] == ["2024-01-08", "2024-01-15"]
    assert data["missingPreviousWeek"]["count"] == 0


def test_user_reads_own_weekly_summary(monkeypatch, as_user):
    summary = WeeklySummary(
        week_start_date=WEEK,
        week_end_date=date(2024, 1, 21),
        total_hours=Decimal("2"),
        entry_count=1,
        status=WeeklyStatus.MET,
    )
    loader = AsyncMock(return_value=[summary])
    monkeypatch.setattr(tracking_router.tracking_summary_service, "get_weekly_summary", loader)

    response = client.get("/users/user-123/summary/weekly", params={"weeks": 1})

    assert response.status_code == 200
    assert response.json()[0]["weekEndDate"] == "2024-01-21"
    loader.assert_awaited_once_with("user-123", 1)


def test_user_cannot_read_other_users_summary(as_user):
    response = client.get("/users/someone-else/summary/weekly")

    assert response.status_code == 403


def test_monthly_summary_bad_month_is_400(monkeypatch, as_user):
    monkeypatch.setattr(
        tracking_router.tracking_summary_service,
        "get_monthly_summary",
        AsyncMock(side_effect=InvalidDateError("Invalid month")),
    )

    response = client.get("/users/user-123/summary/monthly", params={"month": "2024-13"})

    assert response.status_code == 400


def test_monthly_summary_out_of_range_year_is_400(as_admin):
    response = client.get("/users/user-123/summary/monthly", params={"month": "0000-01"})

    assert response.status_code == 400
