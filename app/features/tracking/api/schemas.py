"""
Tracking API response models.

Fields are snake_case in Python and serialized as camelCase. Hours are
Decimal in the domain and become floats here.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.features.tracking.domain.models import (
    AdminDashboard,
    CircleHours,
    CircleMetric,
    DeliveryOutcome,
    DeliveryReport,
    HourEntry,
    MissingUser,
    MonthlySummary,
    ReminderComputation,
    ReminderReport,
    ReminderTargetSummary,
    WeeklyStatus,
    WeeklySummary,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Reminders
# ---------------------------------------------------------------------------


class ReminderTargetResponse(CamelModel):
    user_id: str
    user_name: str
    user_email: str
    phone_number: str | None = None
    chat_handle: str | None = Field(None, description="Telegram chat id, if linked")
    last_reminder_sent_at: datetime | None = None
    status: WeeklyStatus
    total_hours: float

    @classmethod
    def from_domain(cls, target: ReminderTargetSummary) -> "ReminderTargetResponse":
        return cls(
            user_id=target.user_id,
            user_name=target.user_name,
            user_email=target.user_email,
            phone_number=target.phone_number,
            chat_handle=target.chat_handle,
            last_reminder_sent_at=target.last_reminder_sent_at,
            status=target.status,
            total_hours=float(target.total_hours),
        )


class ReminderSummaryResponse(CamelModel):
    missing: int
    under_target: int
    total: int


class ReminderReportResponse(CamelModel):
    week_start_date: date
    generated_at: datetime
    run_id: str
    targets: list[ReminderTargetResponse]
    summary: ReminderSummaryResponse

    @classmethod
    def from_domain(cls, report: ReminderReport) -> "ReminderReportResponse":
        return cls(
            week_start_date=report.week_start_date,
            generated_at=report.generated_at,
            run_id=report.run_id,
            targets=[ReminderTargetResponse.from_domain(target) for target in report.targets],
            summary=ReminderSummaryResponse(
                missing=report.summary.missing,
                under_target=report.summary.under_target,
                total=report.summary.total,
            ),
        )


class DeliveryOutcomeResponse(CamelModel):
    user_id: str
    sent: bool
    skipped_reason: str | None = None
    error: str | None = None
    attempted_at: datetime | None = None

    @classmethod
    def from_domain(cls, outcome: DeliveryOutcome) -> "DeliveryOutcomeResponse":
        return cls(
            user_id=outcome.user_id,
            sent=outcome.sent,
            skipped_reason=outcome.skipped_reason,
            error=outcome.error,
            attempted_at=outcome.attempted_at,
        )


class DeliveryReportResponse(CamelModel):
    sent: int
    failed: int
    skipped: int
    outcomes: list[DeliveryOutcomeResponse]

    @classmethod
    def from_domain(cls, report: DeliveryReport) -> "DeliveryReportResponse":
        return cls(
            sent=report.sent,
            failed=report.failed,
            skipped=report.skipped,
            outcomes=[DeliveryOutcomeResponse.from_domain(outcome) for outcome in report.outcomes],
        )


class ReminderRunResponse(CamelModel):
    """Result of a manual or backfill run: the resolved run plus its delivery."""

    run_id: str
    week_start_date: date
    generated_at: datetime
    run_status: str
    total_targets: int
    delivery: DeliveryReportResponse

    @classmethod
    def from_domain(
        cls, computation: ReminderComputation, delivery: DeliveryReport
    ) -> "ReminderRunResponse":
        run = computation.run
        return cls(
            run_id=run.id,
            week_start_date=run.week_start_date,
            generated_at=run.run_at,
            run_status=run.status.value,
            total_targets=run.total_targets,
            delivery=DeliveryReportResponse.from_domain(delivery),
        )


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------


class CircleHoursResponse(CamelModel):
    circle_id: str
    circle_name: str
    hours: float

    @classmethod
    def from_domain(cls, row: CircleHours) -> "CircleHoursResponse":
        return cls(circle_id=row.circle_id, circle_name=row.circle_name, hours=float(row.hours))


class WeeklySummaryResponse(CamelModel):
    week_start_date: date
    week_end_date: date
    total_hours: float
    entry_count: int
    status: WeeklyStatus
    by_circle: list[CircleHoursResponse]

    @classmethod
    def from_domain(cls, summary: WeeklySummary) -> "WeeklySummaryResponse":
        return cls(
            week_start_date=summary.week_start_date,
            week_end_date=summary.week_end_date,
            total_hours=float(summary.total_hours),
            entry_count=summary.entry_count,
            status=summary.status,
            by_circle=[CircleHoursResponse.from_domain(row) for row in summary.by_circle],
        )


class WeekBreakdownResponse(CamelModel):
    week_start_date: date
    hours: float
    status: WeeklyStatus


class MonthlySummaryResponse(CamelModel):
    month: str
    total_hours: float
    weekly_target: float
    weeks_in_month: int
    expected_hours: float
    status: WeeklyStatus
    by_circle: list[CircleHoursResponse]
    weekly_breakdown: list[WeekBreakdownResponse]

    @classmethod
    def from_domain(cls, summary: MonthlySummary) -> "MonthlySummaryResponse":
        return cls(
            month=summary.month,
            total_hours=float(summary.total_hours),
            weekly_target=float(summary.weekly_target),
            weeks_in_month=summary.weeks_in_month,
            expected_hours=float(summary.expected_hours),
            status=summary.status,
            by_circle=[CircleHoursResponse.from_domain(row) for row in summary.by_circle],
            weekly_breakdown=[
                WeekBreakdownResponse(
                    week_start_date=week.week_start_date,
                    hours=float(week.hours),
                    status=week.status,
                )
                for week in summary.weekly_breakdown
            ],
        )


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


class RecentEntryResponse(CamelModel):
    id: str
    user_id: str
    user_name: str | None = None
    circle_id: str
    circle_name: str | None = None
    week_start_date: date
    hours: float
    description: str
    created_at: datetime | None = None

    @classmethod
    def from_domain(cls, entry: HourEntry) -> "RecentEntryResponse":
        return cls(
            id=entry.id,
            user_id=entry.user_id,
            user_name=entry.user_name,
            circle_id=entry.circle_id,
            circle_name=entry.circle_name,
            week_start_date=entry.week_start_date,
            hours=float(entry.hours),
            description=entry.description,
            created_at=entry.created_at,
        )


class MissingUserResponse(CamelModel):
    id: str
    name: str
    email: str
    phone_number: str | None = None
    chat_handle: str | None = None
    total_hours: float
    status: WeeklyStatus
    consecutive_missing_weeks: int | None = None

    @classmethod
    def from_domain(cls, user: MissingUser) -> "MissingUserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            phone_number=user.phone_number,
            chat_handle=user.chat_handle,
            total_hours=float(user.total_hours),
            status=user.status,
            consecutive_missing_weeks=user.consecutive_missing_weeks,
        )


class MissingPreviousWeekResponse(CamelModel):
    week_start_date: date
    users: list[MissingUserResponse]
    count: int


class MissingTwoWeeksResponse(CamelModel):
    week_start_dates: list[date]
    users: list[MissingUserResponse]
    count: int


class StatusCountsResponse(CamelModel):
    missing: int
    zero_reason: int
    under_target: int
    met: int


class CircleMetricResponse(CamelModel):
    circle_id: str
    circle_name: str
    total_hours: float
    active_member_count: int
    avg_hours_per_member: float
    contributing_users: int

    @classmethod
    def from_domain(cls, metric: CircleMetric) -> "CircleMetricResponse":
        return cls(
            circle_id=metric.circle_id,
            circle_name=metric.circle_name,
            total_hours=float(metric.total_hours),
            active_member_count=metric.active_member_count,
            avg_hours_per_member=float(metric.avg_hours_per_member),
            contributing_users=metric.contributing_users,
        )


class AdminDashboardResponse(CamelModel):
    recent_entries: list[RecentEntryResponse]
    missing_previous_week: MissingPreviousWeekResponse
    missing_two_weeks: MissingTwoWeeksResponse
    status_counts: StatusCountsResponse
    circle_metrics: list[CircleMetricResponse]

    @classmethod
    def from_domain(cls, dashboard: AdminDashboard) -> "AdminDashboardResponse":
        previous = dashboard.missing_previous_week
        two_weeks = dashboard.missing_two_weeks
        counts = dashboard.status_counts
        return cls(
            recent_entries=[RecentEntryResponse.from_domain(entry) for entry in dashboard.recent_entries],
            missing_previous_week=MissingPreviousWeekResponse(
                week_start_date=previous.week_start_date,
                users=[MissingUserResponse.from_domain(user) for user in previous.users],
                count=previous.count,
            ),
            missing_two_weeks=MissingTwoWeeksResponse(
                week_start_dates=two_weeks.week_start_dates,
                users=[MissingUserResponse.from_domain(user) for user in two_weeks.users],
                count=two_weeks.count,
            ),
            status_counts=StatusCountsResponse(
                missing=counts.missing,
                zero_reason=counts.zero_reason,
                under_target=counts.under_target,
                met=counts.met,
            ),
            circle_metrics=[CircleMetricResponse.from_domain(metric) for metric in dashboard.circle_metrics],
        )
