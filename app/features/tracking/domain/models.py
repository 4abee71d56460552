"""
Domain models for the hour-tracking feature.

Plain dataclasses shared by the repositories, the pipeline, the services
and the API layer. Hours are kept as Decimal end to end; conversion to
float happens only at the HTTP boundary.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum


class WeeklyStatus(str, Enum):
    """Classification of one user's hours for one period. Not an ordering."""

    MISSING = "missing"
    ZERO_REASON = "zero_reason"
    UNDER_TARGET = "under_target"
    MET = "met"

    @property
    def at_risk(self) -> bool:
        return self in (WeeklyStatus.MISSING, WeeklyStatus.UNDER_TARGET)


class ReminderRunStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass(slots=True)
class HourEntry:
    """A weekly_entries row. Read-only to the tracking core."""

    id: str
    user_id: str
    circle_id: str
    week_start_date: date
    hours: Decimal
    description: str = ""
    zero_hours_reason: str | None = None
    created_at: datetime | None = None
    circle_name: str | None = None
    user_name: str | None = None
    voided_at: datetime | None = None
    voided_by: str | None = None
    void_reason: str | None = None

    @property
    def is_void(self) -> bool:
        return self.voided_at is not None

    @property
    def has_zero_reason(self) -> bool:
        return self.hours == 0 and bool((self.zero_hours_reason or "").strip())


@dataclass(slots=True)
class TrackedUser:
    """The subset of a user record the tracking core consumes."""

    id: str
    name: str
    email: str
    phone_number: str | None = None
    chat_handle: str | None = None  # Telegram chat id
    is_active: bool = True
    role: UserRole = UserRole.USER
    last_reminder_sent_at: datetime | None = None


@dataclass(slots=True)
class Circle:
    id: str
    name: str
    is_active: bool = True


@dataclass(slots=True)
class CircleMembership:
    user_id: str
    circle_id: str
    is_active: bool = True
    tracking_start_date: date | None = None  # enforced upstream at entry creation


@dataclass(slots=True)
class ReminderRun:
    """One computation of reminder targets for a week."""

    id: str
    week_start_date: date
    run_at: datetime
    status: ReminderRunStatus = ReminderRunStatus.PENDING
    total_targets: int = 0
    error_message: str | None = None


@dataclass(slots=True)
class ReminderTarget:
    """A persisted reminder_targets row; never updated after insert."""

    id: str
    reminder_run_id: str
    user_id: str
    weekly_status: WeeklyStatus
    total_hours: Decimal
    notified_at: datetime | None = None
    notification_error: str | None = None


@dataclass(slots=True)
class NewReminderTarget:
    """Insert payload for a reminder target."""

    user_id: str
    weekly_status: WeeklyStatus
    total_hours: Decimal


@dataclass(slots=True)
class ReminderTargetSummary:
    """At-risk user joined with current contact details."""

    user_id: str
    user_name: str
    user_email: str
    phone_number: str | None
    chat_handle: str | None
    last_reminder_sent_at: datetime | None
    status: WeeklyStatus
    total_hours: Decimal


@dataclass(slots=True)
class ReminderComputation:
    run: ReminderRun
    targets: list[ReminderTargetSummary]


@dataclass(slots=True)
class ReminderSummaryCounts:
    missing: int = 0
    under_target: int = 0
    total: int = 0


@dataclass(slots=True)
class ReminderReport:
    week_start_date: date
    generated_at: datetime
    run_id: str
    targets: list[ReminderTargetSummary]
    summary: ReminderSummaryCounts


# ---------------------------------------------------------------------------
# Period summaries
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class MonthWeekRange:
    start: date
    end: date
    week_count: int


@dataclass(slots=True)
class CircleHours:
    circle_id: str
    circle_name: str
    hours: Decimal


@dataclass(slots=True)
class WeeklySummary:
    week_start_date: date
    week_end_date: date
    total_hours: Decimal
    entry_count: int
    status: WeeklyStatus
    by_circle: list[CircleHours] = field(default_factory=list)


@dataclass(slots=True)
class WeekBreakdown:
    week_start_date: date
    hours: Decimal
    status: WeeklyStatus


@dataclass(slots=True)
class MonthlySummary:
    month: str
    total_hours: Decimal
    weekly_target: Decimal
    weeks_in_month: int
    expected_hours: Decimal
    status: WeeklyStatus
    by_circle: list[CircleHours] = field(default_factory=list)
    weekly_breakdown: list[WeekBreakdown] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class MissingUser:
    id: str
    name: str
    email: str
    phone_number: str | None
    chat_handle: str | None
    total_hours: Decimal
    status: WeeklyStatus
    consecutive_missing_weeks: int | None = None


@dataclass(slots=True)
class StatusCounts:
    missing: int = 0
    zero_reason: int = 0
    under_target: int = 0
    met: int = 0

    def add(self, status: WeeklyStatus) -> None:
        current = getattr(self, status.value)
        setattr(self, status.value, current + 1)


@dataclass(slots=True)
class CircleMetric:
    circle_id: str
    circle_name: str
    total_hours: Decimal
    active_member_count: int
    avg_hours_per_member: Decimal
    contributing_users: int


@dataclass(slots=True)
class MissingPreviousWeek:
    week_start_date: date
    users: list[MissingUser]

    @property
    def count(self) -> int:
        return len(self.users)


@dataclass(slots=True)
class MissingTwoWeeks:
    week_start_dates: list[date]
    users: list[MissingUser]

    @property
    def count(self) -> int:
        return len(self.users)


@dataclass(slots=True)
class AdminDashboard:
    recent_entries: list[HourEntry]
    missing_previous_week: MissingPreviousWeek
    missing_two_weeks: MissingTwoWeeks
    status_counts: StatusCounts
    circle_metrics: list[CircleMetric]


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class DeliveryOutcome:
    user_id: str
    sent: bool
    skipped_reason: str | None = None  # "no_chat_handle" | "cooldown"
    error: str | None = None
    attempted_at: datetime | None = None


@dataclass(slots=True)
class DeliveryReport:
    week_start_date: date
    outcomes: list[DeliveryOutcome] = field(default_factory=list)

    @property
    def sent(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.sent)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.error is not None)

    @property
    def skipped(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.skipped_reason is not None)

    def to_dict(self) -> dict:
        return {
            "week_start_date": self.week_start_date.isoformat(),
            "sent": self.sent,
            "failed": self.failed,
            "skipped": self.skipped,
        }
