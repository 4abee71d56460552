"""
Admin dashboard aggregation.

Everything is read fresh on each request; a failure loading any part
fails the whole dashboard rather than returning a partial one.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal

from app.config import settings
from app.features.tracking.domain.models import (
    AdminDashboard,
    CircleMetric,
    HourEntry,
    MissingPreviousWeek,
    MissingTwoWeeks,
    MissingUser,
    StatusCounts,
    TrackedUser,
    WeeklyStatus,
)
from app.features.tracking.pipeline.classification import StatusClassifier, is_at_risk, total_hours
from app.features.tracking.pipeline.time_windows import TimeWindowCalculator
from app.features.tracking.repository import circle_repository, entry_repository, user_repository
from app.features.tracking.repository.protocols import (
    CircleRepository,
    EntryRepository,
    UserRepository,
)
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

TWO_PLACES = Decimal("0.01")


def _missing_user(
    user: TrackedUser,
    hours: Decimal,
    status: WeeklyStatus,
    consecutive_missing_weeks: int | None = None,
) -> MissingUser:
    return MissingUser(
        id=user.id,
        name=user.name,
        email=user.email,
        phone_number=user.phone_number,
        chat_handle=user.chat_handle,
        total_hours=hours,
        status=status,
        consecutive_missing_weeks=consecutive_missing_weeks,
    )


def _counts_as_logged(entry: HourEntry) -> bool:
    return entry.hours > 0 or bool((entry.zero_hours_reason or "").strip())


def average_per_member(total: Decimal, members: int) -> Decimal:
    if members <= 0:
        return Decimal("0")
    return (total / members).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class DashboardAggregator:
    def __init__(
        self,
        *,
        users: UserRepository | None = None,
        entries: EntryRepository | None = None,
        circles: CircleRepository | None = None,
        classifier: StatusClassifier | None = None,
        windows: TimeWindowCalculator | None = None,
        recent_limit: int | None = None,
    ):
        self.users = users or user_repository
        self.entries = entries or entry_repository
        self.circles = circles or circle_repository
        self.classifier = classifier or StatusClassifier()
        self.windows = windows or TimeWindowCalculator()
        self.recent_limit = recent_limit or settings.DASHBOARD_RECENT_ENTRIES

    async def build_dashboard(self) -> AdminDashboard:
        previous_week = self.windows.previous_week_start()
        two_weeks_ago = previous_week - timedelta(weeks=1)

        recent_entries = await self.entries.list_recent(self.recent_limit)
        cohort = await self.users.list_cohort()
        previous_entries = await self.entries.list_for_weeks([previous_week])
        two_week_entries = await self.entries.list_for_weeks([two_weeks_ago, previous_week])

        missing_previous, status_counts = self._classify_previous_week(cohort, previous_entries)
        missing_two = self._missing_two_weeks(cohort, two_week_entries)
        circle_metrics = await self._circle_metrics()

        logger.info(
            "Admin dashboard built",
            week_start_date=previous_week.isoformat(),
            cohort_size=len(cohort),
            missing_previous_week=len(missing_previous),
            missing_two_weeks=len(missing_two),
            circles=len(circle_metrics),
        )

        return AdminDashboard(
            recent_entries=recent_entries,
            missing_previous_week=MissingPreviousWeek(week_start_date=previous_week, users=missing_previous),
            missing_two_weeks=MissingTwoWeeks(
                week_start_dates=[two_weeks_ago, previous_week], users=missing_two
            ),
            status_counts=status_counts,
            circle_metrics=circle_metrics,
        )

    def _classify_previous_week(
        self, cohort: Sequence[TrackedUser], entries: Iterable[HourEntry]
    ) -> tuple[list[MissingUser], StatusCounts]:
        by_user: dict[str, list[HourEntry]] = {}
        for entry in entries:
            if not entry.is_void:
                by_user.setdefault(entry.user_id, []).append(entry)

        counts = StatusCounts()
        at_risk: list[MissingUser] = []
        for user in cohort:
            user_entries = by_user.get(user.id, [])
            status = self.classifier.classify(user_entries)
            counts.add(status)
            if is_at_risk(status):
                at_risk.append(_missing_user(user, total_hours(user_entries), status))
        return at_risk, counts

    def _missing_two_weeks(
        self, cohort: Sequence[TrackedUser], entries: Iterable[HourEntry]
    ) -> list[MissingUser]:
        logged = {entry.user_id for entry in entries if not entry.is_void and _counts_as_logged(entry)}
        return [
            _missing_user(user, Decimal("0"), WeeklyStatus.MISSING, consecutive_missing_weeks=2)
            for user in cohort
            if user.id not in logged
        ]

    async def _circle_metrics(self) -> list[CircleMetric]:
        window = self.windows.month_week_range(self.windows.current_month())
        circles = await self.circles.list_active()
        member_counts = await self.circles.count_active_members()
        month_entries = await self.entries.list_for_range(window.start, window.end)

        by_circle: dict[str, list[HourEntry]] = {}
        for entry in month_entries:
            if not entry.is_void:
                by_circle.setdefault(entry.circle_id, []).append(entry)

        metrics = []
        for circle in circles:
            circle_entries = by_circle.get(circle.id, [])
            members = member_counts.get(circle.id, 0)
            circle_total = total_hours(circle_entries)
            metrics.append(
                CircleMetric(
                    circle_id=circle.id,
                    circle_name=circle.name,
                    total_hours=circle_total,
                    active_member_count=members,
                    avg_hours_per_member=average_per_member(circle_total, members),
                    contributing_users=len({entry.user_id for entry in circle_entries}),
                )
            )

        metrics.sort(key=lambda metric: metric.total_hours, reverse=True)
        return metrics


dashboard_aggregator = DashboardAggregator()
