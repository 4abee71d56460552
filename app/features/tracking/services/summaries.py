"""
User-scoped weekly and monthly summaries.
"""

from __future__ import annotations

from app.features.tracking.domain.models import MonthlySummary, WeeklyStatus, WeeklySummary
from app.features.tracking.pipeline.aggregation import PeriodAggregator
from app.features.tracking.pipeline.classification import StatusClassifier
from app.features.tracking.pipeline.time_windows import DateInput, TimeWindowCalculator
from app.features.tracking.repository import entry_repository
from app.features.tracking.repository.protocols import EntryRepository
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class TrackingSummaryService:
    """Loads a user's entries for a period and hands them to the aggregator."""

    def __init__(
        self,
        *,
        entries: EntryRepository | None = None,
        classifier: StatusClassifier | None = None,
        windows: TimeWindowCalculator | None = None,
    ):
        self.entries = entries or entry_repository
        self.classifier = classifier or StatusClassifier()
        self.windows = windows or TimeWindowCalculator()
        self.aggregator = PeriodAggregator(self.classifier, self.windows)

    async def get_weekly_summary(self, user_id: str, weeks: int = 4) -> list[WeeklySummary]:
        """Summaries for the current week and the ``weeks - 1`` before it, newest first."""
        week_starts = self.windows.last_n_week_starts(weeks)
        entries = await self.entries.list_for_user(user_id, week_starts[-1], week_starts[0])
        logger.debug(
            "Weekly summary loaded",
            user_id=user_id,
            weeks=weeks,
            entry_count=len(entries),
        )
        return self.aggregator.weekly_summary(entries, week_starts)

    async def get_monthly_summary(self, user_id: str, month: str | None = None) -> MonthlySummary:
        month = month or self.windows.current_month()
        window = self.windows.month_week_range(month)
        entries = await self.entries.list_for_user(user_id, window.start, window.end)
        return self.aggregator.monthly_summary(entries, month)

    async def get_weekly_status_for_user(self, user_id: str, week_start_date: DateInput) -> WeeklyStatus:
        week = self.windows.week_start(week_start_date)
        entries = await self.entries.list_for_user(user_id, week, week)
        return self.classifier.classify(entries)


tracking_summary_service = TrackingSummaryService()
