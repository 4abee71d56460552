"""
Reminder target computation.

A run classifies every cohort member for one week, stores the at-risk
members as reminder targets, and is then immutable. Re-queries for a
week with a completed run read the stored targets back, joined with the
users' current contact details, instead of recomputing.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta
from decimal import Decimal

from app.config import settings
from app.features.tracking.domain.models import (
    HourEntry,
    NewReminderTarget,
    ReminderComputation,
    ReminderReport,
    ReminderRun,
    ReminderRunStatus,
    ReminderSummaryCounts,
    ReminderTargetSummary,
    TrackedUser,
    WeeklyStatus,
)
from app.features.tracking.errors import ReminderRunConflictError, ReminderRunError
from app.features.tracking.pipeline.classification import StatusClassifier, is_at_risk, total_hours
from app.features.tracking.pipeline.time_windows import DateInput, TimeWindowCalculator
from app.features.tracking.repository import (
    entry_repository,
    reminder_run_repository,
    reminder_target_repository,
    user_repository,
)
from app.features.tracking.repository.protocols import (
    EntryRepository,
    ReminderRunRepository,
    ReminderTargetRepository,
    UserRepository,
)
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

ERROR_MESSAGE_LIMIT = 500


def _group_by_user(entries: Iterable[HourEntry]) -> dict[str, list[HourEntry]]:
    grouped: dict[str, list[HourEntry]] = {}
    for entry in entries:
        if entry.is_void:
            continue
        grouped.setdefault(entry.user_id, []).append(entry)
    return grouped


def _to_summary(
    user: TrackedUser | None, user_id: str, status: WeeklyStatus, hours: Decimal
) -> ReminderTargetSummary:
    return ReminderTargetSummary(
        user_id=user_id,
        user_name=user.name if user else "",
        user_email=user.email if user else "",
        phone_number=user.phone_number if user else None,
        chat_handle=user.chat_handle if user else None,
        last_reminder_sent_at=user.last_reminder_sent_at if user else None,
        status=status,
        total_hours=hours,
    )


def summarize_targets(targets: Iterable[ReminderTargetSummary]) -> ReminderSummaryCounts:
    counts = ReminderSummaryCounts()
    for target in targets:
        counts.total += 1
        if target.status is WeeklyStatus.MISSING:
            counts.missing += 1
        elif target.status is WeeklyStatus.UNDER_TARGET:
            counts.under_target += 1
    return counts


class ReminderTargetEngine:
    def __init__(
        self,
        *,
        users: UserRepository | None = None,
        entries: EntryRepository | None = None,
        runs: ReminderRunRepository | None = None,
        targets: ReminderTargetRepository | None = None,
        classifier: StatusClassifier | None = None,
        windows: TimeWindowCalculator | None = None,
        stale_after_minutes: int | None = None,
    ):
        self.users = users or user_repository
        self.entries = entries or entry_repository
        self.runs = runs or reminder_run_repository
        self.targets = targets or reminder_target_repository
        self.classifier = classifier or StatusClassifier()
        self.windows = windows or TimeWindowCalculator()
        self.stale_after = timedelta(
            minutes=stale_after_minutes
            if stale_after_minutes is not None
            else settings.REMINDER_RUN_STALE_MINUTES
        )

    def resolve_week(self, week_start_date: DateInput | None) -> date:
        """Previous week by default; an explicit value must be a Monday."""
        if week_start_date is None:
            return self.windows.previous_week_start()
        return self.windows.parse_week_start(week_start_date)

    async def compute_reminder_targets(
        self, week_start_date: DateInput | None = None
    ) -> ReminderComputation:
        """
        Create a run for the week and persist its at-risk targets.

        Raises:
            ReminderRunConflictError: a pending or completed run already
                exists for the week.
            ReminderRunError: the computation failed after the run was
                created; the run is marked failed.
        """
        week = self.resolve_week(week_start_date)
        logger.info("Computing reminder targets", week_start_date=week.isoformat())

        cohort = await self.users.list_cohort()
        entries_by_user = _group_by_user(await self.entries.list_for_weeks([week]))

        await self.runs.fail_stale(self.windows.clock() - self.stale_after)
        run = await self.runs.create(week)

        try:
            summaries: list[ReminderTargetSummary] = []
            rows: list[NewReminderTarget] = []

            for user in cohort:
                user_entries = entries_by_user.get(user.id, [])
                status = self.classifier.classify(user_entries)
                if not is_at_risk(status):
                    continue

                hours = total_hours(user_entries)
                summaries.append(_to_summary(user, user.id, status, hours))
                rows.append(NewReminderTarget(user_id=user.id, weekly_status=status, total_hours=hours))

            if rows:
                await self.targets.create_many(run.id, rows)

            run.total_targets = len(summaries)
            run.status = ReminderRunStatus.COMPLETED
            await self.runs.save(run)

        except Exception as e:
            logger.error(
                "Reminder run failed",
                run_id=run.id,
                week_start_date=week.isoformat(),
                error=str(e),
                error_type=type(e).__name__,
            )
            await self._mark_failed(run, e)
            raise ReminderRunError(
                f"Reminder run for week {week.isoformat()} failed: {e}",
                run_id=run.id,
                operation="compute_reminder_targets",
            ) from e

        logger.info(
            "Reminder targets computed",
            run_id=run.id,
            week_start_date=week.isoformat(),
            cohort_size=len(cohort),
            total_targets=run.total_targets,
        )
        return ReminderComputation(run=run, targets=summaries)

    async def _mark_failed(self, run: ReminderRun, error: Exception) -> None:
        run.status = ReminderRunStatus.FAILED
        run.error_message = str(error)[:ERROR_MESSAGE_LIMIT]
        try:
            await self.runs.save(run)
        except Exception as save_error:
            # Callers get the computation error; the stale sweep fails this run later
            logger.error("Could not mark reminder run failed", run_id=run.id, error=str(save_error))

    async def load_targets(self, run: ReminderRun) -> list[ReminderTargetSummary]:
        """Stored targets of a run joined with each user's current contact fields."""
        stored = await self.targets.list_for_run(run.id)
        users = await self.users.get_many([target.user_id for target in stored])
        return [
            _to_summary(users.get(target.user_id), target.user_id, target.weekly_status, target.total_hours)
            for target in stored
        ]

    async def get_or_compute_run(
        self, week_start_date: DateInput | None = None
    ) -> ReminderComputation:
        """Completed run for the week if there is one, otherwise a freshly computed run."""
        week = self.resolve_week(week_start_date)

        existing = await self.runs.latest_completed(week)
        if existing is None:
            try:
                return await self.compute_reminder_targets(week)
            except ReminderRunConflictError:
                existing = await self.runs.latest_completed(week)
                if existing is None:
                    logger.warning("Reminder run still pending", week_start_date=week.isoformat())
                    raise
                logger.info(
                    "Reminder run created concurrently, reusing it",
                    run_id=existing.id,
                    week_start_date=week.isoformat(),
                )

        return ReminderComputation(run=existing, targets=await self.load_targets(existing))

    async def get_reminder_targets(self, week_start_date: DateInput | None = None) -> ReminderReport:
        computation = await self.get_or_compute_run(week_start_date)
        run = computation.run
        return ReminderReport(
            week_start_date=run.week_start_date,
            generated_at=run.run_at,
            run_id=run.id,
            targets=computation.targets,
            summary=summarize_targets(computation.targets),
        )


reminder_engine = ReminderTargetEngine()
