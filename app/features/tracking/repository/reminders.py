"""
Postgres persistence for reminder runs and their targets.

``reminder_runs`` carries a partial unique index on ``week_start_date``
for non-failed rows, so at most one live run exists per week. Run
creation relies on it instead of taking locks.
"""

from collections.abc import Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from app.db.helpers import execute_many, execute_query, fetch_all, fetch_one, with_db_retry
from app.features.tracking.domain.models import (
    NewReminderTarget,
    ReminderRun,
    ReminderRunStatus,
    ReminderTarget,
    WeeklyStatus,
)
from app.features.tracking.errors import ReminderRunConflictError
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

_RUN_COLUMNS = "id, week_start_date, run_at, total_targets, status, error_message"


def _row_to_run(row: dict[str, Any]) -> ReminderRun:
    return ReminderRun(
        id=str(row["id"]),
        week_start_date=row["week_start_date"],
        run_at=row["run_at"],
        status=ReminderRunStatus(row["status"]),
        total_targets=row["total_targets"],
        error_message=row.get("error_message"),
    )


def _row_to_target(row: dict[str, Any]) -> ReminderTarget:
    return ReminderTarget(
        id=str(row["id"]),
        reminder_run_id=str(row["reminder_run_id"]),
        user_id=str(row["user_id"]),
        weekly_status=WeeklyStatus(row["weekly_status"]),
        total_hours=Decimal(row["total_hours"]),
        notified_at=row.get("notified_at"),
        notification_error=row.get("notification_error"),
    )


class PostgresReminderRunRepository:
    async def create(self, week_start_date: date) -> ReminderRun:
        """Insert a pending run, or raise if a live run for the week already exists."""
        row = await fetch_one(
            f"""
            INSERT INTO reminder_runs (week_start_date, status, total_targets)
            VALUES (%s, %s, 0)
            ON CONFLICT (week_start_date) WHERE status <> 'failed' DO NOTHING
            RETURNING {_RUN_COLUMNS}
            """,
            (week_start_date, ReminderRunStatus.PENDING.value),
        )
        if row is None:
            raise ReminderRunConflictError(week_start_date)
        return _row_to_run(row)

    async def save(self, run: ReminderRun) -> ReminderRun:
        await execute_query(
            """
            UPDATE reminder_runs
            SET status = %s, total_targets = %s, error_message = %s
            WHERE id = %s
            """,
            (run.status.value, run.total_targets, run.error_message, run.id),
        )
        return run

    @with_db_retry(max_retries=3, base_delay=0.1)
    async def latest_completed(self, week_start_date: date) -> ReminderRun | None:
        row = await fetch_one(
            f"""
            SELECT {_RUN_COLUMNS}
            FROM reminder_runs
            WHERE week_start_date = %s AND status = %s
            ORDER BY run_at DESC
            LIMIT 1
            """,
            (week_start_date, ReminderRunStatus.COMPLETED.value),
        )
        return _row_to_run(row) if row else None

    async def fail_stale(self, older_than: datetime) -> int:
        """Fail pending runs started before ``older_than`` so they stop blocking their week."""
        failed = await execute_query(
            """
            UPDATE reminder_runs
            SET status = %s, error_message = 'stale pending run'
            WHERE status = %s AND run_at < %s
            """,
            (ReminderRunStatus.FAILED.value, ReminderRunStatus.PENDING.value, older_than),
        )
        if failed:
            logger.warning("Failed stale reminder runs", count=failed, older_than=older_than.isoformat())
        return failed


class PostgresReminderTargetRepository:
    async def create_many(
        self, run_id: str, targets: Sequence[NewReminderTarget]
    ) -> list[ReminderTarget]:
        if not targets:
            return []
        await execute_many(
            """
            INSERT INTO reminder_targets (reminder_run_id, user_id, weekly_status, total_hours)
            VALUES (%s, %s, %s, %s)
            """,
            [
                (run_id, target.user_id, target.weekly_status.value, target.total_hours)
                for target in targets
            ],
        )
        return await self.list_for_run(run_id)

    @with_db_retry(max_retries=3, base_delay=0.1)
    async def list_for_run(self, run_id: str) -> list[ReminderTarget]:
        rows = await fetch_all(
            """
            SELECT t.id, t.reminder_run_id, t.user_id, t.weekly_status, t.total_hours,
                   t.notified_at, t.notification_error
            FROM reminder_targets t
            JOIN users u ON u.id = t.user_id
            WHERE t.reminder_run_id = %s
            ORDER BY u.created_at ASC, u.id ASC
            """,
            (run_id,),
        )
        return [_row_to_target(row) for row in rows]


reminder_run_repository = PostgresReminderRunRepository()
reminder_target_repository = PostgresReminderTargetRepository()
