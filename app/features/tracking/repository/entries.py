"""
Read-only Postgres access to weekly hour entries.

Void entries never leave this module except through ``list_recent``'s
explicit filter, which excludes them too.
"""

from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from typing import Any

from app.db.helpers import fetch_all, with_db_retry
from app.features.tracking.domain.models import HourEntry

_ENTRY_SELECT = """
    SELECT
        e.id, e.user_id, e.circle_id, e.week_start_date, e.hours, e.description,
        e.zero_hours_reason, e.created_at, e.voided_at, e.voided_by, e.void_reason,
        c.name AS circle_name,
        u.name AS user_name
    FROM weekly_entries e
    JOIN circles c ON c.id = e.circle_id
    JOIN users u ON u.id = e.user_id
"""


def _row_to_entry(row: dict[str, Any]) -> HourEntry:
    return HourEntry(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        circle_id=str(row["circle_id"]),
        week_start_date=row["week_start_date"],
        hours=Decimal(row["hours"]),
        description=row.get("description") or "",
        zero_hours_reason=row.get("zero_hours_reason"),
        created_at=row.get("created_at"),
        circle_name=row.get("circle_name"),
        user_name=row.get("user_name"),
        voided_at=row.get("voided_at"),
        voided_by=str(row["voided_by"]) if row.get("voided_by") else None,
        void_reason=row.get("void_reason"),
    )


class PostgresEntryRepository:
    @with_db_retry(max_retries=3, base_delay=0.1)
    async def list_for_weeks(self, week_starts: Sequence[date]) -> list[HourEntry]:
        if not week_starts:
            return []
        query = f"""
            {_ENTRY_SELECT}
            WHERE e.voided_at IS NULL
              AND e.week_start_date = ANY(%s::date[])
            ORDER BY e.week_start_date ASC, e.created_at ASC
        """
        rows = await fetch_all(query, (list(week_starts),))
        return [_row_to_entry(row) for row in rows]

    @with_db_retry(max_retries=3, base_delay=0.1)
    async def list_for_user(self, user_id: str, start: date, end: date) -> list[HourEntry]:
        query = f"""
            {_ENTRY_SELECT}
            WHERE e.voided_at IS NULL
              AND e.user_id = %s
              AND e.week_start_date BETWEEN %s AND %s
            ORDER BY e.week_start_date ASC, e.created_at ASC
        """
        rows = await fetch_all(query, (user_id, start, end))
        return [_row_to_entry(row) for row in rows]

    @with_db_retry(max_retries=3, base_delay=0.1)
    async def list_for_range(self, start: date, end: date) -> list[HourEntry]:
        query = f"""
            {_ENTRY_SELECT}
            WHERE e.voided_at IS NULL
              AND e.week_start_date BETWEEN %s AND %s
            ORDER BY e.week_start_date ASC, e.created_at ASC
        """
        rows = await fetch_all(query, (start, end))
        return [_row_to_entry(row) for row in rows]

    @with_db_retry(max_retries=3, base_delay=0.1)
    async def list_recent(self, limit: int) -> list[HourEntry]:
        query = f"""
            {_ENTRY_SELECT}
            WHERE e.voided_at IS NULL
            ORDER BY e.created_at DESC
            LIMIT %s
        """
        rows = await fetch_all(query, (limit,))
        return [_row_to_entry(row) for row in rows]


entry_repository = PostgresEntryRepository()
