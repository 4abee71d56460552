"""
Postgres access to the user fields the tracking core reads and writes.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from app.db.helpers import execute_query, fetch_all, fetch_one, with_db_retry
from app.features.tracking.domain.models import TrackedUser, UserRole
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

_USER_COLUMNS = """
    id, name, email, phone_number, telegram_chat_id, is_active, role, last_reminder_sent_at
"""


def _row_to_user(row: dict[str, Any]) -> TrackedUser:
    return TrackedUser(
        id=str(row["id"]),
        name=row["name"],
        email=row["email"],
        phone_number=row.get("phone_number"),
        chat_handle=row.get("telegram_chat_id"),
        is_active=row["is_active"],
        role=UserRole(row["role"]),
        last_reminder_sent_at=row.get("last_reminder_sent_at"),
    )


class PostgresUserRepository:
    @with_db_retry(max_retries=3, base_delay=0.1)
    async def list_cohort(self) -> list[TrackedUser]:
        """Active, non-administrative users in a stable order."""
        query = f"""
            SELECT {_USER_COLUMNS}
            FROM users
            WHERE is_active = true AND role = %s
            ORDER BY created_at ASC, id ASC
        """
        rows = await fetch_all(query, (UserRole.USER.value,))
        return [_row_to_user(row) for row in rows]

    @with_db_retry(max_retries=3, base_delay=0.1)
    async def get(self, user_id: str) -> TrackedUser | None:
        row = await fetch_one(f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s", (user_id,))
        return _row_to_user(row) if row else None

    @with_db_retry(max_retries=3, base_delay=0.1)
    async def get_many(self, user_ids: Sequence[str]) -> dict[str, TrackedUser]:
        if not user_ids:
            return {}
        rows = await fetch_all(
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = ANY(%s::uuid[])", (list(user_ids),)
        )
        return {str(row["id"]): _row_to_user(row) for row in rows}

    async def mark_reminder_sent(self, user_id: str, sent_at: datetime) -> None:
        updated = await execute_query(
            "UPDATE users SET last_reminder_sent_at = %s WHERE id = %s", (sent_at, user_id)
        )
        if not updated:
            logger.warning("Reminder timestamp not recorded, user missing", user_id=user_id)


user_repository = PostgresUserRepository()
