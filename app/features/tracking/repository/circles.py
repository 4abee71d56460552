"""
Read-only Postgres access to circles and their memberships.
"""

from app.db.helpers import fetch_all, with_db_retry
from app.features.tracking.domain.models import Circle


class PostgresCircleRepository:
    @with_db_retry(max_retries=3, base_delay=0.1)
    async def list_active(self) -> list[Circle]:
        rows = await fetch_all(
            "SELECT id, name, is_active FROM circles WHERE is_active = true ORDER BY name ASC"
        )
        return [Circle(id=str(row["id"]), name=row["name"], is_active=row["is_active"]) for row in rows]

    @with_db_retry(max_retries=3, base_delay=0.1)
    async def count_active_members(self) -> dict[str, int]:
        """Active membership count per circle id; circles without members are absent."""
        rows = await fetch_all(
            """
            SELECT circle_id, COUNT(*) AS member_count
            FROM circle_memberships
            WHERE is_active = true
            GROUP BY circle_id
            """
        )
        return {str(row["circle_id"]): int(row["member_count"]) for row in rows}


circle_repository = PostgresCircleRepository()
