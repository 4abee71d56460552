"""
Postgres storage for one-time login tokens embedded in reminder links.
"""

from datetime import datetime

from app.db.helpers import execute_query


class PostgresLoginTokenRepository:
    async def create(self, user_id: str, token: str, expires_at: datetime) -> None:
        await execute_query(
            "INSERT INTO one_time_tokens (token, user_id, expires_at) VALUES (%s, %s, %s)",
            (token, user_id, expires_at),
        )


login_token_repository = PostgresLoginTokenRepository()
