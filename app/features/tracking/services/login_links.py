"""
One-time login links embedded in reminder messages.
"""

import secrets
from datetime import timedelta

from app.config import settings
from app.features.tracking.pipeline.time_windows import Clock, utc_now
from app.features.tracking.repository import login_token_repository
from app.features.tracking.repository.protocols import LoginTokenRepository

TOKEN_BYTES = 32  # 64 hex chars, the column width


class LoginLinkIssuer:
    def __init__(
        self,
        tokens: LoginTokenRepository | None = None,
        clock: Clock | None = None,
        ttl_days: int | None = None,
    ):
        self.tokens = tokens or login_token_repository
        self.clock = clock or utc_now
        self.ttl = timedelta(days=ttl_days if ttl_days is not None else settings.ONE_TIME_TOKEN_TTL_DAYS)

    async def issue(self, user_id: str) -> str:
        token = secrets.token_hex(TOKEN_BYTES)
        await self.tokens.create(user_id, token, self.clock() + self.ttl)
        return settings.login_url(token)


login_link_issuer = LoginLinkIssuer()
