"""
Telegram Bot API client used as the reminder notification transport.

Only the outbound ``sendMessage`` call lives here; linking a chat to a
user happens in the bot's inbound handler, outside this service.
"""

import asyncio

import httpx

from app.config import settings
from app.features.tracking.errors import NotificationError
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

MAX_ATTEMPTS = 3
DEFAULT_RETRY_AFTER_SECONDS = 1.0


def build_reminder_message(user_name: str, login_url: str) -> str:
    return (
        f"Hola {user_name},\n\n"
        "Te falta registrar tus horas de la semana pasada en Circle Hours.\n\n"
        f"Haz clic aquí para iniciar sesión y registrarlas:\n{login_url}\n\n"
        f"Este enlace es de un solo uso y expira en {settings.ONE_TIME_TOKEN_TTL_DAYS} días."
    )


class TelegramNotificationClient:
    """Sends reminder messages to a Telegram chat id."""

    def __init__(
        self,
        bot_token: str | None = None,
        api_base: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.bot_token = bot_token if bot_token is not None else settings.TELEGRAM_BOT_TOKEN
        self.api_base = (api_base or settings.TELEGRAM_API_BASE).rstrip("/")
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.bot_token)

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=httpx.Timeout(settings.TELEGRAM_TIMEOUT_SECONDS))

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def send(self, chat_handle: str, user_name: str, login_url: str) -> None:
        """
        Deliver a reminder message.

        Raises:
            NotificationError: bot not configured, network failure, or the
                API rejected the message.
        """
        if not self.configured:
            raise NotificationError("Telegram bot is not configured", recoverable=False)

        payload = {"chat_id": chat_handle, "text": build_reminder_message(user_name, login_url)}
        await self._post("sendMessage", payload)
        logger.debug("Telegram reminder sent", chat_id=chat_handle)

    async def _post(self, method: str, payload: dict) -> dict:
        if self._client is None:
            self._client = self._create_client()
        url = f"{self.api_base}/bot{self.bot_token}/{method}"

        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                response = await self._client.post(url, json=payload)
            except httpx.RequestError as e:
                raise NotificationError(f"Telegram request failed: {e}") from e

            # Only rate limiting is retried; a 5xx may already have delivered the message
            if response.status_code == 429 and attempt < MAX_ATTEMPTS:
                retry_after = self._retry_after(response)
                logger.warning(
                    "Telegram rate limited, retrying",
                    attempt=attempt,
                    retry_after_seconds=retry_after,
                )
                await asyncio.sleep(retry_after)
                continue

            return self._handle_response(response, method)

        raise NotificationError("Telegram retry loop exhausted")

    def _retry_after(self, response: httpx.Response) -> float:
        try:
            return float(response.json().get("parameters", {}).get("retry_after"))
        except (ValueError, TypeError, AttributeError):
            return DEFAULT_RETRY_AFTER_SECONDS

    def _handle_response(self, response: httpx.Response, method: str) -> dict:
        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_success and body.get("ok", False):
            return body

        description = body.get("description") or response.text[:200]
        logger.warning(
            "Telegram API rejected request",
            method=method,
            status_code=response.status_code,
            description=description,
        )
        # 400/403 mean a bad or blocked chat; retrying won't help
        raise NotificationError(
            f"Telegram {method} failed ({response.status_code}): {description}",
            recoverable=response.status_code >= 500,
        )


telegram_client = TelegramNotificationClient()
