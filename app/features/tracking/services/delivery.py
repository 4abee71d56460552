"""
Reminder delivery.

Runs after a reminder run exists and decides, per target, whether a
message is owed under the cooldown rule. Bookkeeping is the user's
``last_reminder_sent_at``, so re-running delivery for the same week is
safe: anyone already reminded inside the cooldown window is skipped.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, timedelta
from typing import Protocol

from app.config import settings
from app.features.tracking.domain.models import (
    DeliveryOutcome,
    DeliveryReport,
    ReminderTargetSummary,
)
from app.features.tracking.errors import NotFoundError, ReminderDeliveryError
from app.features.tracking.pipeline.time_windows import DateInput, TimeWindowCalculator
from app.features.tracking.repository import user_repository
from app.features.tracking.repository.protocols import UserRepository
from app.features.tracking.services.login_links import login_link_issuer
from app.infrastructure.observability.logging import get_logger
from app.services.telegram_client import telegram_client

logger = get_logger(__name__)

SKIP_NO_CHAT_HANDLE = "no_chat_handle"
SKIP_COOLDOWN = "cooldown"


class NotificationTransport(Protocol):
    async def send(self, chat_handle: str, user_name: str, login_url: str) -> None: ...


class LoginLinks(Protocol):
    async def issue(self, user_id: str) -> str: ...


def skip_reason(target: ReminderTargetSummary, cutoff: datetime) -> str | None:
    """Why a target is not sendable, or None when it is."""
    if not target.chat_handle:
        return SKIP_NO_CHAT_HANDLE
    if target.last_reminder_sent_at is not None and target.last_reminder_sent_at >= cutoff:
        return SKIP_COOLDOWN
    return None


class ReminderDeliveryService:
    def __init__(
        self,
        *,
        users: UserRepository | None = None,
        transport: NotificationTransport | None = None,
        login_links: LoginLinks | None = None,
        windows: TimeWindowCalculator | None = None,
        cooldown_days: int | None = None,
    ):
        self.users = users or user_repository
        self.transport = transport or telegram_client
        self.login_links = login_links or login_link_issuer
        self.windows = windows or TimeWindowCalculator()
        self.cooldown = timedelta(
            days=cooldown_days if cooldown_days is not None else settings.REMINDER_COOLDOWN_DAYS
        )

    def cooldown_cutoff(self, week_start_date: DateInput) -> datetime:
        """Start of the day ``cooldown`` days before the week's Sunday, in the tracking zone."""
        week_end = self.windows.week_end(week_start_date)
        return self.windows.start_of_day(week_end - self.cooldown)

    def is_sendable(self, target: ReminderTargetSummary, week_start_date: DateInput) -> bool:
        return skip_reason(target, self.cooldown_cutoff(week_start_date)) is None

    async def deliver_reminders(
        self, week_start_date: date, targets: Sequence[ReminderTargetSummary]
    ) -> DeliveryReport:
        """
        Send one reminder per sendable target, sequentially.

        A failed send is logged and recorded in the report; it never stops
        the remaining sends.
        """
        cutoff = self.cooldown_cutoff(week_start_date)
        report = DeliveryReport(week_start_date=week_start_date)

        logger.info(
            "Delivering reminders",
            week_start_date=week_start_date.isoformat(),
            target_count=len(targets),
            cooldown_cutoff=cutoff.isoformat(),
        )

        for target in targets:
            reason = skip_reason(target, cutoff)
            if reason is not None:
                logger.debug("Reminder skipped", user_id=target.user_id, reason=reason)
                report.outcomes.append(DeliveryOutcome(user_id=target.user_id, sent=False, skipped_reason=reason))
                continue

            report.outcomes.append(await self._send(target.user_id, target.chat_handle, target.user_name))

        logger.info("Reminder delivery finished", **report.to_dict())
        return report

    async def _send(self, user_id: str, chat_handle: str, user_name: str) -> DeliveryOutcome:
        attempted_at = self.windows.clock()
        try:
            login_url = await self.login_links.issue(user_id)
            await self.transport.send(chat_handle, user_name, login_url)
            await self.users.mark_reminder_sent(user_id, attempted_at)
        except Exception as e:
            logger.warning(
                "Reminder send failed",
                user_id=user_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return DeliveryOutcome(user_id=user_id, sent=False, error=str(e), attempted_at=attempted_at)

        logger.info("Reminder sent", user_id=user_id)
        return DeliveryOutcome(user_id=user_id, sent=True, attempted_at=attempted_at)

    async def send_manual_reminder(self, user_id: str) -> DeliveryOutcome:
        """
        Send a reminder to one user on an admin's request, ignoring the cooldown.

        Raises:
            NotFoundError: unknown user.
            ReminderDeliveryError: the user has no chat linked or the send failed.
        """
        user = await self.users.get(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found", operation="send_manual_reminder")
        if not user.chat_handle:
            raise ReminderDeliveryError(
                "User has not connected Telegram", operation="send_manual_reminder"
            )

        outcome = await self._send(user.id, user.chat_handle, user.name)
        if not outcome.sent:
            raise ReminderDeliveryError(
                f"Reminder could not be sent: {outcome.error}", operation="send_manual_reminder"
            )
        return outcome


reminder_delivery_service = ReminderDeliveryService()
