"""
Persistence interfaces consumed by the tracking services.

The Postgres implementations live next to this module; tests substitute
in-memory fakes with the same methods.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from typing import Protocol

from app.features.tracking.domain.models import (
    Circle,
    HourEntry,
    NewReminderTarget,
    ReminderRun,
    ReminderTarget,
    TrackedUser,
)


class UserRepository(Protocol):
    async def list_cohort(self) -> list[TrackedUser]: ...

    async def get(self, user_id: str) -> TrackedUser | None: ...

    async def get_many(self, user_ids: Sequence[str]) -> dict[str, TrackedUser]: ...

    async def mark_reminder_sent(self, user_id: str, sent_at: datetime) -> None: ...


class EntryRepository(Protocol):
    async def list_for_weeks(self, week_starts: Sequence[date]) -> list[HourEntry]: ...

    async def list_for_user(self, user_id: str, start: date, end: date) -> list[HourEntry]: ...

    async def list_for_range(self, start: date, end: date) -> list[HourEntry]: ...

    async def list_recent(self, limit: int) -> list[HourEntry]: ...


class CircleRepository(Protocol):
    async def list_active(self) -> list[Circle]: ...

    async def count_active_members(self) -> dict[str, int]: ...


class ReminderRunRepository(Protocol):
    async def create(self, week_start_date: date) -> ReminderRun: ...

    async def save(self, run: ReminderRun) -> ReminderRun: ...

    async def latest_completed(self, week_start_date: date) -> ReminderRun | None: ...

    async def fail_stale(self, older_than: datetime) -> int: ...


class ReminderTargetRepository(Protocol):
    async def create_many(
        self, run_id: str, targets: Sequence[NewReminderTarget]
    ) -> list[ReminderTarget]: ...

    async def list_for_run(self, run_id: str) -> list[ReminderTarget]: ...


class LoginTokenRepository(Protocol):
    async def create(self, user_id: str, token: str, expires_at: datetime) -> None: ...
