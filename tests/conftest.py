import dataclasses
from datetime import UTC, date, datetime
from decimal import Decimal

import pytest

from app.auth.verify import admin_dependency, auth_dependency
from app.features.tracking.domain.models import (
    Circle,
    HourEntry,
    ReminderRun,
    ReminderRunStatus,
    ReminderTarget,
    TrackedUser,
    UserRole,
)
from app.features.tracking.errors import NotificationError, ReminderRunConflictError
from app.features.tracking.pipeline.classification import StatusClassifier
from app.features.tracking.pipeline.time_windows import TimeWindowCalculator

# Monday 2024-01-22 07:00 Europe/Madrid
FIXED_NOW = datetime(2024, 1, 22, 6, 0, tzinfo=UTC)
PREVIOUS_WEEK = date(2024, 1, 15)


def make_user(user_id: str, **overrides) -> TrackedUser:
    fields = {
        "id": user_id,
        "name": f"User {user_id}",
        "email": f"{user_id}@example.com",
        "chat_handle": f"chat-{user_id}",
    }
    fields.update(overrides)
    return TrackedUser(**fields)


def make_entry(
    entry_id: str,
    user_id: str,
    hours: str | Decimal,
    week: date = PREVIOUS_WEEK,
    circle_id: str = "circle-a",
    **overrides,
) -> HourEntry:
    fields = {
        "id": entry_id,
        "user_id": user_id,
        "circle_id": circle_id,
        "circle_name": f"Circle {circle_id}",
        "week_start_date": week,
        "hours": Decimal(hours),
        "created_at": FIXED_NOW,
    }
    fields.update(overrides)
    return HourEntry(**fields)


class FakeClock:
    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeUserRepository:
    def __init__(self, users: list[TrackedUser] | None = None):
        self.users = list(users or [])
        self.marked: list[tuple[str, datetime]] = []

    async def list_cohort(self) -> list[TrackedUser]:
        return [user for user in self.users if user.is_active and user.role is UserRole.USER]

    async def get(self, user_id: str) -> TrackedUser | None:
        return next((user for user in self.users if user.id == user_id), None)

    async def get_many(self, user_ids) -> dict[str, TrackedUser]:
        wanted = set(user_ids)
        return {user.id: user for user in self.users if user.id in wanted}

    async def mark_reminder_sent(self, user_id: str, sent_at: datetime) -> None:
        self.marked.append((user_id, sent_at))
        user = await self.get(user_id)
        if user is not None:
            user.last_reminder_sent_at = sent_at


class FakeEntryRepository:
    def __init__(self, entries: list[HourEntry] | None = None):
        self.entries = list(entries or [])
        self.error: Exception | None = None

    def _live(self) -> list[HourEntry]:
        if self.error is not None:
            raise self.error
        return [entry for entry in self.entries if not entry.is_void]

    async def list_for_weeks(self, week_starts) -> list[HourEntry]:
        weeks = set(week_starts)
        return [entry for entry in self._live() if entry.week_start_date in weeks]

    async def list_for_user(self, user_id: str, start: date, end: date) -> list[HourEntry]:
        return [
            entry
            for entry in self._live()
            if entry.user_id == user_id and start <= entry.week_start_date <= end
        ]

    async def list_for_range(self, start: date, end: date) -> list[HourEntry]:
        return [entry for entry in self._live() if start <= entry.week_start_date <= end]

    async def list_recent(self, limit: int) -> list[HourEntry]:
        ordered = sorted(self._live(), key=lambda entry: entry.created_at, reverse=True)
        return ordered[:limit]


class FakeCircleRepository:
    def __init__(self, circles: list[Circle] | None = None, member_counts: dict[str, int] | None = None):
        self.circles = list(circles or [])
        self.member_counts = dict(member_counts or {})

    async def list_active(self) -> list[Circle]:
        return sorted((circle for circle in self.circles if circle.is_active), key=lambda c: c.name)

    async def count_active_members(self) -> dict[str, int]:
        return dict(self.member_counts)


class FakeReminderRunRepository:
    """Keeps at most one non-failed run per week, like the partial unique index."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.runs: dict[str, ReminderRun] = {}
        self.created = 0

    async def create(self, week_start_date: date) -> ReminderRun:
        for run in self.runs.values():
            if run.week_start_date == week_start_date and run.status is not ReminderRunStatus.FAILED:
                raise ReminderRunConflictError(week_start_date)
        self.created += 1
        run = ReminderRun(id=f"run-{self.created}", week_start_date=week_start_date, run_at=self.clock())
        self.runs[run.id] = dataclasses.replace(run)
        return run

    async def save(self, run: ReminderRun) -> ReminderRun:
        self.runs[run.id] = dataclasses.replace(run)
        return run

    async def latest_completed(self, week_start_date: date) -> ReminderRun | None:
        completed = [
            run
            for run in self.runs.values()
            if run.week_start_date == week_start_date and run.status is ReminderRunStatus.COMPLETED
        ]
        if not completed:
            return None
        return dataclasses.replace(max(completed, key=lambda run: run.run_at))

    async def fail_stale(self, older_than: datetime) -> int:
        failed = 0
        for run in self.runs.values():
            if run.status is ReminderRunStatus.PENDING and run.run_at < older_than:
                run.status = ReminderRunStatus.FAILED
                run.error_message = "stale pending run"
                failed += 1
        return failed


class FakeReminderTargetRepository:
    def __init__(self):
        self.targets: list[ReminderTarget] = []
        self.error: Exception | None = None

    async def create_many(self, run_id: str, targets) -> list[ReminderTarget]:
        if self.error is not None:
            raise self.error
        for target in targets:
            self.targets.append(
                ReminderTarget(
                    id=f"target-{len(self.targets) + 1}",
                    reminder_run_id=run_id,
                    user_id=target.user_id,
                    weekly_status=target.weekly_status,
                    total_hours=target.total_hours,
                )
            )
        return await self.list_for_run(run_id)

    async def list_for_run(self, run_id: str) -> list[ReminderTarget]:
        return [target for target in self.targets if target.reminder_run_id == run_id]


class FakeTransport:
    def __init__(self, failing_chats: set[str] | None = None):
        self.failing_chats = set(failing_chats or ())
        self.sent: list[tuple[str, str, str]] = []

    async def send(self, chat_handle: str, user_name: str, login_url: str) -> None:
        if chat_handle in self.failing_chats:
            raise NotificationError("Forbidden: bot was blocked by the user", recoverable=False)
        self.sent.append((chat_handle, user_name, login_url))


class FakeLoginLinks:
    def __init__(self):
        self.issued: list[str] = []

    async def issue(self, user_id: str) -> str:
        self.issued.append(user_id)
        return f"https://hours.example.test/api/v1/auth/one-time/token-{user_id}"


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def windows(fake_clock):
    return TimeWindowCalculator(tz="Europe/Madrid", clock=fake_clock, reminder_hour=7)


@pytest.fixture
def classifier():
    return StatusClassifier(weekly_target=Decimal("2"))


@pytest.fixture
def fake_users():
    return FakeUserRepository()


@pytest.fixture
def fake_entries():
    return FakeEntryRepository()


@pytest.fixture
def fake_circles():
    return FakeCircleRepository()


@pytest.fixture
def fake_runs(fake_clock):
    return FakeReminderRunRepository(fake_clock)


@pytest.fixture
def fake_targets():
    return FakeReminderTargetRepository()


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def fake_login_links():
    return FakeLoginLinks()


@pytest.fixture
def auth_override():
    def _override():
        return {"sub": "user-123", "role": "user"}

    return _override


@pytest.fixture
def admin_override():
    def _override():
        return {"sub": "admin-1", "role": "admin"}

    return _override


@pytest.fixture
def apply_auth_override(auth_override, admin_override):
    def _apply(app, admin: bool = False):
        override = admin_override if admin else auth_override
        app.dependency_overrides[auth_dependency] = override
        if admin:
            app.dependency_overrides[admin_dependency] = admin_override

    return _apply


@pytest.fixture
def user_factory():
    return make_user


@pytest.fixture
def entry_factory():
    return make_entry
