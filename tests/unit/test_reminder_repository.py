from datetime import UTC, date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from app.features.tracking.domain.models import NewReminderTarget, ReminderRunStatus, WeeklyStatus
from app.features.tracking.errors import ReminderRunConflictError
from app.features.tracking.repository import reminders
from app.features.tracking.repository.reminders import (
    PostgresReminderRunRepository,
    PostgresReminderTargetRepository,
)

WEEK = date(2024, 1, 15)


@pytest.mark.asyncio
async def test_create_returns_pending_run(monkeypatch):
    row = {
        "id": "0f0c",
        "week_start_date": WEEK,
        "run_at": datetime(2024, 1, 22, 6, 0, tzinfo=UTC),
        "total_targets": 0,
        "status": "pending",
        "error_message": None,
    }
    fetch_mock = AsyncMock(return_value=row)
    monkeypatch.setattr(reminders, "fetch_one", fetch_mock)

    run = await PostgresReminderRunRepository().create(WEEK)

    assert run.id == "0f0c"
    assert run.status is ReminderRunStatus.PENDING
    query, params = fetch_mock.await_args.args
    assert "ON CONFLICT" in query
    assert params == (WEEK, "pending")


@pytest.mark.asyncio
async def test_create_conflict_when_live_run_exists(monkeypatch):
    monkeypatch.setattr(reminders, "fetch_one", AsyncMock(return_value=None))

    with pytest.raises(ReminderRunConflictError) as exc_info:
        await PostgresReminderRunRepository().create(WEEK)
    assert exc_info.value.week_start_date == WEEK


@pytest.mark.asyncio
async def test_create_many_inserts_one_row_per_target(monkeypatch):
    execute_many_mock = AsyncMock(return_value=2)
    monkeypatch.setattr(reminders, "execute_many", execute_many_mock)
    monkeypatch.setattr(reminders, "fetch_all", AsyncMock(return_value=[]))

    await PostgresReminderTargetRepository().create_many(
        "run-1",
        [
            NewReminderTarget("u1", WeeklyStatus.MISSING, Decimal("0")),
            NewReminderTarget("u2", WeeklyStatus.UNDER_TARGET, Decimal("1.5")),
        ],
    )

    _, rows = execute_many_mock.await_args.args
    assert rows == [
        ("run-1", "u1", "missing", Decimal("0")),
        ("run-1", "u2", "under_target", Decimal("1.5")),
    ]


@pytest.mark.asyncio
async def test_create_many_skips_empty(monkeypatch):
    execute_many_mock = AsyncMock()
    monkeypatch.setattr(reminders, "execute_many", execute_many_mock)

    assert await PostgresReminderTargetRepository().create_many("run-1", []) == []
    execute_many_mock.assert_not_awaited()
