from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest

from app.features.tracking.domain.models import Circle, UserRole, WeeklyStatus
from app.features.tracking.services.dashboard import DashboardAggregator, average_per_member

PREVIOUS = date(2024, 1, 15)
TWO_AGO = date(2024, 1, 8)


@pytest.fixture
def dashboard(fake_users, fake_entries, fake_circles, classifier, windows):
    return DashboardAggregator(
        users=fake_users,
        entries=fake_entries,
        circles=fake_circles,
        classifier=classifier,
        windows=windows,
        recent_limit=10,
    )


@pytest.fixture
def populated(fake_users, fake_entries, fake_circles, user_factory, entry_factory):
    fake_users.users.extend(
        [
            user_factory("u1"),
            user_factory("u2"),
            user_factory("u3"),
            user_factory("u4"),
            user_factory("admin", role=UserRole.ADMIN),
        ]
    )
    fake_entries.entries.extend(
        [
            # u1: nothing at all -> missing both weeks
            entry_factory("e1", "u2", "1", week=PREVIOUS, circle_id="a"),
            entry_factory("e2", "u3", "3", week=PREVIOUS, circle_id="b"),
            entry_factory("e3", "u4", "0", week=TWO_AGO, zero_hours_reason="sick", circle_id="a"),
            entry_factory("e4", "u4", "0", week=PREVIOUS, circle_id="a"),
        ]
    )
    fake_circles.circles.extend(
        [
            Circle(id="a", name="Alpha"),
            Circle(id="b", name="Beta"),
            Circle(id="c", name="Gamma"),
            Circle(id="z", name="Closed", is_active=False),
        ]
    )
    fake_circles.member_counts.update({"a": 3, "b": 2})


@pytest.mark.asyncio
async def test_previous_week_classification(dashboard, populated):
    result = await dashboard.build_dashboard()

    previous = result.missing_previous_week
    assert previous.week_start_date == PREVIOUS
    assert [(user.id, user.status) for user in previous.users] == [
        ("u1", WeeklyStatus.MISSING),
        ("u2", WeeklyStatus.UNDER_TARGET),
        ("u4", WeeklyStatus.MISSING),
    ]
    assert previous.count == 3
    assert previous.users[1].total_hours == Decimal("1")

    counts = result.status_counts
    assert (counts.missing, counts.zero_reason, counts.under_target, counts.met) == (2, 0, 1, 1)


@pytest.mark.asyncio
async def test_missing_two_weeks(dashboard, populated):
    result = await dashboard.build_dashboard()

    two_weeks = result.missing_two_weeks
    assert two_weeks.week_start_dates == [TWO_AGO, PREVIOUS]
    # u4 gave a zero-hours reason two weeks ago, so only u1 qualifies
    assert [user.id for user in two_weeks.users] == ["u1"]
    assert two_weeks.users[0].consecutive_missing_weeks == 2
    assert two_weeks.count == 1


@pytest.mark.asyncio
async def test_circle_metrics_sorted_and_rounded(dashboard, populated):
    result = await dashboard.build_dashboard()

    metrics = result.circle_metrics
    assert [metric.circle_id for metric in metrics] == ["b", "a", "c"]

    beta, alpha, gamma = metrics
    assert beta.total_hours == Decimal("3")
    assert beta.avg_hours_per_member == Decimal("1.50")
    assert beta.contributing_users == 1
    assert alpha.total_hours == Decimal("1")
    assert alpha.avg_hours_per_member == Decimal("0.33")
    assert alpha.contributing_users == 2
    assert gamma.active_member_count == 0
    assert gamma.avg_hours_per_member == Decimal("0")


@pytest.mark.asyncio
async def test_recent_entries_newest_first(dashboard, fake_entries, entry_factory):
    base = datetime(2024, 1, 20, tzinfo=UTC)
    fake_entries.entries.extend(
        entry_factory(f"e{i}", "u1", "1", created_at=base + timedelta(minutes=i)) for i in range(12)
    )

    result = await dashboard.build_dashboard()

    assert len(result.recent_entries) == 10
    assert result.recent_entries[0].id == "e11"


@pytest.mark.asyncio
async def test_load_failure_fails_whole_dashboard(dashboard, populated, fake_entries):
    fake_entries.error = RuntimeError("database unavailable")

    with pytest.raises(RuntimeError):
        await dashboard.build_dashboard()


def test_average_per_member_rounds_half_up():
    assert average_per_member(Decimal("1.005"), 1) == Decimal("1.01")
    assert average_per_member(Decimal("5"), 0) == Decimal("0")
