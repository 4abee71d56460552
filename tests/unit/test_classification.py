from datetime import UTC, datetime
from decimal import Decimal

import pytest

from app.features.tracking.domain.models import WeeklyStatus
from app.features.tracking.pipeline.classification import StatusClassifier, is_at_risk, total_hours


def test_no_entries_is_missing(classifier):
    assert classifier.classify([]) is WeeklyStatus.MISSING


def test_zero_hours_without_reason_is_missing(classifier, entry_factory):
    entries = [entry_factory("e1", "u1", "0", zero_hours_reason=None)]
    assert classifier.classify(entries) is WeeklyStatus.MISSING


def test_zero_hours_with_reason(classifier, entry_factory):
    entries = [entry_factory("e1", "u1", "0", zero_hours_reason="vacation")]
    assert classifier.classify(entries) is WeeklyStatus.ZERO_REASON


def test_blank_reason_does_not_count(classifier, entry_factory):
    entries = [entry_factory("e1", "u1", "0", zero_hours_reason="   ")]
    assert classifier.classify(entries) is WeeklyStatus.MISSING


def test_under_target_and_exactly_met(classifier, entry_factory):
    under = [entry_factory("e1", "u1", "1.0"), entry_factory("e2", "u1", "0.5")]
    met = [entry_factory("e1", "u1", "1.25"), entry_factory("e2", "u1", "0.75")]

    assert classifier.classify(under) is WeeklyStatus.UNDER_TARGET
    assert classifier.classify(met) is WeeklyStatus.MET


def test_positive_hours_win_over_zero_reason(classifier, entry_factory):
    entries = [
        entry_factory("e1", "u1", "0", zero_hours_reason="sick"),
        entry_factory("e2", "u1", "3"),
    ]
    assert classifier.classify(entries) is WeeklyStatus.MET


def test_void_entries_are_ignored(classifier, entry_factory):
    entries = [entry_factory("e1", "u1", "5", voided_at=datetime(2024, 1, 20, tzinfo=UTC))]

    assert classifier.classify(entries) is WeeklyStatus.MISSING
    assert total_hours(entries) == Decimal("0")


def test_explicit_target_overrides_weekly_target(classifier, entry_factory):
    entries = [entry_factory("e1", "u1", "3")]
    assert classifier.classify(entries, target=4) is WeeklyStatus.UNDER_TARGET


@pytest.mark.parametrize("target", [0, -1])
def test_non_positive_target_rejected(target):
    with pytest.raises(ValueError):
        StatusClassifier(weekly_target=target)


def test_monthly_collapse(classifier):
    assert classifier.monthly_expected_hours(5) == Decimal("10")
    assert classifier.classify_month(Decimal("10"), 5) is WeeklyStatus.MET
    assert classifier.classify_month(Decimal("0"), 5) is WeeklyStatus.UNDER_TARGET


def test_at_risk_statuses():
    assert {status for status in WeeklyStatus if is_at_risk(status)} == {
        WeeklyStatus.MISSING,
        WeeklyStatus.UNDER_TARGET,
    }
