"""
Status classification for a user's hours in a week or a month.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from app.config import settings
from app.features.tracking.domain.models import HourEntry, WeeklyStatus


def to_decimal(value: Decimal | float | int | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def total_hours(entries: Iterable[HourEntry]) -> Decimal:
    return sum((entry.hours for entry in entries if not entry.is_void), Decimal("0"))


class StatusClassifier:
    """
    Classifies a period's entries against an hours target.

    The weekly target is configuration; monthly targets are derived from
    it by the number of weeks overlapping the month.
    """

    def __init__(self, weekly_target: Decimal | float | None = None):
        target = to_decimal(
            settings.WEEKLY_TARGET_HOURS if weekly_target is None else weekly_target
        )
        if target <= 0:
            raise ValueError("weekly target must be positive")
        self.weekly_target = target

    def classify(
        self, entries: Iterable[HourEntry], target: Decimal | float | None = None
    ) -> WeeklyStatus:
        threshold = self.weekly_target if target is None else to_decimal(target)
        if threshold <= 0:
            raise ValueError("target must be positive")

        live = [entry for entry in entries if not entry.is_void]
        if not live:
            return WeeklyStatus.MISSING

        total = total_hours(live)
        if total == 0:
            if any(entry.has_zero_reason for entry in live):
                return WeeklyStatus.ZERO_REASON
            return WeeklyStatus.MISSING

        if total < threshold:
            return WeeklyStatus.UNDER_TARGET
        return WeeklyStatus.MET

    def monthly_expected_hours(self, weeks_in_month: int) -> Decimal:
        return self.weekly_target * weeks_in_month

    def classify_month(self, month_total: Decimal, weeks_in_month: int) -> WeeklyStatus:
        """Months only distinguish met from under target."""
        if to_decimal(month_total) >= self.monthly_expected_hours(weeks_in_month):
            return WeeklyStatus.MET
        return WeeklyStatus.UNDER_TARGET


def is_at_risk(status: WeeklyStatus) -> bool:
    return status.at_risk
