"""
Period aggregation over caller-supplied hour entries.

Groups entries by circle and by week and attaches a status to each
period. Nothing here touches the database; the summary service loads
entries and hands them in.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from .classification import StatusClassifier, total_hours
from .time_windows import TimeWindowCalculator
from app.features.tracking.domain.models import (
    CircleHours,
    HourEntry,
    MonthlySummary,
    WeekBreakdown,
    WeeklySummary,
)


@dataclass
class _CircleAccumulator:
    circle_id: str
    circle_name: str
    hours: Decimal


class PeriodAggregator:
    def __init__(self, classifier: StatusClassifier, windows: TimeWindowCalculator):
        self.classifier = classifier
        self.windows = windows

    def by_circle(self, entries: Iterable[HourEntry]) -> list[CircleHours]:
        """One row per circle, in first-seen order."""
        rows: dict[str, _CircleAccumulator] = {}
        for entry in entries:
            if entry.is_void:
                continue
            row = rows.get(entry.circle_id)
            if row is None:
                rows[entry.circle_id] = _CircleAccumulator(
                    circle_id=entry.circle_id,
                    circle_name=entry.circle_name or "",
                    hours=entry.hours,
                )
            else:
                row.hours += entry.hours
        return [CircleHours(row.circle_id, row.circle_name, row.hours) for row in rows.values()]

    def group_by_week(self, entries: Iterable[HourEntry]) -> dict[date, list[HourEntry]]:
        grouped: dict[date, list[HourEntry]] = {}
        for entry in entries:
            if entry.is_void:
                continue
            grouped.setdefault(entry.week_start_date, []).append(entry)
        return grouped

    def summarize_week(self, week_start_date: date, entries: Sequence[HourEntry]) -> WeeklySummary:
        live = [entry for entry in entries if not entry.is_void]
        return WeeklySummary(
            week_start_date=week_start_date,
            week_end_date=self.windows.week_end(week_start_date),
            total_hours=total_hours(live),
            entry_count=len(live),
            status=self.classifier.classify(live),
            by_circle=self.by_circle(live),
        )

    def weekly_summary(
        self, entries: Iterable[HourEntry], week_starts: Sequence[date]
    ) -> list[WeeklySummary]:
        """One summary per requested week, in the order the weeks were given."""
        grouped = self.group_by_week(entries)
        return [self.summarize_week(week, grouped.get(week, [])) for week in week_starts]

    def monthly_summary(self, entries: Iterable[HourEntry], month: str) -> MonthlySummary:
        window = self.windows.month_week_range(month)
        in_month = [
            entry
            for entry in entries
            if not entry.is_void and window.start <= entry.week_start_date <= window.end
        ]

        month_total = total_hours(in_month)
        breakdown = [
            WeekBreakdown(
                week_start_date=week,
                hours=total_hours(week_entries),
                status=self.classifier.classify(week_entries),
            )
            for week, week_entries in self.group_by_week(in_month).items()
        ]

        return MonthlySummary(
            month=month,
            total_hours=month_total,
            weekly_target=self.classifier.weekly_target,
            weeks_in_month=window.week_count,
            expected_hours=self.classifier.monthly_expected_hours(window.week_count),
            status=self.classifier.classify_month(month_total, window.week_count),
            by_circle=self.by_circle(in_month),
            weekly_breakdown=breakdown,
        )
