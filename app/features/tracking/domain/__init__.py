"""
Domain subpackage for the tracking feature.
"""

from .models import (
    AdminDashboard,
    Circle,
    CircleHours,
    CircleMembership,
    CircleMetric,
    DeliveryOutcome,
    DeliveryReport,
    HourEntry,
    MissingUser,
    MonthlySummary,
    MonthWeekRange,
    ReminderComputation,
    ReminderReport,
    ReminderRun,
    ReminderRunStatus,
    ReminderTarget,
    ReminderTargetSummary,
    StatusCounts,
    TrackedUser,
    UserRole,
    WeeklyStatus,
    WeeklySummary,
)

__all__ = [
    "AdminDashboard",
    "Circle",
    "CircleHours",
    "CircleMembership",
    "CircleMetric",
    "DeliveryOutcome",
    "DeliveryReport",
    "HourEntry",
    "MissingUser",
    "MonthlySummary",
    "MonthWeekRange",
    "ReminderComputation",
    "ReminderReport",
    "ReminderRun",
    "ReminderRunStatus",
    "ReminderTarget",
    "ReminderTargetSummary",
    "StatusCounts",
    "TrackedUser",
    "UserRole",
    "WeeklyStatus",
    "WeeklySummary",
]
