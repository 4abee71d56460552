"""
Job runners for the hour-tracking feature.
"""

from .reminder_job import run_weekly_reminders, start_reminder_scheduler

__all__ = ["run_weekly_reminders", "start_reminder_scheduler"]
