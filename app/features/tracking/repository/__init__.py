"""
Repository subpackage for the tracking feature.
"""

from .circles import PostgresCircleRepository, circle_repository
from .entries import PostgresEntryRepository, entry_repository
from .reminders import (
    PostgresReminderRunRepository,
    PostgresReminderTargetRepository,
    reminder_run_repository,
    reminder_target_repository,
)
from .tokens import PostgresLoginTokenRepository, login_token_repository
from .users import PostgresUserRepository, user_repository

__all__ = [
    "PostgresCircleRepository",
    "PostgresEntryRepository",
    "PostgresLoginTokenRepository",
    "PostgresReminderRunRepository",
    "PostgresReminderTargetRepository",
    "PostgresUserRepository",
    "circle_repository",
    "entry_repository",
    "login_token_repository",
    "reminder_run_repository",
    "reminder_target_repository",
    "user_repository",
]
