"""
Service layer for the hour-tracking feature.
"""

from .dashboard import DashboardAggregator, dashboard_aggregator
from .delivery import ReminderDeliveryService, reminder_delivery_service
from .login_links import LoginLinkIssuer, login_link_issuer
from .reminder_engine import ReminderTargetEngine, reminder_engine
from .summaries import TrackingSummaryService, tracking_summary_service

__all__ = [
    "DashboardAggregator",
    "LoginLinkIssuer",
    "ReminderDeliveryService",
    "ReminderTargetEngine",
    "TrackingSummaryService",
    "dashboard_aggregator",
    "login_link_issuer",
    "reminder_delivery_service",
    "reminder_engine",
    "tracking_summary_service",
]
