"""
Pure tracking pipeline: time windows, classification and aggregation.
"""

from .aggregation import PeriodAggregator
from .classification import StatusClassifier, is_at_risk, total_hours
from .time_windows import TimeWindowCalculator

__all__ = [
    "PeriodAggregator",
    "StatusClassifier",
    "TimeWindowCalculator",
    "is_at_risk",
    "total_hours",
]
