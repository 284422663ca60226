"""
LuxRent Core Time — Public API
================================
Injectable clock and half-open date ranges.
"""

from core.time.clock import Clock, FixedClock, SystemClock
from core.time.temporal import DateRange, billable_days, hours_until, is_expired

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "DateRange",
    "billable_days",
    "hours_until",
    "is_expired",
]
