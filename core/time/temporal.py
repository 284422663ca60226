"""
LuxRent Core Time — Date Ranges
=================================
Half-open [start, end) ranges used for bookings and blackouts.
All functions take explicit datetime arguments — no hidden clock access.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from core.errors import InvalidRangeError

SECONDS_PER_DAY = 86400


# ══════════════════════════════════════════════════════════════
# DATE RANGE: half-open interval [start, end)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DateRange:
    """
    A half-open time interval [start, end).

    Invariant: start < end (enforced at construction).
    Two ranges overlap iff start_A < end_B and start_B < end_A,
    so back-to-back ranges do not collide.
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if not isinstance(self.start, datetime) or not isinstance(self.end, datetime):
            raise InvalidRangeError("start and end must be datetimes.")
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise InvalidRangeError("DateRange requires timezone-aware datetimes.")
        if self.end <= self.start:
            raise InvalidRangeError(
                f"DateRange start ({self.start.isoformat()}) must be "
                f"before end ({self.end.isoformat()})."
            )

    def contains(self, dt: datetime) -> bool:
        return self.start <= dt < self.end

    def overlaps(self, other: DateRange) -> bool:
        return self.start < other.end and other.start < self.end

    def touches(self, other: DateRange) -> bool:
        """Closed-interval comparison: shared endpoints count as contact."""
        return self.start <= other.end and other.start <= self.end

    def duration(self) -> timedelta:
        return self.end - self.start

    def expand(self, hours: float) -> DateRange:
        """Widen the range by `hours` on both sides."""
        if hours < 0:
            raise InvalidRangeError(f"buffer hours must be >= 0, got {hours}.")
        pad = timedelta(hours=hours)
        return DateRange(self.start - pad, self.end + pad)

    def billable_days(self) -> int:
        """Duration in days, partial days rounded up (26h bills as 2)."""
        return billable_days(self)

    def to_dict(self) -> dict:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}

    @classmethod
    def from_dict(cls, data: dict) -> DateRange:
        return cls(
            start=datetime.fromisoformat(data["start"]),
            end=datetime.fromisoformat(data["end"]),
        )


# ══════════════════════════════════════════════════════════════
# PURE TEMPORAL FUNCTIONS
# ══════════════════════════════════════════════════════════════

def billable_days(date_range: DateRange) -> int:
    """Ceiling of the range duration in whole days."""
    delta = date_range.duration()
    micros = (delta.days * SECONDS_PER_DAY + delta.seconds) * 1_000_000 + delta.microseconds
    return max(1, -(-micros // (SECONDS_PER_DAY * 1_000_000)))


def hours_until(start: datetime, now: datetime) -> float:
    """Hours from `now` until `start` (negative if already started)."""
    return (start - now).total_seconds() / 3600


def is_expired(deadline: datetime, now: datetime) -> bool:
    """True once `now` has reached `deadline`."""
    return now >= deadline
