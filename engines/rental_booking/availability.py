"""
LuxRent Rental Booking Engine — Availability Checker
======================================================
Decides whether [start, end) is bookable for an item.

- The query range is widened by the buffer (turnaround/cleaning time)
  on both sides before committed ranges and blackouts are checked.
- With a non-zero buffer the comparison is closed: a gap of exactly
  buffer_hours to a neighbouring booking is a conflict, one second
  more is free. With a zero buffer, back-to-back rentals are allowed.
- The item's minimum rental is enforced (InvalidRangeError).
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from core.config import BookingConfig
from core.errors import InvalidRangeError
from core.time import DateRange
from engines.rental_booking.calendar import KIND_BLACKOUT, CalendarStore
from engines.rental_booking.models import AvailabilityResult, InventoryItem

logger = logging.getLogger("luxrent.availability")


class AvailabilityChecker:

    def __init__(self, *, calendar: CalendarStore, config: Optional[BookingConfig] = None):
        self._calendar = calendar
        self._config = config or BookingConfig()

    def buffer_hours_for(self, item: InventoryItem) -> float:
        if item.buffer_hours is not None:
            return item.buffer_hours
        return self._config.buffer_hours_for(item.item_type)

    def check_minimum_rental(self, item: InventoryItem, date_range: DateRange) -> None:
        minimum = item.minimum_rental
        if date_range.duration() < minimum.as_timedelta():
            err = InvalidRangeError(
                f"item '{item.item_id}' requires at least "
                f"{minimum.days} day(s) {minimum.hours} hour(s)."
            )
            err.details.update({"minimum_days": minimum.days, "minimum_hours": minimum.hours})
            raise err

    def is_available(
        self,
        item: InventoryItem,
        date_range: DateRange,
        buffer_hours: Optional[float] = None,
    ) -> AvailabilityResult:
        """
        Returns AvailabilityResult(available, conflicts). Conflicts hold
        every overlapping committed or blackout range, start-ordered.
        """
        self.check_minimum_rental(item, date_range)
        if buffer_hours is None:
            buffer_hours = self.buffer_hours_for(item)
        window = date_range.expand(buffer_hours)
        inclusive = buffer_hours > 0

        committed = self._calendar.query_committed(item.item_id, window, inclusive)
        blackouts = self._calendar.query_blackouts(item.item_id, window, inclusive)
        if not committed and not blackouts:
            return AvailabilityResult(True, ())

        conflicts = tuple(sorted(committed + blackouts, key=lambda r: (r.start, r.end)))
        logger.debug(
            f"{item.item_id} unavailable for {date_range.start.isoformat()}: "
            f"{len(committed)} booking(s), {len(blackouts)} blackout(s)"
        )
        return AvailabilityResult(False, conflicts)

    def check_many(
        self,
        items: Iterable[InventoryItem],
        date_range: DateRange,
        buffer_hours: Optional[float] = None,
    ) -> Dict[str, AvailabilityResult]:
        return {
            item.item_id: self.is_available(item, date_range, buffer_hours)
            for item in items
        }

    def availability_calendar(self, item_id: str, window: DateRange) -> dict:
        """Bookings and blackouts intersecting a display window."""
        bookings, blackouts = [], []
        for entry in self._calendar.entries_in(item_id, window):
            (blackouts if entry.kind == KIND_BLACKOUT else bookings).append(entry.to_dict())
        return {
            "item_id": item_id,
            "window": window.to_dict(),
            "bookings": bookings,
            "blackouts": blackouts,
        }
