"""
LuxRent Rental Booking Engine — Calendar Index
================================================
Per-item ordered storage of committed booking ranges and blackout
ranges. Owns no business rules, only interval storage and query.

Rules:
- Committed ranges for one item never overlap (insert re-checks)
- Queries return ranges in start-time order
- Blackouts are written only by inventory-side callers
  (add_blackout / remove_blackout); the reservation path reads them

Entries are kept sorted by start with a running maximum of ends.
Because the running maximum is monotonic, the first candidate for an
overlap is found by bisect and the scan stops at the first entry
starting after the query end. Committed ranges never overlap, so
their ends are already sorted and every scanned entry is a hit:
O(log n + k).
"""

from __future__ import annotations

import logging
from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Tuple

from core.concurrency import KeyedLockRegistry
from core.errors import ConflictError, NotFoundError
from core.time import DateRange

logger = logging.getLogger("luxrent.calendar")

KIND_COMMITTED = "committed"
KIND_BLACKOUT = "blackout"


@dataclass(frozen=True)
class CalendarEntry:
    """One stored range. booking_id is None for blackouts."""

    range: DateRange
    kind: str
    booking_id: Optional[str] = None
    reason: str = ""

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "booking_id": self.booking_id,
            "reason": self.reason,
            **self.range.to_dict(),
        }


# ══════════════════════════════════════════════════════════════
# STORAGE PROTOCOL
# ══════════════════════════════════════════════════════════════

class CalendarStore(Protocol):
    """
    What the availability checker and reservation engine need from
    calendar storage. In-memory for tests, Django ORM in production
    (adapters.django_store).
    """

    def query_overlaps(
        self, item_id: str, date_range: DateRange, inclusive: bool = False
    ) -> Tuple[DateRange, ...]:
        ...  # pragma: no cover

    def query_committed(
        self, item_id: str, date_range: DateRange, inclusive: bool = False
    ) -> Tuple[DateRange, ...]:
        ...  # pragma: no cover

    def query_blackouts(
        self, item_id: str, date_range: DateRange, inclusive: bool = False
    ) -> Tuple[DateRange, ...]:
        ...  # pragma: no cover

    def insert(
        self,
        item_id: str,
        date_range: DateRange,
        booking_id: str,
        *,
        buffer_hours: Optional[float] = None,
    ) -> None:
        ...  # pragma: no cover

    def remove(self, item_id: str, booking_id: str) -> DateRange:
        ...  # pragma: no cover

    def add_blackout(self, item_id: str, date_range: DateRange, reason: str = "") -> None:
        ...  # pragma: no cover

    def remove_blackout(self, item_id: str, date_range: DateRange) -> None:
        ...  # pragma: no cover

    def entries_in(self, item_id: str, window: DateRange) -> Tuple[CalendarEntry, ...]:
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# ORDERED INTERVAL LIST
# ══════════════════════════════════════════════════════════════

class _IntervalList:
    """Entries sorted by start; max_ends[i] = max(end of entries[0..i])."""

    __slots__ = ("starts", "entries", "max_ends")

    def __init__(self) -> None:
        self.starts: List[datetime] = []
        self.entries: List[CalendarEntry] = []
        self.max_ends: List[datetime] = []

    def __len__(self) -> int:
        return len(self.entries)

    def add(self, entry: CalendarEntry) -> None:
        idx = bisect_right(self.starts, entry.range.start)
        self.starts.insert(idx, entry.range.start)
        self.entries.insert(idx, entry)
        self.max_ends.insert(idx, entry.range.end)
        self._reindex_from(idx)

    def pop(self, idx: int) -> CalendarEntry:
        entry = self.entries.pop(idx)
        del self.starts[idx]
        del self.max_ends[idx]
        self._reindex_from(idx)
        return entry

    def index_of(self, date_range: DateRange, booking_id: Optional[str] = None) -> int:
        idx = bisect_left(self.starts, date_range.start)
        while idx < len(self.entries) and self.starts[idx] == date_range.start:
            entry = self.entries[idx]
            if entry.range == date_range and (booking_id is None or entry.booking_id == booking_id):
                return idx
            idx += 1
        return -1

    def overlapping(self, date_range: DateRange, inclusive: bool) -> List[CalendarEntry]:
        if inclusive:
            lo = bisect_left(self.max_ends, date_range.start)
            hi = bisect_right(self.starts, date_range.end)
            hit = date_range.touches
        else:
            lo = bisect_right(self.max_ends, date_range.start)
            hi = bisect_left(self.starts, date_range.end)
            hit = date_range.overlaps
        return [e for e in self.entries[lo:hi] if hit(e.range)]

    def _reindex_from(self, idx: int) -> None:
        running = self.max_ends[idx - 1] if idx > 0 else None
        for i in range(idx, len(self.entries)):
            end = self.entries[i].range.end
            running = end if running is None or end > running else running
            self.max_ends[i] = running


class _ItemCalendar:
    __slots__ = ("committed", "blackouts", "by_booking")

    def __init__(self) -> None:
        self.committed = _IntervalList()
        self.blackouts = _IntervalList()
        self.by_booking: Dict[str, DateRange] = {}


# ══════════════════════════════════════════════════════════════
# IN-MEMORY CALENDAR INDEX
# ══════════════════════════════════════════════════════════════

class CalendarIndex:
    """
    In-memory CalendarStore.

    Structural changes for an item are serialized on that item's own
    lock, so insert's overlap re-check and the write are atomic even
    if a caller skips the engine's reservation lock. Reads for an item
    that has never been written return empty results and store nothing.
    """

    def __init__(self) -> None:
        self._items: Dict[str, _ItemCalendar] = {}
        self._locks = KeyedLockRegistry()

    def _calendar(self, item_id: str) -> _ItemCalendar:
        cal = self._items.get(item_id)
        if cal is None:
            cal = self._items.setdefault(item_id, _ItemCalendar())
        return cal

    @property
    def item_count(self) -> int:
        return len(self._items)

    # ── queries ───────────────────────────────────────────────

    def query_committed(
        self, item_id: str, date_range: DateRange, inclusive: bool = False
    ) -> Tuple[DateRange, ...]:
        if item_id not in self._items:
            return ()
        with self._locks.hold(item_id):
            hits = self._items[item_id].committed.overlapping(date_range, inclusive)
        return tuple(e.range for e in hits)

    def query_blackouts(
        self, item_id: str, date_range: DateRange, inclusive: bool = False
    ) -> Tuple[DateRange, ...]:
        if item_id not in self._items:
            return ()
        with self._locks.hold(item_id):
            hits = self._items[item_id].blackouts.overlapping(date_range, inclusive)
        return tuple(e.range for e in hits)

    def query_overlaps(
        self, item_id: str, date_range: DateRange, inclusive: bool = False
    ) -> Tuple[DateRange, ...]:
        """Committed and blackout ranges overlapping date_range, by start."""
        return tuple(e.range for e in self._entries(item_id, date_range, inclusive))

    def entries_in(self, item_id: str, window: DateRange) -> Tuple[CalendarEntry, ...]:
        return tuple(self._entries(item_id, window, False))

    def _entries(
        self, item_id: str, date_range: DateRange, inclusive: bool
    ) -> List[CalendarEntry]:
        if item_id not in self._items:
            return []
        with self._locks.hold(item_id):
            hits = _all_overlapping(self._items[item_id], date_range, inclusive)
        return hits

    def range_for(self, item_id: str, booking_id: str) -> Optional[DateRange]:
        if item_id not in self._items:
            return None
        with self._locks.hold(item_id):
            return self._items[item_id].by_booking.get(booking_id)

    def committed_count(self, item_id: str) -> int:
        if item_id not in self._items:
            return 0
        with self._locks.hold(item_id):
            return len(self._items[item_id].committed)

    # ── committed ranges ──────────────────────────────────────

    def insert(
        self,
        item_id: str,
        date_range: DateRange,
        booking_id: str,
        *,
        buffer_hours: Optional[float] = None,
    ) -> None:
        """
        Commit date_range for booking_id.

        Without buffer_hours only committed ranges are re-checked. With
        buffer_hours the re-check matches the availability rule: the
        range widened by the buffer against committed ranges and
        blackouts, closed when the buffer is non-zero.
        """
        with self._locks.hold(item_id):
            cal = self._calendar(item_id)
            if booking_id in cal.by_booking:
                raise ConflictError(item_id, (cal.by_booking[booking_id],))
            if buffer_hours is None:
                clashes = cal.committed.overlapping(date_range, False)
            else:
                clashes = _all_overlapping(
                    cal, date_range.expand(buffer_hours), buffer_hours > 0
                )
            if clashes:
                raise ConflictError(item_id, [e.range for e in clashes])
            cal.committed.add(CalendarEntry(date_range, KIND_COMMITTED, booking_id))
            cal.by_booking[booking_id] = date_range
        logger.debug(f"Committed {booking_id} on {item_id} {date_range.start.isoformat()}")

    def remove(self, item_id: str, booking_id: str) -> DateRange:
        if item_id not in self._items:
            raise NotFoundError("calendar entry", booking_id)
        with self._locks.hold(item_id):
            cal = self._items[item_id]
            date_range = cal.by_booking.get(booking_id)
            if date_range is None:
                raise NotFoundError("calendar entry", booking_id)
            idx = cal.committed.index_of(date_range, booking_id)
            cal.committed.pop(idx)
            del cal.by_booking[booking_id]
        logger.debug(f"Released {booking_id} on {item_id}")
        return date_range

    # ── blackouts ─────────────────────────────────────────────

    def add_blackout(self, item_id: str, date_range: DateRange, reason: str = "") -> None:
        with self._locks.hold(item_id):
            self._calendar(item_id).blackouts.add(
                CalendarEntry(date_range, KIND_BLACKOUT, None, reason)
            )

    def remove_blackout(self, item_id: str, date_range: DateRange) -> None:
        missing = NotFoundError("blackout", f"{item_id}@{date_range.start.isoformat()}")
        if item_id not in self._items:
            raise missing
        with self._locks.hold(item_id):
            blackouts = self._items[item_id].blackouts
            idx = blackouts.index_of(date_range)
            if idx < 0:
                raise missing
            blackouts.pop(idx)

    def truncate(self) -> None:
        self._items.clear()


def _all_overlapping(
    cal: _ItemCalendar, date_range: DateRange, inclusive: bool
) -> List[CalendarEntry]:
    hits = (
        cal.committed.overlapping(date_range, inclusive)
        + cal.blackouts.overlapping(date_range, inclusive)
    )
    hits.sort(key=lambda e: (e.range.start, e.range.end))
    return hits
