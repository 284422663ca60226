"""
LuxRent Rental Booking — Calendar Index Tests
===============================================
Ordered committed ranges, blackouts and overlap queries.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

import pytest

from core.errors import ConflictError, NotFoundError
from core.time import DateRange
from engines.rental_booking.calendar import KIND_BLACKOUT, KIND_COMMITTED, CalendarIndex

T0 = datetime(2026, 4, 1, 0, 0, 0, tzinfo=timezone.utc)
ITEM = "yacht-azimut-68"


def day_range(first: int, last: int) -> DateRange:
    """[T0 + first days, T0 + last days)."""
    return DateRange(T0 + timedelta(days=first), T0 + timedelta(days=last))


class TestCommittedRanges:
    def test_insert_and_query(self):
        cal = CalendarIndex()
        cal.insert(ITEM, day_range(1, 3), "b1")
        assert cal.query_overlaps(ITEM, day_range(2, 4)) == (day_range(1, 3),)

    def test_empty_calendar_has_no_overlaps(self):
        assert CalendarIndex().query_overlaps(ITEM, day_range(0, 1)) == ()

    def test_results_in_start_order(self):
        cal = CalendarIndex()
        cal.insert(ITEM, day_range(10, 12), "b3")
        cal.insert(ITEM, day_range(1, 3), "b1")
        cal.insert(ITEM, day_range(5, 7), "b2")
        assert cal.query_committed(ITEM, day_range(0, 20)) == (
            day_range(1, 3), day_range(5, 7), day_range(10, 12),
        )

    def test_query_excludes_non_overlapping_neighbours(self):
        cal = CalendarIndex()
        for i, first in enumerate(range(0, 40, 4)):
            cal.insert(ITEM, day_range(first, first + 2), f"b{i}")
        assert cal.query_committed(ITEM, day_range(10, 13)) == (day_range(12, 14),)
        assert cal.query_committed(ITEM, day_range(9, 13)) == (day_range(8, 10), day_range(12, 14))

    def test_overlapping_insert_conflicts(self):
        cal = CalendarIndex()
        cal.insert(ITEM, day_range(1, 3), "b1")
        with pytest.raises(ConflictError) as exc:
            cal.insert(ITEM, day_range(2, 4), "b2")
        assert exc.value.conflicts == (day_range(1, 3),)
        assert cal.committed_count(ITEM) == 1

    def test_back_to_back_insert_allowed(self):
        cal = CalendarIndex()
        cal.insert(ITEM, day_range(1, 3), "b1")
        cal.insert(ITEM, day_range(3, 5), "b2")
        assert cal.committed_count(ITEM) == 2

    def test_duplicate_booking_id_conflicts(self):
        cal = CalendarIndex()
        cal.insert(ITEM, day_range(1, 3), "b1")
        with pytest.raises(ConflictError):
            cal.insert(ITEM, day_range(5, 6), "b1")

    def test_items_are_independent(self):
        cal = CalendarIndex()
        cal.insert(ITEM, day_range(1, 3), "b1")
        cal.insert("jet-g650", day_range(1, 3), "b2")
        assert cal.query_overlaps("jet-g650", day_range(0, 5)) == (day_range(1, 3),)

    def test_remove_frees_range(self):
        cal = CalendarIndex()
        cal.insert(ITEM, day_range(1, 3), "b1")
        assert cal.remove(ITEM, "b1") == day_range(1, 3)
        assert cal.query_overlaps(ITEM, day_range(0, 5)) == ()
        cal.insert(ITEM, day_range(2, 4), "b2")

    def test_remove_unknown_booking(self):
        with pytest.raises(NotFoundError) as exc:
            CalendarIndex().remove(ITEM, "nope")
        assert exc.value.identifier == "nope"

    def test_remove_keeps_other_entries_queryable(self):
        cal = CalendarIndex()
        cal.insert(ITEM, day_range(1, 10), "long")
        cal.insert(ITEM, day_range(12, 13), "short")
        cal.remove(ITEM, "long")
        assert cal.query_committed(ITEM, day_range(0, 20)) == (day_range(12, 13),)
        assert cal.range_for(ITEM, "short") == day_range(12, 13)
        assert cal.range_for(ITEM, "long") is None


class TestInclusiveQueries:
    def test_touching_range_found_only_when_inclusive(self):
        cal = CalendarIndex()
        cal.insert(ITEM, day_range(1, 3), "b1")
        assert cal.query_committed(ITEM, day_range(3, 4)) == ()
        assert cal.query_committed(ITEM, day_range(3, 4), inclusive=True) == (day_range(1, 3),)


class TestBlackouts:
    def test_blackouts_reported_with_committed(self):
        cal = CalendarIndex()
        cal.insert(ITEM, day_range(5, 6), "b1")
        cal.add_blackout(ITEM, day_range(2, 4), reason="hull cleaning")
        assert cal.query_overlaps(ITEM, day_range(0, 10)) == (day_range(2, 4), day_range(5, 6))

    def test_blackouts_may_overlap_each_other(self):
        cal = CalendarIndex()
        cal.add_blackout(ITEM, day_range(0, 30), reason="refit")
        cal.add_blackout(ITEM, day_range(2, 3), reason="survey")
        assert cal.query_blackouts(ITEM, day_range(20, 21)) == (day_range(0, 30),)
        assert cal.query_blackouts(ITEM, day_range(2, 3)) == (day_range(0, 30), day_range(2, 3))

    def test_blackout_does_not_block_index_insert(self):
        # the index guards committed ranges only; blackouts are the checker's job
        cal = CalendarIndex()
        cal.add_blackout(ITEM, day_range(1, 3))
        cal.insert(ITEM, day_range(1, 3), "b1")

    def test_remove_blackout(self):
        cal = CalendarIndex()
        cal.add_blackout(ITEM, day_range(1, 3))
        cal.remove_blackout(ITEM, day_range(1, 3))
        assert cal.query_blackouts(ITEM, day_range(0, 5)) == ()
        with pytest.raises(NotFoundError):
            cal.remove_blackout(ITEM, day_range(1, 3))

    def test_entries_in_window(self):
        cal = CalendarIndex()
        cal.insert(ITEM, day_range(5, 6), "b1")
        cal.add_blackout(ITEM, day_range(2, 4), reason="maintenance")
        entries = cal.entries_in(ITEM, day_range(0, 10))
        assert [e.kind for e in entries] == [KIND_BLACKOUT, KIND_COMMITTED]
        assert entries[0].reason == "maintenance"
        assert entries[1].booking_id == "b1"


class TestAgainstBruteForce:
    def test_random_blackout_queries_match_linear_scan(self):
        rng = random.Random(7)
        cal = CalendarIndex()
        stored = []
        for _ in range(300):
            first = rng.randint(0, 500)
            r = DateRange(T0 + timedelta(hours=first),
                          T0 + timedelta(hours=first + rng.randint(1, 60)))
            cal.add_blackout(ITEM, r)
            stored.append(r)

        for _ in range(300):
            first = rng.randint(-20, 560)
            q = DateRange(T0 + timedelta(hours=first),
                          T0 + timedelta(hours=first + rng.randint(1, 30)))
            inclusive = rng.random() < 0.5
            hit = q.touches if inclusive else q.overlaps
            expected = sorted((r for r in stored if hit(r)), key=lambda r: (r.start, r.end))
            got = cal.query_blackouts(ITEM, q, inclusive=inclusive)
            assert sorted(got, key=lambda r: (r.start, r.end)) == expected


class TestUnknownItems:
    def test_reads_leave_no_state_behind(self):
        cal = CalendarIndex()
        window = day_range(0, 5)
        assert cal.query_committed("car-unknown", window) == ()
        assert cal.query_blackouts("car-unknown", window, inclusive=True) == ()
        assert cal.query_overlaps("car-unknown", window) == ()
        assert cal.entries_in("car-unknown", window) == ()
        assert cal.range_for("car-unknown", "b1") is None
        assert cal.committed_count("car-unknown") == 0
        with pytest.raises(NotFoundError):
            cal.remove("car-unknown", "b1")
        with pytest.raises(NotFoundError):
            cal.remove_blackout("car-unknown", window)
        assert cal.item_count == 0

    def test_writes_create_the_item(self):
        cal = CalendarIndex()
        cal.add_blackout(ITEM, day_range(0, 1))
        cal.insert("jet-g650", day_range(0, 1), "b1")
        assert cal.item_count == 2


class TestBufferedInsert:
    def test_rechecks_buffer_against_committed(self):
        cal = CalendarIndex()
        cal.insert(ITEM, day_range(1, 3), "b1")
        start = T0 + timedelta(days=3, hours=4)
        with pytest.raises(ConflictError) as exc:
            cal.insert(ITEM, DateRange(start, start + timedelta(days=1)), "b2", buffer_hours=4)
        assert exc.value.conflicts == (day_range(1, 3),)
        later = start + timedelta(seconds=1)
        cal.insert(ITEM, DateRange(later, later + timedelta(days=1)), "b2", buffer_hours=4)

    def test_rechecks_blackouts(self):
        cal = CalendarIndex()
        cal.add_blackout(ITEM, day_range(10, 11), reason="survey")
        with pytest.raises(ConflictError):
            cal.insert(ITEM, day_range(11, 12), "b1", buffer_hours=1)
        with pytest.raises(ConflictError):
            cal.insert(ITEM, day_range(10, 12), "b1", buffer_hours=0)
        assert cal.committed_count(ITEM) == 0

    def test_zero_buffer_allows_back_to_back(self):
        cal = CalendarIndex()
        cal.insert(ITEM, day_range(1, 3), "b1", buffer_hours=0)
        cal.insert(ITEM, day_range(3, 5), "b2", buffer_hours=0)
        assert cal.committed_count(ITEM) == 2
