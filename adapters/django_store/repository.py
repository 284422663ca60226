"""
LuxRent Django Store — Repositories
=====================================
Django ORM implementations of CalendarStore and BookingRepository.

Overlap queries are range filters on (item_id, start) ordered by start.
Committed inserts and removals run in transaction.atomic() holding the
item's RentalItemLock row (select_for_update), so the overlap re-check
and the write are atomic across processes on databases that support
row locks.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import List, Optional, Tuple

from django.db import IntegrityError, transaction

from adapters.django_store.models import (
    BookingRecord,
    CalendarEntryRecord,
    EntryKind,
    RentalItemLock,
)
from core.errors import ConflictError, NotFoundError
from core.time import DateRange
from engines.rental_booking.calendar import CalendarEntry
from engines.rental_booking.models import (
    Booking,
    BookingStatus,
    PriceBreakdown,
    ServiceTier,
)

logger = logging.getLogger("luxrent.store")


def _to_range(row) -> DateRange:
    return DateRange(row.start, row.end)


def _lock_item(item_id: str) -> None:
    """Create-or-lock the item's lock row. Caller holds transaction.atomic()."""
    RentalItemLock.objects.get_or_create(item_id=item_id)
    RentalItemLock.objects.select_for_update().get(item_id=item_id)


# ══════════════════════════════════════════════════════════════
# CALENDAR STORE
# ══════════════════════════════════════════════════════════════

class DjangoCalendarStore:

    def _overlapping(self, item_id: str, date_range: DateRange, inclusive: bool, kinds):
        query = CalendarEntryRecord.objects.filter(item_id=item_id, kind__in=kinds)
        if inclusive:
            query = query.filter(start__lte=date_range.end, end__gte=date_range.start)
        else:
            query = query.filter(start__lt=date_range.end, end__gt=date_range.start)
        return query.order_by("start", "end")

    def query_committed(
        self, item_id: str, date_range: DateRange, inclusive: bool = False
    ) -> Tuple[DateRange, ...]:
        rows = self._overlapping(item_id, date_range, inclusive, [EntryKind.COMMITTED])
        return tuple(_to_range(r) for r in rows)

    def query_blackouts(
        self, item_id: str, date_range: DateRange, inclusive: bool = False
    ) -> Tuple[DateRange, ...]:
        rows = self._overlapping(item_id, date_range, inclusive, [EntryKind.BLACKOUT])
        return tuple(_to_range(r) for r in rows)

    def query_overlaps(
        self, item_id: str, date_range: DateRange, inclusive: bool = False
    ) -> Tuple[DateRange, ...]:
        rows = self._overlapping(
            item_id, date_range, inclusive, [EntryKind.COMMITTED, EntryKind.BLACKOUT]
        )
        return tuple(_to_range(r) for r in rows)

    def entries_in(self, item_id: str, window: DateRange) -> Tuple[CalendarEntry, ...]:
        rows = self._overlapping(
            item_id, window, False, [EntryKind.COMMITTED, EntryKind.BLACKOUT]
        )
        return tuple(
            CalendarEntry(_to_range(r), r.kind, r.booking_id, r.reason) for r in rows
        )

    def insert(
        self,
        item_id: str,
        date_range: DateRange,
        booking_id: str,
        *,
        buffer_hours: Optional[float] = None,
    ) -> None:
        """
        With buffer_hours the buffered availability rule (committed and
        blackout ranges) is re-checked under the item row lock, so
        engines in separate processes cannot commit inside each other's
        buffer.
        """
        try:
            with transaction.atomic():
                _lock_item(item_id)
                if buffer_hours is None:
                    clashes = self.query_committed(item_id, date_range)
                else:
                    clashes = self.query_overlaps(
                        item_id, date_range.expand(buffer_hours), inclusive=buffer_hours > 0
                    )
                if clashes:
                    raise ConflictError(item_id, clashes)
                CalendarEntryRecord.objects.create(
                    item_id=item_id,
                    start=date_range.start,
                    end=date_range.end,
                    kind=EntryKind.COMMITTED,
                    booking_id=booking_id,
                )
        except IntegrityError:
            logger.warning(f"Duplicate calendar entry for booking {booking_id}")
            raise ConflictError(item_id, (date_range,)) from None

    def remove(self, item_id: str, booking_id: str) -> DateRange:
        with transaction.atomic():
            _lock_item(item_id)
            row = CalendarEntryRecord.objects.filter(
                item_id=item_id, booking_id=booking_id, kind=EntryKind.COMMITTED
            ).first()
            if row is None:
                raise NotFoundError("calendar entry", booking_id)
            date_range = _to_range(row)
            row.delete()
        return date_range

    def add_blackout(self, item_id: str, date_range: DateRange, reason: str = "") -> None:
        CalendarEntryRecord.objects.create(
            item_id=item_id,
            start=date_range.start,
            end=date_range.end,
            kind=EntryKind.BLACKOUT,
            reason=reason,
        )

    def remove_blackout(self, item_id: str, date_range: DateRange) -> None:
        row = CalendarEntryRecord.objects.filter(
            item_id=item_id, kind=EntryKind.BLACKOUT,
            start=date_range.start, end=date_range.end,
        ).first()
        if row is None:
            raise NotFoundError("blackout", f"{item_id}@{date_range.start.isoformat()}")
        row.delete()


# ══════════════════════════════════════════════════════════════
# BOOKING REPOSITORY
# ══════════════════════════════════════════════════════════════

def _to_booking(row: BookingRecord) -> Booking:
    return Booking(
        booking_id=row.booking_id,
        customer_id=row.customer_id,
        item_id=row.item_id,
        range=DateRange(row.start, row.end),
        price=PriceBreakdown(**row.price),
        status=BookingStatus(row.status),
        created_at=row.created_at,
        payment_deadline=row.payment_deadline,
        tier=ServiceTier(row.tier),
        pickup_location=row.pickup_location,
        cancelled_at=row.cancelled_at,
        cancel_reason=row.cancel_reason,
        refund=row.refund,
    )


class DjangoBookingRepository:

    def save(self, booking: Booking) -> None:
        BookingRecord.objects.update_or_create(
            booking_id=booking.booking_id,
            defaults={
                "customer_id": booking.customer_id,
                "item_id": booking.item_id,
                "start": booking.range.start,
                "end": booking.range.end,
                "tier": booking.tier.value,
                "pickup_location": booking.pickup_location,
                "status": booking.status.value,
                "price": dataclasses.asdict(booking.price),
                "created_at": booking.created_at,
                "payment_deadline": booking.payment_deadline,
                "cancelled_at": booking.cancelled_at,
                "cancel_reason": booking.cancel_reason,
                "refund": booking.refund,
            },
        )

    def get(self, booking_id: str) -> Optional[Booking]:
        row = BookingRecord.objects.filter(booking_id=booking_id).first()
        return _to_booking(row) if row else None

    def list_by_status(self, status: BookingStatus) -> List[Booking]:
        rows = BookingRecord.objects.filter(status=status.value).order_by("created_at", "booking_id")
        return [_to_booking(r) for r in rows]

    def list_for_customer(self, customer_id: str) -> List[Booking]:
        rows = BookingRecord.objects.filter(customer_id=customer_id).order_by("created_at")
        return [_to_booking(r) for r in rows]
