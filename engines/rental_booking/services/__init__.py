"""
LuxRent Rental Booking Engine — Projection Store + Reservation Engine
=======================================================================
ReservationEngine performs the atomic check-then-reserve transition:

    validate → lock(item) → availability → price → insert → Booking
                 └────────── released on every exit path ──────────┘

Locks are per item (KeyedLockRegistry); different items reserve in
parallel. cancel / expire / confirm / complete take the same item lock.
Every status change is applied to BookingProjectionStore as an event.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional

from core.concurrency import KeyedLockRegistry, LockTimeoutError
from core.config import BookingConfig
from core.errors import (
    ConflictError,
    InvalidTransitionError,
    ItemBusyError,
    NotFoundError,
    ValidationError,
)
from core.time import Clock, DateRange, SystemClock, hours_until, is_expired
from engines.rental_booking.availability import AvailabilityChecker
from engines.rental_booking.calendar import CalendarStore
from engines.rental_booking.collaborators import BookingRepository, InventoryProvider
from engines.rental_booking.commands import validate_customer_id, validate_request
from engines.rental_booking.events import (
    BOOKING_CANCELLED_V1,
    BOOKING_COMPLETED_V1,
    BOOKING_CONFIRMED_V1,
    BOOKING_EXPIRED_V1,
    BOOKING_RESERVED_V1,
    CANCEL_REASON_CUSTOMER,
    CANCEL_REASON_PAYMENT_TIMEOUT,
    VALID_CANCEL_REASONS,
    build_booking_cancelled_payload,
    build_booking_reserved_payload,
    build_status_payload,
)
from engines.rental_booking.models import (
    ALLOWED_TRANSITIONS,
    AvailabilityResult,
    Booking,
    BookingStatus,
    InventoryItem,
    PriceBreakdown,
    PricingRequest,
)
from engines.rental_booking.policies import (
    item_must_be_rentable_policy,
    location_must_be_served_policy,
    maximum_advance_policy,
    minimum_notice_policy,
    refund_cents,
    refund_share,
)
from engines.rental_booking.pricing import PriceCalculator

logger = logging.getLogger("luxrent.booking")


class BookingProjectionStore:
    """
    In-memory read model of booking events.
    Indexes bookings by customer and by item for account pages and
    fleet dashboards.
    """

    def __init__(self):
        self._events:      List[dict]           = []
        self._bookings:    Dict[str, dict]      = {}
        self._by_customer: Dict[str, List[str]] = {}
        self._by_item:     Dict[str, List[str]] = {}

    def apply(self, event_type: str, payload: dict) -> None:
        self._events.append({"event_type": event_type, "payload": payload})

        if event_type == BOOKING_RESERVED_V1:
            bid = payload["booking_id"]
            self._bookings[bid] = dict(payload)
            self._by_customer.setdefault(payload["customer_id"], []).append(bid)
            self._by_item.setdefault(payload["item_id"], []).append(bid)

        elif event_type in (BOOKING_CONFIRMED_V1, BOOKING_COMPLETED_V1):
            b = self._bookings.get(payload["booking_id"])
            if b:
                b["status"] = payload["status"]

        elif event_type in (BOOKING_CANCELLED_V1, BOOKING_EXPIRED_V1):
            b = self._bookings.get(payload["booking_id"])
            if b:
                b["status"]        = payload["status"]
                b["cancel_reason"] = payload.get("reason", "")
                b["refund"]        = payload.get("refund", 0)

    # ── queries ───────────────────────────────────────────────

    def get_booking(self, booking_id: str) -> Optional[dict]:
        return self._bookings.get(booking_id)

    def list_for_customer(self, customer_id: str) -> List[dict]:
        return [self._bookings[b] for b in self._by_customer.get(customer_id, [])]

    def list_for_item(self, item_id: str) -> List[dict]:
        return [self._bookings[b] for b in self._by_item.get(item_id, [])]

    def list_by_status(self, status: str) -> List[dict]:
        return [b for b in self._bookings.values() if b.get("status") == status]

    def events_for(self, booking_id: str) -> List[dict]:
        return [e for e in self._events if e["payload"].get("booking_id") == booking_id]

    @property
    def event_count(self) -> int:
        return len(self._events)

    def truncate(self):
        self._events.clear()
        self._bookings.clear()
        self._by_customer.clear()
        self._by_item.clear()


def _new_booking_id() -> str:
    return f"bkg_{uuid.uuid4().hex}"


class ReservationEngine:

    def __init__(
        self,
        *,
        inventory: InventoryProvider,
        calendar: CalendarStore,
        pricing: PriceCalculator,
        bookings: BookingRepository,
        config: Optional[BookingConfig] = None,
        clock: Optional[Clock] = None,
        locks: Optional[KeyedLockRegistry] = None,
        projection_store: Optional[BookingProjectionStore] = None,
        id_factory: Callable[[], str] = _new_booking_id,
    ):
        self._inventory    = inventory
        self._calendar     = calendar
        self._pricing      = pricing
        self._bookings     = bookings
        self._config       = config or BookingConfig()
        self._clock        = clock or SystemClock()
        self._locks        = locks or KeyedLockRegistry()
        self._projection   = projection_store or BookingProjectionStore()
        self._new_id       = id_factory
        self._availability = AvailabilityChecker(calendar=calendar, config=self._config)

    @property
    def projection(self) -> BookingProjectionStore:
        return self._projection

    @property
    def availability(self) -> AvailabilityChecker:
        return self._availability

    # ── reserve ───────────────────────────────────────────────

    def reserve(self, request: PricingRequest, customer_id: str) -> Booking:
        validate_request(request, self._pricing.tier_table)
        validate_customer_id(customer_id)
        item = self._inventory.get_item(request.item_id)
        now = self._clock.now_utc()
        self._check_policies(item, request, now)

        try:
            with self._locks.hold(item.item_id, timeout=self._config.lock_timeout_seconds):
                booking = self._reserve_locked(request, item, customer_id, now)
        except LockTimeoutError:
            raise ItemBusyError(item.item_id) from None

        logger.info(
            f"Reserved {booking.booking_id} for {customer_id} on {item.item_id} "
            f"[{booking.range.start.isoformat()}, {booking.range.end.isoformat()})"
        )
        return booking

    def _reserve_locked(
        self, request: PricingRequest, item: InventoryItem, customer_id: str, now: datetime
    ) -> Booking:
        result = self._availability.is_available(item, request.range)
        if not result.available:
            logger.warning(
                f"Conflict on {item.item_id}: {len(result.conflicts)} overlapping range(s)"
            )
            raise ConflictError(item.item_id, result.conflicts)

        price = self._pricing.compute(request, item)

        booking_id = self._new_id()
        self._calendar.insert(
            item.item_id, request.range, booking_id,
            buffer_hours=self._availability.buffer_hours_for(item),
        )
        booking = Booking(
            booking_id=booking_id,
            customer_id=customer_id,
            item_id=item.item_id,
            range=request.range,
            price=price,
            status=BookingStatus.PENDING_PAYMENT,
            created_at=now,
            payment_deadline=now + timedelta(minutes=self._config.payment_window_minutes),
            tier=request.tier,
            pickup_location=request.pickup_location,
        )
        try:
            self._bookings.save(booking)
        except Exception:
            # leave no committed range without a booking record
            self._calendar.remove(item.item_id, booking_id)
            raise
        self._projection.apply(BOOKING_RESERVED_V1, build_booking_reserved_payload(booking))
        return booking

    def _check_policies(self, item: InventoryItem, request: PricingRequest, now: datetime) -> None:
        problems: Dict[str, str] = {}
        err = item_must_be_rentable_policy(item)
        if err:
            problems["item_id"] = err
        err = location_must_be_served_policy(item, request.pickup_location)
        if err:
            problems["pickup_location"] = err
        if self._config.enforce_booking_window:
            err = (minimum_notice_policy(item, request.range, now, self._config)
                   or maximum_advance_policy(item, request.range, now, self._config))
            if err:
                problems["range"] = err
        if problems:
            raise ValidationError.from_problems(problems)

    # ── status transitions ────────────────────────────────────

    def cancel(self, booking_id: str, reason: str = CANCEL_REASON_CUSTOMER) -> Booking:
        """Release the range and mark cancelled. Cancelling twice is a no-op."""
        if reason not in VALID_CANCEL_REASONS:
            raise ValidationError(f"unknown cancel reason '{reason}'.", fields=("reason",))
        return self._release(booking_id, reason, BOOKING_CANCELLED_V1)

    def expire(self, booking_id: str) -> Booking:
        """
        Payment-timeout hook for an external scheduler. Same effect as
        cancel for an unpaid booking; a booking that was confirmed in the
        meantime is left untouched.
        """
        return self._release(
            booking_id, CANCEL_REASON_PAYMENT_TIMEOUT, BOOKING_EXPIRED_V1,
            only_from=BookingStatus.PENDING_PAYMENT,
        )

    def expire_overdue(self, now: Optional[datetime] = None) -> List[str]:
        """Expire every pending booking whose payment window has passed."""
        now = now or self._clock.now_utc()
        expired = []
        for booking in self._bookings.list_by_status(BookingStatus.PENDING_PAYMENT):
            if is_expired(booking.payment_deadline, now):
                if self.expire(booking.booking_id).status == BookingStatus.CANCELLED:
                    expired.append(booking.booking_id)
        return expired

    def confirm(self, booking_id: str) -> Booking:
        """Payment captured: pending-payment → confirmed."""
        return self._transition(booking_id, BookingStatus.CONFIRMED, BOOKING_CONFIRMED_V1)

    def complete(self, booking_id: str) -> Booking:
        """Rental returned: confirmed → completed, range released."""
        return self._transition(booking_id, BookingStatus.COMPLETED, BOOKING_COMPLETED_V1)

    def _release(
        self,
        booking_id: str,
        reason: str,
        event_type: str,
        only_from: Optional[BookingStatus] = None,
    ) -> Booking:
        booking = self.get_booking(booking_id)
        with self._locks.hold(booking.item_id):
            booking = self.get_booking(booking_id)
            if only_from is not None and booking.status != only_from:
                logger.info(f"Release skipped for {booking_id}: {booking.status.value}")
                return booking
            if booking.status == BookingStatus.CANCELLED:
                return booking
            if BookingStatus.CANCELLED not in ALLOWED_TRANSITIONS[booking.status]:
                raise InvalidTransitionError(
                    booking_id, booking.status.value, BookingStatus.CANCELLED.value
                )
            now = self._clock.now_utc()
            refund = None
            if booking.status == BookingStatus.CONFIRMED:
                refund = self._refund_for(booking, now)["refund"]
            self._remove_range(booking)
            updated = booking.with_status(
                BookingStatus.CANCELLED,
                cancelled_at=now, cancel_reason=reason, refund=refund,
            )
            self._bookings.save(updated)
            self._projection.apply(event_type, build_booking_cancelled_payload(updated, now))
        logger.info(f"Cancelled {booking_id} on {booking.item_id} ({reason})")
        return updated

    def _transition(self, booking_id: str, target: BookingStatus, event_type: str) -> Booking:
        booking = self.get_booking(booking_id)
        with self._locks.hold(booking.item_id):
            booking = self.get_booking(booking_id)
            if booking.status == target:
                return booking
            if target not in ALLOWED_TRANSITIONS[booking.status]:
                raise InvalidTransitionError(booking_id, booking.status.value, target.value)
            if target == BookingStatus.COMPLETED:
                self._remove_range(booking)
            updated = booking.with_status(target)
            self._bookings.save(updated)
            now = self._clock.now_utc()
            self._projection.apply(event_type, build_status_payload(updated, now))
        logger.info(f"Booking {booking_id} → {target.value}")
        return updated

    def _remove_range(self, booking: Booking) -> None:
        try:
            self._calendar.remove(booking.item_id, booking.booking_id)
        except NotFoundError:
            # a retried release after a partial failure finds the range gone
            logger.warning(f"Range for {booking.booking_id} already absent from calendar")

    # ── queries ───────────────────────────────────────────────

    def get_booking(self, booking_id: str) -> Booking:
        booking = self._bookings.get(booking_id)
        if booking is None:
            raise NotFoundError("booking", booking_id)
        return booking

    def quote(self, request: PricingRequest) -> PriceBreakdown:
        """Price without reserving (UI preview)."""
        validate_request(request, self._pricing.tier_table)
        item = self._inventory.get_item(request.item_id)
        return self._pricing.compute(request, item)

    def check_availability(
        self, item_id: str, date_range: DateRange, buffer_hours: Optional[float] = None
    ) -> AvailabilityResult:
        item = self._inventory.get_item(item_id)
        return self._availability.is_available(item, date_range, buffer_hours)

    def check_many(
        self, item_ids: Iterable[str], date_range: DateRange
    ) -> Dict[str, AvailabilityResult]:
        items = [self._inventory.get_item(i) for i in item_ids]
        return self._availability.check_many(items, date_range)

    def availability_calendar(self, item_id: str, window: DateRange) -> dict:
        self._inventory.get_item(item_id)
        return self._availability.availability_calendar(item_id, window)

    def calculate_refund(self, booking_id: str, at: Optional[datetime] = None) -> dict:
        """Refund the customer would receive if the booking were cancelled at `at`."""
        booking = self.get_booking(booking_id)
        return self._refund_for(booking, at or self._clock.now_utc())

    def _refund_for(self, booking: Booking, at: datetime) -> dict:
        item = self._inventory.get_item(booking.item_id)
        hours = hours_until(booking.range.start, at)
        share = refund_share(item.item_type, hours)
        return {
            "booking_id": booking.booking_id,
            "hours_before_start": hours,
            "share": str(share),
            "refund": refund_cents(
                booking.price.total, share, self._config.refund_processing_fee_rate
            ),
            "security_deposit": booking.price.security_deposit,
            "currency": booking.price.currency,
        }
