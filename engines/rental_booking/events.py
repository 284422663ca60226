"""
LuxRent Rental Booking Engine — Event Types and Payload Builders
==================================================================
Engine: rental_booking
Scope:  Booking lifecycle — reserve, confirm, cancel, expire, complete.
        Every status change is recorded as one event and applied to
        the BookingProjectionStore.
"""

from __future__ import annotations

from datetime import datetime

from engines.rental_booking.models import Booking

BOOKING_RESERVED_V1  = "rental.booking.reserved.v1"
BOOKING_CONFIRMED_V1 = "rental.booking.confirmed.v1"
BOOKING_CANCELLED_V1 = "rental.booking.cancelled.v1"
BOOKING_EXPIRED_V1   = "rental.booking.expired.v1"
BOOKING_COMPLETED_V1 = "rental.booking.completed.v1"

RENTAL_BOOKING_EVENT_TYPES = (
    BOOKING_RESERVED_V1, BOOKING_CONFIRMED_V1,
    BOOKING_CANCELLED_V1, BOOKING_EXPIRED_V1,
    BOOKING_COMPLETED_V1,
)

CANCEL_REASON_CUSTOMER = "customer-request"
CANCEL_REASON_PAYMENT_TIMEOUT = "payment-timeout"
CANCEL_REASON_OPERATOR = "operator"
VALID_CANCEL_REASONS = frozenset({
    CANCEL_REASON_CUSTOMER, CANCEL_REASON_PAYMENT_TIMEOUT, CANCEL_REASON_OPERATOR,
})


def build_booking_reserved_payload(booking: Booking) -> dict:
    return {
        "booking_id":  booking.booking_id,
        "customer_id": booking.customer_id,
        "item_id":     booking.item_id,
        "start":       booking.range.start.isoformat(),
        "end":         booking.range.end.isoformat(),
        "tier":        booking.tier.value,
        "total":       booking.price.total,
        "deposit":     booking.price.security_deposit,
        "currency":    booking.price.currency,
        "status":      booking.status.value,
        "payment_deadline": booking.payment_deadline.isoformat(),
    }


def build_status_payload(booking: Booking, at: datetime) -> dict:
    return {
        "booking_id": booking.booking_id,
        "item_id":    booking.item_id,
        "status":     booking.status.value,
        "at":         at.isoformat(),
    }


def build_booking_cancelled_payload(booking: Booking, at: datetime) -> dict:
    payload = build_status_payload(booking, at)
    payload["reason"] = booking.cancel_reason
    payload["refund"] = booking.refund or 0
    return payload
