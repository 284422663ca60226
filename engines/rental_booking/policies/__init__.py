"""
LuxRent Rental Booking Engine — Policies
==========================================
Booking rules expressed as small pure functions.
Gate policies return an error message or None.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Optional, Tuple

from core.config import BookingConfig
from core.primitives.money import apply_rate
from core.time import DateRange, hours_until
from engines.rental_booking.models import InventoryItem


def item_must_be_rentable_policy(item: InventoryItem) -> Optional[str]:
    if not item.is_rentable:
        return f"item '{item.item_id}' is {item.status} and cannot be rented."
    return None


def location_must_be_served_policy(item: InventoryItem, location: str) -> Optional[str]:
    if not location:
        return None
    if not item.serves(location):
        return (f"item '{item.item_id}' is not offered at '{location}'; "
                f"available at {sorted(item.locations)}.")
    return None


def minimum_notice_policy(
    item: InventoryItem, date_range: DateRange, now: datetime, config: BookingConfig
) -> Optional[str]:
    notice = config.min_notice_hours_by_type.get(item.item_type)
    if notice is None:
        return None
    if hours_until(date_range.start, now) < notice:
        return f"{item.item_type} require at least {notice}h notice."
    return None


def maximum_advance_policy(
    item: InventoryItem, date_range: DateRange, now: datetime, config: BookingConfig
) -> Optional[str]:
    days = config.max_advance_days_by_type.get(item.item_type)
    if days is None:
        return None
    if date_range.start > now + timedelta(days=days):
        return f"{item.item_type} can be booked at most {days} days ahead."
    return None


# ══════════════════════════════════════════════════════════════
# REFUND SCHEDULE
# ══════════════════════════════════════════════════════════════

# (hours before start, share refunded); first threshold met wins.
REFUND_SCHEDULE: Dict[str, Tuple[Tuple[float, Decimal], ...]] = {
    "cars": (
        (72, Decimal("1.0")), (48, Decimal("0.75")),
        (24, Decimal("0.5")), (0, Decimal("0.25")),
    ),
    "yachts": (
        (168, Decimal("1.0")), (72, Decimal("0.8")), (48, Decimal("0.6")),
        (24, Decimal("0.4")), (0, Decimal("0.2")),
    ),
    "jets": (
        (168, Decimal("1.0")), (72, Decimal("0.75")), (48, Decimal("0.5")),
        (24, Decimal("0.3")), (0, Decimal("0.15")),
    ),
    "properties": (
        (336, Decimal("1.0")), (168, Decimal("0.85")), (72, Decimal("0.7")),
        (48, Decimal("0.5")), (0, Decimal("0.25")),
    ),
}


def refund_share(item_type: str, hours_before_start: float) -> Decimal:
    schedule = REFUND_SCHEDULE.get(item_type)
    if schedule is None:
        return Decimal(0)
    for threshold, share in schedule:
        if hours_before_start >= threshold:
            return share
    # already started
    return schedule[-1][1]


def refund_cents(total: int, share: Decimal, processing_fee_rate: Decimal) -> int:
    """
    refund = max(0, total × share − total × processing_fee_rate).
    The security deposit is a separate hold and never passes through here.
    """
    return max(0, apply_rate(total, share) - apply_rate(total, processing_fee_rate))
