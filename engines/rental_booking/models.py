"""
LuxRent Rental Booking Engine — Domain Model
==============================================
Immutable value objects shared by the calendar, availability,
pricing and reservation layers.

All money fields are integer cents. All timestamps are tz-aware UTC.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from core.errors import ValidationError
from core.primitives.money import SUPPORTED_CURRENCIES, format_cents
from core.time import DateRange


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class ServiceTier(Enum):
    STANDARD = "standard"
    PREMIUM = "premium"
    ELITE = "elite"

    @classmethod
    def parse(cls, value) -> ServiceTier:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValidationError(
                f"unknown tier '{value}'; expected one of "
                f"{[t.value for t in cls]}.",
                fields=("tier",),
            ) from None


class BookingStatus(Enum):
    PENDING_PAYMENT = "pending-payment"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Statuses whose range is held in the calendar.
ACTIVE_STATUSES = frozenset({BookingStatus.PENDING_PAYMENT, BookingStatus.CONFIRMED})

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING_PAYMENT: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}

ITEM_TYPES = frozenset({"cars", "yachts", "jets", "properties"})

ITEM_AVAILABLE = "available"
ITEM_MAINTENANCE = "maintenance"
ITEM_RETIRED = "retired"
ITEM_STATUSES = frozenset({ITEM_AVAILABLE, ITEM_MAINTENANCE, ITEM_RETIRED})


# ══════════════════════════════════════════════════════════════
# INVENTORY
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class MinimumRental:
    days: int = 1
    hours: int = 0

    def __post_init__(self):
        if self.days < 0 or self.hours < 0:
            raise ValueError("minimum rental days/hours must be >= 0.")

    def as_timedelta(self) -> timedelta:
        return timedelta(days=self.days, hours=self.hours)


@dataclass(frozen=True)
class InventoryItem:
    """A rentable asset. Read-only to the booking core."""

    item_id: str
    item_type: str
    base_daily_price: int
    currency: str = "USD"
    brand: str = ""
    model: str = ""
    year: Optional[int] = None
    minimum_rental: MinimumRental = field(default_factory=MinimumRental)
    locations: FrozenSet[str] = frozenset()
    security_deposit: int = 0
    buffer_hours: Optional[float] = None
    status: str = ITEM_AVAILABLE

    def __post_init__(self):
        if not self.item_id:
            raise ValueError("item_id must be non-empty.")
        if self.item_type not in ITEM_TYPES:
            raise ValueError(f"item_type '{self.item_type}' not in {sorted(ITEM_TYPES)}.")
        if not isinstance(self.base_daily_price, int) or self.base_daily_price < 0:
            raise ValueError("base_daily_price must be non-negative int cents.")
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"currency '{self.currency}' not supported.")
        if self.security_deposit < 0:
            raise ValueError("security_deposit must be >= 0.")
        if self.status not in ITEM_STATUSES:
            raise ValueError(f"status '{self.status}' not in {sorted(ITEM_STATUSES)}.")
        object.__setattr__(self, "locations", frozenset(self.locations))

    @property
    def is_rentable(self) -> bool:
        return self.status == ITEM_AVAILABLE

    def serves(self, location: str) -> bool:
        return not self.locations or location in self.locations


# ══════════════════════════════════════════════════════════════
# PRICING REQUEST
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AddOnLine:
    addon_id: str
    quantity: int = 1

    def __post_init__(self):
        if not self.addon_id:
            raise ValidationError("addon_id must be non-empty.", fields=("add_ons",))
        if not isinstance(self.quantity, int) or self.quantity < 1:
            raise ValidationError(
                f"add-on '{self.addon_id}' quantity must be a positive int.",
                fields=("add_ons",),
            )


@dataclass(frozen=True)
class PricingRequest:
    """Read-only booking/quote input."""

    item_id: str
    range: DateRange
    tier: ServiceTier = ServiceTier.STANDARD
    add_ons: Tuple[AddOnLine, ...] = ()
    pickup_location: str = ""
    dropoff_location: str = ""

    def __post_init__(self):
        object.__setattr__(self, "tier", ServiceTier.parse(self.tier))
        object.__setattr__(self, "add_ons", tuple(self.add_ons))
        if not self.dropoff_location:
            object.__setattr__(self, "dropoff_location", self.pickup_location)


# ══════════════════════════════════════════════════════════════
# PRICE BREAKDOWN
# ══════════════════════════════════════════════════════════════

MONEY_FIELDS = (
    "base_price", "subtotal", "add_ons_total", "service_fee",
    "insurance", "taxes", "security_deposit", "total",
)


@dataclass(frozen=True)
class PriceBreakdown:
    """
    Itemized price in integer cents.

    total = subtotal + add_ons_total + service_fee + insurance + taxes.
    security_deposit is a refundable hold and is not part of total.
    """

    base_price: int
    tier_multiplier: str
    seasonal_multiplier: str
    duration_days: int
    subtotal: int
    add_ons_total: int
    service_fee: int
    insurance: int
    taxes: int
    security_deposit: int
    total: int
    currency: str

    def __post_init__(self):
        for name in MONEY_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} must be non-negative int cents, got {value!r}.")
        expected = (
            self.subtotal + self.add_ons_total + self.service_fee
            + self.insurance + self.taxes
        )
        if self.total != expected:
            raise ValueError(f"total {self.total} != itemized sum {expected}.")

    def to_dict(self) -> dict:
        data = {name: format_cents(getattr(self, name)) for name in MONEY_FIELDS}
        data.update({
            "tier_multiplier": self.tier_multiplier,
            "seasonal_multiplier": self.seasonal_multiplier,
            "duration_days": self.duration_days,
            "currency": self.currency,
        })
        return data


# ══════════════════════════════════════════════════════════════
# BOOKING
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Booking:
    booking_id: str
    customer_id: str
    item_id: str
    range: DateRange
    price: PriceBreakdown
    status: BookingStatus
    created_at: datetime
    payment_deadline: datetime
    tier: ServiceTier = ServiceTier.STANDARD
    pickup_location: str = ""
    cancelled_at: Optional[datetime] = None
    cancel_reason: str = ""
    refund: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def with_status(self, status: BookingStatus, **changes) -> Booking:
        return replace(self, status=status, **changes)

    def to_dict(self) -> dict:
        return {
            "booking_id": self.booking_id,
            "customer_id": self.customer_id,
            "item_id": self.item_id,
            "range": self.range.to_dict(),
            "price": self.price.to_dict(),
            "status": self.status.value,
            "tier": self.tier.value,
            "pickup_location": self.pickup_location,
            "created_at": self.created_at.isoformat(),
            "payment_deadline": self.payment_deadline.isoformat(),
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "cancel_reason": self.cancel_reason,
            "refund": format_cents(self.refund) if self.refund is not None else None,
        }


@dataclass(frozen=True)
class AvailabilityResult:
    """Outcome of an availability check; conflicts in start order."""

    available: bool
    conflicts: Tuple[DateRange, ...] = ()

    def __bool__(self) -> bool:
        return self.available

    def __iter__(self):
        # supports: available, conflicts = checker.is_available(...)
        return iter((self.available, self.conflicts))

    def to_dict(self) -> dict:
        return {
            "available": self.available,
            "conflicts": [c.to_dict() for c in self.conflicts],
        }
