"""
LuxRent Rental Booking Engine — Collaborator Protocols
========================================================
Interfaces the booking core consumes, plus in-memory implementations
used by tests and bootstrap wiring.

    InventoryProvider   get_item(item_id) → InventoryItem | NotFoundError
    SeasonalPricing     seasonal_multiplier(item_id, range) → Decimal > 0
    AddOnCatalog        get_addon_price(addon_id) → cents | UnknownAddOnError
    TaxRateProvider     tax_rate(location) → Decimal in [0, 1)
    BookingRepository   save / get / list bookings
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from core.config import ConfigStore
from core.errors import NotFoundError, UnknownAddOnError
from core.primitives.money import Rate, as_decimal
from core.time import DateRange
from engines.rental_booking.models import Booking, BookingStatus, InventoryItem


# ══════════════════════════════════════════════════════════════
# PROTOCOLS
# ══════════════════════════════════════════════════════════════

class InventoryProvider(Protocol):
    def get_item(self, item_id: str) -> InventoryItem:
        ...  # pragma: no cover


class SeasonalPricing(Protocol):
    def seasonal_multiplier(self, item_id: str, date_range: DateRange) -> Decimal:
        ...  # pragma: no cover


class AddOnCatalog(Protocol):
    def get_addon_price(self, addon_id: str) -> int:
        ...  # pragma: no cover


class TaxRateProvider(Protocol):
    def tax_rate(self, location: str) -> Decimal:
        ...  # pragma: no cover


class BookingRepository(Protocol):
    def save(self, booking: Booking) -> None:
        ...  # pragma: no cover

    def get(self, booking_id: str) -> Optional[Booking]:
        ...  # pragma: no cover

    def list_by_status(self, status: BookingStatus) -> List[Booking]:
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# INVENTORY
# ══════════════════════════════════════════════════════════════

class InMemoryInventory:
    def __init__(self, items: Iterable[InventoryItem] = ()) -> None:
        self._items: Dict[str, InventoryItem] = {}
        for item in items:
            self.add_item(item)

    def add_item(self, item: InventoryItem) -> None:
        self._items[item.item_id] = item

    def get_item(self, item_id: str) -> InventoryItem:
        item = self._items.get(item_id)
        if item is None:
            raise NotFoundError("item", item_id)
        return item

    def list_items(self, item_type: Optional[str] = None) -> List[InventoryItem]:
        return [i for i in self._items.values()
                if item_type is None or i.item_type == item_type]


# ══════════════════════════════════════════════════════════════
# SEASONAL PRICING
# ══════════════════════════════════════════════════════════════

class FlatSeasonalPricing:
    """Same multiplier for every item and date (1.0 unless told otherwise)."""

    def __init__(self, multiplier: Rate = Decimal(1)) -> None:
        self._multiplier = as_decimal(multiplier)
        if self._multiplier <= 0:
            raise ValueError("seasonal multiplier must be > 0.")

    def seasonal_multiplier(self, item_id: str, date_range: DateRange) -> Decimal:
        return self._multiplier


@dataclass(frozen=True)
class Season:
    """
    Yearly recurring window, inclusive of both (month, day) ends.
    start > end wraps the new year (e.g. Dec 15 – Jan 15).
    """

    name: str
    multiplier: Decimal
    start: Tuple[int, int]
    end: Tuple[int, int]

    def __post_init__(self):
        object.__setattr__(self, "multiplier", as_decimal(self.multiplier))
        if self.multiplier <= 0:
            raise ValueError(f"season '{self.name}' multiplier must be > 0.")

    def covers(self, month: int, day: int) -> bool:
        key = (month, day)
        if self.start <= self.end:
            return self.start <= key <= self.end
        return key >= self.start or key <= self.end


DEFAULT_SEASONS: Tuple[Season, ...] = (
    Season("peak", Decimal("1.5"), (12, 15), (1, 15)),
    Season("high", Decimal("1.25"), (6, 1), (8, 31)),
    Season("low", Decimal("0.85"), (1, 16), (3, 31)),
)


class SeasonalRateCalendar:
    """
    Holiday/peak-season rates. The season containing the rental's
    start date decides the multiplier; first matching season wins.
    Per-item overrides replace the calendar entirely for that item.
    """

    def __init__(
        self,
        seasons: Iterable[Season] = DEFAULT_SEASONS,
        default: Rate = Decimal(1),
    ) -> None:
        self._seasons = tuple(seasons)
        self._default = as_decimal(default)
        self._overrides: Dict[str, Decimal] = {}

    def set_override(self, item_id: str, multiplier: Rate) -> None:
        value = as_decimal(multiplier)
        if value <= 0:
            raise ValueError("seasonal multiplier must be > 0.")
        self._overrides[item_id] = value

    def season_for(self, date_range: DateRange) -> Optional[Season]:
        start = date_range.start
        for season in self._seasons:
            if season.covers(start.month, start.day):
                return season
        return None

    def seasonal_multiplier(self, item_id: str, date_range: DateRange) -> Decimal:
        if item_id in self._overrides:
            return self._overrides[item_id]
        season = self.season_for(date_range)
        return season.multiplier if season else self._default


# ══════════════════════════════════════════════════════════════
# ADD-ON CATALOG
# ══════════════════════════════════════════════════════════════

class InMemoryAddOnCatalog:
    """addon_id → unit price in cents."""

    def __init__(self, prices: Optional[Dict[str, int]] = None) -> None:
        self._prices: Dict[str, int] = {}
        for addon_id, cents in (prices or {}).items():
            self.set_price(addon_id, cents)

    def set_price(self, addon_id: str, cents: int) -> None:
        if not isinstance(cents, int) or cents < 0:
            raise ValueError(f"add-on '{addon_id}' price must be non-negative int cents.")
        self._prices[addon_id] = cents

    def get_addon_price(self, addon_id: str) -> int:
        if addon_id not in self._prices:
            raise UnknownAddOnError(addon_id)
        return self._prices[addon_id]


# ══════════════════════════════════════════════════════════════
# TAX RATES
# ══════════════════════════════════════════════════════════════

class ConfigTaxRates:
    """TaxRateProvider backed by admin-configured TaxRules."""

    def __init__(self, config_store: ConfigStore) -> None:
        self._store = config_store

    def tax_rate(self, location: str) -> Decimal:
        rule = self._store.get_tax_rule(location)
        if rule is None:
            raise NotFoundError("tax rule", location)
        return rule.rate


# ══════════════════════════════════════════════════════════════
# BOOKING REPOSITORY
# ══════════════════════════════════════════════════════════════

class InMemoryBookingRepository:
    """Thread-safe dict of booking_id → Booking."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._bookings: Dict[str, Booking] = {}

    def save(self, booking: Booking) -> None:
        with self._lock:
            self._bookings[booking.booking_id] = booking

    def get(self, booking_id: str) -> Optional[Booking]:
        with self._lock:
            return self._bookings.get(booking_id)

    def list_by_status(self, status: BookingStatus) -> List[Booking]:
        with self._lock:
            found = [b for b in self._bookings.values() if b.status == status]
        return sorted(found, key=lambda b: (b.created_at, b.booking_id))

    @property
    def count(self) -> int:
        with self._lock:
            return len(self._bookings)
