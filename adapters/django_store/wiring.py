"""
LuxRent Django Store Wiring
=============================
Builds a ReservationEngine from settings.LUXRENT_BOOKING.

Inventory and the add-on catalog are owned by other services and are
passed in. durable=True wires the Django ORM stores; durable=False
wires the in-memory ones (local runs, tests).
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from core.config import load_booking_config
from core.time import Clock
from engines.rental_booking.calendar import CalendarIndex
from engines.rental_booking.collaborators import (
    AddOnCatalog,
    ConfigTaxRates,
    InMemoryBookingRepository,
    InventoryProvider,
    SeasonalPricing,
    SeasonalRateCalendar,
)
from engines.rental_booking.pricing import PriceCalculator
from engines.rental_booking.services import ReservationEngine


def _settings_mapping() -> Mapping[str, Any]:
    from django.conf import settings
    return getattr(settings, "LUXRENT_BOOKING", {})


def build_engine(
    *,
    inventory: InventoryProvider,
    add_ons: AddOnCatalog,
    seasonal: Optional[SeasonalPricing] = None,
    clock: Optional[Clock] = None,
    durable: bool = True,
    config: Optional[Mapping[str, Any]] = None,
) -> ReservationEngine:
    raw = config if config is not None else _settings_mapping()
    pricing_config, booking_config, config_store = load_booking_config(raw)

    if durable:
        from adapters.django_store.repository import (
            DjangoBookingRepository,
            DjangoCalendarStore,
        )
        calendar = DjangoCalendarStore()
        bookings = DjangoBookingRepository()
    else:
        calendar = CalendarIndex()
        bookings = InMemoryBookingRepository()

    pricing = PriceCalculator(
        config=pricing_config,
        seasonal=seasonal or SeasonalRateCalendar(),
        add_ons=add_ons,
        tax_rates=ConfigTaxRates(config_store),
    )
    return ReservationEngine(
        inventory=inventory,
        calendar=calendar,
        pricing=pricing,
        bookings=bookings,
        config=booking_config,
        clock=clock,
    )
