"""
LuxRent Django Store — ORM Calendar and Booking Repository Tests
==================================================================
Exercises the durable CalendarStore / BookingRepository and the
settings-driven engine wiring against the configured database.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from adapters.django_store.models import BookingRecord, CalendarEntryRecord, RentalItemLock
from adapters.django_store.repository import DjangoBookingRepository, DjangoCalendarStore
from adapters.django_store.wiring import build_engine
from core.errors import ConflictError, NotFoundError
from core.time import DateRange, FixedClock
from engines.rental_booking.calendar import KIND_BLACKOUT, KIND_COMMITTED
from engines.rental_booking.collaborators import (
    FlatSeasonalPricing,
    InMemoryAddOnCatalog,
    InMemoryInventory,
)
from engines.rental_booking.models import (
    Booking,
    BookingStatus,
    InventoryItem,
    PriceBreakdown,
    PricingRequest,
    ServiceTier,
)

pytestmark = pytest.mark.django_db(transaction=True)

T0 = datetime(2026, 7, 1, 12, 0, 0, tzinfo=timezone.utc)
ITEM = "yacht-benetti-oasis"


def days(first: int, last: int) -> DateRange:
    return DateRange(T0 + timedelta(days=first), T0 + timedelta(days=last))


def sample_booking(**overrides) -> Booking:
    price = PriceBreakdown(
        base_price=850000, tier_multiplier="1.3", seasonal_multiplier="1.25",
        duration_days=2, subtotal=2762500, add_ons_total=0, service_fee=138125,
        insurance=0, taxes=145031, security_deposit=1000000, total=3045656,
        currency="USD",
    )
    fields = dict(
        booking_id="bkg_0001",
        customer_id="cust-77",
        item_id=ITEM,
        range=days(1, 3),
        price=price,
        status=BookingStatus.PENDING_PAYMENT,
        created_at=T0,
        payment_deadline=T0 + timedelta(minutes=15),
        tier=ServiceTier.PREMIUM,
        pickup_location="dubai",
    )
    fields.update(overrides)
    return Booking(**fields)


class TestDjangoCalendarStore:
    def test_insert_and_query(self):
        store = DjangoCalendarStore()
        store.insert(ITEM, days(1, 3), "b1")
        assert store.query_committed(ITEM, days(2, 4)) == (days(1, 3),)
        assert store.query_committed(ITEM, days(3, 4)) == ()
        assert store.query_committed(ITEM, days(3, 4), inclusive=True) == (days(1, 3),)
        assert RentalItemLock.objects.filter(item_id=ITEM).exists()

    def test_overlapping_insert_conflicts(self):
        store = DjangoCalendarStore()
        store.insert(ITEM, days(1, 3), "b1")
        with pytest.raises(ConflictError) as exc:
            store.insert(ITEM, days(2, 5), "b2")
        assert exc.value.conflicts == (days(1, 3),)
        assert CalendarEntryRecord.objects.count() == 1

    def test_duplicate_booking_id_conflicts(self):
        store = DjangoCalendarStore()
        store.insert(ITEM, days(1, 3), "b1")
        with pytest.raises(ConflictError):
            store.insert(ITEM, days(10, 12), "b1")

    def test_results_in_start_order(self):
        store = DjangoCalendarStore()
        store.insert(ITEM, days(8, 9), "b2")
        store.insert(ITEM, days(1, 2), "b1")
        store.add_blackout(ITEM, days(4, 6), reason="crew change")
        assert store.query_overlaps(ITEM, days(0, 10)) == (days(1, 2), days(4, 6), days(8, 9))

    def test_remove(self):
        store = DjangoCalendarStore()
        store.insert(ITEM, days(1, 3), "b1")
        assert store.remove(ITEM, "b1") == days(1, 3)
        assert store.query_committed(ITEM, days(0, 5)) == ()
        with pytest.raises(NotFoundError):
            store.remove(ITEM, "b1")

    def test_blackouts(self):
        store = DjangoCalendarStore()
        store.add_blackout(ITEM, days(2, 4), reason="dry dock")
        assert store.query_blackouts(ITEM, days(3, 5)) == (days(2, 4),)
        assert store.query_committed(ITEM, days(3, 5)) == ()
        entries = store.entries_in(ITEM, days(0, 10))
        assert entries[0].kind == KIND_BLACKOUT
        assert entries[0].reason == "dry dock"
        store.remove_blackout(ITEM, days(2, 4))
        assert store.query_blackouts(ITEM, days(0, 10)) == ()
        with pytest.raises(NotFoundError):
            store.remove_blackout(ITEM, days(2, 4))

    def test_buffered_insert_rechecks_under_row_lock(self):
        store = DjangoCalendarStore()
        store.insert(ITEM, days(1, 3), "b1")
        store.add_blackout(ITEM, days(10, 11), reason="survey")
        inside_buffer = DateRange(T0 + timedelta(days=3, hours=2), T0 + timedelta(days=5))
        with pytest.raises(ConflictError) as exc:
            store.insert(ITEM, inside_buffer, "b2", buffer_hours=4)
        assert exc.value.conflicts == (days(1, 3),)
        with pytest.raises(ConflictError):
            store.insert(ITEM, days(11, 12), "b3", buffer_hours=1)
        # without a buffer only committed ranges are re-checked
        store.insert(ITEM, inside_buffer, "b2")
        assert CalendarEntryRecord.objects.filter(kind=KIND_COMMITTED).count() == 2

    def test_entry_kinds_match_engine_constants(self):
        store = DjangoCalendarStore()
        store.insert(ITEM, days(1, 2), "b1")
        assert store.entries_in(ITEM, days(0, 3))[0].kind == KIND_COMMITTED


class TestDjangoBookingRepository:
    def test_roundtrip(self):
        repo = DjangoBookingRepository()
        booking = sample_booking()
        repo.save(booking)
        assert repo.get("bkg_0001") == booking

    def test_missing_booking(self):
        assert DjangoBookingRepository().get("bkg_missing") is None

    def test_save_updates_status(self):
        repo = DjangoBookingRepository()
        booking = sample_booking()
        repo.save(booking)
        repo.save(booking.with_status(
            BookingStatus.CANCELLED, cancelled_at=T0, cancel_reason="operator", refund=0,
        ))
        assert BookingRecord.objects.count() == 1
        loaded = repo.get("bkg_0001")
        assert loaded.status == BookingStatus.CANCELLED
        assert loaded.refund == 0
        assert loaded.cancel_reason == "operator"

    def test_list_queries(self):
        repo = DjangoBookingRepository()
        repo.save(sample_booking(booking_id="bkg_a"))
        repo.save(sample_booking(booking_id="bkg_b", created_at=T0 + timedelta(minutes=1),
                                 status=BookingStatus.CONFIRMED))
        assert [b.booking_id for b in repo.list_by_status(BookingStatus.PENDING_PAYMENT)] == ["bkg_a"]
        assert [b.booking_id for b in repo.list_for_customer("cust-77")] == ["bkg_a", "bkg_b"]


class TestDurableEngine:
    CONFIG = {
        "tier_multipliers": {"standard": "1.0", "premium": "1.3", "elite": "1.6"},
        "pricing_timeout_seconds": None,
        "enforce_booking_window": False,
        "buffer_hours_by_type": {"cars": 0},
        "tax_rates": {"dubai": "0.08"},
    }

    def make_engine(self):
        ghost = InventoryItem(
            item_id="car-rr-ghost", item_type="cars",
            base_daily_price=150000, security_deposit=500000,
        )
        return build_engine(
            inventory=InMemoryInventory([ghost]),
            add_ons=InMemoryAddOnCatalog({}),
            seasonal=FlatSeasonalPricing(),
            clock=FixedClock(T0 - timedelta(days=5)),
            durable=True,
            config=self.CONFIG,
        )

    def request(self, first=0, hours=26):
        start = T0 + timedelta(days=first)
        return PricingRequest(
            item_id="car-rr-ghost",
            range=DateRange(start, start + timedelta(hours=hours)),
            tier="premium",
            pickup_location="dubai",
        )

    def test_reserve_persists_booking_and_range(self):
        engine = self.make_engine()
        booking = engine.reserve(self.request(), "cust-1")
        assert booking.price.total == 442260
        assert BookingRecord.objects.get(booking_id=booking.booking_id).status == "pending-payment"
        assert CalendarEntryRecord.objects.filter(booking_id=booking.booking_id).count() == 1

    def test_conflict_and_cancel(self):
        engine = self.make_engine()
        booking = engine.reserve(self.request(), "cust-1")
        with pytest.raises(ConflictError):
            engine.reserve(self.request(hours=30), "cust-2")
        engine.cancel(booking.booking_id)
        assert CalendarEntryRecord.objects.count() == 0
        assert engine.get_booking(booking.booking_id).status == BookingStatus.CANCELLED
        engine.reserve(self.request(hours=30), "cust-2")

    def test_settings_mapping_used_by_default(self, settings):
        settings.LUXRENT_BOOKING = dict(self.CONFIG)
        engine = build_engine(
            inventory=InMemoryInventory([]),
            add_ons=InMemoryAddOnCatalog({}),
            durable=False,
        )
        assert engine.availability.buffer_hours_for(
            InventoryItem(item_id="car-x", item_type="cars", base_daily_price=1)
        ) == 0
