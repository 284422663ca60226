"""
LuxRent Core — Money, Errors and Config Tests
===============================================
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from core.config import (
    BookingConfig,
    InMemoryConfigStore,
    InsurancePolicy,
    PricingConfig,
    TaxRule,
    load_booking_config,
)
from core.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PricingUnavailableError,
    UnknownAddOnError,
    ValidationError,
)
from core.primitives.money import apply_rate, as_decimal, format_cents, round_cents
from core.time import DateRange

T0 = datetime(2026, 3, 10, 9, 0, 0, tzinfo=timezone.utc)


class TestMoneyArithmetic:
    def test_apply_rate_rounds_half_up(self):
        assert apply_rate(5, "0.5") == 3  # 2.5 → 3
        assert apply_rate(5, "0.3") == 2  # 1.5 → 2
        assert apply_rate(4, "0.1") == 0  # 0.4 → 0

    def test_apply_rate_chains_before_rounding(self):
        # 300000 × 1.3 × 1.0 exactly
        assert apply_rate(300000, Decimal("1.3"), Decimal("1.0")) == 390000

    def test_float_rates_do_not_drift(self):
        assert apply_rate(409500, 0.08) == 32760

    def test_round_cents(self):
        assert round_cents(Decimal("10.5")) == 11
        assert round_cents(Decimal("10.49")) == 10

    def test_format_cents(self):
        assert format_cents(442260) == "4422.60"
        assert format_cents(5) == "0.05"
        assert format_cents(0) == "0.00"

    def test_as_decimal_goes_through_str_for_floats(self):
        assert as_decimal(0.1) == Decimal("0.1")
        assert as_decimal("0.0825") == Decimal("0.0825")


class TestErrors:
    def test_validation_error_from_problems(self):
        err = ValidationError.from_problems({"item_id": "missing", "tier": "unknown"})
        assert err.fields == ("item_id", "tier")
        assert err.to_dict()["details"]["problems"]["tier"] == "unknown"
        assert err.retryable is False

    def test_conflict_error_carries_ranges(self):
        r = DateRange(T0, T0 + timedelta(days=2))
        err = ConflictError("yacht-1", [r])
        data = err.to_dict()
        assert data["code"] == "CONFLICT"
        assert data["details"]["conflicts"] == [r.to_dict()]
        assert err.conflicts == (r,)

    def test_retryable_flags(self):
        assert UnknownAddOnError("chauffeur").retryable is True
        assert PricingUnavailableError("timeout").retryable is True
        assert NotFoundError("item", "x").retryable is False
        assert InvalidTransitionError("b1", "completed", "cancelled").retryable is False

    def test_pricing_unavailable_hides_internal_text(self):
        err = PricingUnavailableError("timeout", collaborator="tax")
        assert err.message == "pricing is temporarily unavailable."
        assert err.details == {"reason": "timeout", "collaborator": "tax"}


class TestConfigRules:
    def test_tax_rule_bounds(self):
        assert TaxRule("dubai", "0.05").rate == Decimal("0.05")
        with pytest.raises(ValueError):
            TaxRule("dubai", Decimal("1"))
        with pytest.raises(ValueError):
            TaxRule("dubai", Decimal("-0.01"))

    def test_insurance_mode_validated(self):
        with pytest.raises(ValueError, match="insurance mode"):
            InsurancePolicy(mode="percent")

    def test_pricing_defaults(self):
        cfg = PricingConfig()
        assert cfg.tier_multipliers == {
            "standard": Decimal("1.0"), "premium": Decimal("1.3"), "elite": Decimal("1.6"),
        }
        assert cfg.service_fee_rate == Decimal("0.05")

    def test_booking_defaults(self):
        cfg = BookingConfig()
        assert cfg.payment_window_minutes == 15
        assert cfg.buffer_hours_for("yachts") == 4
        assert cfg.buffer_hours_for("submarines") == 0

    def test_in_memory_store(self):
        store = InMemoryConfigStore()
        store.add_tax_rule(TaxRule("houston", "0.0825"))
        assert store.get_tax_rule("houston").rate == Decimal("0.0825")
        assert store.get_tax_rule("atlanta") is None

    def test_load_booking_config(self):
        pricing, booking, store = load_booking_config({
            "tier_multipliers": {"standard": "1.0", "premium": "1.4"},
            "service_fee_rate": "0.07",
            "insurance": {"mode": "tiered", "per_tier": {"premium": 2500}},
            "pricing_timeout_seconds": None,
            "payment_window_minutes": 30,
            "tax_rates": {"dubai": "0.05"},
        })
        assert pricing.tier_multipliers["premium"] == Decimal("1.4")
        assert pricing.service_fee_rate == Decimal("0.07")
        assert pricing.insurance.per_tier == {"premium": 2500}
        assert pricing.pricing_timeout_seconds is None
        assert booking.payment_window_minutes == 30
        assert store.get_tax_rule("dubai").rate == Decimal("0.05")

    def test_load_empty_mapping_uses_defaults(self):
        pricing, booking, store = load_booking_config({})
        assert pricing == PricingConfig()
        assert booking == BookingConfig()
        assert store.locations == ()
