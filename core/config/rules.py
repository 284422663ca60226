"""
LuxRent Core Config — Booking & Pricing Rules
===============================================
Tier multipliers, fee rates, insurance, tax rates and booking
windows come from configuration, never from engine source code.

Values are usually loaded from settings.LUXRENT_BOOKING through
load_booking_config(); tests build the dataclasses directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Protocol

from core.primitives.money import as_decimal

DEFAULT_TIER_MULTIPLIERS: Dict[str, Decimal] = {
    "standard": Decimal("1.0"),
    "premium": Decimal("1.3"),
    "elite": Decimal("1.6"),
}

DEFAULT_BUFFER_HOURS: Dict[str, float] = {
    "cars": 2,
    "yachts": 4,
    "jets": 6,
    "properties": 12,
}

DEFAULT_MIN_NOTICE_HOURS: Dict[str, float] = {
    "cars": 2,
    "yachts": 24,
    "jets": 48,
    "properties": 72,
}

DEFAULT_MAX_ADVANCE_DAYS: Dict[str, int] = {
    "cars": 365,
    "yachts": 730,
    "jets": 365,
    "properties": 1095,
}


# ══════════════════════════════════════════════════════════════
# TAX RULE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TaxRule:
    """Sales tax applied to rentals picked up at a location."""

    location: str
    rate: Decimal  # Decimal("0.08") means 8%

    def __post_init__(self) -> None:
        rate = as_decimal(self.rate)
        object.__setattr__(self, "rate", rate)
        if not self.location:
            raise ValueError("TaxRule location must be non-empty.")
        if not Decimal(0) <= rate < Decimal(1):
            raise ValueError(f"Tax rate must be in [0, 1), got {rate}.")


# ══════════════════════════════════════════════════════════════
# INSURANCE POLICY
# ══════════════════════════════════════════════════════════════

INSURANCE_FLAT = "flat"
INSURANCE_TIERED = "tiered"
INSURANCE_RATE = "rate"
VALID_INSURANCE_MODES = frozenset({INSURANCE_FLAT, INSURANCE_TIERED, INSURANCE_RATE})


@dataclass(frozen=True)
class InsurancePolicy:
    """
    How the insurance line is priced.

    flat    — flat_cents per booking
    tiered  — per_tier[tier] cents per booking (missing tier → 0)
    rate    — rate × subtotal, rounded half-up
    """

    mode: str = INSURANCE_FLAT
    flat_cents: int = 0
    per_tier: Dict[str, int] = field(default_factory=dict)
    rate: Decimal = Decimal(0)

    def __post_init__(self) -> None:
        if self.mode not in VALID_INSURANCE_MODES:
            raise ValueError(
                f"insurance mode '{self.mode}' not in {sorted(VALID_INSURANCE_MODES)}."
            )
        if self.flat_cents < 0 or any(v < 0 for v in self.per_tier.values()):
            raise ValueError("insurance amounts must be >= 0.")
        object.__setattr__(self, "rate", as_decimal(self.rate))
        if self.rate < 0:
            raise ValueError("insurance rate must be >= 0.")


# ══════════════════════════════════════════════════════════════
# PRICING + BOOKING CONFIG
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PricingConfig:
    """Explicit pricing configuration handed to the PriceCalculator."""

    tier_multipliers: Dict[str, Decimal] = field(
        default_factory=lambda: dict(DEFAULT_TIER_MULTIPLIERS)
    )
    service_fee_rate: Decimal = Decimal("0.05")
    insurance: InsurancePolicy = field(default_factory=InsurancePolicy)
    pricing_timeout_seconds: Optional[float] = 2.0  # None: call collaborators inline

    def __post_init__(self) -> None:
        tiers = {k: as_decimal(v) for k, v in self.tier_multipliers.items()}
        if any(v <= 0 for v in tiers.values()):
            raise ValueError("tier multipliers must be > 0.")
        object.__setattr__(self, "tier_multipliers", tiers)
        fee = as_decimal(self.service_fee_rate)
        if fee < 0:
            raise ValueError("service_fee_rate must be >= 0.")
        object.__setattr__(self, "service_fee_rate", fee)
        if self.pricing_timeout_seconds is not None and self.pricing_timeout_seconds <= 0:
            raise ValueError("pricing_timeout_seconds must be > 0.")


@dataclass(frozen=True)
class BookingConfig:
    """Reservation-side rules: buffers, payment window, booking window."""

    buffer_hours_by_type: Dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_BUFFER_HOURS)
    )
    default_buffer_hours: float = 0
    payment_window_minutes: int = 15
    enforce_booking_window: bool = True
    min_notice_hours_by_type: Dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_MIN_NOTICE_HOURS)
    )
    max_advance_days_by_type: Dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_MAX_ADVANCE_DAYS)
    )
    lock_timeout_seconds: Optional[float] = 30.0
    refund_processing_fee_rate: Decimal = Decimal("0.05")

    def __post_init__(self) -> None:
        if self.payment_window_minutes <= 0:
            raise ValueError("payment_window_minutes must be > 0.")
        if self.default_buffer_hours < 0 or any(
            v < 0 for v in self.buffer_hours_by_type.values()
        ):
            raise ValueError("buffer hours must be >= 0.")
        object.__setattr__(
            self, "refund_processing_fee_rate",
            as_decimal(self.refund_processing_fee_rate),
        )

    def buffer_hours_for(self, item_type: str) -> float:
        return self.buffer_hours_by_type.get(item_type, self.default_buffer_hours)


# ══════════════════════════════════════════════════════════════
# CONFIG STORE PROTOCOL
# ══════════════════════════════════════════════════════════════

class ConfigStore(Protocol):
    """Storage for admin-configured tax rules."""

    def get_tax_rule(self, location: str) -> Optional[TaxRule]:
        ...  # pragma: no cover


class InMemoryConfigStore:
    """Simple in-memory config store for testing and bootstrap."""

    def __init__(self) -> None:
        self._tax_rules: Dict[str, TaxRule] = {}

    def add_tax_rule(self, rule: TaxRule) -> None:
        self._tax_rules[rule.location] = rule

    def get_tax_rule(self, location: str) -> Optional[TaxRule]:
        return self._tax_rules.get(location)

    @property
    def locations(self) -> tuple:
        return tuple(sorted(self._tax_rules))


# ══════════════════════════════════════════════════════════════
# LOADING FROM SETTINGS
# ══════════════════════════════════════════════════════════════

def _insurance_from(raw: Mapping[str, Any]) -> InsurancePolicy:
    return InsurancePolicy(
        mode=raw.get("mode", INSURANCE_FLAT),
        flat_cents=int(raw.get("flat_cents", 0)),
        per_tier={k: int(v) for k, v in raw.get("per_tier", {}).items()},
        rate=as_decimal(raw.get("rate", 0)),
    )


def load_booking_config(raw: Mapping[str, Any]):
    """
    Build (PricingConfig, BookingConfig, InMemoryConfigStore) from a
    settings mapping such as settings.LUXRENT_BOOKING. Missing keys
    fall back to the dataclass defaults.
    """
    pricing_kwargs: Dict[str, Any] = {}
    if "tier_multipliers" in raw:
        pricing_kwargs["tier_multipliers"] = dict(raw["tier_multipliers"])
    if "service_fee_rate" in raw:
        pricing_kwargs["service_fee_rate"] = as_decimal(raw["service_fee_rate"])
    if "insurance" in raw:
        pricing_kwargs["insurance"] = _insurance_from(raw["insurance"])
    if "pricing_timeout_seconds" in raw:
        timeout = raw["pricing_timeout_seconds"]
        pricing_kwargs["pricing_timeout_seconds"] = None if timeout is None else float(timeout)

    booking_kwargs: Dict[str, Any] = {}
    for key in (
        "buffer_hours_by_type", "min_notice_hours_by_type",
        "max_advance_days_by_type",
    ):
        if key in raw:
            booking_kwargs[key] = dict(raw[key])
    for key in (
        "default_buffer_hours", "payment_window_minutes",
        "enforce_booking_window", "lock_timeout_seconds",
        "refund_processing_fee_rate",
    ):
        if key in raw:
            booking_kwargs[key] = raw[key]

    store = InMemoryConfigStore()
    for location, rate in raw.get("tax_rates", {}).items():
        store.add_tax_rule(TaxRule(location=location, rate=as_decimal(rate)))

    return PricingConfig(**pricing_kwargs), BookingConfig(**booking_kwargs), store
