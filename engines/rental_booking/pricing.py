"""
LuxRent Rental Booking Engine — Rate Table + Price Calculator
===============================================================
Produces a fully itemized PriceBreakdown from a PricingRequest.

    subtotal  = base × ceil(days) × tier × seasonal
    add-ons   = Σ unit price × quantity          (seasonal not applied)
    fee       = subtotal × service_fee_rate
    insurance = flat | per-tier | rate × subtotal
    taxes     = (subtotal + add-ons + fee) × tax_rate(pickup location)
    total     = subtotal + add-ons + fee + insurance + taxes
    deposit   = item flat value, reported but not in total

Every line is integer cents rounded half-up once; total is the
integer sum of the lines, so itemized cents always add up.

Collaborator lookups (seasonal, add-on catalog, tax) run on a worker
thread bounded by pricing_timeout_seconds. A timeout or unexpected
collaborator failure becomes PricingUnavailableError; domain errors
(UnknownAddOnError, NotFoundError) pass through unchanged.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Mapping, Optional, Tuple

from core.config import PricingConfig
from core.config.rules import INSURANCE_RATE, INSURANCE_TIERED, InsurancePolicy
from core.errors import (
    BookingError,
    InvalidRangeError,
    NotFoundError,
    PricingUnavailableError,
    ValidationError,
)
from core.primitives.money import Rate, apply_rate, as_decimal
from core.time import DateRange, billable_days
from engines.rental_booking.collaborators import (
    AddOnCatalog,
    InventoryProvider,
    SeasonalPricing,
    TaxRateProvider,
)
from engines.rental_booking.models import (
    InventoryItem,
    PriceBreakdown,
    PricingRequest,
    ServiceTier,
)

logger = logging.getLogger("luxrent.pricing")


# ══════════════════════════════════════════════════════════════
# RATE TABLE
# ══════════════════════════════════════════════════════════════

class TierTable:
    """ServiceTier → multiplier. Values come from configuration."""

    def __init__(self, multipliers: Mapping[str, Rate]):
        self._multipliers: Dict[ServiceTier, Decimal] = {}
        for key, value in multipliers.items():
            tier = ServiceTier.parse(key)
            mult = as_decimal(value)
            if mult <= 0:
                raise ValueError(f"tier '{tier.value}' multiplier must be > 0.")
            self._multipliers[tier] = mult

    @classmethod
    def from_config(cls, config: PricingConfig) -> TierTable:
        return cls(config.tier_multipliers)

    def multiplier(self, tier) -> Decimal:
        tier = ServiceTier.parse(tier)
        if tier not in self._multipliers:
            raise ValidationError(f"tier '{tier.value}' is not priced.", fields=("tier",))
        return self._multipliers[tier]

    def __contains__(self, tier) -> bool:
        return ServiceTier.parse(tier) in self._multipliers


@dataclass(frozen=True)
class RateQuote:
    item_id: str
    base_price: int
    tier_multiplier: Decimal
    currency: str


class RateTable:
    """
    Pure lookup: (item_id, tier) → base daily price and tier multiplier.
    The calculator prices items it already holds through quote_item();
    rate_for() resolves the item from inventory first.
    """

    def __init__(self, *, tiers: TierTable, inventory: Optional[InventoryProvider] = None):
        self._inventory = inventory
        self._tiers = tiers

    @property
    def tiers(self) -> TierTable:
        return self._tiers

    def rate_for(self, item_id: str, tier) -> RateQuote:
        if self._inventory is None:
            raise NotFoundError("item", item_id)
        return self.quote_item(self._inventory.get_item(item_id), tier)

    def quote_item(self, item: InventoryItem, tier) -> RateQuote:
        return RateQuote(
            item_id=item.item_id,
            base_price=item.base_daily_price,
            tier_multiplier=self._tiers.multiplier(tier),
            currency=item.currency,
        )


# ══════════════════════════════════════════════════════════════
# PURE LINE-ITEM ARITHMETIC
# ══════════════════════════════════════════════════════════════

def insurance_cents(policy: InsurancePolicy, tier: ServiceTier, subtotal: int) -> int:
    if policy.mode == INSURANCE_TIERED:
        return policy.per_tier.get(tier.value, 0)
    if policy.mode == INSURANCE_RATE:
        return apply_rate(subtotal, policy.rate)
    return policy.flat_cents


def build_breakdown(
    *,
    base_price: int,
    duration_days: int,
    tier: ServiceTier,
    tier_multiplier: Decimal,
    seasonal_multiplier: Decimal,
    add_ons_total: int,
    service_fee_rate: Decimal,
    insurance: InsurancePolicy,
    tax_rate: Decimal,
    security_deposit: int,
    currency: str,
) -> PriceBreakdown:
    subtotal = apply_rate(base_price * duration_days, tier_multiplier, seasonal_multiplier)
    service_fee = apply_rate(subtotal, service_fee_rate)
    insured = insurance_cents(insurance, tier, subtotal)
    taxes = apply_rate(subtotal + add_ons_total + service_fee, tax_rate)
    return PriceBreakdown(
        base_price=base_price,
        tier_multiplier=str(tier_multiplier),
        seasonal_multiplier=str(seasonal_multiplier),
        duration_days=duration_days,
        subtotal=subtotal,
        add_ons_total=add_ons_total,
        service_fee=service_fee,
        insurance=insured,
        taxes=taxes,
        security_deposit=security_deposit,
        total=subtotal + add_ons_total + service_fee + insured + taxes,
        currency=currency,
    )


# ══════════════════════════════════════════════════════════════
# PRICE CALCULATOR
# ══════════════════════════════════════════════════════════════

class PriceCalculator:

    def __init__(
        self,
        *,
        config: PricingConfig,
        seasonal: SeasonalPricing,
        add_ons: AddOnCatalog,
        tax_rates: TaxRateProvider,
        max_workers: int = 8,
    ):
        self._config = config
        self._seasonal = seasonal
        self._add_ons = add_ons
        self._tax_rates = tax_rates
        self._rates = RateTable(tiers=TierTable.from_config(config))
        self._executor: Optional[ThreadPoolExecutor] = None
        if config.pricing_timeout_seconds is not None:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix="luxrent-pricing"
            )

    @property
    def tier_table(self) -> TierTable:
        return self._rates.tiers

    @property
    def rate_table(self) -> RateTable:
        return self._rates

    def compute(
        self,
        request: PricingRequest,
        item: InventoryItem,
        tier_table: Optional[TierTable] = None,
    ) -> PriceBreakdown:
        date_range = request.range
        if not isinstance(date_range, DateRange) or date_range.end <= date_range.start:
            raise InvalidRangeError("range must satisfy start < end.")
        rates = RateTable(tiers=tier_table) if tier_table is not None else self._rates
        rate = rates.quote_item(item, request.tier)

        seasonal, add_ons_total, tax_rate = self._lookup(request, item)

        return build_breakdown(
            base_price=rate.base_price,
            duration_days=billable_days(date_range),
            tier=request.tier,
            tier_multiplier=rate.tier_multiplier,
            seasonal_multiplier=seasonal,
            add_ons_total=add_ons_total,
            service_fee_rate=self._config.service_fee_rate,
            insurance=self._config.insurance,
            tax_rate=tax_rate,
            security_deposit=item.security_deposit,
            currency=rate.currency,
        )

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False)

    # ── collaborator calls ────────────────────────────────────

    def _lookup(self, request: PricingRequest, item: InventoryItem) -> Tuple[Decimal, int, Decimal]:
        timeout = self._config.pricing_timeout_seconds
        if self._executor is None:
            return self._guarded(request, item)
        future = self._executor.submit(self._guarded, request, item)
        try:
            return future.result(timeout=timeout)
        except FutureTimeout:
            future.cancel()
            logger.warning(f"Pricing lookup for {item.item_id} exceeded {timeout}s")
            raise PricingUnavailableError("timeout", collaborator="pricing") from None

    def _guarded(self, request: PricingRequest, item: InventoryItem) -> Tuple[Decimal, int, Decimal]:
        try:
            return self._collect(request, item)
        except BookingError:
            raise
        except Exception as exc:
            logger.error(f"Pricing collaborator failed for {item.item_id}: {exc}", exc_info=True)
            raise PricingUnavailableError("collaborator failure", collaborator="pricing") from exc

    def _collect(self, request: PricingRequest, item: InventoryItem) -> Tuple[Decimal, int, Decimal]:
        seasonal = as_decimal(self._seasonal.seasonal_multiplier(item.item_id, request.range))
        if seasonal <= 0:
            raise PricingUnavailableError(
                f"non-positive seasonal multiplier {seasonal}", collaborator="seasonal"
            )

        add_ons_total = 0
        for line in request.add_ons:
            unit = self._add_ons.get_addon_price(line.addon_id)
            add_ons_total += unit * line.quantity

        tax_rate = as_decimal(self._tax_rates.tax_rate(request.pickup_location))
        if not Decimal(0) <= tax_rate < Decimal(1):
            raise PricingUnavailableError(
                f"tax rate {tax_rate} outside [0, 1)", collaborator="tax"
            )
        return seasonal, add_ons_total, tax_rate
