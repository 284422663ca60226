"""
LuxRent Core Config — Public API
==================================
Pricing and booking rules supplied by configuration.
"""

from core.config.rules import (
    BookingConfig,
    ConfigStore,
    InMemoryConfigStore,
    InsurancePolicy,
    PricingConfig,
    TaxRule,
    load_booking_config,
)

__all__ = [
    "TaxRule",
    "InsurancePolicy",
    "PricingConfig",
    "BookingConfig",
    "ConfigStore",
    "InMemoryConfigStore",
    "load_booking_config",
]
