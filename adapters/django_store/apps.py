"""
LuxRent Django Store — App Configuration
==========================================
Durable calendar and booking storage for the rental booking engine.

This app:
- Persists committed ranges, blackouts and booking records
- Serializes per-item calendar writes with row locks

This app does NOT:
- Decide availability or prices
- Drive booking status changes (ReservationEngine does)
"""

from django.apps import AppConfig


class DjangoStoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "adapters.django_store"
    label = "luxrent_store"
    verbose_name = "LuxRent Booking Store"
