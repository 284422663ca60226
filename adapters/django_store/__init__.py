"""
LuxRent Django booking store.
Durable CalendarStore / BookingRepository over the Django ORM.
Import adapters.django_store.repository or .wiring after Django setup.
"""
