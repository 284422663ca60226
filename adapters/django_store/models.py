"""
LuxRent Django Store — Calendar & Booking Models
==================================================
Durable backing for the CalendarStore and BookingRepository protocols.

RULES:
- Calendar rows are ranged by (item_id, start); overlap queries use
  the (item_id, start) index plus an end filter
- One RentalItemLock row per item serializes committed inserts
  via SELECT ... FOR UPDATE inside transaction.atomic()
- Money columns are integer cents

This file contains NO business logic.
"""

from django.db import models


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class EntryKind(models.TextChoices):
    COMMITTED = "committed", "Committed booking"
    BLACKOUT = "blackout", "Blackout"


class BookingStatusChoice(models.TextChoices):
    PENDING_PAYMENT = "pending-payment", "Pending payment"
    CONFIRMED = "confirmed", "Confirmed"
    CANCELLED = "cancelled", "Cancelled"
    COMPLETED = "completed", "Completed"


# ══════════════════════════════════════════════════════════════
# ITEM LOCK ROW
# ══════════════════════════════════════════════════════════════

class RentalItemLock(models.Model):
    """Row locked with select_for_update() while an item's calendar changes."""

    item_id = models.CharField(
        max_length=128,
        primary_key=True,
        help_text="Inventory item identifier.",
    )

    class Meta:
        db_table = "luxrent_item_lock"

    def __str__(self):
        return f"lock:{self.item_id}"


# ══════════════════════════════════════════════════════════════
# CALENDAR ENTRY
# ══════════════════════════════════════════════════════════════

class CalendarEntryRecord(models.Model):

    item_id = models.CharField(
        max_length=128,
        help_text="Inventory item identifier.",
    )

    start = models.DateTimeField(help_text="Inclusive range start (UTC).")
    end = models.DateTimeField(help_text="Exclusive range end (UTC).")

    kind = models.CharField(
        max_length=16,
        choices=EntryKind.choices,
        help_text="committed — held by a booking. blackout — maintenance/hold.",
    )

    booking_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        unique=True,
        help_text="Owning booking for committed entries. Null for blackouts.",
    )

    reason = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "luxrent_calendar_entry"
        ordering = ["item_id", "start"]
        indexes = [
            models.Index(
                fields=["item_id", "start"],
                name="idx_cal_item_start",
            ),
            models.Index(
                fields=["item_id", "kind", "start"],
                name="idx_cal_item_kind_start",
            ),
        ]

    def __str__(self):
        return f"{self.item_id} {self.kind} [{self.start}, {self.end})"


# ══════════════════════════════════════════════════════════════
# BOOKING RECORD
# ══════════════════════════════════════════════════════════════

class BookingRecord(models.Model):

    booking_id = models.CharField(max_length=64, primary_key=True)
    customer_id = models.CharField(max_length=128)
    item_id = models.CharField(max_length=128)
    start = models.DateTimeField()
    end = models.DateTimeField()
    tier = models.CharField(max_length=16)
    pickup_location = models.CharField(max_length=64, blank=True, default="")

    status = models.CharField(
        max_length=20,
        choices=BookingStatusChoice.choices,
        default=BookingStatusChoice.PENDING_PAYMENT,
    )

    price = models.JSONField(
        help_text="PriceBreakdown fields as integer cents plus multipliers.",
    )

    created_at = models.DateTimeField()
    payment_deadline = models.DateTimeField()
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancel_reason = models.CharField(max_length=32, blank=True, default="")
    refund = models.BigIntegerField(
        null=True,
        blank=True,
        help_text="Refund in cents recorded at cancellation, if any.",
    )

    class Meta:
        db_table = "luxrent_booking"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["customer_id"], name="idx_bkg_customer"),
            models.Index(fields=["item_id", "start"], name="idx_bkg_item_start"),
            models.Index(fields=["status", "payment_deadline"], name="idx_bkg_status_deadline"),
        ]

    def __str__(self):
        return f"{self.booking_id} ({self.status})"
