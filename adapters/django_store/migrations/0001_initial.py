from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="RentalItemLock",
            fields=[
                (
                    "item_id",
                    models.CharField(
                        help_text="Inventory item identifier.",
                        max_length=128,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
            ],
            options={
                "db_table": "luxrent_item_lock",
            },
        ),
        migrations.CreateModel(
            name="CalendarEntryRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("item_id", models.CharField(help_text="Inventory item identifier.", max_length=128)),
                ("start", models.DateTimeField(help_text="Inclusive range start (UTC).")),
                ("end", models.DateTimeField(help_text="Exclusive range end (UTC).")),
                (
                    "kind",
                    models.CharField(
                        choices=[("committed", "Committed booking"), ("blackout", "Blackout")],
                        help_text="committed — held by a booking. blackout — maintenance/hold.",
                        max_length=16,
                    ),
                ),
                (
                    "booking_id",
                    models.CharField(
                        blank=True,
                        help_text="Owning booking for committed entries. Null for blackouts.",
                        max_length=64,
                        null=True,
                        unique=True,
                    ),
                ),
                ("reason", models.CharField(blank=True, default="", max_length=255)),
            ],
            options={
                "db_table": "luxrent_calendar_entry",
                "ordering": ["item_id", "start"],
                "indexes": [
                    models.Index(fields=["item_id", "start"], name="idx_cal_item_start"),
                    models.Index(fields=["item_id", "kind", "start"], name="idx_cal_item_kind_start"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BookingRecord",
            fields=[
                ("booking_id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("customer_id", models.CharField(max_length=128)),
                ("item_id", models.CharField(max_length=128)),
                ("start", models.DateTimeField()),
                ("end", models.DateTimeField()),
                ("tier", models.CharField(max_length=16)),
                ("pickup_location", models.CharField(blank=True, default="", max_length=64)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending-payment", "Pending payment"),
                            ("confirmed", "Confirmed"),
                            ("cancelled", "Cancelled"),
                            ("completed", "Completed"),
                        ],
                        default="pending-payment",
                        max_length=20,
                    ),
                ),
                ("price", models.JSONField(help_text="PriceBreakdown fields as integer cents plus multipliers.")),
                ("created_at", models.DateTimeField()),
                ("payment_deadline", models.DateTimeField()),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancel_reason", models.CharField(blank=True, default="", max_length=32)),
                (
                    "refund",
                    models.BigIntegerField(
                        blank=True,
                        help_text="Refund in cents recorded at cancellation, if any.",
                        null=True,
                    ),
                ),
            ],
            options={
                "db_table": "luxrent_booking",
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["customer_id"], name="idx_bkg_customer"),
                    models.Index(fields=["item_id", "start"], name="idx_bkg_item_start"),
                    models.Index(fields=["status", "payment_deadline"], name="idx_bkg_status_deadline"),
                ],
            },
        ),
    ]
