import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("packages", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("package_name", models.CharField(blank=True, max_length=100)),
                ("package_image", models.URLField(blank=True, max_length=500)),
                ("travel_date", models.DateField()),
                ("booking_date", models.DateTimeField(auto_now_add=True)),
                ("travelers", models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ("customer_name", models.CharField(blank=True, max_length=200)),
                ("customer_email", models.EmailField(blank=True, max_length=254)),
                ("customer_phone", models.CharField(blank=True, max_length=30)),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("confirmed", "Confirmed"), ("cancelled", "Cancelled")],
                        default="pending",
                        max_length=12,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("unpaid", "Unpaid"),
                            ("pending", "Pending"),
                            ("paid", "Paid"),
                            ("partial", "Partial"),
                            ("refunded", "Refunded"),
                            ("refund_pending", "Refund pending"),
                        ],
                        default="unpaid",
                        max_length=16,
                    ),
                ),
                (
                    "payment_method",
                    models.CharField(
                        choices=[("credit_card", "Credit card"), ("bank_transfer", "Bank transfer"), ("cash", "Cash")],
                        default="credit_card",
                        max_length=16,
                    ),
                ),
                ("stripe_customer_id", models.CharField(blank=True, max_length=200)),
                ("stripe_payment_intent_id", models.CharField(blank=True, max_length=200)),
                ("stripe_charge_id", models.CharField(blank=True, max_length=200)),
                ("transaction_id", models.CharField(blank=True, max_length=64)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "package",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="packages.package",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-booking_date", "-id"],
            },
        ),
    ]
