from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class Booking(models.Model):
    """Reservation of a tour package; aggregate root for the trip.

    ``status`` tracks the trip and ``payment_status`` tracks the money. The pair is
    only ever written through ``payments.services.reconciler`` so that it stays on
    one of the combinations listed in ``VALID_PAIRINGS``.
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    STATUSES = [
        (PENDING, "Pending"),
        (CONFIRMED, "Confirmed"),
        (CANCELLED, "Cancelled"),
    ]

    UNPAID = "unpaid"
    PAYMENT_PENDING = "pending"
    PAID = "paid"
    PARTIAL = "partial"
    REFUNDED = "refunded"
    REFUND_PENDING = "refund_pending"
    PAYMENT_STATUSES = [
        (UNPAID, "Unpaid"),
        (PAYMENT_PENDING, "Pending"),
        (PAID, "Paid"),
        (PARTIAL, "Partial"),
        (REFUNDED, "Refunded"),
        (REFUND_PENDING, "Refund pending"),
    ]

    CREDIT_CARD = "credit_card"
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"
    PAYMENT_METHODS = [
        (CREDIT_CARD, "Credit card"),
        (BANK_TRANSFER, "Bank transfer"),
        (CASH, "Cash"),
    ]

    package = models.ForeignKey("packages.Package", on_delete=models.PROTECT, related_name="bookings")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="bookings")
    package_name = models.CharField(max_length=100, blank=True)
    package_image = models.URLField(max_length=500, blank=True)
    travel_date = models.DateField()
    booking_date = models.DateTimeField(auto_now_add=True)
    travelers = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    customer_name = models.CharField(max_length=200, blank=True)
    customer_email = models.EmailField(blank=True)
    customer_phone = models.CharField(max_length=30, blank=True)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=12, choices=STATUSES, default=PENDING)
    payment_status = models.CharField(max_length=16, choices=PAYMENT_STATUSES, default=UNPAID)
    payment_method = models.CharField(max_length=16, choices=PAYMENT_METHODS, default=CREDIT_CARD)
    stripe_customer_id = models.CharField(max_length=200, blank=True)
    stripe_payment_intent_id = models.CharField(max_length=200, blank=True)
    stripe_charge_id = models.CharField(max_length=200, blank=True)
    transaction_id = models.CharField(max_length=64, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-booking_date", "-id"]

    def __str__(self):
        return f"{self.package_name} booking ({self.travelers})"

    @property
    def pairing(self) -> tuple[str, str]:
        return self.status, self.payment_status
