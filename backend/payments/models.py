from django.db import models


class Payment(models.Model):
    """One payment attempt against a booking, tied to a single processor intent.

    The booking reference carries no database constraint and never cascades:
    payment records outlive the booking they were taken for.
    """

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELLATION_PENDING = "cancellation_pending"
    STATUSES = [
        (PENDING, "Pending"),
        (SUCCEEDED, "Succeeded"),
        (FAILED, "Failed"),
        (REFUNDED, "Refunded"),
        (CANCELLATION_PENDING, "Cancellation pending"),
    ]
    SETTLED_STATUSES = {SUCCEEDED, REFUNDED, CANCELLATION_PENDING}

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name="payments",
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=10, default="pkr")
    customer_name = models.CharField(max_length=200)
    customer_email = models.EmailField()
    customer_phone = models.CharField(max_length=30, blank=True)
    stripe_payment_intent_id = models.CharField(max_length=200, unique=True)
    stripe_charge_id = models.CharField(max_length=200, blank=True)
    transaction_id = models.CharField(max_length=64, blank=True)
    status = models.CharField(max_length=24, choices=STATUSES, default=PENDING)
    payment_method = models.CharField(max_length=30, default="credit_card")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["booking"],
                condition=models.Q(status="pending"),
                name="payments_one_pending_per_booking",
            ),
        ]

    def __str__(self):
        return f"Payment {self.pk} for booking {self.booking_id} [{self.status}]"
