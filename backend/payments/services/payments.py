from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from django.db import IntegrityError, transaction

from bookings.models import Booking
from core.exceptions import Conflict, InvalidState, InvalidStatus, NotFound
from payments.models import Payment

PAYMENT_STATUS_VALUES = [value for value, _ in Payment.STATUSES]


@dataclass
class CustomerInfo:
    name: str = ""
    email: str = ""
    phone: str = ""


def validate_payment_status(status: str) -> str:
    if status not in PAYMENT_STATUS_VALUES:
        raise InvalidStatus(
            "Invalid payment status. Must be one of: " + ", ".join(PAYMENT_STATUS_VALUES)
        )
    return status


def open_payment(*, booking: Booking, amount: Decimal, intent_id: str, customer: CustomerInfo) -> Payment:
    """Create the pending payment for a freshly opened processor intent."""
    if booking.status == Booking.CANCELLED:
        raise InvalidState("Cannot take a payment for a cancelled booking")
    if Decimal(amount) != booking.total_amount:
        raise InvalidState("Payment amount must match the booking total")
    if Payment.objects.filter(booking=booking, status=Payment.PENDING).exists():
        raise Conflict("An active payment already exists for this booking")

    try:
        with transaction.atomic():
            return Payment.objects.create(
                booking=booking,
                amount=amount,
                stripe_payment_intent_id=intent_id,
                customer_name=customer.name or booking.customer_name,
                customer_email=customer.email or booking.customer_email,
                customer_phone=customer.phone or booking.customer_phone,
                status=Payment.PENDING,
            )
    except IntegrityError as exc:
        raise Conflict("An active payment already exists for this booking") from exc


def record_status(payment_id, status: str) -> Payment:
    """Write a payment status. Pairing the booking is the reconciler's job."""
    validate_payment_status(status)
    with transaction.atomic():
        payment = Payment.objects.select_for_update().filter(pk=payment_id).first()
        if payment is None:
            raise NotFound("Payment not found")
        if payment.status == status:
            return payment
        if status == Payment.PENDING and (
            Payment.objects.filter(booking_id=payment.booking_id, status=Payment.PENDING)
            .exclude(pk=payment.pk)
            .exists()
        ):
            raise Conflict("An active payment already exists for this booking")
        payment.status = status
        payment.save(update_fields=["status", "updated_at"])
    return payment
