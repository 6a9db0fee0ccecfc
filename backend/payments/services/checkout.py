from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from django.conf import settings
from django.db import transaction

from bookings.models import Booking
from bookings.services import notifications
from bookings.services.bookings import build_booking
from packages.services.catalog import find_by_id
from payments.models import Payment
from payments.services.gateway import PaymentGateway, get_gateway, to_minor_units
from payments.services.payments import CustomerInfo, open_payment
from payments.services.reconciler import BookingPaymentReconciler

logger = logging.getLogger(__name__)


@dataclass
class Checkout:
    booking: Booking
    payment: Payment
    client_secret: str


def open_checkout(
    *,
    user,
    package_id,
    travel_date: date,
    travelers: int,
    customer: CustomerInfo,
    gateway: PaymentGateway | None = None,
) -> Checkout:
    """
    Open a processor intent for a package and record the pending booking and payment.

    Processor calls happen first; when they fail nothing is written locally.
    """

    gateway = gateway or get_gateway()
    package = find_by_id(package_id)
    total_amount = package.price * int(travelers)
    name = customer.name or user.full_name
    email = customer.email or user.email

    processor_customer = gateway.create_customer(name=name, email=email, phone=customer.phone)
    intent = gateway.create_payment_intent(
        amount_minor_units=to_minor_units(total_amount),
        currency=settings.PAYMENT_CURRENCY,
        customer_id=processor_customer.id,
        metadata={
            "packageId": package.id,
            "packageName": package.title,
            "travelDate": travel_date.isoformat(),
            "travelers": travelers,
            "userId": user.pk,
        },
    )

    with transaction.atomic():
        booking = build_booking(
            package_id=package.id,
            user=user,
            travel_date=travel_date,
            travelers=travelers,
            customer=CustomerInfo(name=name, email=email, phone=customer.phone),
            stripe_payment_intent_id=intent.id,
            stripe_customer_id=processor_customer.id,
        )
        payment = open_payment(
            booking=booking,
            amount=booking.total_amount,
            intent_id=intent.id,
            customer=CustomerInfo(name=name, email=email, phone=customer.phone),
        )
        BookingPaymentReconciler(gateway=gateway).reconcile(payment, notify_kind=None)
        notifications.dispatch_booking_notification(booking, notifications.BOOKING_CREATED)

    logger.info("Opened payment intent %s for booking %s", intent.id, booking.pk)
    booking.refresh_from_db()
    return Checkout(booking=booking, payment=payment, client_secret=intent.client_secret)
