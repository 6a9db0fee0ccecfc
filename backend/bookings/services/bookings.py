from __future__ import annotations

import logging
from datetime import date

from django.db import transaction
from django.utils import timezone

from bookings.models import Booking
from bookings.services import notifications
from core.exceptions import InvalidState, NotFound, Unauthorized
from packages.services.catalog import find_by_id
from payments.models import Payment
from payments.services.reconciler import (
    BookingPaymentReconciler,
    authoritative_payment,
    is_valid_pairing,
    pairing_for_booking_status,
)

logger = logging.getLogger(__name__)

CANCELLABLE_STATUSES = {Booking.PENDING, Booking.CONFIRMED}
STATUS_VALUES = [value for value, _ in Booking.STATUSES]


def _customer_defaults(user, customer) -> dict:
    return {
        "customer_name": (customer.name if customer else "") or user.full_name,
        "customer_email": (customer.email if customer else "") or user.email,
        "customer_phone": (customer.phone if customer else "") or getattr(user, "phone", ""),
    }


def build_booking(*, package_id, user, travel_date: date, travelers: int, customer=None, **extra) -> Booking:
    """Create an unpaid pending booking priced from the package catalog."""
    if travelers is None or int(travelers) < 1:
        raise InvalidState("At least one traveler is required")
    package = find_by_id(package_id)
    travelers = int(travelers)
    return Booking.objects.create(
        package_id=package.id,
        user=user,
        package_name=package.title,
        package_image=package.image,
        travel_date=travel_date,
        travelers=travelers,
        total_amount=package.price * travelers,
        status=Booking.PENDING,
        payment_status=Booking.UNPAID,
        **_customer_defaults(user, customer),
        **extra,
    )


def create_booking(*, package_id, user, travel_date: date, travelers: int, customer=None) -> Booking:
    booking = build_booking(
        package_id=package_id,
        user=user,
        travel_date=travel_date,
        travelers=travelers,
        customer=customer,
    )
    notifications.dispatch_booking_notification(booking, notifications.BOOKING_CREATED)
    return booking


def get_booking_for(booking_id, actor) -> Booking:
    booking = Booking.objects.select_related("package").filter(pk=booking_id).first()
    if booking is None:
        raise NotFound("Booking not found")
    if booking.user_id != actor.pk and not actor.is_admin:
        raise Unauthorized("Not authorized")
    return booking


def cancel_booking(booking_id, actor, *, reconciler=None) -> Booking:
    """Cancel a trip, flag any money taken for refund and pair the payments."""
    reconciler = reconciler or BookingPaymentReconciler()
    with transaction.atomic():
        booking = Booking.objects.select_for_update().filter(pk=booking_id).first()
        if booking is None:
            raise NotFound("Booking not found")
        if booking.user_id != actor.pk and not actor.is_admin:
            raise Unauthorized("Not authorized")
        if booking.travel_date < timezone.localdate():
            raise InvalidState("Cannot cancel a booking for a past travel date")
        if booking.status not in CANCELLABLE_STATUSES:
            raise InvalidState("Cannot cancel booking that is not in pending or confirmed status")

        booking.status, booking.payment_status = pairing_for_booking_status(
            Booking.CANCELLED, booking.payment_status
        )
        booking.save(update_fields=["status", "payment_status", "updated_at"])
        _flag_payments_for_refund(booking, reconciler)

        notifications.dispatch_booking_notification(booking, notifications.BOOKING_CANCELLED)

    booking.refresh_from_db()
    return booking


def _flag_payments_for_refund(booking: Booking, reconciler) -> None:
    """Mark in-flight and settled payments of a cancelled booking, then re-pair it.

    Must run inside the transaction holding the booking row lock.
    """
    flagged = list(
        Payment.objects.select_for_update()
        .filter(booking=booking, status__in=[Payment.PENDING, Payment.SUCCEEDED])
    )
    for payment in flagged:
        payment.status = Payment.CANCELLATION_PENDING
        payment.save(update_fields=["status", "updated_at"])
    if flagged:
        logger.info("Booking %s cancelled; %s payment(s) marked for refund review", booking.pk, len(flagged))

    leading = authoritative_payment(booking.pk)
    if leading is not None:
        reconciler.reconcile(leading, notify_kind=None)


def set_booking_status(booking_id, status: str, *, reconciler=None) -> Booking:
    """Administrative trip-status override; must land on a valid pairing.

    Cancelling through here flags payments for refund the same way ``cancel_booking`` does.
    """
    if status not in STATUS_VALUES:
        raise InvalidState("Invalid status")
    with transaction.atomic():
        booking = Booking.objects.select_for_update().filter(pk=booking_id).first()
        if booking is None:
            raise NotFound("Booking not found")
        pairing = pairing_for_booking_status(status, booking.payment_status)
        if not is_valid_pairing(pairing):
            raise InvalidState(
                f"Cannot set booking status to {status} while payment status is {booking.payment_status}"
            )
        if pairing != booking.pairing:
            cancelling = status == Booking.CANCELLED and booking.status != Booking.CANCELLED
            booking.status, booking.payment_status = pairing
            booking.save(update_fields=["status", "payment_status", "updated_at"])
            if cancelling:
                _flag_payments_for_refund(booking, reconciler or BookingPaymentReconciler())
            notifications.dispatch_booking_notification(booking, notifications.BOOKING_STATUS)

    booking.refresh_from_db()
    return booking
