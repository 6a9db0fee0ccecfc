from __future__ import annotations

import logging

from django.db import transaction
from kombu.exceptions import OperationalError

from bookings.models import Booking

logger = logging.getLogger(__name__)

BOOKING_CREATED = "booking_created"
BOOKING_STATUS = "booking_status"
BOOKING_CANCELLED = "booking_cancelled"
PAYMENT_STATUS = "payment_status"
PAYMENT_CONFIRMED = "payment_confirmed"
KINDS = {BOOKING_CREATED, BOOKING_STATUS, BOOKING_CANCELLED, PAYMENT_STATUS, PAYMENT_CONFIRMED}


def booking_notification_payload(booking: Booking) -> dict:
    """Denormalized booking fields used to render customer notifications."""
    return {
        "booking_id": booking.pk,
        "customer_name": booking.customer_name,
        "customer_email": booking.customer_email,
        "package_name": booking.package_name,
        "status": booking.status,
        "payment_status": booking.payment_status,
        "total_amount": str(booking.total_amount),
        "travel_date": booking.travel_date.isoformat() if booking.travel_date else None,
    }


def _enqueue(booking_id: int, kind: str):
    from bookings.tasks import send_booking_notification

    try:
        send_booking_notification.delay(booking_id, kind)
    except OperationalError:
        logger.exception("Unable to queue %s notification for booking %s", kind, booking_id)


def dispatch_booking_notification(booking: Booking, kind: str) -> None:
    """Hand a notification off once the current transaction commits. Never raises."""
    if kind not in KINDS:
        raise ValueError(f"Unknown notification kind: {kind}")
    if not booking.customer_email:
        logger.info("Booking %s has no customer email; skipping %s notification", booking.pk, kind)
        return
    booking_id = booking.pk
    transaction.on_commit(lambda: _enqueue(booking_id, kind))
