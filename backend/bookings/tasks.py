import logging
from smtplib import SMTPException

from celery import shared_task

from bookings.models import Booking
from bookings.services.emails import send_booking_notification_email

logger = logging.getLogger(__name__)


@shared_task(ignore_result=True)
def send_booking_notification(booking_id, kind):
    booking = Booking.objects.filter(pk=booking_id).first()
    if booking is None:
        logger.warning("Booking %s vanished before its %s notification was sent", booking_id, kind)
        return False

    try:
        send_booking_notification_email(booking=booking, kind=kind)
    except (SMTPException, OSError):
        logger.exception("Error sending %s email for booking %s", kind, booking_id)
        return False
    return True
