from __future__ import annotations

from django.conf import settings
from django.core.mail import send_mail

from bookings.models import Booking
from bookings.services import notifications

SUBJECTS = {
    notifications.BOOKING_CREATED: "Booking Confirmation - {package_name}",
    notifications.BOOKING_STATUS: "Booking Status Update - {package_name}",
    notifications.BOOKING_CANCELLED: "Booking Cancellation - {package_name}",
    notifications.PAYMENT_STATUS: "Payment Status Update - {package_name}",
    notifications.PAYMENT_CONFIRMED: "Payment Received - {package_name}",
}

INTROS = {
    notifications.BOOKING_CREATED: "Thank you for booking {package_name} with us.",
    notifications.BOOKING_STATUS: "The status of your booking for {package_name} has been updated.",
    notifications.BOOKING_CANCELLED: "Your booking for {package_name} has been cancelled.",
    notifications.PAYMENT_STATUS: "The payment status for your booking of {package_name} has been updated.",
    notifications.PAYMENT_CONFIRMED: "We received your payment for {package_name}.",
}


def _status_note(payload: dict) -> str:
    if payload["payment_status"] == Booking.REFUND_PENDING:
        return "If you made a payment, our team will review your refund request."
    if payload["payment_status"] == Booking.REFUNDED:
        return "Your refund has been processed."
    if payload["status"] == Booking.CONFIRMED:
        return "Your trip is confirmed. We look forward to travelling with you!"
    if payload["status"] == Booking.PENDING:
        return "Your booking is awaiting payment confirmation."
    return "Please check your booking details for more information."


def render_booking_notification(booking: Booking, kind: str) -> tuple[str, str]:
    payload = notifications.booking_notification_payload(booking)
    subject = SUBJECTS[kind].format(**payload)
    body_lines = [
        f"Hi {payload['customer_name'] or payload['customer_email']},",
        "",
        INTROS[kind].format(**payload),
        "",
        f"Booking reference: {payload['booking_id']}",
        f"Travel date: {booking.travel_date:%B %d, %Y}",
        f"Total amount: {payload['total_amount']} {settings.PAYMENT_CURRENCY.upper()}",
        f"Status: {payload['status'].upper()}",
        f"Payment status: {payload['payment_status']}",
        "",
        _status_note(payload),
        "",
        "The Tourbook Team",
    ]
    return subject, "\n".join(body_lines)


def send_booking_notification_email(*, booking: Booking, kind: str):
    subject, body = render_booking_notification(booking, kind)
    send_mail(
        subject,
        body,
        settings.DEFAULT_FROM_EMAIL,
        [booking.customer_email],
        fail_silently=False,
    )
