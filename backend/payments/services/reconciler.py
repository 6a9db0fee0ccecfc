"""
Booking/payment pairing.

``PAIRINGS`` is the only place that decides which (status, payment_status) a
booking lands on for a given payment status. Confirmation, administrative status
changes, cancellation and the batch repair all go through ``reconcile``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from django.db import DatabaseError, transaction
from django.utils import timezone

from bookings.models import Booking
from bookings.services import notifications
from core.exceptions import (
    Conflict,
    InvalidState,
    NotFound,
    OrphanPayment,
    PaymentNotSucceeded,
    TourbookError,
)
from payments.models import Payment
from payments.services.gateway import INTENT_SUCCEEDED, PaymentGateway, get_gateway
from payments.services.payments import record_status, validate_payment_status

logger = logging.getLogger(__name__)

Pairing = Tuple[str, str]

# None in the trip column keeps the booking's current status.
PAIRINGS: Dict[str, Tuple[Optional[str], str]] = {
    Payment.PENDING: (Booking.PENDING, Booking.PAYMENT_PENDING),
    Payment.SUCCEEDED: (Booking.CONFIRMED, Booking.PAID),
    Payment.FAILED: (Booking.PENDING, Booking.UNPAID),
    Payment.REFUNDED: (Booking.CANCELLED, Booking.REFUNDED),
    Payment.CANCELLATION_PENDING: (None, Booking.REFUND_PENDING),
}

VALID_PAIRINGS = frozenset(
    {
        (Booking.PENDING, Booking.PAYMENT_PENDING),
        (Booking.CONFIRMED, Booking.PAID),
        (Booking.PENDING, Booking.UNPAID),
        (Booking.CANCELLED, Booking.REFUNDED),
        (Booking.PENDING, Booking.REFUND_PENDING),
        (Booking.CONFIRMED, Booking.REFUND_PENDING),
        (Booking.CANCELLED, Booking.REFUND_PENDING),
        (Booking.CANCELLED, Booking.UNPAID),
    }
)

CORRECTED = "corrected"
UNCHANGED = "unchanged"
SUPERSEDED = "superseded"


def target_pairing(payment_status: str, current: Pairing) -> Pairing:
    """Return the pairing a booking currently at ``current`` must hold for ``payment_status``.

    The table row applies as is, except that a failed attempt leaves an unpaid
    booking where it is, so a cancelled booking that never took money stays cancelled.
    """
    validate_payment_status(payment_status)
    trip_status, money_status = PAIRINGS[payment_status]
    if trip_status is None:
        return current[0], money_status
    if payment_status == Payment.FAILED and current[1] == Booking.UNPAID:
        return current
    return trip_status, money_status


def pairing_for_booking_status(status: str, payment_status: str) -> Pairing:
    """Pairing for an explicit trip-status change (cancellation or admin override)."""
    if status == Booking.CANCELLED:
        if payment_status in (Booking.UNPAID, Booking.REFUNDED):
            return status, payment_status
        return status, Booking.REFUND_PENDING
    return status, payment_status


def is_valid_pairing(pairing: Pairing) -> bool:
    return tuple(pairing) in VALID_PAIRINGS


def authoritative_payment(booking_id) -> Optional[Payment]:
    """The payment that drives a booking's pairing when it has several attempts.

    Within each tier the most recently changed payment wins, so an explicit status
    change on an older attempt takes over the booking.
    """
    payments = Payment.objects.filter(booking_id=booking_id).order_by("-updated_at", "-id")
    for statuses in (Payment.SETTLED_STATUSES, {Payment.PENDING}, {Payment.FAILED}):
        payment = payments.filter(status__in=statuses).first()
        if payment is not None:
            return payment
    return None


def _new_transaction_id() -> str:
    return f"TRX-{int(timezone.now().timestamp() * 1000)}"


@dataclass
class ReconcileResult:
    booking: Booking
    outcome: str
    previous: Pairing

    @property
    def changed(self) -> bool:
        return self.outcome == CORRECTED


@dataclass
class ResyncReport:
    checked: int = 0
    corrected: List[int] = field(default_factory=list)
    unchanged: int = 0
    superseded: List[int] = field(default_factory=list)
    orphaned: List[int] = field(default_factory=list)
    errors: Dict[int, str] = field(default_factory=dict)

    @property
    def corrected_count(self) -> int:
        return len(self.corrected)

    def as_dict(self) -> dict:
        return {
            "checked": self.checked,
            "corrected": self.corrected_count,
            "corrected_bookings": self.corrected,
            "unchanged": self.unchanged,
            "superseded_payments": self.superseded,
            "orphaned_payments": self.orphaned,
            "errors": {str(key): value for key, value in self.errors.items()},
        }


class BookingPaymentReconciler:
    """Keeps bookings paired with their payments and the processor's intent status."""

    def __init__(
        self,
        gateway: PaymentGateway | None = None,
        notify: Callable[[Booking, str], None] | None = None,
    ):
        self._gateway = gateway
        self.notify = notify or notifications.dispatch_booking_notification

    @property
    def gateway(self) -> PaymentGateway:
        if self._gateway is None:
            self._gateway = get_gateway()
        return self._gateway

    def reconcile(self, payment: Payment, *, notify_kind: str | None = notifications.BOOKING_STATUS) -> ReconcileResult:
        """Pair the payment's booking with the payment's current status.

        Locks the booking row, then the payment row, so concurrent reconciliations
        of the same booking are serialized. Raises OrphanPayment when the booking
        is missing.
        """
        with transaction.atomic():
            booking = Booking.objects.select_for_update().filter(pk=payment.booking_id).first()
            if booking is None:
                logger.warning(
                    "Payment %s has no associated booking (booking id %s)",
                    payment.pk,
                    payment.booking_id,
                )
                raise OrphanPayment(payment.pk, payment.booking_id)

            status = (
                Payment.objects.select_for_update()
                .filter(pk=payment.pk)
                .values_list("status", flat=True)
                .first()
            )
            if status is None:
                raise NotFound("Payment not found")
            payment.status = status

            previous = booking.pairing
            leading = authoritative_payment(booking.pk)
            if leading is not None and leading.pk != payment.pk:
                return ReconcileResult(booking=booking, outcome=SUPERSEDED, previous=previous)

            target = target_pairing(status, previous)
            if target == previous:
                return ReconcileResult(booking=booking, outcome=UNCHANGED, previous=previous)

            booking.status, booking.payment_status = target
            booking.save(update_fields=["status", "payment_status", "updated_at"])
            logger.info(
                "Booking %s paired %s/%s -> %s/%s from payment %s (%s)",
                booking.pk,
                previous[0],
                previous[1],
                target[0],
                target[1],
                payment.pk,
                status,
            )
            if notify_kind:
                self.notify(booking, notify_kind)
            return ReconcileResult(booking=booking, outcome=CORRECTED, previous=previous)

    def confirm_payment(self, intent_id: str, booking_id) -> Tuple[Booking, Payment]:
        """Confirm a processor intent and pair the booking. Nothing is written unless it succeeded."""
        if not intent_id or not booking_id:
            raise InvalidState("Payment intent ID and booking ID are required")

        intent = self.gateway.retrieve_payment_intent(intent_id)
        logger.info("Payment intent %s status: %s", intent_id, intent.status)
        if intent.status != INTENT_SUCCEEDED:
            raise PaymentNotSucceeded(intent.status)

        charge_id = intent.latest_charge or ""
        with transaction.atomic():
            booking = Booking.objects.select_for_update().filter(pk=booking_id).first()
            if booking is None:
                raise NotFound("Booking not found")

            payment = (
                Payment.objects.select_for_update()
                .filter(booking=booking, stripe_payment_intent_id=intent_id)
                .first()
            )
            if payment is not None and payment.status == Payment.SUCCEEDED and payment.transaction_id:
                transaction_id = payment.transaction_id
            else:
                transaction_id = _new_transaction_id()

            if payment is None:
                if Payment.objects.filter(stripe_payment_intent_id=intent_id).exists():
                    raise Conflict("Payment intent belongs to another booking")
                payment = Payment.objects.create(
                    booking=booking,
                    amount=booking.total_amount,
                    stripe_payment_intent_id=intent_id,
                    stripe_charge_id=charge_id,
                    transaction_id=transaction_id,
                    customer_name=booking.customer_name,
                    customer_email=booking.customer_email,
                    customer_phone=booking.customer_phone,
                    status=Payment.SUCCEEDED,
                    payment_method=Booking.CREDIT_CARD,
                )
                logger.info("Recreated missing payment record %s for intent %s", payment.pk, intent_id)
            else:
                payment.status = Payment.SUCCEEDED
                payment.stripe_charge_id = charge_id or payment.stripe_charge_id
                payment.transaction_id = transaction_id
                payment.save(update_fields=["status", "stripe_charge_id", "transaction_id", "updated_at"])

            booking.stripe_charge_id = charge_id or booking.stripe_charge_id
            booking.transaction_id = transaction_id
            booking.payment_method = Booking.CREDIT_CARD
            booking.save(update_fields=["stripe_charge_id", "transaction_id", "payment_method", "updated_at"])

            self.reconcile(payment, notify_kind=notifications.PAYMENT_CONFIRMED)

        booking.refresh_from_db()
        payment.refresh_from_db()
        return booking, payment

    def set_payment_status(self, payment_id, status: str) -> Tuple[Optional[Booking], Payment]:
        """Administrative payment status change, paired through the same table."""
        validate_payment_status(status)
        payment = Payment.objects.filter(pk=payment_id).first()
        if payment is None:
            raise NotFound("Payment not found")

        with transaction.atomic():
            booking = Booking.objects.select_for_update().filter(pk=payment.booking_id).first()
            payment = record_status(payment.pk, status)
            if booking is None:
                logger.warning(
                    "Payment %s status set to %s but booking %s is missing",
                    payment.pk,
                    status,
                    payment.booking_id,
                )
                return None, payment
            result = self.reconcile(payment, notify_kind=None)
            self.notify(result.booking, notifications.PAYMENT_STATUS)

        return result.booking, payment

    def resync_all(self) -> ResyncReport:
        """Re-apply the pairing table to every payment. Safe to run at any time."""
        report = ResyncReport()
        payments = Payment.objects.order_by("id")
        logger.info("Starting payment-booking synchronization for %s payments", payments.count())

        for payment in payments.iterator():
            report.checked += 1
            try:
                result = self.reconcile(payment)
            except OrphanPayment:
                report.orphaned.append(payment.pk)
                continue
            except (TourbookError, DatabaseError) as exc:
                logger.exception("Failed to reconcile payment %s", payment.pk)
                report.errors[payment.pk] = str(exc)
                continue

            if result.outcome == CORRECTED:
                report.corrected.append(result.booking.pk)
            elif result.outcome == SUPERSEDED:
                report.superseded.append(payment.pk)
            else:
                report.unchanged += 1

        logger.info(
            "Synchronization complete. Updated %s bookings (%s orphaned payments, %s errors).",
            report.corrected_count,
            len(report.orphaned),
            len(report.errors),
        )
        return report
