import pytest

from bookings.models import Booking
from core.exceptions import InvalidStatus, NotFound, OrphanPayment
from payments.models import Payment
from payments.services.payments import PAYMENT_STATUS_VALUES
from payments.services.reconciler import (
    CORRECTED,
    PAIRINGS,
    SUPERSEDED,
    UNCHANGED,
    VALID_PAIRINGS,
    BookingPaymentReconciler,
    authoritative_payment,
    is_valid_pairing,
    pairing_for_booking_status,
    target_pairing,
)


@pytest.fixture
def reconciler(gateway):
    return BookingPaymentReconciler(gateway=gateway)


@pytest.mark.parametrize("payment_status", PAYMENT_STATUS_VALUES)
@pytest.mark.parametrize(
    "current",
    [
        (Booking.PENDING, Booking.UNPAID),
        (Booking.PENDING, Booking.PAYMENT_PENDING),
        (Booking.CONFIRMED, Booking.PAID),
        (Booking.CANCELLED, Booking.UNPAID),
        (Booking.CANCELLED, Booking.REFUND_PENDING),
    ],
)
def test_every_payment_status_maps_to_a_valid_pairing(payment_status, current):
    assert payment_status in PAIRINGS
    assert is_valid_pairing(target_pairing(payment_status, current))


def test_table_rows_for_active_bookings():
    current = (Booking.PENDING, Booking.UNPAID)
    assert target_pairing(Payment.PENDING, current) == (Booking.PENDING, Booking.PAYMENT_PENDING)
    assert target_pairing(Payment.SUCCEEDED, current) == (Booking.CONFIRMED, Booking.PAID)
    assert target_pairing(Payment.FAILED, current) == (Booking.PENDING, Booking.UNPAID)
    assert target_pairing(Payment.REFUNDED, current) == (Booking.CANCELLED, Booking.REFUNDED)
    assert target_pairing(Payment.CANCELLATION_PENDING, (Booking.CONFIRMED, Booking.PAID)) == (
        Booking.CONFIRMED,
        Booking.REFUND_PENDING,
    )


def test_table_rows_apply_to_cancelled_bookings():
    cancelled = (Booking.CANCELLED, Booking.UNPAID)
    assert target_pairing(Payment.PENDING, cancelled) == (Booking.PENDING, Booking.PAYMENT_PENDING)
    assert target_pairing(Payment.SUCCEEDED, cancelled) == (Booking.CONFIRMED, Booking.PAID)
    assert target_pairing(Payment.REFUNDED, cancelled) == (Booking.CANCELLED, Booking.REFUNDED)


def test_failed_attempt_leaves_unpaid_booking_alone():
    assert target_pairing(Payment.FAILED, (Booking.CANCELLED, Booking.UNPAID)) == (
        Booking.CANCELLED,
        Booking.UNPAID,
    )
    assert target_pairing(Payment.FAILED, (Booking.CONFIRMED, Booking.PAID)) == (
        Booking.PENDING,
        Booking.UNPAID,
    )


def test_unknown_payment_status_is_rejected():
    with pytest.raises(InvalidStatus):
        target_pairing("partial", (Booking.PENDING, Booking.UNPAID))


def test_reserved_partial_status_is_not_a_valid_pairing():
    assert all(money != Booking.PARTIAL for _, money in VALID_PAIRINGS)


def test_pairing_for_cancellation_keeps_unpaid_and_flags_money():
    assert pairing_for_booking_status(Booking.CANCELLED, Booking.UNPAID) == (Booking.CANCELLED, Booking.UNPAID)
    assert pairing_for_booking_status(Booking.CANCELLED, Booking.PAID) == (
        Booking.CANCELLED,
        Booking.REFUND_PENDING,
    )
    assert pairing_for_booking_status(Booking.CONFIRMED, Booking.PAID) == (Booking.CONFIRMED, Booking.PAID)


@pytest.mark.django_db
def test_reconcile_is_idempotent(reconciler, make_booking, make_payment):
    booking = make_booking()
    payment = make_payment(booking, status=Payment.SUCCEEDED)

    first = reconciler.reconcile(payment)
    booking.refresh_from_db()
    updated_at = booking.updated_at
    second = reconciler.reconcile(payment)
    booking.refresh_from_db()

    assert first.outcome == CORRECTED
    assert first.previous == (Booking.PENDING, Booking.UNPAID)
    assert second.outcome == UNCHANGED
    assert booking.pairing == (Booking.CONFIRMED, Booking.PAID)
    assert booking.updated_at == updated_at


@pytest.mark.django_db
def test_reconcile_reads_current_payment_status(reconciler, make_booking, make_payment):
    booking = make_booking()
    payment = make_payment(booking)
    Payment.objects.filter(pk=payment.pk).update(status=Payment.FAILED)

    result = reconciler.reconcile(payment)

    assert result.outcome == UNCHANGED
    assert payment.status == Payment.FAILED
    assert result.booking.pairing == (Booking.PENDING, Booking.UNPAID)


@pytest.mark.django_db
def test_reconcile_notifies_only_on_change(make_booking, make_payment, gateway):
    sent = []
    reconciler = BookingPaymentReconciler(gateway=gateway, notify=lambda booking, kind: sent.append(kind))
    payment = make_payment(make_booking(), status=Payment.SUCCEEDED)

    reconciler.reconcile(payment)
    reconciler.reconcile(payment)
    reconciler.reconcile(payment, notify_kind=None)

    assert sent == ["booking_status"]


@pytest.mark.django_db
def test_orphan_payment_raises(reconciler, make_payment):
    orphan = make_payment(booking_id=999999, status=Payment.SUCCEEDED)

    with pytest.raises(OrphanPayment) as excinfo:
        reconciler.reconcile(orphan)

    assert excinfo.value.booking_id == 999999


@pytest.mark.django_db
def test_failed_attempt_is_superseded_by_settled_payment(reconciler, make_booking, make_payment):
    booking = make_booking()
    settled = make_payment(booking, status=Payment.SUCCEEDED)
    failed = make_payment(booking, status=Payment.FAILED)

    assert authoritative_payment(booking.pk) == settled
    assert reconciler.reconcile(failed).outcome == SUPERSEDED
    assert reconciler.reconcile(settled).outcome == CORRECTED
    booking.refresh_from_db()
    assert booking.pairing == (Booking.CONFIRMED, Booking.PAID)


@pytest.mark.django_db
def test_retry_after_failure_drives_pairing(reconciler, make_booking, make_payment):
    booking = make_booking(payment_status=Booking.PAYMENT_PENDING)
    make_payment(booking, status=Payment.FAILED)
    retry = make_payment(booking, status=Payment.PENDING)

    assert authoritative_payment(booking.pk) == retry
    assert reconciler.reconcile(retry).outcome == UNCHANGED


@pytest.mark.django_db
def test_set_payment_status_pairs_booking(make_booking, make_payment, gateway):
    sent = []
    reconciler = BookingPaymentReconciler(gateway=gateway, notify=lambda booking, kind: sent.append(kind))
    booking = make_booking(status=Booking.CONFIRMED, payment_status=Booking.PAID)
    payment = make_payment(booking, status=Payment.SUCCEEDED)

    updated_booking, updated_payment = reconciler.set_payment_status(payment.pk, Payment.REFUNDED)

    assert updated_payment.status == Payment.REFUNDED
    assert updated_booking.pairing == (Booking.CANCELLED, Booking.REFUNDED)
    assert sent == ["payment_status"]


@pytest.mark.django_db
def test_set_payment_status_rejects_unknown_status(reconciler, make_booking, make_payment):
    payment = make_payment(make_booking())

    with pytest.raises(InvalidStatus):
        reconciler.set_payment_status(payment.pk, "partial")

    payment.refresh_from_db()
    assert payment.status == Payment.PENDING


@pytest.mark.django_db
def test_set_payment_status_missing_payment(reconciler):
    with pytest.raises(NotFound):
        reconciler.set_payment_status(424242, Payment.FAILED)


@pytest.mark.django_db
def test_set_payment_status_on_orphan_records_status(reconciler, make_payment):
    orphan = make_payment(booking_id=999999)

    booking, payment = reconciler.set_payment_status(orphan.pk, Payment.FAILED)

    assert booking is None
    assert payment.status == Payment.FAILED


@pytest.mark.django_db
def test_admin_succeeded_on_cancelled_booking_applies_table(reconciler, make_booking, make_payment):
    booking = make_booking(status=Booking.CANCELLED, payment_status=Booking.UNPAID)
    payment = make_payment(booking, status=Payment.FAILED)

    updated_booking, _ = reconciler.set_payment_status(payment.pk, Payment.SUCCEEDED)

    assert updated_booking.pairing == (Booking.CONFIRMED, Booking.PAID)


@pytest.mark.django_db
def test_admin_refund_of_older_attempt_drives_pairing(reconciler, make_booking, make_payment):
    booking = make_booking(status=Booking.CONFIRMED, payment_status=Booking.PAID)
    older = make_payment(booking, status=Payment.FAILED)
    make_payment(booking, status=Payment.SUCCEEDED)

    updated_booking, payment = reconciler.set_payment_status(older.pk, Payment.REFUNDED)

    assert payment.status == Payment.REFUNDED
    assert updated_booking.pairing == (Booking.CANCELLED, Booking.REFUNDED)
    assert authoritative_payment(booking.pk) == older
    assert reconciler.resync_all().corrected_count == 0
