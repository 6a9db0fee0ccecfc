import logging

from django.contrib import admin, messages
from django.db import DatabaseError

from core.exceptions import OrphanPayment, TourbookError

from .models import Payment
from .services.reconciler import CORRECTED, BookingPaymentReconciler

logger = logging.getLogger(__name__)


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("id", "booking_id", "amount", "currency", "status", "stripe_payment_intent_id", "created_at")
    list_filter = ("status", "currency")
    search_fields = ("stripe_payment_intent_id", "stripe_charge_id", "transaction_id", "customer_email")
    readonly_fields = ("status", "amount", "created_at", "updated_at")
    actions = ["reconcile_selected"]

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description="Re-pair bookings with the selected payments")
    def reconcile_selected(self, request, queryset):
        reconciler = BookingPaymentReconciler()
        corrected = 0
        orphaned = []
        errors = {}
        for payment in queryset.order_by("id"):
            try:
                result = reconciler.reconcile(payment)
            except OrphanPayment:
                orphaned.append(payment.pk)
                continue
            except (TourbookError, DatabaseError) as exc:
                logger.exception("Failed to reconcile payment %s from admin", payment.pk)
                errors[payment.pk] = str(exc)
                continue
            if result.outcome == CORRECTED:
                corrected += 1

        self.message_user(request, f"Corrected {corrected} booking(s).", messages.SUCCESS)
        if orphaned:
            self.message_user(
                request,
                f"{len(orphaned)} payment(s) reference a missing booking: "
                + ", ".join(str(payment_id) for payment_id in orphaned),
                messages.WARNING,
            )
        for payment_id, message in errors.items():
            self.message_user(request, f"Payment {payment_id}: {message}", messages.ERROR)
