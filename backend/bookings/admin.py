from django.contrib import admin

from payments.models import Payment

from .models import Booking


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    can_delete = False
    fields = ("stripe_payment_intent_id", "amount", "currency", "status", "transaction_id", "created_at")
    readonly_fields = fields


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "package_name", "customer_email", "travel_date", "travelers", "status", "payment_status")
    list_filter = ("status", "payment_status", "payment_method")
    search_fields = ("package_name", "customer_name", "customer_email", "stripe_payment_intent_id")
    readonly_fields = ("status", "payment_status", "total_amount", "booking_date", "updated_at")
    inlines = [PaymentInline]

    def has_delete_permission(self, request, obj=None):
        return False
