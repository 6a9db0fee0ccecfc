from django.utils import timezone
from rest_framework import serializers

from bookings.models import Booking
from payments.models import Payment


class BookingPaymentSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = [
            "id",
            "amount",
            "currency",
            "status",
            "stripe_payment_intent_id",
            "transaction_id",
            "created_at",
        ]
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    package_id = serializers.IntegerField(source="package.id", read_only=True)
    payments = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "package_id",
            "package_name",
            "package_image",
            "travel_date",
            "booking_date",
            "travelers",
            "customer_name",
            "customer_email",
            "customer_phone",
            "total_amount",
            "status",
            "payment_status",
            "payment_method",
            "stripe_payment_intent_id",
            "transaction_id",
            "payments",
            "updated_at",
        ]
        read_only_fields = fields

    def get_payments(self, obj: Booking):
        payments = Payment.objects.filter(booking_id=obj.pk)
        return BookingPaymentSummarySerializer(payments, many=True).data


class AdminBookingSerializer(BookingSerializer):
    user = serializers.SerializerMethodField()

    class Meta(BookingSerializer.Meta):
        fields = BookingSerializer.Meta.fields + ["user", "stripe_customer_id", "stripe_charge_id"]
        read_only_fields = fields

    def get_user(self, obj: Booking):
        return {"id": obj.user_id, "email": obj.user.email, "name": obj.user.full_name}


class CustomerInputSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True, default="")
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    phone = serializers.CharField(required=False, allow_blank=True, default="")


class BookingCreateSerializer(serializers.Serializer):
    package_id = serializers.IntegerField()
    travel_date = serializers.DateField()
    travelers = serializers.IntegerField(min_value=1)
    customer = CustomerInputSerializer(required=False)

    def validate_travel_date(self, value):
        if value < timezone.localdate():
            raise serializers.ValidationError("Travel date cannot be in the past.")
        return value


class BookingStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.STATUSES)
