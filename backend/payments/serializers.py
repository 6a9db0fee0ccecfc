from django.utils import timezone
from rest_framework import serializers

from bookings.models import Booking
from bookings.serializers import BookingSerializer, CustomerInputSerializer
from payments.models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    booking_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "booking_id",
            "amount",
            "currency",
            "customer_name",
            "customer_email",
            "customer_phone",
            "stripe_payment_intent_id",
            "stripe_charge_id",
            "transaction_id",
            "status",
            "payment_method",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AdminPaymentSerializer(PaymentSerializer):
    booking = serializers.SerializerMethodField()

    class Meta(PaymentSerializer.Meta):
        fields = PaymentSerializer.Meta.fields + ["booking"]
        read_only_fields = fields

    def get_booking(self, obj: Payment):
        # Orphaned payments keep their booking id but have no booking row.
        booking = Booking.objects.filter(pk=obj.booking_id).first()
        if booking is None:
            return None
        return {
            "id": booking.pk,
            "package_name": booking.package_name,
            "travel_date": booking.travel_date,
            "status": booking.status,
            "payment_status": booking.payment_status,
        }


class PaymentIntentCreateSerializer(serializers.Serializer):
    package_id = serializers.IntegerField()
    travel_date = serializers.DateField()
    travelers = serializers.IntegerField(min_value=1)
    customer = CustomerInputSerializer(required=False)

    def validate_travel_date(self, value):
        if value < timezone.localdate():
            raise serializers.ValidationError("Travel date cannot be in the past.")
        return value


class PaymentConfirmSerializer(serializers.Serializer):
    payment_intent_id = serializers.CharField()
    booking_id = serializers.IntegerField()


class PaymentStatusSerializer(serializers.Serializer):
    status = serializers.CharField()


class ConfirmationSerializer(serializers.Serializer):
    detail = serializers.CharField()
    booking = BookingSerializer()
    payment = PaymentSerializer()
