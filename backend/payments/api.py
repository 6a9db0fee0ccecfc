import logging

from django.db.models import Q
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsAdminRole
from bookings.models import Booking
from bookings.serializers import BookingSerializer
from core.exceptions import NotFound, Unauthorized
from core.pagination import AdminListPagination
from payments.models import Payment
from payments.serializers import (
    AdminPaymentSerializer,
    ConfirmationSerializer,
    PaymentConfirmSerializer,
    PaymentIntentCreateSerializer,
    PaymentSerializer,
    PaymentStatusSerializer,
)
from payments.services.checkout import open_checkout
from payments.services.gateway import get_gateway
from payments.services.payments import CustomerInfo
from payments.services.reconciler import BookingPaymentReconciler

logger = logging.getLogger(__name__)

ADMIN_ACTIONS = {"update", "admin_all", "resync"}


def _owns_booking(user, booking_id) -> bool:
    return Booking.objects.filter(pk=booking_id, user=user).exists()


class PaymentViewSet(viewsets.GenericViewSet):
    """Checkout, confirmation and payment records."""

    serializer_class = PaymentSerializer
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = r"\d+"
    filterset_fields = ["status", "currency"]
    search_fields = ["customer_name", "customer_email", "stripe_payment_intent_id", "transaction_id"]
    ordering_fields = ["created_at", "amount"]

    def get_permissions(self):
        if self.action in ADMIN_ACTIONS:
            return [permissions.IsAuthenticated(), IsAdminRole()]
        return super().get_permissions()

    def get_queryset(self):
        if self.action == "admin_all":
            return Payment.objects.all()
        own_bookings = Booking.objects.filter(user=self.request.user).values("pk")
        return Payment.objects.filter(booking_id__in=own_bookings)

    def list(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        return Response(PaymentSerializer(queryset, many=True).data)

    def retrieve(self, request, pk=None):
        payment = Payment.objects.filter(pk=pk).first()
        if payment is None:
            raise NotFound("Payment not found")
        if not request.user.is_admin and not _owns_booking(request.user, payment.booking_id):
            raise Unauthorized("Not authorized")
        serializer_class = AdminPaymentSerializer if request.user.is_admin else PaymentSerializer
        return Response(serializer_class(payment).data)

    def update(self, request, pk=None):
        serializer = PaymentStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking, payment = BookingPaymentReconciler().set_payment_status(
            pk, serializer.validated_data["status"]
        )
        return Response(
            {
                "detail": "Payment status updated",
                "payment": AdminPaymentSerializer(payment).data,
                "booking": BookingSerializer(booking).data if booking else None,
            }
        )

    @action(detail=False, methods=["post"], url_path="create-payment-intent")
    def create_payment_intent(self, request):
        serializer = PaymentIntentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        checkout = open_checkout(
            user=request.user,
            package_id=data["package_id"],
            travel_date=data["travel_date"],
            travelers=data["travelers"],
            customer=CustomerInfo(**data.get("customer", {})),
        )
        return Response(
            {
                "client_secret": checkout.client_secret,
                "booking": BookingSerializer(checkout.booking).data,
                "payment": PaymentSerializer(checkout.payment).data,
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=["post"])
    def confirm(self, request):
        serializer = PaymentConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        booking_id = data["booking_id"]
        if (
            not request.user.is_admin
            and Booking.objects.filter(pk=booking_id).exists()
            and not _owns_booking(request.user, booking_id)
        ):
            raise Unauthorized("Not authorized")

        booking, payment = BookingPaymentReconciler().confirm_payment(data["payment_intent_id"], booking_id)
        payload = ConfirmationSerializer(
            {"detail": "Payment confirmed successfully", "booking": booking, "payment": payment}
        ).data
        return Response(payload)

    @action(detail=False, methods=["get"], url_path="admin/all")
    def admin_all(self, request):
        paginator = AdminListPagination()
        queryset = self.filter_queryset(self.get_queryset())
        page = paginator.paginate_queryset(queryset, request, view=self)
        return paginator.get_paginated_response(AdminPaymentSerializer(page, many=True).data)

    @action(detail=False, methods=["post"])
    def resync(self, request):
        report = BookingPaymentReconciler().resync_all()
        return Response({"detail": f"Updated {report.corrected_count} bookings", **report.as_dict()})


class StripeBalanceView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdminRole]

    def get(self, request):
        return Response(dict(get_gateway().retrieve_balance()))


class StripeTransactionListView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdminRole]

    def get(self, request):
        try:
            limit = min(max(int(request.query_params.get("limit", 10)), 1), 100)
        except ValueError:
            limit = 10
        charges = get_gateway().list_charges(limit=limit)
        return Response({"count": len(charges), "data": [dict(charge) for charge in charges]})


class StripeTransactionDetailView(APIView):
    """A processor charge together with the local payment and booking it settled."""

    permission_classes = [permissions.IsAuthenticated, IsAdminRole]

    def get(self, request, charge_id):
        charge = dict(get_gateway().retrieve_charge(charge_id))
        lookup = Q(stripe_charge_id=charge_id)
        if charge.get("payment_intent"):
            lookup |= Q(stripe_payment_intent_id=charge["payment_intent"])
        payment = Payment.objects.filter(lookup).first()
        booking = Booking.objects.filter(pk=payment.booking_id).first() if payment else None
        if payment and booking is None:
            logger.warning("Charge %s maps to payment %s with a missing booking", charge_id, payment.pk)

        charge["enhanced_billing_details"] = {
            "payment": PaymentSerializer(payment).data if payment else None,
            "booking": BookingSerializer(booking).data if booking else None,
            "customer_name": booking.customer_name if booking else (payment.customer_name if payment else None),
            "customer_email": booking.customer_email if booking else (payment.customer_email if payment else None),
        }
        return Response(charge)
