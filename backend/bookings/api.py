from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from accounts.permissions import IsAdminRole
from bookings.models import Booking
from bookings.serializers import (
    AdminBookingSerializer,
    BookingCreateSerializer,
    BookingSerializer,
    BookingStatusSerializer,
)
from bookings.services.bookings import (
    cancel_booking,
    create_booking,
    get_booking_for,
    set_booking_status,
)
from core.pagination import AdminListPagination
from payments.services.payments import CustomerInfo


class BookingViewSet(viewsets.GenericViewSet):
    """Customer bookings plus the admin status override and listing."""

    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = r"\d+"
    filterset_fields = ["status", "payment_status"]
    search_fields = ["package_name", "customer_name", "customer_email"]
    ordering_fields = ["booking_date", "travel_date", "total_amount"]

    def get_permissions(self):
        if self.action in {"update", "admin_all"}:
            return [permissions.IsAuthenticated(), IsAdminRole()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = Booking.objects.select_related("package", "user")
        if self.action == "admin_all":
            return queryset
        return queryset.filter(user=self.request.user)

    def list(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        return Response(BookingSerializer(queryset, many=True).data)

    def create(self, request):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        booking = create_booking(
            package_id=data["package_id"],
            user=request.user,
            travel_date=data["travel_date"],
            travelers=data["travelers"],
            customer=CustomerInfo(**data.get("customer", {})),
        )
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        booking = get_booking_for(pk, request.user)
        return Response(BookingSerializer(booking).data)

    def update(self, request, pk=None):
        serializer = BookingStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = set_booking_status(pk, serializer.validated_data["status"])
        return Response(AdminBookingSerializer(booking).data)

    @action(detail=True, methods=["put"])
    def cancel(self, request, pk=None):
        booking = cancel_booking(pk, request.user)
        return Response(
            {"detail": "Booking cancelled successfully", "booking": BookingSerializer(booking).data}
        )

    @action(detail=False, methods=["get"], url_path="admin/all")
    def admin_all(self, request):
        paginator = AdminListPagination()
        queryset = self.filter_queryset(self.get_queryset())
        page = paginator.paginate_queryset(queryset, request, view=self)
        return paginator.get_paginated_response(AdminBookingSerializer(page, many=True).data)
