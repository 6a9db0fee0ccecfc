from __future__ import annotations

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler


class TourbookError(Exception):
    """Base class for failures raised by the booking and payment services."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"
    default_message = "Request could not be completed."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_payload(self) -> dict:
        return {"detail": self.message, "code": self.code}


class NotFound(TourbookError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Not found."


class Unauthorized(TourbookError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "unauthorized"
    default_message = "Not authorized."


class InvalidState(TourbookError):
    code = "invalid_state"
    default_message = "Operation is not allowed in the current state."


class InvalidStatus(TourbookError):
    code = "invalid_status"
    default_message = "Invalid status."


class Conflict(TourbookError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    default_message = "Conflicting record already exists."


class OrphanPayment(TourbookError):
    status_code = status.HTTP_409_CONFLICT
    code = "orphan_payment"

    def __init__(self, payment_id, booking_id):
        self.payment_id = payment_id
        self.booking_id = booking_id
        super().__init__(f"Payment {payment_id} references missing booking {booking_id}.")


class GatewayError(TourbookError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "gateway_error"
    default_message = "Payment processor request failed."


class PaymentNotSucceeded(TourbookError):
    code = "payment_not_succeeded"

    def __init__(self, processor_status: str):
        self.processor_status = processor_status
        super().__init__("Payment not successful")

    def as_payload(self) -> dict:
        payload = super().as_payload()
        payload["payment_status"] = self.processor_status
        return payload


def api_exception_handler(exc, context):
    """Render service errors with their own status code, defer everything else to DRF."""
    if isinstance(exc, TourbookError):
        return Response(exc.as_payload(), status=exc.status_code)
    return exception_handler(exc, context)
