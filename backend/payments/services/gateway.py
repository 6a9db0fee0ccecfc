from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional
from uuid import uuid4

import stripe
from django.conf import settings

from core.exceptions import GatewayError

logger = logging.getLogger(__name__)

INTENT_SUCCEEDED = "succeeded"


@dataclass
class ProcessorCustomer:
    id: str


@dataclass
class ProcessorIntent:
    id: str
    client_secret: str


@dataclass
class ProcessorIntentStatus:
    id: str
    status: str
    latest_charge: Optional[str] = None


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount to the processor's minor units (x100)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentGateway:
    """Interface consumed by checkout and reconciliation. Implementations raise GatewayError."""

    def create_customer(self, *, name: str, email: str, phone: str = "") -> ProcessorCustomer:
        raise NotImplementedError

    def create_payment_intent(
        self,
        *,
        amount_minor_units: int,
        currency: str,
        customer_id: str,
        metadata: Dict[str, Any],
    ) -> ProcessorIntent:
        raise NotImplementedError

    def retrieve_payment_intent(self, intent_id: str) -> ProcessorIntentStatus:
        raise NotImplementedError

    def list_charges(self, *, limit: int = 10) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def retrieve_charge(self, charge_id: str) -> Dict[str, Any]:
        raise NotImplementedError

    def retrieve_balance(self) -> Dict[str, Any]:
        raise NotImplementedError


class StripeGateway(PaymentGateway):
    """Stripe-backed gateway. Each instance owns its client; no module-level Stripe state is touched."""

    def __init__(self, api_key: str, *, timeout: Optional[int] = None):
        if not api_key:
            raise RuntimeError("Stripe secret key is not configured.")
        self.api_key = api_key
        http_client = stripe.RequestsClient(timeout=timeout) if timeout else None
        self.client = stripe.StripeClient(api_key, http_client=http_client)

    def _call(self, description: str, func, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except stripe.StripeError as exc:
            logger.exception("Stripe request failed (%s): %s", description, exc)
            raise GatewayError(str(exc) or f"Stripe request failed: {description}") from exc

    def create_customer(self, *, name: str, email: str, phone: str = "") -> ProcessorCustomer:
        params = {key: value for key, value in {"name": name, "email": email, "phone": phone}.items() if value}
        customer = self._call("create customer", self.client.v1.customers.create, params=params)
        return ProcessorCustomer(id=customer.id)

    def create_payment_intent(self, *, amount_minor_units, currency, customer_id, metadata) -> ProcessorIntent:
        intent = self._call(
            "create payment intent",
            self.client.v1.payment_intents.create,
            params={
                "amount": amount_minor_units,
                "currency": currency,
                "customer": customer_id,
                "metadata": {key: str(value) for key, value in metadata.items()},
            },
        )
        return ProcessorIntent(id=intent.id, client_secret=intent.client_secret)

    def retrieve_payment_intent(self, intent_id: str) -> ProcessorIntentStatus:
        intent = self._call("retrieve payment intent", self.client.v1.payment_intents.retrieve, intent_id)
        latest_charge = getattr(intent, "latest_charge", None)
        if latest_charge is not None and not isinstance(latest_charge, str):
            latest_charge = latest_charge.id
        return ProcessorIntentStatus(id=intent.id, status=intent.status, latest_charge=latest_charge)

    def list_charges(self, *, limit: int = 10) -> List[Dict[str, Any]]:
        charges = self._call("list charges", self.client.v1.charges.list, params={"limit": limit})
        return list(charges.data)

    def retrieve_charge(self, charge_id: str) -> Dict[str, Any]:
        return self._call("retrieve charge", self.client.v1.charges.retrieve, charge_id)

    def retrieve_balance(self) -> Dict[str, Any]:
        return self._call("retrieve balance", self.client.v1.balance.retrieve)


@dataclass
class StubGateway(PaymentGateway):
    """
    Stand-in for Stripe when running in stub mode.

    Local development does not hit Stripe; identifiers are predictable and intents
    the stub has not been told otherwise about report ``succeeded`` so the
    confirmation flow can be exercised end to end.
    """

    intents: Dict[str, str] = field(default_factory=dict)
    charges: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def create_customer(self, *, name: str, email: str, phone: str = "") -> ProcessorCustomer:
        return ProcessorCustomer(id=f"cus_test_{uuid4().hex}")

    def create_payment_intent(self, *, amount_minor_units, currency, customer_id, metadata) -> ProcessorIntent:
        intent_id = f"pi_test_{uuid4().hex}"
        self.intents[intent_id] = "requires_payment_method"
        return ProcessorIntent(id=intent_id, client_secret=f"{intent_id}_secret_{uuid4().hex[:12]}")

    def set_intent_status(self, intent_id: str, status: str):
        self.intents[intent_id] = status

    def retrieve_payment_intent(self, intent_id: str) -> ProcessorIntentStatus:
        status = self.intents.get(intent_id, INTENT_SUCCEEDED)
        latest_charge = f"ch_test_{intent_id[-12:]}" if status == INTENT_SUCCEEDED else None
        return ProcessorIntentStatus(id=intent_id, status=status, latest_charge=latest_charge)

    def list_charges(self, *, limit: int = 10) -> List[Dict[str, Any]]:
        return list(self.charges.values())[:limit]

    def retrieve_charge(self, charge_id: str) -> Dict[str, Any]:
        charge = self.charges.get(charge_id)
        if charge is None:
            raise GatewayError(f"No such charge: '{charge_id}'")
        return charge

    def retrieve_balance(self) -> Dict[str, Any]:
        return {"object": "balance", "available": [], "pending": [], "livemode": False}


def _get_stripe_api_key() -> Optional[str]:
    key = getattr(settings, "STRIPE_SECRET_KEY", "")
    return key or None


def _should_use_stub() -> bool:
    if getattr(settings, "STRIPE_USE_STUB", False):
        return True
    return _get_stripe_api_key() is None


def get_gateway() -> PaymentGateway:
    """Build the gateway selected by settings: the Stripe client or the local stub."""
    if _should_use_stub():
        return StubGateway()
    return StripeGateway(
        _get_stripe_api_key(),
        timeout=getattr(settings, "STRIPE_TIMEOUT_SECONDS", None),
    )
