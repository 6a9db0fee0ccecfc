from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from bookings.models import Booking
from core.exceptions import GatewayError
from packages.models import Package
from payments.models import Payment
from payments.services.gateway import (
    PaymentGateway,
    ProcessorCustomer,
    ProcessorIntent,
    ProcessorIntentStatus,
)

User = get_user_model()


@dataclass
class FakeGateway(PaymentGateway):
    """In-memory gateway that records calls and returns whatever the test configures."""

    intent_status: str = "succeeded"
    latest_charge: Optional[str] = "ch_fake_1"
    error: Optional[Exception] = None
    calls: List[tuple] = field(default_factory=list)
    charges: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    _counter: int = 0

    def _next_id(self, prefix):
        self._counter += 1
        return f"{prefix}_fake_{self._counter}"

    def _record(self, method, /, **kwargs):
        self.calls.append((method, kwargs))
        if self.error is not None:
            raise self.error

    def create_customer(self, *, name, email, phone=""):
        self._record("create_customer", name=name, email=email, phone=phone)
        return ProcessorCustomer(id=self._next_id("cus"))

    def create_payment_intent(self, *, amount_minor_units, currency, customer_id, metadata):
        self._record(
            "create_payment_intent",
            amount_minor_units=amount_minor_units,
            currency=currency,
            customer_id=customer_id,
            metadata=metadata,
        )
        intent_id = self._next_id("pi")
        return ProcessorIntent(id=intent_id, client_secret=f"{intent_id}_secret")

    def retrieve_payment_intent(self, intent_id):
        self._record("retrieve_payment_intent", intent_id=intent_id)
        return ProcessorIntentStatus(id=intent_id, status=self.intent_status, latest_charge=self.latest_charge)

    def list_charges(self, *, limit=10):
        self._record("list_charges", limit=limit)
        return list(self.charges.values())[:limit]

    def retrieve_charge(self, charge_id):
        self._record("retrieve_charge", charge_id=charge_id)
        if charge_id not in self.charges:
            raise GatewayError(f"No such charge: '{charge_id}'")
        return self.charges[charge_id]

    def retrieve_balance(self):
        self._record("retrieve_balance")
        return {"object": "balance", "available": [{"amount": 3000000, "currency": "pkr"}], "pending": []}


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def user(db):
    return User.objects.create_user(
        username="traveler@example.com",
        email="traveler@example.com",
        password="examplepass",
        first_name="Ayesha",
        last_name="Khan",
        phone="0300-1234567",
    )


@pytest.fixture
def other_user(db):
    return User.objects.create_user(
        username="other@example.com",
        email="other@example.com",
        password="examplepass",
    )


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        username="admin@example.com",
        email="admin@example.com",
        password="examplepass",
        role=User.ROLE_ADMIN,
    )


@pytest.fixture
def package(db):
    return Package.objects.create(
        title="Hunza Valley Explorer",
        description="Five days across the Karakoram.",
        image="https://cdn.example.com/hunza.jpg",
        start_point="Islamabad",
        destinations=["Gilgit", "Karimabad", "Attabad Lake"],
        duration="5 days",
        price=Decimal("15000.00"),
    )


@pytest.fixture
def travel_date():
    return timezone.localdate() + timedelta(days=30)


@pytest.fixture
def make_booking(user, package, travel_date):
    def _make(**overrides):
        travelers = overrides.pop("travelers", 2)
        values = {
            "package": package,
            "user": user,
            "package_name": package.title,
            "package_image": package.image,
            "travel_date": travel_date,
            "travelers": travelers,
            "customer_name": user.full_name,
            "customer_email": user.email,
            "total_amount": package.price * travelers,
            "status": Booking.PENDING,
            "payment_status": Booking.UNPAID,
        }
        values.update(overrides)
        return Booking.objects.create(**values)

    return _make


@pytest.fixture
def make_payment():
    counter = {"value": 0}

    def _make(booking=None, **overrides):
        counter["value"] += 1
        values = {
            "amount": booking.total_amount if booking else Decimal("30000.00"),
            "stripe_payment_intent_id": f"pi_fixture_{counter['value']}",
            "customer_name": booking.customer_name if booking else "Ghost",
            "customer_email": booking.customer_email if booking else "ghost@example.com",
            "status": Payment.PENDING,
        }
        if booking is not None:
            values["booking"] = booking
        values.update(overrides)
        return Payment.objects.create(**values)

    return _make
