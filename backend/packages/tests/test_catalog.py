from decimal import Decimal

import pytest

from core.exceptions import NotFound
from packages.models import Package
from packages.services.catalog import find_by_id


@pytest.mark.django_db
def test_find_by_id_returns_snapshot(package):
    snapshot = find_by_id(package.pk)

    assert snapshot.id == package.pk
    assert snapshot.title == "Hunza Valley Explorer"
    assert snapshot.price == Decimal("15000.00")


@pytest.mark.django_db
@pytest.mark.parametrize("package_id", [999999, "not-a-number", None])
def test_find_by_id_missing(package_id):
    with pytest.raises(NotFound):
        find_by_id(package_id)


@pytest.mark.django_db
def test_catalog_lists_active_packages_only(api_client, package):
    Package.objects.create(
        title="Retired Trek",
        description="No longer offered.",
        image="https://cdn.example.com/retired.jpg",
        start_point="Lahore",
        duration="3 days",
        price=Decimal("9000.00"),
        active=False,
    )

    response = api_client.get("/api/packages/")

    assert response.status_code == 200
    assert [item["title"] for item in response.json()] == ["Hunza Valley Explorer"]
    assert api_client.get(f"/api/packages/{package.pk}/").json()["price"] == "15000.00"
