from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from core.exceptions import NotFound
from packages.models import Package


@dataclass(frozen=True)
class PackageSnapshot:
    id: int
    title: str
    image: str
    price: Decimal


def find_by_id(package_id) -> PackageSnapshot:
    """Return the bookable fields of an active package or raise NotFound."""
    try:
        package = Package.objects.only("id", "title", "image", "price").get(pk=package_id, active=True)
    except (Package.DoesNotExist, ValueError, TypeError):
        raise NotFound("Package not found")
    return PackageSnapshot(id=package.id, title=package.title, image=package.image, price=package.price)
