from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Marketplace account; admins manage bookings and payments for every customer."""

    ROLE_USER = "user"
    ROLE_ADMIN = "admin"
    ROLES = [
        (ROLE_USER, "User"),
        (ROLE_ADMIN, "Admin"),
    ]

    display_name = models.CharField(max_length=120, blank=True)
    phone = models.CharField(max_length=30, blank=True)
    role = models.CharField(max_length=10, choices=ROLES, default=ROLE_USER)

    @property
    def is_admin(self) -> bool:
        return self.is_superuser or self.role == self.ROLE_ADMIN

    @property
    def full_name(self) -> str:
        return self.display_name or f"{self.first_name} {self.last_name}".strip() or self.email
