"""Custom user model.

The workflow only ever consults ``role`` and ``status``; everything else is
stock ``AbstractUser``.  ``status`` is the business-level account state
(a SUSPENDED call agent can still log in but cannot receive assignments),
while ``is_active`` keeps its Django meaning of "may authenticate".
"""

from __future__ import annotations

import uuid6
from django.contrib.auth.models import AbstractUser, UserManager as DjangoUserManager
from django.db import models

from modules.accounts.constants import UserRole, UserStatus


class UserManager(DjangoUserManager):
    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("role", UserRole.SUPER_ADMIN)
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    id = models.UUIDField(primary_key=True, default=uuid6.uuid7, editable=False)
    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.CUSTOMER,
        db_index=True,
    )
    status = models.CharField(
        max_length=20,
        choices=UserStatus.choices,
        default=UserStatus.ACTIVE,
    )
    phone = models.CharField(max_length=20, blank=True, default="")

    objects = UserManager()

    class Meta:
        db_table = "users"
        ordering = ["username"]
        indexes = [
            models.Index(fields=["role", "status"], name="users_role_status_idx"),
        ]

    @property
    def display_name(self) -> str:
        return self.get_full_name() or self.username

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"
