"""Account roles and statuses."""

from django.db import models


class UserRole(models.TextChoices):
    SUPER_ADMIN = "SUPER_ADMIN", "Super admin"
    ADMIN = "ADMIN", "Admin"
    CALL_AGENT = "CALL_AGENT", "Call agent"
    CUSTOMER = "CUSTOMER", "Customer"


class UserStatus(models.TextChoices):
    ACTIVE = "ACTIVE", "Active"
    INACTIVE = "INACTIVE", "Inactive"
    SUSPENDED = "SUSPENDED", "Suspended"


STAFF_ROLES = frozenset({UserRole.SUPER_ADMIN, UserRole.ADMIN})
