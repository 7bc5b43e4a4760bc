"""Django ORM implementation of the User repository."""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db.models import Count, Q, QuerySet

from modules.accounts.constants import UserRole, UserStatus
from modules.accounts.models import User
from modules.accounts.repositories.interfaces import IUserRepository

logger = structlog.get_logger(__name__)


class UserDjangoRepository(IUserRepository):
    """Concrete User repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[User]:
        try:
            return User.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        queryset = User.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list_call_agents(
        self, status: Optional[str] = None, search: Optional[str] = None
    ) -> QuerySet:
        """Call agents with the number of orders currently awaiting their call."""
        from modules.orders.constants import OrderStatus

        queryset = User.objects.filter(role=UserRole.CALL_AGENT).annotate(
            open_order_count=Count(
                "call_assignments",
                filter=Q(
                    call_assignments__status=OrderStatus.CALL_ASSIGNED,
                    call_assignments__deleted_at__isnull=True,
                ),
            )
        )
        if status:
            queryset = queryset.filter(status=status)
        if search:
            queryset = queryset.filter(
                Q(username__icontains=search)
                | Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
                | Q(email__icontains=search)
                | Q(phone__icontains=search)
            )
        return queryset.order_by("first_name", "username")

    def save(self, entity: User) -> User:
        entity.save()
        return entity

    def delete(self, id: str) -> bool:
        """Deactivate the account; user rows are referenced by history."""
        user = self.get_by_id(id)
        if not user:
            return False
        user.status = UserStatus.INACTIVE
        user.is_active = False
        user.save(update_fields=["status", "is_active"])
        logger.info("user.deactivated", user_id=str(id))
        return True
