"""The acting principal, passed explicitly into every service call."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from modules.accounts.constants import UserRole
from modules.core.exceptions import Unauthenticated


@dataclass(frozen=True)
class Actor:
    id: str
    role: UserRole

    @classmethod
    def from_user(cls, user: Any) -> Actor:
        """Build an actor from an authenticated user.

        Raises:
            Unauthenticated: ``user`` is missing or anonymous.
        """
        if user is None or not getattr(user, "is_authenticated", False):
            raise Unauthenticated()
        return cls(id=str(user.pk), role=UserRole(user.role))


def actor_from_request(request: Any) -> Actor:
    return Actor.from_user(getattr(request, "user", None))
