"""User repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from modules.core.repositories.interfaces import IRepository, Queryable

if TYPE_CHECKING:
    from modules.accounts.models import User


class IUserRepository(IRepository["User"]):
    """Repository contract for user accounts.

    The workflow needs users only as call agents and customers, so the
    contract is read-heavy; ``delete`` deactivates instead of removing.
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[User]:
        """Retrieve a user by primary key; ``None`` for unknown or invalid ids."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Queryable[User]:
        """List users with optional ORM filters."""

    @abstractmethod
    def list_call_agents(
        self, status: Optional[str] = None, search: Optional[str] = None
    ) -> Queryable[User]:
        """List CALL_AGENT users annotated with ``open_order_count``."""
