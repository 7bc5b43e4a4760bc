"""Repository base contract shared by every module.

Services receive repositories through their constructors and only see
these interfaces; the Django implementations live next to each module's
models.  Tests swap in ``MagicMock(spec=...)`` instances.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional, Protocol, TypeVar

from django.db import models

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Queryable(Protocol[T_co]):
    """What list methods hand back: a lazily filtered, sortable result."""

    def filter(self, *args: Any, **kwargs: Any) -> models.QuerySet: ...

    def order_by(self, *fields: str) -> models.QuerySet: ...


class IRepository(ABC, Generic[T]):
    """Lookup, listing and persistence for one aggregate type ``T``.

    ``get_by_id`` hides soft-deleted rows and answers ``None`` for ids
    that are not valid UUIDs.  ``delete`` reports whether anything was
    removed.
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]: ...

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Queryable[T]: ...

    @abstractmethod
    def save(self, entity: T) -> T: ...

    @abstractmethod
    def delete(self, id: str) -> bool: ...
