"""Domain event primitives shared by the bounded contexts.

Aggregates collect events in memory while a command runs; the owning
repository drains them with ``pull_domain_events`` and writes each one
to the transactional outbox under the event's ``topic``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import ClassVar
from uuid import UUID, uuid4


@dataclass(frozen=True)
class DomainEvent:
    """Immutable fact about an aggregate; ``event_name`` is the class name."""

    topic: ClassVar[str] = "default"

    aggregate_id: UUID
    event_id: UUID = field(default_factory=uuid4)
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_name: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_name", type(self).__name__)


class DomainEventMixin:
    """Pending-event buffer for aggregate roots.

    Django model instances are built without calling ``__init__`` on
    the mixin, so the buffer is created lazily.
    """

    def _event_buffer(self) -> list[DomainEvent]:
        buffer = self.__dict__.get("_domain_events")
        if buffer is None:
            buffer = self.__dict__["_domain_events"] = []
        return buffer

    def add_domain_event(self, event: DomainEvent) -> None:
        self._event_buffer().append(event)

    def clear_domain_events(self) -> None:
        self._event_buffer().clear()

    def pull_domain_events(self) -> list[DomainEvent]:
        """Return the pending events in raise order and empty the buffer."""
        events = list(self._event_buffer())
        self.clear_domain_events()
        return events

    @property
    def domain_events(self) -> list[DomainEvent]:
        return list(self._event_buffer())
