"""Abstract models and persistence records shared by every module.

- ``BaseModel``: UUIDv7 primary key with created/updated timestamps.
- ``SoftDeleteModel``: rows are hidden by stamping ``deleted_at``.
- ``AppendOnlyModel``: rows are written once (call attempts, status
  history, audit entries).
- ``OutboxEvent``: domain events stored with the data that raised them.
- ``AuditLog``: who-did-what trail written after commit.

``objects`` on soft-deletable models is unfiltered; callers ask for
``.alive()`` when deleted rows must be excluded.
"""

from __future__ import annotations

import uuid6
from django.db import models
from django.utils import timezone

# ---------------------------------------------------------------------------
# BaseModel
# ---------------------------------------------------------------------------


class BaseModel(models.Model):
    """UUIDv7 keys sort by creation time, which list endpoints rely on."""

    id = models.UUIDField(primary_key=True, default=uuid6.uuid7, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        # auto_now fields are skipped unless listed in update_fields
        fields = kwargs.get("update_fields")
        if fields is not None and "updated_at" not in fields:
            kwargs["update_fields"] = [*fields, "updated_at"]
        super().save(*args, **kwargs)


# ---------------------------------------------------------------------------
# Soft delete
# ---------------------------------------------------------------------------


class SoftDeleteQuerySet(models.QuerySet):
    def alive(self) -> SoftDeleteQuerySet:
        return self.filter(deleted_at__isnull=True)

    def dead(self) -> SoftDeleteQuerySet:
        return self.filter(deleted_at__isnull=False)

    def delete(self) -> tuple[int, dict[str, int]]:
        """Stamp ``deleted_at`` on every live row; returns Django's delete shape."""
        now = timezone.now()
        count = self.alive().update(deleted_at=now, updated_at=now)
        return count, {self.model._meta.label: count}

    def hard_delete(self) -> tuple[int, dict[str, int]]:
        return super().delete()

    delete.queryset_only = True
    hard_delete.queryset_only = True


SoftDeleteManager = models.Manager.from_queryset(SoftDeleteQuerySet)


class SoftDeleteModel(BaseModel):
    """``delete()`` hides the row; ``hard_delete()`` removes it."""

    deleted_at = models.DateTimeField(null=True, blank=True, default=None, db_index=True)

    objects = SoftDeleteManager()

    class Meta:
        abstract = True

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def _stamp_deleted(self, value) -> None:
        self.deleted_at = value
        self.save(update_fields=["deleted_at"])

    def delete(self, using=None, keep_parents=False) -> tuple[int, dict[str, int]]:
        if self.is_deleted:
            return 0, {}
        self._stamp_deleted(timezone.now())
        return 1, {self._meta.label: 1}

    def hard_delete(self, using=None, keep_parents=False) -> tuple[int, dict[str, int]]:
        return super().delete(using=using, keep_parents=keep_parents)

    def restore(self) -> None:
        if self.is_deleted:
            self._stamp_deleted(None)


# ---------------------------------------------------------------------------
# Append-only records
# ---------------------------------------------------------------------------


class AppendOnlyRecordError(Exception):
    """Raised when code tries to modify or remove an append-only record."""


class AppendOnlyModel(BaseModel):
    """Abstract model for immutable facts.

    Rows may be inserted once.  Saving an existing instance or deleting
    one raises ``AppendOnlyRecordError``.
    """

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        if not self._state.adding:
            raise AppendOnlyRecordError(
                f"{self._meta.label} records are append-only and cannot be updated."
            )
        super().save(*args, **kwargs)

    def delete(self, using=None, keep_parents=False):
        raise AppendOnlyRecordError(
            f"{self._meta.label} records are append-only and cannot be deleted."
        )


# ---------------------------------------------------------------------------
# Transactional Outbox
# ---------------------------------------------------------------------------


class EventStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PUBLISHED = "PUBLISHED", "Published"
    FAILED = "FAILED", "Failed"


class OutboxEvent(BaseModel):
    """Domain event persisted in the same transaction as the data that raised it.

    Repositories write one row per collected ``DomainEvent`` while saving an
    aggregate, so an event exists if and only if its transaction committed.
    """

    event_type = models.CharField(max_length=100)
    payload = models.JSONField()
    aggregate_id = models.CharField(max_length=255)
    topic = models.CharField(max_length=100)
    status = models.CharField(
        max_length=20,
        choices=EventStatus.choices,
        default=EventStatus.PENDING,
    )

    class Meta:
        db_table = "outbox_events"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["event_type"], name="outbox_event_type_idx"),
            models.Index(fields=["aggregate_id"], name="outbox_aggregate_id_idx"),
            models.Index(
                fields=["status", "created_at"],
                name="outbox_status_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.event_type} [{self.status}] ({self.aggregate_id})"


# ---------------------------------------------------------------------------
# Business audit log
# ---------------------------------------------------------------------------


class AuditAction(models.TextChoices):
    ORDER_CREATED = "ORDER_CREATED", "Order created"
    ORDER_UPDATED = "ORDER_UPDATED", "Order status updated"
    ORDER_DELETED = "ORDER_DELETED", "Order deleted"
    ORDER_CALL_ASSIGNED = "ORDER_CALL_ASSIGNED", "Call agent assigned"
    ORDER_CALL_ATTEMPT = "ORDER_CALL_ATTEMPT", "Call attempt logged"
    ORDER_DELIVERY_SELECTED = "ORDER_DELIVERY_SELECTED", "Delivery agent selected"
    ORDER_DELIVERY_ASSIGNED = "ORDER_DELIVERY_ASSIGNED", "Delivery agent assigned"
    ORDER_FAST_FORWARD = "ORDER_FAST_FORWARD", "Order fast-forwarded"
    DELIVERY_AGENT_CREATED = "DELIVERY_AGENT_CREATED", "Delivery agent created"
    DELIVERY_AGENT_UPDATED = "DELIVERY_AGENT_UPDATED", "Delivery agent updated"
    DELIVERY_AGENT_DELETED = "DELIVERY_AGENT_DELETED", "Delivery agent deleted"


class AuditLog(AppendOnlyModel):
    """Who did what to which record.

    Written asynchronously after the business transaction commits, so an
    entry may be missing if the sink fails; the business change never is.
    ``actor_id`` is a plain UUID (no FK) to keep the sink decoupled from
    the accounts table.
    """

    actor_id = models.UUIDField(null=True, blank=True, db_index=True)
    action = models.CharField(max_length=40, choices=AuditAction.choices)
    target_type = models.CharField(max_length=50)
    target_id = models.CharField(max_length=64)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "audit_logs"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["target_type", "target_id"],
                name="audit_target_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.action} {self.target_type}:{self.target_id}"
