"""Unit tests for the core model bases.

Exercised through the concrete models that use them: ``DeliveryAgent``
and ``Order`` for soft delete, ``CallAttempt``, ``OrderStatusChange`` and
``AuditLog`` for append-only records.
"""

from __future__ import annotations

import uuid

import pytest
from freezegun import freeze_time

from modules.core.models import AppendOnlyRecordError, AuditAction, AuditLog, EventStatus, OutboxEvent
from modules.delivery.models import DeliveryAgent
from modules.orders.constants import CallOutcome
from modules.orders.models import CallAttempt, Order, OrderStatusChange

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# BaseModel
# ---------------------------------------------------------------------------


class TestBaseModel:
    """UUIDv7 PK and timestamp behaviour."""

    def test_id_is_uuid_version_7(self, delivery_agent):
        assert isinstance(delivery_agent.id, uuid.UUID)
        assert delivery_agent.id.version == 7

    def test_ids_are_time_ordered(self, delivery_agent, other_delivery_agent):
        assert str(delivery_agent.id) < str(other_delivery_agent.id)

    def test_id_is_not_editable(self):
        assert DeliveryAgent._meta.get_field("id").editable is False

    def test_updated_at_changes_with_update_fields(self, delivery_agent):
        with freeze_time("2030-01-01 12:00:00"):
            delivery_agent.name = "Renamed"
            delivery_agent.save(update_fields=["name"])
        delivery_agent.refresh_from_db()

        assert delivery_agent.updated_at.year == 2030
        assert delivery_agent.created_at.year != 2030


# ---------------------------------------------------------------------------
# SoftDeleteModel
# ---------------------------------------------------------------------------


class TestSoftDeleteModel:
    def test_delete_sets_deleted_at(self, delivery_agent):
        result = delivery_agent.delete()
        delivery_agent.refresh_from_db()

        assert delivery_agent.is_deleted is True
        assert result == (1, {"delivery.DeliveryAgent": 1})

    def test_delete_is_noop_if_already_deleted(self, delivery_agent):
        delivery_agent.delete()
        assert delivery_agent.delete() == (0, {})

    def test_alive_and_dead(self, delivery_agent, other_delivery_agent):
        other_delivery_agent.delete()

        assert list(DeliveryAgent.objects.alive()) == [delivery_agent]
        assert list(DeliveryAgent.objects.dead()) == [other_delivery_agent]
        assert DeliveryAgent.objects.count() == 2

    def test_queryset_delete_is_soft(self, make_order):
        make_order()
        make_order()

        count, _ = Order.objects.all().delete()

        assert count == 2
        assert Order.objects.alive().count() == 0
        assert Order.objects.count() == 2

    def test_restore(self, delivery_agent):
        delivery_agent.delete()
        delivery_agent.restore()
        delivery_agent.refresh_from_db()

        assert delivery_agent.is_deleted is False
        assert delivery_agent.is_assignable is True

    def test_hard_delete_removes_row(self, delivery_agent):
        delivery_agent.hard_delete()
        assert not DeliveryAgent.objects.filter(pk=delivery_agent.pk).exists()


# ---------------------------------------------------------------------------
# AppendOnlyModel
# ---------------------------------------------------------------------------


@pytest.fixture()
def call_attempt(make_order, call_agent):
    order = make_order("CALL_ASSIGNED", call_assigned_to=call_agent)
    return CallAttempt.objects.create(order=order, agent=call_agent, outcome=CallOutcome.UNREACHABLE)


class TestAppendOnlyModel:
    def test_call_attempt_cannot_be_updated(self, call_attempt):
        call_attempt.outcome = CallOutcome.CONFIRMED
        with pytest.raises(AppendOnlyRecordError):
            call_attempt.save()

        call_attempt.refresh_from_db()
        assert call_attempt.outcome == CallOutcome.UNREACHABLE

    def test_call_attempt_cannot_be_deleted(self, call_attempt):
        with pytest.raises(AppendOnlyRecordError):
            call_attempt.delete()
        assert CallAttempt.objects.filter(pk=call_attempt.pk).exists()

    def test_status_change_cannot_be_updated(self, make_order):
        order = make_order()
        change = OrderStatusChange.objects.get(order=order)
        change.to_status = "DELIVERED"

        with pytest.raises(AppendOnlyRecordError, match="append-only"):
            change.save()

    def test_audit_entry_cannot_be_deleted(self):
        entry = AuditLog.objects.create(
            action=AuditAction.ORDER_CREATED, target_type="Order", target_id="abc"
        )
        with pytest.raises(AppendOnlyRecordError):
            entry.delete()


# ---------------------------------------------------------------------------
# OutboxEvent
# ---------------------------------------------------------------------------


class TestOutboxEvent:
    def test_defaults_and_str(self):
        event = OutboxEvent.objects.create(
            event_type="OrderCreated",
            payload={"total_cents": 12990},
            aggregate_id="order-456",
            topic="orders",
        )
        event.refresh_from_db()

        assert event.status == EventStatus.PENDING
        assert event.payload == {"total_cents": 12990}
        assert str(event) == "OrderCreated [PENDING] (order-456)"
