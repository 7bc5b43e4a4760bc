"""Integration tests for the business audit trail.

Entries are handed to the sink only after the transaction commits, so
rejected commands leave no entry and a failing sink never undoes the
change it describes.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from django.db import DatabaseError

from modules.core.models import AuditAction, AuditLog
from modules.orders.constants import CallOutcome, OrderStatus
from modules.orders.dtos import (
    AssignDeliveryAgentDTO,
    FastForwardDTO,
    LogCallAttemptDTO,
    UpdateStatusDTO,
)
from modules.orders.exceptions import InvalidTransition
from modules.orders.views import build_order_service

pytestmark = pytest.mark.integration


@pytest.fixture()
def service():
    return build_order_service()


class TestAuditTrail:
    def test_entry_written_after_commit(
        self, service, admin_actor, order_admin, make_order, django_capture_on_commit_callbacks
    ):
        order = make_order(OrderStatus.CALL_CONFIRMED)

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            service.update_status(
                str(order.id), UpdateStatusDTO(status=OrderStatus.PACKED), admin_actor
            )

        assert len(callbacks) == 1
        entry = AuditLog.objects.get()
        assert entry.action == AuditAction.ORDER_UPDATED
        assert entry.actor_id == order_admin.id
        assert entry.target_type == "Order"
        assert entry.target_id == str(order.id)
        assert entry.metadata["from_status"] == "CALL_CONFIRMED"
        assert entry.metadata["to_status"] == "PACKED"

    def test_call_attempt_entry(
        self, service, call_agent, call_agent_actor, make_order, django_capture_on_commit_callbacks
    ):
        order = make_order(OrderStatus.CALL_ASSIGNED, call_assigned_to=call_agent)

        with django_capture_on_commit_callbacks(execute=True):
            service.log_call_attempt(
                str(order.id), LogCallAttemptDTO(outcome=CallOutcome.WRONG_NUMBER), call_agent_actor
            )

        entry = AuditLog.objects.get()
        assert entry.action == AuditAction.ORDER_CALL_ATTEMPT
        assert entry.metadata["outcome"] == "WRONG_NUMBER"
        assert entry.metadata["status_changed"] is False

    def test_override_reason_recorded(
        self,
        service,
        super_admin_actor,
        make_order,
        delivery_agent,
        other_delivery_agent,
        django_capture_on_commit_callbacks,
    ):
        order = make_order(
            OrderStatus.DELIVERY_AGENT_SELECTED, selected_delivery_agent=delivery_agent
        )

        with django_capture_on_commit_callbacks(execute=True):
            service.assign_delivery_agent(
                str(order.id),
                AssignDeliveryAgentDTO(
                    agent_id=other_delivery_agent.id, override=True, reason="rider sick"
                ),
                super_admin_actor,
            )

        entry = AuditLog.objects.get()
        assert entry.action == AuditAction.ORDER_DELIVERY_ASSIGNED
        assert entry.metadata["is_override"] is True
        assert entry.metadata["override_reason"] == "rider sick"

    def test_rejected_command_leaves_no_entry(
        self, service, admin_actor, make_order, django_capture_on_commit_callbacks
    ):
        order = make_order(OrderStatus.CANCELLED)

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(InvalidTransition):
                service.update_status(
                    str(order.id), UpdateStatusDTO(status=OrderStatus.PACKED), admin_actor
                )

        assert callbacks == []
        assert AuditLog.objects.count() == 0

    def test_sink_failure_keeps_business_change(
        self, service, admin_actor, make_order, django_capture_on_commit_callbacks
    ):
        order = make_order(OrderStatus.CALL_CONFIRMED)

        with patch.object(AuditLog.objects, "create", side_effect=DatabaseError("down")):
            with django_capture_on_commit_callbacks(execute=True):
                service.fast_forward(str(order.id), FastForwardDTO(reason="batch"), admin_actor)

        order.refresh_from_db()
        assert order.status == OrderStatus.PACKED
        assert AuditLog.objects.count() == 0
