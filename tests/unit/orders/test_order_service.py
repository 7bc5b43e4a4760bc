"""Unit tests for OrderService with mocked repositories.

Service methods are called through ``__wrapped__`` to bypass
``transaction.atomic``; ``record_audit`` is patched so nothing is queued.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from unittest.mock import MagicMock, patch
from uuid import UUID, uuid4

import pytest

from modules.accounts.actors import Actor
from modules.accounts.constants import UserRole, UserStatus
from modules.core.exceptions import Forbidden
from modules.core.models import AuditAction
from modules.orders.constants import CallOutcome, OrderStatus, PrerequisiteReason
from modules.orders.dtos import (
    AssignCallAgentDTO,
    AssignDeliveryAgentDTO,
    CallAttemptFilterDTO,
    CreateOrderDTO,
    FastForwardDTO,
    LogCallAttemptDTO,
    UpdateStatusDTO,
)
from modules.orders.exceptions import (
    CustomerNotFound,
    InvalidTransition,
    OrderNotDeletable,
    OrderNotFound,
    PrerequisiteNotMet,
)
from modules.orders.services import OrderService

pytestmark = pytest.mark.unit

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
SUPER = Actor(id=str(uuid4()), role=UserRole.SUPER_ADMIN)
ADMIN = Actor(id=str(uuid4()), role=UserRole.ADMIN)
CALLER = Actor(id=str(uuid4()), role=UserRole.CALL_AGENT)


@dataclass
class StubOrder:
    id: UUID
    status: str
    customer_id: Optional[UUID] = None
    call_assigned_to_id: Optional[str] = None
    call_assigned_by_id: Optional[str] = None
    call_assigned_at: Optional[datetime] = None
    call_confirmed_at: Optional[datetime] = None
    call_notes: str = ""
    selected_delivery_agent_id: Optional[UUID] = None
    delivery_agent_id: Optional[UUID] = None
    order_number: str = "ORD-20260301-ABC123"


@dataclass
class StubUser:
    id: str
    role: str
    status: str = UserStatus.ACTIVE


@dataclass
class StubDeliveryAgent:
    id: UUID
    is_active: bool = True


@dataclass
class StubAttempt:
    id: UUID


@pytest.fixture()
def repos():
    order_repo = MagicMock()
    user_repo = MagicMock()
    delivery_repo = MagicMock()
    order_repo.has_confirmed_call_attempt.return_value = False
    order_repo.apply_transition.side_effect = lambda order, plan, **kwargs: order
    order_repo.get_by_id.side_effect = lambda order_id: None
    order_repo.add_call_attempt.return_value = StubAttempt(id=uuid4())
    return order_repo, user_repo, delivery_repo


@pytest.fixture()
def service(repos):
    order_repo, user_repo, delivery_repo = repos
    return OrderService(order_repo, user_repo, delivery_repo, clock=lambda: NOW)


@pytest.fixture(autouse=True)
def audit():
    with patch("modules.orders.services.record_audit") as record_audit:
        yield record_audit


def _call(method, service, *args):
    return getattr(OrderService, method).__wrapped__(service, *args)


def _locked(order_repo, order):
    order_repo.get_for_update.return_value = order
    return order


def _plan_of(order_repo):
    return order_repo.apply_transition.call_args.args[1]


# ---------------------------------------------------------------------------
# Role gate runs before anything is read
# ---------------------------------------------------------------------------


class TestRoleGate:
    def test_admin_cannot_assign_call_agent(self, service, repos):
        order_repo, _, _ = repos
        with pytest.raises(Forbidden):
            _call("assign_call_agent", service, str(uuid4()), AssignCallAgentDTO(agent_id=uuid4()), ADMIN)
        order_repo.get_for_update.assert_not_called()

    def test_call_agent_cannot_fast_forward(self, service, repos):
        order_repo, _, _ = repos
        with pytest.raises(Forbidden):
            _call("fast_forward", service, str(uuid4()), FastForwardDTO(), CALLER)
        order_repo.get_for_update.assert_not_called()

    def test_unknown_order(self, service, repos):
        order_repo, _, _ = repos
        order_repo.get_for_update.return_value = None
        with pytest.raises(OrderNotFound):
            _call("update_status", service, str(uuid4()), UpdateStatusDTO(status="CANCELLED"), ADMIN)


# ---------------------------------------------------------------------------
# assign_call_agent
# ---------------------------------------------------------------------------


class TestAssignCallAgent:
    def test_commits_plan_and_audits(self, service, repos, audit):
        order_repo, user_repo, _ = repos
        order = _locked(order_repo, StubOrder(id=uuid4(), status=OrderStatus.PENDING))
        agent_id = uuid4()
        user_repo.get_by_id.return_value = StubUser(id=str(agent_id), role=UserRole.CALL_AGENT)

        _call("assign_call_agent", service, str(order.id), AssignCallAgentDTO(agent_id=agent_id), SUPER)

        user_repo.get_by_id.assert_called_once_with(str(agent_id))
        plan = _plan_of(order_repo)
        assert plan.to_status == OrderStatus.CALL_ASSIGNED
        assert plan.field_mutations["call_assigned_to_id"] == str(agent_id)
        assert plan.field_mutations["call_assigned_at"] == NOW
        assert order_repo.apply_transition.call_args.kwargs["changed_by_id"] == SUPER.id
        audit.assert_called_once()
        assert audit.call_args.kwargs["action"] == AuditAction.ORDER_CALL_ASSIGNED

    def test_suspended_agent_rejected_without_writes(self, service, repos, audit):
        order_repo, user_repo, _ = repos
        order = _locked(order_repo, StubOrder(id=uuid4(), status=OrderStatus.PENDING))
        agent_id = uuid4()
        user_repo.get_by_id.return_value = StubUser(
            id=str(agent_id), role=UserRole.CALL_AGENT, status=UserStatus.SUSPENDED
        )

        with pytest.raises(PrerequisiteNotMet) as exc_info:
            _call("assign_call_agent", service, str(order.id), AssignCallAgentDTO(agent_id=agent_id), SUPER)

        assert exc_info.value.reason is PrerequisiteReason.CALL_AGENT_INACTIVE
        order_repo.apply_transition.assert_not_called()
        audit.assert_not_called()


# ---------------------------------------------------------------------------
# log_call_attempt
# ---------------------------------------------------------------------------


class TestLogCallAttempt:
    def _assigned(self, order_repo, **fields):
        return _locked(
            order_repo,
            StubOrder(
                id=uuid4(),
                status=fields.pop("status", OrderStatus.CALL_ASSIGNED),
                call_assigned_to_id=CALLER.id,
                **fields,
            ),
        )

    @pytest.mark.parametrize("outcome", [CallOutcome.UNREACHABLE, CallOutcome.WRONG_NUMBER])
    def test_no_status_change(self, service, repos, audit, outcome):
        order_repo, _, _ = repos
        order = self._assigned(order_repo)

        result = _call("log_call_attempt", service, str(order.id), LogCallAttemptDTO(outcome=outcome), CALLER)

        order_repo.add_call_attempt.assert_called_once_with(order.id, CALLER.id, outcome, "")
        order_repo.apply_transition.assert_not_called()
        assert result.status_changed is False
        assert result.transition_error is None
        assert audit.call_args.kwargs["action"] == AuditAction.ORDER_CALL_ATTEMPT

    def test_confirmed_counts_its_own_attempt(self, service, repos):
        order_repo, _, _ = repos
        order = self._assigned(order_repo)
        order_repo.has_confirmed_call_attempt.return_value = True

        result = _call(
            "log_call_attempt",
            service,
            str(order.id),
            LogCallAttemptDTO(outcome=CallOutcome.CONFIRMED, notes="happy customer"),
            CALLER,
        )

        plan = _plan_of(order_repo)
        assert plan.to_status == OrderStatus.CALL_CONFIRMED
        assert plan.field_mutations["call_notes"] == "happy customer"
        assert result.status_changed is True

    def test_customer_cancelled(self, service, repos):
        order_repo, _, _ = repos
        order = self._assigned(order_repo)

        _call(
            "log_call_attempt",
            service,
            str(order.id),
            LogCallAttemptDTO(outcome=CallOutcome.CUSTOMER_CANCELLED),
            CALLER,
        )

        assert _plan_of(order_repo).to_status == OrderStatus.CANCELLED

    def test_foreign_order_rejected_before_attempt_is_stored(self, service, repos):
        order_repo, _, _ = repos
        _locked(
            order_repo,
            StubOrder(id=uuid4(), status=OrderStatus.CALL_ASSIGNED, call_assigned_to_id=str(uuid4())),
        )

        with pytest.raises(Forbidden):
            _call(
                "log_call_attempt",
                service,
                str(uuid4()),
                LogCallAttemptDTO(outcome=CallOutcome.CONFIRMED),
                CALLER,
            )
        order_repo.add_call_attempt.assert_not_called()

    def test_rejected_transition_keeps_attempt(self, service, repos):
        order_repo, _, _ = repos
        order = self._assigned(order_repo, status=OrderStatus.PACKED)
        order_repo.has_confirmed_call_attempt.return_value = True

        result = _call(
            "log_call_attempt",
            service,
            str(order.id),
            LogCallAttemptDTO(outcome=CallOutcome.CONFIRMED),
            ADMIN,
        )

        order_repo.add_call_attempt.assert_called_once()
        order_repo.apply_transition.assert_not_called()
        assert isinstance(result.transition_error, InvalidTransition)
        assert result.status_changed is False


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------


class TestAssignDeliveryAgent:
    def test_load_adjusted_in_same_unit_of_work(self, service, repos, audit):
        order_repo, _, delivery_repo = repos
        agent_id = uuid4()
        order = _locked(
            order_repo,
            StubOrder(
                id=uuid4(),
                status=OrderStatus.DELIVERY_AGENT_SELECTED,
                selected_delivery_agent_id=agent_id,
            ),
        )
        delivery_repo.get_by_id.return_value = StubDeliveryAgent(id=agent_id)

        _call("assign_delivery_agent", service, str(order.id), AssignDeliveryAgentDTO(), ADMIN)

        delivery_repo.get_by_id.assert_called_once_with(str(agent_id))
        delivery_repo.adjust_load.assert_called_once_with(str(agent_id), 1)
        assert audit.call_args.kwargs["metadata"]["is_override"] is False

    def test_deactivated_agent_is_rejected(self, service, repos):
        order_repo, _, delivery_repo = repos
        agent_id = uuid4()
        order = _locked(
            order_repo,
            StubOrder(
                id=uuid4(),
                status=OrderStatus.DELIVERY_AGENT_SELECTED,
                selected_delivery_agent_id=agent_id,
            ),
        )
        delivery_repo.get_by_id.return_value = StubDeliveryAgent(id=agent_id, is_active=False)

        with pytest.raises(PrerequisiteNotMet) as exc_info:
            _call("assign_delivery_agent", service, str(order.id), AssignDeliveryAgentDTO(), ADMIN)

        assert exc_info.value.reason is PrerequisiteReason.DELIVERY_AGENT_INACTIVE
        delivery_repo.adjust_load.assert_not_called()


# ---------------------------------------------------------------------------
# Generic update, fast-forward, delete
# ---------------------------------------------------------------------------


class TestUpdateStatus:
    def test_generic_update_enforces_prerequisites(self, service, repos):
        order_repo, _, _ = repos
        order = _locked(
            order_repo,
            StubOrder(id=uuid4(), status=OrderStatus.CALL_ASSIGNED, call_assigned_to_id=CALLER.id),
        )

        with pytest.raises(PrerequisiteNotMet) as exc_info:
            _call("update_status", service, str(order.id), UpdateStatusDTO(status="CALL_CONFIRMED"), ADMIN)

        assert exc_info.value.reason is PrerequisiteReason.NO_CONFIRMED_CALL_ATTEMPT
        order_repo.apply_transition.assert_not_called()

    def test_release_load_on_delivery(self, service, repos, audit):
        order_repo, _, delivery_repo = repos
        agent_id = uuid4()
        order = _locked(
            order_repo,
            StubOrder(id=uuid4(), status=OrderStatus.OUT_FOR_DELIVERY, delivery_agent_id=agent_id),
        )

        _call("update_status", service, str(order.id), UpdateStatusDTO(status="DELIVERED"), ADMIN)

        delivery_repo.adjust_load.assert_called_once_with(str(agent_id), -1)
        assert audit.call_args.kwargs["action"] == AuditAction.ORDER_UPDATED


class TestFastForward:
    def test_advances_one_step(self, service, repos, audit):
        order_repo, _, _ = repos
        order = _locked(order_repo, StubOrder(id=uuid4(), status=OrderStatus.CALL_CONFIRMED))

        _call("fast_forward", service, str(order.id), FastForwardDTO(reason="batch"), ADMIN)

        assert _plan_of(order_repo).to_status == OrderStatus.PACKED
        assert audit.call_args.kwargs["action"] == AuditAction.ORDER_FAST_FORWARD
        assert audit.call_args.kwargs["metadata"]["reason"] == "batch"


class TestDeleteOrder:
    def test_in_progress_order_not_deletable(self, service, repos):
        order_repo, _, _ = repos
        order = _locked(order_repo, StubOrder(id=uuid4(), status=OrderStatus.PACKED))

        with pytest.raises(OrderNotDeletable):
            _call("delete_order", service, str(order.id), ADMIN)
        order_repo.delete.assert_not_called()

    def test_pending_order_deleted(self, service, repos, audit):
        order_repo, _, _ = repos
        order = _locked(order_repo, StubOrder(id=uuid4(), status=OrderStatus.PENDING))

        _call("delete_order", service, str(order.id), ADMIN)

        order_repo.delete.assert_called_once_with(str(order.id))
        assert audit.call_args.kwargs["action"] == AuditAction.ORDER_DELETED


# ---------------------------------------------------------------------------
# create_order / list_call_attempts
# ---------------------------------------------------------------------------


class TestCreateOrder:
    def _dto(self):
        return CreateOrderDTO(
            customer_id=uuid4(),
            items=[{"sku": "SKU-1", "title": "Lamp", "quantity": 1, "unit_price_cents": 5990}],
            shipping_address={"full_name": "Ana", "phone": "+15550001000", "line1": "1 Main", "city": "X"},
        )

    def test_customer_must_have_customer_role(self, service, repos):
        order_repo, user_repo, _ = repos
        order_repo.get_by_idempotency_key.return_value = None
        user_repo.get_by_id.return_value = StubUser(id=str(uuid4()), role=UserRole.ADMIN)

        with pytest.raises(CustomerNotFound):
            _call("create_order", service, self._dto(), ADMIN)
        order_repo.create.assert_not_called()

    def test_call_agent_cannot_create(self, service):
        with pytest.raises(Forbidden):
            _call("create_order", service, self._dto(), CALLER)


class TestListCallAttempts:
    def test_call_agent_sees_only_own(self, service, repos):
        order_repo, _, _ = repos
        someone_else = uuid4()

        service.list_call_attempts(CALLER, CallAttemptFilterDTO(agent_id=someone_else))

        assert order_repo.list_call_attempts.call_args.args[0]["agent_id"] == CALLER.id

    def test_admin_filters_freely(self, service, repos):
        order_repo, _, _ = repos
        agent = uuid4()

        service.list_call_attempts(ADMIN, CallAttemptFilterDTO(agent_id=agent, outcome="CONFIRMED"))

        query = order_repo.list_call_attempts.call_args.args[0]
        assert query == {"agent_id": agent, "outcome": CallOutcome.CONFIRMED}
