"""Integration tests for delivery agent selection and assignment.

Covers:
- Selection requires an active agent.
- Assigning the selected agent (explicitly or implicitly).
- Overriding the selection: SUPER_ADMIN only, with flag and reason.
- ``active_order_count`` follows the order through the delivery leg.
"""

from __future__ import annotations

import pytest

from modules.orders.constants import OrderStatus

pytestmark = pytest.mark.integration


def action_url(order_id, action):
    return f"/api/v1/orders/{order_id}/{action}/"


@pytest.fixture()
def selected_order(make_order, delivery_agent):
    return make_order(OrderStatus.DELIVERY_AGENT_SELECTED, selected_delivery_agent=delivery_agent)


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


class TestSelectDeliveryAgent:
    def test_select(self, order_admin_client, make_order, delivery_agent):
        order = make_order(OrderStatus.PACKED)

        response = order_admin_client.post(
            action_url(order.id, "select-delivery-agent"),
            {"agent_id": str(delivery_agent.id)},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["status"] == "DELIVERY_AGENT_SELECTED"
        delivery_agent.refresh_from_db()
        assert delivery_agent.active_order_count == 0

    def test_inactive_agent_rejected(self, order_admin_client, make_order, delivery_agent):
        delivery_agent.is_active = False
        delivery_agent.save()
        order = make_order(OrderStatus.PACKED)

        response = order_admin_client.post(
            action_url(order.id, "select-delivery-agent"),
            {"agent_id": str(delivery_agent.id)},
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["reason"] == "DELIVERY_AGENT_INACTIVE"

    def test_unknown_agent_rejected(self, order_admin_client, make_order):
        order = make_order(OrderStatus.PACKED)

        response = order_admin_client.post(
            action_url(order.id, "select-delivery-agent"),
            {"agent_id": "00000000-0000-0000-0000-000000000000"},
            format="json",
        )

        assert response.status_code == 404
        assert response.json()["errors"][0]["code"] == "NOT_FOUND"


# ---------------------------------------------------------------------------
# Assignment
# ---------------------------------------------------------------------------


class TestAssignDeliveryAgent:
    def test_explicit_selected_agent(self, order_admin_client, selected_order, delivery_agent):
        response = order_admin_client.post(
            action_url(selected_order.id, "assign-delivery-agent"),
            {"agent_id": str(delivery_agent.id)},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["delivery_agent_id"] == str(delivery_agent.id)

    def test_admin_cannot_override(
        self, order_admin_client, selected_order, delivery_agent, other_delivery_agent
    ):
        response = order_admin_client.post(
            action_url(selected_order.id, "assign-delivery-agent"),
            {"agent_id": str(other_delivery_agent.id), "override": True, "reason": "closer"},
            format="json",
        )

        assert response.status_code == 403
        selected_order.refresh_from_db()
        assert selected_order.status == OrderStatus.DELIVERY_AGENT_SELECTED

    @pytest.mark.parametrize(
        "payload",
        [
            {"override": False, "reason": "closer"},
            {"override": True, "reason": ""},
            {"override": True, "reason": "   "},
        ],
    )
    def test_override_needs_flag_and_reason(
        self, super_admin_client, selected_order, other_delivery_agent, payload
    ):
        response = super_admin_client.post(
            action_url(selected_order.id, "assign-delivery-agent"),
            {"agent_id": str(other_delivery_agent.id), **payload},
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["reason"] == "OVERRIDE_FLAG_OR_REASON_MISSING"

    def test_super_admin_override(
        self, super_admin_client, selected_order, delivery_agent, other_delivery_agent
    ):
        response = super_admin_client.post(
            action_url(selected_order.id, "assign-delivery-agent"),
            {"agent_id": str(other_delivery_agent.id), "override": True, "reason": "closer"},
            format="json",
        )

        assert response.status_code == 200
        body = response.json()
        assert body["delivery_agent_id"] == str(other_delivery_agent.id)
        assert body["selected_delivery_agent_id"] == str(delivery_agent.id)
        other_delivery_agent.refresh_from_db()
        delivery_agent.refresh_from_db()
        assert other_delivery_agent.active_order_count == 1
        assert delivery_agent.active_order_count == 0

    def test_override_to_inactive_agent(self, super_admin_client, selected_order, other_delivery_agent):
        other_delivery_agent.is_active = False
        other_delivery_agent.save()

        response = super_admin_client.post(
            action_url(selected_order.id, "assign-delivery-agent"),
            {"agent_id": str(other_delivery_agent.id), "override": True, "reason": "closer"},
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["reason"] == "DELIVERY_AGENT_INACTIVE"


# ---------------------------------------------------------------------------
# Load tracking
# ---------------------------------------------------------------------------


class TestDeliveryLoad:
    @pytest.mark.parametrize(
        "status, final_status",
        [
            ("OUT_FOR_DELIVERY", "DELIVERED"),
            ("OUT_FOR_DELIVERY", "RETURNED"),
            ("DELIVERY_ASSIGNED", "CANCELLED"),
        ],
    )
    def test_load_released_when_leg_ends(
        self, order_admin_client, make_order, delivery_agent, status, final_status
    ):
        delivery_agent.active_order_count = 1
        delivery_agent.save()
        order = make_order(
            status,
            selected_delivery_agent=delivery_agent,
            delivery_agent=delivery_agent,
        )

        response = order_admin_client.patch(
            f"/api/v1/orders/{order.id}/", {"status": final_status}, format="json"
        )

        assert response.status_code == 200
        delivery_agent.refresh_from_db()
        assert delivery_agent.active_order_count == 0

    def test_load_never_negative(self, order_admin_client, make_order, delivery_agent):
        order = make_order(
            OrderStatus.OUT_FOR_DELIVERY,
            selected_delivery_agent=delivery_agent,
            delivery_agent=delivery_agent,
        )

        order_admin_client.patch(f"/api/v1/orders/{order.id}/", {"status": "DELIVERED"}, format="json")

        delivery_agent.refresh_from_db()
        assert delivery_agent.active_order_count == 0
