"""Integration tests for the call agent picker (/api/v1/call-agents/)."""

from __future__ import annotations

import pytest

from modules.accounts.constants import UserStatus
from modules.orders.constants import OrderStatus

pytestmark = pytest.mark.integration

URL = "/api/v1/call-agents/"


def _usernames(response):
    return [agent["username"] for agent in response.json()["results"]]


class TestCallAgentList:
    def test_lists_only_call_agents(self, order_admin_client, call_agent, other_call_agent, customer):
        response = order_admin_client.get(URL)

        assert response.status_code == 200
        assert sorted(_usernames(response)) == ["caller", "caller2"]

    def test_active_by_default(self, order_admin_client, call_agent, other_call_agent):
        other_call_agent.status = UserStatus.SUSPENDED
        other_call_agent.save()

        assert _usernames(order_admin_client.get(URL)) == ["caller"]
        assert sorted(_usernames(order_admin_client.get(URL, {"status": ""}))) == [
            "caller",
            "caller2",
        ]

    def test_search(self, order_admin_client, call_agent, other_call_agent):
        response = order_admin_client.get(URL, {"search": "dave"})
        assert _usernames(response) == ["caller2"]

    def test_open_order_count(self, order_admin_client, call_agent, make_order):
        make_order(OrderStatus.CALL_ASSIGNED, call_assigned_to=call_agent)
        make_order(OrderStatus.CALL_ASSIGNED, call_assigned_to=call_agent)
        make_order(OrderStatus.CALL_CONFIRMED, call_assigned_to=call_agent)

        agent = order_admin_client.get(URL).json()["results"][0]
        assert agent["name"] == "Carol"
        assert agent["open_order_count"] == 2

    def test_call_agent_forbidden(self, call_agent_client):
        response = call_agent_client.get(URL)
        assert response.status_code == 403
