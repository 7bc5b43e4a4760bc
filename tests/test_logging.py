import logging

import pytest

pytestmark = pytest.mark.integration


def _messages(caplog):
    return [record.getMessage() for record in caplog.records]


class TestWorkflowLogging:
    def test_committed_transition_is_logged(self, order_admin_client, make_order, caplog):
        order = make_order("CALL_CONFIRMED")

        with caplog.at_level(logging.INFO):
            order_admin_client.patch(f"/api/v1/orders/{order.id}/", {"status": "PACKED"}, format="json")

        committed = [m for m in _messages(caplog) if "order.transition_committed" in m]
        assert len(committed) == 1
        assert str(order.id) in committed[0]

    def test_rejected_transition_is_logged_with_reason(self, order_admin_client, make_order, caplog):
        order = make_order("CALL_ASSIGNED")

        with caplog.at_level(logging.INFO):
            order_admin_client.patch(
                f"/api/v1/orders/{order.id}/", {"status": "CALL_CONFIRMED"}, format="json"
            )

        rejected = [m for m in _messages(caplog) if "order.transition_rejected" in m]
        assert rejected
        assert "NO_CONFIRMED_CALL_ATTEMPT" in rejected[0]

    def test_request_logs_carry_correlation_id(self, order_admin_client, make_order, caplog):
        order = make_order()

        with caplog.at_level(logging.INFO):
            order_admin_client.get(f"/api/v1/orders/{order.id}/", HTTP_X_REQUEST_ID="trace-789")

        assert any("trace-789" in m for m in _messages(caplog))
