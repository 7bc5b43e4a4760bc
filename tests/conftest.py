import pytest

from rest_framework.test import APIClient

from modules.accounts.actors import Actor
from modules.accounts.constants import UserRole, UserStatus
from modules.accounts.models import User
from modules.delivery.models import DeliveryAgent
from modules.orders.models import Order, OrderStatusChange


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


# ---------------------------------------------------------------------------
# Users by role
# ---------------------------------------------------------------------------


def make_user(username, role, status=UserStatus.ACTIVE, **fields):
    return User.objects.create_user(
        username=username,
        password="testpass123",
        email=f"{username}@example.com",
        role=role,
        status=status,
        **fields,
    )


@pytest.fixture()
def super_admin():
    return make_user("root", UserRole.SUPER_ADMIN)


@pytest.fixture()
def order_admin():
    return make_user("manager", UserRole.ADMIN)


@pytest.fixture()
def call_agent():
    return make_user("caller", UserRole.CALL_AGENT, first_name="Carol")


@pytest.fixture()
def other_call_agent():
    return make_user("caller2", UserRole.CALL_AGENT, first_name="Dave")


@pytest.fixture()
def customer():
    return make_user("buyer", UserRole.CUSTOMER, first_name="Ana", last_name="Souza")


@pytest.fixture()
def super_admin_actor(super_admin):
    return Actor.from_user(super_admin)


@pytest.fixture()
def admin_actor(order_admin):
    return Actor.from_user(order_admin)


@pytest.fixture()
def call_agent_actor(call_agent):
    return Actor.from_user(call_agent)


# ---------------------------------------------------------------------------
# Delivery agents
# ---------------------------------------------------------------------------


@pytest.fixture()
def delivery_agent(super_admin):
    return DeliveryAgent.objects.create(
        name="Rapid Rider", phone="+15550000101", created_by=super_admin
    )


@pytest.fixture()
def other_delivery_agent(super_admin):
    return DeliveryAgent.objects.create(
        name="City Van", phone="+15550000102", created_by=super_admin
    )


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_order(customer):
    """Persist an order directly in ``status`` with a matching creation row."""

    def _make(status="PENDING", **fields):
        order = Order.objects.create(
            customer=customer,
            status=status,
            total_cents=fields.pop("total_cents", 12990),
            shipping_address={"full_name": "Ana Souza", "city": "Springfield"},
            **fields,
        )
        OrderStatusChange.objects.create(order=order, from_status=None, to_status=status)
        return order

    return _make


# ---------------------------------------------------------------------------
# Authenticated clients
# ---------------------------------------------------------------------------


@pytest.fixture()
def client_for():
    """Build an APIClient force-authenticated as ``user``."""

    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client


@pytest.fixture()
def super_admin_client(client_for, super_admin):
    return client_for(super_admin)


@pytest.fixture()
def order_admin_client(client_for, order_admin):
    return client_for(order_admin)


@pytest.fixture()
def call_agent_client(client_for, call_agent):
    return client_for(call_agent)
