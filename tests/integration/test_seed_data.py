from io import StringIO

import pytest
from django.core.management import call_command

from modules.accounts.constants import UserRole
from modules.accounts.models import User
from modules.delivery.models import DeliveryAgent
from modules.orders.models import Order, OrderStatusChange

pytestmark = pytest.mark.integration


def seed():
    out = StringIO()
    call_command("seed_data", stdout=out)
    return out.getvalue()


class TestSeedData:
    def test_seeds_accounts_agents_and_orders(self):
        output = seed()

        assert "Seed completed" in output
        assert User.objects.filter(role=UserRole.CUSTOMER).count() == 5
        assert User.objects.filter(role=UserRole.CALL_AGENT).count() == 2
        assert DeliveryAgent.objects.count() == 3
        assert Order.objects.count() == 20

    def test_every_order_has_a_creation_row(self):
        seed()

        assert OrderStatusChange.objects.filter(from_status__isnull=True).count() == 20

    def test_rerun_is_idempotent(self):
        seed()
        output = seed()

        assert Order.objects.count() == 20
        assert "orders=0" in output
