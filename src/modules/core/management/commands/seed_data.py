from __future__ import annotations

import random

from django.core.management.base import BaseCommand

from modules.accounts.actors import Actor
from modules.accounts.constants import UserRole
from modules.accounts.models import User
from modules.delivery.constants import VehicleType
from modules.delivery.models import DeliveryAgent
from modules.orders.constants import CallOutcome
from modules.orders.dtos import (
    AssignCallAgentDTO,
    CreateOrderDTO,
    LogCallAttemptDTO,
    SelectDeliveryAgentDTO,
    UpdateStatusDTO,
)
from modules.orders.views import build_order_service

CATALOG = [
    ("ELEC-001", "27\" monitor", 129990),
    ("ELEC-002", "Mechanical keyboard", 39990),
    ("ELEC-003", "Gaming mouse", 24990),
    ("ELEC-004", "Headset", 29990),
    ("HOME-001", "Desk lamp", 5990),
    ("HOME-002", "Office chair", 149900),
    ("OFF-001", "A4 paper (500)", 2990),
    ("OFF-002", "Notebook", 1990),
]

CUSTOMERS = [
    ("ana", "Ana", "Souza"),
    ("bruno", "Bruno", "Lima"),
    ("carla", "Carla", "Mendes"),
    ("daniel", "Daniel", "Costa"),
    ("helena", "Helena", "Ferreira"),
]

DELIVERY_AGENTS = [
    ("Rapid Rider", "+15550000101", VehicleType.BIKE),
    ("City Van", "+15550000102", VehicleType.VAN),
    ("Metro Car", "+15550000103", VehicleType.CAR),
]

# How far each seeded order is pushed along the workflow
STAGES = ["pending", "call_assigned", "confirmed", "packed", "selected", "cancelled"]


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        super_admin = self._user("admin", UserRole.SUPER_ADMIN, password="admin123")
        call_agents = [
            self._user(f"caller{n}", UserRole.CALL_AGENT, password="caller123")
            for n in (1, 2)
        ]
        customers = [
            self._user(username, UserRole.CUSTOMER, first_name=first, last_name=last)
            for username, first, last in CUSTOMERS
        ]
        self._user("manager", UserRole.ADMIN, password="manager123")
        delivery_agents = self._seed_delivery_agents(super_admin)
        orders_created = self._seed_orders(super_admin, call_agents, customers, delivery_agents)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"customers={len(customers)}, "
                f"call_agents={len(call_agents)}, "
                f"delivery_agents={len(delivery_agents)}, "
                f"orders={orders_created}"
            )
        )

    def _user(self, username: str, role: str, password: str | None = None, **fields) -> User:
        user, created = User.objects.get_or_create(
            username=username,
            defaults={"role": role, "email": f"{username}@example.com", **fields},
        )
        if created:
            if password:
                user.set_password(password)
            else:
                user.set_unusable_password()
            user.save()
        return user

    def _seed_delivery_agents(self, created_by: User) -> list[DeliveryAgent]:
        self.stdout.write("Creating delivery agents...")
        agents = []
        for name, phone, vehicle in DELIVERY_AGENTS:
            agent, _ = DeliveryAgent.objects.get_or_create(
                phone=phone,
                defaults={"name": name, "vehicle_type": vehicle, "created_by": created_by},
            )
            agents.append(agent)
        self.stdout.write(self.style.SUCCESS("Creating delivery agents... Done!"))
        return agents

    def _seed_orders(self, admin, call_agents, customers, delivery_agents) -> int:
        self.stdout.write("Creating orders...")
        service = build_order_service()
        actor = Actor.from_user(admin)
        orders_created = 0

        for i in range(20):
            key = f"seed-order-{i + 1}"
            if service.find_by_idempotency_key(key, actor):
                continue

            customer = random.choice(customers)
            items = [
                {"sku": sku, "title": title, "quantity": random.randint(1, 3), "unit_price_cents": price}
                for sku, title, price in random.sample(CATALOG, k=random.randint(1, 3))
            ]
            order = service.create_order(
                CreateOrderDTO(
                    customer_id=customer.id,
                    items=items,
                    shipping_address={
                        "full_name": customer.get_full_name(),
                        "phone": "+15550001000",
                        "line1": f"{100 + i} Main Street",
                        "city": "Springfield",
                        "country": "US",
                    },
                    idempotency_key=key,
                ),
                actor,
            )
            orders_created += 1
            self._advance(service, actor, order.id, random.choice(STAGES), call_agents, delivery_agents)

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return orders_created

    def _advance(self, service, actor, order_id, stage, call_agents, delivery_agents) -> None:
        if stage == "pending":
            return
        if stage == "cancelled":
            service.update_status(order_id, UpdateStatusDTO(status="CANCELLED"), actor)
            return

        caller = random.choice(call_agents)
        service.assign_call_agent(order_id, AssignCallAgentDTO(agent_id=caller.id), actor)
        if stage == "call_assigned":
            return

        service.log_call_attempt(
            order_id,
            LogCallAttemptDTO(outcome=CallOutcome.CONFIRMED),
            Actor.from_user(caller),
        )
        if stage == "confirmed":
            return

        service.update_status(order_id, UpdateStatusDTO(status="PACKED"), actor)
        if stage == "packed":
            return

        service.select_delivery_agent(
            order_id,
            SelectDeliveryAgentDTO(agent_id=random.choice(delivery_agents).id),
            actor,
        )
