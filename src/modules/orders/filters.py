import django_filters
from django.db.models import Q

from modules.orders.constants import CALL_PHASE, DELIVERY_PHASE, OrderStatus
from modules.orders.models import Order

PHASES = {
    "call": CALL_PHASE,
    "delivery": DELIVERY_PHASE,
}


class OrderFilter(django_filters.FilterSet):
    status = django_filters.MultipleChoiceFilter(choices=OrderStatus.choices)
    phase = django_filters.ChoiceFilter(
        choices=[(name, name) for name in PHASES], method="filter_phase"
    )
    customer = django_filters.UUIDFilter(field_name="customer_id")
    call_assigned_to = django_filters.UUIDFilter(field_name="call_assigned_to_id")
    delivery_agent = django_filters.UUIDFilter(field_name="delivery_agent_id")
    date_from = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    date_to = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")
    min_total = django_filters.NumberFilter(field_name="total_cents", lookup_expr="gte")
    max_total = django_filters.NumberFilter(field_name="total_cents", lookup_expr="lte")
    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = Order
        fields = [
            "status",
            "phase",
            "customer",
            "call_assigned_to",
            "delivery_agent",
            "date_from",
            "date_to",
            "min_total",
            "max_total",
        ]

    def filter_phase(self, queryset, name, value):
        return queryset.filter(status__in=PHASES[value])

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(order_number__icontains=value)
            | Q(customer__email__icontains=value)
            | Q(customer__first_name__icontains=value)
            | Q(customer__last_name__icontains=value)
        )
