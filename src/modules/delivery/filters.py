import django_filters
from django.db.models import Q

from modules.delivery.constants import AgentAvailability
from modules.delivery.models import DeliveryAgent


class DeliveryAgentFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=AgentAvailability.choices)
    is_active = django_filters.BooleanFilter()
    available = django_filters.BooleanFilter(method="filter_available")
    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = DeliveryAgent
        fields = ["status", "is_active", "vehicle_type"]

    def filter_available(self, queryset, name, value):
        if value:
            return queryset.filter(is_active=True, status=AgentAvailability.AVAILABLE)
        return queryset

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(name__icontains=value)
            | Q(phone__icontains=value)
            | Q(vehicle_number__icontains=value)
        )
