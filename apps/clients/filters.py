# apps/clients/filters.py
from django.db.models import Q
from django_filters import rest_framework as filters

from .models import Client


class ClientFilter(filters.FilterSet):
    """Query-string filters for the client list. The view enforces `active`."""
    active = filters.BooleanFilter(field_name='is_active')
    search = filters.CharFilter(method='filter_search')
    location = filters.NumberFilter(field_name='locations__id')
    group = filters.NumberFilter(field_name='groups__id')

    class Meta:
        model = Client
        fields = ['active', 'search', 'location', 'group']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value)
            | Q(surname__icontains=value)
            | Q(dni__icontains=value)
        )

    def filter_queryset(self, queryset):
        # Joins through the association tables can repeat rows
        queryset = super().filter_queryset(queryset)
        if self.form.cleaned_data.get('location') or self.form.cleaned_data.get('group'):
            queryset = queryset.distinct()
        return queryset
