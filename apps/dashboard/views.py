# apps/dashboard/views.py
"""
Dashboard view: active clients with a scheduled payment date, plus counts per
payment status bucket. Buckets use the live classification, not the stored
column, so the numbers are right even before the nightly reconciliation.
"""
from collections import Counter

from django.utils import timezone
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.clients.models import Client
from apps.clients.payment_status import PaymentStatus
from apps.clients.serializers import ClientSummarySerializer
from apps.core.mixins import StoreViewMixin


class DashboardView(StoreViewMixin, APIView):
    """
    GET /api/dashboard
    """
    http_method_names = ['get', 'options']

    def get(self, request):
        clients = (
            self.get_store().objects(Client)
            .filter(is_active=True, payment_date__isnull=False)
            .order_by('surname', 'name')
        )
        data = ClientSummarySerializer(clients, many=True, context={'now': timezone.now()}).data

        counts = Counter(row['payment_status'] for row in data)
        summary = {'total': len(data)}
        summary.update({choice.value: counts.get(choice.value, 0) for choice in PaymentStatus})

        return Response({'clients': data, 'summary': summary})
