# apps/clients/views.py
"""
Client endpoints.

    GET    /api/clients?id=<id>          one client
    GET    /api/clients?active=true|false list (search, location, group filters)
    POST   /api/clients                  create with association sets
    PUT    /api/clients?id=<id>          full update, replaces association sets
    PATCH  /api/clients?id=<id>          is_active toggle or last_payment update

Deletion is a soft delete through PATCH {"is_active": false}.
"""
import logging

from django.utils import timezone
from rest_framework import serializers, status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.mixins import StoreViewMixin, parse_bool_param
from .filters import ClientFilter
from .serializers import ClientPatchSerializer, ClientSerializer, ClientWriteSerializer
from .services import ClientSyncService, PaymentStatusReconciler

logger = logging.getLogger(__name__)


class ClientView(StoreViewMixin, APIView):
    http_method_names = ['get', 'post', 'put', 'patch', 'options']

    def get_service(self):
        return ClientSyncService(self.get_store())

    def get_serializer_context(self):
        return {'request': self.request, 'now': timezone.now()}

    def represent(self, client):
        return ClientSerializer(client, context=self.get_serializer_context()).data

    def get(self, request):
        service = self.get_service()
        client_id = self.get_object_id(required=False)
        if client_id is not None:
            return Response({'client': self.represent(service.get_client(client_id))})

        raw_active = request.query_params.get('active')
        if raw_active in (None, ''):
            raise serializers.ValidationError({'active': ['Falta query param: active']})
        params = request.query_params.copy()
        params['active'] = 'true' if parse_bool_param(raw_active, name='active') else 'false'

        filterset = ClientFilter(params, queryset=service.queryset(), request=request)
        if not filterset.is_valid():
            raise serializers.ValidationError(filterset.errors)

        clients = ClientSerializer(
            filterset.qs, many=True, context=self.get_serializer_context()
        ).data
        return Response({'clients': clients})

    def post(self, request):
        serializer = ClientWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        attributes, location_ids, group_ids = serializer.split()

        client = self.get_service().sync_client(None, attributes, location_ids, group_ids)
        logger.info(f"Client {client.pk} created (locations={sorted(location_ids)}, groups={sorted(group_ids)})")
        return Response({'client': self.represent(client)}, status=status.HTTP_201_CREATED)

    def put(self, request):
        client_id = self.get_object_id()
        serializer = ClientWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        attributes, location_ids, group_ids = serializer.split()

        client = self.get_service().sync_client(client_id, attributes, location_ids, group_ids)
        logger.info(f"Client {client_id} updated")
        return Response({'client': self.represent(client)})

    def patch(self, request):
        client_id = self.get_object_id()
        serializer = ClientPatchSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        service = self.get_service()
        if 'is_active' in data:
            client = service.set_active(client_id, data['is_active'])
        else:
            client = service.record_payment(client_id, data['last_payment'])
        return Response({'client': self.represent(client)})


class ReconcileView(StoreViewMixin, APIView):
    """
    POST /api/payment-status/reconcile

    Re-derives the stored payment_status of every client. Same job as the
    nightly cron and the reconcile_payment_statuses command.
    """
    http_method_names = ['post', 'options']

    def post(self, request):
        dry_run = parse_bool_param(request.query_params.get('dry_run'), name='dry_run')
        result = PaymentStatusReconciler(self.get_store()).reconcile_all(dry_run=dry_run)
        return Response({**result.as_dict(), 'dry_run': dry_run})
