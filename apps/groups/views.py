# apps/groups/views.py
"""
Group endpoints.

    GET    /api/groups[?id=<id>][&include_clients=true]
    POST   /api/groups
    PUT    /api/groups?id=<id>
    DELETE /api/groups?id=<id>
"""
import logging

from django.db.models import Count
from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.clients.models import Client
from apps.clients.serializers import ClientSummarySerializer
from apps.core.mixins import NamedResourceMixin
from .models import Group
from .serializers import GroupSerializer

logger = logging.getLogger(__name__)


class GroupView(NamedResourceMixin, APIView):
    http_method_names = ['get', 'post', 'put', 'delete', 'options']
    model = Group
    not_found_message = 'Grupo no encontrado'
    duplicate_name_message = 'Ya existe un grupo con este nombre'
    protected_message = 'El grupo tiene alumnos asociados'

    def get_queryset(self):
        return (
            self.get_store().objects(Group)
            .select_related('location')
            .annotate(client_count=Count('clients'))
        )

    def get_serializer(self, *args, **kwargs):
        kwargs['context'] = {'store': self.get_store(), 'request': self.request}
        return GroupSerializer(*args, **kwargs)

    def get(self, request):
        group_id = self.get_object_id(required=False)
        if group_id is None:
            return Response({'groups': self.get_serializer(self.get_queryset(), many=True).data})

        include_clients = self.get_flag('include_clients')
        group = self.get_instance(group_id, self.get_queryset())
        data = {'group': self.get_serializer(group).data}
        if include_clients:
            clients = (
                self.get_store().objects(Client)
                .filter(groups=group, is_active=True)
                .order_by('surname', 'name')
            )
            data['clients'] = ClientSummarySerializer(
                clients, many=True, context={'now': timezone.now()}
            ).data
        return Response(data)

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.ensure_unique_name(serializer.validated_data['name'])

        group = self.save_unique(serializer)
        logger.info(f"Group {group.pk} '{group.name}' created at location {group.location_id}")
        group = self.get_instance(group.pk, self.get_queryset())
        return Response({'group': self.get_serializer(group).data}, status=status.HTTP_201_CREATED)

    def put(self, request):
        group = self.get_instance(self.get_object_id())
        serializer = self.get_serializer(group, data=request.data)
        serializer.is_valid(raise_exception=True)
        self.ensure_unique_name(serializer.validated_data['name'], exclude_pk=group.pk)

        group = self.save_unique(serializer)
        group = self.get_instance(group.pk, self.get_queryset())
        return Response({'group': self.get_serializer(group).data})

    def delete(self, request):
        group_id = self.get_object_id()
        self.destroy_protected(self.get_instance(group_id))
        logger.info(f"Group {group_id} deleted")
        return Response({'ok': True})
