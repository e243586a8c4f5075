# apps/locations/views.py
"""
Location endpoints.

    GET    /api/locations[?id=<id>][&include_groups=true]
    POST   /api/locations
    PUT    /api/locations?id=<id>
    DELETE /api/locations?id=<id>
"""
import logging

from django.db.models import Count, Prefetch
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.mixins import NamedResourceMixin
from apps.groups.models import Group
from .models import Location
from .serializers import LocationDetailSerializer, LocationGroupSerializer, LocationSerializer

logger = logging.getLogger(__name__)


class LocationView(NamedResourceMixin, APIView):
    http_method_names = ['get', 'post', 'put', 'delete', 'options']
    model = Location
    not_found_message = 'Sede no encontrada'
    duplicate_name_message = 'Ya existe una sede con este nombre'
    protected_message = 'La sede tiene grupos o alumnos asociados'

    def get_queryset(self, include_groups=False):
        store = self.get_store()
        queryset = store.objects(Location).all()
        if include_groups:
            groups = store.objects(Group).annotate(client_count=Count('clients')).order_by('name')
            queryset = queryset.prefetch_related(Prefetch('groups', queryset=groups))
        return queryset

    def get(self, request):
        include_groups = self.get_flag('include_groups')
        queryset = self.get_queryset(include_groups)

        location_id = self.get_object_id(required=False)
        if location_id is not None:
            location = self.get_instance(location_id, queryset)
            data = {'location': LocationSerializer(location).data}
            if include_groups:
                data['groups'] = LocationGroupSerializer(location.groups.all(), many=True).data
            return Response(data)

        # A list has no single sibling slot, so each location carries its groups
        serializer_class = LocationDetailSerializer if include_groups else LocationSerializer
        return Response({'locations': serializer_class(queryset, many=True).data})

    def post(self, request):
        serializer = LocationSerializer(data=request.data, context={'store': self.get_store()})
        serializer.is_valid(raise_exception=True)
        self.ensure_unique_name(serializer.validated_data['name'])

        location = self.save_unique(serializer)
        logger.info(f"Location {location.pk} '{location.name}' created")
        return Response({'location': LocationSerializer(location).data}, status=status.HTTP_201_CREATED)

    def put(self, request):
        location = self.get_instance(self.get_object_id())
        serializer = LocationSerializer(location, data=request.data, context={'store': self.get_store()})
        serializer.is_valid(raise_exception=True)
        self.ensure_unique_name(serializer.validated_data['name'], exclude_pk=location.pk)

        location = self.save_unique(serializer)
        return Response({'location': LocationSerializer(location).data})

    def delete(self, request):
        location_id = self.get_object_id()
        self.destroy_protected(self.get_instance(location_id))
        logger.info(f"Location {location_id} deleted")
        return Response({'ok': True})
