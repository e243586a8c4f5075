# apps/groups/serializers.py
import re

from rest_framework import serializers

from apps.core.serializers import StoreModelSerializerMixin, StrictFieldsMixin
from apps.locations.models import Location
from .models import Group

SCHEDULE_PATTERN = re.compile(r'^\d{1,2}:\d{2}(-\d{1,2}:\d{2})?$')
NAME_MIN_LENGTH = 2
MAX_AGE = 120


class LocationSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    name = serializers.CharField(read_only=True)


class GroupSerializer(StrictFieldsMixin, StoreModelSerializerMixin, serializers.ModelSerializer):
    """
    Group read/write schema. Writes take `location_id`; reads also return
    the resolved `location` and the number of clients in the group.
    """
    location_id = serializers.PrimaryKeyRelatedField(
        source='location',
        queryset=Location.objects.all(),
        error_messages={
            'does_not_exist': 'La sede {pk_value} no existe',
            'incorrect_type': 'Id de sede inválido',
        },
    )
    location = LocationSummarySerializer(read_only=True)
    client_count = serializers.SerializerMethodField()
    min_age = serializers.IntegerField(min_value=0, max_value=MAX_AGE, required=False, allow_null=True)
    max_age = serializers.IntegerField(min_value=0, max_value=MAX_AGE, required=False, allow_null=True)

    class Meta:
        model = Group
        fields = [
            'id', 'name', 'schedule', 'day_of_week', 'location_id', 'location',
            'min_age', 'max_age', 'client_count', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']
        extra_kwargs = {
            'name': {'validators': []},
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        store = self.context.get('store')
        if store is not None:
            self.fields['location_id'].queryset = store.objects(Location).all()

    def get_client_count(self, obj):
        count = getattr(obj, 'client_count', None)
        if count is None:
            count = obj.clients.count()
        return count

    def validate_name(self, value):
        value = value.strip()
        if len(value) < NAME_MIN_LENGTH:
            raise serializers.ValidationError(
                f'El nombre debe tener al menos {NAME_MIN_LENGTH} caracteres'
            )
        return value

    def validate_schedule(self, value):
        value = value.strip()
        if not SCHEDULE_PATTERN.match(value):
            raise serializers.ValidationError('El horario debe tener el formato HH:MM o HH:MM-HH:MM')
        return value

    def validate_day_of_week(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('El día es obligatorio')
        return value

    def validate(self, data):
        min_age = data.get('min_age')
        max_age = data.get('max_age')
        if min_age is not None and max_age is not None and min_age > max_age:
            raise serializers.ValidationError(
                {'max_age': ['La edad máxima debe ser mayor o igual a la mínima']}
            )
        return data
