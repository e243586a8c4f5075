# apps/locations/serializers.py
import re

from rest_framework import serializers

from apps.core.serializers import StoreModelSerializerMixin, StrictFieldsMixin
from .models import Location

PHONE_PATTERN = re.compile(r'^[\d\s\-+()]+$')
NAME_MIN_LENGTH = 2
ADDRESS_MIN_LENGTH = 5


class LocationSerializer(StrictFieldsMixin, StoreModelSerializerMixin, serializers.ModelSerializer):
    """Location read/write schema"""

    class Meta:
        model = Location
        fields = ['id', 'name', 'address', 'phone', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']
        extra_kwargs = {
            # Case-insensitive uniqueness is checked by the view (409, not 400)
            'name': {'validators': []},
        }

    def validate_name(self, value):
        value = value.strip()
        if len(value) < NAME_MIN_LENGTH:
            raise serializers.ValidationError(
                f'El nombre debe tener al menos {NAME_MIN_LENGTH} caracteres'
            )
        return value

    def validate_address(self, value):
        value = value.strip()
        if len(value) < ADDRESS_MIN_LENGTH:
            raise serializers.ValidationError(
                f'La dirección debe tener al menos {ADDRESS_MIN_LENGTH} caracteres'
            )
        return value

    def validate_phone(self, value):
        value = value.strip()
        if value and not PHONE_PATTERN.match(value):
            raise serializers.ValidationError(
                'El teléfono solo puede contener números, espacios y los caracteres + - ( )'
            )
        return value


class LocationGroupSerializer(serializers.Serializer):
    """Group row nested under a location, with its member count"""
    id = serializers.IntegerField(read_only=True)
    name = serializers.CharField(read_only=True)
    schedule = serializers.CharField(read_only=True)
    day_of_week = serializers.CharField(read_only=True)
    min_age = serializers.IntegerField(read_only=True, allow_null=True)
    max_age = serializers.IntegerField(read_only=True, allow_null=True)
    client_count = serializers.IntegerField(read_only=True)


class LocationDetailSerializer(LocationSerializer):
    groups = LocationGroupSerializer(many=True, read_only=True)

    class Meta(LocationSerializer.Meta):
        fields = LocationSerializer.Meta.fields + ['groups']
