# apps/clients/serializers.py
from django.utils import timezone
from rest_framework import serializers

from apps.core.serializers import StrictFieldsMixin
from . import validators
from .models import Client
from .payment_status import classify


class RelatedNameSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    name = serializers.CharField(read_only=True)


class ClientWriteSerializer(StrictFieldsMixin, serializers.Serializer):
    """Request schema for client creation and full update"""
    name = serializers.CharField(allow_blank=True)
    surname = serializers.CharField(allow_blank=True)
    dni = serializers.CharField(allow_blank=True)
    phone = serializers.CharField(allow_blank=True)
    birth_date = serializers.DateField()
    payment_date = serializers.DateField()
    method_of_payment = serializers.ChoiceField(choices=Client.METHOD_CHOICES)
    address = serializers.CharField(allow_blank=True)
    location_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1), default=list
    )
    group_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1), default=list
    )

    def validate_name(self, value):
        return validators.validate_person_name(value, 'El nombre')

    def validate_surname(self, value):
        return validators.validate_person_name(value, 'El apellido')

    def validate_dni(self, value):
        return validators.normalize_dni(value)

    def validate_phone(self, value):
        return validators.normalize_phone(value)

    def validate_birth_date(self, value):
        return validators.validate_birth_date(value)

    def validate_address(self, value):
        return validators.validate_address(value)

    def split(self):
        """Return (attributes, location_ids, group_ids) from validated data"""
        data = dict(self.validated_data)
        location_ids = set(data.pop('location_ids', []))
        group_ids = set(data.pop('group_ids', []))
        return data, location_ids, group_ids


class ClientPatchSerializer(StrictFieldsMixin, serializers.Serializer):
    """Request schema for partial updates: exactly one of is_active / last_payment"""
    is_active = serializers.BooleanField(required=False)
    last_payment = serializers.DateTimeField(required=False)

    def validate(self, data):
        if len(data) != 1:
            raise serializers.ValidationError(
                'Debe indicar exactamente uno de: is_active, last_payment'
            )
        return data


class LivePaymentStatusMixin:
    """Adds a payment_status field computed by the classifier at response time"""

    def get_payment_status(self, obj):
        if not obj.payment_date:
            return obj.payment_status
        now = self.context.get('now') or timezone.now()
        return str(classify(obj.payment_date, obj.last_payment, now))


class ClientSerializer(LivePaymentStatusMixin, serializers.ModelSerializer):
    """
    Client representation. `payment_status` is always computed with the
    classifier at response time; the stored column may lag behind.
    """
    locations = RelatedNameSerializer(many=True, read_only=True)
    groups = RelatedNameSerializer(many=True, read_only=True)
    location_ids = serializers.SerializerMethodField()
    group_ids = serializers.SerializerMethodField()
    payment_status = serializers.SerializerMethodField()
    age = serializers.IntegerField(read_only=True)

    class Meta:
        model = Client
        fields = [
            'id', 'name', 'surname', 'dni', 'phone', 'birth_date', 'age',
            'payment_date', 'last_payment', 'method_of_payment', 'address',
            'is_active', 'payment_status', 'locations', 'groups',
            'location_ids', 'group_ids', 'created_at', 'updated_at',
        ]

    def get_location_ids(self, obj):
        return sorted(location.pk for location in obj.locations.all())

    def get_group_ids(self, obj):
        return sorted(group.pk for group in obj.groups.all())


class ClientSummarySerializer(LivePaymentStatusMixin, serializers.ModelSerializer):
    """Compact client row used in group rosters and the dashboard"""
    payment_status = serializers.SerializerMethodField()

    class Meta:
        model = Client
        fields = [
            'id', 'name', 'surname', 'dni', 'phone', 'birth_date',
            'payment_date', 'last_payment', 'method_of_payment',
            'payment_status', 'address', 'is_active',
        ]
