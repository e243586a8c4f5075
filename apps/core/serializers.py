"""
Shared serializer building blocks for request schemas.
"""
from collections.abc import Mapping

from rest_framework import serializers


class StrictFieldsMixin:
    """
    Rejects payload keys the serializer does not declare.
    Read-only fields are tolerated (and ignored) so clients can round-trip
    representations they received.
    """
    unknown_field_message = 'Campo no permitido.'

    def to_internal_value(self, data):
        if isinstance(data, Mapping):
            unknown = sorted(set(data) - set(self.fields))
            if unknown:
                raise serializers.ValidationError(
                    {field: [self.unknown_field_message] for field in unknown}
                )
        return super().to_internal_value(data)


class StoreModelSerializerMixin:
    """
    Routes ModelSerializer writes through the store handle passed in the
    serializer context ('store'). Only for models without many-to-many fields.
    """

    def create(self, validated_data):
        store = self.context.get('store')
        if store is None:
            return super().create(validated_data)
        return store.objects(self.Meta.model).create(**validated_data)

    def update(self, instance, validated_data):
        store = self.context.get('store')
        if store is None:
            return super().update(instance, validated_data)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save(using=store.alias)
        return instance

