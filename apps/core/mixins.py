# apps/core/mixins.py
"""
Reusable mixins for API views to reduce code duplication.
These mixins provide common functionality across the entity endpoints.
"""
from django.core.exceptions import ImproperlyConfigured
from django.db import IntegrityError
from django.db.models import ProtectedError, RestrictedError
from rest_framework import serializers

from apps.core.exceptions import ConflictError, NotFoundError, ReferentialError, is_unique_violation

TRUE_VALUES = {'true', '1'}
FALSE_VALUES = {'false', '0'}


def parse_bool_param(value, default=False, name='flag'):
    """Parse a query-string flag ('true'/'1'/'false'/'0')"""
    if value is None or value == '':
        return default
    lowered = value.lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise serializers.ValidationError({name: [f"Valor booleano inválido: '{value}'"]})


class StoreViewMixin:
    """
    Gives a view access to the store handle injected through as_view(store=...).
    """
    store = None

    def get_store(self):
        if self.store is None:
            raise ImproperlyConfigured(
                f"{self.__class__.__name__} requires a store handle; pass it to as_view(store=...)."
            )
        return self.store

    def get_object_id(self, required=True):
        """Read and validate the ?id= query parameter"""
        raw = self.request.query_params.get('id')
        if raw in (None, ''):
            if required:
                raise serializers.ValidationError({'id': ['Falta query param: id']})
            return None
        try:
            value = int(raw)
        except (TypeError, ValueError):
            raise serializers.ValidationError({'id': [f"Id inválido: '{raw}'"]})
        if value < 1:
            raise serializers.ValidationError({'id': [f"Id inválido: '{raw}'"]})
        return value

    def get_flag(self, name, default=False):
        return parse_bool_param(self.request.query_params.get(name), default, name)


class NamedResourceMixin(StoreViewMixin):
    """
    CRUD helpers for catalog entities whose name is unique (case-insensitive)
    and whose deletion must not cascade to referencing rows.

    Subclasses set `model`, `not_found_message`, `duplicate_name_message`
    and `protected_message`.
    """
    model = None
    not_found_message = 'No encontrado'
    duplicate_name_message = 'Ya existe un registro con este nombre'
    protected_message = 'El registro tiene elementos asociados'

    def get_instance(self, pk, queryset=None):
        if queryset is None:
            queryset = self.get_store().objects(self.model).all()
        try:
            return queryset.get(pk=pk)
        except self.model.DoesNotExist:
            raise NotFoundError(self.not_found_message)

    def ensure_unique_name(self, name, exclude_pk=None):
        queryset = self.get_store().objects(self.model).filter(name__iexact=name.strip())
        if exclude_pk is not None:
            queryset = queryset.exclude(pk=exclude_pk)
        if queryset.exists():
            raise ConflictError(self.duplicate_name_message)

    def save_unique(self, serializer, **kwargs):
        """Save a validated serializer, mapping a racing duplicate to a conflict"""
        store = self.get_store()
        try:
            with store.atomic():
                return serializer.save(**kwargs)
        except IntegrityError as exc:
            if is_unique_violation(exc, 'name'):
                raise ConflictError(self.duplicate_name_message)
            raise

    def destroy_protected(self, instance):
        store = self.get_store()
        try:
            with store.atomic():
                instance.delete(using=store.alias)
        except (ProtectedError, RestrictedError):
            raise ReferentialError(self.protected_message)
