# apps/core/tests.py
"""
Core app tests - Testing the store handle, error mapping, shared mixins
and environment settings
"""
import importlib
import os
import sys
from unittest import mock

from django.core.exceptions import ImproperlyConfigured
from django.db import IntegrityError
from django.test import SimpleTestCase, TestCase
from rest_framework import serializers, status
from rest_framework.exceptions import MethodNotAllowed
from rest_framework.response import Response
from rest_framework.test import APIRequestFactory
from rest_framework.views import APIView

from apps.core.exceptions import (
    ConflictError,
    DuplicateDniError,
    InvalidAssociationError,
    NotFoundError,
    ReferentialError,
    WriteFailedError,
    custom_exception_handler,
    is_foreign_key_violation,
    is_unique_violation,
)
from apps.core.mixins import StoreViewMixin, parse_bool_param
from apps.core.serializers import StrictFieldsMixin
from apps.core.store import StoreHandle
from apps.locations.models import Location


class DriverError(Exception):
    def __init__(self, message, pgcode=None):
        super().__init__(message)
        self.pgcode = pgcode


def integrity_error(message, pgcode=None):
    try:
        raise IntegrityError(message) from DriverError(message, pgcode)
    except IntegrityError as exc:
        return exc


class StoreHandleTests(TestCase):
    """Test the store handle"""

    def test_unknown_alias(self):
        with self.assertRaises(ImproperlyConfigured):
            StoreHandle('reporting')

    def test_from_settings(self):
        store = StoreHandle.from_settings()
        self.assertEqual(store.alias, 'default')
        self.assertEqual(store.connection.alias, 'default')

    def test_objects_bound_to_alias(self):
        store = StoreHandle()
        self.assertEqual(store.objects(Location).db, 'default')

    def test_atomic_rolls_back(self):
        """Every write inside a failed atomic block is undone"""
        store = StoreHandle()

        with self.assertRaises(RuntimeError):
            with store.atomic():
                store.objects(Location).create(name='Centro', address='San Martín 100')
                raise RuntimeError('boom')

        self.assertFalse(Location.objects.exists())


class ConstraintDetectionTests(SimpleTestCase):
    """Test driver error inspection"""

    def test_unique_violation_from_pgcode(self):
        exc = integrity_error('duplicate key value violates unique constraint "unique_client_dni"', '23505')
        self.assertTrue(is_unique_violation(exc))
        self.assertTrue(is_unique_violation(exc, 'dni'))
        self.assertFalse(is_unique_violation(exc, 'name'))
        self.assertFalse(is_foreign_key_violation(exc))

    def test_foreign_key_violation_from_pgcode(self):
        exc = integrity_error('insert or update violates foreign key constraint', '23503')
        self.assertTrue(is_foreign_key_violation(exc))
        self.assertFalse(is_unique_violation(exc))

    def test_sqlite_messages(self):
        self.assertTrue(is_unique_violation(IntegrityError('UNIQUE constraint failed: clients_client.dni'), 'dni'))
        self.assertTrue(is_foreign_key_violation(IntegrityError('FOREIGN KEY constraint failed')))


class ExceptionHandlerTests(SimpleTestCase):
    """Test the {message, code[, errors]} error body"""

    def handle(self, exc):
        return custom_exception_handler(exc, {'view': None})

    def test_domain_errors(self):
        cases = [
            (NotFoundError('Sede no encontrada'), 404, 'not_found', 'Sede no encontrada'),
            (ConflictError(), 409, 'conflict', 'El registro ya existe'),
            (DuplicateDniError(), 409, 'duplicate_dni', 'Ya existe un alumno con este DNI'),
            (ReferentialError(), 409, 'referential_integrity', 'El registro tiene elementos asociados'),
            (WriteFailedError(), 500, 'write_failed', 'No se pudo guardar los cambios'),
        ]
        for exc, status_code, code, message in cases:
            with self.subTest(code=code):
                response = self.handle(exc)
                self.assertEqual(response.status_code, status_code)
                self.assertEqual(response.data, {'message': message, 'code': code})

    def test_validation_error_is_field_keyed(self):
        response = self.handle(serializers.ValidationError({'dni': ['El DNI es obligatorio']}))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid')
        self.assertEqual(response.data['errors'], {'dni': ['El DNI es obligatorio']})

    def test_validation_error_list(self):
        response = self.handle(serializers.ValidationError('Datos incompletos'))
        self.assertEqual(response.data['errors'], {'non_field_errors': ['Datos incompletos']})

    def test_invalid_association(self):
        response = self.handle(InvalidAssociationError('group_ids', {7, 3}))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_association')
        self.assertEqual(response.data['errors'], {'group_ids': ['No existen registros con id: 3, 7']})

    def test_method_not_allowed(self):
        response = self.handle(MethodNotAllowed('DELETE'))
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
        self.assertEqual(response.data['code'], 'method_not_allowed')

    def test_unhandled_exception(self):
        with self.assertLogs('apps.core.exceptions', level='ERROR'):
            response = self.handle(RuntimeError('connection reset'))

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'message': 'Error interno del servidor', 'code': 'internal_error'})


class ParseBoolParamTests(SimpleTestCase):

    def test_values(self):
        for raw, expected in (('true', True), ('1', True), ('TRUE', True), ('false', False), ('0', False)):
            self.assertIs(parse_bool_param(raw), expected)

    def test_default_when_missing(self):
        self.assertTrue(parse_bool_param(None, default=True))
        self.assertFalse(parse_bool_param(''))

    def test_invalid_value(self):
        with self.assertRaises(serializers.ValidationError) as ctx:
            parse_bool_param('yes', name='active')
        self.assertIn('active', ctx.exception.detail)


class StrictSerializer(StrictFieldsMixin, serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    name = serializers.CharField()


class StrictFieldsMixinTests(SimpleTestCase):

    def test_unknown_keys_rejected(self):
        serializer = StrictSerializer(data={'name': 'Centro', 'color': 'azul', 'size': 3})
        self.assertFalse(serializer.is_valid())
        self.assertEqual(set(serializer.errors), {'color', 'size'})

    def test_read_only_keys_tolerated(self):
        serializer = StrictSerializer(data={'id': 4, 'name': 'Centro'})
        self.assertTrue(serializer.is_valid(), serializer.errors)
        self.assertEqual(dict(serializer.validated_data), {'name': 'Centro'})


class StoreViewMixinTests(SimpleTestCase):
    """Test store injection and query parameter parsing"""

    class EchoView(StoreViewMixin, APIView):
        def get(self, request):
            return Response({'id': self.get_object_id(), 'store': self.get_store().alias})

    def setUp(self):
        self.factory = APIRequestFactory()

    def test_store_is_injected(self):
        view = self.EchoView.as_view(store=StoreHandle())
        response = view(self.factory.get('/echo', {'id': '5'}))
        self.assertEqual(response.data, {'id': 5, 'store': 'default'})

    def test_invalid_id(self):
        view = self.EchoView.as_view(store=StoreHandle())
        for raw in ('abc', '0', '-2'):
            response = view(self.factory.get('/echo', {'id': raw}))
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertIn('id', response.data['errors'])

    def test_missing_store(self):
        view = self.EchoView.as_view()
        with self.assertLogs('apps.core.exceptions', level='ERROR'):
            response = view(self.factory.get('/echo', {'id': '5'}))
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)


class DatabaseSettingsTests(SimpleTestCase):
    """Deployed settings never fall back to a local database"""

    def assert_requires_database_url(self, module_name):
        with mock.patch.dict(os.environ):
            os.environ.pop('DATABASE_URL', None)
            sys.modules.pop(module_name, None)
            try:
                with self.assertRaises(ImproperlyConfigured):
                    importlib.import_module(module_name)
            finally:
                sys.modules.pop(module_name, None)

    def test_development_requires_database_url(self):
        self.assert_requires_database_url('config.settings.development')

    def test_production_requires_database_url(self):
        self.assert_requires_database_url('config.settings.production')
