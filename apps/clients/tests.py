# apps/clients/tests.py
"""
Clients app tests - payment status classification, association sync,
reconciliation and the client API endpoints
"""
from datetime import date, datetime, timedelta, timezone as dt_timezone
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.db import DatabaseError, IntegrityError, connection, models
from django.test import SimpleTestCase, TestCase
from django.test.utils import CaptureQueriesContext
from django.urls import reverse
from django.utils import timezone
from rest_framework import serializers, status
from rest_framework.test import APITestCase

from apps.core.exceptions import (
    DuplicateDniError,
    InvalidAssociationError,
    NotFoundError,
    WriteFailedError,
)
from apps.core.store import StoreHandle
from apps.groups.models import Group
from apps.locations.models import Location
from apps.clients import validators
from apps.clients.models import Client, ClientGroup, ClientLocation
from apps.clients.payment_status import PaymentStatus, classify, to_utc_date
from apps.clients.services import ClientSyncService, PaymentStatusReconciler


def utc(*args):
    return datetime(*args, tzinfo=dt_timezone.utc)


def client_attributes(**overrides):
    attributes = {
        'name': 'Ana',
        'surname': 'Pérez',
        'dni': '30111222',
        'phone': '1144556677',
        'birth_date': date(1990, 5, 10),
        'payment_date': date(2024, 1, 5),
        'method_of_payment': Client.METHOD_CASH,
        'address': 'Av. Siempre Viva 742',
    }
    attributes.update(overrides)
    return attributes


class ClassifyTests(SimpleTestCase):
    """Test the payment status classifier"""

    def test_green_when_paid_in_current_month(self):
        """A payment in the current UTC month wins over any other rule"""
        self.assertEqual(
            classify('2024-01-05', '2024-02-10', '2024-02-15'),
            PaymentStatus.GREEN
        )

    def test_yellow_in_month_after_schedule(self):
        self.assertEqual(classify('2024-01-05', None, '2024-02-08'), PaymentStatus.YELLOW)

    def test_yellow_uses_scheduled_day_not_current_day(self):
        """Day 15 of the current month does not matter; scheduled day 5 does"""
        self.assertEqual(classify('2024-01-05', None, '2024-02-15'), PaymentStatus.YELLOW)

    def test_year_rollover_still_checks_scheduled_day(self):
        """December to January counts as the following month; day 20 is outside the window"""
        self.assertEqual(classify('2023-12-20', None, '2024-01-08'), PaymentStatus.RED)
        self.assertEqual(classify('2023-12-10', None, '2024-01-08'), PaymentStatus.YELLOW)

    def test_year_rollover_with_day_in_window(self):
        """December schedule with day in [1, 10] is yellow in January of the next year"""
        self.assertEqual(classify('2023-12-01', None, '2024-01-31'), PaymentStatus.YELLOW)

    def test_red_when_scheduled_day_outside_window(self):
        self.assertEqual(classify('2024-01-11', None, '2024-02-01'), PaymentStatus.RED)

    def test_red_when_not_the_following_month(self):
        self.assertEqual(classify('2024-01-05', None, '2024-01-20'), PaymentStatus.RED)
        self.assertEqual(classify('2024-01-05', None, '2024-03-02'), PaymentStatus.RED)
        self.assertEqual(classify('2023-01-05', None, '2024-02-02'), PaymentStatus.RED)

    def test_old_payment_does_not_make_green(self):
        self.assertEqual(classify('2024-01-20', '2024-01-31', '2024-02-15'), PaymentStatus.RED)

    def test_same_month_different_year_is_not_green(self):
        self.assertEqual(classify('2024-01-20', '2023-02-10', '2024-02-15'), PaymentStatus.RED)

    def test_datetimes_are_compared_in_utc(self):
        """A payment late on Jan 31 in UTC-3 is already February in UTC"""
        buenos_aires = dt_timezone(-timedelta(hours=3))
        paid = datetime(2024, 1, 31, 22, 30, tzinfo=buenos_aires)
        self.assertEqual(classify(date(2024, 1, 20), paid, utc(2024, 2, 15)), PaymentStatus.GREEN)

    def test_naive_datetimes_taken_as_utc(self):
        self.assertEqual(to_utc_date(datetime(2024, 2, 1, 23, 59)), date(2024, 2, 1))

    def test_deterministic(self):
        results = {classify('2024-01-05', None, '2024-02-08') for _ in range(5)}
        self.assertEqual(results, {PaymentStatus.YELLOW})

    def test_requires_scheduled_date_and_now(self):
        with self.assertRaises(ValueError):
            classify(None, None, '2024-02-08')
        with self.assertRaises(ValueError):
            classify('2024-01-05', None, None)

    def test_malformed_date_raises(self):
        with self.assertRaises(ValueError):
            classify('not-a-date', None, '2024-02-08')


class ValidatorTests(SimpleTestCase):
    """Test client field normalizers"""

    def test_dni_is_normalized_to_digits(self):
        self.assertEqual(validators.normalize_dni('30.111.222'), '30111222')
        self.assertEqual(validators.normalize_dni('4.123.456'), '4123456')

    def test_dni_length(self):
        for value in ('123456', '123456789', ''):
            with self.assertRaises(serializers.ValidationError):
                validators.normalize_dni(value)

    def test_phone_is_normalized(self):
        self.assertEqual(validators.normalize_phone('+54 (11) 4455-6677'), '541144556677')
        with self.assertRaises(serializers.ValidationError):
            validators.normalize_phone('123-4567')

    def test_person_name(self):
        self.assertEqual(validators.validate_person_name('  María José '), 'María José')
        self.assertEqual(validators.validate_person_name('Núñez'), 'Núñez')
        for value in ('', 'A', 'Ana2', 'Ana_Maria', 'O\'Neil'):
            with self.assertRaises(serializers.ValidationError):
                validators.validate_person_name(value)

    def test_birth_date_age_range(self):
        today = date(2024, 6, 1)
        self.assertEqual(
            validators.validate_birth_date(date(2021, 6, 1), today=today), date(2021, 6, 1)
        )
        for value in (date(2021, 6, 2), date(1903, 5, 31), date(2025, 1, 1)):
            with self.assertRaises(serializers.ValidationError):
                validators.validate_birth_date(value, today=today)

    def test_address_min_length(self):
        self.assertEqual(validators.validate_address(' Calle 1 '), 'Calle 1')
        with self.assertRaises(serializers.ValidationError):
            validators.validate_address('Av 1')


class ClientSyncServiceTests(TestCase):
    """Test transactional client writes with association sets"""

    def setUp(self):
        self.store = StoreHandle()
        self.service = ClientSyncService(self.store, clock=lambda: utc(2024, 2, 8, 12))
        self.loc_a = Location.objects.create(name='Centro', address='San Martín 100')
        self.loc_b = Location.objects.create(name='Norte', address='Belgrano 2000')
        self.loc_c = Location.objects.create(name='Sur', address='Rivadavia 300')
        self.group = Group.objects.create(
            name='Iniciación', schedule='18:00-19:00', day_of_week='Lunes', location=self.loc_a
        )

    def location_ids(self, client):
        return set(ClientLocation.objects.filter(client=client).values_list('location_id', flat=True))

    def group_ids(self, client):
        return set(ClientGroup.objects.filter(client=client).values_list('group_id', flat=True))

    def test_create_with_associations(self):
        """Created client has exactly the requested sets"""
        client = self.service.sync_client(
            None, client_attributes(), [self.loc_b.pk, self.loc_a.pk], [self.group.pk]
        )

        self.assertEqual(self.location_ids(client), {self.loc_a.pk, self.loc_b.pk})
        self.assertEqual(self.group_ids(client), {self.group.pk})
        self.assertTrue(client.is_active)

    def test_order_and_duplicates_are_irrelevant(self):
        client = self.service.sync_client(
            None, client_attributes(), [self.loc_b.pk, self.loc_a.pk, self.loc_b.pk], []
        )
        self.assertEqual(self.location_ids(client), {self.loc_a.pk, self.loc_b.pk})
        self.assertEqual(ClientLocation.objects.filter(client=client).count(), 2)

    def test_update_replaces_sets(self):
        """{A,B} -> {B,C}: A removed, C added, B kept"""
        client = self.service.sync_client(
            None, client_attributes(), [self.loc_a.pk, self.loc_b.pk], [self.group.pk]
        )

        self.service.sync_client(client.pk, client_attributes(), [self.loc_b.pk, self.loc_c.pk], [])

        self.assertEqual(self.location_ids(client), {self.loc_b.pk, self.loc_c.pk})
        self.assertEqual(self.group_ids(client), set())

    def test_empty_sets_clear_associations(self):
        client = self.service.sync_client(None, client_attributes(), [self.loc_a.pk], [self.group.pk])
        self.service.sync_client(client.pk, client_attributes(), [], [])
        self.assertEqual(self.location_ids(client), set())
        self.assertEqual(self.group_ids(client), set())

    def test_duplicate_dni_conflict(self):
        """dni is unique across active and inactive clients"""
        first = self.service.sync_client(None, client_attributes(dni='30111222'))
        Client.objects.filter(pk=first.pk).update(is_active=False)

        with self.assertRaises(DuplicateDniError):
            self.service.sync_client(None, client_attributes(name='Luis', dni='30111222'))

        self.assertEqual(Client.objects.count(), 1)

    def test_invalid_location_rolls_back_everything(self):
        """An unknown id aborts the whole write: row and links stay as they were"""
        client = self.service.sync_client(None, client_attributes(), [self.loc_a.pk], [self.group.pk])

        with self.assertRaises(InvalidAssociationError) as ctx:
            self.service.sync_client(
                client.pk, client_attributes(name='Beatriz'), [self.loc_b.pk, 9999], []
            )

        self.assertEqual(ctx.exception.field, 'location_ids')
        self.assertEqual(ctx.exception.missing_ids, {9999})
        client.refresh_from_db()
        self.assertEqual(client.name, 'Ana')
        self.assertEqual(self.location_ids(client), {self.loc_a.pk})
        self.assertEqual(self.group_ids(client), {self.group.pk})

    def test_invalid_group_on_create_leaves_no_client(self):
        with self.assertRaises(InvalidAssociationError) as ctx:
            self.service.sync_client(None, client_attributes(), [self.loc_a.pk], [4242])

        self.assertEqual(ctx.exception.field, 'group_ids')
        self.assertFalse(Client.objects.exists())
        self.assertFalse(ClientLocation.objects.exists())

    def test_update_unknown_client(self):
        with self.assertRaises(NotFoundError):
            self.service.sync_client(9999, client_attributes())

    def test_write_refreshes_stored_status(self):
        client = self.service.sync_client(None, client_attributes(payment_date=date(2024, 1, 5)))
        self.assertEqual(client.payment_status, PaymentStatus.YELLOW)

    def test_record_payment_sets_green(self):
        client = self.service.sync_client(None, client_attributes(payment_date=date(2024, 1, 20)))
        self.assertEqual(client.payment_status, PaymentStatus.RED)

        client = self.service.record_payment(client.pk, utc(2024, 2, 3, 10))

        self.assertEqual(client.last_payment, utc(2024, 2, 3, 10))
        self.assertEqual(client.payment_status, PaymentStatus.GREEN)

    def test_set_active(self):
        client = self.service.sync_client(None, client_attributes())
        client = self.service.set_active(client.pk, False)
        self.assertFalse(client.is_active)

        with self.assertRaises(NotFoundError):
            self.service.set_active(9999, True)

    def patch_group_link_insert(self, before_insert):
        """Run `before_insert(manager)` ahead of every ClientGroup bulk insert"""
        original_bulk_create = models.Manager.bulk_create

        def bulk_create(manager, objs, *args, **kwargs):
            if manager.model is ClientGroup:
                before_insert(manager)
            return original_bulk_create(manager, objs, *args, **kwargs)

        return mock.patch.object(models.Manager, 'bulk_create', bulk_create)

    def test_database_error_leaves_store_unchanged(self):
        """A driver failure mid-write is a 500 and rolls back the row and both sets"""
        client = self.service.sync_client(None, client_attributes(), [self.loc_a.pk], [self.group.pk])

        def fail(manager):
            raise DatabaseError('server closed the connection unexpectedly')

        with self.patch_group_link_insert(fail), \
                self.assertLogs('apps.clients.services', level='ERROR'):
            with self.assertRaises(WriteFailedError):
                self.service.sync_client(
                    client.pk, client_attributes(name='Beatriz'), [self.loc_b.pk, self.loc_c.pk], []
                )

        client.refresh_from_db()
        self.assertEqual(client.name, 'Ana')
        self.assertEqual(self.location_ids(client), {self.loc_a.pk})
        self.assertEqual(self.group_ids(client), {self.group.pk})

    def test_foreign_key_error_on_group_links_names_group_ids(self):
        """A driver FK error raised while inserting group links is reported on group_ids"""
        def fail(manager):
            raise IntegrityError('FOREIGN KEY constraint failed')

        with self.patch_group_link_insert(fail):
            with self.assertRaises(InvalidAssociationError) as ctx:
                self.service.sync_client(None, client_attributes(), [self.loc_a.pk], [self.group.pk])

        self.assertEqual(ctx.exception.field, 'group_ids')
        self.assertFalse(Client.objects.exists())
        self.assertFalse(ClientLocation.objects.exists())

    def test_group_deleted_after_existence_check(self):
        """A group removed between the id check and the insert is an invalid association"""
        doomed = Group.objects.create(
            name='Avanzado', schedule='19:00-20:00', day_of_week='Martes', location=self.loc_b
        )

        def delete_group(manager):
            Group.objects.filter(pk=doomed.pk).delete()

        with self.patch_group_link_insert(delete_group):
            with self.assertRaises(InvalidAssociationError) as ctx:
                self.service.sync_client(None, client_attributes(), [self.loc_a.pk], [doomed.pk])

        self.assertEqual(ctx.exception.field, 'group_ids')
        self.assertFalse(Client.objects.exists())
        self.assertTrue(Group.objects.filter(pk=doomed.pk).exists())


class PaymentStatusReconcilerTests(TestCase):
    """Test batch reconciliation of the stored payment_status"""

    def setUp(self):
        self.store = StoreHandle()
        self.now = utc(2024, 2, 8, 12)
        self.reconciler = PaymentStatusReconciler(self.store, clock=lambda: self.now)
        self.paid = Client.objects.create(**client_attributes(
            dni='30111222', payment_date=date(2024, 1, 20), last_payment=utc(2024, 2, 2),
            payment_status=PaymentStatus.RED,
        ))
        self.due = Client.objects.create(**client_attributes(
            dni='30111223', payment_date=date(2024, 1, 5), payment_status=PaymentStatus.GREEN,
        ))
        self.late = Client.objects.create(**client_attributes(
            dni='30111224', payment_date=date(2024, 1, 20), payment_status=PaymentStatus.RED,
        ))
        self.unscheduled = Client.objects.create(**client_attributes(
            dni='30111225', payment_date=None, payment_status=PaymentStatus.RED,
        ))

    def test_updates_only_changed_rows(self):
        result = self.reconciler.reconcile_all()

        self.assertEqual((result.checked, result.updated, result.failed), (3, 2, 0))
        statuses = dict(Client.objects.values_list('pk', 'payment_status'))
        self.assertEqual(statuses[self.paid.pk], PaymentStatus.GREEN)
        self.assertEqual(statuses[self.due.pk], PaymentStatus.YELLOW)
        self.assertEqual(statuses[self.late.pk], PaymentStatus.RED)
        self.assertEqual(statuses[self.unscheduled.pk], PaymentStatus.RED)

    def test_second_run_performs_no_writes(self):
        self.reconciler.reconcile_all()

        with CaptureQueriesContext(connection) as ctx:
            result = self.reconciler.reconcile_all()

        self.assertEqual(result.updated, 0)
        writes = [q['sql'] for q in ctx.captured_queries if q['sql'].lstrip().upper().startswith('UPDATE')]
        self.assertEqual(writes, [])

    def test_dry_run_writes_nothing(self):
        result = self.reconciler.reconcile_all(dry_run=True)

        self.assertEqual(result.updated, 2)
        self.paid.refresh_from_db()
        self.assertEqual(self.paid.payment_status, PaymentStatus.RED)

    def test_failure_on_one_client_does_not_stop_the_run(self):
        def flaky(payment_date, last_payment, now):
            if payment_date == date(2024, 1, 5):
                raise ValueError('bad row')
            return classify(payment_date, last_payment, now)

        with mock.patch('apps.clients.services.classify', side_effect=flaky):
            result = self.reconciler.reconcile_all()

        self.assertEqual((result.checked, result.updated, result.failed), (3, 1, 1))
        self.paid.refresh_from_db()
        self.due.refresh_from_db()
        self.assertEqual(self.paid.payment_status, PaymentStatus.GREEN)
        self.assertEqual(self.due.payment_status, PaymentStatus.GREEN)

    def test_malformed_stored_date_counts_as_failure(self):
        """A corrupt date column fails only its own row"""
        with connection.cursor() as cursor:
            cursor.execute(
                'UPDATE clients_client SET payment_date = %s WHERE id = %s',
                ['2024-13-45', self.due.pk],
            )

        with self.assertLogs('apps.clients.services', level='ERROR'):
            result = self.reconciler.reconcile_all()

        self.assertEqual((result.checked, result.updated, result.failed), (3, 1, 1))
        statuses = dict(Client.objects.values_list('pk', 'payment_status'))
        self.assertEqual(statuses[self.paid.pk], PaymentStatus.GREEN)
        self.assertEqual(statuses[self.due.pk], PaymentStatus.GREEN)
        self.assertEqual(statuses[self.late.pk], PaymentStatus.RED)

    def test_management_command(self):
        out = StringIO()
        call_command('reconcile_payment_statuses', stdout=out)
        self.assertIn('3 checked', out.getvalue())
        self.due.refresh_from_db()
        self.assertEqual(self.due.payment_status, PaymentStatus.RED)

    def test_management_command_dry_run(self):
        out = StringIO()
        call_command('reconcile_payment_statuses', '--dry-run', stdout=out)
        self.assertIn('DRY RUN', out.getvalue())
        self.due.refresh_from_db()
        self.assertEqual(self.due.payment_status, PaymentStatus.GREEN)


class ClientAPITests(APITestCase):
    """Test the /api/clients endpoint"""

    def setUp(self):
        self.url = reverse('clients')
        self.loc_a = Location.objects.create(name='Centro', address='San Martín 100')
        self.loc_b = Location.objects.create(name='Norte', address='Belgrano 2000')
        self.group = Group.objects.create(
            name='Iniciación', schedule='18:00', day_of_week='Lunes', location=self.loc_a
        )

    def payload(self, **overrides):
        data = {
            'name': 'Ana',
            'surname': 'Pérez',
            'dni': '30.111.222',
            'phone': '11 4455-6677',
            'birth_date': '1990-05-10',
            'payment_date': '2024-01-05',
            'method_of_payment': 'cash',
            'address': 'Av. Siempre Viva 742',
            'location_ids': [self.loc_b.pk, self.loc_a.pk],
            'group_ids': [self.group.pk],
        }
        data.update(overrides)
        return data

    def create_client(self, **overrides):
        response = self.client.post(self.url, self.payload(**overrides), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        return response.data['client']

    def test_create_and_fetch(self):
        """Fetched client carries exactly the submitted association sets"""
        created = self.create_client()

        response = self.client.get(self.url, {'id': created['id']})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        client = response.data['client']
        self.assertEqual(client['dni'], '30111222')
        self.assertEqual(client['phone'], '1144556677')
        self.assertEqual(client['location_ids'], sorted([self.loc_a.pk, self.loc_b.pk]))
        self.assertEqual(client['group_ids'], [self.group.pk])
        self.assertEqual([loc['name'] for loc in client['locations']], ['Centro', 'Norte'])
        self.assertIn(client['payment_status'], ('green', 'yellow', 'red'))

    def test_duplicate_normalized_dni(self):
        self.create_client(dni='30.111.222')

        response = self.client.post(self.url, self.payload(dni='30111222', name='Luis'), format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'duplicate_dni')
        self.assertEqual(Client.objects.count(), 1)

    def test_validation_errors_are_field_keyed(self):
        response = self.client.post(
            self.url,
            self.payload(name='A1', dni='12', phone='123', birth_date='2024-01-01', address='x'),
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid')
        for field in ('name', 'dni', 'phone', 'birth_date', 'address'):
            self.assertIn(field, response.data['errors'])
        self.assertFalse(Client.objects.exists())

    def test_payment_date_required(self):
        data = self.payload()
        del data['payment_date']
        response = self.client.post(self.url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('payment_date', response.data['errors'])

    def test_unknown_fields_rejected(self):
        response = self.client.post(self.url, self.payload(is_admin=True), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('is_admin', response.data['errors'])

    def test_non_object_body_rejected(self):
        response = self.client.post(self.url, [1, 2, 3], format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_association_id(self):
        response = self.client.post(self.url, self.payload(location_ids=[9999]), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_association')
        self.assertIn('location_ids', response.data['errors'])
        self.assertFalse(Client.objects.exists())

    def test_full_update_replaces_sets(self):
        created = self.create_client(location_ids=[self.loc_a.pk])

        response = self.client.put(
            f"{self.url}?id={created['id']}",
            self.payload(name='Beatriz', location_ids=[self.loc_b.pk], group_ids=[]),
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['client']['name'], 'Beatriz')
        self.assertEqual(response.data['client']['location_ids'], [self.loc_b.pk])
        self.assertEqual(response.data['client']['group_ids'], [])

    def test_update_requires_id(self):
        response = self.client.put(self.url, self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('id', response.data['errors'])

    def test_update_unknown_client(self):
        response = self.client.put(f'{self.url}?id=9999', self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Alumno no encontrado')

    def test_get_unknown_client(self):
        response = self.client.get(self.url, {'id': 9999})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'not_found')

    def test_list_requires_active(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('active', response.data['errors'])

    def test_list_rejects_bad_active_value(self):
        response = self.client.get(self.url, {'active': 'maybe'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_soft_delete_and_list_by_active(self):
        kept = self.create_client()
        removed = self.create_client(dni='28999111', name='Luis')

        response = self.client.patch(f"{self.url}?id={removed['id']}", {'is_active': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['client']['is_active'])

        active = self.client.get(self.url, {'active': 'true'}).data['clients']
        inactive = self.client.get(self.url, {'active': 'false'}).data['clients']
        self.assertEqual([c['id'] for c in active], [kept['id']])
        self.assertEqual([c['id'] for c in inactive], [removed['id']])
        self.assertTrue(Client.objects.filter(pk=removed['id']).exists())

    def test_list_filters(self):
        ana = self.create_client(location_ids=[self.loc_a.pk], group_ids=[self.group.pk])
        luis = self.create_client(dni='28999111', name='Luis', surname='Gómez',
                                  location_ids=[self.loc_b.pk], group_ids=[])

        by_search = self.client.get(self.url, {'active': 'true', 'search': 'góm'}).data['clients']
        by_dni = self.client.get(self.url, {'active': 'true', 'search': '301112'}).data['clients']
        by_location = self.client.get(self.url, {'active': 'true', 'location': self.loc_b.pk}).data['clients']
        by_group = self.client.get(self.url, {'active': 'true', 'group': self.group.pk}).data['clients']

        self.assertEqual([c['id'] for c in by_search], [luis['id']])
        self.assertEqual([c['id'] for c in by_dni], [ana['id']])
        self.assertEqual([c['id'] for c in by_location], [luis['id']])
        self.assertEqual([c['id'] for c in by_group], [ana['id']])

    def test_patch_last_payment(self):
        created = self.create_client(payment_date='2024-01-20')
        paid_at = timezone.now().replace(microsecond=0)

        response = self.client.patch(
            f"{self.url}?id={created['id']}", {'last_payment': paid_at.isoformat()}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['client']['payment_status'], 'green')
        self.assertEqual(Client.objects.get(pk=created['id']).payment_status, PaymentStatus.GREEN)

    def test_patch_requires_exactly_one_field(self):
        created = self.create_client()
        url = f"{self.url}?id={created['id']}"

        both = self.client.patch(url, {'is_active': False, 'last_payment': '2024-02-01T10:00:00Z'}, format='json')
        neither = self.client.patch(url, {}, format='json')
        other = self.client.patch(url, {'name': 'Otro'}, format='json')

        self.assertEqual(both.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(neither.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(other.status_code, status.HTTP_400_BAD_REQUEST)

    def test_patch_unknown_client(self):
        response = self.client.patch(f'{self.url}?id=9999', {'is_active': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_not_allowed(self):
        created = self.create_client()

        response = self.client.delete(f"{self.url}?id={created['id']}")

        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
        self.assertEqual(response.data['code'], 'method_not_allowed')
        self.assertTrue(Client.objects.filter(pk=created['id']).exists())

    def test_trailing_slash_is_accepted(self):
        response = self.client.get(f'{self.url}/', {'active': 'true'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)


class ReconcileAPITests(APITestCase):
    """Test the on-demand reconciliation endpoint"""

    def setUp(self):
        self.url = reverse('payment-status-reconcile')
        Client.objects.create(**client_attributes(
            payment_date=date(2020, 1, 20), payment_status=PaymentStatus.GREEN,
        ))

    def test_reconcile(self):
        response = self.client.post(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['checked'], 1)
        self.assertEqual(response.data['updated'], 1)
        self.assertEqual(response.data['failed'], 0)
        self.assertFalse(response.data['dry_run'])

        second = self.client.post(self.url)
        self.assertEqual(second.data['updated'], 0)

    def test_get_not_allowed(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
