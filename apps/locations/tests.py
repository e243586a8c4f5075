# apps/locations/tests.py
"""
Locations app tests - Testing location model constraints and API endpoints
"""
from datetime import date

from django.db import IntegrityError, transaction
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.clients.models import Client, ClientLocation
from apps.groups.models import Group
from apps.locations.models import Location


class LocationModelTests(TestCase):
    """Test Location model"""

    def test_name_unique_case_insensitive(self):
        """The database rejects a second location whose name differs only in case"""
        Location.objects.create(name='Centro', address='San Martín 100')

        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Location.objects.create(name='CENTRO', address='Otra 200')

    def test_ordering_by_name(self):
        Location.objects.create(name='Sur', address='Rivadavia 300')
        Location.objects.create(name='Centro', address='San Martín 100')
        self.assertEqual(list(Location.objects.values_list('name', flat=True)), ['Centro', 'Sur'])


class LocationAPITests(APITestCase):
    """Test the /api/locations endpoint"""

    def setUp(self):
        self.url = reverse('locations')
        self.location = Location.objects.create(name='Centro', address='San Martín 100', phone='4455-6677')

    def detail_url(self, pk):
        return f'{self.url}?id={pk}'

    def test_list_locations(self):
        Location.objects.create(name='Alameda', address='Alameda 55')

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([loc['name'] for loc in response.data['locations']], ['Alameda', 'Centro'])
        self.assertNotIn('groups', response.data['locations'][0])

    def test_get_location(self):
        response = self.client.get(self.url, {'id': self.location.pk})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['location']['name'], 'Centro')
        self.assertEqual(response.data['location']['phone'], '4455-6677')

    def test_get_with_groups_and_client_count(self):
        group = Group.objects.create(
            name='Iniciación', schedule='18:00', day_of_week='Lunes', location=self.location
        )
        client = Client.objects.create(
            name='Ana', surname='Pérez', dni='30111222', phone='1144556677',
            birth_date=date(1990, 5, 10), payment_date=date(2024, 1, 5), address='Calle 123',
        )
        client.groups.add(group)

        response = self.client.get(self.url, {'id': self.location.pk, 'include_groups': 'true'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertNotIn('groups', response.data['location'])
        groups = response.data['groups']
        self.assertEqual(len(groups), 1)
        self.assertEqual(groups[0]['name'], 'Iniciación')
        self.assertEqual(groups[0]['client_count'], 1)

    def test_get_unknown_location(self):
        response = self.client.get(self.url, {'id': 9999})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Sede no encontrada')

    def test_invalid_id_param(self):
        response = self.client.get(self.url, {'id': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('id', response.data['errors'])

    def test_create_location(self):
        response = self.client.post(
            self.url, {'name': '  Norte ', 'address': 'Belgrano 2000', 'phone': '+54 (11) 4455-6677'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['location']['name'], 'Norte')
        self.assertTrue(Location.objects.filter(name='Norte').exists())

    def test_create_duplicate_name_any_case(self):
        response = self.client.post(self.url, {'name': 'centro', 'address': 'Otra 200'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'conflict')
        self.assertEqual(Location.objects.count(), 1)

    def test_create_validation(self):
        response = self.client.post(self.url, {'name': 'N', 'address': 'abc', 'phone': 'tel#1'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(set(response.data['errors']), {'name', 'address', 'phone'})

    def test_create_rejects_unknown_fields(self):
        response = self.client.post(
            self.url, {'name': 'Norte', 'address': 'Belgrano 2000', 'capacity': 30}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('capacity', response.data['errors'])

    def test_update_location(self):
        response = self.client.put(
            self.detail_url(self.location.pk),
            {'name': 'CENTRO', 'address': 'San Martín 150', 'phone': ''},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.location.refresh_from_db()
        self.assertEqual(self.location.name, 'CENTRO')
        self.assertEqual(self.location.address, 'San Martín 150')

    def test_update_to_existing_name(self):
        other = Location.objects.create(name='Norte', address='Belgrano 2000')

        response = self.client.put(
            self.detail_url(other.pk), {'name': 'Centro', 'address': 'Belgrano 2000'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_update_unknown_location(self):
        response = self.client.put(self.detail_url(9999), {'name': 'Norte', 'address': 'Belgrano 2000'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_location(self):
        response = self.client.delete(self.detail_url(self.location.pk))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'ok': True})
        self.assertFalse(Location.objects.exists())

    def test_delete_location_with_group_is_refused(self):
        """A location referenced by a group stays in place"""
        Group.objects.create(name='Iniciación', schedule='18:00', day_of_week='Lunes', location=self.location)

        response = self.client.delete(self.detail_url(self.location.pk))

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'referential_integrity')
        self.assertTrue(Location.objects.filter(pk=self.location.pk).exists())

    def test_delete_location_with_clients_is_refused(self):
        client = Client.objects.create(
            name='Ana', surname='Pérez', dni='30111222', phone='1144556677',
            birth_date=date(1990, 5, 10), payment_date=date(2024, 1, 5), address='Calle 123',
        )
        ClientLocation.objects.create(client=client, location=self.location)

        response = self.client.delete(self.detail_url(self.location.pk))

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(Location.objects.filter(pk=self.location.pk).exists())

    def test_delete_unknown_location(self):
        response = self.client.delete(self.detail_url(9999))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_patch_not_allowed(self):
        response = self.client.patch(self.detail_url(self.location.pk), {'name': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
