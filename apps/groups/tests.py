# apps/groups/tests.py
"""
Groups app tests - Testing group serializer rules and API endpoints
"""
from datetime import date

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.clients.models import Client
from apps.groups.models import Group
from apps.locations.models import Location


class GroupAPITests(APITestCase):
    """Test the /api/groups endpoint"""

    def setUp(self):
        self.url = reverse('groups')
        self.location = Location.objects.create(name='Centro', address='San Martín 100')
        self.group = Group.objects.create(
            name='Iniciación', schedule='18:00-19:00', day_of_week='Lunes',
            location=self.location, min_age=6, max_age=10,
        )

    def detail_url(self, pk):
        return f'{self.url}?id={pk}'

    def payload(self, **overrides):
        data = {
            'name': 'Avanzado',
            'schedule': '19:00-20:30',
            'day_of_week': 'Miércoles',
            'location_id': self.location.pk,
        }
        data.update(overrides)
        return data

    def make_client(self, dni, surname, is_active=True):
        client = Client.objects.create(
            name='Ana', surname=surname, dni=dni, phone='1144556677',
            birth_date=date(2015, 5, 10), payment_date=date(2024, 1, 5),
            address='Calle 123', is_active=is_active,
        )
        client.groups.add(self.group)
        return client

    def test_list_groups(self):
        self.make_client('30111222', 'Pérez')

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        group = response.data['groups'][0]
        self.assertEqual(group['location'], {'id': self.location.pk, 'name': 'Centro'})
        self.assertEqual(group['location_id'], self.location.pk)
        self.assertEqual(group['client_count'], 1)

    def test_get_with_clients(self):
        """Only active clients, ordered by surname then name"""
        self.make_client('30111222', 'Zapata')
        self.make_client('30111223', 'Alvarez')
        self.make_client('30111224', 'Borges', is_active=False)

        response = self.client.get(self.url, {'id': self.group.pk, 'include_clients': 'true'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        surnames = [c['surname'] for c in response.data['clients']]
        self.assertEqual(surnames, ['Alvarez', 'Zapata'])

    def test_get_without_clients(self):
        response = self.client.get(self.url, {'id': self.group.pk})
        self.assertNotIn('clients', response.data)
        self.assertNotIn('clients', response.data['group'])

    def test_bad_include_flag(self):
        response = self.client.get(self.url, {'id': self.group.pk, 'include_clients': 'si'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('include_clients', response.data['errors'])

    def test_get_unknown_group(self):
        response = self.client.get(self.url, {'id': 9999})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Grupo no encontrado')

    def test_create_group(self):
        response = self.client.post(self.url, self.payload(min_age=12, max_age=18), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['group']['name'], 'Avanzado')
        self.assertEqual(response.data['group']['client_count'], 0)
        self.assertEqual(response.data['group']['location']['name'], 'Centro')

    def test_create_duplicate_name_any_case(self):
        response = self.client.post(self.url, self.payload(name='avanzado'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post(self.url, self.payload(name='AVANZADO'), format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(Group.objects.filter(name__iexact='avanzado').count(), 1)

    def test_create_validation(self):
        response = self.client.post(
            self.url,
            self.payload(name='A', schedule='a las seis', day_of_week='  ', min_age=12, max_age=8),
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        for field in ('name', 'schedule', 'day_of_week'):
            self.assertIn(field, response.data['errors'])

    def test_age_range(self):
        response = self.client.post(self.url, self.payload(min_age=12, max_age=8), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('max_age', response.data['errors'])

        response = self.client.post(self.url, self.payload(max_age=130), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_with_unknown_location(self):
        response = self.client.post(self.url, self.payload(location_id=9999), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('location_id', response.data['errors'])

    def test_update_group(self):
        other = Location.objects.create(name='Norte', address='Belgrano 2000')

        response = self.client.put(
            self.detail_url(self.group.pk),
            self.payload(name='Iniciación', schedule='17:00', location_id=other.pk),
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.group.refresh_from_db()
        self.assertEqual(self.group.schedule, '17:00')
        self.assertEqual(self.group.location, other)

    def test_update_unknown_group(self):
        response = self.client.put(self.detail_url(9999), self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_group(self):
        response = self.client.delete(self.detail_url(self.group.pk))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Group.objects.exists())

    def test_delete_group_with_clients_is_refused(self):
        self.make_client('30111222', 'Pérez')

        response = self.client.delete(self.detail_url(self.group.pk))

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'referential_integrity')
        self.assertTrue(Group.objects.filter(pk=self.group.pk).exists())

    def test_delete_requires_id(self):
        response = self.client.delete(self.url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
