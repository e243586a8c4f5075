# apps/dashboard/tests.py
"""
Dashboard tests - Testing the payment status overview
"""
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.clients.models import Client
from apps.clients.payment_status import PaymentStatus


class DashboardAPITests(APITestCase):
    """Test GET /api/dashboard"""

    def setUp(self):
        self.url = reverse('dashboard')
        now = timezone.now()
        self.today = now.date()
        last_month = (self.today.replace(day=1) - timedelta(days=1)).replace(day=5)

        # Stored statuses are deliberately stale; the dashboard classifies live
        self.make_client('30000001', 'Bravo', payment_date=last_month, last_payment=now,
                         payment_status=PaymentStatus.RED)
        self.make_client('30000002', 'Alonso', payment_date=last_month,
                         payment_status=PaymentStatus.GREEN)
        self.make_client('30000003', 'Castro', payment_date=self.today - relativedelta(months=3),
                         payment_status=PaymentStatus.GREEN)
        self.make_client('30000004', 'Duarte', payment_date=None)
        self.make_client('30000005', 'Etchegaray', payment_date=last_month, is_active=False)

    def make_client(self, dni, surname, **extra):
        return Client.objects.create(
            name='Ana', surname=surname, dni=dni, phone='1144556677',
            birth_date=date(1990, 5, 10), address='Calle 123', **extra,
        )

    def test_active_scheduled_clients_ordered_by_surname(self):
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        surnames = [c['surname'] for c in response.data['clients']]
        self.assertEqual(surnames, ['Alonso', 'Bravo', 'Castro'])

    def test_summary_uses_live_status(self):
        response = self.client.get(self.url)

        statuses = {c['surname']: c['payment_status'] for c in response.data['clients']}
        self.assertEqual(statuses, {'Alonso': 'yellow', 'Bravo': 'green', 'Castro': 'red'})
        self.assertEqual(response.data['summary'], {'total': 3, 'green': 1, 'yellow': 1, 'red': 1})

    def test_read_only(self):
        response = self.client.post(self.url, {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
