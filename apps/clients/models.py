"""
Client (student) model and its association tables to locations and groups.
"""
from django.db import models
from django.utils import timezone
from dateutil.relativedelta import relativedelta

from apps.core.models import TimeStampedModel
from apps.groups.models import Group
from apps.locations.models import Location
from .payment_status import PaymentStatus


class Client(TimeStampedModel):
    """
    A student enrolled at the school.

    Clients are never deleted: `is_active=False` marks them as dropped.
    `payment_status` is a cached projection of
    (payment_date, last_payment, now); see apps.clients.payment_status.
    """
    METHOD_CASH = 'cash'
    METHOD_TRANSFER = 'transfer'
    METHOD_CHOICES = [
        (METHOD_CASH, 'Efectivo'),
        (METHOD_TRANSFER, 'Transferencia'),
    ]

    name = models.CharField(max_length=100)
    surname = models.CharField(max_length=100, db_index=True)
    dni = models.CharField(max_length=8, help_text="Digits only")
    phone = models.CharField(max_length=30)
    birth_date = models.DateField()
    payment_date = models.DateField(
        null=True,
        blank=True,
        help_text="Scheduled recurring payment date"
    )
    last_payment = models.DateTimeField(null=True, blank=True)
    method_of_payment = models.CharField(max_length=10, choices=METHOD_CHOICES, default=METHOD_CASH)
    address = models.CharField(max_length=255)
    is_active = models.BooleanField(default=True, db_index=True)
    payment_status = models.CharField(
        max_length=6,
        choices=PaymentStatus.choices,
        default=PaymentStatus.RED,
        db_index=True
    )

    locations = models.ManyToManyField(
        Location,
        through='ClientLocation',
        related_name='clients',
        blank=True
    )
    groups = models.ManyToManyField(
        Group,
        through='ClientGroup',
        related_name='clients',
        blank=True
    )

    class Meta:
        ordering = ['surname', 'name']
        constraints = [
            models.UniqueConstraint(fields=['dni'], name='unique_client_dni'),
        ]

    def __str__(self):
        return self.full_name

    @property
    def full_name(self):
        return f"{self.name} {self.surname}"

    @property
    def age(self):
        if not self.birth_date:
            return None
        return relativedelta(timezone.now().date(), self.birth_date).years


class ClientLocation(models.Model):
    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name='location_links')
    location = models.ForeignKey(Location, on_delete=models.PROTECT, related_name='client_links')

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['client', 'location'], name='unique_client_location'),
        ]

    def __str__(self):
        return f"{self.client_id} -> location {self.location_id}"


class ClientGroup(models.Model):
    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name='group_links')
    group = models.ForeignKey(Group, on_delete=models.PROTECT, related_name='client_links')

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['client', 'group'], name='unique_client_group'),
        ]

    def __str__(self):
        return f"{self.client_id} -> group {self.group_id}"
