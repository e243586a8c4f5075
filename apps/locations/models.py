from django.db import models
from django.db.models.functions import Lower

from apps.core.models import TimeStampedModel


class Location(TimeStampedModel):
    """
    A school site ("sede"). Groups belong to exactly one location and
    clients may attend several.
    """
    name = models.CharField(max_length=100)
    address = models.CharField(max_length=255)
    phone = models.CharField(max_length=30, blank=True, default='')

    class Meta:
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(Lower('name'), name='unique_location_name_ci'),
        ]

    def __str__(self):
        return self.name
