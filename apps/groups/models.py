from django.db import models
from django.db.models.functions import Lower

from apps.core.models import TimeStampedModel
from apps.locations.models import Location


class Group(TimeStampedModel):
    """
    A class group held at one location on a given day and schedule.
    """
    name = models.CharField(max_length=100)
    schedule = models.CharField(max_length=50, help_text="HH:MM or HH:MM-HH:MM")
    day_of_week = models.CharField(max_length=50)
    location = models.ForeignKey(
        Location,
        on_delete=models.PROTECT,
        related_name='groups'
    )
    min_age = models.PositiveSmallIntegerField(null=True, blank=True)
    max_age = models.PositiveSmallIntegerField(null=True, blank=True)

    class Meta:
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(Lower('name'), name='unique_group_name_ci'),
        ]

    def __str__(self):
        return f"{self.name} ({self.day_of_week} {self.schedule})"
