"""
Abstract base models for common patterns.
Use these as base classes to ensure consistency across models.
"""
from django.db import models


class TimeStampedModel(models.Model):
    """
    Abstract model providing automatic timestamp fields.
    Inherit from this for models that need created/updated tracking.
    """
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ['-created_at']
