"""Models for the customers app."""
from django.db import models

from core.models import TimeStampedModel


class Customer(TimeStampedModel):
    """A customer as identified by the upstream invoicing system."""

    id = models.CharField("customer id", max_length=100, primary_key=True)
    name = models.CharField("name", max_length=255)

    class Meta:
        verbose_name = "customer"
        verbose_name_plural = "customers"
        ordering = ["name"]

    def __str__(self):
        return self.name
