"""Models for the catalog app (products and their categories)."""
from django.db import models

from core.models import TimeStampedModel


# ---------------------------------------------------------------------------
# Category
# ---------------------------------------------------------------------------

class Category(TimeStampedModel):
    """Product category; its name is the key category targets refer to."""

    name = models.CharField("name", max_length=255, unique=True)
    description = models.TextField("description", blank=True, default="")

    class Meta:
        verbose_name = "category"
        verbose_name_plural = "categories"
        ordering = ["name"]

    def __str__(self):
        return self.name


# ---------------------------------------------------------------------------
# Product
# ---------------------------------------------------------------------------

class Product(TimeStampedModel):
    """A sellable material, keyed by the external material id used in sales lines."""

    id = models.CharField("material id", max_length=100, primary_key=True)
    name = models.CharField("name", max_length=255)
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
        verbose_name="category",
    )

    class Meta:
        verbose_name = "product"
        verbose_name_plural = "products"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.pk})"
