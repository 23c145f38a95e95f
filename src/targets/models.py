"""Models for sales targets."""
from django.conf import settings
from django.db import models

from core.models import TimeStampedModel

COMPANY_TARGET_ID = "company"


class TargetType(models.TextChoices):
    MONTHLY = "monthly", "Monthly"
    QUARTERLY = "quarterly", "Quarterly"
    YEARLY = "yearly", "Yearly"
    CATEGORY = "category", "Category"
    REGION = "region", "Region"
    REP = "rep", "Sales rep"


TIME_TARGET_TYPES = (TargetType.MONTHLY, TargetType.QUARTERLY, TargetType.YEARLY)
DIMENSION_TARGET_TYPES = (TargetType.CATEGORY, TargetType.REGION, TargetType.REP)


def _default_currency():
    return settings.CURRENCY


class Target(TimeStampedModel):
    """Goal value for one dimension over a fixed window.

    ``target_id`` is ``"company"`` for the time-only types, otherwise the
    category name, sales unit name or sales rep id the goal applies to.
    The dimension and the window never change once stored.
    """

    target_type = models.CharField(
        "target type",
        max_length=20,
        choices=TargetType.choices,
        db_index=True,
    )
    target_id = models.CharField("target id", max_length=255, default=COMPANY_TARGET_ID)
    period_start = models.DateField("period start")
    period_end = models.DateField("period end")
    target_value = models.DecimalField("target value", max_digits=15, decimal_places=3)
    currency = models.CharField("currency", max_length=3, default=_default_currency)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_targets",
        verbose_name="created by",
    )

    class Meta:
        verbose_name = "target"
        verbose_name_plural = "targets"
        ordering = ["-period_start", "target_type", "target_id"]
        constraints = [
            models.UniqueConstraint(
                fields=["target_type", "target_id", "period_start", "period_end"],
                name="uniq_target_type_id_period",
            ),
        ]
        indexes = [
            models.Index(fields=["period_start", "period_end"], name="target_period_idx"),
        ]

    def __str__(self):
        return (
            f"{self.get_target_type_display()} {self.target_id} "
            f"{self.period_start:%Y-%m-%d}..{self.period_end:%Y-%m-%d}: {self.target_value}"
        )

    @property
    def is_dimensional(self):
        return self.target_type in DIMENSION_TARGET_TYPES
