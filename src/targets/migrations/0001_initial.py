import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import targets.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Target",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                (
                    "target_type",
                    models.CharField(
                        choices=[
                            ("monthly", "Monthly"),
                            ("quarterly", "Quarterly"),
                            ("yearly", "Yearly"),
                            ("category", "Category"),
                            ("region", "Region"),
                            ("rep", "Sales rep"),
                        ],
                        db_index=True,
                        max_length=20,
                        verbose_name="target type",
                    ),
                ),
                ("target_id", models.CharField(default="company", max_length=255, verbose_name="target id")),
                ("period_start", models.DateField(verbose_name="period start")),
                ("period_end", models.DateField(verbose_name="period end")),
                ("target_value", models.DecimalField(decimal_places=3, max_digits=15, verbose_name="target value")),
                ("currency", models.CharField(default=targets.models._default_currency, max_length=3, verbose_name="currency")),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_targets",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="created by",
                    ),
                ),
            ],
            options={
                "verbose_name": "target",
                "verbose_name_plural": "targets",
                "ordering": ["-period_start", "target_type", "target_id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("target_type", "target_id", "period_start", "period_end"),
                        name="uniq_target_type_id_period",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["period_start", "period_end"], name="target_period_idx"),
                ],
            },
        ),
    ]
