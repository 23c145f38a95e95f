import django.db.models.deletion
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models

import sales.models


def _amount(verbose_name):
    return models.DecimalField(decimal_places=3, default=Decimal("0"), max_digits=15, verbose_name=verbose_name)


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        ("customers", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="SalesUnit",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("id", models.CharField(max_length=100, primary_key=True, serialize=False, verbose_name="sales unit id")),
                ("name", models.CharField(max_length=255, verbose_name="name")),
            ],
            options={
                "verbose_name": "sales unit",
                "verbose_name_plural": "sales units",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="SalesLine",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("invoice_id", models.CharField(max_length=100, primary_key=True, serialize=False, verbose_name="invoice id")),
                ("date", models.DateField(db_index=True, verbose_name="date")),
                ("company_id", models.CharField(blank=True, default="", max_length=100, verbose_name="company id")),
                ("tax_country_code", models.CharField(blank=True, default="", max_length=10, verbose_name="tax country code")),
                ("tax_code", models.CharField(blank=True, default="", max_length=50, verbose_name="tax code")),
                ("site_id", models.CharField(blank=True, default="", max_length=100, verbose_name="site id")),
                ("logistics_area", models.CharField(blank=True, default="", max_length=100, verbose_name="logistics area")),
                ("type", models.CharField(blank=True, default="", max_length=50, verbose_name="type")),
                ("adg", models.CharField(blank=True, default="", max_length=100, verbose_name="ADG")),
                ("identified_stock_id", models.CharField(blank=True, default="", max_length=100, verbose_name="identified stock id")),
                ("unit_code", models.CharField(blank=True, default="", max_length=20, verbose_name="unit code")),
                ("quantity", models.PositiveIntegerField(default=0, verbose_name="quantity")),
                ("price", _amount("price")),
                ("discount", _amount("discount")),
                ("freight", _amount("freight")),
                ("item_net", models.DecimalField(decimal_places=3, max_digits=15, verbose_name="item net")),
                ("item_tax", _amount("item tax")),
                ("item_gross", _amount("item gross")),
                ("total_net_per_invoice", _amount("total net per invoice")),
                ("total_tax_per_invoice", _amount("total tax per invoice")),
                ("total_gross_per_invoice", _amount("total gross per invoice")),
                ("currency", models.CharField(default=sales.models._default_currency, max_length=3, verbose_name="currency")),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="sales_lines",
                        to="customers.customer",
                        verbose_name="customer",
                    ),
                ),
                (
                    "material",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="sales_lines",
                        to="catalog.product",
                        verbose_name="material",
                    ),
                ),
                (
                    "sales_rep",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="sales_lines",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="sales rep",
                    ),
                ),
                (
                    "sales_unit",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="sales_lines",
                        to="sales.salesunit",
                        verbose_name="sales unit",
                    ),
                ),
            ],
            options={
                "verbose_name": "sales line",
                "verbose_name_plural": "sales lines",
                "ordering": ["-date", "invoice_id"],
                "indexes": [
                    models.Index(fields=["date", "sales_unit"], name="sales_line_date_unit_idx"),
                    models.Index(fields=["date", "sales_rep"], name="sales_line_date_rep_idx"),
                ],
            },
        ),
    ]
