"""Models for the sales app (the sales ledger)."""
from decimal import Decimal

from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


def _default_currency():
    return settings.CURRENCY


def _amount(verbose_name, **kwargs):
    kwargs.setdefault("default", Decimal("0"))
    return models.DecimalField(verbose_name, max_digits=15, decimal_places=3, **kwargs)


def _loose_fk(to, verbose_name, related_name, **kwargs):
    """Reference that is stored even when the target row does not exist.

    Imported ledger data is trusted; lookups through these relations behave as
    outer joins and never cascade.
    """
    return models.ForeignKey(
        to,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name=related_name,
        verbose_name=verbose_name,
        **kwargs,
    )


# ---------------------------------------------------------------------------
# SalesUnit
# ---------------------------------------------------------------------------

class SalesUnit(TimeStampedModel):
    """Sales organisation unit; the "region" dimension of targets."""

    id = models.CharField("sales unit id", max_length=100, primary_key=True)
    name = models.CharField("name", max_length=255)

    class Meta:
        verbose_name = "sales unit"
        verbose_name_plural = "sales units"
        ordering = ["name"]

    def __str__(self):
        return self.name


# ---------------------------------------------------------------------------
# SalesLine
# ---------------------------------------------------------------------------

class SalesLine(TimeStampedModel):
    """One invoice line of the sales ledger.

    ``invoice_id`` is the natural key and never changes once stored. Net, tax
    and gross amounts are kept as supplied and are not recomputed.
    """

    invoice_id = models.CharField("invoice id", max_length=100, primary_key=True)
    date = models.DateField("date", db_index=True)

    customer = _loose_fk("customers.Customer", "customer", "sales_lines")
    sales_unit = _loose_fk(SalesUnit, "sales unit", "sales_lines")
    material = _loose_fk("catalog.Product", "material", "sales_lines")
    sales_rep = _loose_fk(settings.AUTH_USER_MODEL, "sales rep", "sales_lines")

    company_id = models.CharField("company id", max_length=100, blank=True, default="")
    tax_country_code = models.CharField("tax country code", max_length=10, blank=True, default="")
    tax_code = models.CharField("tax code", max_length=50, blank=True, default="")
    site_id = models.CharField("site id", max_length=100, blank=True, default="")
    logistics_area = models.CharField("logistics area", max_length=100, blank=True, default="")
    type = models.CharField("type", max_length=50, blank=True, default="")
    adg = models.CharField("ADG", max_length=100, blank=True, default="")
    identified_stock_id = models.CharField("identified stock id", max_length=100, blank=True, default="")
    unit_code = models.CharField("unit code", max_length=20, blank=True, default="")

    quantity = models.PositiveIntegerField("quantity", default=0)
    price = _amount("price")
    discount = _amount("discount")
    freight = _amount("freight")
    item_net = models.DecimalField("item net", max_digits=15, decimal_places=3)
    item_tax = _amount("item tax")
    item_gross = _amount("item gross")
    total_net_per_invoice = _amount("total net per invoice")
    total_tax_per_invoice = _amount("total tax per invoice")
    total_gross_per_invoice = _amount("total gross per invoice")
    currency = models.CharField("currency", max_length=3, default=_default_currency)

    class Meta:
        verbose_name = "sales line"
        verbose_name_plural = "sales lines"
        ordering = ["-date", "invoice_id"]
        indexes = [
            models.Index(fields=["date", "sales_unit"], name="sales_line_date_unit_idx"),
            models.Index(fields=["date", "sales_rep"], name="sales_line_date_rep_idx"),
        ]

    def __str__(self):
        return f"{self.invoice_id} ({self.date})"
