"""Business-logic / service functions for the sales ledger."""
from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import DecimalField, F, Sum, Value
from django.db.models.functions import Coalesce, Concat

from core.activity import log_activity
from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.export import rows_to_csv_response, rows_to_json_response
from sales.models import SalesLine

logger = logging.getLogger("salesdash")

REQUIRED_FIELDS = ("invoice_id", "date", "item_net")
DUPLICATE_INVOICE_MESSAGE = "Invoice ID already exists"
EXPORT_FORMATS = ("csv", "json")

_AMOUNT = DecimalField(max_digits=18, decimal_places=3)
_ZERO = Value(Decimal("0"))

# Writable ledger columns keyed by the name used in payloads (the column name).
LEDGER_FIELDS = {
    f.attname: f
    for f in SalesLine._meta.concrete_fields
    if f.attname not in ("created_at", "updated_at")
}

# Columns of a ledger row as returned by reads and exports.
ROW_COLUMNS = [
    "invoice_id", "company_id", "tax_country_code", "tax_code",
    "customer_id", "customer_name", "date", "sales_unit_id", "sales_unit_name",
    "site_id", "logistics_area", "type", "material_id", "material_name",
    "category", "adg", "quantity", "identified_stock_id", "currency",
    "unit_code", "price", "discount", "freight", "item_net", "item_tax",
    "item_gross", "total_net_per_invoice", "total_tax_per_invoice",
    "total_gross_per_invoice", "sales_rep_id", "sales_rep_name",
    "created_at", "updated_at",
]


# ---------------------------------------------------------------------------
# Value coercion
# ---------------------------------------------------------------------------

def _coerce_field(name, field, raw):
    target = getattr(field, "target_field", field)
    if raw is None or (isinstance(raw, str) and raw.strip() == ""):
        if field.null:
            return None
        if field.has_default():
            return field.get_default()
        raise ValidationError(f"{name} is required")

    if isinstance(raw, str):
        raw = raw.strip()
    try:
        value = target.to_python(raw)
        if isinstance(value, Decimal):
            if not value.is_finite():
                raise ValidationError(f"Invalid value for {name}: {raw}")
            value = value.quantize(
                Decimal(1).scaleb(-target.decimal_places), rounding=ROUND_HALF_UP,
            )
        target.run_validators(value)
    except DjangoValidationError as exc:
        raise ValidationError(f"Invalid value for {name}: {'; '.join(exc.messages)}") from None

    if name == "quantity" and value < 0:
        raise ValidationError("quantity must not be negative")
    if name == "currency":
        value = value.upper()
    return value


def coerce_sale_values(data, *, partial=False) -> dict:
    """Validate a payload against the ledger columns.

    Returns a new dict of column name -> Python value. Unknown keys, values
    that cannot be converted, and (unless ``partial``) missing required
    fields raise :class:`~core.exceptions.ValidationError`.
    """
    if not partial:
        missing = [name for name in REQUIRED_FIELDS if data.get(name) in (None, "")]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    values = {}
    for name, raw in data.items():
        field = LEDGER_FIELDS.get(name)
        if field is None:
            raise ValidationError(f"Unknown field: {name}")
        values[name] = _coerce_field(name, field, raw)
    return values


def check_amounts(values) -> list[str]:
    """Consistency warnings for supplied amounts; never rejects a row.

    Compares ``quantity * price - discount + freight`` with ``item_net`` and
    ``item_net + item_tax`` with ``item_gross`` when the operands are present.
    """
    tolerance = Decimal(str(settings.AMOUNT_CHECK_TOLERANCE))
    warnings = []

    def amount(name):
        value = values.get(name)
        return Decimal("0") if value is None else Decimal(value)

    item_net = values.get("item_net")
    if item_net is not None and values.get("quantity") is not None and values.get("price") is not None:
        expected = amount("quantity") * amount("price") - amount("discount") + amount("freight")
        if abs(expected - Decimal(item_net)) > tolerance:
            warnings.append(
                f"item_net {item_net} differs from quantity x price - discount + freight ({expected})"
            )

    if item_net is not None and values.get("item_gross") is not None and values.get("item_tax") is not None:
        expected = Decimal(item_net) + amount("item_tax")
        if abs(expected - amount("item_gross")) > tolerance:
            warnings.append(
                f"item_gross {values['item_gross']} differs from item_net + item_tax ({expected})"
            )
    return warnings


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def ledger_rows(queryset):
    """Ledger lines as dicts, with the names of referenced entities joined in."""
    return queryset.annotate(
        customer_name=F("customer__name"),
        sales_unit_name=F("sales_unit__name"),
        material_name=F("material__name"),
        category=F("material__category__name"),
        sales_rep_name=Concat("sales_rep__first_name", Value(" "), "sales_rep__last_name"),
    ).values(*ROW_COLUMNS)


def _clean_row(row):
    name = (row.get("sales_rep_name") or "").strip()
    row["sales_rep_name"] = name or None
    return row


def _filtered(filters):
    return filters.apply(SalesLine.objects.all()).order_by("-date", "invoice_id")


def _non_negative(value, name):
    if value in (None, ""):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {name}: {value}") from None
    if number < 0:
        raise ValidationError(f"Invalid {name}: {value}")
    return number


def list_sales(filters, limit=None, offset=None) -> dict:
    """Filtered ledger lines, newest first.

    ``totals`` and ``count`` cover every matching line; ``limit`` / ``offset``
    only page ``results``.
    """
    limit = _non_negative(limit, "limit")
    offset = _non_negative(offset, "offset") or 0

    queryset = _filtered(filters)
    totals = queryset.aggregate(
        total_net=Coalesce(Sum("item_net"), _ZERO, output_field=_AMOUNT),
        total_tax=Coalesce(Sum("item_tax"), _ZERO, output_field=_AMOUNT),
        total_gross=Coalesce(Sum("item_gross"), _ZERO, output_field=_AMOUNT),
    )
    count = queryset.count()

    rows = ledger_rows(queryset)
    if limit is not None:
        rows = rows[offset:offset + limit]
    elif offset:
        rows = rows[offset:]
    return {
        "results": [_clean_row(row) for row in rows],
        "totals": totals,
        "count": count,
    }


def get_sale(invoice_id) -> dict:
    row = ledger_rows(SalesLine.objects.filter(invoice_id=invoice_id)).first()
    if row is None:
        raise NotFoundError("Sale not found")
    return _clean_row(row)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def create_sale(data, actor=None, ip_address=None) -> dict:
    """Insert one ledger line.

    Raises
    ------
    ValidationError
        Missing required fields or unconvertible values.
    ConflictError
        ``invoice_id`` is already stored; nothing is written.
    """
    values = coerce_sale_values(data)
    invoice_id = values["invoice_id"]
    if SalesLine.objects.filter(invoice_id=invoice_id).exists():
        raise ConflictError(DUPLICATE_INVOICE_MESSAGE)

    try:
        with transaction.atomic():
            SalesLine.objects.create(**values)
    except IntegrityError:
        raise ConflictError(DUPLICATE_INVOICE_MESSAGE) from None

    for warning in check_amounts(values):
        logger.warning("Sale %s: %s", invoice_id, warning)
    logger.info("Sale %s created by %s", invoice_id, actor)
    log_activity(actor, "CREATE", "sales", invoice_id, {"invoice_id": invoice_id}, ip_address)
    return get_sale(invoice_id)


def update_sale(invoice_id, updates, actor=None, ip_address=None) -> dict:
    """Apply ``updates`` to an existing line; the invoice id cannot change."""
    if not SalesLine.objects.filter(invoice_id=invoice_id).exists():
        raise NotFoundError("Sale not found")
    if updates.get("invoice_id") not in (None, "") and str(updates["invoice_id"]) != str(invoice_id):
        raise ValidationError("Cannot change invoice_id")

    values = coerce_sale_values(
        {k: v for k, v in updates.items() if k != "invoice_id"}, partial=True,
    )
    if values:
        line = SalesLine.objects.get(invoice_id=invoice_id)
        for name, value in values.items():
            setattr(line, name, value)
        line.save(update_fields=list(values) + ["updated_at"])
        logger.info("Sale %s updated by %s (%s)", invoice_id, actor, ", ".join(values))

    log_activity(
        actor, "UPDATE", "sales", invoice_id,
        {"invoice_id": invoice_id, "updates": values}, ip_address,
    )
    return get_sale(invoice_id)


def delete_sale(invoice_id, actor=None, ip_address=None) -> None:
    deleted, _ = SalesLine.objects.filter(invoice_id=invoice_id).delete()
    if not deleted:
        raise NotFoundError("Sale not found")
    logger.info("Sale %s deleted by %s", invoice_id, actor)
    log_activity(actor, "DELETE", "sales", invoice_id, {"invoice_id": invoice_id}, ip_address)


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def export_sales(filters, export_format="csv"):
    """Download the filtered ledger as CSV or JSON.

    Raises
    ------
    ValidationError
        Unsupported ``export_format``.
    NotFoundError
        No line matches the filters.
    """
    export_format = (export_format or "").lower()
    if export_format not in EXPORT_FORMATS:
        raise ValidationError("Unsupported export format")

    queryset = _filtered(filters)
    if not queryset.exists():
        raise NotFoundError("No data found to export")

    rows = (_clean_row(row) for row in ledger_rows(queryset).iterator())
    if export_format == "json":
        return rows_to_json_response(rows, "sales_export")
    return rows_to_csv_response(rows, [(col, col) for col in ROW_COLUMNS], "sales_export")
