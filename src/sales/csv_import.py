"""Turn an uploaded CSV file into rows the batch importer accepts.

Headers are matched to ledger columns through an explicit mapping or through
normalised aliases, dates become ``YYYY-MM-DD`` and numbers are coerced.
Rows that fail these checks are reported back instead of being imported.
"""
from __future__ import annotations

import csv
import io
import logging
import unicodedata
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation

from django.conf import settings

from core.exceptions import ValidationError
from sales.services import LEDGER_FIELDS, REQUIRED_FIELDS

logger = logging.getLogger("salesdash")

DATE_FIELDS = ("date",)
DECIMAL_FIELDS = (
    "price", "discount", "freight", "item_net", "item_tax", "item_gross",
    "total_net_per_invoice", "total_tax_per_invoice", "total_gross_per_invoice",
)
INTEGER_FIELDS = ("quantity",)

DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%d/%m/%Y", "%d-%m-%Y", "%d.%m.%Y", "%Y%m%d")

# Extra header spellings seen in exports from the invoicing system.
HEADER_ALIASES = {
    "invoice_id": ("invoice", "invoice_no", "invoice_number", "invoice id"),
    "date": ("invoice_date", "posting_date", "sales_date"),
    "customer_id": ("customer", "customer_code", "customer id"),
    "sales_unit_id": ("sales_unit", "sales_unit_code", "region"),
    "material_id": ("material", "material_code", "product_id", "sku"),
    "sales_rep_id": ("sales_rep", "rep_id", "salesperson_id"),
    "company_id": ("company",),
    "site_id": ("site",),
    "quantity": ("qty",),
    "price": ("unit_price",),
    "item_net": ("net", "net_amount", "item_net_amount"),
    "item_tax": ("tax", "tax_amount"),
    "item_gross": ("gross", "gross_amount"),
    "currency": ("currency_code",),
}


def _normalize_header(value: str) -> str:
    """Normalise header labels so case, accents and separators do not matter."""
    cleaned = (value or "").strip().lower()
    cleaned = unicodedata.normalize("NFKD", cleaned)
    cleaned = "".join(ch for ch in cleaned if not unicodedata.combining(ch))
    for ch in (" ", "-", "_", "/", "\\", ".", "(", ")", ":"):
        cleaned = cleaned.replace(ch, "")
    return cleaned


def _alias_table():
    table = {}
    for name in LEDGER_FIELDS:
        table[_normalize_header(name)] = name
    for name, aliases in HEADER_ALIASES.items():
        for alias in aliases:
            table.setdefault(_normalize_header(alias), name)
    return table


@dataclass
class ParsedUpload:
    rows: list = field(default_factory=list)
    invalid_rows: list = field(default_factory=list)
    total_rows: int = 0
    skipped_rows: int = 0
    unmapped_columns: list = field(default_factory=list)

    @property
    def is_valid(self):
        return not self.invalid_rows

    def first_invalid(self, limit=None):
        limit = settings.IMPORT_INVALID_ROWS_LIMIT if limit is None else limit
        return self.invalid_rows[:limit]


# ---------------------------------------------------------------------------
# File handling
# ---------------------------------------------------------------------------

def decode_upload(uploaded_file, max_bytes=None) -> str:
    """Decode uploaded CSV content with utf-8 fallback and size guard."""
    if not uploaded_file:
        raise ValidationError("No CSV file provided")
    max_bytes = max_bytes or settings.IMPORT_MAX_UPLOAD_BYTES
    if getattr(uploaded_file, "size", 0) and uploaded_file.size > max_bytes:
        raise ValidationError(f"File exceeds {max_bytes // (1024 * 1024)} MB")

    raw = uploaded_file.read()
    if not raw:
        raise ValidationError("The CSV file is empty")
    if len(raw) > max_bytes:
        raise ValidationError(f"File exceeds {max_bytes // (1024 * 1024)} MB")

    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        # latin-1 maps every byte, so this cannot fail
        return raw.decode("latin-1")


def build_reader(content: str) -> csv.DictReader:
    """Build a DictReader with automatic delimiter detection."""
    sample = content[:4096]
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=",;|\t")
    except csv.Error:
        dialect = csv.excel
    return csv.DictReader(io.StringIO(content), dialect=dialect)


# ---------------------------------------------------------------------------
# Value normalisation
# ---------------------------------------------------------------------------

def normalize_date(raw: str) -> str:
    value = raw.strip()
    candidate = value[:10] if len(value) > 10 and value[4:5] == "-" else value
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(candidate, fmt).date().isoformat()
        except ValueError:
            continue
    raise ValueError(f"Invalid date format: {raw}")


def parse_decimal(raw: str, label: str) -> Decimal:
    value = raw.strip().replace(" ", "").replace("\u00a0", "")
    if "," in value and "." in value:
        value = value.replace(",", "")
    else:
        value = value.replace(",", ".")
    try:
        number = Decimal(value)
    except InvalidOperation:
        raise ValueError(f"{label} must be a number") from None
    if not number.is_finite():
        raise ValueError(f"{label} must be a number")
    return number


def parse_integer(raw: str, label: str) -> int:
    number = parse_decimal(raw, label)
    if number != number.to_integral_value():
        raise ValueError(f"{label} must be a whole number")
    return int(number)


def _convert(name, raw):
    if name in DATE_FIELDS:
        return normalize_date(raw)
    if name in DECIMAL_FIELDS:
        return parse_decimal(raw, name)
    if name in INTEGER_FIELDS:
        return parse_integer(raw, name)
    return raw


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _header_map(fieldnames, mappings):
    """CSV column -> ledger column."""
    if mappings:
        unknown = sorted({col for col in mappings.values() if col and col not in LEDGER_FIELDS})
        if unknown:
            raise ValidationError(f"Unknown target columns in mapping: {', '.join(unknown)}")
        return {csv_col: col for csv_col, col in mappings.items() if col and csv_col in fieldnames}

    aliases = _alias_table()
    header_map = {}
    for csv_col in fieldnames:
        if csv_col is None or not str(csv_col).strip():
            continue
        name = aliases.get(_normalize_header(csv_col))
        if name and name not in header_map.values():
            header_map[csv_col] = name
    return header_map


def parse_sales_csv(content: str, mappings=None) -> ParsedUpload:
    """Parse decoded CSV text into importer rows.

    Parameters
    ----------
    content : str
    mappings : dict, optional
        Explicit ``{csv column: ledger column}`` mapping; without it headers
        are matched by name and known aliases.
    """
    reader = build_reader(content)
    if not reader.fieldnames:
        raise ValidationError("CSV headers not found")

    header_map = _header_map(reader.fieldnames, mappings)
    missing = [name for name in REQUIRED_FIELDS if name not in header_map.values()]
    if missing:
        raise ValidationError(f"Missing required columns: {', '.join(missing)}")

    parsed = ParsedUpload(
        unmapped_columns=[col for col in reader.fieldnames if col and col not in header_map],
    )
    for line_no, row in enumerate(reader, start=2):
        if not any(str(v).strip() for v in row.values() if v is not None):
            parsed.skipped_rows += 1
            continue
        parsed.total_rows += 1

        values = {}
        errors = []
        for csv_col, name in header_map.items():
            raw = row.get(csv_col)
            text = str(raw).strip() if raw is not None else ""
            if text == "":
                continue
            try:
                values[name] = _convert(name, text)
            except ValueError as exc:
                errors.append(str(exc))
        for name in REQUIRED_FIELDS:
            if name not in values and not any(name in err for err in errors):
                errors.append(f"Missing required field: {name}")

        if errors:
            parsed.invalid_rows.append({"line": line_no, "data": row, "errors": errors})
        else:
            parsed.rows.append(values)

    if parsed.invalid_rows:
        logger.info(
            "CSV upload rejected: %d of %d rows invalid",
            len(parsed.invalid_rows), parsed.total_rows,
        )
    return parsed
