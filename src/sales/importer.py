"""Batch import of sales rows into the ledger.

The whole batch runs in one transaction with a savepoint per row: a bad row
is recorded and skipped, while a failure of the store itself rolls back every
row of the batch.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import InvalidOperation

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, DataError, IntegrityError, transaction

from core.activity import log_activity
from core.exceptions import InfrastructureError, ServiceError
from sales.models import SalesLine
from sales.services import DUPLICATE_INVOICE_MESSAGE, check_amounts, coerce_sale_values

logger = logging.getLogger("salesdash")


class DuplicateInvoice(ServiceError):
    code = "CONFLICT"
    default_message = DUPLICATE_INVOICE_MESSAGE


ROW_ERRORS = (
    ServiceError,
    IntegrityError,
    DataError,
    DjangoValidationError,
    ValueError,
    TypeError,
    ArithmeticError,
    InvalidOperation,
)


@dataclass
class ImportBatchResult:
    imported_count: int = 0
    error_count: int = 0
    errors: list = field(default_factory=list)
    total_rows: int = 0
    warnings: list = field(default_factory=list)
    warning_count: int = 0

    def add_error(self, invoice_id, message, limit):
        self.error_count += 1
        if len(self.errors) < limit:
            self.errors.append({"invoice_id": invoice_id, "error": message})

    def add_warning(self, invoice_id, message, limit):
        self.warning_count += 1
        if len(self.warnings) < limit:
            self.warnings.append({"invoice_id": invoice_id, "warning": message})

    def as_dict(self):
        return {
            "imported_count": self.imported_count,
            "error_count": self.error_count,
            "errors": list(self.errors),
            "total_rows": self.total_rows,
            "warnings": list(self.warnings),
            "warning_count": self.warning_count,
        }


def _error_message(exc):
    if isinstance(exc, ServiceError):
        return exc.message
    if isinstance(exc, DjangoValidationError):
        return "; ".join(exc.messages)
    return str(exc) or exc.__class__.__name__


def _import_row(row, update_existing):
    """Insert or update one row; returns the coerced values."""
    if not isinstance(row, Mapping):
        raise TypeError("Row must be a mapping of column names to values")
    values = coerce_sale_values(row)
    invoice_id = values.pop("invoice_id")
    existing = SalesLine.objects.select_for_update().filter(invoice_id=invoice_id).first()
    if existing is None:
        SalesLine.objects.create(invoice_id=invoice_id, **values)
    elif update_existing:
        for name, value in values.items():
            setattr(existing, name, value)
        existing.save(update_fields=list(values) + ["updated_at"])
    else:
        raise DuplicateInvoice(DUPLICATE_INVOICE_MESSAGE)
    values["invoice_id"] = invoice_id
    return values


def import_batch(rows, *, update_existing=False, actor=None, ip_address=None) -> ImportBatchResult:
    """Import ``rows`` (mappings of ledger column -> value) into the ledger.

    Parameters
    ----------
    rows : Sequence[Mapping[str, Any]]
        Already parsed rows; each needs ``invoice_id``, ``date`` and
        ``item_net``.
    update_existing : bool
        Overwrite the supplied columns of lines that already exist instead of
        reporting them as duplicates.
    actor : accounts.models.User, optional

    Returns
    -------
    ImportBatchResult
        True imported/error totals; ``errors`` and ``warnings`` keep only the
        first ``settings.IMPORT_ERROR_LIMIT`` entries.

    Raises
    ------
    InfrastructureError
        The store failed; no row of the batch is kept.
    """
    rows = list(rows)
    limit = settings.IMPORT_ERROR_LIMIT
    result = ImportBatchResult(total_rows=len(rows))

    try:
        with transaction.atomic():
            for row in rows:
                invoice_id = row.get("invoice_id") if isinstance(row, Mapping) else None
                try:
                    with transaction.atomic():
                        values = _import_row(row, update_existing)
                except ROW_ERRORS as exc:
                    result.add_error(invoice_id, _error_message(exc), limit)
                    logger.debug("Import row %s rejected: %s", invoice_id, exc)
                    continue
                result.imported_count += 1
                for warning in check_amounts(values):
                    result.add_warning(invoice_id, warning, limit)
    except DatabaseError as exc:
        logger.error("Sales import rolled back after %d rows: %s", result.imported_count, exc)
        raise InfrastructureError(f"Import batch error: {exc}") from exc

    logger.info(
        "Sales import: %d/%d rows imported, %d errors, %d warnings",
        result.imported_count, result.total_rows, result.error_count, result.warning_count,
    )
    log_activity(
        actor, "IMPORT", "sales", "",
        {
            "total_rows": result.total_rows,
            "imported_count": result.imported_count,
            "error_count": result.error_count,
            "update_existing": update_existing,
        },
        ip_address,
    )
    return result
