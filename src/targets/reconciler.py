"""Bulk reconciliation of flat target payloads into stored targets.

The payload maps keys to values::

    {"monthly": 100000, "category_Electronics": 50000, "rep_<uuid>": 20000}

``monthly`` / ``quarterly`` / ``yearly`` are company-wide targets; the
``category_`` / ``region_`` / ``rep_`` prefixes carry a dimension id. Each key
is parsed into a :class:`CompanyTarget` or :class:`DimensionTarget` before
anything touches the database.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import InvalidOperation

from django.db import DatabaseError, DataError, IntegrityError, transaction
from django.utils import timezone

from core.activity import log_activity
from core.exceptions import InfrastructureError, ServiceError, ValidationError
from targets.models import COMPANY_TARGET_ID, TIME_TARGET_TYPES, Target, TargetType
from targets.periods import coerce_date, resolve_period
from targets.services import parse_currency, parse_target_value

logger = logging.getLogger("salesdash")

INVALID_KEY_MESSAGE = "Invalid target key format"

DIMENSION_PREFIXES = {
    "category_": TargetType.CATEGORY,
    "region_": TargetType.REGION,
    "rep_": TargetType.REP,
}


class TargetKeyError(ValidationError):
    default_message = INVALID_KEY_MESSAGE


@dataclass(frozen=True)
class CompanyTarget:
    target_type: TargetType
    target_id: str = COMPANY_TARGET_ID


@dataclass(frozen=True)
class DimensionTarget:
    target_type: TargetType
    target_id: str


@dataclass
class ReconcileResult:
    created: int = 0
    updated: int = 0
    errors: list = field(default_factory=list)

    def as_dict(self):
        return {"created": self.created, "updated": self.updated, "errors": list(self.errors)}


def parse_target_key(key) -> CompanyTarget | DimensionTarget:
    """Decode one payload key; anything unrecognised raises TargetKeyError."""
    if not isinstance(key, str):
        raise TargetKeyError()
    if key in TargetType.values and TargetType(key) in TIME_TARGET_TYPES:
        return CompanyTarget(TargetType(key))
    for prefix, target_type in DIMENSION_PREFIXES.items():
        if key.startswith(prefix):
            dimension_id = key[len(prefix):].strip()
            if not dimension_id:
                raise TargetKeyError()
            return DimensionTarget(target_type, dimension_id)
    raise TargetKeyError()


def _upsert_entry(spec, value, *, reference_date, period_start, period_end,
                  currency, created_by, result):
    target_value = parse_target_value(value)
    if isinstance(spec, DimensionTarget):
        period = resolve_period(spec.target_type, reference_date, period_start, period_end)
    else:
        period = resolve_period(spec.target_type, reference_date)

    existing = (
        Target.objects
        .select_for_update()
        .filter(
            target_type=spec.target_type,
            target_id=spec.target_id,
            period_start=period.start,
            period_end=period.end,
        )
        .first()
    )
    if existing is not None:
        existing.target_value = target_value
        existing.save(update_fields=["target_value", "updated_at"])
        result.updated += 1
        return

    Target.objects.create(
        target_type=spec.target_type,
        target_id=spec.target_id,
        period_start=period.start,
        period_end=period.end,
        target_value=target_value,
        currency=currency,
        created_by=created_by,
    )
    result.created += 1


def bulk_upsert_targets(targets, *, period_start=None, period_end=None, currency=None,
                        created_by=None, reference_date=None, ip_address=None) -> ReconcileResult:
    """Create or update every target named in ``targets``.

    Parameters
    ----------
    targets : Mapping[str, Any]
        Flat key -> value payload; ``None`` values are skipped.
    period_start, period_end : date or str, optional
        Window override for the dimensional (category/region/rep) keys.
    currency : str, optional
        Currency of newly created targets (``settings.CURRENCY`` by default).
    created_by : accounts.models.User, optional
    reference_date : date, optional
        Date the company-wide windows are resolved from; today by default.

    Returns
    -------
    ReconcileResult
        Counts of created and updated targets plus ``{"key", "error"}``
        entries for the keys that were rejected.

    Raises
    ------
    ValidationError
        Malformed batch-wide options (dates, currency).
    InfrastructureError
        The store failed outside a single entry; nothing is kept.
    """
    reference_date = coerce_date(reference_date, "reference date") or timezone.localdate()
    period_start = coerce_date(period_start, "period start")
    period_end = coerce_date(period_end, "period end")
    currency = parse_currency(currency)

    result = ReconcileResult()
    try:
        with transaction.atomic():
            for key, value in targets.items():
                if value is None:
                    continue
                try:
                    spec = parse_target_key(key)
                    with transaction.atomic():
                        _upsert_entry(
                            spec, value,
                            reference_date=reference_date,
                            period_start=period_start,
                            period_end=period_end,
                            currency=currency,
                            created_by=created_by,
                            result=result,
                        )
                except ServiceError as exc:
                    result.errors.append({"key": key, "error": exc.message})
                except (IntegrityError, DataError, InvalidOperation) as exc:
                    logger.warning("Target entry %s rejected: %s", key, exc)
                    result.errors.append({"key": key, "error": str(exc)})
    except DatabaseError as exc:
        logger.error("Bulk target update rolled back: %s", exc)
        raise InfrastructureError(f"Bulk target update error: {exc}") from exc

    logger.info(
        "Bulk target update: %d created, %d updated, %d rejected",
        result.created, result.updated, len(result.errors),
    )
    log_activity(
        created_by, "BULK_UPDATE", "target", "",
        {"created": result.created, "updated": result.updated, "errors": len(result.errors)},
        ip_address,
    )
    return result
