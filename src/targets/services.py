"""Service functions for the targets app (single-target CRUD)."""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from core.activity import log_activity
from core.exceptions import NotFoundError, ValidationError
from targets.filters import TargetFilter
from targets.models import COMPANY_TARGET_ID, TIME_TARGET_TYPES, Target, TargetType
from targets.periods import coerce_date, resolve_period

logger = logging.getLogger("salesdash")

DUPLICATE_TARGET_MESSAGE = "Target already exists for this period"


def parse_target_value(value) -> Decimal:
    """Coerce ``value`` into a strictly positive decimal."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid target value: {value}")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid target value: {value}") from None
    if not amount.is_finite():
        raise ValidationError(f"Invalid target value: {value}")
    if amount <= 0:
        raise ValidationError("Target value must be greater than zero")
    return amount


def parse_currency(value) -> str:
    currency = (value or settings.CURRENCY).strip().upper()
    if len(currency) != 3 or not currency.isalpha():
        raise ValidationError(f"Invalid currency code: {value}")
    return currency


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------

def list_targets(params=None):
    """Targets matching the query ``params``, newest period first.

    See :class:`~targets.filters.TargetFilter` for the accepted keys.
    """
    filterset = TargetFilter(params or {}, queryset=Target.objects.select_related("created_by"))
    if not filterset.is_valid():
        name, messages = next(iter(filterset.errors.items()))
        raise ValidationError(f"Invalid {name}: {messages[0]}")
    return filterset.qs.order_by("-period_start", "target_type", "target_id")


def get_target(pk) -> Target:
    try:
        return Target.objects.select_related("created_by").get(pk=pk)
    except (Target.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Target not found") from None


# ---------------------------------------------------------------------------
# Write
# ---------------------------------------------------------------------------

def create_target(data, created_by=None, reference_date=None, ip_address=None) -> Target:
    """Create one target.

    Parameters
    ----------
    data : dict
        ``target_type``, ``target_id`` and ``target_value`` are required;
        ``period_start``, ``period_end`` and ``currency`` are optional.
        Missing periods are resolved from ``reference_date`` (today by
        default).
    created_by : accounts.models.User, optional

    Raises
    ------
    ValidationError
        Missing or invalid fields, or a target already stored for the same
        type, id and period.
    """
    missing = [
        name for name in ("target_type", "target_id", "target_value")
        if data.get(name) in (None, "")
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    target_value = parse_target_value(data["target_value"])
    target_type = data["target_type"]
    if target_type not in TargetType.values:
        raise ValidationError(f"Invalid target type: {target_type}")
    target_id = str(data["target_id"]).strip()
    if TargetType(target_type) in TIME_TARGET_TYPES:
        target_id = target_id or COMPANY_TARGET_ID

    explicit_start = coerce_date(data.get("period_start"), "period start")
    explicit_end = coerce_date(data.get("period_end"), "period end")
    if explicit_start and explicit_end:
        if explicit_end < explicit_start:
            raise ValidationError("Period end must not be before period start")
        start, end = explicit_start, explicit_end
    else:
        period = resolve_period(
            target_type,
            reference_date or explicit_start or explicit_end or timezone.localdate(),
            explicit_start,
            explicit_end,
        )
        start, end = period.start, period.end

    lookup = dict(target_type=target_type, target_id=target_id, period_start=start, period_end=end)
    if Target.objects.filter(**lookup).exists():
        raise ValidationError(DUPLICATE_TARGET_MESSAGE)

    try:
        with transaction.atomic():
            target = Target.objects.create(
                **lookup,
                target_value=target_value,
                currency=parse_currency(data.get("currency")),
                created_by=created_by,
            )
    except IntegrityError:
        raise ValidationError(DUPLICATE_TARGET_MESSAGE) from None

    logger.info(
        "Target %s created: %s/%s %s..%s = %s",
        target.pk, target_type, target_id, start, end, target_value,
    )
    log_activity(
        created_by, "CREATE", "target", target.pk,
        {"target_type": target_type, "target_id": target_id, "target_value": target_value},
        ip_address,
    )
    return target


def update_target(pk, updates, actor=None, ip_address=None) -> Target:
    """Change ``target_value`` and/or ``currency``; everything else is fixed."""
    target = get_target(pk)
    changed = []
    if updates.get("target_value") is not None:
        target.target_value = parse_target_value(updates["target_value"])
        changed.append("target_value")
    if updates.get("currency"):
        target.currency = parse_currency(updates["currency"])
        changed.append("currency")
    if changed:
        target.save(update_fields=changed + ["updated_at"])
        logger.info("Target %s updated (%s)", target.pk, ", ".join(changed))
        log_activity(
            actor, "UPDATE", "target", target.pk,
            {name: getattr(target, name) for name in changed}, ip_address,
        )
    return target


def delete_target(pk, actor=None, ip_address=None) -> None:
    target = get_target(pk)
    details = {"target_type": target.target_type, "target_id": target.target_id}
    target.delete()
    logger.info("Target %s deleted", pk)
    log_activity(actor, "DELETE", "target", pk, details, ip_address)
