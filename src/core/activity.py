"""Activity journal sink.

Callers record what happened and move on: a failure to write the journal is
logged and never propagates into the operation that triggered it.
"""
from __future__ import annotations

import logging
from typing import Any

from django.db import DatabaseError, transaction

from core.models import ActivityLog

logger = logging.getLogger("salesdash")


def client_ip(request) -> str | None:
    """Best-effort client address, honouring ``X-Forwarded-For``."""
    if request is None:
        return None
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.META.get("REMOTE_ADDR") or None


def log_activity(
    actor,
    action: str,
    entity_type: str,
    entity_id: Any = "",
    details: dict[str, Any] | None = None,
    ip_address: str | None = None,
) -> ActivityLog | None:
    """Record an :class:`~core.models.ActivityLog` entry.

    Returns the created entry, or ``None`` when the write failed.
    """
    if actor is not None and not getattr(actor, "is_authenticated", False):
        actor = None
    try:
        # Savepoint so a failed insert cannot poison the caller's transaction.
        with transaction.atomic():
            return ActivityLog.objects.create(
                actor=actor,
                action=action,
                entity_type=entity_type,
                entity_id="" if entity_id is None else str(entity_id),
                details=details,
                ip_address=ip_address,
            )
    except (DatabaseError, TypeError, ValueError):
        logger.warning(
            "Failed to record activity %s on %s #%s", action, entity_type, entity_id,
            exc_info=True,
        )
        return None
