"""
Activity log service - records one immutable entry per mutating action.

Writing an entry is best-effort. ``log_activity`` never raises: a failed
write is reported on this module's logger and dropped, so the business
operation that triggered it is never aborted by the audit trail. This is
the only place in the codebase where errors are absorbed on purpose.

Callers invoke ``log_activity`` after their own transaction has committed
(or at least exited successfully), and never retry it.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from django.db import transaction

from apps.audit.models import ActivityAction, ActivityLog, EntityType
from core.middleware import get_current_request_id

logger = logging.getLogger(__name__)

MAX_IP_LENGTH = 50


@dataclass(frozen=True)
class ActivityWriteResult:
    """Outcome of a single activity log write."""

    entry: Optional[ActivityLog] = None
    error: Optional[BaseException] = None

    @property
    def ok(self):
        return self.error is None


def client_ip(request):
    """REMOTE_ADDR first, then the first hop of X-Forwarded-For."""
    if request is None:
        return None

    meta = request.META
    ip = meta.get("REMOTE_ADDR")
    if not ip:
        forwarded = meta.get("HTTP_X_FORWARDED_FOR", "")
        ip = forwarded.split(",")[0].strip()

    return ip[:MAX_IP_LENGTH] if ip else None


def user_agent(request):
    if request is None:
        return None
    return request.META.get("HTTP_USER_AGENT") or None


def to_json_value(value):
    """Plain JSON representation for values stored in details payloads."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def field_changes(instance, changes):
    """
    Compare ``changes`` with the current attribute values of ``instance``.

    Returns {field: {"old": ..., "new": ...}} for fields whose value differs.
    """
    diff = {}
    for field, new_value in changes.items():
        old_value = getattr(instance, field)
        if old_value != new_value:
            diff[field] = {"old": to_json_value(old_value), "new": to_json_value(new_value)}
    return diff


def _write_activity(
    *,
    actor_id,
    action,
    entity_type,
    entity_id=None,
    entity_name=None,
    details=None,
    ip_address=None,
    agent=None,
) -> ActivityWriteResult:
    from apps.users.models import User

    try:
        action = ActivityAction(action)
        entity_type = EntityType(entity_type)

        with transaction.atomic():
            # An unknown actor must not leave a dangling deferred foreign key
            # that would only fail at the caller's commit.
            actor = User.objects.filter(pk=actor_id).first() if actor_id else None
            if actor is None:
                logger.warning(
                    "activity_actor_missing",
                    extra={"actor_id": actor_id, "action": str(action)},
                )

            entry = ActivityLog.objects.create(
                actor=actor,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                entity_name=entity_name[:255] if entity_name else entity_name,
                details=details,
                ip_address=ip_address,
                user_agent=agent,
                request_id=get_current_request_id(),
            )
    except Exception as exc:
        return ActivityWriteResult(error=exc)

    return ActivityWriteResult(entry=entry)


def log_activity(
    actor_id,
    action,
    entity_type,
    entity_id=None,
    entity_name=None,
    details: Optional[dict[str, Any]] = None,
    request=None,
) -> None:
    """
    Record an activity log entry for a mutating action.

    Args:
        actor_id: User performing the action
        action: ActivityAction member (or its string value)
        entity_type: EntityType member (or its string value)
        entity_id: Identifier of the affected entity (optional)
        entity_name: Human-readable entity label (optional)
        details: JSON-serializable payload, usually old/new values (optional)
        request: Source request; client IP and user agent are taken from it
    """
    result = _write_activity(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        entity_name=entity_name,
        details=details,
        ip_address=client_ip(request),
        agent=user_agent(request),
    )

    if not result.ok:
        logger.error(
            "activity_log_write_failed",
            exc_info=result.error,
            extra={
                "operation": "LOG_ACTIVITY",
                "action": str(action),
                "entity_type": str(entity_type),
                "entity_id": entity_id,
                "actor_id": actor_id,
            },
        )
