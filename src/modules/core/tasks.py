"""Asynchronous tasks of the core module."""

import structlog
from celery import shared_task
from django.db import DatabaseError

logger = structlog.get_logger(__name__)


@shared_task(name="core.write_audit_entry")
def write_audit_entry(actor_id, action, target_type, target_id, metadata=None):
    """Persist one ``AuditLog`` row.

    Storage failures are logged and swallowed: the audit trail is advisory
    and the business change it describes has already been committed.
    """
    from modules.core.models import AuditLog

    log = logger.bind(action=action, target_type=target_type, target_id=target_id)
    try:
        entry = AuditLog.objects.create(
            actor_id=actor_id,
            action=action,
            target_type=target_type,
            target_id=target_id,
            metadata=metadata or {},
        )
    except DatabaseError as exc:
        log.error("audit.write_failed", error=str(exc))
        return None

    log.info("audit.recorded", audit_id=str(entry.id))
    return str(entry.id)
