"""Business audit sink.

``record_audit`` is called by services inside their atomic block.  The
entry is handed to Celery only once the surrounding transaction commits,
so rejected or rolled-back operations leave no audit trace and a failing
sink can never undo a committed change.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

import structlog
from django.db import transaction

from modules.core.serialization import normalize_for_json

logger = structlog.get_logger(__name__)


def record_audit(
    *,
    actor_id: Optional[str],
    action: str,
    target_type: str,
    target_id: str,
    metadata: Optional[Mapping[str, Any]] = None,
) -> None:
    """Schedule an audit entry for after the current transaction commits."""
    from modules.core.tasks import write_audit_entry

    payload = {
        "actor_id": str(actor_id) if actor_id else None,
        "action": str(action),
        "target_type": target_type,
        "target_id": str(target_id),
        "metadata": normalize_for_json(dict(metadata or {})),
    }

    def _enqueue() -> None:
        write_audit_entry.delay(**payload)

    transaction.on_commit(_enqueue, robust=True)
    logger.debug("audit.scheduled", action=payload["action"], target_id=payload["target_id"])
