"""JSON normalisation shared by the outbox writer and the audit sink."""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict
from uuid import UUID


def to_json_payload(value: Any) -> Dict[str, Any]:
    """Return a JSON round-tripped copy of a dataclass or mapping."""
    data = asdict(value) if is_dataclass(value) else dict(value)
    return json.loads(json.dumps(normalize_for_json(data)))


def normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple, set, frozenset)):
        return [normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {str(key): normalize_for_json(val) for key, val in value.items()}
    return value
