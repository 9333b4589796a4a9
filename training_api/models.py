"""
Domain dataclasses used across the application.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from training_api.errors import DenyReason


@dataclass(frozen=True)
class Identity:
    """The authenticated caller for the lifetime of one request."""
    id: str
    role: str                  # "admin", "trainer", or "learner"
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass(frozen=True)
class OperationDescriptor:
    """What a request is trying to do, as seen by the policy engine."""
    resource: str
    action: str
    target_id: Optional[str] = None
    target_owner_id: Optional[str] = None
    owner_resolved: bool = True  # False when the target record was not found


@dataclass(frozen=True)
class RowFilter:
    """Extra list predicate bound to the caller (e.g. own enrollments only)."""
    clause: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Decision:
    """Result of an authorization check."""
    allowed: bool
    reason: Optional[DenyReason] = None
    message: Optional[str] = None
    row_filter: Optional[RowFilter] = None


# ── Row serialisation ────────────────────────────────────────────────

def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def serialize_row(row: Optional[Dict[str, Any]], json_columns=(), bool_columns=(),
                  rename: Optional[Dict[str, str]] = None) -> Optional[Dict[str, Any]]:
    """Turn a database row into an API object with camelCase keys.

    JSON text columns are decoded and integer flags become booleans.
    """
    if row is None:
        return None
    rename = rename or {}
    out = {}
    for column, value in row.items():
        if column in json_columns and isinstance(value, str):
            value = json.loads(value) if value else None
        elif column in bool_columns and value is not None:
            value = bool(value)
        out[rename.get(column, camel_case(column))] = value
    return out
