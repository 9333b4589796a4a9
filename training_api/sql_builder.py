"""
Parameterized SQL building – partial UPDATE statements and list filters.

Column and bind-parameter names only ever come from the fixed per-entity
whitelists below (or from constants in the calling code). Request values are
always passed as bound parameters.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from training_api.errors import EmptyChangeError
from training_api.models import RowFilter

SCALAR = "scalar"
JSON = "json"
BOOL = "bool"


@dataclass(frozen=True)
class Field:
    """One updatable attribute: request name → column name, value kind."""
    name: str
    column: str
    kind: str = SCALAR


class _Missing:
    def __repr__(self):
        return "MISSING"

    def __bool__(self):
        return False


# Marks a field absent from the request (as opposed to present with null).
MISSING = _Missing()


# ── Entity whitelists ────────────────────────────────────────────────

USER_FIELDS = (
    Field("name", "name"),
    Field("email", "email"),
    Field("avatar", "avatar"),
    Field("profileData", "profile_data", JSON),
)

COURSE_FIELDS = (
    Field("title", "title"),
    Field("description", "description"),
    Field("duration", "duration"),
    Field("category", "category"),
    Field("zoomMeetingId", "zoom_meeting_id"),
    Field("zoomLink", "zoom_link"),
)

MODULE_FIELDS = (
    Field("title", "title"),
    Field("description", "description"),
    Field("contentType", "content_type"),
    Field("contentUrl", "content_url"),
    Field("scormVersion", "scorm_version"),
    Field("duration", "duration"),
    Field("isRequired", "is_required", BOOL),
)

SCHEDULE_FIELDS = (
    Field("title", "title"),
    Field("startDate", "start_date"),
    Field("endDate", "end_date"),
    Field("startTime", "start_time"),
    Field("endTime", "end_time"),
    Field("location", "location"),
    Field("maxLearners", "max_learners"),
    Field("status", "status"),
    Field("sessionMode", "session_mode"),
    Field("zoomLink", "zoom_link"),
    Field("zoomMeetingId", "zoom_meeting_id"),
)

# Only reachable through the reassign_trainer policy rule.
SCHEDULE_TRAINER_FIELD = (Field("trainerId", "trainer_id"),)

PROFILE_FIELD_FIELDS = (
    Field("label", "label"),
    Field("type", "field_type"),
    Field("options", "options", JSON),
    Field("required", "is_required", BOOL),
    Field("visibleTo", "visible_to", JSON),
)


# ── Change sets ──────────────────────────────────────────────────────

def change_set(payload: Mapping[str, Any], whitelist: Sequence[Field]) -> Dict[str, Any]:
    """Collect the whitelisted fields explicitly present in *payload*.

    A key present with a null value is kept; an absent key is not.
    """
    return {f.name: payload[f.name] for f in whitelist if f.name in payload}


def encode_value(value: Any, kind: str = SCALAR) -> Any:
    """Turn a request value into a bindable parameter."""
    if kind == BOOL:
        return None if value is None else (1 if value else 0)
    if kind == JSON or isinstance(value, (dict, list, tuple, set, frozenset)):
        if value is None:
            return None
        if isinstance(value, (set, frozenset)):
            value = sorted(value)
        return json.dumps(value, sort_keys=True)
    return value


@dataclass
class UpdatePlan:
    """Ordered `column = :param` assignments and their bound values."""
    assignments: List[str]
    params: Dict[str, Any]

    @property
    def columns(self) -> List[str]:
        return [a.split(" = ", 1)[0] for a in self.assignments]

    def statement(self, table: str, key_column: str = "id",
                  extra: Iterable[str] = ()) -> str:
        """Render the UPDATE for *table*; bind the row key as :key."""
        sets = ", ".join(list(self.assignments) + list(extra))
        return f"UPDATE {table} SET {sets} WHERE {key_column} = :key"


def build_update(whitelist: Sequence[Field], changes: Mapping[str, Any]) -> UpdatePlan:
    """Build the assignments for the whitelisted fields present in *changes*.

    Raises EmptyChangeError when nothing is left to write.
    """
    assignments: List[str] = []
    params: Dict[str, Any] = {}
    for f in whitelist:
        value = changes.get(f.name, MISSING)
        if value is MISSING:
            continue
        bind = f"v_{f.column}"
        assignments.append(f"{f.column} = :{bind}")
        params[bind] = encode_value(value, f.kind)

    if not assignments:
        raise EmptyChangeError()
    return UpdatePlan(assignments, params)


# ── List filters ─────────────────────────────────────────────────────

@dataclass
class QueryFilter:
    """Accumulates (predicate, params) pairs for a WHERE clause."""
    predicates: List[str] = field(default_factory=list)
    params: Dict[str, Any] = field(default_factory=dict)

    def add(self, clause: str, **params) -> "QueryFilter":
        clashes = set(params) & set(self.params)
        if clashes:
            raise ValueError(f"Duplicate bind parameter(s): {sorted(clashes)}")
        self.predicates.append(clause)
        self.params.update(params)
        return self

    def add_if(self, value: Any, clause: str, name: str) -> "QueryFilter":
        """Add `clause` bound to *value* under *name* when *value* is set."""
        if value not in (None, ""):
            self.add(clause, **{name: value})
        return self

    def extend(self, row_filter: Optional[RowFilter]) -> "QueryFilter":
        """AND a policy row filter onto the caller's filters."""
        if row_filter is not None:
            self.add(f"({row_filter.clause})", **row_filter.params)
        return self

    def render(self) -> Tuple[str, Dict[str, Any]]:
        if not self.predicates:
            return "", dict(self.params)
        return " WHERE " + " AND ".join(self.predicates), dict(self.params)


def like(term: str) -> str:
    """Wrap a search term for a LIKE comparison."""
    return f"%{term}%"
