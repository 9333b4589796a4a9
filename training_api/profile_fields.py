"""
Admin-defined custom profile fields.
"""

import json
import uuid
from typing import Any, Dict, List, Mapping, Sequence

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from training_api.config import DEFAULT_VISIBLE_TO, FIELD_TYPES, PROFILE_FIELD_NAME_PATTERN, ROLES
from training_api.database import execute, fetch_all, fetch_one, now, reorder_steps, run_atomic
from training_api.errors import Conflict, NotFound, ValidationError
from training_api.models import Identity, OperationDescriptor as Op, serialize_row
from training_api.policy import CREATE, DELETE, READ, READ_LIST, UPDATE, require
from training_api.sql_builder import PROFILE_FIELD_FIELDS, build_update, change_set
from training_api.validation import require_choice, require_fields, require_list, require_pattern


def serialize_field(row):
    return serialize_row(
        row,
        json_columns=("options", "visible_to"),
        bool_columns=("is_required",),
        rename={"field_type": "type", "is_required": "required"},
    )


def _require_field(engine, field_id: str) -> Dict[str, Any]:
    field = fetch_one(engine, "SELECT * FROM custom_profile_fields WHERE id = :id", {"id": field_id})
    if not field:
        raise NotFound("Profile field not found")
    return field


def _check_visible_to(visible_to) -> None:
    if visible_to is None:
        return
    for role in require_list(visible_to, "visibleTo must be an array of roles"):
        require_choice(role, ROLES, "visibleTo")


def list_fields(engine, identity: Identity) -> List[Dict[str, Any]]:
    require(identity, Op("profile_field", READ_LIST))
    rows = fetch_all(engine, "SELECT * FROM custom_profile_fields ORDER BY sort_order")
    return [serialize_field(r) for r in rows]


def get_field(engine, identity: Identity, field_id: str) -> Dict[str, Any]:
    require(identity, Op("profile_field", READ, target_id=field_id))
    return serialize_field(_require_field(engine, field_id))


def create_field(engine, identity: Identity, payload: Mapping[str, Any]) -> Dict[str, Any]:
    require(identity, Op("profile_field", CREATE))
    require_fields(payload, ("name", "label", "type"), "Name, label, and type are required")
    require_pattern(
        payload["name"], PROFILE_FIELD_NAME_PATTERN,
        "Field name can only contain letters, numbers, and underscores",
    )
    require_choice(payload["type"], FIELD_TYPES, "type")
    _check_visible_to(payload.get("visibleTo"))

    field_id = str(uuid.uuid4())
    options = payload.get("options")

    def insert(conn):
        max_order = conn.execute(text("SELECT MAX(sort_order) FROM custom_profile_fields")).scalar()
        conn.execute(text("""
            INSERT INTO custom_profile_fields (id, name, label, field_type, options, is_required,
                                               sort_order, visible_to, created_at)
            VALUES (:id, :name, :label, :field_type, :options, :is_required,
                    :sort_order, :visible_to, :created_at)
        """), {
            "id": field_id,
            "name": payload["name"],
            "label": payload["label"],
            "field_type": payload["type"],
            "options": json.dumps(options) if options else None,
            "is_required": 1 if payload.get("required") else 0,
            "sort_order": 0 if max_order is None else max_order + 1,
            "visible_to": json.dumps(payload.get("visibleTo") or DEFAULT_VISIBLE_TO),
            "created_at": now(),
        })

    try:
        run_atomic(engine, [insert])
    except IntegrityError as e:
        raise Conflict("A field with this name already exists") from e

    return serialize_field(_require_field(engine, field_id))


def update_field(engine, identity: Identity, field_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
    require(identity, Op("profile_field", UPDATE, target_id=field_id))
    _require_field(engine, field_id)

    changes = change_set(payload, PROFILE_FIELD_FIELDS)
    if changes.get("type") is not None:
        require_choice(changes["type"], FIELD_TYPES, "type")
    if "visibleTo" in changes:
        if changes["visibleTo"] is None:
            raise ValidationError("visibleTo cannot be null")
        _check_visible_to(changes["visibleTo"])

    plan = build_update(PROFILE_FIELD_FIELDS, changes)
    execute(engine, plan.statement("custom_profile_fields"), {**plan.params, "key": field_id})
    return serialize_field(_require_field(engine, field_id))


def delete_field(engine, identity: Identity, field_id: str) -> None:
    require(identity, Op("profile_field", DELETE, target_id=field_id))
    _require_field(engine, field_id)
    execute(engine, "DELETE FROM custom_profile_fields WHERE id = :id", {"id": field_id})


def reorder_fields(engine, identity: Identity, field_ids: Sequence[str]) -> None:
    """Give each field its index in *field_ids* as sort order, all or nothing."""
    require(identity, Op("profile_field", "reorder"))
    require_list(field_ids, "fieldIds array is required")
    run_atomic(engine, reorder_steps("custom_profile_fields", field_ids))
