"""
E-learning course modules and their ordering.
"""

import uuid
from typing import Any, Dict, List, Mapping, Sequence

from sqlalchemy import text

from training_api.config import CONTENT_TYPES
from training_api.database import execute, fetch_all, fetch_one, now, reorder_steps, run_atomic
from training_api.errors import NotFound, ValidationError
from training_api.models import Identity, OperationDescriptor as Op, serialize_row
from training_api.policy import CREATE, DELETE, READ_LIST, UPDATE, require
from training_api.sql_builder import MODULE_FIELDS, build_update, change_set
from training_api.validation import require_choice, require_fields, require_list


def serialize_module(row):
    return serialize_row(row, bool_columns=("is_required",))


def fetch_modules(engine, course_id: str) -> List[Dict[str, Any]]:
    rows = fetch_all(
        engine,
        "SELECT * FROM course_modules WHERE course_id = :course_id ORDER BY sort_order",
        {"course_id": course_id},
    )
    return [serialize_module(r) for r in rows]


def _find_module(engine, course_id: str, module_id: str) -> Dict[str, Any]:
    module = fetch_one(
        engine,
        "SELECT * FROM course_modules WHERE id = :id AND course_id = :course_id",
        {"id": module_id, "course_id": course_id},
    )
    if not module:
        raise NotFound("Module not found")
    return module


def list_modules(engine, identity: Identity, course_id: str) -> List[Dict[str, Any]]:
    require(identity, Op("module", READ_LIST))
    return fetch_modules(engine, course_id)


def add_module(engine, identity: Identity, course_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Append a module to an e-learning course."""
    require(identity, Op("module", CREATE))
    message = "Title, contentType, and duration are required"
    require_fields(payload, ("title", "contentType"), message)
    if payload.get("duration") is None:
        raise ValidationError(message)
    require_choice(payload["contentType"], CONTENT_TYPES, "contentType")

    module_id = str(uuid.uuid4())

    def insert(conn):
        course = conn.execute(
            text("SELECT course_type FROM courses WHERE id = :id"), {"id": course_id}
        ).mappings().first()
        if not course:
            raise NotFound("Course not found")
        if course["course_type"] != "elearning":
            raise ValidationError("Modules can only be added to e-learning courses")

        max_order = conn.execute(
            text("SELECT MAX(sort_order) FROM course_modules WHERE course_id = :id"),
            {"id": course_id},
        ).scalar()
        conn.execute(text("""
            INSERT INTO course_modules (id, course_id, title, description, content_type, content_url,
                                        scorm_version, duration, sort_order, is_required, created_at)
            VALUES (:id, :course_id, :title, :description, :content_type, :content_url,
                    :scorm_version, :duration, :sort_order, :is_required, :created_at)
        """), {
            "id": module_id,
            "course_id": course_id,
            "title": payload["title"],
            "description": payload.get("description") or None,
            "content_type": payload["contentType"],
            "content_url": payload.get("contentUrl") or None,
            "scorm_version": payload.get("scormVersion") or None,
            "duration": payload["duration"],
            "sort_order": 0 if max_order is None else max_order + 1,
            "is_required": 1 if payload.get("isRequired") else 0,
            "created_at": now(),
        })

    run_atomic(engine, [insert])
    return serialize_module(_find_module(engine, course_id, module_id))


def update_module(engine, identity: Identity, course_id: str, module_id: str,
                  payload: Mapping[str, Any]) -> Dict[str, Any]:
    require(identity, Op("module", UPDATE, target_id=module_id))
    _find_module(engine, course_id, module_id)

    plan = build_update(MODULE_FIELDS, change_set(payload, MODULE_FIELDS))
    execute(engine, plan.statement("course_modules"), {**plan.params, "key": module_id})
    return serialize_module(_find_module(engine, course_id, module_id))


def delete_module(engine, identity: Identity, course_id: str, module_id: str) -> None:
    require(identity, Op("module", DELETE, target_id=module_id))
    _find_module(engine, course_id, module_id)
    execute(engine, "DELETE FROM course_modules WHERE id = :id", {"id": module_id})


def reorder_modules(engine, identity: Identity, course_id: str, module_ids: Sequence[str]) -> None:
    """Give each module its index in *module_ids* as sort order, all or nothing."""
    require(identity, Op("module", "reorder", target_id=course_id))
    require_list(module_ids, "moduleIds array is required")

    run_atomic(engine, reorder_steps(
        "course_modules", module_ids,
        scope=" AND course_id = :course_id", scope_params={"course_id": course_id},
    ))
