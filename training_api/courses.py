"""
Course catalogue – in-class, virtual and e-learning courses.
"""

import uuid
from typing import Any, Dict, List, Mapping

from sqlalchemy import text

from training_api.config import COURSE_TYPES
from training_api.database import execute, fetch_all, fetch_one, now, run_atomic
from training_api.errors import NotFound, ReferentialConflict
from training_api.models import Identity, OperationDescriptor as Op, serialize_row
from training_api.modules import fetch_modules
from training_api.policy import CREATE, DELETE, READ, READ_LIST, UPDATE, require
from training_api.sql_builder import COURSE_FIELDS, QueryFilter, build_update, change_set, like
from training_api.validation import require_choice, require_fields


def serialize_course(row):
    return serialize_row(row)


def find_course(engine, course_id: str):
    return fetch_one(engine, "SELECT * FROM courses WHERE id = :id", {"id": course_id})


def _require_course(engine, course_id: str) -> Dict[str, Any]:
    course = find_course(engine, course_id)
    if not course:
        raise NotFound("Course not found")
    return course


def list_courses(engine, identity: Identity, course_type: str = None, status: str = None,
                 search: str = None) -> List[Dict[str, Any]]:
    decision = require(identity, Op("course", READ_LIST))

    filters = QueryFilter()
    filters.add_if(course_type, "course_type = :course_type", "course_type")
    filters.add_if(status, "status = :status", "status")
    if search:
        filters.add(
            "(title LIKE :search OR description LIKE :search OR category LIKE :search)",
            search=like(search),
        )
    filters.extend(decision.row_filter)
    where, params = filters.render()

    rows = fetch_all(engine, f"SELECT * FROM courses{where} ORDER BY created_at DESC", params)
    return [serialize_course(r) for r in rows]


def get_course(engine, identity: Identity, course_id: str) -> Dict[str, Any]:
    """Course detail; e-learning courses include their ordered modules."""
    require(identity, Op("course", READ, target_id=course_id))
    course = _require_course(engine, course_id)

    modules = []
    if course["course_type"] == "elearning":
        modules = fetch_modules(engine, course_id)

    return {**serialize_course(course), "modules": modules}


def create_course(engine, identity: Identity, payload: Mapping[str, Any]) -> Dict[str, Any]:
    require(identity, Op("course", CREATE))
    require_fields(
        payload, ("title", "description", "duration", "category", "courseType"),
        "Title, description, duration, category, and courseType are required",
    )
    require_choice(payload["courseType"], COURSE_TYPES, "courseType")

    course_id = str(uuid.uuid4())
    stamp = now()
    execute(engine, """
        INSERT INTO courses (id, title, description, duration, category, course_type, status,
                             zoom_meeting_id, zoom_link, created_by, created_at, updated_at)
        VALUES (:id, :title, :description, :duration, :category, :course_type, :status,
                :zoom_meeting_id, :zoom_link, :created_by, :created_at, :updated_at)
    """, {
        "id": course_id,
        "title": payload["title"],
        "description": payload["description"],
        "duration": payload["duration"],
        "category": payload["category"],
        "course_type": payload["courseType"],
        # Only e-learning courses go through the draft → published lifecycle.
        "status": "draft" if payload["courseType"] == "elearning" else None,
        "zoom_meeting_id": payload.get("zoomMeetingId") or None,
        "zoom_link": payload.get("zoomLink") or None,
        "created_by": identity.id,
        "created_at": stamp,
        "updated_at": stamp,
    })
    print(f"[courses] Created course {course_id} ({payload['courseType']})")
    return serialize_course(find_course(engine, course_id))


def update_course(engine, identity: Identity, course_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
    require(identity, Op("course", UPDATE, target_id=course_id))
    _require_course(engine, course_id)

    plan = build_update(COURSE_FIELDS, change_set(payload, COURSE_FIELDS))
    execute(
        engine,
        plan.statement("courses", extra=["updated_at = :updated_at"]),
        {**plan.params, "updated_at": now(), "key": course_id},
    )
    return serialize_course(find_course(engine, course_id))


def delete_course(engine, identity: Identity, course_id: str) -> None:
    """Delete a course unless a schedule still references it."""
    require(identity, Op("course", DELETE, target_id=course_id))
    _require_course(engine, course_id)

    def guard(conn):
        count = conn.execute(
            text("SELECT COUNT(*) FROM schedules WHERE course_id = :id"), {"id": course_id}
        ).scalar()
        if count:
            raise ReferentialConflict("Cannot delete course with active schedules")

    run_atomic(engine, [
        guard,
        ("DELETE FROM course_modules WHERE course_id = :id", {"id": course_id}),
        ("DELETE FROM courses WHERE id = :id", {"id": course_id}),
    ])


def _set_status(engine, identity: Identity, course_id: str, action: str, status: str) -> Dict[str, Any]:
    require(identity, Op("course", action, target_id=course_id))
    _require_course(engine, course_id)
    execute(engine, "UPDATE courses SET status = :status, updated_at = :updated_at WHERE id = :id", {
        "status": status, "updated_at": now(), "id": course_id,
    })
    return serialize_course(find_course(engine, course_id))


def publish_course(engine, identity: Identity, course_id: str) -> Dict[str, Any]:
    return _set_status(engine, identity, course_id, "publish", "published")


def archive_course(engine, identity: Identity, course_id: str) -> Dict[str, Any]:
    return _set_status(engine, identity, course_id, "archive", "archived")


def list_categories(engine, identity: Identity) -> List[str]:
    require(identity, Op("course", "list_categories"))
    rows = fetch_all(engine, "SELECT DISTINCT category FROM courses ORDER BY category")
    return [r["category"] for r in rows]
