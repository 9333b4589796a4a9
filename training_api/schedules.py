"""
Training schedules – sessions and batches of a course, with their day rows
and learner-group links.
"""

import uuid
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import text

from training_api.config import (
    DEFAULT_MAX_LEARNERS, SCHEDULE_STATUSES, SCHEDULE_TYPES, SESSION_MODES,
)
from training_api.database import fetch_all, fetch_one, now, run_atomic
from training_api.errors import NotFound, ValidationError
from training_api.models import Identity, OperationDescriptor as Op, serialize_row
from training_api.policy import CREATE, DELETE, READ, READ_LIST, UPDATE, authorize, require
from training_api.sql_builder import (
    SCHEDULE_FIELDS, SCHEDULE_TRAINER_FIELD, QueryFilter, build_update, change_set,
)
from training_api.validation import (
    require_choice, require_fields, require_list, require_non_negative_int,
)

SCHEDULE_SELECT = """
    SELECT s.*, c.title AS course_title, u.name AS trainer_name
    FROM schedules s
    JOIN courses c ON s.course_id = c.id
    JOIN users u ON s.trainer_id = u.id
"""

INSERT_DAY = """
    INSERT INTO schedule_days (id, schedule_id, date, start_time, end_time)
    VALUES (:id, :schedule_id, :date, :start_time, :end_time)
"""
INSERT_GROUP = "INSERT INTO schedule_groups (schedule_id, group_id) VALUES (:schedule_id, :group_id)"


def serialize_schedule(row):
    return serialize_row(row)


def find_schedule(engine, schedule_id: str) -> Optional[Dict[str, Any]]:
    return fetch_one(engine, "SELECT * FROM schedules WHERE id = :id", {"id": schedule_id})


def _owner_op(action: str, schedule_id: str, schedule: Optional[Dict[str, Any]]) -> Op:
    return Op(
        "schedule", action, target_id=schedule_id,
        target_owner_id=schedule["trainer_id"] if schedule else None,
        owner_resolved=schedule is not None,
    )


def _child_steps(schedule_id: str, days, group_ids) -> list:
    """Insert statements for day rows and group links."""
    steps = []
    for day in days or []:
        if not isinstance(day, dict):
            raise ValidationError("scheduleDays entries must be objects")
        require_fields(day, ("date", "startTime", "endTime"),
                       "Each schedule day needs date, startTime, and endTime")
        steps.append((INSERT_DAY, {
            "id": str(uuid.uuid4()), "schedule_id": schedule_id, "date": day["date"],
            "start_time": day["startTime"], "end_time": day["endTime"],
        }))
    for group_id in dict.fromkeys(group_ids or []):
        steps.append((INSERT_GROUP, {"schedule_id": schedule_id, "group_id": group_id}))
    return steps


def _optional_list(payload: Mapping[str, Any], key: str):
    value = payload.get(key)
    if value is None:
        return None
    return require_list(value, f"{key} must be an array")


# ── Reads ────────────────────────────────────────────────────────────

def list_schedules(engine, identity: Identity, course_id: str = None, trainer_id: str = None,
                   status: str = None, start_date: str = None, end_date: str = None) -> List[Dict[str, Any]]:
    """List schedules; learners only ever see the ones they are enrolled in."""
    decision = require(identity, Op("schedule", READ_LIST))

    filters = QueryFilter()
    filters.add_if(course_id, "s.course_id = :course_id", "course_id")
    filters.add_if(trainer_id, "s.trainer_id = :trainer_id", "trainer_id")
    filters.add_if(status, "s.status = :status", "status")
    filters.add_if(start_date, "s.start_date >= :start_date", "start_date")
    filters.add_if(end_date, "s.end_date <= :end_date", "end_date")
    filters.extend(decision.row_filter)
    where, params = filters.render()

    rows = fetch_all(engine, f"{SCHEDULE_SELECT}{where} ORDER BY s.start_date DESC", params)
    return [serialize_schedule(r) for r in rows]


def get_schedule(engine, identity: Identity, schedule_id: str) -> Dict[str, Any]:
    require(identity, Op("schedule", READ, target_id=schedule_id))
    schedule = fetch_one(engine, f"{SCHEDULE_SELECT} WHERE s.id = :id", {"id": schedule_id})
    if not schedule:
        raise NotFound("Schedule not found")

    params = {"id": schedule_id}
    days = fetch_all(
        engine,
        "SELECT date, start_time, end_time FROM schedule_days WHERE schedule_id = :id ORDER BY date",
        params,
    )
    groups = fetch_all(engine, "SELECT group_id FROM schedule_groups WHERE schedule_id = :id", params)
    enrollments = fetch_all(engine, """
        SELECT e.*, u.name AS learner_name, u.email AS learner_email, u.avatar AS learner_avatar
        FROM enrollments e
        JOIN users u ON e.learner_id = u.id
        WHERE e.schedule_id = :id
        ORDER BY e.enrolled_at
    """, params)

    return {
        **serialize_schedule(schedule),
        "scheduleDays": [serialize_row(d) for d in days],
        "groupIds": [g["group_id"] for g in groups],
        "enrollments": [serialize_row(e) for e in enrollments],
    }


# ── Writes ───────────────────────────────────────────────────────────

def create_schedule(engine, identity: Identity, payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Create the schedule row, its day rows and group links as one unit."""
    require(identity, Op("schedule", CREATE))
    require_fields(
        payload,
        ("courseId", "title", "type", "startDate", "endDate", "startTime", "endTime", "sessionMode"),
        "Required fields are missing",
    )
    require_choice(payload["type"], SCHEDULE_TYPES, "type")
    require_choice(payload["sessionMode"], SESSION_MODES, "sessionMode")
    max_learners = payload.get("maxLearners")
    if max_learners is None:
        max_learners = DEFAULT_MAX_LEARNERS
    require_non_negative_int(max_learners, "maxLearners")

    # Trainers always schedule themselves; admins may name the trainer.
    trainer_id = identity.id
    if authorize(identity, Op("schedule", "reassign_trainer")).allowed:
        trainer_id = payload.get("trainerId") or identity.id

    schedule_id = str(uuid.uuid4())
    days = _optional_list(payload, "scheduleDays")
    group_ids = _optional_list(payload, "groupIds")

    def insert_schedule(conn):
        course = conn.execute(
            text("SELECT id FROM courses WHERE id = :id"), {"id": payload["courseId"]}
        ).first()
        if not course:
            raise NotFound("Course not found")

        batch_number = payload.get("batchNumber")
        if batch_number is None and payload["type"] == "batch":
            last = conn.execute(
                text("SELECT MAX(batch_number) FROM schedules WHERE course_id = :id"),
                {"id": payload["courseId"]},
            ).scalar()
            batch_number = (last or 0) + 1

        conn.execute(text("""
            INSERT INTO schedules (id, course_id, title, schedule_type, start_date, end_date,
                                   start_time, end_time, trainer_id, location, max_learners, status,
                                   session_mode, zoom_link, zoom_meeting_id, batch_number, created_at)
            VALUES (:id, :course_id, :title, :schedule_type, :start_date, :end_date,
                    :start_time, :end_time, :trainer_id, :location, :max_learners, 'upcoming',
                    :session_mode, :zoom_link, :zoom_meeting_id, :batch_number, :created_at)
        """), {
            "id": schedule_id,
            "course_id": payload["courseId"],
            "title": payload["title"],
            "schedule_type": payload["type"],
            "start_date": payload["startDate"],
            "end_date": payload["endDate"],
            "start_time": payload["startTime"],
            "end_time": payload["endTime"],
            "trainer_id": trainer_id,
            "location": payload.get("location") or None,
            "max_learners": max_learners,
            "session_mode": payload["sessionMode"],
            "zoom_link": payload.get("zoomLink") or None,
            "zoom_meeting_id": payload.get("zoomMeetingId") or None,
            "batch_number": batch_number,
            "created_at": now(),
        })

    run_atomic(engine, [insert_schedule, *_child_steps(schedule_id, days, group_ids)])
    print(f"[schedules] Created schedule {schedule_id} for trainer {trainer_id}")
    return serialize_schedule(find_schedule(engine, schedule_id))


def update_schedule(engine, identity: Identity, schedule_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Patch a schedule. Day rows and group links are replaced only alongside a column change."""
    schedule = find_schedule(engine, schedule_id)
    require(identity, _owner_op(UPDATE, schedule_id, schedule))

    changes = change_set(payload, SCHEDULE_FIELDS)
    new_trainer = payload.get("trainerId")
    if new_trainer is not None and new_trainer != schedule["trainer_id"]:
        require(identity, Op("schedule", "reassign_trainer", target_id=schedule_id))
        changes["trainerId"] = new_trainer

    if changes.get("status") is not None:
        require_choice(changes["status"], SCHEDULE_STATUSES, "status")
    if changes.get("sessionMode") is not None:
        require_choice(changes["sessionMode"], SESSION_MODES, "sessionMode")
    if "maxLearners" in changes:
        require_non_negative_int(changes["maxLearners"], "maxLearners")

    replace_days = "scheduleDays" in payload
    replace_groups = "groupIds" in payload
    days = _optional_list(payload, "scheduleDays")
    group_ids = _optional_list(payload, "groupIds")

    plan = build_update(SCHEDULE_FIELDS + SCHEDULE_TRAINER_FIELD, changes)
    steps = [(plan.statement("schedules"), {**plan.params, "key": schedule_id})]

    params = {"id": schedule_id}
    if replace_days:
        steps.append(("DELETE FROM schedule_days WHERE schedule_id = :id", params))
        steps.extend(_child_steps(schedule_id, days, None))
    if replace_groups:
        steps.append(("DELETE FROM schedule_groups WHERE schedule_id = :id", params))
        steps.extend(_child_steps(schedule_id, None, group_ids))

    run_atomic(engine, steps)
    return serialize_schedule(find_schedule(engine, schedule_id))


def delete_schedule(engine, identity: Identity, schedule_id: str) -> None:
    schedule = find_schedule(engine, schedule_id)
    require(identity, _owner_op(DELETE, schedule_id, schedule))

    params = {"id": schedule_id}
    run_atomic(engine, [
        ("DELETE FROM attendance WHERE schedule_id = :id", params),
        ("DELETE FROM enrollments WHERE schedule_id = :id", params),
        ("DELETE FROM schedule_days WHERE schedule_id = :id", params),
        ("DELETE FROM schedule_groups WHERE schedule_id = :id", params),
        ("DELETE FROM schedules WHERE id = :id", params),
    ])
    print(f"[schedules] Deleted schedule {schedule_id}")
