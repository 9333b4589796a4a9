"""
Enrolling learners into schedules, bounded by each schedule's capacity.
"""

import uuid
from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from training_api.database import execute, fetch_one, for_update, now, run_atomic
from training_api.errors import CapacityExceeded, Conflict, NotFound
from training_api.models import Identity, OperationDescriptor as Op, serialize_row
from training_api.policy import require
from training_api.validation import require_fields

ALREADY_ENROLLED = "Learner is already enrolled in this schedule"


def enroll(engine, identity: Identity, schedule_id: str, learner_id: str) -> Dict[str, Any]:
    """Enroll a learner unless they already are or the schedule is full.

    The capacity check and the insert share one transaction, with the
    schedule row locked where the dialect supports it.
    """
    require(identity, Op("enrollment", "enroll", target_id=schedule_id))
    require_fields({"learnerId": learner_id}, ("learnerId",), "learnerId is required")

    enrollment_id = str(uuid.uuid4())

    def check_and_insert(conn):
        schedule = conn.execute(
            text("SELECT id, max_learners FROM schedules WHERE id = :id" + for_update(conn)),
            {"id": schedule_id},
        ).mappings().first()
        if not schedule:
            raise NotFound("Schedule not found")

        learner = conn.execute(
            text("SELECT id FROM users WHERE id = :id AND role = 'learner'"), {"id": learner_id}
        ).first()
        if not learner:
            raise NotFound("Learner not found")

        params = {"schedule_id": schedule_id, "learner_id": learner_id}
        existing = conn.execute(text(
            "SELECT id FROM enrollments WHERE schedule_id = :schedule_id AND learner_id = :learner_id"
        ), params).first()
        if existing:
            raise Conflict(ALREADY_ENROLLED)

        active = conn.execute(text(
            "SELECT COUNT(*) FROM enrollments WHERE schedule_id = :schedule_id AND status = 'active'"
        ), params).scalar()
        if active >= schedule["max_learners"]:
            raise CapacityExceeded("Schedule is full")

        conn.execute(text("""
            INSERT INTO enrollments (id, schedule_id, learner_id, enrolled_at, status)
            VALUES (:id, :schedule_id, :learner_id, :enrolled_at, 'active')
        """), {**params, "id": enrollment_id, "enrolled_at": now()})

    try:
        run_atomic(engine, [check_and_insert])
    except IntegrityError as e:
        # Lost a race against a concurrent enrollment of the same learner.
        raise Conflict(ALREADY_ENROLLED) from e

    print(f"[enrollments] Learner {learner_id} enrolled in schedule {schedule_id}")
    row = fetch_one(engine, """
        SELECT e.*, u.name AS learner_name, u.email AS learner_email
        FROM enrollments e
        JOIN users u ON e.learner_id = u.id
        WHERE e.id = :id
    """, {"id": enrollment_id})
    return serialize_row(row)


def unenroll(engine, identity: Identity, schedule_id: str, enrollment_id: str) -> None:
    require(identity, Op("enrollment", "unenroll", target_id=enrollment_id))
    params = {"id": enrollment_id, "schedule_id": schedule_id}
    existing = fetch_one(
        engine, "SELECT id FROM enrollments WHERE id = :id AND schedule_id = :schedule_id", params
    )
    if not existing:
        raise NotFound("Enrollment not found")
    execute(engine, "DELETE FROM enrollments WHERE id = :id AND schedule_id = :schedule_id", params)
