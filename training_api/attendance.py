"""
Attendance tracking – one row per (schedule, learner, date).
"""

import uuid
from typing import Any, Dict, List, Mapping, Tuple

from sqlalchemy import text

from training_api.config import ATTENDANCE_STATUSES
from training_api.database import fetch_all, fetch_one, now, run_atomic
from training_api.errors import NotFound
from training_api.models import Identity, OperationDescriptor as Op, serialize_row
from training_api.policy import READ_LIST, require
from training_api.sql_builder import QueryFilter
from training_api.validation import require_choice, require_fields


def list_attendance(engine, identity: Identity, schedule_id: str, date: str = None) -> List[Dict[str, Any]]:
    decision = require(identity, Op("attendance", READ_LIST, target_id=schedule_id))

    filters = QueryFilter().add("a.schedule_id = :schedule_id", schedule_id=schedule_id)
    filters.add_if(date, "a.date = :date", "date")
    filters.extend(decision.row_filter)
    where, params = filters.render()

    rows = fetch_all(engine, f"""
        SELECT a.*, u.name AS learner_name
        FROM attendance a
        JOIN users u ON a.learner_id = u.id{where}
        ORDER BY a.date DESC, u.name
    """, params)
    return [serialize_row(r) for r in rows]


def mark_attendance(engine, identity: Identity, schedule_id: str,
                    payload: Mapping[str, Any]) -> Tuple[Dict[str, Any], bool]:
    """Create or update the learner's attendance for one date.

    Returns the row and whether it was newly created.
    """
    require(identity, Op("attendance", "mark", target_id=schedule_id))
    require_fields(payload, ("learnerId", "date", "status"),
                   "learnerId, date, and status are required")
    require_choice(payload["status"], ATTENDANCE_STATUSES, "status")

    key = {"schedule_id": schedule_id, "learner_id": payload["learnerId"], "date": payload["date"]}
    values = {
        "status": payload["status"],
        "notes": payload.get("notes") or None,
        "marked_by": identity.id,
        "marked_at": now(),
    }

    def upsert(conn):
        if not conn.execute(text("SELECT id FROM schedules WHERE id = :id"), {"id": schedule_id}).first():
            raise NotFound("Schedule not found")

        existing = conn.execute(text(
            "SELECT id FROM attendance "
            "WHERE schedule_id = :schedule_id AND learner_id = :learner_id AND date = :date"
        ), key).first()

        if existing:
            conn.execute(text("""
                UPDATE attendance
                SET status = :status, notes = :notes, marked_by = :marked_by, marked_at = :marked_at
                WHERE id = :id
            """), {**values, "id": existing[0]})
            return existing[0], False

        attendance_id = str(uuid.uuid4())
        conn.execute(text("""
            INSERT INTO attendance (id, schedule_id, learner_id, date, status, marked_by, marked_at, notes)
            VALUES (:id, :schedule_id, :learner_id, :date, :status, :marked_by, :marked_at, :notes)
        """), {**key, **values, "id": attendance_id})
        return attendance_id, True

    (attendance_id, created), = run_atomic(engine, [upsert])
    row = fetch_one(engine, "SELECT * FROM attendance WHERE id = :id", {"id": attendance_id})
    return serialize_row(row), created
