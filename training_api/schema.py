"""
Relational schema for the training store.
"""

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Integer, MetaData, String, Table, Text,
    UniqueConstraint,
)

metadata = MetaData()

users = Table(
    "users", metadata,
    Column("id", String(36), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password", String(255), nullable=False),
    Column("name", String(255), nullable=False),
    Column("role", String(20), nullable=False),
    Column("avatar", String(500)),
    Column("profile_data", Text),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
)

courses = Table(
    "courses", metadata,
    Column("id", String(36), primary_key=True),
    Column("title", String(255), nullable=False),
    Column("description", Text, nullable=False),
    Column("duration", Integer, nullable=False),
    Column("category", String(100), nullable=False),
    Column("course_type", String(20), nullable=False),
    Column("status", String(20)),
    Column("zoom_meeting_id", String(100)),
    Column("zoom_link", String(500)),
    Column("created_by", String(36), ForeignKey("users.id")),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
)

course_modules = Table(
    "course_modules", metadata,
    Column("id", String(36), primary_key=True),
    Column("course_id", String(36), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
    Column("title", String(255), nullable=False),
    Column("description", Text),
    Column("content_type", String(20), nullable=False),
    Column("content_url", String(500)),
    Column("scorm_version", String(10)),
    Column("duration", Integer, nullable=False),
    Column("sort_order", Integer, nullable=False, default=0),
    Column("is_required", Boolean, nullable=False, default=False),
    Column("created_at", DateTime, nullable=False),
)

schedules = Table(
    "schedules", metadata,
    Column("id", String(36), primary_key=True),
    Column("course_id", String(36), ForeignKey("courses.id"), nullable=False),
    Column("title", String(255), nullable=False),
    Column("schedule_type", String(20), nullable=False),
    Column("start_date", String(10), nullable=False),
    Column("end_date", String(10), nullable=False),
    Column("start_time", String(8), nullable=False),
    Column("end_time", String(8), nullable=False),
    Column("trainer_id", String(36), ForeignKey("users.id"), nullable=False),
    Column("location", String(255)),
    Column("max_learners", Integer, nullable=False, default=20),
    Column("status", String(20), nullable=False, default="upcoming"),
    Column("session_mode", String(20), nullable=False),
    Column("zoom_link", String(500)),
    Column("zoom_meeting_id", String(100)),
    Column("batch_number", Integer),
    Column("created_at", DateTime, nullable=False),
)

schedule_days = Table(
    "schedule_days", metadata,
    Column("id", String(36), primary_key=True),
    Column("schedule_id", String(36), ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False),
    Column("date", String(10), nullable=False),
    Column("start_time", String(8), nullable=False),
    Column("end_time", String(8), nullable=False),
)

schedule_groups = Table(
    "schedule_groups", metadata,
    Column("schedule_id", String(36), ForeignKey("schedules.id", ondelete="CASCADE"), primary_key=True),
    Column("group_id", String(36), primary_key=True),
)

enrollments = Table(
    "enrollments", metadata,
    Column("id", String(36), primary_key=True),
    Column("schedule_id", String(36), ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False),
    Column("learner_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("enrolled_at", DateTime, nullable=False),
    Column("status", String(20), nullable=False, default="active"),
    UniqueConstraint("schedule_id", "learner_id", name="uq_enrollment_learner"),
)

attendance = Table(
    "attendance", metadata,
    Column("id", String(36), primary_key=True),
    Column("schedule_id", String(36), ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False),
    Column("learner_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("date", String(10), nullable=False),
    Column("status", String(20), nullable=False),
    Column("marked_by", String(36), ForeignKey("users.id")),
    Column("marked_at", DateTime, nullable=False),
    Column("notes", Text),
    UniqueConstraint("schedule_id", "learner_id", "date", name="uq_attendance_day"),
)

custom_profile_fields = Table(
    "custom_profile_fields", metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(100), nullable=False, unique=True),
    Column("label", String(255), nullable=False),
    Column("field_type", String(20), nullable=False),
    Column("options", Text),
    Column("is_required", Boolean, nullable=False, default=False),
    Column("sort_order", Integer, nullable=False, default=0),
    Column("visible_to", Text, nullable=False),
    Column("created_at", DateTime, nullable=False),
)


def create_schema(engine) -> None:
    """Create any missing tables."""
    metadata.create_all(engine)
