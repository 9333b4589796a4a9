"""
Schedule, enrollment and attendance routes.
"""

from training_api import attendance, enrollments, schedules
from training_api.api.auth import current_identity, token_required
from training_api.api.responses import created, json_body, ok, query_arg


def register_schedule_routes(app, engine):

    # ── Schedules ────────────────────────────────────────────────────

    @app.route("/api/schedules", methods=["GET"])
    @token_required
    def list_schedules():
        return ok(schedules.list_schedules(
            engine, current_identity(),
            course_id=query_arg("courseId"),
            trainer_id=query_arg("trainerId"),
            status=query_arg("status"),
            start_date=query_arg("startDate"),
            end_date=query_arg("endDate"),
        ))

    @app.route("/api/schedules/<schedule_id>", methods=["GET"])
    @token_required
    def get_schedule(schedule_id):
        return ok(schedules.get_schedule(engine, current_identity(), schedule_id))

    @app.route("/api/schedules", methods=["POST"])
    @token_required
    def create_schedule():
        return created(schedules.create_schedule(engine, current_identity(), json_body()),
                       "Schedule created successfully")

    @app.route("/api/schedules/<schedule_id>", methods=["PUT"])
    @token_required
    def update_schedule(schedule_id):
        schedule = schedules.update_schedule(engine, current_identity(), schedule_id, json_body())
        return ok(schedule, "Schedule updated successfully")

    @app.route("/api/schedules/<schedule_id>", methods=["DELETE"])
    @token_required
    def delete_schedule(schedule_id):
        schedules.delete_schedule(engine, current_identity(), schedule_id)
        return ok(message="Schedule deleted successfully")

    # ── Enrollments ──────────────────────────────────────────────────

    @app.route("/api/schedules/<schedule_id>/enroll", methods=["POST"])
    @token_required
    def enroll(schedule_id):
        enrollment = enrollments.enroll(
            engine, current_identity(), schedule_id, json_body().get("learnerId")
        )
        return created(enrollment, "Learner enrolled successfully")

    @app.route("/api/schedules/<schedule_id>/enroll/<enrollment_id>", methods=["DELETE"])
    @token_required
    def unenroll(schedule_id, enrollment_id):
        enrollments.unenroll(engine, current_identity(), schedule_id, enrollment_id)
        return ok(message="Learner unenrolled successfully")

    # ── Attendance ───────────────────────────────────────────────────

    @app.route("/api/schedules/<schedule_id>/attendance", methods=["GET"])
    @token_required
    def list_attendance(schedule_id):
        return ok(attendance.list_attendance(
            engine, current_identity(), schedule_id, date=query_arg("date"),
        ))

    @app.route("/api/schedules/<schedule_id>/attendance", methods=["POST"])
    @token_required
    def mark_attendance(schedule_id):
        row, is_new = attendance.mark_attendance(engine, current_identity(), schedule_id, json_body())
        if is_new:
            return created(row, "Attendance marked successfully")
        return ok(row, "Attendance updated successfully")
