"""
Course and course-module routes.
"""

from training_api import courses, modules
from training_api.api.auth import current_identity, token_required
from training_api.api.responses import created, json_body, ok, query_arg


def register_course_routes(app, engine):

    # ── Courses ──────────────────────────────────────────────────────

    @app.route("/api/courses", methods=["GET"])
    @token_required
    def list_courses():
        return ok(courses.list_courses(
            engine, current_identity(),
            course_type=query_arg("courseType"),
            status=query_arg("status"),
            search=query_arg("search"),
        ))

    @app.route("/api/courses/categories/list", methods=["GET"])
    @token_required
    def list_categories():
        return ok(courses.list_categories(engine, current_identity()))

    @app.route("/api/courses/<course_id>", methods=["GET"])
    @token_required
    def get_course(course_id):
        return ok(courses.get_course(engine, current_identity(), course_id))

    @app.route("/api/courses", methods=["POST"])
    @token_required
    def create_course():
        return created(courses.create_course(engine, current_identity(), json_body()),
                       "Course created successfully")

    @app.route("/api/courses/<course_id>", methods=["PUT"])
    @token_required
    def update_course(course_id):
        course = courses.update_course(engine, current_identity(), course_id, json_body())
        return ok(course, "Course updated successfully")

    @app.route("/api/courses/<course_id>", methods=["DELETE"])
    @token_required
    def delete_course(course_id):
        courses.delete_course(engine, current_identity(), course_id)
        return ok(message="Course deleted successfully")

    @app.route("/api/courses/<course_id>/publish", methods=["POST"])
    @token_required
    def publish_course(course_id):
        return ok(courses.publish_course(engine, current_identity(), course_id),
                  "Course published successfully")

    @app.route("/api/courses/<course_id>/archive", methods=["POST"])
    @token_required
    def archive_course(course_id):
        return ok(courses.archive_course(engine, current_identity(), course_id),
                  "Course archived successfully")

    # ── Modules ──────────────────────────────────────────────────────

    @app.route("/api/courses/<course_id>/modules", methods=["GET"])
    @token_required
    def list_modules(course_id):
        return ok(modules.list_modules(engine, current_identity(), course_id))

    @app.route("/api/courses/<course_id>/modules", methods=["POST"])
    @token_required
    def add_module(course_id):
        return created(modules.add_module(engine, current_identity(), course_id, json_body()),
                       "Module added successfully")

    @app.route("/api/courses/<course_id>/modules/reorder", methods=["POST"])
    @token_required
    def reorder_modules(course_id):
        modules.reorder_modules(engine, current_identity(), course_id, json_body().get("moduleIds"))
        return ok(message="Modules reordered successfully")

    @app.route("/api/courses/<course_id>/modules/<module_id>", methods=["PUT"])
    @token_required
    def update_module(course_id, module_id):
        module = modules.update_module(engine, current_identity(), course_id, module_id, json_body())
        return ok(module, "Module updated successfully")

    @app.route("/api/courses/<course_id>/modules/<module_id>", methods=["DELETE"])
    @token_required
    def delete_module(course_id, module_id):
        modules.delete_module(engine, current_identity(), course_id, module_id)
        return ok(message="Module deleted successfully")
