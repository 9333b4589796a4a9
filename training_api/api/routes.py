"""
Flask route handlers for the REST API – service info, health, auth, and the
single error boundary. Resource routes live in their own modules.
"""

import sys
import traceback
from datetime import datetime, timezone

from flask import jsonify, request
from sqlalchemy import text as sa_text
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from training_api import users
from training_api.api.auth import current_identity, generate_token, token_required
from training_api.api.course_routes import register_course_routes
from training_api.api.profile_field_routes import register_profile_field_routes
from training_api.api.responses import created, fail, json_body, ok
from training_api.api.schedule_routes import register_schedule_routes
from training_api.api.user_routes import register_user_routes
from training_api.errors import ApiError


def register_routes(app, engine):
    """Register all API routes on the Flask *app*."""

    # ── Health / info ────────────────────────────────────────────────

    @app.route("/", methods=["GET"])
    def index():
        return jsonify({
            "service": "Training Management API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "auth": "/api/auth/login",
                "users": "/api/users",
                "courses": "/api/courses",
                "schedules": "/api/schedules",
                "profileFields": "/api/profile-fields",
                "health": "/health",
            },
        })

    @app.route("/health", methods=["GET"])
    def health():
        checks = {"database": False}
        try:
            with engine.connect() as conn:
                conn.execute(sa_text("SELECT 1"))
            checks["database"] = True
        except Exception as e:
            print(f"[WARN] Health check failed: {e}", file=sys.stderr)

        healthy = all(checks.values())
        return jsonify({
            "success": healthy,
            "status": "healthy" if healthy else "unhealthy",
            "checks": checks,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }), 200 if healthy else 503

    # ── Auth ─────────────────────────────────────────────────────────

    @app.route("/api/auth/login", methods=["POST"])
    def login():
        data = json_body()
        user = users.authenticate(engine, data.get("email"), data.get("password"))
        token = generate_token(user["id"], user["email"], user["role"])
        print(f"[auth] Login: {user['email']} (role={user['role']})")
        return ok({"user": user, "token": token})

    @app.route("/api/auth/register", methods=["POST"])
    @token_required
    def register():
        user = users.register_user(engine, current_identity(), json_body())
        return created(user, "User created successfully")

    @app.route("/api/auth/me", methods=["GET"])
    @token_required
    def me():
        return ok(users.get_me(engine, current_identity()))

    @app.route("/api/auth/change-password", methods=["POST"])
    @token_required
    def change_password():
        data = json_body()
        users.change_password(
            engine, current_identity(), data.get("currentPassword"), data.get("newPassword")
        )
        return ok(message="Password changed successfully")

    # ── Resources ────────────────────────────────────────────────────

    register_user_routes(app, engine)
    register_course_routes(app, engine)
    register_schedule_routes(app, engine)
    register_profile_field_routes(app, engine)

    register_error_handlers(app)


def register_error_handlers(app):
    """Map every failure to the response envelope; internals stay in the log."""

    @app.errorhandler(ApiError)
    def api_error(e):
        return fail(e.message, e.status_code)

    @app.errorhandler(IntegrityError)
    def integrity_error(e):
        detail = str(e.orig).lower()
        print(f"[ERROR] Integrity error on {request.method} {request.path}: {e.orig}", file=sys.stderr)
        if "foreign key" in detail:
            return fail("Referenced record does not exist", 400)
        if "unique" in detail or "duplicate" in detail:
            return fail("A record with this value already exists", 409)
        return fail("Request conflicts with stored data", 400)

    @app.errorhandler(404)
    def not_found(e):
        return fail("Resource not found", 404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return fail("Method not allowed", 405)

    @app.errorhandler(HTTPException)
    def http_error(e):
        return fail(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def internal_error(e):
        print(f"[ERROR] Unhandled error on {request.method} {request.path}: {e}", file=sys.stderr)
        traceback.print_exception(type(e), e, e.__traceback__)
        return fail("Internal server error", 500)
