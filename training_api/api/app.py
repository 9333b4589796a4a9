"""
Flask application factory and server entry-point.
"""

import os
import sys
import traceback

from flask import Flask
from flask_cors import CORS

from training_api.config import API_HOST, API_PORT, CORS_ORIGIN, TOKEN_EXPIRY_HOURS
from training_api.database import init_engine
from training_api.schema import create_schema
from training_api.api.routes import register_routes


def create_app(engine=None):
    """Build and return a fully configured Flask application."""
    app = Flask(__name__)
    app.json.sort_keys = False
    CORS(app, origins=CORS_ORIGIN, supports_credentials=True)

    # ── Initialise shared resources ──────────────────────────────────
    if engine is None:
        try:
            print("[init] Initializing database connection...")
            engine = init_engine()

            print("[init] Ensuring schema...")
            create_schema(engine)

            print("[init] ✓ API server ready")
        except Exception as e:
            print(f"[FATAL] Failed to initialize: {e}", file=sys.stderr)
            traceback.print_exc()
            sys.exit(1)

    # ── Register routes ──────────────────────────────────────────────
    register_routes(app, engine)
    app.extensions["engine"] = engine

    return app


def main():
    """Run the development server."""
    print("=" * 60)
    print("Training Management System – REST API Server")
    print("=" * 60)

    app = create_app()

    debug = os.getenv("FLASK_ENV") == "development"

    print(f"\n[server] Starting Flask API on {API_HOST}:{API_PORT}")
    print(f"[server] Debug mode: {debug}")
    print(f"[server] CORS origin: {CORS_ORIGIN}")
    print(f"[server] Token expiry: {TOKEN_EXPIRY_HOURS} hours")
    print("\nAPI Endpoints:")
    print(f"  - POST http://{API_HOST}:{API_PORT}/api/auth/login")
    print(f"  - GET  http://{API_HOST}:{API_PORT}/api/users")
    print(f"  - GET  http://{API_HOST}:{API_PORT}/api/courses")
    print(f"  - GET  http://{API_HOST}:{API_PORT}/api/schedules")
    print(f"  - GET  http://{API_HOST}:{API_PORT}/api/profile-fields")
    print(f"  - GET  http://{API_HOST}:{API_PORT}/health")
    print("\n" + "=" * 60)

    app.run(host=API_HOST, port=API_PORT, debug=debug, threaded=True)


if __name__ == "__main__":
    main()
