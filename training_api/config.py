"""
Centralised configuration constants and environment helpers.
"""

import os
import sys

from dotenv import load_dotenv

load_dotenv()

# ── Roles / enumerations ─────────────────────────────────────────────
ROLES = ("admin", "trainer", "learner")

COURSE_TYPES = {"in-class", "virtual", "elearning"}
CONTENT_TYPES = {"video", "document", "scorm", "quiz"}
SCHEDULE_TYPES = {"single", "multi-day", "batch"}
SCHEDULE_STATUSES = {"upcoming", "ongoing", "completed", "cancelled"}
SESSION_MODES = {"virtual", "face-to-face"}
ATTENDANCE_STATUSES = {"present", "absent", "late", "excused"}
FIELD_TYPES = {"text", "number", "date", "select", "multiselect", "textarea"}

# ── Business defaults ────────────────────────────────────────────────
DEFAULT_MAX_LEARNERS = 20
DEFAULT_VISIBLE_TO = list(ROLES)
PROFILE_FIELD_NAME_PATTERN = r"[a-zA-Z0-9_]+"

# ── API server ───────────────────────────────────────────────────────
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
TOKEN_EXPIRY_HOURS = int(os.getenv("TOKEN_EXPIRY_HOURS", "168"))
CORS_ORIGIN = os.getenv("CORS_ORIGIN", "*")
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "3001"))


def get_env(name: str) -> str:
    """Return an environment variable or exit with an error message."""
    value = os.getenv(name)
    if not value:
        print(f"ERROR: env var {name} is not set", file=sys.stderr)
        sys.exit(1)
    return value
