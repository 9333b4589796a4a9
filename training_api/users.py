"""
User accounts – credential store, profile management and account admin.
"""

import json
import uuid
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from training_api.config import ROLES
from training_api.database import execute, fetch_all, fetch_one, now, run_atomic
from training_api.errors import Conflict, NotFound, ReferentialConflict, Unauthenticated, ValidationError
from training_api.models import Identity, OperationDescriptor as Op, serialize_row
from training_api.passwords import hash_password, verify_password
from training_api.policy import CREATE, DELETE, READ, READ_LIST, UPDATE, authorize, require
from training_api.sql_builder import USER_FIELDS, QueryFilter, build_update, change_set, like
from training_api.validation import require_choice, require_fields

PUBLIC_COLUMNS = "id, email, name, role, avatar, profile_data, created_at, updated_at"


def serialize_user(row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    row = {k: v for k, v in row.items() if k != "password"}
    return serialize_row(row, json_columns=("profile_data",))


# ── Credential store ─────────────────────────────────────────────────

def find_by_email(engine, email: str) -> Optional[Dict[str, Any]]:
    """Full user row, password hash included."""
    return fetch_one(engine, "SELECT * FROM users WHERE email = :email", {"email": email})


def find_by_id(engine, user_id: str) -> Optional[Dict[str, Any]]:
    return fetch_one(
        engine, f"SELECT {PUBLIC_COLUMNS} FROM users WHERE id = :id", {"id": user_id}
    )


def insert_user(engine, email: str, password: str, name: str, role: str,
                avatar: Optional[str] = None) -> str:
    """Insert a user with a hashed password; duplicate email → Conflict."""
    user_id = str(uuid.uuid4())
    stamp = now()
    try:
        execute(engine, """
            INSERT INTO users (id, email, password, name, role, avatar, created_at, updated_at)
            VALUES (:id, :email, :password, :name, :role, :avatar, :created_at, :updated_at)
        """, {
            "id": user_id, "email": email, "password": hash_password(password),
            "name": name, "role": role, "avatar": avatar,
            "created_at": stamp, "updated_at": stamp,
        })
    except IntegrityError as e:
        raise Conflict("Email already exists") from e
    return user_id


def update_password(engine, user_id: str, new_password: str) -> None:
    execute(engine, "UPDATE users SET password = :password, updated_at = :updated_at WHERE id = :id", {
        "password": hash_password(new_password), "updated_at": now(), "id": user_id,
    })


# ── Authentication ───────────────────────────────────────────────────

def authenticate(engine, email: str, password: str) -> Dict[str, Any]:
    """Return the public user record for valid credentials."""
    require_fields({"email": email, "password": password}, ("email", "password"),
                   "Email and password are required")

    user = find_by_email(engine, email)
    if not user or not verify_password(password, user["password"]):
        raise Unauthenticated("Invalid credentials")
    return serialize_user(user)


def _create(engine, payload: Mapping[str, Any], message: str) -> Dict[str, Any]:
    require_fields(payload, ("email", "password", "name", "role"), message)
    require_choice(payload["role"], ROLES, "role")
    user_id = insert_user(
        engine, payload["email"], payload["password"], payload["name"],
        payload["role"], payload.get("avatar") or None,
    )
    return serialize_user(find_by_id(engine, user_id))


def register_user(engine, identity: Identity, payload: Mapping[str, Any]) -> Dict[str, Any]:
    require(identity, Op("auth", "register"))
    return _create(engine, payload, "All fields are required")


def get_me(engine, identity: Identity) -> Dict[str, Any]:
    require(identity, Op("auth", "read_self"))
    user = find_by_id(engine, identity.id)
    if not user:
        raise NotFound("User not found")
    return serialize_user(user)


def change_password(engine, identity: Identity, current_password: str, new_password: str) -> None:
    require(identity, Op("auth", "change_password"))
    require_fields(
        {"currentPassword": current_password, "newPassword": new_password},
        ("currentPassword", "newPassword"),
        "Current password and new password are required",
    )

    user = fetch_one(engine, "SELECT * FROM users WHERE id = :id", {"id": identity.id})
    if not user:
        raise NotFound("User not found")
    if not verify_password(current_password, user["password"]):
        raise Unauthenticated("Current password is incorrect")

    update_password(engine, identity.id, new_password)
    print(f"[auth] Password changed for user {identity.id}")


# ── User administration ──────────────────────────────────────────────

def list_users(engine, identity: Identity, role: str = None, search: str = None) -> List[Dict[str, Any]]:
    decision = require(identity, Op("user", READ_LIST))

    filters = QueryFilter()
    filters.add_if(role, "role = :role", "role")
    if search:
        filters.add("(name LIKE :search OR email LIKE :search)", search=like(search))
    filters.extend(decision.row_filter)
    where, params = filters.render()

    rows = fetch_all(
        engine, f"SELECT {PUBLIC_COLUMNS} FROM users{where} ORDER BY created_at DESC", params
    )
    return [serialize_user(r) for r in rows]


def get_user(engine, identity: Identity, user_id: str) -> Dict[str, Any]:
    require(identity, Op("user", READ, target_id=user_id, target_owner_id=user_id))
    user = find_by_id(engine, user_id)
    if not user:
        raise NotFound("User not found")
    return serialize_user(user)


def create_user(engine, identity: Identity, payload: Mapping[str, Any]) -> Dict[str, Any]:
    require(identity, Op("user", CREATE))
    return _create(engine, payload, "Email, password, name, and role are required")


def update_user(engine, identity: Identity, user_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
    require(identity, Op("user", UPDATE, target_id=user_id, target_owner_id=user_id))
    if not find_by_id(engine, user_id):
        raise NotFound("User not found")

    changes = change_set(payload, USER_FIELDS)
    if "email" in changes and not authorize(identity, Op("user", "update_email")).allowed:
        del changes["email"]
    for key in ("name", "email"):
        if key in changes and not changes[key]:
            raise ValidationError(f"{key} cannot be empty")

    plan = build_update(USER_FIELDS, changes)
    sql = plan.statement("users", extra=["updated_at = :updated_at"])
    try:
        execute(engine, sql, {**plan.params, "updated_at": now(), "key": user_id})
    except IntegrityError as e:
        raise Conflict("Email already exists") from e

    return serialize_user(find_by_id(engine, user_id))


def delete_user(engine, identity: Identity, user_id: str) -> None:
    require(identity, Op("user", DELETE, target_id=user_id))
    if not find_by_id(engine, user_id):
        raise NotFound("User not found")
    try:
        execute(engine, "DELETE FROM users WHERE id = :id", {"id": user_id})
    except IntegrityError as e:
        raise ReferentialConflict("Cannot delete user with assigned courses or schedules") from e


def set_profile_value(engine, identity: Identity, user_id: str, field_id: str, value: Any) -> None:
    """Set one custom profile value, leaving the others untouched."""
    require(identity, Op("user", UPDATE, target_id=user_id, target_owner_id=user_id))
    require_fields({"fieldId": field_id}, ("fieldId",), "fieldId is required")

    def merge(conn):
        row = conn.execute(
            text("SELECT profile_data FROM users WHERE id = :id"), {"id": user_id}
        ).mappings().first()
        if not row:
            raise NotFound("User not found")
        profile = json.loads(row["profile_data"]) if row["profile_data"] else {}
        profile[field_id] = value
        conn.execute(
            text("UPDATE users SET profile_data = :data, updated_at = :updated_at WHERE id = :id"),
            {"data": json.dumps(profile, sort_keys=True), "updated_at": now(), "id": user_id},
        )

    run_atomic(engine, [merge])


def list_by_role(engine, identity: Identity, role: str) -> List[Dict[str, Any]]:
    action = "list_trainers" if role == "trainer" else "list_learners"
    require(identity, Op("user", action))
    rows = fetch_all(
        engine, "SELECT id, email, name, avatar FROM users WHERE role = :role ORDER BY name",
        {"role": role},
    )
    return [serialize_row(r) for r in rows]
