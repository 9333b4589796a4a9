"""
Access policy engine – who may read, create, modify, or delete what.

The rule table is declared once as plain tuples and frozen into a read-only
lookup at import time. Route handlers and services never compare role
strings themselves; they describe the operation and call `authorize` (or
`require`, which raises the mapped ApiError on deny).
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

from training_api.config import ROLES
from training_api.errors import DenyReason, error_for_reason
from training_api.models import Decision, Identity, OperationDescriptor, RowFilter

# ── Actions ──────────────────────────────────────────────────────────
READ = "read"
READ_LIST = "read_list"
CREATE = "create"
UPDATE = "update"
DELETE = "delete"

# ── Decision modes ───────────────────────────────────────────────────
ALLOW = "allow"
ALLOW_IF_OWNER = "allow_if_owner"
ALLOW_IF_NOT_SELF = "allow_if_not_self"
DENY = "deny"

MODES = {ALLOW, ALLOW_IF_OWNER, ALLOW_IF_NOT_SELF, DENY}

ANYONE = ROLES
STAFF = ("admin", "trainer")
ADMIN = ("admin",)
LEARNER = ("learner",)

# Row filters bind the caller id as :rf_caller_id.
LEARNER_OWN_SCHEDULES = (
    "s.id IN (SELECT schedule_id FROM enrollments WHERE learner_id = :rf_caller_id)"
)
LEARNER_OWN_ATTENDANCE = "a.learner_id = :rf_caller_id"


@dataclass(frozen=True)
class Grant:
    mode: str
    row_filter: Optional[str] = None
    deny_message: Optional[str] = None


# (resource, action, roles, mode[, row_filter[, deny_message]])
POLICY_RULES = (
    # auth
    ("auth", "register", ADMIN, ALLOW, None, "Admin access required"),
    ("auth", "read_self", ANYONE, ALLOW),
    ("auth", "change_password", ANYONE, ALLOW),

    # users
    ("user", READ_LIST, STAFF, ALLOW),
    ("user", READ, STAFF, ALLOW),
    ("user", READ, LEARNER, ALLOW_IF_OWNER),
    ("user", CREATE, ADMIN, ALLOW),
    ("user", UPDATE, ADMIN, ALLOW),
    ("user", UPDATE, ("trainer", "learner"), ALLOW_IF_OWNER),
    ("user", "update_email", ADMIN, ALLOW),
    ("user", DELETE, ADMIN, ALLOW_IF_NOT_SELF, None, "Cannot delete your own account"),
    ("user", "list_trainers", ANYONE, ALLOW),
    ("user", "list_learners", STAFF, ALLOW),

    # courses
    ("course", READ_LIST, ANYONE, ALLOW),
    ("course", READ, ANYONE, ALLOW),
    ("course", CREATE, ADMIN, ALLOW),
    ("course", UPDATE, ADMIN, ALLOW),
    ("course", DELETE, ADMIN, ALLOW),
    ("course", "publish", ADMIN, ALLOW),
    ("course", "archive", ADMIN, ALLOW),
    ("course", "list_categories", ANYONE, ALLOW),

    # course modules
    ("module", READ_LIST, ANYONE, ALLOW),
    ("module", CREATE, ADMIN, ALLOW),
    ("module", UPDATE, ADMIN, ALLOW),
    ("module", DELETE, ADMIN, ALLOW),
    ("module", "reorder", ADMIN, ALLOW),

    # schedules
    ("schedule", READ_LIST, STAFF, ALLOW),
    ("schedule", READ_LIST, LEARNER, ALLOW, LEARNER_OWN_SCHEDULES),
    ("schedule", READ, ANYONE, ALLOW),
    ("schedule", CREATE, STAFF, ALLOW),
    ("schedule", UPDATE, STAFF, ALLOW_IF_OWNER, None, "Can only update your own schedules"),
    ("schedule", DELETE, STAFF, ALLOW_IF_OWNER, None, "Can only delete your own schedules"),
    ("schedule", "reassign_trainer", ADMIN, ALLOW, None,
     "Only admins can reassign a schedule's trainer"),

    # enrollments
    ("enrollment", "enroll", STAFF, ALLOW),
    ("enrollment", "unenroll", STAFF, ALLOW),

    # attendance
    ("attendance", READ_LIST, STAFF, ALLOW),
    ("attendance", READ_LIST, LEARNER, ALLOW, LEARNER_OWN_ATTENDANCE),
    ("attendance", "mark", STAFF, ALLOW),

    # custom profile fields
    ("profile_field", READ_LIST, ANYONE, ALLOW),
    ("profile_field", READ, ANYONE, ALLOW),
    ("profile_field", CREATE, ADMIN, ALLOW),
    ("profile_field", UPDATE, ADMIN, ALLOW),
    ("profile_field", DELETE, ADMIN, ALLOW),
    ("profile_field", "reorder", ADMIN, ALLOW),
)

NOT_FOUND_MESSAGES = {
    "user": "User not found",
    "course": "Course not found",
    "module": "Module not found",
    "schedule": "Schedule not found",
    "enrollment": "Enrollment not found",
    "profile_field": "Profile field not found",
}

PolicyTable = Mapping[Tuple[str, str], Mapping[str, Grant]]


def build_policy_table(rules: Iterable[tuple]) -> PolicyTable:
    """Freeze declarative rule tuples into a read-only lookup structure."""
    table = {}
    for rule in rules:
        resource, action, roles, mode = rule[:4]
        row_filter = rule[4] if len(rule) > 4 else None
        deny_message = rule[5] if len(rule) > 5 else None

        if mode not in MODES:
            raise ValueError(f"Unknown policy mode '{mode}' for {resource}.{action}")

        grants = table.setdefault((resource, action), {})
        for role in roles:
            if role not in ROLES:
                raise ValueError(f"Unknown role '{role}' in rule for {resource}.{action}")
            if role in grants:
                raise ValueError(f"Duplicate rule for {resource}.{action} and role '{role}'")
            grants[role] = Grant(mode=mode, row_filter=row_filter, deny_message=deny_message)

    return MappingProxyType({key: MappingProxyType(grants) for key, grants in table.items()})


POLICY_TABLE = build_policy_table(POLICY_RULES)


def _deny(reason: DenyReason, message: Optional[str] = None) -> Decision:
    return Decision(allowed=False, reason=reason, message=message)


def authorize(identity: Optional[Identity], op: OperationDescriptor,
              table: PolicyTable = POLICY_TABLE) -> Decision:
    """Decide whether *identity* may perform *op*.

    Unknown (resource, action) pairs and roles without a grant are denied.
    Ownership is checked only once the target's owner is resolved; admins
    pass every ownership check. List reads carry the grant's row filter,
    which callers AND with their own filters.
    """
    if identity is None:
        return _deny(DenyReason.UNAUTHENTICATED)

    grants = table.get((op.resource, op.action))
    if grants is None:
        return _deny(DenyReason.NOT_AUTHORIZED)

    grant = grants.get(identity.role)
    if grant is None:
        deny_messages = {g.deny_message for g in grants.values() if g.mode == ALLOW}
        message = deny_messages.pop() if len(deny_messages) == 1 else None
        return _deny(DenyReason.NOT_AUTHORIZED, message)

    if grant.mode == DENY:
        return _deny(DenyReason.NOT_AUTHORIZED, grant.deny_message)

    if grant.mode == ALLOW_IF_OWNER:
        if not op.owner_resolved:
            return _deny(DenyReason.NOT_FOUND, NOT_FOUND_MESSAGES.get(op.resource))
        if not identity.is_admin and op.target_owner_id != identity.id:
            return _deny(DenyReason.NOT_AUTHORIZED, grant.deny_message)

    if grant.mode == ALLOW_IF_NOT_SELF and op.target_id == identity.id:
        return _deny(DenyReason.NOT_AUTHORIZED, grant.deny_message)

    row_filter = None
    if op.action == READ_LIST and grant.row_filter:
        row_filter = RowFilter(grant.row_filter, {"rf_caller_id": identity.id})

    return Decision(allowed=True, row_filter=row_filter)


def require(identity: Optional[Identity], op: OperationDescriptor,
            table: PolicyTable = POLICY_TABLE) -> Decision:
    """Like `authorize`, but raise the mapped ApiError when denied."""
    decision = authorize(identity, op, table)
    if not decision.allowed:
        raise error_for_reason(decision.reason, decision.message)
    return decision
