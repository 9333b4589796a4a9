"""
Unit tests for the access policy engine – rule table building and decisions.
"""

import pytest

from training_api.errors import DenyReason, NotAuthorized, NotFound, Unauthenticated
from training_api.models import Identity, OperationDescriptor as Op
from training_api.policy import (
    ALLOW, ALLOW_IF_OWNER, DENY, LEARNER_OWN_SCHEDULES, POLICY_TABLE, READ, READ_LIST, UPDATE,
    authorize, build_policy_table, require,
)

ADMIN = Identity(id="u-admin", role="admin")
TRAINER = Identity(id="u-trainer", role="trainer")
LEARNER = Identity(id="u-learner", role="learner")


# ── Tests: build_policy_table ────────────────────────────────────────

def test_build_policy_table_rejects_unknown_mode():
    with pytest.raises(ValueError, match="Unknown policy mode"):
        build_policy_table([("course", READ, ("admin",), "maybe")])


def test_build_policy_table_rejects_unknown_role():
    with pytest.raises(ValueError, match="Unknown role"):
        build_policy_table([("course", READ, ("nurse",), ALLOW)])


def test_build_policy_table_rejects_duplicate_role():
    with pytest.raises(ValueError, match="Duplicate rule"):
        build_policy_table([
            ("course", READ, ("admin",), ALLOW),
            ("course", READ, ("admin", "trainer"), ALLOW),
        ])


def test_policy_table_is_read_only():
    with pytest.raises(TypeError):
        POLICY_TABLE[("course", "drop_all")] = {}
    with pytest.raises(TypeError):
        POLICY_TABLE[("course", READ)]["learner"] = None


# ── Tests: authorize ─────────────────────────────────────────────────

def test_missing_identity_is_unauthenticated():
    decision = authorize(None, Op("course", READ))
    assert not decision.allowed
    assert decision.reason == DenyReason.UNAUTHENTICATED


def test_unknown_operation_is_denied_even_for_admin():
    decision = authorize(ADMIN, Op("course", "export"))
    assert not decision.allowed
    assert decision.reason == DenyReason.NOT_AUTHORIZED


def test_role_without_grant_is_denied():
    decision = authorize(LEARNER, Op("course", "create"))
    assert decision.reason == DenyReason.NOT_AUTHORIZED


def test_learner_reads_own_user_record_only():
    own = authorize(LEARNER, Op("user", READ, target_id=LEARNER.id, target_owner_id=LEARNER.id))
    other = authorize(LEARNER, Op("user", READ, target_id="x", target_owner_id="x"))
    assert own.allowed
    assert not other.allowed
    assert other.reason == DenyReason.NOT_AUTHORIZED


def test_trainer_updates_only_own_schedule():
    own = authorize(TRAINER, Op("schedule", UPDATE, target_id="s1", target_owner_id=TRAINER.id))
    other = authorize(TRAINER, Op("schedule", UPDATE, target_id="s1", target_owner_id="u-other"))
    assert own.allowed
    assert other.message == "Can only update your own schedules"


def test_admin_passes_ownership_checks():
    decision = authorize(ADMIN, Op("schedule", UPDATE, target_id="s1", target_owner_id="u-other"))
    assert decision.allowed


def test_unresolved_owner_is_not_found():
    decision = authorize(TRAINER, Op("schedule", UPDATE, target_id="s1", owner_resolved=False))
    assert decision.reason == DenyReason.NOT_FOUND
    assert decision.message == "Schedule not found"


def test_admin_cannot_delete_self():
    decision = authorize(ADMIN, Op("user", "delete", target_id=ADMIN.id))
    assert not decision.allowed
    assert decision.message == "Cannot delete your own account"
    assert authorize(ADMIN, Op("user", "delete", target_id="u-other")).allowed


def test_register_denial_carries_rule_message():
    decision = authorize(TRAINER, Op("auth", "register"))
    assert decision.message == "Admin access required"


def test_learner_list_carries_row_filter():
    decision = authorize(LEARNER, Op("schedule", READ_LIST))
    assert decision.allowed
    assert decision.row_filter.clause == LEARNER_OWN_SCHEDULES
    assert decision.row_filter.params == {"rf_caller_id": LEARNER.id}


def test_staff_list_has_no_row_filter():
    assert authorize(TRAINER, Op("schedule", READ_LIST)).row_filter is None


def test_custom_table_is_used_when_given():
    table = build_policy_table([("report", READ, ("learner",), ALLOW_IF_OWNER)])
    assert authorize(LEARNER, Op("report", READ, target_owner_id=LEARNER.id), table).allowed
    assert not authorize(ADMIN, Op("report", READ), table).allowed



def test_deny_rule_blocks_role_with_its_message():
    table = build_policy_table([
        ("report", READ, ("admin",), ALLOW),
        ("report", READ, ("learner",), DENY, None, "Reports are staff only"),
    ])
    decision = authorize(LEARNER, Op("report", READ), table)
    assert not decision.allowed
    assert decision.reason == DenyReason.NOT_AUTHORIZED
    assert decision.message == "Reports are staff only"
    assert authorize(ADMIN, Op("report", READ), table).allowed


# ── Tests: require ───────────────────────────────────────────────────

def test_require_raises_mapped_errors():
    with pytest.raises(Unauthenticated):
        require(None, Op("course", READ))
    with pytest.raises(NotAuthorized):
        require(LEARNER, Op("course", "delete"))
    with pytest.raises(NotFound):
        require(TRAINER, Op("schedule", "delete", owner_resolved=False))


def test_require_returns_decision_when_allowed():
    assert require(ADMIN, Op("course", "delete")).allowed
