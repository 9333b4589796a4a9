"""
Unit tests for partial UPDATE building and list filters.
"""

import json

import pytest
from sqlalchemy import text

from training_api.database import fetch_one
from training_api.errors import EmptyChangeError
from training_api.models import RowFilter
from training_api.sql_builder import (
    COURSE_FIELDS, MODULE_FIELDS, PROFILE_FIELD_FIELDS, USER_FIELDS, QueryFilter,
    build_update, change_set, encode_value, like,
)


# ── Tests: change_set ────────────────────────────────────────────────

def test_change_set_keeps_only_whitelisted_keys():
    payload = {"title": "T", "courseType": "virtual", "created_by": "x"}
    assert change_set(payload, COURSE_FIELDS) == {"title": "T"}


def test_change_set_treats_null_as_present():
    assert change_set({"zoomLink": None}, COURSE_FIELDS) == {"zoomLink": None}


# ── Tests: build_update ──────────────────────────────────────────────

def test_build_update_empty_raises():
    with pytest.raises(EmptyChangeError, match="No fields to update"):
        build_update(COURSE_FIELDS, {})


def test_build_update_ignores_non_whitelisted_changes():
    with pytest.raises(EmptyChangeError):
        build_update(COURSE_FIELDS, {"status": "published"})


def test_build_update_follows_whitelist_order():
    plan = build_update(COURSE_FIELDS, {"category": "Ops", "title": "New"})
    assert plan.columns == ["title", "category"]
    assert list(plan.params) == ["v_title", "v_category"]


def test_build_update_null_binds_none():
    plan = build_update(COURSE_FIELDS, {"zoomLink": None})
    assert plan.assignments == ["zoom_link = :v_zoom_link"]
    assert plan.params == {"v_zoom_link": None}


def test_build_update_never_puts_values_in_sql_text():
    hostile = "x'; DROP TABLE courses; --"
    plan = build_update(COURSE_FIELDS, {"title": hostile})
    sql = plan.statement("courses")
    assert hostile not in sql
    assert sql == "UPDATE courses SET title = :v_title WHERE id = :key"
    assert plan.params["v_title"] == hostile


def test_statement_appends_extra_assignments_last():
    plan = build_update(USER_FIELDS, {"name": "N"})
    sql = plan.statement("users", extra=["updated_at = :updated_at"])
    assert sql == "UPDATE users SET name = :v_name, updated_at = :updated_at WHERE id = :key"


def test_json_and_bool_fields_are_encoded():
    plan = build_update(PROFILE_FIELD_FIELDS, {
        "options": {"b": 1, "a": 2},
        "required": True,
        "visibleTo": ["admin"],
    })
    assert plan.params["v_options"] == '{"a": 2, "b": 1}'
    assert plan.params["v_is_required"] == 1
    assert json.loads(plan.params["v_visible_to"]) == ["admin"]


def test_encode_value_sorts_sets():
    assert encode_value({"c", "a", "b"}) == '["a", "b", "c"]'
    assert encode_value(False, "bool") == 0
    assert encode_value(None, "json") is None


def test_single_field_update_leaves_other_columns(engine, make_course):
    course = make_course(title="Original", description="Keep me")
    plan = build_update(COURSE_FIELDS, change_set({"title": "Renamed"}, COURSE_FIELDS))

    with engine.begin() as conn:
        conn.execute(text(plan.statement("courses")), {**plan.params, "key": course["id"]})

    row = fetch_one(engine, "SELECT * FROM courses WHERE id = :id", {"id": course["id"]})
    assert row["title"] == "Renamed"
    assert row["description"] == "Keep me"
    assert row["duration"] == course["duration"]
    assert row["category"] == course["category"]


def test_module_bool_field_maps_to_column():
    plan = build_update(MODULE_FIELDS, {"isRequired": False})
    assert plan.assignments == ["is_required = :v_is_required"]
    assert plan.params == {"v_is_required": 0}


# ── Tests: QueryFilter ───────────────────────────────────────────────

def test_query_filter_empty_renders_nothing():
    assert QueryFilter().render() == ("", {})


def test_query_filter_joins_predicates_with_and():
    filters = QueryFilter()
    filters.add("role = :role", role="learner")
    filters.add_if(None, "status = :status", "status")
    filters.add_if("", "title = :title", "title")
    filters.add("name LIKE :search", search=like("ann"))
    where, params = filters.render()
    assert where == " WHERE role = :role AND name LIKE :search"
    assert params == {"role": "learner", "search": "%ann%"}


def test_query_filter_extends_with_row_filter():
    filters = QueryFilter().add("s.status = :status", status="upcoming")
    filters.extend(RowFilter("s.trainer_id = :rf_caller_id", {"rf_caller_id": "u1"}))
    where, params = filters.render()
    assert where == " WHERE s.status = :status AND (s.trainer_id = :rf_caller_id)"
    assert params == {"status": "upcoming", "rf_caller_id": "u1"}


def test_query_filter_rejects_duplicate_binds():
    filters = QueryFilter().add("a = :x", x=1)
    with pytest.raises(ValueError, match="Duplicate bind"):
        filters.add("b = :x", x=2)
