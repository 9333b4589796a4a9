"""
Seeding and the management CLI.
"""

import pytest

from training_api import cli
from training_api.database import fetch_all, fetch_value, init_engine
from training_api.passwords import verify_password
from training_api.seed import DEFAULT_ACCOUNTS, SAMPLE_COURSES, SAMPLE_PROFILE_FIELDS, seed
from training_api.users import find_by_email


def test_seed_populates_empty_store(engine):
    assert seed(engine, learner_count=3) is True

    assert fetch_value(engine, "SELECT COUNT(*) FROM users") == len(DEFAULT_ACCOUNTS) + 3
    assert fetch_value(engine, "SELECT COUNT(*) FROM courses") == len(SAMPLE_COURSES)
    assert fetch_value(engine, "SELECT COUNT(*) FROM custom_profile_fields") == len(SAMPLE_PROFILE_FIELDS)

    admin = find_by_email(engine, "admin@training.com")
    assert admin["role"] == "admin"
    assert verify_password("admin123", admin["password"])


def test_seed_modules_only_on_elearning(engine):
    seed(engine)
    rows = fetch_all(engine, """
        SELECT DISTINCT c.course_type FROM course_modules m JOIN courses c ON m.course_id = c.id
    """)
    assert [r["course_type"] for r in rows] == ["elearning"]


def test_seed_respects_capacity(engine):
    seed(engine)
    over = fetch_value(engine, """
        SELECT COUNT(*) FROM schedules s
        WHERE (SELECT COUNT(*) FROM enrollments e WHERE e.schedule_id = s.id) > s.max_learners
    """)
    assert over == 0


def test_seed_skips_when_users_exist(engine, user_ids, capsys):
    assert seed(engine) is False
    assert "already seeded" in capsys.readouterr().out
    assert fetch_value(engine, "SELECT COUNT(*) FROM courses") == 0


# ── Tests: CLI ───────────────────────────────────────────────────────

def test_cli_init_db_creates_tables(tmp_path, monkeypatch, capsys):
    db_uri = f"sqlite:///{tmp_path / 'training.db'}"
    monkeypatch.setenv("DB_URI", db_uri)
    cli.main(["init-db"])
    assert "[init] Schema ready." in capsys.readouterr().out
    assert fetch_value(init_engine(db_uri), "SELECT COUNT(*) FROM users") == 0


def test_cli_seed_prints_accounts(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("DB_URI", f"sqlite:///{tmp_path / 'training.db'}")
    cli.main(["seed", "--learners", "2"])
    out = capsys.readouterr().out
    assert "admin@training.com / admin123" in out
    assert "learner1..2@training.com" in out


def test_cli_requires_db_uri(monkeypatch, capsys):
    monkeypatch.delenv("DB_URI", raising=False)
    with pytest.raises(SystemExit) as e:
        cli.main(["init-db"])
    assert e.value.code == 1
    assert "DB_URI" in capsys.readouterr().err


def test_cli_rejects_unknown_command():
    with pytest.raises(SystemExit) as e:
        cli.main(["migrate"])
    assert e.value.code == 2
