"""
Token settings helper script.
"""

import pytest

from scripts.generate_secret_key import main, merge_env


def test_merge_env_replaces_token_lines_only():
    lines = ["DB_URI=sqlite:///training.db", "JWT_SECRET_KEY=old", "API_PORT=3001"]
    merged = merge_env(lines, {"JWT_SECRET_KEY": "new", "TOKEN_EXPIRY_HOURS": "24"})
    assert merged == [
        "DB_URI=sqlite:///training.db",
        "API_PORT=3001",
        "JWT_SECRET_KEY=new",
        "TOKEN_EXPIRY_HOURS=24",
    ]


def test_main_prints_settings(capsys):
    main(["--hours", "12"])
    out = capsys.readouterr().out.splitlines()
    assert out[0].startswith("JWT_SECRET_KEY=")
    assert len(out[0]) > len("JWT_SECRET_KEY=") + 40
    assert out[1] == "TOKEN_EXPIRY_HOURS=12"


def test_main_updates_env_file(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("DB_URI=sqlite://\nJWT_SECRET_KEY=old\n")
    main(["--env-file", str(env_file)])

    lines = env_file.read_text().splitlines()
    assert lines[0] == "DB_URI=sqlite://"
    assert "JWT_SECRET_KEY=old" not in lines
    assert lines[-1] == "TOKEN_EXPIRY_HOURS=168"


def test_main_rejects_non_positive_hours():
    with pytest.raises(SystemExit) as e:
        main(["--hours", "0"])
    assert e.value.code == 2
