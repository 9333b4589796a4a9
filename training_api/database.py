"""
Database engine initialisation, query helpers and atomic multi-row writes.
"""

import sys
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine

from training_api.config import get_env

Params = Optional[Dict[str, Any]]
Step = Union[Tuple[str, Params], Callable[[Connection], Any]]


def _enable_sqlite_foreign_keys(dbapi_conn, _record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def configure_engine(engine: Engine) -> Engine:
    """Apply per-dialect connection settings."""
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def init_engine(db_uri: str = None) -> Engine:
    """Create a pooled SQLAlchemy engine and verify the connection."""
    db_uri = db_uri or get_env("DB_URI")
    engine = configure_engine(
        create_engine(db_uri, echo=False, future=True, pool_pre_ping=True)
    )
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        print("ERROR: could not connect to DB:", e, file=sys.stderr)
        sys.exit(1)
    print("[init] Connected to DB.")
    return engine


def now() -> str:
    """Current UTC time in a form every supported dialect stores as-is."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


# ── Single statements ────────────────────────────────────────────────

def fetch_one(engine: Engine, sql: str, params: Params = None) -> Optional[Dict[str, Any]]:
    with engine.connect() as conn:
        row = conn.execute(text(sql), params or {}).mappings().first()
    return dict(row) if row else None


def fetch_all(engine: Engine, sql: str, params: Params = None) -> List[Dict[str, Any]]:
    with engine.connect() as conn:
        rows = conn.execute(text(sql), params or {}).mappings().all()
    return [dict(r) for r in rows]


def fetch_value(engine: Engine, sql: str, params: Params = None) -> Any:
    with engine.connect() as conn:
        return conn.execute(text(sql), params or {}).scalar()


def execute(engine: Engine, sql: str, params: Params = None) -> int:
    """Run one write statement in its own transaction; return rowcount."""
    with engine.begin() as conn:
        return conn.execute(text(sql), params or {}).rowcount


# ── Atomic multi-row writes ──────────────────────────────────────────

def run_atomic(engine: Engine, steps: Sequence[Step]) -> List[Any]:
    """Execute *steps* in order on one connection as a single transaction.

    A step is either a ``(sql, params)`` pair or a callable receiving the
    connection. Any exception rolls back every earlier step and is re-raised;
    nothing is committed until the last step succeeds. The connection goes
    back to the pool on every exit path.
    """
    results: List[Any] = []
    with engine.begin() as conn:
        for step in steps:
            if callable(step):
                results.append(step(conn))
            else:
                sql, params = step
                results.append(conn.execute(text(sql), params or {}).rowcount)
    return results


def reorder_steps(table: str, ids: Sequence[str], scope: str = "",
                  scope_params: Params = None) -> List[Tuple[str, Dict[str, Any]]]:
    """One sort_order update per id, position = index in *ids*."""
    sql = f"UPDATE {table} SET sort_order = :position WHERE id = :id{scope}"
    return [
        (sql, {"position": position, "id": item_id, **(scope_params or {})})
        for position, item_id in enumerate(ids)
    ]


def for_update(conn: Connection) -> str:
    """Row-lock suffix for SELECTs, empty where the dialect has none."""
    return "" if conn.dialect.name == "sqlite" else " FOR UPDATE"
