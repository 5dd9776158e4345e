from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

import yaml

from .errors import StorageError

logger = logging.getLogger(__name__)

# DB path resolution order:
# 1) JOBLY_DB_PATH env var
# 2) config.yaml test_db_path (under pytest or APP_ENV=test)
# 3) config.yaml db_path
# 4) jobly.db at the project root
_PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
_ROOT_DB = os.path.join(_PROJECT_ROOT, "jobly.db")

DEFAULT_TIMEOUT = 5.0


def _read_config_yaml() -> dict:
    cfg_path = os.path.join(_PROJECT_ROOT, "config.yaml")
    if not os.path.exists(cfg_path):
        return {}
    with open(cfg_path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    return cfg if isinstance(cfg, dict) else {}


def get_setting(key: str, env: str | None = None, default: Any = None) -> Any:
    """Config lookup: env var first, then config.yaml, then default."""
    if env and os.environ.get(env):
        return os.environ[env]
    v = _read_config_yaml().get(key)
    if isinstance(v, str):
        v = v.strip()
    return default if v in (None, "") else v


def get_db_path(_: str | None = None) -> str:
    env_path = os.environ.get("JOBLY_DB_PATH")
    cfg = _read_config_yaml()
    cfg_db = cfg.get("db_path")
    cfg_test = cfg.get("test_db_path")
    is_test = (os.environ.get("APP_ENV") == "test") or (os.environ.get("PYTEST_CURRENT_TEST") is not None)

    if env_path:
        path = env_path
    elif is_test and cfg_test:
        path = cfg_test
    elif cfg_db:
        path = cfg_db
    else:
        path = _ROOT_DB

    dirn = os.path.dirname(path) or "."
    os.makedirs(dirn, exist_ok=True)
    return path


def get_timeout() -> float:
    return float(get_setting("db_timeout", "JOBLY_DB_TIMEOUT", DEFAULT_TIMEOUT))


@contextmanager
def get_conn(db_path: str | None = None) -> Iterator[sqlite3.Connection]:
    """
    Open a SQLite connection. An explicit db_path wins over get_db_path().
    Autocommit mode, foreign_keys on, rows as sqlite3.Row.
    """
    path = db_path or get_db_path()
    conn = sqlite3.connect(
        path,
        timeout=get_timeout(),
        detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
        check_same_thread=False,
        isolation_level=None,
    )
    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.row_factory = sqlite3.Row
        yield conn
    finally:
        conn.close()


def _is_unique_violation(err: sqlite3.Error) -> bool:
    name = getattr(err, "sqlite_errorname", None)
    if name:
        return name in ("SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY")
    return isinstance(err, sqlite3.IntegrityError) and "UNIQUE constraint failed" in str(err)


def run(conn: sqlite3.Connection, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
    """Execute one statement and return every row as a plain dict.

    Driver errors come back as StorageError with the original attached as __cause__.
    """
    try:
        rows = conn.execute(sql, list(params)).fetchall()
    except sqlite3.Error as e:
        logger.warning("statement failed: %s", e)
        raise StorageError(str(e), is_unique_violation=_is_unique_violation(e)) from e
    except OverflowError as e:
        # ints outside SQLite's 64-bit range never reach the engine
        logger.warning("parameter out of range: %s", e)
        raise StorageError(str(e)) from e
    return [dict(r) for r in rows]


def apply_schema(conn: sqlite3.Connection, schema_path: str | None = None):
    path = schema_path or os.path.join(_PROJECT_ROOT, "schema.sql")
    with open(path, "r", encoding="utf-8") as f:
        conn.executescript(f.read())
