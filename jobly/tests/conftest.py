import os
import sys
import sqlite3
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))


COMPANIES = [
    ("c1", "C1", 1, "Desc1", "http://c1.img"),
    ("c2", "C2", 2, "Desc2", "http://c2.img"),
    ("c3", "C3", 3, "Desc3", "http://c3.img"),
    ("c4", "C4", 4, "Desc4", None),
    ("c5", "C5", 5, "Desc5", None),
]

JOBS = [
    ("j1", 10000, "0", "c1"),
    ("j2", 20000, "0.010", "c2"),
    ("j3", 30000, "0", "c3"),
    ("test", 1000, "0.004", "c5"),
]


@pytest.fixture(scope="session")
def tmp_db_path(tmp_path_factory):
    path = tmp_path_factory.mktemp("db") / "jobly_test.db"
    # Point the app to this temp DB
    os.environ["JOBLY_DB_PATH"] = str(path)
    schema = Path(_PROJECT_ROOT / "schema.sql").read_text(encoding="utf-8")
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(schema)
        conn.commit()
    finally:
        conn.close()
    from jobly.logs import ensure_log_schema
    ensure_log_schema()
    return str(path)


@pytest.fixture()
def client(tmp_db_path):
    from jobly.api import app
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture()
def conn(tmp_db_path):
    from jobly.db import get_conn
    with get_conn() as c:
        yield c


@pytest.fixture(autouse=True)
def job_ids(tmp_db_path):
    """Reset tables to the fixture rows; yields {title: id}."""
    # Safety: only ever wipe the temp DB
    assert os.environ.get("JOBLY_DB_PATH") == tmp_db_path, "Refusing to clean non-temp DB"
    conn = sqlite3.connect(tmp_db_path)
    try:
        conn.execute("DELETE FROM jobs")
        conn.execute("DELETE FROM companies")
        conn.execute("DELETE FROM job_audit")
        conn.executemany(
            "INSERT INTO companies(handle, name, num_employees, description, logo_url) VALUES(?,?,?,?,?)",
            COMPANIES,
        )
        ids = {}
        for title, salary, equity, handle in JOBS:
            cur = conn.execute(
                "INSERT INTO jobs(title, salary, equity, company_handle) VALUES(?,?,?,?)",
                (title, salary, equity, handle),
            )
            ids[title] = cur.lastrowid
        conn.commit()
    finally:
        conn.close()
    yield ids


@pytest.fixture()
def admin_token():
    from jobly.auth import create_token
    return create_token("u3", is_admin=True)


@pytest.fixture()
def user_token():
    from jobly.auth import create_token
    return create_token("u1", is_admin=False)
