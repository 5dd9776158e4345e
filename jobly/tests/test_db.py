"""
Config resolution and the execution boundary.
"""
import sqlite3

import pytest

from jobly import db
from jobly.errors import StorageError


class TestConfig:

    def test_env_db_path_wins(self, monkeypatch, tmp_path):
        target = tmp_path / "nested" / "x.db"
        monkeypatch.setenv("JOBLY_DB_PATH", str(target))
        assert db.get_db_path() == str(target)
        assert target.parent.exists()

    def test_test_db_path_under_pytest(self, monkeypatch, tmp_path):
        monkeypatch.delenv("JOBLY_DB_PATH", raising=False)
        monkeypatch.setattr(db, "_read_config_yaml", lambda: {"db_path": "prod.db", "test_db_path": str(tmp_path / "t.db")})
        assert db.get_db_path() == str(tmp_path / "t.db")

    def test_timeout_from_env(self, monkeypatch):
        monkeypatch.setenv("JOBLY_DB_TIMEOUT", "1.5")
        assert db.get_timeout() == 1.5

    def test_timeout_default(self, monkeypatch):
        monkeypatch.delenv("JOBLY_DB_TIMEOUT", raising=False)
        monkeypatch.setattr(db, "_read_config_yaml", lambda: {})
        assert db.get_timeout() == db.DEFAULT_TIMEOUT


class TestRun:

    def test_returns_dicts(self, conn):
        rows = db.run(conn, "SELECT handle, name FROM companies WHERE handle = ?1", ["c1"])
        assert rows == [{"handle": "c1", "name": "C1"}]

    def test_wraps_driver_errors(self, conn):
        with pytest.raises(StorageError) as ei:
            db.run(conn, "SELECT * FROM no_such_table")
        assert isinstance(ei.value.__cause__, sqlite3.OperationalError)
        assert ei.value.status_code == 500
        assert not ei.value.is_unique_violation

    def test_flags_unique_violation(self, conn):
        with pytest.raises(StorageError) as ei:
            db.run(
                conn,
                "INSERT INTO companies(handle, name) VALUES(?1, ?2)",
                ["c1", "dupe"],
            )
        assert ei.value.is_unique_violation

    def test_foreign_keys_enforced(self, conn):
        with pytest.raises(StorageError) as ei:
            db.run(
                conn,
                "INSERT INTO jobs(title, company_handle) VALUES(?1, ?2)",
                ["x", "missing"],
            )
        assert not ei.value.is_unique_violation

    def test_wraps_int_overflow(self, conn):
        with pytest.raises(StorageError) as ei:
            db.run(conn, "SELECT id FROM jobs WHERE id = ?1", [2**64])
        assert isinstance(ei.value.__cause__, OverflowError)
