"""Logging setup and the job audit trail.

Every admin write (create/update/delete) leaves one ``job_audit`` row: who
did it, which job, what was sent, the job as stored afterwards, and either
``ok`` or the error kind that stopped it.
"""
import json, logging, time, uuid, datetime as dt
from typing import Any, Optional

from .db import get_conn, get_setting, run
from .errors import JoblyError
from .repository import JobRepository

logger = logging.getLogger(__name__)

OUTCOME_OK = "ok"

DDL = """
CREATE TABLE IF NOT EXISTS job_audit (
  id           INTEGER PRIMARY KEY AUTOINCREMENT,
  ts           TEXT NOT NULL,
  username     TEXT NOT NULL,
  action       TEXT NOT NULL,
  request_id   TEXT NOT NULL,
  job_id       INTEGER,
  payload_json TEXT,
  job_json     TEXT,
  outcome      TEXT NOT NULL,
  message      TEXT,
  latency_ms   INTEGER
);
CREATE INDEX IF NOT EXISTS idx_job_audit_job ON job_audit(job_id);
CREATE INDEX IF NOT EXISTS idx_job_audit_action ON job_audit(action);
"""


def setup_logging(level: Optional[str] = None):
    level = (level or get_setting("log_level", "JOBLY_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def ensure_log_schema():
    with get_conn() as conn:
        conn.executescript(DDL)


def job_snapshot(job: dict[str, Any]) -> dict[str, Any]:
    """The job record trimmed to its public fields."""
    return {k: job.get(k) for k in JobRepository.fields}


class LogContext:
    """Collects one audit row while a job write runs; ok()/fail() store it."""

    def __init__(self, action: str, user: str = "anonymous"):
        self.action = action
        self.user = user
        self.request_id = str(uuid.uuid4())
        self.start = time.perf_counter()
        self.job_id: Optional[int] = None
        self.payload: Optional[dict] = None
        self.job: Optional[dict] = None

    def for_job(self, job_id: int):
        self.job_id = job_id

    def record_payload(self, data: dict[str, Any]):
        self.payload = dict(data)

    def record_job(self, job: dict[str, Any]):
        self.job = job_snapshot(job)
        self.job_id = self.job["id"]

    def ok(self):
        self._store(OUTCOME_OK, None)

    def fail(self, err: JoblyError):
        logger.warning("%s failed (%s, %s): %s", self.action, err.kind, self.request_id, err.message)
        self._store(err.kind, err.message)

    def _store(self, outcome: str, message: Optional[str]):
        params = [
            dt.datetime.now(dt.timezone.utc).isoformat(),
            self.user,
            self.action,
            self.request_id,
            self.job_id,
            json.dumps(self.payload) if self.payload is not None else None,
            json.dumps(self.job) if self.job is not None else None,
            outcome,
            message,
            int((time.perf_counter() - self.start) * 1000),
        ]
        with get_conn() as conn:
            run(
                conn,
                "INSERT INTO job_audit"
                "(ts, username, action, request_id, job_id, payload_json, job_json, outcome, message, latency_ms) "
                "VALUES(?1, ?2, ?3, ?4, ?5, ?6, ?7, ?8, ?9, ?10)",
                params,
            )


def _decode(row: dict[str, Any]) -> dict[str, Any]:
    payload, job = row.pop("payload_json"), row.pop("job_json")
    row["payload"] = json.loads(payload) if payload else None
    row["job"] = json.loads(job) if job else None
    return row


def search_audit(
    action: Optional[str] = None,
    job_id: Optional[int] = None,
    outcome: Optional[str] = None,
    page: int = 1,
    size: int = 20,
):
    """Newest first. Returns (total, rows) with payload/job decoded back to dicts."""
    where, params = [], []
    for col, value in (("action", action), ("job_id", job_id), ("outcome", outcome)):
        if value is not None:
            params.append(value)
            where.append(f"{col} = ?{len(params)}")
    wh = " WHERE " + " AND ".join(where) if where else ""
    n = len(params)
    with get_conn() as conn:
        total = run(conn, f"SELECT COUNT(1) AS cnt FROM job_audit{wh}", params)[0]["cnt"]
        rows = run(
            conn,
            f"SELECT * FROM job_audit{wh} ORDER BY id DESC LIMIT ?{n + 1} OFFSET ?{n + 2}",
            [*params, size, (page - 1) * size],
        )
    return total, [_decode(r) for r in rows]
