from __future__ import annotations

import logging
from typing import Any

from ..db import get_conn
from ..logs import LogContext
from ..repository import JobRepository

logger = logging.getLogger(__name__)


def create_job(data: dict[str, Any], log: LogContext) -> dict[str, Any]:
    log.record_payload(data)
    with get_conn() as conn:
        job = JobRepository(conn).create(data)
    log.record_job(job)
    logger.info("created job %s (%s)", job["id"], job["title"])
    return job


def list_jobs(filters: dict[str, Any] | None = None) -> list[dict[str, Any]]:
    with get_conn() as conn:
        return JobRepository(conn).find_all(filters)


def get_job(job_id: int) -> dict[str, Any]:
    with get_conn() as conn:
        return JobRepository(conn).get(job_id)


def update_job(job_id: int, data: dict[str, Any], log: LogContext) -> dict[str, Any]:
    log.for_job(job_id)
    log.record_payload(data)
    with get_conn() as conn:
        job = JobRepository(conn).update(job_id, data)
    log.record_job(job)
    logger.info("updated job %s: %s", job_id, ", ".join(data))
    return job


def remove_job(job_id: int, log: LogContext) -> int:
    log.for_job(job_id)
    with get_conn() as conn:
        deleted = JobRepository(conn).remove(job_id)
    logger.info("removed job %s", job_id)
    return deleted
