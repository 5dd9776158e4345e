from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..auth import require_admin
from ..errors import JoblyError, StorageError
from ..logs import LogContext
from ..services.job_svc import create_job, get_job, list_jobs, remove_job, update_job

router = APIRouter()

EQUITY_PATTERN = r"^(0(\.\d+)?|1(\.0+)?)$"
SEARCH_KEYS = {"title", "minSalary", "hasEquity"}
# SQLite INTEGER range; larger ints overflow the driver
MAX_INT = 2**63 - 1
MIN_INT = -(2**63)


class JobCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1)
    salary: Optional[int] = Field(None, ge=0, le=MAX_INT)
    equity: Optional[str] = Field(None, pattern=EQUITY_PATTERN)
    companyHandle: str = Field(..., min_length=1, max_length=25)


class JobUpdate(BaseModel):
    # companyHandle is not updatable
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1)
    salary: Optional[int] = Field(None, ge=0, le=MAX_INT)
    equity: Optional[str] = Field(None, pattern=EQUITY_PATTERN)

    # only runs for fields that were sent, so omitting title is still fine
    @field_validator("title")
    @classmethod
    def title_not_null(cls, v):
        if v is None:
            raise ValueError("title cannot be null")
        return v


def _fail(log: LogContext | None, e: JoblyError) -> HTTPException:
    if log:
        log.fail(e)
    if isinstance(e, StorageError):
        return HTTPException(status_code=500, detail="internal error")
    return HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/jobs", status_code=201)
def api_job_create(body: JobCreate, user: dict = Depends(require_admin)):
    log = LogContext("CREATE_JOB", user=user["username"])
    try:
        job = create_job(body.model_dump(), log)
        log.ok()
        return {"job": job}
    except JoblyError as e:
        raise _fail(log, e)


@router.get("/jobs")
def api_job_list(
    request: Request,
    title: Optional[str] = Query(None),
    minSalary: Optional[int] = Query(None, ge=0, le=MAX_INT),
    hasEquity: Optional[bool] = Query(None),
):
    unknown = sorted(set(request.query_params) - SEARCH_KEYS)
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown filter(s): {', '.join(unknown)}")
    try:
        jobs = list_jobs({"title": title, "minSalary": minSalary, "hasEquity": hasEquity})
        return {"jobs": jobs}
    except JoblyError as e:
        raise _fail(None, e)


@router.get("/jobs/{job_id}")
def api_job_get(job_id: int = Path(..., ge=MIN_INT, le=MAX_INT)):
    try:
        return {"job": get_job(job_id)}
    except JoblyError as e:
        raise _fail(None, e)


@router.patch("/jobs/{job_id}")
def api_job_update(body: JobUpdate, job_id: int = Path(..., ge=MIN_INT, le=MAX_INT), user: dict = Depends(require_admin)):
    log = LogContext("UPDATE_JOB", user=user["username"])
    try:
        job = update_job(job_id, body.model_dump(exclude_unset=True), log)
        log.ok()
        return {"job": job}
    except JoblyError as e:
        raise _fail(log, e)


@router.delete("/jobs/{job_id}")
def api_job_delete(job_id: int = Path(..., ge=MIN_INT, le=MAX_INT), user: dict = Depends(require_admin)):
    log = LogContext("DELETE_JOB", user=user["username"])
    try:
        deleted = remove_job(job_id, log)
        log.ok()
        return {"deleted": str(deleted)}
    except JoblyError as e:
        raise _fail(log, e)
