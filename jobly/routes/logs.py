from __future__ import annotations

from fastapi import APIRouter, Query

from ..logs import search_audit

router = APIRouter()


@router.get("/api/logs/search")
def api_logs_search(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=200),
    action: str | None = None,
    job_id: int | None = Query(None, ge=-(2**63), le=2**63 - 1),
    outcome: str | None = None,
):
    total, items = search_audit(action, job_id, outcome, page, size)
    return {"total": total, "items": items}
