"""
FastAPI app entry point aggregating the routers under jobly/routes.
Keep as `uvicorn jobly.api:app`.
"""
from __future__ import annotations


from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .db import get_conn, apply_schema
from .logs import ensure_log_schema, setup_logging


setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    with get_conn() as conn:
        apply_schema(conn)
    ensure_log_schema()
    yield


app = FastAPI(title="jobly-api", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Malformed payloads are a 400, like every other caller error
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg")}
        for e in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"detail": errors})


from .routes import base as base_routes
from .routes import jobs as jobs_routes
from .routes import logs as logs_routes

app.include_router(base_routes.router)
app.include_router(jobs_routes.router)
app.include_router(logs_routes.router)
