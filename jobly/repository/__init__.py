"""Repository layer: DB access helpers (SQLite).

Repositories own every SQL string; services and routes never build queries.
"""
from __future__ import annotations

from .base_repo import EntityRepository
from .job_repo import JobRepository

__all__ = ["EntityRepository", "JobRepository"]
