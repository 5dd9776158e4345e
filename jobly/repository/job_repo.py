from __future__ import annotations

from .base_repo import EntityRepository
from .sql import BooleanFlag, ContainsText, MinNumeric


class JobRepository(EntityRepository):
    """Jobs table.

    Records look like {id, title, salary, equity, companyHandle}; equity is
    kept as text ("0.010" comes back unchanged) and compared numerically by
    the hasEquity filter.
    """

    entity = "job"
    table = "jobs"
    fields = ("id", "title", "salary", "equity", "companyHandle")
    field_map = {"companyHandle": "company_handle"}
    insert_fields = ("title", "salary", "equity", "companyHandle")
    key_fields = ("title", "salary", "equity", "companyHandle")
    # "0.5" and "0.50" are the same equity
    key_casts = {"equity": "REAL"}
    updatable = ("title", "salary", "equity")
    filters = (
        ContainsText("title", "title"),
        MinNumeric("minSalary", "salary"),
        BooleanFlag("hasEquity", "CAST(equity AS REAL)"),
    )

    def _describe(self, fields):
        return f"{fields.get('title')}, {fields.get('companyHandle')}"
