#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Jobly management commands (SQLite)

Commands:
  init                Apply schema.sql to the configured database
  seed                Load companies from seeds/companies.csv
  jobs                Print jobs, optionally filtered, and export them to CSV
  token               Print a signed bearer token for the API

Notes:
- The database path comes from config.yaml (or JOBLY_DB_PATH), same as the API.
- Filters follow the API: --min-salary 0 and a missing --has-equity mean "no filter".
"""

import argparse
import csv
import os

import pandas as pd

from jobly.auth import create_token
from jobly.db import apply_schema, get_conn, get_db_path
from jobly.logs import ensure_log_schema
from jobly.repository import JobRepository

_BASE = os.path.dirname(os.path.abspath(__file__))


# ---------------- Schema & Seed ----------------

def seed_companies(conn, path: str) -> int:
    with open(path, "r", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    for r in rows:
        conn.execute(
            """
            INSERT OR IGNORE INTO companies(handle, name, num_employees, description, logo_url)
            VALUES(?,?,?,?,?)
            """,
            (
                r["handle"],
                r["name"],
                int(r["num_employees"]) if r.get("num_employees") else None,
                r.get("description") or "",
                r.get("logo_url") or None,
            ),
        )
    return len(rows)


# ---------------- Commands ----------------

def cmd_init(args):
    with get_conn() as conn:
        apply_schema(conn)
    ensure_log_schema()
    print("DB initialized:", get_db_path())


def cmd_seed(args):
    with get_conn() as conn:
        n = seed_companies(conn, args.file)
    print(f"Seeded {n} companies.")


def cmd_jobs(args):
    filters = {"title": args.title, "minSalary": args.min_salary, "hasEquity": args.has_equity}
    with get_conn() as conn:
        jobs = JobRepository(conn).find_all(filters)

    df = pd.DataFrame(jobs, columns=["id", "title", "salary", "equity", "companyHandle"])
    pd.set_option("display.max_rows", 200)
    pd.set_option("display.width", 160)
    print(df if not df.empty else "(empty)")

    if args.csv:
        df.to_csv(args.csv, index=False, encoding="utf-8")
        print("CSV exported to", args.csv)


def cmd_token(args):
    print(create_token(args.username, is_admin=args.admin))


# ---------------- Entry ----------------

def main():
    parser = argparse.ArgumentParser(description="Jobly jobs backend (SQLite)")
    sub = parser.add_subparsers()

    p_init = sub.add_parser("init", help="create tables")
    p_init.set_defaults(func=cmd_init)

    p_seed = sub.add_parser("seed", help="load companies")
    p_seed.add_argument("--file", default=os.path.join(_BASE, "seeds", "companies.csv"))
    p_seed.set_defaults(func=cmd_seed)

    p_jobs = sub.add_parser("jobs", help="list jobs")
    p_jobs.add_argument("--title", required=False)
    p_jobs.add_argument("--min-salary", type=int, required=False)
    p_jobs.add_argument("--has-equity", action="store_true")
    p_jobs.add_argument("--csv", required=False, help="write the result to this CSV file")
    p_jobs.set_defaults(func=cmd_jobs)

    p_tok = sub.add_parser("token", help="print a bearer token")
    p_tok.add_argument("username")
    p_tok.add_argument("--admin", action="store_true")
    p_tok.set_defaults(func=cmd_token)

    args = parser.parse_args()
    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
