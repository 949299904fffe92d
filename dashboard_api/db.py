"""
db.py – Connection helper for the Dashboard API.

Reads DATABASE_URL from the environment (loaded from .env by
carbon_central.config). Each request gets a short-lived connection wrapped
in a PostgresEmissionsStore; the connection is closed when the request ends.
"""
from __future__ import annotations

import os
from typing import Iterator

import psycopg2

from carbon_central.db import PostgresEmissionsStore


def get_database_url() -> str:
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL environment variable is not set. "
            "Add it to .env at the repo root."
        )
    return url


def get_conn():
    """Return a new psycopg2 connection (caller must close)."""
    return psycopg2.connect(get_database_url())


def get_store() -> Iterator[PostgresEmissionsStore]:
    """FastAPI dependency: a store bound to a per-request connection."""
    conn = get_conn()
    try:
        yield PostgresEmissionsStore(conn)
    finally:
        conn.close()
