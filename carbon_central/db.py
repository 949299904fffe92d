"""
db.py – PostgreSQL access for activity records and Scope 3 rows.

``PostgresEmissionsStore`` wraps one psycopg2 connection and satisfies the
``ActivityStore`` protocol the report layer reads through. Writes commit
immediately. Every stored ``total_co2e`` is recomputed from the row's own
fields before it is written, so a saved total is never stale.

psycopg2 errors propagate to the caller.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import psycopg2
from psycopg2.extras import Json, RealDictCursor

from carbon_central.calculations import recompute_total
from carbon_central.schemas import ActivityRecord, Scope3ActivityRecord

logger = logging.getLogger(__name__)

_EMISSION_COLUMNS = (
    "id, month, electricity_kw, diesel_litres, petrol_litres, gas_kwh, "
    "fuel_liters, refrigerant_kg, refrigerant_code, total_co2e"
)
_SCOPE3_COLUMNS = "id, month, category, label, data, co2e_kg"


def get_connection(database_url: str):
    """Return a psycopg2 connection. Caller must close it."""
    return psycopg2.connect(database_url)


def apply_schema(conn, schema_path: Path | None = None) -> None:
    """Create the emissions and scope3_activities tables if missing."""
    if schema_path is None:
        schema_path = Path(__file__).resolve().parent.parent / "schema" / "carbon_central.sql"
    sql = schema_path.read_text(encoding="utf-8")
    with conn.cursor() as cur:
        cur.execute(sql)
    conn.commit()


def _emission_params(record: ActivityRecord) -> tuple:
    return (
        record.month_label,
        record.electricity_kwh,
        record.diesel_litres,
        record.petrol_litres,
        record.gas_kwh,
        # Legacy combined column kept in step for older readers.
        record.fuel_litres,
        record.refrigerant_kg,
        record.refrigerant_code,
        record.total_co2e_kg,
    )


class PostgresEmissionsStore:
    """Per-account reads and writes over a single connection."""

    def __init__(self, conn):
        self.conn = conn

    # ── reads ───────────────────────────────────────────────────────────────

    def _select(self, sql: str, params: tuple) -> list[dict[str, Any]]:
        with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(sql, params)
            return [dict(row) for row in cur.fetchall()]

    def fetch_emissions(self, user_id: str) -> list[dict[str, Any]]:
        return self._select(
            f"SELECT {_EMISSION_COLUMNS} FROM emissions WHERE user_id = %s ORDER BY id",
            (user_id,),
        )

    def fetch_scope3(self, user_id: str) -> list[dict[str, Any]]:
        return self._select(
            f"SELECT {_SCOPE3_COLUMNS} FROM scope3_activities WHERE user_id = %s ORDER BY id",
            (user_id,),
        )

    def fetch_all_emissions(self, user_id: str | None = None) -> list[dict[str, Any]]:
        """Every emissions row (optionally for one account), with its owner."""
        sql = f"SELECT user_id, {_EMISSION_COLUMNS} FROM emissions"
        params: tuple = ()
        if user_id:
            sql += " WHERE user_id = %s"
            params = (user_id,)
        return self._select(sql + " ORDER BY id", params)

    # ── activity records ────────────────────────────────────────────────────

    def save_emission(self, user_id: str, record: ActivityRecord) -> dict[str, Any] | None:
        """
        Insert *record* (no id) or fully overwrite the stored row with that id.

        Returns the stored row, or None when the id does not exist for this
        account.
        """
        record = recompute_total(record)
        with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
            if record.id is None:
                cur.execute(
                    f"""
                    INSERT INTO emissions
                        (user_id, month, electricity_kw, diesel_litres, petrol_litres,
                         gas_kwh, fuel_liters, refrigerant_kg, refrigerant_code, total_co2e)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING {_EMISSION_COLUMNS}
                    """,
                    (user_id, *_emission_params(record)),
                )
            else:
                cur.execute(
                    f"""
                    UPDATE emissions
                       SET month = %s, electricity_kw = %s, diesel_litres = %s,
                           petrol_litres = %s, gas_kwh = %s, fuel_liters = %s,
                           refrigerant_kg = %s, refrigerant_code = %s, total_co2e = %s
                     WHERE id = %s AND user_id = %s
                    RETURNING {_EMISSION_COLUMNS}
                    """,
                    (*_emission_params(record), record.id, user_id),
                )
            row = cur.fetchone()
        self.conn.commit()
        if row is None:
            logger.warning("user=%s: emissions row %s not found", user_id, record.id)
            return None
        logger.info(
            "user=%s: saved %s (total_co2e=%.2f kg)",
            user_id, record.month_label, record.total_co2e_kg,
        )
        return dict(row)

    def delete_emission(self, user_id: str, record_id: int | str) -> bool:
        with self.conn.cursor() as cur:
            cur.execute(
                "DELETE FROM emissions WHERE id = %s AND user_id = %s",
                (record_id, user_id),
            )
            deleted = cur.rowcount > 0
        self.conn.commit()
        return deleted

    def update_total(self, record_id: int | str, total_co2e_kg: float) -> None:
        """Write a recomputed total; the caller commits."""
        with self.conn.cursor() as cur:
            cur.execute(
                "UPDATE emissions SET total_co2e = %s WHERE id = %s",
                (total_co2e_kg, record_id),
            )

    # ── scope 3 ─────────────────────────────────────────────────────────────

    def add_scope3(self, user_id: str, record: Scope3ActivityRecord) -> dict[str, Any]:
        with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                f"""
                INSERT INTO scope3_activities (user_id, month, category, label, data, co2e_kg)
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING {_SCOPE3_COLUMNS}
                """,
                (
                    user_id,
                    record.month,
                    record.category,
                    record.label,
                    Json(record.data.model_dump()),
                    record.co2e_kg,
                ),
            )
            row = cur.fetchone()
        self.conn.commit()
        return dict(row) if row else {}

    def delete_scope3(self, user_id: str, record_id: int | str) -> bool:
        with self.conn.cursor() as cur:
            cur.execute(
                "DELETE FROM scope3_activities WHERE id = %s AND user_id = %s",
                (record_id, user_id),
            )
            deleted = cur.rowcount > 0
        self.conn.commit()
        return deleted
