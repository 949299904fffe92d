"""
run_recompute.py – Recompute every stored total_co2e from its row's own fields.

Stored totals go stale when emission factors change or rows are edited by
hand. This runner reloads each emissions row, runs it through the
calculator and writes back the totals that differ (one commit at the end).

Usage
──────
# Dry-run: show old vs new totals, write NOTHING
python run_recompute.py --dry-run

# Live run for every account
python run_recompute.py

# One account only
python run_recompute.py --user-id 3f2c…

# Create the tables first
python run_recompute.py --apply-schema
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass

from rich.console import Console
from rich.table import Table

from carbon_central.calculations import calculate_record, load_activity_record
from carbon_central.config import get_config
from carbon_central.db import PostgresEmissionsStore, apply_schema, get_connection

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger(__name__)

# Totals closer than this are treated as unchanged.
TOLERANCE_KG = 1e-6


@dataclass
class RecomputeResult:
    record_id: int | str | None
    user_id: str | None
    month_label: str
    stored_kg: float
    recomputed_kg: float

    @property
    def changed(self) -> bool:
        return abs(self.recomputed_kg - self.stored_kg) > TOLERANCE_KG


def recompute_totals(
    store: PostgresEmissionsStore,
    user_id: str | None = None,
    dry_run: bool = False,
) -> list[RecomputeResult]:
    """
    Recompute each row's total; write changed ones unless *dry_run*.

    The store's connection is committed once at the end of a live run and
    rolled back on a dry run.
    """
    results: list[RecomputeResult] = []
    for row in store.fetch_all_emissions(user_id):
        record = load_activity_record(row)
        result = RecomputeResult(
            record_id=record.id,
            user_id=row.get("user_id"),
            month_label=record.month_label,
            stored_kg=record.total_co2e_kg,
            recomputed_kg=calculate_record(record).total_co2e_kg,
        )
        results.append(result)
        if result.changed and not dry_run:
            store.update_total(result.record_id, result.recomputed_kg)

    if dry_run:
        store.conn.rollback()
    else:
        store.conn.commit()
    changed = sum(1 for r in results if r.changed)
    log.info("%d rows checked, %d totals %s", len(results), changed,
             "would change" if dry_run else "updated")
    return results


def _print_results(results: list[RecomputeResult], dry_run: bool) -> None:
    console = Console()
    title = "Recomputed totals (dry-run)" if dry_run else "Recomputed totals"
    table = Table(title=title, show_lines=False)
    table.add_column("ID", justify="right", style="dim")
    table.add_column("User", style="cyan")
    table.add_column("Month", style="white")
    table.add_column("Stored kg CO₂e", justify="right")
    table.add_column("New kg CO₂e", justify="right")
    table.add_column("Status")
    for r in results:
        status = "[yellow]changed[/]" if r.changed else "[green]ok[/]"
        table.add_row(
            str(r.record_id),
            (r.user_id or "")[:12],
            r.month_label,
            f"{r.stored_kg:.2f}",
            f"{r.recomputed_kg:.2f}",
            status,
        )
    console.print(table)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Recompute stored total_co2e values with the current emission factors."
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Show old vs new totals without writing anything to the database.",
    )
    parser.add_argument(
        "--user-id", default=None,
        help="Only recompute rows belonging to this account.",
    )
    parser.add_argument(
        "--apply-schema", action="store_true",
        help="Create the emissions / scope3_activities tables before running.",
    )
    args = parser.parse_args()

    try:
        config = get_config(require_database=True)
    except EnvironmentError as exc:
        print(f"ERROR: {exc}")
        sys.exit(1)

    log.info("Connecting to database…")
    try:
        conn = get_connection(config.database_url)
    except Exception as exc:
        print(f"ERROR: Could not connect to database: {exc}")
        sys.exit(1)

    try:
        if args.apply_schema:
            apply_schema(conn)
            log.info("Schema applied.")
        results = recompute_totals(
            PostgresEmissionsStore(conn), user_id=args.user_id, dry_run=args.dry_run,
        )
        _print_results(results, args.dry_run)
    except Exception:
        conn.rollback()
        log.exception("Recompute failed – rolled back")
        sys.exit(1)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
