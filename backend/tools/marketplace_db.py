"""Command line tooling for the marketplace database.

Why:
    Local development and fresh environments need the schema, a handful of
    demo users and participants, and (since login is handled by an external identity
    subsystem) a way to mint a session for manual testing.

Usage:
    python -m backend.tools.marketplace_db init-schema --db-dsn postgresql://...
    python -m backend.tools.marketplace_db seed-demo
    python -m backend.tools.marketplace_db create-session --role admin --sub ops-1
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Sequence, Tuple

import click
import psycopg
from psycopg_pool import ConnectionPool

from backend.identity_access.domain import ALLOWED_ROLES
from backend.identity_access.stores_db import DBSessionStore

SCHEMA_PATH = Path(__file__).resolve().parents[1] / "marketplace" / "schema.sql"

# (id, email, name, role)
DEMO_USERS: Sequence[Tuple[str, str, str, str]] = (
    ("demo-user-admin", "admin@phenofarm.example", "Admin User", "admin"),
    ("demo-user-grower-1", "grower@greenvalley.example", "John Green", "grower"),
    ("demo-user-grower-2", "ops@emeraldcanopy.example", "Maya Reyes", "grower"),
    ("demo-user-dispensary-1", "buyer@harborwellness.example", "Jane Harbor", "dispensary"),
)
# (id, business_name, license_number, address, city, state, is_verified, user_id)
DEMO_GROWERS: Sequence[Tuple[str, str, str, str, str, str, bool, str | None]] = (
    ("demo-grower-1", "Green Valley Farms", "CCL21-0000101", "12 Orchard Rd", "Salinas", "CA", True, "demo-user-grower-1"),
    ("demo-grower-2", "Emerald Canopy", "CCL21-0000102", "400 River St", "Eureka", "CA", False, "demo-user-grower-2"),
    ("demo-grower-3", "High Desert Botanicals", "OR-G-55812", "9 Mesa Way", "Bend", "OR", False, None),
)
DEMO_DISPENSARIES: Sequence[Tuple[str, str, str, str, str, str, bool, str | None]] = (
    ("demo-dispensary-1", "Harbor Wellness", "C10-0000301", "1 Pier Ave", "San Diego", "CA", True, "demo-user-dispensary-1"),
    ("demo-dispensary-2", "Rose City Remedies", "OR-R-11290", "77 Burnside St", "Portland", "OR", False, None),
)


def _resolve_dsn(db_dsn: str | None) -> str:
    dsn = (db_dsn or os.getenv("DATABASE_URL") or "").strip()
    if not dsn:
        click.echo("No DSN: pass --db-dsn or set DATABASE_URL.", err=True)
        raise click.Abort()
    return dsn


def _insert_demo(cur, table: str, rows: Sequence[Tuple]) -> None:
    cur.executemany(
        f"""
        insert into {table}
            (id, business_name, license_number, address, city, state, is_verified, user_id)
        values (%s, %s, %s, %s, %s, %s, %s, %s)
        on conflict (id) do nothing
        """,
        rows,
    )


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
def cli() -> None:
    """Marketplace database tooling."""


@cli.command("init-schema")
@click.option("--db-dsn", required=False, help="DSN for the marketplace database (default: DATABASE_URL).")
def init_schema(db_dsn: str | None) -> None:
    """Apply schema.sql (idempotent)."""
    dsn = _resolve_dsn(db_dsn)
    sql = SCHEMA_PATH.read_text(encoding="utf-8")
    try:
        with psycopg.connect(dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(sql)
    except psycopg.Error as exc:
        click.echo(f"Schema apply failed: {exc.__class__.__name__}", err=True)
        raise click.Abort() from exc
    click.echo("Schema applied.")


@cli.command("seed-demo")
@click.option("--db-dsn", required=False, help="DSN for the marketplace database (default: DATABASE_URL).")
def seed_demo(db_dsn: str | None) -> None:
    """Insert demo users, growers and dispensaries; existing ids are left untouched."""
    dsn = _resolve_dsn(db_dsn)
    try:
        with psycopg.connect(dsn) as conn:
            with conn.cursor() as cur:
                cur.executemany(
                    """
                    insert into public.users (id, email, name, role)
                    values (%s, %s, %s, %s)
                    on conflict (id) do nothing
                    """,
                    DEMO_USERS,
                )
                _insert_demo(cur, "public.growers", DEMO_GROWERS)
                _insert_demo(cur, "public.dispensaries", DEMO_DISPENSARIES)
    except psycopg.Error as exc:
        click.echo(f"Seeding failed: {exc.__class__.__name__}", err=True)
        raise click.Abort() from exc
    click.echo(
        f"Seeded {len(DEMO_USERS)} users, {len(DEMO_GROWERS)} growers and {len(DEMO_DISPENSARIES)} dispensaries."
    )


@cli.command("create-session")
@click.option("--db-dsn", required=False, help="DSN for the marketplace database (default: DATABASE_URL).")
@click.option("--role", type=click.Choice(sorted(ALLOWED_ROLES)), required=True)
@click.option("--sub", required=True, help="Subject (user id) of the principal.")
@click.option("--name", default="", help="Display name.")
@click.option("--grower-id", default=None)
@click.option("--dispensary-id", default=None)
@click.option("--ttl", "ttl_seconds", type=int, default=3600, show_default=True)
def create_session(
    db_dsn: str | None,
    role: str,
    sub: str,
    name: str,
    grower_id: str | None,
    dispensary_id: str | None,
    ttl_seconds: int,
) -> None:
    """Create a DB-backed session and print its id (set it as the phenofarm_session cookie)."""
    dsn = _resolve_dsn(db_dsn)
    with ConnectionPool(conninfo=dsn, min_size=1, max_size=1, open=True) as pool:
        store = DBSessionStore(pool=pool)
        rec = store.create(
            sub=sub,
            role=role,
            name=name,
            grower_id=grower_id,
            dispensary_id=dispensary_id,
            ttl_seconds=ttl_seconds,
        )
    click.echo(rec.session_id)


if __name__ == "__main__":  # pragma: no cover
    cli()
