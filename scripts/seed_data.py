"""
Schema bootstrap and demo seeding script for Kisan Sync.

Applies `db/init.sql` (tables + change-notification triggers) and loads
deterministic pseudo-random market prices through Postgres COPY, plus a few
forum posts so the community screen has live rows.
"""

from __future__ import annotations

import random
import sys
import time
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Iterator, Tuple

import psycopg
import typer

from src.infrastructure.db_factory import build_dsn, get_sync_connection
from src.screens.forum import mock_posts
from src.utils.logging import configure_from_settings

app = typer.Typer(help="Create the Kisan Sync schema and seed demo data.")

SCHEMA_PATH = Path(__file__).resolve().parent.parent / "db" / "init.sql"

MARKETS = {
    "Maharashtra": (("Pune", "Gultekdi APMC"), ("Nashik", "Lasalgaon APMC"), ("Nagpur", "Kalamna APMC")),
    "Punjab": (("Ludhiana", "Ludhiana Mandi"), ("Amritsar", "Amritsar Mandi"), ("Bathinda", "Bathinda Mandi")),
    "Karnataka": (("Bengaluru", "Yeshwanthpur APMC"), ("Mysuru", "Bandipalya APMC"), ("Hubballi", "Amargol APMC")),
}
# Modal price band (Rs/Quintal) per crop.
CROPS = {"Rice": (1900, 3200), "Wheat": (2000, 2700), "Cotton": (6000, 7600)}


def _market_rows(rows: int, seed: int) -> Iterator[Tuple]:
    rng = random.Random(seed)
    now = datetime.now(UTC)
    states = sorted(MARKETS)
    for index in range(rows):
        state = rng.choice(states)
        district, market = rng.choice(MARKETS[state])
        crop = rng.choice(sorted(CROPS))
        low, high = CROPS[crop]
        modal = round(rng.uniform(low, high), 2)
        spread = round(modal * rng.uniform(0.03, 0.12), 2)
        created = now - timedelta(minutes=index)
        yield (crop, state, district, market, modal - spread, modal + spread, modal, "Quintal", created, created)


def _apply_schema(conn: psycopg.Connection) -> None:
    conn.execute(SCHEMA_PATH.read_text(encoding="utf-8"))
    conn.commit()


def _copy_market_prices(conn: psycopg.Connection, rows: int, seed: int) -> int:
    with conn.cursor() as cur:
        with cur.copy(
            """
            COPY public.market_prices
                (crop_name, state, district, market_name, min_price, max_price, modal_price,
                 price_unit, created_at, updated_at)
            FROM STDIN
            """
        ) as copy:
            for row in _market_rows(rows, seed):
                copy.write_row(row)
    conn.commit()
    return rows


def _insert_forum_posts(conn: psycopg.Connection) -> int:
    posts = mock_posts()
    with conn.cursor() as cur:
        cur.executemany(
            """
            INSERT INTO public.community_posts (title, content, topic, user_id, likes, created_at)
            VALUES (%s, %s, %s, %s, %s, %s)
            """,
            [(p.title, p.content, p.topic, p.user_id, p.likes, p.created_at) for p in posts],
        )
    conn.commit()
    return len(posts)


@app.command()
def main(
    market_rows: int = typer.Option(
        500,
        "--market-rows",
        "-r",
        help="Number of market price rows to generate.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override for Postgres.",
    ),
    schema_only: bool = typer.Option(
        False,
        "--schema-only",
        help="Only create tables and triggers; skip seeding.",
    ),
    with_posts: bool = typer.Option(
        True,
        "--with-posts/--without-posts",
        help="Also insert sample forum posts.",
    ),
) -> None:
    """
    Apply the schema and optionally seed demo rows.
    """
    configure_from_settings()
    start = time.perf_counter()
    with get_sync_connection(dsn or build_dsn()) as conn:
        typer.echo(f"Applying schema from {SCHEMA_PATH}")
        _apply_schema(conn)
        if schema_only:
            typer.echo("Schema applied (schema-only flag set).")
            return

        typer.echo(f"Loading {market_rows:,} market prices via COPY (seed={seed})...")
        _copy_market_prices(conn, market_rows, seed)
        if with_posts:
            typer.echo(f"Inserted {_insert_forum_posts(conn)} forum posts.")

    typer.echo(f"Seeding completed in {time.perf_counter() - start:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
