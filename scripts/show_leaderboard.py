#!/usr/bin/env python3
"""Show the top players for one mode or by global rating."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from db import DEFAULT_DB_URL, create_db_engine, create_session_factory
from domain.common import GameMode
from domain.pipeline import leaderboard
from repositories import SqlRatingStore, ensure_schema

app = typer.Typer(
    add_completion=False,
    help="Query the player leaderboard.",
)


@app.command()
def show_leaderboard(
    mode: Annotated[
        GameMode | None,
        typer.Option("--mode", help="Mode to rank by. Omit for the global rating."),
    ] = None,
    top_n: Annotated[
        int,
        typer.Option("--top-n", help="Number of players to return. Use 0 for everyone."),
    ] = 20,
    db_url: Annotated[
        str,
        typer.Option("--db-url", help="Database URL. Defaults to a local SQLite file."),
    ] = DEFAULT_DB_URL,
) -> None:
    """Print players with at least one game, best rating first."""
    if top_n < 0:
        raise typer.BadParameter("--top-n must be >= 0")

    engine = create_db_engine(db_url)
    ensure_schema(engine)
    session_factory = create_session_factory(engine)

    with session_factory() as session:
        rows = leaderboard(SqlRatingStore(session), mode=mode, limit=top_n)

    label = "global" if mode is None else mode.value
    if not rows:
        typer.echo(f"No rated players for {label}.")
        return

    typer.echo(f"leaderboard={label} top_n={top_n}")
    for row in rows:
        typer.echo(
            f"{row.rank:3d}. {row.name:<20} "
            f"rating={row.rating:8.2f} games={row.games_played:4d}"
        )


if __name__ == "__main__":
    app()
