#!/usr/bin/env python3
"""Rating maintenance CLI: process, remove, balance, rebuild and inspect."""

from __future__ import annotations

import json
import logging
import random
import sys
from pathlib import Path
from typing import Annotated, Any

import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from db import DEFAULT_DB_URL, create_db_engine, create_session_factory, session_scope
from domain.analysis import MatchNotFoundError, analyze_match, player_history
from domain.balancing import TeamBalancer
from domain.common import GameMode, MatchResult, matches_from_payloads
from domain.pipeline import MatchProcessor, ProcessStatus, rebuild_history
from domain.protocol import BalancePolicy
from domain.ratings.calculator import RatingEngine
from domain.ratings.config import RatingSystemConfig, load_rating_system_config
from repositories import SqlRatingStore, ensure_schema

DEFAULT_CONFIG_FILE = ROOT_DIR / "configs" / "ratings" / "default.toml"

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Rating maintenance commands.",
)

DbUrlOption = Annotated[
    str,
    typer.Option("--db-url", help="Database URL. Defaults to a local SQLite file."),
]
ConfigFileOption = Annotated[
    Path,
    typer.Option("--config-file", help="Rating system TOML file."),
]
LegacyFileOption = Annotated[
    Path | None,
    typer.Option("--legacy-file", help="Optional JSON list of player ids that start at the legacy rating."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Log at DEBUG level."),
]


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _load_config(config_file: Path) -> RatingSystemConfig:
    try:
        return load_rating_system_config(config_file)
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config-file") from exc


def _load_json(path: Path, param_hint: str) -> Any:
    if not path.exists():
        raise typer.BadParameter(f"File not found: {path}", param_hint=param_hint)
    with path.open("r", encoding="utf-8") as file:
        return json.load(file)


def _load_matches(matches_file: Path) -> list[MatchResult]:
    try:
        return matches_from_payloads(_load_json(matches_file, "MATCHES_FILE"))
    except (KeyError, TypeError, ValueError) as exc:
        raise typer.BadParameter(f"{matches_file}: {exc}", param_hint="MATCHES_FILE") from exc


def _load_names(names_file: Path | None) -> dict[str, str]:
    if names_file is None:
        return {}
    raw = _load_json(names_file, "--names-file")
    return {str(player_id): str(name) for player_id, name in raw.items()}


def _load_legacy(legacy_file: Path | None) -> list[str]:
    if legacy_file is None:
        return []
    return [str(player_id) for player_id in _load_json(legacy_file, "--legacy-file")]


def _session_factory(db_url: str):
    engine = create_db_engine(db_url)
    ensure_schema(engine)
    return create_session_factory(engine)


@app.command()
def process(
    matches_file: Annotated[
        Path,
        typer.Argument(help="JSON file of match payloads (list, or object keyed by match id)."),
    ],
    names_file: Annotated[
        Path | None,
        typer.Option("--names-file", help="Optional JSON object of player id -> display name."),
    ] = None,
    legacy_file: LegacyFileOption = None,
    config_file: ConfigFileOption = DEFAULT_CONFIG_FILE,
    db_url: DbUrlOption = DEFAULT_DB_URL,
    verbose: VerboseOption = False,
) -> None:
    """Apply new matches in timestamp order."""
    configure_logging(verbose)
    config = _load_config(config_file)
    matches = _load_matches(matches_file)
    names = _load_names(names_file)

    counts = {status: 0 for status in ProcessStatus}
    with session_scope(_session_factory(db_url)) as session:
        processor = MatchProcessor(
            SqlRatingStore(session),
            config,
            legacy_player_ids=_load_legacy(legacy_file),
        )
        for match in matches:
            outcome = processor.process(match, names)
            counts[outcome.status] += 1
            suffix = f" reason={outcome.reason}" if outcome.reason else ""
            typer.echo(f"match_id={outcome.match_id} status={outcome.status.value}{suffix}")

    typer.echo(" ".join(f"{status.value}={count}" for status, count in counts.items()))


@app.command()
def recent(
    config_file: ConfigFileOption = DEFAULT_CONFIG_FILE,
    db_url: DbUrlOption = DEFAULT_DB_URL,
) -> None:
    """List the recent-match window, newest first."""
    config = _load_config(config_file)
    with session_scope(_session_factory(db_url)) as session:
        window = MatchProcessor(SqlRatingStore(session), config).ledger.recent_matches()

    if not window:
        typer.echo("no recent matches")
        return
    for index, match in enumerate(window, start=1):
        typer.echo(
            f"{index}. match_id={match.match_id} mode={match.mode.value} "
            f"unix_time={match.timestamp} players={len(match.deltas)}"
        )


@app.command("remove-recent")
def remove_recent(
    index: Annotated[int, typer.Argument(help="1 = most recent match.")],
    blacklist: Annotated[
        bool,
        typer.Option("--blacklist/--no-blacklist", help="Also refuse future resubmission of the match."),
    ] = False,
    config_file: ConfigFileOption = DEFAULT_CONFIG_FILE,
    db_url: DbUrlOption = DEFAULT_DB_URL,
    verbose: VerboseOption = False,
) -> None:
    """Remove one recent match and replay the newer ones with their recorded deltas."""
    configure_logging(verbose)
    config = _load_config(config_file)

    with session_scope(_session_factory(db_url)) as session:
        ledger = MatchProcessor(SqlRatingStore(session), config).ledger
        summary = ledger.remove_recent(index)
        if summary is not None and blacklist:
            ledger.blacklist(summary.target_id)

    if summary is None:
        typer.echo(f"index {index} is outside the recent window; nothing removed")
        raise typer.Exit(code=1)

    typer.echo(
        f"removed match_id={summary.target_id} "
        f"replayed={','.join(summary.replayed_ids) or '-'} "
        f"restored_pairs={len(summary.restored_ratings)} "
        f"blacklisted={blacklist}"
    )


@app.command("blacklist")
def blacklist_match(
    match_id: Annotated[str, typer.Argument(help="Match id to refuse from now on.")],
    db_url: DbUrlOption = DEFAULT_DB_URL,
) -> None:
    """Blacklist a match id."""
    with session_scope(_session_factory(db_url)) as session:
        SqlRatingStore(session).blacklist_match(match_id)
    typer.echo(f"blacklisted match_id={match_id}")


@app.command()
def balance(
    players: Annotated[
        list[str],
        typer.Option("--player", "-p", help="Player id; repeat for every lobby member."),
    ],
    policy: Annotated[
        BalancePolicy,
        typer.Option("--policy", help="Rating used for balancing."),
    ] = BalancePolicy.WEIGHTED,
    mode: Annotated[
        GameMode,
        typer.Option("--mode", help="Mode rating used by the 'mode' policy."),
    ] = GameMode.MEGA,
    seed: Annotated[
        int | None,
        typer.Option("--seed", help="Optional random seed for reproducible splits."),
    ] = None,
    config_file: ConfigFileOption = DEFAULT_CONFIG_FILE,
    db_url: DbUrlOption = DEFAULT_DB_URL,
) -> None:
    """Split a lobby into two balanced teams."""
    config = _load_config(config_file)
    if len(players) < 2:
        raise typer.BadParameter("at least two --player values are required", param_hint="--player")

    with session_scope(_session_factory(db_url)) as session:
        registry = MatchProcessor(SqlRatingStore(session), config).registry
        lobby = [registry.lookup(player_id) for player_id in players]

    balancer = TeamBalancer(config.balancer, random.Random(seed))
    result = balancer.balance(lobby, policy=policy, mode=mode)

    typer.echo(
        f"policy={policy.value} attempts={result.attempts} "
        f"difference={result.difference:.1f} within_threshold={result.within_threshold}"
    )
    for label, team, total, average in (
        ("A", result.team_a, result.total_a, result.average_a),
        ("B", result.team_b, result.total_b, result.average_b),
    ):
        typer.echo(f"team {label}: total={total:.1f} average={average:.1f}")
        for player in team:
            typer.echo(f"  {player.name} ({player.player_id})")


@app.command()
def rebuild(
    matches_file: Annotated[
        Path,
        typer.Argument(help="JSON file with the full match history."),
    ],
    names_file: Annotated[
        Path | None,
        typer.Option("--names-file", help="Optional JSON object of player id -> display name."),
    ] = None,
    legacy_file: LegacyFileOption = None,
    passes: Annotated[
        int,
        typer.Option("--passes", help="Total passes over the history; only the last is recorded."),
    ] = 1,
    seed_mega: Annotated[
        bool,
        typer.Option("--seed-mega/--no-seed-mega", help="Start mega ratings from standard-mode ratings."),
    ] = False,
    config_file: ConfigFileOption = DEFAULT_CONFIG_FILE,
    db_url: DbUrlOption = DEFAULT_DB_URL,
    verbose: VerboseOption = False,
) -> None:
    """Reset all ratings and rebuild them from a full match history."""
    if passes <= 0:
        raise typer.BadParameter("--passes must be greater than 0")
    configure_logging(verbose)
    config = _load_config(config_file)
    matches = _load_matches(matches_file)

    typer.echo(f"loaded_matches={len(matches)} config={config_file.name} system={config.name}")
    with session_scope(_session_factory(db_url)) as session:
        processor = MatchProcessor(
            SqlRatingStore(session),
            config,
            legacy_player_ids=_load_legacy(legacy_file),
        )
        rebuild_history(
            matches,
            processor=processor,
            names=_load_names(names_file),
            passes=passes,
            seed_mega_from_standard=seed_mega,
            echo=typer.echo,
        )


@app.command()
def analyze(
    match_id: Annotated[str, typer.Argument(help="Stored match id to break down.")],
    config_file: ConfigFileOption = DEFAULT_CONFIG_FILE,
    db_url: DbUrlOption = DEFAULT_DB_URL,
) -> None:
    """Show how a stored match moved every participant's rating."""
    config = _load_config(config_file)
    with session_scope(_session_factory(db_url)) as session:
        store = SqlRatingStore(session)
        try:
            analysis = analyze_match(store, RatingEngine(config.rating), match_id)
        except MatchNotFoundError as exc:
            raise typer.BadParameter(str(exc), param_hint="MATCH_ID") from exc
        names = {player.player_id: player.name for player in store.players()}

    match = analysis.match
    result = "tie" if match.is_tie else f"winner={match.winner}"
    typer.echo(
        f"match_id={match.match_id} mode={match.mode.value} k_factor={analysis.k_factor:g} "
        f"{result} ratings_from={'history' if analysis.from_history else 'current'}"
    )

    typer.echo("teams:")
    for team in analysis.teams:
        typer.echo(f"  {team.team} [{team.outcome}] average={team.average_rating:.2f}")

    typer.echo("expected scores:")
    for matchup in analysis.matchups:
        typer.echo(
            f"  {matchup.team} vs {matchup.opponent}: "
            f"difference={matchup.rating_difference:+.2f} expected={matchup.expected_score:.4f}"
        )

    typer.echo("players:")
    for row in analysis.players:
        stats = row.stats
        stat_line = (
            f"k={stats.kills} d={stats.deaths} beds={stats.bed_breaks} finals={stats.final_kills}"
            if stats is not None
            else "no stats"
        )
        recorded = f" recorded={row.recorded_delta:+.2f}" if row.recorded_delta is not None else ""
        typer.echo(
            f"  {names.get(row.player_id, row.player_id)} ({row.team}) {stat_line} "
            f"raw={row.raw_performance:.3f} normalized={row.performance_score:.3f} "
            f"{row.previous_rating:.2f} -> {row.new_rating:.2f} delta={row.delta:+.2f}{recorded}"
        )

    typer.echo(f"zero_sum_total={analysis.zero_sum_total:+.6f} zero_sum={analysis.is_zero_sum}")


@app.command()
def history(
    player_id: Annotated[str, typer.Argument(help="Player id.")],
    mode: Annotated[
        GameMode | None,
        typer.Option("--mode", help="Only show one mode."),
    ] = None,
    summary_only: Annotated[
        bool,
        typer.Option("--summary-only", help="Skip the per-match lines."),
    ] = False,
    db_url: DbUrlOption = DEFAULT_DB_URL,
) -> None:
    """Print one player's rating history and per-mode summary."""
    with session_scope(_session_factory(db_url)) as session:
        store = SqlRatingStore(session)
        player = store.get_player(player_id)
        entries, summaries = player_history(store, player_id, mode)

    if not entries:
        typer.echo(f"no history for player_id={player_id}")
        raise typer.Exit(code=1)

    typer.echo(f"history for {player.name if player is not None else player_id} ({player_id})")
    if not summary_only:
        for entry in entries:
            result = "tie" if entry.is_tie else ("win" if entry.won else "loss")
            typer.echo(
                f"  unix_time={entry.timestamp} match_id={entry.match_id} mode={entry.mode.value} "
                f"{result} {entry.previous_rating:.2f} -> {entry.new_rating:.2f} ({entry.delta:+.2f})"
            )

    for summary in summaries:
        typer.echo(
            f"{summary.mode.display_name}: matches={summary.matches} "
            f"W={summary.wins} L={summary.losses} T={summary.ties} "
            f"win_rate={summary.win_rate:.1%} start={summary.starting_rating:.2f} "
            f"current={summary.current_rating:.2f} change={summary.total_change:+.2f} "
            f"peak={summary.peak_rating:.2f} lowest={summary.lowest_rating:.2f}"
        )


@app.command("check-history")
def check_history(
    config_file: ConfigFileOption = DEFAULT_CONFIG_FILE,
    db_url: DbUrlOption = DEFAULT_DB_URL,
) -> None:
    """Report rating history entries that break continuity."""
    config = _load_config(config_file)
    with session_scope(_session_factory(db_url)) as session:
        violations = MatchProcessor(SqlRatingStore(session), config).ledger.continuity_violations()

    if not violations:
        typer.echo("history is continuous")
        return
    for violation in violations:
        typer.echo(
            f"player_id={violation.player_id} mode={violation.mode.value} "
            f"{violation.earlier_match_id} new={violation.earlier_new_rating:.4f} != "
            f"{violation.later_match_id} previous={violation.later_previous_rating:.4f}"
        )
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
