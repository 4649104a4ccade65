"""
duelstats CLI - Command Line Interface for head-to-head chess statistics

Provides commands for:
- Head-to-head summaries
- Session, opening and highlight tables
- Exporting results to JSON / CSV
- Generating a default configuration file
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from duelstats import __version__
from duelstats.analysis.openings import OPENING_SORT_KEYS, rank_openings
from duelstats.analysis.sessions import summarize_sessions
from duelstats.context import DuelContext
from duelstats.core.config import (
    DuelStatsConfig,
    generate_default_config,
    load_config,
    setup_logging,
)
from duelstats.core.constants import ALL, TERMINATION_LABELS, PlayerSlot
from duelstats.core.utils import format_duration, format_percentage, to_local_datetime
from duelstats.export import export_analysis

app = typer.Typer(
    name="duelstats",
    help="Head-to-head statistics for two players' chess game archive",
    add_completion=False,
)
console = Console()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

HIGHLIGHT_CATEGORIES = (
    "missed_mates",
    "big_swings",
    "high_blunders",
    "great_games",
    "chaotic_games",
)

HIGHLIGHT_TITLES = {
    "missed_mates": "Missed Mates",
    "big_swings": "Big Swings (highest combined ACPL)",
    "high_blunders": "Blunder Fests",
    "great_games": "Great Games (highest average accuracy)",
    "chaotic_games": "Chaotic Games (lowest average accuracy)",
}


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]duelstats[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable verbose output"
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (.yaml, .toml or .json)",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """duelstats - Head-to-head chess statistics"""
    config = load_config(config_file)
    setup_logging(config.logging)
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    ctx.obj = config


def _load_context(ctx: typer.Context, data_dir: Optional[Path]) -> DuelContext:
    """Build a DuelContext from the data directory or the configured one."""
    config: DuelStatsConfig = ctx.obj or DuelStatsConfig()
    directory = data_dir or Path(config.data.data_dir)
    if not directory.is_dir():
        console.print(f"[red]Error:[/red] data directory not found: {directory}")
        raise typer.Exit(1)

    duel = DuelContext.from_directory(directory, config)
    if duel.total_games == 0:
        console.print(f"[yellow]No games found in {directory}[/yellow]")
        raise typer.Exit(1)
    return duel


def _range_label(year: str, month: str, day: str) -> str:
    if year == ALL:
        return "all time"
    parts = [year]
    if month != ALL:
        parts.append(month)
        if day != ALL:
            parts.append(day)
    return "-".join(parts)


def _slot_name(duel: DuelContext, slot: str) -> str:
    if slot == PlayerSlot.PLAYER1.value:
        return duel.player1_name
    if slot == PlayerSlot.PLAYER2.value:
        return duel.player2_name
    return "Draw"


DataDirArgument = typer.Argument(
    None,
    help="Directory of YYYY-MM.json files (defaults to the configured data_dir)",
    file_okay=False,
)
YearOption = typer.Option(ALL, "--year", "-y", help="Year (YYYY) or 'all'")
MonthOption = typer.Option(ALL, "--month", "-m", help="Month (MM) or 'all'")
DayOption = typer.Option(ALL, "--day", "-d", help="Day of month (DD) or 'all'")


@app.command()
def summary(
    ctx: typer.Context,
    data_dir: Optional[Path] = DataDirArgument,
    year: str = YearOption,
    month: str = MonthOption,
    day: str = DayOption,
) -> None:
    """
    Show the head-to-head summary for a date range.
    """
    duel = _load_context(ctx, data_dir)
    stats = duel.stats(year, month, day)
    if stats is None:
        console.print(f"[yellow]No games in {_range_label(year, month, day)}[/yellow]")
        raise typer.Exit(1)

    p1, p2 = stats.player1, stats.player2
    console.print(
        f"\n[bold blue]{stats.player1_name}[/bold blue] vs "
        f"[bold magenta]{stats.player2_name}[/bold magenta] "
        f"- {stats.total_games} games {stats.date_range}\n"
    )

    table = Table(title="Head to Head")
    table.add_column("Metric", style="cyan")
    table.add_column(stats.player1_name, justify="right")
    table.add_column(stats.player2_name, justify="right")

    def fastest(player) -> str:
        return f"{player.fastest_win} plies" if player.fastest_win is not None else "-"

    rows = [
        ("Wins", str(p1.wins), str(p2.wins)),
        ("Draws", str(p1.draws), str(p2.draws)),
        ("Decisive games", str(p1.decisive_games), str(p2.decisive_games)),
        ("Win rate (decisive)", format_percentage(p1.win_rate), format_percentage(p2.win_rate)),
        ("Win rate as White", format_percentage(p1.white_win_rate), format_percentage(p2.white_win_rate)),
        ("Win rate as Black", format_percentage(p1.black_win_rate), format_percentage(p2.black_win_rate)),
        ("Best streak", str(p1.best_streak), str(p2.best_streak)),
        ("Current streak", str(p1.current_streak), str(p2.current_streak)),
        ("Avg accuracy", f"{p1.avg_accuracy}%", f"{p2.avg_accuracy}%"),
        ("Blunders", str(p1.blunders), str(p2.blunders)),
        ("Mistakes", str(p1.mistakes), str(p2.mistakes)),
        ("Inaccuracies", str(p1.inaccuracies), str(p2.inaccuracies)),
        ("Avg king moves", f"{p1.avg_king_walks:.2f}", f"{p2.avg_king_walks:.2f}"),
        ("Fastest win", fastest(p1), fastest(p2)),
        ("Avg time left on win", f"{p1.avg_time_remaining:.1f}s", f"{p2.avg_time_remaining:.1f}s"),
        ("Time-pressure wins", str(p1.time_pressure_wins), str(p2.time_pressure_wins)),
    ]
    for row in rows:
        table.add_row(*row)
    console.print(table)

    overview = Table(show_header=False)
    overview.add_column("Property", style="cyan")
    overview.add_column("Value", style="green")
    overview.add_row("Average game length", f"{stats.avg_game_length} plies")
    overview.add_row("Longest game", f"{stats.longest_game_length} plies ({stats.longest_game_id or '-'})")
    overview.add_row("Shortest game", f"{stats.shortest_game_length} plies ({stats.shortest_game_id or '-'})")
    overview.add_row("Most common opening", stats.most_common_opening)
    overview.add_row("Most common first move", stats.most_common_first_move)
    overview.add_row(
        "Most common ending",
        TERMINATION_LABELS.get(stats.most_common_termination, stats.most_common_termination),
    )
    console.print(overview)

    for name, cache in duel.cache_stats().items():
        logger.debug(f"{name} cache: {cache.to_dict()}")


@app.command()
def sessions(
    ctx: typer.Context,
    data_dir: Optional[Path] = DataDirArgument,
    year: str = YearOption,
    month: str = MonthOption,
    day: str = DayOption,
    max_gap: Optional[float] = typer.Option(
        None,
        "--max-gap",
        "-g",
        help="Largest gap in minutes between games of one session (capped at 120)"
    ),
    limit: int = typer.Option(20, "--limit", "-n", help="Show only the most recent N sessions"),
) -> None:
    """
    Cluster games into sessions and show them.
    """
    duel = _load_context(ctx, data_dir)
    found = duel.sessions(year, month, day, max_gap_minutes=max_gap)
    if not found:
        console.print(f"[yellow]No games in {_range_label(year, month, day)}[/yellow]")
        raise typer.Exit(1)

    table = Table(title=f"Sessions ({_range_label(year, month, day)})")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Start", style="cyan")
    table.add_column("Games", justify="right")
    table.add_column("Score", justify="center")
    table.add_column("Winner")
    table.add_column("Duration", justify="right")

    shown = list(enumerate(found, start=1))[-limit:]
    for number, session in reversed(shown):
        start = to_local_datetime(session.start_time, duel.tz).strftime("%Y-%m-%d %H:%M")
        table.add_row(
            str(number),
            start,
            str(session.total_games),
            f"{session.player1_score:g} - {session.player2_score:g}",
            _slot_name(duel, session.winner),
            format_duration(session.duration_minutes),
        )
    console.print(table)

    totals = summarize_sessions(found)
    console.print(
        Panel(
            f"Sessions: {totals.total_sessions}\n"
            f"{duel.player1_name}: {totals.player1_wins}  "
            f"{duel.player2_name}: {totals.player2_wins}  "
            f"Drawn: {totals.draws}\n"
            f"Avg games per session: {totals.avg_games_per_session}\n"
            f"Avg duration: {format_duration(totals.avg_duration)}",
            title="Session Summary",
            border_style="blue",
        )
    )


@app.command()
def openings(
    ctx: typer.Context,
    data_dir: Optional[Path] = DataDirArgument,
    year: str = YearOption,
    month: str = MonthOption,
    day: str = DayOption,
    sort: str = typer.Option(
        "games",
        "--sort",
        "-s",
        help=f"Sort column: {', '.join(OPENING_SORT_KEYS)}"
    ),
    limit: int = typer.Option(20, "--limit", "-n", help="Number of openings to show"),
) -> None:
    """
    Show head-to-head results per opening.
    """
    if sort not in OPENING_SORT_KEYS:
        console.print(f"[red]Error:[/red] unknown sort column '{sort}'")
        raise typer.Exit(1)

    duel = _load_context(ctx, data_dir)
    records = rank_openings(duel.openings(year, month, day), sort_by=sort, descending=sort != "name")
    if not records:
        console.print(f"[yellow]No games with opening data in {_range_label(year, month, day)}[/yellow]")
        raise typer.Exit(1)

    table = Table(title=f"Openings ({_range_label(year, month, day)})")
    table.add_column("Opening", style="cyan")
    table.add_column("Games", justify="right")
    table.add_column(f"{duel.player1_name} W", justify="right")
    table.add_column(f"{duel.player2_name} W", justify="right")
    table.add_column("Draws", justify="right")
    table.add_column(f"{duel.player1_name} %", justify="right")
    table.add_column(f"{duel.player2_name} %", justify="right")

    for record in records[:limit]:
        table.add_row(
            record.name,
            str(record.games),
            str(record.player1_wins),
            str(record.player2_wins),
            str(record.draws),
            format_percentage(record.player1_win_rate),
            format_percentage(record.player2_win_rate),
        )
    console.print(table)


@app.command()
def highlights(
    ctx: typer.Context,
    data_dir: Optional[Path] = DataDirArgument,
    year: str = YearOption,
    month: str = MonthOption,
    day: str = DayOption,
    category: str = typer.Option(
        "all",
        "--category",
        "-k",
        help=f"One of: all, {', '.join(HIGHLIGHT_CATEGORIES)}"
    ),
) -> None:
    """
    Show the most interesting analysed games.
    """
    if category != "all" and category not in HIGHLIGHT_CATEGORIES:
        console.print(f"[red]Error:[/red] unknown category '{category}'")
        raise typer.Exit(1)

    duel = _load_context(ctx, data_dir)
    result = duel.highlights(year, month, day)
    if result.is_empty():
        console.print("[yellow]No analysed games in the selected range[/yellow]")
        raise typer.Exit(1)

    categories = HIGHLIGHT_CATEGORIES if category == "all" else (category,)
    for name in categories:
        if name == "missed_mates":
            _display_missed_mates(result.missed_mates)
        else:
            _display_metrics(HIGHLIGHT_TITLES[name], getattr(result, name))


def _display_missed_mates(entries) -> None:
    """Display missed-mate table."""
    if not entries:
        console.print("[yellow]No missed mates[/yellow]\n")
        return

    table = Table(title=HIGHLIGHT_TITLES["missed_mates"])
    table.add_column("Game", style="cyan")
    table.add_column("Missed by")
    table.add_column("Mate in", justify="right")
    table.add_column("White")
    table.add_column("Black")
    for entry in entries:
        table.add_row(
            entry.game.id,
            entry.missed_by_name,
            str(entry.mate_in),
            entry.game.white.name,
            entry.game.black.name,
        )
    console.print(table)
    console.print()


def _display_metrics(title: str, entries) -> None:
    """Display a ranked game-metrics table."""
    table = Table(title=title)
    table.add_column("Game", style="cyan")
    table.add_column("White")
    table.add_column("Black")
    table.add_column("ACPL", justify="right")
    table.add_column("Blunders", justify="right")
    table.add_column("Avg accuracy", justify="right")
    for entry in entries:
        table.add_row(
            entry.game.id,
            entry.game.white.name,
            entry.game.black.name,
            str(entry.total_acpl),
            str(entry.total_blunders),
            format_percentage(entry.avg_accuracy),
        )
    console.print(table)
    console.print()


@app.command()
def export(
    ctx: typer.Context,
    data_dir: Optional[Path] = DataDirArgument,
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        help="Output file (format detected from extension: .json, .csv)"
    ),
    year: str = YearOption,
    month: str = MonthOption,
    day: str = DayOption,
) -> None:
    """
    Export statistics for a date range.
    """
    duel = _load_context(ctx, data_dir)
    try:
        export_analysis(duel, output, year=year, month=month, day=day)
    except ValueError as e:
        console.print(f"[red]Export failed:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"\n[green]Results exported to:[/green] {output}")


@app.command("init-config")
def init_config(
    path: Path = typer.Argument(
        Path("duelstats.yaml"),
        help="Where to write the configuration file (.yaml, .toml or .json)",
        dir_okay=False,
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """
    Write a default configuration file.
    """
    if path.exists() and not force:
        console.print(f"[red]Error:[/red] {path} already exists (use --force to overwrite)")
        raise typer.Exit(1)

    try:
        generate_default_config(path)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]Config written to:[/green] {path}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
