#!/usr/bin/env python3
"""
Recovery CLI.

Daily recovery scoring from an Apple Health export.

Usage:
    recovery score export.xml                 # Score today
    recovery score export.xml --date 2024-03-01 --tz Europe/Madrid
    recovery history --days 14                # Stored score snapshots
    recovery ledger                           # Workouts counted into training load
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime, timedelta
from typing import List, Optional

from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .apple_health import load_apple_health_export
from .config import Settings, get_settings
from .dates import local_day, parse_day, resolve_timezone
from .db.database import Database
from .descriptions import describe_sleep_stages
from .exceptions import RecoveryEngineError
from .ledger import SQLiteActivityLedger
from .models import DeltaDirection
from .pipeline import ScoringContext, ScoringResult, run_scoring_pass
from .recommendations import RecommendationType, classify_readiness

console = Console()


def get_score_color(score: Optional[int]) -> str:
    """Get rich color for a 0-100 score."""
    if score is None:
        return "dim"
    return classify_readiness(score).color


def format_score(score: Optional[int]) -> str:
    if score is None:
        return "[dim]-[/dim]"
    color = get_score_color(score)
    return f"[{color}]{score}[/{color}]"


def format_delta(delta: float, direction: DeltaDirection) -> str:
    colors = {
        DeltaDirection.POSITIVE: "green",
        DeltaDirection.NEGATIVE: "red",
        DeltaDirection.NEUTRAL: "white",
    }
    color = colors[direction]
    return f"[{color}]{delta:+.1f}[/{color}]"


def setup_logging(verbose: bool, level: str) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _open_db(args, settings: Settings) -> Database:
    return Database(str(args.db or settings.db_path))


def render_result(result: ScoringResult, details: bool = False) -> None:
    """Print a scoring pass. With ``details``, explain each metric."""
    score = result.score
    color = get_score_color(score.overall_score)

    status_text = f"""
[cyan]Date:[/cyan]          {score.date} ({score.time_of_day.value})
[cyan]Recovery:[/cyan]      [{color}]{score.overall_score}[/{color}] / 100
[cyan]Readiness:[/cyan]     {result.readiness.description}
[cyan]Cool-down:[/cyan]     {result.cooldown.describe()}
"""
    console.print()
    console.print(Panel(status_text, title="Recovery Score", box=box.ROUNDED))

    table = Table(title="Metrics", box=box.ROUNDED)
    table.add_column("Metric", style="cyan")
    table.add_column("Today", justify="right")
    table.add_column("Baseline", justify="right")
    table.add_column("Delta", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Weight", justify="right")

    for metric in score.metric_scores:
        unit = metric.metric_type.profile.unit
        baseline = f"{metric.baseline_value:.1f}" if metric.baseline_value is not None else "-"
        weight = score.applied_weights.get(metric.metric_type.value)
        table.add_row(
            metric.title,
            f"{metric.current_value:.1f} {unit}",
            baseline,
            format_delta(metric.delta_from_average, metric.direction),
            format_score(metric.score),
            f"{weight:.0%}" if weight is not None else "-",
        )
    if score.stress_score is not None:
        weight = score.applied_weights.get("stress")
        table.add_row(
            "Stress",
            "-",
            "-",
            "-",
            format_score(score.stress_score),
            f"{weight:.0%}" if weight is not None else "-",
        )
    console.print(table)

    if details:
        for metric in score.metric_scores:
            console.print(f"[cyan]{metric.title}:[/cyan] {metric.description}")

    if result.sleep:
        sleep = result.sleep
        console.print(
            f"Sleep: {sleep.sleep_hours:.1f}h, quality {sleep.quality_score:.0f} "
            f"(deep {sleep.stages.deep_pct:.0f}%, REM {sleep.stages.rem_pct:.0f}%, "
            f"core {sleep.stages.core_pct:.0f}%)"
        )
        if details:
            console.print(describe_sleep_stages(sleep.stages))

    if result.activities:
        console.print(
            f"Activities in window: {len(result.activities)}, "
            f"newly counted: {len(result.newly_counted)}"
        )

    if result.missing:
        console.print(f"[yellow]Missing data: {', '.join(result.missing)}[/yellow]")

    if result.recommendations:
        console.print()
        colors = {
            RecommendationType.POSITIVE: "green",
            RecommendationType.NEUTRAL: "yellow",
            RecommendationType.NEEDS_ATTENTION: "red",
        }
        for rec in result.recommendations:
            rec_color = colors[rec.type]
            console.print(f"[{rec_color}]{rec.title}[/{rec_color}]: {rec.description}")

    if result.activity_recommendations:
        activities = Table(title="Suggested Activities", box=box.ROUNDED)
        activities.add_column("Activity", style="cyan")
        activities.add_column("Intensity")
        activities.add_column("Minutes", justify="right")
        for suggestion in result.activity_recommendations:
            activities.add_row(
                suggestion.title,
                suggestion.intensity.value,
                str(suggestion.duration_minutes),
            )
        console.print()
        console.print(activities)

    if details and result.training_volumes:
        volumes = Table(title="Training Volume", box=box.ROUNDED)
        volumes.add_column("Date", style="cyan")
        volumes.add_column("Minutes", justify="right")
        volumes.add_column("Avg Intensity", justify="right")
        volumes.add_column("Activities", justify="right")
        for volume in result.training_volumes:
            volumes.add_row(
                str(volume.date),
                f"{volume.total_duration_minutes:.0f}",
                f"{volume.average_intensity:.1f}",
                str(volume.activity_count),
            )
        console.print(volumes)
    console.print()


def cmd_score(args, settings: Settings):
    """Score a day from an Apple Health export."""
    tz = resolve_timezone(args.tz or settings.timezone)
    export = load_apple_health_export(args.export)
    if export.is_empty:
        console.print("[yellow]No heart rate, HRV, sleep or workout data found in the export.[/yellow]")

    db = _open_db(args, settings)
    context = ScoringContext(
        source=export.to_source(tz),
        ledger=SQLiteActivityLedger(db),
        settings=settings,
        tz=tz,
        history=db,
    )
    target_day = parse_day(args.date) if args.date else None
    result = asyncio.run(run_scoring_pass(context, target_day))

    if args.json:
        console.print_json(json.dumps(result.to_dict()))
    else:
        render_result(result, details=args.details)


def cmd_history(args, settings: Settings):
    """Show stored recovery score snapshots."""
    db = _open_db(args, settings)
    tz = resolve_timezone(settings.timezone)
    end = local_day(datetime.now(tz), tz)
    start = end - timedelta(days=args.days - 1)
    scores = db.get_scores(start=start, end=end)

    console.print()
    if not scores:
        console.print("No recovery scores stored yet.")
        console.print()
        console.print("To get started:")
        console.print("  recovery score export.xml")
        console.print()
        return

    table = Table(title="Recovery History", box=box.ROUNDED)
    table.add_column("Date", style="cyan")
    table.add_column("Time")
    table.add_column("Overall", justify="right")
    table.add_column("HR", justify="right")
    table.add_column("HRV", justify="right")
    table.add_column("Sleep", justify="right")
    table.add_column("Load", justify="right")
    table.add_column("Stress", justify="right")
    table.add_column("Cool-down", justify="right")

    for score in scores:
        table.add_row(
            score.date.isoformat(),
            score.time_of_day.value,
            format_score(score.overall_score),
            format_score(score.heart_rate_score),
            format_score(score.hrv_score),
            format_score(score.sleep_score),
            format_score(score.training_load_score),
            format_score(score.stress_score),
            f"{score.cooldown_adjustment}%",
        )
    console.print(table)
    console.print()


def cmd_ledger(args, settings: Settings):
    """Show workouts counted into training load."""
    db = _open_db(args, settings)
    ledger = SQLiteActivityLedger(db)
    entries = ledger.entries()
    stats = db.get_stats()

    console.print()
    console.print(Panel("[bold]Activity Ledger[/bold]"))

    table = Table(box=box.ROUNDED)
    table.add_column("Date", style="cyan")
    table.add_column("Activity")
    table.add_column("Load", justify="right")

    for entry in entries:
        table.add_row(
            entry.date.isoformat() if entry.date else "-",
            entry.activity_id,
            f"{entry.training_load:.1f}",
        )
    console.print(table)
    console.print(f"Database: {stats['db_path']}")
    console.print(f"Counted activities: {stats['counted_activities']}")
    console.print(f"Score snapshots: {stats['score_snapshots']}")
    console.print()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recovery",
        description="Daily recovery score from heart rate, HRV, sleep and training load",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  recovery score export.xml
  recovery score export.xml --date 2024-03-01 --tz Europe/Madrid
  recovery history --days 14
  recovery ledger
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Score command
    score_p = subparsers.add_parser("score", help="Score a day from an Apple Health export")
    score_p.add_argument("export", help="Path to export.xml")
    score_p.add_argument("--date", type=str, help="Day to score (YYYY-MM-DD), default today")
    score_p.add_argument("--tz", type=str, help="IANA timezone for calendar days")
    score_p.add_argument("--db", type=str, help="SQLite database path")
    score_p.add_argument("--json", action="store_true", help="Print the result as JSON")
    score_p.add_argument("--details", action="store_true", help="Explain each metric and show daily training volume")

    # History command
    history_p = subparsers.add_parser("history", help="Show stored recovery scores")
    history_p.add_argument("--db", type=str, help="SQLite database path")
    history_p.add_argument(
        "--days", "-d", type=int, default=7, help="Number of days to show"
    )

    # Ledger command
    ledger_p = subparsers.add_parser("ledger", help="Show counted workouts")
    ledger_p.add_argument("--db", type=str, help="SQLite database path")

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        sys.exit(1)
    setup_logging(args.verbose, settings.log_level)

    commands = {
        "score": cmd_score,
        "history": cmd_history,
        "ledger": cmd_ledger,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return

    try:
        command(args, settings)
    except RecoveryEngineError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
