"""
Skills-Testing Scorer CLI

Command-line front end for the scoring services:
- scoremap: inspect the parsed age-bucket score tables
- score: one-off score preview for a raw value (capture form)
- capture: convert hit counts into raw values
- project: performances and leaderboard of a project from the database
"""

import json

import click
import psycopg2
from rich.console import Console
from rich.table import Table

from services.age_service import resolve_event_year
from services.capture_service import passing_raw_from_hits, shot_accuracy_raw_from_hits
from services.models import PlayerForScoring, Station
from services.project_service import (
    ProjectNotFoundError,
    load_project_leaderboard,
    load_project_performances,
)
from services.scoremap_service import TABLE_FORMATS, build_score_dependencies, load_score_map
from services.scoring_service import score_for_station
from utils.config import load_settings
from utils.db import shutdown_db, startup_db
from utils.logging_config import setup_logging
from utils.validation import normalize_gender

console = Console()


def _format_value(value) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


@click.group()
@click.option('--settings', 'settings_path', type=click.Path(dir_okay=False), default=None,
              help='Alternative settings.yaml')
@click.pass_context
def cli(ctx, settings_path):
    """Youth football skills-testing scorer."""
    settings = load_settings(settings_path)
    setup_logging(
        level=settings.log_level,
        json_logs=settings.json_logs,
        log_file=settings.log_file,
    )
    ctx.obj = settings


@cli.group()
def scoremap():
    """Score table operations."""
    pass


@cli.group()
def score():
    """Score preview for single measurements."""
    pass


@cli.group()
def capture():
    """Hit-count conversions used by the capture form."""
    pass


@cli.group()
def project():
    """Project reports from the database (read-only)."""
    pass


# ============================================
# SCOREMAP COMMANDS
# ============================================

@scoremap.command('show')
@click.option('--station', type=click.Choice(sorted(TABLE_FORMATS)), required=True,
              help='Table key (s1 agility, s4 shot power, s6 speed)')
@click.option('--gender', type=click.Choice(['male', 'female']), default=None,
              help='Gendered tables only; female when omitted')
@click.option('--project', 'project_id', default=None, help='Search this project folder first')
@click.pass_obj
def scoremap_show(settings, station, gender, project_id):
    """
    Print the parsed score table.

    Example:
        python cli.py scoremap show --station s1 --gender male
    """
    enabled = getattr(settings, f'use_{station}_csv')
    if not enabled:
        console.print(f"[yellow]{station} table disabled by settings, formula fallback applies[/yellow]")
        return

    score_map = load_score_map(station, gender, settings.score_maps_dir, project_id)
    if score_map is None:
        console.print(f"[yellow]No {station} score table found, formula fallback applies[/yellow]")
        return

    table = Table(title=f"{station} score table", show_header=True)
    table.add_column("Age bucket", style="cyan")
    table.add_column("Steps", justify="right")
    table.add_column("Best", justify="right")
    table.add_column("Worst", justify="right")
    table.add_column("Thresholds")

    for label, rows in score_map.items():
        preview = ", ".join(_format_value(value) for value in rows[:8])
        if len(rows) > 8:
            preview += ", ..."
        table.add_row(label, str(len(rows)), _format_value(rows[0]), _format_value(rows[-1]), preview)

    console.print(table)


# ============================================
# SCORE COMMANDS
# ============================================

@score.command('station')
@click.option('--name', required=True, help='Station name, e.g. "Beweglichkeit"')
@click.option('--raw', 'raw_value', type=float, required=True, help='Raw measurement')
@click.option('--birth-year', type=int, default=None)
@click.option('--gender', default=None, help='Free text, e.g. "m", "weiblich"')
@click.option('--event-year', type=int, default=None, help='Default: current year')
@click.option('--min', 'min_value', type=float, default=None, help='Generic stations: lower bound')
@click.option('--max', 'max_value', type=float, default=None, help='Generic stations: upper bound')
@click.option('--higher-is-better/--lower-is-better', default=None,
              help='Generic stations: direction (default lower is better)')
@click.option('--project', 'project_id', default=None, help='Use this project\'s score tables')
@click.pass_obj
def score_station(settings, name, raw_value, birth_year, gender, event_year,
                  min_value, max_value, higher_is_better, project_id):
    """
    Score one raw value the way the capture form previews it.

    Example:
        python cli.py score station --name Beweglichkeit --raw 13.5 --birth-year 2011 --gender w
    """
    station = Station('preview', name, min_value=min_value, max_value=max_value,
                      higher_is_better=higher_is_better)
    player = PlayerForScoring('preview', birth_year=birth_year, gender=gender)
    deps = build_score_dependencies(
        event_year or resolve_event_year(None),
        directory=settings.score_maps_dir,
        project_id=project_id,
        use_s1=settings.use_s1_csv,
        use_s4=settings.use_s4_csv,
        use_s6=settings.use_s6_csv,
    )

    result = score_for_station(station, player, raw_value, deps)

    console.print(f"[bold]Station:[/bold] {name} ({station.kind.value})")
    console.print(f"[bold]Gender:[/bold] {normalize_gender(gender) or 'unknown'}")
    console.print(f"[bold]Raw:[/bold] {_format_value(raw_value)}")
    console.print(f"[bold green]Score: {result}[/bold green]")


# ============================================
# CAPTURE COMMANDS
# ============================================

@capture.command('passing')
@click.option('--hits-10m', type=int, default=0, help='Hits out of 3')
@click.option('--hits-14m', type=int, default=0, help='Hits out of 2')
@click.option('--hits-18m', type=int, default=0, help='Hits out of 1')
def capture_passing(hits_10m, hits_14m, hits_18m):
    """Weighted passing points (0-100)."""
    raw = passing_raw_from_hits(hits_10m, hits_14m, hits_18m)
    console.print(f"[bold green]Passgenauigkeit raw value: {raw}[/bold green]")


@capture.command('shot-accuracy')
@click.option('--top-left', type=int, default=0, help='Hits out of 3')
@click.option('--top-right', type=int, default=0, help='Hits out of 3')
@click.option('--bottom-left', type=int, default=0, help='Hits out of 3')
@click.option('--bottom-right', type=int, default=0, help='Hits out of 3')
def capture_shot_accuracy(top_left, top_right, bottom_left, bottom_right):
    """Weighted shot-accuracy points (0-24)."""
    raw = shot_accuracy_raw_from_hits(top_left, top_right, bottom_left, bottom_right)
    console.print(f"[bold green]Schusspräzision raw value: {raw}[/bold green]")


# ============================================
# PROJECT COMMANDS
# ============================================

def _run_project_report(settings, loader, project_id):
    try:
        startup_db(settings)
    except (RuntimeError, psycopg2.Error) as e:
        raise click.ClickException(f"Database unavailable: {e}")

    try:
        return loader(project_id, settings)
    except ProjectNotFoundError as e:
        raise click.ClickException(str(e))
    finally:
        shutdown_db()


@project.command('performances')
@click.argument('project_id')
@click.option('--json', 'as_json', is_flag=True, help='Print JSON instead of a table')
@click.pass_obj
def project_performances(settings, project_id, as_json):
    """
    Per-player station scores and average rating.

    Example:
        python cli.py project performances 42
    """
    performances = _run_project_report(settings, load_project_performances, project_id)

    if as_json:
        click.echo(json.dumps(
            {player_id: entry.to_dict() for player_id, entry in performances.items()},
            ensure_ascii=False,
            indent=2,
        ))
        return

    if not performances:
        console.print("[yellow]No players or stations in this project[/yellow]")
        return

    labels = [entry.label for entry in next(iter(performances.values())).stats]

    table = Table(title=f"Project {project_id} - Performances", show_header=True)
    table.add_column("Player", style="cyan")
    for label in labels:
        table.add_column(label, justify="right")
    table.add_column("Rating", justify="right", style="bold green")

    for player_id, entry in performances.items():
        table.add_row(
            player_id,
            *[_format_value(stat.score) for stat in entry.stats],
            _format_value(entry.total_score),
        )

    console.print(table)


@project.command('leaderboard')
@click.argument('project_id')
@click.option('--json', 'as_json', is_flag=True, help='Print JSON instead of a table')
@click.pass_obj
def project_leaderboard(settings, project_id, as_json):
    """
    Players ranked by the sum of their station scores.

    Example:
        python cli.py project leaderboard 42
    """
    entries = _run_project_report(settings, load_project_leaderboard, project_id)

    if as_json:
        click.echo(json.dumps([entry.to_dict() for entry in entries], ensure_ascii=False, indent=2))
        return

    if not entries:
        console.print("[yellow]No players in this project[/yellow]")
        return

    table = Table(title=f"Project {project_id} - Leaderboard", show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Player", style="cyan")
    table.add_column("Club")
    table.add_column("Position")
    table.add_column("Total", justify="right", style="bold green")

    for entry in entries:
        table.add_row(
            str(entry.rank),
            entry.name or entry.player_id,
            entry.club or "-",
            entry.position or "-",
            f"{_format_value(entry.total_score)} / {entry.max_score}",
        )

    console.print(table)


if __name__ == '__main__':
    cli()
