"""
Project Service - services/project_service.py

RESPONSIBILITIES:
-----------------
Fetch one testing project (date, players, stations, measurements) through
the read-only database layer and run the performance builders on it.

CRITICAL RULES:
--------------
- NO SQL WRITES - read-only queries via utils/db.py
- NO SCORING LOGIC - everything numeric happens in the pure services
- Score tables are loaded per call; pass a ScoreMapCache to share them
  across calls of one session

ARCHITECTURE:
------------
    fetch_project / fetch_players / fetch_stations / fetch_measurements
        |
    load_project_score_dependencies   (event year + enabled score tables)
        |
    build_player_performances / build_leaderboard
"""

import logging
from typing import Any, Dict, List, Optional

import pandas as pd

from services.age_service import resolve_event_year
from services.models import (
    LeaderboardEntry,
    Measurement,
    PlayerForScoring,
    PlayerPerformanceEntry,
    ScoreDependencies,
    Station,
)
from services.performance_service import build_leaderboard, build_player_performances
from services.scoremap_service import ScoreMapCache, build_score_dependencies
from utils.config import Settings, load_settings
from utils.db import fetch_dataframe
from utils.logging_config import LogContext

logger = logging.getLogger(__name__)


class ProjectNotFoundError(LookupError):
    """Raised when a project id does not exist."""
    pass


def _records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    # nullable dtypes keep integer ids integral when a column has NULLs;
    # missing values become None for the model constructors
    if df.empty:
        return []
    converted = df.convert_dtypes()
    return converted.astype(object).where(converted.notna(), None).to_dict('records')


# ============================================================================
# DATA FETCHING FUNCTIONS
# ============================================================================

def fetch_project(project_id: str) -> Dict[str, Any]:
    """
    Fetch the project row (id, name, date).

    Raises:
        ProjectNotFoundError: If no project has this id
    """
    query = """
        SELECT id, name, date
        FROM projects
        WHERE id = %s
    """
    df = fetch_dataframe(query, params=(project_id,))

    if df.empty:
        raise ProjectNotFoundError(f"Project {project_id} not found in database")

    return _records(df)[0]


def fetch_players(project_id: str) -> List[PlayerForScoring]:
    """Players registered for the project, ordered by id."""
    query = """
        SELECT id, display_name, club, fav_position, birth_year, gender
        FROM players
        WHERE project_id = %s
        ORDER BY id
    """
    df = fetch_dataframe(query, params=(project_id,))
    return [PlayerForScoring.from_dict(row) for row in _records(df)]


def fetch_stations(project_id: str) -> List[Station]:
    """Station catalog of the project."""
    query = """
        SELECT id, name, unit, min_value, max_value, higher_is_better
        FROM stations
        WHERE project_id = %s
    """
    df = fetch_dataframe(query, params=(project_id,))
    return [Station.from_dict(row) for row in _records(df)]


def fetch_measurements(project_id: str) -> List[Measurement]:
    """All capture rows of the project, re-takes included."""
    query = """
        SELECT player_id, station_id, value
        FROM measurements
        WHERE project_id = %s
    """
    df = fetch_dataframe(query, params=(project_id,))
    return [Measurement.from_dict(row) for row in _records(df)]


# ============================================================================
# ORCHESTRATION
# ============================================================================

def load_project_score_dependencies(
    project: Dict[str, Any],
    settings: Settings,
    cache: Optional[ScoreMapCache] = None
) -> ScoreDependencies:
    """
    Event year from the project date plus the enabled score tables.

    Tables in the project's own folder take precedence over the shared ones.
    """
    event_year = resolve_event_year(project.get('date'))
    return build_score_dependencies(
        event_year,
        directory=settings.score_maps_dir,
        project_id=project.get('id'),
        use_s1=settings.use_s1_csv,
        use_s4=settings.use_s4_csv,
        use_s6=settings.use_s6_csv,
        cache=cache,
    )


def _load_project_inputs(project_id: str, settings: Optional[Settings], cache: Optional[ScoreMapCache]):
    settings = settings or load_settings()
    LogContext.set(project_id=str(project_id))

    project = fetch_project(project_id)
    players = fetch_players(project_id)
    stations = fetch_stations(project_id)
    measurements = fetch_measurements(project_id)
    deps = load_project_score_dependencies(project, settings, cache)

    logger.info(
        f"Project {project_id}: {len(players)} players, {len(stations)} stations, "
        f"{len(measurements)} measurements, event year {deps.event_year}"
    )
    return players, stations, measurements, deps


def load_project_performances(
    project_id: str,
    settings: Optional[Settings] = None,
    cache: Optional[ScoreMapCache] = None
) -> Dict[str, PlayerPerformanceEntry]:
    """
    Per-player performance summary of one project.

    Args:
        project_id: Project identifier
        settings: Resolved settings (default: load_settings())
        cache: Optional caller-owned score table cache

    Returns:
        Dict player_id -> PlayerPerformanceEntry

    Raises:
        ProjectNotFoundError: If the project does not exist
    """
    players, stations, measurements, deps = _load_project_inputs(project_id, settings, cache)
    return build_player_performances(players, stations, measurements, deps)


def load_project_leaderboard(
    project_id: str,
    settings: Optional[Settings] = None,
    cache: Optional[ScoreMapCache] = None
) -> List[LeaderboardEntry]:
    """
    Ranked leaderboard (summed station scores) of one project.

    Raises:
        ProjectNotFoundError: If the project does not exist
    """
    players, stations, measurements, deps = _load_project_inputs(project_id, settings, cache)
    return build_leaderboard(players, stations, measurements, deps)
