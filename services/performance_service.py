"""
Performance Service - services/performance_service.py

RESPONSIBILITIES:
-----------------
Run the scorer and the aggregator across all players x stations of one
project and shape the results for dashboards, leaderboards and player cards.

ARCHITECTURE:
------------
    Measurements (possibly several per player/station)
        |
    build_player_station_averages   (mean per pair, re-takes tolerated)
        |
    score_for_station               (per pair with a value)
        |
    average_across_stations         -> PlayerPerformanceEntry.total_score
    sum_across_stations             -> LeaderboardEntry.total_score

CRITICAL RULES:
--------------
- NO STORAGE - results are recomputed on every call
- Missing measurement => raw None, score None, excluded from totals
- Stations are always emitted in canonical display order
"""

import logging
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from services.aggregation_service import average_across_stations, sum_across_stations
from services.models import (
    LeaderboardEntry,
    Measurement,
    PlayerForScoring,
    PlayerPerformanceEntry,
    PlayerStatEntry,
    RawMetrics,
    ScoreDependencies,
    Station,
)
from services.scoring_service import MAX_SCORE, score_for_station
from utils.logging_config import log_execution_time
from utils.validation import METRIC_KEYS, coerce_raw_value, resolve_metric_key

logger = logging.getLogger(__name__)

PlayerStationAverages = Dict[str, Dict[str, float]]


# ============================================================================
# CONSTANTS
# ============================================================================

# Canonical display order on cards and dashboards
STAT_ORDER = [
    'Beweglichkeit',
    'Technik',
    'Passgenauigkeit',
    'Schusskraft',
    'Schusspräzision',
    'Schnelligkeit',
]

_STAT_POSITION = {name.lower(): index for index, name in enumerate(STAT_ORDER)}


# ============================================================================
# STATION ORDERING
# ============================================================================

def sort_stations_for_performance(stations: Iterable[Station]) -> List[Station]:
    """
    Sort stations into canonical display order.

    Stations whose name matches an entry of STAT_ORDER (case-insensitive)
    come first in that order; all others follow alphabetically.

    Example:
        >>> names = [s.name for s in sort_stations_for_performance(
        ...     [Station('3', 'Weitsprung'), Station('2', 'Schnelligkeit'), Station('1', 'Technik')])]
        >>> names
        ['Technik', 'Schnelligkeit', 'Weitsprung']
    """
    def sort_key(station: Station):
        name = (station.name or '').strip().lower()
        position = _STAT_POSITION.get(name)
        if position is None:
            return (len(STAT_ORDER), name)
        return (position, '')

    return sorted(stations, key=sort_key)


# ============================================================================
# MEASUREMENT AVERAGING
# ============================================================================

def build_player_station_averages(measurements: Iterable[Measurement]) -> PlayerStationAverages:
    """
    Average raw values per (player, station).

    Rows without a player id, a station id or a finite numeric value are
    ignored.

    Args:
        measurements: Raw capture rows

    Returns:
        Nested dict player_id -> station_id -> mean value

    Example:
        >>> build_player_station_averages([
        ...     Measurement('p1', 's1', 10), Measurement('p1', 's1', 12)])
        {'p1': {'s1': 11.0}}
    """
    frame = pd.DataFrame(
        [(m.player_id, m.station_id, coerce_raw_value(m.value)) for m in measurements],
        columns=['player_id', 'station_id', 'value'],
    )
    if frame.empty:
        return {}

    frame['value'] = frame['value'].astype(float)
    frame = frame[frame['player_id'].map(bool) & frame['station_id'].map(bool)]
    frame = frame.dropna(subset=['value'])
    if frame.empty:
        return {}

    means = frame.groupby(['player_id', 'station_id'], sort=False)['value'].mean()

    averages: PlayerStationAverages = {}
    for (player_id, station_id), value in means.items():
        averages.setdefault(player_id, {})[station_id] = float(value)
    return averages


def build_capture_matrix(measurements: Iterable[Measurement]) -> Dict[str, Dict[str, bool]]:
    """
    Which (player, station) pairs have at least one capture row.

    Used by the project dashboard to show capture progress; the value of
    the row does not matter here.
    """
    matrix: Dict[str, Dict[str, bool]] = {}
    for measurement in measurements:
        if not measurement.player_id or not measurement.station_id:
            continue
        matrix.setdefault(measurement.player_id, {})[measurement.station_id] = True
    return matrix


# ============================================================================
# PERFORMANCE BUILDER
# ============================================================================

def build_player_stats(
    player: PlayerForScoring,
    stations: List[Station],
    averages: PlayerStationAverages,
    deps: ScoreDependencies
) -> List[PlayerStatEntry]:
    """Score one player at every station (stations already ordered)."""
    player_averages = averages.get(player.id, {})
    stats = []

    for station in stations:
        raw = player_averages.get(station.id)
        if raw is None or np.isnan(raw):
            stats.append(PlayerStatEntry(station.id, station.name, None, None, station.unit))
            continue

        score = score_for_station(station, player, raw, deps)
        stats.append(PlayerStatEntry(station.id, station.name, raw, score, station.unit))

    return stats


@log_execution_time()
def build_player_performances(
    players: List[PlayerForScoring],
    stations: List[Station],
    measurements: Iterable[Measurement],
    deps: ScoreDependencies
) -> Dict[str, PlayerPerformanceEntry]:
    """
    Build the per-player performance summary of one project.

    Args:
        players: Project players
        stations: Project station catalog (any order)
        measurements: Raw capture rows of the project
        deps: Event year and score tables

    Returns:
        Dict player_id -> PlayerPerformanceEntry; empty when the project
        has no players or no stations

    Example:
        >>> result = build_player_performances(
        ...     [PlayerForScoring('p1', 2010)],
        ...     [Station('s5', 'Schusspräzision')],
        ...     [Measurement('p1', 's5', 12)],
        ...     ScoreDependencies(event_year=2024))
        >>> result['p1'].total_score
        50
    """
    if not players or not stations:
        return {}

    ordered_stations = sort_stations_for_performance(stations)
    averages = build_player_station_averages(measurements)

    result: Dict[str, PlayerPerformanceEntry] = {}
    for player in players:
        stats = build_player_stats(player, ordered_stations, averages, deps)
        result[player.id] = PlayerPerformanceEntry(
            stats=stats,
            total_score=average_across_stations(entry.score for entry in stats),
        )

    logger.info(
        f"Built performances for {len(players)} players x {len(ordered_stations)} stations "
        f"({sum(1 for entry in result.values() if entry.total_score is not None)} with scores)"
    )
    return result


# ============================================================================
# LEADERBOARD (SUM VIEW)
# ============================================================================

@log_execution_time()
def build_leaderboard(
    players: List[PlayerForScoring],
    stations: List[Station],
    measurements: Iterable[Measurement],
    deps: ScoreDependencies
) -> List[LeaderboardEntry]:
    """
    Rank players by the sum of their station scores.

    The maximum attainable total is 100 per station. Players without any
    score rank last, keeping their original order.

    Returns:
        Entries sorted by total descending, ranks starting at 1
    """
    if not players:
        return []

    ordered_stations = sort_stations_for_performance(stations)
    averages = build_player_station_averages(measurements)
    max_score = MAX_SCORE * len(ordered_stations)

    rows = []
    for player in players:
        stats = build_player_stats(player, ordered_stations, averages, deps)
        # keyed by name for display; the total counts every station
        per_station = {entry.label: entry.score for entry in stats if entry.score is not None}
        rows.append((player, sum_across_stations(entry.score for entry in stats), per_station))

    rows.sort(key=lambda row: (row[1] is None, -(row[1] or 0)))

    return [
        LeaderboardEntry(
            rank=rank,
            player_id=player.id,
            name=player.display_name,
            club=player.club,
            position=player.fav_position,
            total_score=total,
            max_score=max_score,
            per_station=per_station,
        )
        for rank, (player, total, per_station) in enumerate(rows, start=1)
    ]


# ============================================================================
# RAW METRIC SUMMARY
# ============================================================================

def measurements_to_raw_metrics(
    stations: Iterable[Station],
    station_values: Optional[Dict[str, float]]
) -> RawMetrics:
    """
    Collapse one player's averaged station values into discipline metrics.

    Stations are mapped to metric keys by name; several stations mapping
    to the same key are averaged.

    Args:
        stations: Station catalog
        station_values: station_id -> averaged raw value for one player

    Returns:
        RawMetrics with None for disciplines without a value
    """
    collected: Dict[str, List[float]] = {key: [] for key in METRIC_KEYS}

    for station in stations:
        raw = coerce_raw_value((station_values or {}).get(station.id))
        if raw is None:
            continue
        metric_key = resolve_metric_key(station.name)
        if metric_key is None:
            continue
        collected[metric_key].append(raw)

    return RawMetrics(**{
        key: float(np.mean(values)) if values else None
        for key, values in collected.items()
    })
