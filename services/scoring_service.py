"""
Scoring Service - services/scoring_service.py

RESPONSIBILITIES:
-----------------
Convert one raw station measurement (seconds, km/h, weighted hits) into a
comparable 0-100 score.

DISPATCH (by StationKind, resolved once from the station name):
---------------------------------------------------------------
    AGILITY        s1 table (gendered), time step lookup  | fallback 10..40 s, lower better
    SPEED          s6 table (gendered), time step lookup  | fallback 4..20 s, lower better
    SHOT_POWER     s4 table (shared),   speed step lookup | fallback 0..150 km/h, higher better
    PASSING        raw already on 0-100 scale, clamped
    SHOT_ACCURACY  raw weighted hits out of 24, scaled
    TECHNIQUE /
    GENERIC        linear normalization with the station's own bounds

CRITICAL RULES:
--------------
- PURE FUNCTIONS - no I/O, no shared state
- NEVER RAISES for numeric input; non-finite raw values score 0
- ALWAYS returns an int in [0, 100]
- Rounding is half-up (12.5 -> 13), not Python's banker's rounding
"""

import logging
import math
from typing import List, Optional

import numpy as np

from services.age_service import nearest_age_bucket, resolve_age
from services.models import (
    PlayerForScoring,
    ScoreDependencies,
    ScoreMap,
    Station,
    StationKind,
)
from utils.validation import is_finite_number, normalize_gender

logger = logging.getLogger(__name__)


# ============================================================================
# CONSTANTS
# ============================================================================

MAX_SCORE = 100

# Synthetic bounds used when no score table applies
AGILITY_FALLBACK = (10.0, 40.0, False)
SPEED_FALLBACK = (4.0, 20.0, False)
SHOT_POWER_FALLBACK = (0.0, 150.0, True)

# Shot accuracy: top corners count 3, bottom corners 1, four corners x 3 shots
SHOT_ACCURACY_MAX_POINTS = 24.0


# ============================================================================
# PRIMITIVES
# ============================================================================

def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves away from -inf.

    Example:
        >>> round_half_up(70.5)
        71
        >>> round_half_up(2.5)
        3
    """
    return int(math.floor(value + 0.5))


def clamp(value: float, lower: float, upper: float) -> float:
    return float(np.clip(value, lower, upper))


def normalize_linear(
    raw: float,
    min_value: Optional[float],
    max_value: Optional[float],
    higher_is_better: Optional[bool]
) -> int:
    """
    Generic linear normalization onto 0-100.

    FORMULA:
        higher_is_better: (raw - min) / (max - min)
        otherwise:        (max - raw) / (max - min)
        clamped to [0, 1], scaled by 100, rounded half-up

    Args:
        raw: Raw measurement
        min_value: Lower bound (None => 0)
        max_value: Upper bound (None => 100)
        higher_is_better: Direction (None counts as lower-is-better)

    Returns:
        Score 0-100; 0 when max == min

    Example:
        >>> normalize_linear(150, 0, 150, True)
        100
        >>> normalize_linear(10, 10, 40, False)
        100
    """
    low = 0.0 if min_value is None else float(min_value)
    high = 100.0 if max_value is None else float(max_value)

    if high == low or not (is_finite_number(raw) and is_finite_number(low) and is_finite_number(high)):
        return 0

    if higher_is_better:
        fraction = (raw - low) / (high - low)
    else:
        fraction = (high - raw) / (high - low)

    return round_half_up(clamp(fraction, 0.0, 1.0) * MAX_SCORE)


def score_from_time_step(seconds: float, rows: List[float]) -> int:
    """
    Step lookup for time tables (lower time is better).

    Walks the thresholds in order and returns 100 - index for the first
    threshold >= seconds. No matching threshold => 0.

    Example:
        >>> score_from_time_step(13.5, [12.0, 14.0, 16.0, 18.0])
        99
    """
    for index, threshold in enumerate(rows):
        if seconds <= threshold:
            return int(clamp(MAX_SCORE - index, 0, MAX_SCORE))
    return 0


def score_from_speed_step(speed: float, rows: List[float]) -> int:
    """
    Step lookup for speed tables (higher speed is better).

    Returns 100 - index for the first threshold <= speed. No match => 0.

    Example:
        >>> score_from_speed_step(95.0, [110.0, 100.0, 90.0])
        98
    """
    for index, threshold in enumerate(rows):
        if speed >= threshold:
            return int(clamp(MAX_SCORE - index, 0, MAX_SCORE))
    return 0


def bucket_rows_for_age(score_map: Optional[ScoreMap], age: int) -> List[float]:
    """Thresholds of the bucket nearest to age, or [] when there are none."""
    if not score_map:
        return []

    bucket = nearest_age_bucket(age, score_map.keys())
    if bucket is None:
        return []
    return score_map.get(bucket) or []


def select_gendered_map(
    female_map: Optional[ScoreMap],
    male_map: Optional[ScoreMap],
    gender: Optional[str]
) -> Optional[ScoreMap]:
    """Male players use the male table; everyone else uses the female table."""
    return male_map if gender == 'male' else female_map


# ============================================================================
# STATION SCORER
# ============================================================================

def score_for_station(
    station: Station,
    player: PlayerForScoring,
    raw: float,
    deps: ScoreDependencies
) -> int:
    """
    Score one (already averaged) raw value for one station.

    Args:
        station: Station definition (kind resolved at construction)
        player: Player whose age/gender select the score-table bucket
        raw: Raw measurement value
        deps: Event year and loaded score tables

    Returns:
        Integer score in [0, 100]

    Example:
        >>> deps = ScoreDependencies(event_year=2024)
        >>> score_for_station(Station('s4', 'Schusskraft'), PlayerForScoring('p1'), 150, deps)
        100
    """
    if not is_finite_number(raw):
        logger.warning(
            f"Non-finite raw value {raw!r} for station {station.name!r}, scoring 0"
        )
        return 0

    raw = float(raw)
    kind = station.kind

    if kind is StationKind.AGILITY:
        return _score_gendered_time_table(
            raw, player, deps, deps.s1_female, deps.s1_male, AGILITY_FALLBACK
        )

    if kind is StationKind.SPEED:
        return _score_gendered_time_table(
            raw, player, deps, deps.s6_female, deps.s6_male, SPEED_FALLBACK
        )

    if kind is StationKind.SHOT_POWER:
        rows = bucket_rows_for_age(deps.s4_map, resolve_age(deps.event_year, player.birth_year))
        if rows:
            return score_from_speed_step(raw, rows)
        return normalize_linear(raw, *SHOT_POWER_FALLBACK)

    if kind is StationKind.PASSING:
        return round_half_up(clamp(raw, 0.0, MAX_SCORE))

    if kind is StationKind.SHOT_ACCURACY:
        return round_half_up(clamp(raw / SHOT_ACCURACY_MAX_POINTS, 0.0, 1.0) * MAX_SCORE)

    # TECHNIQUE has no dedicated rule and shares the generic formula
    return normalize_linear(raw, station.min_value, station.max_value, station.higher_is_better)


def _score_gendered_time_table(
    raw: float,
    player: PlayerForScoring,
    deps: ScoreDependencies,
    female_map: Optional[ScoreMap],
    male_map: Optional[ScoreMap],
    fallback: tuple
) -> int:
    gender = normalize_gender(player.gender)
    score_map = select_gendered_map(female_map, male_map, gender)
    rows = bucket_rows_for_age(score_map, resolve_age(deps.event_year, player.birth_year))

    if rows:
        return score_from_time_step(raw, rows)
    return normalize_linear(raw, *fallback)
