"""
Aggregation Service - services/aggregation_service.py

Combines one player's per-station scores into a single number.

Two views exist on purpose:
- average_across_stations: 0-100 rating for cards and dashboards. A player
  measured at 3 of 6 stations is not penalized for the missing ones.
- sum_across_stations: leaderboard total ("max 600" with six stations).

Both return None when nothing was measured, so "not yet measured" stays
distinguishable from "scored 0".
"""

from typing import Iterable, List, Optional

import numpy as np

from services.scoring_service import round_half_up
from utils.validation import is_finite_number


def present_scores(scores: Iterable[Optional[float]]) -> List[float]:
    """Keep only finite numeric scores."""
    return [float(score) for score in scores if is_finite_number(score)]


def average_across_stations(scores: Iterable[Optional[float]]) -> Optional[int]:
    """
    Rounded mean of the present scores.

    Example:
        >>> average_across_stations([80, 60, None])
        70
        >>> average_across_stations([None, None]) is None
        True
    """
    values = present_scores(scores)
    if not values:
        return None
    return round_half_up(float(np.mean(values)))


def sum_across_stations(scores: Iterable[Optional[float]]) -> Optional[int]:
    """
    Rounded sum of the present scores.

    Example:
        >>> sum_across_stations([80, 60, None])
        140
    """
    values = present_scores(scores)
    if not values:
        return None
    return round_half_up(float(np.sum(values)))


# Canonical aggregate used for PlayerPerformanceEntry.total_score
aggregate_score = average_across_stations
