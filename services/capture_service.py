"""
Capture Service - services/capture_service.py

Turns the hit counts entered on the capture form into the raw value that
is stored as a measurement for the passing and shot-accuracy stations.

PASSING (Passgenauigkeit):
    3 passes at 10m, 2 at 14m, 1 at 18m
    raw = hits_10m * 11 + hits_14m * 17 + hits_18m * 33    (max 100)

SHOT ACCURACY (Schusspräzision):
    3 shots at each corner of the goal
    raw = (top_left + top_right) * 3 + (bottom_left + bottom_right) * 1    (max 24)

Hit counts outside the attempt limits are clamped, not rejected. The form
allows correcting them later, and a stored raw value must never exceed the
scale the scorer expects.
"""

import logging
from typing import Optional

from utils.validation import coerce_raw_value

logger = logging.getLogger(__name__)


PASSING_ATTEMPTS = {'hits_10m': 3, 'hits_14m': 2, 'hits_18m': 1}
PASSING_WEIGHTS = {'hits_10m': 11, 'hits_14m': 17, 'hits_18m': 33}

SHOT_ACCURACY_ATTEMPTS_PER_CORNER = 3
TOP_CORNER_WEIGHT = 3
BOTTOM_CORNER_WEIGHT = 1


def _hits(value: Optional[float], limit: int, field_name: str) -> int:
    count = coerce_raw_value(value)
    if count is None:
        return 0

    count = int(count)
    clamped = max(0, min(limit, count))
    if clamped != count:
        logger.warning(f"{field_name}={count} outside 0..{limit}, clamped to {clamped}")
    return clamped


def passing_raw_from_hits(hits_10m=0, hits_14m=0, hits_18m=0) -> int:
    """
    Weighted passing points on a 0-100 scale.

    Example:
        >>> passing_raw_from_hits(3, 2, 1)
        100
        >>> passing_raw_from_hits(2, 1, 0)
        39
    """
    counts = {
        'hits_10m': hits_10m,
        'hits_14m': hits_14m,
        'hits_18m': hits_18m,
    }
    return sum(
        _hits(counts[name], PASSING_ATTEMPTS[name], name) * PASSING_WEIGHTS[name]
        for name in counts
    )


def shot_accuracy_raw_from_hits(top_left=0, top_right=0, bottom_left=0, bottom_right=0) -> int:
    """
    Weighted shot-accuracy points out of 24.

    Example:
        >>> shot_accuracy_raw_from_hits(3, 3, 3, 3)
        24
        >>> shot_accuracy_raw_from_hits(1, 0, 2, 0)
        5
    """
    limit = SHOT_ACCURACY_ATTEMPTS_PER_CORNER
    top = _hits(top_left, limit, 'top_left') + _hits(top_right, limit, 'top_right')
    bottom = _hits(bottom_left, limit, 'bottom_left') + _hits(bottom_right, limit, 'bottom_right')
    return top * TOP_CORNER_WEIGHT + bottom * BOTTOM_CORNER_WEIGHT
