"""
Input Normalization Module - utils/validation.py

PURPOSE:
--------
Every value that enters the scoring services from outside (capture forms,
database rows, hand-written CSV tables) passes through here first.
It prevents:
  1. Free-text gender spellings from selecting the wrong score table
  2. German decimal commas from being read as garbage
  3. NaN / infinity leaking into scores
  4. Station names being matched in more than one place

CRITICAL PRINCIPLE:
------------------
Normalization never raises. Anything that cannot be understood becomes None
and the caller applies its documented fallback.

USAGE PATTERN:
-------------
    from utils.validation import normalize_gender, coerce_raw_value

    gender = normalize_gender(player.gender)      # 'male' | 'female' | None
    raw = coerce_raw_value(measurement.value)     # float | None
"""

import logging
import math
import re
from typing import List, Optional, Pattern, Tuple

logger = logging.getLogger(__name__)


# ============================================================================
# GENDER
# ============================================================================

MALE_SYNONYMS = frozenset([
    'male', 'm', 'mann', 'männlich', 'maennlich', 'herr', 'boy',
])

FEMALE_SYNONYMS = frozenset([
    'female', 'f', 'frau', 'weiblich', 'weibl', 'mädchen', 'maedchen', 'girl', 'w',
])


def normalize_gender(value) -> Optional[str]:
    """
    Map free-text gender input to 'male', 'female' or None.

    Args:
        value: Anything the registration form stored (may be None)

    Returns:
        'male', 'female', or None when the value is empty or unknown

    Example:
        >>> normalize_gender(' Weiblich ')
        'female'
        >>> normalize_gender('Herr')
        'male'
        >>> normalize_gender('divers') is None
        True
    """
    if value is None:
        return None

    normalized = str(value).strip().lower()
    if not normalized:
        return None

    if normalized in MALE_SYNONYMS:
        return 'male'
    if normalized in FEMALE_SYNONYMS:
        return 'female'

    logger.debug(f"Unrecognized gender value: {value!r}")
    return None


# ============================================================================
# NUMBERS
# ============================================================================

# Plain decimal notation; rejects 'inf', 'nan' and digit underscores
_DECIMAL_PATTERN = re.compile(r'^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$')


def parse_decimal_cell(cell: Optional[str]) -> Optional[float]:
    """
    Parse one score-table cell, accepting a German decimal comma.

    Only the first comma is converted, so thousands separators
    ("1.234,5") do not parse.

    Returns:
        Finite float, or None for empty / non-numeric cells

    Example:
        >>> parse_decimal_cell('12,5')
        12.5
        >>> parse_decimal_cell('n/a') is None
        True
    """
    if not cell:
        return None

    candidate = cell.strip().replace(',', '.', 1)
    if not _DECIMAL_PATTERN.match(candidate):
        return None

    value = float(candidate)
    return value if math.isfinite(value) else None


def is_finite_number(value) -> bool:
    """True for int/float values that are neither NaN nor infinite (bools excluded)."""
    if isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except (TypeError, OverflowError):
        return False


def coerce_raw_value(value) -> Optional[float]:
    """
    Convert a measurement value to a finite float.

    Strings are accepted as long as they hold a plain number (decimal comma
    allowed). None, NaN, infinity and anything else yield None.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        return parse_decimal_cell(value)

    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None

    return number if math.isfinite(number) else None


# ============================================================================
# STATION KEYS
# ============================================================================

STATION_KEY_ALIASES = {
    's1': ['s1', 'beweglichkeit'],
    's2': ['s2', 'technik'],
    's3': ['s3', 'passgenauigkeit'],
    's4': ['s4', 'schusskraft'],
    's5': ['s5', 'schusspräzision', 'schusspraezision'],
    's6': ['s6', 'schnelligkeit', 'speed', '30m'],
}


def station_key_for_name(name: Optional[str]) -> Optional[str]:
    """
    Map a station name or short key to its table key ('s1'..'s6').

    Exact, case-insensitive match only.

    Example:
        >>> station_key_for_name('Schnelligkeit')
        's6'
        >>> station_key_for_name('S4')
        's4'
    """
    if not name:
        return None

    normalized = name.strip().lower()
    for key, aliases in STATION_KEY_ALIASES.items():
        if normalized in aliases:
            return key
    return None


# ============================================================================
# METRIC KEYS
# ============================================================================

METRIC_PATTERNS: List[Tuple[str, Pattern]] = [
    ('agility', re.compile(r'beweglichkeit|agility', re.IGNORECASE)),
    ('technique', re.compile(r'technik|technical', re.IGNORECASE)),
    ('passing', re.compile(r'passgenauigkeit|pass', re.IGNORECASE)),
    ('shot_power', re.compile(r'schusskraft|shot.?power|power', re.IGNORECASE)),
    ('shot_accuracy', re.compile(r'schusspr(ä|ae|a)zision|shot.?accuracy|accuracy', re.IGNORECASE)),
    ('speed', re.compile(r'schnelligkeit|speed|sprint', re.IGNORECASE)),
]

METRIC_KEYS = [key for key, _ in METRIC_PATTERNS]


def resolve_metric_key(station_name: Optional[str]) -> Optional[str]:
    """
    Resolve a station name (German or English) to a raw-metric key.

    Patterns are checked in METRIC_PATTERNS order; the first match wins.

    Example:
        >>> resolve_metric_key('Sprint 30m')
        'speed'
        >>> resolve_metric_key('Shot Power')
        'shot_power'
    """
    if not station_name:
        return None

    for key, pattern in METRIC_PATTERNS:
        if pattern.search(station_name):
            return key
    return None
