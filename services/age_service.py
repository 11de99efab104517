"""
Age Service - services/age_service.py

RESPONSIBILITIES:
-----------------
Resolve a player's age at the event and pick the score-table bucket that
fits it best.

RULES:
------
- Missing birth year => age 16 (anonymous or incomplete registrations)
- Age is clamped to [6, 49], never rejected
- Bucket labels are free text such as "12-13", "U14" or "18+"
"""

import logging
import re
from datetime import date, datetime
from typing import Iterable, Optional, Union

logger = logging.getLogger(__name__)


DEFAULT_AGE = 16
MIN_AGE = 6
MAX_AGE = 49

_BUCKET_NUMBER = re.compile(r'\d+')


def resolve_age(event_year: int, birth_year: Optional[int]) -> int:
    """
    Compute a player's age at the event.

    FORMULA: clamp(event_year - birth_year, 6, 49)

    Args:
        event_year: Year the testing event takes place
        birth_year: Player's birth year (None/0 when unknown)

    Returns:
        Age in whole years within [6, 49]

    Example:
        >>> resolve_age(2024, 2010)
        14
        >>> resolve_age(2024, None)
        16
        >>> resolve_age(2024, 1900)
        49
    """
    if not birth_year:
        return DEFAULT_AGE

    return max(MIN_AGE, min(MAX_AGE, int(event_year) - int(birth_year)))


def bucket_midpoint(label: str) -> float:
    """
    Midpoint of an age-bucket label.

    Exactly two embedded integers => their mean; otherwise the first
    integer; none => 0.
    """
    numbers = [int(n) for n in _BUCKET_NUMBER.findall(label)]
    if len(numbers) == 2:
        return (numbers[0] + numbers[1]) / 2
    if numbers:
        return float(numbers[0])
    return 0.0


def nearest_age_bucket(age: float, bucket_labels: Iterable[str]) -> Optional[str]:
    """
    Select the bucket label whose midpoint is closest to the age.

    Ties resolve to the label that comes first in iteration order.

    Args:
        age: Player age
        bucket_labels: Labels in table column order

    Returns:
        Closest label, or None if there are no labels

    Example:
        >>> nearest_age_bucket(13, ["10-11", "12-13", "14-15"])
        '12-13'
    """
    best_label = None
    best_distance = None

    for label in bucket_labels:
        distance = abs(bucket_midpoint(label) - age)
        if best_distance is None or distance < best_distance:
            best_label = label
            best_distance = distance

    return best_label


def resolve_event_year(
    project_date: Union[str, date, datetime, None],
    today: Optional[date] = None
) -> int:
    """
    Derive the event year from the project's date field.

    The year is the first four characters of the date. Missing or
    unparsable dates fall back to the current calendar year.

    Example:
        >>> resolve_event_year("2024-06-15")
        2024
    """
    fallback = (today or date.today()).year

    if project_date is None:
        return fallback

    if isinstance(project_date, (date, datetime)):
        return project_date.year

    prefix = str(project_date).strip()[:4]
    if len(prefix) == 4 and prefix.isdigit():
        return int(prefix)

    logger.warning(f"Could not read event year from project date {project_date!r}, using {fallback}")
    return fallback
