"""
Score Map Service - services/scoremap_service.py

RESPONSIBILITIES:
-----------------
Turn the hand-written, age-bucketed score tables into in-memory step tables
and assemble the ScoreDependencies the scorer consumes.

TABLE FORMAT (bit-exact, authored by hand):
-------------------------------------------
    Punkte;10-11;12-13;14-15          <- header: label column + age buckets
    100;12,0;11,5;11,0                <- one row per score step
    99;12,4;11,9;11,4
    ...

- Rows are split on ';', cells trimmed, blank lines dropped
- Decimal comma is accepted ("12,5" == 12.5)
- Non-numeric / empty cells are skipped one cell at a time
- Values accumulate per bucket in row order: index 0 is the best step
- s1 (agility) and s6 (speed) tables have ONE header row,
  s4 (shot power) has TWO (the second row is metadata and skipped)

CRITICAL RULES:
--------------
- A missing table is NOT an error: loaders return None and the scorer
  falls back to its formula
- NO GLOBAL CACHE: the caller owns ScoreMapCache and decides its lifetime
- Parsing is a pure function of the text
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

from services.models import ScoreDependencies, ScoreMap
from utils.validation import parse_decimal_cell

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r?\n")


# ============================================================================
# TABLE FORMATS
# ============================================================================

@dataclass(frozen=True)
class ScoreTableFormat:
    """How one station's score table is stored."""
    station_key: str
    header_rows: int
    gendered: bool
    # 'ascending': thresholds grow row by row (times, lower is better)
    # 'descending': thresholds shrink row by row (speeds, higher is better)
    threshold_order: str


TABLE_FORMATS: Dict[str, ScoreTableFormat] = {
    's1': ScoreTableFormat('s1', header_rows=1, gendered=True, threshold_order='ascending'),
    's4': ScoreTableFormat('s4', header_rows=2, gendered=False, threshold_order='descending'),
    's6': ScoreTableFormat('s6', header_rows=1, gendered=True, threshold_order='ascending'),
}

# Candidate file names per (station_key, gender), first existing file wins
RESOURCE_CANDIDATES: Dict[Tuple[str, Optional[str]], List[str]] = {
    ('s1', 'male'): ['s1_male.csv', 'S1_Beweglichkeit_m.csv', 's1.csv'],
    ('s1', 'female'): ['s1_female.csv', 'S1_Beweglichkeit_w.csv', 's1.csv'],
    ('s6', 'male'): ['s6_male.csv'],
    ('s6', 'female'): ['s6_female.csv'],
    ('s4', None): ['s4.csv'],
}


# ============================================================================
# PARSING
# ============================================================================

def split_semicolon_rows(text: str) -> List[List[str]]:
    """Split table text into trimmed cells, dropping blank lines."""
    rows = []
    for line in _LINE_BREAK.split(text):
        line = line.strip()
        if not line:
            continue
        rows.append([cell.strip() for cell in line.split(';')])
    return rows


def parse_score_map(text: str, header_rows: int = 1) -> Optional[ScoreMap]:
    """
    Parse a semicolon-delimited score table.

    Args:
        text: Raw table text
        header_rows: Rows before the data starts. The first of them holds
                     the bucket labels; any further ones are skipped.

    Returns:
        Mapping bucket label -> thresholds in row order, or None when the
        table has no data rows or no bucket with at least one value

    Example:
        >>> parse_score_map("Punkte;12-13\\n100;12,0\\n99;14,0")
        {'12-13': [12.0, 14.0]}
    """
    rows = split_semicolon_rows(text)
    if len(rows) < header_rows + 1:
        return None

    bucket_labels = rows[0][1:]
    score_map: ScoreMap = {}
    skipped_cells = 0

    for cols in rows[header_rows:]:
        for column_index in range(1, len(cols)):
            if column_index > len(bucket_labels):
                break
            value = parse_decimal_cell(cols[column_index])
            if value is None:
                skipped_cells += 1
                continue
            score_map.setdefault(bucket_labels[column_index - 1], []).append(value)

    if skipped_cells:
        logger.debug(f"Skipped {skipped_cells} empty or non-numeric score table cells")

    if not score_map:
        return None

    # keep header column order for bucket iteration
    return {label: score_map[label] for label in dict.fromkeys(bucket_labels) if label in score_map}


def check_step_table_order(score_map: ScoreMap, threshold_order: str) -> List[str]:
    """
    Report buckets whose thresholds are not monotonic in the expected direction.

    Step lookup still works on such tables, but the score it returns for a
    value between two out-of-order rows is whatever row matches first.

    Returns:
        Labels of the offending buckets
    """
    offending = []
    for label, rows in score_map.items():
        pairs = list(zip(rows, rows[1:]))
        if threshold_order == 'ascending':
            ordered = all(a <= b for a, b in pairs)
        else:
            ordered = all(a >= b for a, b in pairs)
        if not ordered:
            offending.append(label)

    if offending:
        logger.warning(
            f"Score table buckets not in {threshold_order} order: {', '.join(offending)}"
        )
    return offending


# ============================================================================
# RESOURCE LOADING
# ============================================================================

def read_resource(path: Path) -> Optional[str]:
    """
    Read a table file as UTF-8 (BOM tolerated).

    Returns None only when the file does not exist; other I/O errors
    propagate.
    """
    try:
        return path.read_text(encoding='utf-8-sig')
    except FileNotFoundError:
        return None


def resource_search_paths(
    directory: Union[str, Path],
    station_key: str,
    gender: Optional[str] = None,
    project_id: Optional[str] = None
) -> List[Path]:
    """
    Ordered candidate paths for one table.

    Project-specific folder first (when a project id is given), then the
    shared folder.
    """
    table_format = TABLE_FORMATS[station_key]
    lookup_gender = (gender or 'female') if table_format.gendered else None
    names = RESOURCE_CANDIDATES[(station_key, lookup_gender)]

    root = Path(directory)
    folders = [root / str(project_id), root] if project_id else [root]
    return [folder / name for folder in folders for name in names]


def load_score_map(
    station_key: str,
    gender: Optional[str] = None,
    directory: Union[str, Path] = 'config/scoremaps',
    project_id: Optional[str] = None
) -> Optional[ScoreMap]:
    """
    Load and parse the score table for one station/gender.

    Args:
        station_key: 's1', 's4' or 's6'
        gender: 'male' or 'female' for gendered tables, ignored for s4
        directory: Root folder of the table files
        project_id: Optional project whose own folder is searched first

    Returns:
        Parsed ScoreMap, or None when no usable table exists

    Raises:
        KeyError: If station_key has no table format
    """
    table_format = TABLE_FORMATS[station_key]

    for path in resource_search_paths(directory, station_key, gender, project_id):
        text = read_resource(path)
        if text is None:
            continue

        score_map = parse_score_map(text, header_rows=table_format.header_rows)
        if score_map is None:
            logger.warning(f"Score table {path} has no usable rows, using formula fallback")
            return None

        check_step_table_order(score_map, table_format.threshold_order)
        logger.info(f"Loaded {station_key} score table from {path} with {len(score_map)} age buckets")
        return score_map

    logger.info(
        f"No {station_key} score table found"
        + (f" for {gender}" if table_format.gendered and gender else "")
        + ", using formula fallback"
    )
    return None


# ============================================================================
# CALLER-OWNED CACHE
# ============================================================================

class ScoreMapCache:
    """
    Memoizes loaded tables per (station_key, gender).

    Create one per request or session (and per table directory/project)
    and drop it afterwards. Misses (None) are cached too, so a missing
    file is looked up only once.
    """

    def __init__(self):
        self._maps: Dict[Tuple[str, Optional[str]], Optional[ScoreMap]] = {}

    def get(
        self,
        station_key: str,
        gender: Optional[str],
        loader: Callable[[], Optional[ScoreMap]]
    ) -> Optional[ScoreMap]:
        key = (station_key, gender)
        if key not in self._maps:
            self._maps[key] = loader()
        return self._maps[key]

    def clear(self):
        self._maps.clear()

    def __len__(self) -> int:
        return len(self._maps)


# ============================================================================
# DEPENDENCY ASSEMBLY
# ============================================================================

def build_score_dependencies(
    event_year: int,
    directory: Union[str, Path] = 'config/scoremaps',
    project_id: Optional[str] = None,
    use_s1: bool = True,
    use_s4: bool = True,
    use_s6: bool = True,
    cache: Optional[ScoreMapCache] = None
) -> ScoreDependencies:
    """
    Load every enabled table and bundle it with the event year.

    Disabled tables are left as None, exactly like missing ones.

    Example:
        >>> deps = build_score_dependencies(2024, directory='config/scoremaps')
        >>> deps.s4_map is None  # no s4.csv shipped
        True
    """
    cache = cache if cache is not None else ScoreMapCache()

    def fetch(station_key: str, gender: Optional[str]) -> Optional[ScoreMap]:
        return cache.get(
            station_key,
            gender,
            lambda: load_score_map(station_key, gender, directory, project_id)
        )

    deps = ScoreDependencies(event_year=event_year)

    if use_s1:
        deps.s1_female = fetch('s1', 'female')
        deps.s1_male = fetch('s1', 'male')
    if use_s6:
        deps.s6_female = fetch('s6', 'female')
        deps.s6_male = fetch('s6', 'male')
    if use_s4:
        deps.s4_map = fetch('s4', None)

    return deps
