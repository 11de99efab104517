"""
Scoring Data Model - services/models.py

Shapes consumed and produced by the scoring services. No behavior beyond
small conversions: all computation lives in the service modules.

    Station catalog + Players + Measurements   (inputs, read-only)
        |
    ScoreDependencies                          (event year + score maps)
        |
    PlayerStatEntry / PlayerPerformanceEntry   (outputs, rebuilt per request)
"""

import unicodedata
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

import pandas as pd

from utils.validation import coerce_raw_value

# Age-bucket label (e.g. "12-13") -> ordered step table of thresholds
ScoreMap = Dict[str, List[float]]

Number = Union[int, float]


# ============================================================================
# STATION IDENTITY
# ============================================================================

class StationKind(Enum):
    """Closed set of station disciplines, resolved once from the station name."""
    AGILITY = "agility"
    TECHNIQUE = "technique"
    PASSING = "passing"
    SHOT_POWER = "shot_power"
    SHOT_ACCURACY = "shot_accuracy"
    SPEED = "speed"
    GENERIC = "generic"

    @classmethod
    def from_name(cls, name: Optional[str]) -> "StationKind":
        """
        Resolve the discipline from a German station name.

        Case-insensitive substring match, first hit wins. The order below is
        the dispatch priority of the scorer and must not change.

        Example:
            >>> StationKind.from_name("S1 - Beweglichkeit")
            <StationKind.AGILITY: 'agility'>
            >>> StationKind.from_name("Weitsprung")
            <StationKind.GENERIC: 'generic'>
        """
        if not name:
            return cls.GENERIC

        normalized = unicodedata.normalize("NFC", name).lower()
        for needle, kind in _KIND_PRIORITY:
            if needle in normalized:
                return kind
        return cls.GENERIC


_KIND_PRIORITY = [
    ("beweglichkeit", StationKind.AGILITY),
    ("schnelligkeit", StationKind.SPEED),
    ("schusskraft", StationKind.SHOT_POWER),
    ("passgenauigkeit", StationKind.PASSING),
    ("schusspräzision", StationKind.SHOT_ACCURACY),
    ("technik", StationKind.TECHNIQUE),
]


# ============================================================================
# INPUT SHAPES
# ============================================================================

@dataclass
class Station:
    """One test discipline of a project's station catalog."""
    id: str
    name: str
    unit: Optional[str] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    higher_is_better: Optional[bool] = None
    kind: StationKind = field(init=False)

    def __post_init__(self):
        self.kind = StationKind.from_name(self.name)

    @classmethod
    def from_dict(cls, data: Dict) -> "Station":
        higher_is_better = data.get("higher_is_better")
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            unit=data.get("unit") if _is_present(data.get("unit")) else None,
            min_value=_optional_float(data.get("min_value")),
            max_value=_optional_float(data.get("max_value")),
            higher_is_better=bool(higher_is_better) if _is_present(higher_is_better) else None,
        )


@dataclass
class PlayerForScoring:
    """Player attributes the scorer reads. Never mutated by scoring."""
    id: str
    birth_year: Optional[int] = None
    gender: Optional[str] = None
    display_name: Optional[str] = None
    club: Optional[str] = None
    fav_position: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> "PlayerForScoring":
        birth_year = coerce_raw_value(data.get("birth_year"))
        return cls(
            id=str(data["id"]),
            birth_year=int(birth_year) if birth_year is not None else None,
            gender=data.get("gender"),
            display_name=data.get("display_name"),
            club=data.get("club"),
            fav_position=data.get("fav_position"),
        )


@dataclass
class Measurement:
    """One raw capture row. Several rows per (player, station) are allowed."""
    player_id: str
    station_id: str
    value: Optional[Number] = None

    @classmethod
    def from_dict(cls, data: Dict) -> "Measurement":
        return cls(
            player_id=str(data["player_id"]) if _is_present(data.get("player_id")) else "",
            station_id=str(data["station_id"]) if _is_present(data.get("station_id")) else "",
            value=data.get("value"),
        )


@dataclass
class ScoreDependencies:
    """
    Everything the scorer needs besides the measurement itself.

    Built by the caller (see scoremap_service.build_score_dependencies) and
    passed explicitly; the caller owns its lifetime.
    """
    event_year: int
    s1_female: Optional[ScoreMap] = None
    s1_male: Optional[ScoreMap] = None
    s6_female: Optional[ScoreMap] = None
    s6_male: Optional[ScoreMap] = None
    s4_map: Optional[ScoreMap] = None


# ============================================================================
# OUTPUT SHAPES
# ============================================================================

@dataclass
class PlayerStatEntry:
    """Score of one player at one station. raw is None => score is None."""
    id: str
    label: str
    raw: Optional[float]
    score: Optional[int]
    unit: Optional[str]

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'label': self.label,
            'raw': self.raw,
            'score': self.score,
            'unit': self.unit,
        }


@dataclass
class PlayerPerformanceEntry:
    """All station stats of one player, in canonical station order."""
    stats: List[PlayerStatEntry]
    total_score: Optional[int]

    def to_dict(self) -> Dict:
        return {
            'stats': [entry.to_dict() for entry in self.stats],
            'total_score': self.total_score,
        }


@dataclass
class LeaderboardEntry:
    """One ranked row of the summed leaderboard view."""
    rank: int
    player_id: str
    name: Optional[str]
    club: Optional[str]
    position: Optional[str]
    total_score: Optional[int]
    max_score: int
    per_station: Dict[str, Optional[int]]

    def to_dict(self) -> Dict:
        return {
            'rank': self.rank,
            'player_id': self.player_id,
            'name': self.name,
            'club': self.club,
            'position': self.position,
            'total_score': self.total_score,
            'max_score': self.max_score,
            'per_station': dict(self.per_station),
        }


@dataclass
class RawMetrics:
    """Averaged raw values per discipline, None where nothing was measured."""
    agility: Optional[float] = None
    technique: Optional[float] = None
    passing: Optional[float] = None
    shot_power: Optional[float] = None
    shot_accuracy: Optional[float] = None
    speed: Optional[float] = None


def _is_present(value) -> bool:
    # database rows come through pandas, so missing values may be NaN or NA
    return value is not None and not pd.isna(value)


def _optional_float(value) -> Optional[float]:
    if not _is_present(value):
        return None
    return float(value)
