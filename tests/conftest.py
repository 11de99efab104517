"""
Pytest Configuration and Fixtures

Provides shared fixtures for all tests including:
- Station catalog, players and measurements of a sample project
- Score table texts in the hand-written CSV format
- ScoreDependencies with and without tables
- A score table directory on disk
"""

import pytest
import pandas as pd
from pathlib import Path
from typing import Dict, List

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.models import Measurement, PlayerForScoring, ScoreDependencies, Station
from utils.config import Settings


# ============================================================
# Score Table Fixtures
# ============================================================

S1_FEMALE_TEXT = (
    "Punkte;10-11;12-13;14-15\n"
    "100;13,0;12,0;11,0\n"
    "99;15,0;14,0;13,0\n"
    "98;17,0;16,0;15,0\n"
    "97;19,0;18,0;17,0\n"
)

S1_MALE_TEXT = (
    "Punkte;10-11;12-13;14-15\n"
    "100;12,0;11,0;10,0\n"
    "99;14,0;13,0;12,0\n"
)

# two header rows: bucket labels, then a unit row
S4_TEXT = (
    "Punkte;10-11;12-13;14-15\n"
    "Einheit;km/h;km/h;km/h\n"
    "100;80;90;100\n"
    "99;70;80;90\n"
    "98;60;70;80\n"
)


@pytest.fixture
def s1_female_text() -> str:
    return S1_FEMALE_TEXT


@pytest.fixture
def s1_male_text() -> str:
    return S1_MALE_TEXT


@pytest.fixture
def s4_text() -> str:
    return S4_TEXT


@pytest.fixture
def scoremap_dir(tmp_path) -> Path:
    """
    Score table folder with s1 (both genders) and s4, no s6.

    Returns:
        Path of the folder
    """
    (tmp_path / "s1_female.csv").write_text(S1_FEMALE_TEXT, encoding="utf-8")
    (tmp_path / "s1_male.csv").write_text(S1_MALE_TEXT, encoding="utf-8")
    (tmp_path / "s4.csv").write_text(S4_TEXT, encoding="utf-8")
    return tmp_path


# ============================================================
# Score Dependency Fixtures
# ============================================================

@pytest.fixture
def empty_deps() -> ScoreDependencies:
    """No tables at all: every table-backed station uses its formula."""
    return ScoreDependencies(event_year=2024)


@pytest.fixture
def table_deps() -> ScoreDependencies:
    """Small hand-made tables for agility, speed and shot power."""
    return ScoreDependencies(
        event_year=2024,
        s1_female={'10-11': [13.0, 15.0], '12-13': [12.0, 14.0, 16.0, 18.0], '14-15': [11.0, 13.0]},
        s1_male={'12-13': [11.0, 13.0], '14-15': [10.0, 12.0]},
        s6_female={'12-13': [5.0, 5.5, 6.0]},
        s6_male={'12-13': [4.5, 5.0, 5.5]},
        s4_map={'12-13': [90.0, 80.0, 70.0], '14-15': [100.0, 90.0, 80.0]},
    )


# ============================================================
# Project Data Fixtures
# ============================================================

@pytest.fixture
def sample_stations() -> List[Station]:
    """The six canonical stations, deliberately out of display order."""
    return [
        Station('st6', 'Schnelligkeit', unit='s'),
        Station('st4', 'Schusskraft', unit='km/h'),
        Station('st1', 'Beweglichkeit', unit='s'),
        Station('st2', 'Technik', unit='Punkte', min_value=0, max_value=10, higher_is_better=True),
        Station('st5', 'Schusspräzision', unit='Punkte'),
        Station('st3', 'Passgenauigkeit', unit='Punkte'),
    ]


@pytest.fixture
def sample_players() -> List[PlayerForScoring]:
    return [
        PlayerForScoring('p1', birth_year=2011, gender='w', display_name='Anna', club='FC Nord', fav_position='ST'),
        PlayerForScoring('p2', birth_year=2011, gender='m', display_name='Ben', club='SV Süd', fav_position='IV'),
        PlayerForScoring('p3', birth_year=None, gender=None, display_name='Cem', club=None, fav_position=None),
    ]


@pytest.fixture
def sample_measurements() -> List[Measurement]:
    """
    Anna: passing twice (re-take), shot accuracy once.
    Ben: passing once.
    Cem: nothing.
    """
    return [
        Measurement('p1', 'st3', 80),
        Measurement('p1', 'st3', 60),
        Measurement('p1', 'st5', 12),
        Measurement('p2', 'st3', 50),
    ]


@pytest.fixture
def project_frames() -> Dict[str, pd.DataFrame]:
    """Database rows of one project as fetch_dataframe would return them."""
    return {
        'projects': pd.DataFrame({
            'id': [7],
            'name': ['Sichtung Frühjahr'],
            'date': ['2024-04-20'],
        }),
        'players': pd.DataFrame({
            'id': [1, 2],
            'display_name': ['Anna', 'Ben'],
            'club': ['FC Nord', None],
            'fav_position': ['ST', 'IV'],
            'birth_year': [2011.0, None],
            'gender': ['weiblich', 'm'],
        }),
        'stations': pd.DataFrame({
            'id': [10, 11],
            'name': ['Passgenauigkeit', 'Weitsprung'],
            'unit': ['Punkte', None],
            'min_value': [None, 1.0],
            'max_value': [None, 5.0],
            'higher_is_better': [None, True],
        }),
        'measurements': pd.DataFrame({
            'player_id': [1, 1, 2],
            'station_id': [10, 11, 10],
            'value': [70.0, 3.0, 40.0],
        }),
    }


@pytest.fixture
def settings_with_tables(scoremap_dir) -> Settings:
    return Settings(score_maps_dir=scoremap_dir)
