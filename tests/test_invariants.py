"""
Comprehensive Invariant Tests

Tests the properties that must always hold for the scoring engine:
1. Linear Normalization: bounds map to 0 and 100 in the right direction
2. Degenerate Bounds: min == max always scores 0
3. Aggregation: mean of present scores, None when nothing was measured
4. Age Resolution: default age and clamping
5. Bucket Selection: nearest midpoint
6. Hit-Count Stations: clamped and scaled
7. Table Scenarios: step lookup and formula fallback
8. Edge Cases: unmeasured players, non-finite values, score range
"""

import pytest
import numpy as np

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.age_service import nearest_age_bucket, resolve_age
from services.aggregation_service import aggregate_score
from services.models import Measurement, PlayerForScoring, ScoreDependencies, Station
from services.performance_service import build_player_performances
from services.scoring_service import score_for_station


GENERIC_BOUNDS = [(0.0, 10.0), (1.0, 5.0), (-20.0, 20.0), (3.5, 4.25), (0.0, 150.0)]


class TestInvariant1LinearNormalization:
    """
    INVARIANT 1: Generic stations map their bounds onto 0 and 100.

    higher_is_better: max -> 100, min -> 0
    lower_is_better:  min -> 100, max -> 0
    """

    @pytest.mark.parametrize("min_value,max_value", GENERIC_BOUNDS)
    def test_higher_is_better(self, empty_deps, min_value, max_value):
        station = Station('x', 'Weitsprung', min_value=min_value, max_value=max_value, higher_is_better=True)
        player = PlayerForScoring('p')
        assert score_for_station(station, player, max_value, empty_deps) == 100
        assert score_for_station(station, player, min_value, empty_deps) == 0

    @pytest.mark.parametrize("min_value,max_value", GENERIC_BOUNDS)
    def test_lower_is_better(self, empty_deps, min_value, max_value):
        station = Station('x', 'Weitsprung', min_value=min_value, max_value=max_value, higher_is_better=False)
        player = PlayerForScoring('p')
        assert score_for_station(station, player, min_value, empty_deps) == 100
        assert score_for_station(station, player, max_value, empty_deps) == 0


class TestInvariant2DegenerateBounds:
    """INVARIANT 2: min_value == max_value scores 0 for every raw value."""

    @pytest.mark.parametrize("raw", [-100.0, 0.0, 5.0, 1e9])
    @pytest.mark.parametrize("higher_is_better", [True, False, None])
    def test_always_zero(self, empty_deps, raw, higher_is_better):
        station = Station('x', 'Technik', min_value=5, max_value=5, higher_is_better=higher_is_better)
        assert score_for_station(station, PlayerForScoring('p'), raw, empty_deps) == 0


class TestInvariant3Aggregation:
    """INVARIANT 3: The aggregate is the rounded mean, None when empty."""

    def test_empty_is_none(self):
        assert aggregate_score([]) is None
        assert aggregate_score([None, None]) is None

    def test_mean(self):
        assert aggregate_score([80, 60]) == 70


class TestInvariant4AgeResolution:
    """INVARIANT 4: Missing birth year => 16, otherwise clamped to [6, 49]."""

    def test_ages(self):
        assert resolve_age(2024, None) == 16
        assert resolve_age(2024, 2010) == 14
        assert resolve_age(2024, 1900) == 49
        assert resolve_age(2024, 2020) == 6

    @pytest.mark.parametrize("birth_year", range(1950, 2030, 7))
    def test_always_in_range(self, birth_year):
        assert 6 <= resolve_age(2024, birth_year) <= 49


class TestInvariant5BucketSelection:
    """INVARIANT 5: The bucket with the nearest midpoint is chosen."""

    def test_nearest_bucket(self):
        assert nearest_age_bucket(13, ["10-11", "12-13", "14-15"]) == "12-13"


class TestInvariant6HitCountStations:
    """INVARIANT 6: Passing is clamped, shot accuracy is scaled from 24."""

    @pytest.mark.parametrize("raw,expected", [(100, 100), (150, 100), (-10, 0)])
    def test_passing(self, empty_deps, raw, expected):
        station = Station('s3', 'Passgenauigkeit')
        assert score_for_station(station, PlayerForScoring('p'), raw, empty_deps) == expected

    @pytest.mark.parametrize("raw,expected", [(24, 100), (12, 50), (30, 100)])
    def test_shot_accuracy(self, empty_deps, raw, expected):
        station = Station('s5', 'Schusspräzision')
        assert score_for_station(station, PlayerForScoring('p'), raw, empty_deps) == expected


class TestInvariant7TableScenarios:
    """INVARIANT 7: Table lookups and their formula fallbacks."""

    def test_shot_power_without_table(self, empty_deps):
        """No s4 table => 0..150 km/h, higher is better."""
        station = Station('s4', 'Schusskraft')
        assert score_for_station(station, PlayerForScoring('p', 2010), 150, empty_deps) == 100

    def test_agility_step_lookup(self):
        """Female, age 13, bucket 12-13 [12, 14, 16, 18], 13.5 s => 99."""
        deps = ScoreDependencies(event_year=2024, s1_female={'12-13': [12.0, 14.0, 16.0, 18.0]})
        player = PlayerForScoring('p', birth_year=2011, gender='female')
        assert score_for_station(Station('s1', 'Beweglichkeit'), player, 13.5, deps) == 99


class TestInvariant8EdgeCases:
    """INVARIANT 8: Degenerate inputs have defined outputs and never raise."""

    def test_player_without_measurements(self, sample_stations, empty_deps):
        player = PlayerForScoring('p', birth_year=2012)
        result = build_player_performances([player], sample_stations, [], empty_deps)

        entry = result['p']
        assert len(entry.stats) == len(sample_stations)
        assert all(stat.raw is None and stat.score is None for stat in entry.stats)
        assert entry.total_score is None

    @pytest.mark.parametrize("raw", [float('nan'), float('inf'), -float('inf')])
    def test_non_finite_raw_scores_zero(self, sample_stations, table_deps, raw):
        player = PlayerForScoring('p', birth_year=2011, gender='m')
        for station in sample_stations:
            assert score_for_station(station, player, raw, table_deps) == 0

    def test_scores_always_integers_in_range(self, sample_stations, table_deps):
        """Every station returns an int in [0, 100] across a wide raw range."""
        players = [
            PlayerForScoring('a', birth_year=2011, gender='w'),
            PlayerForScoring('b', birth_year=2009, gender='m'),
            PlayerForScoring('c'),
        ]
        for raw in np.linspace(-50, 300, 71):
            for station in sample_stations:
                for player in players:
                    score = score_for_station(station, player, float(raw), table_deps)
                    assert isinstance(score, int)
                    assert 0 <= score <= 100

    def test_int_too_large_for_float(self, sample_stations, table_deps):
        """An int beyond float range scores 0 and is dropped from averages."""
        huge = 10 ** 400
        player = PlayerForScoring('p', birth_year=2011, gender='m')
        for station in sample_stations:
            assert score_for_station(station, player, huge, table_deps) == 0

        assert aggregate_score([huge, None]) is None
        assert aggregate_score([huge, 80]) == 80

        measurements = [Measurement('p', 'st3', huge), Measurement('p', 'st3', 60)]
        entry = build_player_performances([player], sample_stations, measurements, table_deps)['p']
        passing = next(stat for stat in entry.stats if stat.id == 'st3')
        assert passing.raw == 60
        assert passing.score == 60
