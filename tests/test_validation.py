"""
Tests for Input Normalization

Tests gender synonyms, decimal cells, raw value coercion, station keys
and metric keys.
"""

import pytest
import numpy as np

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from utils.validation import (
    coerce_raw_value,
    is_finite_number,
    normalize_gender,
    parse_decimal_cell,
    resolve_metric_key,
    station_key_for_name,
)


class TestNormalizeGender:
    """Tests for free-text gender normalization."""

    @pytest.mark.parametrize("value", ['male', 'M', ' Mann ', 'männlich', 'maennlich', 'Herr', 'boy'])
    def test_male_synonyms(self, value):
        assert normalize_gender(value) == 'male'

    @pytest.mark.parametrize("value", ['female', 'f', 'Frau', 'weiblich', 'weibl', 'Mädchen', 'maedchen', 'girl', 'W'])
    def test_female_synonyms(self, value):
        assert normalize_gender(value) == 'female'

    @pytest.mark.parametrize("value", [None, '', '   ', 'divers', 'x'])
    def test_unknown_is_none(self, value):
        assert normalize_gender(value) is None


class TestParseDecimalCell:
    """Tests for score table cells."""

    @pytest.mark.parametrize("cell,expected", [
        ('12', 12.0),
        ('12,5', 12.5),
        ('12.5', 12.5),
        (' 7,25 ', 7.25),
        ('-1,5', -1.5),
        ('1e2', 100.0),
    ])
    def test_numbers(self, cell, expected):
        assert parse_decimal_cell(cell) == pytest.approx(expected)

    @pytest.mark.parametrize("cell", [None, '', 'abc', '1.234,5', 'inf', 'nan', '1_000', '-'])
    def test_rejected(self, cell):
        assert parse_decimal_cell(cell) is None


class TestRawValues:
    """Tests for measurement value coercion."""

    def test_is_finite_number(self):
        assert is_finite_number(3)
        assert is_finite_number(2.5)
        assert not is_finite_number(float('nan'))
        assert not is_finite_number(None)
        assert not is_finite_number(True)
        assert not is_finite_number('3')
        assert not is_finite_number(10 ** 400)

    @pytest.mark.parametrize("value,expected", [
        (3, 3.0),
        (np.float64(2.5), 2.5),
        ('13,4', 13.4),
        (None, None),
        (np.nan, None),
        (float('inf'), None),
        ('abc', None),
        (False, None),
        (10 ** 400, None),
    ])
    def test_coerce(self, value, expected):
        assert coerce_raw_value(value) == expected


class TestStationKeyForName:
    """Tests for mapping station names to table keys."""

    @pytest.mark.parametrize("name,key", [
        ('Beweglichkeit', 's1'),
        ('S1', 's1'),
        ('technik', 's2'),
        ('Passgenauigkeit', 's3'),
        ('Schusskraft', 's4'),
        ('Schusspräzision', 's5'),
        ('schusspraezision', 's5'),
        ('Schnelligkeit', 's6'),
        ('30m', 's6'),
        ('speed', 's6'),
    ])
    def test_known_names(self, name, key):
        assert station_key_for_name(name) == key

    def test_exact_match_only(self):
        assert station_key_for_name('S1 Beweglichkeit') is None
        assert station_key_for_name(None) is None


class TestResolveMetricKey:
    """Tests for raw-metric keys."""

    @pytest.mark.parametrize("name,key", [
        ('Beweglichkeit', 'agility'),
        ('Agility Run', 'agility'),
        ('Technik', 'technique'),
        ('Passgenauigkeit', 'passing'),
        ('Schusskraft', 'shot_power'),
        ('Shot Power', 'shot_power'),
        ('Schusspräzision', 'shot_accuracy'),
        ('Schusspraezision', 'shot_accuracy'),
        ('Shot accuracy', 'shot_accuracy'),
        ('Schnelligkeit', 'speed'),
        ('Sprint 30m', 'speed'),
    ])
    def test_known_names(self, name, key):
        assert resolve_metric_key(name) == key

    def test_unknown(self):
        assert resolve_metric_key('Weitsprung') is None
        assert resolve_metric_key('') is None
