"""
Tests for Capture Service

Tests hit-count conversion for the passing and shot-accuracy stations.
"""

import logging

import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.capture_service import passing_raw_from_hits, shot_accuracy_raw_from_hits


class TestPassingRawFromHits:
    """Tests for weighted passing points."""

    def test_all_hits_is_100(self):
        assert passing_raw_from_hits(3, 2, 1) == 100

    def test_no_hits(self):
        assert passing_raw_from_hits() == 0

    @pytest.mark.parametrize("hits,expected", [
        ((1, 0, 0), 11),
        ((0, 1, 0), 17),
        ((0, 0, 1), 33),
        ((2, 1, 0), 39),
    ])
    def test_weights(self, hits, expected):
        assert passing_raw_from_hits(*hits) == expected

    def test_counts_clamped_to_attempts(self, caplog):
        """More hits than attempts never exceed the 100 scale."""
        with caplog.at_level(logging.WARNING):
            assert passing_raw_from_hits(5, 9, 4) == 100
        assert 'clamped' in caplog.text

    def test_negative_and_missing_counts(self):
        assert passing_raw_from_hits(-2, None, float('nan')) == 0

    def test_string_counts(self):
        """Form values may arrive as text."""
        assert passing_raw_from_hits('3', '2', '1') == 100


class TestShotAccuracyRawFromHits:
    """Tests for weighted shot-accuracy points."""

    def test_all_hits_is_24(self):
        assert shot_accuracy_raw_from_hits(3, 3, 3, 3) == 24

    def test_top_corners_weigh_three(self):
        assert shot_accuracy_raw_from_hits(top_left=2, top_right=1) == 9

    def test_bottom_corners_weigh_one(self):
        assert shot_accuracy_raw_from_hits(bottom_left=2, bottom_right=3) == 5

    def test_counts_clamped(self):
        assert shot_accuracy_raw_from_hits(10, 10, 10, 10) == 24
        assert shot_accuracy_raw_from_hits(-1, 0, 0, 0) == 0
