"""
Tests for greedy matching utilities
"""

import math

import pytest
import numpy as np
from hypothesis import given, settings, strategies as st

from vehicle_match.comparison import matching
from vehicle_match.data_models import Point2D

coordinates = st.floats(min_value=0.0, max_value=640.0, allow_nan=False, allow_infinity=False)
points = st.builds(Point2D, coordinates, coordinates)
point_sets = st.lists(points, max_size=12)


def exact_score(a, b):
    return 1.0 if a == b else 0.0


class TestGreedySimilarity:
    """Test suite for greedy best-match similarity."""

    def test_both_empty(self):
        assert matching.greedy_similarity([], [], exact_score) == 1.0

    def test_one_empty(self):
        assert matching.greedy_similarity([1], [], exact_score) == 0.0
        assert matching.greedy_similarity([], [1], exact_score) == 0.0

    def test_no_match_above_threshold(self):
        assert matching.greedy_similarity([1, 2], [3, 4], exact_score) == 0.0

    def test_mean_of_matched_items(self):
        """Test that unmatched items are left out of the average."""
        assert matching.greedy_similarity([1, 2], [1, 5], exact_score) == 1.0

    def test_threshold_is_strict(self):
        """Test that a best score exactly at the threshold does not count as a match."""
        def constant(a, b):
            return 0.3
        assert matching.greedy_similarity([1], [1], constant) == 0.0
        assert matching.greedy_similarity([1], [1], constant, threshold=0.29) == pytest.approx(0.3)

    def test_normalize_by_smaller(self):
        """Test that normalising by the smaller set penalises unmatched items."""
        score = matching.greedy_similarity([1, 2], [1, 9, 8], exact_score, normalize_by_smaller=True)
        assert score == pytest.approx(0.5)

    def test_asymmetry(self):
        """Test that greedy matching is driven from the first set."""
        def closeness(a, b):
            return max(0.0, 1.0 - abs(a - b) / 10.0)

        forward = matching.greedy_similarity([0, 1], [0], closeness)
        backward = matching.greedy_similarity([0], [0, 1], closeness)

        assert forward == pytest.approx(0.95)
        assert backward == 1.0
        assert matching.symmetric(matching.greedy_similarity, [0, 1], [0], closeness) == pytest.approx(0.975)


class TestPointSets:
    """Test suite for point set helpers."""

    def test_nearest_distances(self):
        a = [Point2D(0, 0), Point2D(10, 0)]
        b = [Point2D(0, 3), Point2D(100, 100)]

        distances = matching.nearest_distances(a, b)
        assert distances.tolist() == pytest.approx([3.0, math.hypot(10, 3)])

    def test_pairwise_distances_shape(self):
        matrix = matching.pairwise_distances([Point2D(0, 0)] * 3, [Point2D(1, 1)] * 2)
        assert matrix.shape == (3, 2)

    def test_point_set_identity(self):
        pts = [Point2D(1, 2), Point2D(30, 40)]
        assert matching.point_set_similarity(pts, pts, 50.0, 20.0) == 1.0

    def test_point_set_empty_defaults(self):
        assert matching.point_set_similarity([], [], 50.0, 20.0) == 1.0
        assert matching.point_set_similarity([Point2D(0, 0)], [], 50.0, 20.0) == 0.0
        assert matching.point_set_similarity([], [], 50.0, 20.0, both_empty=0.5) == 0.5

    def test_point_set_out_of_range(self):
        assert matching.point_set_similarity([Point2D(0, 0)], [Point2D(100, 0)], 50.0, 20.0) == 0.0

    def test_point_set_decay(self):
        score = matching.point_set_similarity([Point2D(0, 0)], [Point2D(10, 0)], 50.0, 20.0)
        assert score == pytest.approx(math.exp(-0.5))

    @settings(max_examples=50, deadline=None)
    @given(a=point_sets, b=point_sets)
    def test_point_set_in_unit_range(self, a, b):
        """Property test: point set similarity is always within [0, 1]."""
        score = matching.point_set_similarity(a, b, 50.0, 20.0)
        assert 0.0 <= score <= 1.0

    @settings(max_examples=50, deadline=None)
    @given(a=point_sets)
    def test_point_set_reflexive(self, a):
        """Property test: a point set is fully similar to itself."""
        assert matching.point_set_similarity(a, a, 50.0, 20.0) == 1.0


class TestVectorSimilarity:
    """Test suite for cosine and ratio similarity."""

    def test_cosine_identity(self):
        assert matching.cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_cosine_orthogonal(self):
        assert matching.cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0

    def test_cosine_length_mismatch(self):
        assert matching.cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0]) == 0.0

    def test_cosine_empty_and_zero(self):
        assert matching.cosine_similarity([], []) == 1.0
        assert matching.cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0

    @settings(max_examples=50, deadline=None)
    @given(values=st.lists(st.floats(min_value=-1e6, max_value=1e6, allow_nan=False), min_size=1, max_size=10))
    def test_cosine_bounded_and_symmetric(self, values):
        """Property test: cosine similarity is symmetric and within [-1, 1]."""
        other = list(reversed(values))
        forward = matching.cosine_similarity(values, other)
        assert forward == matching.cosine_similarity(other, values)
        assert -1.0 - 1e-9 <= forward <= 1.0 + 1e-9

    def test_ratio_similarity(self):
        assert matching.ratio_similarity(2.0, 4.0) == 0.5
        assert matching.ratio_similarity(3.0, 3.0) == 1.0
        assert matching.ratio_similarity(0.0, 0.0) == 0.5
        assert matching.ratio_similarity(0.0, 0.0, default=1.0) == 1.0

    @settings(max_examples=50, deadline=None)
    @given(a=st.floats(min_value=0.0, max_value=1e6), b=st.floats(min_value=0.0, max_value=1e6))
    def test_ratio_similarity_properties(self, a, b):
        """Property test: ratio similarity is symmetric and within [0, 1] for non-negative input."""
        score = matching.ratio_similarity(a, b)
        assert score == matching.ratio_similarity(b, a)
        assert 0.0 <= score <= 1.0

    def test_as_array(self):
        assert matching.as_array([]).shape == (0, 2)
        assert np.array_equal(matching.as_array([Point2D(1, 2)]), np.array([[1.0, 2.0]]))
