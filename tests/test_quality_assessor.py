"""
Tests for Image Quality Assessor
"""

import pytest
import numpy as np
import cv2
from hypothesis import given, settings, strategies as st

from vehicle_match.preprocessing.quality_assessor import QualityAssessor


class TestQualityAssessor:
    """Test suite for the quality assessor."""

    @pytest.fixture
    def assessor(self, config_manager):
        """Fixture providing a quality assessor instance."""
        return QualityAssessor(config_manager)

    def test_assessor_initialization(self, assessor):
        """Test that the assessor picks up the configured weights."""
        assert assessor.min_width == 640
        assert assessor.min_height == 480
        assert sum(assessor.weights.values()) == pytest.approx(1.0)
        assert hasattr(assessor, 'logger')

    def test_sharp_image_passes(self, assessor, front_image):
        """Test that a sharp, full-resolution image scores well."""
        scores = assessor.assess_detailed(front_image)

        assert scores['resolution'] == 1.0
        assert scores['blur'] > 0.5
        assert scores['quality'] >= 0.5

    def test_flat_small_image(self, assessor, low_quality_image):
        """Test that a flat, undersized image fails the hard gate."""
        scores = assessor.assess_detailed(low_quality_image)

        assert scores['blur'] == 0.0
        assert scores['contrast'] == 0.0
        assert scores['noise'] == 1.0
        assert scores['resolution'] == pytest.approx(0.1)
        assert scores['quality'] == pytest.approx(0.22)
        assert scores['quality'] < 0.3

    def test_blurring_lowers_quality(self, assessor, front_image):
        """Test that heavy blur reduces the blur score."""
        blurred = cv2.GaussianBlur(front_image, (31, 31), 10)

        assert assessor.assess_blur(blurred) < assessor.assess_blur(front_image)

    def test_empty_image(self, assessor):
        """Test that an empty raster scores zero."""
        assert assessor.assess(np.zeros((0, 0), dtype=np.uint8)) == 0.0
        assert assessor.assess(None) == 0.0

    def test_color_and_gray_agree(self, assessor, front_image):
        """Test that colour input is scored on its grey conversion."""
        color = cv2.cvtColor(front_image, cv2.COLOR_GRAY2BGR)
        assert assessor.assess(color) == pytest.approx(assessor.assess(front_image))

    @settings(max_examples=25, deadline=None)
    @given(
        height=st.integers(min_value=1, max_value=64),
        width=st.integers(min_value=1, max_value=64),
        seed=st.integers(min_value=0, max_value=2 ** 16),
    )
    def test_quality_in_unit_range(self, height, width, seed):
        """Property test: quality and all sub-scores stay within [0, 1]."""
        rng = np.random.default_rng(seed)
        image = rng.integers(0, 256, size=(height, width), dtype=np.uint8)

        scores = QualityAssessor().assess_detailed(image)
        for value in scores.values():
            assert 0.0 <= value <= 1.0
