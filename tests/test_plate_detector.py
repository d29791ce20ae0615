"""
Tests for License Plate Detector
"""

import pytest
import numpy as np

from vehicle_match.data_models import Bounds
from vehicle_match.extraction.plate_detector import PlateDetector


class TestPlateDetector:
    """Test suite for three-tier plate detection."""

    @pytest.fixture
    def detector(self, config_manager):
        """Fixture providing a plate detector instance."""
        return PlateDetector(config_manager)

    def test_detector_initialization(self, detector):
        assert detector.min_width == 80
        assert detector.max_width == 400
        assert detector.min_aspect == 2.0
        assert detector.max_aspect == 4.5

    def test_contour_detection(self, detector, ir_vehicle_image):
        """Test that a bright plate-shaped rectangle is found by the contour tier."""
        region = detector.detect_plate(ir_vehicle_image)

        assert region.bounds == Bounds(260, 300, 120, 40)
        assert region.confidence > 0.8
        assert region.avg_brightness == pytest.approx(240.0)
        assert region.is_reflective

    def test_contour_detection_on_color(self, detector, ir_vehicle_image):
        """Test that BGR input gives the same region."""
        color = np.dstack([ir_vehicle_image] * 3)
        assert detector.detect_plate(color).bounds == detector.detect_plate(ir_vehicle_image).bounds

    def test_window_search(self, detector):
        """Test the brightest-window tier when no plate-shaped contour exists."""
        image = np.zeros((480, 640), dtype=np.uint8)
        image[250:450, 200:400] = 150

        assert detector.detect_from_contours(image) is None

        region = detector.detect_plate(image)
        bounds = region.bounds
        assert bounds.width == 80
        assert bounds.height == 26
        assert bounds.x >= 200 and bounds.x + bounds.width <= 400
        assert bounds.y >= 250 and bounds.y + bounds.height <= 450
        assert region.avg_brightness == pytest.approx(150.0)
        assert region.confidence == pytest.approx(150.0 / 255.0)
        assert not region.is_reflective

    def test_fallback_region(self, detector):
        """Test the bottom-centre fallback on a black image."""
        image = np.zeros((480, 640), dtype=np.uint8)
        region = detector.detect_plate(image)

        assert region.bounds == Bounds(240, 407, 160, 53)
        assert region.confidence == 0.1
        assert region.avg_brightness == 0.0
        assert not region.is_reflective

    def test_fallback_clipped_to_small_image(self, detector):
        """Test that the fallback box never leaves a small image."""
        image = np.zeros((50, 100), dtype=np.uint8)
        region = detector.detect_plate(image)

        assert region.bounds == Bounds(0, 0, 100, 50)

    @pytest.mark.parametrize("width,height,expected", [
        (80, 20, True),
        (79, 20, False),
        (400, 100, True),
        (401, 100, False),
        (90, 20, True),
        (100, 20, False),
        (60, 30, False),
        (120, 121, False),
    ])
    def test_plate_size_limits(self, detector, width, height, expected):
        """Test that size and aspect limits are inclusive."""
        assert detector.is_valid_plate_size(width, height) is expected

    def test_candidate_position_score(self, detector):
        """Test that a candidate starting in the top third loses the position bonus."""
        image = np.full((300, 300), 255, dtype=np.uint8)
        contour = np.array([[[0, 0]], [[0, 29]], [[89, 29]], [[89, 0]]], dtype=np.int32)

        top = detector.score_candidate(image, contour, 10, 10, 90, 30)
        bottom = detector.score_candidate(image, contour, 10, 200, 90, 30)

        assert bottom - top == pytest.approx(0.05)
        assert 0.0 <= top <= 1.0
