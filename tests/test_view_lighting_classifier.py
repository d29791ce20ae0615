"""
Tests for View and Lighting Classifier
"""

import pytest
import numpy as np

from vehicle_match.data_models import VehicleView, LightingType
from vehicle_match.preprocessing.view_lighting_classifier import ViewLightingClassifier


class TestViewClassification:
    """Test suite for front/rear classification."""

    @pytest.fixture
    def classifier(self, config_manager):
        """Fixture providing a classifier instance."""
        return ViewLightingClassifier(config_manager)

    def test_front_view(self, classifier, front_image):
        """Test that headlights and grille bars classify as front."""
        view, confidence = classifier.classify_view(front_image)

        assert view == VehicleView.FRONT
        assert confidence >= 0.5

    def test_rear_view(self, classifier, rear_color_image):
        """Test that red taillights and bumper lines classify as rear."""
        view, confidence = classifier.classify_view(rear_color_image)

        assert view == VehicleView.REAR
        assert confidence >= 0.5

    def test_featureless_image_is_unknown(self, classifier):
        """Test that equal front and rear evidence gives UNKNOWN with zero confidence."""
        blank = np.zeros((480, 640), dtype=np.uint8)
        view, confidence = classifier.classify_view(blank)

        assert view == VehicleView.UNKNOWN
        assert confidence == 0.0

    def test_headlight_pattern_levels(self, classifier, front_image):
        """Test the headlight pattern score levels."""
        assert classifier.detect_headlight_pattern(front_image) == 0.7

        one_light = front_image.copy()
        one_light[100:130, 440:520] = 90
        assert classifier.detect_headlight_pattern(one_light) == 0.3

        assert classifier.detect_headlight_pattern(np.zeros((480, 640), dtype=np.uint8)) == 0.1

    def test_grille_pattern(self, classifier, front_image):
        """Test that the grille bars produce the strongest grille score."""
        assert classifier.detect_grille_pattern(front_image) == 0.6

    def test_red_taillights(self, classifier, rear_color_image):
        """Test the red-region taillight score."""
        assert classifier.detect_taillight_pattern(rear_color_image) == 0.8

    def test_confidence_is_score_difference(self, classifier, front_image):
        """Test that view confidence equals |front - rear|."""
        _, confidence = classifier.classify_view(front_image)
        expected = abs(classifier.calculate_front_score(front_image)
                       - classifier.calculate_rear_score(front_image))
        assert confidence == pytest.approx(expected)


class TestLightingClassification:
    """Test suite for daylight/infrared classification."""

    @pytest.fixture
    def classifier(self):
        return ViewLightingClassifier()

    def test_daylight(self, classifier, daylight_image):
        """Test that a saturated, bright image is daylight."""
        lighting, confidence = classifier.classify_lighting(daylight_image)

        assert lighting == LightingType.DAYLIGHT
        assert confidence == 0.8

    def test_infrared(self, classifier, checkerboard_image):
        """Test that a high-contrast colourless image is infrared."""
        lighting, confidence = classifier.classify_lighting(checkerboard_image)

        assert lighting == LightingType.INFRARED
        assert confidence == 0.8

    def test_unknown(self, classifier):
        """Test that a flat grey image cannot be classified."""
        flat = np.full((100, 100, 3), 128, dtype=np.uint8)
        lighting, confidence = classifier.classify_lighting(flat)

        assert lighting == LightingType.UNKNOWN
        assert confidence == 0.0

    def test_indicators(self, classifier, daylight_image, checkerboard_image):
        """Test the brightness, contrast and saturation indicators."""
        assert classifier.calculate_color_saturation(checkerboard_image) == 0.0
        assert classifier.calculate_color_saturation(daylight_image) == pytest.approx(0.8, abs=0.01)
        assert classifier.calculate_contrast_pattern(checkerboard_image) > 0.7
        assert 0.0 <= classifier.calculate_brightness(checkerboard_image) <= 1.0
