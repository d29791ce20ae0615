"""
Tests for the feature and result data models
"""

from dataclasses import replace

import pytest

from vehicle_match.data_models import (
    LightingType, Bounds, VehicleFeatures, ComparisonResult, ConfidenceLevel, DetailedScores,
    ProcessingInfo,
)


class TestVehicleFeatures:
    """The lighting-specific block must match the lighting type."""

    def test_daylight_accessors(self, daylight_features, sample_daylight_features):
        assert daylight_features.daylight_features is sample_daylight_features
        assert daylight_features.infrared_features is None

    def test_infrared_accessors(self, infrared_features, sample_infrared_features):
        assert infrared_features.infrared_features is sample_infrared_features
        assert infrared_features.daylight_features is None

    def test_daylight_requires_daylight_block(self, daylight_features, sample_infrared_features):
        with pytest.raises(ValueError, match="DaylightFeatures"):
            replace(daylight_features, lighting_features=sample_infrared_features)

    def test_infrared_requires_block(self, infrared_features):
        with pytest.raises(ValueError, match="InfraredFeatures"):
            replace(infrared_features, lighting_features=None)

    def test_unknown_lighting_has_no_block(self, daylight_features):
        features = replace(daylight_features, lighting=LightingType.UNKNOWN, lighting_features=None)
        assert features.daylight_features is None
        assert features.infrared_features is None

        with pytest.raises(ValueError):
            VehicleFeatures(
                view=features.view,
                lighting=LightingType.UNKNOWN,
                geometric_features=features.geometric_features,
                light_patterns=features.light_patterns,
                bumper_features=features.bumper_features,
                lighting_features=daylight_features.lighting_features,
            )


class TestBounds:

    def test_center_uses_integer_halves(self):
        assert Bounds(10, 20, 5, 7).center == (12, 23)

    def test_area(self):
        assert Bounds(0, 0, 120, 40).area == 4800


class TestComparisonResult:
    """Test suite for the JSON-ready result representation."""

    def test_to_dict_omits_absent_scores(self):
        result = ComparisonResult(
            is_same_vehicle=True,
            similarity_score=0.9,
            confidence_level=ConfidenceLevel.HIGH,
            detailed_scores=DetailedScores(0.9, 0.8, 0.7, thermal_similarity=0.95),
            processing_info=ProcessingInfo(processing_time_ms=42),
        )

        data = result.to_dict()

        assert data['confidence_level'] == 'high'
        assert data['detailed_scores'] == {
            'geometric_similarity': 0.9,
            'light_pattern_similarity': 0.8,
            'bumper_similarity': 0.7,
            'thermal_similarity': 0.95,
        }
        assert data['processing_info']['processing_time_ms'] == 42
        assert data['processing_info']['lighting_consistency'] is True
