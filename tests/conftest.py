"""
Pytest configuration and fixtures for vehicle comparison tests.
"""

import pytest
import numpy as np
import cv2

from vehicle_match.data_models import (
    VehicleView, LightingType, Point2D, Bounds, VehicleProportions, StructuralElement,
    GeometricFeatures, LightShape, LightType, LightElement, LightConfiguration,
    LightPatternFeatures, BumperFeatures, Color, ColorProfile, TextureSignature,
    DaylightFeatures, InfraredFeatures, VehicleFeatures, LicensePlateRegion,
)
from vehicle_match.utils.config_manager import ConfigManager

IMAGE_WIDTH = 640
IMAGE_HEIGHT = 480

# Plate box shared by the synthetic vehicles (x, y, width, height)
PLATE_BOX = (260, 300, 120, 40)


@pytest.fixture
def config_manager():
    """Fixture providing a configuration manager instance."""
    return ConfigManager()


@pytest.fixture
def front_image():
    """
    Synthetic grayscale front view.

    Two bright headlights in the upper half, five grille bars in the centre
    and a bright plate in the lower third on a mid-grey body.
    """
    image = np.full((IMAGE_HEIGHT, IMAGE_WIDTH), 30, dtype=np.uint8)

    # Body
    image[60:440, 60:580] = 90

    # Headlights (80x30)
    image[100:130, 120:200] = 255
    image[100:130, 440:520] = 255

    # Grille bars
    for y in range(150, 225, 15):
        image[y:y + 4, 220:420] = 150

    # Licence plate in the lower third
    image[380:420, 260:380] = 230

    return image


@pytest.fixture
def rear_color_image():
    """Synthetic BGR rear view with two red taillights and bumper lines."""
    image = np.full((IMAGE_HEIGHT, IMAGE_WIDTH, 3), 60, dtype=np.uint8)

    # Red taillights (40x60), BGR order
    image[250:310, 100:140] = (20, 20, 220)
    image[250:310, 500:540] = (20, 20, 220)

    # Bumper lines in the lower half
    image[360:364, 80:560] = 200
    image[400:404, 80:560] = 200

    return image


@pytest.fixture
def ir_vehicle_image():
    """
    Synthetic infrared rear view on dark bumper material.

    Bright taillights, two dark body bars and a retroreflective plate.
    """
    image = np.full((IMAGE_HEIGHT, IMAGE_WIDTH), 40, dtype=np.uint8)

    # Dark body bars
    image[60:80, 70:570] = 0
    image[100:120, 70:570] = 0

    # Taillights (40x60)
    image[150:210, 100:140] = 220
    image[150:210, 500:540] = 220

    # Retroreflective plate
    x, y, w, h = PLATE_BOX
    image[y:y + h, x:x + w] = 240

    return image


@pytest.fixture
def ir_swapped_plate_image(ir_vehicle_image):
    """The same plate mounted on a vehicle with brighter bumper material around it."""
    image = ir_vehicle_image.copy()
    x, y, w, h = PLATE_BOX

    image[240:400, 150:490] = 150
    image[y:y + h, x:x + w] = 240

    return image


@pytest.fixture
def plate_region():
    """Plate region matching PLATE_BOX."""
    x, y, w, h = PLATE_BOX
    return LicensePlateRegion(bounds=Bounds(x, y, w, h), confidence=0.9,
                              avg_brightness=240.0, is_reflective=True)


@pytest.fixture
def low_quality_image():
    """Small, flat image that fails the hard quality gate."""
    return np.full((48, 64), 128, dtype=np.uint8)


@pytest.fixture
def checkerboard_image():
    """High-frequency grayscale pattern with no colour."""
    tiles = (np.indices((IMAGE_HEIGHT, IMAGE_WIDTH)) // 2).sum(axis=0) % 2
    return (tiles * 255).astype(np.uint8)


@pytest.fixture
def daylight_image():
    """Uniformly coloured, well-lit BGR image."""
    return np.full((IMAGE_HEIGHT, IMAGE_WIDTH, 3), (40, 120, 200), dtype=np.uint8)


@pytest.fixture
def png_bytes(front_image):
    """PNG encoding of the front image."""
    ok, buffer = cv2.imencode('.png', front_image)
    assert ok
    return buffer.tobytes()


@pytest.fixture
def sample_geometric_features():
    """Hand-built geometric features with two headlights and a grille."""
    return GeometricFeatures(
        vehicle_proportions=VehicleProportions(
            width_height_ratio=4 / 3, upper_lower_ratio=0.8, license_plate_ratio=0.2),
        structural_elements=(
            StructuralElement('headlight', Point2D(160.0, 115.0), 2291.0),
            StructuralElement('headlight', Point2D(480.0, 115.0), 2291.0),
            StructuralElement('grille', Point2D(320.0, 185.0), 13000.0),
        ),
        reference_points=(
            Point2D(160.0, 115.0), Point2D(480.0, 115.0), Point2D(320.0, 185.0),
            Point2D(0.0, 0.0), Point2D(640.0, 0.0), Point2D(0.0, 480.0), Point2D(640.0, 480.0),
        ),
    )


@pytest.fixture
def sample_light_patterns():
    """Hand-built pair of rectangular headlights."""
    elements = (
        LightElement(Point2D(160.0, 115.0), LightShape.RECTANGULAR, 2400.0, 1.0, LightType.HEADLIGHT),
        LightElement(Point2D(480.0, 115.0), LightShape.RECTANGULAR, 2400.0, 1.0, LightType.HEADLIGHT),
    )
    return LightPatternFeatures(
        light_elements=elements,
        pattern_signature=(2401.0, 2401.0, 1.0, 1.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0),
        light_configuration=LightConfiguration(num_elements=2, symmetry=1.0, spacing=320.0),
    )


@pytest.fixture
def sample_bumper_features():
    """Hand-built bumper features around a centred plate."""
    return BumperFeatures(
        contour_signature=tuple(Point2D(float(x), 440.0) for x in range(60, 580, 40)),
        texture_features=(0.05, 0.2, 0.5, 0.4),
        mounting_points=(Point2D(260.0, 380.0), Point2D(380.0, 380.0),
                         Point2D(260.0, 420.0), Point2D(380.0, 420.0)),
        license_plate_area=Bounds(260, 380, 120, 40),
    )


@pytest.fixture
def sample_daylight_features():
    """Hand-built daylight feature block."""
    return DaylightFeatures(
        color_profile=ColorProfile(
            dominant_colors=(Color(80, 80, 80, 0.6), Color(240, 240, 240, 0.2)),
            histogram=tuple([0] * 256),
        ),
        badge_locations=(),
        trim_details=(),
        surface_texture=TextureSignature(features=(0.05, 0.2, 0.5, 0.4), type='textured'),
    )


@pytest.fixture
def sample_infrared_features():
    """Hand-built infrared feature block without an IR signature."""
    return InfraredFeatures(
        thermal_signature=(0.9, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.1),
        reflective_elements=(),
        heat_patterns=(),
        material_signature=(0.05, 0.0, 0.9, 0.01, 0.02, 0.1),
    )


@pytest.fixture
def daylight_features(sample_geometric_features, sample_light_patterns,
                      sample_bumper_features, sample_daylight_features):
    """Complete front/daylight feature set."""
    return VehicleFeatures(
        view=VehicleView.FRONT,
        lighting=LightingType.DAYLIGHT,
        geometric_features=sample_geometric_features,
        light_patterns=sample_light_patterns,
        bumper_features=sample_bumper_features,
        lighting_features=sample_daylight_features,
        extraction_quality=0.8,
    )


@pytest.fixture
def infrared_features(sample_geometric_features, sample_light_patterns,
                      sample_bumper_features, sample_infrared_features):
    """Complete front/infrared feature set."""
    return VehicleFeatures(
        view=VehicleView.FRONT,
        lighting=LightingType.INFRARED,
        geometric_features=sample_geometric_features,
        light_patterns=sample_light_patterns,
        bumper_features=sample_bumper_features,
        lighting_features=sample_infrared_features,
        extraction_quality=0.8,
    )
