"""
Data Models for Vehicle Comparison Pipeline

Defines all data structures used throughout the system.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Tuple, Dict, Any, Optional, Union
import numpy as np


class VehicleView(Enum):
    """Which end of the vehicle faces the camera."""
    FRONT = "front"
    REAR = "rear"
    UNKNOWN = "unknown"


class LightingType(Enum):
    """Imaging modality of a vehicle image."""
    DAYLIGHT = "daylight"
    INFRARED = "infrared"
    UNKNOWN = "unknown"


class ConfidenceLevel(Enum):
    """Reliability gate attached to a comparison result."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class LightShape(IntEnum):
    """Light element shape. Values are encoded into the pattern signature."""
    RECTANGULAR = 0
    ROUND = 1
    ANGULAR = 2
    CUSTOM = 3


class LightType(IntEnum):
    """Light element role."""
    HEADLIGHT = 0
    TAILLIGHT = 1
    DRL = 2
    FOG_LIGHT = 3
    BRAKE_LIGHT = 4


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned rectangle in pixel coordinates."""
    x: int
    y: int
    width: int
    height: int

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width // 2, self.y + self.height // 2)

    @property
    def area(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class Point2D:
    """2D point in image coordinates."""
    x: float
    y: float


@dataclass
class ProcessingMetadata:
    """Image bookkeeping recorded while preparing a vehicle image."""
    original_width: int
    original_height: int
    vehicle_bounds: Bounds  # full image until a vehicle detector exists
    normalized_width: int
    normalized_height: int


@dataclass
class VehicleImage:
    """A decoded raster plus the labels assigned by quality/classification."""
    image: np.ndarray  # BGR or single-channel uint8
    view: VehicleView
    lighting: LightingType
    quality_score: float
    view_confidence: float
    lighting_confidence: float
    processing_meta: ProcessingMetadata

    def release(self) -> None:
        """Drop the raster once feature extraction is complete."""
        self.image = None


# ---------------------------------------------------------------------------
# Universal features
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VehicleProportions:
    """Dimensional ratios of the vehicle region."""
    width_height_ratio: float
    upper_lower_ratio: float
    license_plate_ratio: float  # 0.0 when no plate was found


@dataclass(frozen=True)
class StructuralElement:
    """A detected structural component (headlight, grille, taillight, bumper_line)."""
    type: str
    position: Point2D
    size: float


@dataclass(frozen=True)
class GeometricFeatures:
    """Proportions, structural elements and alignment reference points."""
    vehicle_proportions: VehicleProportions
    structural_elements: Tuple[StructuralElement, ...] = ()
    reference_points: Tuple[Point2D, ...] = ()


@dataclass(frozen=True)
class LightElement:
    """Individual headlight/taillight component."""
    position: Point2D
    shape: LightShape
    size: float
    intensity: float  # mean grey level / 255
    type: LightType


@dataclass(frozen=True)
class LightConfiguration:
    """Summary of the overall light layout."""
    num_elements: int
    symmetry: float
    spacing: float


@dataclass(frozen=True)
class LightPatternFeatures:
    """Headlight/taillight pattern features."""
    light_elements: Tuple[LightElement, ...] = ()
    pattern_signature: Tuple[float, ...] = ()  # fixed 10 slots, zero padded
    light_configuration: LightConfiguration = LightConfiguration(0, 0.5, 0.0)


@dataclass(frozen=True)
class BumperFeatures:
    """Bumper contour, texture and mounting information."""
    contour_signature: Tuple[Point2D, ...]
    texture_features: Tuple[float, ...]
    mounting_points: Tuple[Point2D, ...]
    license_plate_area: Bounds


# ---------------------------------------------------------------------------
# Daylight-only features
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Color:
    """Dominant colour with its pixel share."""
    r: int
    g: int
    b: int
    weight: float


@dataclass(frozen=True)
class ColorProfile:
    dominant_colors: Tuple[Color, ...]
    histogram: Tuple[int, ...]  # 256-bin grey histogram


@dataclass(frozen=True)
class BadgeFeature:
    position: Point2D
    size: float
    shape: str


@dataclass(frozen=True)
class TrimFeature:
    position: Point2D
    type: str
    texture: str


@dataclass(frozen=True)
class TextureSignature:
    features: Tuple[float, ...]
    type: str


@dataclass(frozen=True)
class DaylightFeatures:
    """Features that need colour and ambient light."""
    color_profile: ColorProfile
    badge_locations: Tuple[BadgeFeature, ...]
    trim_details: Tuple[TrimFeature, ...]
    surface_texture: TextureSignature


# ---------------------------------------------------------------------------
# Infrared-only features
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReflectiveElement:
    position: Point2D
    intensity: float
    size: float
    shape: str


@dataclass(frozen=True)
class HeatPattern:
    region: Bounds
    temperature: float
    gradient: Tuple[float, ...]


@dataclass(frozen=True)
class LicensePlateRegion:
    """Detected licence plate location."""
    bounds: Bounds
    confidence: float
    avg_brightness: float
    is_reflective: bool


@dataclass(frozen=True)
class IRSignature:
    """IR reflectivity fingerprint of the material around the licence plate."""
    plate_region: LicensePlateRegion
    surrounding_region: Bounds
    reflectivity_map: Tuple[Tuple[float, ...], ...]  # 8x8 grid
    material_signature: Tuple[float, ...]  # 6 values
    illumination_gradient: Tuple[float, ...]  # top, right, bottom, left
    shadow_patterns: Tuple[Point2D, ...]
    texture_features: Tuple[float, ...]  # 4 values


@dataclass(frozen=True)
class InfraredFeatures:
    """Features that need active IR illumination."""
    thermal_signature: Tuple[float, ...]
    reflective_elements: Tuple[ReflectiveElement, ...]
    heat_patterns: Tuple[HeatPattern, ...]
    material_signature: Tuple[float, ...]
    ir_signature: Optional[IRSignature] = None


LightingFeatures = Union[DaylightFeatures, InfraredFeatures]

_LIGHTING_VARIANTS = {
    LightingType.DAYLIGHT: DaylightFeatures,
    LightingType.INFRARED: InfraredFeatures,
}


@dataclass(frozen=True)
class VehicleFeatures:
    """All features extracted from one vehicle image.

    ``lighting_features`` holds the DaylightFeatures or InfraredFeatures
    variant selected by ``lighting``; it is None only for UNKNOWN lighting.
    """
    view: VehicleView
    lighting: LightingType
    geometric_features: GeometricFeatures
    light_patterns: LightPatternFeatures
    bumper_features: BumperFeatures
    lighting_features: Optional[LightingFeatures] = None
    extraction_quality: float = 0.0

    def __post_init__(self):
        expected = _LIGHTING_VARIANTS.get(self.lighting)
        if expected is None:
            if self.lighting_features is not None:
                raise ValueError("Lighting-specific features require daylight or infrared lighting")
        elif not isinstance(self.lighting_features, expected):
            raise ValueError(
                f"{self.lighting.value} lighting requires {expected.__name__}, "
                f"got {type(self.lighting_features).__name__}"
            )

    @property
    def daylight_features(self) -> Optional[DaylightFeatures]:
        if isinstance(self.lighting_features, DaylightFeatures):
            return self.lighting_features
        return None

    @property
    def infrared_features(self) -> Optional[InfraredFeatures]:
        if isinstance(self.lighting_features, InfraredFeatures):
            return self.lighting_features
        return None


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DetailedScores:
    """Similarity per feature category. Optional categories depend on lighting."""
    geometric_similarity: float
    light_pattern_similarity: float
    bumper_similarity: float
    color_similarity: Optional[float] = None
    thermal_similarity: Optional[float] = None


@dataclass(frozen=True)
class ProcessingInfo:
    """Timing, quality and consistency metadata of a comparison."""
    processing_time_ms: int = 0
    image1_quality: float = 0.0
    image2_quality: float = 0.0
    alignment_quality: float = 0.0
    view_consistency: bool = True
    lighting_consistency: bool = True


@dataclass(frozen=True)
class ComparisonResult:
    """Outcome of comparing two vehicle feature sets."""
    is_same_vehicle: bool
    similarity_score: float
    confidence_level: ConfidenceLevel
    detailed_scores: DetailedScores
    processing_info: ProcessingInfo = field(default_factory=ProcessingInfo)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation; absent optional scores are omitted."""
        scores = {
            'geometric_similarity': self.detailed_scores.geometric_similarity,
            'light_pattern_similarity': self.detailed_scores.light_pattern_similarity,
            'bumper_similarity': self.detailed_scores.bumper_similarity,
        }
        if self.detailed_scores.color_similarity is not None:
            scores['color_similarity'] = self.detailed_scores.color_similarity
        if self.detailed_scores.thermal_similarity is not None:
            scores['thermal_similarity'] = self.detailed_scores.thermal_similarity

        info = self.processing_info
        return {
            'is_same_vehicle': self.is_same_vehicle,
            'similarity_score': self.similarity_score,
            'confidence_level': self.confidence_level.value,
            'detailed_scores': scores,
            'processing_info': {
                'processing_time_ms': info.processing_time_ms,
                'image1_quality': info.image1_quality,
                'image2_quality': info.image2_quality,
                'alignment_quality': info.alignment_quality,
                'view_consistency': info.view_consistency,
                'lighting_consistency': info.lighting_consistency,
            },
        }
