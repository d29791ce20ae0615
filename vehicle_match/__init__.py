"""
Vehicle Image Comparison for Licence Plate Swap Detection

Decides whether two front or rear vehicle images, taken under the same
lighting, show the same physical vehicle. A swapped plate keeps its own
appearance but not the vehicle around it, so the vehicle structure is
fingerprinted and, for infrared images, so is the reflectivity of the
material surrounding the plate.

This package implements:
- Image quality assessment and rule-based view/lighting classification
- Geometric, light pattern, bumper and colour feature extraction
- Licence plate localisation and IR signature extraction around the plate
- Lighting-adaptive weighted similarity with confidence estimation
"""

__version__ = "1.0.0"

from .preprocessing import ImageLoader, QualityAssessor, ViewLightingClassifier
from .extraction import (
    FeatureExtractor, GeometricExtractor, LightPatternExtractor, PlateDetector,
    IRSignatureExtractor, InfraredFeatureExtractor, BumperExtractor, DaylightFeatureExtractor
)
from .comparison import ComparisonEngine, sanitize_result
from .service import VehicleComparisonService
from .data_models import (
    VehicleView, LightingType, ConfidenceLevel, VehicleFeatures,
    ComparisonResult, DetailedScores, ProcessingInfo
)
from .exceptions import (
    VehicleComparisonError, ImageLoadError, QualityRejectionError,
    ClassificationRejectionError, ConsistencyRejectionError, IncompatibleComparisonError
)

__all__ = [
    # Preprocessing
    'ImageLoader', 'QualityAssessor', 'ViewLightingClassifier',
    # Extraction
    'FeatureExtractor', 'GeometricExtractor', 'LightPatternExtractor', 'PlateDetector',
    'IRSignatureExtractor', 'InfraredFeatureExtractor', 'BumperExtractor', 'DaylightFeatureExtractor',
    # Comparison
    'ComparisonEngine', 'sanitize_result', 'VehicleComparisonService',
    # Data Models
    'VehicleView', 'LightingType', 'ConfidenceLevel', 'VehicleFeatures',
    'ComparisonResult', 'DetailedScores', 'ProcessingInfo',
    # Errors
    'VehicleComparisonError', 'ImageLoadError', 'QualityRejectionError',
    'ClassificationRejectionError', 'ConsistencyRejectionError', 'IncompatibleComparisonError'
]
