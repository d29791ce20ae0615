"""
Feature Extraction Module

Geometric, light pattern, bumper and lighting-specific feature extractors,
plus licence plate detection and the IR signature around the plate.
"""

from .base import FeatureExtractor
from .geometric_extractor import GeometricExtractor
from .light_pattern_extractor import LightPatternExtractor
from .plate_detector import PlateDetector
from .ir_signature_extractor import IRSignatureExtractor, InfraredFeatureExtractor
from .bumper_extractor import BumperExtractor, DaylightFeatureExtractor

__all__ = [
    'FeatureExtractor', 'GeometricExtractor', 'LightPatternExtractor', 'PlateDetector',
    'IRSignatureExtractor', 'InfraredFeatureExtractor', 'BumperExtractor', 'DaylightFeatureExtractor'
]
