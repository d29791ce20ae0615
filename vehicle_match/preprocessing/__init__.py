"""
Image Preprocessing Module

Image loading, quality gating and view/lighting classification.
"""

from .image_loader import ImageLoader
from .quality_assessor import QualityAssessor
from .view_lighting_classifier import ViewLightingClassifier

__all__ = ['ImageLoader', 'QualityAssessor', 'ViewLightingClassifier']
