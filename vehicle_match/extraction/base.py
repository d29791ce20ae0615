"""
Feature Extractor Interface

Every extractor consumes an image plus its view/lighting labels and produces
one named feature block of VehicleFeatures.
"""

from abc import ABC, abstractmethod
from typing import Any

import numpy as np

from ..data_models import VehicleView, LightingType


class FeatureExtractor(ABC):
    """Base class for the per-image feature extractors."""

    #: VehicleFeatures field the extractor fills
    name: str = ''

    def applies_to(self, lighting: LightingType) -> bool:
        """Whether the extractor runs for images with the given lighting."""
        return True

    @abstractmethod
    def extract(self, image: np.ndarray, view: VehicleView, lighting: LightingType) -> Any:
        """Extract the feature block. Must not raise for valid rasters."""
