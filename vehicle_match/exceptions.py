"""
Error Taxonomy

Terminal failures of the comparison pipeline. Numeric and detection
degradations are never raised; they resolve to neutral defaults instead.
"""

from typing import Optional


class VehicleComparisonError(Exception):
    """Base class for all terminal comparison failures."""


class ImageLoadError(VehicleComparisonError):
    """An image could not be read or decoded."""


class QualityRejectionError(VehicleComparisonError, ValueError):
    """Image quality is below the hard rejection threshold."""

    def __init__(self, value: float, threshold: float, image_index: Optional[int] = None):
        self.value = value
        self.threshold = threshold
        self.image_index = image_index
        prefix = f"Image {image_index}: " if image_index is not None else ""
        super().__init__(f"{prefix}image quality too low: {value:.3f} < {threshold}")


class ClassificationRejectionError(VehicleComparisonError, ValueError):
    """View or lighting could not be determined with enough confidence."""

    def __init__(self, label: str, confidence: float, threshold: float,
                 image_index: Optional[int] = None):
        self.label = label
        self.confidence = confidence
        self.threshold = threshold
        self.image_index = image_index
        prefix = f"Image {image_index}: " if image_index is not None else ""
        super().__init__(
            f"{prefix}unable to determine vehicle {label} with sufficient confidence: "
            f"{confidence:.3f} < {threshold}"
        )


class ConsistencyRejectionError(VehicleComparisonError, ValueError):
    """The two images cannot be compared (view, lighting or quality mismatch)."""


class IncompatibleComparisonError(VehicleComparisonError, ValueError):
    """Feature sets with different views or lighting were handed to the engine."""
