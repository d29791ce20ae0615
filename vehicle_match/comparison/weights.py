"""
Lighting-Adaptive Weight Tables

Category weights and same-vehicle thresholds per lighting modality. The
module-level tables are immutable and shared by every engine instance.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping

from ..data_models import DetailedScores, LightingType


@dataclass(frozen=True)
class CategoryWeights:
    """Weight of each similarity category in the overall score."""
    geometric: float
    light_pattern: float
    bumper: float
    color: float
    thermal: float

    def __post_init__(self):
        values = (self.geometric, self.light_pattern, self.bumper, self.color, self.thermal)
        if any(v < 0 for v in values):
            raise ValueError("Category weights must be non-negative")
        if abs(sum(values) - 1.0) > 1e-6:
            raise ValueError(f"Category weights must sum to 1.0 (got {sum(values):.4f})")

    @classmethod
    def from_dict(cls, table: Dict[str, Any]) -> 'CategoryWeights':
        return cls(
            geometric=float(table.get('geometric', 0.0)),
            light_pattern=float(table.get('light_pattern', 0.0)),
            bumper=float(table.get('bumper', 0.0)),
            color=float(table.get('color', 0.0)),
            thermal=float(table.get('thermal', 0.0)),
        )

    def combine(self, scores: DetailedScores) -> float:
        """Weighted sum; categories without a score contribute 0.0."""
        color = scores.color_similarity if scores.color_similarity is not None else 0.0
        thermal = scores.thermal_similarity if scores.thermal_similarity is not None else 0.0
        return (self.geometric * scores.geometric_similarity
                + self.light_pattern * scores.light_pattern_similarity
                + self.bumper * scores.bumper_similarity
                + self.color * color
                + self.thermal * thermal)


DAYLIGHT_WEIGHTS = CategoryWeights(geometric=0.30, light_pattern=0.30, bumper=0.20, color=0.20, thermal=0.0)
INFRARED_WEIGHTS = CategoryWeights(geometric=0.35, light_pattern=0.35, bumper=0.20, color=0.0, thermal=0.10)

DEFAULT_WEIGHTS: Mapping[LightingType, CategoryWeights] = MappingProxyType({
    LightingType.DAYLIGHT: DAYLIGHT_WEIGHTS,
    LightingType.INFRARED: INFRARED_WEIGHTS,
    LightingType.UNKNOWN: INFRARED_WEIGHTS,
})

# Infrared gets a lower bar: fewer discriminating categories are available
DEFAULT_THRESHOLDS: Mapping[LightingType, float] = MappingProxyType({
    LightingType.DAYLIGHT: 0.75,
    LightingType.INFRARED: 0.70,
    LightingType.UNKNOWN: 0.70,
})


def load_weights(comparison_config: Dict[str, Any]) -> Dict[LightingType, CategoryWeights]:
    """Default tables overridden by the ``comparison.weights`` config section."""
    weights = dict(DEFAULT_WEIGHTS)
    for name, table in (comparison_config.get('weights', {}) or {}).items():
        weights[LightingType(name)] = CategoryWeights.from_dict(table)
    weights[LightingType.UNKNOWN] = weights[LightingType.INFRARED]
    return weights


def load_thresholds(comparison_config: Dict[str, Any]) -> Dict[LightingType, float]:
    """Default thresholds overridden by the ``comparison.thresholds`` config section."""
    thresholds = dict(DEFAULT_THRESHOLDS)
    for name, value in (comparison_config.get('thresholds', {}) or {}).items():
        thresholds[LightingType(name)] = float(value)
    thresholds[LightingType.UNKNOWN] = thresholds[LightingType.INFRARED]
    return thresholds
