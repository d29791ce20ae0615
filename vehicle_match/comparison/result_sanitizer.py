"""
Result Sanitizer

Guarantees that no NaN/Inf or out-of-range value leaves the comparison
pipeline.
"""

import math
import logging
from dataclasses import replace
from typing import Optional

from ..data_models import ComparisonResult, DetailedScores, ProcessingInfo

logger = logging.getLogger(__name__)

# Neutral default for quantities where "unknown" is more honest than zero
NEUTRAL = 0.5


def clamp_unit(value: Optional[float], default: float = 0.0) -> float:
    """
    Clamp a value into [0, 1].

    Args:
        value: Value to sanitize
        default: Replacement for None, NaN and infinite values

    Returns:
        Finite value in [0, 1]
    """
    if value is None:
        return default
    try:
        value = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Non-numeric value {value!r} replaced with {default}")
        return default
    if not math.isfinite(value):
        logger.debug(f"Non-finite value replaced with {default}")
        return default
    return max(0.0, min(1.0, value))


def _optional_unit(value: Optional[float]) -> Optional[float]:
    return None if value is None else clamp_unit(value, 0.0)


def _non_negative_int(value) -> int:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(value) or value < 0:
        return 0
    return int(value)


def sanitize_result(result: ComparisonResult) -> ComparisonResult:
    """
    Return a copy of ``result`` with every float finite and within [0, 1].

    Scores and qualities default to 0.0, alignment quality to 0.5. Absent
    optional category scores stay absent.
    """
    scores = result.detailed_scores
    info = result.processing_info

    return replace(
        result,
        is_same_vehicle=bool(result.is_same_vehicle),
        similarity_score=clamp_unit(result.similarity_score, 0.0),
        detailed_scores=DetailedScores(
            geometric_similarity=clamp_unit(scores.geometric_similarity, 0.0),
            light_pattern_similarity=clamp_unit(scores.light_pattern_similarity, 0.0),
            bumper_similarity=clamp_unit(scores.bumper_similarity, 0.0),
            color_similarity=_optional_unit(scores.color_similarity),
            thermal_similarity=_optional_unit(scores.thermal_similarity),
        ),
        processing_info=ProcessingInfo(
            processing_time_ms=_non_negative_int(info.processing_time_ms),
            image1_quality=clamp_unit(info.image1_quality, 0.0),
            image2_quality=clamp_unit(info.image2_quality, 0.0),
            alignment_quality=clamp_unit(info.alignment_quality, NEUTRAL),
            view_consistency=bool(info.view_consistency),
            lighting_consistency=bool(info.lighting_consistency),
        ),
    )
