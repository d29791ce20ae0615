"""
Vehicle Comparison Module

Lighting-adaptive weighted similarity, greedy set matching and result
sanitization.
"""

from .comparison_engine import ComparisonEngine
from .weights import CategoryWeights, DEFAULT_WEIGHTS, DEFAULT_THRESHOLDS
from .result_sanitizer import clamp_unit, sanitize_result
from . import matching

__all__ = [
    'ComparisonEngine', 'CategoryWeights', 'DEFAULT_WEIGHTS', 'DEFAULT_THRESHOLDS',
    'clamp_unit', 'sanitize_result', 'matching'
]
