"""
Greedy Matching Utilities

Set-to-set similarity by greedy best match: every item of the first set is
paired with its best counterpart in the second set, independently of the
other items. No one-to-one assignment is enforced, so results are
asymmetric in general; ``symmetric`` averages both directions.
"""

import numpy as np
from typing import Callable, Sequence, TypeVar
from scipy.spatial.distance import cdist

from ..data_models import Point2D

T = TypeVar('T')

MATCH_THRESHOLD = 0.3


def as_array(points: Sequence[Point2D]) -> np.ndarray:
    """(N, 2) float array of point coordinates."""
    if len(points) == 0:
        return np.zeros((0, 2), dtype=np.float64)
    return np.array([(p.x, p.y) for p in points], dtype=np.float64)


def pairwise_distances(points_a: Sequence[Point2D], points_b: Sequence[Point2D]) -> np.ndarray:
    """Euclidean distance matrix of shape (len(a), len(b))."""
    return cdist(as_array(points_a), as_array(points_b))


def nearest_distances(points_a: Sequence[Point2D], points_b: Sequence[Point2D]) -> np.ndarray:
    """Distance from every point of ``a`` to its nearest point of ``b``."""
    if len(points_a) == 0 or len(points_b) == 0:
        return np.zeros(0, dtype=np.float64)
    return pairwise_distances(points_a, points_b).min(axis=1)


def point_distance(a: Point2D, b: Point2D) -> float:
    return float(np.hypot(a.x - b.x, a.y - b.y))


def best_match_scores(items_a: Sequence[T], items_b: Sequence[T],
                      score_fn: Callable[[T, T], float]) -> np.ndarray:
    """Best pair score of every item of ``a`` against all items of ``b``."""
    if len(items_a) == 0 or len(items_b) == 0:
        return np.zeros(0, dtype=np.float64)
    return np.array([max(score_fn(a, b) for b in items_b) for a in items_a], dtype=np.float64)


def greedy_similarity(items_a: Sequence[T], items_b: Sequence[T],
                      score_fn: Callable[[T, T], float],
                      threshold: float = MATCH_THRESHOLD,
                      normalize_by_smaller: bool = False) -> float:
    """
    Average best-match score of the items of ``a`` whose best score exceeds the threshold.

    Args:
        items_a: Set driving the matching
        items_b: Set searched for each item of ``a``
        score_fn: Pair score in [0, 1]
        threshold: Minimum best score for an item to count as matched
        normalize_by_smaller: Divide the matched total by the size of the
            smaller set instead of the matched count

    Returns:
        1.0 when both sets are empty, 0.0 when exactly one is empty or
        nothing matches
    """
    if len(items_a) == 0 and len(items_b) == 0:
        return 1.0
    if len(items_a) == 0 or len(items_b) == 0:
        return 0.0

    scores = best_match_scores(items_a, items_b, score_fn)
    matched = scores[scores > threshold]
    if len(matched) == 0:
        return 0.0

    if normalize_by_smaller:
        return float(matched.sum()) / min(len(items_a), len(items_b))
    return float(matched.mean())


def point_set_similarity(points_a: Sequence[Point2D], points_b: Sequence[Point2D],
                         max_distance: float, scale: float,
                         both_empty: float = 1.0, one_empty: float = 0.0) -> float:
    """
    exp(-mean / scale) over nearest-neighbour distances below ``max_distance``.

    Returns 0.0 when no point of ``a`` has a neighbour within range.
    """
    if len(points_a) == 0 and len(points_b) == 0:
        return both_empty
    if len(points_a) == 0 or len(points_b) == 0:
        return one_empty

    distances = nearest_distances(points_a, points_b)
    matched = distances[distances < max_distance]
    if len(matched) == 0:
        return 0.0
    return float(np.exp(-matched.mean() / scale))


def symmetric(similarity_fn: Callable[..., float], a, b, *args, **kwargs) -> float:
    """Average of ``similarity_fn`` evaluated in both directions."""
    return (similarity_fn(a, b, *args, **kwargs) + similarity_fn(b, a, *args, **kwargs)) / 2.0


def cosine_similarity(vector_a: Sequence[float], vector_b: Sequence[float]) -> float:
    """
    Cosine similarity of two equal-length vectors.

    Different lengths give 0.0, two empty vectors 1.0, and a zero vector 0.0.
    """
    if len(vector_a) != len(vector_b):
        return 0.0
    if len(vector_a) == 0:
        return 1.0

    a = np.asarray(vector_a, dtype=np.float64)
    b = np.asarray(vector_b, dtype=np.float64)
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


def ratio_similarity(a: float, b: float, default: float = 0.5) -> float:
    """1 - |a - b| / max(a, b); ``default`` when the maximum is not positive."""
    maximum = max(a, b)
    if maximum <= 0:
        return default
    return 1.0 - abs(a - b) / maximum
