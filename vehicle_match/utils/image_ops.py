"""
Image Operations

Small OpenCV helpers shared by the classifier and the feature extractors.
"""

import cv2
import numpy as np
from typing import List, Optional, Tuple
from scipy.stats import entropy

# HSV red wraps around hue 0, so two ranges are needed
RED_HSV_RANGES = (
    ((0, 50, 50), (10, 255, 255)),
    ((170, 50, 50), (180, 255, 255)),
)


def to_uint8(image: np.ndarray) -> np.ndarray:
    if image.dtype == np.uint8:
        return image
    return np.clip(image, 0, 255).astype(np.uint8)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Return a single-channel uint8 view of ``image``."""
    image = to_uint8(image)
    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    if image.ndim == 3:
        return image[:, :, 0].copy()
    return image


def to_bgr(image: np.ndarray) -> np.ndarray:
    """Return a 3-channel BGR version of ``image``."""
    image = to_uint8(image)
    if image.ndim == 3 and image.shape[2] == 1:
        image = image[:, :, 0]
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image


def is_color(image: np.ndarray) -> bool:
    return image.ndim == 3 and image.shape[2] >= 3


def find_external_contours(binary: np.ndarray) -> List[np.ndarray]:
    """External contours of a binary mask."""
    contours, _ = cv2.findContours(binary, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    return list(contours)


def red_mask(image: np.ndarray) -> np.ndarray:
    """Binary mask of red pixels in a BGR image, covering both hue ranges."""
    hsv = cv2.cvtColor(to_bgr(image), cv2.COLOR_BGR2HSV)
    mask = np.zeros(hsv.shape[:2], dtype=np.uint8)
    for lower, upper in RED_HSV_RANGES:
        mask = cv2.bitwise_or(mask, cv2.inRange(hsv, np.array(lower), np.array(upper)))
    return mask


def hough_segments(edges: np.ndarray, threshold: int) -> np.ndarray:
    """Probabilistic Hough segments as an (N, 4) array of x1, y1, x2, y2."""
    lines = cv2.HoughLinesP(edges, 1, np.pi / 180, threshold)
    if lines is None:
        return np.zeros((0, 4), dtype=np.int32)
    return lines.reshape(-1, 4)


def horizontal_segments(segments: np.ndarray, max_dy: float, min_dx: float) -> np.ndarray:
    """Keep segments with |dy| < max_dy and |dx| > min_dx."""
    if len(segments) == 0:
        return segments
    dx = np.abs(segments[:, 2] - segments[:, 0])
    dy = np.abs(segments[:, 3] - segments[:, 1])
    return segments[(dy < max_dy) & (dx > min_dx)]


def bbox_center(contour: np.ndarray) -> Tuple[float, float]:
    """Bounding-box centre of a contour (integer-halved like the plate bounds)."""
    x, y, w, h = cv2.boundingRect(contour)
    return float(x + w // 2), float(y + h // 2)


def contour_centroid(contour: np.ndarray) -> Tuple[float, float]:
    """Area centroid of a contour, bounding-box centre for degenerate shapes."""
    moments = cv2.moments(contour)
    if moments['m00'] == 0:
        return bbox_center(contour)
    return moments['m10'] / moments['m00'], moments['m01'] / moments['m00']


def histogram_entropy(values: np.ndarray) -> float:
    """Shannon entropy (bits) of the 256-bin histogram of uint8 values."""
    if values.size == 0:
        return 0.0
    hist = np.bincount(values.ravel().astype(np.uint8), minlength=256)
    return float(entropy(hist, base=2))


def texture_descriptor(gray: np.ndarray, mask: Optional[np.ndarray] = None) -> Tuple[float, ...]:
    """
    Four-value texture vector of a grey region.

    Args:
        gray: Single-channel uint8 region
        mask: Optional boolean mask selecting the pixels to describe

    Returns:
        (local variance, gradient magnitude, horizontal directionality,
        histogram entropy / 8), each roughly within [0, 1]
    """
    if gray.size == 0:
        return (0.0, 0.0, 0.0, 0.0)
    if mask is None:
        mask = np.ones(gray.shape, dtype=bool)
    if not np.any(mask):
        return (0.0, 0.0, 0.0, 0.0)

    # 1. Local variance (texture roughness)
    blurred = cv2.GaussianBlur(gray, (5, 5), 0)
    diff = cv2.absdiff(gray, blurred)
    local_variance = float(diff[mask].mean()) / 255.0

    # 2. Gradient magnitude
    grad_x = cv2.Sobel(gray, cv2.CV_64F, 1, 0, ksize=3)
    grad_y = cv2.Sobel(gray, cv2.CV_64F, 0, 1, ksize=3)
    magnitude = cv2.magnitude(grad_x, grad_y)
    gradient = float(magnitude[mask].mean()) / 255.0

    # 3. Horizontal vs vertical directionality
    horizontal = abs(float(grad_x[mask].mean()))
    vertical = abs(float(grad_y[mask].mean()))
    directionality = horizontal / (horizontal + vertical) if horizontal + vertical > 0 else 0.0

    # 4. Histogram entropy, normalised by the 8-bit maximum
    regularity = histogram_entropy(gray[mask]) / 8.0

    return (local_variance, gradient, directionality, regularity)
