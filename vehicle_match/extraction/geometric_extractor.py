"""
Geometric Feature Extractor

View-consistent proportions, structural elements and alignment reference
points of a vehicle image.
"""

import cv2
import numpy as np
from collections import Counter
from typing import Optional, List, Tuple
import logging

from .base import FeatureExtractor
from ..data_models import (
    VehicleView, LightingType, VehicleProportions, StructuralElement,
    GeometricFeatures, Point2D,
)
from ..utils.config_manager import ConfigManager
from ..utils.image_ops import (
    to_gray, is_color, red_mask, find_external_contours, bbox_center,
    hough_segments, horizontal_segments,
)


class GeometricExtractor(FeatureExtractor):
    """
    Extracts vehicle proportions and landmark positions.

    Front images yield headlight and grille landmarks, rear images yield
    taillight and bumper-line landmarks. The four image corners are always
    appended to the reference points so point-set comparison never sees an
    empty set.
    """

    name = 'geometric_features'

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """
        Initialize geometric extractor.

        Args:
            config_manager: Configuration manager instance
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)

        geometric_config = self.config.get_geometric_params()

        self.canny_low = geometric_config.get('canny_low', 50)
        self.canny_high = geometric_config.get('canny_high', 150)
        self.hough_threshold = geometric_config.get('hough_threshold', 50)
        self.min_dividing_line_length = geometric_config.get('min_dividing_line_length', 50)
        self.headlight_threshold = geometric_config.get('headlight_threshold', 200)
        self.taillight_bright_threshold = geometric_config.get('taillight_bright_threshold', 180)
        self.min_grille_edge_pixels = geometric_config.get('min_grille_edge_pixels', 100)

        self.logger.info(f"Geometric extractor initialized: hough_threshold={self.hough_threshold}")

    def extract(self, image: np.ndarray, view: VehicleView,
                lighting: LightingType = LightingType.UNKNOWN) -> GeometricFeatures:
        """
        Extract geometric features.

        Args:
            image: BGR or grayscale vehicle image
            view: Vehicle view the landmarks are looked up for
            lighting: Unused; part of the extractor interface

        Returns:
            GeometricFeatures with proportions, elements and reference points
        """
        gray = to_gray(image)

        proportions = self.extract_proportions(gray)
        landmarks = self.detect_landmarks(image, gray, view)

        structural_elements = tuple(landmarks)
        reference_points = tuple(element.position for element in landmarks) + self.corner_points(gray)

        self.logger.debug(f"Geometric features: {len(structural_elements)} elements, "
                          f"upper/lower={proportions.upper_lower_ratio:.3f}, "
                          f"plate_ratio={proportions.license_plate_ratio:.3f}")

        return GeometricFeatures(
            vehicle_proportions=proportions,
            structural_elements=structural_elements,
            reference_points=reference_points,
        )

    def extract_proportions(self, gray: np.ndarray) -> VehicleProportions:
        height, width = gray.shape[:2]
        return VehicleProportions(
            width_height_ratio=width / height if height > 0 else 1.0,
            upper_lower_ratio=self.calculate_upper_lower_ratio(gray),
            license_plate_ratio=self.estimate_license_plate_ratio(gray),
        )

    def calculate_upper_lower_ratio(self, gray: np.ndarray) -> float:
        """
        Ratio of the vehicle part above the dominant horizontal line to the part below.

        The dividing line is the most frequent y-midpoint of long
        near-horizontal Hough segments. Returns 1.0 when there is none.
        """
        edges = cv2.Canny(gray, self.canny_low, self.canny_high)
        segments = horizontal_segments(
            hough_segments(edges, self.hough_threshold),
            max_dy=10, min_dx=self.min_dividing_line_length,
        )
        if len(segments) == 0:
            return 1.0

        midpoints = ((segments[:, 1] + segments[:, 3]) // 2).tolist()
        dividing_y = Counter(midpoints).most_common(1)[0][0]

        height = gray.shape[0]
        if dividing_y <= 0 or dividing_y >= height:
            return 1.0
        return dividing_y / (height - dividing_y)

    def estimate_license_plate_ratio(self, gray: np.ndarray) -> float:
        """
        Plate width relative to vehicle width, 0.0 when no plate-like contour exists.

        The first qualifying edge contour is used.
        """
        height, width = gray.shape[:2]
        image_area = float(width * height)
        edges = cv2.Canny(gray, self.canny_low, self.canny_high)

        for contour in find_external_contours(edges):
            _, _, w, h = cv2.boundingRect(contour)
            if h == 0:
                continue
            aspect_ratio = w / h
            if 1.5 < aspect_ratio < 2.5:
                area_fraction = (w * h) / image_area
                if 0.01 < area_fraction < 0.15:
                    return w / width

        return 0.0

    def detect_landmarks(self, image: np.ndarray, gray: np.ndarray,
                         view: VehicleView) -> List[StructuralElement]:
        """View-dependent structural elements in detection order."""
        elements = []

        if view == VehicleView.FRONT:
            for position, size in self.detect_headlights(gray):
                elements.append(StructuralElement('headlight', position, size))
            grille = self.detect_grille(gray)
            if grille is not None:
                elements.append(StructuralElement('grille', *grille))

        elif view == VehicleView.REAR:
            for position, size in self.detect_taillights(image, gray):
                elements.append(StructuralElement('taillight', position, size))
            bumper_line = self.detect_bumper_line(gray)
            if bumper_line is not None:
                elements.append(StructuralElement('bumper_line', *bumper_line))

        return elements

    def detect_headlights(self, gray: np.ndarray) -> List[Tuple[Point2D, float]]:
        _, threshold = cv2.threshold(gray, self.headlight_threshold, 255, cv2.THRESH_BINARY)
        upper_half = np.ascontiguousarray(threshold[:threshold.shape[0] // 2, :])
        return self._regions(upper_half, 100, 5000)

    def detect_taillights(self, image: np.ndarray, gray: np.ndarray) -> List[Tuple[Point2D, float]]:
        """Red regions first, bright regions when no red region is found."""
        regions = []
        if is_color(image):
            regions = self._regions(red_mask(image), 200, 8000)

        if not regions:
            _, threshold = cv2.threshold(gray, self.taillight_bright_threshold, 255, cv2.THRESH_BINARY)
            regions = self._regions(threshold, 300, 10000)

        return regions

    def detect_grille(self, gray: np.ndarray) -> Optional[Tuple[Point2D, float]]:
        """Centre of mass of the edge pixels in the central crop."""
        height, width = gray.shape[:2]
        x0, y0 = width // 4, height // 4
        center = gray[y0:3 * height // 4, x0:3 * width // 4]
        if center.size == 0:
            return None

        edges = cv2.Canny(np.ascontiguousarray(center), self.canny_low, self.canny_high)
        ys, xs = np.nonzero(edges)
        if len(xs) <= self.min_grille_edge_pixels:
            return None

        position = Point2D(float(xs.mean()) + x0, float(ys.mean()) + y0)
        size = float((xs.max() - xs.min() + 1) * (ys.max() - ys.min() + 1))
        return position, size

    def detect_bumper_line(self, gray: np.ndarray) -> Optional[Tuple[Point2D, float]]:
        """Midpoint and length of the longest near-horizontal segment in the lower half."""
        offset = gray.shape[0] // 2
        lower_half = np.ascontiguousarray(gray[offset:, :])
        edges = cv2.Canny(lower_half, self.canny_low, self.canny_high)

        segments = hough_segments(edges, 40)
        if len(segments) == 0:
            return None
        segments = segments[np.abs(segments[:, 3] - segments[:, 1]) < 15]
        if len(segments) == 0:
            return None

        lengths = np.abs(segments[:, 2] - segments[:, 0])
        best = int(np.argmax(lengths))
        if lengths[best] == 0:
            return None

        x1, y1, x2, y2 = segments[best]
        position = Point2D((x1 + x2) / 2.0, (y1 + y2) / 2.0 + offset)
        return position, float(lengths[best])

    def corner_points(self, gray: np.ndarray) -> Tuple[Point2D, ...]:
        height, width = gray.shape[:2]
        return (
            Point2D(0.0, 0.0),
            Point2D(float(width), 0.0),
            Point2D(0.0, float(height)),
            Point2D(float(width), float(height)),
        )

    def _regions(self, binary: np.ndarray, min_area: float, max_area: float) -> List[Tuple[Point2D, float]]:
        regions = []
        for contour in find_external_contours(binary):
            area = cv2.contourArea(contour)
            if min_area < area < max_area:
                regions.append((Point2D(*bbox_center(contour)), float(area)))
        return regions
