"""
View and Lighting Classifier

Rule-based labelling of vehicle images as front/rear and daylight/infrared.
"""

import cv2
import numpy as np
from typing import Optional, Tuple
import logging

from ..data_models import VehicleView, LightingType
from ..utils.config_manager import ConfigManager
from ..utils.image_ops import (
    to_gray, is_color, red_mask, find_external_contours,
    hough_segments, horizontal_segments,
)


class ViewLightingClassifier:
    """Heuristic front/rear and daylight/infrared classifier."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """
        Initialize view/lighting classifier.

        Args:
            config_manager: Configuration manager instance
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)

        classifier_config = self.config.get_classifier_params()

        self.headlight_threshold = classifier_config.get('headlight_threshold', 200)
        self.taillight_bright_threshold = classifier_config.get('taillight_bright_threshold', 180)

        # Lighting decision rule
        self.daylight_min_saturation = classifier_config.get('daylight_min_saturation', 0.1)
        self.daylight_min_brightness = classifier_config.get('daylight_min_brightness', 0.3)
        self.infrared_min_contrast = classifier_config.get('infrared_min_contrast', 0.7)
        self.infrared_max_saturation = classifier_config.get('infrared_max_saturation', 0.05)
        self.lighting_confidence = classifier_config.get('lighting_confidence', 0.8)

        self.logger.info("View/lighting classifier initialized")

    def classify_view(self, image: np.ndarray) -> Tuple[VehicleView, float]:
        """
        Determine whether the image shows the front or the rear of a vehicle.

        Args:
            image: BGR or grayscale image

        Returns:
            Tuple of (view, confidence) where confidence = |front - rear|
        """
        front_score = self.calculate_front_score(image)
        rear_score = self.calculate_rear_score(image)
        confidence = abs(front_score - rear_score)

        self.logger.debug(f"View scores: front={front_score:.2f}, rear={rear_score:.2f}")

        if front_score > rear_score:
            return VehicleView.FRONT, confidence
        if rear_score > front_score:
            return VehicleView.REAR, confidence
        return VehicleView.UNKNOWN, 0.0

    def classify_lighting(self, image: np.ndarray) -> Tuple[LightingType, float]:
        """
        Determine whether the image was taken in daylight or under IR illumination.

        Args:
            image: BGR or grayscale image

        Returns:
            Tuple of (lighting, confidence)
        """
        gray = to_gray(image)

        brightness = self.calculate_brightness(gray)
        contrast_pattern = self.calculate_contrast_pattern(gray)
        saturation = self.calculate_color_saturation(image)

        self.logger.debug(f"Lighting indicators: brightness={brightness:.3f}, "
                          f"contrast={contrast_pattern:.3f}, saturation={saturation:.3f}")

        if saturation > self.daylight_min_saturation and brightness > self.daylight_min_brightness:
            return LightingType.DAYLIGHT, self.lighting_confidence
        if contrast_pattern > self.infrared_min_contrast and saturation < self.infrared_max_saturation:
            return LightingType.INFRARED, self.lighting_confidence

        return LightingType.UNKNOWN, 0.0

    def calculate_front_score(self, image: np.ndarray) -> float:
        """Headlight pattern plus grille pattern evidence."""
        gray = to_gray(image)
        return self.detect_headlight_pattern(gray) + self.detect_grille_pattern(gray)

    def calculate_rear_score(self, image: np.ndarray) -> float:
        """Taillight pattern plus rear bumper evidence."""
        return self.detect_taillight_pattern(image) + self.detect_rear_bumper_pattern(to_gray(image))

    def calculate_brightness(self, gray: np.ndarray) -> float:
        """Mean grey level normalised to [0, 1]."""
        return float(gray.mean()) / 255.0 if gray.size else 0.0

    def calculate_contrast_pattern(self, gray: np.ndarray) -> float:
        """Laplacian standard deviation / 100; high for IR imagery."""
        if gray.size == 0:
            return 0.0
        laplacian = cv2.Laplacian(gray, cv2.CV_64F)
        return float(laplacian.std()) / 100.0

    def calculate_color_saturation(self, image: np.ndarray) -> float:
        """Mean HSV saturation / 255; zero for single-channel images."""
        if not is_color(image):
            return 0.0
        hsv = cv2.cvtColor(image[:, :, :3], cv2.COLOR_BGR2HSV)
        return float(hsv[:, :, 1].mean()) / 255.0

    def detect_headlight_pattern(self, gray: np.ndarray) -> float:
        """Count bright blobs in the upper half; two to four suggests headlights."""
        _, threshold = cv2.threshold(gray, self.headlight_threshold, 255, cv2.THRESH_BINARY)
        upper_half = np.ascontiguousarray(threshold[:threshold.shape[0] // 2, :])

        headlight_count = sum(
            1 for contour in find_external_contours(upper_half)
            if 100 < cv2.contourArea(contour) < 5000
        )

        if 2 <= headlight_count <= 4:
            return 0.7
        if headlight_count == 1:
            return 0.3
        return 0.1

    def detect_grille_pattern(self, gray: np.ndarray) -> float:
        """Count near-horizontal line segments in the central crop."""
        height, width = gray.shape[:2]
        edges = cv2.Canny(gray, 50, 150)
        center = np.ascontiguousarray(edges[height // 4:3 * height // 4, width // 4:3 * width // 4])

        lines = horizontal_segments(hough_segments(center, 30), max_dy=10, min_dx=30)

        if len(lines) > 3:
            return 0.6
        if len(lines) > 1:
            return 0.3
        return 0.1

    def detect_taillight_pattern(self, image: np.ndarray) -> float:
        """Red regions in colour images, bright compact regions otherwise."""
        if is_color(image):
            return self.detect_red_light_regions(image)
        return self.detect_bright_vertical_regions(to_gray(image))

    def detect_red_light_regions(self, image: np.ndarray) -> float:
        mask = red_mask(image)
        red_regions = sum(
            1 for contour in find_external_contours(mask)
            if 200 < cv2.contourArea(contour) < 8000
        )

        if red_regions >= 2:
            return 0.8
        if red_regions == 1:
            return 0.4
        return 0.1

    def detect_bright_vertical_regions(self, gray: np.ndarray) -> float:
        _, threshold = cv2.threshold(gray, self.taillight_bright_threshold, 255, cv2.THRESH_BINARY)

        vertical_regions = 0
        for contour in find_external_contours(threshold):
            _, _, w, h = cv2.boundingRect(contour)
            if h == 0:
                continue
            area = w * h
            # Taillights are often vertical or square
            if w / h < 1.5 and 300 < area < 10000:
                vertical_regions += 1

        if vertical_regions >= 2:
            return 0.6
        if vertical_regions == 1:
            return 0.3
        return 0.1

    def detect_rear_bumper_pattern(self, gray: np.ndarray) -> float:
        """Count horizontal segments in the lower half."""
        lower_half = np.ascontiguousarray(gray[gray.shape[0] // 2:, :])
        edges = cv2.Canny(lower_half, 50, 150)

        lines = horizontal_segments(hough_segments(edges, 30), max_dy=15, min_dx=25)

        if len(lines) > 2:
            return 0.5
        if len(lines) > 0:
            return 0.3
        return 0.1
