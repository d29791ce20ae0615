"""
Light Pattern Extractor

Finds headlight/taillight regions and summarises them as light elements, a
fixed-length pattern signature and a layout configuration.
"""

import cv2
import numpy as np
from typing import Optional, List, Tuple
import logging

from .base import FeatureExtractor
from ..data_models import (
    VehicleView, LightingType, LightShape, LightType, LightElement,
    LightConfiguration, LightPatternFeatures, Point2D,
)
from ..utils.config_manager import ConfigManager
from ..utils.image_ops import to_gray, is_color, red_mask, find_external_contours


class LightPatternExtractor(FeatureExtractor):
    """
    Lighting- and view-dependent light element extraction.

    Pattern signature fill order (fixed capacity, zero padded):
      slots 0..n-1  size + intensity + shape code of each element, left to right
      slot n        mean element intensity (n >= 1)
      slot n+1      left/right symmetry (n >= 2)
    """

    name = 'light_patterns'

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """
        Initialize light pattern extractor.

        Args:
            config_manager: Configuration manager instance
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)

        light_config = self.config.get_light_pattern_params()

        # IR lights are more uniformly bright than daylight lights
        self.daylight_threshold = light_config.get('daylight_threshold', 180)
        self.infrared_threshold = light_config.get('infrared_threshold', 200)

        self.front_area = tuple(light_config.get('front_area', (100, 10000)))
        self.rear_area = tuple(light_config.get('rear_area', (200, 8000)))
        self.red_aspect_range = tuple(light_config.get('red_aspect_range', (0.3, 3.0)))
        self.round_circularity = light_config.get('round_circularity', 0.7)
        self.signature_length = int(light_config.get('signature_length', 10))

        self.kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (5, 5))

        self.logger.info(f"Light pattern extractor initialized: thresholds "
                         f"daylight={self.daylight_threshold}, infrared={self.infrared_threshold}")

    def extract(self, image: np.ndarray, view: VehicleView,
                lighting: LightingType) -> LightPatternFeatures:
        """
        Extract light pattern features.

        Args:
            image: BGR or grayscale vehicle image
            view: FRONT looks for headlights, REAR for taillights
            lighting: Selects the brightness threshold and the red-mask path

        Returns:
            LightPatternFeatures; empty for UNKNOWN view
        """
        if view == VehicleView.FRONT:
            contours = self.find_bright_regions(image, lighting, self.front_area)
            contours = self.filter_candidates(contours, (20, 200), (15, 150))
            light_type = LightType.HEADLIGHT
        elif view == VehicleView.REAR:
            contours = self.find_taillight_regions(image, lighting)
            contours = self.filter_candidates(contours, (15, 150), (20, 200))
            light_type = LightType.TAILLIGHT
        else:
            return LightPatternFeatures()

        gray = to_gray(image)
        elements = sorted(
            (self.analyze_element(contour, gray, light_type) for contour in contours),
            key=lambda e: (e.position.x, e.position.y),
        )

        self.logger.debug(f"Found {len(elements)} {light_type.name.lower()} elements")

        return LightPatternFeatures(
            light_elements=tuple(elements),
            pattern_signature=self.generate_pattern_signature(elements),
            light_configuration=self.classify_light_configuration(elements),
        )

    def find_bright_regions(self, image: np.ndarray, lighting: LightingType,
                            area_range: Tuple[float, float]) -> List[np.ndarray]:
        """Contours of bright regions after a morphological opening."""
        gray = to_gray(image)
        threshold_value = self.infrared_threshold if lighting == LightingType.INFRARED else self.daylight_threshold

        _, threshold = cv2.threshold(gray, threshold_value, 255, cv2.THRESH_BINARY)
        cleaned = cv2.morphologyEx(threshold, cv2.MORPH_OPEN, self.kernel)

        regions = []
        for contour in find_external_contours(cleaned):
            _, _, w, h = cv2.boundingRect(contour)
            if area_range[0] < w * h < area_range[1]:
                regions.append(contour)
        return regions

    def find_taillight_regions(self, image: np.ndarray, lighting: LightingType) -> List[np.ndarray]:
        """Red regions for colour daylight images, bright regions otherwise."""
        if lighting == LightingType.DAYLIGHT and is_color(image):
            return self.find_red_regions(image)
        return self.find_bright_regions(image, lighting, self.rear_area)

    def find_red_regions(self, image: np.ndarray) -> List[np.ndarray]:
        min_area, max_area = self.rear_area
        min_aspect, max_aspect = self.red_aspect_range

        regions = []
        for contour in find_external_contours(red_mask(image)):
            _, _, w, h = cv2.boundingRect(contour)
            if h == 0:
                continue
            if min_area < w * h < max_area and min_aspect < w / h < max_aspect:
                regions.append(contour)
        return regions

    def filter_candidates(self, contours: List[np.ndarray], width_range: Tuple[int, int],
                          height_range: Tuple[int, int]) -> List[np.ndarray]:
        """Keep regions whose bounding box has light-like dimensions (exclusive bounds)."""
        filtered = []
        for contour in contours:
            _, _, w, h = cv2.boundingRect(contour)
            if width_range[0] < w < width_range[1] and height_range[0] < h < height_range[1]:
                filtered.append(contour)
        return filtered

    def analyze_element(self, contour: np.ndarray, gray: np.ndarray, light_type: LightType) -> LightElement:
        x, y, w, h = cv2.boundingRect(contour)
        roi = gray[y:y + h, x:x + w]
        intensity = float(roi.mean()) / 255.0 if roi.size else 0.0

        return LightElement(
            position=Point2D(float(x + w // 2), float(y + h // 2)),
            shape=self.classify_light_shape(contour),
            size=float(w * h),
            intensity=intensity,
            type=light_type,
        )

    def classify_light_shape(self, contour: np.ndarray) -> LightShape:
        """Aspect-ratio shortcut for elongated regions, circularity otherwise."""
        _, _, w, h = cv2.boundingRect(contour)
        if h == 0:
            return LightShape.CUSTOM

        aspect_ratio = w / h
        if aspect_ratio > 1.5 or aspect_ratio < 0.7:
            return LightShape.RECTANGULAR

        perimeter = cv2.arcLength(contour, True)
        if perimeter == 0:
            return LightShape.CUSTOM

        circularity = 4 * np.pi * cv2.contourArea(contour) / (perimeter * perimeter)
        if circularity > self.round_circularity:
            return LightShape.ROUND
        return LightShape.ANGULAR

    def generate_pattern_signature(self, elements: List[LightElement]) -> Tuple[float, ...]:
        signature = [0.0] * self.signature_length
        n = len(elements)

        for i, element in enumerate(elements[:self.signature_length]):
            signature[i] = element.size + element.intensity + float(element.shape)

        if n > 0 and n < self.signature_length:
            signature[n] = sum(e.intensity for e in elements) / n

        if n >= 2 and n + 1 < self.signature_length:
            signature[n + 1] = self._symmetry(elements)

        return tuple(signature)

    def classify_light_configuration(self, elements: List[LightElement]) -> LightConfiguration:
        n = len(elements)
        if n < 2:
            return LightConfiguration(num_elements=n, symmetry=0.5, spacing=0.0)

        positions = np.array([(e.position.x, e.position.y) for e in elements])
        diffs = positions[:, None, :] - positions[None, :, :]
        distances = np.sqrt((diffs ** 2).sum(axis=2))
        upper = np.triu_indices(n, k=1)

        return LightConfiguration(
            num_elements=n,
            symmetry=self._symmetry(elements),
            spacing=float(distances[upper].mean()),
        )

    @staticmethod
    def _symmetry(elements: List[LightElement]) -> float:
        """1 - |left - right| / n, splitting elements at the mean x."""
        center_x = sum(e.position.x for e in elements) / len(elements)
        left = sum(1 for e in elements if e.position.x < center_x)
        right = len(elements) - left
        return 1.0 - abs(left - right) / len(elements)
