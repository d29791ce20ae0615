"""
Bumper and Daylight Feature Extraction

Bumper contour, texture and mounting points from the lower third of the
vehicle, plus the colour/badge/trim features only available in daylight.
"""

import cv2
import numpy as np
from typing import Optional, Tuple
import logging

from .base import FeatureExtractor
from .plate_detector import PlateDetector
from ..data_models import (
    VehicleView, LightingType, Point2D, BumperFeatures, Color, ColorProfile,
    BadgeFeature, TrimFeature, TextureSignature, DaylightFeatures,
)
from ..utils.config_manager import ConfigManager
from ..utils.image_ops import (
    to_gray, to_bgr, find_external_contours, bbox_center, texture_descriptor,
    hough_segments, horizontal_segments,
)


class BumperExtractor(FeatureExtractor):
    """Bumper features from the lower part of the vehicle image."""

    name = 'bumper_features'

    def __init__(self, config_manager: Optional[ConfigManager] = None,
                 plate_detector: Optional[PlateDetector] = None):
        """
        Initialize bumper extractor.

        Args:
            config_manager: Configuration manager instance
            plate_detector: Shared plate detector; created from config if None
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)
        self.plate_detector = plate_detector or PlateDetector(self.config)

        bumper_config = self.config.get_bumper_params()

        self.region_start = float(bumper_config.get('region_start', 2.0 / 3.0))
        self.contour_samples = int(bumper_config.get('contour_samples', 16))
        self.max_mounting_points = int(bumper_config.get('max_mounting_points', 8))

        self.logger.info(f"Bumper extractor initialized: region_start={self.region_start:.3f}")

    def extract(self, image: np.ndarray, view: VehicleView = VehicleView.UNKNOWN,
                lighting: LightingType = LightingType.UNKNOWN) -> BumperFeatures:
        """
        Extract bumper features.

        Args:
            image: BGR or grayscale vehicle image
            view: Unused; part of the extractor interface
            lighting: Unused; part of the extractor interface

        Returns:
            BumperFeatures in image coordinates
        """
        gray = to_gray(image)
        offset = int(gray.shape[0] * self.region_start)
        lower = np.ascontiguousarray(gray[offset:, :])

        return BumperFeatures(
            contour_signature=self.contour_signature(lower, offset),
            texture_features=texture_descriptor(lower),
            mounting_points=self.mounting_points(lower, offset),
            license_plate_area=self.plate_detector.detect_plate(gray).bounds,
        )

    def contour_signature(self, lower: np.ndarray, offset: int) -> Tuple[Point2D, ...]:
        """Evenly spaced points along the longest edge contour."""
        if lower.size == 0:
            return ()

        edges = cv2.Canny(lower, 50, 150)
        contours, _ = cv2.findContours(edges, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_NONE)
        if not contours:
            return ()

        longest = max(contours, key=lambda c: cv2.arcLength(c, False)).reshape(-1, 2)
        count = min(self.contour_samples, len(longest))
        indices = np.linspace(0, len(longest) - 1, count).astype(int)

        return tuple(Point2D(float(longest[i, 0]), float(longest[i, 1] + offset)) for i in indices)

    def mounting_points(self, lower: np.ndarray, offset: int) -> Tuple[Point2D, ...]:
        """Strongest Shi-Tomasi corners of the bumper region."""
        if lower.size == 0:
            return ()

        corners = cv2.goodFeaturesToTrack(lower, self.max_mounting_points, 0.05, 20)
        if corners is None:
            return ()

        return tuple(Point2D(float(x), float(y + offset)) for x, y in corners.reshape(-1, 2))


class DaylightFeatureExtractor(FeatureExtractor):
    """Colour profile, badges, trim and surface texture of a daylight image."""

    name = 'lighting_features'

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)

        self.max_dominant_colors = int(self.config.get('bumper.max_dominant_colors', 5))

        self.logger.info(f"Daylight feature extractor initialized: max_colors={self.max_dominant_colors}")

    def applies_to(self, lighting: LightingType) -> bool:
        return lighting == LightingType.DAYLIGHT

    def extract(self, image: np.ndarray, view: VehicleView = VehicleView.UNKNOWN,
                lighting: LightingType = LightingType.DAYLIGHT) -> DaylightFeatures:
        gray = to_gray(image)
        surface = texture_descriptor(gray)

        return DaylightFeatures(
            color_profile=self.color_profile(image, gray),
            badge_locations=self.badge_locations(gray),
            trim_details=self.trim_details(gray),
            surface_texture=TextureSignature(
                features=surface,
                type='smooth' if surface[0] < 0.02 else 'textured',
            ),
        )

    def color_profile(self, image: np.ndarray, gray: np.ndarray) -> ColorProfile:
        """
        Dominant colours by 8-level-per-channel quantisation.

        Each colour is reported at its bin centre, weighted by its pixel share.
        """
        bgr = to_bgr(image).reshape(-1, 3)
        histogram = tuple(int(v) for v in np.bincount(gray.ravel(), minlength=256))
        if bgr.size == 0:
            return ColorProfile(dominant_colors=(), histogram=histogram)

        levels = (bgr // 32).astype(np.int64)
        codes = levels[:, 2] * 64 + levels[:, 1] * 8 + levels[:, 0]
        counts = np.bincount(codes, minlength=512)
        order = np.argsort(-counts, kind='stable')[:self.max_dominant_colors]

        total = float(len(codes))
        colors = []
        for code in order:
            if counts[code] == 0:
                break
            r, g, b = code // 64, (code // 8) % 8, code % 8
            colors.append(Color(int(r * 32 + 16), int(g * 32 + 16), int(b * 32 + 16),
                                float(counts[code]) / total))

        return ColorProfile(dominant_colors=tuple(colors), histogram=histogram)

    def badge_locations(self, gray: np.ndarray) -> Tuple[BadgeFeature, ...]:
        """Small closed edge contours in the central region."""
        height, width = gray.shape[:2]
        x0, y0 = width // 4, height // 4
        center = np.ascontiguousarray(gray[y0:3 * height // 4, x0:3 * width // 4])
        if center.size == 0:
            return ()

        max_area = 0.02 * width * height
        edges = cv2.Canny(center, 50, 150)

        badges = []
        for contour in find_external_contours(edges):
            area = cv2.contourArea(contour)
            if not 50 < area < max_area:
                continue
            cx, cy = bbox_center(contour)
            badges.append(BadgeFeature(
                position=Point2D(cx + x0, cy + y0),
                size=float(area),
                shape=self._shape_label(contour),
            ))

        badges.sort(key=lambda b: (b.position.x, b.position.y))
        return tuple(badges)

    def trim_details(self, gray: np.ndarray) -> Tuple[TrimFeature, ...]:
        """Long, bright, near-horizontal segments (chrome strips and trim lines)."""
        width = gray.shape[1]
        edges = cv2.Canny(gray, 50, 150)
        segments = horizontal_segments(hough_segments(edges, 50), max_dy=5, min_dx=width / 4.0)

        trims = []
        for x1, y1, x2, y2 in segments:
            values = self._line_samples(gray, x1, y1, x2, y2)
            brightness = float(values.mean())
            if brightness <= 150:
                continue
            trims.append(TrimFeature(
                position=Point2D((x1 + x2) / 2.0, (y1 + y2) / 2.0),
                type='chrome' if brightness > 200 else 'trim',
                texture='smooth' if float(values.std()) < 20 else 'textured',
            ))

        trims.sort(key=lambda t: (t.position.x, t.position.y))
        return tuple(trims)

    @staticmethod
    def _line_samples(gray: np.ndarray, x1: int, y1: int, x2: int, y2: int) -> np.ndarray:
        count = max(abs(int(x2) - int(x1)), abs(int(y2) - int(y1))) + 1
        xs = np.linspace(x1, x2, count).round().astype(int)
        ys = np.linspace(y1, y2, count).round().astype(int)
        return gray[ys, xs].astype(np.float64)

    @staticmethod
    def _shape_label(contour: np.ndarray) -> str:
        perimeter = cv2.arcLength(contour, True)
        if perimeter == 0:
            return 'polygon'
        vertices = len(cv2.approxPolyDP(contour, 0.04 * perimeter, True))
        if vertices == 3:
            return 'triangle'
        if vertices == 4:
            return 'rectangle'
        circularity = 4 * np.pi * cv2.contourArea(contour) / (perimeter * perimeter)
        return 'oval' if circularity > 0.7 else 'polygon'
