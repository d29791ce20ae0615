"""
License Plate Detector

Locates the licence plate, which under IR illumination is the brightest
retroreflective rectangle in the image. Detection always returns a region:
contour candidates first, then a sliding-window brightness search, then a
fixed bottom-centre box.
"""

import cv2
import numpy as np
from typing import Optional
import logging

from ..data_models import Bounds, LicensePlateRegion
from ..utils.config_manager import ConfigManager
from ..utils.image_ops import to_gray, find_external_contours


class PlateDetector:
    """Three-tier licence plate localisation."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """
        Initialize plate detector.

        Args:
            config_manager: Configuration manager instance
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)

        plate_config = self.config.get_plate_params()

        self.min_width = int(plate_config.get('min_width', 80))
        self.max_width = int(plate_config.get('max_width', 400))
        self.min_height = int(plate_config.get('min_height', 20))
        self.max_height = int(plate_config.get('max_height', 120))
        self.min_aspect = float(plate_config.get('min_aspect', 2.0))
        self.max_aspect = float(plate_config.get('max_aspect', 4.5))
        self.ideal_aspect = float(plate_config.get('ideal_aspect', 3.0))

        self.bright_threshold = plate_config.get('bright_threshold', 200)
        self.reflective_brightness = float(plate_config.get('reflective_brightness', 180))
        self.adaptive_block_size = int(plate_config.get('adaptive_block_size', 15))
        self.adaptive_c = plate_config.get('adaptive_c', -2)

        self.window_step = int(plate_config.get('window_step', 10))
        self.window_width_step = int(plate_config.get('window_width_step', 20))

        self.logger.info(f"Plate detector initialized: size {self.min_width}-{self.max_width}x"
                         f"{self.min_height}-{self.max_height}, aspect {self.min_aspect}-{self.max_aspect}")

    def detect_plate(self, image: np.ndarray) -> LicensePlateRegion:
        """
        Detect the licence plate region.

        Args:
            image: BGR or grayscale image

        Returns:
            Best plate candidate; never None
        """
        gray = to_gray(image)

        region = self.detect_from_contours(gray)
        if region is not None:
            self.logger.debug(f"Plate found from contours: {region.bounds} (confidence {region.confidence:.3f})")
            return region

        region = self.find_brightest_window(gray)
        if region is not None:
            self.logger.debug(f"Plate found by window search: {region.bounds}")
            return region

        self.logger.debug("No plate candidate found, using bottom-centre fallback")
        return self.fallback_region(gray)

    def detect_from_contours(self, gray: np.ndarray) -> Optional[LicensePlateRegion]:
        """Score plate-shaped contours of the combined adaptive/bright mask."""
        adaptive = cv2.adaptiveThreshold(
            gray, 255, cv2.ADAPTIVE_THRESH_MEAN_C, cv2.THRESH_BINARY,
            self.adaptive_block_size, self.adaptive_c,
        )
        _, bright = cv2.threshold(gray, self.bright_threshold, 255, cv2.THRESH_BINARY)
        combined = cv2.bitwise_or(adaptive, bright)

        best = None
        best_score = 0.0
        for contour in find_external_contours(combined):
            x, y, w, h = cv2.boundingRect(contour)
            if not self.is_valid_plate_size(w, h):
                continue

            score = self.score_candidate(gray, contour, x, y, w, h)
            if score > best_score:
                best_score = score
                brightness = float(gray[y:y + h, x:x + w].mean())
                best = LicensePlateRegion(
                    bounds=Bounds(x, y, w, h),
                    confidence=score,
                    avg_brightness=brightness,
                    is_reflective=brightness > self.reflective_brightness,
                )

        return best

    def is_valid_plate_size(self, width: int, height: int) -> bool:
        if not self.min_width <= width <= self.max_width:
            return False
        if not self.min_height <= height <= self.max_height:
            return False
        return self.min_aspect <= width / height <= self.max_aspect

    def score_candidate(self, gray: np.ndarray, contour: np.ndarray,
                        x: int, y: int, w: int, h: int) -> float:
        """
        Weighted plate likelihood of a candidate box.

        0.4 brightness + 0.3 rectangularity + 0.2 aspect closeness to the
        ideal ratio + 0.1 position (boxes starting in the top third score 0.5).
        """
        brightness_score = min(float(gray[y:y + h, x:x + w].mean()) / 255.0, 1.0)
        rectangularity = cv2.contourArea(contour) / float(w * h)
        ratio_score = 1.0 - abs(w / h - self.ideal_aspect) / self.ideal_aspect
        position_score = 0.5 if y < gray.shape[0] // 3 else 1.0

        score = 0.4 * brightness_score + 0.3 * rectangularity + 0.2 * ratio_score + 0.1 * position_score
        return float(np.clip(score, 0.0, 1.0))

    def find_brightest_window(self, gray: np.ndarray) -> Optional[LicensePlateRegion]:
        """
        Brightest 3:1 window in the lower two thirds of the image.

        Window means come from an integral image, one vectorised pass per
        window width.
        """
        rows, cols = gray.shape[:2]
        integral = cv2.integral(gray).astype(np.float64)

        ys = np.arange(rows // 3, rows - self.min_height, self.window_step)
        xs = np.arange(0, cols - self.min_width, self.window_step)
        if len(ys) == 0 or len(xs) == 0:
            return None

        best = None
        best_brightness = 0.0
        for width in range(self.min_width, self.max_width + 1, self.window_width_step):
            height = int(width / 3.0)
            if height < self.min_height or height > self.max_height:
                continue

            valid_x = xs[xs + width < cols]
            valid_y = ys[ys + height < rows]
            if len(valid_x) == 0 or len(valid_y) == 0:
                continue

            y0 = valid_y[:, None]
            x0 = valid_x[None, :]
            sums = (integral[y0 + height, x0 + width] - integral[y0, x0 + width]
                    - integral[y0 + height, x0] + integral[y0, x0])
            means = sums / float(width * height)

            index = np.unravel_index(int(np.argmax(means)), means.shape)
            brightness = float(means[index])
            if brightness > best_brightness:
                best_brightness = brightness
                best = LicensePlateRegion(
                    bounds=Bounds(int(valid_x[index[1]]), int(valid_y[index[0]]), width, height),
                    confidence=brightness / 255.0,
                    avg_brightness=brightness,
                    is_reflective=brightness > self.reflective_brightness,
                )

        return best

    def fallback_region(self, gray: np.ndarray) -> LicensePlateRegion:
        """Fixed bottom-centre box, clipped to the image."""
        rows, cols = gray.shape[:2]
        width = self.min_width * 2
        height = int(width / 3.0)

        x = max(0, (cols - width) // 2)
        y = max(0, rows - height - 20)
        width = min(width, cols - x)
        height = min(height, rows - y)

        return LicensePlateRegion(
            bounds=Bounds(x, y, width, height),
            confidence=0.1,
            avg_brightness=0.0,
            is_reflective=False,
        )
