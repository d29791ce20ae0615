"""
Image Quality Assessor

Scores how usable an image is for vehicle comparison from blur, contrast,
noise and resolution measurements.
"""

import cv2
import numpy as np
from typing import Optional, Dict
import logging

from ..utils.config_manager import ConfigManager
from ..utils.image_ops import to_gray


class QualityAssessor:
    """Weighted blur/contrast/noise/resolution quality score in [0, 1]."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """
        Initialize quality assessor.

        Args:
            config_manager: Configuration manager instance
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)

        quality_config = self.config.get_quality_params()

        # Empirical normalisation constants
        self.blur_threshold = float(quality_config.get('blur_threshold', 100.0))
        self.contrast_norm = float(quality_config.get('contrast_norm', 64.0))
        self.noise_threshold = float(quality_config.get('noise_threshold', 20.0))

        # Minimum resolution for vehicle analysis
        self.min_width = int(quality_config.get('min_width', 640))
        self.min_height = int(quality_config.get('min_height', 480))

        weights = quality_config.get('weights', {}) or {}
        self.weights = {
            'blur': float(weights.get('blur', 0.3)),
            'contrast': float(weights.get('contrast', 0.3)),
            'noise': float(weights.get('noise', 0.2)),
            'resolution': float(weights.get('resolution', 0.2)),
        }

        self.logger.info(f"Quality assessor initialized: blur_threshold={self.blur_threshold}, "
                         f"min_resolution={self.min_width}x{self.min_height}")

    def assess(self, image: np.ndarray) -> float:
        """
        Assess overall image quality.

        Args:
            image: BGR or grayscale image

        Returns:
            Quality score in [0, 1]
        """
        scores = self.assess_detailed(image)
        return scores['quality']

    def assess_detailed(self, image: np.ndarray) -> Dict[str, float]:
        """
        Assess image quality and return every sub-score.

        Args:
            image: BGR or grayscale image

        Returns:
            Dictionary with blur, contrast, noise, resolution and quality scores
        """
        if image is None or image.size == 0:
            return {'blur': 0.0, 'contrast': 0.0, 'noise': 0.0, 'resolution': 0.0, 'quality': 0.0}

        gray = to_gray(image)

        scores = {
            'blur': self._finite(self.assess_blur(gray)),
            'contrast': self._finite(self.assess_contrast(gray)),
            'noise': self._finite(self.assess_noise(gray)),
            'resolution': self._finite(self.assess_resolution(gray)),
        }

        quality = sum(scores[name] * weight for name, weight in self.weights.items())
        scores['quality'] = float(np.clip(self._finite(quality), 0.0, 1.0))

        self.logger.debug(f"Quality: blur={scores['blur']:.3f}, contrast={scores['contrast']:.3f}, "
                          f"noise={scores['noise']:.3f}, resolution={scores['resolution']:.3f} "
                          f"-> {scores['quality']:.3f}")

        return scores

    def assess_blur(self, gray: np.ndarray) -> float:
        """Laplacian variance normalised by the blur threshold (sharper is higher)."""
        laplacian = cv2.Laplacian(gray, cv2.CV_64F)
        variance = float(laplacian.var())
        return min(variance / self.blur_threshold, 1.0)

    def assess_contrast(self, gray: np.ndarray) -> float:
        """Standard deviation of the intensity histogram, normalised by 64."""
        hist = np.bincount(gray.ravel(), minlength=256).astype(np.float64)
        total = hist.sum()
        if total == 0:
            return 0.0

        levels = np.arange(256, dtype=np.float64)
        mean = (levels * hist).sum() / total
        variance = (hist * (levels - mean) ** 2).sum() / total
        return min(np.sqrt(variance) / self.contrast_norm, 1.0)

    def assess_noise(self, gray: np.ndarray) -> float:
        """Inverted mean residual against a Gaussian-blurred copy."""
        blurred = cv2.GaussianBlur(gray, (5, 5), 1.0)
        diff = cv2.absdiff(gray, blurred)
        return max(0.0, 1.0 - float(diff.mean()) / self.noise_threshold)

    def assess_resolution(self, gray: np.ndarray) -> float:
        """Average of width and height adequacy, each capped at 1."""
        height, width = gray.shape[:2]
        width_score = min(width / self.min_width, 1.0)
        height_score = min(height / self.min_height, 1.0)
        return (width_score + height_score) / 2.0

    def _finite(self, value: float) -> float:
        if not np.isfinite(value):
            self.logger.debug("Non-finite quality sub-score replaced with 0.0")
            return 0.0
        return float(value)
