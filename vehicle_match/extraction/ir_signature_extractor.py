"""
IR Signature and Infrared Feature Extraction

Under IR illumination the licence plate is retroreflective and easy to swap,
while the material around it is not. The IR signature therefore describes
only the surrounding region: every statistic is computed with the plate box
masked out, so two images carrying the same plate on different vehicles
still produce different signatures.
"""

import cv2
import numpy as np
from typing import Optional, Tuple
import logging

from .base import FeatureExtractor
from .plate_detector import PlateDetector
from ..data_models import (
    VehicleView, LightingType, Bounds, Point2D, LicensePlateRegion, IRSignature,
    InfraredFeatures, ReflectiveElement, HeatPattern,
)
from ..utils.config_manager import ConfigManager
from ..utils.image_ops import to_gray, find_external_contours, contour_centroid, texture_descriptor


class IRSignatureExtractor:
    """Reflectivity fingerprint of the material surrounding the licence plate."""

    def __init__(self, config_manager: Optional[ConfigManager] = None,
                 plate_detector: Optional[PlateDetector] = None):
        """
        Initialize IR signature extractor.

        Args:
            config_manager: Configuration manager instance
            plate_detector: Shared plate detector; created from config if None
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)
        self.plate_detector = plate_detector or PlateDetector(self.config)

        ir_config = self.config.get_ir_signature_params()

        self.expansion_factor = float(ir_config.get('expansion_factor', 0.75))
        self.grid_size = int(ir_config.get('grid_size', 8))
        self.high_reflectivity = ir_config.get('high_reflectivity', 200)
        self.mid_reflectivity = tuple(ir_config.get('mid_reflectivity', (100, 200)))
        self.low_reflectivity = ir_config.get('low_reflectivity', 80)
        self.sample_distances = tuple(ir_config.get('sample_distances', (10, 20, 30)))
        self.shadow_threshold = ir_config.get('shadow_threshold', 60)
        self.min_shadow_area = float(ir_config.get('min_shadow_area', 50))

        self.logger.info(f"IR signature extractor initialized: grid={self.grid_size}x{self.grid_size}, "
                         f"expansion={self.expansion_factor}")

    def extract(self, image: np.ndarray,
                plate_region: Optional[LicensePlateRegion] = None) -> IRSignature:
        """
        Extract the IR signature around the licence plate.

        Args:
            image: BGR or grayscale IR image
            plate_region: Known plate region; detected when None

        Returns:
            IRSignature of the surrounding material
        """
        gray = to_gray(image)
        if plate_region is None:
            plate_region = self.plate_detector.detect_plate(gray)

        surrounding = self.calculate_surrounding_region(plate_region.bounds, gray.shape[0], gray.shape[1])
        roi = gray[surrounding.y:surrounding.y + surrounding.height,
                   surrounding.x:surrounding.x + surrounding.width]
        mask = self.surrounding_mask(roi.shape, surrounding, plate_region.bounds)
        filled = self.neutralise_plate(roi, mask)

        signature = IRSignature(
            plate_region=plate_region,
            surrounding_region=surrounding,
            reflectivity_map=self.extract_reflectivity_map(roi, mask),
            material_signature=self.extract_material_signature(roi, mask, filled),
            illumination_gradient=self.extract_illumination_gradient(filled, surrounding, plate_region.bounds),
            shadow_patterns=self.extract_shadow_patterns(roi, mask, surrounding),
            texture_features=texture_descriptor(filled, mask),
        )

        self.logger.debug(f"IR signature: plate={plate_region.bounds}, surrounding={surrounding}, "
                          f"{len(signature.shadow_patterns)} shadows")
        return signature

    def calculate_surrounding_region(self, plate: Bounds, image_height: int, image_width: int) -> Bounds:
        """Plate box grown by the expansion factor on each side, clipped to the image."""
        expand_x = int(plate.width * self.expansion_factor)
        expand_y = int(plate.height * self.expansion_factor)

        x = max(0, plate.x - expand_x)
        y = max(0, plate.y - expand_y)
        width = min(image_width - x, plate.width + 2 * expand_x)
        height = min(image_height - y, plate.height + 2 * expand_y)

        return Bounds(x, y, max(0, width), max(0, height))

    def surrounding_mask(self, shape: Tuple[int, ...], surrounding: Bounds, plate: Bounds) -> np.ndarray:
        """Boolean mask of the surrounding region with the plate box removed."""
        mask = np.ones(shape[:2], dtype=bool)

        x0 = max(0, plate.x - surrounding.x)
        y0 = max(0, plate.y - surrounding.y)
        x1 = min(shape[1], plate.x + plate.width - surrounding.x)
        y1 = min(shape[0], plate.y + plate.height - surrounding.y)
        if x1 > x0 and y1 > y0:
            mask[y0:y1, x0:x1] = False

        return mask

    def neutralise_plate(self, roi: np.ndarray, mask: np.ndarray) -> np.ndarray:
        """Copy of the ROI with plate pixels set to the mean of the surrounding pixels."""
        filled = roi.copy()
        if np.any(mask) and not np.all(mask):
            filled[~mask] = np.uint8(round(float(roi[mask].mean())))
        return filled

    def extract_reflectivity_map(self, roi: np.ndarray, mask: np.ndarray) -> Tuple[Tuple[float, ...], ...]:
        """Grid of masked mean intensities / 255; fully masked cells are 0.0."""
        rows, cols = roi.shape[:2]
        cell_height = rows // self.grid_size
        cell_width = cols // self.grid_size
        mask_u8 = mask.astype(np.uint8) * 255

        grid = []
        for i in range(self.grid_size):
            row = []
            for j in range(self.grid_size):
                if cell_width == 0 or cell_height == 0:
                    row.append(0.0)
                    continue
                ys = slice(i * cell_height, (i + 1) * cell_height)
                xs = slice(j * cell_width, (j + 1) * cell_width)
                cell = np.ascontiguousarray(roi[ys, xs])
                cell_mask = np.ascontiguousarray(mask_u8[ys, xs])
                row.append(cv2.mean(cell, mask=cell_mask)[0] / 255.0)
            grid.append(tuple(row))

        return tuple(grid)

    def extract_material_signature(self, roi: np.ndarray, mask: np.ndarray,
                                   filled: Optional[np.ndarray] = None) -> Tuple[float, ...]:
        """
        Six material response values over the masked pixels.

        Returns:
            (high reflectivity fraction, mid band fraction, low reflectivity
            fraction, edge density, Laplacian std / 255, intensity std / 255)
        """
        if filled is None:
            filled = roi
        values = roi[mask].astype(np.float64)
        if values.size == 0:
            return (0.0,) * 6

        total = float(values.size)
        low_mid, high_mid = self.mid_reflectivity

        edges = cv2.Canny(filled, 50, 150)
        laplacian = cv2.Laplacian(filled, cv2.CV_64F)

        return (
            float(np.count_nonzero(values > self.high_reflectivity)) / total,
            float(np.count_nonzero((values >= low_mid) & (values <= high_mid))) / total,
            float(np.count_nonzero(values < self.low_reflectivity)) / total,
            float(np.count_nonzero(edges[mask])) / total,
            float(laplacian[mask].std()) / 255.0,
            float(values.std()) / 255.0,
        )

    def extract_illumination_gradient(self, filled: np.ndarray, surrounding: Bounds,
                                      plate: Bounds) -> Tuple[float, ...]:
        """
        Mean brightness / 255 sampled at fixed distances from the plate centre.

        Directions are top, right, bottom, left. Samples are read from the
        plate-neutralised ROI; samples outside the region are skipped, not
        zero-filled.
        """
        rows, cols = filled.shape[:2]
        center_x = plate.x + plate.width // 2 - surrounding.x
        center_y = plate.y + plate.height // 2 - surrounding.y

        directions = ((0, -1), (1, 0), (0, 1), (-1, 0))
        gradient = []
        for dx, dy in directions:
            samples = []
            for distance in self.sample_distances:
                x = center_x + dx * distance
                y = center_y + dy * distance
                if 0 <= x < cols and 0 <= y < rows:
                    samples.append(float(filled[y, x]) / 255.0)
            gradient.append(sum(samples) / len(samples) if samples else 0.0)

        return tuple(gradient)

    def extract_shadow_patterns(self, roi: np.ndarray, mask: np.ndarray,
                                surrounding: Bounds) -> Tuple[Point2D, ...]:
        """Centroids, in image coordinates, of dark regions around the plate."""
        dark = ((roi < self.shadow_threshold) & mask).astype(np.uint8) * 255

        centers = []
        for contour in find_external_contours(dark):
            if cv2.contourArea(contour) > self.min_shadow_area:
                cx, cy = contour_centroid(contour)
                centers.append(Point2D(cx + surrounding.x, cy + surrounding.y))

        return tuple(centers)


class InfraredFeatureExtractor(FeatureExtractor):
    """Builds the InfraredFeatures block, including the IR signature when enabled."""

    name = 'lighting_features'

    def __init__(self, config_manager: Optional[ConfigManager] = None,
                 signature_extractor: Optional[IRSignatureExtractor] = None):
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)
        self.signature_extractor = signature_extractor or IRSignatureExtractor(self.config)

        self.signature_enabled = bool(self.config.get('ir_signature.enabled', True))
        self.reflective_threshold = self.config.get('ir_signature.high_reflectivity', 200)

        self.logger.info(f"Infrared feature extractor initialized: ir_signature={self.signature_enabled}")

    def applies_to(self, lighting: LightingType) -> bool:
        return lighting == LightingType.INFRARED

    def extract(self, image: np.ndarray, view: VehicleView = VehicleView.UNKNOWN,
                lighting: LightingType = LightingType.INFRARED) -> InfraredFeatures:
        gray = to_gray(image)

        ir_signature = self.signature_extractor.extract(gray) if self.signature_enabled else None
        if ir_signature is not None:
            material = ir_signature.material_signature
        else:
            material = self.signature_extractor.extract_material_signature(
                gray, np.ones(gray.shape, dtype=bool))

        return InfraredFeatures(
            thermal_signature=self.thermal_signature(gray),
            reflective_elements=self.reflective_elements(gray),
            heat_patterns=self.heat_patterns(gray),
            material_signature=material,
            ir_signature=ir_signature,
        )

    def thermal_signature(self, gray: np.ndarray) -> Tuple[float, ...]:
        """Normalised 8-bin intensity histogram."""
        hist = np.bincount(gray.ravel() // 32, minlength=8).astype(np.float64)
        total = hist.sum()
        if total == 0:
            return (0.0,) * 8
        return tuple(float(v) for v in hist / total)

    def reflective_elements(self, gray: np.ndarray) -> Tuple[ReflectiveElement, ...]:
        _, bright = cv2.threshold(gray, self.reflective_threshold, 255, cv2.THRESH_BINARY)

        elements = []
        for contour in find_external_contours(bright):
            area = cv2.contourArea(contour)
            if area <= 50:
                continue
            x, y, w, h = cv2.boundingRect(contour)
            elements.append(ReflectiveElement(
                position=Point2D(*contour_centroid(contour)),
                intensity=float(gray[y:y + h, x:x + w].mean()) / 255.0,
                size=float(area),
                shape=self._shape_label(contour),
            ))

        elements.sort(key=lambda e: (e.position.x, e.position.y))
        return tuple(elements)

    def heat_patterns(self, gray: np.ndarray) -> Tuple[HeatPattern, ...]:
        """Mean intensity and gradient of each image quadrant."""
        rows, cols = gray.shape[:2]
        grad_x = np.abs(cv2.Sobel(gray, cv2.CV_64F, 1, 0, ksize=3))
        grad_y = np.abs(cv2.Sobel(gray, cv2.CV_64F, 0, 1, ksize=3))

        patterns = []
        half_h, half_w = rows // 2, cols // 2
        for y, h in ((0, half_h), (half_h, rows - half_h)):
            for x, w in ((0, half_w), (half_w, cols - half_w)):
                if w == 0 or h == 0:
                    continue
                region = (slice(y, y + h), slice(x, x + w))
                patterns.append(HeatPattern(
                    region=Bounds(x, y, w, h),
                    temperature=float(gray[region].mean()) / 255.0,
                    gradient=(float(grad_x[region].mean()) / 255.0, float(grad_y[region].mean()) / 255.0),
                ))

        return tuple(patterns)

    @staticmethod
    def _shape_label(contour: np.ndarray) -> str:
        perimeter = cv2.arcLength(contour, True)
        if perimeter == 0:
            return 'irregular'
        approx = cv2.approxPolyDP(contour, 0.04 * perimeter, True)
        if len(approx) == 4:
            return 'rectangular'
        circularity = 4 * np.pi * cv2.contourArea(contour) / (perimeter * perimeter)
        return 'round' if circularity > 0.7 else 'irregular'
