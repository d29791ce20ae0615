"""
Vehicle Comparison Service

Orchestrates the full comparison of two vehicle images: loading, quality
and classification gates, consistency validation, feature extraction,
comparison and result sanitization.
"""

import time
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from pathlib import Path
from typing import Optional, List, Tuple, Union

import numpy as np

from .comparison import ComparisonEngine, sanitize_result
from .data_models import (
    VehicleView, LightingType, Bounds, ProcessingMetadata, VehicleImage,
    VehicleFeatures, ComparisonResult, ProcessingInfo,
)
from .exceptions import (
    QualityRejectionError, ClassificationRejectionError, ConsistencyRejectionError,
)
from .extraction import (
    FeatureExtractor, GeometricExtractor, LightPatternExtractor, BumperExtractor,
    DaylightFeatureExtractor, InfraredFeatureExtractor, IRSignatureExtractor, PlateDetector,
)
from .preprocessing import ImageLoader, QualityAssessor, ViewLightingClassifier
from .utils.config_manager import ConfigManager


def default_extractors(config: ConfigManager) -> List[FeatureExtractor]:
    """The standard extractor set; bumper and IR extraction share one plate detector."""
    plate_detector = PlateDetector(config)
    return [
        GeometricExtractor(config),
        LightPatternExtractor(config),
        BumperExtractor(config, plate_detector=plate_detector),
        DaylightFeatureExtractor(config),
        InfraredFeatureExtractor(
            config, signature_extractor=IRSignatureExtractor(config, plate_detector=plate_detector)),
    ]


class VehicleComparisonService:
    """
    Decides whether two vehicle images show the same physical vehicle.

    Each call works on its own rasters and feature sets; the service keeps
    no per-request state, so one instance may serve concurrent callers.
    """

    def __init__(self, config_manager: Optional[ConfigManager] = None,
                 extractors: Optional[List[FeatureExtractor]] = None):
        """
        Initialize comparison service.

        Args:
            config_manager: Configuration manager instance
            extractors: Feature extractors to run; defaults to the standard set
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)

        self.loader = ImageLoader()
        self.quality_assessor = QualityAssessor(self.config)
        self.classifier = ViewLightingClassifier(self.config)
        self.extractors = extractors if extractors is not None else default_extractors(self.config)
        self.engine = ComparisonEngine(self.config)

        pipeline_config = self.config.get_pipeline_params()

        self.min_quality = float(pipeline_config.get('min_quality', 0.3))
        self.min_classification_confidence = float(pipeline_config.get('min_classification_confidence', 0.5))
        self.min_consistency_quality = float(pipeline_config.get('min_consistency_quality', 0.5))
        self.parallel = bool(pipeline_config.get('parallel', False))
        self.max_workers = int(pipeline_config.get('max_workers', 4))

        self.logger.info(f"Comparison service initialized: {len(self.extractors)} extractors, "
                         f"parallel={self.parallel}")

    def compare_image_files(self, image1_path: Union[str, Path], image2_path: Union[str, Path],
                            view: Optional[VehicleView] = None,
                            lighting: Optional[LightingType] = None) -> ComparisonResult:
        """
        Compare two image files.

        Raises:
            ImageLoadError: If either image cannot be read
            QualityRejectionError, ClassificationRejectionError,
            ConsistencyRejectionError: If the images cannot be compared
        """
        start = time.perf_counter()
        image1 = self.loader.load_file(image1_path)
        image2 = self.loader.load_file(image2_path)
        return self._compare(image1, image2, start, view, lighting)

    def compare_base64_images(self, image1_base64: str, image2_base64: str,
                              view: Optional[VehicleView] = None,
                              lighting: Optional[LightingType] = None) -> ComparisonResult:
        """Compare two base64 encoded images; raises like compare_image_files."""
        start = time.perf_counter()
        image1 = self.loader.load_base64(image1_base64)
        image2 = self.loader.load_base64(image2_base64)
        return self._compare(image1, image2, start, view, lighting)

    def compare_images(self, image1: np.ndarray, image2: np.ndarray,
                       view: Optional[VehicleView] = None,
                       lighting: Optional[LightingType] = None) -> ComparisonResult:
        """
        Compare two decoded images.

        Args:
            image1: First BGR or grayscale image
            image2: Second BGR or grayscale image
            view: Declared view of both images; classified when None
            lighting: Declared lighting of both images; classified when None

        Returns:
            Sanitized ComparisonResult
        """
        return self._compare(image1, image2, time.perf_counter(), view, lighting)

    def _compare(self, image1: np.ndarray, image2: np.ndarray, start: float,
                 view: Optional[VehicleView], lighting: Optional[LightingType]) -> ComparisonResult:
        vehicle1, vehicle2 = self._run_pair(
            self.prepare_image, (image1, 1, view, lighting), (image2, 2, view, lighting))

        self.validate_consistency(vehicle1, vehicle2)

        quality1, quality2 = vehicle1.quality_score, vehicle2.quality_score
        features1, features2 = self._run_pair(self.extract_features, (vehicle1,), (vehicle2,))

        result = self.engine.compare(features1, features2)

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        result = replace(result, processing_info=ProcessingInfo(
            processing_time_ms=elapsed_ms,
            image1_quality=quality1,
            image2_quality=quality2,
            alignment_quality=result.processing_info.alignment_quality,
            view_consistency=features1.view == features2.view,
            lighting_consistency=features1.lighting == features2.lighting,
        ))

        self.logger.info(f"Comparison finished in {elapsed_ms} ms: same={result.is_same_vehicle}, "
                         f"similarity={result.similarity_score:.4f}")
        return sanitize_result(result)

    def _run_pair(self, fn, args1: Tuple, args2: Tuple):
        """Run ``fn`` for both images, on worker threads when parallel is enabled."""
        if not self.parallel:
            return fn(*args1), fn(*args2)

        with ThreadPoolExecutor(max_workers=min(self.max_workers, 2)) as pool:
            future1 = pool.submit(fn, *args1)
            future2 = pool.submit(fn, *args2)
            return future1.result(), future2.result()

    def prepare_image(self, image: np.ndarray, index: int,
                      view: Optional[VehicleView] = None,
                      lighting: Optional[LightingType] = None) -> VehicleImage:
        """
        Apply the quality and classification gates to one image.

        Args:
            image: Decoded image
            index: 1-based image position, used in error messages
            view: Declared view; skips view classification
            lighting: Declared lighting; skips lighting classification

        Returns:
            VehicleImage covering the full image

        Raises:
            QualityRejectionError: If quality is below the hard threshold
            ClassificationRejectionError: If view or lighting confidence is too low
        """
        quality = self.quality_assessor.assess(image)
        if quality < self.min_quality:
            self.logger.warning(f"Image {index} rejected: quality {quality:.3f} < {self.min_quality}")
            raise QualityRejectionError(quality, self.min_quality, image_index=index)

        if view is None:
            view, view_confidence = self.classifier.classify_view(image)
        else:
            view_confidence = 1.0
        if view_confidence < self.min_classification_confidence:
            self.logger.warning(f"Image {index} rejected: view confidence {view_confidence:.3f}")
            raise ClassificationRejectionError('view', view_confidence,
                                               self.min_classification_confidence, image_index=index)

        if lighting is None:
            lighting, lighting_confidence = self.classifier.classify_lighting(image)
        else:
            lighting_confidence = 1.0
        if lighting_confidence < self.min_classification_confidence:
            self.logger.warning(f"Image {index} rejected: lighting confidence {lighting_confidence:.3f}")
            raise ClassificationRejectionError('lighting', lighting_confidence,
                                               self.min_classification_confidence, image_index=index)

        height, width = image.shape[:2]
        self.logger.debug(f"Image {index}: quality={quality:.3f}, view={view.value}, lighting={lighting.value}")

        return VehicleImage(
            image=image,
            view=view,
            lighting=lighting,
            quality_score=quality,
            view_confidence=view_confidence,
            lighting_confidence=lighting_confidence,
            processing_meta=ProcessingMetadata(
                original_width=width,
                original_height=height,
                vehicle_bounds=Bounds(0, 0, width, height),
                normalized_width=width,
                normalized_height=height,
            ),
        )

    def validate_consistency(self, vehicle1: VehicleImage, vehicle2: VehicleImage) -> None:
        """
        Check that two prepared images can be compared.

        Raises:
            ConsistencyRejectionError: On view or lighting mismatch, or when
                either image is below the consistency quality threshold
        """
        if vehicle1.view != vehicle2.view:
            self.logger.warning("Consistency rejection: view mismatch")
            raise ConsistencyRejectionError(
                f"Vehicle views do not match: {vehicle1.view.value} vs {vehicle2.view.value}")

        if vehicle1.lighting != vehicle2.lighting:
            self.logger.warning("Consistency rejection: lighting mismatch")
            raise ConsistencyRejectionError(
                f"Lighting conditions do not match: {vehicle1.lighting.value} vs {vehicle2.lighting.value}")

        for index, vehicle in ((1, vehicle1), (2, vehicle2)):
            if vehicle.quality_score < self.min_consistency_quality:
                self.logger.warning(f"Consistency rejection: image {index} quality {vehicle.quality_score:.3f}")
                raise ConsistencyRejectionError(
                    f"Image {index} has insufficient quality for comparison: "
                    f"{vehicle.quality_score:.3f} < {self.min_consistency_quality}")

    def extract_features(self, vehicle: VehicleImage) -> VehicleFeatures:
        """Run every applicable extractor, then release the raster."""
        blocks = {}
        for extractor in self.extractors:
            if extractor.applies_to(vehicle.lighting):
                blocks[extractor.name] = extractor.extract(vehicle.image, vehicle.view, vehicle.lighting)

        vehicle.release()

        features = VehicleFeatures(
            view=vehicle.view,
            lighting=vehicle.lighting,
            geometric_features=blocks['geometric_features'],
            light_patterns=blocks['light_patterns'],
            bumper_features=blocks['bumper_features'],
            lighting_features=blocks.get('lighting_features'),
        )
        return replace(features, extraction_quality=self.calculate_extraction_quality(features))

    @staticmethod
    def calculate_extraction_quality(features: VehicleFeatures) -> float:
        """Completeness heuristic over reference points, light elements and lighting features."""
        quality = 0.0
        if features.geometric_features.reference_points:
            quality += 0.8
        if features.light_patterns.light_elements:
            quality += 0.9
        if features.lighting_features is not None:
            quality += 0.7
        return quality / 3.0
