"""
Comparison Engine

Weighted multi-factor similarity between the feature sets of two vehicle
images, with a lighting-dependent decision threshold and a heuristic
confidence level.
"""

import numpy as np
from typing import Optional, Sequence
import logging

from . import matching
from .result_sanitizer import clamp_unit, NEUTRAL
from .weights import load_weights, load_thresholds
from ..data_models import (
    VehicleFeatures, GeometricFeatures, VehicleProportions, StructuralElement,
    LightPatternFeatures, LightElement, LightConfiguration, BumperFeatures, Bounds,
    DaylightFeatures, ColorProfile, Color, BadgeFeature, TrimFeature, TextureSignature,
    InfraredFeatures, IRSignature, ReflectiveElement, HeatPattern, Point2D,
    DetailedScores, ProcessingInfo, ComparisonResult, ConfidenceLevel, LightingType,
)
from ..exceptions import IncompatibleComparisonError
from ..utils.config_manager import ConfigManager

# Euclidean length of the RGB cube diagonal
MAX_RGB_DISTANCE = float(np.sqrt(3 * 255.0 ** 2))


class ComparisonEngine:
    """
    Compares two VehicleFeatures of the same view and lighting.

    Set similarities use greedy best matching driven from the first feature
    set, so ``compare(a, b)`` and ``compare(b, a)`` can differ slightly.
    Setting ``comparison.symmetric_matching`` averages both directions.
    """

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """
        Initialize comparison engine.

        Args:
            config_manager: Configuration manager instance
        """
        self.config = config_manager or ConfigManager()
        self.logger = logging.getLogger(__name__)

        comparison_config = self.config.get_comparison_params()

        self.weights = load_weights(comparison_config)
        self.thresholds = load_thresholds(comparison_config)
        self.symmetric_matching = bool(comparison_config.get('symmetric_matching', False))

        self.logger.info(f"Comparison engine initialized: thresholds daylight="
                         f"{self.thresholds[LightingType.DAYLIGHT]}, infrared="
                         f"{self.thresholds[LightingType.INFRARED]}, "
                         f"symmetric_matching={self.symmetric_matching}")

    def compare(self, features1: VehicleFeatures, features2: VehicleFeatures) -> ComparisonResult:
        """
        Compare two vehicle feature sets.

        Args:
            features1: Features of the first image
            features2: Features of the second image

        Returns:
            ComparisonResult with per-category scores

        Raises:
            IncompatibleComparisonError: If views or lightings differ
        """
        if features1.view != features2.view:
            raise IncompatibleComparisonError(
                f"Cannot compare different vehicle views: {features1.view.value} vs {features2.view.value}")
        if features1.lighting != features2.lighting:
            raise IncompatibleComparisonError(
                f"Cannot compare different lighting conditions: "
                f"{features1.lighting.value} vs {features2.lighting.value}")

        lighting = features1.lighting

        color_similarity = None
        day1, day2 = features1.daylight_features, features2.daylight_features
        if day1 is not None and day2 is not None:
            color_similarity = self.compare_daylight_features(day1, day2)

        thermal_similarity = None
        ir1, ir2 = features1.infrared_features, features2.infrared_features
        if ir1 is not None and ir2 is not None:
            thermal_similarity = self.compare_infrared_features(ir1, ir2)

        scores = DetailedScores(
            geometric_similarity=self.compare_geometric_features(
                features1.geometric_features, features2.geometric_features),
            light_pattern_similarity=self.compare_light_patterns(
                features1.light_patterns, features2.light_patterns),
            bumper_similarity=self.compare_bumper_features(
                features1.bumper_features, features2.bumper_features),
            color_similarity=color_similarity,
            thermal_similarity=thermal_similarity,
        )

        overall = clamp_unit(self.weights[lighting].combine(scores), NEUTRAL)
        threshold = self.thresholds[lighting]
        is_same = overall > threshold

        confidence = self.calculate_confidence_level(
            overall, features1.extraction_quality, features2.extraction_quality)

        alignment = self.compare_reference_points(
            features1.geometric_features.reference_points,
            features2.geometric_features.reference_points)

        self.logger.debug(f"Similarity {overall:.4f} vs threshold {threshold} -> same={is_same}, "
                          f"confidence={confidence.value}")

        return ComparisonResult(
            is_same_vehicle=is_same,
            similarity_score=overall,
            confidence_level=confidence,
            detailed_scores=scores,
            processing_info=ProcessingInfo(alignment_quality=alignment),
        )

    def calculate_confidence_level(self, similarity: float, quality1: float, quality2: float) -> ConfidenceLevel:
        """Heuristic reliability gate from mean extraction quality and similarity."""
        avg_quality = (quality1 + quality2) / 2.0

        if avg_quality > 0.8 and similarity > 0.9:
            return ConfidenceLevel.HIGH
        if avg_quality > 0.6 and similarity > 0.8:
            return ConfidenceLevel.HIGH
        if avg_quality > 0.4:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW

    def _directed(self, similarity_fn, a, b, *args, **kwargs) -> float:
        if self.symmetric_matching:
            return matching.symmetric(similarity_fn, a, b, *args, **kwargs)
        return similarity_fn(a, b, *args, **kwargs)

    # ------------------------------------------------------------------
    # Geometric
    # ------------------------------------------------------------------

    def compare_geometric_features(self, geo1: GeometricFeatures, geo2: GeometricFeatures) -> float:
        proportion = self.compare_vehicle_proportions(geo1.vehicle_proportions, geo2.vehicle_proportions)
        structural = self.compare_structural_elements(geo1.structural_elements, geo2.structural_elements)
        alignment = self.compare_reference_points(geo1.reference_points, geo2.reference_points)

        return clamp_unit(0.4 * proportion + 0.4 * structural + 0.2 * alignment, NEUTRAL)

    def compare_vehicle_proportions(self, prop1: VehicleProportions, prop2: VehicleProportions) -> float:
        """
        Ratio similarity of the three proportions.

        A missing plate (ratio 0.0) on either side counts as full plate
        similarity: "no plate visible" is not evidence of a different vehicle.
        """
        width_height = matching.ratio_similarity(prop1.width_height_ratio, prop2.width_height_ratio)
        upper_lower = matching.ratio_similarity(prop1.upper_lower_ratio, prop2.upper_lower_ratio)

        plate = 1.0
        if prop1.license_plate_ratio > 0 and prop2.license_plate_ratio > 0:
            plate = matching.ratio_similarity(prop1.license_plate_ratio, prop2.license_plate_ratio, 1.0)

        return clamp_unit(0.4 * width_height + 0.4 * upper_lower + 0.2 * plate, NEUTRAL)

    def compare_structural_elements(self, elements1: Sequence[StructuralElement],
                                    elements2: Sequence[StructuralElement]) -> float:
        return clamp_unit(
            self._directed(matching.greedy_similarity, elements1, elements2, self._structural_pair_score),
            NEUTRAL)

    @staticmethod
    def _structural_pair_score(e1: StructuralElement, e2: StructuralElement) -> float:
        if e1.type != e2.type:
            return 0.0
        position = np.exp(-matching.point_distance(e1.position, e2.position) / 50.0)
        size = matching.ratio_similarity(e1.size, e2.size)
        return clamp_unit(0.7 * position + 0.3 * size, 0.0)

    def compare_reference_points(self, points1: Sequence[Point2D], points2: Sequence[Point2D]) -> float:
        """Nearest-neighbour alignment within 50px; 0.5 when either set is empty."""
        return clamp_unit(
            self._directed(matching.point_set_similarity, points1, points2, 50.0, 20.0,
                           both_empty=NEUTRAL, one_empty=NEUTRAL),
            NEUTRAL)

    # ------------------------------------------------------------------
    # Light patterns
    # ------------------------------------------------------------------

    def compare_light_patterns(self, pattern1: LightPatternFeatures, pattern2: LightPatternFeatures) -> float:
        signature = clamp_unit(
            matching.cosine_similarity(pattern1.pattern_signature, pattern2.pattern_signature), 0.0)
        elements = self.compare_light_elements(pattern1.light_elements, pattern2.light_elements)
        configuration = self.compare_light_configuration(
            pattern1.light_configuration, pattern2.light_configuration)

        return clamp_unit(0.4 * signature + 0.4 * elements + 0.2 * configuration, NEUTRAL)

    def compare_light_elements(self, elements1: Sequence[LightElement],
                               elements2: Sequence[LightElement]) -> float:
        return clamp_unit(
            self._directed(matching.greedy_similarity, elements1, elements2, self._light_pair_score),
            0.0)

    @staticmethod
    def _light_pair_score(e1: LightElement, e2: LightElement) -> float:
        if e1.type != e2.type:
            return 0.0
        position = np.exp(-matching.point_distance(e1.position, e2.position) / 30.0)
        shape = 1.0 if e1.shape == e2.shape else 0.0
        size = matching.ratio_similarity(e1.size, e2.size)
        intensity = 1.0 - abs(e1.intensity - e2.intensity)
        return clamp_unit(0.4 * position + 0.2 * shape + 0.2 * size + 0.2 * intensity, 0.0)

    def compare_light_configuration(self, config1: LightConfiguration, config2: LightConfiguration) -> float:
        num_elements = matching.ratio_similarity(float(config1.num_elements), float(config2.num_elements))
        symmetry = 1.0 - abs(config1.symmetry - config2.symmetry)

        spacing = 1.0
        if config1.spacing > 0 and config2.spacing > 0:
            spacing = matching.ratio_similarity(config1.spacing, config2.spacing, 1.0)

        return clamp_unit(0.4 * num_elements + 0.3 * symmetry + 0.3 * spacing, NEUTRAL)

    # ------------------------------------------------------------------
    # Bumper
    # ------------------------------------------------------------------

    def compare_bumper_features(self, bumper1: BumperFeatures, bumper2: BumperFeatures) -> float:
        contour = clamp_unit(
            self._directed(matching.point_set_similarity, bumper1.contour_signature,
                           bumper2.contour_signature, 30.0, 15.0),
            NEUTRAL)
        texture = clamp_unit(matching.cosine_similarity(bumper1.texture_features, bumper2.texture_features), 0.0)
        mounting = self.compare_reference_points(bumper1.mounting_points, bumper2.mounting_points)
        plate_area = self.compare_plate_areas(bumper1.license_plate_area, bumper2.license_plate_area)

        return clamp_unit(0.3 * contour + 0.3 * texture + 0.2 * mounting + 0.2 * plate_area, NEUTRAL)

    def compare_plate_areas(self, area1: Bounds, area2: Bounds) -> float:
        (cx1, cy1), (cx2, cy2) = area1.center, area2.center
        position = np.exp(-float(np.hypot(cx1 - cx2, cy1 - cy2)) / 20.0)
        size = matching.ratio_similarity(float(area1.area), float(area2.area))
        return clamp_unit(0.6 * position + 0.4 * size, NEUTRAL)

    # ------------------------------------------------------------------
    # Daylight
    # ------------------------------------------------------------------

    def compare_daylight_features(self, day1: DaylightFeatures, day2: DaylightFeatures) -> float:
        color = self.compare_color_profiles(day1.color_profile, day2.color_profile)
        badges = self.compare_badges(day1.badge_locations, day2.badge_locations)
        trim = self.compare_trim(day1.trim_details, day2.trim_details)
        texture = self.compare_texture_signatures(day1.surface_texture, day2.surface_texture)

        return clamp_unit(0.4 * color + 0.2 * badges + 0.2 * trim + 0.2 * texture, NEUTRAL)

    def compare_color_profiles(self, profile1: ColorProfile, profile2: ColorProfile) -> float:
        return clamp_unit(
            self._directed(matching.greedy_similarity, profile1.dominant_colors,
                           profile2.dominant_colors, self._color_pair_score),
            0.0)

    @staticmethod
    def _color_pair_score(c1: Color, c2: Color) -> float:
        distance = float(np.sqrt((c1.r - c2.r) ** 2 + (c1.g - c2.g) ** 2 + (c1.b - c2.b) ** 2))
        return 1.0 - distance / MAX_RGB_DISTANCE

    def compare_badges(self, badges1: Sequence[BadgeFeature], badges2: Sequence[BadgeFeature]) -> float:
        return clamp_unit(
            self._directed(matching.greedy_similarity, badges1, badges2, self._badge_pair_score),
            0.0)

    @staticmethod
    def _badge_pair_score(b1: BadgeFeature, b2: BadgeFeature) -> float:
        position = np.exp(-matching.point_distance(b1.position, b2.position) / 30.0)
        size = matching.ratio_similarity(b1.size, b2.size)
        shape = 1.0 if b1.shape == b2.shape else 0.0
        return clamp_unit(0.5 * position + 0.3 * size + 0.2 * shape, 0.0)

    def compare_trim(self, trim1: Sequence[TrimFeature], trim2: Sequence[TrimFeature]) -> float:
        return clamp_unit(
            self._directed(matching.greedy_similarity, trim1, trim2, self._trim_pair_score),
            0.0)

    @staticmethod
    def _trim_pair_score(t1: TrimFeature, t2: TrimFeature) -> float:
        position = np.exp(-matching.point_distance(t1.position, t2.position) / 30.0)
        trim_type = 1.0 if t1.type == t2.type else 0.0
        texture = 1.0 if t1.texture == t2.texture else 0.0
        return clamp_unit(0.6 * position + 0.2 * trim_type + 0.2 * texture, 0.0)

    def compare_texture_signatures(self, texture1: TextureSignature, texture2: TextureSignature) -> float:
        return clamp_unit(matching.cosine_similarity(texture1.features, texture2.features), 0.0)

    # ------------------------------------------------------------------
    # Infrared
    # ------------------------------------------------------------------

    def compare_infrared_features(self, ir1: InfraredFeatures, ir2: InfraredFeatures) -> float:
        """IR signature comparison when both sides carry one, raw thermal fields otherwise."""
        if ir1.ir_signature is not None and ir2.ir_signature is not None:
            return self.compare_ir_signatures(ir1.ir_signature, ir2.ir_signature)

        thermal = clamp_unit(matching.cosine_similarity(ir1.thermal_signature, ir2.thermal_signature), 0.0)
        reflective = self.compare_reflective_elements(ir1.reflective_elements, ir2.reflective_elements)
        heat = self.compare_heat_patterns(ir1.heat_patterns, ir2.heat_patterns)
        material = clamp_unit(matching.cosine_similarity(ir1.material_signature, ir2.material_signature), 0.0)

        return clamp_unit(0.3 * thermal + 0.3 * reflective + 0.2 * heat + 0.2 * material, NEUTRAL)

    def compare_ir_signatures(self, sig1: IRSignature, sig2: IRSignature) -> float:
        """
        Fraud-detection path: similarity of the material around the plates.

        The plate region itself does not take part, so an identical plate on
        two different vehicles does not raise the score.
        """
        reflectivity = self.compare_reflectivity_maps(sig1.reflectivity_map, sig2.reflectivity_map)
        material = clamp_unit(matching.cosine_similarity(sig1.material_signature, sig2.material_signature), 0.0)
        shadows = self.compare_shadow_patterns(sig1.shadow_patterns, sig2.shadow_patterns)
        illumination = clamp_unit(
            matching.cosine_similarity(sig1.illumination_gradient, sig2.illumination_gradient), 0.0)
        texture = clamp_unit(matching.cosine_similarity(sig1.texture_features, sig2.texture_features), 0.0)

        result = (0.35 * reflectivity + 0.30 * material + 0.15 * shadows
                  + 0.10 * illumination + 0.10 * texture)

        self.logger.debug(f"IR signature: reflectivity={reflectivity:.3f}, material={material:.3f}, "
                          f"shadows={shadows:.3f}, illumination={illumination:.3f}, texture={texture:.3f}")
        return clamp_unit(result, NEUTRAL)

    def compare_reflectivity_maps(self, map1: Sequence[Sequence[float]],
                                  map2: Sequence[Sequence[float]]) -> float:
        """1 - mean absolute cell difference; 0.0 for grids of different dimensions."""
        if len(map1) == 0 and len(map2) == 0:
            return 1.0
        if len(map1) != len(map2) or any(len(r1) != len(r2) for r1, r2 in zip(map1, map2)):
            return 0.0

        grid1 = np.asarray(map1, dtype=np.float64)
        grid2 = np.asarray(map2, dtype=np.float64)
        if grid1.size == 0:
            return 0.0

        return clamp_unit(1.0 - float(np.abs(grid1 - grid2).mean()), NEUTRAL)

    def compare_shadow_patterns(self, shadows1: Sequence[Point2D], shadows2: Sequence[Point2D]) -> float:
        """Greedy matching normalised by the smaller shadow count, penalising count mismatch."""
        return clamp_unit(
            self._directed(matching.greedy_similarity, shadows1, shadows2, self._shadow_pair_score,
                           normalize_by_smaller=True),
            NEUTRAL)

    @staticmethod
    def _shadow_pair_score(s1: Point2D, s2: Point2D) -> float:
        return float(np.exp(-matching.point_distance(s1, s2) / 50.0))

    def compare_reflective_elements(self, elements1: Sequence[ReflectiveElement],
                                    elements2: Sequence[ReflectiveElement]) -> float:
        return clamp_unit(
            self._directed(matching.greedy_similarity, elements1, elements2, self._reflective_pair_score),
            0.0)

    @staticmethod
    def _reflective_pair_score(e1: ReflectiveElement, e2: ReflectiveElement) -> float:
        position = np.exp(-matching.point_distance(e1.position, e2.position) / 30.0)
        size = matching.ratio_similarity(e1.size, e2.size)
        intensity = 1.0 - abs(e1.intensity - e2.intensity)
        return clamp_unit(0.5 * position + 0.25 * size + 0.25 * intensity, 0.0)

    def compare_heat_patterns(self, patterns1: Sequence[HeatPattern], patterns2: Sequence[HeatPattern]) -> float:
        return clamp_unit(
            self._directed(matching.greedy_similarity, patterns1, patterns2, self._heat_pair_score),
            0.0)

    @staticmethod
    def _heat_pair_score(p1: HeatPattern, p2: HeatPattern) -> float:
        (cx1, cy1), (cx2, cy2) = p1.region.center, p2.region.center
        position = np.exp(-float(np.hypot(cx1 - cx2, cy1 - cy2)) / 50.0)
        temperature = 1.0 - abs(p1.temperature - p2.temperature)
        if len(p1.gradient) == len(p2.gradient) and len(p1.gradient) > 0:
            gradient = 1.0 - float(np.abs(np.subtract(p1.gradient, p2.gradient)).mean())
        else:
            gradient = 0.0
        return clamp_unit(0.5 * position + 0.3 * temperature + 0.2 * gradient, 0.0)
