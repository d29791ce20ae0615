"""
Configuration Management System

Handles loading, validation, and management of system parameters.
"""

import yaml
from typing import Dict, Any, Optional
from pathlib import Path


class ConfigManager:
    """Manages configuration parameters for the vehicle comparison pipeline."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to configuration file. If None, uses default config.
        """
        self.config_path = config_path or self._get_default_config_path()
        self.config = self._load_config()
        self._validate_config()

    def _get_default_config_path(self) -> str:
        """Get path to default configuration file."""
        package_dir = Path(__file__).parent.parent
        return str(package_dir / "config" / "default_config.yaml")

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        try:
            with open(self.config_path, 'r') as file:
                config = yaml.safe_load(file)
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Error parsing configuration file: {e}")

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ValueError(f"Configuration root must be a mapping: {self.config_path}")
        return config

    def _validate_config(self) -> None:
        """Validate configuration parameters for consistency and feasibility."""
        # Lighting weight tables must each sum to one
        weights = self.get('comparison.weights', {}) or {}
        for lighting, table in weights.items():
            total = sum(float(v) for v in table.values())
            if abs(total - 1.0) > 1e-6:
                raise ValueError(f"Comparison weights for {lighting} must sum to 1.0 (got {total:.4f})")
            if any(float(v) < 0 for v in table.values()):
                raise ValueError(f"Comparison weights for {lighting} must be non-negative")

        # Decision thresholds are similarities
        thresholds = self.get('comparison.thresholds', {}) or {}
        for lighting, value in thresholds.items():
            if not 0.0 < float(value) < 1.0:
                raise ValueError(f"Similarity threshold for {lighting} must be in (0, 1)")

        # Gates: hard rejection must not be stricter than the consistency gate
        pipeline = self.config.get('pipeline', {}) or {}
        min_quality = float(pipeline.get('min_quality', 0.3))
        consistency_quality = float(pipeline.get('min_consistency_quality', 0.5))
        if not 0.0 <= min_quality <= consistency_quality <= 1.0:
            raise ValueError("Quality gates must satisfy 0 <= min_quality <= min_consistency_quality <= 1")
        if int(pipeline.get('max_workers', 4)) < 1:
            raise ValueError("pipeline.max_workers must be at least 1")

        # Plate size constraints
        plate = self.config.get('plate', {}) or {}
        if int(plate.get('min_width', 80)) >= int(plate.get('max_width', 400)):
            raise ValueError("plate.min_width must be less than plate.max_width")
        if int(plate.get('min_height', 20)) >= int(plate.get('max_height', 120)):
            raise ValueError("plate.min_height must be less than plate.max_height")
        if float(plate.get('min_aspect', 2.0)) >= float(plate.get('max_aspect', 4.5)):
            raise ValueError("plate.min_aspect must be less than plate.max_aspect")

        # IR signature grid
        ir = self.config.get('ir_signature', {}) or {}
        if int(ir.get('grid_size', 8)) < 1:
            raise ValueError("ir_signature.grid_size must be positive")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'plate.min_width')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'comparison.thresholds.daylight')
            value: Value to set
        """
        keys = key.split('.')
        config_ref = self.config

        for k in keys[:-1]:
            if k not in config_ref:
                config_ref[k] = {}
            config_ref = config_ref[k]

        config_ref[keys[-1]] = value
        self._validate_config()

    def save(self, output_path: Optional[str] = None) -> None:
        """
        Save current configuration to file.

        Args:
            output_path: Path to save configuration. If None, overwrites current file.
        """
        save_path = output_path or self.config_path

        with open(save_path, 'w') as file:
            yaml.dump(self.config, file, default_flow_style=False, indent=2)

    def get_quality_params(self) -> Dict[str, Any]:
        """Get quality assessment parameters as a dictionary."""
        return self.config.get('quality', {}) or {}

    def get_classifier_params(self) -> Dict[str, Any]:
        """Get view/lighting classifier parameters as a dictionary."""
        return self.config.get('classifier', {}) or {}

    def get_geometric_params(self) -> Dict[str, Any]:
        """Get geometric extraction parameters as a dictionary."""
        return self.config.get('geometric', {}) or {}

    def get_light_pattern_params(self) -> Dict[str, Any]:
        """Get light pattern extraction parameters as a dictionary."""
        return self.config.get('light_pattern', {}) or {}

    def get_plate_params(self) -> Dict[str, Any]:
        """Get licence plate detection parameters as a dictionary."""
        return self.config.get('plate', {}) or {}

    def get_ir_signature_params(self) -> Dict[str, Any]:
        """Get IR signature extraction parameters as a dictionary."""
        return self.config.get('ir_signature', {}) or {}

    def get_bumper_params(self) -> Dict[str, Any]:
        """Get bumper and daylight extraction parameters as a dictionary."""
        return self.config.get('bumper', {}) or {}

    def get_comparison_params(self) -> Dict[str, Any]:
        """Get comparison engine parameters as a dictionary."""
        return self.config.get('comparison', {}) or {}

    def get_pipeline_params(self) -> Dict[str, Any]:
        """Get pipeline gate and scheduling parameters as a dictionary."""
        return self.config.get('pipeline', {}) or {}

    def get_logging_params(self) -> Dict[str, Any]:
        """Get logging parameters as a dictionary."""
        return self.config.get('logging', {}) or {}
