"""
Tests for Configuration Manager
"""

import pytest
import yaml

from vehicle_match.utils.config_manager import ConfigManager


class TestConfigManager:
    """Test suite for configuration loading and validation."""

    def test_default_config_loads(self, config_manager):
        """Test that the packaged default configuration loads and validates."""
        assert config_manager.get('comparison.thresholds.daylight') == 0.75
        assert config_manager.get('comparison.thresholds.infrared') == 0.70
        assert config_manager.get('pipeline.min_quality') == 0.3
        assert config_manager.get('ir_signature.grid_size') == 8

    def test_dot_notation_default(self, config_manager):
        """Test that missing keys return the supplied default."""
        assert config_manager.get('does.not.exist', 42) == 42
        assert config_manager.get('plate.min_width.deeper', 'x') == 'x'

    def test_section_getters(self, config_manager):
        """Test that every section getter returns a mapping."""
        getters = [
            config_manager.get_quality_params, config_manager.get_classifier_params,
            config_manager.get_geometric_params, config_manager.get_light_pattern_params,
            config_manager.get_plate_params, config_manager.get_ir_signature_params,
            config_manager.get_bumper_params, config_manager.get_comparison_params,
            config_manager.get_pipeline_params, config_manager.get_logging_params,
        ]
        for getter in getters:
            assert isinstance(getter(), dict)

        assert config_manager.get_plate_params()['max_aspect'] == 4.5

    def test_set_value(self, config_manager):
        """Test setting a value with dot notation."""
        config_manager.set('comparison.symmetric_matching', True)
        assert config_manager.get('comparison.symmetric_matching') is True

        config_manager.set('new_section.value', 3)
        assert config_manager.get('new_section.value') == 3

    def test_set_invalid_threshold_rejected(self, config_manager):
        """Test that setting an out-of-range threshold fails validation."""
        with pytest.raises(ValueError, match="threshold"):
            config_manager.set('comparison.thresholds.daylight', 1.5)

    def test_weights_must_sum_to_one(self, tmp_path):
        """Test that a weight table not summing to one is rejected."""
        config_path = tmp_path / "bad_weights.yaml"
        config_path.write_text(yaml.dump({
            'comparison': {'weights': {'daylight': {
                'geometric': 0.5, 'light_pattern': 0.5, 'bumper': 0.5, 'color': 0.0, 'thermal': 0.0,
            }}}
        }))

        with pytest.raises(ValueError, match="sum to 1.0"):
            ConfigManager(str(config_path))

    def test_quality_gate_ordering(self, tmp_path):
        """Test that the hard quality gate cannot exceed the consistency gate."""
        config_path = tmp_path / "bad_gates.yaml"
        config_path.write_text(yaml.dump({
            'pipeline': {'min_quality': 0.6, 'min_consistency_quality': 0.5}
        }))

        with pytest.raises(ValueError, match="Quality gates"):
            ConfigManager(str(config_path))

    def test_plate_size_constraints(self, tmp_path):
        """Test that inverted plate width limits are rejected."""
        config_path = tmp_path / "bad_plate.yaml"
        config_path.write_text(yaml.dump({'plate': {'min_width': 500, 'max_width': 400}}))

        with pytest.raises(ValueError, match="min_width"):
            ConfigManager(str(config_path))

    def test_missing_file(self, tmp_path):
        """Test error for a missing configuration file."""
        with pytest.raises(FileNotFoundError):
            ConfigManager(str(tmp_path / "missing.yaml"))

    def test_malformed_yaml(self, tmp_path):
        """Test error for unparsable YAML."""
        config_path = tmp_path / "broken.yaml"
        config_path.write_text("comparison: [unclosed")

        with pytest.raises(ValueError, match="parsing"):
            ConfigManager(str(config_path))

    def test_empty_file_uses_component_defaults(self, tmp_path):
        """Test that an empty file is a valid, empty configuration."""
        config_path = tmp_path / "empty.yaml"
        config_path.write_text("")

        config = ConfigManager(str(config_path))
        assert config.config == {}
        assert config.get_comparison_params() == {}

    def test_save_round_trip(self, config_manager, tmp_path):
        """Test that a saved configuration can be loaded again."""
        output_path = tmp_path / "saved.yaml"
        config_manager.set('comparison.thresholds.infrared', 0.65)
        config_manager.save(str(output_path))

        reloaded = ConfigManager(str(output_path))
        assert reloaded.get('comparison.thresholds.infrared') == 0.65
