"""
Unit Tests for Configuration (src/clustering/config, src/tools/config_loader)

Tests config defaults, validation and YAML profile loading.
"""

import pytest
import yaml

from src.clustering.config import (
    MergeConfig,
    OverlapBuilderConfig,
    PipelineConfig,
    RecursiveBuilderConfig,
)
from src.storage.models import Generation
from src.tools.config_loader import (
    ConfigLoader,
    get_config,
    load_pipeline_config,
    pipeline_config_from_dict,
)


# ==============================================================================
# Config Dataclass Tests
# ==============================================================================

class TestBuilderConfig:
    """Test builder configuration."""

    def test_venue_defaults(self):
        """Test venue-derived defaults."""
        config = RecursiveBuilderConfig()

        assert config.epsilon == 0.15
        assert config.min_points == 7
        assert config.recursion is True
        assert config.epsilon_step == 0.025
        assert config.max_radius == 900
        assert config.min_radius == 125
        assert config.generation is Generation.VENUE_DERIVED

    def test_overlap_defaults(self):
        """Test non-intersecting defaults."""
        config = OverlapBuilderConfig()

        assert config.epsilon == 0.3
        assert config.min_points == 2
        assert config.epsilon_step == 0.1
        assert config.overlap_factor == 0.9
        assert config.generation is Generation.NON_INTERSECTING
        assert config.compare_generations == (Generation.VENUE_DERIVED, Generation.NON_INTERSECTING)

    def test_reset_step_follows_shrink_step(self):
        """Test the reset decrement defaults to the shrink decrement."""
        assert RecursiveBuilderConfig(min_points_step=2).reset_min_points_step == 2
        assert OverlapBuilderConfig(min_points_step=0, reset_min_points_step=1).min_points_step == 0

    def test_merge_defaults(self):
        """Test merge defaults."""
        config = MergeConfig()

        assert config.epsilon == 0.3
        assert config.min_points == 1
        assert config.keep_existing is False
        assert config.retire_originals is True
        assert config.source_generations == tuple(Generation)

    def test_generations_coerced(self):
        """Test generations given as ints or names are coerced."""
        config = OverlapBuilderConfig(generation=1, compare_generations=["venue-derived"])
        assert config.generation is Generation.NON_INTERSECTING
        assert config.compare_generations == (Generation.VENUE_DERIVED,)

        assert MergeConfig(source_generations=0).source_generations == (Generation.VENUE_DERIVED,)

    @pytest.mark.parametrize("kwargs", [
        {"epsilon": -0.1},
        {"min_points": -1},
        {"epsilon_step": 0},
        {"min_points_step": 0},
        {"min_points_step": -1, "reset_min_points_step": 1},
        {"reset_min_points_step": 0},
        {"min_radius": 1000, "max_radius": 900},
    ])
    def test_invalid_builder_config(self, kwargs):
        """Test invalid builder parameters are rejected."""
        with pytest.raises(ValueError):
            RecursiveBuilderConfig(**kwargs)

    def test_invalid_overlap_factor(self):
        """Test a non-positive overlap factor is rejected."""
        with pytest.raises(ValueError):
            OverlapBuilderConfig(overlap_factor=0)

    @pytest.mark.parametrize("kwargs", [{"epsilon": -1}, {"min_points": -1}])
    def test_invalid_merge_config(self, kwargs):
        """Test invalid merge parameters are rejected."""
        with pytest.raises(ValueError):
            MergeConfig(**kwargs)


# ==============================================================================
# Profile Loading Tests
# ==============================================================================

class TestConfigLoader:
    """Test YAML profile loading."""

    def test_load_default_profile(self):
        """Test the bundled default profile matches the dataclass defaults."""
        config = load_pipeline_config("default")

        assert config.venue == RecursiveBuilderConfig()
        assert config.non_intersecting == OverlapBuilderConfig()
        assert config.merge == MergeConfig()

    def test_load_sparse_profile(self):
        """Test a profile overriding some values."""
        config = load_pipeline_config("sparse-region")

        assert config.venue.epsilon == 0.3
        assert config.venue.min_points == 4
        assert config.venue.max_radius == 900

    def test_unknown_profile(self):
        """Test an unknown profile lists the available ones."""
        with pytest.raises(FileNotFoundError) as exc_info:
            ConfigLoader.load_profile("does-not-exist")

        assert "default" in str(exc_info.value)

    def test_profile_from_env(self, monkeypatch):
        """Test CLUSTER_PROFILE selects the profile."""
        monkeypatch.setenv("CLUSTER_PROFILE", "sparse-region")

        assert ConfigLoader.get_profile_from_env() == "sparse-region"
        assert get_config()["venue"]["min_points"] == 4
        assert load_pipeline_config().venue.min_points == 4

    def test_default_without_env(self, monkeypatch):
        """Test the default profile is used without CLUSTER_PROFILE."""
        monkeypatch.delenv("CLUSTER_PROFILE", raising=False)
        assert load_pipeline_config().venue.min_points == 7

    def test_custom_config_dir(self, monkeypatch, tmp_path):
        """Test profiles are read from CONFIG_DIR."""
        (tmp_path / "tiny.yaml").write_text(yaml.safe_dump({"merge": {"epsilon": 0.1}}))
        monkeypatch.setattr(ConfigLoader, "CONFIG_DIR", tmp_path)

        config = load_pipeline_config("tiny")
        assert config.merge.epsilon == 0.1
        assert config.venue == RecursiveBuilderConfig()

    def test_from_empty_dict(self):
        """Test missing sections fall back to defaults."""
        assert pipeline_config_from_dict(None) == PipelineConfig()
        assert pipeline_config_from_dict({"venue": None}) == PipelineConfig()

    def test_unknown_key_rejected(self):
        """Test typos in a profile are not silently ignored."""
        with pytest.raises(TypeError):
            pipeline_config_from_dict({"venue": {"epsilom": 0.2}})
