"""
Configuration loader for clustering profiles and environment variables.
"""

import os
from pathlib import Path
from typing import Dict, Any, Optional
import yaml

from src.clustering.config import (
    MergeConfig,
    OverlapBuilderConfig,
    PipelineConfig,
    RecursiveBuilderConfig,
)


DEFAULT_PROFILE = "default"


class ConfigLoader:
    """Load and manage configuration from YAML files and environment."""

    CONFIG_DIR = Path(__file__).parent.parent.parent / "configs"

    @classmethod
    def load_profile(cls, profile_name: str = DEFAULT_PROFILE) -> Dict[str, Any]:
        """
        Load a clustering profile.

        Args:
            profile_name: Name of the profile (default, sparse-region)

        Returns:
            Dictionary with configuration values

        Raises:
            FileNotFoundError: If profile doesn't exist
        """
        profile_path = cls.CONFIG_DIR / f"{profile_name}.yaml"

        if not profile_path.exists():
            available = sorted(f.stem for f in cls.CONFIG_DIR.glob("*.yaml"))
            raise FileNotFoundError(
                f"Profile '{profile_name}' not found. Available profiles: {', '.join(available)}"
            )

        with open(profile_path, "r") as f:
            return yaml.safe_load(f) or {}

    @classmethod
    def get_profile_from_env(cls) -> Optional[str]:
        """Get profile name from CLUSTER_PROFILE environment variable."""
        return os.getenv("CLUSTER_PROFILE")

    @classmethod
    def load_default_or_env_profile(cls) -> Dict[str, Any]:
        """
        Load profile from environment variable or use the default profile.

        Returns:
            Configuration dictionary
        """
        profile = cls.get_profile_from_env() or DEFAULT_PROFILE
        return cls.load_profile(profile)


def get_config() -> Dict[str, Any]:
    """Convenience function to get current configuration."""
    return ConfigLoader.load_default_or_env_profile()


def pipeline_config_from_dict(data: Optional[Dict[str, Any]]) -> PipelineConfig:
    """
    Build stage configs from a profile dictionary.

    Missing sections or keys fall back to the dataclass defaults.

    YAML Format:
        ```yaml
        venue:
          epsilon: 0.15
          min_points: 7
        non_intersecting:
          epsilon: 0.3
          min_points: 2
        merge:
          epsilon: 0.3
          min_points: 1
        ```
    """
    data = data or {}
    return PipelineConfig(
        venue=RecursiveBuilderConfig(**(data.get("venue") or {})),
        non_intersecting=OverlapBuilderConfig(**(data.get("non_intersecting") or {})),
        merge=MergeConfig(**(data.get("merge") or {})),
    )


def load_pipeline_config(profile_name: Optional[str] = None) -> PipelineConfig:
    """Load stage configs from ``profile_name``, or from CLUSTER_PROFILE / the default."""
    if profile_name is None:
        data = ConfigLoader.load_default_or_env_profile()
    else:
        data = ConfigLoader.load_profile(profile_name)
    return pipeline_config_from_dict(data)
