"""Configuration utilities."""

from .config_loader import (
    DEFAULT_PROFILE,
    ConfigLoader,
    PipelineConfig,
    get_config,
    load_pipeline_config,
    pipeline_config_from_dict,
)

__all__ = [
    "DEFAULT_PROFILE",
    "ConfigLoader",
    "PipelineConfig",
    "get_config",
    "load_pipeline_config",
    "pipeline_config_from_dict",
]
