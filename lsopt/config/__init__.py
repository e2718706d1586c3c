"""Configuration models for the boundary discretiser."""

from .core import BoundaryConfig, LoggingConfig
from .io import load_boundary_config, save_boundary_config, validate_yaml_config

__all__ = [
    "BoundaryConfig",
    "LoggingConfig",
    "load_boundary_config",
    "save_boundary_config",
    "validate_yaml_config",
]
