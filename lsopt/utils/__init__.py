"""Shared utilities: error taxonomy and logging."""

from .exceptions import (
    BoundaryStateError,
    ConfigurationError,
    DimensionMismatchError,
    LevelSetError,
    NumericalInstabilityError,
    TopologyError,
    check_numerical_stability,
    validate_array_dimensions,
    validate_boundary_state,
    validate_parameter_value,
)
from .lsopt_logging import configure_logging, get_logger

__all__ = [
    "LevelSetError",
    "BoundaryStateError",
    "ConfigurationError",
    "DimensionMismatchError",
    "NumericalInstabilityError",
    "TopologyError",
    "check_numerical_stability",
    "validate_array_dimensions",
    "validate_boundary_state",
    "validate_parameter_value",
    "configure_logging",
    "get_logger",
]
