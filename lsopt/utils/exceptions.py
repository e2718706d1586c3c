"""
Exception classes for lsopt with helpful error messages and user guidance.

This module provides specialized exception classes that give users clear,
actionable error messages with suggested solutions. Every failure of the
boundary discretisation pipeline is reported through one of these classes;
none of them are retried since the computation has no transient failure mode.
"""

from __future__ import annotations

from typing import Any

import numpy as np


class LevelSetError(Exception):
    """
    Base exception for level set boundary errors with helpful context and suggestions.

    This exception class provides structured error information including:
    - Clear error description
    - Component context information
    - Suggested actions for resolution
    - Optional diagnostic data
    """

    def __init__(
        self,
        message: str,
        component: str | None = None,
        suggested_action: str | None = None,
        error_code: str | None = None,
        diagnostic_data: dict[str, Any] | None = None,
    ):
        self.component = component or "Unknown Component"
        self.suggested_action = suggested_action
        self.error_code = error_code
        self.diagnostic_data = diagnostic_data or {}

        full_message = f"[{self.component}] {message}"

        if self.suggested_action:
            full_message += f"\nSuggestion: {self.suggested_action}"

        if self.error_code:
            full_message += f"\nError Code: {self.error_code}"

        if self.diagnostic_data:
            full_message += "\nDiagnostic Information:"
            for key, value in self.diagnostic_data.items():
                full_message += f"\n   - {key}: {value}"

        super().__init__(full_message)


class ConfigurationError(LevelSetError):
    """Exception raised when a configuration parameter is invalid."""

    def __init__(
        self,
        parameter_name: str,
        provided_value: Any,
        expected_type: type | None = None,
        valid_range: tuple | None = None,
        component: str | None = None,
    ):
        diagnostic_data = {
            "parameter": parameter_name,
            "provided_value": str(provided_value),
            "provided_type": type(provided_value).__name__,
        }

        if expected_type:
            diagnostic_data["expected_type"] = expected_type.__name__

        if valid_range:
            diagnostic_data["valid_range"] = f"[{valid_range[0]}, {valid_range[1]}]"

        suggested_action = _generate_configuration_suggestions(
            parameter_name, provided_value, expected_type, valid_range
        )

        super().__init__(
            message=f"Invalid configuration for parameter '{parameter_name}'",
            component=component,
            suggested_action=suggested_action,
            error_code="INVALID_CONFIGURATION",
            diagnostic_data=diagnostic_data,
        )


class BoundaryStateError(LevelSetError):
    """Exception raised when a boundary is used before a successful discretisation."""

    def __init__(
        self,
        operation_attempted: str,
        component: str | None = None,
        boundary_state: str | None = None,
    ):
        diagnostic_data = {
            "attempted_operation": operation_attempted,
            "boundary_state": boundary_state or "empty",
        }

        if boundary_state == "invalid":
            suggested_action = (
                "The last discretise() call failed; fix the field data and discretise again "
                f"before attempting '{operation_attempted}'"
            )
        else:
            suggested_action = f"Call discretise() first before attempting '{operation_attempted}'"

        super().__init__(
            message=f"Cannot perform '{operation_attempted}' - boundary has not been discretised",
            component=component,
            suggested_action=suggested_action,
            error_code="BOUNDARY_NOT_AVAILABLE",
            diagnostic_data=diagnostic_data,
        )


class DimensionMismatchError(LevelSetError):
    """Exception raised when array dimensions don't match expected values."""

    def __init__(
        self,
        array_name: str,
        provided_shape: tuple,
        expected_shape: tuple,
        component: str | None = None,
        context: str | None = None,
    ):
        diagnostic_data = {
            "array_name": array_name,
            "provided_shape": str(provided_shape),
            "expected_shape": str(expected_shape),
            "dimension_mismatch": _describe_dimension_mismatch(provided_shape, expected_shape),
        }

        if context:
            diagnostic_data["context"] = context

        super().__init__(
            message=f"Dimension mismatch for {array_name}",
            component=component,
            suggested_action=_generate_dimension_suggestions(array_name, provided_shape, expected_shape),
            error_code="DIMENSION_MISMATCH",
            diagnostic_data=diagnostic_data,
        )


class NumericalInstabilityError(LevelSetError):
    """Exception raised when non-finite or degenerate numerical data is detected."""

    def __init__(
        self,
        instability_type: str,
        problematic_values: dict[str, Any] | None = None,
        component: str | None = None,
    ):
        diagnostic_data: dict[str, Any] = {"instability_type": instability_type}

        if problematic_values:
            diagnostic_data.update(problematic_values)

        super().__init__(
            message=f"Numerical instability detected: {instability_type}",
            component=component,
            suggested_action=_generate_stability_suggestions(instability_type),
            error_code="NUMERICAL_INSTABILITY",
            diagnostic_data=diagnostic_data,
        )


class TopologyError(LevelSetError):
    """
    Exception raised when the discretised contour is not a manifold.

    A boundary point may belong to at most two segments. A third incident
    segment means the field data is inconsistent (for example an ambiguous
    coincident-node configuration) and the boundary cannot be used.
    """

    def __init__(
        self,
        point_index: int,
        segment_indices: list[int],
        coord: Any | None = None,
        component: str | None = None,
    ):
        diagnostic_data: dict[str, Any] = {
            "point": point_index,
            "segments": list(segment_indices),
            "n_segments": len(segment_indices),
        }

        if coord is not None:
            diagnostic_data["coord"] = tuple(float(c) for c in coord)

        super().__init__(
            message=f"Boundary point {point_index} belongs to {len(segment_indices)} segments (at most 2 allowed)",
            component=component,
            suggested_action=(
                "Check the signed distance field near this point for coincident zero nodes; "
                "reinitialising the level set usually removes the ambiguity"
            ),
            error_code="DEGENERATE_TOPOLOGY",
            diagnostic_data=diagnostic_data,
        )


# Helper functions for generating specific suggestions


def _generate_configuration_suggestions(
    parameter_name: str,
    provided_value: Any,
    expected_type: type | None,
    valid_range: tuple | None,
) -> str:
    """Generate specific suggestions for configuration errors."""

    suggestions = []

    if expected_type and not isinstance(provided_value, expected_type):
        suggestions.append(f"Convert {parameter_name} to {expected_type.__name__}")

    if valid_range and isinstance(provided_value, (int, float)):
        if provided_value < valid_range[0]:
            suggestions.append(f"Increase {parameter_name} to at least {valid_range[0]}")
        elif provided_value > valid_range[1]:
            suggestions.append(f"Decrease {parameter_name} to at most {valid_range[1]}")

    if "tolerance" in parameter_name.lower() and isinstance(provided_value, (int, float)):
        if provided_value < 0:
            suggestions.append("Tolerance must be non-negative")
        elif provided_value > 1e-3:
            suggestions.append("Large tolerances snap genuine crossings onto grid nodes")

    return " | ".join(suggestions) if suggestions else f"Check {parameter_name} value and try again"


def _describe_dimension_mismatch(provided_shape: tuple, expected_shape: tuple) -> str:
    """Describe the specific nature of dimension mismatch."""

    if len(provided_shape) != len(expected_shape):
        return f"Wrong number of dimensions: got {len(provided_shape)}, expected {len(expected_shape)}"

    mismatches = []
    for i, (provided, expected) in enumerate(zip(provided_shape, expected_shape, strict=False)):
        if provided != expected:
            mismatches.append(f"axis {i}: got {provided}, expected {expected}")

    return " | ".join(mismatches)


def _generate_dimension_suggestions(array_name: str, provided_shape: tuple, expected_shape: tuple) -> str:
    """Generate specific suggestions for dimension errors."""

    if "signed_distance" in array_name.lower() or "target" in array_name.lower():
        return f"Provide exactly one value per grid node: {expected_shape}"

    if len(provided_shape) < len(expected_shape):
        return f"Add missing dimensions to {array_name}: reshape or expand to {expected_shape}"
    elif len(provided_shape) > len(expected_shape):
        return f"Remove extra dimensions from {array_name}: reshape to {expected_shape}"
    else:
        return f"Reshape {array_name} to match the grid: {expected_shape}"


def _generate_stability_suggestions(instability_type: str) -> str:
    """Generate suggestions for numerical stability issues."""

    if "nan" in instability_type.lower():
        return "Check the level set update for division by zero or invalid initial values"
    elif "inf" in instability_type.lower():
        return "Clamp the signed distance function to a finite narrow band"
    else:
        return "Reinitialise the level set to a signed distance function"


# Convenience functions for common error scenarios


def validate_boundary_state(boundary, operation_name: str):
    """Validate that a boundary has been discretised before using its results."""
    state = getattr(boundary, "state", None)
    state_value = getattr(state, "value", state)
    if state_value != "discretised":
        raise BoundaryStateError(
            operation_attempted=operation_name,
            component=type(boundary).__name__,
            boundary_state=state_value,
        )


def validate_array_dimensions(array: np.ndarray, expected_shape: tuple, array_name: str, component: str | None = None):
    """Validate that array has expected dimensions."""
    if array.shape != expected_shape:
        raise DimensionMismatchError(
            array_name=array_name,
            provided_shape=array.shape,
            expected_shape=expected_shape,
            component=component,
        )


def validate_parameter_value(
    value: Any,
    parameter_name: str,
    expected_type: type | None = None,
    valid_range: tuple | None = None,
    component: str | None = None,
):
    """Validate parameter value and type."""
    if expected_type and not isinstance(value, expected_type):
        raise ConfigurationError(
            parameter_name=parameter_name,
            provided_value=value,
            expected_type=expected_type,
            component=component,
        )

    if valid_range and isinstance(value, (int, float)):
        if not (valid_range[0] <= value <= valid_range[1]):
            raise ConfigurationError(
                parameter_name=parameter_name,
                provided_value=value,
                valid_range=valid_range,
                component=component,
            )


def check_numerical_stability(array: np.ndarray, array_name: str, component: str | None = None):
    """Check array for non-finite values."""
    problematic_values = {}

    if np.any(np.isnan(array)):
        problematic_values["nan_count"] = int(np.sum(np.isnan(array)))
        instability_type = "NaN values detected"
    elif np.any(np.isinf(array)):
        problematic_values["inf_count"] = int(np.sum(np.isinf(array)))
        instability_type = "Infinite values detected"
    else:
        return  # All good

    problematic_values["array_name"] = array_name

    raise NumericalInstabilityError(
        instability_type=instability_type,
        problematic_values=problematic_values,
        component=component,
    )
