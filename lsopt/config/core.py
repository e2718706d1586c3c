"""
Boundary discretisation configuration.

Configurations specify HOW the zero contour is discretised (tolerances,
saddle disambiguation, slot widths), not WHAT is discretised (the grid and
the signed distance field are passed to ``Boundary.discretise``).
"""

from __future__ import annotations

import warnings
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

if TYPE_CHECKING:
    from pathlib import Path


class LoggingConfig(BaseModel):
    """
    Configuration for logging.

    Attributes
    ----------
    level : Literal["DEBUG", "INFO", "WARNING", "ERROR"]
        Logging level (default: INFO)
    log_to_file : bool
        Also write log records to a file (default: False)
    log_file_path : str | None
        Log file path, required when log_to_file is True
    use_colors : bool
        Colored console output (default: True)
    include_location : bool
        Append [file:line] to records (default: False)
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_to_file: bool = False
    log_file_path: str | None = None
    use_colors: bool = True
    include_location: bool = False

    @model_validator(mode="after")
    def validate_log_file(self) -> LoggingConfig:
        """Validate that log_file_path is provided if log_to_file is True."""
        if self.log_to_file and self.log_file_path is None:
            raise ValueError("log_file_path must be provided when log_to_file is True")
        return self


class BoundaryConfig(BaseModel):
    """
    Configuration for the boundary discretiser.

    Attributes
    ----------
    zero_tolerance : float
        Node values with |phi| <= zero_tolerance are snapped to exactly zero
        and treated as lying on the contour (default: 1e-12)
    interpolation_tolerance : float
        Edges whose end values differ by less than this use the edge midpoint
        instead of linear interpolation (default: 1e-12)
    n_sensitivities : int
        Width of each boundary point's sensitivity array (default: 1)
    saddle_tie_break : Literal["inside", "outside"]
        Which corners are joined through an ambiguous element whose centre
        value is exactly zero (default: inside)
    logging : LoggingConfig
        Logging settings applied by ``configure_from_config``

    Examples
    --------
    >>> config = BoundaryConfig(zero_tolerance=1e-10, n_sensitivities=2)
    >>> boundary = Boundary(config=config)
    """

    zero_tolerance: float = Field(1e-12, ge=0.0, le=1e-2, description="Snapping tolerance for on-contour nodes")
    interpolation_tolerance: float = Field(
        1e-12, gt=0.0, le=1e-2, description="Minimum value difference for edge interpolation"
    )
    n_sensitivities: int = Field(1, ge=1, le=1000, description="Number of objective/constraint sensitivities")
    saddle_tie_break: Literal["inside", "outside"] = "inside"
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("zero_tolerance")
    @classmethod
    def validate_zero_tolerance(cls, v: float) -> float:
        """Warn about tolerances large enough to move genuine crossings."""
        if v > 1e-6:
            warnings.warn(
                f"Large zero tolerance ({v:.2e}) snaps genuine edge crossings onto grid nodes",
                UserWarning,
            )
        return v

    def to_yaml(self, path: str | Path) -> None:
        """Save configuration to a YAML file."""
        from .io import save_boundary_config

        save_boundary_config(self, path)

    @classmethod
    def from_yaml(cls, path: str | Path) -> BoundaryConfig:
        """Load configuration from a YAML file."""
        from .io import load_boundary_config

        return load_boundary_config(path)
