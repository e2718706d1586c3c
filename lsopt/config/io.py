"""
YAML I/O for boundary configurations.

This module provides functions to load and save boundary configurations
from/to YAML files with schema validation.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import yaml

if TYPE_CHECKING:
    from .core import BoundaryConfig


def load_boundary_config(path: str | Path) -> BoundaryConfig:
    """
    Load boundary configuration from YAML file.

    Parameters
    ----------
    path : str | Path
        Path to YAML configuration file

    Returns
    -------
    BoundaryConfig
        Validated boundary configuration

    Raises
    ------
    FileNotFoundError
        If configuration file doesn't exist
    ValueError
        If configuration is invalid
    yaml.YAMLError
        If YAML syntax is invalid

    YAML Format
    -----------
    zero_tolerance: 1.0e-12
    interpolation_tolerance: 1.0e-12
    n_sensitivities: 2
    saddle_tie_break: inside
    logging:
      level: DEBUG
    """
    from .core import BoundaryConfig

    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {path}\nPlease create a YAML configuration file or use programmatic config."
        )

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Invalid YAML syntax in {path}: {e}") from e

    if data is None:
        data = {}

    try:
        return BoundaryConfig.model_validate(data)
    except Exception as e:
        raise ValueError(f"Invalid configuration in {path}:\n{e}") from e


def save_boundary_config(config: BoundaryConfig, path: str | Path) -> None:
    """
    Save boundary configuration to YAML file.

    Parameters
    ----------
    config : BoundaryConfig
        Configuration to save
    path : str | Path
        Output file path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = config.model_dump(exclude_none=True, mode="json")

    with open(path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False, indent=2, allow_unicode=True)


def validate_yaml_config(path: str | Path) -> tuple[bool, str]:
    """
    Validate YAML configuration without keeping it.

    Returns
    -------
    tuple[bool, str]
        (is_valid, message) - True if valid, False with error message otherwise
    """
    try:
        load_boundary_config(path)
        return True, "Configuration is valid"
    except FileNotFoundError as e:
        return False, str(e)
    except yaml.YAMLError as e:
        return False, f"YAML syntax error: {e}"
    except ValueError as e:
        return False, f"Validation error: {e}"
