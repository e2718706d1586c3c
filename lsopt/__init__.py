from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("lsopt")  # Matches the name in pyproject.toml
except PackageNotFoundError:
    # package is not installed
    __version__ = "0.0.0-dev"

from .config import BoundaryConfig, LoggingConfig, load_boundary_config, save_boundary_config
from .geometry import (
    Boundary,
    BoundaryComponent,
    BoundaryPoint,
    BoundarySegment,
    BoundaryState,
    FieldProvider,
    GridProvider,
    LevelSetField,
    MeshStatus,
    StructuredGrid2D,
    classify_mesh,
)
from .geometry.level_set import circle_signed_distance, holes_signed_distance
from .utils.exceptions import (
    BoundaryStateError,
    ConfigurationError,
    DimensionMismatchError,
    LevelSetError,
    NumericalInstabilityError,
    TopologyError,
)
from .utils.lsopt_logging import configure_logging, get_logger

__all__ = [
    "__version__",
    # Configuration
    "BoundaryConfig",
    "LoggingConfig",
    "load_boundary_config",
    "save_boundary_config",
    # Geometry
    "StructuredGrid2D",
    "GridProvider",
    "FieldProvider",
    "LevelSetField",
    "circle_signed_distance",
    "holes_signed_distance",
    "MeshStatus",
    "classify_mesh",
    "Boundary",
    "BoundaryComponent",
    "BoundaryPoint",
    "BoundarySegment",
    "BoundaryState",
    # Errors
    "LevelSetError",
    "BoundaryStateError",
    "ConfigurationError",
    "DimensionMismatchError",
    "NumericalInstabilityError",
    "TopologyError",
    # Logging
    "configure_logging",
    "get_logger",
]
