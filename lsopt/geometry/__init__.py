"""Grid providers, provider protocols and level set boundary discretisation."""

from lsopt.geometry.grids import StructuredGrid2D
from lsopt.geometry.level_set import (
    Boundary,
    BoundaryComponent,
    BoundaryPoint,
    BoundarySegment,
    BoundaryState,
    LevelSetField,
    MeshStatus,
    classify_mesh,
)
from lsopt.geometry.protocol import (
    FieldProvider,
    GridProvider,
    GridType,
    is_grid_provider,
    validate_grid_provider,
)

__all__ = [
    "StructuredGrid2D",
    "Boundary",
    "BoundaryComponent",
    "BoundaryPoint",
    "BoundarySegment",
    "BoundaryState",
    "LevelSetField",
    "MeshStatus",
    "classify_mesh",
    "FieldProvider",
    "GridProvider",
    "GridType",
    "is_grid_provider",
    "validate_grid_provider",
]
