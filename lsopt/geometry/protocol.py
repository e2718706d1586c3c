"""
Provider protocols consumed by the boundary discretiser.

The discretiser never owns the grid or the level set field. It reads them
through two narrow interfaces:
- GridProvider: node coordinates, element connectivity, domain and fixed flags
- FieldProvider: one signed distance value per node (plus an optional target)

Both are read-only from the discretiser's perspective; callers must keep
them unchanged for the duration of a discretisation pass.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray


class GridType(Enum):
    """
    Enumeration of supported grid types.

    Attributes:
        STRUCTURED_2D: Fixed grid of square elements
        CUSTOM: User-defined quadrilateral grid
    """

    STRUCTURED_2D = "structured_2d"
    CUSTOM = "custom"


@runtime_checkable
class GridProvider(Protocol):
    """
    Protocol for fixed quadrilateral grids.

    Element nodes are listed anticlockwise; element edge k joins element
    nodes k and (k + 1) % 4.

    Required members:
        - num_nodes / num_elements
        - nodes: (N, 2) node coordinates
        - elements: (M, 4) node indices per element
        - node_is_domain / element_is_domain: outer domain boundary flags
        - node_is_fixed / element_is_fixed: immovable flags
        - node_elements(): elements sharing a node
        - is_domain_edge(): whether an edge lies on the outer domain boundary
        - domain_bounds: ((x_min, x_max), (y_min, y_max))
    """

    @property
    def num_nodes(self) -> int:
        """Total number of grid nodes."""
        ...

    @property
    def num_elements(self) -> int:
        """Total number of grid elements."""
        ...

    @property
    def nodes(self) -> NDArray[np.floating]:
        """Node coordinates, shape (num_nodes, 2)."""
        ...

    @property
    def elements(self) -> NDArray[np.integer]:
        """Element connectivity, shape (num_elements, 4), anticlockwise."""
        ...

    @property
    def node_is_domain(self) -> NDArray[np.bool_]:
        """True for nodes on the outer domain boundary."""
        ...

    @property
    def element_is_domain(self) -> NDArray[np.bool_]:
        """True for elements touching the outer domain boundary."""
        ...

    @property
    def node_is_fixed(self) -> NDArray[np.bool_]:
        """True for nodes marked immovable."""
        ...

    @property
    def element_is_fixed(self) -> NDArray[np.bool_]:
        """True for elements with at least one fixed node."""
        ...

    @property
    def domain_bounds(self) -> tuple[tuple[float, float], tuple[float, float]]:
        """Bounding box of the domain as ((x_min, x_max), (y_min, y_max))."""
        ...

    def node_elements(self, node: int) -> NDArray[np.integer]:
        """Indices of the elements sharing ``node``, ascending."""
        ...

    def is_domain_edge(self, node_a: int, node_b: int) -> bool:
        """Whether the edge joining two nodes lies on the outer domain boundary."""
        ...


@runtime_checkable
class FieldProvider(Protocol):
    """
    Protocol for level set fields sampled at grid nodes.

    Values are negative inside material, positive outside and zero on the
    contour.
    """

    @property
    def grid(self) -> GridProvider:
        """Grid the field is sampled on."""
        ...

    @property
    def signed_distance(self) -> NDArray[np.floating]:
        """Primary signed distance values, one per node."""
        ...

    @property
    def target(self) -> NDArray[np.floating] | None:
        """Optional target signed distance values for shape matching."""
        ...


def is_grid_provider(grid: object) -> bool:
    """Check whether an object satisfies GridProvider."""
    return isinstance(grid, GridProvider)


def validate_grid_provider(grid: object) -> None:
    """
    Raise TypeError when an object does not satisfy GridProvider.

    Raises:
        TypeError: listing the missing members
    """
    if is_grid_provider(grid):
        return
    required = [
        "num_nodes",
        "num_elements",
        "nodes",
        "elements",
        "node_is_domain",
        "element_is_domain",
        "node_is_fixed",
        "element_is_fixed",
        "domain_bounds",
        "node_elements",
        "is_domain_edge",
    ]
    missing = [name for name in required if not hasattr(grid, name)]
    raise TypeError(f"{type(grid).__name__} is not a GridProvider; missing: {', '.join(missing)}")
