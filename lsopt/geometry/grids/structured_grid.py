"""
Fixed structured grid of square elements.

This is the reference GridProvider used by the boundary discretiser. The
grid is a ``width x height`` array of square elements of side ``spacing``:

    nodes:    (width + 1) * (height + 1), row-major, node = j * (width + 1) + i
    elements: width * height, row-major, element = j * width + i

Element nodes are stored anticlockwise starting from the bottom-left corner,
so element edge k joins element nodes k and (k + 1) % 4:

    3 ---- 2
    |      |
    0 ---- 1

Node-to-element incidence is kept as a sparse CSR matrix, which gives cheap
row slicing for ``node_elements``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import scipy.sparse as sparse

from lsopt.geometry.protocol import GridType

if TYPE_CHECKING:
    from collections.abc import Iterable

    from numpy.typing import NDArray


class StructuredGrid2D:
    """
    Fixed 2D grid of square elements with domain and fixed-node flags.

    Attributes:
        width: Number of elements in x
        height: Number of elements in y
        spacing: Element side length
        origin: Coordinates of node 0

    Example:
        >>> grid = StructuredGrid2D(width=2, height=2)
        >>> grid.num_nodes, grid.num_elements
        (9, 4)
        >>> grid.elements[0]
        array([0, 1, 4, 3])
    """

    def __init__(
        self,
        width: int,
        height: int,
        spacing: float = 1.0,
        origin: tuple[float, float] = (0.0, 0.0),
        fixed_nodes: Iterable[int] | NDArray[np.bool_] | None = None,
    ):
        """
        Initialize structured grid.

        Args:
            width: Number of elements in x (at least 1)
            height: Number of elements in y (at least 1)
            spacing: Element side length (positive)
            origin: Coordinates of the bottom-left node
            fixed_nodes: Indices of immovable nodes, or a boolean mask over nodes

        Raises:
            ValueError: If the grid size or spacing is invalid
        """
        if width < 1 or height < 1:
            raise ValueError(f"Grid must have at least one element per direction, got {width}x{height}")
        if spacing <= 0:
            raise ValueError(f"Spacing must be positive, got {spacing}")

        self.width = int(width)
        self.height = int(height)
        self.spacing = float(spacing)
        self.origin = (float(origin[0]), float(origin[1]))

        nx = self.width + 1
        ny = self.height + 1

        x = self.origin[0] + self.spacing * np.arange(nx)
        y = self.origin[1] + self.spacing * np.arange(ny)
        X, Y = np.meshgrid(x, y, indexing="xy")
        self._nodes = np.column_stack([X.ravel(), Y.ravel()])

        i, j = np.meshgrid(np.arange(self.width), np.arange(self.height), indexing="xy")
        bottom_left = (j * nx + i).ravel()
        self._elements = np.column_stack([bottom_left, bottom_left + 1, bottom_left + 1 + nx, bottom_left + nx])

        node_i = np.tile(np.arange(nx), ny)
        node_j = np.repeat(np.arange(ny), nx)
        self._node_is_domain = (node_i == 0) | (node_i == self.width) | (node_j == 0) | (node_j == self.height)
        self._element_is_domain = self._node_is_domain[self._elements].any(axis=1)

        self._node_is_fixed = self._build_fixed_mask(fixed_nodes)
        self._element_is_fixed = self._node_is_fixed[self._elements].any(axis=1)

        # Node-element incidence (rows: nodes, columns: elements)
        rows = self._elements.ravel()
        cols = np.repeat(np.arange(self.num_elements), 4)
        incidence = sparse.csr_matrix(
            (np.ones(rows.size, dtype=np.int8), (rows, cols)), shape=(self.num_nodes, self.num_elements)
        )
        incidence.sort_indices()
        self._incidence = incidence

        # Element count per undirected edge
        self._edge_counts: dict[tuple[int, int], int] = {}
        for element in range(self.num_elements):
            for a, b in self.element_edges(element):
                key = (a, b) if a < b else (b, a)
                self._edge_counts[key] = self._edge_counts.get(key, 0) + 1

    def _build_fixed_mask(self, fixed_nodes) -> NDArray[np.bool_]:
        mask = np.zeros(self.num_nodes, dtype=bool)
        if fixed_nodes is None:
            return mask
        fixed = np.asarray(fixed_nodes)
        if fixed.dtype == bool:
            if fixed.shape != (self.num_nodes,):
                raise ValueError(f"fixed_nodes mask must have shape ({self.num_nodes},), got {fixed.shape}")
            return fixed.copy()
        fixed = fixed.astype(int).ravel()
        if fixed.size and (fixed.min() < 0 or fixed.max() >= self.num_nodes):
            raise ValueError(f"fixed_nodes indices must lie in [0, {self.num_nodes})")
        mask[fixed] = True
        return mask

    # GridProvider implementation
    @property
    def grid_type(self) -> GridType:
        """Type of grid (always STRUCTURED_2D)."""
        return GridType.STRUCTURED_2D

    @property
    def num_nodes(self) -> int:
        """Total number of grid nodes."""
        return (self.width + 1) * (self.height + 1)

    @property
    def num_elements(self) -> int:
        """Total number of grid elements."""
        return self.width * self.height

    @property
    def shape(self) -> tuple[int, int]:
        """Node array shape as (rows, columns) = (height + 1, width + 1)."""
        return self.height + 1, self.width + 1

    @property
    def nodes(self) -> NDArray[np.floating]:
        return self._nodes

    @property
    def elements(self) -> NDArray[np.integer]:
        return self._elements

    @property
    def node_is_domain(self) -> NDArray[np.bool_]:
        return self._node_is_domain

    @property
    def element_is_domain(self) -> NDArray[np.bool_]:
        return self._element_is_domain

    @property
    def node_is_fixed(self) -> NDArray[np.bool_]:
        return self._node_is_fixed

    @property
    def element_is_fixed(self) -> NDArray[np.bool_]:
        return self._element_is_fixed

    @property
    def domain_bounds(self) -> tuple[tuple[float, float], tuple[float, float]]:
        x0, y0 = self.origin
        return (x0, x0 + self.width * self.spacing), (y0, y0 + self.height * self.spacing)

    def node_elements(self, node: int) -> NDArray[np.integer]:
        """Indices of the (one to four) elements sharing ``node``, ascending."""
        start, stop = self._incidence.indptr[node], self._incidence.indptr[node + 1]
        return self._incidence.indices[start:stop]

    def is_domain_edge(self, node_a: int, node_b: int) -> bool:
        """
        Whether the edge joining two nodes lies on the outer domain boundary.

        An edge is a domain edge when exactly one element uses it.

        Raises:
            ValueError: If the two nodes are not joined by an element edge
        """
        key = (node_a, node_b) if node_a < node_b else (node_b, node_a)
        if key not in self._edge_counts:
            raise ValueError(f"Nodes {node_a} and {node_b} are not joined by a grid edge")
        return self._edge_counts[key] == 1

    # Index helpers
    def element_edges(self, element: int) -> list[tuple[int, int]]:
        """The four (node_k, node_k+1) edges of an element in anticlockwise order."""
        nodes = self._elements[element]
        return [(int(nodes[k]), int(nodes[(k + 1) % 4])) for k in range(4)]

    def element_centre(self, element: int) -> NDArray[np.floating]:
        """Coordinates of an element's centre."""
        return self._nodes[self._elements[element]].mean(axis=0)

    def node_index(self, i: int, j: int) -> int:
        """Flat node index of column ``i``, row ``j``."""
        if i < 0 or i > self.width or j < 0 or j > self.height:
            raise ValueError(f"Node index ({i}, {j}) out of range")
        return j * (self.width + 1) + i

    def element_index(self, i: int, j: int) -> int:
        """Flat element index of column ``i``, row ``j``."""
        if i < 0 or i >= self.width or j < 0 or j >= self.height:
            raise ValueError(f"Element index ({i}, {j}) out of range")
        return j * self.width + i

    def meshgrid(self) -> tuple[NDArray, NDArray]:
        """Node coordinate matrices X, Y of shape (height + 1, width + 1)."""
        return self._nodes[:, 0].reshape(self.shape), self._nodes[:, 1].reshape(self.shape)

    def __repr__(self) -> str:
        return (
            f"StructuredGrid2D(width={self.width}, height={self.height}, spacing={self.spacing}, "
            f"origin={self.origin}, fixed_nodes={int(self._node_is_fixed.sum())})"
        )
