"""
Level set field snapshots sampled on a fixed grid.

A LevelSetField holds one signed distance value per grid node:
    φ < 0: inside material
    φ > 0: outside material (void)
    φ = 0: on the contour

An optional second "target" field is carried alongside for shape matching
problems, where the boundary of a target shape is discretised with the
same machinery as the evolving one.

The field is a static snapshot. Evolution, reinitialisation and narrow band
maintenance belong to the optimiser that owns the field.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from lsopt.utils.exceptions import (
    DimensionMismatchError,
    LevelSetError,
    check_numerical_stability,
)
from lsopt.utils.lsopt_logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from numpy.typing import NDArray

    from lsopt.geometry.protocol import GridProvider

logger = get_logger(__name__)


def _as_node_values(values, grid: GridProvider, name: str) -> NDArray[np.float64]:
    """Flatten (rows, columns) arrays to node order and validate the count."""
    array = np.asarray(values, dtype=np.float64)
    grid_shape = getattr(grid, "shape", None)
    if array.ndim == 2 and grid_shape is not None and array.shape == tuple(grid_shape):
        array = array.ravel()
    if array.shape != (grid.num_nodes,):
        raise DimensionMismatchError(
            array_name=name,
            provided_shape=array.shape,
            expected_shape=(grid.num_nodes,),
            component="LevelSetField",
        )
    check_numerical_stability(array, name, component="LevelSetField")
    return array.copy()


class LevelSetField:
    """
    Signed distance snapshot on a grid (reference FieldProvider).

    Attributes:
        grid: Grid the values are sampled on
        signed_distance: Primary field, shape (num_nodes,)
        target: Optional target field, shape (num_nodes,) or None

    Example:
        >>> grid = StructuredGrid2D(width=2, height=2)
        >>> field = LevelSetField(grid, [[1, 1, 1], [1, -1, 1], [1, 1, 1]])
        >>> field.signed_distance[4]
        -1.0
    """

    def __init__(
        self,
        grid: GridProvider,
        signed_distance: NDArray | Sequence,
        target: NDArray | Sequence | None = None,
    ):
        """
        Initialize level set field.

        Values may be given in node order, shape (num_nodes,), or for
        structured grids as a (rows, columns) array indexed [j, i].

        Raises:
            DimensionMismatchError: If the value count doesn't match the grid
            NumericalInstabilityError: If values contain NaN or inf
        """
        self._grid = grid
        self._signed_distance = _as_node_values(signed_distance, grid, "signed_distance")
        self._target = None if target is None else _as_node_values(target, grid, "target")

    @property
    def grid(self) -> GridProvider:
        return self._grid

    @property
    def signed_distance(self) -> NDArray[np.float64]:
        return self._signed_distance

    @property
    def target(self) -> NDArray[np.float64] | None:
        return self._target

    @property
    def has_target(self) -> bool:
        return self._target is not None

    def values(self, is_target: bool = False) -> NDArray[np.float64]:
        """
        Return the primary or target values.

        Raises:
            LevelSetError: If the target field is requested but absent
        """
        if not is_target:
            return self._signed_distance
        if self._target is None:
            raise LevelSetError(
                "Target signed distance requested but the field has none",
                component="LevelSetField",
                suggested_action="Pass target=... when constructing the LevelSetField",
                error_code="TARGET_NOT_AVAILABLE",
            )
        return self._target

    @classmethod
    def from_function(
        cls,
        grid: GridProvider,
        phi: Callable[[NDArray, NDArray], NDArray],
        target: Callable[[NDArray, NDArray], NDArray] | None = None,
    ) -> LevelSetField:
        """
        Sample vectorised functions ``phi(x, y)`` at the grid nodes.

        Example:
            >>> field = LevelSetField.from_function(grid, lambda x, y: np.hypot(x - 5, y - 5) - 3)
        """
        x, y = grid.nodes[:, 0], grid.nodes[:, 1]
        values = np.broadcast_to(np.asarray(phi(x, y), dtype=np.float64), x.shape)
        target_values = None
        if target is not None:
            target_values = np.broadcast_to(np.asarray(target(x, y), dtype=np.float64), x.shape)
        return cls(grid, values, target_values)

    def __repr__(self) -> str:
        return (
            f"LevelSetField(num_nodes={self._signed_distance.size}, "
            f"min={self._signed_distance.min():.4g}, max={self._signed_distance.max():.4g}, "
            f"has_target={self.has_target})"
        )


def circle_signed_distance(
    grid: GridProvider, centre: Sequence[float], radius: float
) -> NDArray[np.float64]:
    """
    Exact signed distance of a solid disc: φ(x) = ||x - c|| - r.

    Negative inside the disc, so the disc is the material region.

    Raises:
        ValueError: If radius <= 0
    """
    if radius <= 0:
        raise ValueError(f"Radius must be positive, got {radius}")
    centre = np.asarray(centre, dtype=float)
    return np.linalg.norm(grid.nodes - centre, axis=1) - radius


def holes_signed_distance(
    grid: GridProvider,
    holes: Sequence[tuple[Sequence[float], float]],
    clamp_to_domain: bool = True,
) -> NDArray[np.float64]:
    """
    Signed distance of a material block perforated by circular holes.

    Material fills the domain except for the holes, each given as
    ``(centre, radius)``. With ``clamp_to_domain`` the distance to the outer
    domain edges is included, so the zero contour also runs along the domain
    boundary.

    Returns:
        Node values, negative in material
    """
    nodes = grid.nodes
    distance = np.full(nodes.shape[0], np.inf)

    if clamp_to_domain:
        (x_min, x_max), (y_min, y_max) = grid.domain_bounds
        distance = np.minimum.reduce(
            [nodes[:, 0] - x_min, x_max - nodes[:, 0], nodes[:, 1] - y_min, y_max - nodes[:, 1]]
        )

    for centre, radius in holes:
        if radius <= 0:
            raise ValueError(f"Hole radius must be positive, got {radius}")
        hole_distance = np.linalg.norm(nodes - np.asarray(centre, dtype=float), axis=1) - radius
        distance = np.minimum(distance, hole_distance)

    if not np.all(np.isfinite(distance)):
        raise ValueError("holes_signed_distance needs at least one hole when clamp_to_domain is False")

    logger.debug(f"Initialised signed distance with {len(holes)} holes (clamp_to_domain={clamp_to_domain})")
    return -distance
