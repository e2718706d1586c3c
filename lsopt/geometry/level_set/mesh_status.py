"""
Mesh status classification for level set discretisation.

Nodes are classified by the sign of the level set:
    INSIDE:     φ < -tol
    OUTSIDE:    φ > tol
    ON_CONTOUR: |φ| <= tol   (value snapped to exactly 0.0)

Elements are CUT when their nodes have mixed sign or any on-contour node,
otherwise INSIDE or OUTSIDE. The result is returned as its own MeshStatus
record; the grid provider is never modified.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING

import numpy as np

from lsopt.utils.exceptions import check_numerical_stability, validate_array_dimensions
from lsopt.utils.lsopt_logging import get_logger

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from lsopt.geometry.protocol import GridProvider

logger = get_logger(__name__)


class NodeStatus(IntEnum):
    """Sign classification of a grid node."""

    INSIDE = -1
    ON_CONTOUR = 0
    OUTSIDE = 1


class ElementStatus(IntEnum):
    """Classification of a grid element relative to the contour."""

    INSIDE = -1
    CUT = 0
    OUTSIDE = 1


@dataclass(frozen=True)
class MeshStatus:
    """
    Side output of the classifier for one field snapshot.

    Attributes:
        values: Node values with on-contour values snapped to 0.0
        node_status: NodeStatus code per node
        element_status: ElementStatus code per element
        cut_elements: Indices of CUT elements, ascending
    """

    values: NDArray[np.float64]
    node_status: NDArray[np.int8]
    element_status: NDArray[np.int8]
    cut_elements: NDArray[np.intp]

    @property
    def n_cut(self) -> int:
        return int(self.cut_elements.size)

    def is_cut(self, element: int) -> bool:
        return self.element_status[element] == ElementStatus.CUT

    def count_nodes(self, status: NodeStatus) -> int:
        return int(np.count_nonzero(self.node_status == status))

    def count_elements(self, status: ElementStatus) -> int:
        return int(np.count_nonzero(self.element_status == status))


def classify_mesh(grid: GridProvider, values: NDArray, zero_tolerance: float = 0.0) -> MeshStatus:
    """
    Classify every node and element of ``grid`` for the field ``values``.

    Args:
        grid: Grid provider
        values: One level set value per node
        zero_tolerance: Values with |φ| <= zero_tolerance count as on-contour

    Returns:
        MeshStatus for this snapshot

    Raises:
        DimensionMismatchError: If len(values) != grid.num_nodes
        NumericalInstabilityError: If values contain NaN or inf
    """
    values = np.asarray(values, dtype=np.float64)
    validate_array_dimensions(values, (grid.num_nodes,), "signed_distance", component="classify_mesh")
    check_numerical_stability(values, "signed_distance", component="classify_mesh")

    snapped = np.where(np.abs(values) <= zero_tolerance, 0.0, values)

    node_status = np.sign(snapped).astype(np.int8)

    element_nodes = node_status[grid.elements]
    has_zero = np.any(element_nodes == NodeStatus.ON_CONTOUR, axis=1)
    has_inside = np.any(element_nodes == NodeStatus.INSIDE, axis=1)
    has_outside = np.any(element_nodes == NodeStatus.OUTSIDE, axis=1)

    element_status = np.where(has_inside, ElementStatus.INSIDE, ElementStatus.OUTSIDE).astype(np.int8)
    element_status[has_zero | (has_inside & has_outside)] = ElementStatus.CUT

    cut_elements = np.flatnonzero(element_status == ElementStatus.CUT)

    status = MeshStatus(
        values=snapped,
        node_status=node_status,
        element_status=element_status,
        cut_elements=cut_elements,
    )

    logger.debug(
        f"Mesh status: {status.count_nodes(NodeStatus.INSIDE)} inside, "
        f"{status.count_nodes(NodeStatus.OUTSIDE)} outside, "
        f"{status.count_nodes(NodeStatus.ON_CONTOUR)} on-contour nodes; "
        f"{status.n_cut}/{grid.num_elements} elements cut"
    )

    return status


def saddle_inside_connected(element_values: NDArray, tie_break: str = "inside") -> bool:
    """
    Decide whether the inside corners of an ambiguous element are joined.

    Uses the value at the element centre (mean of the four node values):
    negative joins the inside corners through the centre, positive joins the
    outside ones, and exactly zero defers to ``tie_break``.
    """
    centre = float(np.mean(element_values))
    if centre == 0.0:
        return tie_break == "inside"
    return centre < 0.0
