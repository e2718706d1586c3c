"""
Discretised boundary of the level set zero contour.

The boundary is a set of points that represent a piece-wise linear
discretisation of the zero contour of the level set. Boundary points either
lie exactly on a grid node (when the level set is zero there) or along an
element edge where the level set changes sign. Their positions are found by
linear interpolation:

    x = x_a + (0 - φ_a) / (φ_b - φ_a) · (x_b - x_a)

Each cut element contributes one segment per contour crossing inside it,
joining the points on its edges. Points and segments live in two arenas
(``Boundary.points``, ``Boundary.segments``) that refer to each other only by
integer index, and both are rebuilt on every call to ``discretise``.

Segment construction follows marching squares on the binary classification
"inside = φ < 0". On-contour nodes count as outside, so a crossing that ends on
a zero node lands exactly on that node and the point is shared by every
element touching it. Where all the outside corners between two crossings are
zero nodes the segments follow the element edges through those corners, so a
zero contour running along grid lines (for example the clamped domain edge)
keeps its corners. Ambiguous (saddle) elements are resolved with the value
at the element centre. Segments are oriented with material on their left.

Typical use:

    >>> boundary = Boundary()
    >>> boundary.discretise(field)
    >>> boundary.compute_normal_vectors()
    >>> boundary.length, boundary.n_points
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import numpy as np
from pydantic import ValidationError

from lsopt.config.core import BoundaryConfig
from lsopt.geometry.level_set import analysis
from lsopt.geometry.level_set.mesh_status import ElementStatus, classify_mesh, saddle_inside_connected
from lsopt.geometry.level_set.topology import BoundaryComponent, link_topology, trace_components
from lsopt.utils.exceptions import (
    ConfigurationError,
    LevelSetError,
    check_numerical_stability,
    validate_array_dimensions,
    validate_boundary_state,
    validate_parameter_value,
)
from lsopt.utils.lsopt_logging import get_logger, log_discretisation_summary, log_validation_error

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from lsopt.geometry.level_set.mesh_status import MeshStatus
    from lsopt.geometry.protocol import FieldProvider, GridProvider

logger = get_logger(__name__)

# Dedup keys: ("node", n) for zero nodes, ("edge", a, b) with a < b for crossings
PointKey = tuple[str, int] | tuple[str, int, int]


@dataclass
class BoundaryPoint:
    """
    One vertex of the discretised contour.

    ``velocity``, ``negative_limit``, ``positive_limit`` and ``sensitivities``
    are slots filled in place by the optimiser; the discretiser only
    initialises them.
    """

    coord: NDArray[np.float64]
    normal: NDArray[np.float64] = field(default_factory=lambda: np.zeros(2))
    length: float = 0.0
    velocity: float = 0.0
    negative_limit: float = 0.0
    positive_limit: float = 0.0
    is_domain: bool = False
    is_fixed: bool = False
    segments: list[int] = field(default_factory=list)
    neighbours: list[int] = field(default_factory=list)
    sensitivities: NDArray[np.float64] = field(default_factory=lambda: np.zeros(1))
    node: int | None = None
    edge: tuple[int, int] | None = None

    @property
    def n_segments(self) -> int:
        return len(self.segments)

    @property
    def n_neighbours(self) -> int:
        return len(self.neighbours)


@dataclass
class BoundarySegment:
    """One edge of the discretised contour, lying inside a single element."""

    start: int
    end: int
    element: int
    length: float = 0.0
    weight: float = 1.0


class BoundaryState(Enum):
    """Lifecycle of a Boundary instance."""

    EMPTY = "empty"
    DISCRETISED = "discretised"
    INVALID = "invalid"


class Boundary:
    """
    Discretised zero contour of a level set field.

    Attributes:
        points: Boundary points in discovery order
        segments: Boundary segments in discovery order
        length: Total boundary length (sum of segment lengths)
        element_points: Element index -> indices of the points on that element
        status: MeshStatus of the last discretised snapshot
        state: BoundaryState

    Not reentrant: one discretise pass mutates the instance throughout.
    Use separate instances for a primary and a target field.

    Keyword overrides are applied on top of ``config``:

        >>> Boundary(zero_tolerance=1e-10, saddle_tie_break="outside")
    """

    def __init__(self, config: BoundaryConfig | None = None, **overrides: Any):
        if config is not None:
            validate_parameter_value(config, "config", expected_type=BoundaryConfig, component="Boundary")
        self.config = config or BoundaryConfig()
        if overrides:
            self.config = self._apply_overrides(self.config, overrides)
        self._reset()
        self.state = BoundaryState.EMPTY

    @staticmethod
    def _apply_overrides(config: BoundaryConfig, overrides: dict[str, Any]) -> BoundaryConfig:
        unknown = sorted(set(overrides) - set(BoundaryConfig.model_fields))
        if unknown:
            log_validation_error(
                logger,
                "Boundary",
                f"Unknown setting '{unknown[0]}'",
                suggestion=f"Use one of {sorted(BoundaryConfig.model_fields)}",
            )
            raise ConfigurationError(unknown[0], overrides[unknown[0]], component="Boundary")

        try:
            return BoundaryConfig.model_validate({**config.model_dump(), **overrides})
        except ValidationError as e:
            error = e.errors()[0]
            name = str(error["loc"][0]) if error["loc"] else "config"
            log_validation_error(logger, "Boundary", f"{name}: {error['msg']}")
            raise ConfigurationError(name, overrides.get(name), component="Boundary") from e

    def _reset(self) -> None:
        self.points: list[BoundaryPoint] = []
        self.segments: list[BoundarySegment] = []
        self.length = 0.0
        self.element_points: dict[int, list[int]] = {}
        self.status: MeshStatus | None = None
        self.grid: GridProvider | None = None
        self.is_target = False
        self.element_crossings: dict[int, list[int | None]] = {}

    @property
    def n_points(self) -> int:
        return len(self.points)

    @property
    def n_segments(self) -> int:
        return len(self.segments)

    # =========================================================================
    # Discretisation
    # =========================================================================

    def discretise(self, level_set: FieldProvider, is_target: bool = False) -> Boundary:
        """
        Use linear interpolation to compute the discretised boundary.

        Args:
            level_set: Field provider (its grid is read from ``level_set.grid``)
            is_target: Discretise the target signed distance instead of the primary one

        Returns:
            self, for chaining

        Raises:
            DimensionMismatchError: Field value count doesn't match the grid
            NumericalInstabilityError: Field contains NaN or inf
            TopologyError: A point ends up with more than two segments
            LevelSetError: Target requested but the field has none

        On any error the boundary is left INVALID and must not be used.
        """
        self._reset()
        self.state = BoundaryState.INVALID
        try:
            grid = level_set.grid
            values = self._field_values(level_set, is_target)

            self.grid = grid
            self.is_target = is_target
            self.status = classify_mesh(grid, values, self.config.zero_tolerance)

            self._sweep(grid, self.status)
            link_topology(self.points, self.segments)

            for segment in self.segments:
                segment.length = analysis.segment_length(self.points, segment)
            self.length = math.fsum(segment.length for segment in self.segments)
            analysis.compute_point_lengths(self.points, self.segments)
        except Exception:
            logger.error("Discretisation failed; boundary left in invalid state")
            raise

        self.state = BoundaryState.DISCRETISED
        log_discretisation_summary(logger, self.summary(), target=is_target)
        return self

    @staticmethod
    def _field_values(level_set: FieldProvider, is_target: bool) -> NDArray[np.float64]:
        if hasattr(level_set, "values"):
            return level_set.values(is_target)
        values = level_set.target if is_target else level_set.signed_distance
        if values is None:
            raise LevelSetError(
                "Target signed distance requested but the field provider has none",
                component="Boundary",
                error_code="TARGET_NOT_AVAILABLE",
            )
        return values

    def _sweep(self, grid: GridProvider, status: MeshStatus) -> None:
        """Visit cut elements in ascending order, creating points and segments."""
        values = status.values
        nodes = grid.nodes
        point_index: dict[PointKey, int] = {}
        segment_pairs: set[tuple[int, int]] = set()

        def add_point(key: PointKey, coord: NDArray, is_domain: bool, is_fixed: bool, **location: Any) -> int:
            index = point_index.get(key)
            if index is None:
                index = len(self.points)
                self.points.append(
                    BoundaryPoint(
                        coord=np.asarray(coord, dtype=np.float64),
                        is_domain=bool(is_domain),
                        is_fixed=bool(is_fixed),
                        sensitivities=np.zeros(self.config.n_sensitivities),
                        **location,
                    )
                )
                point_index[key] = index
            return index

        def node_point(n: int) -> int:
            return add_point(
                ("node", n),
                nodes[n],
                grid.node_is_domain[n],
                grid.node_is_fixed[n],
                node=n,
            )

        def edge_point(a: int, b: int) -> int:
            # Zero node on the outside end: the crossing is the node itself
            if values[a] == 0.0:
                return node_point(a)
            if values[b] == 0.0:
                return node_point(b)
            lo, hi = (a, b) if a < b else (b, a)
            key = ("edge", lo, hi)
            if key in point_index:
                return point_index[key]
            return add_point(
                key,
                self._interpolate(nodes[lo], nodes[hi], values[lo], values[hi]),
                grid.is_domain_edge(lo, hi),
                grid.node_is_fixed[lo] or grid.node_is_fixed[hi],
                edge=(lo, hi),
            )

        for element in status.cut_elements:
            element = int(element)
            element_nodes = [int(n) for n in grid.elements[element]]
            element_values = values[element_nodes]
            inside = element_values < 0.0

            on_element: list[int] = []
            crossings: list[int | None] = [None] * 4
            zero_corners: list[int | None] = [None] * 4
            for k in range(4):
                if element_values[k] == 0.0:
                    zero_corners[k] = node_point(element_nodes[k])
                    on_element.append(zero_corners[k])
                if inside[k] != inside[(k + 1) % 4]:
                    crossings[k] = edge_point(element_nodes[k], element_nodes[(k + 1) % 4])
                    on_element.append(crossings[k])

            self.element_points[element] = list(dict.fromkeys(on_element))
            self.element_crossings[element] = crossings

            for start, end in self._element_segments(inside, crossings, zero_corners, element_values):
                if start == end:
                    continue
                pair = (start, end) if start < end else (end, start)
                if pair in segment_pairs:
                    logger.debug(f"Element {element}: segment {pair} already present, not duplicated")
                    continue
                segment_pairs.add(pair)
                self.segments.append(BoundarySegment(start=start, end=end, element=element))

        logger.debug(f"Sweep over {status.n_cut} cut elements: {self.n_points} points, {self.n_segments} segments")

    def _interpolate(self, xa: NDArray, xb: NDArray, va: float, vb: float) -> NDArray[np.float64]:
        """Zero crossing along the edge a -> b, with a guarded denominator."""
        denominator = vb - va
        if abs(denominator) < self.config.interpolation_tolerance:
            t = 0.5
        else:
            t = min(1.0, max(0.0, (0.0 - va) / denominator))
        return xa + t * (xb - xa)

    def _element_segments(
        self,
        inside: NDArray[np.bool_],
        crossings: list[int | None],
        zero_corners: list[int | None],
        element_values: NDArray,
    ) -> list[tuple[int, int]]:
        """
        Pair up an element's edge crossings into segments (exit -> entry).

        Walking the element perimeter anticlockwise, an "exit" leaves the
        material and an "entry" re-enters it. Joining exit -> entry keeps the
        material on the left of every segment.

        When every outside corner between an exit and its entry is a zero
        node, the contour is the element's own edges through those corners,
        so the chain exit -> corners -> entry is returned instead of the chord.
        """
        cut_edges = [k for k in range(4) if crossings[k] is not None]
        if len(cut_edges) == 2:
            k1, k2 = cut_edges
            exit_edge, entry_edge = (k1, k2) if inside[k1] else (k2, k1)
            outside_arc = [(exit_edge + 1 + i) % 4 for i in range((entry_edge - exit_edge) % 4)]
            if all(zero_corners[k] is not None for k in outside_arc):
                chain = [crossings[exit_edge]] + [zero_corners[k] for k in outside_arc] + [crossings[entry_edge]]
                chain = [p for i, p in enumerate(chain) if i == 0 or p != chain[i - 1]]
                return list(zip(chain[:-1], chain[1:]))
            return [(crossings[exit_edge], crossings[entry_edge])]

        if len(cut_edges) == 4:
            inside_connected = saddle_inside_connected(element_values, self.config.saddle_tie_break)

            pairs = []
            for k in range(4):
                if inside_connected and not inside[k]:
                    # Cut off outside corner k: exit on edge k-1, entry on edge k
                    pairs.append((crossings[(k - 1) % 4], crossings[k]))
                elif not inside_connected and inside[k]:
                    # Isolate inside corner k: exit on edge k, entry on edge k-1
                    pairs.append((crossings[k], crossings[(k - 1) % 4]))
            return pairs

        return []

    # =========================================================================
    # Geometric analysis
    # =========================================================================

    def compute_normal_vectors(self, level_set: FieldProvider | None = None) -> None:
        """
        Compute the inward unit normal at each boundary point.

        Args:
            level_set: Field to take gradients from. Defaults to the snapshot
                used by the last ``discretise`` call.
        """
        validate_boundary_state(self, "compute_normal_vectors")
        values = self.status.values
        if level_set is not None:
            values = np.asarray(self._field_values(level_set, self.is_target), dtype=np.float64)
            validate_array_dimensions(values, (self.grid.num_nodes,), "signed_distance", component="Boundary")
            check_numerical_stability(values, "signed_distance", component="Boundary")
            values = np.where(np.abs(values) <= self.config.zero_tolerance, 0.0, values)
        analysis.compute_normal_vectors(self, self.grid, values)

    def compute_perimeter(self, point: BoundaryPoint | int) -> float:
        """
        Compute the local perimeter around a boundary point.

        Half of each incident segment's length, so that the sum over all
        points equals ``length``.
        """
        validate_boundary_state(self, "compute_perimeter")
        if isinstance(point, (int, np.integer)):
            point = self.points[int(point)]
        return analysis.compute_perimeter(point, self.segments)

    def compute_area_fractions(self) -> NDArray[np.float64]:
        """Material area fraction of every grid element, in [0, 1]."""
        validate_boundary_state(self, "compute_area_fractions")
        return analysis.compute_area_fractions(self)

    def components(self) -> list[BoundaryComponent]:
        """Closed loops and open chains of the boundary."""
        validate_boundary_state(self, "components")
        return trace_components(self.points, self.segments)

    # =========================================================================
    # Output
    # =========================================================================

    def coordinates(self) -> NDArray[np.float64]:
        """Point coordinates as an (n_points, 2) array."""
        validate_boundary_state(self, "coordinates")
        if not self.points:
            return np.zeros((0, 2))
        return np.array([p.coord for p in self.points])

    def normals(self) -> NDArray[np.float64]:
        """Point normals as an (n_points, 2) array."""
        validate_boundary_state(self, "normals")
        if not self.points:
            return np.zeros((0, 2))
        return np.array([p.normal for p in self.points])

    def summary(self) -> dict[str, Any]:
        """Counts and totals describing the current boundary."""
        return {
            "n_points": self.n_points,
            "n_segments": self.n_segments,
            "length": self.length,
            "n_domain_points": sum(1 for p in self.points if p.is_domain),
            "n_fixed_points": sum(1 for p in self.points if p.is_fixed),
            "n_cut_elements": 0 if self.status is None else self.status.n_cut,
            "n_inside_elements": 0 if self.status is None else self.status.count_elements(ElementStatus.INSIDE),
        }

    def __repr__(self) -> str:
        return (
            f"Boundary(state={self.state.value}, n_points={self.n_points}, "
            f"n_segments={self.n_segments}, length={self.length:.6g})"
        )
