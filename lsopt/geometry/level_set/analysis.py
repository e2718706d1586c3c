"""
Geometric quantities of a discretised boundary.

- Segment length: Euclidean distance between the two end points.
- Point length: integration (quadrature) length of a point,
      l_p = Σ_s ½ · w_s · |s|   over the segments s incident to p.
  With the default weight w_s = 1 every segment is split evenly between its
  end points, so Σ_p l_p equals the total boundary length.
- Perimeter: ½ Σ_s |s| around a point (unweighted).
- Normals: inward unit normal n = -∇φ/|∇φ|, with ∇φ taken from the bilinear
  interpolant of the node values inside the element(s) holding the point.
- Area fractions: material area of each element divided by its area.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from lsopt.geometry.level_set.mesh_status import ElementStatus, saddle_inside_connected
from lsopt.utils.lsopt_logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray

    from lsopt.geometry.level_set.boundary import Boundary, BoundaryPoint, BoundarySegment
    from lsopt.geometry.protocol import GridProvider

logger = get_logger(__name__)

# Gradient magnitudes below this are treated as vanishing
GRADIENT_EPSILON = 1e-12


def segment_length(points: Sequence[BoundaryPoint], segment: BoundarySegment) -> float:
    """Return the length of a boundary segment."""
    start = points[segment.start].coord
    end = points[segment.end].coord
    return math.hypot(end[0] - start[0], end[1] - start[1])


def compute_point_lengths(points: Sequence[BoundaryPoint], segments: Sequence[BoundarySegment]) -> None:
    """Compute the (weighted) integral length of every boundary point."""
    for point in points:
        point.length = math.fsum(0.5 * segments[s].weight * segments[s].length for s in point.segments)


def compute_perimeter(point: BoundaryPoint, segments: Sequence[BoundarySegment]) -> float:
    """Perimeter around a boundary point: half of each incident segment."""
    return math.fsum(0.5 * segments[s].length for s in point.segments)


def element_gradient(grid: GridProvider, values: NDArray, element: int, coord: NDArray) -> NDArray[np.float64]:
    """
    Gradient of the bilinear interpolant of ``values`` in an element at ``coord``.

    Elements are taken as axis-aligned rectangles with nodes anticlockwise
    from the bottom-left corner.
    """
    n0, n1, n2, n3 = grid.elements[element]
    v0, v1, v2, v3 = values[n0], values[n1], values[n2], values[n3]
    origin = grid.nodes[n0]
    hx = grid.nodes[n1][0] - origin[0]
    hy = grid.nodes[n3][1] - origin[1]

    s = min(1.0, max(0.0, (coord[0] - origin[0]) / hx))
    t = min(1.0, max(0.0, (coord[1] - origin[1]) / hy))

    dphi_ds = (1.0 - t) * (v1 - v0) + t * (v2 - v3)
    dphi_dt = (1.0 - s) * (v3 - v0) + s * (v2 - v1)
    return np.array([dphi_ds / hx, dphi_dt / hy])


def _point_elements(boundary: Boundary, index: int) -> list[int]:
    point = boundary.points[index]
    if point.segments:
        return sorted({boundary.segments[s].element for s in point.segments})
    # Isolated point: always a zero node, take the cut elements sharing it
    return [int(e) for e in boundary.grid.node_elements(point.node) if int(e) in boundary.element_points]


def _tangent_normal(boundary: Boundary, point: BoundaryPoint) -> NDArray[np.float64]:
    """Sum of the left normals of the incident segments (material is on the left)."""
    normal = np.zeros(2)
    for s in point.segments:
        segment = boundary.segments[s]
        direction = boundary.points[segment.end].coord - boundary.points[segment.start].coord
        normal += np.array([-direction[1], direction[0]])
    return normal


def _domain_sides(grid: GridProvider, coord: NDArray) -> list[int]:
    """Axes normal to the domain sides a coordinate lies on (0: x = const, 1: y = const)."""
    (x_min, x_max), (y_min, y_max) = grid.domain_bounds
    tol = 1e-9 * max(x_max - x_min, y_max - y_min)
    sides = []
    if abs(coord[0] - x_min) <= tol or abs(coord[0] - x_max) <= tol:
        sides.append(0)
    if abs(coord[1] - y_min) <= tol or abs(coord[1] - y_max) <= tol:
        sides.append(1)
    return sides


def compute_normal_vectors(boundary: Boundary, grid: GridProvider, values: NDArray) -> None:
    """
    Compute the inward unit normal of every boundary point in place.

    The field gradient is averaged over the elements holding the point. When
    it vanishes the rotated segment tangents are used instead; when both
    vanish the normal is left at zero. Points on a single side of the domain
    boundary get their normal projected onto that side, since they can only
    move along it.
    """
    n_fallback = 0
    n_zero = 0
    for index, point in enumerate(boundary.points):
        elements = _point_elements(boundary, index)
        gradient = np.zeros(2)
        for element in elements:
            gradient += element_gradient(grid, values, element, point.coord)

        magnitude = np.linalg.norm(gradient)
        if magnitude > GRADIENT_EPSILON:
            normal = -gradient / magnitude
        else:
            normal = _tangent_normal(boundary, point)
            magnitude = np.linalg.norm(normal)
            if magnitude > GRADIENT_EPSILON:
                normal = normal / magnitude
                n_fallback += 1
            else:
                normal = np.zeros(2)
                n_zero += 1

        if point.is_domain:
            sides = _domain_sides(grid, point.coord)
            if len(sides) == 1:
                projected = normal.copy()
                projected[sides[0]] = 0.0
                norm = np.linalg.norm(projected)
                if norm > GRADIENT_EPSILON:
                    normal = projected / norm

        point.normal = normal

    if n_fallback or n_zero:
        logger.debug(f"Normals: {n_fallback} from segment tangents, {n_zero} undefined (left at zero)")


def _polygon_area(vertices: Sequence[NDArray]) -> float:
    """Shoelace area of a simple polygon."""
    if len(vertices) < 3:
        return 0.0
    xy = np.asarray(vertices)
    x, y = xy[:, 0], xy[:, 1]
    return 0.5 * abs(float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))))


def compute_area_fractions(boundary: Boundary) -> NDArray[np.float64]:
    """
    Material area fraction of every element.

    INSIDE elements give 1, OUTSIDE elements 0. For cut elements the
    material polygon is assembled from the inside nodes and the edge
    crossings in anticlockwise order; saddle elements whose inside corners
    are not joined through the centre are split into corner triangles.
    """
    grid = boundary.grid
    status = boundary.status
    fractions = (status.element_status == ElementStatus.INSIDE).astype(np.float64)
    values = status.values

    for element, crossings in boundary.element_crossings.items():
        element_nodes = grid.elements[element]
        element_values = values[element_nodes]
        inside = element_values < 0.0
        # Inside and zero corners only: the contour follows the zero edges, the whole element is material
        material = element_values <= 0.0 if inside.any() and not np.any(element_values > 0.0) else inside
        element_area = _polygon_area(grid.nodes[element_nodes])

        n_crossings = sum(c is not None for c in crossings)
        split_corners = n_crossings == 4 and not saddle_inside_connected(
            element_values, boundary.config.saddle_tie_break
        )

        if split_corners:
            area = 0.0
            for k in range(4):
                if inside[k]:
                    area += _polygon_area(
                        [
                            grid.nodes[element_nodes[k]],
                            boundary.points[crossings[k]].coord,
                            boundary.points[crossings[(k - 1) % 4]].coord,
                        ]
                    )
        else:
            polygon = []
            for k in range(4):
                if material[k]:
                    polygon.append(grid.nodes[element_nodes[k]])
                if crossings[k] is not None:
                    polygon.append(boundary.points[crossings[k]].coord)
            area = _polygon_area(polygon)

        fractions[element] = min(1.0, area / element_area)

    return fractions
