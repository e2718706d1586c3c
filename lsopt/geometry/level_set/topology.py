"""
Topology of the discretised boundary.

``link_topology`` records, for every boundary point, the segments it belongs
to and the points at their other ends. A healthy contour gives every point
at most two segments; a third one means the contour is non-manifold and is
reported as a TopologyError rather than truncated.

``trace_components`` walks those links into closed loops and open chains
(chains end at points with a single neighbour, normally on the domain
boundary).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from lsopt.utils.exceptions import TopologyError
from lsopt.utils.lsopt_logging import get_logger, log_topology_anomaly

if TYPE_CHECKING:
    from collections.abc import Sequence

    from lsopt.geometry.level_set.boundary import BoundaryPoint, BoundarySegment

logger = get_logger(__name__)

MAX_SEGMENTS_PER_POINT = 2


@dataclass(frozen=True)
class BoundaryComponent:
    """
    A connected piece of the boundary.

    Attributes:
        points: Point indices in walking order (a loop does not repeat its first point)
        segments: Segment indices in walking order
        closed: True for a loop, False for an open chain
    """

    points: tuple[int, ...]
    segments: tuple[int, ...]
    closed: bool

    @property
    def n_points(self) -> int:
        return len(self.points)

    def length(self, segments: Sequence[BoundarySegment]) -> float:
        return sum(segments[s].length for s in self.segments)


def link_topology(points: Sequence[BoundaryPoint], segments: Sequence[BoundarySegment]) -> None:
    """
    Populate ``segments`` and ``neighbours`` of every point from the segment list.

    Raises:
        TopologyError: If a point acquires more than two segments
    """
    for point in points:
        point.segments.clear()
        point.neighbours.clear()

    for index, segment in enumerate(segments):
        for this, other in ((segment.start, segment.end), (segment.end, segment.start)):
            point = points[this]
            point.segments.append(index)
            point.neighbours.append(other)
            if point.n_segments > MAX_SEGMENTS_PER_POINT:
                log_topology_anomaly(logger, this, point.n_segments, point.coord)
                raise TopologyError(
                    point_index=this,
                    segment_indices=point.segments,
                    coord=point.coord,
                    component="link_topology",
                )


def trace_components(
    points: Sequence[BoundaryPoint], segments: Sequence[BoundarySegment]
) -> list[BoundaryComponent]:
    """
    Split a linked boundary into open chains and closed loops.

    Open chains are traced first, each starting from its lowest-index end
    point; the remaining segments form loops, each starting from the start
    point of its lowest-index segment. The result is deterministic for a
    given point/segment order.
    """
    visited: set[int] = set()
    components: list[BoundaryComponent] = []

    def walk(start_point: int, first_segment: int) -> tuple[list[int], list[int]]:
        chain_points = [start_point]
        chain_segments: list[int] = []
        current = start_point
        segment = first_segment
        while segment is not None:
            visited.add(segment)
            chain_segments.append(segment)
            seg = segments[segment]
            current = seg.end if seg.start == current else seg.start
            chain_points.append(current)
            segment = next((s for s in points[current].segments if s not in visited), None)
        return chain_points, chain_segments

    for index, point in enumerate(points):
        if point.n_segments == 1 and point.segments[0] not in visited:
            chain_points, chain_segments = walk(index, point.segments[0])
            components.append(BoundaryComponent(tuple(chain_points), tuple(chain_segments), closed=False))

    for index, segment in enumerate(segments):
        if index in visited:
            continue
        chain_points, chain_segments = walk(segment.start, index)
        closed = chain_points[-1] == chain_points[0]
        if closed:
            chain_points = chain_points[:-1]
        else:
            logger.warning(f"Boundary walk from segment {index} did not close")
        components.append(BoundaryComponent(tuple(chain_points), tuple(chain_segments), closed=closed))

    logger.debug(
        f"Traced {sum(c.closed for c in components)} loops and {sum(not c.closed for c in components)} chains"
    )
    return components
