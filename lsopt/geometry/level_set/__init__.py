"""
Level set boundary discretisation.

Turns one snapshot of a signed distance field on a fixed grid into an
explicit piece-wise linear boundary and its geometric quantities.

Core Components:
- classify_mesh / MeshStatus: node and element sign classification
- Boundary: contour discretiser (points, segments, lengths)
- link_topology / trace_components: neighbour links, loops and chains
- analysis: normals, perimeters, point lengths, area fractions
- LevelSetField: reference field provider and signed distance helpers

Pipeline:
    grid + field -> mesh status -> points + segments -> topology links
        -> normals + lengths -> consumed by the optimiser

Sign convention:
    φ < 0 inside material, φ > 0 outside, φ = 0 on the contour
"""

from lsopt.geometry.level_set.boundary import (
    Boundary,
    BoundaryPoint,
    BoundarySegment,
    BoundaryState,
)
from lsopt.geometry.level_set.field import (
    LevelSetField,
    circle_signed_distance,
    holes_signed_distance,
)
from lsopt.geometry.level_set.mesh_status import (
    ElementStatus,
    MeshStatus,
    NodeStatus,
    classify_mesh,
    saddle_inside_connected,
)
from lsopt.geometry.level_set.topology import (
    BoundaryComponent,
    link_topology,
    trace_components,
)

__all__ = [
    # Discretiser
    "Boundary",
    "BoundaryPoint",
    "BoundarySegment",
    "BoundaryState",
    # Field provider
    "LevelSetField",
    "circle_signed_distance",
    "holes_signed_distance",
    # Classification
    "ElementStatus",
    "MeshStatus",
    "NodeStatus",
    "classify_mesh",
    "saddle_inside_connected",
    # Topology
    "BoundaryComponent",
    "link_topology",
    "trace_components",
]
