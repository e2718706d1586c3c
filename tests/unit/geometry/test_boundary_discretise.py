"""
Unit tests for Boundary.discretise: points, segments, flags and lifecycle.

Small hand-checkable fields on 2x2 and 1x1 grids cover the interpolation,
zero-node sharing, deduplication and saddle cases; larger fields check the
global invariants (closed loops, unique points, reproducibility).
"""

import math
from types import SimpleNamespace

import pytest

import numpy as np

from lsopt.config import BoundaryConfig
from lsopt.geometry.grids import StructuredGrid2D
from lsopt.geometry.level_set import Boundary, BoundaryState, LevelSetField
from lsopt.utils.exceptions import (
    BoundaryStateError,
    ConfigurationError,
    DimensionMismatchError,
    LevelSetError,
    NumericalInstabilityError,
    TopologyError,
)


def _coord_set(boundary):
    return {tuple(np.round(c, 12)) for c in boundary.coordinates()}


def _point_at(boundary, x, y):
    for index, point in enumerate(boundary.points):
        if np.allclose(point.coord, [x, y]):
            return index
    raise AssertionError(f"No boundary point at ({x}, {y})")


# =============================================================================
# Interpolated crossings
# =============================================================================


@pytest.mark.unit
def test_diamond_points_at_edge_midpoints(diamond_field):
    boundary = Boundary().discretise(diamond_field)

    assert boundary.state is BoundaryState.DISCRETISED
    assert boundary.n_points == 4
    assert boundary.n_segments == 4
    assert _coord_set(boundary) == {(0.5, 1.0), (1.5, 1.0), (1.0, 0.5), (1.0, 1.5)}


@pytest.mark.unit
def test_diamond_lengths(diamond_field):
    boundary = Boundary().discretise(diamond_field)

    for segment in boundary.segments:
        assert segment.length == pytest.approx(math.sqrt(0.5))
        assert segment.weight == 1.0
    assert boundary.length == pytest.approx(2.0 * math.sqrt(2.0))


@pytest.mark.unit
def test_diamond_topology(diamond_field):
    boundary = Boundary().discretise(diamond_field)

    for point in boundary.points:
        assert point.n_segments == 2
        assert point.n_neighbours == 2
        assert not point.is_domain
        assert not point.is_fixed
        assert point.edge is not None
        assert point.node is None


@pytest.mark.unit
def test_segments_keep_material_on_the_left(diamond_field):
    boundary = Boundary().discretise(diamond_field)
    centre = np.array([1.0, 1.0])

    for segment in boundary.segments:
        start = boundary.points[segment.start].coord
        end = boundary.points[segment.end].coord
        direction = end - start
        left = np.array([-direction[1], direction[0]])
        assert np.dot(left, centre - 0.5 * (start + end)) > 0


@pytest.mark.unit
def test_interpolation_along_edges(grid_2x2):
    field = LevelSetField.from_function(grid_2x2, lambda x, y: x - 0.75)
    boundary = Boundary().discretise(field)

    assert boundary.n_points == 3
    assert boundary.n_segments == 2
    assert _coord_set(boundary) == {(0.75, 0.0), (0.75, 1.0), (0.75, 2.0)}
    assert boundary.length == pytest.approx(2.0)


@pytest.mark.unit
def test_domain_flags_from_edges(grid_2x2):
    field = LevelSetField.from_function(grid_2x2, lambda x, y: x - 0.75)
    boundary = Boundary().discretise(field)

    bottom = boundary.points[_point_at(boundary, 0.75, 0.0)]
    middle = boundary.points[_point_at(boundary, 0.75, 1.0)]
    top = boundary.points[_point_at(boundary, 0.75, 2.0)]

    assert bottom.is_domain and top.is_domain
    assert not middle.is_domain
    assert bottom.n_neighbours == 1
    assert middle.n_neighbours == 2
    assert top.n_neighbours == 1


@pytest.mark.unit
def test_interpolation_fraction():
    grid = StructuredGrid2D(width=1, height=1)
    field = LevelSetField(grid, [[-1.0, 3.0], [-1.0, 3.0]])
    boundary = Boundary().discretise(field)

    assert _coord_set(boundary) == {(0.25, 0.0), (0.25, 1.0)}


@pytest.mark.unit
def test_nearly_equal_values_use_edge_midpoint():
    grid = StructuredGrid2D(width=1, height=1)
    field = LevelSetField(grid, [[-1e-3, 3e-3], [-1e-3, 3e-3]])
    config = BoundaryConfig(zero_tolerance=0.0, interpolation_tolerance=1e-2)
    boundary = Boundary(config).discretise(field)

    assert _coord_set(boundary) == {(0.5, 0.0), (0.5, 1.0)}


# =============================================================================
# Zero nodes
# =============================================================================


@pytest.mark.unit
def test_zero_nodes_become_points_on_the_node(grid_2x2, vertical_line_field):
    boundary = Boundary().discretise(vertical_line_field)

    assert boundary.n_points == 3
    assert boundary.n_segments == 2
    for point in boundary.points:
        assert point.node is not None
        np.testing.assert_array_equal(point.coord, grid_2x2.nodes[point.node])


@pytest.mark.unit
def test_zero_node_shared_by_all_adjacent_elements(grid_2x2, vertical_line_field):
    boundary = Boundary().discretise(vertical_line_field)
    centre = _point_at(boundary, 1.0, 1.0)

    for element in grid_2x2.node_elements(4):
        assert centre in boundary.element_points[int(element)]


@pytest.mark.unit
def test_zero_node_flags(vertical_line_field):
    boundary = Boundary().discretise(vertical_line_field)

    assert boundary.points[_point_at(boundary, 1.0, 0.0)].is_domain
    assert boundary.points[_point_at(boundary, 1.0, 2.0)].is_domain
    assert not boundary.points[_point_at(boundary, 1.0, 1.0)].is_domain


@pytest.mark.unit
def test_isolated_zero_node_touch_point(grid_2x2):
    values = np.ones(9)
    values[4] = 0.0
    boundary = Boundary().discretise(LevelSetField(grid_2x2, values))

    assert boundary.n_points == 1
    assert boundary.n_segments == 0
    assert boundary.length == 0.0
    assert boundary.points[0].n_segments == 0
    for element in range(4):
        assert boundary.element_points[element] == [0]


@pytest.mark.unit
def test_zero_length_segment_skipped():
    grid = StructuredGrid2D(width=1, height=1)
    # Bottom-right node on the contour, its two neighbours inside
    field = LevelSetField(grid, [[-1.0, 0.0], [-1.0, -1.0]])
    boundary = Boundary().discretise(field)

    assert boundary.n_points == 1
    assert boundary.n_segments == 0
    np.testing.assert_array_equal(boundary.points[0].coord, [1.0, 0.0])


@pytest.mark.unit
def test_zero_corner_followed_along_edges():
    grid = StructuredGrid2D(width=1, height=1)
    # Only the top-right node inside, the other three on the contour
    field = LevelSetField(grid, [[0.0, 0.0], [0.0, -1.0]])
    boundary = Boundary().discretise(field)

    assert boundary.n_points == 3
    assert [(s.start, s.end) for s in boundary.segments] == [(2, 0), (0, 1)]
    np.testing.assert_array_equal(boundary.coordinates(), [[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
    assert boundary.length == pytest.approx(2.0)
    assert boundary.points[0].n_neighbours == 2
    np.testing.assert_allclose(boundary.compute_area_fractions(), [1.0])


@pytest.mark.unit
def test_coincident_segments_not_duplicated(grid_2x2):
    # Zero row between two inside rows: both elements on either side of the
    # row produce the same segment
    field = LevelSetField(grid_2x2, [[-1.0, -1.0, -1.0], [0.0, 0.0, 0.0], [-1.0, -1.0, -1.0]])
    boundary = Boundary().discretise(field)

    assert boundary.n_points == 3
    assert boundary.n_segments == 2
    assert boundary.length == pytest.approx(2.0)
    pairs = {tuple(sorted((s.start, s.end))) for s in boundary.segments}
    assert len(pairs) == 2


@pytest.mark.unit
def test_snapped_values_land_on_nodes(grid_2x2):
    field = LevelSetField.from_function(grid_2x2, lambda x, y: x - 1.0 + 1e-14)
    boundary = Boundary(BoundaryConfig(zero_tolerance=1e-12)).discretise(field)

    assert boundary.n_points == 3
    assert all(point.node is not None for point in boundary.points)


# =============================================================================
# Saddles
# =============================================================================


@pytest.fixture
def saddle_grid():
    return StructuredGrid2D(width=1, height=1)


@pytest.mark.unit
def test_saddle_tie_joins_inside_corners(saddle_grid):
    field = LevelSetField(saddle_grid, [[-1.0, 1.0], [1.0, -1.0]])
    boundary = Boundary().discretise(field)

    assert boundary.n_points == 4
    assert boundary.n_segments == 2
    bottom = boundary.points[_point_at(boundary, 0.5, 0.0)]
    assert bottom.neighbours == [_point_at(boundary, 1.0, 0.5)]


@pytest.mark.unit
def test_saddle_tie_break_outside(saddle_grid):
    field = LevelSetField(saddle_grid, [[-1.0, 1.0], [1.0, -1.0]])
    boundary = Boundary(BoundaryConfig(saddle_tie_break="outside")).discretise(field)

    assert boundary.n_segments == 2
    bottom = boundary.points[_point_at(boundary, 0.5, 0.0)]
    assert bottom.neighbours == [_point_at(boundary, 0.0, 0.5)]


@pytest.mark.unit
def test_saddle_decided_by_centre_value(saddle_grid):
    # Centre mean is negative, so the tie-break is irrelevant
    field = LevelSetField(saddle_grid, [[-1.0, 1.0], [1.0, -3.0]])
    boundary = Boundary(BoundaryConfig(saddle_tie_break="outside")).discretise(field)

    bottom = boundary.points[_point_at(boundary, 0.5, 0.0)]
    assert bottom.neighbours == [_point_at(boundary, 1.0, 0.25)]


@pytest.mark.unit
def test_non_manifold_point_raises_topology_error(grid_2x2):
    # Zero centre node, disconnected saddle in element 0, plus crossings from
    # elements 1 and 2 ending on the same node
    field = LevelSetField(grid_2x2, [[10.0, -1.0, 1.0], [-1.0, 0.0, 1.0], [1.0, 1.0, 1.0]])
    boundary = Boundary()

    with pytest.raises(TopologyError) as exc_info:
        boundary.discretise(field)

    assert exc_info.value.error_code == "DEGENERATE_TOPOLOGY"
    assert boundary.state is BoundaryState.INVALID


# =============================================================================
# Flags and payload
# =============================================================================


@pytest.mark.unit
def test_fixed_flag_from_edge_end_nodes(diamond_field):
    grid = StructuredGrid2D(width=2, height=2, fixed_nodes=[1])
    field = LevelSetField(grid, diamond_field.signed_distance)
    boundary = Boundary().discretise(field)

    fixed = [p for p in boundary.points if p.is_fixed]
    assert len(fixed) == 1
    np.testing.assert_allclose(fixed[0].coord, [1.0, 0.5])


@pytest.mark.unit
def test_fixed_flag_from_zero_node():
    grid = StructuredGrid2D(width=2, height=2, fixed_nodes=[4])
    field = LevelSetField.from_function(grid, lambda x, y: x - 1.0)
    boundary = Boundary().discretise(field)

    fixed = [p for p in boundary.points if p.is_fixed]
    assert len(fixed) == 1
    assert fixed[0].node == 4


@pytest.mark.unit
def test_point_payload_initialised(diamond_field):
    boundary = Boundary(BoundaryConfig(n_sensitivities=3)).discretise(diamond_field)

    for point in boundary.points:
        assert point.sensitivities.shape == (3,)
        assert point.velocity == 0.0
        assert point.negative_limit == 0.0
        assert point.positive_limit == 0.0
        np.testing.assert_array_equal(point.normal, [0.0, 0.0])


@pytest.mark.unit
def test_summary(diamond_field):
    boundary = Boundary().discretise(diamond_field)
    summary = boundary.summary()

    assert summary["n_points"] == 4
    assert summary["n_segments"] == 4
    assert summary["n_cut_elements"] == 4
    assert summary["n_inside_elements"] == 0
    assert summary["n_domain_points"] == 0
    assert "discretised" in repr(boundary)


# =============================================================================
# Global invariants
# =============================================================================


@pytest.mark.unit
def test_circle_is_one_closed_loop(circle_field):
    boundary = Boundary().discretise(circle_field)
    components = boundary.components()

    assert len(components) == 1
    assert components[0].closed
    assert components[0].n_points == boundary.n_points
    assert all(point.n_segments == 2 for point in boundary.points)
    assert not any(point.is_domain for point in boundary.points)


@pytest.mark.unit
def test_circle_points_unique(circle_field):
    coords = Boundary().discretise(circle_field).coordinates()

    assert np.unique(np.round(coords, 12), axis=0).shape[0] == coords.shape[0]


@pytest.mark.unit
def test_points_lie_on_the_interpolated_contour(circle_field):
    boundary = Boundary().discretise(circle_field)

    # Every crossing sits between its edge nodes
    for point in boundary.points:
        lo, hi = point.edge
        xa, xb = circle_field.grid.nodes[lo], circle_field.grid.nodes[hi]
        assert np.all(point.coord >= np.minimum(xa, xb))
        assert np.all(point.coord <= np.maximum(xa, xb))


@pytest.mark.unit
def test_discretise_is_reproducible(circle_field):
    first = Boundary().discretise(circle_field)
    second = Boundary().discretise(circle_field)

    np.testing.assert_array_equal(first.coordinates(), second.coordinates())
    assert [(s.start, s.end) for s in first.segments] == [(s.start, s.end) for s in second.segments]
    assert first.length == second.length


@pytest.mark.unit
def test_rediscretise_replaces_previous_result(diamond_field, grid_2x2):
    boundary = Boundary().discretise(diamond_field)
    boundary.discretise(LevelSetField(grid_2x2, np.ones(9)))

    assert boundary.state is BoundaryState.DISCRETISED
    assert boundary.n_points == 0
    assert boundary.n_segments == 0
    assert boundary.length == 0.0
    assert boundary.coordinates().shape == (0, 2)
    assert boundary.element_points == {}


# =============================================================================
# Target field
# =============================================================================


@pytest.mark.unit
def test_discretise_target_field(grid_2x2, diamond_field):
    field = LevelSetField(grid_2x2, np.ones(9), target=diamond_field.signed_distance)
    boundary = Boundary().discretise(field, is_target=True)

    assert boundary.is_target
    assert boundary.n_points == 4


@pytest.mark.unit
def test_missing_target_leaves_boundary_invalid(diamond_field):
    boundary = Boundary()

    with pytest.raises(LevelSetError) as exc_info:
        boundary.discretise(diamond_field, is_target=True)

    assert exc_info.value.error_code == "TARGET_NOT_AVAILABLE"
    assert boundary.state is BoundaryState.INVALID


@pytest.mark.unit
def test_plain_field_provider(grid_2x2, diamond_field):
    provider = SimpleNamespace(grid=grid_2x2, signed_distance=diamond_field.signed_distance, target=None)
    boundary = Boundary().discretise(provider)

    assert boundary.n_points == 4

    with pytest.raises(LevelSetError, match="none"):
        Boundary().discretise(provider, is_target=True)


# =============================================================================
# Lifecycle and errors
# =============================================================================


@pytest.mark.unit
def test_results_unavailable_before_discretise():
    boundary = Boundary()

    assert boundary.state is BoundaryState.EMPTY
    with pytest.raises(BoundaryStateError, match=r"Call discretise\(\) first"):
        boundary.compute_perimeter(0)
    with pytest.raises(BoundaryStateError):
        boundary.compute_normal_vectors()
    with pytest.raises(BoundaryStateError):
        boundary.coordinates()


@pytest.mark.unit
def test_non_finite_field_leaves_boundary_invalid(grid_2x2):
    values = np.ones(9)
    values[4] = np.nan
    provider = SimpleNamespace(grid=grid_2x2, signed_distance=values, target=None)
    boundary = Boundary()

    with pytest.raises(NumericalInstabilityError):
        boundary.discretise(provider)

    assert boundary.state is BoundaryState.INVALID
    with pytest.raises(BoundaryStateError, match="failed") as exc_info:
        boundary.compute_area_fractions()
    assert exc_info.value.error_code == "BOUNDARY_NOT_AVAILABLE"


@pytest.mark.unit
def test_wrong_value_count(grid_2x2):
    provider = SimpleNamespace(grid=grid_2x2, signed_distance=np.ones(4), target=None)

    with pytest.raises(DimensionMismatchError):
        Boundary().discretise(provider)


@pytest.mark.unit
def test_recovers_after_failure(grid_2x2, diamond_field):
    values = np.ones(9)
    values[0] = np.inf
    boundary = Boundary()
    with pytest.raises(NumericalInstabilityError):
        boundary.discretise(SimpleNamespace(grid=grid_2x2, signed_distance=values, target=None))

    boundary.discretise(diamond_field)

    assert boundary.state is BoundaryState.DISCRETISED
    assert boundary.n_points == 4


# =============================================================================
# Configuration
# =============================================================================


@pytest.mark.unit
def test_keyword_overrides_applied_on_config():
    boundary = Boundary(BoundaryConfig(n_sensitivities=3), saddle_tie_break="outside")

    assert boundary.config.n_sensitivities == 3
    assert boundary.config.saddle_tie_break == "outside"


@pytest.mark.unit
@pytest.mark.parametrize(
    "overrides, parameter",
    [
        ({"zero_tolerance": -1.0}, "zero_tolerance"),
        ({"saddle_tie_break": "centre"}, "saddle_tie_break"),
        ({"tolerance": 1e-9}, "tolerance"),
    ],
)
def test_invalid_overrides_raise_configuration_error(overrides, parameter):
    with pytest.raises(ConfigurationError) as exc_info:
        Boundary(**overrides)

    assert exc_info.value.error_code == "INVALID_CONFIGURATION"
    assert exc_info.value.diagnostic_data["parameter"] == parameter


@pytest.mark.unit
def test_config_must_be_boundary_config():
    with pytest.raises(ConfigurationError, match="'config'"):
        Boundary({"zero_tolerance": 1e-10})
