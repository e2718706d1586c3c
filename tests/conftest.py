"""
Pytest configuration and shared fixtures for the lsopt test suite.

This module provides common fixtures, test configuration, and utilities
used across the entire test suite.
"""

import pytest

from lsopt.geometry.grids.structured_grid import StructuredGrid2D
from lsopt.geometry.level_set.field import LevelSetField, circle_signed_distance, holes_signed_distance
from lsopt.utils.lsopt_logging import configure_logging

# =============================================================================
# Test Configuration
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "validation: Analytical and convergence validation tests")
    config.addinivalue_line("markers", "slow: Slow tests (may take >10 seconds)")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on test paths."""
    for item in items:
        test_path = str(item.fspath)

        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/validation/" in test_path:
            item.add_marker(pytest.mark.validation)

        if "large" in item.name or "slow" in item.name:
            item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep test output readable; restore defaults afterwards."""
    configure_logging(level="WARNING", use_colors=False)
    yield
    configure_logging(level="WARNING", use_colors=False)


# =============================================================================
# Grid Fixtures
# =============================================================================


@pytest.fixture
def grid_2x2():
    """2x2 elements, 3x3 nodes, unit spacing."""
    return StructuredGrid2D(width=2, height=2)


@pytest.fixture
def grid_20x20():
    """20x20 elements, unit spacing."""
    return StructuredGrid2D(width=20, height=20)


# =============================================================================
# Field Fixtures
# =============================================================================


@pytest.fixture
def diamond_field(grid_2x2):
    """Centre node negative, all others positive: a diamond of four segments."""
    return LevelSetField(grid_2x2, [[1.0, 1.0, 1.0], [1.0, -1.0, 1.0], [1.0, 1.0, 1.0]])


@pytest.fixture
def vertical_line_field(grid_2x2):
    """φ = x - 1: the contour runs through the middle column of nodes."""
    return LevelSetField.from_function(grid_2x2, lambda x, y: x - 1.0)


@pytest.fixture
def circle_field(grid_20x20):
    """Solid disc of radius 5.3 centred on the grid."""
    return LevelSetField(grid_20x20, circle_signed_distance(grid_20x20, (10.0, 10.0), 5.3))


@pytest.fixture
def perforated_field(grid_20x20):
    """Material block with one circular hole; the contour also follows the domain edges."""
    return LevelSetField(grid_20x20, holes_signed_distance(grid_20x20, [((10.0, 10.0), 4.3)]))
