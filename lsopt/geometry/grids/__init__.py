"""Grid providers."""

from .structured_grid import StructuredGrid2D

__all__ = ["StructuredGrid2D"]
