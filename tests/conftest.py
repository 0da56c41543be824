"""Pytest configuration and fixtures for the P2/P1 characteristics solver tests."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def two_triangle_mesh():
    """Unit cell (0,1) x (0.5,1) split into two triangles, all sides labeled."""
    from meshing import rectangle_mesh

    return rectangle_mesh(x_range=(0.0, 1.0), y_range=(0.5, 1.0), nx=1, ny=1)


@pytest.fixture
def channel_mesh():
    """Channel (0,10) x (0.5,1): inlet left, walls top/bottom, outlet right."""
    from meshing import rectangle_mesh

    return rectangle_mesh(x_range=(0.0, 10.0), y_range=(0.5, 1.0), nx=10, ny=2)


@pytest.fixture
def inlet_triangle_mesh():
    """Single triangle whose left edge lies on the inlet."""
    from meshing import Mesh2D

    points = np.array([[0.0, 0.7], [1.0, 0.7], [0.0, 1.0]])
    return Mesh2D(points, [[0, 1, 2]], edges=[[2, 0]], edge_labels=[10])
