"""Point location on the triangular mesh.

A point Q lies in triangle (v0, v1, v2) when the three signed sub-areas

    area0 = det(Q, v1, v2) / 2,  area1 = det(v0, Q, v2) / 2,  area2 = det(v0, v1, Q) / 2

are all non-negative (counter-clockwise corners). Its reference coordinates follow
from the inverse affine map of the triangle.
"""

import math
from typing import NamedTuple

import numpy as np
from numba import njit


class Location(NamedTuple):
    """Triangle containing a point and the point's reference coordinates there."""

    triangle: int
    xi: float
    eta: float

    @property
    def found(self) -> bool:
        return self.triangle >= 0

    @property
    def barycentric(self):
        return (1.0 - self.xi - self.eta, self.xi, self.eta)


NOT_FOUND = Location(-1, math.nan, math.nan)


@njit(cache=True)
def _det(ax, ay, bx, by, cx, cy):
    return (bx - ax) * (cy - ay) - (by - ay) * (cx - ax)


@njit(cache=True)
def _contains(corners, x, y, tol):
    """Return (min signed sub-area >= -tol, xi, eta) for the point (x, y)."""
    x0, y0 = corners[0, 0], corners[0, 1]
    x1, y1 = corners[1, 0], corners[1, 1]
    x2, y2 = corners[2, 0], corners[2, 1]

    area0 = 0.5 * _det(x, y, x1, y1, x2, y2)
    area1 = 0.5 * _det(x0, y0, x, y, x2, y2)
    area2 = 0.5 * _det(x0, y0, x1, y1, x, y)

    d = (x1 - x0) * (y2 - y0) - (y1 - y0) * (x2 - x0)
    xi = ((y2 - y0) * (x - x0) + (x0 - x2) * (y - y0)) / d
    eta = ((y0 - y1) * (x - x0) + (x1 - x0) * (y - y0)) / d

    return min(area0, area1, area2) >= -tol, xi, eta


class PointLocator:
    """Find the triangle containing a point, starting from a known triangle.

    Parameters
    ----------
    mesh : Mesh2D
        Mesh with neighbor lists.
    tolerance : float
        Relative tolerance on the sub-area test (scaled by each triangle's area),
        so points on an edge belong to both adjacent triangles.
    """

    def __init__(self, mesh, tolerance: float = 1e-12):
        self.mesh = mesh
        self.tolerance = tolerance
        self._corners = np.ascontiguousarray(mesh.corner_coordinates)
        self._areas = mesh.areas

    def contains(self, k: int, x: float, y: float):
        """Test triangle k; returns (inside, xi, eta)."""
        return _contains(self._corners[k], float(x), float(y), self.tolerance * self._areas[k])

    def locate(self, point, start: int) -> Location:
        """Locate ``point`` in triangle ``start`` or one of its neighbors.

        Returns ``NOT_FOUND`` (triangle -1, NaN coordinates) when the point is in none
        of them, which happens when it left the domain.
        """
        x, y = float(point[0]), float(point[1])

        inside, xi, eta = self.contains(start, x, y)
        if inside:
            return Location(start, xi, eta)

        for j in self.mesh.neighbors[start]:
            inside, xi, eta = self.contains(j, x, y)
            if inside:
                return Location(j, xi, eta)

        return NOT_FOUND

    def search(self, point, candidates) -> Location:
        """Exhaustive search over ``candidates`` (e.g. the outflow triangles)."""
        x, y = float(point[0]), float(point[1])
        for j in candidates:
            inside, xi, eta = self.contains(j, x, y)
            if inside:
                return Location(int(j), xi, eta)
        return NOT_FOUND

    def locate_global(self, point) -> Location:
        """Exhaustive search over every triangle of the mesh."""
        return self.search(point, range(self.mesh.nt))
