"""Tests for the P2/P1 basis on the reference triangle."""

import numpy as np
import pytest

from fem import interpolate, p1_values, partial_phi, phi, shape_gradients, shape_values

# Local P2 nodes: corners, then midpoints of the edges opposite corners 0, 1, 2
P2_NODES = np.array(
    [[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [0.5, 0.5], [0.0, 0.5], [0.5, 0.0]]
)


@pytest.fixture
def sample_points():
    rng = np.random.default_rng(0)
    pts = rng.random((50, 2))
    # Fold into the reference triangle
    outside = pts.sum(axis=1) > 1.0
    pts[outside] = 1.0 - pts[outside]
    return pts


class TestShapeFunctions:
    """Nodal and partition properties."""

    def test_kronecker_delta(self):
        values = shape_values(P2_NODES)
        np.testing.assert_allclose(values, np.eye(6), atol=1e-14)

    def test_partition_of_unity(self, sample_points):
        values = shape_values(sample_points)
        np.testing.assert_allclose(values.sum(axis=1), 1.0, atol=1e-13)

    def test_p1_partition_of_unity(self, sample_points):
        values = p1_values(sample_points)
        np.testing.assert_allclose(values.sum(axis=1), 1.0, atol=1e-14)

    def test_interpolate_reproduces_quadratic(self, sample_points):
        def f(x, y):
            return 1.0 + 2.0 * x - y + 3.0 * x * y - x * x + 0.5 * y * y

        nodal = np.array([f(x, y) for x, y in P2_NODES])
        for x, y in sample_points:
            assert interpolate(nodal, x, y) == pytest.approx(f(x, y), abs=1e-12)


class TestGradients:
    """Derivative consistency."""

    def test_gradients_sum_to_zero(self, sample_points):
        grads = shape_gradients(sample_points)
        np.testing.assert_allclose(grads.sum(axis=1), 0.0, atol=1e-12)

    @pytest.mark.parametrize("i", range(6))
    def test_matches_finite_differences(self, i, sample_points):
        h = 1e-6
        for x, y in sample_points[:10]:
            fd_x = (phi(i, x + h, y) - phi(i, x - h, y)) / (2 * h)
            fd_y = (phi(i, x, y + h) - phi(i, x, y - h)) / (2 * h)
            assert partial_phi(i, 0, x, y) == pytest.approx(fd_x, abs=1e-6)
            assert partial_phi(i, 1, x, y) == pytest.approx(fd_y, abs=1e-6)
