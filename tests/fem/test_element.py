"""Tests for the 15 x 15 P2/P1 element operator."""

import numpy as np
import pytest

from fem import PreconditionError, element_matrices, element_matrix, map_to_physical

CORNERS = np.array([[0.2, 0.5], [1.3, 0.6], [0.4, 1.4]])


def area_of(corners):
    (x0, y0), (x1, y1), (x2, y2) = corners
    return 0.5 * ((x1 - x0) * (y2 - y0) - (y1 - y0) * (x2 - x0))


def p2_nodes(corners):
    ref = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [0.5, 0.5], [0.0, 0.5], [0.5, 0.0]])
    return map_to_physical(corners, ref)


class TestStructure:
    """Block layout and symmetry."""

    def test_symmetric(self):
        A = element_matrix(CORNERS, area_of(CORNERS), alpha=10.0, nu=0.01)
        np.testing.assert_allclose(A, A.T, atol=1e-14)

    def test_velocity_blocks_identical_and_decoupled(self):
        A = element_matrix(CORNERS, area_of(CORNERS), alpha=10.0, nu=0.01)
        np.testing.assert_allclose(A[:6, :6], A[6:12, 6:12])
        np.testing.assert_array_equal(A[:6, 6:12], 0.0)

    def test_pressure_diagonal(self):
        A = element_matrix(CORNERS, area_of(CORNERS), alpha=1.0, nu=1.0, pressure_regularization=1e-7)
        np.testing.assert_allclose(np.diag(A[12:, 12:]), -1e-7)
        assert A[12, 13] == 0.0


class TestOperators:
    """Exact integrals of the individual terms."""

    def test_stiffness_annihilates_constants(self):
        A = element_matrix(CORNERS, area_of(CORNERS), alpha=0.0, nu=1.0)
        np.testing.assert_allclose(A[:6, :6].sum(axis=1), 0.0, atol=1e-13)

    def test_stiffness_energy_of_linear_field(self):
        """u = x gives int |grad u|^2 = area."""
        area = area_of(CORNERS)
        A = element_matrix(CORNERS, area, alpha=0.0, nu=1.0)
        u = p2_nodes(CORNERS)[:, 0]
        assert u @ A[:6, :6] @ u == pytest.approx(area, rel=1e-12)

    def test_mass_total(self):
        area = area_of(CORNERS)
        A = element_matrix(CORNERS, area, alpha=1.0, nu=0.0)
        assert A[:6, :6].sum() == pytest.approx(area, rel=1e-12)

    def test_no_mass_for_stokes(self):
        area = area_of(CORNERS)
        A0 = element_matrix(CORNERS, area, alpha=0.0, nu=0.0)
        np.testing.assert_array_equal(A0[:12, :12], 0.0)

    def test_divergence_of_constant_is_zero(self):
        A = element_matrix(CORNERS, area_of(CORNERS), alpha=0.0, nu=1.0)
        np.testing.assert_allclose(A[12:, :6].sum(axis=1), 0.0, atol=1e-13)
        np.testing.assert_allclose(A[12:, 6:12].sum(axis=1), 0.0, atol=1e-13)

    def test_divergence_of_linear_field(self):
        """u = (x, 0) has unit divergence: B1 u = -int lambda_j = -area / 3."""
        area = area_of(CORNERS)
        A = element_matrix(CORNERS, area, alpha=0.0, nu=1.0)
        nodes = p2_nodes(CORNERS)
        np.testing.assert_allclose(A[12:, :6] @ nodes[:, 0], -area / 3.0, rtol=1e-12)
        np.testing.assert_allclose(A[12:, 6:12] @ nodes[:, 1], -area / 3.0, rtol=1e-12)


class TestPreconditions:
    """Invalid inputs."""

    def test_negative_alpha(self):
        with pytest.raises(PreconditionError):
            element_matrix(CORNERS, area_of(CORNERS), alpha=-1.0, nu=1.0)

    def test_non_positive_area(self):
        with pytest.raises(PreconditionError):
            element_matrix(CORNERS, 0.0, alpha=1.0, nu=1.0)

    def test_batch_matches_single(self, two_triangle_mesh):
        mesh = two_triangle_mesh
        batch = element_matrices(mesh, alpha=10.0, nu=0.01)
        for k in range(mesh.nt):
            single = element_matrix(mesh.corner_coordinates[k], mesh.areas[k], alpha=10.0, nu=0.01)
            np.testing.assert_allclose(batch[k], single)
