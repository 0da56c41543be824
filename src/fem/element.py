"""Element operator for the P2/P1 Stokes / Navier-Stokes saddle-point system.

Local block layout (15 x 15)::

    [ C   0   B1 ]    rows/cols 0-5   : velocity-x (P2)
    [ 0   C   B2 ]    rows/cols 6-11  : velocity-y (P2)
    [ B1' B2' -eI]    rows/cols 12-14 : pressure  (P1)

C = nu * stiffness + alpha * mass, B1/B2 = -1/2 * pressure-divergence pairing,
eps a small regularization of the otherwise singular pressure block.

With B = [[x1-x0, x2-x0], [y1-y0, y2-y0]] the affine map, the rows of
J = det(B) * B^-T = [[y2-y0, y0-y1], [x0-x2, x1-x0]] carry the physical
gradient: grad phi = J grad_ref phi / (2 area) for a counter-clockwise triangle.
"""

import numpy as np
from numba import njit

from .basis import barycentric, partial_phi, phi
from .errors import require
from .quadrature import GAUSS7

PRESSURE_REGULARIZATION = 1e-7


@njit(cache=True)
def _element_matrix(corners, area, alpha, nu, eps, qpts, qwts):
    A = np.zeros((15, 15))
    nq = qpts.shape[0]

    x0, y0 = corners[0, 0], corners[0, 1]
    x1, y1 = corners[1, 0], corners[1, 1]
    x2, y2 = corners[2, 0], corners[2, 1]

    J00 = y2 - y0
    J01 = y0 - y1
    J10 = x0 - x2
    J11 = x1 - x0

    # J^T J, shared by every quadrature contribution
    acoef = J00 * J00 + J10 * J10
    bcoef = J00 * J01 + J10 * J11
    ccoef = J01 * J01 + J11 * J11

    coeff = nu / (4.0 * area)
    coeff_mass = alpha * area

    # Shape data at the quadrature points
    val = np.empty((nq, 6))
    dx = np.empty((nq, 6))
    dy = np.empty((nq, 6))
    lam = np.empty((nq, 3))
    for q in range(nq):
        px, py = qpts[q, 0], qpts[q, 1]
        for i in range(6):
            val[q, i] = phi(i, px, py)
            dx[q, i] = partial_phi(i, 0, px, py)
            dy[q, i] = partial_phi(i, 1, px, py)
        for j in range(3):
            lam[q, j] = barycentric(j, px, py)

    # C blocks: upper triangle, then mirrored
    for i in range(6):
        for j in range(i, 6):
            s = 0.0
            for q in range(nq):
                w = qwts[q]
                diffusion = (
                    acoef * dx[q, i] * dx[q, j]
                    + bcoef * (dy[q, i] * dx[q, j] + dx[q, i] * dy[q, j])
                    + ccoef * dy[q, i] * dy[q, j]
                )
                s += coeff * w * diffusion
                if alpha > 0.0:
                    s += coeff_mass * w * val[q, i] * val[q, j]
            A[i, j] = s
            A[j, i] = s
            A[i + 6, j + 6] = s
            A[j + 6, i + 6] = s

    # B1 / B2 coupling, copied into the transposed blocks
    for i in range(6):
        for j in range(3):
            s1 = 0.0
            s2 = 0.0
            for q in range(nq):
                w = qwts[q]
                s1 += w * (J00 * dx[q, i] + J01 * dy[q, i]) * lam[q, j]
                s2 += w * (J10 * dx[q, i] + J11 * dy[q, i]) * lam[q, j]
            A[i, 12 + j] = -0.5 * s1
            A[12 + j, i] = A[i, 12 + j]
            A[i + 6, 12 + j] = -0.5 * s2
            A[12 + j, i + 6] = A[i + 6, 12 + j]

    for j in range(12, 15):
        A[j, j] = -eps

    return A


@njit(cache=True)
def _element_matrices(corner_coordinates, areas, alpha, nu, eps, qpts, qwts):
    nt = corner_coordinates.shape[0]
    out = np.empty((nt, 15, 15))
    for k in range(nt):
        out[k] = _element_matrix(corner_coordinates[k], areas[k], alpha, nu, eps, qpts, qwts)
    return out


def element_matrix(
    corners,
    area: float,
    alpha: float,
    nu: float,
    pressure_regularization: float = PRESSURE_REGULARIZATION,
    rule=GAUSS7,
) -> np.ndarray:
    """Dense 15 x 15 local operator of one triangle.

    Parameters
    ----------
    corners : array_like (3, 2)
        Counter-clockwise corner coordinates.
    area : float
        Triangle area (> 0).
    alpha : float
        Reciprocal time step; 0 for the stationary Stokes operator (no mass term).
    nu : float
        Kinematic viscosity.
    """
    require(area > 0.0, f"triangle area must be positive, got {area}")
    require(alpha >= 0.0, f"alpha must be non-negative, got {alpha}")
    corners = np.ascontiguousarray(corners, dtype=np.float64)
    return _element_matrix(
        corners, float(area), float(alpha), float(nu), float(pressure_regularization),
        rule.points, rule.weights,
    )


def element_matrices(
    mesh,
    alpha: float,
    nu: float,
    pressure_regularization: float = PRESSURE_REGULARIZATION,
    rule=GAUSS7,
) -> np.ndarray:
    """Local operators of every triangle of ``mesh``, shape (nt, 15, 15)."""
    require(alpha >= 0.0, f"alpha must be non-negative, got {alpha}")
    require(bool(np.all(mesh.areas > 0.0)), "every triangle area must be positive")
    return _element_matrices(
        np.ascontiguousarray(mesh.corner_coordinates),
        np.ascontiguousarray(mesh.areas),
        float(alpha), float(nu), float(pressure_regularization),
        rule.points, rule.weights,
    )
