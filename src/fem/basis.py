"""P1/P2 Lagrange basis on the reference triangle (0,0), (1,0), (0,1).

Local numbering:
- 0, 1, 2: vertex functions, phi_i = lambda_i (2 lambda_i - 1)
- 3, 4, 5: edge functions, phi_i = 4 lambda_a lambda_b with a = (i-1) % 3,
  b = (i-2) % 3, i.e. the midpoint of the edge opposite corner i - 3

The scalar kernels are numba-compiled so the element assembly loops can call them
directly. The index arguments are not validated: i must be in 0..5 (0..2 for the
barycentric functions) and axis in {0, 1}. Every caller iterates over these fixed
ranges.
"""

import numpy as np
from numba import njit


@njit(cache=True)
def barycentric(i, x, y):
    """Barycentric coordinate lambda_i at reference point (x, y)."""
    if i == 0:
        return 1.0 - x - y
    elif i == 1:
        return 1.0 * x
    return 1.0 * y


@njit(cache=True)
def d_barycentric(i, axis):
    """Constant derivative of lambda_i along axis (0 = x, 1 = y)."""
    if i == 0:
        return -1.0
    elif (i == 1 and axis == 0) or (i == 2 and axis == 1):
        return 1.0
    return 0.0


@njit(cache=True)
def phi(i, x, y):
    """P2 shape function i at reference point (x, y)."""
    if i < 3:
        lam = barycentric(i, x, y)
        return lam * (2.0 * lam - 1.0)
    return 4.0 * barycentric((i - 1) % 3, x, y) * barycentric((i - 2) % 3, x, y)


@njit(cache=True)
def partial_phi(i, axis, x, y):
    """Derivative of P2 shape function i along axis at reference point (x, y)."""
    if i < 3:
        return (4.0 * barycentric(i, x, y) - 1.0) * d_barycentric(i, axis)
    a = (i + 1) % 3
    b = (i + 2) % 3
    return 4.0 * (
        barycentric(a, x, y) * d_barycentric(b, axis)
        + barycentric(b, x, y) * d_barycentric(a, axis)
    )


@njit(cache=True)
def interpolate(values, x, y):
    """Evaluate sum_i values[i] * phi_i(x, y) for the six local P2 values."""
    result = 0.0
    for i in range(6):
        result += phi(i, x, y) * values[i]
    return result


def shape_values(points) -> np.ndarray:
    """P2 shape functions at reference points, shape (Q, 6)."""
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    out = np.empty((len(points), 6))
    for q, (x, y) in enumerate(points):
        for i in range(6):
            out[q, i] = phi(i, x, y)
    return out


def shape_gradients(points) -> np.ndarray:
    """Reference gradients of the P2 shape functions, shape (Q, 6, 2)."""
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    out = np.empty((len(points), 6, 2))
    for q, (x, y) in enumerate(points):
        for i in range(6):
            out[q, i, 0] = partial_phi(i, 0, x, y)
            out[q, i, 1] = partial_phi(i, 1, x, y)
    return out


def p1_values(points) -> np.ndarray:
    """P1 (barycentric) shape functions at reference points, shape (Q, 3)."""
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    out = np.empty((len(points), 3))
    for q, (x, y) in enumerate(points):
        for i in range(3):
            out[q, i] = barycentric(i, x, y)
    return out
