"""Quadrature rules on the reference triangle.

Weights are normalized to sum to one, so that the integral over a physical
triangle K is area(K) * sum_q w_q f(p_q).
"""

from typing import NamedTuple

import numpy as np


class QuadratureRule(NamedTuple):
    name: str
    points: np.ndarray  # (Q, 2) reference coordinates
    weights: np.ndarray  # (Q,)


def _gauss7() -> QuadratureRule:
    s15 = np.sqrt(15.0)
    a1 = (6.0 - s15) / 21.0
    a2 = (9.0 - 2.0 * s15) / 21.0
    a3 = (6.0 + s15) / 21.0
    a4 = (9.0 + 2.0 * s15) / 21.0
    w1 = (155.0 - s15) / 1200.0
    w2 = (155.0 + s15) / 1200.0
    points = np.array(
        [
            [1.0 / 3.0, 1.0 / 3.0],
            [a1, a1],
            [a1, a4],
            [a4, a1],
            [a3, a3],
            [a3, a2],
            [a2, a3],
        ]
    )
    weights = np.array([9.0 / 40.0, w1, w1, w1, w2, w2, w2])
    return QuadratureRule("gauss7", points, weights)


def _edge_midpoints() -> QuadratureRule:
    points = np.array([[0.5, 0.0], [0.5, 0.5], [0.0, 0.5]])
    weights = np.full(3, 1.0 / 3.0)
    return QuadratureRule("midpoint", points, weights)


# Symmetric 7-point rule, exact for polynomials of degree 5
GAUSS7 = _gauss7()

# Edge-midpoint rule, exact for polynomials of degree 2
EDGE_MIDPOINTS = _edge_midpoints()


def get_rule(name: str = "gauss7") -> QuadratureRule:
    """Look up a quadrature rule by name ("gauss7" or "midpoint")."""
    name_lower = name.lower()
    if name_lower == "gauss7":
        return GAUSS7
    elif name_lower in ("midpoint", "edge_midpoints"):
        return EDGE_MIDPOINTS
    else:
        raise ValueError(f"Unknown quadrature rule: {name}. Use 'gauss7' or 'midpoint'.")


def map_to_physical(corners, ref_points) -> np.ndarray:
    """Map reference points into the triangle with the given corners.

    Parameters
    ----------
    corners : array_like (3, 2) or (nt, 3, 2)
    ref_points : array_like (Q, 2)

    Returns
    -------
    np.ndarray
        (Q, 2) or (nt, Q, 2) physical coordinates.
    """
    corners = np.asarray(corners, dtype=np.float64)
    ref_points = np.asarray(ref_points, dtype=np.float64)
    lam = np.column_stack(
        [1.0 - ref_points[:, 0] - ref_points[:, 1], ref_points[:, 0], ref_points[:, 1]]
    )
    # (Q,3) x (...,3,2) -> (...,Q,2)
    return np.einsum("qa,...ad->...qd", lam, corners)
