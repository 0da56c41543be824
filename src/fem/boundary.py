"""Boundary values and large-penalty enforcement of essential conditions.

A velocity dof i with prescribed value g is enforced by overwriting the diagonal
entry A[i, i] with a very large value tgv and setting b[i] = tgv * g, so that the
penalty dominates the row in floating point. Rows and columns are not eliminated.
"""

import logging

import numpy as np

log = logging.getLogger(__name__)

# Boundary labels of the channel geometry
INLET = 10
WALL = 20
OUTLET = 30
MOVING_WALL = 40

DIRICHLET_LABELS = (INLET, WALL, OUTLET, MOVING_WALL)

TGV = 1e31


def g(x: float, y: float, label: int) -> float:
    """Prescribed x-velocity on a boundary: parabolic inflow on the inlet, else 0."""
    if label == INLET:
        return 16.0 * (1.0 - y) * (y - 0.5)
    return 0.0


def boundary_velocity(x: float, y: float, label: int):
    """Prescribed (u, v) at a boundary point with the given label."""
    if label == INLET:
        return g(x, y, label), 0.0
    elif label == MOVING_WALL:
        return 1.0, 0.0
    return 0.0, 0.0


def apply_dirichlet_penalty(
    assembler,
    rhs: np.ndarray,
    mesh,
    labels=DIRICHLET_LABELS,
    tgv: float = TGV,
    value_fn=boundary_velocity,
) -> int:
    """Enforce the velocity boundary values of every labeled P2 node.

    Both velocity components of each node whose label is in ``labels`` are
    penalized. A dof without a diagonal entry in the sparse structure is left
    untouched (matrix and right-hand side). Applying the penalty twice gives the
    same system.

    Parameters
    ----------
    assembler : SparseAssembler
        Assembled operator, modified in place.
    rhs : np.ndarray
        Right-hand side, modified in place.
    mesh : Mesh2D
    labels : iterable of int
        Labels with essential conditions; every other label is pass-through.

    Returns
    -------
    int
        Number of penalized dofs.
    """
    n = mesh.n_p2
    nodes = mesh.boundary_nodes(labels)
    if len(nodes) == 0:
        return 0

    values = np.array(
        [value_fn(mesh.p2_points[i, 0], mesh.p2_points[i, 1], mesh.labels[i]) for i in nodes],
        dtype=np.float64,
    ).reshape(-1, 2)

    dofs = np.concatenate([nodes, nodes + n])
    prescribed = np.concatenate([values[:, 0], values[:, 1]])

    present = assembler.set_diagonal(dofs, tgv)
    rhs[dofs[present]] = tgv * prescribed[present]

    missing = int((~present).sum())
    if missing:
        log.warning(f"{missing} boundary dofs have no diagonal entry and stay unconstrained")

    return int(present.sum())
