"""P2/P1 finite element building blocks: basis, quadrature, element and global operators."""

from .basis import (
    barycentric,
    d_barycentric,
    phi,
    partial_phi,
    interpolate,
    shape_values,
    shape_gradients,
    p1_values,
)
from .quadrature import QuadratureRule, GAUSS7, EDGE_MIDPOINTS, get_rule, map_to_physical
from .element import element_matrix, element_matrices, PRESSURE_REGULARIZATION
from .assembly import SparseAssembler, SPARSITY_THRESHOLD
from .boundary import (
    INLET,
    WALL,
    OUTLET,
    MOVING_WALL,
    DIRICHLET_LABELS,
    TGV,
    g,
    boundary_velocity,
    apply_dirichlet_penalty,
)
from .errors import PreconditionError, require

__all__ = [
    # Basis
    "barycentric",
    "d_barycentric",
    "phi",
    "partial_phi",
    "interpolate",
    "shape_values",
    "shape_gradients",
    "p1_values",
    # Quadrature
    "QuadratureRule",
    "GAUSS7",
    "EDGE_MIDPOINTS",
    "get_rule",
    "map_to_physical",
    # Operators
    "element_matrix",
    "element_matrices",
    "PRESSURE_REGULARIZATION",
    "SparseAssembler",
    "SPARSITY_THRESHOLD",
    # Boundary conditions
    "INLET",
    "WALL",
    "OUTLET",
    "MOVING_WALL",
    "DIRICHLET_LABELS",
    "TGV",
    "g",
    "boundary_velocity",
    "apply_dirichlet_penalty",
    # Errors
    "PreconditionError",
    "require",
]
