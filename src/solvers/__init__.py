"""Transient flow solver framework.

Solver Hierarchy:
-----------------
TransientSolver (abstract base - time loop, results, persistence)
└── CharacteristicsSolver (P2/P1 finite elements, method of characteristics)
"""

from .base import TransientSolver
from .datastructures import (
    NavierStokesParameters,
    Metrics,
    Fields,
    TimeSeries,
    SolverArrays,
)
from .navier_stokes import CharacteristicsSolver


__all__ = [
    # Base solver
    "TransientSolver",
    # Data structures
    "NavierStokesParameters",
    "Metrics",
    "Fields",
    "TimeSeries",
    "SolverArrays",
    # Characteristics solver
    "CharacteristicsSolver",
]
