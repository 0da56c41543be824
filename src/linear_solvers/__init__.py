"""Linear solvers for the saddle-point systems."""

from .scipy_solver import scipy_solver, solve_csc_arrays, factorize, LinearSolveError

__all__ = ["scipy_solver", "solve_csc_arrays", "factorize", "LinearSolveError"]
