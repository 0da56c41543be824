"""Scipy-based direct linear solver using SuperLU."""

import logging

import numpy as np
from scipy.sparse import csc_matrix
from scipy.sparse.linalg import splu

log = logging.getLogger(__name__)


class LinearSolveError(RuntimeError):
    """The sparse direct solve failed (singular operator or non-finite result)."""


def factorize(A_csc: csc_matrix):
    """LU-factorize a square sparse matrix.

    Raises
    ------
    LinearSolveError
        If SuperLU reports an exactly singular matrix.
    """
    try:
        return splu(csc_matrix(A_csc))
    except RuntimeError as exc:
        raise LinearSolveError(f"LU factorization failed: {exc}") from exc


def scipy_solver(A_csc: csc_matrix, b_np: np.ndarray, lu=None):
    """Solve A x = b with a sparse LU factorization.

    Parameters
    ----------
    A_csc : csc_matrix
        Square sparse matrix in CSC format.
    b_np : np.ndarray
        Right-hand side vector.
    lu : SuperLU, optional
        Factorization of ``A_csc`` from a previous call. When given, the matrix is
        not factorized again.

    Returns
    -------
    x_np : np.ndarray
        Solution vector.
    lu : SuperLU
        Factorization, to pass back in for the next solve with the same operator.
    """
    b = np.asarray(b_np, dtype=np.float64)
    if A_csc.shape[0] != A_csc.shape[1] or A_csc.shape[0] != b.shape[0]:
        raise ValueError(f"Incompatible system: A {A_csc.shape}, b {b.shape}")

    if lu is None:
        lu = factorize(A_csc)
        log.debug(f"Factorized {A_csc.shape[0]}x{A_csc.shape[1]} system, nnz={A_csc.nnz}")

    x = lu.solve(b)
    if not np.all(np.isfinite(x)):
        raise LinearSolveError("Direct solve produced non-finite values")

    return x, lu


def solve_csc_arrays(indptr, indices, data, b_np: np.ndarray) -> np.ndarray:
    """Solve from compressed-column arrays (column pointers, row indices, values)."""
    n = len(indptr) - 1
    A = csc_matrix((data, indices, indptr), shape=(n, n))
    x, _ = scipy_solver(A, b_np)
    return x
