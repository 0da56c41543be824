"""Global sparse assembly of the P2/P1 operator.

The assembler owns one global operator for one set of PDE coefficients. It moves
through two states only::

    EMPTY --assemble()--> ASSEMBLED

Once assembled, the operator is reused for every following time step: the viscous,
mass and coupling terms do not change in time, only the right-hand side does.
"""

import logging

import numpy as np
from scipy.sparse import csc_matrix

from .element import PRESSURE_REGULARIZATION, element_matrices

log = logging.getLogger(__name__)

SPARSITY_THRESHOLD = 1e-15


class SparseAssembler:
    """Owner of the global (row, col) -> value operator of a mesh.

    Parameters
    ----------
    mesh : Mesh2D
        Mesh with synthesized P2 midpoints.
    pressure_regularization : float
        Value subtracted on every local pressure diagonal entry.
    threshold : float
        Local entries with magnitude <= threshold are never inserted.
    """

    EMPTY = "empty"
    ASSEMBLED = "assembled"

    def __init__(
        self,
        mesh,
        pressure_regularization: float = PRESSURE_REGULARIZATION,
        threshold: float = SPARSITY_THRESHOLD,
    ):
        self.mesh = mesh
        self.n_dofs = mesh.n_dofs
        self.pressure_regularization = pressure_regularization
        self.threshold = threshold

        self.state = self.EMPTY
        self.coefficients = None
        self.matrix = None
        self.assembly_count = 0
        self._diag_pos = None

    @property
    def is_assembled(self) -> bool:
        return self.state == self.ASSEMBLED

    @property
    def nnz(self) -> int:
        return 0 if self.matrix is None else self.matrix.nnz

    def assemble(self, alpha: float, nu: float) -> csc_matrix:
        """Build the global operator, or reuse it when already assembled.

        Parameters
        ----------
        alpha : float
            Reciprocal time step (0 for the stationary Stokes operator).
        nu : float
            Kinematic viscosity.

        Returns
        -------
        csc_matrix
            The assembled operator (owned by the assembler, modified in place by
            boundary enforcement).
        """
        coefficients = (float(alpha), float(nu))
        if self.is_assembled:
            if coefficients != self.coefficients:
                raise RuntimeError(
                    f"Operator already assembled for (alpha, nu)={self.coefficients}, "
                    f"cannot reassemble for {coefficients}"
                )
            log.debug("Operator already assembled, reusing it")
            return self.matrix

        local = element_matrices(
            self.mesh, alpha, nu, pressure_regularization=self.pressure_regularization
        )
        dofs = self.mesh.local_to_global()

        rows = np.broadcast_to(dofs[:, :, None], local.shape).ravel()
        cols = np.broadcast_to(dofs[:, None, :], local.shape).ravel()
        vals = local.ravel()

        keep = np.abs(vals) > self.threshold
        matrix = csc_matrix(
            (vals[keep], (rows[keep], cols[keep])), shape=(self.n_dofs, self.n_dofs)
        )
        matrix.sum_duplicates()
        matrix.sort_indices()

        self.matrix = matrix
        self.coefficients = coefficients
        self.state = self.ASSEMBLED
        self.assembly_count += 1
        self._diag_pos = None

        log.info(
            f"Assembled operator alpha={alpha:g} nu={nu:g}: "
            f"N={self.n_dofs} nnz={matrix.nnz} ({int(keep.sum())} local entries)"
        )
        return matrix

    def reuse(self) -> csc_matrix:
        """Return the assembled operator, failing when nothing was assembled."""
        if not self.is_assembled:
            raise RuntimeError("No operator assembled yet")
        return self.matrix

    # ----------------------------------------------------------
    #   Structure access
    # ----------------------------------------------------------
    def diagonal_positions(self) -> np.ndarray:
        """Position in ``matrix.data`` of every diagonal entry, -1 where absent."""
        if self._diag_pos is None:
            A = self.reuse()
            col_of = np.repeat(np.arange(self.n_dofs), np.diff(A.indptr))
            on_diag = np.nonzero(A.indices == col_of)[0]
            pos = np.full(self.n_dofs, -1, dtype=np.int64)
            pos[col_of[on_diag]] = on_diag
            self._diag_pos = pos
        return self._diag_pos

    def set_diagonal(self, dofs, value: float) -> np.ndarray:
        """Overwrite existing diagonal entries of ``dofs`` with ``value``.

        Entries missing from the sparse structure are left alone.

        Returns
        -------
        np.ndarray of bool
            Mask over ``dofs`` telling which diagonal entries existed.
        """
        dofs = np.asarray(dofs, dtype=np.int64)
        pos = self.diagonal_positions()[dofs]
        present = pos >= 0
        self.matrix.data[pos[present]] = value
        return present

    def to_csc_arrays(self):
        """Compressed-column arrays (indptr[N+1], indices[nnz], data[nnz])."""
        A = self.reuse()
        return A.indptr.copy(), A.indices.copy(), A.data.copy()

    def entries(self) -> dict:
        """The operator as a {(row, col): value} mapping."""
        A = self.reuse().tocoo()
        return {
            (int(i), int(j)): float(v) for i, j, v in zip(A.row, A.col, A.data)
        }
