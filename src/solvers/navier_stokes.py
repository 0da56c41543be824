"""P2/P1 Navier-Stokes solver with the method of characteristics.

Each time step solves the linear saddle-point system

    (alpha M + nu K) u^{n+1} + B^T p^{n+1} = alpha M (u^n o X^n)
    B u^{n+1} - eps I p^{n+1}            = 0

with alpha = 1/dt. The operator does not depend on time: it is assembled and
factorized on the first step and reused afterwards. Only the semi-Lagrangian
right-hand side is rebuilt from the previous solution.

The unknown vector holds [u (n_p2) | v (n_p2) | p (nv)].
"""

import logging

import numpy as np

from characteristics import CharacteristicsRHS, PointLocator, create_exit_policy
from fem import GAUSS7, SparseAssembler, apply_dirichlet_penalty, shape_values
from linear_solvers import scipy_solver

from .base import TransientSolver
from .datastructures import NavierStokesParameters, SolverArrays

log = logging.getLogger(__name__)


class CharacteristicsSolver(TransientSolver):
    """Transient channel-flow solver on a P2/P1 triangular mesh.

    Parameters
    ----------
    mesh : Mesh2D
        Triangulation with boundary labels.
    params : NavierStokesParameters, optional
    **kwargs
        Parameter overrides when ``params`` is not given.
    """

    Parameters = NavierStokesParameters

    def __init__(self, mesh, params=None, **kwargs):
        super().__init__(params, **kwargs)
        p = self.params
        self.mesh = mesh

        self.locator = PointLocator(mesh, tolerance=p.locator_tolerance)
        self.exit_policy = create_exit_policy(
            mesh,
            kind=p.exit_policy,
            x_inlet=p.x_inlet,
            x_outlet=p.x_outlet,
            inlet_y=p.inlet_y,
            outlet_y=p.outlet_y,
        )
        self.rhs_builder = CharacteristicsRHS(
            mesh, self.locator, self.exit_policy, rule=p.rhs_scheme, max_velocity=p.max_velocity
        )

        # Separate operators: stationary Stokes (alpha = 0) and the time step
        self.stokes_assembler = SparseAssembler(
            mesh, pressure_regularization=p.pressure_regularization, threshold=p.sparsity_threshold
        )
        self.assembler = SparseAssembler(
            mesh, pressure_regularization=p.pressure_regularization, threshold=p.sparsity_threshold
        )

        self.arrays = SolverArrays.allocate(mesh.n_dofs)
        self._stokes_done = False
        self._init_fields(mesh.p2_points[:, 0], mesh.p2_points[:, 1])

        # Energy quadrature
        self._phi_energy = shape_values(GAUSS7.points)

        log.info(
            f"CharacteristicsSolver: N={mesh.n_dofs}, nu={p.nu}, dt={p.dt}, "
            f"rhs={self.rhs_builder.rule.name}"
        )

    # ----------------------------------------------------------
    #   Solution access
    # ----------------------------------------------------------
    @property
    def solution(self) -> np.ndarray:
        return self.arrays.x

    @property
    def previous(self) -> np.ndarray:
        return self.arrays.x_prev

    def velocity(self, x: np.ndarray = None):
        """(u, v) nodal values on the P2 nodes."""
        x = self.arrays.x if x is None else x
        n = self.mesh.n_p2
        return x[:n], x[n: 2 * n]

    def pressure(self, x: np.ndarray = None) -> np.ndarray:
        """Pressure on the corner vertices."""
        x = self.arrays.x if x is None else x
        return x[2 * self.mesh.n_p2:]

    def pressure_on_p2_nodes(self, x: np.ndarray = None) -> np.ndarray:
        """Pressure extended to the midpoints by linear interpolation along each edge."""
        p = self.pressure(x)
        edges = self.mesh.midpoint_edges
        return np.concatenate([p, 0.5 * (p[edges[:, 0]] + p[edges[:, 1]])])

    def triangle_values(self, x: np.ndarray = None) -> np.ndarray:
        """The 15 local values (6 u, 6 v, 3 p) of every triangle, shape (nt, 15)."""
        x = self.arrays.x if x is None else x
        return x[self.mesh.local_to_global()]

    # ----------------------------------------------------------
    #   Linear systems
    # ----------------------------------------------------------
    def _penalize(self, assembler, rhs: np.ndarray) -> int:
        p = self.params
        return apply_dirichlet_penalty(
            assembler, rhs, self.mesh, labels=p.dirichlet_labels, tgv=p.tgv
        )

    def solve_stokes(self) -> np.ndarray:
        """Stationary Stokes solve (alpha = 0), used as the initial condition."""
        A = self.stokes_assembler.assemble(0.0, self.params.nu)
        rhs = np.zeros(self.mesh.n_dofs)
        count = self._penalize(self.stokes_assembler, rhs)
        log.info(f"Stokes solve with {count} constrained velocity dofs")

        x, _ = scipy_solver(A, rhs)
        self.arrays.x[:] = x
        self._stokes_done = True
        return self.arrays.x

    def _initialize(self):
        if self.params.initial_stokes and not self._stokes_done and self.steps_taken == 0:
            self.solve_stokes()

    def step(self) -> np.ndarray:
        """One characteristics time step from the current solution."""
        p = self.params
        a = self.arrays
        a.x_prev[:] = a.x

        self.rhs_builder.build(a.x_prev, p.alpha, out=a.rhs)

        if not self.assembler.is_assembled:
            a.lu = None
        A = self.assembler.assemble(p.alpha, p.nu)
        self._penalize(self.assembler, a.rhs)

        x, a.lu = scipy_solver(A, a.rhs, lu=a.lu)
        a.x[:] = x
        return a.x

    # ----------------------------------------------------------
    #   Diagnostics
    # ----------------------------------------------------------
    def _compute_energy(self) -> float:
        """Kinetic energy E = 0.5 * int (u^2 + v^2) dA (7-point rule per triangle)."""
        u, v = self.velocity()
        conn = self.mesh.connectivity
        u_q = u[conn] @ self._phi_energy.T
        v_q = v[conn] @ self._phi_energy.T
        integrand = (u_q * u_q + v_q * v_q) @ GAUSS7.weights
        return 0.5 * float(np.sum(self.mesh.areas * integrand))

    def _exit_count(self) -> int:
        return self.rhs_builder.last_exit_count

    def _assembly_count(self) -> int:
        return self.stokes_assembler.assembly_count + self.assembler.assembly_count

    def _finalize_fields(self):
        u, v = self.velocity()
        self.fields.u[:] = u
        self.fields.v[:] = v
        self.fields.p[:] = self.pressure_on_p2_nodes()
