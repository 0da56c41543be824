"""Semi-Lagrangian right-hand side of the characteristics time step.

For the implicit step (alpha M + nu K) u^{n+1} + B p = alpha M (u^n o X^n), the
transported field u^n o X^n is evaluated at every quadrature point q of every
triangle K by tracing the characteristic back over one time step:

    x_q^*  = x_q - (1 / alpha) u^n(x_q)
    b_i   += alpha * |K| * sum_q w_q phi_i(q) u^n(x_q^*)

The departure point x_q^* is located among K and its neighbors; when it left the
mesh, the exit policy provides the upwind velocity. Pressure rows get no
contribution.
"""

import logging

import numpy as np

from fem.basis import interpolate, shape_values
from fem.errors import require
from fem.quadrature import QuadratureRule, get_rule, map_to_physical

log = logging.getLogger(__name__)


class CharacteristicsRHS:
    """Right-hand side builder for the characteristics scheme.

    Parameters
    ----------
    mesh : Mesh2D
    locator : PointLocator
    exit_policy : ExitPolicy
        Upwind values for departure points outside the mesh.
    rule : str or QuadratureRule
        "gauss7" (7-point rule, default) or "midpoint" (3 edge midpoints).
    max_velocity : float
        Sanity bound on the interpolated previous velocity.
    """

    def __init__(self, mesh, locator, exit_policy, rule="gauss7", max_velocity: float = 3.0):
        self.mesh = mesh
        self.locator = locator
        self.exit_policy = exit_policy
        self.rule: QuadratureRule = get_rule(rule) if isinstance(rule, str) else rule
        self.max_velocity = max_velocity

        # Shape functions at the reference quadrature points (Q, 6)
        self._phi = shape_values(self.rule.points)
        # Physical quadrature points (nt, Q, 2)
        self.quadrature_points = map_to_physical(mesh.corner_coordinates, self.rule.points)

        self.last_exit_count = 0

    # ----------------------------------------------------------
    #   Field access
    # ----------------------------------------------------------
    def gather(self, k: int, x: np.ndarray):
        """Nodal (u, v) values at the six P2 nodes of triangle k."""
        nodes = self.mesh.connectivity[k]
        n = self.mesh.n_p2
        return x[nodes], x[nodes + n]

    def interpolate_at(self, location, x: np.ndarray):
        """Velocity of the P2 field ``x`` at a located point."""
        u6, v6 = self.gather(location.triangle, x)
        return (
            interpolate(u6, location.xi, location.eta),
            interpolate(v6, location.xi, location.eta),
        )

    def departure_points(self, x_prev: np.ndarray, alpha: float) -> np.ndarray:
        """Feet of the characteristics through every quadrature point, (nt, Q, 2)."""
        n = self.mesh.n_p2
        conn = self.mesh.connectivity
        u_q = x_prev[conn] @ self._phi.T
        v_q = x_prev[conn + n] @ self._phi.T

        peak = max(np.max(np.abs(u_q), initial=0.0), np.max(np.abs(v_q), initial=0.0))
        require(
            peak < self.max_velocity,
            f"interpolated velocity {peak:.3g} exceeds the sanity bound {self.max_velocity}",
        )

        velocity = np.stack([u_q, v_q], axis=-1)
        return self.quadrature_points - velocity / alpha

    # ----------------------------------------------------------
    #   Assembly
    # ----------------------------------------------------------
    def build(self, x_prev: np.ndarray, alpha: float, out: np.ndarray = None) -> np.ndarray:
        """Assemble the right-hand side from the previous solution.

        Parameters
        ----------
        x_prev : np.ndarray
            Previous solution vector (size 2 n_p2 + nv).
        alpha : float
            Reciprocal time step, must be positive.
        out : np.ndarray, optional
            Buffer to fill; zeroed first.

        Returns
        -------
        np.ndarray
            Right-hand side vector.
        """
        mesh = self.mesh
        n = mesh.n_p2
        require(alpha > 0.0, f"alpha must be positive for the characteristics step, got {alpha}")
        require(
            len(x_prev) == mesh.n_dofs,
            f"previous solution has size {len(x_prev)}, expected {mesh.n_dofs}",
        )

        b = np.zeros(mesh.n_dofs) if out is None else out
        b[:] = 0.0

        departure = self.departure_points(x_prev, alpha)
        nq = len(self.rule.weights)
        upwind = np.zeros((mesh.nt, nq, 2))

        def interpolate_prev(location):
            return self.interpolate_at(location, x_prev)

        exits = 0
        for k in range(mesh.nt):
            require(len(mesh.neighbors[k]) > 0, f"triangle {k} has no neighbors")
            for q in range(nq):
                point = departure[k, q]
                location = self.locator.locate(point, k)
                if location.found:
                    upwind[k, q] = interpolate_prev(location)
                else:
                    upwind[k, q] = self.exit_policy.upwind_velocity(
                        point, self.locator, interpolate_prev
                    )
                    exits += 1

        self.last_exit_count = exits
        if exits:
            log.debug(f"{exits} characteristics left the mesh")

        # alpha * |K| * sum_q w_q phi_i(q) u*(q), per triangle and local node
        scale = alpha * mesh.areas[:, None]
        weighted = upwind * self.rule.weights[None, :, None]
        contrib_u = scale * (weighted[:, :, 0] @ self._phi)
        contrib_v = scale * (weighted[:, :, 1] @ self._phi)

        conn = mesh.connectivity
        np.add.at(b, conn, contrib_u)
        np.add.at(b, conn + n, contrib_v)
        b[2 * n:] = 0.0

        return b
