"""Upwind velocity for characteristics that leave the mesh.

When a traced departure point is in none of the searched triangles, the boundary it
crossed decides the upwind velocity. The rules below encode the channel geometry
(inlet plane x = 0 with inflow on 0.5 <= y <= 1, outlet plane x = 10 spanning
0 <= y <= 1):

1. Inlet (x < x_inlet): clamp onto the inlet segment, use the inflow profile.
2. Wall (x_inlet <= x <= x_outlet): the point crossed a wall, velocity is zero.
3. Outflow (x > x_outlet): clamp onto the outlet plane; outside the outlet span the
   velocity is zero, otherwise the clamped point is searched among the outflow
   triangles and the previous field is interpolated there.

Rules are tried in order; another domain only needs another rule table.
"""

from abc import ABC, abstractmethod

from fem.boundary import INLET, boundary_velocity
from fem.errors import PreconditionError


# =============================================================================
# Abstract Base Class
# =============================================================================


class ExitRule(ABC):
    """One branch of the domain-exit policy."""

    @abstractmethod
    def matches(self, x: float, y: float) -> bool:
        """Whether this rule handles a departure point (x, y) outside the mesh."""
        pass

    @abstractmethod
    def upwind_velocity(self, x: float, y: float, locator, interpolate):
        """Return the (u, v) upwind velocity for the departure point.

        Parameters
        ----------
        locator : PointLocator
            Used by rules that search the mesh again.
        interpolate : callable
            ``interpolate(location) -> (u, v)`` evaluates the previous velocity
            field at a ``Location``.
        """
        pass


# =============================================================================
# Channel rules
# =============================================================================


class InletClampRule(ExitRule):
    """Departure point upstream of the inlet plane: use the inflow profile."""

    def __init__(self, x_inlet: float = 0.0, y_range=(0.5, 1.0), label: int = INLET,
                 value_fn=boundary_velocity):
        self.x_inlet = x_inlet
        self.y_min, self.y_max = y_range
        self.label = label
        self.value_fn = value_fn

    def matches(self, x, y):
        return x < self.x_inlet

    def upwind_velocity(self, x, y, locator, interpolate):
        y_clamped = min(max(y, self.y_min), self.y_max)
        return self.value_fn(self.x_inlet, y_clamped, self.label)


class WallRule(ExitRule):
    """Departure point beside the channel: the characteristic crossed a wall."""

    def __init__(self, x_inlet: float = 0.0, x_outlet: float = 10.0):
        self.x_inlet = x_inlet
        self.x_outlet = x_outlet

    def matches(self, x, y):
        return self.x_inlet <= x <= self.x_outlet

    def upwind_velocity(self, x, y, locator, interpolate):
        return 0.0, 0.0


class OutflowClampRule(ExitRule):
    """Departure point downstream of the outlet plane: clamp and search again."""

    def __init__(self, x_outlet: float = 10.0, y_range=(0.0, 1.0), triangles=()):
        self.x_outlet = x_outlet
        self.y_min, self.y_max = y_range
        self.triangles = list(triangles)

    def matches(self, x, y):
        return x > self.x_outlet

    def upwind_velocity(self, x, y, locator, interpolate):
        if y <= self.y_min or y >= self.y_max:
            return 0.0, 0.0

        location = locator.search((self.x_outlet, y), self.triangles)
        if not location.found:
            raise PreconditionError(
                f"No outflow triangle contains the clamped point ({self.x_outlet}, {y})"
            )
        return interpolate(location)


# =============================================================================
# Policy
# =============================================================================


class ExitPolicy:
    """Ordered table of exit rules; the first matching rule decides."""

    def __init__(self, rules):
        self.rules = list(rules)

    def upwind_velocity(self, point, locator, interpolate):
        x, y = float(point[0]), float(point[1])
        for rule in self.rules:
            if rule.matches(x, y):
                return rule.upwind_velocity(x, y, locator, interpolate)
        raise PreconditionError(f"No exit rule applies to departure point ({x}, {y})")


def create_exit_policy(
    mesh,
    kind: str = "channel",
    x_inlet: float = 0.0,
    x_outlet: float = 10.0,
    inlet_y=(0.5, 1.0),
    outlet_y=(0.0, 1.0),
    inlet_label: int = INLET,
    **kwargs,
) -> ExitPolicy:
    """Create the exit policy of a domain.

    Parameters
    ----------
    mesh : Mesh2D
        Supplies the outflow triangles searched by the outflow rule.
    kind : str
        Domain kind. Only "channel" is defined.

    Returns
    -------
    ExitPolicy
        Configured rule table.
    """
    kind_lower = kind.lower()

    if kind_lower == "channel":
        return ExitPolicy(
            [
                InletClampRule(x_inlet=x_inlet, y_range=tuple(inlet_y), label=inlet_label),
                WallRule(x_inlet=x_inlet, x_outlet=x_outlet),
                OutflowClampRule(
                    x_outlet=x_outlet, y_range=tuple(outlet_y), triangles=mesh.outflow_triangles
                ),
            ]
        )
    else:
        raise ValueError(f"Unknown exit policy kind: {kind}. Use 'channel'.")
