"""Tests for the domain-exit policy of departing characteristics."""

import pytest

from characteristics import (
    ExitPolicy,
    InletClampRule,
    OutflowClampRule,
    PointLocator,
    WallRule,
    create_exit_policy,
)
from fem import PreconditionError


@pytest.fixture
def policy(channel_mesh):
    return create_exit_policy(channel_mesh)


@pytest.fixture
def locator(channel_mesh):
    return PointLocator(channel_mesh)


def fail_interpolate(location):
    raise AssertionError("interpolation not expected")


class TestChannelPolicy:
    """The three channel branches."""

    def test_inlet_clamped_below(self, policy, locator):
        # y clamped to 0.5 where the inflow profile vanishes
        assert policy.upwind_velocity((-0.3, 0.2), locator, fail_interpolate) == (0.0, 0.0)

    def test_inlet_profile(self, policy, locator):
        u, v = policy.upwind_velocity((-0.1, 0.75), locator, fail_interpolate)
        assert u == pytest.approx(1.0)
        assert v == 0.0

    def test_wall(self, policy, locator):
        assert policy.upwind_velocity((5.0, 1.2), locator, fail_interpolate) == (0.0, 0.0)

    def test_outflow_outside_span(self, policy, locator):
        assert policy.upwind_velocity((10.3, 1.5), locator, fail_interpolate) == (0.0, 0.0)

    def test_outflow_searches_outflow_triangles(self, policy, locator, channel_mesh):
        calls = []

        def interpolate(location):
            calls.append(location)
            return 0.25, -0.125

        assert policy.upwind_velocity((10.3, 0.75), locator, interpolate) == (0.25, -0.125)
        assert len(calls) == 1
        assert calls[0].triangle in channel_mesh.outflow_triangles

    def test_outflow_clamped_point_missing(self, policy, locator):
        # (10, 0.4) is inside the outlet span but below the mesh
        with pytest.raises(PreconditionError):
            policy.upwind_velocity((10.3, 0.4), locator, fail_interpolate)


class TestRules:
    """Individual rules and the factory."""

    def test_rule_matching(self):
        assert InletClampRule().matches(-0.1, 0.7)
        assert WallRule().matches(0.0, 2.0)
        assert WallRule().matches(10.0, 2.0)
        assert OutflowClampRule().matches(10.1, 0.7)
        assert not OutflowClampRule().matches(9.9, 0.7)

    def test_empty_outflow_set(self, locator):
        rule = OutflowClampRule(triangles=[])
        with pytest.raises(PreconditionError):
            rule.upwind_velocity(10.5, 0.75, locator, fail_interpolate)

    def test_no_matching_rule(self, locator):
        with pytest.raises(PreconditionError):
            ExitPolicy([]).upwind_velocity((1.0, 1.0), locator, fail_interpolate)

    def test_unknown_kind(self, channel_mesh):
        with pytest.raises(ValueError, match="Unknown exit policy"):
            create_exit_policy(channel_mesh, kind="cavity")
