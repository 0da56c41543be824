"""Tests for the characteristics Navier-Stokes solver.

End-to-end Stokes and short transient runs on small channel meshes.
"""

from pathlib import Path

import numpy as np
import pytest
from omegaconf import OmegaConf

from fem import PreconditionError, boundary_velocity
from meshing import load_mesh
from solvers import CharacteristicsSolver, NavierStokesParameters

CONF_DIR = Path(__file__).parent.parent.parent / "conf"


class TestParameters:
    """Parameter dataclass."""

    def test_defaults(self):
        params = NavierStokesParameters()
        assert params.nu == 0.0025
        assert params.dt == 0.1
        assert params.n_steps == 80
        assert params.tgv == 1e31
        assert params.dirichlet_labels == (10, 20, 30, 40)
        assert params.alpha == pytest.approx(10.0)

    def test_lists_become_tuples(self):
        params = NavierStokesParameters(dirichlet_labels=[10, 20], inlet_y=[0.5, 1.0])
        assert params.dirichlet_labels == (10, 20)
        assert params.inlet_y == (0.5, 1.0)

    def test_invalid_dt(self):
        with pytest.raises(ValueError):
            NavierStokesParameters(dt=0.0)

    def test_to_mlflow_flat(self):
        flat = NavierStokesParameters().to_mlflow()
        assert flat["dirichlet_labels"] == "10,20,30,40"
        assert flat["rhs_scheme"] == "gauss7"


class TestStokes:
    """Stationary Stokes solve honoring the boundary values."""

    def test_two_triangle_boundary_values(self, two_triangle_mesh):
        mesh = two_triangle_mesh
        n = mesh.n_p2
        solver = CharacteristicsSolver(mesh)
        x = solver.solve_stokes()

        for i in mesh.boundary_nodes():
            u, v = boundary_velocity(mesh.p2_points[i, 0], mesh.p2_points[i, 1], mesh.labels[i])
            assert x[i] == pytest.approx(u, abs=1e-10)
            assert x[i + n] == pytest.approx(v, abs=1e-10)
        assert np.all(np.isfinite(x))

    def test_inlet_midpoint_gets_peak(self, two_triangle_mesh):
        mesh = two_triangle_mesh
        solver = CharacteristicsSolver(mesh)
        solver.solve_stokes()
        u, _ = solver.velocity()
        inlet_mid = np.nonzero(np.all(np.isclose(mesh.p2_points, [0.0, 0.75]), axis=1))[0][0]
        assert u[inlet_mid] == pytest.approx(1.0, abs=1e-10)


def assert_poiseuille(solver, mesh):
    """u = 16 (1 - y)(y - 0.5), v = 0 and p = 32 nu (10 - x), zero at the outlet."""
    y = mesh.p2_points[:, 1]
    u, v = solver.velocity()
    np.testing.assert_allclose(u, 16.0 * (1.0 - y) * (y - 0.5), atol=1e-8)
    np.testing.assert_allclose(v, 0.0, atol=1e-8)

    x_corners = mesh.p2_points[: mesh.nv, 0]
    expected_p = 32.0 * solver.params.nu * (10.0 - x_corners)
    np.testing.assert_allclose(solver.pressure(), expected_p, atol=1e-7)


class TestPoiseuille:
    """Parabolic inflow between walls with a free outlet is reproduced exactly."""

    @pytest.fixture
    def solver(self, channel_mesh):
        return CharacteristicsSolver(
            channel_mesh,
            dirichlet_labels=(10, 20),
            pressure_regularization=1e-12,
            n_steps=3,
            log_every=1,
        )

    def test_stokes(self, solver, channel_mesh):
        solver.solve_stokes()
        assert_poiseuille(solver, channel_mesh)

    def test_outlet_wall_corners_no_slip(self, solver, channel_mesh):
        solver.solve_stokes()
        u, v = solver.velocity()
        for corner in ([10.0, 0.5], [10.0, 1.0]):
            i = np.nonzero(np.all(np.isclose(channel_mesh.p2_points, corner), axis=1))[0][0]
            assert u[i] == pytest.approx(0.0, abs=1e-12)
            assert v[i] == pytest.approx(0.0, abs=1e-12)

    def test_steady_under_time_stepping(self, solver, channel_mesh):
        solver.solve()
        assert solver.metrics.steps == 3
        assert_poiseuille(solver, channel_mesh)
        assert solver.time_series.rel_change[-1] < 1e-8


class TestShippedConfig:
    """The Hydra channel config runs on the Hydra channel mesh."""

    @pytest.fixture
    def solver(self):
        mesh_cfg = OmegaConf.to_container(OmegaConf.load(CONF_DIR / "mesh" / "channel.yaml"))
        mesh_cfg.update(nx=10, ny=2)
        solver_cfg = OmegaConf.to_container(OmegaConf.load(CONF_DIR / "solver" / "navier_stokes.yaml"))
        solver_cfg.pop("_target_")
        solver_cfg.pop("name")
        return CharacteristicsSolver(load_mesh(mesh_cfg), **solver_cfg)

    def test_outlet_span_matches_mesh(self, solver):
        mesh_cfg = OmegaConf.load(CONF_DIR / "mesh" / "channel.yaml")
        assert solver.params.outlet_y == tuple(mesh_cfg.y_range)
        assert solver.params.x_outlet == mesh_cfg.x_range[1]

    def test_departure_below_outlet_has_no_velocity(self, solver):
        def interpolate(location):
            raise AssertionError("interpolation not expected")

        velocity = solver.exit_policy.upwind_velocity((10.3, 0.3), solver.locator, interpolate)
        assert velocity == (0.0, 0.0)


@pytest.fixture
def channel_solver(channel_mesh):
    # Outlet left free (natural outflow)
    return CharacteristicsSolver(channel_mesh, dirichlet_labels=(10, 20), n_steps=3, log_every=1)


class TestTransient:
    """Time stepping with operator reuse."""

    def test_operator_assembled_once(self, channel_solver):
        channel_solver.solve()
        assert channel_solver.assembler.assembly_count == 1
        assert channel_solver.stokes_assembler.assembly_count == 1
        assert channel_solver.metrics.assemblies == 2

    def test_history(self, channel_solver):
        channel_solver.solve()
        ts = channel_solver.time_series
        assert len(ts.time) == 3
        assert ts.time[-1] == pytest.approx(0.3)
        assert channel_solver.metrics.steps == 3
        assert channel_solver.metrics.final_energy > 0.0
        assert np.all(np.isfinite(ts.energy))

    def test_inlet_held(self, channel_solver, channel_mesh):
        channel_solver.solve()
        u, v = channel_solver.velocity()
        inlet = channel_mesh.boundary_nodes([10])
        expected = [boundary_velocity(0.0, y, 10)[0] for y in channel_mesh.p2_points[inlet, 1]]
        np.testing.assert_allclose(u[inlet], expected, atol=1e-10)
        np.testing.assert_allclose(v[inlet], 0.0, atol=1e-10)

    def test_velocity_bounded(self, channel_solver):
        channel_solver.solve()
        assert channel_solver.metrics.max_velocity < channel_solver.params.max_velocity

    def test_fields_on_p2_nodes(self, channel_solver, channel_mesh):
        channel_solver.solve()
        fields = channel_solver.fields
        assert len(fields.u) == channel_mesh.n_p2
        p = channel_solver.pressure()
        np.testing.assert_allclose(fields.p[: channel_mesh.nv], p)
        s1, s2 = channel_mesh.midpoint_edges[0]
        assert fields.p[channel_mesh.nv] == pytest.approx(0.5 * (p[s1] + p[s2]))

    def test_callback(self, channel_solver):
        steps = []
        channel_solver.solve(callback=lambda solver, step: steps.append(step))
        assert steps == [0, 1, 2]

    def test_triangle_values(self, channel_solver, channel_mesh):
        values = channel_solver.triangle_values()
        assert values.shape == (channel_mesh.nt, 15)

    def test_unstable_field_aborts(self, channel_solver, channel_mesh):
        channel_solver.arrays.x[: channel_mesh.n_p2] = 5.0
        with pytest.raises(PreconditionError):
            channel_solver.step()

    def test_save(self, tmp_path, channel_solver):
        from utilities import load_simulation_data

        channel_solver.solve(n_steps=2)
        path = tmp_path / "run.h5"
        channel_solver.save(path)

        data = load_simulation_data(path)
        assert set(data) == {"params", "metrics", "time_series", "fields"}
        assert len(data["time_series"]) == 2
        assert data["metrics"]["steps"].iloc[0] == 2
