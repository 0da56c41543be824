"""Tests for snapshot and HDF5 I/O helpers."""

import numpy as np
import pytest

from utilities import (
    SnapshotWriter,
    ensure_output_dir,
    read_triangle_snapshot,
    write_triangle_snapshot,
)


class TestSnapshots:
    """Per-triangle text snapshots."""

    def test_layout(self, tmp_path, two_triangle_mesh):
        mesh = two_triangle_mesh
        x = np.arange(mesh.n_dofs, dtype=float)
        path = write_triangle_snapshot(tmp_path / "sol_0.txt", mesh, x)

        values = read_triangle_snapshot(path)
        assert values.shape == (mesh.nt, 15)
        np.testing.assert_array_equal(values, x[mesh.local_to_global()])

    def test_writer_every(self, tmp_path, two_triangle_mesh):
        class FakeSolver:
            mesh = two_triangle_mesh
            solution = np.zeros(two_triangle_mesh.n_dofs)

        writer = SnapshotWriter(tmp_path / "plot", every=2)
        for step in range(5):
            writer(FakeSolver(), step)

        assert [p.name for p in writer.written] == ["sol_0.txt", "sol_2.txt", "sol_4.txt"]
        assert all(p.exists() for p in writer.written)

    def test_ensure_output_dir(self, tmp_path):
        path = ensure_output_dir(tmp_path / "a" / "b")
        assert path.is_dir()


class TestPlotting:
    """Matplotlib output."""

    def test_plot_solution(self, tmp_path, two_triangle_mesh):
        from utilities.plotting import plot_solution

        x = np.linspace(0.0, 1.0, two_triangle_mesh.n_dofs)
        path = tmp_path / "solution.png"
        plot_solution(two_triangle_mesh, x, filepath=path)
        assert path.exists()
