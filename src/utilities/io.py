"""Solution I/O: per-triangle text snapshots and HDF5 solver state."""

import logging
from pathlib import Path

import numpy as np
import pandas as pd

log = logging.getLogger(__name__)


def ensure_output_dir(path) -> Path:
    """Create ``path`` (and parents) if needed and return it as a Path."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def write_triangle_snapshot(filepath, mesh, x: np.ndarray) -> Path:
    """Write one line per triangle with its 15 local values.

    Line k holds u at the six P2 nodes of triangle k, then v at the same nodes,
    then p at its three corners.
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    values = np.asarray(x)[mesh.local_to_global()]
    np.savetxt(filepath, values, fmt="%.6g", delimiter=" ")
    return filepath


def read_triangle_snapshot(filepath) -> np.ndarray:
    """Read a snapshot written by ``write_triangle_snapshot``, shape (nt, 15)."""
    return np.loadtxt(filepath, ndmin=2)


class SnapshotWriter:
    """Time-loop callback writing ``sol_<step>.txt`` snapshots into a directory.

    Parameters
    ----------
    output_dir : str or Path
    every : int
        Write every ``every``-th step.
    """

    def __init__(self, output_dir, every: int = 1, prefix: str = "sol"):
        self.output_dir = ensure_output_dir(output_dir)
        self.every = max(int(every), 1)
        self.prefix = prefix
        self.written = []

    def __call__(self, solver, step: int):
        if step % self.every != 0:
            return
        path = self.output_dir / f"{self.prefix}_{step}.txt"
        write_triangle_snapshot(path, solver.mesh, solver.solution)
        self.written.append(path)


def save_simulation_data(filepath, solver) -> Path:
    """Save the solver state to HDF5 (params, metrics, time series, fields)."""
    filepath = Path(filepath)
    solver.save(filepath)
    return filepath


def load_simulation_data(filepath) -> dict:
    """Load every table of an HDF5 file written by ``save_simulation_data``."""
    data = {}
    with pd.HDFStore(filepath, mode="r") as store:
        for key in store.keys():
            data[key.lstrip("/")] = store[key]
    log.debug(f"Loaded {sorted(data)} from {filepath}")
    return data
