"""Cross-project utilities (snapshots, HDF5 state, plotting)."""

# Keep __init__ lightweight: plotting pulls in matplotlib and is imported on demand.
from utilities.io import (  # noqa: F401
    load_simulation_data,
    save_simulation_data,
    ensure_output_dir,
    write_triangle_snapshot,
    read_triangle_snapshot,
    SnapshotWriter,
)

__all__ = [
    "load_simulation_data",
    "save_simulation_data",
    "ensure_output_dir",
    "write_triangle_snapshot",
    "read_triangle_snapshot",
    "SnapshotWriter",
]
