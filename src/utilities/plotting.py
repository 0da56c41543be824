"""Matplotlib plots of P2/P1 solutions on the triangulation."""

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import matplotlib.tri as mtri  # noqa: E402
import numpy as np  # noqa: E402


def corner_triangulation(mesh) -> mtri.Triangulation:
    """Triangulation on the corner vertices of the mesh."""
    pts = mesh.points
    return mtri.Triangulation(pts[:, 0], pts[:, 1], mesh.connectivity[:, :3])


def plot_solution(mesh, x: np.ndarray, filepath=None, title: str = None):
    """Velocity magnitude and pressure contours.

    Parameters
    ----------
    mesh : Mesh2D
    x : np.ndarray
        Solution vector [u | v | p].
    filepath : str or Path, optional
        Save the figure there (and close it) when given.

    Returns
    -------
    matplotlib.figure.Figure
    """
    n = mesh.n_p2
    nv = mesh.nv
    u = x[:nv]
    v = x[n: n + nv]
    p = x[2 * n:]
    speed = np.hypot(u, v)

    tri = corner_triangulation(mesh)
    fig, axes = plt.subplots(2, 1, figsize=(10, 6), sharex=True)

    c1 = axes[0].tricontourf(tri, speed, levels=30, cmap="viridis")
    fig.colorbar(c1, ax=axes[0], label="|u|")
    axes[0].set_title("Velocity magnitude" if title is None else title)

    c2 = axes[1].tricontourf(tri, p, levels=30, cmap="RdBu_r")
    fig.colorbar(c2, ax=axes[1], label="p")
    axes[1].set_title("Pressure")

    for ax in axes:
        ax.set_aspect("equal")
        ax.set_ylabel("y")
    axes[1].set_xlabel("x")
    fig.tight_layout()

    if filepath is not None:
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(filepath, dpi=200, bbox_inches="tight")
        plt.close(fig)
    return fig


def plot_time_series(time_series, filepath=None):
    """Relative change and kinetic energy against time."""
    df = time_series.to_dataframe()
    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(10, 4))

    ax1.semilogy(df["time"], df["rel_change"])
    ax1.set_xlabel("t")
    ax1.set_ylabel("relative change")

    ax2.plot(df["time"], df["energy"])
    ax2.set_xlabel("t")
    ax2.set_ylabel("kinetic energy")
    fig.tight_layout()

    if filepath is not None:
        fig.savefig(filepath, dpi=200, bbox_inches="tight")
        plt.close(fig)
    return fig
