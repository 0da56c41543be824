"""Structured triangulation of a rectangle with labeled sides."""

import numpy as np

from .mesh_data import Mesh2D

# Sides are labeled in this order; a corner shared by two sides keeps the last label,
# so every corner of the rectangle carries the top or bottom (wall) label
SIDE_ORDER = ("left", "right", "bottom", "top")

DEFAULT_LABELS = {"bottom": 20, "right": 30, "top": 20, "left": 10}


def rectangle_mesh(
    x_range=(0.0, 10.0),
    y_range=(0.5, 1.0),
    nx: int = 20,
    ny: int = 4,
    labels=None,
    outflow_label: int = 30,
) -> Mesh2D:
    """Split every cell of an nx × ny grid into two counter-clockwise triangles.

    Parameters
    ----------
    x_range, y_range : tuple of float
        Rectangle extent.
    nx, ny : int
        Number of cells per direction.
    labels : dict, optional
        Boundary label per side ("bottom", "right", "top", "left"). A side mapped to
        0 or missing gets no boundary edges.
    """
    if nx < 1 or ny < 1:
        raise ValueError(f"nx and ny must be positive, got nx={nx}, ny={ny}")
    if labels is None:
        labels = DEFAULT_LABELS

    xs = np.linspace(x_range[0], x_range[1], nx + 1)
    ys = np.linspace(y_range[0], y_range[1], ny + 1)
    X, Y = np.meshgrid(xs, ys, indexing="ij")
    points = np.column_stack([X.ravel(), Y.ravel()])

    def vid(i, j):
        return i * (ny + 1) + j

    triangles = []
    for i in range(nx):
        for j in range(ny):
            a, b = vid(i, j), vid(i + 1, j)
            c, d = vid(i + 1, j + 1), vid(i, j + 1)
            triangles.append((a, b, c))
            triangles.append((a, c, d))

    sides = {
        "bottom": [(vid(i, 0), vid(i + 1, 0)) for i in range(nx)],
        "right": [(vid(nx, j), vid(nx, j + 1)) for j in range(ny)],
        "top": [(vid(i + 1, ny), vid(i, ny)) for i in reversed(range(nx))],
        "left": [(vid(0, j + 1), vid(0, j)) for j in reversed(range(ny))],
    }

    edges, edge_labels = [], []
    for side in SIDE_ORDER:
        label = int(labels.get(side, 0))
        if label == 0:
            continue
        edges.extend(sides[side])
        edge_labels.extend([label] * len(sides[side]))

    return Mesh2D(
        points=points,
        triangles=np.array(triangles, dtype=np.int64),
        edges=np.array(edges, dtype=np.int64).reshape(-1, 2),
        edge_labels=np.array(edge_labels, dtype=np.int64),
        outflow_label=outflow_label,
    )
