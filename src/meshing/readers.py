"""Mesh readers and the mesh factory used by the solver runner.

Supported inputs:
- FreeFem ``.msh`` text files (header ``nv nt ne``, 1-based indices)
- Gmsh files through meshio (``triangle`` + ``line`` cells with physical tags)
- Structured rectangles generated in memory (see ``structured.py``)
"""

import logging
from pathlib import Path

import meshio
import numpy as np

from .mesh_data import Mesh2D
from .structured import rectangle_mesh

log = logging.getLogger(__name__)


def read_freefem_msh(filename, outflow_label: int = 30) -> Mesh2D:
    """Read a FreeFem ``.msh`` file.

    Layout::

        nv nt ne
        x y label        (nv lines)
        i j k label      (nt lines, 1-based)
        i j label        (ne lines, 1-based)

    Vertex labels in the file are ignored; boundary labels come from the edges.
    """
    tokens = Path(filename).read_text().split()
    if len(tokens) < 3:
        raise ValueError(f"{filename}: missing 'nv nt ne' header")

    nv, nt, ne = (int(t) for t in tokens[:3])
    expected = 3 + 3 * nv + 4 * nt + 3 * ne
    if len(tokens) < expected:
        raise ValueError(
            f"{filename}: expected {expected} tokens for nv={nv} nt={nt} ne={ne}, "
            f"found {len(tokens)}"
        )

    pos = 3
    vert = np.array(tokens[pos:pos + 3 * nv], dtype=np.float64).reshape(nv, 3)
    pos += 3 * nv
    tri = np.array(tokens[pos:pos + 4 * nt], dtype=np.int64).reshape(nt, 4)
    pos += 4 * nt
    edg = np.array(tokens[pos:pos + 3 * ne], dtype=np.int64).reshape(ne, 3)

    log.info(f"Read FreeFem mesh {filename}: nv={nv} nt={nt} ne={ne}")
    return Mesh2D(
        points=vert[:, :2],
        triangles=tri[:, :3] - 1,
        edges=edg[:, :2] - 1,
        edge_labels=edg[:, 2],
        outflow_label=outflow_label,
    )


def read_gmsh(filename, outflow_label: int = 30) -> Mesh2D:
    """Read a Gmsh mesh with meshio.

    Linear triangles become the mesh; line elements tagged with a physical group
    become the labeled boundary edges. Quadratic cells are reduced to their corners
    since the P2 midpoints are synthesized by ``Mesh2D``.
    """
    mesh: meshio.Mesh = meshio.read(filename)

    if "gmsh:physical" not in mesh.cell_data:
        raise ValueError(f"{filename}: mesh file has no physical tags")
    # One tag array per cell block, aligned with mesh.cells
    tags = mesh.cell_data["gmsh:physical"]

    triangles = np.zeros((0, 3), dtype=np.int64)
    edges = np.zeros((0, 2), dtype=np.int64)
    edge_labels = np.zeros(0, dtype=np.int64)

    for block, tag in zip(mesh.cells, tags):
        if block.type in ("triangle", "triangle6"):
            triangles = np.vstack([triangles, block.data[:, :3]])
        elif block.type in ("line", "line3"):
            edges = np.vstack([edges, block.data[:, :2]])
            edge_labels = np.concatenate([edge_labels, np.asarray(tag, dtype=np.int64)])

    if len(triangles) == 0:
        raise ValueError(f"{filename}: no triangle cells found")

    # Drop points not referenced by any triangle (e.g. geometry points)
    used = np.unique(triangles)
    remap = -np.ones(len(mesh.points), dtype=np.int64)
    remap[used] = np.arange(len(used))

    keep = np.all(remap[edges] >= 0, axis=1) if len(edges) else np.zeros(0, dtype=bool)

    log.info(f"Read Gmsh mesh {filename}: nv={len(used)} nt={len(triangles)} ne={int(keep.sum())}")
    return Mesh2D(
        points=mesh.points[used, :2],
        triangles=remap[triangles],
        edges=remap[edges[keep]],
        edge_labels=edge_labels[keep],
        outflow_label=outflow_label,
    )


def load_mesh(cfg) -> Mesh2D:
    """Build a mesh from a config mapping (Hydra ``mesh`` group).

    Parameters
    ----------
    cfg : mapping
        ``kind`` is one of "rectangle", "freefem" or "gmsh". File based kinds read
        ``path``; "rectangle" forwards ``x_range``, ``y_range``, ``nx``, ``ny`` and
        ``labels`` to ``rectangle_mesh``.
    """
    kind = str(cfg["kind"]).lower()
    outflow_label = int(cfg.get("outflow_label", 30))

    if kind == "rectangle":
        return rectangle_mesh(
            x_range=tuple(cfg["x_range"]),
            y_range=tuple(cfg["y_range"]),
            nx=int(cfg["nx"]),
            ny=int(cfg["ny"]),
            labels=dict(cfg["labels"]),
            outflow_label=outflow_label,
        )
    elif kind == "freefem":
        return read_freefem_msh(cfg["path"], outflow_label=outflow_label)
    elif kind == "gmsh":
        return read_gmsh(cfg["path"], outflow_label=outflow_label)
    else:
        raise ValueError(
            f"Unknown mesh kind: {cfg['kind']}. Use 'rectangle', 'freefem', or 'gmsh'."
        )
