"""
Mesh2D: Core data layout for the P2/P1 finite element solver (2D, triangles).

This class holds the vertex arena, the triangles with their P2 midpoint nodes,
the labeled boundary edges and the adjacency needed to trace characteristics.

Indexing Conventions:
- Vertices live in a single arena. Corners come first (0 to nv-1), midpoints are
  appended while the P2 nodes are synthesized (nv to n_p2-1).
- Triangles store vertex indices, never vertex objects. Local node il = 0, 1, 2 are
  the corners, il = 3, 4, 5 the midpoints of the edges opposite corners 0, 1, 2.
- Global degrees of freedom:
    * [0, n)          velocity-x at every P2 node
    * [n, 2n)         velocity-y at every P2 node
    * [2n, 2n + nv)   pressure at the corners (P1)
  where n = n_p2.

Boundary Labels:
- 0 = interior. Boundary edges carry a domain tag (10 inlet, 20 wall, 30 outlet, ...)
  that is copied to both end vertices and to the edge midpoint.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np

log = logging.getLogger(__name__)


@dataclass
class Vertex:
    x: float
    y: float
    index: int
    label: int = 0


@dataclass
class Triangle:
    index: int
    corners: Tuple[int, int, int]
    area: float
    midpoints: List[int] = field(default_factory=lambda: [-1, -1, -1])

    @property
    def nodes(self) -> Tuple[int, ...]:
        """The six P2 node ids (corners then midpoints)."""
        return tuple(self.corners) + tuple(self.midpoints)


@dataclass
class Edge:
    v0: int
    v1: int
    label: int


def heron_area(p0, p1, p2) -> float:
    """Triangle area from its three edge lengths."""
    a = np.hypot(p1[0] - p0[0], p1[1] - p0[1])
    b = np.hypot(p2[0] - p1[0], p2[1] - p1[1])
    c = np.hypot(p0[0] - p2[0], p0[1] - p2[1])
    s = 0.5 * (a + b + c)
    # Rounding can push the product slightly negative for slivers
    return float(np.sqrt(max(s * (s - a) * (s - b) * (s - c), 0.0)))


def _edge_key(s1: int, s2: int) -> Tuple[int, int]:
    return (s1, s2) if s1 > s2 else (s2, s1)


class Mesh2D:
    """Triangular mesh with P2 midpoints, boundary labels and adjacency.

    Parameters
    ----------
    points : array_like (nv, 2)
        Corner coordinates.
    triangles : array_like (nt, 3)
        0-based corner indices per triangle.
    edges : array_like (ne, 2)
        0-based vertex pairs of the labeled boundary edges.
    edge_labels : array_like (ne,)
        Boundary label of every edge.
    outflow_label : int
        Label of the outflow boundary. Triangles touching it form the fallback
        search set for characteristics leaving through the outlet.
    """

    def __init__(self, points, triangles, edges=None, edge_labels=None, outflow_label=30):
        points = np.asarray(points, dtype=np.float64)
        triangles = np.asarray(triangles, dtype=np.int64)
        if points.ndim != 2 or points.shape[1] < 2:
            raise ValueError(f"points must have shape (nv, 2), got {points.shape}")
        if triangles.ndim != 2 or triangles.shape[1] != 3:
            raise ValueError(f"triangles must have shape (nt, 3), got {triangles.shape}")
        if triangles.size and (triangles.min() < 0 or triangles.max() >= len(points)):
            raise ValueError("triangle corner index out of range")

        if edges is None:
            edges = np.zeros((0, 2), dtype=np.int64)
            edge_labels = np.zeros(0, dtype=np.int64)
        edges = np.asarray(edges, dtype=np.int64).reshape(-1, 2)
        edge_labels = np.asarray(edge_labels, dtype=np.int64).reshape(-1)
        if len(edges) != len(edge_labels):
            raise ValueError("edges and edge_labels must have the same length")

        self.outflow_label = outflow_label

        # --- Vertex arena (corners first) ---
        self.vertices: List[Vertex] = [
            Vertex(float(x), float(y), i) for i, (x, y) in enumerate(points[:, :2])
        ]
        self.nv = len(self.vertices)

        # --- Triangles ---
        self.triangles: List[Triangle] = []
        for k, (i0, i1, i2) in enumerate(triangles):
            self.triangles.append(self._build_triangle(k, int(i0), int(i1), int(i2)))
        self.nt = len(self.triangles)

        # --- Boundary edges ---
        self.edges: List[Edge] = [
            Edge(int(a), int(b), int(lab)) for (a, b), lab in zip(edges, edge_labels)
        ]
        self.ne = len(self.edges)

        # --- Adjacency ---
        self.neighbors: List[List[int]] = [[] for _ in range(self.nt)]
        self.outflow_triangles: List[int] = []

        self.n_p2 = self._synthesize_midpoints()
        self._compute_neighbors()
        self._cache_arrays()

        log.info(
            f"Mesh: nv={self.nv} nt={self.nt} ne={self.ne} "
            f"n_p2={self.n_p2} area={self.areas.sum():.6g}"
        )

    # ----------------------------------------------------------
    #   Construction
    # ----------------------------------------------------------
    def _build_triangle(self, k: int, i0: int, i1: int, i2: int) -> Triangle:
        p0, p1, p2 = (self.vertices[i] for i in (i0, i1, i2))
        area = heron_area((p0.x, p0.y), (p1.x, p1.y), (p2.x, p2.y))
        if not area > 0.0:
            raise ValueError(f"Triangle {k} ({i0}, {i1}, {i2}) is degenerate (area={area})")

        signed = (p1.x - p0.x) * (p2.y - p0.y) - (p1.y - p0.y) * (p2.x - p0.x)
        if signed < 0:
            log.debug(f"Triangle {k} is clockwise, swapping corners 1 and 2")
            i1, i2 = i2, i1
        return Triangle(index=k, corners=(i0, i1, i2), area=area)

    def _synthesize_midpoints(self) -> int:
        """Create the shared P2 midpoints and propagate the boundary labels.

        Returns
        -------
        int
            Total number of P2 nodes.
        """
        boundary = {}
        for e in self.edges:
            key = _edge_key(e.v0, e.v1)
            boundary[key] = e.label
            self.vertices[e.v0].label = e.label
            self.vertices[e.v1].label = e.label

        midpoint_of = {}
        self._midpoint_edges = []
        n = self.nv
        for tri in self.triangles:
            for a in range(3):
                s1 = tri.corners[(a + 1) % 3]
                s2 = tri.corners[(a + 2) % 3]
                key = _edge_key(s1, s2)

                if key not in midpoint_of:
                    v1, v2 = self.vertices[s1], self.vertices[s2]
                    mid = Vertex(0.5 * (v1.x + v2.x), 0.5 * (v1.y + v2.y), n)
                    mid.label = boundary.get(key, 0)
                    self.vertices.append(mid)
                    self._midpoint_edges.append(key)
                    midpoint_of[key] = n
                    n += 1

                tri.midpoints[a] = midpoint_of[key]

                if boundary.get(key) == self.outflow_label and (
                    not self.outflow_triangles or self.outflow_triangles[-1] != tri.index
                ):
                    self.outflow_triangles.append(tri.index)

        return n

    def _compute_neighbors(self):
        """Neighbors are the triangles sharing at least one corner."""
        incident = [[] for _ in range(self.nv)]
        for tri in self.triangles:
            for c in tri.corners:
                incident[c].append(tri.index)

        for tri in self.triangles:
            found = set()
            for c in tri.corners:
                found.update(incident[c])
            found.discard(tri.index)
            self.neighbors[tri.index] = sorted(found)

    def _cache_arrays(self):
        self.p2_points = np.array([[v.x, v.y] for v in self.vertices], dtype=np.float64)
        self.labels = np.array([v.label for v in self.vertices], dtype=np.int64)
        self.connectivity = np.array(
            [tri.nodes for tri in self.triangles], dtype=np.int64
        ).reshape(-1, 6)
        self.corner_coordinates = self.p2_points[self.connectivity[:, :3]]
        self.areas = np.array([tri.area for tri in self.triangles], dtype=np.float64)
        self.midpoint_edges = np.array(self._midpoint_edges, dtype=np.int64).reshape(-1, 2)

    # ----------------------------------------------------------
    #   Basic info
    # ----------------------------------------------------------
    @property
    def n_dofs(self) -> int:
        """Size of the global system: 2 * n_p2 + nv."""
        return 2 * self.n_p2 + self.nv

    @property
    def points(self) -> np.ndarray:
        """Corner coordinates (nv, 2)."""
        return self.p2_points[: self.nv]

    def node(self, k: int, il: int) -> int:
        """Global node id of local node il (0-5) of triangle k."""
        if il < 3:
            return self.triangles[k].corners[il]
        return self.triangles[k].midpoints[il - 3]

    def local_to_global(self) -> np.ndarray:
        """Global dof index of the 15 local dofs of every triangle, shape (nt, 15)."""
        n = self.n_p2
        conn = self.connectivity
        return np.hstack([conn, conn + n, conn[:, :3] + 2 * n])

    def triangle_corners(self, k: int) -> np.ndarray:
        """Corner coordinates (3, 2) of triangle k."""
        return self.corner_coordinates[k]

    def boundary_nodes(self, labels=None) -> np.ndarray:
        """P2 node ids carrying a boundary label (optionally restricted to ``labels``)."""
        if labels is None:
            return np.nonzero(self.labels != 0)[0]
        return np.nonzero(np.isin(self.labels, list(labels)))[0]

    def neighbor_counts(self) -> np.ndarray:
        return np.array([len(nb) for nb in self.neighbors], dtype=np.int64)
