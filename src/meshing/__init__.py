"""Triangular meshes with P2 midpoints for the characteristics solver."""

from .mesh_data import Mesh2D, Vertex, Triangle, Edge, heron_area
from .structured import rectangle_mesh
from .readers import read_freefem_msh, read_gmsh, load_mesh

__all__ = [
    "Mesh2D",
    "Vertex",
    "Triangle",
    "Edge",
    "heron_area",
    "rectangle_mesh",
    "read_freefem_msh",
    "read_gmsh",
    "load_mesh",
]
