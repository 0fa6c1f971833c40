"""
Mesh package for fem_elasticity.

This package provides the mesh handling needed by the assembly loop:
- Mesh entities (Node, MeshElement, ElementType)
- Mesh model (MeshModel, BoundaryInfo)
- Structured generators (StructuredMesh, build_mesh)

Usage
-----
>>> from fem_elasticity.core.mesh import StructuredMesh
>>> mesh = StructuredMesh.create_box(lx=2.0, nx=2)
>>> sorted(mesh.boundary_info.get_boundary_ids())
[0, 1, 2, 3, 4, 5]
"""

from fem_elasticity.core.mesh.entities import ELEMENT_NODES_MAP, ElementType, MeshElement, Node
from fem_elasticity.core.mesh.generators import StructuredMesh, build_mesh
from fem_elasticity.core.mesh.model import BoundaryInfo, MeshModel

__all__ = [
    "ELEMENT_NODES_MAP",
    "ElementType",
    "MeshElement",
    "Node",
    "BoundaryInfo",
    "MeshModel",
    "StructuredMesh",
    "build_mesh",
]
