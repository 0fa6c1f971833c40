"""
Structured mesh generators.

Builds axis-aligned line, rectangle and box meshes on [0, Lx] × [0, Ly] × [0, Lz]
and tags their outer sides with the ``min_*``/``max_*`` boundary ids of a
:class:`~fem_elasticity.core.config.BoundaryIdConfig`.
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from fem_elasticity.core.config import BoundaryIdConfig, MeshConfig
from fem_elasticity.core.mesh.entities import ElementType, MeshElement, Node
from fem_elasticity.core.mesh.model import MeshModel

logger = logging.getLogger(__name__)

AXES = ("x", "y", "z")

ELEMENT_TYPE_BY_NAME = {
    "EDGE2": ElementType.line,
    "QUAD4": ElementType.quad,
    "HEXA8": ElementType.hexahedron,
    "WEDGE6": ElementType.wedge,
}


class StructuredMesh:
    """
    Generates structured 1D/2D/3D meshes and returns a MeshModel instance.

    Attributes
    ----------
    divisions : tuple of int
        Number of cells per direction, one entry per dimension.
    lengths : tuple of float
        Domain length per direction.
    element_type : ElementType
        Cell type. Box meshes may use WEDGE6, in which case every hexahedral
        cell is split into two prisms along its xy diagonal.
    boundary_ids : BoundaryIdConfig
        Boundary id table used to tag the outer sides.
    face_tags : dict
        Extra side tags, mapping a boundary-id name (e.g. ``"traction"``)
        to the faces (e.g. ``["max_x"]``) that receive it.
    """

    def __init__(
        self,
        divisions: Sequence[int],
        lengths: Sequence[float],
        element_type: ElementType,
        boundary_ids: Optional[BoundaryIdConfig] = None,
        face_tags: Optional[Dict[str, List[str]]] = None,
    ):
        if len(divisions) != len(lengths):
            raise ValueError("divisions and lengths must have the same number of entries")
        if not 1 <= len(divisions) <= 3:
            raise ValueError(f"Unsupported mesh dimension: {len(divisions)}")
        if any(n < 1 for n in divisions):
            raise ValueError(f"Divisions must be positive: {tuple(divisions)}")
        if any(length <= 0 for length in lengths):
            raise ValueError(f"Lengths must be positive: {tuple(lengths)}")

        self.divisions = tuple(int(n) for n in divisions)
        self.lengths = tuple(float(length) for length in lengths)
        self.element_type = ElementType(element_type)
        self.boundary_ids = boundary_ids or BoundaryIdConfig()
        self.face_tags = face_tags or {}

        expected = {1: (ElementType.line,), 2: (ElementType.quad,)}.get(
            self.dim, (ElementType.hexahedron, ElementType.wedge)
        )
        if self.element_type not in expected:
            raise ValueError(
                f"Element type {self.element_type.name} is not valid for a {self.dim}D mesh"
            )

    @property
    def dim(self) -> int:
        return len(self.divisions)

    def generate(self) -> MeshModel:
        """Generates and returns a MeshModel with the structured mesh"""
        mesh = MeshModel(dim=self.dim)
        shape = [n + 1 for n in self.divisions] + [1] * (3 - self.dim)
        axes = [np.linspace(0.0, L, n + 1) for L, n in zip(self.lengths, self.divisions)]
        axes += [np.zeros(1)] * (3 - self.dim)

        # x varies fastest
        for k in range(shape[2]):
            for j in range(shape[1]):
                for i in range(shape[0]):
                    mesh.add_node(Node([axes[0][i], axes[1][j], axes[2][k]]))

        def node(i, j=0, k=0):
            return mesh.nodes[i + shape[0] * (j + shape[1] * k)]

        cells = [range(n) for n in self.divisions] + [range(1)] * (3 - self.dim)
        for k in cells[2]:
            for j in cells[1]:
                for i in cells[0]:
                    for connectivity in self._cell_connectivity(node, i, j, k):
                        mesh.add_element(MeshElement(connectivity, self.element_type))

        self._tag_boundaries(mesh)
        logger.debug("Generated %r", mesh)
        return mesh

    def _cell_connectivity(self, node, i, j, k):
        if self.dim == 1:
            return [[node(i), node(i + 1)]]
        if self.dim == 2:
            return [[node(i, j), node(i + 1, j), node(i + 1, j + 1), node(i, j + 1)]]

        hexa = [
            node(i, j, k),
            node(i + 1, j, k),
            node(i + 1, j + 1, k),
            node(i, j + 1, k),
            node(i, j, k + 1),
            node(i + 1, j, k + 1),
            node(i + 1, j + 1, k + 1),
            node(i, j + 1, k + 1),
        ]
        if self.element_type == ElementType.hexahedron:
            return [hexa]
        return [
            [hexa[0], hexa[1], hexa[2], hexa[4], hexa[5], hexa[6]],
            [hexa[0], hexa[2], hexa[3], hexa[4], hexa[6], hexa[7]],
        ]

    def _face_names(self, coords: np.ndarray) -> List[str]:
        names = []
        for axis in range(self.dim):
            tol = 1e-10 * self.lengths[axis]
            if np.all(np.abs(coords[:, axis]) <= tol):
                names.append(f"min_{AXES[axis]}")
            elif np.all(np.abs(coords[:, axis] - self.lengths[axis]) <= tol):
                names.append(f"max_{AXES[axis]}")
        return names

    def _tag_boundaries(self, mesh: MeshModel) -> None:
        extra: Dict[str, List[int]] = {}
        for id_name, faces in self.face_tags.items():
            boundary_id = getattr(self.boundary_ids, id_name)
            for face in faces:
                extra.setdefault(face, []).append(boundary_id)

        for element in mesh.elements:
            for side in mesh.boundary_sides(element):
                node_ids = mesh.side_node_ids(element.id, side)
                coords = np.array([mesh.node_map[n].coords for n in node_ids])
                for face in self._face_names(coords):
                    mesh.boundary_info.add_side(element.id, side, getattr(self.boundary_ids, face))
                    for boundary_id in extra.get(face, []):
                        mesh.boundary_info.add_side(element.id, side, boundary_id)

    @classmethod
    def create_line(cls, length: float = 1.0, nx: int = 1, **kwargs) -> MeshModel:
        return cls((nx,), (length,), ElementType.line, **kwargs).generate()

    @classmethod
    def create_rectangle(
        cls, width: float = 1.0, height: float = 1.0, nx: int = 1, ny: int = 1, **kwargs
    ) -> MeshModel:
        return cls((nx, ny), (width, height), ElementType.quad, **kwargs).generate()

    @classmethod
    def create_box(
        cls,
        lx: float = 1.0,
        ly: float = 1.0,
        lz: float = 1.0,
        nx: int = 1,
        ny: int = 1,
        nz: int = 1,
        element_type: ElementType = ElementType.hexahedron,
        **kwargs,
    ) -> MeshModel:
        return cls((nx, ny, nz), (lx, ly, lz), element_type, **kwargs).generate()


def build_mesh(config: MeshConfig, boundary_ids: Optional[BoundaryIdConfig] = None) -> MeshModel:
    """Build the structured mesh described by a mesh configuration."""
    return StructuredMesh(
        divisions=config.divisions,
        lengths=config.lengths,
        element_type=ELEMENT_TYPE_BY_NAME[config.element_type],
        boundary_ids=boundary_ids,
        face_tags=config.face_tags,
    ).generate()
