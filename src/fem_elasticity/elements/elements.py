from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Dict, Tuple

import numpy as np

from fem_elasticity.core.mesh.entities import ElementType
from fem_elasticity.core.quadrature import QuadratureRule


class ElementFamily(IntEnum):
    """Topological dimension of a reference element."""

    POINT = 0
    LINE = 1
    PLANE = 2
    SOLID = 3


class ReferenceElement(ABC):
    """First-order Lagrange reference element.

    Subclasses define the reference node coordinates, the shape functions and
    their derivatives with respect to the natural coordinates, and the local
    node lists of their sides and edges.

    Attributes
    ----------
    name : str
        Element name (e.g. "HEXA8").
    element_type : ElementType
        Mesh cell type handled by this element.
    element_family : ElementFamily
        Topological dimension.
    reference_nodes : np.ndarray
        Natural coordinates of the nodes (n_nodes × dim).
    sides : tuple of tuple of int
        Local node indices of each side, ordered so that the side normal
        computed from them points outwards.
    side_types : tuple of ElementType
        Cell type of each side.
    edges : tuple of tuple of int
        Local node indices of each edge (3D elements only).
    """

    name: str = ""
    element_type: ElementType = None
    element_family: ElementFamily = None
    reference_nodes: np.ndarray = np.zeros((0, 0))
    sides: Tuple[Tuple[int, ...], ...] = ()
    side_types: Tuple[ElementType, ...] = ()
    edges: Tuple[Tuple[int, int], ...] = ()

    @property
    def dim(self) -> int:
        return int(self.element_family)

    @property
    def n_nodes(self) -> int:
        return self.reference_nodes.shape[0]

    @property
    def n_sides(self) -> int:
        return len(self.sides)

    @abstractmethod
    def shape_functions(self, xi: np.ndarray) -> np.ndarray:
        """Shape function values at natural coordinates ``xi`` (n_nodes,)."""
        raise NotImplementedError

    @abstractmethod
    def shape_function_derivatives(self, xi: np.ndarray) -> np.ndarray:
        """Natural derivatives ∂N/∂ξ at ``xi`` (n_nodes × dim)."""
        raise NotImplementedError

    @abstractmethod
    def quadrature(self, order: int) -> QuadratureRule:
        """Default quadrature rule integrating degree ``order`` exactly."""
        raise NotImplementedError

    def side_element(self, side: int) -> "ReferenceElement":
        return ElementFactory.get(self.side_types[side])

    def centroid(self) -> np.ndarray:
        return self.reference_nodes.mean(axis=0)

    def __repr__(self):
        return f"<ReferenceElement {self.name}>"


class ElementFactory:
    """Registry of reference elements keyed by mesh cell type."""

    _cache: Dict[ElementType, ReferenceElement] = {}

    @staticmethod
    def get(element_type: ElementType) -> ReferenceElement:
        from .LINE import EDGE2, POINT1
        from .QUAD import QUAD4, TRI3
        from .SOLID import HEXA8, WEDGE6

        ELEMENT_MAP = {
            ElementType.point: POINT1,
            ElementType.line: EDGE2,
            ElementType.triangle: TRI3,
            ElementType.quad: QUAD4,
            ElementType.hexahedron: HEXA8,
            ElementType.wedge: WEDGE6,
        }

        element_type = ElementType(element_type)
        if element_type not in ElementFactory._cache:
            if element_type not in ELEMENT_MAP:
                raise ValueError(f"Unsupported element type: {element_type.name}")
            ElementFactory._cache[element_type] = ELEMENT_MAP[element_type]()
        return ElementFactory._cache[element_type]
