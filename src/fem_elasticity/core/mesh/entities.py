"""
Mesh entities module.

This module contains the fundamental building blocks for mesh representation:
- ElementType: Supported cell types
- Node: A point in 3D space
- MeshElement: A connectivity element defined by nodes
"""

from enum import IntEnum
from typing import Iterable, List, Optional, Sequence, Union

import numpy as np


class ElementType(IntEnum):
    """Enumeration of supported cell types.

    Values correspond to the VTK cell type constants.
    """

    point = 1
    line = 3
    triangle = 5
    quad = 9
    hexahedron = 12
    wedge = 13


ELEMENT_NODES_MAP = {
    ElementType.point: 1,
    ElementType.line: 2,
    ElementType.triangle: 3,
    ElementType.quad: 4,
    ElementType.hexahedron: 8,
    ElementType.wedge: 6,
}


class Node:
    """
    Represents a node with 3D coordinates.

    If fewer than 3 coordinates are provided, zeros are appended.

    Attributes
    ----------
    coords : np.ndarray
        Array of coordinates in the form [x, y, z].
    id : int or None
        Identifier of the node, assigned by the owning mesh when not given.
    """

    def __init__(self, coords: Union[Iterable[float], np.ndarray], id: Optional[int] = None):
        coords_arr = np.array(coords, dtype=float).ravel()
        if coords_arr.size > 3:
            raise ValueError(f"Node coordinates must have at most 3 components: {coords_arr}")
        if coords_arr.size < 3:
            coords_arr = np.concatenate((coords_arr, np.zeros(3 - coords_arr.size)))
        self.coords = coords_arr
        self.id = id

    @property
    def x(self) -> float:
        return self.coords[0]

    @property
    def y(self) -> float:
        return self.coords[1]

    @property
    def z(self) -> float:
        return self.coords[2]

    def __repr__(self):
        return f"<Node id={self.id} coords={self.coords.tolist()}>"


class MeshElement:
    """
    Represents a mesh element defined by node connectivity.

    Attributes
    ----------
    nodes : list of Node
        Nodes that form the element, in reference-element order.
    element_type : ElementType
        Cell type of the element.
    id : int or None
        Identifier of the element, assigned by the owning mesh when not given.
    """

    def __init__(
        self,
        nodes: Sequence[Node],
        element_type: ElementType,
        id: Optional[int] = None,
    ):
        element_type = ElementType(element_type)
        expected = ELEMENT_NODES_MAP[element_type]
        if len(nodes) != expected:
            raise ValueError(
                f"{element_type.name} element requires {expected} nodes, got {len(nodes)}"
            )
        self.nodes: List[Node] = list(nodes)
        self.element_type = element_type
        self.id = id

    @property
    def node_ids(self) -> List[int]:
        return [node.id for node in self.nodes]

    @property
    def node_coords(self) -> np.ndarray:
        return np.array([node.coords for node in self.nodes])

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    def __repr__(self):
        return f"<MeshElement id={self.id} type={self.element_type.name} nodes={self.node_ids}>"
