"""
MeshModel class module.

This module contains the MeshModel class that represents a complete mesh with
nodes, elements and boundary ids, and the BoundaryInfo table that tags element
sides, edges and nodes with integer boundary ids.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

import numpy as np

from fem_elasticity.core.mesh.entities import MeshElement, Node


class BoundaryInfo:
    """
    Integer boundary ids attached to element sides, element edges and nodes.

    Sides and edges are addressed by ``(element_id, local_index)`` using the
    local numbering of the reference element.
    """

    def __init__(self):
        self._side_ids: Dict[Tuple[int, int], Set[int]] = defaultdict(set)
        self._edge_ids: Dict[Tuple[int, int], Set[int]] = defaultdict(set)
        self._node_ids: Dict[int, Set[int]] = defaultdict(set)

    def add_side(self, element_id: int, side: int, boundary_id: int) -> None:
        self._side_ids[(element_id, side)].add(int(boundary_id))

    def add_edge(self, element_id: int, edge: int, boundary_id: int) -> None:
        self._edge_ids[(element_id, edge)].add(int(boundary_id))

    def add_node(self, node_id: int, boundary_id: int) -> None:
        self._node_ids[node_id].add(int(boundary_id))

    def side_boundary_ids(self, element_id: int, side: int) -> FrozenSet[int]:
        return frozenset(self._side_ids.get((element_id, side), ()))

    def get_boundary_ids(self) -> Set[int]:
        """All boundary ids present on this mesh (sides, edges and nodes)."""
        ids: Set[int] = set()
        for table in (self._side_ids, self._edge_ids, self._node_ids):
            for values in table.values():
                ids |= values
        return ids

    def boundary_node_ids(self, boundary_ids: Iterable[int], mesh: "MeshModel") -> Set[int]:
        """Ids of the nodes lying on any side, edge or node tagged with ``boundary_ids``.

        Parameters
        ----------
        boundary_ids : iterable of int
            Boundary ids to look up.
        mesh : MeshModel
            Mesh the table belongs to, used to resolve side and edge nodes.

        Returns
        -------
        set of int
            Node ids.
        """
        wanted = set(boundary_ids)
        node_ids: Set[int] = set()
        if not wanted:
            return node_ids

        for (element_id, side), ids in self._side_ids.items():
            if ids & wanted:
                node_ids.update(mesh.side_node_ids(element_id, side))
        for (element_id, edge), ids in self._edge_ids.items():
            if ids & wanted:
                node_ids.update(mesh.edge_node_ids(element_id, edge))
        for node_id, ids in self._node_ids.items():
            if ids & wanted:
                node_ids.add(node_id)
        return node_ids

    def __repr__(self):
        return f"<BoundaryInfo ids={sorted(self.get_boundary_ids())}>"


class MeshModel:
    """
    Represents a mesh composed of nodes and connectivity elements.

    Attributes
    ----------
    nodes : list of Node
        Nodes of the mesh. Use add_node() to add new nodes.
    elements : list of MeshElement
        Elements of the mesh. Use add_element() to add new elements.
    dim : int
        Spatial dimension of the mesh (1, 2 or 3).
    boundary_info : BoundaryInfo
        Boundary id table.
    """

    def __init__(
        self,
        nodes: Iterable[Node] | None = None,
        elements: Optional[List[MeshElement]] = None,
        dim: Optional[int] = None,
    ):
        self.nodes: List[Node] = []
        self.elements: List[MeshElement] = []
        self.node_map: Dict[int, Node] = {}
        self.element_map: Dict[int, MeshElement] = {}
        self.boundary_info = BoundaryInfo()
        self._dim = dim

        self._node_id_to_index_cache: Optional[Dict[int, int]] = None
        self._boundary_sides_cache: Optional[Dict[int, List[int]]] = None

        for node in nodes or []:
            self.add_node(node)
        for element in elements or []:
            self.add_element(element)

    @property
    def dim(self) -> int:
        if self._dim is not None:
            return self._dim
        from fem_elasticity.elements import ElementFactory

        if not self.elements:
            raise ValueError("Cannot infer the dimension of an empty mesh")
        return max(ElementFactory.get(e.element_type).dim for e in self.elements)

    def add_node(self, node: Node) -> Node:
        if node.id is None:
            node.id = len(self.nodes)
        if node.id in self.node_map:
            raise ValueError(f"Duplicate node ID {node.id}")
        self.nodes.append(node)
        self.node_map[node.id] = node
        self._node_id_to_index_cache = None
        return node

    def add_element(self, element: MeshElement) -> MeshElement:
        if element.id is None:
            element.id = len(self.elements)
        if element.id in self.element_map:
            raise ValueError(f"Duplicate element ID {element.id}")
        for node in element.nodes:
            if node.id not in self.node_map:
                raise ValueError(f"Element {element.id} references unknown node {node.id}")
        self.elements.append(element)
        self.element_map[element.id] = element
        self._boundary_sides_cache = None
        return element

    @property
    def node_id_to_index(self) -> Dict[int, int]:
        """Mapping from node IDs to consecutive array indices (0-based)."""
        if self._node_id_to_index_cache is None:
            self._node_id_to_index_cache = {node.id: idx for idx, node in enumerate(self.nodes)}
        return self._node_id_to_index_cache

    def get_node_index(self, node_id: int) -> int:
        return self.node_id_to_index[node_id]

    def node_indices(self, element: MeshElement) -> np.ndarray:
        """Array indices of the nodes of ``element``, in local order."""
        return np.array([self.node_id_to_index[n.id] for n in element.nodes], dtype=int)

    def side_node_ids(self, element_id: int, side: int) -> List[int]:
        from fem_elasticity.elements import ElementFactory

        element = self.element_map[element_id]
        local = ElementFactory.get(element.element_type).sides[side]
        return [element.nodes[i].id for i in local]

    def edge_node_ids(self, element_id: int, edge: int) -> List[int]:
        from fem_elasticity.elements import ElementFactory

        element = self.element_map[element_id]
        local = ElementFactory.get(element.element_type).edges[edge]
        return [element.nodes[i].id for i in local]

    def boundary_sides(self, element: MeshElement) -> List[int]:
        """Local indices of the sides of ``element`` that have no neighbor."""
        if self._boundary_sides_cache is None:
            self._boundary_sides_cache = self._find_boundary_sides()
        return self._boundary_sides_cache.get(element.id, [])

    def _find_boundary_sides(self) -> Dict[int, List[int]]:
        from fem_elasticity.elements import ElementFactory

        owners: Dict[FrozenSet[int], List[Tuple[int, int]]] = defaultdict(list)
        for element in self.elements:
            ref = ElementFactory.get(element.element_type)
            for side in range(ref.n_sides):
                key = frozenset(self.side_node_ids(element.id, side))
                owners[key].append((element.id, side))

        boundary: Dict[int, List[int]] = defaultdict(list)
        for sides in owners.values():
            if len(sides) == 1:
                element_id, side = sides[0]
                boundary[element_id].append(side)
        for sides in boundary.values():
            sides.sort()
        return dict(boundary)

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def elements_count(self) -> int:
        return len(self.elements)

    @property
    def coords_array(self) -> np.ndarray:
        return np.array([node.coords for node in self.nodes])

    def __repr__(self) -> str:
        return (
            f"<MeshModel dim={self._dim} nodes={self.node_count} "
            f"elements={self.elements_count} boundary_ids={sorted(self.boundary_info.get_boundary_ids())}>"
        )
