"""Tests for the mesh model, boundary id table and structured generators."""

import numpy as np
import pytest

from fem_elasticity.core.config import BoundaryIdConfig, MeshConfig
from fem_elasticity.core.mesh import (
    BoundaryInfo,
    ElementType,
    MeshElement,
    MeshModel,
    Node,
    StructuredMesh,
    build_mesh,
)

IDS = BoundaryIdConfig()


def nodes_on(mesh, boundary_id):
    node_ids = mesh.boundary_info.boundary_node_ids([boundary_id], mesh)
    return np.array(sorted(mesh.node_map[n].coords.tolist() for n in node_ids))


class TestEntities:
    def test_node_pads_coordinates(self):
        node = Node([1.0, 2.0])
        np.testing.assert_array_equal(node.coords, [1.0, 2.0, 0.0])
        assert node.z == 0.0

    def test_node_too_many_coordinates(self):
        with pytest.raises(ValueError):
            Node([0, 0, 0, 0])

    def test_element_node_count(self):
        nodes = [Node([0, 0], id=i) for i in range(3)]
        with pytest.raises(ValueError, match="requires 4 nodes"):
            MeshElement(nodes, ElementType.quad)


class TestMeshModel:
    def test_auto_ids(self):
        mesh = MeshModel()
        a = mesh.add_node(Node([0.0]))
        b = mesh.add_node(Node([1.0]))
        element = mesh.add_element(MeshElement([a, b], ElementType.line))
        assert (a.id, b.id, element.id) == (0, 1, 0)
        assert mesh.dim == 1

    def test_duplicate_node(self):
        mesh = MeshModel()
        mesh.add_node(Node([0.0], id=3))
        with pytest.raises(ValueError):
            mesh.add_node(Node([1.0], id=3))

    def test_unknown_node(self):
        mesh = MeshModel()
        a = mesh.add_node(Node([0.0]))
        with pytest.raises(ValueError):
            mesh.add_element(MeshElement([a, Node([1.0], id=7)], ElementType.line))

    def test_empty_mesh_dimension(self):
        with pytest.raises(ValueError):
            MeshModel().dim

    def test_node_indices_follow_storage_order(self):
        mesh = MeshModel()
        a = mesh.add_node(Node([0.0], id=10))
        b = mesh.add_node(Node([1.0], id=5))
        element = mesh.add_element(MeshElement([b, a], ElementType.line))
        np.testing.assert_array_equal(mesh.node_indices(element), [1, 0])

    def test_boundary_sides_exclude_shared(self):
        mesh = StructuredMesh.create_box(lx=2.0, nx=2)
        assert mesh.boundary_sides(mesh.elements[0]) == [0, 1, 3, 4, 5]
        assert mesh.boundary_sides(mesh.elements[1]) == [0, 1, 2, 3, 5]


class TestBoundaryInfo:
    def test_ids_from_all_entity_kinds(self):
        info = BoundaryInfo()
        info.add_side(0, 1, 4)
        info.add_edge(0, 2, 11)
        info.add_node(3, 10)
        assert info.get_boundary_ids() == {4, 10, 11}
        assert info.side_boundary_ids(0, 1) == frozenset({4})
        assert info.side_boundary_ids(0, 0) == frozenset()

    def test_node_ids_by_entity(self):
        mesh = StructuredMesh.create_box()
        mesh.boundary_info.add_edge(0, 0, IDS.edge)
        mesh.boundary_info.add_node(6, IDS.node)
        assert mesh.boundary_info.boundary_node_ids([IDS.edge], mesh) == {0, 1}
        assert mesh.boundary_info.boundary_node_ids([IDS.node], mesh) == {6}
        assert mesh.boundary_info.boundary_node_ids([], mesh) == set()


class TestStructuredMesh:
    def test_box_counts(self):
        mesh = StructuredMesh.create_box(lx=2.0, nx=2)
        assert mesh.node_count == 12
        assert mesh.elements_count == 2
        assert mesh.dim == 3
        assert mesh.boundary_info.get_boundary_ids() == {0, 1, 2, 3, 4, 5}

    def test_box_faces(self):
        mesh = StructuredMesh.create_box(lx=2.0, nx=2)
        min_x = nodes_on(mesh, IDS.min_x)
        assert min_x.shape == (4, 3)
        np.testing.assert_array_equal(min_x[:, 0], 0.0)
        max_x = nodes_on(mesh, IDS.max_x)
        np.testing.assert_array_equal(max_x[:, 0], 2.0)
        assert nodes_on(mesh, IDS.min_z).shape == (6, 3)

    def test_wedge_box(self):
        mesh = StructuredMesh.create_box(element_type=ElementType.wedge)
        assert mesh.elements_count == 2
        assert all(e.element_type == ElementType.wedge for e in mesh.elements)
        n_sides = sum(len(mesh.boundary_sides(e)) for e in mesh.elements)
        assert n_sides == 8
        assert mesh.boundary_info.get_boundary_ids() == {0, 1, 2, 3, 4, 5}

    def test_rectangle_ids(self):
        mesh = StructuredMesh.create_rectangle(width=2.0, nx=2)
        assert mesh.dim == 2
        assert mesh.boundary_info.get_boundary_ids() == {IDS.min_x, IDS.max_x, IDS.min_y, IDS.max_y}

    def test_line_ids(self):
        mesh = StructuredMesh.create_line(length=2.0, nx=4)
        assert mesh.node_count == 5
        assert mesh.boundary_info.get_boundary_ids() == {IDS.min_x, IDS.max_x}
        np.testing.assert_allclose(nodes_on(mesh, IDS.max_x), [[2.0, 0.0, 0.0]])

    def test_face_tags(self):
        mesh = StructuredMesh.create_box(
            lx=2.0, nx=2, face_tags={"traction": ["max_x"], "pressure": ["max_z"]}
        )
        last = mesh.elements[1]
        assert mesh.boundary_info.side_boundary_ids(last.id, 2) == {IDS.max_x, IDS.traction}
        top_ids = [mesh.boundary_info.side_boundary_ids(e.id, 5) for e in mesh.elements]
        assert all(IDS.pressure in ids for ids in top_ids)

    def test_custom_boundary_ids(self):
        ids = BoundaryIdConfig(min_x=40)
        mesh = StructuredMesh.create_box(boundary_ids=ids)
        assert 40 in mesh.boundary_info.get_boundary_ids()
        assert IDS.min_x not in mesh.boundary_info.get_boundary_ids()

    @pytest.mark.parametrize(
        "divisions, lengths, element_type",
        [
            ((1, 1), (1.0,), ElementType.quad),
            ((0,), (1.0,), ElementType.line),
            ((1,), (-1.0,), ElementType.line),
            ((1, 1), (1.0, 1.0), ElementType.hexahedron),
        ],
    )
    def test_invalid_arguments(self, divisions, lengths, element_type):
        with pytest.raises(ValueError):
            StructuredMesh(divisions, lengths, element_type)

    def test_build_mesh_from_config(self):
        config = MeshConfig(
            element_type="QUAD4",
            divisions=[3, 2],
            lengths=[3.0, 2.0],
            face_tags={"traction": ["max_x"]},
        )
        mesh = build_mesh(config)
        assert mesh.elements_count == 6
        assert IDS.traction in mesh.boundary_info.get_boundary_ids()
        np.testing.assert_allclose(mesh.coords_array.max(axis=0), [3.0, 2.0, 0.0])
