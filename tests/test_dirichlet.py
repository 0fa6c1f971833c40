"""Tests for variable setup and Dirichlet boundary registration.

Covers the per-dimension aliasing of the displacement variables, the three
constraint groups (clamped, Ux only, Uy only), the cross-partition union of
boundary ids and the companion velocity constraints of first-order solvers.
"""

import numpy as np
import pytest

from fem_elasticity.core.bc import (
    BoundaryConditionManager,
    DirichletBoundary,
    DirichletCondition,
    VariableOrdering,
    ZeroFunction,
)
from fem_elasticity.core.config import BoundaryIdConfig, ElasticitySimulationConfig
from fem_elasticity.core.mesh import StructuredMesh
from fem_elasticity.physics.elasticity import ElasticitySystem
from fem_elasticity.solvers.time_solver import EulerSolver, NewmarkSolver

IDS = BoundaryIdConfig()


class FakeComm:
    """Communicator stand-in whose other ranks report ``remote_ids``."""

    def __init__(self, *remote_ids):
        self.remote_ids = [set(ids) for ids in remote_ids]
        self.gathered = []

    def allgather(self, obj):
        self.gathered.append(obj)
        return [obj] + self.remote_ids


def constrained_vars(system):
    n_nodes = system.mesh.node_count
    return sorted({dof // n_nodes for dof in system.dof_map.constraints})


class TestVariableAliasing:
    def test_3d(self):
        system = ElasticitySystem(StructuredMesh.create_box())
        system.init_data()
        assert system.displacement_vars == (0, 1, 2)
        assert [system.variable_name(v) for v in range(system.n_vars)] == ["Ux", "Uy", "Uz"]
        assert system.second_order_vars == [0, 1, 2]
        assert system.variable_number("Uz") == 2
        with pytest.raises(KeyError):
            system.variable_number("T")

    def test_2d(self):
        system = ElasticitySystem(StructuredMesh.create_rectangle())
        system.init_data()
        assert system.displacement_vars == (0, 1, 1)
        assert system.n_vars == 2

    def test_1d(self):
        system = ElasticitySystem(StructuredMesh.create_line())
        system.init_data()
        assert system.displacement_vars == (0, 0, 0)
        assert system.n_vars == 1

    def test_unsupported_dimension(self):
        mesh = StructuredMesh.create_box()
        mesh._dim = 4
        with pytest.raises(ValueError, match="Unsupported spatial dimension"):
            ElasticitySystem(mesh)

    def test_add_variable_after_init(self):
        system = ElasticitySystem(StructuredMesh.create_line())
        system.init_data()
        with pytest.raises(RuntimeError):
            system.add_variable("T")
        with pytest.raises(RuntimeError):
            system.init_data()


class TestDirichletSelection:
    @pytest.mark.parametrize(
        "mesh, n_constrained",
        [
            (StructuredMesh.create_box(lx=2.0, nx=2), 3 * 4),
            (StructuredMesh.create_rectangle(width=2.0, nx=2), 2 * 2),
            (StructuredMesh.create_line(length=2.0, nx=2), 1),
        ],
        ids=["3D", "2D", "1D"],
    )
    def test_clamped_min_x(self, mesh, n_constrained):
        system = ElasticitySystem(mesh)
        system.init_data()
        constraints = system.dof_map.constraints
        assert len(constraints) == n_constrained
        assert all(value == 0.0 for value in constraints.values())
        for dof in constraints:
            node = system.mesh.nodes[dof % mesh.node_count]
            assert node.x == 0.0

    def test_single_boundary_for_clamped_ids(self):
        system = ElasticitySystem(StructuredMesh.create_box())
        system.init_data()
        (boundary,) = system.dof_map.dirichlet_boundaries
        assert boundary.boundary_ids == {IDS.min_x}
        assert boundary.variables == (0, 1, 2)
        assert boundary.ordering == VariableOrdering.LOCAL
        assert isinstance(boundary.function, ZeroFunction)

    def test_no_dirichlet_ids(self):
        mesh = StructuredMesh.create_box(boundary_ids=BoundaryIdConfig(min_x=40))
        system = ElasticitySystem(mesh)
        system.init_data()
        assert system.dof_map.dirichlet_boundaries == []
        assert system.dof_map.constraints == {}

    def test_node_and_edge_ids_clamp_all_components(self):
        mesh = StructuredMesh.create_box(boundary_ids=BoundaryIdConfig(min_x=40))
        mesh.boundary_info.add_node(6, IDS.node)
        mesh.boundary_info.add_edge(0, 0, IDS.edge)
        system = ElasticitySystem(mesh)
        system.init_data()
        (boundary,) = system.dof_map.dirichlet_boundaries
        assert boundary.boundary_ids == {IDS.node, IDS.edge}
        # nodes 0, 1 and 6, three components each
        assert len(system.dof_map.constraints) == 9

    def test_fixed_u_constrains_only_ux(self):
        mesh = StructuredMesh.create_box(boundary_ids=BoundaryIdConfig(min_x=40))
        mesh.boundary_info.add_node(7, IDS.fixed_u)
        system = ElasticitySystem(mesh)
        system.init_data()
        assert constrained_vars(system) == [0]
        assert list(system.dof_map.constraints) == [7]

    def test_fixed_v_constrains_only_uy(self):
        mesh = StructuredMesh.create_box(boundary_ids=BoundaryIdConfig(min_x=40))
        mesh.boundary_info.add_node(7, IDS.fixed_v)
        system = ElasticitySystem(mesh)
        system.init_data()
        assert constrained_vars(system) == [1]

    def test_fixed_v_in_1d_targets_aliased_variable(self):
        mesh = StructuredMesh.create_line(boundary_ids=BoundaryIdConfig(min_x=40))
        mesh.boundary_info.add_node(1, IDS.fixed_v)
        system = ElasticitySystem(mesh)
        system.init_data()
        assert system.dof_map.constraints == {1: 0.0}

    def test_three_groups(self):
        mesh = StructuredMesh.create_box(lx=2.0, nx=2)
        mesh.boundary_info.add_node(11, IDS.fixed_u)
        mesh.boundary_info.add_node(11, IDS.fixed_v)
        system = ElasticitySystem(mesh)
        system.init_data()
        groups = [(b.boundary_ids, b.variables) for b in system.dof_map.dirichlet_boundaries]
        assert groups == [
            ({IDS.min_x}, (0, 1, 2)),
            ({IDS.fixed_u}, (0,)),
            ({IDS.fixed_v}, (1,)),
        ]

    def test_custom_id_table(self):
        ids = BoundaryIdConfig(min_x=40, max_x=4)
        mesh = StructuredMesh.create_box(boundary_ids=ids)
        config = ElasticitySimulationConfig(boundary_ids=ids)
        system = ElasticitySystem(mesh, config)
        system.init_data()
        for dof in system.dof_map.constraints:
            assert system.mesh.nodes[dof % mesh.node_count].x == 0.0


class TestPartitionUnion:
    def test_ids_known_only_on_other_ranks(self):
        # This partition carries no clamped side but another one does
        mesh = StructuredMesh.create_box(boundary_ids=BoundaryIdConfig(min_x=40))
        comm = FakeComm({IDS.min_x}, {IDS.fixed_v})
        system = ElasticitySystem(mesh, comm=comm)
        system.init_data()

        assert comm.gathered == [{0, 1, 2, 3, 5, 40}]
        groups = [b.boundary_ids for b in system.dof_map.dirichlet_boundaries]
        assert groups == [{IDS.min_x}, {IDS.fixed_v}]
        # Registered everywhere, but no local entity carries the ids
        assert system.dof_map.constraints == {}


class TestFirstOrderCompanions:
    def test_companion_variables(self):
        system = ElasticitySystem(StructuredMesh.create_box(), time_solver=EulerSolver())
        system.init_data()
        assert system.n_vars == 6
        assert system.second_order_dot_vars == {0: 3, 1: 4, 2: 5}
        assert [system.get_second_order_dot_var(v) for v in range(3)] == [3, 4, 5]
        assert system.variable_name(3) == "Ux_dot"

    def test_companions_share_constraints(self):
        system = ElasticitySystem(StructuredMesh.create_box(), time_solver=EulerSolver())
        system.init_data()
        assert constrained_vars(system) == [0, 1, 2, 3, 4, 5]
        assert len(system.dof_map.constraints) == 24

    def test_second_order_solver_has_no_companions(self):
        system = ElasticitySystem(StructuredMesh.create_box(), time_solver=NewmarkSolver())
        system.init_data()
        assert system.n_vars == 3
        assert system.get_second_order_dot_var(2) == 2


class TestBoundaryObjects:
    def test_zero_function(self):
        np.testing.assert_array_equal(ZeroFunction()(np.ones(3), 0.5, 3), np.zeros(3))

    def test_aliased_variables_collapse(self):
        boundary = DirichletBoundary([4], [0, 1, 1])
        assert boundary.variables == (0, 1)

    def test_local_ordering(self):
        def ramp(point, time, n_components):
            return np.arange(n_components, dtype=float) + 1.0

        boundary = DirichletBoundary([4], [3, 5], ramp, VariableOrdering.LOCAL)
        assert boundary.value(3, np.zeros(3)) == 1.0
        assert boundary.value(5, np.zeros(3)) == 2.0

        boundary = DirichletBoundary([4], [3, 5], ramp, VariableOrdering.GLOBAL)
        assert boundary.value(5, np.zeros(3)) == 6.0

    def test_no_variables(self):
        with pytest.raises(ValueError):
            DirichletBoundary([4], [])

    def test_boundary_after_constraints(self):
        system = ElasticitySystem(StructuredMesh.create_box())
        system.init_data()
        with pytest.raises(RuntimeError):
            system.dof_map.add_dirichlet_boundary(DirichletBoundary([4], [0]))

    def test_conflicting_values(self):
        mesh = StructuredMesh.create_box()
        system = ElasticitySystem(mesh)

        def one(point, time, n_components):
            return np.ones(n_components)

        system.dof_map.add_dirichlet_boundary(DirichletBoundary([IDS.max_x], [0], one))
        system.dof_map.add_dirichlet_boundary(DirichletBoundary([IDS.min_y], [0]))
        with pytest.raises(ValueError, match="Conflicting"):
            system.init_data()


class TestBoundaryConditionManager:
    def test_reduce_and_expand(self):
        manager = BoundaryConditionManager(4)
        manager.apply_dirichlet([DirichletCondition([0, 2], 1.5)])
        np.testing.assert_array_equal(manager.free_dofs, [1, 3])
        np.testing.assert_array_equal(manager.reduce_vector(np.arange(4.0)), [1.0, 3.0])
        np.testing.assert_array_equal(
            manager.expand_solution(np.array([7.0, 8.0])), [1.5, 7.0, 1.5, 8.0]
        )
        np.testing.assert_array_equal(
            manager.expand_solution(np.array([7.0, 8.0]), fixed_values={}), [0.0, 7.0, 0.0, 8.0]
        )

    def test_reduce_matrix(self):
        manager = BoundaryConditionManager(3)
        manager.apply_constraints({1: 0.0})
        reduced = manager.reduce_matrix(np.arange(9.0).reshape(3, 3))
        np.testing.assert_array_equal(reduced.toarray(), [[0.0, 2.0], [6.0, 8.0]])

    def test_impose(self):
        manager = BoundaryConditionManager(3)
        manager.apply_constraints({2: -1.0})
        vector = manager.impose(np.zeros(3))
        np.testing.assert_array_equal(vector, [0.0, 0.0, -1.0])

    def test_invalid_dof(self):
        manager = BoundaryConditionManager(3)
        with pytest.raises(ValueError):
            manager.apply_dirichlet([DirichletCondition([3], 0.0)])

    def test_conflict(self):
        manager = BoundaryConditionManager(3)
        with pytest.raises(ValueError):
            manager.apply_dirichlet([DirichletCondition([0], 0.0), DirichletCondition([0], 1.0)])
