import logging
from typing import Dict, List, Optional

import numpy as np

from fem_elasticity.core.bc import DirichletBoundary
from fem_elasticity.core.mesh import MeshElement, MeshModel

logger = logging.getLogger(__name__)


class DofMap:
    """Degree-of-freedom numbering for first-order Lagrange variables.

    DOFs are numbered variable-major: DOF ``var * n_nodes + node_index`` holds
    variable ``var`` at the node stored at ``node_index`` in the mesh.

    Parameters
    ----------
    mesh : MeshModel
        Mesh carrying the nodes and boundary ids.
    """

    def __init__(self, mesh: MeshModel):
        self.mesh = mesh
        self.n_vars = 0
        self._dirichlet_boundaries: List[DirichletBoundary] = []
        self._constraints: Optional[Dict[int, float]] = None

    @property
    def n_dofs(self) -> int:
        return self.n_vars * self.mesh.node_count

    @property
    def dirichlet_boundaries(self) -> List[DirichletBoundary]:
        return list(self._dirichlet_boundaries)

    def add_dirichlet_boundary(self, boundary: DirichletBoundary) -> None:
        if self._constraints is not None:
            raise RuntimeError("Dirichlet boundaries must be added before the constraints are built")
        self._dirichlet_boundaries.append(boundary)

    def distribute_dofs(self, n_vars: int) -> int:
        self.n_vars = n_vars
        logger.debug(
            "Distributed %d DOFs (%d variables x %d nodes)",
            self.n_dofs,
            n_vars,
            self.mesh.node_count,
        )
        return self.n_dofs

    def variable_dofs(self, var: int) -> np.ndarray:
        """DOFs of ``var`` at every node, in mesh node order."""
        if not 0 <= var < self.n_vars:
            raise KeyError(f"Unknown variable number {var}")
        n_nodes = self.mesh.node_count
        return np.arange(var * n_nodes, (var + 1) * n_nodes)

    def dof_indices(self, element: MeshElement, var: int) -> np.ndarray:
        if not 0 <= var < self.n_vars:
            raise KeyError(f"Unknown variable number {var}")
        return var * self.mesh.node_count + self.mesh.node_indices(element)

    def create_dof_constraints(self, time: float = 0.0) -> Dict[int, float]:
        """Resolve the Dirichlet boundaries into a ``{dof: value}`` mapping.

        Raises
        ------
        ValueError
            If two boundaries prescribe different values on the same DOF.
        """
        n_nodes = self.mesh.node_count
        constraints: Dict[int, float] = {}
        for boundary in self._dirichlet_boundaries:
            node_ids = self.mesh.boundary_info.boundary_node_ids(boundary.boundary_ids, self.mesh)
            for node_id in sorted(node_ids):
                node = self.mesh.node_map[node_id]
                index = self.mesh.get_node_index(node_id)
                for var in boundary.variables:
                    dof = var * n_nodes + index
                    value = boundary.value(var, node.coords, time)
                    if dof in constraints and not np.isclose(constraints[dof], value):
                        raise ValueError(
                            f"Conflicting Dirichlet values for DOF {dof}: "
                            f"{constraints[dof]} vs {value}"
                        )
                    constraints[dof] = value

        self._constraints = constraints
        logger.debug("Constrained %d of %d DOFs", len(constraints), self.n_dofs)
        return constraints

    @property
    def constraints(self) -> Dict[int, float]:
        if self._constraints is None:
            raise RuntimeError("DOF constraints have not been built; call init_data() first")
        return dict(self._constraints)
