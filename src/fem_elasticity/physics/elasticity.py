"""Nonlinear-framework elasticity physics.

Weak form of the momentum balance for a linear isotropic solid in 1D, 2D or
3D, written per element:

    ∫ ρ ü·φ dΩ + ∫ τ(∇u) : ∇φ dΩ - ∫ b·φ dΩ - ∫ t·φ dΓ = 0

with the stress τ = C : ∇u. The displacement components are the variables
``Ux``, ``Uy`` and ``Uz``. Below 3D the unused components alias the last
active one (``_w_var = _v_var`` in 2D, all three equal in 1D), and every
accumulation past the active dimension is guarded by ``self.dim``.

Residual rows and Jacobian rows are addressed through
:meth:`~fem_elasticity.core.system.FEMSystem.get_second_order_dot_var`, so the
same kernels serve first-order (velocity companion) and second-order
(acceleration) time solvers.
"""

import logging
from typing import Optional

import numpy as np

from fem_elasticity.core.bc import DirichletBoundary, VariableOrdering, ZeroFunction
from fem_elasticity.core.config import ElasticitySimulationConfig
from fem_elasticity.core.context import FEMContext
from fem_elasticity.core.fe import FEType
from fem_elasticity.core.material import IsotropicMaterial
from fem_elasticity.core.mesh import MeshModel
from fem_elasticity.core.system import FEMSystem

logger = logging.getLogger(__name__)


class ElasticitySystem(FEMSystem):
    """Elasticity residual and Jacobian contributions.

    Parameters
    ----------
    mesh : MeshModel
        Computational mesh; its dimension selects the active components.
    config : ElasticitySimulationConfig, optional
        Material, loads and boundary-id table. Defaults to the documented
        defaults (E=100, ν=0.3, ρ=1, gravity (0, 0, -1), pressure 100).
    time_solver : TimeSolver, optional
        Time integrator, steady by default.
    fe_type : FEType, optional
        Basis of the displacement variables, taken from ``config.fe`` when
        omitted.
    comm : MPI.Comm, optional
        Communicator used to union the boundary ids of all partitions.
    """

    def __init__(
        self,
        mesh: MeshModel,
        config: Optional[ElasticitySimulationConfig] = None,
        time_solver=None,
        fe_type: Optional[FEType] = None,
        comm=None,
    ):
        super().__init__(mesh, time_solver=time_solver, comm=comm)
        config = config or ElasticitySimulationConfig()

        self.dim = mesh.dim
        if self.dim not in (1, 2, 3):
            raise ValueError(f"Unsupported spatial dimension: {self.dim}")

        self.material = IsotropicMaterial.from_config(config.material)
        self.boundary_ids = config.boundary_ids
        self.body_force = np.asarray(config.loads.body_force, dtype=float)
        self.pressure = float(config.loads.pressure)
        if config.loads.traction is None:
            self.traction = np.zeros(3)
            self.traction[self.dim - 1] = -1.0
        else:
            self.traction = np.asarray(config.loads.traction, dtype=float)
        self._fe_type = fe_type or FEType(config.fe.family, config.fe.order)

        self._u_var = self._v_var = self._w_var = None

    @property
    def displacement_vars(self):
        return self._u_var, self._v_var, self._w_var

    def init_data(self) -> None:
        """Register the displacement variables and their Dirichlet boundaries."""
        self._u_var = self.add_variable("Ux", self._fe_type)
        if self.dim > 1:
            self._v_var = self.add_variable("Uy", self._fe_type)
        else:
            self._v_var = self._u_var
        if self.dim > 2:
            self._w_var = self.add_variable("Uz", self._fe_type)
        else:
            self._w_var = self._v_var

        self.time_evolving(self._u_var, 2)
        self.time_evolving(self._v_var, 2)
        self.time_evolving(self._w_var, 2)

        local_ids = self.mesh.boundary_info.get_boundary_ids()
        all_boundary_ids = set().union(*self.comm.allgather(local_ids))

        ids = self.boundary_ids
        dirichlet_boundary_ids = all_boundary_ids & {ids.min_x, ids.node, ids.edge}
        dirichlet_u_boundary_ids = all_boundary_ids & {ids.fixed_u}
        dirichlet_v_boundary_ids = all_boundary_ids & {ids.fixed_v}

        variables = [self._u_var]
        if self.dim > 1:
            variables.append(self._v_var)
        if self.dim > 2:
            variables.append(self._w_var)

        zf = ZeroFunction()
        for boundary_ids, boundary_vars in (
            (dirichlet_boundary_ids, variables),
            (dirichlet_u_boundary_ids, [self._u_var]),
            (dirichlet_v_boundary_ids, [self._v_var]),
        ):
            if boundary_ids:
                self.dof_map.add_dirichlet_boundary(
                    DirichletBoundary(boundary_ids, boundary_vars, zf, VariableOrdering.LOCAL)
                )
                logger.info(
                    "Zero Dirichlet boundary on ids %s for %s",
                    sorted(boundary_ids),
                    [self.variable_name(v) for v in boundary_vars],
                )

        # The framework numbers DOFs only after variables and constraints exist
        super().init_data()

    def init_context(self, context: FEMContext) -> None:
        u_elem_fe = context.get_element_fe(self._u_var)
        u_side_fe = context.get_side_fe(self._u_var)

        u_elem_fe.get_JxW()
        u_elem_fe.get_phi()
        u_elem_fe.get_dphi()

        u_side_fe.get_JxW()
        u_side_fe.get_phi()
        u_side_fe.get_normals()

    def stress(self, grad_U: np.ndarray) -> np.ndarray:
        """Stress τ(i, j) = Σ C(i, j, k, l) ∇U(k, l) over the active dimensions.

        Parameters
        ----------
        grad_U : np.ndarray
            Displacement gradient, ``grad_U[k, l] = ∂u_k/∂x_l`` (3 × 3).

        Returns
        -------
        np.ndarray
            3 × 3 stress with zeros outside the active block.
        """
        d = self.dim
        tau = np.zeros((3, 3))
        tau[:d, :d] = np.einsum(
            "ijkl,kl->ij", self.material.tensor[:d, :d, :d, :d], grad_U[:d, :d]
        )
        return tau

    def element_time_derivative(self, request_jacobian: bool, context: FEMContext) -> bool:
        u_dot_var = self.get_second_order_dot_var(self._u_var)
        v_dot_var = self.get_second_order_dot_var(self._v_var)
        w_dot_var = self.get_second_order_dot_var(self._w_var)

        u_elem_fe = context.get_element_fe(self._u_var)
        n_u_dofs = context.n_dof_indices(self._u_var)

        JxW = u_elem_fe.get_JxW()
        phi = u_elem_fe.get_phi()
        grad_phi = u_elem_fe.get_dphi()

        # _w_var == _v_var etc. in lower dimensions, so these views alias too
        dot_vars = (u_dot_var, v_dot_var, w_dot_var)
        vars_ = self.displacement_vars
        F = [context.get_elem_residual(dv) for dv in dot_vars]
        K = [[context.get_elem_jacobian(dv, v) for v in vars_] for dv in dot_vars]

        d = self.dim
        C = self.material.tensor
        body_force = self.body_force
        solution_derivative = context.get_elem_solution_derivative()

        for qp in range(context.get_element_qrule().n_points()):
            grad_U = np.zeros((3, 3))
            grad_U[0] = context.interior_gradient(self._u_var, qp)
            if d > 1:
                grad_U[1] = context.interior_gradient(self._v_var, qp)
            if d > 2:
                grad_U[2] = context.interior_gradient(self._w_var, qp)

            tau = self.stress(grad_U)
            dphi = grad_phi[:n_u_dofs, qp, :d]

            for c in range(d):
                F[c] += (dphi @ tau[c, :d] - body_force[c] * phi[:n_u_dofs, qp]) * JxW[qp]

            if request_jacobian:
                for c in range(d):
                    for tc in range(d):
                        # dτ(c, α)/d(dof j of component tc) = C(c, α, tc, β) ∂φ_j/∂x_β
                        K[c][tc] += (
                            dphi @ C[c, :d, tc, :d] @ dphi.T * solution_derivative * JxW[qp]
                        )

        return request_jacobian

    def side_time_derivative(self, request_jacobian: bool, context: FEMContext) -> bool:
        """Traction and pressure loads; these do not depend on the unknowns.

        Always returns False: the contribution has no Jacobian.
        """
        ids = self.boundary_ids
        if not (
            context.has_side_boundary_id(ids.traction) or context.has_side_boundary_id(ids.pressure)
        ):
            return False

        u_dot_var = self.get_second_order_dot_var(self._u_var)
        v_dot_var = self.get_second_order_dot_var(self._v_var)
        w_dot_var = self.get_second_order_dot_var(self._w_var)

        u_side_fe = context.get_side_fe(self._u_var)
        n_u_dofs = context.n_dof_indices(self._u_var)

        F = [context.get_elem_residual(dv) for dv in (u_dot_var, v_dot_var, w_dot_var)]

        JxW = u_side_fe.get_JxW()
        phi = u_side_fe.get_phi()
        normals = u_side_fe.get_normals()

        pressureforce = context.has_side_boundary_id(ids.pressure)
        traction = self.traction

        for qp in range(context.get_side_qrule().n_points()):
            if pressureforce:
                traction = self.pressure * normals[qp]

            for c in range(self.dim):
                F[c] -= traction[c] * phi[:n_u_dofs, qp] * JxW[qp]

        return False

    def mass_residual(self, request_jacobian: bool, context: FEMContext) -> bool:
        u_dot_var = self.get_second_order_dot_var(self._u_var)
        v_dot_var = self.get_second_order_dot_var(self._v_var)
        w_dot_var = self.get_second_order_dot_var(self._w_var)
        dot_vars = (u_dot_var, v_dot_var, w_dot_var)

        u_elem_fe = context.get_element_fe(u_dot_var)
        n_u_dofs = context.n_dof_indices(u_dot_var)

        JxW = u_elem_fe.get_JxW()
        phi = u_elem_fe.get_phi()

        F = [context.get_elem_residual(dv) for dv in dot_vars]
        K = [context.get_elem_jacobian(dv, dv) for dv in dot_vars]

        d = self.dim
        rho = self.material.rho
        accel_derivative = context.get_elem_solution_accel_derivative()

        for qp in range(context.get_element_qrule().n_points()):
            # interior_accel works for both solver orders: with a first-order
            # solver the acceleration is the rate of the companion variable
            accel = [context.interior_accel(dot_vars[c], qp) for c in range(d)]
            phi_qp = phi[:n_u_dofs, qp]

            for c in range(d):
                F[c] += rho * accel[c] * phi_qp * JxW[qp]

            if request_jacobian:
                jac_term = rho * np.outer(phi_qp, phi_qp) * JxW[qp] * accel_derivative
                for c in range(d):
                    K[c] += jac_term

        return request_jacobian
