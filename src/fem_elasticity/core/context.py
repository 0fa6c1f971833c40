"""Per-element assembly context.

A :class:`FEMContext` is built once per assembly pass and reinitialized for
every element. It owns the local residual ``F`` and Jacobian ``K`` of the
current element; :meth:`FEMContext.get_elem_residual` and
:meth:`FEMContext.get_elem_jacobian` hand out numpy views into them, so the
physics kernels accumulate directly into the element result. Local DOFs are
stored variable by variable in system variable order.
"""

from typing import TYPE_CHECKING, Dict, FrozenSet, List, Optional

import numpy as np

from fem_elasticity.core.fe import FEBase, FEType
from fem_elasticity.core.mesh import MeshElement
from fem_elasticity.core.quadrature import QuadratureRule

if TYPE_CHECKING:
    from fem_elasticity.core.system import FEMSystem


class FEMContext:
    """Element-local view of the system for residual and Jacobian assembly.

    Parameters
    ----------
    system : FEMSystem
        Initialized system whose variables, DOF map and solution are used.

    Attributes
    ----------
    elem_residual : np.ndarray
        Local residual of the current element (n_local,).
    elem_jacobian : np.ndarray
        Local Jacobian of the current element (n_local × n_local).
    elem_solution : np.ndarray
        Local coefficients used for values and gradients.
    elem_solution_rate : np.ndarray
        Local first time derivative coefficients.
    elem_solution_accel : np.ndarray
        Local second time derivative coefficients.
    """

    def __init__(self, system: "FEMSystem"):
        self.system = system
        self.mesh = system.mesh
        self.dof_map = system.dof_map
        self.n_vars = system.n_vars
        self.time = 0.0

        self._element_fe: Dict[FEType, FEBase] = {}
        self._side_fe: Dict[FEType, FEBase] = {}
        self._var_fe_type: List[FEType] = []
        for var in range(self.n_vars):
            fe_type = system.variable_fe_type(var)
            self._var_fe_type.append(fe_type)
            if fe_type not in self._element_fe:
                self._element_fe[fe_type] = FEBase(fe_type)
                self._side_fe[fe_type] = FEBase(fe_type, on_side=True)

        self.elem: Optional[MeshElement] = None
        self.side: Optional[int] = None
        self._dof_indices: List[np.ndarray] = []
        self._slices: List[slice] = []

        self.elem_residual = np.zeros(0)
        self.elem_jacobian = np.zeros((0, 0))
        self.elem_solution = np.zeros(0)
        self.elem_solution_rate = np.zeros(0)
        self.elem_solution_accel = np.zeros(0)

        self.elem_solution_derivative = 1.0
        self.elem_solution_rate_derivative = 1.0
        self.elem_solution_accel_derivative = 1.0

    # ------------------------------------------------------------------
    # Reinitialization
    # ------------------------------------------------------------------

    def pre_fe_reinit(self, elem: MeshElement) -> None:
        """Select ``elem``, gather its DOFs and zero the local accumulators."""
        self.elem = elem
        self.side = None
        self._dof_indices = [self.dof_map.dof_indices(elem, var) for var in range(self.n_vars)]
        self._slices = []
        start = 0
        for dofs in self._dof_indices:
            self._slices.append(slice(start, start + dofs.size))
            start += dofs.size

        self.elem_residual = np.zeros(start)
        self.elem_jacobian = np.zeros((start, start))
        self.elem_solution = self.system.solution[self.dof_indices].copy()
        self.elem_solution_rate = np.zeros(start)
        self.elem_solution_accel = np.zeros(start)

    def elem_fe_reinit(self) -> None:
        for fe in self._element_fe.values():
            fe.reinit(self.elem)

    def side_fe_reinit(self, side: int) -> None:
        self.side = side
        for fe in self._side_fe.values():
            fe.reinit_side(self.elem, side)

    # ------------------------------------------------------------------
    # DOF bookkeeping
    # ------------------------------------------------------------------

    def _slice(self, var: int) -> slice:
        if not 0 <= var < len(self._slices):
            raise KeyError(f"Variable {var} is not defined on this context")
        return self._slices[var]

    @property
    def dof_indices(self) -> np.ndarray:
        """Global DOF indices of all local DOFs, in local order."""
        if not self._dof_indices:
            return np.zeros(0, dtype=int)
        return np.concatenate(self._dof_indices)

    def n_dof_indices(self, var: int) -> int:
        s = self._slice(var)
        return s.stop - s.start

    def get_elem_residual(self, var: int) -> np.ndarray:
        return self.elem_residual[self._slice(var)]

    def get_elem_jacobian(self, var_row: int, var_col: int) -> np.ndarray:
        return self.elem_jacobian[self._slice(var_row), self._slice(var_col)]

    def get_elem_solution(self, var: int) -> np.ndarray:
        return self.elem_solution[self._slice(var)]

    # ------------------------------------------------------------------
    # Basis data
    # ------------------------------------------------------------------

    def _fe_type(self, var: int) -> FEType:
        if not 0 <= var < self.n_vars:
            raise KeyError(f"No basis data for variable {var}")
        return self._var_fe_type[var]

    def get_element_fe(self, var: int) -> FEBase:
        return self._element_fe[self._fe_type(var)]

    def get_side_fe(self, var: int) -> FEBase:
        return self._side_fe[self._fe_type(var)]

    def get_element_qrule(self) -> QuadratureRule:
        return self.get_element_fe(0).qrule

    def get_side_qrule(self) -> QuadratureRule:
        return self.get_side_fe(0).qrule

    # ------------------------------------------------------------------
    # Interpolated solution
    # ------------------------------------------------------------------

    def interior_value(self, var: int, qp: int) -> float:
        return float(self.get_elem_solution(var) @ self.get_element_fe(var).get_phi()[:, qp])

    def interior_gradient(self, var: int, qp: int) -> np.ndarray:
        """Gradient of ``var`` at interior quadrature point ``qp`` (3-vector)."""
        return self.get_elem_solution(var) @ self.get_element_fe(var).get_dphi()[:, qp, :]

    def interior_rate(self, var: int, qp: int) -> float:
        coefs = self.elem_solution_rate[self._slice(var)]
        return float(coefs @ self.get_element_fe(var).get_phi()[:, qp])

    def interior_accel(self, var: int, qp: int) -> float:
        coefs = self.elem_solution_accel[self._slice(var)]
        return float(coefs @ self.get_element_fe(var).get_phi()[:, qp])

    # ------------------------------------------------------------------
    # Boundary ids and time-integrator factors
    # ------------------------------------------------------------------

    def side_boundary_ids(self) -> FrozenSet[int]:
        if self.side is None:
            return frozenset()
        return self.mesh.boundary_info.side_boundary_ids(self.elem.id, self.side)

    def has_side_boundary_id(self, boundary_id: int) -> bool:
        return boundary_id in self.side_boundary_ids()

    def get_elem_solution_derivative(self) -> float:
        return self.elem_solution_derivative

    def get_elem_solution_rate_derivative(self) -> float:
        return self.elem_solution_rate_derivative

    def get_elem_solution_accel_derivative(self) -> float:
        return self.elem_solution_accel_derivative

    def __repr__(self):
        elem_id = self.elem.id if self.elem is not None else None
        return f"<FEMContext elem={elem_id} side={self.side} n_vars={self.n_vars}>"
