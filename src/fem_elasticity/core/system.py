"""Finite-element system: variables, DOFs and the element assembly loop."""

import logging
from typing import Dict, List, NamedTuple, Optional

import numpy as np
import scipy.sparse as sp
from mpi4py import MPI

from fem_elasticity.core.context import FEMContext
from fem_elasticity.core.dof_map import DofMap
from fem_elasticity.core.fe import FEType
from fem_elasticity.core.mesh import MeshModel

logger = logging.getLogger(__name__)


class Variable(NamedTuple):
    name: str
    number: int
    fe_type: FEType


class FEMSystem:
    """Base class of physics systems assembled element by element.

    Subclasses register their variables and constraints in :meth:`init_data`
    and implement the residual contributions

    - :meth:`element_time_derivative`: interior terms
    - :meth:`side_time_derivative`: terms on boundary sides
    - :meth:`mass_residual`: inertial terms

    which :meth:`assembly` calls in that order for every element. Each
    contribution returns whether it populated its Jacobian; ``False`` means it
    has no Jacobian contribution.

    Parameters
    ----------
    mesh : MeshModel
        Computational mesh.
    time_solver : TimeSolver, optional
        Time integrator. Defaults to a steady solver.
    comm : MPI.Comm, optional
        Communicator used for global reductions, ``MPI.COMM_WORLD`` by default.
    """

    def __init__(self, mesh: MeshModel, time_solver=None, comm=None):
        if time_solver is None:
            from fem_elasticity.solvers.time_solver import SteadySolver

            time_solver = SteadySolver()

        self.mesh = mesh
        self.time_solver = time_solver
        self.comm = comm if comm is not None else MPI.COMM_WORLD
        self.dof_map = DofMap(mesh)

        self._variables: List[Variable] = []
        self._time_order: Dict[int, int] = {}
        self._second_order_dot_vars: Dict[int, int] = {}
        self._initialized = False

        self.solution = np.zeros(0)
        self.rhs = np.zeros(0)
        self.matrix: Optional[sp.csr_matrix] = None

    # ------------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------------

    def add_variable(self, name: str, fe_type: Optional[FEType] = None) -> int:
        """Register a scalar variable and return its number."""
        if self._initialized:
            raise RuntimeError("Variables must be added before init_data() completes")
        if any(v.name == name for v in self._variables):
            raise ValueError(f"Variable '{name}' already exists")
        number = len(self._variables)
        self._variables.append(Variable(name, number, fe_type or FEType()))
        return number

    @property
    def n_vars(self) -> int:
        return len(self._variables)

    def variable_name(self, var: int) -> str:
        return self._variables[var].name

    def variable_number(self, name: str) -> int:
        for variable in self._variables:
            if variable.name == name:
                return variable.number
        raise KeyError(f"Unknown variable '{name}'")

    def variable_fe_type(self, var: int) -> FEType:
        return self._variables[var].fe_type

    def time_evolving(self, var: int, order: int = 1) -> None:
        """Mark ``var`` as evolving in time with a first- or second-order derivative."""
        if order not in (1, 2):
            raise ValueError(f"Time derivative order must be 1 or 2, got {order}")
        if not 0 <= var < self.n_vars:
            raise KeyError(f"Unknown variable number {var}")
        self._time_order[var] = order

    def is_second_order_var(self, var: int) -> bool:
        return self._time_order.get(var) == 2

    @property
    def second_order_vars(self) -> List[int]:
        return sorted(v for v, order in self._time_order.items() if order == 2)

    @property
    def second_order_dot_vars(self) -> Dict[int, int]:
        """Mapping of second-order variables to their companion velocity variables."""
        return dict(self._second_order_dot_vars)

    def add_second_order_dot_vars(self) -> Dict[int, int]:
        """Add a companion velocity variable for every second-order variable.

        Used by first-order time solvers, which integrate ``ü`` as the rate of
        a velocity variable ``v = u̇``.
        """
        for var in self.second_order_vars:
            if var not in self._second_order_dot_vars:
                variable = self._variables[var]
                dot_var = self.add_variable(f"{variable.name}_dot", variable.fe_type)
                self.time_evolving(dot_var, 1)
                self._second_order_dot_vars[var] = dot_var
        return dict(self._second_order_dot_vars)

    def get_second_order_dot_var(self, var: int) -> int:
        """Variable whose rows hold the time-derivative equation of ``var``.

        Second-order and steady solvers work on ``var`` itself; first-order
        solvers use its companion velocity variable.
        """
        if not self.time_solver.is_first_order:
            return var
        try:
            return self._second_order_dot_vars[var]
        except KeyError:
            raise KeyError(
                f"Variable {var} has no companion velocity variable; "
                "is it time_evolving with order 2?"
            ) from None

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def init_data(self) -> None:
        """Finalize variables, number the DOFs and build the constraints."""
        if self._initialized:
            raise RuntimeError("init_data() was already called")

        self.time_solver.init_data(self)
        self.dof_map.distribute_dofs(self.n_vars)
        if self._second_order_dot_vars:
            self._add_dot_var_dirichlet_bcs()
        constraints = self.dof_map.create_dof_constraints()

        self.solution = np.zeros(self.dof_map.n_dofs)
        for dof, value in constraints.items():
            self.solution[dof] = value
        self.rhs = np.zeros(self.dof_map.n_dofs)
        self.time_solver.init_vectors()
        self._initialized = True

        logger.info(
            "Initialized %s: %d variables, %d DOFs, %d constrained",
            type(self).__name__,
            self.n_vars,
            self.dof_map.n_dofs,
            len(constraints),
        )

    def _add_dot_var_dirichlet_bcs(self) -> None:
        for boundary in self.dof_map.dirichlet_boundaries:
            dot_vars = [
                self._second_order_dot_vars[v]
                for v in boundary.variables
                if v in self._second_order_dot_vars
            ]
            if dot_vars:
                self.dof_map.add_dirichlet_boundary(boundary.with_variables(dot_vars))

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def init_context(self, context: FEMContext) -> None:
        """Hook to pre-request the basis data the contributions will use."""

    def build_context(self) -> FEMContext:
        if not self._initialized:
            raise RuntimeError("init_data() must be called before assembly")
        context = FEMContext(self)
        self.init_context(context)
        return context

    # ------------------------------------------------------------------
    # Contributions
    # ------------------------------------------------------------------

    def element_time_derivative(self, request_jacobian: bool, context: FEMContext) -> bool:
        return request_jacobian

    def side_time_derivative(self, request_jacobian: bool, context: FEMContext) -> bool:
        return request_jacobian

    def mass_residual(self, request_jacobian: bool, context: FEMContext) -> bool:
        return request_jacobian

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def assembly(self, get_residual: bool = True, get_jacobian: bool = True) -> None:
        """Assemble the global residual into ``rhs`` and the Jacobian into ``matrix``.

        Per element, contributions are accumulated in the order interior,
        boundary sides, mass, then any time-solver constraint rows.
        """
        context = self.build_context()
        n_dofs = self.dof_map.n_dofs
        rhs = np.zeros(n_dofs)
        rows, cols, vals = [], [], []

        for elem in self.mesh.elements:
            context.pre_fe_reinit(elem)
            self.time_solver.prepare_context(context)
            context.elem_fe_reinit()

            self.element_time_derivative(get_jacobian, context)
            for side in self.mesh.boundary_sides(elem):
                context.side_fe_reinit(side)
                self.side_time_derivative(get_jacobian, context)
            context.side = None
            if self.time_solver.has_mass:
                self.mass_residual(get_jacobian, context)
            self.time_solver.element_constraint(get_jacobian, context)

            dofs = context.dof_indices
            if get_residual:
                np.add.at(rhs, dofs, context.elem_residual)
            if get_jacobian:
                rows.append(np.repeat(dofs, dofs.size))
                cols.append(np.tile(dofs, dofs.size))
                vals.append(context.elem_jacobian.ravel())

        if get_residual:
            self.rhs = rhs
        if get_jacobian:
            if rows:
                data = (np.concatenate(vals), (np.concatenate(rows), np.concatenate(cols)))
                self.matrix = sp.coo_matrix(data, shape=(n_dofs, n_dofs)).tocsr()
            else:
                self.matrix = sp.csr_matrix((n_dofs, n_dofs))

        logger.debug(
            "Assembled %d elements (residual=%s, jacobian=%s)",
            self.mesh.elements_count,
            get_residual,
            get_jacobian,
        )

    def __repr__(self):
        names = [v.name for v in self._variables]
        return f"<{type(self).__name__} vars={names} initialized={self._initialized}>"
