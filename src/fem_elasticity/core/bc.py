"""
Dirichlet boundary conditions and system reduction.

A :class:`DirichletBoundary` names boundary ids and the variables constrained
on them; the DOF map resolves it into prescribed DOF values, and
:class:`BoundaryConditionManager` removes those DOFs from the assembled
system.
"""

from enum import Enum
from typing import Dict, Iterable, Optional, Sequence, Tuple

import numpy as np
import scipy.sparse as sp


class VariableOrdering(str, Enum):
    """How the components of a boundary function map onto variables.

    LOCAL: component ``n`` is the value of the ``n``-th variable of the
    boundary. GLOBAL: component ``v`` is the value of system variable ``v``.
    """

    LOCAL = "local"
    GLOBAL = "global"


class ZeroFunction:
    """Boundary function returning zero for every component."""

    def __call__(self, point: np.ndarray, time: float = 0.0, n_components: int = 1) -> np.ndarray:
        return np.zeros(n_components)

    def __repr__(self):
        return "ZeroFunction()"


class DirichletBoundary:
    """Constrain ``variables`` on every side, edge or node tagged with ``boundary_ids``.

    Parameters
    ----------
    boundary_ids : Iterable[int]
        Boundary ids selecting the constrained mesh entities.
    variables : Sequence[int]
        System variable numbers to constrain.
    function : callable, optional
        ``function(point, time, n_components)`` giving the prescribed values.
        Defaults to :class:`ZeroFunction`.
    ordering : VariableOrdering
        Component ordering of ``function``.
    """

    def __init__(
        self,
        boundary_ids: Iterable[int],
        variables: Sequence[int],
        function=None,
        ordering: VariableOrdering = VariableOrdering.LOCAL,
    ):
        self.boundary_ids = frozenset(int(b) for b in boundary_ids)
        # Aliased variables collapse to a single entry
        self.variables: Tuple[int, ...] = tuple(dict.fromkeys(int(v) for v in variables))
        self.function = function if function is not None else ZeroFunction()
        self.ordering = VariableOrdering(ordering)
        if not self.variables:
            raise ValueError("A Dirichlet boundary needs at least one variable")

    def value(self, var: int, point: np.ndarray, time: float = 0.0) -> float:
        if self.ordering == VariableOrdering.LOCAL:
            component = self.variables.index(var)
            n_components = len(self.variables)
        else:
            component = var
            n_components = max(self.variables) + 1
        return float(self.function(point, time, n_components)[component])

    def with_variables(self, variables: Sequence[int]) -> "DirichletBoundary":
        """Copy of this boundary acting on other variables."""
        return DirichletBoundary(self.boundary_ids, variables, self.function, self.ordering)

    def __repr__(self):
        return (
            f"<DirichletBoundary ids={sorted(self.boundary_ids)} vars={list(self.variables)} "
            f"{self.ordering.value}>"
        )


class DirichletCondition:
    """Represents a Dirichlet boundary condition (fixed DOFs) in a FEM system.

    Parameters
    ----------
    dofs : Iterable[int]
        Global degree of freedom indices (0-based) where the condition is applied.
    value : float
        Value imposed on the specified DOFs.

    Examples
    --------
    >>> bc = DirichletCondition([0, 1], 0.0)  # Fix DOFs 0 and 1 at zero
    """

    def __init__(self, dofs: Iterable[int], value: float):
        self.dofs = tuple(sorted(set(int(d) for d in dofs)))
        self.value = value


class BoundaryConditionManager:
    """Handles Dirichlet conditions and reduction of sparse systems.

    Parameters
    ----------
    n_dofs : int
        Total number of degrees of freedom.

    Attributes
    ----------
    fixed_dofs : Dict[int, float]
        Constrained DOFs with prescribed values.
    free_dofs : np.ndarray
        Indices of unconstrained DOFs.
    """

    def __init__(self, n_dofs: int):
        self.n_dof = n_dofs
        self._fixed_dofs: Dict[int, float] = {}
        self._free = np.arange(n_dofs)
        self._fixed = np.zeros(0, dtype=int)

    def apply_dirichlet(self, conditions: Iterable[DirichletCondition]) -> None:
        """Register Dirichlet conditions.

        Parameters
        ----------
        conditions : Iterable[DirichletCondition]
            Boundary conditions to apply

        Raises
        ------
        ValueError
            If invalid DOFs are specified or conflicting values are provided
        """
        fixed_dofs = {}
        for bc in conditions:
            for dof in bc.dofs:
                self._validate_dof(dof)
                if dof in fixed_dofs and not np.isclose(fixed_dofs[dof], bc.value):
                    raise ValueError(
                        f"Conflicting values for DOF {dof}: {fixed_dofs[dof]} vs {bc.value}"
                    )
                fixed_dofs[dof] = bc.value

        self._fixed_dofs = fixed_dofs
        self._fixed = np.array(sorted(fixed_dofs), dtype=int)
        self._free = np.setdiff1d(np.arange(self.n_dof), self._fixed)

    def apply_constraints(self, constraints: Dict[int, float]) -> None:
        """Register a ``{dof: value}`` mapping as Dirichlet conditions."""
        self.apply_dirichlet(DirichletCondition([dof], value) for dof, value in constraints.items())

    def _validate_dof(self, dof: int) -> None:
        if not 0 <= dof < self.n_dof:
            raise ValueError(f"DOF {dof} out of range [0, {self.n_dof - 1}]")

    def impose(self, vector: np.ndarray) -> np.ndarray:
        """Write the prescribed values into a full-length vector, in place."""
        if self._fixed.size:
            vector[self._fixed] = [self._fixed_dofs[d] for d in self._fixed]
        return vector

    def reduce_vector(self, vector: np.ndarray) -> np.ndarray:
        return np.asarray(vector)[self._free]

    def reduce_matrix(self, matrix: sp.spmatrix) -> sp.csr_matrix:
        matrix = sp.csr_matrix(matrix)
        return matrix[self._free][:, self._free]

    def expand_solution(
        self, u_red: np.ndarray, fixed_values: Optional[Dict[int, float]] = None
    ) -> np.ndarray:
        """Expand a reduced vector to full length with fixed DOFs inserted.

        ``fixed_values`` overrides the registered prescribed values (e.g. zero
        for increments).
        """
        values = self._fixed_dofs if fixed_values is None else fixed_values
        u_full = np.zeros(self.n_dof)
        u_full[self._free] = u_red
        for dof in self._fixed:
            u_full[dof] = values.get(int(dof), 0.0)
        return u_full

    @property
    def free_dofs(self) -> np.ndarray:
        """Indices of unconstrained degrees of freedom."""
        return self._free.copy()

    @property
    def fixed_dofs(self) -> Dict[int, float]:
        """Dictionary of constrained DOFs with prescribed values."""
        return self._fixed_dofs.copy()
