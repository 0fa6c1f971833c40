import logging
from typing import TYPE_CHECKING, List, NamedTuple, Optional

import numpy as np
from scipy.sparse.linalg import spsolve

from fem_elasticity.core.bc import BoundaryConditionManager
from fem_elasticity.core.system import FEMSystem

if TYPE_CHECKING:
    from fem_elasticity.core.config import NewtonConfig

logger = logging.getLogger(__name__)


class NewtonResult(NamedTuple):
    converged: bool
    n_iterations: int
    residual_norms: List[float]


class NewtonSolver:
    """Newton-Raphson solver on the constrained DOFs of a FEM system.

    Every iteration assembles the residual and Jacobian, removes the
    constrained DOFs and solves the reduced linear system with
    ``scipy.sparse.linalg.spsolve``.

    Parameters
    ----------
    system : FEMSystem
        Initialized system. Its ``solution`` is updated in place.
    max_iterations : int
        Maximum number of linear solves.
    absolute_tolerance : float
        Converged when the reduced residual norm falls below this value.
    relative_tolerance : float
        Converged when the reduced residual norm falls below this fraction of
        the initial norm.
    continue_after_max_iterations : bool
        If False, failing to converge raises ``RuntimeError``.
    """

    def __init__(
        self,
        system: FEMSystem,
        max_iterations: int = 10,
        absolute_tolerance: float = 1e-12,
        relative_tolerance: float = 1e-9,
        continue_after_max_iterations: bool = False,
    ):
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1: {max_iterations}")
        self.system = system
        self.max_iterations = max_iterations
        self.absolute_tolerance = absolute_tolerance
        self.relative_tolerance = relative_tolerance
        self.continue_after_max_iterations = continue_after_max_iterations
        self._bc: Optional[BoundaryConditionManager] = None

    @classmethod
    def from_config(cls, system: FEMSystem, config: "NewtonConfig") -> "NewtonSolver":
        return cls(
            system,
            max_iterations=config.max_iterations,
            absolute_tolerance=config.absolute_tolerance,
            relative_tolerance=config.relative_tolerance,
            continue_after_max_iterations=config.continue_after_max_iterations,
        )

    def _boundary_conditions(self) -> BoundaryConditionManager:
        if self._bc is None:
            if not self.system.is_initialized:
                raise RuntimeError("The system must be initialized before solving")
            self._bc = BoundaryConditionManager(self.system.dof_map.n_dofs)
            self._bc.apply_constraints(self.system.dof_map.constraints)
        return self._bc

    def _converged(self, norm: float, initial_norm: float) -> bool:
        return norm <= self.absolute_tolerance or norm <= self.relative_tolerance * initial_norm

    def solve(self) -> NewtonResult:
        """Drive the residual of the system to zero.

        Returns
        -------
        NewtonResult
            Convergence flag, number of linear solves and residual history.

        Raises
        ------
        RuntimeError
            If the iteration does not converge and
            ``continue_after_max_iterations`` is False.
        """
        bc = self._boundary_conditions()
        system = self.system
        bc.impose(system.solution)

        norms: List[float] = []
        for iteration in range(self.max_iterations + 1):
            system.assembly(get_residual=True, get_jacobian=True)
            residual = bc.reduce_vector(system.rhs)
            norm = float(np.linalg.norm(residual))
            norms.append(norm)
            logger.debug("Newton iteration %d: |r| = %.6e", iteration, norm)

            if self._converged(norm, norms[0]):
                logger.info("Newton converged in %d iterations (|r| = %.3e)", iteration, norm)
                return NewtonResult(True, iteration, norms)
            if iteration == self.max_iterations:
                break

            K_red = bc.reduce_matrix(system.matrix).tocsc()
            delta = np.atleast_1d(spsolve(K_red, -residual))
            if not np.all(np.isfinite(delta)):
                raise RuntimeError(f"Singular Jacobian at Newton iteration {iteration}")
            system.solution += bc.expand_solution(delta, fixed_values={})

        message = (
            f"Newton did not converge in {self.max_iterations} iterations "
            f"(|r| = {norms[-1]:.3e}, initial {norms[0]:.3e})"
        )
        if not self.continue_after_max_iterations:
            raise RuntimeError(message)
        logger.warning(message)
        return NewtonResult(False, self.max_iterations, norms)
