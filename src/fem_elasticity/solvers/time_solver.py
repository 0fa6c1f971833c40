"""Time integrators for FEM systems.

A time solver prepares every element context before the physics
contributions run: it sets the local solution used for values and
gradients, the local rates and accelerations, and the factors

- ``elem_solution_derivative``: ∂(local solution)/∂(unknown)
- ``elem_solution_rate_derivative``: ∂(local rate)/∂(unknown)
- ``elem_solution_accel_derivative``: ∂(local acceleration)/∂(unknown)

that scale the Jacobian contributions.

Solvers:
- SteadySolver: no inertia.
- NewmarkSolver: second order, integrates displacement and acceleration.
- EulerSolver: first order theta method on displacement and a companion
  velocity variable ``v = u̇``.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

import numpy as np
from scipy.sparse.linalg import spsolve

from fem_elasticity.core.bc import BoundaryConditionManager
from fem_elasticity.core.context import FEMContext

if TYPE_CHECKING:
    from fem_elasticity.core.config import TimeSolverConfig
    from fem_elasticity.core.system import FEMSystem

logger = logging.getLogger(__name__)


class TimeSolver(ABC):
    """Base class of time integrators.

    Parameters
    ----------
    time_step : float
        Time step size.
    """

    is_first_order = False
    has_mass = True

    def __init__(self, time_step: float = 0.1):
        if time_step <= 0:
            raise ValueError(f"time_step must be positive: {time_step}")
        self.dt = float(time_step)
        self.time = 0.0
        self.step = 0
        self.system: Optional["FEMSystem"] = None

    def init_data(self, system: "FEMSystem") -> None:
        """Called by the system before its DOFs are numbered."""
        self.system = system

    def init_vectors(self) -> None:
        """Called by the system once its solution vector exists."""

    @abstractmethod
    def prepare_context(self, context: FEMContext) -> None:
        raise NotImplementedError

    def element_constraint(self, request_jacobian: bool, context: FEMContext) -> bool:
        """Extra per-element rows owned by the time solver."""
        return False

    def advance_timestep(self) -> None:
        self.time += self.dt
        self.step += 1

    def __repr__(self):
        return f"<{type(self).__name__} dt={self.dt} t={self.time}>"


class SteadySolver(TimeSolver):
    """Static equilibrium: no mass term, unit solution derivative."""

    has_mass = False

    def prepare_context(self, context: FEMContext) -> None:
        context.elem_solution_derivative = 1.0
        context.elem_solution_rate_derivative = 0.0
        context.elem_solution_accel_derivative = 0.0


class NewmarkSolver(TimeSolver):
    """Newmark-beta second-order integrator.

    The acceleration of the unknown displacement ``u`` is

        a = (u - uₙ - dt vₙ) / (β dt²) - (1/(2β) - 1) aₙ

    so ``∂a/∂u = 1/(β dt²)``. After convergence the velocity is updated with
    ``v = vₙ + dt((1 - γ) aₙ + γ a)``.

    Parameters
    ----------
    time_step : float
        Time step size.
    beta, gamma : float
        Newmark parameters (average acceleration by default).
    """

    def __init__(self, time_step: float = 0.1, beta: float = 0.25, gamma: float = 0.5):
        super().__init__(time_step)
        if beta <= 0:
            raise ValueError(f"Newmark beta must be positive: {beta}")
        self.beta = beta
        self.gamma = gamma
        self.old_solution = np.zeros(0)
        self.old_velocity = np.zeros(0)
        self.old_accel = np.zeros(0)
        self._initial_accel_mode = False

    @property
    def a0(self) -> float:
        return 1.0 / (self.beta * self.dt**2)

    @property
    def a1(self) -> float:
        return 1.0 / (self.beta * self.dt)

    @property
    def a3(self) -> float:
        return 1.0 / (2 * self.beta) - 1.0

    def init_vectors(self) -> None:
        n_dofs = self.system.dof_map.n_dofs
        self.old_solution = self.system.solution.copy()
        self.old_velocity = np.zeros(n_dofs)
        self.old_accel = np.zeros(n_dofs)

    def acceleration(self, u: np.ndarray, dofs=slice(None)) -> np.ndarray:
        return (
            self.a0 * (u - self.old_solution[dofs])
            - self.a1 * self.old_velocity[dofs]
            - self.a3 * self.old_accel[dofs]
        )

    def prepare_context(self, context: FEMContext) -> None:
        dofs = context.dof_indices
        context.elem_solution_rate_derivative = 0.0
        if self._initial_accel_mode:
            # Mass matrix only; the stiffness terms enter the residual alone
            context.elem_solution_accel = self.old_accel[dofs].copy()
            context.elem_solution_derivative = 0.0
            context.elem_solution_accel_derivative = 1.0
            return
        context.elem_solution_accel = self.acceleration(context.elem_solution, dofs)
        context.elem_solution_derivative = 1.0
        context.elem_solution_accel_derivative = self.a0

    def compute_initial_accel(self) -> np.ndarray:
        """Solve ``M a₀ = -r(u₀)`` for a consistent initial acceleration."""
        system = self.system
        self.old_accel[:] = 0.0
        self._initial_accel_mode = True
        try:
            system.assembly(get_residual=True, get_jacobian=True)
        finally:
            self._initial_accel_mode = False

        bc = BoundaryConditionManager(system.dof_map.n_dofs)
        bc.apply_constraints({dof: 0.0 for dof in system.dof_map.constraints})
        M_red = bc.reduce_matrix(system.matrix)
        r_red = bc.reduce_vector(system.rhs)
        self.old_accel = bc.expand_solution(np.atleast_1d(spsolve(M_red.tocsc(), -r_red)))
        logger.info("Initial acceleration: max |a0| = %.6e", np.abs(self.old_accel).max())
        return self.old_accel

    def advance_timestep(self) -> None:
        u = self.system.solution
        accel = self.acceleration(u)
        self.old_velocity = self.old_velocity + self.dt * (
            (1 - self.gamma) * self.old_accel + self.gamma * accel
        )
        self.old_accel = accel
        self.old_solution = u.copy()
        super().advance_timestep()


class EulerSolver(TimeSolver):
    """First-order theta method.

    Every second-order variable ``u`` gets a companion velocity variable
    ``v``. The momentum equation lives in the rows of ``v`` and uses

        u_θ = θ u + (1 - θ) uₙ,      v̇ = (v - vₙ) / dt

    while the rows of ``u`` hold the kinematic relation
    ``(u - uₙ)/dt - v_θ = 0``.

    Parameters
    ----------
    time_step : float
        Time step size.
    theta : float
        Implicitness, 1 for backward Euler and 0.5 for Crank-Nicolson.
    """

    is_first_order = True

    def __init__(self, time_step: float = 0.1, theta: float = 1.0):
        super().__init__(time_step)
        if not 0 < theta <= 1:
            raise ValueError(f"theta must be in (0, 1]: {theta}")
        self.theta = theta
        self.old_solution = np.zeros(0)

    def init_data(self, system: "FEMSystem") -> None:
        super().init_data(system)
        system.add_second_order_dot_vars()

    def init_vectors(self) -> None:
        self.old_solution = self.system.solution.copy()

    def prepare_context(self, context: FEMContext) -> None:
        dofs = context.dof_indices
        u = context.elem_solution
        u_old = self.old_solution[dofs]
        rate = (u - u_old) / self.dt

        context.elem_solution = self.theta * u + (1 - self.theta) * u_old
        context.elem_solution_rate = rate
        # The acceleration of u is the rate of its companion velocity
        context.elem_solution_accel = rate.copy()
        context.elem_solution_derivative = self.theta
        context.elem_solution_rate_derivative = 1.0 / self.dt
        context.elem_solution_accel_derivative = 1.0 / self.dt

    def element_constraint(self, request_jacobian: bool, context: FEMContext) -> bool:
        for var, dot_var in self.system.second_order_dot_vars.items():
            fe = context.get_element_fe(var)
            JxW = fe.get_JxW()
            phi = fe.get_phi()
            F = context.get_elem_residual(var)
            K_uu = context.get_elem_jacobian(var, var)
            K_uv = context.get_elem_jacobian(var, dot_var)

            for qp in range(context.get_element_qrule().n_points()):
                u_rate = context.interior_rate(var, qp)
                v = context.interior_value(dot_var, qp)
                F += (u_rate - v) * phi[:, qp] * JxW[qp]

                if request_jacobian:
                    M = np.outer(phi[:, qp], phi[:, qp]) * JxW[qp]
                    K_uu += M * context.get_elem_solution_rate_derivative()
                    K_uv -= M * context.get_elem_solution_derivative()
        return request_jacobian

    def advance_timestep(self) -> None:
        self.old_solution = self.system.solution.copy()
        super().advance_timestep()


def build_time_solver(config: "TimeSolverConfig") -> TimeSolver:
    """Create the time solver described by a configuration section."""
    from fem_elasticity.core.config import TimeSolverType

    if config.type == TimeSolverType.STEADY.value:
        return SteadySolver(config.time_step)
    if config.type == TimeSolverType.NEWMARK.value:
        return NewmarkSolver(config.time_step, beta=config.beta, gamma=config.gamma)
    if config.type == TimeSolverType.EULER.value:
        return EulerSolver(config.time_step, theta=config.theta)
    raise ValueError(f"Unknown time solver type: {config.type}")
