"""
Elasticity Simulation Runner.

Runs a transient (or steady) nonlinear elasticity simulation described by a
YAML configuration file.

Example usage:
    from fem_elasticity.solvers.runner import ElasticityRunner

    runner = ElasticityRunner("simulation.yaml")
    system = runner.run()

Or from command line:
    python -m fem_elasticity.cli.run_elasticity simulation.yaml
"""

import logging
from pathlib import Path
from typing import List, NamedTuple, Optional, Union

import numpy as np

from fem_elasticity.core.config import ElasticitySimulationConfig, TimeSolverType
from fem_elasticity.core.mesh import MeshModel, build_mesh
from fem_elasticity.physics.elasticity import ElasticitySystem
from fem_elasticity.solvers.newton import NewtonResult, NewtonSolver
from fem_elasticity.solvers.time_solver import NewmarkSolver, TimeSolver, build_time_solver

logger = logging.getLogger(__name__)


class StepRecord(NamedTuple):
    step: int
    time: float
    newton: NewtonResult
    max_displacement: float
    min_displacement: float


class ElasticityRunner:
    """
    Simulation runner that executes elasticity runs from a configuration.

    Parameters
    ----------
    config : ElasticitySimulationConfig or str or Path
        Configuration object or path to YAML configuration file.
    mesh : MeshModel, optional
        Mesh to use instead of the structured mesh described by ``config.mesh``.
    comm : MPI.Comm, optional
        Communicator handed to the system.

    Attributes
    ----------
    system : ElasticitySystem
        The system after :meth:`setup`.
    history : list of StepRecord
        One record per completed time step.
    """

    def __init__(
        self,
        config: Union[ElasticitySimulationConfig, str, Path],
        mesh: Optional[MeshModel] = None,
        comm=None,
    ):
        if isinstance(config, (str, Path)):
            self.config_path = Path(config)
            self.config = ElasticitySimulationConfig.from_yaml(config)
        else:
            self.config_path = None
            self.config = config

        self.mesh = mesh
        self.comm = comm
        self.system: Optional[ElasticitySystem] = None
        self.time_solver: Optional[TimeSolver] = None
        self.newton: Optional[NewtonSolver] = None
        self.history: List[StepRecord] = []

    def _print_header(self) -> None:
        """Print simulation header."""
        print("\n" + "=" * 70)
        print("  FEM-ELASTICITY SIMULATION RUNNER")
        print("=" * 70)
        print(f"  Configuration: {self.config_path or 'Provided object'}")
        print(f"  Time solver: {self.config.time_solver.type}")
        print(f"  Mesh: {self.config.mesh.dim}D {self.config.mesh.element_type}")
        print("=" * 70 + "\n")

    def _validate_config(self) -> None:
        for warning in self.config.validate():
            logger.warning("Configuration warning: %s", warning)

    def setup(self) -> ElasticitySystem:
        """Build mesh, system, time solver and Newton solver."""
        self._validate_config()
        if self.mesh is None:
            self.mesh = build_mesh(self.config.mesh, self.config.boundary_ids)
        logger.info("Mesh: %r", self.mesh)

        self.time_solver = build_time_solver(self.config.time_solver)
        self.system = ElasticitySystem(
            self.mesh, self.config, time_solver=self.time_solver, comm=self.comm
        )
        self.system.init_data()
        self.newton = NewtonSolver.from_config(self.system, self.config.newton)

        if self.config.time_solver.compute_initial_accel:
            if isinstance(self.time_solver, NewmarkSolver):
                self.time_solver.compute_initial_accel()
            else:
                logger.warning(
                    "compute_initial_accel is ignored by the %s solver",
                    self.config.time_solver.type,
                )
        return self.system

    def run(self) -> ElasticitySystem:
        """
        Execute the simulation.

        Returns
        -------
        ElasticitySystem
            The system holding the final solution.

        Raises
        ------
        RuntimeError
            If a Newton solve does not converge.
        """
        self._print_header()
        if self.system is None:
            self.setup()

        n_steps = self.config.time_solver.n_steps
        if self.config.time_solver.type == TimeSolverType.STEADY.value:
            n_steps = 1

        for step in range(1, n_steps + 1):
            result = self.newton.solve()
            self.time_solver.advance_timestep()
            record = self._record(step, result)
            self.history.append(record)
            logger.info(
                "Step %d/%d t=%.4g: %d Newton iterations, displacement in [%.6e, %.6e]",
                step,
                n_steps,
                record.time,
                result.n_iterations,
                record.min_displacement,
                record.max_displacement,
            )

        logger.info("Simulation completed successfully!")
        return self.system

    def _record(self, step: int, result: NewtonResult) -> StepRecord:
        values = self.displacement()
        return StepRecord(
            step=step,
            time=self.time_solver.time,
            newton=result,
            max_displacement=float(values.max()),
            min_displacement=float(values.min()),
        )

    def displacement(self) -> np.ndarray:
        """Nodal displacement field (n_nodes × dim)."""
        dof_map = self.system.dof_map
        disp_vars = self.system.displacement_vars[: self.system.dim]
        return np.column_stack([self.system.solution[dof_map.variable_dofs(v)] for v in disp_vars])


def run_from_yaml(yaml_path: Union[str, Path]) -> ElasticitySystem:
    """
    Convenience function to run an elasticity simulation from a YAML file.

    Examples
    --------
    >>> from fem_elasticity.solvers.runner import run_from_yaml
    >>> system = run_from_yaml("simulation.yaml")
    """
    runner = ElasticityRunner(yaml_path)
    return runner.run()
