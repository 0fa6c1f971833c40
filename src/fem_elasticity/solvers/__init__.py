from .newton import NewtonResult, NewtonSolver
from .runner import ElasticityRunner, StepRecord, run_from_yaml
from .time_solver import EulerSolver, NewmarkSolver, SteadySolver, TimeSolver, build_time_solver

__all__ = [
    "ElasticityRunner",
    "EulerSolver",
    "NewmarkSolver",
    "NewtonResult",
    "NewtonSolver",
    "SteadySolver",
    "StepRecord",
    "TimeSolver",
    "build_time_solver",
    "run_from_yaml",
]
