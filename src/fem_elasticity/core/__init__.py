"""
Core module for fem-elasticity.

Provides configuration, materials, meshes, basis evaluation, boundary
conditions and the element assembly framework.
"""

from .config import (
    BoundaryIdConfig,
    ElasticitySimulationConfig,
    LoadConfig,
    MaterialConfig,
    MeshConfig,
    NewtonConfig,
    TimeSolverConfig,
)
from .material import IsotropicMaterial

__all__ = [
    "BoundaryIdConfig",
    "ElasticitySimulationConfig",
    "IsotropicMaterial",
    "LoadConfig",
    "MaterialConfig",
    "MeshConfig",
    "NewtonConfig",
    "TimeSolverConfig",
]
