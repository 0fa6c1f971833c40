"""
Elasticity Simulation Configuration Module.

This module provides a YAML-based configuration system for nonlinear
elasticity runs. Every physical constant used by the assembly kernels
(material, loads, boundary-id table) is resolved from here once, when the
system is constructed.

Example YAML configuration:
    mesh:
      element_type: "HEXA8"
      divisions: [4, 1, 1]
      lengths: [4.0, 1.0, 1.0]
      face_tags:
        traction: ["max_x"]

    material:
      young_modulus: 100.0
      poisson_ratio: 0.3
      density: 1.0

    time_solver:
      type: "newmark"
      time_step: 0.1
      n_steps: 10
"""

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

# =============================================================================
# Enums
# =============================================================================


class FEFamily(str, Enum):
    LAGRANGE = "LAGRANGE"


class ElementName(str, Enum):
    EDGE2 = "EDGE2"
    QUAD4 = "QUAD4"
    HEXA8 = "HEXA8"
    WEDGE6 = "WEDGE6"


class TimeSolverType(str, Enum):
    STEADY = "steady"
    NEWMARK = "newmark"
    EULER = "euler"


ELEMENTS_BY_DIM = {
    1: (ElementName.EDGE2.value,),
    2: (ElementName.QUAD4.value,),
    3: (ElementName.HEXA8.value, ElementName.WEDGE6.value),
}

FACE_NAMES = ("min_x", "max_x", "min_y", "max_y", "min_z", "max_z")


# =============================================================================
# Section dataclasses
# =============================================================================


@dataclass
class MaterialConfig:
    """Isotropic material constants."""

    name: str = "Material"
    young_modulus: float = 100.0
    poisson_ratio: float = 0.3
    density: float = 1.0

    def __post_init__(self):
        if self.young_modulus <= 0:
            raise ValueError(f"Young's modulus must be positive: {self.young_modulus}")
        if not -1 < self.poisson_ratio < 0.5:
            raise ValueError(f"Poisson's ratio must be in (-1, 0.5): {self.poisson_ratio}")
        if self.density <= 0:
            raise ValueError(f"Density must be positive: {self.density}")


@dataclass
class LoadConfig:
    """Applied loads.

    ``traction`` left as None means a unit load along the negative last
    active axis, i.e. (0, ..., 0, -1).
    """

    body_force: List[float] = field(default_factory=lambda: [0.0, 0.0, -1.0])
    traction: Optional[List[float]] = None
    pressure: float = 100.0

    def __post_init__(self):
        self.body_force = [float(v) for v in self.body_force]
        if len(self.body_force) != 3:
            raise ValueError(f"body_force must have 3 components: {self.body_force}")
        if self.traction is not None:
            self.traction = [float(v) for v in self.traction]
            if len(self.traction) != 3:
                raise ValueError(f"traction must have 3 components: {self.traction}")


@dataclass
class BoundaryIdConfig:
    """Boundary id table. All ids must be distinct."""

    min_z: int = 0
    min_y: int = 1
    max_x: int = 2
    max_y: int = 3
    min_x: int = 4
    max_z: int = 5
    node: int = 10
    edge: int = 11
    fixed_u: int = 12
    fixed_v: int = 13
    pressure: int = 14
    traction: int = 15

    def __post_init__(self):
        values = [getattr(self, f.name) for f in fields(self)]
        for f, value in zip(fields(self), values):
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"Boundary id '{f.name}' must be an integer: {value!r}")
        if len(set(values)) != len(values):
            raise ValueError(f"Boundary ids must be distinct: {self.to_dict()}")

    @classmethod
    def names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class FEConfig:
    """Finite element family and order of the displacement variables."""

    family: str = FEFamily.LAGRANGE.value
    order: int = 1

    def __post_init__(self):
        valid = [f.value for f in FEFamily]
        if self.family not in valid:
            raise ValueError(f"Invalid FE family: {self.family}. Valid: {valid}")
        if self.order != 1:
            raise ValueError(f"Only first-order {self.family} elements are supported: {self.order}")


@dataclass
class MeshConfig:
    """Structured mesh description."""

    element_type: str = ElementName.HEXA8.value
    divisions: List[int] = field(default_factory=lambda: [1, 1, 1])
    lengths: List[float] = field(default_factory=lambda: [1.0, 1.0, 1.0])
    face_tags: Dict[str, List[str]] = field(default_factory=dict)

    def __post_init__(self):
        self.divisions = [int(n) for n in self.divisions]
        self.lengths = [float(v) for v in self.lengths]
        if len(self.divisions) not in ELEMENTS_BY_DIM:
            raise ValueError(f"Unsupported mesh dimension: {len(self.divisions)}")
        if len(self.lengths) != len(self.divisions):
            raise ValueError("Mesh divisions and lengths must have the same length")
        if self.element_type not in ELEMENTS_BY_DIM[self.dim]:
            raise ValueError(
                f"Invalid element type {self.element_type} for a {self.dim}D mesh. "
                f"Valid: {list(ELEMENTS_BY_DIM[self.dim])}"
            )
        for id_name, faces in self.face_tags.items():
            if id_name not in BoundaryIdConfig.names():
                raise ValueError(f"Unknown boundary id name in face_tags: {id_name}")
            for face in faces:
                if face not in FACE_NAMES:
                    raise ValueError(f"Unknown face '{face}'. Valid: {list(FACE_NAMES)}")

    @property
    def dim(self) -> int:
        return len(self.divisions)


@dataclass
class TimeSolverConfig:
    """Time integration parameters."""

    type: str = TimeSolverType.NEWMARK.value
    time_step: float = 0.1
    n_steps: int = 1
    beta: float = 0.25
    gamma: float = 0.5
    theta: float = 1.0
    compute_initial_accel: bool = False

    def __post_init__(self):
        valid_types = [t.value for t in TimeSolverType]
        if self.type not in valid_types:
            raise ValueError(f"Invalid time solver type: {self.type}. Valid: {valid_types}")
        if self.time_step <= 0:
            raise ValueError(f"time_step must be positive: {self.time_step}")
        if self.n_steps < 1:
            raise ValueError(f"n_steps must be at least 1: {self.n_steps}")
        if self.beta <= 0:
            raise ValueError(f"Newmark beta must be positive: {self.beta}")
        if not 0 < self.theta <= 1:
            raise ValueError(f"theta must be in (0, 1]: {self.theta}")


@dataclass
class NewtonConfig:
    """Nonlinear solver controls."""

    max_iterations: int = 10
    absolute_tolerance: float = 1e-12
    relative_tolerance: float = 1e-9
    continue_after_max_iterations: bool = False

    def __post_init__(self):
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1: {self.max_iterations}")
        if self.absolute_tolerance < 0 or self.relative_tolerance < 0:
            raise ValueError("Newton tolerances must be non-negative")


# =============================================================================
# Main Configuration Class
# =============================================================================


@dataclass
class ElasticitySimulationConfig:
    """Complete elasticity simulation configuration."""

    mesh: MeshConfig = field(default_factory=MeshConfig)
    material: MaterialConfig = field(default_factory=MaterialConfig)
    loads: LoadConfig = field(default_factory=LoadConfig)
    boundary_ids: BoundaryIdConfig = field(default_factory=BoundaryIdConfig)
    fe: FEConfig = field(default_factory=FEConfig)
    time_solver: TimeSolverConfig = field(default_factory=TimeSolverConfig)
    newton: NewtonConfig = field(default_factory=NewtonConfig)

    @property
    def dim(self) -> int:
        return self.mesh.dim

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "ElasticitySimulationConfig":
        """Load configuration from YAML file.

        Parameters
        ----------
        yaml_path : str or Path
            Path to the YAML configuration file.

        Returns
        -------
        ElasticitySimulationConfig
            Validated configuration object.

        Raises
        ------
        FileNotFoundError
            If the YAML file does not exist.
        ValueError
            If the configuration is invalid.
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ElasticitySimulationConfig":
        """Create configuration from dictionary.

        Missing sections and keys take their documented defaults. Unknown
        keys inside a section raise ``ValueError``.
        """
        sections = {
            "mesh": MeshConfig,
            "material": MaterialConfig,
            "loads": LoadConfig,
            "boundary_ids": BoundaryIdConfig,
            "fe": FEConfig,
            "time_solver": TimeSolverConfig,
            "newton": NewtonConfig,
        }
        unknown = set(data) - set(sections)
        if unknown:
            raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")

        kwargs = {}
        for name, section_cls in sections.items():
            section_data = data.get(name) or {}
            valid = {f.name for f in fields(section_cls)}
            bad = set(section_data) - valid
            if bad:
                raise ValueError(f"Unknown keys in '{name}': {sorted(bad)}. Valid: {sorted(valid)}")
            kwargs[name] = section_cls(**section_data)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a plain dictionary."""
        return {
            "mesh": asdict(self.mesh),
            "material": asdict(self.material),
            "loads": asdict(self.loads),
            "boundary_ids": self.boundary_ids.to_dict(),
            "fe": asdict(self.fe),
            "time_solver": asdict(self.time_solver),
            "newton": asdict(self.newton),
        }

    def save_yaml(self, yaml_path: Union[str, Path]) -> None:
        """Save configuration to YAML file.

        Parameters
        ----------
        yaml_path : str or Path
            Path to the output YAML file.
        """
        with open(yaml_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def validate(self) -> List[str]:
        """Validate the complete configuration.

        Returns
        -------
        list of str
            List of validation warnings (empty if all OK).
        """
        warnings = []

        loaded = set(self.mesh.face_tags.get("traction", [])) | set(
            self.mesh.face_tags.get("pressure", [])
        )
        if "min_x" in loaded:
            warnings.append("Loads applied on the clamped min_x face have no effect")

        if self.time_solver.type == TimeSolverType.STEADY.value and self.time_solver.n_steps > 1:
            warnings.append("Steady solver ignores n_steps > 1")

        if self.dim < 3 and self.loads.body_force[2] != 0.0:
            warnings.append(
                f"body_force z-component is ignored in {self.dim}D: {self.loads.body_force}"
            )

        if self.time_solver.type == TimeSolverType.NEWMARK.value:
            if self.time_solver.gamma < 0.5 or self.time_solver.beta < 0.25 * (
                self.time_solver.gamma + 0.5
            ) ** 2:
                warnings.append("Newmark parameters are not unconditionally stable")

        return warnings

    def __str__(self) -> str:
        """Human-readable string representation."""
        lines = [
            "Elasticity Simulation Configuration",
            "=" * 40,
            f"Mesh: {self.mesh.dim}D {self.mesh.element_type} divisions={self.mesh.divisions}",
            f"  Lengths: {self.mesh.lengths}",
            f"Material: {self.material.name}",
            f"  E={self.material.young_modulus}, nu={self.material.poisson_ratio}, "
            f"rho={self.material.density}",
            f"Loads: body_force={self.loads.body_force}, pressure={self.loads.pressure}",
            f"FE: {self.fe.family} order {self.fe.order}",
            f"Time solver: {self.time_solver.type}",
            f"  dt={self.time_solver.time_step}, steps={self.time_solver.n_steps}",
            f"Newton: max_iterations={self.newton.max_iterations}",
        ]
        if self.mesh.face_tags:
            lines.append(f"Face tags: {self.mesh.face_tags}")
        return "\n".join(lines)
