#!/usr/bin/env python3
"""
Elasticity Simulation CLI Runner.

Command-line interface for running nonlinear elasticity simulations from
YAML configuration files.

Usage:
    python -m fem_elasticity.cli.run_elasticity config.yaml [options]

Examples:
    # Run simulation from YAML
    python -m fem_elasticity.cli.run_elasticity simulation.yaml

    # Preview configuration without running
    python -m fem_elasticity.cli.run_elasticity simulation.yaml --preview

    # Generate template configuration
    python -m fem_elasticity.cli.run_elasticity --template > my_config.yaml
"""

import argparse
import logging
import sys
from pathlib import Path

# Template YAML configuration
TEMPLATE_CONFIG = """# Elasticity Simulation Configuration
# ===================================

#============================================================================
# MESH
#============================================================================
mesh:
  element_type: "HEXA8"     # EDGE2 (1D), QUAD4 (2D), HEXA8 or WEDGE6 (3D)
  divisions: [4, 1, 1]      # Cells per direction; its length sets the dimension
  lengths: [4.0, 1.0, 1.0]  # Domain size per direction
  face_tags:                # Extra boundary ids on outer faces
    traction: ["max_x"]
    # pressure: ["max_z"]

#============================================================================
# MATERIAL
#============================================================================
material:
  name: "Material"
  young_modulus: 100.0
  poisson_ratio: 0.3
  density: 1.0

#============================================================================
# LOADS
#============================================================================
loads:
  body_force: [0.0, 0.0, -1.0]
  # traction: [0.0, 0.0, -1.0]  # Default: -1 along the last active axis
  pressure: 100.0               # Magnitude along the outward normal

#============================================================================
# BOUNDARY IDS (must be distinct)
#============================================================================
boundary_ids:
  min_z: 0
  min_y: 1
  max_x: 2
  max_y: 3
  min_x: 4    # Clamped: all displacement components
  max_z: 5
  node: 10    # Clamped
  edge: 11    # Clamped
  fixed_u: 12 # Ux only
  fixed_v: 13 # Uy only
  pressure: 14
  traction: 15

#============================================================================
# TIME INTEGRATION
#============================================================================
time_solver:
  type: "newmark"   # "newmark", "euler" or "steady"
  time_step: 0.1
  n_steps: 10
  beta: 0.25        # Newmark
  gamma: 0.5        # Newmark
  theta: 1.0        # Euler
  compute_initial_accel: false

#============================================================================
# NEWTON
#============================================================================
newton:
  max_iterations: 10
  absolute_tolerance: 1.0e-12
  relative_tolerance: 1.0e-9
  continue_after_max_iterations: false
"""


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def print_template() -> None:
    """Print template configuration to stdout."""
    print(TEMPLATE_CONFIG)


def validate_config(config_path: str) -> bool:
    """Validate configuration file without running."""
    from fem_elasticity.core.config import ElasticitySimulationConfig

    try:
        config = ElasticitySimulationConfig.from_yaml(config_path)
    except (ValueError, TypeError) as e:
        print(f"\nValidation failed: {e}")
        return False

    warnings = config.validate()
    print("Configuration validation:")
    print("=" * 50)
    print(config)

    if warnings:
        print("\nWarnings:")
        for w in warnings:
            print(f"  - {w}")
        return False
    print("\nConfiguration is valid")
    return True


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Run nonlinear elasticity simulations from YAML configuration files.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s config.yaml                    Run simulation
  %(prog)s config.yaml --preview          Preview configuration
  %(prog)s --template > config.yaml       Generate template
        """,
    )

    parser.add_argument("config", nargs="?", help="Path to YAML configuration file")
    parser.add_argument(
        "--preview", "-p", action="store_true", help="Preview configuration without running"
    )
    parser.add_argument("--validate", action="store_true", help="Validate configuration file")
    parser.add_argument(
        "--template", "-t", action="store_true", help="Print template configuration to stdout"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    args = parser.parse_args(argv)

    if args.template:
        print_template()
        return 0

    if not args.config:
        parser.print_help()
        return 1

    config_path = Path(args.config)
    if not config_path.exists():
        print(f"Error: Configuration file not found: {config_path}")
        return 1

    setup_logging(args.verbose)

    if args.validate:
        return 0 if validate_config(str(config_path)) else 1

    if args.preview:
        from fem_elasticity.core.config import ElasticitySimulationConfig

        try:
            config = ElasticitySimulationConfig.from_yaml(str(config_path))
        except (ValueError, TypeError) as e:
            print(f"Error: Invalid configuration: {e}")
            return 1
        print(config)
        return 0

    try:
        from fem_elasticity.solvers.runner import ElasticityRunner

        ElasticityRunner(str(config_path)).run()
        return 0

    except KeyboardInterrupt:
        print("\nSimulation interrupted by user")
        return 130

    except Exception:
        logging.exception("Simulation failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
