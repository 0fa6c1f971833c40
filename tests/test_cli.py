"""Tests for the command-line runner."""

import pytest
import yaml

from fem_elasticity.cli.run_elasticity import TEMPLATE_CONFIG, main
from fem_elasticity.core.config import ElasticitySimulationConfig


@pytest.fixture
def small_config(tmp_path):
    """Steady single-element configuration written to disk."""
    config = ElasticitySimulationConfig.from_dict({"time_solver": {"type": "steady"}})
    path = tmp_path / "small.yaml"
    config.save_yaml(path)
    return path


class TestTemplate:
    def test_template_is_valid_config(self):
        config = ElasticitySimulationConfig.from_dict(yaml.safe_load(TEMPLATE_CONFIG))
        assert config.mesh.face_tags == {"traction": ["max_x"]}
        assert config.validate() == []

    def test_print_template(self, capsys):
        assert main(["--template"]) == 0
        assert "time_solver:" in capsys.readouterr().out


class TestMain:
    def test_no_arguments(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.yaml")]) == 1
        assert "not found" in capsys.readouterr().out

    def test_preview(self, small_config, capsys):
        assert main([str(small_config), "--preview"]) == 0
        assert "Elasticity Simulation Configuration" in capsys.readouterr().out

    def test_preview_invalid_file(self, tmp_path, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text("material:\n  young_modulus: -1.0\n")
        assert main([str(path), "--preview"]) == 1
        assert "Invalid configuration" in capsys.readouterr().out

    def test_validate(self, small_config, capsys):
        assert main([str(small_config), "--validate"]) == 0
        assert "Configuration is valid" in capsys.readouterr().out

    def test_validate_reports_warnings(self, tmp_path, capsys):
        path = tmp_path / "warn.yaml"
        ElasticitySimulationConfig.from_dict(
            {"time_solver": {"type": "steady", "n_steps": 4}}
        ).save_yaml(path)
        assert main([str(path), "--validate"]) == 1
        assert "Warnings" in capsys.readouterr().out

    def test_validate_invalid_file(self, tmp_path, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text("material:\n  young_modulus: -1.0\n")
        assert main([str(path), "--validate"]) == 1
        assert "Validation failed" in capsys.readouterr().out

    def test_run(self, small_config, capsys):
        assert main([str(small_config)]) == 0
        assert "FEM-ELASTICITY SIMULATION RUNNER" in capsys.readouterr().out

    def test_run_failure_returns_error(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("solver: {}\n")
        assert main([str(path)]) == 1
