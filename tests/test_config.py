"""Tests for the YAML simulation configuration."""

import pytest
import yaml

from fem_elasticity.core.config import (
    BoundaryIdConfig,
    ElasticitySimulationConfig,
    LoadConfig,
    MeshConfig,
    NewtonConfig,
    TimeSolverConfig,
)


class TestDefaults:
    def test_sections(self):
        config = ElasticitySimulationConfig()
        assert config.material.young_modulus == 100.0
        assert config.material.poisson_ratio == 0.3
        assert config.material.density == 1.0
        assert config.loads.body_force == [0.0, 0.0, -1.0]
        assert config.loads.traction is None
        assert config.loads.pressure == 100.0
        assert config.time_solver.type == "newmark"
        assert config.newton.max_iterations == 10
        assert config.dim == 3

    def test_boundary_id_table(self):
        ids = BoundaryIdConfig()
        assert ids.to_dict() == {
            "min_z": 0,
            "min_y": 1,
            "max_x": 2,
            "max_y": 3,
            "min_x": 4,
            "max_z": 5,
            "node": 10,
            "edge": 11,
            "fixed_u": 12,
            "fixed_v": 13,
            "pressure": 14,
            "traction": 15,
        }


class TestValidation:
    def test_duplicate_boundary_ids(self):
        with pytest.raises(ValueError, match="distinct"):
            BoundaryIdConfig(pressure=15)

    def test_non_integer_boundary_id(self):
        with pytest.raises(ValueError):
            BoundaryIdConfig(node="ten")

    def test_element_type_must_match_dimension(self):
        with pytest.raises(ValueError, match="Invalid element type"):
            MeshConfig(element_type="QUAD4", divisions=[1, 1, 1], lengths=[1, 1, 1])

    def test_mesh_lengths_mismatch(self):
        with pytest.raises(ValueError):
            MeshConfig(element_type="QUAD4", divisions=[1, 1], lengths=[1.0])

    def test_unknown_face_tag(self):
        with pytest.raises(ValueError):
            MeshConfig(face_tags={"traction": ["top"]})
        with pytest.raises(ValueError):
            MeshConfig(face_tags={"load": ["max_x"]})

    def test_body_force_components(self):
        with pytest.raises(ValueError):
            LoadConfig(body_force=[0.0, -1.0])

    @pytest.mark.parametrize(
        "kwargs",
        [{"type": "rk4"}, {"time_step": 0.0}, {"n_steps": 0}, {"theta": 0.0}, {"beta": 0.0}],
    )
    def test_invalid_time_solver(self, kwargs):
        with pytest.raises(ValueError):
            TimeSolverConfig(**kwargs)

    def test_invalid_newton(self):
        with pytest.raises(ValueError):
            NewtonConfig(max_iterations=0)
        with pytest.raises(ValueError):
            NewtonConfig(relative_tolerance=-1.0)


class TestFromDict:
    def test_partial_sections(self):
        config = ElasticitySimulationConfig.from_dict(
            {
                "mesh": {"element_type": "QUAD4", "divisions": [2, 1], "lengths": [2.0, 1.0]},
                "material": {"young_modulus": 200.0},
            }
        )
        assert config.dim == 2
        assert config.material.young_modulus == 200.0
        assert config.material.poisson_ratio == 0.3

    def test_unknown_section(self):
        with pytest.raises(ValueError, match="Unknown configuration sections"):
            ElasticitySimulationConfig.from_dict({"solver": {}})

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown keys in 'material'"):
            ElasticitySimulationConfig.from_dict({"material": {"E": 1.0}})

    def test_empty_section(self):
        config = ElasticitySimulationConfig.from_dict({"loads": None})
        assert config.loads.pressure == 100.0


class TestYaml:
    def test_round_trip(self, tmp_path):
        config = ElasticitySimulationConfig.from_dict(
            {
                "mesh": {"divisions": [3, 1, 1], "lengths": [3.0, 1.0, 1.0],
                         "face_tags": {"pressure": ["max_x"]}},
                "loads": {"traction": [0.0, 1.0, 0.0]},
                "time_solver": {"type": "euler", "theta": 0.5, "n_steps": 4},
            }
        )
        path = tmp_path / "config.yaml"
        config.save_yaml(path)

        loaded = ElasticitySimulationConfig.from_yaml(path)
        assert loaded.to_dict() == config.to_dict()
        assert loaded.mesh.face_tags == {"pressure": ["max_x"]}
        assert loaded.time_solver.theta == 0.5

    def test_saved_file_is_plain_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        ElasticitySimulationConfig().save_yaml(path)
        data = yaml.safe_load(path.read_text())
        assert list(data) == [
            "mesh", "material", "loads", "boundary_ids", "fe", "time_solver", "newton"
        ]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ElasticitySimulationConfig.from_yaml(tmp_path / "missing.yaml")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert ElasticitySimulationConfig.from_yaml(path).to_dict() == (
            ElasticitySimulationConfig().to_dict()
        )


class TestWarnings:
    def test_defaults_are_clean(self):
        assert ElasticitySimulationConfig().validate() == []

    def test_load_on_clamped_face(self):
        config = ElasticitySimulationConfig(mesh=MeshConfig(face_tags={"traction": ["min_x"]}))
        assert any("min_x" in w for w in config.validate())

    def test_steady_with_steps(self):
        config = ElasticitySimulationConfig(time_solver=TimeSolverConfig(type="steady", n_steps=3))
        assert any("n_steps" in w for w in config.validate())

    def test_z_body_force_in_2d(self):
        config = ElasticitySimulationConfig(
            mesh=MeshConfig(element_type="QUAD4", divisions=[1, 1], lengths=[1.0, 1.0])
        )
        assert any("ignored in 2D" in w for w in config.validate())

    def test_unstable_newmark(self):
        config = ElasticitySimulationConfig(time_solver=TimeSolverConfig(beta=0.1, gamma=0.5))
        assert any("Newmark" in w for w in config.validate())

    def test_str(self):
        text = str(ElasticitySimulationConfig())
        assert "Elasticity Simulation Configuration" in text
        assert "HEXA8" in text
