"""Tests for the isotropic elasticity tensor."""

import itertools

import numpy as np
import pytest

from fem_elasticity.core.config import MaterialConfig
from fem_elasticity.core.material import IsotropicMaterial


@pytest.fixture
def material():
    """Default material: E=100, nu=0.3, rho=1."""
    return IsotropicMaterial()


class TestLameParameters:
    def test_defaults(self, material):
        assert material.E == 100.0
        assert material.nu == 0.3
        assert material.rho == 1.0

    def test_lame_values(self, material):
        assert material.lame_lambda == pytest.approx(57.6923076923, rel=1e-9)
        assert material.lame_mu == pytest.approx(38.4615384615, rel=1e-9)

    def test_from_config(self):
        config = MaterialConfig(name="steel", young_modulus=210e9, poisson_ratio=0.3, density=7850)
        material = IsotropicMaterial.from_config(config)
        assert material.name == "steel"
        assert material.E == 210e9
        assert material.rho == 7850

    @pytest.mark.parametrize(
        "kwargs", [{"E": 0.0}, {"nu": 0.5}, {"nu": -1.0}, {"rho": -1.0}]
    )
    def test_invalid_constants(self, kwargs):
        with pytest.raises(ValueError):
            IsotropicMaterial(**kwargs)


class TestElasticityTensor:
    def test_diagonal_components(self, material):
        # λ + 2μ on the axial terms
        assert material.elasticity(0, 0, 0, 0) == pytest.approx(134.615384615, rel=1e-9)
        assert material.elasticity(2, 2, 2, 2) == pytest.approx(134.615384615, rel=1e-9)
        assert material.elasticity(0, 0, 1, 1) == pytest.approx(57.6923076923, rel=1e-9)
        assert material.elasticity(0, 1, 0, 1) == pytest.approx(38.4615384615, rel=1e-9)
        assert material.elasticity(0, 1, 1, 0) == pytest.approx(38.4615384615, rel=1e-9)

    def test_zero_components(self, material):
        assert material.elasticity(0, 1, 2, 2) == 0.0
        assert material.elasticity(0, 0, 0, 1) == 0.0

    def test_symmetries(self, material):
        C = material.tensor
        for i, j, k, l in itertools.product(range(3), repeat=4):  # noqa: E741
            assert C[i, j, k, l] == C[j, i, k, l]
            assert C[i, j, k, l] == C[i, j, l, k]
            assert C[i, j, k, l] == C[k, l, i, j]

    def test_tensor_matches_components(self, material):
        C = material.tensor
        assert C.shape == (3, 3, 3, 3)
        for i, j, k, l in itertools.product(range(3), repeat=4):  # noqa: E741
            assert C[i, j, k, l] == material.elasticity(i, j, k, l)

    def test_tensor_is_memoized(self, material):
        assert material.tensor is material.tensor

    def test_index_out_of_range(self, material):
        with pytest.raises(IndexError):
            material.elasticity(0, 0, 0, 3)
        with pytest.raises(IndexError):
            material.elasticity(-1, 0, 0, 0)

    def test_uniaxial_strain_stress(self, material):
        eps = np.zeros((3, 3))
        eps[0, 0] = 1e-3
        tau = np.einsum("ijkl,kl->ij", material.tensor, eps)
        lam, mu = material.lame_lambda, material.lame_mu
        assert tau[0, 0] == pytest.approx((lam + 2 * mu) * 1e-3)
        assert tau[1, 1] == pytest.approx(lam * 1e-3)
        assert tau[2, 2] == pytest.approx(lam * 1e-3)
        assert tau[0, 1] == 0.0
