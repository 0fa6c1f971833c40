from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from fem_elasticity.core.config import MaterialConfig


@dataclass
class IsotropicMaterial:
    """
    Isotropic linear-elastic material.

    The material response is the rank-4 tensor

        C(i,j,k,l) = λ₁ δij δkl + λ₂ (δik δjl + δil δjk)

    with the Lamé parameters λ₁ = Eν/((1+ν)(1-2ν)) and λ₂ = E/(2(1+ν)).

    Parameters
    ----------
    name : str
        The name of the material.
    E : float
        Young's Modulus of the material.
    nu : float
        Poisson's ratio of the material.
    rho : float
        Density of the material.
    """

    name: str = "Material"
    E: float = 100.0
    nu: float = 0.3
    rho: float = 1.0
    _tensor: np.ndarray = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.E <= 0:
            raise ValueError(f"Young's modulus must be positive: {self.E}")
        if not -1 < self.nu < 0.5:
            raise ValueError(f"Poisson's ratio must be in (-1, 0.5): {self.nu}")
        if self.rho <= 0:
            raise ValueError(f"Density must be positive: {self.rho}")

    @classmethod
    def from_config(cls, config: "MaterialConfig") -> "IsotropicMaterial":
        return cls(
            name=config.name,
            E=config.young_modulus,
            nu=config.poisson_ratio,
            rho=config.density,
        )

    @property
    def lame_lambda(self) -> float:
        """First Lamé parameter λ₁."""
        return self.E * self.nu / ((1 + self.nu) * (1 - 2 * self.nu))

    @property
    def lame_mu(self) -> float:
        """Shear modulus λ₂."""
        return self.E / (2 * (1 + self.nu))

    def elasticity(self, i: int, j: int, k: int, l: int) -> float:  # noqa: E741
        """Component (i, j, k, l) of the elasticity tensor, indices in 0..2."""
        for index in (i, j, k, l):
            if not 0 <= index < 3:
                raise IndexError(f"Elasticity tensor index out of range: {(i, j, k, l)}")

        def delta(a, b):
            return 1.0 if a == b else 0.0

        return self.lame_lambda * delta(i, j) * delta(k, l) + self.lame_mu * (
            delta(i, k) * delta(j, l) + delta(i, l) * delta(j, k)
        )

    @property
    def tensor(self) -> np.ndarray:
        """Memoized (3, 3, 3, 3) array of :meth:`elasticity` values."""
        if self._tensor is None:
            C = np.empty((3, 3, 3, 3))
            for i in range(3):
                for j in range(3):
                    for k in range(3):
                        for l in range(3):  # noqa: E741
                            C[i, j, k, l] = self.elasticity(i, j, k, l)
            self._tensor = C
        return self._tensor
