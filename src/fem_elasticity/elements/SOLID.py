"""3D solid reference elements (HEXA8, WEDGE6).

Elements supported:
- HEXA8: 8-node trilinear hexahedron, (ξ, η, ζ) ∈ [-1, 1]³
- WEDGE6: 6-node linear wedge/prism, unit triangle × ζ ∈ [-1, 1]

Side and edge numbering follows the usual FE library convention: the first
side is the bottom face (ζ = -1) and the last side is the top face (ζ = +1).
"""

import numpy as np

from fem_elasticity.core.mesh.entities import ElementType
from fem_elasticity.core.quadrature import QuadratureRule, gauss_hex, gauss_prism
from fem_elasticity.elements.elements import ElementFamily, ReferenceElement


class HEXA8(ReferenceElement):
    """8-node linear hexahedron (brick) element.

    Node ordering:
            7-------6
           /|      /|
          / |     / |
         4-------5  |
         |  3----|--2
         | /     | /
         |/      |/
         0-------1
    """

    name = "HEXA8"
    element_type = ElementType.hexahedron
    element_family = ElementFamily.SOLID
    reference_nodes = np.array(
        [
            [-1.0, -1.0, -1.0],
            [1.0, -1.0, -1.0],
            [1.0, 1.0, -1.0],
            [-1.0, 1.0, -1.0],
            [-1.0, -1.0, 1.0],
            [1.0, -1.0, 1.0],
            [1.0, 1.0, 1.0],
            [-1.0, 1.0, 1.0],
        ]
    )
    sides = (
        (0, 3, 2, 1),
        (0, 1, 5, 4),
        (1, 2, 6, 5),
        (2, 3, 7, 6),
        (3, 0, 4, 7),
        (4, 5, 6, 7),
    )
    side_types = (ElementType.quad,) * 6
    edges = (
        (0, 1),
        (1, 2),
        (2, 3),
        (0, 3),
        (0, 4),
        (1, 5),
        (2, 6),
        (3, 7),
        (4, 5),
        (5, 6),
        (6, 7),
        (4, 7),
    )

    def shape_functions(self, xi: np.ndarray) -> np.ndarray:
        """Trilinear shape functions."""
        s = self.reference_nodes
        return 0.125 * np.prod(1 + s * np.asarray(xi)[None, :], axis=1)

    def shape_function_derivatives(self, xi: np.ndarray) -> np.ndarray:
        s = self.reference_nodes
        factors = 1 + s * np.asarray(xi)[None, :]
        dN = np.empty((8, 3))
        dN[:, 0] = s[:, 0] * factors[:, 1] * factors[:, 2]
        dN[:, 1] = s[:, 1] * factors[:, 0] * factors[:, 2]
        dN[:, 2] = s[:, 2] * factors[:, 0] * factors[:, 1]
        return 0.125 * dN

    def quadrature(self, order: int) -> QuadratureRule:
        return gauss_hex(order)


class WEDGE6(ReferenceElement):
    """6-node linear wedge/prism element.

    Node ordering:
        3-------5      ζ = +1
        |\\     /|
        | \\   / |
        |   4   |
        0---|---2      ζ = -1
         \\  |  /
           \\|/
            1

    Shape functions: Nᵢ = Lᵢ(ξ, η)·(1 ∓ ζ)/2 with the triangle area
    coordinates L = (1 - ξ - η, ξ, η).
    """

    name = "WEDGE6"
    element_type = ElementType.wedge
    element_family = ElementFamily.SOLID
    reference_nodes = np.array(
        [
            [0.0, 0.0, -1.0],
            [1.0, 0.0, -1.0],
            [0.0, 1.0, -1.0],
            [0.0, 0.0, 1.0],
            [1.0, 0.0, 1.0],
            [0.0, 1.0, 1.0],
        ]
    )
    sides = (
        (0, 2, 1),
        (0, 1, 4, 3),
        (1, 2, 5, 4),
        (2, 0, 3, 5),
        (3, 4, 5),
    )
    side_types = (
        ElementType.triangle,
        ElementType.quad,
        ElementType.quad,
        ElementType.quad,
        ElementType.triangle,
    )
    edges = (
        (0, 1),
        (1, 2),
        (0, 2),
        (0, 3),
        (1, 4),
        (2, 5),
        (3, 4),
        (4, 5),
        (3, 5),
    )

    def shape_functions(self, xi: np.ndarray) -> np.ndarray:
        r, s, z = xi
        L = np.array([1 - r - s, r, s])
        return np.concatenate((L * 0.5 * (1 - z), L * 0.5 * (1 + z)))

    def shape_function_derivatives(self, xi: np.ndarray) -> np.ndarray:
        r, s, z = xi
        L = np.array([1 - r - s, r, s])
        dL = np.array([[-1.0, -1.0], [1.0, 0.0], [0.0, 1.0]])
        bottom, top = 0.5 * (1 - z), 0.5 * (1 + z)
        dN = np.empty((6, 3))
        dN[:3, :2] = dL * bottom
        dN[3:, :2] = dL * top
        dN[:3, 2] = -0.5 * L
        dN[3:, 2] = 0.5 * L
        return dN

    def quadrature(self, order: int) -> QuadratureRule:
        return gauss_prism(order)
