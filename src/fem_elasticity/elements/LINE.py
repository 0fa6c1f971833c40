"""Point and line reference elements (POINT1, EDGE2).

POINT1 is only used as the side of an EDGE2 in one-dimensional meshes.

Node numbering convention:

    EDGE2
    0-----1      ξ ∈ [-1, 1]
"""

import numpy as np

from fem_elasticity.core.mesh.entities import ElementType
from fem_elasticity.core.quadrature import QuadratureRule, gauss_line, gauss_point
from fem_elasticity.elements.elements import ElementFamily, ReferenceElement


class POINT1(ReferenceElement):
    name = "POINT1"
    element_type = ElementType.point
    element_family = ElementFamily.POINT
    reference_nodes = np.zeros((1, 0))

    def shape_functions(self, xi: np.ndarray) -> np.ndarray:
        return np.ones(1)

    def shape_function_derivatives(self, xi: np.ndarray) -> np.ndarray:
        return np.zeros((1, 0))

    def quadrature(self, order: int) -> QuadratureRule:
        return gauss_point()


class EDGE2(ReferenceElement):
    """2-node linear line element."""

    name = "EDGE2"
    element_type = ElementType.line
    element_family = ElementFamily.LINE
    reference_nodes = np.array([[-1.0], [1.0]])
    sides = ((0,), (1,))
    side_types = (ElementType.point, ElementType.point)

    def shape_functions(self, xi: np.ndarray) -> np.ndarray:
        x = xi[0]
        return 0.5 * np.array([1 - x, 1 + x])

    def shape_function_derivatives(self, xi: np.ndarray) -> np.ndarray:
        return np.array([[-0.5], [0.5]])

    def quadrature(self, order: int) -> QuadratureRule:
        return gauss_line(order)
