"""Planar reference elements (TRI3, QUAD4).

Node numbering convention:

    TRI3            QUAD4
    2               3-------2
    | \\             |       |
    |   \\           |       |
    0-----1         0-------1

TRI3 lives on the unit triangle (area 1/2), QUAD4 on [-1, 1]². TRI3 is the
triangular side of a WEDGE6.
"""

import numpy as np

from fem_elasticity.core.mesh.entities import ElementType
from fem_elasticity.core.quadrature import QuadratureRule, gauss_quad, gauss_triangle
from fem_elasticity.elements.elements import ElementFamily, ReferenceElement


class TRI3(ReferenceElement):
    """3-node linear triangle."""

    name = "TRI3"
    element_type = ElementType.triangle
    element_family = ElementFamily.PLANE
    reference_nodes = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
    sides = ((0, 1), (1, 2), (2, 0))
    side_types = (ElementType.line,) * 3

    def shape_functions(self, xi: np.ndarray) -> np.ndarray:
        r, s = xi[0], xi[1]
        return np.array([1 - r - s, r, s])

    def shape_function_derivatives(self, xi: np.ndarray) -> np.ndarray:
        return np.array([[-1.0, -1.0], [1.0, 0.0], [0.0, 1.0]])

    def quadrature(self, order: int) -> QuadratureRule:
        return gauss_triangle(order)


class QUAD4(ReferenceElement):
    """4-node bilinear quadrilateral."""

    name = "QUAD4"
    element_type = ElementType.quad
    element_family = ElementFamily.PLANE
    reference_nodes = np.array([[-1.0, -1.0], [1.0, -1.0], [1.0, 1.0], [-1.0, 1.0]])
    sides = ((0, 1), (1, 2), (2, 3), (3, 0))
    side_types = (ElementType.line,) * 4

    def shape_functions(self, xi: np.ndarray) -> np.ndarray:
        signs = self.reference_nodes
        return 0.25 * (1 + signs[:, 0] * xi[0]) * (1 + signs[:, 1] * xi[1])

    def shape_function_derivatives(self, xi: np.ndarray) -> np.ndarray:
        signs = self.reference_nodes
        dN_dxi = 0.25 * signs[:, 0] * (1 + signs[:, 1] * xi[1])
        dN_deta = 0.25 * signs[:, 1] * (1 + signs[:, 0] * xi[0])
        return np.column_stack((dN_dxi, dN_deta))

    def quadrature(self, order: int) -> QuadratureRule:
        return gauss_quad(order)
