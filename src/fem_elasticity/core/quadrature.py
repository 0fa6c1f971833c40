"""Gauss quadrature rules on reference cells.

Rules are defined on the same reference domains as the elements in
:mod:`fem_elasticity.elements`:

- POINT: a single point of unit weight
- LINE: ξ ∈ [-1, 1]
- QUAD: (ξ, η) ∈ [-1, 1]²
- HEX: (ξ, η, ζ) ∈ [-1, 1]³
- TRI: unit triangle 0 ≤ ξ, η, ξ + η ≤ 1 (area 1/2)
- PRISM: unit triangle × ζ ∈ [-1, 1]

An ``order`` is the polynomial degree integrated exactly. A first-order
Lagrange basis uses order 3 (two Gauss points per direction).
"""

from itertools import product
from typing import Tuple

import numpy as np


class QuadratureRule:
    """Quadrature points and weights on a reference cell.

    Parameters
    ----------
    points : np.ndarray
        Reference coordinates (n_points × dim). ``dim`` may be 0 for a point rule.
    weights : np.ndarray
        Integration weights (n_points,)
    """

    def __init__(self, points: np.ndarray, weights: np.ndarray):
        self.points = np.atleast_2d(np.asarray(points, dtype=float))
        self.weights = np.asarray(weights, dtype=float).ravel()
        if self.points.shape[0] != self.weights.size:
            raise ValueError(
                f"Quadrature points ({self.points.shape[0]}) and weights "
                f"({self.weights.size}) do not match"
            )

    @property
    def dim(self) -> int:
        return self.points.shape[1]

    def n_points(self) -> int:
        return self.weights.size

    def __repr__(self):
        return f"<QuadratureRule dim={self.dim} n_points={self.n_points()}>"


def _n_gauss(order: int) -> int:
    """Number of 1D Gauss-Legendre points integrating degree ``order`` exactly."""
    if order < 0:
        raise ValueError(f"Quadrature order must be non-negative, got {order}")
    return max(1, (order + 2) // 2)


def _tensor_gauss(order: int, dim: int) -> Tuple[np.ndarray, np.ndarray]:
    x, w = np.polynomial.legendre.leggauss(_n_gauss(order))
    # ξ varies fastest
    points = np.array([p[::-1] for p in product(x, repeat=dim)])
    weights = np.array([np.prod(c) for c in product(w, repeat=dim)])
    return points, weights


def gauss_point() -> QuadratureRule:
    return QuadratureRule(np.zeros((1, 0)), np.ones(1))


def gauss_line(order: int = 3) -> QuadratureRule:
    return QuadratureRule(*_tensor_gauss(order, 1))


def gauss_quad(order: int = 3) -> QuadratureRule:
    return QuadratureRule(*_tensor_gauss(order, 2))


def gauss_hex(order: int = 3) -> QuadratureRule:
    return QuadratureRule(*_tensor_gauss(order, 3))


def gauss_triangle(order: int = 2) -> QuadratureRule:
    """Symmetric triangle rules on the unit triangle.

    Orders up to 2 use the 3-point interior rule. Higher orders use a
    collapsed (Duffy) Gauss product rule.
    """
    if order <= 1:
        return QuadratureRule(np.array([[1.0 / 3.0, 1.0 / 3.0]]), np.array([0.5]))
    if order == 2:
        points = np.array([[1 / 6, 1 / 6], [2 / 3, 1 / 6], [1 / 6, 2 / 3]])
        return QuadratureRule(points, np.full(3, 1.0 / 6.0))

    # Duffy transform of the square [0,1]² onto the triangle
    x, w = np.polynomial.legendre.leggauss(_n_gauss(order + 1))
    s, ws = 0.5 * (x + 1.0), 0.5 * w
    points, weights = [], []
    for a, wa in zip(s, ws):
        for b, wb in zip(s, ws):
            points.append([a * (1.0 - b), b])
            weights.append(wa * wb * (1.0 - b))
    return QuadratureRule(np.array(points), np.array(weights))


def gauss_prism(order: int = 3) -> QuadratureRule:
    """Triangle rule × 1D Gauss rule for wedge/prism cells.

    Order 3 keeps the 3-point triangle rule, which already integrates the
    degree-2 in-plane products of a linear wedge basis.
    """
    tri = gauss_triangle(2) if order == 3 else gauss_triangle(order)
    line = gauss_line(order)
    points = [[p[0], p[1], z[0]] for z in line.points for p in tri.points]
    weights = [wz * wt for wz in line.weights for wt in tri.weights]
    return QuadratureRule(np.array(points), np.array(weights))
