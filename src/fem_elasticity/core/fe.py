"""Basis-function evaluation on mesh elements and their sides.

:class:`FEBase` maps the reference element of a mesh cell onto its physical
geometry and produces, at every quadrature point,

- ``phi``: shape function values (n_dofs × n_qp)
- ``dphi``: physical shape function gradients (n_dofs × n_qp × 3), zero-padded
  beyond the element dimension
- ``JxW``: Jacobian determinant times quadrature weight (n_qp,)
- ``xyz``: physical quadrature point coordinates (n_qp × 3)
- ``normals``: outward unit normals (n_qp × 3), sides only

Accessors called before :meth:`FEBase.reinit_side` register the quantity as
requested; side gradients are only computed once requested.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Set

import numpy as np

from fem_elasticity.core.config import FEFamily
from fem_elasticity.core.mesh.entities import ElementType, MeshElement
from fem_elasticity.core.quadrature import QuadratureRule
from fem_elasticity.elements import ElementFactory, ReferenceElement


@dataclass(frozen=True)
class FEType:
    """Finite element family and approximation order."""

    family: str = FEFamily.LAGRANGE.value
    order: int = 1

    def __post_init__(self):
        if self.family != FEFamily.LAGRANGE.value:
            raise ValueError(f"Unsupported FE family: {self.family}")
        if self.order != 1:
            raise ValueError(f"Unsupported {self.family} order: {self.order}")

    @property
    def default_quadrature_order(self) -> int:
        return 2 * self.order + 1


class FEBase:
    """Basis evaluator for one finite element type.

    Parameters
    ----------
    fe_type : FEType
        Family and order of the basis.
    on_side : bool
        If True, :meth:`reinit_side` is used and normals are available.
    quadrature_order : int, optional
        Polynomial degree integrated exactly. Defaults to ``2 * order + 1``.
    """

    def __init__(
        self, fe_type: FEType, on_side: bool = False, quadrature_order: Optional[int] = None
    ):
        self.fe_type = fe_type
        self.on_side = on_side
        self.quadrature_order = (
            fe_type.default_quadrature_order if quadrature_order is None else quadrature_order
        )
        self.qrule: Optional[QuadratureRule] = None
        self._qrule_cache: Dict[ElementType, QuadratureRule] = {}
        self._requested: Set[str] = set()
        self._phi = np.zeros((0, 0))
        self._dphi = np.zeros((0, 0, 3))
        self._JxW = np.zeros(0)
        self._xyz = np.zeros((0, 3))
        self._normals = np.zeros((0, 3))
        self._computed: Set[str] = set()
        self._initialized = False

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def _get(self, name: str) -> np.ndarray:
        self._requested.add(name)
        if self._initialized and name not in self._computed:
            raise RuntimeError(f"'{name}' was not requested before the FE object was reinitialized")
        return getattr(self, f"_{name}")

    def get_JxW(self) -> np.ndarray:
        return self._get("JxW")

    def get_phi(self) -> np.ndarray:
        return self._get("phi")

    def get_dphi(self) -> np.ndarray:
        return self._get("dphi")

    def get_xyz(self) -> np.ndarray:
        return self._get("xyz")

    def get_normals(self) -> np.ndarray:
        if not self.on_side:
            raise RuntimeError("Normals are only available on side FE objects")
        return self._get("normals")

    # ------------------------------------------------------------------
    # Reinitialization
    # ------------------------------------------------------------------

    def _quadrature(self, ref: ReferenceElement) -> QuadratureRule:
        if ref.element_type not in self._qrule_cache:
            self._qrule_cache[ref.element_type] = ref.quadrature(self.quadrature_order)
        return self._qrule_cache[ref.element_type]

    def reinit(self, element: MeshElement) -> None:
        """Evaluate the basis at the interior quadrature points of ``element``."""
        ref = ElementFactory.get(element.element_type)
        self.qrule = self._quadrature(ref)
        coords = element.node_coords
        xi = self.qrule.points

        phi = np.array([ref.shape_functions(p) for p in xi]).T
        dphi = np.zeros((ref.n_nodes, xi.shape[0], 3))
        JxW = np.empty(xi.shape[0])
        for qp, (point, weight) in enumerate(zip(xi, self.qrule.weights)):
            grad, det = self._physical_gradients(ref, coords, point, element)
            dphi[:, qp, : ref.dim] = grad
            JxW[qp] = det * weight

        self._store(phi, dphi, JxW, phi.T @ coords, None)

    def reinit_side(self, element: MeshElement, side: int) -> None:
        """Evaluate the volume basis at the quadrature points of one side.

        ``JxW`` holds the side measure (length, area, or 1 for a point) and
        ``normals`` the outward unit normals.
        """
        ref = ElementFactory.get(element.element_type)
        side_ref = ref.side_element(side)
        side_nodes = list(ref.sides[side])
        self.qrule = self._quadrature(side_ref)
        coords = element.node_coords
        side_coords = coords[side_nodes]
        side_xi = self.qrule.points

        n_qp = side_xi.shape[0]
        with_dphi = "dphi" in self._requested
        phi = np.empty((ref.n_nodes, n_qp))
        dphi = np.zeros((ref.n_nodes, n_qp, 3))
        JxW = np.empty(n_qp)
        xyz = np.empty((n_qp, 3))
        normals = np.zeros((n_qp, 3))
        centroid = coords.mean(axis=0)

        for qp, (point, weight) in enumerate(zip(side_xi, self.qrule.weights)):
            N_side = side_ref.shape_functions(point)
            xi = N_side @ ref.reference_nodes[side_nodes]
            xyz[qp] = N_side @ side_coords

            phi[:, qp] = ref.shape_functions(xi)
            if with_dphi:
                grad, _ = self._physical_gradients(ref, coords, xi, element)
                dphi[:, qp, : ref.dim] = grad

            tangents = side_ref.shape_function_derivatives(point).T @ side_coords
            measure, normal = self._side_measure_and_normal(ref.dim, tangents)
            if measure <= 0.0:
                raise ValueError(
                    f"Degenerate side {side} of element {element.id}: zero measure"
                )
            if ref.dim == 1:
                normal = np.array([1.0, 0.0, 0.0])
            if np.dot(normal, xyz[qp] - centroid) < 0:
                normal = -normal
            normals[qp] = normal
            JxW[qp] = measure * weight

        self._store(phi, dphi if with_dphi else None, JxW, xyz, normals)

    @staticmethod
    def _physical_gradients(ref, coords, xi, element):
        dN = ref.shape_function_derivatives(xi)
        # J[i, j] = ∂x_j/∂ξ_i
        J = dN.T @ coords[:, : ref.dim]
        det = np.linalg.det(J)
        if det <= 0.0:
            raise ValueError(
                f"Non-positive Jacobian determinant in element {element.id} at {xi}: {det:.3e}"
            )
        return np.linalg.solve(J, dN.T).T, det

    @staticmethod
    def _side_measure_and_normal(dim: int, tangents: np.ndarray):
        if dim == 1:
            return 1.0, np.zeros(3)
        if dim == 2:
            t = tangents[0]
            length = np.linalg.norm(t)
            if length == 0.0:
                return 0.0, np.zeros(3)
            return length, np.array([t[1], -t[0], 0.0]) / length
        n = np.cross(tangents[0], tangents[1])
        area = np.linalg.norm(n)
        if area == 0.0:
            return 0.0, np.zeros(3)
        return area, n / area

    def _store(self, phi, dphi, JxW, xyz, normals) -> None:
        self._phi = phi
        self._JxW = JxW
        self._xyz = xyz
        self._computed = {"phi", "JxW", "xyz"}
        if dphi is not None:
            self._dphi = dphi
            self._computed.add("dphi")
        if normals is not None:
            self._normals = normals
            self._computed.add("normals")
        self._initialized = True

    @property
    def n_dofs(self) -> int:
        return self._phi.shape[0]

    def __repr__(self):
        kind = "side" if self.on_side else "element"
        return f"<FEBase {self.fe_type.family}{self.fe_type.order} {kind}>"
