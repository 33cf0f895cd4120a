"""Iso-parametric shape functions and the geometry element base.

Node numbering follows the Abaqus conventions (counter-clockwise corners,
then mid-side nodes for Quad8; bottom face then top face for Hexa8).
Element faces are numbered from 1.

Arrays
------
* ``N(xi)``      : (n_nodes,)
* ``dNdXi(xi)``  : (n_dim, n_nodes), row ``i`` holds ``dN/dxi_i``
* ``J``          : (n_dim, n_dim), ``J[i, j] = dx_j / dxi_i = dNdXi @ X``
* ``dNdX``       : (n_dim, n_nodes) = ``J^-1 @ dNdXi``
* ``B``          : (voigt, n_dim * n_nodes), engineering Voigt strains,
  interleaved nodal DOFs ``[u1x, u1y, ..., unx, uny]``
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

import numpy as np


# ----------------------------
# Shape functions
# ----------------------------


def truss2_shape(xi: np.ndarray):
    x = float(xi[0])
    N = np.array([0.5 * (1.0 - x), 0.5 * (1.0 + x)], dtype=float)
    dN = np.array([[-0.5, 0.5]], dtype=float)
    return N, dN


def line3_shape(xi: np.ndarray):
    # corner, corner, mid-side
    x = float(xi[0])
    N = np.array([0.5 * x * (x - 1.0), 0.5 * x * (x + 1.0), 1.0 - x * x], dtype=float)
    dN = np.array([[x - 0.5, x + 0.5, -2.0 * x]], dtype=float)
    return N, dN


def tri3_shape(xi: np.ndarray):
    x, y = float(xi[0]), float(xi[1])
    N = np.array([1.0 - x - y, x, y], dtype=float)
    dN = np.array([[-1.0, 1.0, 0.0], [-1.0, 0.0, 1.0]], dtype=float)
    return N, dN


_Q4_NODES = np.array([[-1.0, -1.0], [1.0, -1.0], [1.0, 1.0], [-1.0, 1.0]], dtype=float)


def quad4_shape(xi: np.ndarray):
    # N1..N4 (counter-clockwise)
    x, y = float(xi[0]), float(xi[1])
    N = 0.25 * np.array(
        [(1 - x) * (1 - y), (1 + x) * (1 - y), (1 + x) * (1 + y), (1 - x) * (1 + y)],
        dtype=float,
    )
    dN_dxi = 0.25 * np.array([-(1 - y), (1 - y), (1 + y), -(1 + y)], dtype=float)
    dN_deta = 0.25 * np.array([-(1 - x), -(1 + x), (1 + x), (1 - x)], dtype=float)
    return N, np.vstack([dN_dxi, dN_deta])


_Q8_MID = np.array([[0.0, -1.0], [1.0, 0.0], [0.0, 1.0], [-1.0, 0.0]], dtype=float)


def quad8_shape(xi: np.ndarray):
    """Serendipity quadrilateral: 4 corners, then mid-sides 5-8."""
    x, y = float(xi[0]), float(xi[1])
    N = np.zeros(8, dtype=float)
    dN = np.zeros((2, 8), dtype=float)
    for a, (xa, ya) in enumerate(_Q4_NODES):
        p, q = x * xa, y * ya
        N[a] = 0.25 * (1 + p) * (1 + q) * (p + q - 1)
        dN[0, a] = 0.25 * xa * (1 + q) * (2 * p + q)
        dN[1, a] = 0.25 * ya * (1 + p) * (p + 2 * q)
    for m, (xa, ya) in enumerate(_Q8_MID):
        a = 4 + m
        if xa == 0.0:
            N[a] = 0.5 * (1 - x * x) * (1 + y * ya)
            dN[0, a] = -x * (1 + y * ya)
            dN[1, a] = 0.5 * (1 - x * x) * ya
        else:
            N[a] = 0.5 * (1 + x * xa) * (1 - y * y)
            dN[0, a] = 0.5 * xa * (1 - y * y)
            dN[1, a] = -y * (1 + x * xa)
    return N, dN


_H8_NODES = np.array(
    [
        [-1.0, -1.0, -1.0],
        [1.0, -1.0, -1.0],
        [1.0, 1.0, -1.0],
        [-1.0, 1.0, -1.0],
        [-1.0, -1.0, 1.0],
        [1.0, -1.0, 1.0],
        [1.0, 1.0, 1.0],
        [-1.0, 1.0, 1.0],
    ],
    dtype=float,
)


def hexa8_shape(xi: np.ndarray):
    xi = np.asarray(xi, dtype=float).reshape(3)
    f = 1.0 + _H8_NODES * xi  # (8, 3)
    N = 0.125 * f[:, 0] * f[:, 1] * f[:, 2]
    dN = np.empty((3, 8), dtype=float)
    dN[0] = 0.125 * _H8_NODES[:, 0] * f[:, 1] * f[:, 2]
    dN[1] = 0.125 * _H8_NODES[:, 1] * f[:, 0] * f[:, 2]
    dN[2] = 0.125 * _H8_NODES[:, 2] * f[:, 0] * f[:, 1]
    return N, dN


@dataclass(frozen=True)
class ShapeInfo:
    name: str
    n_dim: int
    n_nodes: int
    shape_fn: Callable[[np.ndarray], Tuple[np.ndarray, np.ndarray]]
    centroid: Tuple[float, ...]
    # 1-based face k -> parent node indices (0-based) of that face
    faces: Tuple[Tuple[int, ...], ...] = ()
    face_shape: Optional[str] = None


SHAPES: Dict[str, ShapeInfo] = {
    "Truss2": ShapeInfo("Truss2", 1, 2, truss2_shape, (0.0,), faces=((0,), (1,)), face_shape="Point"),
    "Line3": ShapeInfo("Line3", 1, 3, line3_shape, (0.0,), faces=((0,), (1,)), face_shape="Point"),
    "Tri3": ShapeInfo(
        "Tri3", 2, 3, tri3_shape, (1.0 / 3.0, 1.0 / 3.0),
        faces=((0, 1), (1, 2), (2, 0)), face_shape="Truss2",
    ),
    "Quad4": ShapeInfo(
        "Quad4", 2, 4, quad4_shape, (0.0, 0.0),
        faces=((0, 1), (1, 2), (2, 3), (3, 0)), face_shape="Truss2",
    ),
    "Quad8": ShapeInfo(
        "Quad8", 2, 8, quad8_shape, (0.0, 0.0),
        faces=((0, 1, 4), (1, 2, 5), (2, 3, 6), (3, 0, 7)), face_shape="Line3",
    ),
    "Hexa8": ShapeInfo(
        "Hexa8", 3, 8, hexa8_shape, (0.0, 0.0, 0.0),
        faces=(
            (0, 1, 2, 3),
            (4, 7, 6, 5),
            (0, 4, 5, 1),
            (1, 5, 6, 2),
            (2, 6, 7, 3),
            (3, 7, 4, 0),
        ),
        face_shape="Quad4",
    ),
}


def get_shape(shape: str) -> ShapeInfo:
    try:
        return SHAPES[shape]
    except KeyError:
        raise ValueError(f"Unknown element shape '{shape}'. Use one of {sorted(SHAPES)}.") from None


# ----------------------------
# Strain-displacement operators
# ----------------------------


def b_operator(dNdX: np.ndarray) -> np.ndarray:
    """Engineering-strain B operator for 1, 2 or 3 spatial dimensions."""
    dNdX = np.asarray(dNdX, dtype=float)
    n_dim, n_nodes = dNdX.shape
    if n_dim == 1:
        return dNdX.copy()

    if n_dim == 2:
        B = np.zeros((3, 2 * n_nodes), dtype=float)
        B[0, 0::2] = dNdX[0]
        B[1, 1::2] = dNdX[1]
        B[2, 0::2] = dNdX[1]
        B[2, 1::2] = dNdX[0]
        return B

    B = np.zeros((6, 3 * n_nodes), dtype=float)
    B[0, 0::3] = dNdX[0]
    B[1, 1::3] = dNdX[1]
    B[2, 2::3] = dNdX[2]
    # xy
    B[3, 0::3] = dNdX[1]
    B[3, 1::3] = dNdX[0]
    # yz
    B[4, 1::3] = dNdX[2]
    B[4, 2::3] = dNdX[1]
    # xz
    B[5, 0::3] = dNdX[2]
    B[5, 2::3] = dNdX[0]
    return B


def nb_operator(N: np.ndarray, n_dim: int) -> np.ndarray:
    """Interpolation matrix mapping interleaved nodal vectors to a point vector."""
    N = np.asarray(N, dtype=float)
    NB = np.zeros((n_dim, n_dim * N.shape[0]), dtype=float)
    for d in range(n_dim):
        NB[d, d::n_dim] = N
    return NB


class GeometryElement:
    """Coordinates plus shape-function primitives of one iso-parametric element."""

    def __init__(self, shape: str) -> None:
        info = get_shape(shape)
        self.shape_info = info
        self.shape = info.name
        self.n_dim = info.n_dim
        self.n_nodes = info.n_nodes
        self.coordinates: Optional[np.ndarray] = None

    def get_element_shape(self) -> str:
        return self.shape

    def initialize_yourself(self, coordinates) -> None:
        X = np.array(coordinates, dtype=float, copy=True)
        if X.size != self.n_nodes * self.n_dim:
            raise ValueError(
                f"{self.shape} expects {self.n_nodes * self.n_dim} coordinates, got {X.size}"
            )
        self.coordinates = X.reshape(self.n_nodes, self.n_dim)

    def N(self, xi) -> np.ndarray:
        return self.shape_info.shape_fn(np.atleast_1d(np.asarray(xi, dtype=float)))[0]

    def dNdXi(self, xi) -> np.ndarray:
        return self.shape_info.shape_fn(np.atleast_1d(np.asarray(xi, dtype=float)))[1]

    def jacobian(self, dNdXi: np.ndarray) -> np.ndarray:
        if self.coordinates is None:
            raise RuntimeError(f"{self.shape}: coordinates not initialized")
        return dNdXi @ self.coordinates

    def dNdX(self, dNdXi: np.ndarray, JInv: np.ndarray) -> np.ndarray:
        return JInv @ dNdXi

    def B(self, dNdX: np.ndarray) -> np.ndarray:
        return b_operator(dNdX)

    def NB(self, N: np.ndarray) -> np.ndarray:
        return nb_operator(N, self.n_dim)

    def interpolate_coordinates(self, xi) -> np.ndarray:
        """Physical coordinates of the parent point ``xi``."""
        return self.NB(self.N(xi)) @ self.coordinates.reshape(-1)
