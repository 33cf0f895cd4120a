"""Boundary (face) sub-elements for distributed surface loads."""

from __future__ import annotations

import numpy as np

from fem_displacement.geometry import get_shape
from fem_displacement.quadrature import IntegrationTypes, get_gauss_point_info


class BoundaryElement:
    """Face ``face`` (1-based) of a parent element, in the parent's coordinates.

    ``compute_normal_load_vector`` integrates ``N^T n dA`` over the face with
    the outward unit normal ``n``; the result is interleaved per face node
    like the parent's load vector. In 2D the integral is per unit
    thickness.
    """

    def __init__(self, parent_shape: str, face: int, n_dim: int, parent_coordinates) -> None:
        parent = get_shape(parent_shape)
        if not 1 <= int(face) <= len(parent.faces):
            raise ValueError(f"{parent.name} has faces 1..{len(parent.faces)}, got {face}")

        self.parent = parent
        self.face = int(face)
        self.n_dim = int(n_dim)
        self.face_nodes = parent.faces[self.face - 1]
        X = np.asarray(parent_coordinates, dtype=float).reshape(parent.n_nodes, self.n_dim)
        self.parent_centroid = parent.shape_fn(np.asarray(parent.centroid, dtype=float))[0] @ X
        self.coordinates = X[list(self.face_nodes)]
        self.face_shape = None if parent.face_shape == "Point" else get_shape(parent.face_shape)

    def _area_normal(self, dNdXi: np.ndarray) -> np.ndarray:
        """Normal scaled by the face Jacobian (unoriented)."""
        T = dNdXi @ self.coordinates  # tangents, (n_dim - 1, n_dim)
        if self.n_dim == 2:
            return np.array([T[0, 1], -T[0, 0]], dtype=float)
        return np.cross(T[0], T[1])

    def _orientation(self) -> float:
        center = np.asarray(self.face_shape.centroid, dtype=float)
        N, dNdXi = self.face_shape.shape_fn(center)
        outward = N @ self.coordinates - self.parent_centroid
        return 1.0 if float(self._area_normal(dNdXi) @ outward) >= 0.0 else -1.0

    def compute_normal_load_vector(self) -> np.ndarray:
        n_face_nodes = len(self.face_nodes)
        if self.face_shape is None:
            # end point of a 1D element
            outward = float(self.coordinates[0, 0] - self.parent_centroid[0])
            return np.array([1.0 if outward >= 0.0 else -1.0], dtype=float)

        sign = self._orientation()
        P = np.zeros(n_face_nodes * self.n_dim, dtype=float)
        for gp in get_gauss_point_info(self.face_shape.name, IntegrationTypes.FullIntegration):
            N, dNdXi = self.face_shape.shape_fn(np.asarray(gp.xi, dtype=float))
            nA = sign * self._area_normal(dNdXi)
            P += np.outer(N, nA).reshape(-1) * gp.weight
        return P

    def assemble_into_parent_vector(self, vector: np.ndarray, parent_vector: np.ndarray) -> None:
        """Add a face vector into the parent's interleaved vector (in place)."""
        vector = np.asarray(vector, dtype=float).reshape(len(self.face_nodes), self.n_dim)
        for a, node in enumerate(self.face_nodes):
            parent_vector[node * self.n_dim : (node + 1) * self.n_dim] += vector[a]
