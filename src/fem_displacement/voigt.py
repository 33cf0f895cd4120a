"""Voigt <-> tensor conversions and dimensional reductions.

Ordering used across the package: ``[xx, yy, zz, xy, yz, xz]`` with
**engineering** shear strains and **tensor** shear stresses. The reduced
plane form is ``[xx, yy, xy]``; the uniaxial form is ``[xx]``.

Stress and strain are always carried in full 6-component form at the Gauss
points. The helpers below convert at the material-call boundary only.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

VOIGT_SIZE = 6

# indices of the in-plane components inside a 6-component Voigt vector
PLANE_IDX = (0, 1, 3)


# ----------------------------
# Utilities (Voigt <-> tensor)
# ----------------------------


def strain6_to_tensor(eps6: np.ndarray) -> np.ndarray:
    """Engineering-strain Voigt6 -> symmetric strain tensor."""
    e = np.asarray(eps6, dtype=float).reshape(6)
    E = np.zeros((3, 3), dtype=float)
    E[0, 0] = e[0]
    E[1, 1] = e[1]
    E[2, 2] = e[2]
    E[0, 1] = E[1, 0] = 0.5 * e[3]
    E[1, 2] = E[2, 1] = 0.5 * e[4]
    E[0, 2] = E[2, 0] = 0.5 * e[5]
    return E


def tensor_to_strain6(E: np.ndarray) -> np.ndarray:
    """Symmetric strain tensor -> engineering-strain Voigt6."""
    return np.array(
        [E[0, 0], E[1, 1], E[2, 2], 2.0 * E[0, 1], 2.0 * E[1, 2], 2.0 * E[0, 2]],
        dtype=float,
    )


def stress6_to_tensor(sig6: np.ndarray) -> np.ndarray:
    """Stress Voigt6 -> symmetric stress tensor (no factor for shear)."""
    s = np.asarray(sig6, dtype=float).reshape(6)
    S = np.zeros((3, 3), dtype=float)
    S[0, 0] = s[0]
    S[1, 1] = s[1]
    S[2, 2] = s[2]
    S[0, 1] = S[1, 0] = s[3]
    S[1, 2] = S[2, 1] = s[4]
    S[0, 2] = S[2, 0] = s[5]
    return S


def tensor_to_stress6(S: np.ndarray) -> np.ndarray:
    """Symmetric stress tensor -> stress Voigt6."""
    return np.array([S[0, 0], S[1, 1], S[2, 2], S[0, 1], S[1, 2], S[0, 2]], dtype=float)


# ----------------------------
# Vector expansion / reduction
# ----------------------------


def plane_voigt_to_voigt(v3: np.ndarray) -> np.ndarray:
    """``[xx, yy, xy]`` -> 6-component Voigt, out-of-plane entries zero."""
    v3 = np.asarray(v3, dtype=float).reshape(3)
    v6 = np.zeros(6, dtype=float)
    v6[0] = v3[0]
    v6[1] = v3[1]
    v6[3] = v3[2]
    return v6


def voigt_to_plane_voigt(v6: np.ndarray) -> np.ndarray:
    """6-component Voigt -> ``[xx, yy, xy]`` (drops out-of-plane entries)."""
    v6 = np.asarray(v6, dtype=float).reshape(6)
    return np.array([v6[0], v6[1], v6[3]], dtype=float)


def uniaxial_to_voigt(v1: np.ndarray) -> np.ndarray:
    """``[xx]`` -> 6-component Voigt, zero-filled."""
    v6 = np.zeros(6, dtype=float)
    v6[0] = float(np.asarray(v1, dtype=float).reshape(1)[0])
    return v6


def voigt_to_uniaxial(v6: np.ndarray) -> np.ndarray:
    return np.array([float(np.asarray(v6, dtype=float).reshape(6)[0])], dtype=float)


def expand_to_voigt(v: np.ndarray, n_dim: int) -> np.ndarray:
    """Reduced Voigt vector of an ``n_dim`` problem -> 6 components."""
    if n_dim == 1:
        return uniaxial_to_voigt(v)
    if n_dim == 2:
        return plane_voigt_to_voigt(v)
    return np.array(v, dtype=float).reshape(6)


def reduce_voigt(v6: np.ndarray, n_dim: int) -> np.ndarray:
    """6-component Voigt vector -> reduced form of an ``n_dim`` problem."""
    if n_dim == 1:
        return voigt_to_uniaxial(v6)
    if n_dim == 2:
        return voigt_to_plane_voigt(v6)
    return np.array(v6, dtype=float).reshape(6)


# ----------------------------
# Tangent extraction
# ----------------------------


def condense(C6: np.ndarray, keep: Sequence[int], drop: Sequence[int]) -> np.ndarray:
    """Schur-condense a 6x6 tangent onto ``keep``, enforcing zero stress on ``drop``.

    ``C_kk - C_kd C_dd^{-1} C_dk``. Components that appear in neither list
    are assumed decoupled and discarded.
    """
    C6 = np.asarray(C6, dtype=float).reshape(6, 6)
    keep = list(keep)
    drop = list(drop)
    Ckk = C6[np.ix_(keep, keep)]
    if not drop:
        return Ckk.copy()
    Ckd = C6[np.ix_(keep, drop)]
    Cdk = C6[np.ix_(drop, keep)]
    Cdd = C6[np.ix_(drop, drop)]
    if abs(float(np.linalg.det(Cdd))) < 1e-300:
        return Ckk.copy()
    return Ckk - Ckd @ np.linalg.solve(Cdd, Cdk)


def get_plane_stress_tangent(C6: np.ndarray) -> np.ndarray:
    """Plane-stress (xx, yy, xy) tangent from a 6x6 tangent, eliminating zz."""
    return condense(C6, PLANE_IDX, (2,))


def get_plane_strain_tangent(C6: np.ndarray) -> np.ndarray:
    """Plane-strain (xx, yy, xy) tangent: rows/columns of the in-plane components."""
    return condense(C6, PLANE_IDX, ())


def get_uniaxial_stress_tangent(C6: np.ndarray) -> np.ndarray:
    """1x1 uniaxial tangent ``dsxx/dexx`` with ``syy = szz = 0``."""
    return condense(C6, (0,), (1, 2))
