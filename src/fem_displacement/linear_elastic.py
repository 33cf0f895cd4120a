"""Isotropic linear-elastic stiffness helpers shared by the material models."""

from __future__ import annotations

from typing import Tuple

import numpy as np


def iso_lame(E: float, nu: float) -> Tuple[float, float, float]:
    """Return (lambda, mu, K) for 3D isotropic elasticity."""
    E = float(E)
    nu = float(nu)
    mu = E / (2.0 * (1.0 + nu))
    lam = E * nu / ((1.0 + nu) * (1.0 - 2.0 * nu))
    K = lam + 2.0 * mu / 3.0
    return lam, mu, K


def iso_C6(E: float, nu: float) -> np.ndarray:
    """3D isotropic stiffness in engineering-strain Voigt6."""
    lam, mu, _K = iso_lame(E, nu)
    C = np.zeros((6, 6), dtype=float)
    C[:3, :3] = lam
    C[0, 0] = C[1, 1] = C[2, 2] = lam + 2.0 * mu
    C[3, 3] = C[4, 4] = C[5, 5] = mu
    return C


def plane_stress_C(E: float, nu: float) -> np.ndarray:
    """Plane-stress constitutive matrix for isotropic linear elasticity.

    Parameters
    ----------
    E:
        Young's modulus.
    nu:
        Poisson's ratio.

    Returns
    -------
    C : (3,3) ndarray
        Plane-stress matrix in Voigt ordering [xx, yy, xy].
    """

    c = float(E) / (1.0 - float(nu) * float(nu))
    C = c * np.array(
        [[1.0, float(nu), 0.0], [float(nu), 1.0, 0.0], [0.0, 0.0, 0.5 * (1.0 - float(nu))]],
        dtype=float,
    )
    return C


def plane_strain_C(E: float, nu: float) -> np.ndarray:
    """Plane-strain constitutive matrix, Voigt ordering [xx, yy, xy]."""
    lam, mu, _K = iso_lame(E, nu)
    return np.array(
        [[lam + 2.0 * mu, lam, 0.0], [lam, lam + 2.0 * mu, 0.0], [0.0, 0.0, mu]],
        dtype=float,
    )
