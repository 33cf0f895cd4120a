"""Gauss-point (integration-point) containers.

A :class:`GaussPoint` owns its quadrature position and weight, a one-time
geometry snapshot, its material instance, and two :class:`StateView`
windows for the stress and strain history. Stress and strain are always
full 6-component Voigt vectors regardless of the element dimension.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from fem_displacement.constitutive import HypoElasticMaterial
from fem_displacement.state_arrays import StateView
from fem_displacement.voigt import VOIGT_SIZE


def _frozen(a: np.ndarray) -> np.ndarray:
    a = np.array(a, dtype=float, copy=True)
    a.setflags(write=False)
    return a


@dataclass(frozen=True)
class GaussPointGeometry:
    """Geometry cache computed once from the reference configuration."""

    J: np.ndarray
    JInv: np.ndarray
    detJ: float
    dNdXi: np.ndarray
    dNdX: np.ndarray
    B: np.ndarray
    int_vol: float

    @classmethod
    def create(
        cls,
        J: np.ndarray,
        JInv: np.ndarray,
        detJ: float,
        dNdXi: np.ndarray,
        dNdX: np.ndarray,
        B: np.ndarray,
        int_vol: float,
    ) -> "GaussPointGeometry":
        """Build the cache with read-only copies of every array."""
        return cls(
            J=_frozen(J),
            JInv=_frozen(JInv),
            detJ=float(detJ),
            dNdXi=_frozen(dNdXi),
            dNdX=_frozen(dNdX),
            B=_frozen(B),
            int_vol=float(int_vol),
        )


@dataclass
class GaussPoint:
    xi: np.ndarray
    weight: float
    material: Optional[HypoElasticMaterial] = None
    geometry: Optional[GaussPointGeometry] = None
    stress_view: StateView = field(default_factory=lambda: StateView(VOIGT_SIZE))
    strain_view: StateView = field(default_factory=lambda: StateView(VOIGT_SIZE))

    def __post_init__(self) -> None:
        self.xi = _frozen(np.atleast_1d(self.xi))
        self.weight = float(self.weight)

    @property
    def stress(self) -> np.ndarray:
        """Stress (Voigt6) view into the persistent buffer."""
        return self.stress_view.array

    @property
    def strain(self) -> np.ndarray:
        """Total strain (Voigt6) view into the persistent buffer."""
        return self.strain_view.array
