"""Gauss quadrature rules per element shape."""

from __future__ import annotations

import itertools
from enum import Enum
from functools import lru_cache
from typing import NamedTuple, Tuple

from scipy.special import roots_legendre

from fem_displacement.geometry import get_shape


class IntegrationTypes(Enum):
    FullIntegration = "full"
    ReducedIntegration = "reduced"


class GaussPointInfo(NamedTuple):
    xi: Tuple[float, ...]
    weight: float


# shape -> (points per direction for full, for reduced)
_ORDERS = {
    "Truss2": (2, 1),
    "Line3": (3, 2),
    "Quad4": (2, 1),
    "Quad8": (3, 2),
    "Hexa8": (2, 1),
}


def gauss_legendre_rule(n_points: int, n_dim: int) -> Tuple[GaussPointInfo, ...]:
    """Tensor-product Gauss–Legendre rule on ``[-1, 1]^n_dim`` (last index fastest)."""
    x, w = roots_legendre(int(n_points))
    rule = []
    for idx in itertools.product(range(int(n_points)), repeat=int(n_dim)):
        xi = tuple(float(x[i]) for i in idx)
        weight = 1.0
        for i in idx:
            weight *= float(w[i])
        rule.append(GaussPointInfo(xi, weight))
    return tuple(rule)


@lru_cache(maxsize=None)
def get_gauss_point_info(shape: str, integration_type: IntegrationTypes) -> Tuple[GaussPointInfo, ...]:
    """Quadrature points of ``shape`` for the requested integration order."""
    info = get_shape(shape)
    integration_type = IntegrationTypes(integration_type)

    if info.name == "Tri3":
        return (GaussPointInfo((1.0 / 3.0, 1.0 / 3.0), 0.5),)

    full, reduced = _ORDERS[info.name]
    n = full if integration_type is IntegrationTypes.FullIntegration else reduced
    return gauss_legendre_rule(n, info.n_dim)
