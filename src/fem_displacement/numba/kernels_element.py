"""Small element accumulation kernels.

These are intentionally tiny and stateless: they only add the contribution
of one Gauss point to call-local residual/stiffness arrays.
"""

from __future__ import annotations

import numpy as np

from fem_displacement.numba.utils import njit


@njit(cache=True)
def accumulate_btcb_numba(Ke: np.ndarray, B: np.ndarray, C: np.ndarray, int_vol: float) -> None:
    """``Ke += B^T C B * int_vol``.

    Parameters
    ----------
    Ke : (n_dof, n_dof) float, updated in place
    B : (n_voigt, n_dof) float
    C : (n_voigt, n_voigt) float
    int_vol : float
    """
    n_voigt = B.shape[0]
    n_dof = B.shape[1]

    CB = np.zeros((n_voigt, n_dof), dtype=np.float64)
    for a in range(n_voigt):
        for b in range(n_voigt):
            c = C[a, b]
            if c == 0.0:
                continue
            for j in range(n_dof):
                CB[a, j] += c * B[b, j]

    for i in range(n_dof):
        for a in range(n_voigt):
            bai = B[a, i]
            if bai == 0.0:
                continue
            s = bai * int_vol
            for j in range(n_dof):
                Ke[i, j] += s * CB[a, j]


@njit(cache=True)
def accumulate_bts_numba(Pe: np.ndarray, B: np.ndarray, S: np.ndarray, int_vol: float) -> None:
    """``Pe -= B^T S * int_vol`` (residual = external - internal)."""
    n_voigt = B.shape[0]
    n_dof = B.shape[1]
    for i in range(n_dof):
        acc = 0.0
        for a in range(n_voigt):
            acc += B[a, i] * S[a]
        Pe[i] -= acc * int_vol
