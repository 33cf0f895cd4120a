"""Numba-accelerated element kernels.

This subpackage contains small, *stateless* computational kernels designed to
run in Numba's ``nopython`` mode. They operate on primitive NumPy arrays and
floats only; material calls stay in Python.

Enable them per element with ``DisplacementElement(..., use_numba=True)``.
"""

from .kernels_element import accumulate_btcb_numba, accumulate_bts_numba
from .utils import njit

__all__ = [
    "accumulate_btcb_numba",
    "accumulate_bts_numba",
    "njit",
]
