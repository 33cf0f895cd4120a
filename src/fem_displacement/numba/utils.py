"""Numba entry points used by the compiled kernels.

Kernels are opt-in per element (``use_numba=True``); importing them always
requires ``numba`` to be installed.
"""

from __future__ import annotations

from numba import njit

__all__ = ["njit"]
