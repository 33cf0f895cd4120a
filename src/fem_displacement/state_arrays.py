"""Non-owning windows onto caller-owned persistent state.

The global solver owns one contiguous float array per element (usually a
slice of a larger history array). Elements and material models never
allocate history themselves: they keep :class:`StateView` objects that
remember *where* their data lives (arena, offset, length) and hand out NumPy
views on demand. Restoring a checkpoint is a matter of re-binding the views
onto the restored arena.

Per-element layout for ``g`` Gauss points with block size ``b``::

    [ material state (b - 12) | stress (6) | strain (6) ] * g
"""

from __future__ import annotations

from typing import Optional

import numpy as np

# stress + strain, both in full Voigt form
N_STRESS_STRAIN_VARS = 6 + 6


class StateView:
    """A re-bindable ``(arena, offset, length)`` window."""

    __slots__ = ("arena", "offset", "length")

    def __init__(self, length: int = 0) -> None:
        self.arena: Optional[np.ndarray] = None
        self.offset = 0
        self.length = int(length)

    @property
    def bound(self) -> bool:
        return self.arena is not None

    def rebind(self, arena: np.ndarray, offset: int, length: int) -> None:
        offset = int(offset)
        length = int(length)
        if offset < 0 or length < 0 or offset + length > arena.shape[0]:
            raise ValueError(
                f"State window [{offset}:{offset + length}] exceeds arena of length {arena.shape[0]}"
            )
        self.arena = arena
        self.offset = offset
        self.length = length

    @property
    def array(self) -> np.ndarray:
        """NumPy view of the window (writes go to the arena)."""
        if self.arena is None:
            raise RuntimeError("State view is not bound; call assign_state_vars first")
        return self.arena[self.offset : self.offset + self.length]

    def __repr__(self) -> str:
        return f"StateView(offset={self.offset}, length={self.length}, bound={self.bound})"


def check_state_buffer(buffer: np.ndarray) -> np.ndarray:
    """Validate a caller-supplied history arena without copying it."""
    if not isinstance(buffer, np.ndarray):
        raise TypeError(f"State buffer must be a numpy.ndarray, got {type(buffer).__name__}")
    if buffer.ndim != 1 or buffer.dtype != np.float64:
        raise ValueError(f"State buffer must be a 1-D float64 array, got shape={buffer.shape} dtype={buffer.dtype}")
    return buffer
