"""Element-level property records handed to :meth:`DisplacementElement.assign_property`."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np


def _as_float_vector(values) -> np.ndarray:
    return np.asarray(values, dtype=float).reshape(-1)


@dataclass
class ElementProperties:
    """Flat element properties, e.g. ``[thickness]`` or ``[cross_section]``."""

    element_properties: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=float))

    def __post_init__(self) -> None:
        self.element_properties = _as_float_vector(self.element_properties)

    @property
    def n_element_properties(self) -> int:
        return int(self.element_properties.shape[0])


@dataclass
class MaterialSection:
    """Material code plus its flat parameter vector."""

    material_code: str
    material_properties: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=float))

    def __post_init__(self) -> None:
        """Normalize the material code and coerce the parameters."""

        code = (self.material_code or "").strip().upper().replace("-", "").replace("_", "").replace(" ", "")
        aliases = {
            "ELASTIC": "LINEARELASTIC",
            "LINEAR": "LINEARELASTIC",
            "LE": "LINEARELASTIC",
            "DP": "DRUCKERPRAGER",
            "DAMAGE": "ISOTROPICDAMAGE",
            "CRACKBAND": "ISOTROPICDAMAGE",
        }
        self.material_code = aliases.get(code, code)
        self.material_properties = _as_float_vector(self.material_properties)

    @property
    def n_material_properties(self) -> int:
        return int(self.material_properties.shape[0])
