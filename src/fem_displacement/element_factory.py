"""Element factory keyed by Abaqus-like element codes.

``CPS4`` -> Quad4 plane stress, full integration; a trailing ``R`` selects
reduced integration (``CPE8R``). A leading ``UEL`` (user element) prefix is
accepted and ignored.
"""

from __future__ import annotations

from typing import Dict, Sequence, Tuple

from fem_displacement.element import DisplacementElement, SectionType
from fem_displacement.quadrature import IntegrationTypes

# code -> (shape, section)
_ELEMENT_CODES: Dict[str, Tuple[str, SectionType]] = {
    "T1D2": ("Truss2", SectionType.UniaxialStress),
    "T1D3": ("Line3", SectionType.UniaxialStress),
    "CPS3": ("Tri3", SectionType.PlaneStress),
    "CPE3": ("Tri3", SectionType.PlaneStrain),
    "CPS4": ("Quad4", SectionType.PlaneStress),
    "CPE4": ("Quad4", SectionType.PlaneStrain),
    "CPS8": ("Quad8", SectionType.PlaneStress),
    "CPE8": ("Quad8", SectionType.PlaneStrain),
    "C3D8": ("Hexa8", SectionType.Solid),
}


def _normalize(element_type: str) -> str:
    code = (element_type or "").strip().upper().replace("-", "").replace("_", "")
    if code.startswith("UEL"):
        code = code[3:]
    return code


def available_element_types() -> Sequence[str]:
    codes = []
    for code, (shape, _section) in sorted(_ELEMENT_CODES.items()):
        codes.append(code)
        if shape != "Tri3":
            codes.append(code + "R")
    return tuple(codes)


def make_element(element_type: str, label: int, use_numba: bool = False) -> DisplacementElement:
    """Create an element from its type code, e.g. ``make_element("CPE4R", 7)``."""
    code = _normalize(element_type)
    if code not in available_element_types():
        raise ValueError(
            f"Unknown element type '{element_type}'. Use one of {', '.join(available_element_types())}."
        )

    integration = IntegrationTypes.FullIntegration
    if code.endswith("R"):
        code = code[:-1]
        integration = IntegrationTypes.ReducedIntegration

    shape, section = _ELEMENT_CODES[code]
    return DisplacementElement(label, shape, integration, section, use_numba=use_numba)
