"""Material factory.

Elements instantiate one material per Gauss point from a material code.
This module centralizes that mapping; additional models can be plugged in
with :func:`register_material`.
"""

from __future__ import annotations

from typing import Dict, Sequence, Type

from fem_displacement.constitutive import (
    DruckerPrager,
    HypoElasticMaterial,
    IsotropicDamage,
    LinearElastic,
)

_REGISTRY: Dict[str, Type[HypoElasticMaterial]] = {
    "LINEARELASTIC": LinearElastic,
    "DRUCKERPRAGER": DruckerPrager,
    "ISOTROPICDAMAGE": IsotropicDamage,
}


def register_material(code: str, cls: Type[HypoElasticMaterial]) -> Type[HypoElasticMaterial]:
    """Make ``cls`` available under ``code`` (upper-cased)."""
    if not issubclass(cls, HypoElasticMaterial):
        raise TypeError(f"{cls!r} does not implement HypoElasticMaterial")
    _REGISTRY[code.strip().upper()] = cls
    return cls


def available_materials() -> Sequence[str]:
    return tuple(sorted(_REGISTRY))


def make_material(
    material_code: str,
    material_properties: Sequence[float],
    element_label: int = 0,
    gauss_pt: int = 0,
) -> HypoElasticMaterial:
    """Instantiate the material registered under ``material_code``."""
    code = (material_code or "").strip().upper()
    try:
        cls = _REGISTRY[code]
    except KeyError:
        raise ValueError(
            f"Unknown material code '{material_code}'. Use one of {', '.join(available_materials())}."
        ) from None
    return cls.from_properties(material_properties, element_label=element_label, gauss_pt=gauss_pt)
