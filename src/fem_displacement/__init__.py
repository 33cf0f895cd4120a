"""fem_displacement package (small-strain displacement elements)."""

from .constitutive import HypoElasticMaterial, LinearElastic, DruckerPrager, IsotropicDamage
from .element import DisplacementElement, DistributedLoadTypes, SectionType, StateTypes
from .element_factory import make_element
from .material_factory import make_material, register_material
from .quadrature import IntegrationTypes
from .section import ElementProperties, MaterialSection

__all__ = [
    "HypoElasticMaterial", "LinearElastic", "DruckerPrager", "IsotropicDamage",
    "DisplacementElement", "DistributedLoadTypes", "SectionType", "StateTypes",
    "make_element",
    "make_material", "register_material",
    "IntegrationTypes",
    "ElementProperties", "MaterialSection",
]
