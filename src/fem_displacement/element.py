"""Small-strain displacement element with pluggable hypoelastic materials.

One :class:`DisplacementElement` integrates the material response over a
fixed quadrature rule and returns its internal-force residual and tangent
stiffness for a displacement increment. The same code serves 1D bars
(uniaxial stress), 2D plane stress / plane strain and 3D solids; the
dimension and node count come from the element shape.

Lifecycle::

    el = DisplacementElement(label, "Quad4", IntegrationTypes.FullIntegration, SectionType.PlaneStrain)
    el.assign_property(ElementProperties([thickness]))
    el.assign_property(MaterialSection("LINEARELASTIC", [E, nu]))
    el.assign_state_vars(history, el.get_number_of_required_state_vars())
    el.initialize_yourself(coordinates)
    p_new_dt = el.compute_yourself(q_total, dq, pe, ke, time, dt)   # per increment

Cut-back protocol
-----------------
If a material returns a suggested time-step fraction below 1.0, the kernel
stops at that Gauss point and returns the fraction unchanged. The call then
has no effect at all: ``pe``/``ke`` are left untouched (contributions are
accumulated into call-local arrays first) and the persistent history of
every Gauss point is restored to its value before the call. The caller
retries with a smaller ``dt``.
"""

from __future__ import annotations

import logging
from enum import Enum
from functools import lru_cache
from typing import Any, Optional, Tuple, Union

import numpy as np

from fem_displacement.boundary import BoundaryElement
from fem_displacement.geometry import GeometryElement
from fem_displacement.material_factory import make_material
from fem_displacement.material_point import GaussPoint, GaussPointGeometry
from fem_displacement.quadrature import IntegrationTypes, get_gauss_point_info
from fem_displacement.section import ElementProperties, MaterialSection
from fem_displacement.state_arrays import N_STRESS_STRAIN_VARS, check_state_buffer
from fem_displacement.voigt import (
    expand_to_voigt,
    get_plane_strain_tangent,
    get_plane_stress_tangent,
    get_uniaxial_stress_tangent,
    reduce_voigt,
)

logger = logging.getLogger(__name__)


class SectionType(Enum):
    UniaxialStress = "uniaxial_stress"
    PlaneStress = "plane_stress"
    PlaneStrain = "plane_strain"
    Solid = "solid"


class DistributedLoadTypes(Enum):
    Pressure = "pressure"
    SurfaceTraction = "surface_traction"
    HeatFlux = "heat_flux"


class StateTypes(Enum):
    GeostaticStress = "geostatic_stress"


_VALID_SECTIONS = {
    1: (SectionType.UniaxialStress,),
    2: (SectionType.PlaneStress, SectionType.PlaneStrain),
    3: (SectionType.Solid,),
}

_DEFAULT_SECTION = {
    1: SectionType.UniaxialStress,
    2: SectionType.PlaneStrain,
    3: SectionType.Solid,
}


@lru_cache(maxsize=None)
def node_fields(n_nodes: int) -> Tuple[Tuple[str, ...], ...]:
    """Field names carried by each node (shared by all elements of a kind)."""
    return tuple(("displacement",) for _ in range(int(n_nodes)))


@lru_cache(maxsize=None)
def dof_indices_permutation_pattern(n_dim: int, n_nodes: int) -> Tuple[int, ...]:
    """Element DOF order -> node-field DOF order (identity for interleaved displacements)."""
    return tuple(range(int(n_nodes) * int(n_dim)))


class DisplacementElement(GeometryElement):
    """Displacement element parametrized by shape, quadrature and section type."""

    def __init__(
        self,
        label: int,
        shape: str,
        integration_type: IntegrationTypes = IntegrationTypes.FullIntegration,
        section_type: Optional[SectionType] = None,
        use_numba: bool = False,
    ) -> None:
        super().__init__(shape)
        self.el_label = int(label)
        section_type = _DEFAULT_SECTION[self.n_dim] if section_type is None else SectionType(section_type)
        if section_type not in _VALID_SECTIONS[self.n_dim]:
            raise ValueError(
                f"Element {self.el_label}: section type {section_type.name} is not valid for a "
                f"{self.n_dim}D {self.shape} element"
            )
        self.section_type = section_type
        self.integration_type = IntegrationTypes(integration_type)
        self.use_numba = bool(use_numba)

        self.size_load_vector = self.n_nodes * self.n_dim
        self.element_properties = np.zeros(0, dtype=float)
        self.gauss_pts: Tuple[GaussPoint, ...] = tuple(
            GaussPoint(np.asarray(info.xi, dtype=float), info.weight)
            for info in get_gauss_point_info(self.shape, self.integration_type)
        )

        self._state_vars: Optional[np.ndarray] = None
        self._n_state_vars = 0

    def __repr__(self) -> str:
        return (
            f"<DisplacementElement label={self.el_label} shape={self.shape} "
            f"section={self.section_type.name} gauss_pts={len(self.gauss_pts)}>"
        )

    # ------------------------------------------------------------------
    # Static information
    # ------------------------------------------------------------------

    def get_node_fields(self) -> Tuple[Tuple[str, ...], ...]:
        return node_fields(self.n_nodes)

    def get_dof_indices_permutation_pattern(self) -> Tuple[int, ...]:
        return dof_indices_permutation_pattern(self.n_dim, self.n_nodes)

    def get_n_nodes(self) -> int:
        return self.n_nodes

    def get_n_dof_per_element(self) -> int:
        return self.size_load_vector

    # ------------------------------------------------------------------
    # Properties and state binding
    # ------------------------------------------------------------------

    def assign_property(self, prop: Union[ElementProperties, MaterialSection]) -> None:
        """Bind section properties or instantiate the Gauss-point materials."""
        if isinstance(prop, ElementProperties):
            self.element_properties = prop.element_properties
            return

        if isinstance(prop, MaterialSection):
            if any(gpt.material is not None for gpt in self.gauss_pts):
                raise RuntimeError(f"Element {self.el_label}: materials are already assigned")
            for i, gpt in enumerate(self.gauss_pts):
                gpt.material = make_material(
                    prop.material_code, prop.material_properties, self.el_label, i
                )
            return

        raise TypeError(
            f"Element {self.el_label}: assign_property expects ElementProperties or MaterialSection, "
            f"got {type(prop).__name__}"
        )

    def _require_materials(self, operation: str) -> None:
        if any(gpt.material is None for gpt in self.gauss_pts):
            raise RuntimeError(f"Element {self.el_label}: {operation} called before a material was assigned")

    def get_number_of_required_state_vars(self) -> int:
        self._require_materials("get_number_of_required_state_vars")
        n_mat = self.gauss_pts[0].material.get_number_of_required_state_vars()
        return (n_mat + N_STRESS_STRAIN_VARS) * len(self.gauss_pts)

    def assign_state_vars(self, state_vars: np.ndarray, n_state_vars: Optional[int] = None) -> None:
        """Re-bind all Gauss-point history views onto ``state_vars``.

        The buffer is split evenly across Gauss points; each block is
        ``[material state | stress (6) | strain (6)]``. Materials receive
        every entry of their part of the block, which may exceed what they
        require.
        """
        state_vars = check_state_buffer(state_vars)
        n = state_vars.shape[0] if n_state_vars is None else int(n_state_vars)
        required = self.get_number_of_required_state_vars()
        if n > state_vars.shape[0] or n <= 0 or n % required != 0:
            raise ValueError(
                f"Element {self.el_label}: assign_state_vars got {n} state vars "
                f"(buffer length {state_vars.shape[0]}); expected a multiple of {required}"
            )

        block = n // len(self.gauss_pts)
        n_mat = block - N_STRESS_STRAIN_VARS
        for i, gpt in enumerate(self.gauss_pts):
            base = i * block
            gpt.material.assign_state_vars(state_vars[base : base + n_mat])
            gpt.stress_view.rebind(state_vars, base + n_mat, 6)
            gpt.strain_view.rebind(state_vars, base + n_mat + 6, 6)

        self._state_vars = state_vars
        self._n_state_vars = n
        logger.debug("element %d: bound %d state vars (%d per gauss point)", self.el_label, n, block)

    def _section_property(self, name: str) -> float:
        if self.element_properties.shape[0] < 1:
            raise ValueError(
                f"Element {self.el_label}: {self.section_type.name} section requires the {name} "
                "as element property 0"
            )
        return float(self.element_properties[0])

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def initialize_yourself(self, coordinates) -> None:
        """Store coordinates and build the one-time geometry cache of every Gauss point."""
        self._require_materials("initialize_yourself")
        super().initialize_yourself(coordinates)

        for gpt in self.gauss_pts:
            dNdXi = self.dNdXi(gpt.xi)
            J = self.jacobian(dNdXi)
            JInv = np.linalg.inv(J)
            detJ = float(np.linalg.det(J))
            if detJ <= 0.0:
                raise ValueError(
                    f"Element {self.el_label}: non-positive Jacobian determinant {detJ:.3e} "
                    f"at xi={tuple(gpt.xi)}"
                )
            dNdX = self.dNdX(dNdXi, JInv)
            B = self.B(dNdX)

            if self.section_type is SectionType.Solid:
                int_vol = gpt.weight * detJ
                lch = float(np.cbrt(8.0 * detJ))
            elif self.section_type in (SectionType.PlaneStrain, SectionType.PlaneStress):
                int_vol = gpt.weight * detJ * self._section_property("thickness")
                lch = float(np.sqrt(4.0 * detJ))
            else:
                int_vol = gpt.weight * detJ * self._section_property("cross section")
                lch = 2.0 * detJ

            gpt.geometry = GaussPointGeometry.create(J, JInv, detJ, dNdXi, dNdX, B, int_vol)
            gpt.material.set_characteristic_element_length(lch)

        logger.debug("element %d: initialized %s with %d gauss points", self.el_label, self.shape, len(self.gauss_pts))

    # ------------------------------------------------------------------
    # Kernel
    # ------------------------------------------------------------------

    def _check_ready(self, operation: str) -> None:
        self._require_materials(operation)
        if self.coordinates is None or any(gpt.geometry is None for gpt in self.gauss_pts):
            raise RuntimeError(f"Element {self.el_label}: {operation} called before initialize_yourself")
        if self._state_vars is None:
            raise RuntimeError(f"Element {self.el_label}: {operation} called before assign_state_vars")

    def _out_vector(self, P: np.ndarray, operation: str) -> np.ndarray:
        if not isinstance(P, np.ndarray) or P.shape != (self.size_load_vector,):
            raise ValueError(
                f"Element {self.el_label}: {operation} expects an output vector of shape "
                f"({self.size_load_vector},)"
            )
        return P

    def _out_matrix(self, K: np.ndarray, operation: str) -> np.ndarray:
        n = self.size_load_vector
        if isinstance(K, np.ndarray):
            if K.shape == (n, n):
                return K
            if K.shape == (n * n,):
                K2 = K.reshape(n, n)
                if np.shares_memory(K2, K):
                    return K2
        raise ValueError(
            f"Element {self.el_label}: {operation} expects an output matrix of shape ({n}, {n}) or ({n * n},)"
        )

    def _material_update(self, gpt: GaussPoint, dE6: np.ndarray, time: Any, dt: float, p_new_dt: float):
        """Dispatch to the material entry point of the section; return (reduced C, p_new_dt)."""
        mat = gpt.material
        stress = gpt.stress

        if self.n_dim == 1:
            C66, p_new_dt = mat.compute_uniaxial_stress(stress, dE6, time, dt, p_new_dt)
            return get_uniaxial_stress_tangent(C66), p_new_dt

        if self.n_dim == 2:
            if self.section_type is SectionType.PlaneStress:
                C66, p_new_dt = mat.compute_plane_stress(stress, dE6, time, dt, p_new_dt)
                return get_plane_stress_tangent(C66), p_new_dt
            C66, p_new_dt = mat.compute_stress(stress, dE6, time, dt, p_new_dt)
            return get_plane_strain_tangent(C66), p_new_dt

        C66, p_new_dt = mat.compute_stress(stress, dE6, time, dt, p_new_dt)
        return np.array(C66, dtype=float), p_new_dt

    def compute_yourself(
        self,
        q_total: np.ndarray,
        dq: np.ndarray,
        pe: np.ndarray,
        ke: np.ndarray,
        time: Any,
        dt: float,
        p_new_dt: float = 1.0,
    ) -> float:
        """Integrate residual and tangent for the displacement increment ``dq``.

        ``pe`` and ``ke`` are accumulated in place (``pe -= B^T S dV``,
        ``ke += B^T C B dV``); the caller zero-initializes them. Returns the
        suggested time-step fraction; below 1.0 means the call was rejected
        and had no effect.
        """
        self._check_ready("compute_yourself")
        pe_out = self._out_vector(pe, "compute_yourself")
        ke_out = self._out_matrix(ke, "compute_yourself")
        dq = np.asarray(dq, dtype=float).reshape(self.size_load_vector)

        n = self.size_load_vector
        pe_local = np.zeros(n, dtype=float)
        ke_local = np.zeros((n, n), dtype=float)
        history_old = np.array(self._state_vars[: self._n_state_vars], copy=True)

        if self.use_numba:
            from fem_displacement.numba.kernels_element import (
                accumulate_btcb_numba,
                accumulate_bts_numba,
            )

        for i, gpt in enumerate(self.gauss_pts):
            B = gpt.geometry.B
            dE6 = expand_to_voigt(B @ dq, self.n_dim)

            C, p_new_dt = self._material_update(gpt, dE6, time, dt, p_new_dt)
            S = reduce_voigt(gpt.stress, self.n_dim)
            strain = gpt.strain
            strain += dE6

            if p_new_dt < 1.0:
                self._state_vars[: self._n_state_vars] = history_old
                logger.debug(
                    "element %d: cut-back requested at gauss point %d (p_new_dt=%.4g, dt=%.4g)",
                    self.el_label,
                    i,
                    p_new_dt,
                    dt,
                )
                return p_new_dt

            int_vol = gpt.geometry.int_vol
            if self.use_numba:
                accumulate_btcb_numba(ke_local, B, np.ascontiguousarray(C), int_vol)
                accumulate_bts_numba(pe_local, B, np.ascontiguousarray(S), int_vol)
            else:
                ke_local += B.T @ C @ B * int_vol
                pe_local -= B.T @ S * int_vol

        pe_out += pe_local
        ke_out += ke_local
        return p_new_dt

    # ------------------------------------------------------------------
    # Initial conditions and external loads
    # ------------------------------------------------------------------

    def set_initial_conditions(self, state: StateTypes, values) -> None:
        """Seed the stress state before load stepping.

        ``GeostaticStress``: ``values = [sig_y1, y1, sig_y2, y2, k_x, k_z]``;
        the vertical stress is interpolated linearly in ``y`` and the
        horizontal/out-of-plane stresses are ``k_x`` and ``k_z`` times it.
        """
        if state is StateTypes.GeostaticStress:
            if self.n_dim == 1:
                return
            self._check_ready("set_initial_conditions")
            values = np.asarray(values, dtype=float).reshape(-1)
            sig_y1, y1, sig_y2, y2 = values[0], values[1], values[2], values[3]
            for gpt in self.gauss_pts:
                y = float(self.interpolate_coordinates(gpt.xi)[1])
                stress = gpt.stress
                stress[1] = linear_interpolation(y, y1, y2, sig_y1, sig_y2)
                stress[0] = values[4] * stress[1]
                stress[2] = values[5] * stress[1]

    def compute_distributed_load(
        self,
        load_type: DistributedLoadTypes,
        P: np.ndarray,
        K: np.ndarray,
        element_face: int,
        load,
        q_total: np.ndarray,
        time: Any,
        dt: float,
    ) -> None:
        """Assemble a face load into ``P``; only ``Pressure`` (``load[0]``) is supported."""
        if load_type is not DistributedLoadTypes.Pressure:
            raise NotImplementedError(
                f"Element {self.el_label}: compute_distributed_load does not support load type {load_type!r}"
            )
        if self.coordinates is None:
            raise RuntimeError(f"Element {self.el_label}: compute_distributed_load called before initialize_yourself")
        fU = self._out_vector(P, "compute_distributed_load")

        p = float(np.asarray(load, dtype=float).reshape(-1)[0])
        boundary_el = BoundaryElement(self.shape, element_face, self.n_dim, self.coordinates)
        Pk = -p * boundary_el.compute_normal_load_vector()
        if self.n_dim == 2:
            Pk *= self._section_property("thickness")
        boundary_el.assemble_into_parent_vector(Pk, fU)

    def compute_body_force(
        self,
        P: np.ndarray,
        K: np.ndarray,
        load,
        q_total: np.ndarray,
        time: Any,
        dt: float,
    ) -> None:
        """``P += sum N^T f dV`` for a uniform body force ``f`` (length ``n_dim``)."""
        if self.coordinates is None or any(gpt.geometry is None for gpt in self.gauss_pts):
            raise RuntimeError(f"Element {self.el_label}: compute_body_force called before initialize_yourself")
        Pe = self._out_vector(P, "compute_body_force")
        f = np.asarray(load, dtype=float).reshape(-1)[: self.n_dim]
        for gpt in self.gauss_pts:
            Pe += self.NB(self.N(gpt.xi)).T @ f * gpt.geometry.int_vol

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def get_permanent_result_pointer(self, result_name: str, gauss_pt: int) -> np.ndarray:
        """View onto persistent results of one Gauss point (``len`` gives the result length)."""
        if not 0 <= int(gauss_pt) < len(self.gauss_pts):
            raise IndexError(
                f"Element {self.el_label}: get_permanent_result_pointer got gauss point {gauss_pt}, "
                f"expected 0..{len(self.gauss_pts) - 1}"
            )
        gpt = self.gauss_pts[int(gauss_pt)]
        if result_name == "stress":
            return gpt.stress
        if result_name == "strain":
            return gpt.strain
        if gpt.material is None:
            raise RuntimeError(f"Element {self.el_label}: no material assigned")
        if result_name == "sdv":
            return gpt.material.state_vars if gpt.material.state_vars is not None else np.zeros(0)
        try:
            return gpt.material.get_permanent_result_pointer(result_name)
        except KeyError:
            raise KeyError(
                f"Element {self.el_label}, gauss point {gauss_pt}: unknown result '{result_name}'"
            ) from None


def linear_interpolation(x: float, x0: float, x1: float, y0: float, y1: float) -> float:
    """Straight line through ``(x0, y0)`` and ``(x1, y1)`` evaluated at ``x``."""
    if x1 == x0:
        return float(y0)
    return float(y0 + (x - x0) * (y1 - y0) / (x1 - x0))
