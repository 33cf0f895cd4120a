"""Hypoelastic constitutive models driven by the displacement elements.

Every model works incrementally on full 6-component Voigt vectors
(``[xx, yy, zz, xy, yz, xz]``, engineering shear strains). A call receives
the current stress (updated in place) and a strain increment, and returns
the full 6x6 algorithmic tangent together with the suggested time-step
fraction ``p_new_dt``. A value below the incoming one asks the caller to
retry with a smaller increment; it is a normal control signal, not an error.

Three entry points are exposed, one per section idealization:

* :meth:`HypoElasticMaterial.compute_stress` - 3D and plane strain.
* :meth:`HypoElasticMaterial.compute_plane_stress` - solves the out-of-plane
  strain so that ``szz = 0`` and writes it into ``d_strain[2]``.
* :meth:`HypoElasticMaterial.compute_uniaxial_stress` - solves the lateral
  strains so that ``syy = szz = 0`` and writes them into ``d_strain[1:3]``.

The default plane-stress/uniaxial implementations run a small local Newton
iteration around :meth:`compute_stress`, restoring stress and history
between iterations. Models with a closed form override them.

History lives in a caller-owned array bound with :meth:`assign_state_vars`;
models never allocate it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import MISSING, dataclass, fields
from typing import Any, ClassVar, Dict, Optional, Sequence, Tuple

import numpy as np

from fem_displacement.linear_elastic import iso_C6, iso_lame
from fem_displacement.voigt import (
    strain6_to_tensor,
    stress6_to_tensor,
    tensor_to_strain6,
    tensor_to_stress6,
)

# fraction suggested when a local iteration fails to converge
LOCAL_CUTBACK_FRACTION = 0.25


class HypoElasticMaterial(ABC):
    """Interface shared by all material models.

    Concrete models are dataclasses whose init fields, in order, are the
    entries of the material property vector (see :meth:`from_properties`).
    """

    N_STATE_VARS: ClassVar[int] = 0
    # result name -> (start, stop) inside the state vector
    RESULTS: ClassVar[Dict[str, Tuple[int, int]]] = {}

    zero_stress_tol: ClassVar[float] = 1e-9
    local_maxit: ClassVar[int] = 25

    def __post_init__(self) -> None:
        self.element_label = 0
        self.gauss_pt = 0
        self.characteristic_length = 0.0
        self.state_vars: Optional[np.ndarray] = None

    @classmethod
    def from_properties(
        cls, material_properties: Sequence[float], element_label: int = 0, gauss_pt: int = 0
    ) -> "HypoElasticMaterial":
        """Instantiate from a flat property vector (trailing optional entries may be omitted)."""
        props = [float(x) for x in np.asarray(material_properties, dtype=float).ravel()]
        init_fields = [f for f in fields(cls) if f.init]
        n_required = sum(1 for f in init_fields if f.default is MISSING)
        if not n_required <= len(props) <= len(init_fields):
            names = ", ".join(f.name for f in init_fields)
            raise ValueError(
                f"{cls.__name__} expects {n_required}..{len(init_fields)} properties ({names}), got {len(props)}"
            )
        mat = cls(**{f.name: v for f, v in zip(init_fields, props)})
        mat.element_label = int(element_label)
        mat.gauss_pt = int(gauss_pt)
        return mat

    # ------------------------------------------------------------------
    # State binding / results
    # ------------------------------------------------------------------

    def get_number_of_required_state_vars(self) -> int:
        return int(self.N_STATE_VARS)

    @property
    def n_state_vars(self) -> int:
        return 0 if self.state_vars is None else int(self.state_vars.shape[0])

    def assign_state_vars(self, state_vars: np.ndarray) -> None:
        """Bind the history view (may be longer than required; never copied)."""
        if state_vars.shape[0] < self.N_STATE_VARS:
            raise ValueError(
                f"{type(self).__name__} (element {self.element_label}, gauss point {self.gauss_pt}) "
                f"requires {self.N_STATE_VARS} state vars, got {state_vars.shape[0]}"
            )
        self.state_vars = state_vars

    def _history(self) -> np.ndarray:
        if self.state_vars is None:
            if self.N_STATE_VARS == 0:
                return np.zeros(0, dtype=float)
            raise RuntimeError(
                f"{type(self).__name__} (element {self.element_label}, gauss point {self.gauss_pt}): "
                "state vars not assigned"
            )
        return self.state_vars

    def get_permanent_result_pointer(self, name: str) -> np.ndarray:
        try:
            start, stop = self.RESULTS[name]
        except KeyError:
            raise KeyError(f"{type(self).__name__} has no result '{name}'") from None
        return self._history()[start:stop]

    def set_characteristic_element_length(self, length: float) -> None:
        self.characteristic_length = float(length)

    # ------------------------------------------------------------------
    # Stress updates
    # ------------------------------------------------------------------

    @abstractmethod
    def compute_stress(
        self,
        stress: np.ndarray,
        d_strain: np.ndarray,
        time: Any,
        dt: float,
        p_new_dt: float = 1.0,
    ) -> Tuple[np.ndarray, float]:
        """Update ``stress`` in place; return (C 6x6, p_new_dt)."""

    def compute_plane_stress(
        self,
        stress: np.ndarray,
        d_strain: np.ndarray,
        time: Any,
        dt: float,
        p_new_dt: float = 1.0,
    ) -> Tuple[np.ndarray, float]:
        return self._solve_zero_stress(stress, d_strain, time, dt, p_new_dt, (2,))

    def compute_uniaxial_stress(
        self,
        stress: np.ndarray,
        d_strain: np.ndarray,
        time: Any,
        dt: float,
        p_new_dt: float = 1.0,
    ) -> Tuple[np.ndarray, float]:
        return self._solve_zero_stress(stress, d_strain, time, dt, p_new_dt, (1, 2))

    def _solve_zero_stress(
        self,
        stress: np.ndarray,
        d_strain: np.ndarray,
        time: Any,
        dt: float,
        p_new_dt: float,
        free: Sequence[int],
    ) -> Tuple[np.ndarray, float]:
        """Local Newton on the strain components ``free`` until their stresses vanish."""
        free = list(free)
        stress_old = np.array(stress, copy=True)
        history = self._history()
        history_old = np.array(history, copy=True)

        C = None
        for _it in range(int(self.local_maxit)):
            stress[:] = stress_old
            history[:] = history_old
            C, p = self.compute_stress(stress, d_strain, time, dt, p_new_dt)
            if p < p_new_dt:
                return C, p

            r = stress[free]
            scale = max(1.0, float(np.sum(np.abs(stress))))
            if np.all(np.abs(r) <= self.zero_stress_tol * scale):
                return C, p

            Cff = C[np.ix_(free, free)]
            if abs(float(np.linalg.det(Cff))) < 1e-300:
                break
            d_strain[free] -= np.linalg.solve(Cff, r)

        if C is None:
            raise RuntimeError(
                f"{type(self).__name__} (element {self.element_label}, gauss point {self.gauss_pt}): "
                f"local_maxit must be at least 1, got {self.local_maxit}"
            )
        return C, min(p_new_dt, LOCAL_CUTBACK_FRACTION)


# ----------------------------
# Linear elastic
# ----------------------------


@dataclass
class LinearElastic(HypoElasticMaterial):
    """Isotropic linear elasticity. Properties: ``[E, nu]``."""

    E: float
    nu: float

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.E <= 0.0:
            raise ValueError("Young's modulus E must be positive")
        if not -1.0 < self.nu < 0.5:
            raise ValueError("Poisson's ratio must lie in (-1, 0.5)")
        self.C6 = iso_C6(float(self.E), float(self.nu))

    def compute_stress(self, stress, d_strain, time, dt, p_new_dt=1.0):
        stress += self.C6 @ d_strain
        return self.C6.copy(), p_new_dt

    def compute_plane_stress(self, stress, d_strain, time, dt, p_new_dt=1.0):
        d_strain[2] = -self.nu / (1.0 - self.nu) * (d_strain[0] + d_strain[1])
        return self.compute_stress(stress, d_strain, time, dt, p_new_dt)

    def compute_uniaxial_stress(self, stress, d_strain, time, dt, p_new_dt=1.0):
        d_strain[1] = -self.nu * d_strain[0]
        d_strain[2] = -self.nu * d_strain[0]
        return self.compute_stress(stress, d_strain, time, dt, p_new_dt)


# -------------------------------------
# Drucker–Prager (associative) plasticity
# -------------------------------------


def _dp_alpha_k_from_mc(phi_deg: float, cohesion: float) -> Tuple[float, float]:
    """Return (alpha, k) for DP surface matching Mohr–Coulomb (inscribed).

    Uses pressure p = -tr(sigma)/3 (positive in compression) and
    yield f = q + alpha*p - k.
    """
    phi = np.deg2rad(float(phi_deg))
    s = float(np.sin(phi))
    c = float(np.cos(phi))
    denom = np.sqrt(3.0) * (3.0 - s)
    alpha = 2.0 * s / denom
    k = 6.0 * float(cohesion) * c / denom
    return float(alpha), float(k)


def _dp_return_mapping_3d(
    E: float,
    nu: float,
    sig_tr6: np.ndarray,
    eps_p6_old: np.ndarray,
    kappa_old: float,
    alpha: float,
    k0: float,
    H: float,
) -> Tuple[np.ndarray, np.ndarray, float, np.ndarray]:
    """3D DP update from a trial stress. Returns (sig6, eps_p6, kappa, Cep6)."""
    lam, mu, K = iso_lame(E, nu)
    S_tr = stress6_to_tensor(sig_tr6)

    # pressure positive in compression
    p_tr = float(-np.trace(S_tr) / 3.0)
    I = np.eye(3)
    s_tr = S_tr + p_tr * I
    J2 = 0.5 * float(np.sum(s_tr * s_tr))
    q_tr = float(np.sqrt(max(0.0, 3.0 * J2)))

    k_old = float(k0 + H * float(kappa_old))
    f_tr = float(q_tr + alpha * p_tr - k_old)
    if f_tr <= 0.0:
        return np.asarray(sig_tr6, dtype=float).copy(), np.array(eps_p6_old, dtype=float), float(kappa_old), iso_C6(E, nu)

    denom = max(float(3.0 * mu + (alpha**2) * K + H), 1e-24)
    dgamma = f_tr / denom

    q_new = max(0.0, q_tr - 3.0 * mu * dgamma)
    p_new = p_tr - alpha * K * dgamma

    if q_tr > 1e-18:
        s_new = (q_new / q_tr) * s_tr
    else:
        s_new = np.zeros((3, 3), dtype=float)

    S_new = s_new - p_new * I
    sig6 = tensor_to_stress6(S_new)

    # flow direction n = df/dsigma (associative)
    if q_new > 1e-18:
        n_dev = 1.5 * s_new / q_new
    else:
        n_dev = np.zeros((3, 3), dtype=float)
    n = n_dev - (alpha / 3.0) * I

    Ep_new = strain6_to_tensor(eps_p6_old) + float(dgamma) * n
    eps_p6 = tensor_to_strain6(Ep_new)
    kappa = float(kappa_old + dgamma)

    # a = Ce : n
    trn = float(np.trace(n))
    a = lam * trn * I + 2.0 * mu * n
    denom_t = max(float(H + np.sum(n * a)), 1e-24)

    # radial return on the cone: the deviatoric part shrinks by q_new / q_tr
    # (consistent tangent); at the apex only the continuum part remains
    if q_new > 1e-18:
        beta = 3.0 * mu * float(dgamma) / q_tr
    else:
        beta = 0.0

    Cep6 = np.zeros((6, 6), dtype=float)
    for j in range(6):
        ej = np.zeros(6, dtype=float)
        ej[j] = 1.0
        Eps = strain6_to_tensor(ej)
        dev_E = Eps - float(np.trace(Eps)) / 3.0 * I
        CeE = lam * float(np.trace(Eps)) * I + 2.0 * mu * Eps
        C_col = CeE - a * float(np.sum(a * Eps)) / denom_t
        C_col += 2.0 * mu * beta * (n_dev * float(np.sum(n_dev * Eps)) * (2.0 / 3.0) - dev_E)
        Cep6[:, j] = tensor_to_stress6(C_col)

    return sig6, eps_p6, kappa, Cep6


@dataclass
class DruckerPrager(HypoElasticMaterial):
    """Associative Drucker–Prager plasticity with isotropic hardening.

    Properties: ``[E, nu, phi_deg, cohesion, H, max_strain_increment]``.

    Parameters
    ----------
    E, nu:
        3D elastic constants.
    phi_deg, cohesion:
        Mohr–Coulomb-like parameters used to compute (alpha, k0).
    H:
        Isotropic hardening modulus on the plastic multiplier ``kappa``.
    max_strain_increment:
        If positive, increments with a larger norm are rejected with a
        suggested fraction ``max_strain_increment / |d_strain|``.

    State vector: ``[eps_p (6), kappa]``.
    """

    N_STATE_VARS: ClassVar[int] = 7
    RESULTS: ClassVar[Dict[str, Tuple[int, int]]] = {"eps_p": (0, 6), "kappa": (6, 7)}

    E: float
    nu: float
    phi_deg: float = 30.0
    cohesion: float = 1.0e6
    H: float = 0.0
    max_strain_increment: float = 0.0

    def __post_init__(self) -> None:
        super().__post_init__()
        self.alpha, self.k0 = _dp_alpha_k_from_mc(self.phi_deg, self.cohesion)
        self.Ce6 = iso_C6(float(self.E), float(self.nu))

    def compute_stress(self, stress, d_strain, time, dt, p_new_dt=1.0):
        if self.max_strain_increment > 0.0:
            norm = float(np.linalg.norm(d_strain))
            if norm > self.max_strain_increment:
                return self.Ce6.copy(), min(p_new_dt, self.max_strain_increment / norm)

        sv = self._history()
        sig_tr6 = stress + self.Ce6 @ d_strain
        sig6, eps_p6, kappa, Cep6 = _dp_return_mapping_3d(
            self.E,
            self.nu,
            sig_tr6,
            sv[0:6],
            float(sv[6]),
            float(self.alpha),
            float(self.k0),
            float(self.H),
        )
        stress[:] = sig6
        sv[0:6] = eps_p6
        sv[6] = kappa
        return Cep6, p_new_dt


# -------------------------------------
# Isotropic damage (crack band)
# -------------------------------------


@dataclass
class IsotropicDamage(HypoElasticMaterial):
    """Scalar damage with linear softening regularized by the element size.

    Properties: ``[E, nu, ft, Gf, max_damage_increment]``.

    The equivalent strain is the largest positive principal strain. Softening
    ends at ``eps_f = eps_0 + 2 Gf / (ft * lch)`` with ``lch`` the
    characteristic element length, so the dissipated energy per unit crack
    area does not depend on the mesh. The returned tangent is the secant
    ``(1 - d) Ce`` (damage frozen within the call).

    State vector: ``[eps (6), kappa, damage]``.
    """

    N_STATE_VARS: ClassVar[int] = 8
    RESULTS: ClassVar[Dict[str, Tuple[int, int]]] = {"kappa": (6, 7), "damage": (7, 8)}

    E: float
    nu: float
    ft: float
    Gf: float
    max_damage_increment: float = 0.1

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.ft <= 0.0 or self.Gf <= 0.0:
            raise ValueError("Tensile strength ft and fracture energy Gf must be positive")
        self.Ce6 = iso_C6(float(self.E), float(self.nu))
        self.eps0 = float(self.ft / self.E)

    def softening_strain(self) -> float:
        lch = float(self.characteristic_length)
        if lch <= 0.0:
            raise RuntimeError(
                f"IsotropicDamage (element {self.element_label}, gauss point {self.gauss_pt}): "
                "characteristic element length not set"
            )
        return self.eps0 + 2.0 * float(self.Gf) / (float(self.ft) * lch)

    def damage_from_kappa(self, kappa: float) -> float:
        if kappa <= self.eps0:
            return 0.0
        epsf = self.softening_strain()
        sig = float(self.ft * max(0.0, 1.0 - (kappa - self.eps0) / (epsf - self.eps0)))
        d = 1.0 - sig / (self.E * kappa)
        return float(min(0.999999, max(0.0, d)))

    def compute_stress(self, stress, d_strain, time, dt, p_new_dt=1.0):
        sv = self._history()
        eps = sv[0:6] + d_strain
        e_max = float(np.linalg.eigvalsh(strain6_to_tensor(eps))[-1])
        kappa = max(float(sv[6]), max(0.0, e_max))
        d_old = float(sv[7])
        d = max(d_old, self.damage_from_kappa(kappa))

        Cs = (1.0 - d) * self.Ce6
        stress[:] = Cs @ eps
        sv[0:6] = eps
        sv[6] = kappa
        sv[7] = d

        dd = d - d_old
        if self.max_damage_increment > 0.0 and dd > self.max_damage_increment:
            p_new_dt = min(p_new_dt, max(LOCAL_CUTBACK_FRACTION, self.max_damage_increment / dd))
        return Cs, p_new_dt
