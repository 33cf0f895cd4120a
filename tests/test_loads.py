"""Distributed face loads, body forces and geostatic initial stress."""

import numpy as np
import pytest

from fem_displacement.boundary import BoundaryElement
from fem_displacement.element import DisplacementElement, DistributedLoadTypes, StateTypes
from fem_displacement.section import ElementProperties, MaterialSection

UNIT_SQUARE = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])
UNIT_CUBE = np.array(
    [[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0], [0, 0, 1], [1, 0, 1], [1, 1, 1], [0, 1, 1]],
    dtype=float,
)


def _element(shape, coords, thickness=1.0):
    el = DisplacementElement(2, shape)
    el.assign_property(ElementProperties([thickness]))
    el.assign_property(MaterialSection("LINEARELASTIC", [30e9, 0.2]))
    n = el.get_number_of_required_state_vars()
    el.assign_state_vars(np.zeros(n), n)
    el.initialize_yourself(coords)
    return el


def _pressure(el, face, p):
    n = el.get_n_dof_per_element()
    P = np.zeros(n)
    el.compute_distributed_load(
        DistributedLoadTypes.Pressure, P, np.zeros((n, n)), face, np.array([p]), np.zeros(n), 0.0, 1.0
    )
    return P


def test_quad4_edge_pressure():
    p, t = 2.0e5, 0.3
    el = _element("Quad4", UNIT_SQUARE, thickness=t)
    P = _pressure(el, 2, p)  # right edge, outward normal +x

    expected = np.zeros(8)
    expected[2] = expected[4] = -p * t * 0.5
    assert np.allclose(P, expected)


def test_pressure_on_every_quad4_edge_balances():
    el = _element("Quad4", UNIT_SQUARE)
    total = sum(_pressure(el, face, 1.0) for face in range(1, 5))
    assert np.allclose([total[0::2].sum(), total[1::2].sum()], 0.0, atol=1e-12)
    # uniform pressure on a closed surface: node a receives -int(grad N_a) dV
    assert np.allclose(total[0:2], [0.5, 0.5])


def test_quad8_edge_pressure_is_consistent():
    X = np.vstack([UNIT_SQUARE, [[0.5, 0.0], [1.0, 0.5], [0.5, 1.0], [0.0, 0.5]]])
    el = _element("Quad8", X)
    P = _pressure(el, 1, 6.0)  # bottom edge, outward normal -y
    fy = P[1::2]
    assert np.allclose([fy[0], fy[1], fy[4]], [1.0, 1.0, 4.0])
    assert np.allclose(P[0::2], 0.0)


def test_hexa8_face_pressure():
    p = 4.0
    el = _element("Hexa8", UNIT_CUBE)
    P = _pressure(el, 1, p)  # bottom face z = 0, outward normal -z
    fz = P[2::3]
    assert np.allclose(fz[:4], p / 4.0)
    assert np.allclose(fz[4:], 0.0)
    assert np.allclose(P[0::3], 0.0) and np.allclose(P[1::3], 0.0)


def test_hexa8_top_face_normal():
    el = _element("Hexa8", UNIT_CUBE)
    P = _pressure(el, 2, 1.0)
    assert np.isclose(P[2::3].sum(), -1.0)


def test_bar_end_pressure():
    el = _element("Truss2", np.array([[0.0], [2.0]]), thickness=1e-4)
    assert np.allclose(_pressure(el, 2, 3.0), [0.0, -3.0])
    assert np.allclose(_pressure(el, 1, 3.0), [3.0, 0.0])


@pytest.mark.parametrize("load_type", [DistributedLoadTypes.SurfaceTraction, DistributedLoadTypes.HeatFlux])
def test_unsupported_load_type_raises_without_side_effects(load_type):
    el = _element("Quad4", UNIT_SQUARE)
    P = np.ones(8)
    with pytest.raises(NotImplementedError):
        el.compute_distributed_load(load_type, P, np.zeros((8, 8)), 1, np.array([1.0]), np.zeros(8), 0.0, 1.0)
    assert np.all(P == 1.0)


def test_bad_face_raises():
    el = _element("Quad4", UNIT_SQUARE)
    with pytest.raises(ValueError):
        _pressure(el, 5, 1.0)
    with pytest.raises(ValueError):
        BoundaryElement("Quad4", 0, 2, UNIT_SQUARE)


def test_body_force_total():
    t, g = 0.25, 9.81e3
    X = np.array([[0.0, 0.0], [2.0, 0.0], [2.0, 1.0], [0.0, 1.0]])
    el = _element("Quad4", X, thickness=t)
    P = np.zeros(8)
    el.compute_body_force(P, np.zeros((8, 8)), np.array([0.0, -g]), np.zeros(8), 0.0, 1.0)
    assert np.allclose(P[0::2], 0.0)
    assert np.allclose(P[1::2], -g * 2.0 * t / 4.0)


def test_body_force_hexa8():
    el = _element("Hexa8", UNIT_CUBE)
    P = np.zeros(24)
    el.compute_body_force(P, np.zeros((24, 24)), np.array([1.0, 2.0, 3.0]), np.zeros(24), 0.0, 1.0)
    assert np.allclose([P[0::3].sum(), P[1::3].sum(), P[2::3].sum()], [1.0, 2.0, 3.0])


def test_geostatic_stress_interpolation():
    el = _element("Quad4", UNIT_SQUARE)
    el.set_initial_conditions(StateTypes.GeostaticStress, [-10.0, 0.0, 0.0, 1.0, 0.5, 0.7])
    for i, gpt in enumerate(el.gauss_pts):
        y = el.interpolate_coordinates(gpt.xi)[1]
        s = el.get_permanent_result_pointer("stress", i)
        assert np.isclose(s[1], -10.0 + 10.0 * y)
        assert np.isclose(s[0], 0.5 * s[1])
        assert np.isclose(s[2], 0.7 * s[1])
        assert s[3] == 0.0


def test_geostatic_ignored_for_bars():
    el = _element("Truss2", np.array([[0.0], [1.0]]))
    el.set_initial_conditions(StateTypes.GeostaticStress, [-10.0, 0.0, 0.0, 1.0, 0.5, 0.5])
    assert not el.get_permanent_result_pointer("stress", 0).any()
