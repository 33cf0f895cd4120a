"""History binding, lifecycle preconditions and result access."""

import numpy as np
import pytest

from fem_displacement.element import DisplacementElement
from fem_displacement.element_factory import available_element_types, make_element
from fem_displacement.section import ElementProperties, MaterialSection

UNIT_SQUARE = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])
DP_PROPS = [30e9, 0.2, 30.0, 1e6, 0.0]


def _quad(material="DRUCKERPRAGER", props=DP_PROPS):
    el = DisplacementElement(11, "Quad4")
    el.assign_property(ElementProperties([1.0]))
    el.assign_property(MaterialSection(material, props))
    return el


def test_required_state_vars():
    assert _quad("LINEARELASTIC", [1e9, 0.2]).get_number_of_required_state_vars() == 12 * 4
    assert _quad().get_number_of_required_state_vars() == (7 + 12) * 4
    assert _quad("ISOTROPICDAMAGE", [30e9, 0.2, 3e6, 100.0]).get_number_of_required_state_vars() == (8 + 12) * 4


@pytest.mark.parametrize("code", available_element_types())
def test_required_state_vars_for_every_element_type(code):
    el = make_element(code, 21)
    el.assign_property(MaterialSection("DRUCKERPRAGER", DP_PROPS))
    n = el.get_number_of_required_state_vars()
    assert n == (7 + 12) * len(el.gauss_pts)

    buf = np.zeros(n)
    el.assign_state_vars(buf, n)
    last = el.get_permanent_result_pointer("strain", len(el.gauss_pts) - 1)
    last[:] = 1.0
    assert np.all(buf[-6:] == 1.0)
    assert buf[:-6].sum() == 0.0


def test_required_state_vars_needs_material():
    el = DisplacementElement(1, "Quad4")
    with pytest.raises(RuntimeError):
        el.get_number_of_required_state_vars()


def test_state_layout_per_gauss_point():
    el = _quad()
    n = el.get_number_of_required_state_vars()
    buf = np.zeros(n)
    el.assign_state_vars(buf, n)

    block = n // 4
    for i in range(4):
        el.get_permanent_result_pointer("stress", i)[:] = 10.0 + i
        el.get_permanent_result_pointer("strain", i)[:] = -1.0 - i
        el.get_permanent_result_pointer("kappa", i)[0] = 100.0 + i

    for i in range(4):
        base = i * block
        assert buf[base + 6] == 100.0 + i
        assert np.all(buf[base + 7 : base + 13] == 10.0 + i)
        assert np.all(buf[base + 13 : base + 19] == -1.0 - i)


def test_rebinding_switches_buffers():
    el = _quad()
    n = el.get_number_of_required_state_vars()
    first = np.zeros(n)
    second = np.arange(n, dtype=float)
    el.assign_state_vars(first, n)
    el.assign_state_vars(second, n)
    assert np.shares_memory(el.get_permanent_result_pointer("stress", 0), second)
    assert el.get_permanent_result_pointer("stress", 0)[0] == 7.0


def test_oversized_block_goes_to_material():
    el = _quad()
    n = 2 * el.get_number_of_required_state_vars()
    el.assign_state_vars(np.zeros(n), n)
    assert len(el.get_permanent_result_pointer("sdv", 0)) == n // 4 - 12


def test_state_buffer_validation():
    el = _quad()
    n = el.get_number_of_required_state_vars()
    with pytest.raises(ValueError):
        el.assign_state_vars(np.zeros(n - 1), n - 1)
    with pytest.raises(ValueError):
        el.assign_state_vars(np.zeros(n), n + 1)
    with pytest.raises(ValueError):
        el.assign_state_vars(np.zeros(n, dtype=np.float32), n)
    with pytest.raises(TypeError):
        el.assign_state_vars([0.0] * n, n)


def test_result_pointers():
    el = _quad()
    n = el.get_number_of_required_state_vars()
    el.assign_state_vars(np.zeros(n), n)
    assert len(el.get_permanent_result_pointer("stress", 1)) == 6
    assert len(el.get_permanent_result_pointer("strain", 1)) == 6
    assert len(el.get_permanent_result_pointer("sdv", 1)) == 7
    assert len(el.get_permanent_result_pointer("eps_p", 1)) == 6
    with pytest.raises(KeyError):
        el.get_permanent_result_pointer("damage", 1)
    with pytest.raises(IndexError, match="Element 11"):
        el.get_permanent_result_pointer("stress", -1)
    with pytest.raises(IndexError):
        el.get_permanent_result_pointer("stress", 4)


def test_compute_requires_state_and_geometry():
    el = _quad()
    with pytest.raises(RuntimeError):
        el.compute_yourself(np.zeros(8), np.zeros(8), np.zeros(8), np.zeros((8, 8)), 0.0, 1.0)

    n = el.get_number_of_required_state_vars()
    el.assign_state_vars(np.zeros(n), n)
    with pytest.raises(RuntimeError):
        el.compute_yourself(np.zeros(8), np.zeros(8), np.zeros(8), np.zeros((8, 8)), 0.0, 1.0)

    el2 = _quad()
    el2.initialize_yourself(UNIT_SQUARE)
    with pytest.raises(RuntimeError):
        el2.compute_yourself(np.zeros(8), np.zeros(8), np.zeros(8), np.zeros((8, 8)), 0.0, 1.0)


def test_initialize_requires_material():
    el = DisplacementElement(3, "Quad4")
    with pytest.raises(RuntimeError):
        el.initialize_yourself(UNIT_SQUARE)


def test_initialize_is_idempotent():
    el = _quad()
    el.initialize_yourself(UNIT_SQUARE)
    B0 = [gpt.geometry.B.copy() for gpt in el.gauss_pts]
    el.initialize_yourself(UNIT_SQUARE)
    for gpt, B in zip(el.gauss_pts, B0):
        assert np.array_equal(gpt.geometry.B, B)
        assert abs(gpt.geometry.detJ - 0.25) < 1e-14
        assert abs(gpt.geometry.int_vol - 0.25) < 1e-14


def test_geometry_cache_is_read_only():
    el = _quad()
    el.initialize_yourself(UNIT_SQUARE)
    with pytest.raises(ValueError):
        el.gauss_pts[0].geometry.B[0, 0] = 1.0


def test_inverted_element_rejected():
    el = _quad()
    with pytest.raises(ValueError):
        el.initialize_yourself(UNIT_SQUARE[::-1])


def test_plane_element_needs_thickness():
    el = DisplacementElement(5, "Quad4")
    el.assign_property(MaterialSection("LINEARELASTIC", [1e9, 0.2]))
    with pytest.raises(ValueError):
        el.initialize_yourself(UNIT_SQUARE)


def test_assign_property_type_and_reassignment():
    el = _quad()
    with pytest.raises(TypeError):
        el.assign_property({"thickness": 1.0})
    with pytest.raises(RuntimeError):
        el.assign_property(MaterialSection("LINEARELASTIC", [1e9, 0.2]))


def test_static_element_information():
    el = _quad()
    assert el.get_n_nodes() == 4
    assert el.get_n_dof_per_element() == 8
    assert el.get_element_shape() == "Quad4"
    assert el.get_node_fields() == (("displacement",),) * 4
    assert el.get_dof_indices_permutation_pattern() == tuple(range(8))
