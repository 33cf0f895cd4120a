import numpy as np
import pytest

from fem_displacement.geometry import SHAPES, GeometryElement, b_operator, get_shape
from fem_displacement.quadrature import IntegrationTypes, get_gauss_point_info


@pytest.mark.parametrize("shape", sorted(SHAPES))
def test_partition_of_unity(shape):
    info = get_shape(shape)
    xi = np.full(info.n_dim, 0.23)
    N, dN = info.shape_fn(xi)
    assert N.shape == (info.n_nodes,)
    assert dN.shape == (info.n_dim, info.n_nodes)
    assert abs(N.sum() - 1.0) < 1e-12
    assert np.allclose(dN.sum(axis=1), 0.0, atol=1e-12)


@pytest.mark.parametrize(
    "shape, integration, n_points, weight_sum",
    [
        ("Truss2", IntegrationTypes.FullIntegration, 2, 2.0),
        ("Truss2", IntegrationTypes.ReducedIntegration, 1, 2.0),
        ("Line3", IntegrationTypes.FullIntegration, 3, 2.0),
        ("Tri3", IntegrationTypes.FullIntegration, 1, 0.5),
        ("Quad4", IntegrationTypes.FullIntegration, 4, 4.0),
        ("Quad4", IntegrationTypes.ReducedIntegration, 1, 4.0),
        ("Quad8", IntegrationTypes.FullIntegration, 9, 4.0),
        ("Quad8", IntegrationTypes.ReducedIntegration, 4, 4.0),
        ("Hexa8", IntegrationTypes.FullIntegration, 8, 8.0),
        ("Hexa8", IntegrationTypes.ReducedIntegration, 1, 8.0),
    ],
)
def test_gauss_rules(shape, integration, n_points, weight_sum):
    rule = get_gauss_point_info(shape, integration)
    assert len(rule) == n_points
    assert abs(sum(gp.weight for gp in rule) - weight_sum) < 1e-12


def test_quad4_full_rule_points():
    rule = get_gauss_point_info("Quad4", IntegrationTypes.FullIntegration)
    a = 1.0 / np.sqrt(3.0)
    pts = sorted(tuple(np.round(gp.xi, 12)) for gp in rule)
    expected = sorted(tuple(np.round(p, 12)) for p in [(-a, -a), (-a, a), (a, -a), (a, a)])
    assert pts == expected


def test_unknown_shape_raises():
    with pytest.raises(ValueError):
        get_shape("Hexa27")


def test_jacobian_of_scaled_quad():
    geo = GeometryElement("Quad4")
    geo.initialize_yourself([[0.0, 0.0], [2.0, 0.0], [2.0, 3.0], [0.0, 3.0]])
    J = geo.jacobian(geo.dNdXi([0.1, -0.4]))
    assert np.allclose(J, np.diag([1.0, 1.5]))


def test_coordinate_count_checked():
    geo = GeometryElement("Quad4")
    with pytest.raises(ValueError):
        geo.initialize_yourself(np.zeros(6))


def test_b_operator_3d_shear_rows():
    dNdX = np.arange(24, dtype=float).reshape(3, 8)
    B = b_operator(dNdX)
    assert B.shape == (6, 24)
    # yz row couples uy with d/dz and uz with d/dy
    assert np.allclose(B[4, 1::3], dNdX[2])
    assert np.allclose(B[4, 2::3], dNdX[1])
    # xz row
    assert np.allclose(B[5, 0::3], dNdX[2])
    assert np.allclose(B[5, 2::3], dNdX[0])


def test_interpolate_coordinates_centroid():
    geo = GeometryElement("Hexa8")
    X = np.array(
        [[0, 0, 0], [2, 0, 0], [2, 2, 0], [0, 2, 0], [0, 0, 4], [2, 0, 4], [2, 2, 4], [0, 2, 4]],
        dtype=float,
    )
    geo.initialize_yourself(X)
    assert np.allclose(geo.interpolate_coordinates([0.0, 0.0, 0.0]), [1.0, 1.0, 2.0])
