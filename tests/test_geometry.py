"""
Tests for connection, curvature and embedded-surface geometry.
"""

import pytest
import numpy as np

from bimanifold.geometry.geometry import (
    christoffel_symbols,
    conformal_metric,
    conformal_metric_derivatives,
    einstein_tensor,
    extrinsic_curvature_from_normal,
    extrinsic_curvature_squared,
    extrinsic_curvature_trace,
    induced_metric,
    minkowski_metric,
    normalize_vector,
    ricci_tensor,
    scalar_curvature,
    vector_type,
)
from bimanifold.geometry.tensor_algebra import SingularMatrixError, TensorShapeError, contract


def sphere_connection(theta):
    """Unit 2-sphere in (θ, φ): Γ and ∂_θ Γ at latitude theta."""
    s, c = np.sin(theta), np.cos(theta)
    Gamma = np.zeros((2, 2, 2))
    Gamma[0, 1, 1] = -s * c
    Gamma[1, 0, 1] = Gamma[1, 1, 0] = c / s
    dGamma = np.zeros((2, 2, 2, 2))
    dGamma[0, 0, 1, 1] = -np.cos(2.0 * theta)
    dGamma[0, 1, 0, 1] = dGamma[0, 1, 1, 0] = -1.0 / s ** 2
    g = np.diag([1.0, s ** 2])
    return g, Gamma, dGamma


class TestConnection:

    def test_flat_metric_has_no_connection(self):
        Gamma = christoffel_symbols(minkowski_metric(2), np.zeros((2, 2, 2)))
        assert np.allclose(Gamma, 0.0)

    def test_polar_coordinates(self):
        """g = diag(1, r²): Γ^r_θθ = -r, Γ^θ_rθ = 1/r."""
        r = 2.5
        g = np.diag([1.0, r * r])
        dg = np.zeros((2, 2, 2))
        dg[0] = np.diag([0.0, 2.0 * r])

        Gamma = christoffel_symbols(g, dg)

        assert Gamma[0, 1, 1] == pytest.approx(-r)
        assert Gamma[1, 0, 1] == pytest.approx(1.0 / r)
        assert Gamma[1, 1, 0] == pytest.approx(1.0 / r)
        assert Gamma[0, 0, 0] == pytest.approx(0.0)

    def test_christoffel_symmetric_in_lower_indices(self):
        rng = np.random.default_rng(7)
        g = np.diag([-1.0, 1.0, 1.0]) + 0.1 * np.eye(3)
        dg = rng.normal(size=(3, 3, 3))
        dg = dg + np.transpose(dg, (0, 2, 1))
        Gamma = christoffel_symbols(g, dg)
        assert np.allclose(Gamma, np.transpose(Gamma, (0, 2, 1)))

    def test_singular_metric_raises(self):
        with pytest.raises(SingularMatrixError):
            christoffel_symbols(np.zeros((2, 2)), np.zeros((2, 2, 2)))

    def test_bad_derivative_shape(self):
        with pytest.raises(TensorShapeError):
            christoffel_symbols(np.eye(2), np.zeros((3, 3, 3)))


class TestCurvature:

    def test_sphere_ricci_scalar(self):
        g, Gamma, dGamma = sphere_connection(1.0)
        R_mn = ricci_tensor(Gamma, dGamma)
        assert np.allclose(R_mn, g)
        assert scalar_curvature(R_mn, g) == pytest.approx(2.0)

    def test_einstein_tensor_traceless_in_2d(self):
        g, Gamma, dGamma = sphere_connection(0.7)
        G = einstein_tensor(ricci_tensor(Gamma, dGamma), g)
        assert contract(G, g) == pytest.approx(0.0, abs=1e-12)

    def test_conformal_metric_derivatives(self):
        rho, rho_t, rho_x = 0.2, 0.3, -0.4
        g = conformal_metric(rho)
        dg = conformal_metric_derivatives(rho, rho_t, rho_x)
        assert np.allclose(g, np.exp(0.4) * np.diag([-1.0, 1.0]))
        assert np.allclose(dg[0], 2.0 * rho_t * g)
        assert np.allclose(dg[1], 2.0 * rho_x * g)


class TestEmbedding:

    def test_induced_metric_of_worldline(self):
        """A worldline with velocity v has h = -(1 - v²)."""
        v = 0.6
        h = induced_metric(minkowski_metric(2), [[1.0, v]])
        assert h.shape == (1, 1)
        assert h[0, 0] == pytest.approx(-(1.0 - v * v))

    def test_induced_metric_of_spatial_plane(self):
        h = induced_metric(minkowski_metric(3), [[0.0, 1.0, 0.0], [0.0, 0.0, 1.0]])
        assert np.allclose(h, np.eye(2))

    def test_extrinsic_curvature_of_static_normal_vanishes(self):
        tangents = [[0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]
        K = extrinsic_curvature_from_normal([1.0, 0.0, 0.0], tangents, np.eye(2), np.zeros(3))
        assert np.allclose(K, 0.0)

    def test_extrinsic_curvature_sign(self):
        tangents = [[0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]
        dn = np.array([0.0, 0.5, 0.25])
        K = extrinsic_curvature_from_normal([1.0, 0.0, 0.0], tangents, np.eye(2), dn)
        assert np.allclose(K, -np.diag([0.5, 0.25]))

    def test_curvature_trace_and_square(self):
        K = np.diag([1.0, 2.0])
        h = np.eye(2)
        assert extrinsic_curvature_trace(K, h) == pytest.approx(3.0)
        assert extrinsic_curvature_squared(K, h) == pytest.approx(5.0)


class TestVectors:

    def test_normalize_timelike(self):
        eta = minkowski_metric(2)
        u = normalize_vector([2.0, 1.0], eta)
        assert float(u @ eta @ u) == pytest.approx(-1.0)

    def test_normalize_null_raises(self):
        with pytest.raises(ValueError):
            normalize_vector([1.0, 1.0], minkowski_metric(2))

    def test_vector_type(self):
        eta = minkowski_metric(2)
        assert vector_type([1.0, 0.0], eta) == 'timelike'
        assert vector_type([0.0, 1.0], eta) == 'spacelike'
        assert vector_type([1.0, 1.0], eta) == 'null'
