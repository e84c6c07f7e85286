"""
Tests for the dense tensor algebra kernels and validated tensor types.

Tests verify:
1. inverse(g) @ g == I for non-singular metrics
2. Singular matrices raise instead of returning a sentinel
3. Malformed shapes are rejected at construction
4. Stored data is an immutable copy
"""

import pytest
import numpy as np

from bimanifold.geometry.tensor_algebra import (
    Metric,
    SingularMatrixError,
    Tensor,
    TensorShapeError,
    contract,
    determinant,
    inverse,
    lower_index,
    raise_index,
    squared_norm,
)


class TestInverse:
    """Gauss-Jordan inverse and LU determinant."""

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    @pytest.mark.parametrize("dim", [2, 3, 4])
    def test_inverse_identity(self, seed, dim):
        """g · inverse(g) ≈ I within 1e-9 for random symmetric metrics."""
        rng = np.random.default_rng(seed)
        A = rng.normal(size=(dim, dim))
        g = A @ A.T + dim * np.eye(dim)

        g_inv = inverse(g)

        assert np.allclose(g @ g_inv, np.eye(dim), atol=1e-9)
        assert np.allclose(g_inv @ g, np.eye(dim), atol=1e-9)

    def test_inverse_needs_pivoting(self):
        """A zero leading entry is handled by row exchange."""
        g = np.array([[0.0, 1.0], [1.0, 0.0]])
        assert np.allclose(inverse(g), g)

    def test_singular_raises(self):
        g = np.array([[1.0, 2.0], [2.0, 4.0]])
        with pytest.raises(SingularMatrixError):
            inverse(g)

    def test_singular_is_value_error(self):
        with pytest.raises(ValueError):
            inverse(np.zeros((3, 3)))

    def test_determinant(self):
        assert determinant(np.diag([-1.0, 2.0, 3.0])) == pytest.approx(-6.0)
        assert determinant(np.array([[0.0, 1.0], [1.0, 0.0]])) == pytest.approx(-1.0)

    def test_determinant_singular_is_zero(self):
        assert determinant(np.ones((3, 3))) == 0.0


class TestTensorTypes:
    """Construction-time validation of Tensor and Metric."""

    def test_rank_and_dim(self):
        T = Tensor(np.zeros((3, 3, 3)))
        assert T.rank == 3
        assert T.dim == 3

    def test_non_square_rejected(self):
        with pytest.raises(TensorShapeError):
            Tensor(np.zeros((2, 3)))

    def test_rank_out_of_range_rejected(self):
        with pytest.raises(TensorShapeError):
            Tensor(np.zeros(3))
        with pytest.raises(TensorShapeError):
            Tensor(np.zeros((2, 2, 2, 2, 2)))

    def test_data_is_read_only_copy(self):
        raw = np.eye(2)
        T = Tensor(raw)
        raw[0, 0] = 5.0

        assert T.data[0, 0] == 1.0
        with pytest.raises(ValueError):
            T.data[0, 0] = 2.0

    def test_np_array_returns_writable_copy(self):
        T = Tensor(np.eye(2))
        a = np.array(T)
        a[0, 0] = 5.0

        assert not np.shares_memory(a, T.data)
        assert T.data[0, 0] == 1.0
        assert np.array(T, dtype=np.float32).dtype == np.float32

    def test_metric_must_be_symmetric(self):
        with pytest.raises(TensorShapeError):
            Metric(np.array([[1.0, 0.5], [0.0, 1.0]]))

    def test_metric_methods(self):
        g = Metric(np.diag([-1.0, 4.0]))
        assert g.determinant() == pytest.approx(-4.0)
        assert np.allclose(g.inverse(), np.diag([-1.0, 0.25]))

    def test_tensor_accepted_by_operations(self):
        g = Metric(np.diag([2.0, 2.0]))
        assert np.allclose(np.asarray(g), np.diag([2.0, 2.0]))
        assert contract(Tensor(np.eye(2)), g) == pytest.approx(1.0)


class TestIndexOperations:

    def test_raise_then_lower_round_trip(self):
        g = np.array([[-2.0, 0.3], [0.3, 1.5]])
        v = np.array([0.7, -1.1])
        assert np.allclose(lower_index(raise_index(v, inverse(g)), g), v)

    def test_squared_norm_minkowski(self):
        eta = np.diag([-1.0, 1.0])
        assert squared_norm([1.0, 0.0], eta) == pytest.approx(-1.0)
        assert squared_norm([1.0, 1.0], eta) == pytest.approx(0.0)

    def test_contract_trace(self):
        g = np.diag([-1.0, 1.0])
        T = np.diag([3.0, 5.0])
        assert contract(T, g) == pytest.approx(2.0)

    def test_dimension_mismatch(self):
        with pytest.raises(TensorShapeError):
            contract(np.eye(2), np.eye(3))
        with pytest.raises(TensorShapeError):
            raise_index([1.0, 2.0, 3.0], np.eye(2))
