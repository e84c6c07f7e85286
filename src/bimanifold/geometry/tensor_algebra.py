# tensor_algebra.py
# =============================================================================
# Dense Small-Matrix Tensor Algebra
# =============================================================================
#
# Metrics and tensors on the bulks and on the interface are small (2x2 up to
# 4x4), so the linear algebra is written as explicit loops compiled by numba:
#
#     det(M)   LU decomposition with partial pivoting, signed, 0 when singular
#     M^{-1}   Gauss-Jordan elimination with partial pivoting
#
# Both kernels treat a pivot with |p| < PIVOT_FLOOR as singular. determinant()
# reports that as 0.0 (diagnostics only); inverse() raises SingularMatrixError.

import numpy as np
from dataclasses import dataclass
from typing import Optional, Union
from numba import jit

PIVOT_FLOOR = 1e-12
SYMMETRY_RTOL = 1e-10


class TensorShapeError(ValueError):
    """Tensor data does not have the declared rank or square axes."""


class SingularMatrixError(ValueError):
    """Matrix pivot fell below PIVOT_FLOOR during inversion."""


# ============================================================================
# JIT KERNELS
# ============================================================================

@jit(nopython=True)
def _gauss_jordan_inverse_jit(a, floor):
    n = a.shape[0]
    aug = np.zeros((n, 2 * n))
    for i in range(n):
        for j in range(n):
            aug[i, j] = a[i, j]
        aug[i, n + i] = 1.0

    for col in range(n):
        pivot_row = col
        for k in range(col + 1, n):
            if abs(aug[k, col]) > abs(aug[pivot_row, col]):
                pivot_row = k
        if pivot_row != col:
            for j in range(2 * n):
                tmp = aug[col, j]
                aug[col, j] = aug[pivot_row, j]
                aug[pivot_row, j] = tmp

        pivot = aug[col, col]
        if abs(pivot) < floor:
            return np.zeros((n, n)), False

        for j in range(2 * n):
            aug[col, j] /= pivot

        for k in range(n):
            if k != col:
                factor = aug[k, col]
                if factor != 0.0:
                    for j in range(2 * n):
                        aug[k, j] -= factor * aug[col, j]

    inv = np.zeros((n, n))
    for i in range(n):
        for j in range(n):
            inv[i, j] = aug[i, n + j]
    return inv, True


@jit(nopython=True)
def _lu_determinant_jit(a, floor):
    n = a.shape[0]
    lu = a.copy()
    det = 1.0
    for col in range(n):
        pivot_row = col
        for k in range(col + 1, n):
            if abs(lu[k, col]) > abs(lu[pivot_row, col]):
                pivot_row = k
        if pivot_row != col:
            for j in range(n):
                tmp = lu[col, j]
                lu[col, j] = lu[pivot_row, j]
                lu[pivot_row, j] = tmp
            det = -det

        pivot = lu[col, col]
        if abs(pivot) < floor:
            return 0.0
        det *= pivot

        for k in range(col + 1, n):
            factor = lu[k, col] / pivot
            for j in range(col, n):
                lu[k, j] -= factor * lu[col, j]
    return det


# ============================================================================
# VALIDATED TENSOR TYPES
# ============================================================================

def _validated(data, rank: Optional[int], name: str) -> np.ndarray:
    arr = np.array(data, dtype=np.float64)
    if rank is not None and arr.ndim != rank:
        raise TensorShapeError(f"{name} must have rank {rank}, got shape {arr.shape}")
    if arr.ndim == 0:
        raise TensorShapeError(f"{name} must not be a scalar")
    dim = arr.shape[0]
    if dim == 0 or any(s != dim for s in arr.shape):
        raise TensorShapeError(f"{name} must have equal non-empty axes, got shape {arr.shape}")
    return arr


@dataclass(frozen=True, eq=False)
class Tensor:
    """Rank-2..4 tensor with all axes of the owning manifold's dimension.

    The data is copied at construction and marked read-only, so two tensors
    never share storage.
    """
    data: np.ndarray

    def __post_init__(self):
        arr = _validated(self.data, None, type(self).__name__)
        if not 2 <= arr.ndim <= 4:
            raise TensorShapeError(f"Tensor rank must be 2..4, got {arr.ndim}")
        arr.setflags(write=False)
        object.__setattr__(self, 'data', arr)

    @property
    def rank(self) -> int:
        return self.data.ndim

    @property
    def dim(self) -> int:
        return self.data.shape[0]

    def __array__(self, dtype=None, copy=None):
        # np.array(t) copies by default; only np.asarray(t) sees the read-only buffer
        if copy:
            return self.data.astype(dtype or np.float64, copy=True)
        if dtype is None:
            return self.data
        return self.data.astype(dtype)


@dataclass(frozen=True, eq=False)
class Metric(Tensor):
    """Symmetric, rank-2 tensor g_{μν}."""

    def __post_init__(self):
        super().__post_init__()
        if self.rank != 2:
            raise TensorShapeError(f"Metric must have rank 2, got {self.rank}")
        scale = max(1.0, float(np.max(np.abs(self.data))))
        if not np.allclose(self.data, self.data.T, rtol=0.0, atol=SYMMETRY_RTOL * scale):
            raise TensorShapeError("Metric must be symmetric")

    def determinant(self) -> float:
        return determinant(self.data)

    def inverse(self) -> np.ndarray:
        return inverse(self.data)


TensorLike = Union[Tensor, np.ndarray, list, tuple]


def as_array(t: TensorLike, rank: Optional[int] = None, name: str = "tensor") -> np.ndarray:
    """Return float64 view of a Tensor or validated copy of array-like data."""
    if isinstance(t, Tensor):
        if rank is not None and t.rank != rank:
            raise TensorShapeError(f"{name} must have rank {rank}, got {t.rank}")
        return t.data
    return _validated(t, rank, name)


def as_vector(v, dim: Optional[int] = None, name: str = "vector") -> np.ndarray:
    arr = np.asarray(v, dtype=np.float64)
    if arr.ndim != 1:
        raise TensorShapeError(f"{name} must be one-dimensional, got shape {arr.shape}")
    if dim is not None and arr.shape[0] != dim:
        raise TensorShapeError(f"{name} must have length {dim}, got {arr.shape[0]}")
    return arr


def check_same_dim(*arrays, name: str = "operands"):
    dims = {a.shape[0] for a in arrays}
    if len(dims) != 1:
        raise TensorShapeError(f"{name} have mismatched dimensions: {sorted(dims)}")


# ============================================================================
# OPERATIONS
# ============================================================================

def determinant(M: TensorLike) -> float:
    """Signed determinant via LU with partial pivoting; 0.0 if singular."""
    a = np.ascontiguousarray(as_array(M, 2, "matrix"))
    return float(_lu_determinant_jit(a, PIVOT_FLOOR))


def inverse(M: TensorLike) -> np.ndarray:
    """Inverse via Gauss-Jordan with partial pivoting.

    Raises:
        SingularMatrixError: If a pivot magnitude drops below PIVOT_FLOOR
    """
    a = np.ascontiguousarray(as_array(M, 2, "matrix"))
    inv, ok = _gauss_jordan_inverse_jit(a, PIVOT_FLOOR)
    if not ok:
        raise SingularMatrixError(
            f"Matrix is singular (pivot below {PIVOT_FLOOR}); shape {a.shape}"
        )
    return inv


def raise_index(v, g_inv: TensorLike) -> np.ndarray:
    """v^μ = g^{μν} v_ν"""
    gi = as_array(g_inv, 2, "inverse metric")
    vec = as_vector(v, gi.shape[0])
    return gi @ vec


def lower_index(v, g: TensorLike) -> np.ndarray:
    """v_μ = g_{μν} v^ν"""
    gm = as_array(g, 2, "metric")
    vec = as_vector(v, gm.shape[0])
    return gm @ vec


def contract(T: TensorLike, g: TensorLike) -> float:
    """Full trace g^{μν} T_{μν}."""
    t = as_array(T, 2, "tensor")
    gm = as_array(g, 2, "metric")
    check_same_dim(t, gm)
    g_inv = inverse(gm)
    return float(np.einsum('mn,mn->', g_inv, t))


def squared_norm(v, g: TensorLike) -> float:
    """g_{μν} v^μ v^ν"""
    gm = as_array(g, 2, "metric")
    vec = as_vector(v, gm.shape[0])
    return float(vec @ gm @ vec)
