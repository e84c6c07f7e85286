# Tensor algebra and Riemannian geometry on small dense arrays

from .tensor_algebra import (
    Tensor, Metric, TensorShapeError, SingularMatrixError,
    determinant, inverse, raise_index, lower_index, contract, squared_norm,
)
from .geometry import (
    minkowski_metric, conformal_metric, christoffel_symbols, ricci_tensor,
    scalar_curvature, einstein_tensor, induced_metric,
    extrinsic_curvature_from_normal, extrinsic_curvature_trace,
    extrinsic_curvature_squared, normalize_vector, vector_type,
)

__all__ = [
    'Tensor', 'Metric', 'TensorShapeError', 'SingularMatrixError',
    'determinant', 'inverse', 'raise_index', 'lower_index', 'contract', 'squared_norm',
    'minkowski_metric', 'conformal_metric', 'christoffel_symbols', 'ricci_tensor',
    'scalar_curvature', 'einstein_tensor', 'induced_metric',
    'extrinsic_curvature_from_normal', 'extrinsic_curvature_trace',
    'extrinsic_curvature_squared', 'normalize_vector', 'vector_type',
]
