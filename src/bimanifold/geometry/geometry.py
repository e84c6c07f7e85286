# geometry.py
# =============================================================================
# Differential Geometry on Small Dense Tensors
# =============================================================================
#
# Index conventions (all arrays indexed [first, second, ...]):
#
#     dg[μ, ν, σ]        = ∂_μ g_{νσ}
#     Gamma[λ, μ, ν]     = Γ^λ_{μν}
#     dGamma[α, λ, μ, ν] = ∂_α Γ^λ_{μν}
#     tangents[a, μ]     = e_a^μ
#
# The 1+1 D bulks use the conformal gauge ds² = e^{2ρ}(-dt² + dx²).

import numpy as np
from typing import Optional

from .tensor_algebra import (
    TensorLike,
    TensorShapeError,
    as_array,
    as_vector,
    check_same_dim,
    contract,
    inverse,
    squared_norm,
)

NULL_TOLERANCE = 1e-12


def minkowski_metric(dim: int = 2) -> np.ndarray:
    """η = diag(-1, 1, ..., 1)"""
    if dim < 1:
        raise ValueError(f"dim must be positive, got {dim}")
    eta = np.eye(dim)
    eta[0, 0] = -1.0
    return eta


def conformal_metric(rho: float) -> np.ndarray:
    """g = e^{2ρ} η in 1+1 D."""
    return np.exp(2.0 * rho) * minkowski_metric(2)


def conformal_metric_derivatives(rho: float, rho_t: float, rho_x: float) -> np.ndarray:
    """dg[μ] = 2 ∂_μρ g for the conformal-gauge metric."""
    g = conformal_metric(rho)
    dg = np.empty((2, 2, 2))
    dg[0] = 2.0 * rho_t * g
    dg[1] = 2.0 * rho_x * g
    return dg


# ============================================================================
# CONNECTION AND CURVATURE
# ============================================================================

def christoffel_symbols(g: TensorLike, dg) -> np.ndarray:
    """
    Γ^λ_{μν} = ½ g^{λσ} (∂_μ g_{νσ} + ∂_ν g_{μσ} - ∂_σ g_{μν})

    Raises:
        SingularMatrixError: If g cannot be inverted
        TensorShapeError: If dg is not (n, n, n)
    """
    gm = as_array(g, 2, "metric")
    d = as_array(dg, 3, "metric derivative")
    check_same_dim(gm, d, name="metric and derivative")
    g_inv = inverse(gm)
    # term[μ, ν, σ]
    term = d + np.transpose(d, (1, 0, 2)) - np.transpose(d, (1, 2, 0))
    return 0.5 * np.einsum('ls,mns->lmn', g_inv, term)


def ricci_tensor(Gamma, dGamma=None) -> np.ndarray:
    """
    R_{μν} = ∂_λΓ^λ_{μν} - ∂_νΓ^λ_{μλ} + Γ^λ_{μν}Γ^σ_{λσ} - Γ^λ_{μσ}Γ^σ_{νλ}

    Without dGamma the connection is treated as locally constant.
    """
    G = as_array(Gamma, 3, "Christoffel symbols")
    n = G.shape[0]
    if dGamma is None:
        dG = np.zeros((n, n, n, n))
    else:
        dG = as_array(dGamma, 4, "Christoffel derivative")
        check_same_dim(G, dG, name="Christoffel symbols and derivative")

    term1 = np.einsum('llmn->mn', dG)
    term2 = np.einsum('nlml->mn', dG)
    term3 = np.einsum('lmn,sls->mn', G, G)
    term4 = np.einsum('lms,snl->mn', G, G)
    return term1 - term2 + term3 - term4


def scalar_curvature(ricci: TensorLike, g: TensorLike) -> float:
    return contract(ricci, g)


def einstein_tensor(ricci: TensorLike, g: TensorLike) -> np.ndarray:
    """G_{μν} = R_{μν} - ½ g_{μν} R"""
    R_mn = as_array(ricci, 2, "Ricci tensor")
    gm = as_array(g, 2, "metric")
    check_same_dim(R_mn, gm)
    R = contract(R_mn, gm)
    return R_mn - 0.5 * gm * R


# ============================================================================
# EMBEDDED SURFACES
# ============================================================================

def tangent_basis(tangents, ambient_dim: Optional[int] = None) -> np.ndarray:
    E = np.asarray(tangents, dtype=np.float64)
    if E.ndim != 2:
        raise TensorShapeError(f"tangents must be (m, n), got shape {E.shape}")
    if ambient_dim is not None and E.shape[1] != ambient_dim:
        raise TensorShapeError(
            f"tangents must live in the {ambient_dim}-dimensional ambient space, got {E.shape[1]}"
        )
    return E


def induced_metric(g: TensorLike, tangents) -> np.ndarray:
    """h_{ab} = g_{μν} e_a^μ e_b^ν"""
    gm = as_array(g, 2, "metric")
    E = tangent_basis(tangents, gm.shape[0])
    return np.einsum('mn,am,bn->ab', gm, E, E)


def extrinsic_curvature_from_normal(normal, tangents, h: TensorLike, normal_derivative) -> np.ndarray:
    """
    Approximate K_{ab} = -Σ_μ ṅ^μ e_a^μ e_b^μ.

    Only the time derivative of the unit normal is used and the ambient space
    is treated as flat with a locally constant normal, so the result is a
    first-order estimate and not the covariant K_{ab} = -e_a^μ e_b^ν ∇_ν n_μ.
    """
    n_vec = as_vector(normal, name="normal")
    E = tangent_basis(tangents, n_vec.shape[0])
    dn = as_vector(normal_derivative, n_vec.shape[0], "normal derivative")
    hm = as_array(h, 2, "induced metric")
    if hm.shape[0] != E.shape[0]:
        raise TensorShapeError(
            f"induced metric dimension {hm.shape[0]} does not match {E.shape[0]} tangents"
        )
    return -np.einsum('m,am,bm->ab', dn, E, E)


def extrinsic_curvature_trace(K: TensorLike, h: TensorLike) -> float:
    """K = h^{ab} K_{ab}"""
    return contract(K, h)


def extrinsic_curvature_squared(K: TensorLike, h: TensorLike) -> float:
    """K_{ab} K^{ab}"""
    Km = as_array(K, 2, "extrinsic curvature")
    hm = as_array(h, 2, "induced metric")
    check_same_dim(Km, hm)
    h_inv = inverse(hm)
    K_up = h_inv @ Km @ h_inv
    return float(np.einsum('ab,ab->', Km, K_up))


# ============================================================================
# VECTORS
# ============================================================================

def normalize_vector(v, g: TensorLike) -> np.ndarray:
    """Scale v to unit |g(v, v)|; null and zero vectors cannot be normalized."""
    norm2 = squared_norm(v, g)
    if abs(norm2) < NULL_TOLERANCE:
        raise ValueError("Cannot normalize null or zero vector")
    return np.asarray(v, dtype=np.float64) / np.sqrt(abs(norm2))


def vector_type(v, g: TensorLike, tolerance: float = NULL_TOLERANCE) -> str:
    norm2 = squared_norm(v, g)
    if abs(norm2) < tolerance:
        return 'null'
    return 'timelike' if norm2 < 0 else 'spacelike'
