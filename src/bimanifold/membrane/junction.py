# junction.py
# =============================================================================
# Israel Junction Conditions
# =============================================================================
#
# Physical side:   K_ab  - K  h_ab =  8π S_ab
# Shadow side:     K̃_ab - K̃ h_ab = -8π S_ab
#
# A mismatch is a physical inconsistency to report, so verification returns a
# boolean. Malformed shapes and a singular h_ab still raise.

import numpy as np
import logging
from dataclasses import dataclass

from ..geometry.tensor_algebra import TensorLike, as_array, as_vector, check_same_dim
from ..geometry.geometry import extrinsic_curvature_trace, tangent_basis

logger = logging.getLogger('bimanifold.junction')

EIGHT_PI = 8.0 * np.pi


@dataclass(frozen=True, eq=False)
class JunctionVerificationResult:
    curvature_jump: np.ndarray
    trace_jump: float
    satisfied: bool
    physical_satisfied: bool
    shadow_satisfied: bool


def curvature_jump(K_physical: TensorLike, K_shadow: TensorLike) -> np.ndarray:
    """[K_ab] = K_ab - K̃_ab"""
    K = as_array(K_physical, 2, "physical extrinsic curvature")
    Ks = as_array(K_shadow, 2, "shadow extrinsic curvature")
    check_same_dim(K, Ks)
    return K - Ks


def _junction_lhs(K: np.ndarray, h: np.ndarray) -> np.ndarray:
    return K - extrinsic_curvature_trace(K, h) * h


def _matches(lhs: np.ndarray, rhs: np.ndarray, tolerance: float) -> bool:
    return bool(np.all(np.abs(lhs - rhs) <= tolerance))


def verify_junction_condition(K: TensorLike, S: TensorLike, h: TensorLike,
                              tolerance: float = 1e-6) -> bool:
    """Check K_ab - K h_ab = 8π S_ab component-wise within tolerance."""
    Km = as_array(K, 2, "extrinsic curvature")
    Sm = as_array(S, 2, "surface stress")
    hm = as_array(h, 2, "induced metric")
    check_same_dim(Km, Sm, hm, name="K, S and h")
    return _matches(_junction_lhs(Km, hm), EIGHT_PI * Sm, tolerance)


def surface_stress_from_junction(K: TensorLike, h: TensorLike) -> np.ndarray:
    """S_ab = (K_ab - K h_ab) / 8π"""
    Km = as_array(K, 2, "extrinsic curvature")
    hm = as_array(h, 2, "induced metric")
    check_same_dim(Km, hm)
    return _junction_lhs(Km, hm) / EIGHT_PI


def compute_jump_conditions(K_physical: TensorLike, K_shadow: TensorLike, S: TensorLike,
                            h: TensorLike, tolerance: float = 1e-6) -> JunctionVerificationResult:
    K = as_array(K_physical, 2, "physical extrinsic curvature")
    Ks = as_array(K_shadow, 2, "shadow extrinsic curvature")
    Sm = as_array(S, 2, "surface stress")
    hm = as_array(h, 2, "induced metric")
    check_same_dim(K, Ks, Sm, hm, name="K, K_shadow, S and h")

    jump = K - Ks
    physical_ok = _matches(_junction_lhs(K, hm), EIGHT_PI * Sm, tolerance)
    shadow_ok = _matches(_junction_lhs(Ks, hm), -EIGHT_PI * Sm, tolerance)
    satisfied = physical_ok and shadow_ok
    if not satisfied:
        logger.debug("Junction condition not satisfied", extra={
            "extra_data": {
                "physical_satisfied": physical_ok,
                "shadow_satisfied": shadow_ok,
                "max_jump": float(np.max(np.abs(jump))),
            }
        })
    return JunctionVerificationResult(
        curvature_jump=jump,
        trace_jump=extrinsic_curvature_trace(jump, hm),
        satisfied=satisfied,
        physical_satisfied=physical_ok,
        shadow_satisfied=shadow_ok,
    )


# ============================================================================
# STRESS PROJECTIONS
# ============================================================================

def project_stress_to_membrane(T: TensorLike, tangents) -> np.ndarray:
    """T_ab = T_μν e_a^μ e_b^ν"""
    Tm = as_array(T, 2, "stress-energy")
    E = tangent_basis(tangents, Tm.shape[0])
    return np.einsum('mn,am,bn->ab', Tm, E, E)


def normal_stress(T: TensorLike, normal) -> float:
    """T_nn = T_μν n^μ n^ν"""
    Tm = as_array(T, 2, "stress-energy")
    n = as_vector(normal, Tm.shape[0], "normal")
    return float(n @ Tm @ n)


def stress_difference(T_physical: TensorLike, T_shadow: TensorLike, normal_physical,
                      normal_shadow) -> float:
    """Δρ = T_nn - T̃_ññ, the source of the Raychaudhuri term 8πΔρ."""
    return normal_stress(T_physical, normal_physical) - normal_stress(T_shadow, normal_shadow)
