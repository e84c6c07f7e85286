# membrane.py
# =============================================================================
# Membrane Field Equations
# =============================================================================
#
#     D_a S^{ab}            surface-stress divergence (Christoffels of h_ab)
#     D_a S^{ab} = F^b      momentum balance against the bulk force
#     θ̇ = -σ² - ½R_Σ - K² + K_ab K^ab + 8π Δρ     (Raychaudhuri)
#
# evolve_membrane() advances (θ, s) by one explicit Euler step and clamps the
# entropy at zero.

import numpy as np
from dataclasses import dataclass, replace
from typing import Optional

from ..geometry.tensor_algebra import TensorLike, as_array, as_vector, check_same_dim
from ..geometry.geometry import (
    christoffel_symbols,
    extrinsic_curvature_squared,
    extrinsic_curvature_trace,
    ricci_tensor,
    scalar_curvature,
    tangent_basis,
)
from .interface import (
    EnergyFlux,
    MembraneParams,
    entropy_evolution,
    expansion_scalar,
    membrane_temperature,
    shear_rate_tensor,
    viscous_dissipation,
)


def surface_stress_divergence(S: TensorLike, dS, h: TensorLike, dh) -> np.ndarray:
    """
    D_a S^{ab} = ∂_a S^{ab} + Γ^b_{ac} S^{ac} + Γ^a_{ac} S^{cb}

    dS[a, b, c] = ∂_a S^{bc}; dh[a, b, c] = ∂_a h_{bc}.
    """
    Sm = as_array(S, 2, "surface stress")
    dSm = as_array(dS, 3, "surface stress derivative")
    hm = as_array(h, 2, "induced metric")
    check_same_dim(Sm, dSm, hm, name="surface stress, derivative and metric")
    Gamma = christoffel_symbols(hm, dh)

    div = np.einsum('aba->b', dSm)
    div = div + np.einsum('bac,ac->b', Gamma, Sm)
    div = div + np.einsum('aac,cb->b', Gamma, Sm)
    return div


def momentum_balance(S: TensorLike, dS, h: TensorLike, dh, force) -> np.ndarray:
    """Residual D_a S^{ab} - F^b; zero when the membrane is in balance."""
    div = surface_stress_divergence(S, dS, h, dh)
    return div - as_vector(force, div.shape[0], "force")


def membrane_ricci_scalar(h: TensorLike, dh) -> float:
    """R_Σ with the Christoffel derivatives neglected."""
    Gamma = christoffel_symbols(h, dh)
    return scalar_curvature(ricci_tensor(Gamma), h)


def raychaudhuri_equation(theta: float, shear_magnitude: float, ricci_scalar: float,
                          K: TensorLike, h: TensorLike, stress_diff: float) -> float:
    K_trace = extrinsic_curvature_trace(K, h)
    K_squared = extrinsic_curvature_squared(K, h)
    return (-shear_magnitude ** 2
            - 0.5 * ricci_scalar
            - K_trace ** 2
            + K_squared
            + 8.0 * np.pi * stress_diff)


def membrane_force(T_physical: TensorLike, T_shadow: TensorLike, normal_physical,
                   normal_shadow, tangents) -> np.ndarray:
    """F^b = T_μν n^μ e_b^ν - T̃_μν ñ^μ e_b^ν"""
    T = as_array(T_physical, 2, "physical stress-energy")
    Ts = as_array(T_shadow, 2, "shadow stress-energy")
    check_same_dim(T, Ts)
    n = as_vector(normal_physical, T.shape[0], "physical normal")
    ns = as_vector(normal_shadow, T.shape[0], "shadow normal")
    E = tangent_basis(tangents, T.shape[0])
    return np.einsum('mn,m,bn->b', T, n, E) - np.einsum('mn,m,bn->b', Ts, ns, E)


@dataclass(frozen=True, eq=False)
class MembraneState:
    """Snapshot of a membrane patch for explicit evolution."""
    induced_metric: np.ndarray
    extrinsic_curvature: np.ndarray
    flow: np.ndarray
    entropy: float
    temperature: float
    theta: float = 0.0

    def __post_init__(self):
        if self.entropy < 0:
            raise ValueError(f"entropy must be non-negative, got {self.entropy}")


def evolve_membrane(state: MembraneState, params: MembraneParams, flux: EnergyFlux,
                    stress_diff: float, flow_derivative: TensorLike, dt: float,
                    ricci_scalar: Optional[float] = None) -> MembraneState:
    """Advance expansion and entropy by dt with forward Euler."""
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")
    h = state.induced_metric
    K = state.extrinsic_curvature
    theta = expansion_scalar(state.flow, flow_derivative, h)
    shear = shear_rate_tensor(state.flow, flow_derivative, h)
    R_sigma = 0.0 if ricci_scalar is None else ricci_scalar

    theta_dot = raychaudhuri_equation(theta, shear.magnitude, R_sigma, K, h, stress_diff)
    s_dot = entropy_evolution(flux, state.temperature,
                              viscous_dissipation(params, theta, shear))
    entropy = max(0.0, state.entropy + s_dot * dt)
    temperature = membrane_temperature(entropy, extrinsic_curvature_trace(K, h))
    return replace(state, theta=theta + theta_dot * dt, entropy=entropy,
                   temperature=temperature)
