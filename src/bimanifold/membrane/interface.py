# interface.py
# =============================================================================
# Interface Membrane Kinematics and Thermodynamics
# =============================================================================
#
# Flow u^a on the membrane with derivative D_a u_b and induced metric h_{ab}:
#
#     θ     = h^{ab} D_a u_b
#     σ_ab  = D_a u_b + D_b u_a - h_ab θ
#     S_ab  = σ_T K_ab + (η θ² + ζ σ_cd σ^cd) h_ab
#
# Entropy obeys ṡ = max(0, (Φ_net - D)/T) with T floored at TEMPERATURE_FLOOR.

import numpy as np
from dataclasses import dataclass

from ..geometry.tensor_algebra import (
    TensorLike,
    as_array,
    as_vector,
    check_same_dim,
    inverse,
)

TEMPERATURE_FLOOR = 1e-12


@dataclass(frozen=True)
class MembraneParams:
    """Constitutive coefficients of the membrane."""
    surface_tension: float = 1.0
    bulk_viscosity: float = 0.1
    shear_viscosity: float = 0.05


@dataclass(frozen=True, eq=False)
class ShearRate:
    tensor: np.ndarray
    magnitude: float


@dataclass(frozen=True)
class EnergyFlux:
    """Energy flowing into and out of the membrane per unit time."""
    incoming: float
    outgoing: float = 0.0

    @property
    def net(self) -> float:
        return self.incoming - self.outgoing


def _flow_inputs(flow, flow_derivative, h):
    hm = as_array(h, 2, "induced metric")
    du = as_array(flow_derivative, 2, "flow derivative")
    check_same_dim(hm, du, name="induced metric and flow derivative")
    as_vector(flow, hm.shape[0], "flow")
    return hm, du


def expansion_scalar(flow, flow_derivative: TensorLike, h: TensorLike) -> float:
    hm, du = _flow_inputs(flow, flow_derivative, h)
    return float(np.einsum('ab,ab->', inverse(hm), du))


def shear_rate_tensor(flow, flow_derivative: TensorLike, h: TensorLike) -> ShearRate:
    hm, du = _flow_inputs(flow, flow_derivative, h)
    h_inv = inverse(hm)
    theta = float(np.einsum('ab,ab->', h_inv, du))
    sigma = du + du.T - hm * theta
    sigma_up = h_inv @ sigma @ h_inv
    magnitude2 = float(np.einsum('ab,ab->', sigma, sigma_up))
    return ShearRate(tensor=sigma, magnitude=float(np.sqrt(abs(magnitude2))))


def surface_stress_tensor(params: MembraneParams, K: TensorLike, h: TensorLike,
                          theta: float, shear: ShearRate) -> np.ndarray:
    Km = as_array(K, 2, "extrinsic curvature")
    hm = as_array(h, 2, "induced metric")
    check_same_dim(Km, hm)
    viscous = params.bulk_viscosity * theta ** 2 + params.shear_viscosity * shear.magnitude ** 2
    return params.surface_tension * Km + viscous * hm


def interface_lagrangian(params: MembraneParams, K_trace: float, theta: float,
                         shear: ShearRate) -> float:
    """L_Σ = -σ_T K + ½η θ² + ½ζ |σ|² (surface tension plus viscous terms)."""
    return (-params.surface_tension * K_trace
            + 0.5 * params.bulk_viscosity * theta ** 2
            + 0.5 * params.shear_viscosity * shear.magnitude ** 2)


def viscous_dissipation(params: MembraneParams, theta: float, shear: ShearRate) -> float:
    """Entropy-producing viscous heating η θ² + 2ζ |σ|²."""
    return params.bulk_viscosity * theta ** 2 + 2.0 * params.shear_viscosity * shear.magnitude ** 2


# ============================================================================
# THERMODYNAMICS
# ============================================================================

def membrane_temperature(entropy: float, curvature_trace: float, base_temperature: float = 1.0,
                         entropy_heating: float = 0.1, curvature_heating: float = 0.05) -> float:
    """T_Σ = T0 (1 + α s)(1 + β |K|)"""
    return (base_temperature
            * (1.0 + entropy_heating * entropy)
            * (1.0 + curvature_heating * abs(curvature_trace)))


def entropy_balance(flux: EnergyFlux, temperature: float, dissipation: float = 0.0) -> float:
    """Constitutive rate (Φ_net - D)/T before the second-law clamp."""
    if temperature < TEMPERATURE_FLOOR:
        return 0.0
    return (flux.net - dissipation) / temperature


def entropy_evolution(flux: EnergyFlux, temperature: float, dissipation: float = 0.0) -> float:
    """Entropy rate of the membrane; never negative."""
    return max(0.0, entropy_balance(flux, temperature, dissipation))


def energy_flux_from_stress(T: TensorLike, normal, flow) -> float:
    """T_{μν} n^μ u^ν"""
    Tm = as_array(T, 2, "stress-energy")
    n_vec = as_vector(normal, Tm.shape[0], "normal")
    u_vec = as_vector(flow, Tm.shape[0], "flow")
    return float(n_vec @ Tm @ u_vec)


def thermal_radiation(temperature: float, area: float, coefficient: float = 1.0) -> float:
    """Stefan-Boltzmann style loss c A T⁴."""
    return coefficient * area * temperature ** 4


def interface_energy_flux(T: TensorLike, normal, flow, temperature: float, area: float,
                          coefficient: float = 1.0) -> EnergyFlux:
    return EnergyFlux(
        incoming=energy_flux_from_stress(T, normal, flow),
        outgoing=thermal_radiation(temperature, area, coefficient),
    )
