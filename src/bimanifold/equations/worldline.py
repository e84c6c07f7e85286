# worldline.py
# =============================================================================
# Interface Worldline Dynamics
# =============================================================================
#
#     ẋ_b = v_b
#     v̇_b = (λ Φ_in + F_J) / m_eff,     F_J = -k_J (J - 8π s)
#     θ̇   = v_b ρ_x(x_b)
#     ṡ   = max(0, (Φ_in - κ s) / T_Σ)
#     τ̇   = e^{ρ(x_b)} √max(0, 1 - v_b²)
#
# J is the dilaton-gradient jump sampled at x_b (physical minus shadow). The
# spring F_J only pulls J toward 8π s; it does not enforce the junction
# condition exactly. Shadow-side quantities enter with the opposite sign.

import numpy as np
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from ..coupling_policy import CouplingParams
from ..membrane.interface import EnergyFlux, entropy_balance, entropy_evolution, membrane_temperature
from .fields import BulkFieldState, CoupledSystemState, GridSpec, InterfaceState
from .bulk_rhs import EIGHT_PI, energy_flux_at, interpolate_periodic, periodic_gradient

SIDE_SIGNS = (1.0, -1.0)

# t -> (physical, shadow) flux driven into the interface from outside the grid
EnergySource = Callable[[float], Tuple[float, float]]


@dataclass(frozen=True)
class WorldlineRates:
    x_dot: float
    v_dot: float
    theta_dot: float
    s_dot: float
    tau_dot: float


def incoming_flux(bulks: Sequence[BulkFieldState], x_b: float, grid: GridSpec) -> float:
    """Φ_in = Φ_phys - Φ_shadow at the interface."""
    return sum(sign * energy_flux_at(bulk, x_b, grid) for sign, bulk in zip(SIDE_SIGNS, bulks))


def source_flux(energy_source: Optional[EnergySource], t: float) -> float:
    """External contribution to Φ_in, shadow side subtracted."""
    if energy_source is None:
        return 0.0
    physical, shadow = energy_source(t)
    return float(physical) - float(shadow)


def dilaton_gradient_jump(bulks: Sequence[BulkFieldState], x_b: float, grid: GridSpec) -> float:
    return sum(sign * interpolate_periodic(periodic_gradient(bulk.X, grid.dx), x_b, grid)
               for sign, bulk in zip(SIDE_SIGNS, bulks))


def junction_residual(bulks: Sequence[BulkFieldState], interface: InterfaceState,
                      grid: GridSpec) -> float:
    """J - 8π s"""
    return dilaton_gradient_jump(bulks, interface.x_b, grid) - EIGHT_PI * interface.s


def junction_force(residual: float, params: CouplingParams) -> float:
    return -params.junction_stiffness * residual


def interface_temperature(interface: InterfaceState, params: CouplingParams) -> float:
    return membrane_temperature(interface.s, interface.theta, params.base_temperature,
                                params.entropy_heating, params.curvature_heating)


def interface_energy_flux(bulks: Sequence[BulkFieldState], interface: InterfaceState,
                          grid: GridSpec, params: CouplingParams,
                          external_flux: float = 0.0) -> EnergyFlux:
    return EnergyFlux(incoming=incoming_flux(bulks, interface.x_b, grid) + external_flux,
                      outgoing=params.dissipation * interface.s)


def proper_time_rate(rho_b: float, v_b: float) -> float:
    """e^{ρ} √(1 - v²), zero instead of NaN once |v| >= 1."""
    return float(np.exp(rho_b) * np.sqrt(max(0.0, 1.0 - v_b * v_b)))


def worldline_rates(bulks: Sequence[BulkFieldState], interface: InterfaceState,
                    grid: GridSpec, params: CouplingParams,
                    external_flux: float = 0.0) -> WorldlineRates:
    physical = bulks[0]
    x_b = interface.x_b
    flux = interface_energy_flux(bulks, interface, grid, params, external_flux)

    f_flux = params.flux_coupling * flux.incoming
    f_junction = junction_force(junction_residual(bulks, interface, grid), params)

    rho_b = interpolate_periodic(physical.rho, x_b, grid)
    rho_x_b = interpolate_periodic(periodic_gradient(physical.rho, grid.dx), x_b, grid)

    return WorldlineRates(
        x_dot=interface.v_b,
        v_dot=(f_flux + f_junction) / params.effective_mass,
        theta_dot=interface.v_b * rho_x_b,
        s_dot=entropy_evolution(flux, interface_temperature(interface, params)),
        tau_dot=proper_time_rate(rho_b, interface.v_b),
    )


def entropy_rate_balance(state: CoupledSystemState,
                         energy_source: Optional[EnergySource] = None) -> float:
    """(Φ_in - κ s)/T_Σ at the current state, before the second-law clamp."""
    flux = interface_energy_flux(state.bulks, state.interface, state.grid, state.params,
                                 source_flux(energy_source, state.t))
    return entropy_balance(flux, interface_temperature(state.interface, state.params))
