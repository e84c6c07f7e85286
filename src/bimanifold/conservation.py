# conservation.py
# =============================================================================
# Conservation and Second-Law Monitoring
# =============================================================================
#
# **Energy**: E = Σ_bulks Σ_i [½ψ̇² + ½(D⁺ψ)²] dx + s
#     The forward-difference gradient energy is the quantity the semi-discrete
#     wave equation with the 3-point Laplacian conserves exactly. ρ and X are
#     geometric degrees of freedom; geometric_energy() tracks them separately.
#
# **Entropy**: ṡ_raw = (Φ_in - κ s)/T_Σ. A negative raw rate means the
#     constitutive law asks for entropy destruction; the worldline clamps it
#     and the monitor flags it.
#
# **Bianchi / divergence audit**:
#     ∇_μ T^{μν} = ∂_μ T^{μν} + Γ^μ_{μλ} T^{λν} + Γ^ν_{μλ} T^{μλ}
#     summed over bulks, plus the interface divergence D_a S^{ab} pushed
#     forward along the membrane tangents e_a^μ. conserved = |total| < ε.
#
# **Field equations**: G_{μν} - 8π (T_matter + S^{ab} e_a e_b)_{μν} at a point.
#
# Nothing here raises on a physical violation; results are reported and logged.

import numpy as np
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .geometry.tensor_algebra import TensorLike, TensorShapeError, as_array, check_same_dim
from .geometry.geometry import (
    christoffel_symbols,
    einstein_tensor,
    ricci_tensor,
    conformal_metric,
    conformal_metric_derivatives,
    tangent_basis,
)
from .membrane.membrane import surface_stress_divergence
from .equations.bulk_rhs import forward_gradient, periodic_gradient, periodic_laplacian
from .equations.fields import BulkFieldState, CoupledSystemState, GridSpec
from .equations.worldline import EnergySource, entropy_rate_balance, worldline_rates
from .coupling_policy import CouplingPolicy
from .logging_config import field_summary

logger = logging.getLogger('bimanifold.monitor')

DEFAULT_EPSILON = 1e-6


# ============================================================================
# ENERGY AND ENTROPY
# ============================================================================

def _field_energy(f: np.ndarray, f_dot: np.ndarray, dx: float) -> float:
    return float(np.sum(0.5 * f_dot ** 2 + 0.5 * forward_gradient(f, dx) ** 2) * dx)


def matter_energy(bulk: BulkFieldState, dx: float) -> float:
    return _field_energy(bulk.psi, bulk.psi_dot, dx)


def geometric_energy(state: CoupledSystemState) -> float:
    """Kinetic + gradient energy of ρ and X over all bulks (not conserved)."""
    dx = state.grid.dx
    return sum(_field_energy(b.rho, b.rho_dot, dx) + _field_energy(b.X, b.X_dot, dx)
               for b in state.bulks)


def total_energy(state: CoupledSystemState) -> float:
    dx = state.grid.dx
    return sum(matter_energy(b, dx) for b in state.bulks) + state.interface.s


def entropy_production(state: CoupledSystemState,
                       energy_source: Optional[EnergySource] = None) -> float:
    return entropy_rate_balance(state, energy_source)


def energy_conservation(initial_energy: float, final_energy: float, tolerance: float = 0.01):
    """Relative energy drift check, returns (conserved, relative_change)."""
    if abs(initial_energy) < DEFAULT_EPSILON:
        change = abs(final_energy - initial_energy)
    else:
        change = abs(final_energy - initial_energy) / abs(initial_energy)
    return change < tolerance, change


# ============================================================================
# DIVERGENCE CHECKS
# ============================================================================

@dataclass(frozen=True, eq=False)
class StressSample:
    """Bulk T^{μν} at one point: dT[μ, ν, λ] = ∂_μ T^{νλ}, dg[μ, ν, σ] = ∂_μ g_{νσ}."""
    T: np.ndarray
    dT: np.ndarray
    g: np.ndarray
    dg: np.ndarray


@dataclass(frozen=True, eq=False)
class MembraneSample:
    """Membrane S^{ab} at one point with its tangents e_a^μ in the ambient space."""
    S: np.ndarray
    dS: np.ndarray
    h: np.ndarray
    dh: np.ndarray
    tangents: np.ndarray


@dataclass(frozen=True, eq=False)
class ConservationCheck:
    bulk_divergences: tuple
    interface_divergence: np.ndarray
    total_divergence: np.ndarray
    residual: float
    conserved: bool


def stress_divergence(T: TensorLike, dT, g: TensorLike, dg) -> np.ndarray:
    Tm = as_array(T, 2, "stress-energy")
    dTm = as_array(dT, 3, "stress-energy derivative")
    check_same_dim(Tm, dTm, name="stress-energy and derivative")
    Gamma = christoffel_symbols(g, dg)
    div = np.einsum('mmn->n', dTm)
    div = div + np.einsum('mml,ln->n', Gamma, Tm)
    div = div + np.einsum('nml,ml->n', Gamma, Tm)
    return div


def check_conservation(bulk_samples: Sequence[StressSample],
                       interface_sample: Optional[MembraneSample] = None,
                       epsilon: float = DEFAULT_EPSILON) -> ConservationCheck:
    if not bulk_samples:
        raise ValueError("check_conservation needs at least one bulk sample")
    divs = tuple(stress_divergence(b.T, b.dT, b.g, b.dg) for b in bulk_samples)
    dim = divs[0].shape[0]
    total = np.zeros(dim)
    for d in divs:
        if d.shape[0] != dim:
            raise ValueError("Bulk samples have mismatched dimensions")
        total = total + d

    iface_div = np.zeros(dim)
    if interface_sample is not None:
        m = interface_sample
        membrane_div = surface_stress_divergence(m.S, m.dS, m.h, m.dh)
        E = tangent_basis(m.tangents, dim)
        iface_div = np.einsum('a,am->m', membrane_div, E)
        total = total + iface_div

    residual = float(np.linalg.norm(total))
    return ConservationCheck(
        bulk_divergences=divs,
        interface_divergence=iface_div,
        total_divergence=total,
        residual=residual,
        conserved=residual < epsilon,
    )


def bianchi_identity_check(G: TensorLike, dG, g: TensorLike, dg,
                           epsilon: float = DEFAULT_EPSILON):
    """∇_μ G^{μν} = 0 for the Einstein tensor; returns (satisfied, residual)."""
    div = stress_divergence(G, dG, g, dg)
    residual = float(np.linalg.norm(div))
    return residual < epsilon, residual


def local_conservation_check(T: TensorLike, dT, epsilon: float = DEFAULT_EPSILON):
    """Flat-space ∂_μ T^{μν} = 0; returns (satisfied, divergence)."""
    Tm = as_array(T, 2, "stress-energy")
    dTm = as_array(dT, 3, "stress-energy derivative")
    check_same_dim(Tm, dTm)
    div = np.einsum('mmn->n', dTm)
    return bool(np.all(np.abs(div) < epsilon)), div


# ============================================================================
# BULK STRESS-ENERGY
# ============================================================================

@dataclass(frozen=True, eq=False)
class EinsteinConstraint:
    satisfied: bool
    residual: np.ndarray
    max_residual: float


def membrane_stress_in_bulk(S: TensorLike, tangents, ambient_dim: Optional[int] = None) -> np.ndarray:
    """T^{μν}_Σ = S^{ab} e_a^μ e_b^ν on the membrane."""
    Sm = as_array(S, 2, "surface stress")
    E = tangent_basis(tangents, ambient_dim)
    if E.shape[0] != Sm.shape[0]:
        raise TensorShapeError(
            f"{Sm.shape[0]}-dimensional surface stress needs as many tangents, got {E.shape[0]}"
        )
    return np.einsum('ab,am,bn->mn', Sm, E, E)


def total_physical_stress(matter: TensorLike, membrane: TensorLike) -> np.ndarray:
    Tm = as_array(matter, 2, "matter stress-energy")
    Ts = as_array(membrane, 2, "membrane stress-energy")
    check_same_dim(Tm, Ts, name="matter and membrane stress")
    return Tm + Ts


def einstein_constraint(g: TensorLike, dg, T: TensorLike, dGamma=None,
                        tolerance: float = DEFAULT_EPSILON) -> EinsteinConstraint:
    """
    Residual G_{μν} - 8π T_{μν} of the field equations at one point.

    Without dGamma the connection is taken as locally constant, as in
    ricci_tensor. The residual is reported; nothing is raised on a mismatch.
    """
    Tm = as_array(T, 2, "stress-energy")
    G = einstein_tensor(ricci_tensor(christoffel_symbols(g, dg), dGamma), g)
    check_same_dim(G, Tm, name="Einstein tensor and stress-energy")
    residual = G - 8.0 * np.pi * Tm
    max_residual = float(np.max(np.abs(residual)))
    if max_residual >= tolerance:
        logger.debug("Einstein constraint residual", extra={
            "extra_data": {"max_residual": max_residual, "tolerance": tolerance}
        })
    return EinsteinConstraint(
        satisfied=max_residual < tolerance,
        residual=residual,
        max_residual=max_residual,
    )


def energy_density(T: TensorLike, g: Optional[TensorLike] = None) -> float:
    """T_{μν} u^μ u^ν for the static observer u = e_0 / √(-g_00); T_00 when g is None."""
    Tm = as_array(T, 2, "stress-energy")
    if g is None:
        return float(Tm[0, 0])
    g00 = as_array(g, 2, "metric")[0, 0]
    if g00 >= 0.0:
        raise ValueError(f"g_00 must be negative for a static observer, got {g00}")
    return float(Tm[0, 0] / -g00)


def momentum_density(T: TensorLike) -> np.ndarray:
    """p_i = T_{0i}"""
    return as_array(T, 2, "stress-energy")[0, 1:].copy()


# ============================================================================
# STATE-LEVEL AUDIT
# ============================================================================

def bulk_stress_sample(bulk: BulkFieldState, grid: GridSpec, index: int) -> StressSample:
    """
    T^{μν} of the matter field at one grid point in the conformal metric.

    Time derivatives come from the field equations (ψ̈ = ψ_xx), so the
    divergence only measures the spatial discretization error.
    """
    dx = grid.dx
    i = index
    a = bulk.psi_dot[i]
    b = periodic_gradient(bulk.psi, dx)[i]
    a_t = periodic_laplacian(bulk.psi, dx)[i]
    a_x = periodic_gradient(bulk.psi_dot, dx)[i]
    b_t = a_x
    b_x = a_t
    rho = bulk.rho[i]
    rho_t = bulk.rho_dot[i]
    rho_x = periodic_gradient(bulk.rho, dx)[i]

    energy = 0.5 * (a * a + b * b)
    momentum = a * b
    d_energy = np.array([a * a_t + b * b_t, a * a_x + b * b_x])
    d_momentum = np.array([a_t * b + a * b_t, a_x * b + a * b_x])
    d_rho = np.array([rho_t, rho_x])

    # T^{μν} = e^{-4ρ} η^{μα} η^{νβ} T_{αβ}
    weight = np.exp(-4.0 * rho)
    T_low = np.array([[energy, momentum], [momentum, energy]])
    sign = np.array([[1.0, -1.0], [-1.0, 1.0]])
    T_up = weight * sign * T_low

    dT_low = np.empty((2, 2, 2))
    for mu in range(2):
        dT_low[mu] = [[d_energy[mu], d_momentum[mu]], [d_momentum[mu], d_energy[mu]]]
    dT_up = np.empty((2, 2, 2))
    for mu in range(2):
        dT_up[mu] = weight * sign * (dT_low[mu] - 4.0 * d_rho[mu] * T_low)

    return StressSample(
        T=T_up,
        dT=dT_up,
        g=conformal_metric(rho),
        dg=conformal_metric_derivatives(rho, rho_t, rho_x),
    )


def interface_membrane_sample(state: CoupledSystemState) -> MembraneSample:
    """The worldline as a 1-D membrane with surface energy S = [[s]] along e = (1, v_b)."""
    iface = state.interface
    rho = state.physical.rho[state.index]
    rates = worldline_rates(state.bulks, iface, state.grid, state.params)
    tangent = np.array([[1.0, iface.v_b]])
    h = np.array([[np.exp(2.0 * rho) * (iface.v_b ** 2 - 1.0)]])
    return MembraneSample(
        S=np.array([[iface.s]]),
        dS=np.array([[[rates.s_dot]]]),
        h=h,
        dh=np.zeros((1, 1, 1)),
        tangents=tangent,
    )


def audit_state(state: CoupledSystemState, epsilon: float = DEFAULT_EPSILON) -> ConservationCheck:
    samples = [bulk_stress_sample(b, state.grid, state.index) for b in state.bulks]
    return check_conservation(samples, interface_membrane_sample(state), epsilon)


# ============================================================================
# REPORTS
# ============================================================================

@dataclass(frozen=True)
class ConservationReport:
    t: float
    total_energy: float
    entropy: float
    entropy_rate: float
    energy_change: float
    second_law_violation: bool


class ConservationMonitor:
    """Builds ConservationReports and logs physical-consistency warnings."""

    def __init__(self, policy: Optional[CouplingPolicy] = None,
                 energy_source: Optional[EnergySource] = None):
        policy = policy or CouplingPolicy()
        self.energy_source = energy_source
        self.conservation_epsilon = policy.monitor['conservation_epsilon']
        self.entropy_epsilon = policy.monitor['entropy_epsilon']
        self.violation_count = 0

    def report(self, state: CoupledSystemState,
               previous: Optional[ConservationReport] = None) -> ConservationReport:
        energy = total_energy(state)
        rate = entropy_production(state, self.energy_source)
        entropy = state.interface.s
        energy_change = 0.0 if previous is None else energy - previous.total_energy

        entropy_drop = previous is not None and entropy < previous.entropy - self.entropy_epsilon
        violation = rate < -self.entropy_epsilon or entropy_drop
        if violation:
            self.violation_count += 1
            logger.warning("Second-law violation flagged", extra={
                "extra_data": {
                    "t": state.t,
                    "entropy": entropy,
                    "entropy_rate": rate,
                    "entropy_drop": entropy_drop,
                }
            })

        return ConservationReport(
            t=state.t,
            total_energy=energy,
            entropy=entropy,
            entropy_rate=rate,
            energy_change=energy_change,
            second_law_violation=violation,
        )

    def audit(self, state: CoupledSystemState) -> ConservationCheck:
        result = audit_state(state, self.conservation_epsilon)
        if not result.conserved:
            logger.info("Divergence residual above tolerance", extra={
                "extra_data": {
                    "t": state.t,
                    "residual": result.residual,
                    "epsilon": self.conservation_epsilon,
                    "psi": field_summary(state.physical.psi),
                }
            })
        return result
