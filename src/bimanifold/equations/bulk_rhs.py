# bulk_rhs.py
# =============================================================================
# Bulk Field Equations (conformal-gauge dilaton gravity, 1+1 D)
# =============================================================================
#
#     ∂_t²ρ - ∂_x²ρ = ½ e^{2ρ}
#     ∂_t²X - ∂_x²X = 8π T₀₀^ψ + q_Σ
#     ∂_t²ψ - ∂_x²ψ = 0
#
# with T₀₀^ψ = ½(ψ̇² + ψ_x²) and q_Σ the interface surface energy deposited on
# the two grid points bracketing x_b. Spatial derivatives are 2nd order
# centered differences on the periodic grid.

import numpy as np
from typing import Optional

from .fields import BulkFieldState, GridSpec

EIGHT_PI = 8.0 * np.pi


# ============================================================================
# PERIODIC FINITE DIFFERENCES
# ============================================================================

def periodic_gradient(f: np.ndarray, dx: float) -> np.ndarray:
    """2nd order centered first derivative."""
    return (np.roll(f, -1) - np.roll(f, 1)) / (2.0 * dx)


def periodic_laplacian(f: np.ndarray, dx: float) -> np.ndarray:
    """2nd order centered second derivative."""
    return (np.roll(f, -1) - 2.0 * f + np.roll(f, 1)) / (dx * dx)


def forward_gradient(f: np.ndarray, dx: float) -> np.ndarray:
    """(f_{i+1} - f_i) / dx, the gradient whose energy the 3-point Laplacian conserves."""
    return (np.roll(f, -1) - f) / dx


# ============================================================================
# SAMPLING AT THE INTERFACE
# ============================================================================

def _bracket(x: float, grid: GridSpec):
    u = grid.wrap(x) / grid.dx
    i0 = int(np.floor(u))
    w = u - i0
    i0 %= grid.N
    return i0, (i0 + 1) % grid.N, w


def interpolate_periodic(field: np.ndarray, x: float, grid: GridSpec) -> float:
    """Linear interpolation between the two grid points bracketing x."""
    i0, i1, w = _bracket(x, grid)
    return float((1.0 - w) * field[i0] + w * field[i1])


def deposit_periodic(x: float, grid: GridSpec, strength: float) -> np.ndarray:
    """Hat-function deposit of a point source; sum(out) * dx == strength."""
    out = np.zeros(grid.N)
    i0, i1, w = _bracket(x, grid)
    out[i0] += (1.0 - w) * strength / grid.dx
    out[i1] += w * strength / grid.dx
    return out


# ============================================================================
# SOURCES AND STRESS-ENERGY
# ============================================================================

def matter_energy_density(bulk: BulkFieldState, dx: float) -> np.ndarray:
    """T₀₀^ψ = ½(ψ̇² + ψ_x²)"""
    psi_x = periodic_gradient(bulk.psi, dx)
    return 0.5 * (bulk.psi_dot ** 2 + psi_x ** 2)


def energy_flux_field(bulk: BulkFieldState, dx: float) -> np.ndarray:
    """Φ = ψ̇ ψ_x on the grid."""
    return bulk.psi_dot * periodic_gradient(bulk.psi, dx)


def energy_flux_at(bulk: BulkFieldState, x: float, grid: GridSpec) -> float:
    return interpolate_periodic(energy_flux_field(bulk, grid.dx), x, grid)


def bulk_stress_energy(bulk: BulkFieldState, dx: float) -> np.ndarray:
    """
    Matter stress-energy T_{μν} at every grid point, shape (N, 2, 2).

    The massless scalar is conformally coupled in 2 D, so the lower-index
    components do not depend on ρ.
    """
    psi_x = periodic_gradient(bulk.psi, dx)
    energy = 0.5 * (bulk.psi_dot ** 2 + psi_x ** 2)
    momentum = bulk.psi_dot * psi_x
    T = np.empty((bulk.N, 2, 2))
    T[:, 0, 0] = energy
    T[:, 0, 1] = momentum
    T[:, 1, 0] = momentum
    T[:, 1, 1] = energy
    return T


# ============================================================================
# RIGHT-HAND SIDES
# ============================================================================

def lapse_acceleration(bulk: BulkFieldState, dx: float) -> np.ndarray:
    return periodic_laplacian(bulk.rho, dx) + 0.5 * np.exp(2.0 * bulk.rho)


def dilaton_acceleration(bulk: BulkFieldState, dx: float,
                         interface_source: Optional[np.ndarray] = None) -> np.ndarray:
    acc = periodic_laplacian(bulk.X, dx) + EIGHT_PI * matter_energy_density(bulk, dx)
    if interface_source is not None:
        acc = acc + interface_source
    return acc


def matter_acceleration(bulk: BulkFieldState, dx: float) -> np.ndarray:
    return periodic_laplacian(bulk.psi, dx)


def compute_bulk_rhs(bulk: BulkFieldState, grid: GridSpec,
                     interface_source: Optional[np.ndarray] = None) -> BulkFieldState:
    """Time derivative of every bulk array, packed as a BulkFieldState."""
    dx = grid.dx
    return BulkFieldState(
        rho=bulk.rho_dot,
        X=bulk.X_dot,
        psi=bulk.psi_dot,
        rho_dot=lapse_acceleration(bulk, dx),
        X_dot=dilaton_acceleration(bulk, dx, interface_source),
        psi_dot=matter_acceleration(bulk, dx),
    )
