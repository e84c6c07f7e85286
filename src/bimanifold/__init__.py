# bimanifold
# Two coupled 1+1 D dilaton-gravity bulks joined by a dissipative interface

"""
bimanifold - coupled bulk/interface field simulator

- Conformal-gauge dilaton gravity on two periodic bulks (physical, shadow)
- Interface worldline with Israel junction penalty and second-law clamp
- RK4 integration with fixed or event-driven (Antclock) step policies
- Conservation, entropy and divergence auditing
- Spectral signatures separating smooth from coercive evolution
"""

from .coupling_policy import CouplingParams, CouplingPolicy
from .equations import (
    GridSpec, BulkFieldState, InterfaceState, CoupledSystemState,
    compute_bulk_rhs, worldline_rates,
)
from .stepper import CoupledRK4Stepper, compute_rates, step
from .timestep import TimeStepPolicy, FixedTimeStep, EventDrivenTimeStep
from .state_invariants import StateInvariantChecker
from .conservation import (
    ConservationReport, ConservationMonitor, ConservationCheck,
    total_energy, geometric_energy, entropy_production,
    stress_divergence, check_conservation, audit_state,
    einstein_constraint, total_physical_stress,
)
from .scenarios import (
    SimulationResult, initialize, simulate,
    constant_source, pulsed_source, ramp_source,
    spectral_acceleration, classify_orbit,
)
from .spectral import SpectralSignature, extract_spectral_signature
from .logging_config import setup_logging

__version__ = "0.1.0"

__all__ = [
    # Configuration
    'CouplingParams', 'CouplingPolicy',

    # State
    'GridSpec', 'BulkFieldState', 'InterfaceState', 'CoupledSystemState',
    'compute_bulk_rhs', 'worldline_rates',

    # Integration
    'CoupledRK4Stepper', 'compute_rates', 'step',
    'TimeStepPolicy', 'FixedTimeStep', 'EventDrivenTimeStep',
    'StateInvariantChecker',

    # Monitoring
    'ConservationReport', 'ConservationMonitor', 'ConservationCheck',
    'total_energy', 'geometric_energy', 'entropy_production',
    'stress_divergence', 'check_conservation', 'audit_state',
    'einstein_constraint', 'total_physical_stress',

    # Scenarios and diagnostics
    'SimulationResult', 'initialize', 'simulate',
    'constant_source', 'pulsed_source', 'ramp_source',
    'spectral_acceleration', 'classify_orbit',
    'SpectralSignature', 'extract_spectral_signature',

    'setup_logging',
]
