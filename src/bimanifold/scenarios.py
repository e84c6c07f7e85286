# scenarios.py
# =============================================================================
# Named Initial Conditions and the Simulation Loop
# =============================================================================
#
# "smooth": Gaussian matter pulse at rest, flat geometry, cold interface.
#           By mirror symmetry about x_b the flux at the interface vanishes,
#           so s stays zero and the interface stays put.
# "cliff":  Driven sinusoidal matter field (left-moving wave plus a uniform
#           push), modulated lapse, interface already carrying entropy.

import numpy as np
import logging
from dataclasses import dataclass
from typing import List, Optional

from .coupling_policy import CouplingParams
from .conservation import ConservationMonitor, ConservationReport
from .equations.fields import BulkFieldState, CoupledSystemState, GridSpec, InterfaceState
from .equations.bulk_rhs import interpolate_periodic
from .equations.worldline import EnergySource
from .logging_config import Timer
from .stepper import CoupledRK4Stepper, step
from .timestep import TimeStepPolicy

logger = logging.getLogger('bimanifold.scenarios')

ORBIT_TYPES = ('comet', 'planet', 'spiky_planet', 'drift')


def _build_state(grid: GridSpec, physical: BulkFieldState, interface: InterfaceState,
                 params: Optional[CouplingParams], shadow: Optional[BulkFieldState]):
    bulks = (physical,) if shadow is None else (physical, shadow)
    return CoupledSystemState(
        bulks=bulks,
        interface=interface,
        t=0.0,
        dt=0.0,
        grid=grid,
        params=params if params is not None else CouplingParams(),
    )


def initialize_smooth(N: int, L: float, params: Optional[CouplingParams] = None,
                      with_shadow: bool = False) -> CoupledSystemState:
    grid = GridSpec(N, L)
    x = grid.coordinates()
    zeros = np.zeros(N)
    psi = 0.1 * np.exp(-0.5 * ((x - L / 2) / (L / 8)) ** 2)
    physical = BulkFieldState(rho=zeros, X=zeros, psi=psi,
                              rho_dot=zeros, X_dot=zeros, psi_dot=zeros)
    shadow = BulkFieldState.zeros(N) if with_shadow else None
    interface = InterfaceState(s=0.0, tau=0.0, x_b=L / 2, v_b=0.0, theta=0.0)
    return _build_state(grid, physical, interface, params, shadow)


def initialize_cliff(N: int, L: float, params: Optional[CouplingParams] = None,
                     with_shadow: bool = False) -> CoupledSystemState:
    grid = GridSpec(N, L)
    x = grid.coordinates()
    zeros = np.zeros(N)
    k = 4.0 * np.pi / L
    psi = 0.5 * np.sin(k * x)
    psi_dot = 0.5 * k * np.cos(k * x) + 0.2
    rho = 0.05 * np.cos(2.0 * np.pi * x / L)
    physical = BulkFieldState(rho=rho, X=zeros, psi=psi,
                              rho_dot=zeros, X_dot=zeros, psi_dot=psi_dot)
    shadow = None
    if with_shadow:
        # high, uniformly driven field on the far side
        shadow = BulkFieldState(rho=zeros, X=zeros, psi=np.full(N, 5.0),
                                rho_dot=zeros, X_dot=zeros, psi_dot=np.full(N, 2.0))
    interface = InterfaceState(s=0.1, tau=0.0, x_b=L / 2, v_b=0.0, theta=0.5)
    return _build_state(grid, physical, interface, params, shadow)


SCENARIOS = {
    'smooth': initialize_smooth,
    'cliff': initialize_cliff,
}


def initialize(name: str, N: int, L: float, params: Optional[CouplingParams] = None,
               with_shadow: bool = False) -> CoupledSystemState:
    """Build the named scenario on an N-point periodic grid of length L."""
    try:
        builder = SCENARIOS[name]
    except KeyError:
        raise ValueError(f"Unknown scenario '{name}', expected one of {sorted(SCENARIOS)}") from None
    state = builder(N, L, params=params, with_shadow=with_shadow)
    logger.info("Scenario initialized", extra={
        "extra_data": {"scenario": name, "N": N, "L": L, "bulks": len(state.bulks)}
    })
    return state


# ============================================================================
# ENERGY SOURCES
# ============================================================================

def constant_source(physical_flux: float, shadow_flux: float = 0.0) -> EnergySource:
    return lambda t: (physical_flux, shadow_flux)


def pulsed_source(amplitude: float, frequency: float) -> EnergySource:
    """A sin(2π f t) on the physical side."""
    return lambda t: (amplitude * np.sin(2.0 * np.pi * frequency * t), 0.0)


def ramp_source(rate: float, max_flux: float) -> EnergySource:
    """Physical flux growing linearly at rate until it saturates at max_flux."""
    return lambda t: (min(rate * t, max_flux), 0.0)


# ============================================================================
# SIMULATION
# ============================================================================

@dataclass
class SimulationResult:
    states: List[CoupledSystemState]
    reports: List[ConservationReport]

    @property
    def final(self) -> CoupledSystemState:
        return self.states[-1]

    def times(self) -> np.ndarray:
        return np.array([s.t for s in self.states])


def simulate(initial: CoupledSystemState, duration: float, dt: float,
             report_interval: float = 0.1, dt_policy: Optional[TimeStepPolicy] = None,
             stepper: Optional[CoupledRK4Stepper] = None,
             monitor: Optional[ConservationMonitor] = None,
             energy_source: Optional[EnergySource] = None) -> SimulationResult:
    """
    Integrate from initial for duration, keeping every state.

    A conservation report is taken at the start and every report_interval
    afterwards. With a dt_policy the step size is asked for before each step;
    otherwise dt is used throughout. The last step is shortened to land on
    t0 + duration.

    energy_source(t) -> (physical, shadow) adds external flux at the
    interface; it is handed to the default stepper and monitor. A stepper
    passed in explicitly keeps its own source.
    """
    if not dt > 0:
        raise ValueError(f"dt must be positive, got {dt}")
    if not report_interval > 0:
        raise ValueError(f"report_interval must be positive, got {report_interval}")
    if duration < 0:
        raise ValueError(f"duration must be non-negative, got {duration}")

    stepper = stepper or CoupledRK4Stepper(energy_source=energy_source)
    monitor = monitor or ConservationMonitor(energy_source=stepper.energy_source)

    end = initial.t + duration
    slack = 1e-9 * max(1.0, abs(end))

    state = initial
    previous = None
    states = [state]
    reports = [monitor.report(state)]
    next_report = initial.t + report_interval

    logger.info("Starting simulation", extra={
        "extra_data": {"t0": initial.t, "duration": duration, "dt": dt,
                       "report_interval": report_interval,
                       "adaptive": dt_policy is not None,
                       "driven": stepper.energy_source is not None}
    })

    total_timer = Timer("simulation")
    with total_timer:
        while end - state.t > slack:
            h = dt if dt_policy is None else dt_policy.propose_dt(state, previous)
            h = min(h, end - state.t)
            previous, state = state, stepper.step(state, h)
            states.append(state)

            if state.t + slack >= next_report:
                reports.append(monitor.report(state, reports[-1]))
                while next_report <= state.t + slack:
                    next_report += report_interval

    logger.info("Simulation completed", extra={
        "extra_data": {
            "steps": len(states) - 1,
            "final_t": state.t,
            "final_entropy": state.interface.s,
            "second_law_flags": sum(r.second_law_violation for r in reports),
            "total_execution_time_ms": total_timer.elapsed_ms(),
        }
    })
    return SimulationResult(states=states, reports=reports)


# ============================================================================
# OBSERVABLES
# ============================================================================

def spectral_acceleration(states: List[CoupledSystemState], window_size: int = 5) -> np.ndarray:
    """
    |∂²_t X| at the interface from samples i-2w, i-w, i.

    Uses the non-uniform three-point second difference
        2 [ (X₂-X₁)/h₂ - (X₁-X₀)/h₁ ] / (h₁+h₂)
    so trajectories from an adaptive dt policy are handled as well.
    """
    if window_size < 1:
        raise ValueError(f"window_size must be at least 1, got {window_size}")

    samples = np.array([interpolate_periodic(s.physical.X, s.interface.x_b, s.grid)
                        for s in states])
    times = np.array([s.t for s in states])

    w = window_size
    accelerations = []
    for i in range(2 * w, len(states)):
        x0, x1, x2 = samples[i - 2 * w], samples[i - w], samples[i]
        h1 = times[i - w] - times[i - 2 * w]
        h2 = times[i] - times[i - w]
        if h1 <= 0 or h2 <= 0:
            continue
        acc = 2.0 * ((x2 - x1) / h2 - (x1 - x0) / h1) / (h1 + h2)
        accelerations.append(abs(acc))
    return np.array(accelerations)


def classify_orbit(energy: float, peak: float, low: float, high: float,
                   curvature_low: float = 2.0, curvature_high: float = 3.0) -> str:
    """Orbit type from an exposure/energy level and a peak curvature or acceleration."""
    high_curvature = peak >= curvature_high
    low_curvature = peak <= curvature_low
    high_energy = energy >= high
    low_energy = energy <= low

    if high_curvature and low_energy:
        return 'comet'
    if high_energy and low_curvature:
        return 'planet'
    if high_energy and high_curvature:
        return 'spiky_planet'
    return 'drift'


__all__ = [
    'ORBIT_TYPES', 'SCENARIOS', 'SimulationResult',
    'constant_source', 'pulsed_source', 'ramp_source',
    'initialize', 'initialize_smooth', 'initialize_cliff',
    'step', 'simulate', 'spectral_acceleration', 'classify_orbit',
]
