# timestep.py
# =============================================================================
# Time-Step Policies
# =============================================================================
#
# The integrator never picks dt itself. simulate() asks a TimeStepPolicy for
# the next dt given the current and previous state:
#
#     FixedTimeStep        constant dt
#     EventDrivenTimeStep  "Antclock": refine dt while the interface is active
#
# Event signal (sampled at the cached interface grid index):
#     E = 0.4 |Φ_in| + 0.3 |Ẍ| + 0.2 T₀₀^ψ + 0.1 R
# where R is the total gradient energy of all bulk fields. A tick occurs when
# E > event_threshold; dt = dt_nominal * event_boost on a tick, else dt_nominal,
# clamped to [dt_min, dt_max].

import numpy as np
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from .coupling_policy import CouplingPolicy
from .equations.bulk_rhs import periodic_gradient

logger = logging.getLogger('bimanifold.timestep')

SIGNAL_WEIGHTS = {
    'energy_flux': 0.4,
    'dilaton_acceleration': 0.3,
    'matter_activity': 0.2,
    'spatial_roughness': 0.1,
}


class TimeStepPolicy(ABC):
    """Supplies the step size for the next integration step."""

    @abstractmethod
    def propose_dt(self, state, previous=None) -> float:
        """Return the dt to use for advancing state."""
        pass


class FixedTimeStep(TimeStepPolicy):

    def __init__(self, dt: float):
        if not dt > 0:
            raise ValueError(f"dt must be positive, got {dt}")
        self.dt = float(dt)

    def propose_dt(self, state, previous=None) -> float:
        return self.dt


@dataclass(frozen=True)
class EventSignal:
    t: float
    energy_flux: float
    dilaton_acceleration: float
    matter_activity: float
    spatial_roughness: float
    magnitude: float
    is_tick: bool
    description: Optional[str] = None


def compute_event_signal(state, previous=None, threshold: float = 0.05) -> EventSignal:
    bulk = state.physical
    dx = state.grid.dx
    i_b = state.index

    psi_x = periodic_gradient(bulk.psi, dx)
    energy_flux = float(bulk.psi_dot[i_b] * psi_x[i_b])

    dilaton_acc = 0.0
    if previous is not None and state.dt > 0:
        dilaton_acc = abs(float(bulk.X_dot[i_b] - previous.physical.X_dot[i_b]) / state.dt)

    matter_activity = float(0.5 * (bulk.psi_dot[i_b] ** 2 + psi_x[i_b] ** 2))

    roughness = 0.0
    for b in state.bulks:
        for f in (b.rho, b.X, b.psi):
            roughness += 0.5 * float(np.sum(periodic_gradient(f, dx) ** 2)) * dx

    magnitude = (SIGNAL_WEIGHTS['energy_flux'] * abs(energy_flux)
                 + SIGNAL_WEIGHTS['dilaton_acceleration'] * dilaton_acc
                 + SIGNAL_WEIGHTS['matter_activity'] * matter_activity
                 + SIGNAL_WEIGHTS['spatial_roughness'] * roughness)
    is_tick = magnitude > threshold

    description = None
    if is_tick:
        if abs(energy_flux) > threshold:
            description = "energy_flux_spike"
        elif dilaton_acc > threshold:
            description = "dilaton_acceleration_spike"
        elif matter_activity > threshold:
            description = "matter_activity_spike"
        else:
            description = "spatial_roughness"

    return EventSignal(
        t=state.t,
        energy_flux=energy_flux,
        dilaton_acceleration=dilaton_acc,
        matter_activity=matter_activity,
        spatial_roughness=roughness,
        magnitude=magnitude,
        is_tick=is_tick,
        description=description,
    )


class EventDrivenTimeStep(TimeStepPolicy):
    """Antclock policy: refine dt while interface events are active.

    An instance records the signals of one run in ``signals``; use a fresh
    instance per simulation.
    """

    def __init__(self, dt_nominal: float = 0.01, dt_min: float = 0.001, dt_max: float = 0.1,
                 event_threshold: float = 0.05, event_boost: float = 0.5):
        if not 0 < dt_min <= dt_nominal <= dt_max:
            raise ValueError(
                f"Require 0 < dt_min <= dt_nominal <= dt_max, got {dt_min}, {dt_nominal}, {dt_max}"
            )
        if event_boost <= 0:
            raise ValueError(f"event_boost must be positive, got {event_boost}")
        self.dt_nominal = dt_nominal
        self.dt_min = dt_min
        self.dt_max = dt_max
        self.event_threshold = event_threshold
        self.event_boost = event_boost
        self.signals: List[EventSignal] = []

    @classmethod
    def from_policy(cls, policy: CouplingPolicy) -> 'EventDrivenTimeStep':
        return cls(**policy.timestep)

    def propose_dt(self, state, previous=None) -> float:
        signal = compute_event_signal(state, previous, self.event_threshold)
        self.signals.append(signal)

        dt = self.dt_nominal
        if signal.is_tick:
            dt *= self.event_boost
            logger.debug("Antclock tick", extra={
                "extra_data": {"t": state.t, "event": signal.description,
                               "magnitude": signal.magnitude, "dt": dt}
            })
        return float(min(self.dt_max, max(self.dt_min, dt)))

    @property
    def tick_count(self) -> int:
        return sum(1 for s in self.signals if s.is_tick)

    def analyze(self) -> dict:
        """Summary of the recorded run: tick fraction and event histogram."""
        events = {}
        for s in self.signals:
            if s.description is not None:
                events[s.description] = events.get(s.description, 0) + 1
        n = len(self.signals)
        return {
            'steps': n,
            'ticks': self.tick_count,
            'tick_fraction': self.tick_count / n if n else 0.0,
            'events': events,
            'mean_magnitude': float(np.mean([s.magnitude for s in self.signals])) if n else 0.0,
        }
