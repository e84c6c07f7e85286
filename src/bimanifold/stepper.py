# stepper.py
# =============================================================================
# RK4 Integrator for the Coupled Bulk + Worldline System
# =============================================================================
#
# One step advances every bulk array and the five worldline scalars together:
#
#     k1 = F(y_n)
#     k2 = F(y_n + dt/2 k1)
#     k3 = F(y_n + dt/2 k2)
#     k4 = F(y_n + dt   k3)
#     y_{n+1} = y_n + (dt/6)(k1 + 2 k2 + 2 k3 + k4)
#
# F samples the interface against the stage-local bulk arrays, so each stage
# sees the x_b of that stage. After combination x_b is wrapped into [0, L)
# and s is clamped at zero. Input states are never modified.

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .equations.fields import BulkFieldState, CoupledSystemState, InterfaceState
from .equations.bulk_rhs import EIGHT_PI, compute_bulk_rhs, deposit_periodic
from .equations.worldline import SIDE_SIGNS, EnergySource, WorldlineRates, source_flux, worldline_rates
from .state_invariants import StateInvariantChecker

logger = logging.getLogger('bimanifold.stepper')


@dataclass(frozen=True)
class SystemRates:
    bulks: Tuple[BulkFieldState, ...]
    worldline: WorldlineRates


def interface_sources(state: CoupledSystemState):
    """Surface energy 8π c s deposited at x_b, + on the physical and - on the shadow side."""
    strength = EIGHT_PI * state.params.interface_source * state.interface.s
    if strength == 0.0:
        return [None] * len(state.bulks)
    return [deposit_periodic(state.interface.x_b, state.grid, sign * strength)
            for sign, _ in zip(SIDE_SIGNS, state.bulks)]


def compute_rates(state: CoupledSystemState,
                  energy_source: Optional[EnergySource] = None) -> SystemRates:
    """Time derivatives at state; an external energy_source is sampled at state.t."""
    sources = interface_sources(state)
    bulk_rates = tuple(compute_bulk_rhs(bulk, state.grid, src)
                       for bulk, src in zip(state.bulks, sources))
    wl = worldline_rates(state.bulks, state.interface, state.grid, state.params,
                         source_flux(energy_source, state.t))
    return SystemRates(bulks=bulk_rates, worldline=wl)


def _advance_interface(iface: InterfaceState, rates: WorldlineRates, h: float) -> InterfaceState:
    return InterfaceState(
        s=iface.s + h * rates.s_dot,
        tau=iface.tau + h * rates.tau_dot,
        x_b=iface.x_b + h * rates.x_dot,
        v_b=iface.v_b + h * rates.v_dot,
        theta=iface.theta + h * rates.theta_dot,
    )


def _stage(state: CoupledSystemState, rates: SystemRates, h: float) -> CoupledSystemState:
    """y + h k, evaluated at t + h."""
    return state.evolve(
        bulks=tuple(b.axpy(h, r) for b, r in zip(state.bulks, rates.bulks)),
        interface=_advance_interface(state.interface, rates.worldline, h),
        t=state.t + h,
    )


def _weighted(k1, k2, k3, k4):
    return (k1 + 2.0 * k2 + 2.0 * k3 + k4) / 6.0


def _combine_bulk(bulk: BulkFieldState, ks, dt: float) -> BulkFieldState:
    arrays = [k.arrays() for k in ks]
    return BulkFieldState(*(
        y + dt * _weighted(a1, a2, a3, a4)
        for y, a1, a2, a3, a4 in zip(bulk.arrays(), *arrays)
    ))


def _combine_worldline(ks) -> WorldlineRates:
    return WorldlineRates(*(
        _weighted(*(getattr(k, name) for k in ks))
        for name in ('x_dot', 'v_dot', 'theta_dot', 's_dot', 'tau_dot')
    ))


class CoupledRK4Stepper:
    """Classic four-stage Runge-Kutta over the whole coupled state."""

    def __init__(self, check_invariants: bool = True,
                 invariant_checker: Optional[StateInvariantChecker] = None,
                 energy_source: Optional[EnergySource] = None):
        self.energy_source = energy_source
        self.check_invariants = check_invariants
        self.invariant_checker = invariant_checker or StateInvariantChecker()
        self.steps_taken = 0

    def step(self, state: CoupledSystemState, dt: float) -> CoupledSystemState:
        if not dt > 0:
            raise ValueError(f"dt must be positive, got {dt}")

        source = self.energy_source
        k1 = compute_rates(state, source)
        k2 = compute_rates(_stage(state, k1, 0.5 * dt), source)
        k3 = compute_rates(_stage(state, k2, 0.5 * dt), source)
        k4 = compute_rates(_stage(state, k3, dt), source)
        ks = (k1, k2, k3, k4)

        bulks = tuple(
            _combine_bulk(bulk, [k.bulks[i] for k in ks], dt)
            for i, bulk in enumerate(state.bulks)
        )
        advanced = _advance_interface(state.interface, _combine_worldline([k.worldline for k in ks]), dt)
        interface = InterfaceState(
            s=max(0.0, advanced.s),
            tau=advanced.tau,
            x_b=state.grid.wrap(advanced.x_b),
            v_b=advanced.v_b,
            theta=advanced.theta,
        )
        new_state = state.evolve(bulks=bulks, interface=interface, t=state.t + dt, dt=dt)
        self.steps_taken += 1

        if self.check_invariants:
            self.invariant_checker.check(new_state, state)

        logger.debug("RK4 step", extra={
            "extra_data": {
                "t": new_state.t,
                "dt": dt,
                "x_b": interface.x_b,
                "v_b": interface.v_b,
                "s": interface.s,
            }
        })
        return new_state


def step(state: CoupledSystemState, dt: float,
         energy_source: Optional[EnergySource] = None) -> CoupledSystemState:
    """Advance state by one RK4 step of size dt."""
    return CoupledRK4Stepper(energy_source=energy_source).step(state, dt)
