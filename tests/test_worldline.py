"""
Tests for the interface worldline right-hand side.
"""

import pytest
import numpy as np

from bimanifold.coupling_policy import CouplingParams
from bimanifold.equations.fields import BulkFieldState, CoupledSystemState, GridSpec, InterfaceState
from bimanifold.equations.bulk_rhs import EIGHT_PI
from bimanifold.equations.worldline import (
    dilaton_gradient_jump,
    entropy_rate_balance,
    incoming_flux,
    junction_force,
    junction_residual,
    proper_time_rate,
    worldline_rates,
)


def wave_bulk(grid, amplitude=1.0):
    x = grid.coordinates()
    k = 2.0 * np.pi / grid.L
    zeros = np.zeros(grid.N)
    psi = amplitude * np.sin(k * x)
    return BulkFieldState(rho=zeros, X=zeros, psi=psi, rho_dot=zeros, X_dot=zeros,
                          psi_dot=amplitude * k * np.cos(k * x))


def interface(**kw):
    values = dict(s=0.0, tau=0.0, x_b=0.0, v_b=0.0, theta=0.0)
    values.update(kw)
    return InterfaceState(**values)


class TestProperTime:

    def test_at_rest(self):
        assert proper_time_rate(0.0, 0.0) == pytest.approx(1.0)

    def test_lapse_and_velocity(self):
        assert proper_time_rate(0.5, 0.6) == pytest.approx(np.exp(0.5) * 0.8)

    def test_superluminal_clamped(self):
        rate = proper_time_rate(0.0, 1.5)
        assert rate == 0.0
        assert np.isfinite(rate)


class TestFluxAndJunction:

    def test_incoming_flux_single_bulk(self):
        grid = GridSpec(64, 1.0)
        flux = incoming_flux((wave_bulk(grid),), 0.0, grid)
        assert flux > 0.0

    def test_shadow_flux_subtracts(self):
        grid = GridSpec(64, 1.0)
        bulk = wave_bulk(grid)
        assert incoming_flux((bulk, bulk), 0.0, grid) == pytest.approx(0.0)

    def test_gradient_jump_physical_minus_shadow(self):
        grid = GridSpec(16, 1.0)
        x = grid.coordinates()
        zeros = np.zeros(16)
        phys = BulkFieldState(zeros, 3.0 * x, zeros, zeros, zeros, zeros)
        shadow = BulkFieldState.zeros(16)
        jump = dilaton_gradient_jump((phys, shadow), 0.5, grid)
        assert jump == pytest.approx(3.0)

    def test_residual_targets_eight_pi_s(self):
        grid = GridSpec(16, 1.0)
        bulks = (BulkFieldState.zeros(16),)
        residual = junction_residual(bulks, interface(s=0.5, x_b=0.5), grid)
        assert residual == pytest.approx(-EIGHT_PI * 0.5)

    def test_junction_force_restoring(self):
        params = CouplingParams(junction_stiffness=2.0)
        assert junction_force(1.5, params) == pytest.approx(-3.0)
        assert junction_force(-1.5, params) == pytest.approx(3.0)


class TestWorldlineRates:

    def test_quiet_interface(self):
        grid = GridSpec(16, 1.0)
        rates = worldline_rates((BulkFieldState.zeros(16),), interface(x_b=0.5), grid, CouplingParams())
        assert rates.x_dot == 0.0
        assert rates.v_dot == pytest.approx(0.0)
        assert rates.s_dot == 0.0
        assert rates.tau_dot == pytest.approx(1.0)

    def test_velocity_is_position_rate(self):
        grid = GridSpec(16, 1.0)
        rates = worldline_rates((BulkFieldState.zeros(16),), interface(x_b=0.5, v_b=0.3),
                                grid, CouplingParams())
        assert rates.x_dot == pytest.approx(0.3)

    def test_flux_drives_velocity_and_entropy(self):
        grid = GridSpec(64, 1.0)
        params = CouplingParams(junction_stiffness=0.0)
        rates = worldline_rates((wave_bulk(grid),), interface(), grid, params)
        assert rates.v_dot > 0.0
        assert rates.s_dot > 0.0

    def test_entropy_rate_never_negative(self):
        grid = GridSpec(16, 1.0)
        rates = worldline_rates((BulkFieldState.zeros(16),), interface(s=2.0, x_b=0.5),
                                grid, CouplingParams())
        assert rates.s_dot == 0.0

    def test_raw_balance_reports_dissipation(self):
        grid = GridSpec(16, 1.0)
        params = CouplingParams(dissipation=0.5)
        state = CoupledSystemState(bulks=(BulkFieldState.zeros(16),),
                                   interface=interface(s=2.0, x_b=0.5),
                                   t=0.0, dt=0.0, grid=grid, params=params)
        # (0 - κ s) / (T0 (1 + α s))
        assert entropy_rate_balance(state) == pytest.approx(-1.0 / 1.2)

    def test_expansion_follows_lapse_gradient(self):
        grid = GridSpec(64, 1.0)
        x = grid.coordinates()
        zeros = np.zeros(64)
        rho = 0.1 * np.sin(2.0 * np.pi * x)
        bulk = BulkFieldState(rho, zeros, zeros, zeros, zeros, zeros)
        rates = worldline_rates((bulk,), interface(v_b=0.5), grid, CouplingParams())
        assert rates.theta_dot == pytest.approx(0.5 * 0.1 * 2.0 * np.pi, rel=1e-2)
