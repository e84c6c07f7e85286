"""
Tests for spectral signatures and trajectory diagnostics.
"""

import pytest
import numpy as np

from bimanifold.scenarios import initialize, simulate
from bimanifold.spectral import (
    curvature_gradient,
    curvature_jump_rate,
    detect_coercion_events,
    energy_flux_spikes,
    extract_spectral_signature,
    junction_residual_series,
    power_spectrum,
)


@pytest.fixture(scope="module")
def runs():
    return {
        name: simulate(initialize(name, 32, 2.0), 0.2, 0.01)
        for name in ("smooth", "cliff")
    }


class TestSignature:

    def test_power_spectrum_of_constant(self):
        power = power_spectrum(np.ones(8))
        assert power[0] == pytest.approx(64.0)
        assert np.allclose(power[1:], 0.0)

    def test_constant_history_drifts(self):
        times = np.arange(16) * 0.1
        sig = extract_spectral_signature(np.ones(16), times)
        assert sig.orbit_type == 'drift'
        assert sig.coercion_score == 0.0

    def test_alternating_history_is_comet(self):
        times = np.arange(16) * 0.1
        values = np.exp(np.where(np.arange(16) % 2 == 0, 1.0, -1.0))
        sig = extract_spectral_signature(values, times)

        assert sig.peak_frequency == pytest.approx(5.0)
        assert sig.orbit_type == 'comet'
        assert sig.coercion_score == pytest.approx(1.0)

    def test_slow_history_is_planet(self):
        times = np.arange(64) * 1.0
        values = np.exp(np.cos(2.0 * np.pi * times / 64.0))
        sig = extract_spectral_signature(values, times)

        assert sig.peak_frequency == pytest.approx(1.0 / 64.0)
        assert sig.orbit_type == 'planet'

    def test_non_positive_values_floored(self):
        sig = extract_spectral_signature([0.0, -1.0, 1.0, 0.0], [0.0, 1.0, 2.0, 3.0])
        assert np.all(np.isfinite(sig.spectrum))

    def test_empty_history(self):
        with pytest.raises(ValueError):
            extract_spectral_signature([], [])

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            extract_spectral_signature([1.0, 2.0], [0.0])


class TestEvents:

    def test_coercion_events(self):
        events = detect_coercion_events([1.0, 1.0, 1.0, 10.0], [0.0, 1.0, 2.0, 3.0])
        assert events == [3.0]

    def test_coercion_events_empty(self):
        assert detect_coercion_events([], []) == []

    def test_curvature_gradient(self):
        grad = curvature_gradient([0.0, 1.0, 3.0], [0.0, 0.5, 1.0])
        assert np.allclose(grad, [2.0, 4.0])

    def test_curvature_gradient_short(self):
        assert curvature_gradient([1.0], [0.0]).size == 0


class TestTrajectoryDiagnostics:

    def test_residual_series_length(self, runs):
        series = junction_residual_series(runs["cliff"].states)
        assert series.shape == (len(runs["cliff"].states),)
        # J = 0 at t = 0, so the residual starts at -8π s
        assert series[0] == pytest.approx(-8.0 * np.pi * 0.1)

    def test_flux_spikes(self, runs):
        assert energy_flux_spikes(runs["smooth"].states, threshold=1e-9) == []
        spikes = energy_flux_spikes(runs["cliff"].states, threshold=1.0)
        assert spikes[0] == 0.0

    def test_jump_rate_contrast(self, runs):
        assert curvature_jump_rate(runs["cliff"].states, threshold=1.0) > 0.0
        assert curvature_jump_rate(runs["smooth"].states, threshold=1.0) == 0.0

    def test_jump_rate_single_state(self, runs):
        assert curvature_jump_rate(runs["cliff"].states[:1]) == 0.0
