# spectral.py
# =============================================================================
# Spectral Signatures of Interface Activity
# =============================================================================
#
#     ζ = FFT(log K_ab K^ab (t))
#
# Curvature spikes at the interface show up as broad, high-frequency power;
# smooth evolution stays near DC. Trajectory helpers turn a list of states
# into the series these functions consume.

import numpy as np
from dataclasses import dataclass
from typing import List, Sequence

from .equations.fields import CoupledSystemState
from .equations.worldline import incoming_flux, junction_residual

LOG_FLOOR = 1e-10
HIGH_FREQUENCY = 0.5
LOW_FREQUENCY = 0.1
BROAD_VARIANCE = 0.1
DRIFT_POWER = 1e-6


@dataclass(frozen=True, eq=False)
class SpectralSignature:
    spectrum: np.ndarray
    frequencies: np.ndarray
    peak_frequency: float
    orbit_type: str
    coercion_score: float


def power_spectrum(values) -> np.ndarray:
    """|F(ω)|² over the non-negative frequencies."""
    f = np.fft.rfft(np.asarray(values, dtype=np.float64))
    return f.real ** 2 + f.imag ** 2


def _classify_spectrum(power: np.ndarray, frequencies: np.ndarray) -> str:
    total = float(np.sum(power))
    if total < DRIFT_POWER:
        return 'drift'
    mean_freq = float(np.sum(frequencies * power)) / total
    variance = float(np.sum(power * (frequencies - mean_freq) ** 2)) / total

    high = mean_freq > HIGH_FREQUENCY
    if high and variance > BROAD_VARIANCE:
        return 'spiky_planet'
    if high:
        return 'comet'
    if mean_freq < LOW_FREQUENCY:
        return 'planet'
    return 'drift'


def extract_spectral_signature(values: Sequence[float], times: Sequence[float]) -> SpectralSignature:
    """
    Spectral signature of a curvature-norm history sampled at uniform times.

    Args:
        values: K_ab K^ab at each sample (non-positive values are floored)
        times: sample times; the spacing of the first pair sets the frequency axis
    """
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        raise ValueError("Empty curvature history")
    if len(times) != values.size:
        raise ValueError(f"Got {values.size} values but {len(times)} times")

    log_values = np.log(np.maximum(values, LOG_FLOOR))
    power = power_spectrum(log_values)
    sample_dt = times[1] - times[0] if len(times) > 1 else 1.0
    frequencies = np.fft.rfftfreq(values.size, d=sample_dt)

    # skip DC
    peak_frequency = float(frequencies[1 + np.argmax(power[1:])]) if power.size > 1 else 0.0

    total = float(np.sum(power))
    high_power = float(np.sum(power[frequencies > HIGH_FREQUENCY]))
    coercion_score = high_power / total if total > 0 else 0.0

    return SpectralSignature(
        spectrum=power,
        frequencies=frequencies,
        peak_frequency=peak_frequency,
        orbit_type=_classify_spectrum(power, frequencies),
        coercion_score=coercion_score,
    )


def detect_coercion_events(values: Sequence[float], times: Sequence[float],
                           threshold: float = 3.0) -> List[float]:
    """Times at which the series exceeds threshold times its median."""
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        return []
    median = np.sort(values)[values.size // 2]
    return [float(t) for v, t in zip(values, times) if v > threshold * median]


def curvature_gradient(values: Sequence[float], times: Sequence[float]) -> np.ndarray:
    values = np.asarray(values, dtype=np.float64)
    if values.size < 2:
        return np.array([])
    dt = np.maximum(np.diff(np.asarray(times, dtype=np.float64)), LOG_FLOOR)
    return np.diff(values) / dt


# ============================================================================
# TRAJECTORY SERIES
# ============================================================================

def junction_residual_series(states: Sequence[CoupledSystemState]) -> np.ndarray:
    """J - 8π s along a trajectory."""
    return np.array([junction_residual(s.bulks, s.interface, s.grid) for s in states])


def curvature_jump_rate(states: Sequence[CoupledSystemState], threshold: float = 1.0) -> float:
    """
    Jumps per unit time: steps where the junction residual changes faster
    than threshold.
    """
    if len(states) < 2:
        return 0.0
    residuals = junction_residual_series(states)
    times = np.array([s.t for s in states])
    rates = np.abs(curvature_gradient(residuals, times))
    elapsed = times[-1] - times[0]
    if elapsed <= 0:
        return 0.0
    return float(np.count_nonzero(rates > threshold)) / elapsed


def energy_flux_spikes(states: Sequence[CoupledSystemState], threshold: float = 1.0) -> List[float]:
    """Times at which |Φ_in| at the interface exceeds threshold."""
    return [s.t for s in states
            if abs(incoming_flux(s.bulks, s.interface.x_b, s.grid)) > threshold]
