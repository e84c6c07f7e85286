"""
Smoke test for bimanifold installation and imports.

This test verifies that:
1. The package installs correctly
2. All major imports resolve
3. A scenario can be built and stepped once

This is the "first line of defense" against import errors.
"""

import pytest


def test_critical_imports():
    """Test that all critical modules can be imported."""
    import bimanifold

    from bimanifold.geometry.tensor_algebra import Tensor, Metric, inverse, determinant
    from bimanifold.geometry.geometry import christoffel_symbols, ricci_tensor, einstein_tensor
    from bimanifold.membrane.interface import surface_stress_tensor, entropy_evolution
    from bimanifold.membrane.membrane import raychaudhuri_equation, evolve_membrane
    from bimanifold.membrane.junction import verify_junction_condition, compute_jump_conditions
    from bimanifold.equations.fields import GridSpec, BulkFieldState, CoupledSystemState
    from bimanifold.equations.bulk_rhs import compute_bulk_rhs
    from bimanifold.equations.worldline import worldline_rates
    from bimanifold.stepper import CoupledRK4Stepper, step
    from bimanifold.timestep import FixedTimeStep, EventDrivenTimeStep
    from bimanifold.conservation import ConservationMonitor, check_conservation
    from bimanifold.scenarios import initialize, simulate, spectral_acceleration, classify_orbit
    from bimanifold.spectral import extract_spectral_signature
    from bimanifold.coupling_policy import CouplingPolicy
    from bimanifold.logging_config import setup_logging, JSONFormatter

    assert bimanifold.__version__ == "0.1.0"


def test_package_exports():
    """Test that the top-level namespace exposes the public API."""
    import bimanifold

    for name in bimanifold.__all__:
        assert hasattr(bimanifold, name), f"missing export {name}"


def test_single_step_runs():
    """Build the smooth scenario and take one step."""
    from bimanifold import initialize, step

    state = initialize("smooth", 16, 1.0)
    new_state = step(state, 0.01)

    assert new_state.t == pytest.approx(0.01)
    assert new_state.physical.is_finite()
