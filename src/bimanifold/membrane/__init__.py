# Interface membrane: kinematics, thermodynamics and junction conditions

from .interface import (
    MembraneParams, ShearRate, EnergyFlux,
    expansion_scalar, shear_rate_tensor, surface_stress_tensor,
    membrane_temperature, entropy_balance, entropy_evolution,
)
from .membrane import MembraneState, raychaudhuri_equation, evolve_membrane
from .junction import (
    JunctionVerificationResult, verify_junction_condition,
    surface_stress_from_junction, compute_jump_conditions,
)

__all__ = [
    'MembraneParams', 'ShearRate', 'EnergyFlux',
    'expansion_scalar', 'shear_rate_tensor', 'surface_stress_tensor',
    'membrane_temperature', 'entropy_balance', 'entropy_evolution',
    'MembraneState', 'raychaudhuri_equation', 'evolve_membrane',
    'JunctionVerificationResult', 'verify_junction_condition',
    'surface_stress_from_junction', 'compute_jump_conditions',
]
