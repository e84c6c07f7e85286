# Bulk field equations, worldline dynamics and the coupled state containers

from .fields import GridSpec, BulkFieldState, InterfaceState, CoupledSystemState
from .bulk_rhs import compute_bulk_rhs, periodic_gradient, periodic_laplacian
from .worldline import EnergySource, WorldlineRates, worldline_rates

__all__ = [
    'GridSpec', 'BulkFieldState', 'InterfaceState', 'CoupledSystemState',
    'compute_bulk_rhs', 'periodic_gradient', 'periodic_laplacian',
    'EnergySource', 'WorldlineRates', 'worldline_rates',
]
