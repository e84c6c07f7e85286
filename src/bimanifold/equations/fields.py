# fields.py
# =============================================================================
# Coupled System State
# =============================================================================
#
# Periodic grid x_i = i dx, dx = L / N, so x = L is identified with x = 0.
# Every container copies its arrays and marks them read-only; a time step
# always builds new containers instead of writing into old ones.

import numpy as np
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from ..coupling_policy import CouplingParams

FIELD_NAMES = ('rho', 'X', 'psi', 'rho_dot', 'X_dot', 'psi_dot')


def _frozen_copy(arr) -> np.ndarray:
    out = np.array(arr, dtype=np.float64)
    out.setflags(write=False)
    return out


@dataclass(frozen=True)
class GridSpec:
    N: int
    L: float
    dx: float = field(init=False)

    def __post_init__(self):
        if int(self.N) != self.N or self.N < 3:
            raise ValueError(f"Grid needs at least 3 points, got N={self.N}")
        if not self.L > 0:
            raise ValueError(f"Domain length must be positive, got L={self.L}")
        object.__setattr__(self, 'N', int(self.N))
        object.__setattr__(self, 'L', float(self.L))
        object.__setattr__(self, 'dx', self.L / self.N)

    def coordinates(self) -> np.ndarray:
        return np.arange(self.N) * self.dx

    def wrap(self, x: float) -> float:
        """Map x into [0, L)."""
        w = x % self.L
        return 0.0 if w >= self.L else w

    def nearest_index(self, x: float) -> int:
        return int(np.floor(self.wrap(x) / self.dx + 0.5)) % self.N


@dataclass(frozen=True, eq=False)
class BulkFieldState:
    """Lapse ρ, dilaton X and matter ψ with their time derivatives.

    The integrator reuses this container for the time derivative of a state.
    """
    rho: np.ndarray
    X: np.ndarray
    psi: np.ndarray
    rho_dot: np.ndarray
    X_dot: np.ndarray
    psi_dot: np.ndarray

    def __post_init__(self):
        lengths = set()
        for name in FIELD_NAMES:
            arr = _frozen_copy(getattr(self, name))
            if arr.ndim != 1:
                raise ValueError(f"{name} must be one-dimensional, got shape {arr.shape}")
            lengths.add(arr.shape[0])
            object.__setattr__(self, name, arr)
        if len(lengths) != 1:
            raise ValueError(f"Bulk field arrays have mismatched lengths: {sorted(lengths)}")

    @classmethod
    def zeros(cls, N: int) -> 'BulkFieldState':
        return cls(*(np.zeros(N) for _ in FIELD_NAMES))

    @property
    def N(self) -> int:
        return self.rho.shape[0]

    def arrays(self) -> Tuple[np.ndarray, ...]:
        return tuple(getattr(self, name) for name in FIELD_NAMES)

    def axpy(self, h: float, rate: 'BulkFieldState') -> 'BulkFieldState':
        """self + h * rate"""
        return BulkFieldState(*(a + h * b for a, b in zip(self.arrays(), rate.arrays())))

    def is_finite(self) -> bool:
        return all(np.all(np.isfinite(a)) for a in self.arrays())


@dataclass(frozen=True)
class InterfaceState:
    """Worldline of the membrane between the bulks."""
    s: float
    tau: float
    x_b: float
    v_b: float
    theta: float

    def __post_init__(self):
        if self.s < 0:
            raise ValueError(f"Interface entropy must be non-negative, got {self.s}")
        for name in ('s', 'tau', 'x_b', 'v_b', 'theta'):
            object.__setattr__(self, name, float(getattr(self, name)))


@dataclass(frozen=True, eq=False)
class CoupledSystemState:
    bulks: Tuple[BulkFieldState, ...]
    interface: InterfaceState
    t: float
    dt: float
    grid: GridSpec
    params: CouplingParams = field(default_factory=CouplingParams)
    index: int = field(init=False)

    def __post_init__(self):
        bulks = tuple(self.bulks)
        if not 1 <= len(bulks) <= 2:
            raise ValueError(f"Expected a physical and an optional shadow bulk, got {len(bulks)}")
        for bulk in bulks:
            if bulk.N != self.grid.N:
                raise ValueError(f"Bulk has {bulk.N} points but grid has N={self.grid.N}")
        object.__setattr__(self, 'bulks', bulks)
        # nearest grid point to the interface, cached for sampling
        object.__setattr__(self, 'index', self.grid.nearest_index(self.interface.x_b))

    @property
    def physical(self) -> BulkFieldState:
        return self.bulks[0]

    @property
    def shadow(self) -> Optional[BulkFieldState]:
        return self.bulks[1] if len(self.bulks) > 1 else None

    def evolve(self, **changes) -> 'CoupledSystemState':
        return replace(self, **changes)
