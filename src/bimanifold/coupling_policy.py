"""Coupling policy: externalized constants of the interface coupling.

Every tunable number of the worldline, thermal, bulk-source, monitor and
time-step layers lives here so runs can be reproduced from a JSON file.
"""

import json
import logging
from dataclasses import dataclass, asdict
from typing import Dict, Any
from pathlib import Path

logger = logging.getLogger('bimanifold.policy')

SECTIONS = ('worldline', 'thermal', 'bulk', 'monitor', 'timestep')


@dataclass(frozen=True)
class CouplingParams:
    """Immutable subset of the policy carried by every CoupledSystemState."""
    flux_coupling: float = 0.1
    junction_stiffness: float = 0.01
    effective_mass: float = 4.0
    dissipation: float = 0.05
    base_temperature: float = 1.0
    entropy_heating: float = 0.1
    curvature_heating: float = 0.05
    interface_source: float = 1.0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


class CouplingPolicy:
    """Externalized coupling constants.

    Supports:
    - Default initialization
    - Loading from JSON config files
    - Validation of values
    - Export to dict for reproducibility
    """

    def __init__(self):
        self.worldline = {
            'flux_coupling': 0.1,        # λ, force per unit energy flux
            'junction_stiffness': 0.01,  # k_J, spring on the dilaton-gradient jump
            'effective_mass': 4.0,       # m_eff
            'dissipation': 0.05          # κ, entropy loss rate
        }
        self.thermal = {
            'base_temperature': 1.0,
            'entropy_heating': 0.1,
            'curvature_heating': 0.05
        }
        self.bulk = {
            'interface_source': 1.0      # weight of 8π s deposited into the dilaton equation
        }
        self.monitor = {
            'conservation_epsilon': 1e-6,
            'entropy_epsilon': 1e-6,
            'report_interval': 0.1
        }
        self.timestep = {
            'dt_nominal': 0.01,
            'dt_min': 0.001,
            'dt_max': 0.1,
            'event_threshold': 0.05,
            'event_boost': 0.5
        }

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'CouplingPolicy':
        policy = cls()
        for section, values in config_dict.items():
            if section not in SECTIONS:
                raise ValueError(f"Unknown policy section: {section}")
            if not isinstance(values, dict):
                raise ValueError(f"Policy section {section} must be a mapping")
            current = getattr(policy, section)
            unknown = set(values) - set(current)
            if unknown:
                raise ValueError(f"Unknown keys in {section}: {sorted(unknown)}")
            current.update(values)
        policy.validate()
        return policy

    @classmethod
    def from_file(cls, config_path: str) -> 'CouplingPolicy':
        """Load CouplingPolicy from JSON config file.

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config format is invalid
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        try:
            with open(config_path, 'r') as f:
                config_dict = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file: {e}")

        if not isinstance(config_dict, dict):
            raise ValueError("Config root must be a JSON object")

        policy = cls.from_dict(config_dict)
        logger.info(f"Loaded coupling policy from {config_path}")
        return policy

    def to_dict(self) -> Dict[str, Any]:
        return {section: dict(getattr(self, section)) for section in SECTIONS}

    def to_params(self) -> CouplingParams:
        return CouplingParams(**self.worldline, **self.thermal, **self.bulk)

    def validate(self) -> None:
        """Validate value types, signs and orderings.

        Raises:
            ValueError: If any value is invalid
        """
        for section in SECTIONS:
            for name, value in getattr(self, section).items():
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise ValueError(f"{section}.{name} must be numeric, got {type(value)}")

        positive = {
            'worldline.effective_mass': self.worldline['effective_mass'],
            'thermal.base_temperature': self.thermal['base_temperature'],
            'monitor.conservation_epsilon': self.monitor['conservation_epsilon'],
            'monitor.entropy_epsilon': self.monitor['entropy_epsilon'],
            'monitor.report_interval': self.monitor['report_interval'],
            'timestep.dt_nominal': self.timestep['dt_nominal'],
            'timestep.dt_min': self.timestep['dt_min'],
            'timestep.dt_max': self.timestep['dt_max'],
            'timestep.event_boost': self.timestep['event_boost'],
        }
        for name, value in positive.items():
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")

        non_negative = {
            'worldline.junction_stiffness': self.worldline['junction_stiffness'],
            'worldline.dissipation': self.worldline['dissipation'],
            'thermal.entropy_heating': self.thermal['entropy_heating'],
            'thermal.curvature_heating': self.thermal['curvature_heating'],
            'timestep.event_threshold': self.timestep['event_threshold'],
        }
        for name, value in non_negative.items():
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")

        ts = self.timestep
        if not ts['dt_min'] <= ts['dt_nominal'] <= ts['dt_max']:
            raise ValueError(
                f"timestep must satisfy dt_min ({ts['dt_min']}) <= dt_nominal "
                f"({ts['dt_nominal']}) <= dt_max ({ts['dt_max']})"
            )

        logger.debug("Coupling policy validation passed")
