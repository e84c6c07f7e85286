# state_invariants.py
# =============================================================================
# Post-Step Sanity Checks
# =============================================================================
#
# Invariants checked after every accepted RK4 step:
# 1. All bulk arrays finite (not NaN/inf)
# 2. Interface scalars finite
# 3. Entropy s >= 0
# 4. Proper time tau non-decreasing
# 5. |v_b| < 1 (otherwise the proper-time rate is clamped to zero)
# 6. x_b inside [0, L)
#
# Violations are reported to the caller and logged, never raised.

import numpy as np
import logging
from typing import Tuple, List, Dict, Any, Optional

logger = logging.getLogger('bimanifold.invariants')


class StateInvariantChecker:
    """Validates a CoupledSystemState after a step."""

    def __init__(self, tolerance: float = 1e-12):
        """
        Args:
            tolerance: Numerical slack for the ordering checks
        """
        self.tolerance = tolerance
        self.violations = []

    def check(self, state: Any, previous: Optional[Any] = None) -> Tuple[bool, List[str], Dict[str, Any]]:
        """Verify the invariants of state, optionally against the previous state.

        Returns:
            (is_valid, violations_list, margin_dict)
        """
        violations = []
        margins = {}

        for side, bulk in zip(('physical', 'shadow'), state.bulks):
            finite = bulk.is_finite()
            margins[f'{side}_finite'] = finite
            if not finite:
                violations.append(f"{side} bulk contains NaN/inf")

        iface = state.interface
        scalars = (iface.s, iface.tau, iface.x_b, iface.v_b, iface.theta)
        if not all(np.isfinite(scalars)):
            violations.append("Interface state contains NaN/inf")

        margins['entropy'] = iface.s
        if iface.s < 0:
            violations.append("Interface entropy negative")

        margins['speed'] = abs(iface.v_b)
        if abs(iface.v_b) >= 1.0:
            violations.append("Interface speed |v_b| >= 1")

        if not 0.0 <= iface.x_b < state.grid.L:
            violations.append("Interface position outside [0, L)")

        if previous is not None:
            margins['tau_increment'] = iface.tau - previous.interface.tau
            if iface.tau < previous.interface.tau - self.tolerance:
                violations.append("Proper time decreased")

        is_valid = len(violations) == 0
        if not is_valid:
            self.violations.append({'t': state.t, 'violations': violations, 'margins': margins})
            logger.warning("State invariants violated", extra={
                "extra_data": {
                    "t": state.t,
                    "violations": violations,
                    "margins": margins,
                }
            })

        return is_valid, violations, margins
