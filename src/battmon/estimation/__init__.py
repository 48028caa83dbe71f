"""
Estimation Module
=================

Remaining capacity estimation.

Components:
    - find_percent_rem: Lithium cell voltage curve lookup
    - CapacityEstimator: Voltage / coulomb-counting blend state machine
"""

from battmon.estimation.capacity import CapacityEstimator, EstimateResult, ReinitReason
from battmon.estimation.voltage_curve import (
    EMPTY_CELL_VOLTS,
    FULL_CELL_VOLTS,
    VOLT_TO_PERCENT_TABLE,
    find_percent_rem,
)

__all__ = [
    "CapacityEstimator",
    "EstimateResult",
    "ReinitReason",
    "find_percent_rem",
    "FULL_CELL_VOLTS",
    "EMPTY_CELL_VOLTS",
    "VOLT_TO_PERCENT_TABLE",
]
