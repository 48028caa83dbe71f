"""
Lithium Cell Voltage Curve
==========================

Maps a single cell's resting voltage to an estimated percent remaining.

The curve is a fixed step function measured on a lithium pack discharged
at a constant rate. It is NOT interpolated: a voltage between two table
points returns the percent of the first point at or above it.

    > 4.20 V  -> 100
    < 3.60 V  -> 0
    otherwise -> first (volts, percent) with volts >= cell voltage
"""

from typing import Tuple


FULL_CELL_VOLTS = 4.200
EMPTY_CELL_VOLTS = 3.60

VOLT_TO_PERCENT_TABLE: Tuple[Tuple[float, int], ...] = (
    (3.60, 10), (3.70, 15), (3.72, 20), (3.74, 25),
    (3.76, 30), (3.78, 35), (3.80, 40), (3.81, 45),
    (3.83, 50), (3.85, 55), (3.87, 60), (3.98, 65),
    (3.99, 70), (4.00, 75), (4.03, 80), (4.06, 85),
    (4.10, 90), (4.15, 95), (4.20, 100),
)


def find_percent_rem(cell_voltage: float) -> int:
    """
    Estimate percent remaining from one cell's voltage.

    Args:
        cell_voltage: Voltage of a single cell

    Returns:
        Percent remaining in [0, 100]
    """
    if cell_voltage > FULL_CELL_VOLTS:
        return 100
    if cell_voltage < EMPTY_CELL_VOLTS:
        return 0

    for volts, percent in VOLT_TO_PERCENT_TABLE:
        if volts >= cell_voltage:
            return percent

    # Only NaN gets here
    return 0
