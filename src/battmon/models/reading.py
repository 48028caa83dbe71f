"""
Sensor Reading Models
=====================

Typed representation of raw host sensor values.

The host returns whatever the sensor produces: nothing, a number, or a
table of per-cell voltages. That shape is decided ONCE here, at the read
boundary, and everything downstream works with the tagged variant:

    SensorReading = Absent | Scalar(value) | Vector(values)

Design Rules:
    - classify_reading never raises; unusable values become Absent
    - Lua-style tables ({1: v1, 2: v2}) are ordered by key
    - Readings are immutable
"""

import logging
import math
from dataclasses import dataclass
from numbers import Real
from typing import Any, Mapping, Optional, Tuple, Union

import numpy as np


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Absent:
    """No value: sensor not configured, not discovered, or unusable."""

    @property
    def total(self) -> float:
        return 0.0

    @property
    def cells(self) -> Tuple[float, ...]:
        return ()

    def __repr__(self) -> str:
        return "Absent()"


@dataclass(frozen=True, slots=True)
class Scalar:
    """
    Single numeric value.

    For a voltage sensor this is a pack voltage (e.g. VFAS); it is treated
    as one logical cell wherever per-cell data is expected.
    """

    value: float

    @property
    def total(self) -> float:
        return self.value

    @property
    def cells(self) -> Tuple[float, ...]:
        return (self.value,)


@dataclass(frozen=True, slots=True)
class Vector:
    """Ordered per-cell values (e.g. FLVSS / Cels sensor)."""

    values: Tuple[float, ...]

    @property
    def total(self) -> float:
        return float(sum(self.values))

    @property
    def cells(self) -> Tuple[float, ...]:
        return self.values

    def __len__(self) -> int:
        return len(self.values)


SensorReading = Union[Absent, Scalar, Vector]

ABSENT = Absent()


def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    result = float(value)
    if math.isnan(result):
        return None
    return result


def classify_reading(raw: Any) -> SensorReading:
    """
    Classify a raw host value into a SensorReading.

    Args:
        raw: Value returned by the host for a sensor

    Returns:
        Absent, Scalar or Vector
    """
    if raw is None or isinstance(raw, str):
        return ABSENT

    if isinstance(raw, np.ndarray):
        raw = raw.tolist()

    if isinstance(raw, Mapping):
        try:
            raw = [raw[key] for key in sorted(raw)]
        except TypeError:
            logger.debug(f"Unorderable sensor table keys: {list(raw)!r}")
            return ABSENT

    if isinstance(raw, (list, tuple)):
        values = [_to_float(v) for v in raw]
        if not values or any(v is None for v in values):
            return ABSENT
        return Vector(tuple(values))

    value = _to_float(raw)
    if value is None:
        logger.debug(f"Unusable sensor value: {raw!r}")
        return ABSENT
    return Scalar(value)


@dataclass(frozen=True, slots=True)
class Sample:
    """
    One tick worth of raw telemetry.

    Attributes:
        timestamp: Monotonic host time of the read
        current: Current draw in amps, None when the sensor is absent
        voltage: Per-cell vector, pack scalar, or Absent
        throttle: Throttle position in percent, None when unavailable
    """

    timestamp: float
    current: Optional[float]
    voltage: SensorReading
    throttle: Optional[float] = None

    def __repr__(self) -> str:
        return (
            f"Sample(t={self.timestamp:.2f}, amps={self.current}, "
            f"voltage={self.voltage!r}, throttle={self.throttle})"
        )
