"""
Session Record Models
=====================

Logical format of the persisted flight session log.

One SessionRecord is appended per reset-to-reset session, keyed by
flight mode and battery id. Each record carries the session extrema and a
decimated trace of samples.

Record Layout (one JSON object per line):
    {
        "timestamp": 1712.5,
        "flight_mode": 0,
        "battery_id": 3,
        "duration_sec": 312.4,
        "cell_count": 4,
        "min_cell_voltages": [3.71, 3.69, 3.72, 3.70],
        "max_amps": 41.2,
        "max_watts": 612.0,
        "used_mah": 1320.0,
        "final_percent": 20,
        "samples": [{"timestamp": 1400.1, "volts": 16.7, "amps": 12.1, "throttle": 55.0}]
    }
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class SampleRecord(BaseModel):
    """Decimated per-tick trace row kept in the session history."""

    timestamp: float = Field(..., description="Monotonic host time of the sample")
    volts: float = Field(..., ge=0.0, description="Total pack voltage (0 if absent)")
    amps: Optional[float] = Field(default=None, description="Current draw in amps")
    throttle: Optional[float] = Field(default=None, description="Throttle in percent")


class SessionRecord(BaseModel):
    """
    Summary of one flight session written on reset.

    Attributes:
        timestamp: Host time the record was built
        flight_mode: Flight mode bank the configuration came from
        battery_id: Battery identity (host global variable)
        duration_sec: Time between first and last sample of the session
        cell_count: Number of cells observed
        min_cell_voltages: Per-cell minimum voltage
        max_amps: Highest current seen, None if never observed
        max_watts: Highest power seen, None if never observed
        used_mah: Consumed capacity at the time of writing
        final_percent: Remaining percent at the time of writing
        samples: Decimated trace of the session
    """

    timestamp: float = Field(..., description="Host time the record was built")
    flight_mode: int = Field(..., ge=0, description="Flight mode bank")
    battery_id: int = Field(..., description="Battery identity")
    duration_sec: float = Field(default=0.0, ge=0.0, description="Session duration")
    cell_count: int = Field(default=0, ge=0, description="Cells observed")
    min_cell_voltages: List[float] = Field(default_factory=list)
    max_amps: Optional[float] = Field(default=None)
    max_watts: Optional[float] = Field(default=None)
    used_mah: Optional[float] = Field(default=None)
    final_percent: Optional[int] = Field(default=None)
    samples: List[SampleRecord] = Field(default_factory=list)
