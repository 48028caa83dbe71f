"""
Monitor Output Models
=====================

This module defines the published output contract of the battery monitor.

The output is structured into two tiers:
    1. BatteryStatus: Published once per tick, consumed by renderers,
       the HTTP surface and any host-side logic
    2. DisplayFrame: Result of a render call for one widget zone

Output Contract:
    {
        "timestamp": 812.3,
        "tick": 8123,
        "writing": false,
        "remaining_mah": 1180.0,
        "remaining_percent": 59,
        "method": "CONSUMPTION",
        "cell_count": 4,
        "pack_volts": 15.42,
        "used_mah": 420.0,
        "min_cell_voltages": [3.82, 3.81, 3.84, 3.83],
        "max_amps": 38.5,
        "max_watts": 601.2
    }

Design Rules:
    - Renderers read ONLY BatteryStatus, never component internals
    - While a session write is in progress, writing=true and the battery
      figures are the last values computed before the write started
"""

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from battmon.models.state import EstimationMethod


class BatteryStatus(BaseModel):
    """
    Latest published battery state.

    Attributes:
        timestamp: Host time of the tick that produced this status
        tick: Number of ticks run by the monitor
        writing: Session record write in progress
        remaining_mah: Usable mAh remaining
        remaining_percent: Remaining percent (may be negative)
        method: Estimation method in use
        cell_count: Configured cell count
        pack_volts: Last accepted total pack voltage
        used_mah: Last consumption sensor value
        min_cell_voltages: Per-cell minima this session
        max_amps: Highest current this session
        max_watts: Highest power this session
    """

    timestamp: float = Field(..., ge=0.0, description="Host time of the tick")
    tick: int = Field(default=0, ge=0, description="Ticks run so far")
    writing: bool = Field(default=False, description="Session write in progress")

    remaining_mah: float = Field(default=0.0, description="Usable mAh remaining")
    remaining_percent: int = Field(default=0, description="Remaining percent")
    method: EstimationMethod = Field(default=EstimationMethod.VOLTAGE)
    cell_count: int = Field(default=0, description="Configured cell count")
    pack_volts: float = Field(default=0.0, ge=0.0, description="Pack voltage")
    used_mah: float = Field(default=0.0, description="Consumed mAh")

    min_cell_voltages: List[float] = Field(default_factory=list)
    max_amps: Optional[float] = Field(default=None)
    max_watts: Optional[float] = Field(default=None)


class LayoutClass(str, Enum):
    """Discrete widget zone classes, largest first."""

    XLARGE = "XLARGE"
    LARGE = "LARGE"
    MEDIUM = "MEDIUM"
    SMALL = "SMALL"
    TINY = "TINY"
    NONE = "NONE"


class DisplayFrame(BaseModel):
    """
    Render result for one widget zone.

    Attributes:
        layout: Layout class resolved from the zone size
        lines: Text lines, top to bottom
        gauge_percent: Fill level of the battery gauge, clamped to [0, 100]
        color: RGB colour of the gauge and the percent text
        blink: Values should blink (pack exhausted)
        writing: Frame shows the writing state instead of battery data
    """

    layout: LayoutClass = Field(...)
    lines: List[str] = Field(default_factory=list)
    gauge_percent: int = Field(default=0, ge=0, le=100)
    color: Tuple[int, int, int] = Field(default=(255, 255, 255))
    blink: bool = Field(default=False)
    writing: bool = Field(default=False)
