"""
Monitor State Models
====================

This module defines the internal state owned by each core component.

Core Concepts:
    - EstimatorPhase: Lifecycle of the capacity estimator
    - EstimationMethod: Voltage curve or coulomb counting, fixed per session
    - CapacityState: Capacity estimator output and bookkeeping
    - HistoryState: Running extrema and trace for one flight session
    - AlertFlags: Per-condition latches and counters of the alert policy

Lifecycle:
    UNINITIALIZED -> ACTIVE -> PENDING_REINIT -> ACTIVE ...

    PENDING_REINIT covers the window between the reset switch firing and
    the session record being fully written.

Example:
    from battmon.models.state import CapacityState

    state = CapacityState(
        bat_cap_full_mah=2000,
        bat_cap_mah=1600,
        bat_remain_mah=1600,
        cell_count=4,
    )
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from battmon.models.session import SampleRecord


class EstimatorPhase(str, Enum):
    """
    Lifecycle phases of the capacity estimator.

    Attributes:
        UNINITIALIZED: init() has not run yet
        ACTIVE: Recomputing every tick
        PENDING_REINIT: Reset requested, waiting for the session write
    """

    UNINITIALIZED = "UNINITIALIZED"
    ACTIVE = "ACTIVE"
    PENDING_REINIT = "PENDING_REINIT"


class EstimationMethod(str, Enum):
    """Source of the remaining-percent figure."""

    VOLTAGE = "VOLTAGE"
    CONSUMPTION = "CONSUMPTION"


class CapacityState(BaseModel):
    """
    Capacity estimator state.

    The estimation method is chosen in init() and holds for the whole
    session. bat_rem_per is NOT clamped: the voltage method goes negative
    once the pack is into its reserve.

    Attributes:
        phase: Estimator lifecycle phase
        bat_cap_full_mah: Configured full capacity
        bat_cap_mah: Usable capacity (full minus reserve)
        bat_remain_mah: Usable capacity minus consumed
        bat_rem_per: Remaining percent published to alerts and display
        last_bat_used_mah: Last consumption sensor value
        use_volts_not_mah: True when the voltage curve drives bat_rem_per
        cell_count: Configured number of cells
        can_reinit: Set once consumption > 0 was observed
        volts_now: Last accepted total pack voltage
        volts_percent_rem: Curve percent for volts_now / cell_count
        reserve_percent: Reserve applied in init()
    """

    phase: EstimatorPhase = Field(default=EstimatorPhase.UNINITIALIZED)

    bat_cap_full_mah: float = Field(default=0.0, ge=0.0)
    bat_cap_mah: float = Field(default=0.0, ge=0.0)
    bat_remain_mah: float = Field(default=0.0)
    bat_rem_per: int = Field(default=0)
    last_bat_used_mah: float = Field(default=0.0)

    use_volts_not_mah: bool = Field(default=True)
    cell_count: int = Field(default=0)
    can_reinit: bool = Field(default=False)

    volts_now: float = Field(default=0.0, ge=0.0)
    volts_percent_rem: int = Field(default=0)
    reserve_percent: int = Field(default=0, ge=0, le=100)

    @property
    def method(self) -> EstimationMethod:
        if self.use_volts_not_mah:
            return EstimationMethod.VOLTAGE
        return EstimationMethod.CONSUMPTION


class HistoryState(BaseModel):
    """
    Running aggregates for one flight session.

    Destroyed and recreated wholesale on every reset.

    Attributes:
        cell_count: Longest cell vector observed
        min_cell_voltage: Per-cell minimum, never increases once set
        max_amps: Highest current, None until first observed
        max_watts: Highest power, None until first observed
        samples_written: Trace rows appended so far
        persisted_records: Append-only decimated trace
        ticks: Ticks processed
        started_at: Timestamp of the first sample
        last_sample_at: Timestamp of the latest sample
    """

    cell_count: int = Field(default=0, ge=0)
    min_cell_voltage: List[float] = Field(default_factory=list)
    max_amps: Optional[float] = Field(default=None)
    max_watts: Optional[float] = Field(default=None)
    samples_written: int = Field(default=0, ge=0)
    persisted_records: List[SampleRecord] = Field(default_factory=list)
    ticks: int = Field(default=0, ge=0)
    started_at: Optional[float] = Field(default=None)
    last_sample_at: Optional[float] = Field(default=None)

    @property
    def duration_sec(self) -> float:
        if self.started_at is None or self.last_sample_at is None:
            return 0.0
        return max(0.0, self.last_sample_at - self.started_at)


class AlertFlags(BaseModel):
    """
    Alert policy latches and counters, restored on every reset.

    Attributes:
        check_bat_not_full: Full-charge check still armed for this session
        at_zero_played_count: Times the empty cue has played
        last_percent_announced: Last milestone that was announced
    """

    check_bat_not_full: bool = Field(default=True)
    at_zero_played_count: int = Field(default=0, ge=0)
    last_percent_announced: int = Field(default=0)
