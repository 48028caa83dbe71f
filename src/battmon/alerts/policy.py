"""
Alert Policy
============

Audible warnings evaluated once per tick, after the capacity estimate.

Checks (in order):
    1. Percent-remaining announcements (when enabled)
    2. Full-charge check: once per session, any cell below the full
       threshold requests BNFull.wav
    3. Cell-delta check: cells further apart than voltage_delta schedule a
       repeating icw.wav; consistent cells remove it
    4. Missing-cell check: wrong cell count (vector) or an implausibly low
       pack voltage (scalar) schedules a repeating mcw.wav

Design Rules:
    - Checks only request playback or schedule tasks
    - CapacityState is read, never modified
    - Repeating warnings go through the Scheduler so they are debounced
"""

import logging
from typing import List, Optional

import numpy as np

from battmon.config import AlertConfig
from battmon.host.interface import HostServices
from battmon.models.reading import Absent, Scalar, SensorReading, Vector
from battmon.models.sounds import MILESTONE_CUES, SoundCue, sound_path
from battmon.models.state import AlertFlags, CapacityState
from battmon.scheduler.scheduler import Scheduler


logger = logging.getLogger(__name__)


INCONSISTENT_CELL_TASK = "icw"
MISSING_CELL_TASK = "mcw"


def milestone_for(percent: int) -> Optional[int]:
    """
    Milestone announced for a percent value.

    Every 10% at or above 10%, every 5% below.

    Returns:
        The percent itself when it is a milestone, else None
    """
    modulus = 5 if percent < 10 else 10
    if percent % modulus == 0:
        return percent
    return None


class AlertPolicy:
    """
    Per-tick alert evaluation.

    Attributes:
        host: Host services (playback, link state)
        scheduler: Scheduler owning repeating warnings
        config: Thresholds and announcement options
        flags: Latches and counters, restored on reset

    Example:
        policy = AlertPolicy(host, scheduler, AlertConfig())
        played = policy.evaluate(capacity_state, history.latest.voltage)
    """

    def __init__(
        self,
        host: HostServices,
        scheduler: Scheduler,
        config: Optional[AlertConfig] = None,
    ) -> None:
        """
        Initialize alert policy.

        Args:
            host: Host services
            scheduler: Scheduler for repeating warnings
            config: Alert thresholds
        """
        self.host = host
        self.scheduler = scheduler
        self.config = config or AlertConfig()
        self.flags = AlertFlags()

        logger.info(
            f"AlertPolicy initialized: full={self.config.cell_full_voltage}V, "
            f"delta={self.config.voltage_delta}V, "
            f"announce={self.config.announce_percent}"
        )

    def _path(self, cue: SoundCue) -> str:
        return sound_path(self.config.sound_dir, cue)

    def _play(self, cue: SoundCue) -> SoundCue:
        self.host.play(self._path(cue))
        return cue

    def _schedule_warning(self, name: str, cue: SoundCue) -> None:
        if name not in self.scheduler:
            logger.warning(f"Scheduling repeating warning '{name}' ({cue.value})")
        self.scheduler.add(
            name,
            True,
            self.config.warning_repeat_sec,
            self.host.play,
            self._path(cue),
            periodic=True,
        )

    def _cancel_warning(self, name: str) -> None:
        if name in self.scheduler:
            logger.info(f"Warning '{name}' resolved")
        self.scheduler.remove(name)

    # -------------------------------------------------------------------------
    # Checks
    # -------------------------------------------------------------------------

    def play_percent_remaining(self, percent: int) -> List[SoundCue]:
        """
        Announce percent-remaining milestones and the empty cue.

        Args:
            percent: Current remaining percent

        Returns:
            Cues played
        """
        played = []
        flags = self.flags

        milestone = milestone_for(percent)
        if milestone is not None and milestone != flags.last_percent_announced:
            cue = MILESTONE_CUES.get(milestone)
            if cue is not None:
                played.append(self._play(cue))
                flags.last_percent_announced = milestone

        if (
            percent <= 0
            and flags.at_zero_played_count < self.config.play_at_zero
            and self.host.link_active()
        ):
            played.append(self._play(SoundCue.BAT_EMPTY))
            if self.config.fun_sounds:
                played.append(self._play(SoundCue.CRASH))
                played.append(self._play(SoundCue.AMBULANCE))
            flags.at_zero_played_count += 1
            logger.warning(f"Battery exhausted ({percent}%)")
        elif flags.at_zero_played_count == self.config.play_at_zero and percent > 0:
            flags.at_zero_played_count = 0

        return played

    def check_for_full_battery(self, reading: SensorReading, cell_count: int) -> List[SoundCue]:
        """
        Warn once per session if the pack was not fully charged.

        A vector is checked cell by cell. A scalar is a pack voltage and is
        compared against cell_full_voltage * cell_count.
        """
        if not self.flags.check_bat_not_full or isinstance(reading, Absent):
            return []

        threshold = self.config.cell_full_voltage
        if isinstance(reading, Vector):
            not_full = any(v < threshold for v in reading.values)
        else:
            not_full = reading.value < threshold * cell_count

        self.flags.check_bat_not_full = False
        if not_full:
            logger.warning(f"Battery not fully charged (threshold {threshold}V per cell)")
            return [self._play(SoundCue.NOT_FULL)]
        return []

    def check_cell_delta_voltage(self, reading: SensorReading) -> None:
        """Schedule or cancel the inconsistent-cell warning."""
        if not isinstance(reading, Vector):
            return

        spread = float(np.ptp(reading.values)) if reading.values else 0.0
        if spread > self.config.voltage_delta:
            self._schedule_warning(INCONSISTENT_CELL_TASK, SoundCue.INCONSISTENT_CELL)
        else:
            self._cancel_warning(INCONSISTENT_CELL_TASK)

    def check_for_missing_cells(self, reading: SensorReading, cell_count: int) -> None:
        """Schedule or cancel the missing-cell warning."""
        if cell_count <= 0:
            return

        missing = False
        if isinstance(reading, Vector):
            missing = len(reading.values) != cell_count
        elif isinstance(reading, Scalar):
            missing = cell_count * self.config.missing_cell_voltage > reading.value

        if missing:
            self._schedule_warning(MISSING_CELL_TASK, SoundCue.MISSING_CELL)
        else:
            self._cancel_warning(MISSING_CELL_TASK)

    # -------------------------------------------------------------------------
    # Per-tick entry point
    # -------------------------------------------------------------------------

    def evaluate(self, state: CapacityState, reading: SensorReading) -> List[SoundCue]:
        """
        Run every check for one tick.

        Args:
            state: Capacity state computed this tick
            reading: Voltage reading ingested this tick

        Returns:
            Cues played immediately (scheduled warnings excluded)
        """
        played = []
        if self.config.announce_percent:
            played.extend(self.play_percent_remaining(state.bat_rem_per))

        played.extend(self.check_for_full_battery(reading, state.cell_count))

        if not isinstance(reading, Absent):
            self.check_cell_delta_voltage(reading)
            self.check_for_missing_cells(reading, state.cell_count)

        return played

    def reset(self) -> None:
        """Restore every latch and counter."""
        self.flags = AlertFlags()
        logger.info("Alert flags reset")

    def on_capacity_reinit(self) -> None:
        """The estimator re-ran init(): re-arm the empty cue."""
        self.flags.at_zero_played_count = 0

    def get_metrics(self) -> dict:
        """Get alert metrics for observability."""
        return {
            "check_bat_not_full": self.flags.check_bat_not_full,
            "at_zero_played_count": self.flags.at_zero_played_count,
            "last_percent_announced": self.flags.last_percent_announced,
            "inconsistent_cell_warning": INCONSISTENT_CELL_TASK in self.scheduler,
            "missing_cell_warning": MISSING_CELL_TASK in self.scheduler,
        }
