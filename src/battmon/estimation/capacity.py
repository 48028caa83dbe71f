"""
Capacity Estimator
==================

State machine fusing voltage-curve and coulomb-counting estimates into a
single remaining-mAh / remaining-percent figure.

Phases:
    UNINITIALIZED -> ACTIVE -> PENDING_REINIT -> ACTIVE ...

init():
    bat_cap_full_mah = GV[capacity] * scale
    bat_cap_mah      = bat_cap_full_mah * (100 - reserve) / 100
    bat_remain_mah   = bat_cap_mah
    method           = VOLTAGE if no consumption sensor or bat_cap_mah == 0
                       else CONSUMPTION (fixed until the next init)

Per tick (ACTIVE):
    1. Capacity or cell-count global changed   -> init()
    2. Consumption sensor reads 0 after usage  -> init() (telemetry reset)
       bat_remain_mah = bat_cap_mah - used_mah
    3. volts_now adopts the pack total unless it looks like a dropout
       volts_percent_rem = find_percent_rem(volts_now / cell_count)
    4. Blend:
         VOLTAGE:     bat_rem_per = volts_percent_rem - reserve
         CONSUMPTION: bat_rem_per = floor(bat_remain_mah / bat_cap_full_mah * 100)

The two formulas are deliberately asymmetric: the voltage method subtracts
the reserve after the curve lookup and may go negative; the consumption
method divides by FULL capacity, which already nets out the reserve.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from battmon.config import CapacityConfig, GlobalVariableConfig
from battmon.estimation.voltage_curve import find_percent_rem
from battmon.history.aggregator import History
from battmon.host.interface import HostServices
from battmon.models.reading import Absent, classify_reading
from battmon.models.state import CapacityState, EstimatorPhase


logger = logging.getLogger(__name__)


class ReinitReason(str, Enum):
    """
    Why the estimator re-ran init().

    Attributes:
        STARTUP: First update after construction
        CONFIG_CHANGED: Capacity or cell-count global was edited
        TELEMETRY_RESET: Consumption returned to zero after usage
        RESET_SWITCH: Reset switch completed a reset
    """

    STARTUP = "STARTUP"
    CONFIG_CHANGED = "CONFIG_CHANGED"
    TELEMETRY_RESET = "TELEMETRY_RESET"
    RESET_SWITCH = "RESET_SWITCH"


@dataclass
class EstimateResult:
    """Result of one estimator update."""

    state: CapacityState
    reinitialized: bool
    reason: Optional[ReinitReason] = None

    def __repr__(self) -> str:
        return (
            f"EstimateResult({self.state.bat_rem_per}%, "
            f"{self.state.bat_remain_mah:.0f}mAh, reinit={self.reason})"
        )


class CapacityEstimator:
    """
    Remaining capacity estimator.

    Attributes:
        host: Host services (globals, consumption sensor)
        consumption_sensor: Used-mAh sensor name ('' to ignore)
        voltage_sensor: Voltage sensor name ('' to ignore)
        capacity: Reserve and dropout settings
        global_vars: Global variable slots

    Example:
        estimator = CapacityEstimator(host, "mAh", "Cels")
        result = estimator.update(history)
        print(result.state.bat_rem_per)
    """

    def __init__(
        self,
        host: HostServices,
        consumption_sensor: str,
        voltage_sensor: str,
        capacity: Optional[CapacityConfig] = None,
        global_vars: Optional[GlobalVariableConfig] = None,
    ) -> None:
        """
        Initialize capacity estimator.

        Args:
            host: Host services
            consumption_sensor: Used-mAh sensor name ('' to ignore)
            voltage_sensor: Voltage sensor name ('' to ignore)
            capacity: Reserve and dropout settings
            global_vars: Global variable slots
        """
        self.host = host
        self.consumption_sensor = consumption_sensor
        self.voltage_sensor = voltage_sensor
        self.capacity = capacity or CapacityConfig()
        self.global_vars = global_vars or GlobalVariableConfig()

        self._state = CapacityState(reserve_percent=self.capacity.reserve_percent)

        logger.info(
            f"CapacityEstimator initialized: consumption='{consumption_sensor}', "
            f"voltage='{voltage_sensor}', reserve={self.capacity.reserve_percent}%"
        )

    @property
    def state(self) -> CapacityState:
        """Current capacity state."""
        return self._state

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def _read_full_capacity(self) -> float:
        gv = self.global_vars
        return float(self.host.read_global(gv.capacity_slot, gv.flight_mode) * gv.capacity_scale)

    def _read_cell_count(self) -> int:
        gv = self.global_vars
        return int(self.host.read_global(gv.cell_count_slot, gv.flight_mode))

    def _config_changed(self) -> bool:
        return (
            self._state.bat_cap_full_mah != self._read_full_capacity()
            or self._state.cell_count != self._read_cell_count()
        )

    def init(self) -> CapacityState:
        """
        (Re)initialize from the configured capacity and cell count.

        Returns:
            The freshly initialized state
        """
        reserve = self.capacity.reserve_percent
        full_mah = self._read_full_capacity()
        cap_mah = full_mah * (100 - reserve) / 100
        use_volts = self.consumption_sensor == "" or cap_mah == 0

        self._state = self._state.model_copy(update={
            "phase": EstimatorPhase.ACTIVE,
            "bat_cap_full_mah": full_mah,
            "bat_cap_mah": cap_mah,
            "bat_remain_mah": cap_mah,
            "bat_rem_per": 0,
            "volts_percent_rem": 0,
            "cell_count": self._read_cell_count(),
            "use_volts_not_mah": use_volts,
            "reserve_percent": reserve,
        })

        logger.info(
            f"Capacity init: full={full_mah:.0f}mAh usable={cap_mah:.0f}mAh "
            f"cells={self._state.cell_count} method={self._state.method.value}"
        )
        return self._state

    # -------------------------------------------------------------------------
    # Per-tick update
    # -------------------------------------------------------------------------

    def update(self, history: History) -> EstimateResult:
        """
        Recompute remaining capacity.

        Args:
            history: Live history (source of the pack voltage)

        Returns:
            EstimateResult with the new state and whether init() ran
        """
        reason: Optional[ReinitReason] = None

        if self._state.phase == EstimatorPhase.UNINITIALIZED:
            self.init()
            reason = ReinitReason.STARTUP
        elif self._config_changed():
            logger.info("Capacity configuration changed, re-initializing")
            self.init()
            reason = ReinitReason.CONFIG_CHANGED

        updates = {}

        # Coulomb counting
        if self.consumption_sensor:
            reading = classify_reading(self.host.read_sensor(self.consumption_sensor))
            if not isinstance(reading, Absent):
                used_mah = reading.total
                if used_mah == 0 and self._state.can_reinit:
                    logger.warning("Consumption reset to zero, re-initializing")
                    self.init()
                    reason = ReinitReason.TELEMETRY_RESET
                    updates["can_reinit"] = False
                elif used_mah > 0:
                    updates["can_reinit"] = True
                updates["last_bat_used_mah"] = used_mah
                updates["bat_remain_mah"] = self._state.bat_cap_mah - used_mah

        state = self._state.model_copy(update=updates)

        # Voltage curve
        if self.voltage_sensor:
            volts = history.get_total_volts()
            threshold = self.capacity.volts_dropout_threshold
            volts_now = state.volts_now
            if volts_now < threshold or volts > threshold:
                volts_now = max(0.0, volts)
            volts_percent = state.volts_percent_rem
            if state.cell_count > 0:
                volts_percent = find_percent_rem(volts_now / state.cell_count)
            state = state.model_copy(update={
                "volts_now": volts_now,
                "volts_percent_rem": volts_percent,
            })

        # Blend
        if state.use_volts_not_mah:
            rem_per = state.volts_percent_rem - state.reserve_percent
            state = state.model_copy(update={"bat_rem_per": rem_per})
        elif state.bat_cap_mah > 0:
            rem_per = math.floor(state.bat_remain_mah / state.bat_cap_full_mah * 100)
            state = state.model_copy(update={"bat_rem_per": rem_per})

        self._state = state
        self._write_back()

        return EstimateResult(
            state=state,
            reinitialized=reason is not None,
            reason=reason,
        )

    def _write_back(self) -> None:
        """Publish results to host globals when configured."""
        gv = self.global_vars
        if gv.remaining_mah_slot is not None:
            self.host.write_global(
                gv.remaining_mah_slot,
                gv.flight_mode,
                math.floor(self._state.bat_remain_mah / 100),
            )
        if gv.remaining_percent_slot is not None:
            self.host.write_global(
                gv.remaining_percent_slot,
                gv.flight_mode,
                self._state.bat_rem_per,
            )

    # -------------------------------------------------------------------------
    # Reset
    # -------------------------------------------------------------------------

    def begin_reset(self) -> None:
        """Enter PENDING_REINIT while the session record is written."""
        self._state = self._state.model_copy(update={"phase": EstimatorPhase.PENDING_REINIT})
        logger.info("Capacity estimator pending re-init")

    def finish_reset(self) -> EstimateResult:
        """Clear counters and re-run init()."""
        self._state = self._state.model_copy(update={
            "volts_now": 0.0,
            "last_bat_used_mah": 0.0,
            "can_reinit": False,
        })
        state = self.init()
        return EstimateResult(
            state=state,
            reinitialized=True,
            reason=ReinitReason.RESET_SWITCH,
        )

    def get_metrics(self) -> dict:
        """Get estimator metrics for observability."""
        state = self._state
        return {
            "phase": state.phase.value,
            "method": state.method.value,
            "bat_cap_full_mah": state.bat_cap_full_mah,
            "bat_cap_mah": state.bat_cap_mah,
            "bat_remain_mah": state.bat_remain_mah,
            "bat_rem_per": state.bat_rem_per,
            "volts_now": state.volts_now,
            "cell_count": state.cell_count,
        }
