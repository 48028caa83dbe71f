"""
Simulated Host
==============

Deterministic host implementation for the service and for tests.

The simulation models a lithium pack under constant current:
    - Consumed mAh integrates the current over simulated time
    - Cell voltage falls linearly from 4.20 V (full) to 3.50 V (empty)
    - A small sinusoidal ripple per cell stands in for sensor noise
    - Time only advances through step(), so runs are reproducible

Example:
    host = SimulatedHost(cell_count=4, capacity_mah=2200, current_amps=15)
    host.step(0.1)
    host.read_sensor("Cels")   # (4.19, 4.2, 4.2, 4.19)
"""

import logging
import math
from collections import deque
from typing import Any, Deque, Dict, Optional, Tuple


logger = logging.getLogger(__name__)


FULL_CELL_VOLTS = 4.20
EMPTY_CELL_VOLTS = 3.50

# Recent sound requests kept for inspection
PLAYED_HISTORY = 64


class SimulatedHost:
    """
    Deterministic battery/transmitter simulation implementing HostServices.

    Attributes:
        cell_count: Cells in the simulated pack
        capacity_mah: Simulated pack capacity
        current_amps: Constant discharge current
        noise_volts: Amplitude of per-cell ripple
        played: Most recent sound paths requested
        played_count: Sound requests since start
        switches: Switch positions by name
        globals: Global variables keyed by (slot, flight_mode)
        channels: Raw input channels by id
        link: Telemetry link state
    """

    def __init__(
        self,
        cell_count: int = 4,
        capacity_mah: int = 2200,
        current_amps: float = 15.0,
        noise_volts: float = 0.01,
        voltage_sensor: str = "Cels",
        consumption_sensor: str = "mAh",
        current_sensor: str = "Curr",
        per_cell: bool = True,
        flight_mode: int = 0,
        cell_count_slot: int = 5,
        capacity_slot: int = 6,
        battery_id_slot: int = 7,
        battery_id: int = 1,
        start_time: float = 0.0,
    ) -> None:
        """
        Initialize simulated host.

        Args:
            cell_count: Cells in the simulated pack
            capacity_mah: Pack capacity (also written to the capacity GV)
            current_amps: Constant discharge current
            noise_volts: Per-cell ripple amplitude
            voltage_sensor: Name the voltage sensor answers to
            consumption_sensor: Name the consumption sensor answers to
            current_sensor: Name the current sensor answers to
            per_cell: Report cell vectors (True) or a pack scalar (False)
            flight_mode: Bank the configuration globals are written to
            cell_count_slot: GV slot holding the cell count
            capacity_slot: GV slot holding capacity / 100
            battery_id_slot: GV slot holding the battery id
            battery_id: Battery id written to the GV
            start_time: Initial simulated time
        """
        self.cell_count = cell_count
        self.capacity_mah = capacity_mah
        self.current_amps = current_amps
        self.noise_volts = noise_volts
        self.voltage_sensor = voltage_sensor
        self.consumption_sensor = consumption_sensor
        self.current_sensor = current_sensor
        self.per_cell = per_cell

        self._now = start_time
        self.used_mah = 0.0
        self.played: Deque[str] = deque(maxlen=PLAYED_HISTORY)
        self.played_count = 0
        self.switches: Dict[str, int] = {}
        self.channels: Dict[int, float] = {1: 0.0}
        self.globals: Dict[Tuple[int, int], int] = {
            (cell_count_slot, flight_mode): cell_count,
            (capacity_slot, flight_mode): capacity_mah // 100,
            (battery_id_slot, flight_mode): battery_id,
        }
        self.link = True

        logger.info(
            f"SimulatedHost initialized: {cell_count}S {capacity_mah}mAh "
            f"@ {current_amps}A"
        )

    # -------------------------------------------------------------------------
    # Simulation control
    # -------------------------------------------------------------------------

    def step(self, dt: float) -> None:
        """Advance simulated time and integrate consumption."""
        self._now += dt
        # A * s -> mAh
        self.used_mah += self.current_amps * dt / 3.6

    def replace_battery(self) -> None:
        """Fit a fresh pack; the consumption sensor restarts at zero."""
        self.used_mah = 0.0
        logger.info("SimulatedHost: battery replaced")

    def set_switch(self, name: str, value: int) -> None:
        self.switches[name] = value

    @property
    def state_of_charge(self) -> float:
        """Fraction of capacity left, clamped to [0, 1]."""
        return min(1.0, max(0.0, 1.0 - self.used_mah / self.capacity_mah))

    def cell_voltages(self) -> Tuple[float, ...]:
        base = EMPTY_CELL_VOLTS + (FULL_CELL_VOLTS - EMPTY_CELL_VOLTS) * self.state_of_charge
        return tuple(
            round(base + self.noise_volts * math.sin(self._now / 7.0 + i), 3)
            for i in range(self.cell_count)
        )

    # -------------------------------------------------------------------------
    # HostServices
    # -------------------------------------------------------------------------

    def read_sensor(self, name: str) -> Any:
        if not name:
            return None
        if name == self.voltage_sensor:
            cells = self.cell_voltages()
            return cells if self.per_cell else round(sum(cells), 2)
        if name == self.consumption_sensor:
            return int(self.used_mah)
        if name == self.current_sensor:
            return self.current_amps
        return self.switches.get(name)

    def read_channel(self, channel_id: int) -> Optional[float]:
        return self.channels.get(channel_id)

    def read_global(self, slot: int, flight_mode: int) -> int:
        return self.globals.get((slot, flight_mode), 0)

    def write_global(self, slot: int, flight_mode: int, value: int) -> None:
        self.globals[(slot, flight_mode)] = value

    def now(self) -> float:
        return self._now

    def play(self, path: str) -> None:
        logger.info(f"play: {path}")
        self.played.append(path)
        self.played_count += 1

    def link_active(self) -> bool:
        return self.link
