"""
Host Services
=============

Protocol for everything the monitor consumes from the transmitter host.

The core never talks to hardware, the file system of the radio or the
audio player directly. It calls these services, which are implemented by:
    - SimulatedHost (deterministic discharge model, service + tests)
    - a firmware bridge (outside this package)
"""

from typing import Any, Optional, Protocol


class HostServices(Protocol):
    """
    Protocol for host-provided services.

    Raw sensor values are returned untouched; the core classifies them
    with battmon.models.classify_reading.
    """

    def read_sensor(self, name: str) -> Any:
        """
        Read a telemetry sensor or switch by name.

        Returns:
            None, a number, or a sequence / table of numbers
        """
        ...

    def read_channel(self, channel_id: int) -> Optional[float]:
        """Read a raw input channel (-1024..1024), None if unavailable."""
        ...

    def read_global(self, slot: int, flight_mode: int) -> int:
        """Read a global variable from a flight mode bank."""
        ...

    def write_global(self, slot: int, flight_mode: int, value: int) -> None:
        """Write a global variable in a flight mode bank."""
        ...

    def now(self) -> float:
        """Monotonic time in seconds."""
        ...

    def play(self, path: str) -> None:
        """Request playback of a sound file. Fire-and-forget."""
        ...

    def link_active(self) -> bool:
        """True while the telemetry link reports signal (RSSI > 0)."""
        ...
