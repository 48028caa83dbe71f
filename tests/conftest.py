"""
Test Configuration
==================

Pytest fixtures and test configuration for battmon.
"""

from typing import Any, Dict, List, Optional, Tuple

import pytest


class ManualClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 0.0) -> None:
        self.time = start

    def __call__(self) -> float:
        return self.time

    def advance(self, seconds: float) -> None:
        self.time += seconds


class FakeHost:
    """
    Scriptable HostServices implementation.

    Sensor values are set directly; nothing changes unless a test changes it.
    """

    def __init__(self) -> None:
        self.clock = ManualClock()
        self.sensors: Dict[str, Any] = {}
        self.channels: Dict[int, float] = {}
        self.globals: Dict[Tuple[int, int], int] = {}
        self.played: List[str] = []
        self.link = True

    def configure_pack(
        self,
        cell_count: int,
        capacity_mah: int,
        battery_id: int = 1,
        flight_mode: int = 0,
    ) -> None:
        self.globals[(5, flight_mode)] = cell_count
        self.globals[(6, flight_mode)] = capacity_mah // 100
        self.globals[(7, flight_mode)] = battery_id

    def advance(self, seconds: float) -> None:
        self.clock.advance(seconds)

    def read_sensor(self, name: str) -> Any:
        return self.sensors.get(name)

    def read_channel(self, channel_id: int) -> Optional[float]:
        return self.channels.get(channel_id)

    def read_global(self, slot: int, flight_mode: int) -> int:
        return self.globals.get((slot, flight_mode), 0)

    def write_global(self, slot: int, flight_mode: int, value: int) -> None:
        self.globals[(slot, flight_mode)] = value

    def now(self) -> float:
        return self.clock()

    def play(self, path: str) -> None:
        self.played.append(path)

    def link_active(self) -> bool:
        return self.link


@pytest.fixture
def manual_clock():
    """Provide a clock starting at t=0."""
    return ManualClock()


@pytest.fixture
def fake_host():
    """Provide a 4S 2000 mAh host with full cells and no consumption yet."""
    host = FakeHost()
    host.configure_pack(cell_count=4, capacity_mah=2000)
    host.sensors["Cels"] = [4.2, 4.2, 4.2, 4.2]
    host.sensors["mAh"] = 0
    host.sensors["Curr"] = 0.0
    host.sensors["sh"] = -1024
    host.channels[1] = 0.0
    return host


@pytest.fixture
def test_settings(tmp_path):
    """Provide default settings with the session store under tmp_path."""
    from battmon.config import Settings

    return Settings.model_validate({
        "history": {"store_dir": str(tmp_path / "sessions")},
        "logging": {"format": "text"},
    })


@pytest.fixture
def memory_store():
    """Provide an empty in-memory session store."""
    from battmon.history.store import MemorySessionStore

    return MemorySessionStore()
