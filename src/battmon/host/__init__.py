"""
Host Module
===========

Abstraction of the transmitter host the monitor runs inside.

Components:
    - HostServices: Protocol for sensors, globals, clock and playback
    - SimulatedHost: Deterministic implementation for service and tests
"""

from battmon.host.interface import HostServices
from battmon.host.simulated import SimulatedHost

__all__ = [
    "HostServices",
    "SimulatedHost",
]
