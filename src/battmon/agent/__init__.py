"""
Agent Module
============

Per-tick control flow of the battery monitor.

Components:
    - MonitorGraph: LangGraph tick pipeline owning the core components
    - ResetSwitchMonitor: Debounced reset switch detection
"""

from battmon.agent.graph import MonitorGraph, TickState
from battmon.agent.reset import RESET_TASK, ResetSwitchMonitor

__all__ = [
    "MonitorGraph",
    "TickState",
    "ResetSwitchMonitor",
    "RESET_TASK",
]
