"""
History Module
==============

Telemetry aggregation and session persistence.

Components:
    - History: Per-tick ingestion, running extrema, chunked session writes
    - SessionStore: Protocol for staged record persistence
    - FileSessionStore: JSON-lines files per flight mode / battery
    - MemorySessionStore: In-process store
"""

from battmon.history.aggregator import History, throttle_percent
from battmon.history.store import FileSessionStore, MemorySessionStore, SessionStore

__all__ = [
    "History",
    "throttle_percent",
    "SessionStore",
    "FileSessionStore",
    "MemorySessionStore",
]
