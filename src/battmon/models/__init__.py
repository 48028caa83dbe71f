"""
Data Models
===========

Typed models for the battery monitor.

This module re-exports all data models for convenient access.

Models:
    Readings:
        - Absent, Scalar, Vector: SensorReading variants
        - Sample: One tick of raw telemetry

    State:
        - EstimatorPhase, EstimationMethod
        - CapacityState, HistoryState, AlertFlags

    Session:
        - SampleRecord, SessionRecord: Persisted session log

    Output:
        - BatteryStatus: Published per-tick state
        - LayoutClass, DisplayFrame: Render results

    Sounds:
        - SoundCue: Sound assets requested from the host
"""

from battmon.models.reading import (
    ABSENT,
    Absent,
    Sample,
    Scalar,
    SensorReading,
    Vector,
    classify_reading,
)
from battmon.models.session import SampleRecord, SessionRecord
from battmon.models.state import (
    AlertFlags,
    CapacityState,
    EstimationMethod,
    EstimatorPhase,
    HistoryState,
)
from battmon.models.output import BatteryStatus, DisplayFrame, LayoutClass
from battmon.models.sounds import MILESTONE_CUES, SoundCue, sound_path

__all__ = [
    # Readings
    "ABSENT",
    "Absent",
    "Scalar",
    "Vector",
    "SensorReading",
    "Sample",
    "classify_reading",
    # Session
    "SampleRecord",
    "SessionRecord",
    # State
    "EstimatorPhase",
    "EstimationMethod",
    "CapacityState",
    "HistoryState",
    "AlertFlags",
    # Output
    "BatteryStatus",
    "LayoutClass",
    "DisplayFrame",
    # Sounds
    "SoundCue",
    "MILESTONE_CUES",
    "sound_path",
]
