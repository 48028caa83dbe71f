"""
Alerts Module
=============

Audible warnings and percent-remaining announcements.
"""

from battmon.alerts.policy import (
    INCONSISTENT_CELL_TASK,
    MISSING_CELL_TASK,
    AlertPolicy,
    milestone_for,
)

__all__ = [
    "AlertPolicy",
    "milestone_for",
    "INCONSISTENT_CELL_TASK",
    "MISSING_CELL_TASK",
]
