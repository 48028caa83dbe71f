"""
Scheduler Module
================

Cooperative named-task scheduler used to debounce alerts and the reset
switch.
"""

from battmon.scheduler.scheduler import Scheduler, Task, TaskState

__all__ = [
    "Scheduler",
    "Task",
    "TaskState",
]
