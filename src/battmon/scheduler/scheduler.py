"""
Task Scheduler
==============

Named-task registry with debounce, delayed one-shot and periodic execution.

The scheduler gates alert sounds and reset-switch detection so that a
noisy sensor crossing a threshold on every tick does not fire an action
on every tick.

Semantics:
    add(name, debounce, delay)  -> task ready `delay` seconds from now.
                                   debounce=True keeps a pending task
                                   (and its deadline) untouched.
    check(name)                 -> None (unknown), False (cleared or not
                                   yet due), True (due and not cleared)
    clear(name)                 -> resolve as False until re-added
    remove(name)                -> forget the task
    reset()                     -> forget every task
    tick()                      -> run callbacks of due tasks; periodic
                                   tasks are rescheduled, one-shot removed

Tasks without a callback are debounce markers: tick() leaves them alone
so that check() keeps reporting on them.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple


logger = logging.getLogger(__name__)


class TaskState(str, Enum):
    """Lifecycle of a scheduled task."""

    PENDING = "PENDING"
    READY = "READY"
    EXPIRED = "EXPIRED"


@dataclass
class Task:
    """
    A named scheduled task.

    Attributes:
        name: Registry key (at most one task per name)
        fire_at: Monotonic time the task becomes ready
        delay_sec: Delay used for the first deadline and for re-arming
        periodic: Re-arm after firing instead of being removed
        debounce: Created with debounce semantics
        callback: Optional action run by tick() when due
        args: Positional arguments for the callback
        cleared: Resolved as False by clear()
        fire_count: Times the callback has run
    """

    name: str
    fire_at: float
    delay_sec: float
    periodic: bool = False
    debounce: bool = False
    callback: Optional[Callable[..., Any]] = None
    args: Tuple[Any, ...] = field(default_factory=tuple)
    cleared: bool = False
    fire_count: int = 0

    def state_at(self, now: float) -> TaskState:
        if self.cleared:
            return TaskState.EXPIRED
        if now >= self.fire_at:
            return TaskState.READY
        return TaskState.PENDING


class Scheduler:
    """
    Cooperative scheduler driven by an explicit tick().

    Attributes:
        clock: Monotonic time source

    Example:
        scheduler = Scheduler(clock=host.now)

        # Warn every 10 s while the condition holds
        scheduler.add("icw", True, 10, host.play, "icw.wav", periodic=True)

        # Later, once per tick
        scheduler.tick()
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        """
        Initialize scheduler.

        Args:
            clock: Monotonic time source (defaults to time.monotonic)
        """
        self.clock = clock or time.monotonic
        self._tasks: Dict[str, Task] = {}

    def add(
        self,
        name: str,
        debounce: bool,
        delay_sec: float,
        callback: Optional[Callable[..., Any]] = None,
        *args: Any,
        periodic: bool = False,
    ) -> Task:
        """
        Register or replace a task.

        Args:
            name: Task key
            debounce: Keep an existing task of the same name untouched
                while it is still pending
            delay_sec: Seconds from now until the task is ready
            callback: Optional action run by tick() when due
            *args: Arguments for the callback
            periodic: Re-arm every delay_sec instead of running once

        Returns:
            The registered (or kept) task
        """
        existing = self._tasks.get(name)
        if debounce and existing is not None \
                and existing.state_at(self.clock()) == TaskState.PENDING:
            return existing

        task = Task(
            name=name,
            fire_at=self.clock() + delay_sec,
            delay_sec=delay_sec,
            periodic=periodic,
            debounce=debounce,
            callback=callback,
            args=args,
        )
        self._tasks[name] = task
        logger.debug(f"Task added: {name} in {delay_sec}s (periodic={periodic})")
        return task

    def check(self, name: str) -> Optional[bool]:
        """
        Report whether a task's window has elapsed.

        Returns:
            None if no task of that name exists,
            True if due and not cleared, False otherwise.
        """
        task = self._tasks.get(name)
        if task is None:
            return None
        return task.state_at(self.clock()) == TaskState.READY

    def clear(self, name: str) -> None:
        """Resolve a task as False without removing it."""
        task = self._tasks.get(name)
        if task is not None:
            task.cleared = True

    def remove(self, name: str) -> None:
        """Delete a task. Unknown names are ignored."""
        if self._tasks.pop(name, None) is not None:
            logger.debug(f"Task removed: {name}")

    def reset(self) -> None:
        """Remove all tasks."""
        self._tasks.clear()
        logger.debug("Scheduler reset")

    def tick(self) -> int:
        """
        Run callbacks of every due task.

        Returns:
            Number of callbacks run
        """
        now = self.clock()
        fired = 0

        for name, task in list(self._tasks.items()):
            if task.callback is None or task.state_at(now) != TaskState.READY:
                continue

            try:
                task.callback(*task.args)
            except Exception as e:
                logger.error(f"Task '{name}' callback failed: {e}")
            task.fire_count += 1
            fired += 1

            # Callback may have replaced or removed the task
            if self._tasks.get(name) is not task:
                continue
            if task.periodic:
                task.fire_at = now + task.delay_sec
            else:
                del self._tasks[name]

        return fired

    def get(self, name: str) -> Optional[Task]:
        """Get a task by name."""
        return self._tasks.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def get_metrics(self) -> dict:
        """Get scheduler metrics for observability."""
        now = self.clock()
        return {
            "task_count": len(self._tasks),
            "tasks": {
                name: task.state_at(now).value for name, task in self._tasks.items()
            },
        }
