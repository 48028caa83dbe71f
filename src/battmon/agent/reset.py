"""
Reset Switch Monitor
====================

Debounced detection of the reset switch.

The switch is polled first on every tick. A press starts a reset; the
`reset_sw` scheduler task then blocks further resets until the switch is
released (any value other than the released position counts as pressed).

Sequence:
    check('reset_sw') is None/True and switch pressed
        -> add('reset_sw', debounce=False, debounce_sec); clear('reset_sw')
        -> reset requested
    switch released
        -> remove('reset_sw')
"""

import logging
from typing import Optional

from battmon.config import ResetConfig
from battmon.host.interface import HostServices
from battmon.scheduler.scheduler import Scheduler


logger = logging.getLogger(__name__)


RESET_TASK = "reset_sw"


class ResetSwitchMonitor:
    """
    Reset switch edge detector.

    Attributes:
        host: Host services (switch reads)
        scheduler: Scheduler holding the debounce marker
        config: Switch identity, released value and debounce window
        resets: Resets requested so far
    """

    def __init__(
        self,
        host: HostServices,
        scheduler: Scheduler,
        config: Optional[ResetConfig] = None,
    ) -> None:
        self.host = host
        self.scheduler = scheduler
        self.config = config or ResetConfig()
        self.resets = 0

    @property
    def enabled(self) -> bool:
        return bool(self.config.switch)

    def _read_switch(self) -> Optional[int]:
        return self.host.read_sensor(self.config.switch)

    def is_pressed(self) -> bool:
        """True when the switch reports anything but its released position."""
        value = self._read_switch()
        return value is not None and value != self.config.released_value

    def poll(self) -> bool:
        """
        Check the switch once.

        Returns:
            True when a reset should start on this tick
        """
        if not self.enabled:
            return False

        debounced = self.scheduler.check(RESET_TASK)
        value = self._read_switch()

        if (debounced is None or debounced) and value is not None \
                and value != self.config.released_value:
            self.scheduler.add(RESET_TASK, False, self.config.debounce_sec)
            self.scheduler.clear(RESET_TASK)
            self.resets += 1
            logger.info(f"Reset switch '{self.config.switch}' pressed (value={value})")
            return True

        if value == self.config.released_value:
            self.scheduler.remove(RESET_TASK)
        return False

    def rearm(self) -> None:
        """
        Restore the debounce marker after the scheduler was reset.

        Keeps a switch that is still held from starting a second reset.
        """
        if self.enabled and self.is_pressed():
            self.scheduler.add(RESET_TASK, False, self.config.debounce_sec)
            self.scheduler.clear(RESET_TASK)
