"""
Battery Widget
==============

Lifecycle adapter between a host runtime and one monitor instance.

Host callbacks map onto four calls:
    create     -> initialize(host, settings, store)
    update     -> configure(options)
    background -> on_tick()
    refresh    -> on_render(width, height)

Example:
    widget = BatteryWidget().initialize(SimulatedHost())
    widget.configure({"mAh": "mAh", "Voltage": "Cels", "Reset": "sh"})

    status = widget.on_tick()
    frame = widget.on_render(390, 172)
"""

import logging
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field

from battmon.agent.graph import MonitorGraph
from battmon.config import Settings
from battmon.history.store import MemorySessionStore, SessionStore
from battmon.host.interface import HostServices
from battmon.models.output import BatteryStatus, DisplayFrame
from battmon.render.layout import render


logger = logging.getLogger(__name__)


class WidgetOptions(BaseModel):
    """
    Options the user sets on the widget.

    Field aliases are the option names shown by the host.
    """

    consumption: str = Field(default="mAh", alias="mAh")
    voltage: str = Field(default="Cels", alias="Voltage")
    current: str = Field(default="Curr", alias="Current")
    reset_switch: str = Field(default="sh", alias="Reset")
    throttle_channel: int = Field(default=1, ge=0, alias="Throttle")

    model_config = {"populate_by_name": True}


class BatteryWidget:
    """
    Widget adapter owning one MonitorGraph.

    Attributes:
        host: Host services, set by initialize()
        settings: Effective settings including widget options
        store: Session store shared across reconfigurations
        monitor: Core instance, None before initialize()
    """

    def __init__(self) -> None:
        self.host: Optional[HostServices] = None
        self.settings: Optional[Settings] = None
        self.store: Optional[SessionStore] = None
        self.monitor: Optional[MonitorGraph] = None

    def initialize(
        self,
        host: HostServices,
        settings: Optional[Settings] = None,
        store: Optional[SessionStore] = None,
    ) -> "BatteryWidget":
        """
        Build the monitor.

        Args:
            host: Host services
            settings: Settings (defaults if None)
            store: Session store (in-memory if None)

        Returns:
            self, for chaining
        """
        self.host = host
        self.settings = settings or Settings()
        self.store = store if store is not None else MemorySessionStore()
        self.monitor = MonitorGraph(host, self.settings, self.store)
        logger.info("BatteryWidget initialized")
        return self

    def _require_monitor(self) -> MonitorGraph:
        if self.monitor is None:
            raise RuntimeError("BatteryWidget used before initialize()")
        return self.monitor

    def configure(self, options: Union[WidgetOptions, Dict[str, Any]]) -> None:
        """
        Apply widget options and rebuild the sensor wiring.

        The estimator re-runs init() on the next tick.
        """
        self._require_monitor()
        if not isinstance(options, WidgetOptions):
            options = WidgetOptions.model_validate(options)

        sensors = self.settings.sensors.model_copy(update={
            "consumption": options.consumption,
            "voltage": options.voltage,
            "current": options.current,
            "throttle_channel": options.throttle_channel,
        })
        reset = self.settings.reset.model_copy(update={"switch": options.reset_switch})
        self.settings = self.settings.model_copy(update={"sensors": sensors, "reset": reset})
        self.monitor = MonitorGraph(self.host, self.settings, self.store)

        logger.info(
            f"BatteryWidget configured: mAh='{options.consumption}', "
            f"voltage='{options.voltage}', current='{options.current}', "
            f"reset='{options.reset_switch}', throttle={options.throttle_channel}"
        )

    def on_tick(self) -> BatteryStatus:
        """Run one monitor tick."""
        return self._require_monitor().tick()

    def on_render(self, width: int, height: int) -> DisplayFrame:
        """
        Render the latest status for a zone.

        While a session record is being written the writing frame is
        returned instead of battery data.
        """
        monitor = self._require_monitor()
        status = monitor.last_status
        if status is None:
            status = BatteryStatus(timestamp=max(0.0, self.host.now()))
        if monitor.writing and not status.writing:
            status = status.model_copy(update={"writing": True})
        return render(status, width, height)
