"""
Monitor Graph Definition
========================

LangGraph state machine running one monitor tick.

This module wires the core components together and defines the per-tick
pipeline. LangGraph is used for CONTROL FLOW only.

Graph Structure:
    START → gate ─(writing)→ continue_write → publish → END
               └─(idle)──→ reset_check ─(write started)→ publish → END
                                       └→ scheduler_tick → history_tick
                                          → capacity → alerts → publish → END

Design Philosophy:
    - Fixed stage order; later stages read what earlier stages wrote
    - No estimator updates while a session record is being written
    - Every node appends its name to `stages`, so the path is observable
"""

import logging
import operator
from typing import Annotated, Any, Dict, List, Optional, TypedDict

from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from battmon.agent.reset import ResetSwitchMonitor
from battmon.alerts.policy import AlertPolicy
from battmon.config import Settings
from battmon.estimation.capacity import CapacityEstimator, EstimateResult
from battmon.history.aggregator import History
from battmon.history.store import MemorySessionStore, SessionStore
from battmon.host.interface import HostServices
from battmon.models.output import BatteryStatus
from battmon.models.reading import ABSENT
from battmon.scheduler.scheduler import Scheduler


logger = logging.getLogger(__name__)


class TickState(TypedDict):
    """
    State passed through the tick graph.

    Attributes:
        tick: Tick number (1-based)
        timestamp: Host time at the start of the tick
        reset_started: A reset began on this tick
        estimate: Capacity estimate of this tick
        played: Sound files requested directly by the alert policy
        status: Published status
        stages: Names of the nodes that ran, in order
    """

    tick: int
    timestamp: float
    reset_started: bool
    estimate: Optional[EstimateResult]
    played: List[str]
    status: Optional[BatteryStatus]
    stages: Annotated[List[str], operator.add]


class MonitorGraph:
    """
    One battery monitor instance driven by a LangGraph pipeline.

    Owns the scheduler, history, estimator, alert policy and reset
    monitor. History is replaced on every completed reset.

    Example:
        monitor = MonitorGraph(host, settings)
        status = monitor.tick()
        print(status.remaining_percent)
    """

    def __init__(
        self,
        host: HostServices,
        settings: Settings,
        store: Optional[SessionStore] = None,
        log_every_n_ticks: int = 100,
    ) -> None:
        """
        Initialize the monitor.

        Args:
            host: Host services
            settings: Sensor wiring, thresholds and slots
            store: Session store (in-memory if None)
            log_every_n_ticks: Log status every N ticks
        """
        self.host = host
        self.settings = settings
        self.store = store if store is not None else MemorySessionStore()
        self.log_every_n_ticks = log_every_n_ticks

        self.scheduler = Scheduler(clock=host.now)
        self.history = self._new_history()
        self.estimator = CapacityEstimator(
            host,
            settings.sensors.consumption,
            settings.sensors.voltage,
            settings.capacity,
            settings.global_vars,
        )
        self.alerts = AlertPolicy(host, self.scheduler, settings.alerts)
        self.reset_monitor = ResetSwitchMonitor(host, self.scheduler, settings.reset)

        self._tick_count = 0
        self._last_status: Optional[BatteryStatus] = None
        self._graph = self._build_graph()

        logger.info("MonitorGraph initialized")

    def _new_history(self) -> History:
        sensors = self.settings.sensors
        return History(
            self.host,
            sensors.voltage,
            sensors.current,
            sensors.throttle_channel,
            self.store,
            self.settings.history,
        )

    # -------------------------------------------------------------------------
    # Graph
    # -------------------------------------------------------------------------

    def _build_graph(self) -> CompiledStateGraph:
        """Build the LangGraph workflow."""
        workflow = StateGraph(TickState)

        workflow.add_node("gate", self._gate_node)
        workflow.add_node("continue_write", self._continue_write_node)
        workflow.add_node("reset_check", self._reset_check_node)
        workflow.add_node("scheduler_tick", self._scheduler_tick_node)
        workflow.add_node("history_tick", self._history_tick_node)
        workflow.add_node("capacity", self._capacity_node)
        workflow.add_node("alerts", self._alerts_node)
        workflow.add_node("publish", self._publish_node)

        workflow.set_entry_point("gate")
        workflow.add_conditional_edges(
            "gate",
            self._route_gate,
            {"continue_write": "continue_write", "reset_check": "reset_check"},
        )
        workflow.add_edge("continue_write", "publish")
        workflow.add_conditional_edges(
            "reset_check",
            self._route_reset,
            {"publish": "publish", "scheduler_tick": "scheduler_tick"},
        )
        workflow.add_edge("scheduler_tick", "history_tick")
        workflow.add_edge("history_tick", "capacity")
        workflow.add_edge("capacity", "alerts")
        workflow.add_edge("alerts", "publish")
        workflow.add_edge("publish", END)

        return workflow.compile()

    def _route_gate(self, state: TickState) -> str:
        return "continue_write" if self.history.writing else "reset_check"

    def _route_reset(self, state: TickState) -> str:
        return "publish" if self.history.writing else "scheduler_tick"

    def _gate_node(self, state: TickState) -> Dict[str, Any]:
        return {"stages": ["gate"]}

    def _continue_write_node(self, state: TickState) -> Dict[str, Any]:
        self.history.write(self._flight_mode, self._battery_id(), self.finish_reset)
        return {"stages": ["continue_write"]}

    def _reset_check_node(self, state: TickState) -> Dict[str, Any]:
        started = False
        if self.reset_monitor.poll():
            self.start_reset()
            started = True
        return {"reset_started": started, "stages": ["reset_check"]}

    def _scheduler_tick_node(self, state: TickState) -> Dict[str, Any]:
        self.scheduler.tick()
        return {"stages": ["scheduler_tick"]}

    def _history_tick_node(self, state: TickState) -> Dict[str, Any]:
        self.history.tick()
        return {"stages": ["history_tick"]}

    def _capacity_node(self, state: TickState) -> Dict[str, Any]:
        result = self.estimator.update(self.history)
        if result.reinitialized:
            self.alerts.on_capacity_reinit()
        return {"estimate": result, "stages": ["capacity"]}

    def _alerts_node(self, state: TickState) -> Dict[str, Any]:
        estimate = state.get("estimate")
        capacity = estimate.state if estimate is not None else self.estimator.state
        latest = self.history.latest
        reading = latest.voltage if latest is not None else ABSENT
        played = self.alerts.evaluate(capacity, reading)
        return {"played": [cue.value for cue in played], "stages": ["alerts"]}

    def _publish_node(self, state: TickState) -> Dict[str, Any]:
        capacity = self.estimator.state
        history = self.history.state
        status = BatteryStatus(
            timestamp=max(0.0, state["timestamp"]),
            tick=state["tick"],
            writing=self.history.writing,
            remaining_mah=capacity.bat_remain_mah,
            remaining_percent=capacity.bat_rem_per,
            method=capacity.method,
            cell_count=capacity.cell_count,
            pack_volts=capacity.volts_now,
            used_mah=capacity.last_bat_used_mah,
            min_cell_voltages=list(history.min_cell_voltage),
            max_amps=history.max_amps,
            max_watts=history.max_watts,
        )

        if state["tick"] % self.log_every_n_ticks == 0:
            logger.info(
                f"Monitor [tick {state['tick']}]: "
                f"{status.remaining_percent}% {status.remaining_mah:.0f}mAh "
                f"method={status.method.value} volts={status.pack_volts:.2f} "
                f"writing={status.writing}"
            )

        return {"status": status, "stages": ["publish"]}

    # -------------------------------------------------------------------------
    # Reset
    # -------------------------------------------------------------------------

    @property
    def _flight_mode(self) -> int:
        return self.settings.global_vars.flight_mode

    def _battery_id(self) -> int:
        gv = self.settings.global_vars
        return int(self.host.read_global(gv.battery_id_slot, gv.flight_mode))

    def start_reset(self) -> None:
        """Persist the session, then finish the reset once written."""
        capacity = self.estimator.state
        self.estimator.begin_reset()
        self.history.write(
            self._flight_mode,
            self._battery_id(),
            self.finish_reset,
            used_mah=capacity.last_bat_used_mah,
            final_percent=capacity.bat_rem_per,
        )

    def finish_reset(self) -> None:
        """Start a new session: fresh flags, tasks, history and estimate."""
        self.alerts.reset()
        self.scheduler.reset()
        self.reset_monitor.rearm()
        self.history = self._new_history()
        self.estimator.finish_reset()
        logger.info("Reset complete, new session started")

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def run(self) -> TickState:
        """
        Run one tick and return the final graph state.

        Returns:
            TickState including the executed stages
        """
        self._tick_count += 1
        initial: TickState = {
            "tick": self._tick_count,
            "timestamp": self.host.now(),
            "reset_started": False,
            "estimate": None,
            "played": [],
            "status": None,
            "stages": [],
        }
        result = self._graph.invoke(initial)
        self._last_status = result["status"]
        return result

    def tick(self) -> BatteryStatus:
        """Run one tick and return the published status."""
        return self.run()["status"]

    @property
    def writing(self) -> bool:
        return self.history.writing

    @property
    def last_status(self) -> Optional[BatteryStatus]:
        """Status published by the latest tick."""
        return self._last_status

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def get_metrics(self) -> Dict[str, Any]:
        """Get monitor metrics for observability."""
        return {
            "ticks": self._tick_count,
            "resets": self.reset_monitor.resets,
            "estimator": self.estimator.get_metrics(),
            "history": self.history.get_metrics(),
            "alerts": self.alerts.get_metrics(),
            "scheduler": self.scheduler.get_metrics(),
        }
