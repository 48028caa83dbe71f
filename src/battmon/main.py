"""
battmon Main Application
========================

FastAPI entry point hosting one battery widget on a simulated host.

A background task advances the simulated pack and ticks the widget every
`simulator.tick_interval_sec`. HTTP handlers only read the last published
status.

Endpoints:
    GET  /                 - Service information
    GET  /health           - Liveness probe (is process alive?)
    GET  /ready            - Readiness probe (first tick published?)
    GET  /metrics          - Component metrics
    GET  /status           - Latest BatteryStatus
    GET  /display          - DisplayFrame for a zone (?width=&height=)
    GET  /sessions         - Persisted session records
    POST /simulator/reset  - Press and release the simulated reset switch
    WS   /ws/status        - Real-time status stream
"""

import asyncio
import logging
import os
import signal
import threading
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Query, WebSocket
from fastapi.responses import JSONResponse

from battmon import __version__
from battmon.config import settings
from battmon.history.store import FileSessionStore
from battmon.host.simulated import SimulatedHost
from battmon.models.output import BatteryStatus
from battmon.widget import BatteryWidget


logger = logging.getLogger(__name__)


# Ticks the simulated reset switch is held down
RESET_HOLD_TICKS = 3


# =============================================================================
# Global State
# =============================================================================

_shutdown_flag: bool = False

_host: Optional[SimulatedHost] = None
_widget: Optional[BatteryWidget] = None
_store: Optional[FileSessionStore] = None
_tick_task: Optional[asyncio.Task] = None

_current_status: Optional[BatteryStatus] = None
_startup_time: float = 0.0
_is_ready: bool = False
_reset_hold_remaining: int = 0

# Error counters
_tick_error_count: int = 0


# =============================================================================
# Getters
# =============================================================================

def get_host() -> Optional[SimulatedHost]:
    return _host

def get_widget() -> Optional[BatteryWidget]:
    return _widget

def get_current_status() -> Optional[BatteryStatus]:
    return _current_status

def is_ready() -> bool:
    return _is_ready


# =============================================================================
# Signal Handlers
# =============================================================================

def _handle_sigterm(signum, frame):
    """Handle SIGTERM for graceful shutdown."""
    global _shutdown_flag
    logger.info("Received SIGTERM, initiating graceful shutdown...")
    _shutdown_flag = True


# =============================================================================
# Simulation
# =============================================================================

def create_host() -> SimulatedHost:
    """Create the simulated host from settings."""
    sim = settings.simulator
    gv = settings.global_vars
    host = SimulatedHost(
        cell_count=sim.cell_count,
        capacity_mah=sim.capacity_mah,
        current_amps=sim.current_amps,
        noise_volts=sim.noise_volts,
        voltage_sensor=settings.sensors.voltage,
        consumption_sensor=settings.sensors.consumption,
        current_sensor=settings.sensors.current,
        flight_mode=gv.flight_mode,
        cell_count_slot=gv.cell_count_slot,
        capacity_slot=gv.capacity_slot,
        battery_id_slot=gv.battery_id_slot,
    )
    if settings.reset.switch:
        host.set_switch(settings.reset.switch, settings.reset.released_value)
    return host


def press_reset() -> None:
    """Fit a fresh pack and hold the reset switch for a few ticks."""
    global _reset_hold_remaining
    if _host is None or not settings.reset.switch:
        return
    _host.replace_battery()
    _host.set_switch(settings.reset.switch, -settings.reset.released_value)
    _reset_hold_remaining = RESET_HOLD_TICKS
    logger.info(f"Simulated reset switch '{settings.reset.switch}' pressed")


def step_simulation() -> BatteryStatus:
    """Advance the simulated host by one tick and run the widget."""
    global _current_status, _reset_hold_remaining

    _host.step(settings.simulator.tick_interval_sec * settings.simulator.time_scale)

    if _reset_hold_remaining > 0:
        _reset_hold_remaining -= 1
        if _reset_hold_remaining == 0:
            _host.set_switch(settings.reset.switch, settings.reset.released_value)

    _current_status = _widget.on_tick()
    return _current_status


async def run_ticks() -> None:
    """Tick loop."""
    global _is_ready, _tick_error_count

    if _host is None or _widget is None:
        logger.error("Tick loop not initialized")
        return

    logger.info("Tick loop started")
    _is_ready = True

    while not _shutdown_flag:
        try:
            step_simulation()
            await asyncio.sleep(settings.simulator.tick_interval_sec)
        except asyncio.CancelledError:
            logger.info("Tick loop cancelled")
            break
        except Exception as e:
            _tick_error_count += 1
            logger.error(f"Tick error: {e}")
            await asyncio.sleep(settings.simulator.tick_interval_sec)

    _is_ready = False
    logger.info("Tick loop stopped")


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager with graceful shutdown."""
    global _host, _widget, _store, _tick_task, _startup_time, _shutdown_flag
    global _current_status, _tick_error_count, _reset_hold_remaining

    # Signal handlers can only be installed from the main thread
    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGTERM, _handle_sigterm)

    _startup_time = time.time()
    _shutdown_flag = False
    _current_status = None
    _tick_error_count = 0
    _reset_hold_remaining = 0
    logger.info(f"Starting battmon {__version__}")

    _host = create_host()
    _store = FileSessionStore(settings.history.store_dir)
    _widget = BatteryWidget().initialize(_host, settings, _store)

    _tick_task = asyncio.create_task(run_ticks(), name="battmon_ticks")

    logger.info("All components started")

    yield

    logger.info("Shutting down gracefully...")
    _shutdown_flag = True

    if _tick_task:
        _tick_task.cancel()
        try:
            await _tick_task
        except asyncio.CancelledError:
            pass

    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="battmon",
    description="Flight battery capacity monitor",
    version=__version__,
    lifespan=lifespan,
)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "battmon",
        "version": __version__,
        "status": "running",
        "voltage_sensor": settings.sensors.voltage,
        "consumption_sensor": settings.sensors.consumption,
        "reserve_percent": settings.capacity.reserve_percent,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """
    Liveness probe - is the process alive?

    Always returns 200 if the service is running.
    """
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/ready")
async def ready() -> JSONResponse:
    """
    Readiness probe - has the monitor published a status?

    Returns 503 until the first tick completes.
    """
    status = get_current_status()
    if _is_ready and status is not None:
        return JSONResponse({
            "status": "ready",
            "ticks": status.tick,
        })
    return JSONResponse(
        {"status": "not_ready", "tick_loop_running": _is_ready},
        status_code=503,
    )


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Detailed metrics for observability."""
    widget = get_widget()
    monitor_metrics = widget.monitor.get_metrics() if widget and widget.monitor else {}

    host = get_host()
    host_metrics = {}
    if host:
        host_metrics = {
            "simulated_time": round(host.now(), 1),
            "simulated_used_mah": round(host.used_mah, 1),
            "sounds_played": host.played_count,
        }

    return JSONResponse({
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "tick_errors": _tick_error_count,
        **host_metrics,
        "monitor": monitor_metrics,
    })


@app.get("/status")
async def status() -> JSONResponse:
    """Get the latest battery status."""
    current = get_current_status()
    if current is None:
        return JSONResponse(
            {"error": "No status available yet"},
            status_code=503,
        )
    return JSONResponse(current.model_dump(mode="json"))


@app.get("/display")
async def display(
    width: int = Query(390, ge=0),
    height: int = Query(172, ge=0),
) -> JSONResponse:
    """Render the latest status for a widget zone."""
    widget = get_widget()
    if widget is None or widget.monitor is None:
        return JSONResponse(
            {"error": "Widget not initialized"},
            status_code=503,
        )
    frame = widget.on_render(width, height)
    return JSONResponse(frame.model_dump(mode="json"))


@app.get("/sessions")
async def sessions() -> JSONResponse:
    """List persisted session records, grouped by flight mode and battery."""
    if _store is None:
        return JSONResponse({"sessions": []})

    groups = []
    for flight_mode, battery_id in _store.keys():
        records = _store.load(flight_mode, battery_id)
        groups.append({
            "flight_mode": flight_mode,
            "battery_id": battery_id,
            "records": [
                record.model_dump(mode="json", exclude={"samples"}) for record in records
            ],
        })
    return JSONResponse({"sessions": groups})


@app.post("/simulator/reset")
async def simulator_reset() -> JSONResponse:
    """Press the simulated reset switch; it is released a few ticks later."""
    if _host is None:
        return JSONResponse({"error": "Simulator not running"}, status_code=503)
    if not settings.reset.switch:
        return JSONResponse({"error": "Reset switch disabled"}, status_code=409)

    press_reset()
    return JSONResponse({
        "status": "pressed",
        "switch": settings.reset.switch,
        "release_after_ticks": RESET_HOLD_TICKS,
    })


# =============================================================================
# WebSocket Endpoints
# =============================================================================

@app.websocket("/ws/status")
async def status_stream(websocket: WebSocket) -> None:
    """WebSocket endpoint for real-time status."""
    await websocket.accept()
    logger.info("Client connected to /ws/status")

    try:
        while not _shutdown_flag:
            current = get_current_status()
            if current:
                await websocket.send_json(current.model_dump(mode="json"))
            await asyncio.sleep(1.0)

    except Exception as e:
        logger.warning(f"WebSocket error: {e}")
    finally:
        logger.info("Client disconnected from /ws/status")


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "battmon.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )
