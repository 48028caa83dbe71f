"""
battmon Configuration
=====================

This module handles configuration loading for the battery monitor.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    BATTMON_VOLTAGE_SENSOR      -> sensors.voltage
    BATTMON_CONSUMPTION_SENSOR  -> sensors.consumption
    BATTMON_CURRENT_SENSOR      -> sensors.current
    BATTMON_RESERVE_PERCENT     -> capacity.reserve_percent
    BATTMON_RESET_SWITCH        -> reset.switch
    BATTMON_SOUND_DIR           -> alerts.sound_dir
    BATTMON_ANNOUNCE            -> alerts.announce_percent
    BATTMON_STORE_DIR           -> history.store_dir
    BATTMON_PORT                -> server.port
    BATTMON_LOG_LEVEL           -> logging.level
    PORT                        -> server.port (container platforms)

Example:
    from battmon.config import settings

    print(settings.sensors.voltage)
    print(settings.capacity.reserve_percent)
    print(settings.alerts.cell_full_voltage)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class SensorConfig(BaseModel):
    """Telemetry sensor names as shown on the host TELEMETRY screen."""

    voltage: str = Field(
        default="Cels",
        description="Voltage sensor (per-cell vector or pack scalar); '' to ignore",
    )
    consumption: str = Field(
        default="mAh",
        description="Calculated consumption sensor (used mAh); '' to ignore",
    )
    current: str = Field(default="Curr", description="Current sensor (amps); '' to ignore")
    throttle_channel: int = Field(default=1, ge=0, description="Throttle input channel id")


class CapacityConfig(BaseModel):
    """Capacity estimation configuration."""

    reserve_percent: int = Field(
        default=20,
        ge=0,
        le=100,
        description="Reserve kept in the pack; displayed % = estimated % - reserve",
    )
    volts_dropout_threshold: float = Field(
        default=1.0,
        ge=0,
        description="Pack readings at or below this are treated as dropouts",
    )


class GlobalVariableConfig(BaseModel):
    """Host global variable (GV) slots, all read from one flight mode bank."""

    flight_mode: int = Field(default=0, ge=0, le=8, description="Flight mode bank")
    cell_count_slot: int = Field(default=5, ge=0, description="GV6: number of cells")
    capacity_slot: int = Field(default=6, ge=0, description="GV7: capacity in mAh/100")
    battery_id_slot: int = Field(default=7, ge=0, description="GV8: battery id in use")
    capacity_scale: int = Field(default=100, gt=0, description="GV capacity multiplier")
    remaining_mah_slot: Optional[int] = Field(
        default=None,
        ge=0,
        description="Write floor(remaining mAh / 100) here when set",
    )
    remaining_percent_slot: Optional[int] = Field(
        default=None,
        ge=0,
        description="Write remaining percent here when set",
    )


class ResetConfig(BaseModel):
    """Reset switch configuration."""

    switch: str = Field(default="sh", description="Reset switch source; '' to disable")
    released_value: int = Field(
        default=-1024,
        description="Value the host reports for the switch in its up/away position",
    )
    debounce_sec: float = Field(default=2.0, gt=0, description="Reset debounce window")


class AlertConfig(BaseModel):
    """Alert thresholds and announcement options."""

    cell_full_voltage: float = Field(
        default=4.0,
        gt=0,
        description="A cell below this at reset triggers the not-full warning",
    )
    voltage_delta: float = Field(
        default=0.3,
        gt=0,
        description="Max allowed spread between cells before the inconsistent warning",
    )
    missing_cell_voltage: float = Field(
        default=3.2,
        gt=0,
        description="Per-cell floor used to detect missing cells on a pack sensor",
    )
    warning_repeat_sec: float = Field(
        default=10.0,
        gt=0,
        description="Repeat period of inconsistent/missing cell warnings",
    )
    announce_percent: bool = Field(default=True, description="Announce % milestones")
    play_at_zero: int = Field(default=1, ge=0, description="Times to play the empty cue")
    fun_sounds: bool = Field(default=False, description="Extra cues when the pack is empty")
    sound_dir: str = Field(
        default="/WIDGETS/mahRe2/sounds/",
        description="Directory holding the sound assets",
    )


class HistoryConfig(BaseModel):
    """Telemetry history and session persistence configuration."""

    record_every_n_ticks: int = Field(default=10, ge=1, description="Trace decimation")
    max_records: int = Field(default=2000, ge=0, description="Trace rows kept per session")
    write_chunk_size: int = Field(
        default=512,
        ge=16,
        description="Bytes written per tick while persisting a session",
    )
    store_dir: str = Field(default="./data/sessions", description="Session log directory")


class SimulatorConfig(BaseModel):
    """Simulated host used by the service entry point."""

    cell_count: int = Field(default=4, ge=1, le=14, description="Simulated cells")
    capacity_mah: int = Field(default=2200, gt=0, description="Simulated pack capacity")
    current_amps: float = Field(default=15.0, ge=0, description="Constant discharge current")
    tick_interval_sec: float = Field(default=0.1, gt=0, description="Tick period")
    time_scale: float = Field(
        default=10.0,
        gt=0,
        description="Simulated seconds per wall-clock second",
    )
    noise_volts: float = Field(default=0.01, ge=0, description="Per-cell voltage ripple")


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for battmon.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    sensors: SensorConfig = Field(default_factory=SensorConfig)
    capacity: CapacityConfig = Field(default_factory=CapacityConfig)
    global_vars: GlobalVariableConfig = Field(default_factory=GlobalVariableConfig)
    reset: ResetConfig = Field(default_factory=ResetConfig)
    alerts: AlertConfig = Field(default_factory=AlertConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    simulator: SimulatorConfig = Field(default_factory=SimulatorConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Sensors (empty string is meaningful: it disables the sensor)
    if (env_volt := os.environ.get("BATTMON_VOLTAGE_SENSOR")) is not None:
        config_data.setdefault("sensors", {})["voltage"] = env_volt
    if (env_mah := os.environ.get("BATTMON_CONSUMPTION_SENSOR")) is not None:
        config_data.setdefault("sensors", {})["consumption"] = env_mah
    if (env_curr := os.environ.get("BATTMON_CURRENT_SENSOR")) is not None:
        config_data.setdefault("sensors", {})["current"] = env_curr

    if env_reserve := os.environ.get("BATTMON_RESERVE_PERCENT"):
        config_data.setdefault("capacity", {})["reserve_percent"] = int(env_reserve)

    if (env_switch := os.environ.get("BATTMON_RESET_SWITCH")) is not None:
        config_data.setdefault("reset", {})["switch"] = env_switch

    if env_sounds := os.environ.get("BATTMON_SOUND_DIR"):
        config_data.setdefault("alerts", {})["sound_dir"] = env_sounds
    if env_announce := os.environ.get("BATTMON_ANNOUNCE"):
        config_data.setdefault("alerts", {})["announce_percent"] = (
            env_announce.lower() in ("1", "true", "yes", "on")
        )

    if env_store := os.environ.get("BATTMON_STORE_DIR"):
        config_data.setdefault("history", {})["store_dir"] = env_store

    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("BATTMON_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    if env_log := os.environ.get("BATTMON_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
