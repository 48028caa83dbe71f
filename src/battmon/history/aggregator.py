"""
Telemetry History
=================

Per-tick telemetry ingestion and session aggregation.

This module:
    - Pulls one raw sample per tick from the host (voltage, current, throttle)
    - Tracks running extrema: per-cell minimum voltage, max amps, max watts
    - Keeps a decimated trace of samples for the session record
    - Writes the session record to a SessionStore, one chunk per call

Extrema Rules:
    - min_cell_voltage[i] never increases once set
    - The first observation of a metric sets it directly (no zero baseline)
    - A scalar voltage is one logical cell
    - watts = amps * total volts, only when a voltage reading is present

Writing:
    write() is re-entrant across ticks. The first call serializes the
    record and stages it; each call writes one chunk; the call that writes
    the last chunk commits and fires on_complete. While `writing` is True
    the caller must not run estimator updates.
"""

import logging
from collections import deque
from typing import Callable, Deque, Optional, Tuple

import numpy as np

from battmon.config import HistoryConfig
from battmon.history.store import SessionStore
from battmon.host.interface import HostServices
from battmon.models.reading import (
    ABSENT,
    Absent,
    Sample,
    SensorReading,
    classify_reading,
)
from battmon.models.session import SampleRecord, SessionRecord
from battmon.models.state import HistoryState


logger = logging.getLogger(__name__)


def throttle_percent(raw: float) -> float:
    """
    Convert a raw throttle channel value to percent.

    -1000 -> 0%, 0 -> 50%, 1000 -> 100%
    """
    return 50 + raw / 20


class History:
    """
    Telemetry aggregator for one flight session.

    A new History is built on every reset; the previous one must have been
    written first if its data is to be kept.

    Attributes:
        state: Running aggregates
        latest: Most recent sample, None before the first tick
        writing: Session write in progress

    Example:
        history = History(host, "Cels", "Curr", 1, store)

        history.tick()
        history.get_total_volts()   # 16.8
        history.state.min_cell_voltage
    """

    def __init__(
        self,
        host: HostServices,
        voltage_sensor: str,
        current_sensor: str,
        throttle_channel: Optional[int],
        store: SessionStore,
        config: Optional[HistoryConfig] = None,
    ) -> None:
        """
        Initialize history.

        Args:
            host: Host services for sensor reads and the clock
            voltage_sensor: Voltage sensor name ('' to ignore)
            current_sensor: Current sensor name ('' to ignore)
            throttle_channel: Throttle input channel (None to ignore)
            store: Destination of session records
            config: Trace and write tuning
        """
        self.host = host
        self.voltage_sensor = voltage_sensor
        self.current_sensor = current_sensor
        self.throttle_channel = throttle_channel
        self.store = store
        self.config = config or HistoryConfig()

        self.state = HistoryState()
        self.latest: Optional[Sample] = None
        self.writing: bool = False

        self._pending_chunks: Deque[str] = deque()
        self._on_complete: Optional[Callable[[], None]] = None
        self._write_key: Tuple[int, int] = (0, 0)

        logger.debug(
            f"History created: voltage='{voltage_sensor}', "
            f"current='{current_sensor}', throttle={throttle_channel}"
        )

    # -------------------------------------------------------------------------
    # Ingestion
    # -------------------------------------------------------------------------

    def read_sample(self) -> Sample:
        """Read one raw sample from the host."""
        voltage: SensorReading = ABSENT
        if self.voltage_sensor:
            voltage = classify_reading(self.host.read_sensor(self.voltage_sensor))

        current: Optional[float] = None
        if self.current_sensor:
            reading = classify_reading(self.host.read_sensor(self.current_sensor))
            if not isinstance(reading, Absent):
                current = reading.total

        throttle: Optional[float] = None
        if self.throttle_channel is not None:
            raw = self.host.read_channel(self.throttle_channel)
            if raw is not None:
                throttle = throttle_percent(raw)

        return Sample(
            timestamp=self.host.now(),
            current=current,
            voltage=voltage,
            throttle=throttle,
        )

    def ingest(self, sample: Sample) -> None:
        """
        Fold one sample into the running aggregates.

        Args:
            sample: Sample to ingest
        """
        state = self.state
        self.latest = sample

        if state.started_at is None:
            state.started_at = sample.timestamp
        state.last_sample_at = sample.timestamp

        cells = sample.voltage.cells
        if cells:
            mins = state.min_cell_voltage
            n = min(len(mins), len(cells))
            merged = np.minimum(mins[:n], cells[:n]).tolist() if n else []
            state.min_cell_voltage = merged + mins[n:] + list(cells[n:])
            state.cell_count = max(state.cell_count, len(cells))

        if sample.current is not None:
            amps = sample.current
            if state.max_amps is None or amps > state.max_amps:
                state.max_amps = amps

            if not isinstance(sample.voltage, Absent):
                watts = amps * sample.voltage.total
                if state.max_watts is None or watts > state.max_watts:
                    state.max_watts = watts

    def get_total_volts(self) -> float:
        """Total pack voltage of the latest sample, 0 if absent."""
        if self.latest is None:
            return 0.0
        return self.latest.voltage.total

    def tick(self) -> Sample:
        """
        Periodic housekeeping: read, ingest, and extend the trace.

        Returns:
            The sample ingested this tick
        """
        sample = self.read_sample()
        self.ingest(sample)

        state = self.state
        state.ticks += 1
        if state.ticks % self.config.record_every_n_ticks == 0:
            self._append_record(sample)

        return sample

    def _append_record(self, sample: Sample) -> None:
        state = self.state
        if state.samples_written >= self.config.max_records:
            if state.samples_written == self.config.max_records:
                logger.warning(
                    f"Session trace full ({self.config.max_records} records), "
                    f"further samples are not recorded"
                )
                state.samples_written += 1
            return

        state.persisted_records.append(
            SampleRecord(
                timestamp=sample.timestamp,
                volts=max(0.0, sample.voltage.total),
                amps=sample.current,
                throttle=sample.throttle,
            )
        )
        state.samples_written += 1

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def build_record(
        self,
        flight_mode: int,
        battery_id: int,
        used_mah: Optional[float] = None,
        final_percent: Optional[int] = None,
    ) -> SessionRecord:
        """Summarize the session as a SessionRecord."""
        state = self.state
        return SessionRecord(
            timestamp=self.host.now(),
            flight_mode=flight_mode,
            battery_id=battery_id,
            duration_sec=state.duration_sec,
            cell_count=state.cell_count,
            min_cell_voltages=list(state.min_cell_voltage),
            max_amps=state.max_amps,
            max_watts=state.max_watts,
            used_mah=used_mah,
            final_percent=final_percent,
            samples=list(state.persisted_records),
        )

    def write(
        self,
        flight_mode: int,
        battery_id: int,
        on_complete: Optional[Callable[[], None]] = None,
        *,
        used_mah: Optional[float] = None,
        final_percent: Optional[int] = None,
    ) -> bool:
        """
        Write the session record, one chunk per call.

        The first call builds and stages the record. Later calls (made
        while `writing` is True) continue the same write; their arguments
        are ignored.

        Args:
            flight_mode: Flight mode bank (part of the record key)
            battery_id: Battery identity (part of the record key)
            on_complete: Called once the record is committed
            used_mah: Consumed mAh to store in the record
            final_percent: Remaining percent to store in the record

        Returns:
            True once the record has been committed
        """
        if not self.writing:
            record = self.build_record(flight_mode, battery_id, used_mah, final_percent)
            payload = record.model_dump_json()
            size = self.config.write_chunk_size
            self._pending_chunks = deque(
                payload[i:i + size] for i in range(0, len(payload), size)
            )
            self._on_complete = on_complete
            self._write_key = (flight_mode, battery_id)
            self.store.begin(flight_mode, battery_id)
            self.writing = True
            logger.info(
                f"Writing session record: fm={flight_mode} battery={battery_id} "
                f"{len(payload)} bytes in {len(self._pending_chunks)} chunks"
            )

        try:
            if self._pending_chunks:
                self.store.write_chunk(self._pending_chunks[0])
                self._pending_chunks.popleft()
            if self._pending_chunks:
                return False
            self.store.commit()
        except OSError as e:
            logger.error(f"Session write stalled: {e}")
            return False

        self.writing = False
        callback, self._on_complete = self._on_complete, None
        fm, bat = self._write_key
        logger.info(f"Session record written: fm={fm} battery={bat}")
        if callback is not None:
            callback()
        return True

    @property
    def pending_chunks(self) -> int:
        """Chunks left in the current write."""
        return len(self._pending_chunks)

    def get_metrics(self) -> dict:
        """Get history metrics for observability."""
        state = self.state
        return {
            "ticks": state.ticks,
            "cell_count": state.cell_count,
            "min_cell_voltage": state.min_cell_voltage,
            "max_amps": state.max_amps,
            "max_watts": state.max_watts,
            "samples_written": state.samples_written,
            "writing": self.writing,
            "pending_chunks": self.pending_chunks,
        }
