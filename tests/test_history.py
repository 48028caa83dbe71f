"""
History Tests
=============

Tests for telemetry aggregation and chunked session writes.
"""

from pathlib import Path

import pytest

from battmon.config import HistoryConfig
from battmon.history import FileSessionStore, History, throttle_percent
from battmon.models import ABSENT, Sample, Scalar, Vector


@pytest.fixture
def history(fake_host, memory_store):
    return History(fake_host, "Cels", "Curr", 1, memory_store)


def _sample(t, voltage, current=None):
    return Sample(timestamp=t, current=current, voltage=voltage)


class TestIngest:
    """Tests for running extrema."""

    def test_per_index_minimum(self, history):
        """Per-cell minima are taken index by index across ticks."""
        history.ingest(_sample(0.0, Vector((3.9, 3.8, 4.0))))
        history.ingest(_sample(0.1, Vector((3.85, 3.95, 3.99))))
        assert history.state.min_cell_voltage == [3.85, 3.8, 3.99]

    def test_minimum_is_order_independent(self, history, fake_host, memory_store):
        """Feeding the same samples in reverse gives the same minima."""
        history.ingest(_sample(0.0, Vector((3.85, 3.95, 3.99))))
        history.ingest(_sample(0.1, Vector((3.9, 3.8, 4.0))))
        assert history.state.min_cell_voltage == [3.85, 3.8, 3.99]

    def test_new_indices_extend_minima(self, history):
        """A longer vector extends the minima list."""
        history.ingest(_sample(0.0, Vector((4.0, 4.0))))
        history.ingest(_sample(0.1, Vector((3.9, 4.1, 4.05))))
        assert history.state.min_cell_voltage == [3.9, 4.0, 4.05]
        assert history.state.cell_count == 3

    def test_scalar_is_one_cell(self, history):
        """A scalar voltage is tracked as a single logical cell."""
        history.ingest(_sample(0.0, Scalar(16.8)))
        history.ingest(_sample(0.1, Scalar(16.2)))
        assert history.state.min_cell_voltage == [16.2]

    def test_first_observation_sets_maxima(self, history):
        """max_amps/max_watts start unset and take the first value directly."""
        assert history.state.max_amps is None
        history.ingest(_sample(0.0, Vector((4.0, 4.0)), current=-2.0))
        assert history.state.max_amps == -2.0
        assert history.state.max_watts == pytest.approx(-16.0)

    def test_watts_use_total_volts(self, history):
        """watts = amps * pack total."""
        history.ingest(_sample(0.0, Vector((4.0, 4.0, 4.0, 4.0)), current=10.0))
        history.ingest(_sample(0.1, Vector((3.9, 3.9, 3.9, 3.9)), current=20.0))
        history.ingest(_sample(0.2, Vector((4.0, 4.0, 4.0, 4.0)), current=5.0))
        assert history.state.max_amps == 20.0
        assert history.state.max_watts == pytest.approx(312.0)

    def test_no_watts_without_voltage(self, history):
        """Watts are not computed when voltage is absent."""
        history.ingest(_sample(0.0, ABSENT, current=10.0))
        assert history.state.max_amps == 10.0
        assert history.state.max_watts is None

    def test_total_volts(self, history):
        """get_total_volts() sums the latest vector, 0 before any sample."""
        assert history.get_total_volts() == 0.0
        history.ingest(_sample(0.0, Vector((4.0, 4.1))))
        assert history.get_total_volts() == pytest.approx(8.1)
        history.ingest(_sample(0.1, ABSENT))
        assert history.get_total_volts() == 0.0


class TestTick:
    """Tests for tick() sensor reads and trace decimation."""

    def test_tick_reads_host(self, history, fake_host):
        """tick() reads voltage, current and throttle from the host."""
        fake_host.sensors["Curr"] = 12.5
        fake_host.channels[1] = 1000
        sample = history.tick()

        assert sample.voltage == Vector((4.2, 4.2, 4.2, 4.2))
        assert sample.current == 12.5
        assert sample.throttle == 100.0
        assert history.state.ticks == 1

    def test_trace_decimation(self, fake_host, memory_store):
        """One trace row is kept every record_every_n_ticks ticks."""
        history = History(
            fake_host, "Cels", "Curr", 1, memory_store,
            HistoryConfig(record_every_n_ticks=5, max_records=3),
        )
        for _ in range(30):
            fake_host.advance(0.1)
            history.tick()
        assert len(history.state.persisted_records) == 3

    def test_empty_sensor_names_are_skipped(self, fake_host, memory_store):
        """Unconfigured sensors produce absent values."""
        history = History(fake_host, "", "", None, memory_store)
        sample = history.tick()
        assert sample.voltage is ABSENT
        assert sample.current is None
        assert sample.throttle is None

    @pytest.mark.parametrize("raw,expected", [(-1000, 0.0), (0, 50.0), (1000, 100.0)])
    def test_throttle_percent(self, raw, expected):
        """Raw throttle maps linearly onto 0..100%."""
        assert throttle_percent(raw) == expected


class TestWrite:
    """Tests for chunked session writes."""

    def test_multi_tick_write(self, fake_host, memory_store):
        """A large record is written across several calls."""
        history = History(
            fake_host, "Cels", "Curr", 1, memory_store,
            HistoryConfig(record_every_n_ticks=1, write_chunk_size=64),
        )
        for _ in range(10):
            fake_host.advance(0.1)
            history.tick()

        done = []
        assert history.write(0, 3, lambda: done.append(True), used_mah=400) is False
        assert history.writing is True
        assert done == []

        calls = 1
        while history.writing:
            history.write(0, 3)
            calls += 1

        assert calls > 2
        assert done == [True]
        records = memory_store.load(0, 3)
        assert len(records) == 1
        assert records[0].used_mah == 400
        assert len(records[0].samples) == 10
        assert records[0].min_cell_voltages == [4.2, 4.2, 4.2, 4.2]

    def test_callback_runs_after_writing_cleared(self, history):
        """on_complete sees writing=False."""
        seen = []
        history.config = HistoryConfig(write_chunk_size=100000)
        history.write(0, 1, lambda: seen.append(history.writing))
        assert seen == [False]

    def test_stalled_write_keeps_writing(self, history):
        """An OSError from the store leaves writing set."""

        class BrokenStore:
            def begin(self, flight_mode, battery_id):
                pass

            def write_chunk(self, data):
                raise OSError("disk full")

            def commit(self):
                pass

        history.store = BrokenStore()
        assert history.write(0, 1) is False
        assert history.writing is True

    def test_stalled_commit_retries_without_duplicate(self, fake_host, tmp_path, monkeypatch):
        """A commit that fails during cleanup is retried without a second record."""
        store = FileSessionStore(str(tmp_path))
        history = History(
            fake_host, "Cels", "Curr", 1, store,
            HistoryConfig(write_chunk_size=100000),
        )
        original_unlink = Path.unlink
        failures = []

        def flaky_unlink(self, *args, **kwargs):
            if not failures:
                failures.append(self)
                raise OSError("device busy")
            return original_unlink(self, *args, **kwargs)

        monkeypatch.setattr(Path, "unlink", flaky_unlink)

        assert history.write(0, 1, used_mah=250) is False
        assert history.writing is True
        assert history.write(0, 1) is True
        assert history.writing is False

        records = store.load(0, 1)
        assert len(records) == 1
        assert records[0].used_mah == 250
