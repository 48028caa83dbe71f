"""
Session Store Tests
===================

Tests for staged session persistence.
"""

from pathlib import Path

import pytest

from battmon.history import FileSessionStore, MemorySessionStore
from battmon.models import SessionRecord


def _record(battery_id=2, used_mah=350.0):
    return SessionRecord(
        timestamp=120.0,
        flight_mode=0,
        battery_id=battery_id,
        duration_sec=118.0,
        cell_count=4,
        min_cell_voltages=[3.7, 3.71, 3.69, 3.7],
        max_amps=32.0,
        max_watts=520.0,
        used_mah=used_mah,
        final_percent=62,
    )


def _write(store, record, chunk=20):
    payload = record.model_dump_json()
    store.begin(record.flight_mode, record.battery_id)
    for i in range(0, len(payload), chunk):
        store.write_chunk(payload[i:i + chunk])
    store.commit()


class TestFileSessionStore:
    """Tests for the JSON-lines store."""

    def test_commit_appends_line(self, tmp_path):
        """Committed records are appended to the per-battery log."""
        store = FileSessionStore(str(tmp_path))
        _write(store, _record(used_mah=100))
        _write(store, _record(used_mah=200))

        records = store.load(0, 2)
        assert [r.used_mah for r in records] == [100, 200]
        assert (tmp_path / "fm0_bat2.jsonl").exists()
        assert not (tmp_path / "fm0_bat2.jsonl.part").exists()

    def test_uncommitted_record_is_invisible(self, tmp_path):
        """Chunks are not visible in the log before commit()."""
        store = FileSessionStore(str(tmp_path))
        store.begin(0, 5)
        store.write_chunk('{"timestamp": 1.0')
        assert store.load(0, 5) == []
        assert store.keys() == []

    def test_corrupt_line_is_skipped(self, tmp_path):
        """A corrupt line is skipped, valid lines still load."""
        store = FileSessionStore(str(tmp_path))
        _write(store, _record())
        with open(tmp_path / "fm0_bat2.jsonl", "a", encoding="utf-8") as f:
            f.write("{not json\n")
        _write(store, _record(used_mah=999))

        records = store.load(0, 2)
        assert [r.used_mah for r in records] == [350, 999]

    def test_commit_retry_appends_once(self, tmp_path, monkeypatch):
        """Retrying a commit whose cleanup failed does not duplicate the record."""
        store = FileSessionStore(str(tmp_path))
        original_unlink = Path.unlink
        failures = []

        def flaky_unlink(path, *args, **kwargs):
            if not failures:
                failures.append(path)
                raise OSError("device busy")
            return original_unlink(path, *args, **kwargs)

        monkeypatch.setattr(Path, "unlink", flaky_unlink)

        with pytest.raises(OSError):
            _write(store, _record(battery_id=1))
        store.commit()

        assert len(store.load(0, 1)) == 1
        assert not (tmp_path / "fm0_bat1.jsonl.part").exists()

    def test_keys(self, tmp_path):
        """keys() lists (flight_mode, battery_id) pairs with records."""
        store = FileSessionStore(str(tmp_path))
        _write(store, _record(battery_id=3))
        _write(store, _record(battery_id=1))
        (tmp_path / "notes.txt").write_text("ignored")
        assert store.keys() == [(0, 1), (0, 3)]

    def test_creates_directory(self, tmp_path):
        """The store directory is created if missing."""
        FileSessionStore(str(tmp_path / "a" / "b"))
        assert (tmp_path / "a" / "b").is_dir()


class TestMemorySessionStore:
    """Tests for the in-memory store."""

    def test_round_trip(self):
        """A committed record loads back unchanged."""
        store = MemorySessionStore()
        record = _record()
        _write(store, record)
        assert store.load(0, 2) == [record]
        assert store.chunks_written > 1

    def test_write_before_begin_raises(self):
        """write_chunk() without begin() is a programming error."""
        store = MemorySessionStore()
        with pytest.raises(RuntimeError):
            store.write_chunk("x")
