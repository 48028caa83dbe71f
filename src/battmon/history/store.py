"""
Session Stores
==============

Durable storage for flight session records.

A record is written in chunks across several ticks, so a store is a small
staged-write protocol:

    begin(flight_mode, battery_id) -> write_chunk(data) ... -> commit()

Nothing is visible in the log until commit(). A write abandoned before
commit (e.g. reset during a write) leaves at most a stale staging file
that the next begin() truncates.

Implementations:
    - FileSessionStore: one JSON-lines file per flight mode / battery
    - MemorySessionStore: in-process, for tests and the simulator
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Tuple

from pydantic import ValidationError

from battmon.models.session import SessionRecord


logger = logging.getLogger(__name__)


SessionKey = Tuple[int, int]


class SessionStore(Protocol):
    """Protocol for session record persistence."""

    def begin(self, flight_mode: int, battery_id: int) -> None:
        """Start staging a record for the given identity."""
        ...

    def write_chunk(self, data: str) -> None:
        """Append part of the serialized record to the staging area."""
        ...

    def commit(self) -> None:
        """Publish the staged record as one log line."""
        ...

    def load(self, flight_mode: int, battery_id: int) -> List[SessionRecord]:
        """Read back every committed record for an identity."""
        ...

    def keys(self) -> List[SessionKey]:
        """List identities that have committed records."""
        ...


def _parse_lines(lines: List[str], source: str) -> List[SessionRecord]:
    records = []
    for number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            records.append(SessionRecord.model_validate_json(line))
        except ValidationError as e:
            logger.warning(f"Skipping corrupt session record {source}:{number}: {e}")
    return records


class MemorySessionStore:
    """
    In-memory session store.

    Attributes:
        lines: Committed JSON lines by (flight_mode, battery_id)
        chunks_written: Total chunks received
    """

    def __init__(self) -> None:
        self.lines: Dict[SessionKey, List[str]] = {}
        self.chunks_written = 0
        self._key: Optional[SessionKey] = None
        self._staged: List[str] = []

    def begin(self, flight_mode: int, battery_id: int) -> None:
        self._key = (flight_mode, battery_id)
        self._staged = []

    def write_chunk(self, data: str) -> None:
        if self._key is None:
            raise RuntimeError("write_chunk() called before begin()")
        self._staged.append(data)
        self.chunks_written += 1

    def commit(self) -> None:
        if self._key is None:
            raise RuntimeError("commit() called before begin()")
        self.lines.setdefault(self._key, []).append("".join(self._staged))
        self._key = None
        self._staged = []

    def load(self, flight_mode: int, battery_id: int) -> List[SessionRecord]:
        lines = self.lines.get((flight_mode, battery_id), [])
        return _parse_lines(lines, f"memory:fm{flight_mode}_bat{battery_id}")

    def keys(self) -> List[SessionKey]:
        return sorted(self.lines)


class FileSessionStore:
    """
    JSON-lines session store.

    Layout:
        <directory>/fm<flight_mode>_bat<battery_id>.jsonl        committed log
        <directory>/fm<flight_mode>_bat<battery_id>.jsonl.part   staging file

    Example:
        store = FileSessionStore("./data/sessions")
        store.begin(0, 3)
        store.write_chunk('{"timestamp": 1.0, ')
        store.write_chunk('"flight_mode": 0, "battery_id": 3}')
        store.commit()
    """

    def __init__(self, directory: str) -> None:
        """
        Initialize file store.

        Args:
            directory: Directory for session logs, created if missing
        """
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self._key: Optional[SessionKey] = None
        self._appended = False
        logger.info(f"FileSessionStore initialized: {self.directory}")

    def _log_path(self, key: SessionKey) -> Path:
        return self.directory / f"fm{key[0]}_bat{key[1]}.jsonl"

    def _part_path(self, key: SessionKey) -> Path:
        return self.directory / f"fm{key[0]}_bat{key[1]}.jsonl.part"

    def begin(self, flight_mode: int, battery_id: int) -> None:
        self._key = (flight_mode, battery_id)
        self._appended = False
        self._part_path(self._key).write_text("", encoding="utf-8")

    def write_chunk(self, data: str) -> None:
        if self._key is None:
            raise RuntimeError("write_chunk() called before begin()")
        with open(self._part_path(self._key), "a", encoding="utf-8") as f:
            f.write(data)

    def commit(self) -> None:
        if self._key is None:
            raise RuntimeError("commit() called before begin()")
        part = self._part_path(self._key)
        # A retried commit only finishes cleanup once the record is in the log
        if not self._appended:
            payload = part.read_text(encoding="utf-8")
            with open(self._log_path(self._key), "a", encoding="utf-8") as f:
                f.write(payload + "\n")
            self._appended = True
        part.unlink(missing_ok=True)
        logger.info(f"Session record committed: {self._log_path(self._key)}")
        self._key = None

    def load(self, flight_mode: int, battery_id: int) -> List[SessionRecord]:
        path = self._log_path((flight_mode, battery_id))
        if not path.exists():
            return []
        lines = path.read_text(encoding="utf-8").splitlines()
        return _parse_lines(lines, str(path))

    def keys(self) -> List[SessionKey]:
        keys = []
        for path in self.directory.glob("fm*_bat*.jsonl"):
            fm, _, bat = path.stem.partition("_bat")
            try:
                keys.append((int(fm[2:]), int(bat)))
            except ValueError:
                logger.debug(f"Ignoring unrelated file: {path.name}")
        return sorted(keys)
