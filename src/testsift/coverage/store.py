"""Bounded coverage history, persisted as JSON."""

from __future__ import annotations

import json
import threading
from collections import deque
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Union

from ..logging_config import get_logger
from .models import CoverageSnapshot, HistoryEntry
from .parser import parse_coverage

logger = get_logger(__name__)

HISTORY_FILENAME = "coverage-history.json"
SUMMARY_FILENAME = "coverage-summary.json"


class CoverageHistory:
    """FIFO-bounded sequence of (timestamp, snapshot) entries."""

    def __init__(self, limit: int = 50):
        if limit < 1:
            raise ValueError("history limit must be at least 1")
        self.limit = limit
        self._entries: deque[HistoryEntry] = deque(maxlen=limit)

    def append(self, snapshot: CoverageSnapshot, timestamp: Optional[datetime] = None) -> None:
        # deque(maxlen) drops the oldest entry on overflow
        self._entries.append(HistoryEntry(timestamp or datetime.now(), snapshot))

    def latest(self) -> Optional[HistoryEntry]:
        return self._entries[-1] if self._entries else None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self._entries)

    def to_list(self) -> list[dict]:
        return [entry.to_dict() for entry in self._entries]


class CoverageStore:
    """Coverage history backed by ``<persist_dir>/coverage-history.json``.

    Without a persist directory the history lives in memory only.
    """

    def __init__(self, persist_dir: Optional[Union[str, Path]] = None, history_limit: int = 50):
        self.persist_dir = Path(persist_dir) if persist_dir is not None else None
        self._lock = threading.Lock()
        self._history = CoverageHistory(history_limit)
        if self.persist_dir is not None:
            self._load_history()

    @property
    def history_file(self) -> Optional[Path]:
        if self.persist_dir is None:
            return None
        return self.persist_dir / HISTORY_FILENAME

    @property
    def history(self) -> CoverageHistory:
        return self._history

    def _load_history(self) -> None:
        path = self.history_file
        if path is None or not path.exists():
            return
        try:
            with open(path, encoding="utf-8") as f:
                raw = json.load(f)
            entries = [
                (datetime.fromisoformat(item["timestamp"]), CoverageSnapshot.from_dict(item["coverage"]))
                for item in raw
            ]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable coverage history {path}: {e}")
            return

        for timestamp, snapshot in entries:
            self._history.append(snapshot, timestamp)
        logger.debug(f"Loaded {len(self._history)} coverage history entries from {path}")

    def record_and_persist(
        self, snapshot: CoverageSnapshot, timestamp: Optional[datetime] = None
    ) -> None:
        """Append ``snapshot`` to history and write the history file.

        Write failures are logged; the in-memory history is still updated.
        """
        with self._lock:
            self._history.append(snapshot, timestamp)
            path = self.history_file
            if path is None:
                return
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                with open(path, "w", encoding="utf-8") as f:
                    json.dump(self._history.to_list(), f, indent=2)
            except OSError as e:
                logger.warning(f"Failed to persist coverage history to {path}: {e}")
                return
        logger.info(f"Recorded coverage snapshot ({snapshot.line_pct:.1f}% lines) to {path}")

    def previous(self) -> Optional[CoverageSnapshot]:
        """Most recently recorded snapshot, if any."""
        entry = self._history.latest()
        return entry.snapshot if entry else None

    def load_report(
        self,
        coverage_dir: Optional[Union[str, Path]] = None,
        root: Optional[Path] = None,
    ) -> Optional[CoverageSnapshot]:
        """Read ``coverage-summary.json`` from a coverage directory.

        Defaults to the persist directory. Absolute file keys are made
        relative to ``root`` (default: the directory's parent). Returns
        None when the report is missing or unparseable.
        """
        directory = Path(coverage_dir) if coverage_dir is not None else self.persist_dir
        if directory is None:
            return None
        report = directory / SUMMARY_FILENAME
        if not report.exists():
            logger.info(f"No coverage report at {report}")
            return None
        try:
            text = report.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Cannot read coverage report {report}: {e}")
            return None

        snapshot = parse_coverage(text, root=root or directory.resolve().parent)
        if snapshot is None:
            logger.warning(f"Unrecognized coverage report format: {report}")
        return snapshot
