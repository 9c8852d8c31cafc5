"""JSON-file persistence for query history and the last applied result.

The graph engine works without a store; a missing or unreadable file is a
cold start with empty history.
"""

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from linkgraph.config import settings
from linkgraph.models import HistoryEntry, MatchResult

logger = logging.getLogger(__name__)


class HistoryStore:
    """Append-only query history plus a single "last result" slot."""

    def __init__(
        self,
        path: str | Path | None = None,
        max_entries: int | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.path = Path(path) if path else Path(settings.history_path)
        self.max_entries = max_entries or settings.history_max_entries
        self._clock = clock
        self._data = self._load()

    def _load(self) -> dict[str, Any]:
        empty: dict[str, Any] = {"last": None, "history": []}
        if not self.path.exists():
            return empty
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load history from {self.path}: {e}")
            return empty
        if not isinstance(data, dict) or not isinstance(data.get("history"), list):
            logger.warning(f"Ignoring malformed history file {self.path}")
            return empty
        history = [raw for raw in data["history"] if isinstance(raw, dict)]
        return {"last": data.get("last"), "history": history}

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._data, indent=2, ensure_ascii=False), encoding="utf-8")

    # ------------------------------------------------------------------
    # History log
    # ------------------------------------------------------------------

    def entries(self) -> list[HistoryEntry]:
        """All readable entries, newest first."""
        entries = []
        for raw in self._data["history"]:
            try:
                entries.append(HistoryEntry.from_dict(raw))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable history entry: {e}")
        return sorted(entries, key=lambda e: e.timestamp, reverse=True)

    def append(self, query: str, result: MatchResult) -> HistoryEntry:
        """Record a result; the oldest entries drop beyond max_entries."""
        timestamp = self._clock()
        entry_id = str(int(timestamp.timestamp() * 1000))
        existing = {str(raw.get("id")) for raw in self._data["history"]}
        while entry_id in existing:
            entry_id = str(int(entry_id) + 1)

        entry = HistoryEntry(id=entry_id, query=query, result=result, timestamp=timestamp)
        history = self._data["history"]
        history.append(entry.to_dict())
        if len(history) > self.max_entries:
            del history[: len(history) - self.max_entries]
        self._save()
        return entry

    def get(self, entry_id: str) -> HistoryEntry | None:
        return next((e for e in self.entries() if e.id == entry_id), None)

    def delete(self, entry_id: str) -> bool:
        history = self._data["history"]
        kept = [raw for raw in history if str(raw.get("id")) != entry_id]
        if len(kept) == len(history):
            return False
        self._data["history"] = kept
        self._save()
        return True

    # ------------------------------------------------------------------
    # Last result slot
    # ------------------------------------------------------------------

    def load_last(self) -> MatchResult | None:
        raw = self._data.get("last")
        if not raw:
            return None
        try:
            return MatchResult.from_dict(raw)
        except ValueError as e:
            logger.warning(f"Failed to restore last result: {e}")
            return None

    def save_last(self, result: MatchResult) -> None:
        self._data["last"] = result.to_dict()
        self._save()

    def clear_last(self) -> None:
        self._data["last"] = None
        self._save()

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_entry(self, entry_id: str, directory: str | Path = ".") -> Path | None:
        """Write one entry to ``ai_search_<query>_<date>.json``."""
        entry = self.get(entry_id)
        if entry is None:
            return None
        slug = re.sub(r"[^a-z0-9]", "_", entry.query[:20], flags=re.IGNORECASE)
        path = Path(directory) / f"ai_search_{slug}_{entry.timestamp:%Y-%m-%d}.json"
        return _write_json(path, entry.to_dict())

    def export_result(self, result: MatchResult, directory: str | Path = ".") -> Path:
        """Write a result to ``ai_network_analysis_<date>.json``."""
        path = Path(directory) / f"ai_network_analysis_{self._clock():%Y-%m-%d}.json"
        return _write_json(path, result.to_dict())


def _write_json(path: Path, payload: dict) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    return path
