"""Storage layer for query history."""

from linkgraph.storage.history_store import HistoryStore

__all__ = ["HistoryStore"]
