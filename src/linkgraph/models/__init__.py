"""Linkgraph data models."""

from linkgraph.models.match import HistoryEntry, Match, MatchResult
from linkgraph.models.node import (
    EPOCH,
    OWNER_ID,
    ConnectionRecord,
    Edge,
    Node,
    OwnerProfile,
    make_owner_node,
    star_edges,
)

__all__ = [
    "EPOCH",
    "OWNER_ID",
    "ConnectionRecord",
    "Edge",
    "Node",
    "OwnerProfile",
    "make_owner_node",
    "star_edges",
    "Match",
    "MatchResult",
    "HistoryEntry",
]
