"""Match results produced by an LLM network query."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)


def _clamp_score(value: Any) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    return max(0.0, min(100.0, score))


@dataclass(frozen=True)
class Match:
    """One connection the LLM judged relevant to a query."""

    id: str
    name: str = ""
    score: float = 0.0  # 0-100
    reason: str = ""
    aspect: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Match":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            score=_clamp_score(data.get("score", 0)),
            reason=str(data.get("reason") or ""),
            aspect=str(data.get("aspect") or ""),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "score": self.score,
            "reason": self.reason,
            "aspect": self.aspect,
        }


@dataclass(frozen=True)
class MatchResult:
    """
    Explanation plus scored matches for one query.

    Opaque to the layout engine except for the ids and scores; a result
    replaces any earlier one wholesale.
    """

    explanation: str = ""
    matches: tuple[Match, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MatchResult":
        """Build from a decoded payload, skipping match entries without an id."""
        if not isinstance(data, dict):
            raise ValueError(f"Match result must be an object, got {type(data).__name__}")

        raw_matches = data.get("matches") or []
        if not isinstance(raw_matches, list):
            raise ValueError("'matches' must be a list")

        matches = []
        for item in raw_matches:
            if not isinstance(item, dict) or item.get("id") in (None, ""):
                logger.debug(f"Skipping match entry without id: {item!r}")
                continue
            matches.append(Match.from_dict(item))

        return cls(explanation=str(data.get("explanation") or ""), matches=tuple(matches))

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(m.id for m in self.matches)

    def match_map(self) -> dict[str, Match]:
        """id -> Match lookup; later duplicates win."""
        return {m.id: m for m in self.matches}

    def to_dict(self) -> dict:
        return {
            "explanation": self.explanation,
            "matches": [m.to_dict() for m in self.matches],
        }


@dataclass
class HistoryEntry:
    """A past query and its result, keyed by creation timestamp."""

    id: str
    query: str
    result: MatchResult
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryEntry":
        return cls(
            id=str(data["id"]),
            query=str(data.get("query") or ""),
            result=MatchResult.from_dict(data.get("result") or {}),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "query": self.query,
            "timestamp": self.timestamp.isoformat(),
            "result": self.result.to_dict(),
        }
