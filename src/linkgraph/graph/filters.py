"""View filter engine: project the canonical set into a working view."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Sequence

from linkgraph.models import OWNER_ID, Edge, Node, star_edges

logger = logging.getLogger(__name__)


class FilterKind(str, Enum):
    """Which predicate a ViewFilter applies."""

    ALL = "all"
    BY_YEAR = "by_year"
    BY_MATCH_SET = "by_match_set"


@dataclass(frozen=True)
class ViewFilter:
    """Filter descriptor. The owner always passes."""

    kind: FilterKind = FilterKind.ALL
    year: int | None = None
    ids: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def all(cls) -> "ViewFilter":
        return cls()

    @classmethod
    def by_year(cls, year: int) -> "ViewFilter":
        return cls(kind=FilterKind.BY_YEAR, year=int(year))

    @classmethod
    def by_match_set(cls, ids: Iterable[str]) -> "ViewFilter":
        return cls(kind=FilterKind.BY_MATCH_SET, ids=frozenset(ids))

    def accepts(self, node: Node) -> bool:
        if node.is_owner:
            return True
        if self.kind == FilterKind.BY_YEAR:
            return node.year == self.year
        if self.kind == FilterKind.BY_MATCH_SET:
            return node.id in self.ids
        return True

    def describe(self) -> str:
        if self.kind == FilterKind.BY_YEAR:
            return f"year {self.year}"
        if self.kind == FilterKind.BY_MATCH_SET:
            return f"{len(self.ids)} matched ids"
        return "all"

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "year": self.year,
            "ids": sorted(self.ids),
        }


@dataclass(frozen=True)
class WorkingView:
    """Displayed subset of the canonical set plus its derived star edges."""

    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()
    filter: ViewFilter = field(default_factory=ViewFilter)

    @property
    def node_ids(self) -> tuple[str, ...]:
        """Identity of the population, in canonical order."""
        return tuple(n.id for n in self.nodes)

    @property
    def owner(self) -> Node | None:
        return next((n for n in self.nodes if n.is_owner), None)

    @property
    def connections(self) -> tuple[Node, ...]:
        return tuple(n for n in self.nodes if not n.is_owner)

    def get(self, node_id: str) -> Node | None:
        return next((n for n in self.nodes if n.id == node_id), None)

    def __contains__(self, node_id: object) -> bool:
        return any(n.id == node_id for n in self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)


def compute_working_view(canonical_nodes: Sequence[Node], view_filter: ViewFilter) -> WorkingView:
    """Apply a filter to the canonical set.

    The canonical sequence is never modified; edges are rebuilt from scratch
    as one owner edge per retained connection.
    """
    nodes = tuple(n for n in canonical_nodes if view_filter.accepts(n))

    if view_filter.kind == FilterKind.BY_MATCH_SET:
        known = {n.id for n in canonical_nodes}
        unknown = view_filter.ids - known - {OWNER_ID}
        if unknown:
            logger.debug(f"Ignoring {len(unknown)} ids absent from the canonical set")

    # No owner, no star
    edges = tuple(star_edges(nodes)) if any(n.is_owner for n in nodes) else ()
    logger.debug(f"Working view ({view_filter.describe()}): {len(nodes)} nodes, {len(edges)} edges")
    return WorkingView(nodes=nodes, edges=edges, filter=view_filter)


def available_years(canonical_nodes: Iterable[Node]) -> list[int]:
    """Distinct connection years, newest first."""
    return sorted({n.year for n in canonical_nodes if not n.is_owner}, reverse=True)
