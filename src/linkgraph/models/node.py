"""Node and edge records for the owner and their connections."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

OWNER_ID = "ME"

# Sentinel for missing or unparseable connection dates
EPOCH = datetime(1970, 1, 1)


@dataclass
class ConnectionRecord:
    """One row of the connections export, before it becomes a Node."""

    first_name: str
    last_name: str = ""
    role: str = ""
    company: str = ""
    profile_url: str | None = None
    connected_on_raw: str = ""


@dataclass
class OwnerProfile:
    """The exporting user's own profile, used as query context."""

    first_name: str = ""
    last_name: str = ""
    headline: str = ""
    summary: str = ""
    industry: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.headline or self.summary or self.industry)


@dataclass(frozen=True)
class Node:
    """
    A person in the graph.

    Canonical nodes are immutable; positions and pins live in the
    simulation, never on the record itself.
    """

    id: str
    name: str
    role: str = ""
    company: str = ""
    connected_date: datetime = field(default=EPOCH)
    profile_url: str | None = None

    @property
    def is_owner(self) -> bool:
        return self.id == OWNER_ID

    @property
    def year(self) -> int:
        return self.connected_date.year

    @property
    def first_name(self) -> str:
        return self.name.split(" ")[0] if self.name else ""

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "company": self.company,
            "connected_date": self.connected_date.isoformat(),
            "profile_url": self.profile_url,
        }


@dataclass(frozen=True)
class Edge:
    """Star edge from the owner to one connection."""

    source: str
    target: str

    def to_dict(self) -> dict:
        return {"source": self.source, "target": self.target}


def make_owner_node(now: datetime | None = None) -> Node:
    """Create the owner node; its date is "now" as a sentinel."""
    return Node(
        id=OWNER_ID,
        name="Me",
        role="Owner",
        company="My Network",
        connected_date=now or datetime.now(),
    )


def star_edges(nodes: Iterable[Node]) -> list[Edge]:
    """One owner edge per non-owner node, in node order."""
    return [Edge(source=OWNER_ID, target=n.id) for n in nodes if not n.is_owner]
