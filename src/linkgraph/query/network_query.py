"""Natural-language search over the network via the LLM collaborator."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from linkgraph.config import settings
from linkgraph.ingestion.llm_client import LLMClient, get_llm_client
from linkgraph.models import MatchResult, Node, OwnerProfile
from linkgraph.preprocessing.output_parser import parse_analysis, parse_match_result
from linkgraph.prompts import (
    NETWORK_QUERY_PROMPT,
    PERSON_ANALYSIS_PROMPT,
    PROFILE_CONTEXT_TEMPLATE,
)

logger = logging.getLogger(__name__)


class QueryStatus(str, Enum):
    """How a network query ended."""

    OK = "ok"
    FAILED = "failed"
    RATE_LIMITED = "rate_limited"
    SUPERSEDED = "superseded"  # a newer query was applied first


@dataclass
class QueryOutcome:
    """Result of GraphEngine.ask; only OK outcomes changed the view."""

    status: QueryStatus
    query: str
    result: MatchResult | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == QueryStatus.OK


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def describe_node(node: Node) -> str:
    """One-line descriptor including the node id the LLM must echo back."""
    return (
        f"- {node.name} ({node.role} at {node.company}) "
        f"[{node.connected_date:%a %b %d %Y}] [ID: {node.id}]"
    )


class NetworkQueryService:
    """Builds bounded prompts and turns LLM replies into match results."""

    def __init__(
        self,
        llm: LLMClient | None = None,
        max_nodes: int | None = None,
        field_max_chars: int | None = None,
    ) -> None:
        self.llm = llm or get_llm_client()
        self.max_nodes = max_nodes or settings.query_max_nodes
        self.field_max_chars = field_max_chars or settings.profile_field_max_chars

    def build_profile_context(self, profile: OwnerProfile | None) -> str:
        profile = profile or OwnerProfile()
        return PROFILE_CONTEXT_TEMPLATE.format(
            headline=_truncate(profile.headline or "Unknown", self.field_max_chars),
            summary=_truncate(profile.summary or "Unknown", self.field_max_chars),
            industry=_truncate(profile.industry or "Unknown", self.field_max_chars),
        )

    def build_query_prompt(
        self,
        query: str,
        profile: OwnerProfile | None,
        nodes: Sequence[Node],
    ) -> str:
        """Prompt over at most ``max_nodes`` connections (owner excluded)."""
        connections = [n for n in nodes if not n.is_owner]
        if len(connections) > self.max_nodes:
            logger.info(f"Truncating network context from {len(connections)} to {self.max_nodes} connections")
            connections = connections[: self.max_nodes]

        return NETWORK_QUERY_PROMPT.format(
            profile_context=self.build_profile_context(profile),
            network="\n".join(describe_node(n) for n in connections),
            query=query,
        )

    async def find_matches(
        self,
        query: str,
        profile: OwnerProfile | None,
        nodes: Sequence[Node],
    ) -> MatchResult:
        """Ask the LLM which connections match the query.

        Raises:
            RateLimitError: provider throttled the request
            LLMError: provider failed
            MatchParseError: reply was not a recoverable match result
        """
        prompt = self.build_query_prompt(query, profile, nodes)
        response = await self.llm.generate(prompt)
        result = parse_match_result(response)
        logger.info(f"Query {query!r} matched {len(result.matches)} connections")
        return result

    async def analyze_person(self, node: Node) -> str:
        """Three short conversation starters for one connection."""
        prompt = PERSON_ANALYSIS_PROMPT.format(role=node.role, company=node.company)
        response = await self.llm.generate(prompt)
        return parse_analysis(response)
