"""Ingestion layer - export parsing and the LLM client."""

from linkgraph.ingestion.csv_loader import (
    build_canonical_nodes,
    load_connections,
    load_profile,
    parse_connection_date,
    parse_connections_text,
    parse_profile_text,
)
from linkgraph.ingestion.llm_client import (
    LLMClient,
    LLMError,
    LLMProvider,
    RateLimitError,
    close_llm_client,
    get_llm_client,
)

__all__ = [
    # CSV
    "parse_connection_date",
    "parse_connections_text",
    "parse_profile_text",
    "build_canonical_nodes",
    "load_connections",
    "load_profile",
    # LLM
    "LLMClient",
    "LLMError",
    "LLMProvider",
    "RateLimitError",
    "get_llm_client",
    "close_llm_client",
]
