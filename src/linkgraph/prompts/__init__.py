"""Prompt templates."""

from linkgraph.prompts.network import (
    NETWORK_QUERY_PROMPT,
    PERSON_ANALYSIS_PROMPT,
    PROFILE_CONTEXT_TEMPLATE,
)

__all__ = [
    "NETWORK_QUERY_PROMPT",
    "PERSON_ANALYSIS_PROMPT",
    "PROFILE_CONTEXT_TEMPLATE",
]
