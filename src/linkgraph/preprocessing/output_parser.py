"""
Lenient parsing of LLM output.

Handles:
- <think>...</think> reasoning blocks
- Markdown code fences (```json ... ```)
- Prose around a JSON object
"""

import json
import logging
import re
from typing import Any

from linkgraph.models import MatchResult

logger = logging.getLogger(__name__)


class MatchParseError(ValueError):
    """LLM output could not be recovered as a match result."""


class OutputParser:
    """Strip formatting markers and decode JSON from model output."""

    THINKING_PATTERNS = [
        re.compile(r'<think>[\s\S]*?</think>', re.DOTALL),
        re.compile(r'<thinking>[\s\S]*?</thinking>', re.DOTALL),
    ]

    FENCE_PATTERN = re.compile(r'```(?:json|JSON)?')

    @classmethod
    def strip(cls, text: str) -> str:
        """Remove reasoning blocks and code fences, keep everything else."""
        if not text:
            return ""

        result = text
        for pattern in cls.THINKING_PATTERNS:
            result = pattern.sub('', result)
        result = cls.FENCE_PATTERN.sub('', result)
        return result.strip()

    @classmethod
    def parse_json(cls, raw_output: str, fallback: Any = None) -> Any:
        """
        Parse JSON from LLM output.

        Tries the raw text first, then the stripped text, then the outermost
        ``{...}`` span. Returns ``fallback`` when nothing decodes.
        """
        if not raw_output:
            return fallback

        try:
            return json.loads(raw_output)
        except json.JSONDecodeError:
            pass

        text = cls.strip(raw_output)
        if not text:
            return fallback

        try:
            return json.loads(text)
        except json.JSONDecodeError:
            pass

        match = re.search(r'(\{[\s\S]*\})', text, re.DOTALL)
        if match:
            try:
                return json.loads(match.group(1))
            except json.JSONDecodeError:
                pass

        logger.warning(f"Failed to parse JSON from output: {text[:200]}...")
        return fallback


def parse_match_result(raw_output: str) -> MatchResult:
    """Decode a network query response into a MatchResult."""
    payload = OutputParser.parse_json(raw_output)
    if payload is None:
        raise MatchParseError(f"Could not parse LLM response as JSON: {raw_output[:200]}")

    try:
        return MatchResult.from_dict(payload)
    except ValueError as e:
        raise MatchParseError(str(e)) from e


def parse_analysis(raw_output: str) -> str:
    """Extract the ``analysis`` text of a per-person response."""
    payload = OutputParser.parse_json(raw_output)
    if not isinstance(payload, dict):
        raise MatchParseError(f"Could not parse LLM response as JSON: {raw_output[:200]}")

    analysis = payload.get("analysis") or payload.get("explanation")
    if not analysis:
        return "No analysis."
    if isinstance(analysis, list):
        return "\n".join(str(item) for item in analysis)
    return str(analysis)
