"""LLM output cleanup and parsing."""

from linkgraph.preprocessing.output_parser import (
    MatchParseError,
    OutputParser,
    parse_analysis,
    parse_match_result,
)

__all__ = ["MatchParseError", "OutputParser", "parse_analysis", "parse_match_result"]
