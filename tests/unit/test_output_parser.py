"""Tests for lenient LLM output parsing."""

import pytest

from linkgraph.preprocessing.output_parser import (
    MatchParseError,
    OutputParser,
    parse_analysis,
    parse_match_result,
)


class TestOutputParser:
    """Test OutputParser class."""

    def test_strip_code_fence(self):
        """Test stripping markdown JSON fences."""
        assert OutputParser.strip('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_strip_think_tags(self):
        """Test stripping reasoning blocks."""
        text = '<think>Scanning the network...</think>{"a": 1}'
        assert OutputParser.strip(text) == '{"a": 1}'

    def test_strip_empty(self):
        """Test empty input."""
        assert OutputParser.strip("") == ""

    def test_parse_json_clean(self):
        """Test parsing clean JSON."""
        assert OutputParser.parse_json('{"a": 1}') == {"a": 1}

    def test_parse_json_fenced(self):
        """Test parsing fenced JSON."""
        assert OutputParser.parse_json('```json\n{"a": [1, 2]}\n```') == {"a": [1, 2]}

    def test_parse_json_with_prose(self):
        """Test extracting an object surrounded by prose."""
        text = 'Sure! Here is the result: {"a": 1} Let me know if you need more.'
        assert OutputParser.parse_json(text) == {"a": 1}

    def test_parse_json_fallback(self):
        """Test fallback on unparseable output."""
        assert OutputParser.parse_json("no json here", fallback={}) == {}
        assert OutputParser.parse_json("") is None


class TestParseMatchResult:
    """Test match result decoding."""

    def test_fenced_result(self, match_response):
        """Test the usual fenced reply."""
        result = parse_match_result(match_response)
        assert result.explanation == "Two people fit"
        assert result.ids == frozenset({"p_0", "p_2"})

    def test_unparseable_raises(self):
        """Test garbage replies raise MatchParseError."""
        with pytest.raises(MatchParseError):
            parse_match_result("I could not find anyone, sorry.")

    def test_wrong_shape_raises(self):
        """Test JSON that is not a result object."""
        with pytest.raises(MatchParseError):
            parse_match_result('["p_0", "p_1"]')

    def test_parse_error_is_value_error(self):
        """Test MatchParseError is a ValueError."""
        assert issubclass(MatchParseError, ValueError)


class TestParseAnalysis:
    """Test per-person analysis decoding."""

    def test_string_analysis(self):
        """Test a plain analysis string."""
        assert parse_analysis('{"analysis": "Ask about their design system."}') == "Ask about their design system."

    def test_list_analysis(self):
        """Test list analysis is joined by newlines."""
        assert parse_analysis('```json\n{"analysis": ["One", "Two", "Three"]}\n```') == "One\nTwo\nThree"

    def test_missing_analysis(self):
        """Test default text when the key is missing."""
        assert parse_analysis("{}") == "No analysis."

    def test_unparseable_raises(self):
        """Test garbage replies raise MatchParseError."""
        with pytest.raises(MatchParseError):
            parse_analysis("nope")
