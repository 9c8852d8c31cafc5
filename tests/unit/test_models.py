"""Tests for node, edge and match models."""

from datetime import datetime

import pytest

from linkgraph.models import (
    EPOCH,
    OWNER_ID,
    Edge,
    HistoryEntry,
    Match,
    MatchResult,
    Node,
    OwnerProfile,
    make_owner_node,
    star_edges,
)


class TestNode:
    """Test Node model."""

    def test_owner_node(self):
        """Test owner node defaults."""
        now = datetime(2024, 6, 1)
        owner = make_owner_node(now)
        assert owner.id == OWNER_ID
        assert owner.is_owner
        assert owner.name == "Me"
        assert owner.connected_date == now

    def test_connection_properties(self):
        """Test derived properties of a connection."""
        node = Node(id="p_0", name="Alice Smith", connected_date=datetime(2021, 3, 15))
        assert not node.is_owner
        assert node.year == 2021
        assert node.first_name == "Alice"

    def test_missing_date_defaults_to_epoch(self):
        """Test nodes without a date sit at the epoch."""
        node = Node(id="p_0", name="Alice")
        assert node.connected_date == EPOCH
        assert node.year == 1970

    def test_node_is_immutable(self):
        """Test canonical nodes cannot be mutated."""
        node = Node(id="p_0", name="Alice")
        with pytest.raises(AttributeError):
            node.name = "Bob"

    def test_to_dict(self):
        """Test serialization."""
        node = Node(id="p_0", name="Alice", role="Engineer", company="Acme",
                    connected_date=datetime(2021, 3, 15))
        data = node.to_dict()
        assert data["id"] == "p_0"
        assert data["connected_date"] == "2021-03-15T00:00:00"


class TestStarEdges:
    """Test star topology edges."""

    def test_one_edge_per_connection(self, sample_nodes):
        """Test every connection gets exactly one owner edge."""
        edges = star_edges(sample_nodes)
        assert len(edges) == len(sample_nodes) - 1
        assert all(e.source == OWNER_ID for e in edges)
        assert [e.target for e in edges] == ["p_0", "p_1", "p_2", "p_3"]

    def test_edge_to_dict(self):
        """Test edge serialization."""
        assert Edge("ME", "p_1").to_dict() == {"source": "ME", "target": "p_1"}


class TestOwnerProfile:
    """Test OwnerProfile model."""

    def test_is_empty(self):
        """Test empty profile detection."""
        assert OwnerProfile().is_empty
        assert not OwnerProfile(headline="Developer").is_empty


class TestMatch:
    """Test Match model."""

    def test_from_dict(self):
        """Test parsing a match entry."""
        match = Match.from_dict({"id": "p_1", "name": "Bob", "score": 85, "reason": "Designer"})
        assert match.id == "p_1"
        assert match.score == 85.0
        assert match.aspect == ""

    def test_score_is_clamped(self):
        """Test scores outside 0-100 are clamped."""
        assert Match.from_dict({"id": "a", "score": 150}).score == 100.0
        assert Match.from_dict({"id": "a", "score": -5}).score == 0.0

    def test_invalid_score_becomes_zero(self):
        """Test non-numeric scores."""
        assert Match.from_dict({"id": "a", "score": "high"}).score == 0.0

    def test_numeric_id_is_stringified(self):
        """Test ids are always strings."""
        assert Match.from_dict({"id": 7}).id == "7"


class TestMatchResult:
    """Test MatchResult model."""

    def test_from_dict(self):
        """Test parsing a full result."""
        result = MatchResult.from_dict({
            "explanation": "Found two",
            "matches": [{"id": "p_0", "score": 80}, {"id": "p_2", "score": 40}],
        })
        assert result.explanation == "Found two"
        assert result.ids == frozenset({"p_0", "p_2"})
        assert result.match_map()["p_0"].score == 80.0

    def test_entries_without_id_are_skipped(self):
        """Test malformed match entries are dropped."""
        result = MatchResult.from_dict({
            "matches": [{"name": "No id"}, "garbage", {"id": "p_1", "score": 10}],
        })
        assert [m.id for m in result.matches] == ["p_1"]

    def test_missing_matches_is_empty(self):
        """Test a result without matches."""
        result = MatchResult.from_dict({"explanation": "Nobody"})
        assert result.matches == ()
        assert result.ids == frozenset()

    def test_non_object_raises(self):
        """Test non-dict payloads are rejected."""
        with pytest.raises(ValueError):
            MatchResult.from_dict(["p_0"])

    def test_non_list_matches_raises(self):
        """Test matches must be a list."""
        with pytest.raises(ValueError):
            MatchResult.from_dict({"matches": {"id": "p_0"}})

    def test_duplicate_ids_last_wins(self):
        """Test the match map keeps the later duplicate."""
        result = MatchResult.from_dict({"matches": [{"id": "p_0", "score": 10}, {"id": "p_0", "score": 70}]})
        assert result.match_map()["p_0"].score == 70.0


class TestHistoryEntry:
    """Test HistoryEntry model."""

    def test_round_trip(self):
        """Test to_dict/from_dict preserve the entry."""
        entry = HistoryEntry(
            id="1717243200000",
            query="designers",
            result=MatchResult(explanation="x", matches=(Match(id="p_1", score=50),)),
            timestamp=datetime(2024, 6, 1, 12, 0),
        )
        restored = HistoryEntry.from_dict(entry.to_dict())
        assert restored == entry
