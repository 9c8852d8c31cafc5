"""Tests for connections/profile export parsing."""

from datetime import datetime

import pytest

from linkgraph.ingestion.csv_loader import (
    build_canonical_nodes,
    load_connections,
    load_profile,
    parse_connection_date,
    parse_connections_text,
    parse_profile_text,
)
from linkgraph.models import EPOCH, OWNER_ID, ConnectionRecord

NOW = datetime(2024, 6, 1, 12, 0)


class TestParseConnectionDate:
    """Test connection date parsing."""

    def test_export_format(self):
        """Test the export's day-month-year form."""
        assert parse_connection_date("15 Mar 2021") == datetime(2021, 3, 15)

    def test_iso_format(self):
        """Test ISO dates."""
        assert parse_connection_date("2021-03-15") == datetime(2021, 3, 15)

    def test_iso_with_timezone_is_naive(self):
        """Test timezone info is dropped."""
        parsed = parse_connection_date("2021-03-15T10:30:00+02:00")
        assert parsed.tzinfo is None
        assert parsed.year == 2021

    def test_empty_is_epoch(self):
        """Test missing dates fall back to the epoch."""
        assert parse_connection_date("") == EPOCH
        assert parse_connection_date(None) == EPOCH
        assert parse_connection_date("   ") == EPOCH

    def test_garbage_is_epoch(self):
        """Test malformed dates fall back to the epoch."""
        assert parse_connection_date("sometime last year") == EPOCH


class TestParseConnectionsText:
    """Test connections CSV parsing."""

    def test_preamble_is_skipped(self, connections_csv):
        """Test notes before the header are ignored."""
        records = parse_connections_text(connections_csv)
        assert len(records) == 4
        assert records[0].first_name == "Alice"
        assert records[0].company == "Acme"
        assert records[0].role == "Engineer"
        assert records[0].profile_url == "https://example.com/in/alice"

    def test_rows_without_first_name_keep_their_slot(self, connections_csv):
        """Test empty rows become None so indexes stay aligned."""
        records = parse_connections_text(connections_csv)
        assert records[1] is None
        assert records[2].first_name == "Bob"

    def test_no_preamble(self):
        """Test plain CSV without notes."""
        text = "First Name,Last Name,Company,Position,Connected On\nAlice,Smith,Acme,Engineer,15 Mar 2020\n"
        records = parse_connections_text(text)
        assert len(records) == 1
        assert records[0].profile_url is None

    def test_header_only(self):
        """Test an export with no data rows."""
        assert parse_connections_text("First Name,Last Name\n") == []


class TestBuildCanonicalNodes:
    """Test canonical node construction."""

    def test_owner_first_and_row_ids(self, connections_csv):
        """Test ids follow the original row index."""
        nodes = build_canonical_nodes(parse_connections_text(connections_csv), now=NOW)
        assert [n.id for n in nodes] == [OWNER_ID, "p_0", "p_2", "p_3"]
        assert nodes[0].connected_date == NOW

    def test_name_and_date(self):
        """Test name joining and date parsing."""
        nodes = build_canonical_nodes([
            ConnectionRecord(first_name="Alice", last_name="Smith", connected_on_raw="15 Mar 2020"),
            ConnectionRecord(first_name="Prince"),
        ], now=NOW)
        assert nodes[1].name == "Alice Smith"
        assert nodes[1].connected_date == datetime(2020, 3, 15)
        assert nodes[2].name == "Prince"
        assert nodes[2].connected_date == EPOCH

    def test_empty_export(self):
        """Test an empty export still yields the owner."""
        nodes = build_canonical_nodes([], now=NOW)
        assert [n.id for n in nodes] == [OWNER_ID]


class TestParseProfile:
    """Test owner profile parsing."""

    def test_first_row(self, profile_file):
        """Test profile fields are read."""
        profile = parse_profile_text(profile_file.read_text(encoding="utf-8"))
        assert profile.first_name == "Sam"
        assert profile.headline == "Backend developer"
        assert profile.industry == "Software Development"

    def test_empty(self):
        """Test a header-only profile export."""
        assert parse_profile_text("First Name,Headline\n").is_empty


class TestLoaders:
    """Test async file loaders."""

    @pytest.mark.asyncio
    async def test_load_connections(self, connections_file):
        """Test loading a BOM-prefixed export."""
        nodes = await load_connections(connections_file, now=NOW)
        assert [n.id for n in nodes] == [OWNER_ID, "p_0", "p_2", "p_3"]
        assert nodes[1].name == "Alice Smith"

    @pytest.mark.asyncio
    async def test_load_profile(self, profile_file):
        """Test loading the profile export."""
        profile = await load_profile(profile_file)
        assert profile.summary == "Builds data platforms"

    @pytest.mark.asyncio
    async def test_missing_profile(self, tmp_path):
        """Test a missing profile file yields an empty profile."""
        assert (await load_profile(tmp_path / "missing.csv")).is_empty
        assert (await load_profile(None)).is_empty
