"""Pytest configuration and fixtures."""

import json
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from linkgraph.config import Settings, get_test_settings
from linkgraph.graph import GraphEngine, Viewport
from linkgraph.ingestion.llm_client import LLMClient
from linkgraph.models import Node, OwnerProfile, make_owner_node
from linkgraph.query import NetworkQueryService
from linkgraph.storage import HistoryStore

NOW = datetime(2024, 6, 1, 12, 0)

CONNECTIONS_CSV = """Notes:
"When exporting your connection data, you may notice that some of the email addresses are missing."

First Name,Last Name,URL,Email Address,Company,Position,Connected On
Alice,Smith,https://example.com/in/alice,,Acme,Engineer,15 Mar 2020
,,,,,,
Bob,Jones,https://example.com/in/bob,,Globex,Designer,10 Jan 2021
Carol,White,,,Initech,Product Manager,04 Jul 2021
"""

PROFILE_CSV = """First Name,Last Name,Headline,Summary,Industry
Sam,Owner,Backend developer,Builds data platforms,Software Development
"""


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with defaults."""
    return get_test_settings()


@pytest.fixture
def owner() -> Node:
    return make_owner_node(NOW)


@pytest.fixture
def sample_nodes(owner: Node) -> list[Node]:
    """Owner plus four connections across 2020-2022."""
    return [
        owner,
        Node(id="p_0", name="Alice Smith", role="Engineer", company="Acme",
             connected_date=datetime(2020, 3, 15)),
        Node(id="p_1", name="Bob Jones", role="Designer", company="Globex",
             connected_date=datetime(2021, 1, 10)),
        Node(id="p_2", name="Carol White", role="Product Manager", company="Initech",
             connected_date=datetime(2021, 7, 4)),
        Node(id="p_3", name="Dan Brown", role="Data Scientist", company="Umbrella",
             connected_date=datetime(2022, 11, 30)),
    ]


@pytest.fixture
def profile() -> OwnerProfile:
    return OwnerProfile(
        first_name="Sam",
        last_name="Owner",
        headline="Backend developer",
        summary="Builds data platforms",
        industry="Software Development",
    )


@pytest.fixture
def viewport() -> Viewport:
    return Viewport(800, 600)


@pytest.fixture
def match_response() -> str:
    """Fenced LLM reply matching p_0 and p_2."""
    payload = {
        "explanation": "Two people fit",
        "matches": [
            {"id": "p_0", "name": "Alice Smith", "score": 90, "reason": "Engineer", "aspect": "Team Culture"},
            {"id": "p_2", "name": "Carol White", "score": 60, "reason": "PM", "aspect": "Strategic"},
        ],
    }
    return f"```json\n{json.dumps(payload)}\n```"


@pytest.fixture
def mock_llm_client(match_response: str) -> LLMClient:
    """Mock LLM client for testing without network access."""
    client = MagicMock(spec=LLMClient)
    client.generate = AsyncMock(return_value=match_response)
    client.close = AsyncMock()
    return client


@pytest.fixture
def query_service(mock_llm_client: LLMClient) -> NetworkQueryService:
    return NetworkQueryService(llm=mock_llm_client, max_nodes=100, field_max_chars=200)


@pytest.fixture
def history_store(tmp_path: Path) -> HistoryStore:
    return HistoryStore(tmp_path / "history.json", max_entries=5, clock=lambda: NOW)


@pytest.fixture
def engine(
    sample_nodes: list[Node],
    viewport: Viewport,
    profile: OwnerProfile,
    query_service: NetworkQueryService,
    history_store: HistoryStore,
) -> GraphEngine:
    return GraphEngine(
        sample_nodes,
        viewport,
        profile=profile,
        query_service=query_service,
        history=history_store,
    )


@pytest.fixture
def connections_csv() -> str:
    """Export with a notes preamble and one empty row at index 1."""
    return CONNECTIONS_CSV


@pytest.fixture
def connections_file(tmp_path: Path) -> Path:
    path = tmp_path / "Connections.csv"
    path.write_text(CONNECTIONS_CSV, encoding="utf-8-sig")
    return path


@pytest.fixture
def profile_file(tmp_path: Path) -> Path:
    path = tmp_path / "Profile.csv"
    path.write_text(PROFILE_CSV, encoding="utf-8")
    return path
