"""Parser for professional-network CSV exports.

Handles:
- Free-text notes preceding the header row
- "Connected On" dates in the export's "15 Mar 2021" form (and ISO / US forms)
- Optional owner profile export
"""

import csv
import io
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable

import aiofiles

from linkgraph.models import (
    EPOCH,
    ConnectionRecord,
    Node,
    OwnerProfile,
    make_owner_node,
)

logger = logging.getLogger(__name__)

HEADER_MARKER = "First Name"

DATE_FORMATS = (
    "%d %b %Y",
    "%d %B %Y",
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%d.%m.%Y",
    "%b %d, %Y",
)


def parse_connection_date(raw: str | None) -> datetime:
    """Parse a connection date; missing or malformed values map to EPOCH."""
    if not raw or not raw.strip():
        return EPOCH

    value = raw.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        logger.debug(f"Unparseable connection date {value!r}, using epoch")
        return EPOCH
    # Canonical dates are naive so they compare with the owner's "now"
    return parsed.replace(tzinfo=None)


def _strip_preamble(text: str) -> str:
    start = text.find(HEADER_MARKER)
    if start == -1:
        return text
    # Back up to the beginning of the header line (it may start with a quote)
    line_start = text.rfind("\n", 0, start) + 1
    return text[line_start:]


def parse_connections_text(text: str) -> list[ConnectionRecord | None]:
    """Parse connections CSV text into records, one slot per data row.

    Rows without a first name yield None so row indexes (and therefore
    node ids) stay aligned with the export's ordering.
    """
    reader = csv.DictReader(io.StringIO(_strip_preamble(text)))
    records: list[ConnectionRecord | None] = []

    for row in reader:
        first_name = (row.get("First Name") or "").strip()
        if not first_name:
            records.append(None)
            continue
        records.append(ConnectionRecord(
            first_name=first_name,
            last_name=(row.get("Last Name") or "").strip(),
            role=(row.get("Position") or "").strip(),
            company=(row.get("Company") or "").strip(),
            profile_url=(row.get("URL") or "").strip() or None,
            connected_on_raw=(row.get("Connected On") or "").strip(),
        ))

    return records


def parse_profile_text(text: str) -> OwnerProfile:
    """Parse the owner's profile export; the first data row wins."""
    reader = csv.DictReader(io.StringIO(text))
    for row in reader:
        return OwnerProfile(
            first_name=(row.get("First Name") or "").strip(),
            last_name=(row.get("Last Name") or "").strip(),
            headline=(row.get("Headline") or "").strip(),
            summary=(row.get("Summary") or "").strip(),
            industry=(row.get("Industry") or "").strip(),
        )
    return OwnerProfile()


def build_canonical_nodes(
    records: Iterable[ConnectionRecord | None],
    now: datetime | None = None,
) -> list[Node]:
    """Owner first, then one node per record with id ``p_<row index>``."""
    nodes = [make_owner_node(now)]

    for index, record in enumerate(records):
        if record is None:
            continue
        name = f"{record.first_name} {record.last_name}".strip()
        nodes.append(Node(
            id=f"p_{index}",
            name=name,
            role=record.role,
            company=record.company,
            connected_date=parse_connection_date(record.connected_on_raw),
            profile_url=record.profile_url,
        ))

    return nodes


async def load_connections(path: Path, now: datetime | None = None) -> list[Node]:
    """Read a connections export into canonical nodes."""
    async with aiofiles.open(path, encoding="utf-8-sig") as f:
        content = await f.read()

    records = parse_connections_text(content)
    nodes = build_canonical_nodes(records, now=now)
    logger.info(f"Loaded {len(nodes) - 1} connections from {path}")
    return nodes


async def load_profile(path: Path | None) -> OwnerProfile:
    """Read the owner profile export; a missing file yields an empty profile."""
    if path is None or not path.exists():
        logger.info("No profile export found, continuing without owner context")
        return OwnerProfile()

    async with aiofiles.open(path, encoding="utf-8-sig") as f:
        content = await f.read()
    return parse_profile_text(content)
