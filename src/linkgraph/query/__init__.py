"""Natural-language queries over the network."""

from linkgraph.query.network_query import (
    NetworkQueryService,
    QueryOutcome,
    QueryStatus,
    describe_node,
)

__all__ = ["NetworkQueryService", "QueryOutcome", "QueryStatus", "describe_node"]
