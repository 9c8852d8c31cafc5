"""Layout strategies: per-mode pinned targets computed before simulation.

Every strategy pins the owner at the viewport center and derives the
vertical axis from the connection date through a shared TimeScale. They
differ in what they do with the horizontal axis:

- timeline: spread each calendar year's members evenly, capped spacing
- clusters: pack each year into a centered band at the year's mean height
- organic: leave x free for the simulation's repulsion to resolve
"""

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Sequence

from linkgraph.graph.config import LayoutConfig
from linkgraph.models import EPOCH, OWNER_ID, Node

logger = logging.getLogger(__name__)


class LayoutMode(str, Enum):
    """Named layout modes."""

    TIMELINE = "timeline"
    CLUSTERS = "clusters"
    ORGANIC = "organic"


@dataclass(frozen=True)
class Viewport:
    """Drawing area the layout maps into."""

    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return (self.width / 2, self.height / 2)


@dataclass(frozen=True)
class PinnedTarget:
    """Per-axis pin; None means the axis is free."""

    fx: float | None = None
    fy: float | None = None
    fz: float | None = None

    @property
    def is_free(self) -> bool:
        return self.fx is None and self.fy is None and self.fz is None

    def as_tuple(self, dimensions: int = 2) -> tuple[float | None, ...]:
        return (self.fx, self.fy, self.fz)[:dimensions]

    def keep(self, axes: Sequence[str]) -> "PinnedTarget":
        """Copy with only the named axes retained, others freed."""
        return PinnedTarget(**{f.name: getattr(self, f.name) for f in fields(self) if f.name in axes})


FREE = PinnedTarget()


def _seconds(date: datetime) -> float:
    return (date - EPOCH).total_seconds()


class TimeScale:
    """Linear map from connection date to a vertical coordinate.

    Domain is [min, max] connection date over non-owner nodes; range is
    [margin_top, height - margin_bottom]. A degenerate domain (one distinct
    date, or no connections) maps everything to the middle of the range.
    """

    def __init__(self, start: float | None, end: float | None, range_start: float, range_end: float) -> None:
        self.start = start
        self.end = end
        self.range_start = range_start
        self.range_end = range_end

    @classmethod
    def from_nodes(cls, nodes: Sequence[Node], viewport: Viewport, config: LayoutConfig) -> "TimeScale":
        seconds = [_seconds(n.connected_date) for n in nodes if not n.is_owner]
        range_start = config.margin_top
        range_end = viewport.height - config.margin_bottom
        if not seconds:
            return cls(None, None, range_start, range_end)
        return cls(min(seconds), max(seconds), range_start, range_end)

    @property
    def is_degenerate(self) -> bool:
        return self.start is None or self.end is None or self.end == self.start

    def __call__(self, date: datetime) -> float:
        if self.is_degenerate:
            return (self.range_start + self.range_end) / 2
        fraction = (_seconds(date) - self.start) / (self.end - self.start)
        return self.range_start + fraction * (self.range_end - self.range_start)


def group_by_year(connections: Sequence[Node]) -> dict[int, list[Node]]:
    """Year -> members ordered by date ascending (ties keep input order)."""
    groups: dict[int, list[Node]] = defaultdict(list)
    for node in connections:
        groups[node.year].append(node)
    return {year: sorted(members, key=lambda n: n.connected_date) for year, members in groups.items()}


class LayoutStrategy(ABC):
    """Computes pinned targets for the non-owner nodes of one mode."""

    mode: LayoutMode
    # Axes the mode owns semantically; a drag release restores these and frees the rest
    owned_axes: tuple[str, ...] = ("fy",)

    @abstractmethod
    def place(
        self,
        connections: Sequence[Node],
        scale: TimeScale,
        viewport: Viewport,
        config: LayoutConfig,
    ) -> dict[str, PinnedTarget]:
        ...


class TimelineLayout(LayoutStrategy):
    mode = LayoutMode.TIMELINE

    def place(self, connections, scale, viewport, config):
        center_x = viewport.width / 2
        pins: dict[str, PinnedTarget] = {}

        for members in group_by_year(connections).values():
            count = len(members)
            spacing = min(viewport.width / (count + 1), config.max_spacing)
            for index, node in enumerate(members):
                pins[node.id] = PinnedTarget(
                    fx=center_x + (index - (count - 1) / 2) * spacing,
                    fy=scale(node.connected_date),
                )
        return pins


class ClusteredLayout(LayoutStrategy):
    mode = LayoutMode.CLUSTERS

    def place(self, connections, scale, viewport, config):
        pins: dict[str, PinnedTarget] = {}

        for members in group_by_year(connections).values():
            count = len(members) or 1
            anchor_y = sum(scale(n.connected_date) for n in members) / count
            width = min(config.cluster_max_width_fraction * viewport.width, count * config.cluster_node_width)
            start_x = (viewport.width - width) / 2
            slot = width / count
            for index, node in enumerate(members):
                pins[node.id] = PinnedTarget(fx=start_x + (index + 0.5) * slot, fy=anchor_y)
        return pins


class OrganicLayout(LayoutStrategy):
    mode = LayoutMode.ORGANIC

    def place(self, connections, scale, viewport, config):
        return {n.id: PinnedTarget(fy=scale(n.connected_date)) for n in connections}


STRATEGIES: dict[LayoutMode, LayoutStrategy] = {
    LayoutMode.TIMELINE: TimelineLayout(),
    LayoutMode.CLUSTERS: ClusteredLayout(),
    LayoutMode.ORGANIC: OrganicLayout(),
}


def get_strategy(mode: LayoutMode | str) -> LayoutStrategy:
    return STRATEGIES[LayoutMode(mode)]


@dataclass(frozen=True)
class LayoutPlan:
    """Result of a layout pass: one PinnedTarget per node id."""

    mode: LayoutMode
    viewport: Viewport
    time_scale: TimeScale
    pins: dict[str, PinnedTarget] = field(default_factory=dict)

    def pin_for(self, node_id: str) -> PinnedTarget:
        return self.pins.get(node_id, FREE)

    def released(self, node_id: str) -> PinnedTarget:
        """Pin left after a drag ends: mode-owned axes only."""
        return self.pin_for(node_id).keep(get_strategy(self.mode).owned_axes)


def apply_layout(
    mode: LayoutMode | str,
    nodes: Sequence[Node],
    viewport: Viewport,
    config: LayoutConfig | None = None,
) -> LayoutPlan:
    """Compute pinned targets for every node.

    Deterministic in (mode, nodes, viewport). Every node starts free, so an
    axis the mode does not define never keeps a pin from a previous mode.
    """
    config = config or LayoutConfig()
    strategy = get_strategy(mode)
    scale = TimeScale.from_nodes(nodes, viewport, config)

    pins: dict[str, PinnedTarget] = {n.id: FREE for n in nodes}
    connections = [n for n in nodes if not n.is_owner]
    pins.update(strategy.place(connections, scale, viewport, config))

    if OWNER_ID in pins:
        center_x, center_y = viewport.center
        pins[OWNER_ID] = PinnedTarget(fx=center_x, fy=center_y)

    logger.debug(f"Layout {strategy.mode.value}: {len(pins)} pins in {viewport.width}x{viewport.height}")
    return LayoutPlan(mode=strategy.mode, viewport=viewport, time_scale=scale, pins=pins)
