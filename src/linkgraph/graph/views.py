"""Subscribers that keep the scene and the side list in sync with the engine.

Both views re-derive their highlight from the single selected id the engine
publishes; neither tracks selection on its own.
"""

from dataclasses import dataclass, field

from linkgraph.graph.config import RenderConfig
from linkgraph.graph.filters import WorkingView
from linkgraph.graph.layout import LayoutMode
from linkgraph.graph.simulation import PositionSnapshot
from linkgraph.graph.styles import NodeStyle, Stroke, stroke_for


@dataclass(frozen=True)
class ViewEvent:
    """Published after every working-view recomputation."""

    view: WorkingView
    mode: LayoutMode
    styles: dict[str, NodeStyle]
    selected_id: str | None = None


class ViewObserver:
    """Engine subscriber; override the hooks you need."""

    def on_view_changed(self, event: ViewEvent) -> None:
        pass

    def on_positions(self, snapshot: PositionSnapshot) -> None:
        pass

    def on_selection(self, selected_id: str | None) -> None:
        pass

    def on_activity(self) -> None:
        """Simulation energy was raised (reseed, reheat or drag)."""


# ============================================================================
# Scene
# ============================================================================


@dataclass(frozen=True)
class RenderedNode:
    id: str
    position: tuple[float, ...]
    style: NodeStyle
    stroke: Stroke

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "position": list(self.position),
            "stroke": {"color": self.stroke.color, "width": self.stroke.width},
            **self.style.to_dict(),
        }


@dataclass(frozen=True)
class RenderedEdge:
    source: str
    target: str
    start: tuple[float, ...]
    end: tuple[float, ...]

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "target": self.target,
            "start": list(self.start),
            "end": list(self.end),
        }


@dataclass(frozen=True)
class SceneFrame:
    tick: int
    nodes: list[RenderedNode] = field(default_factory=list)
    edges: list[RenderedEdge] = field(default_factory=list)

    def get(self, node_id: str) -> RenderedNode | None:
        return next((n for n in self.nodes if n.id == node_id), None)

    def highlighted_ids(self, config: RenderConfig) -> list[str]:
        return [n.id for n in self.nodes if n.stroke.color == config.selected_stroke]

    def to_dict(self) -> dict:
        return {
            "tick": self.tick,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


class SceneView(ViewObserver):
    """Latest renderable frame: positions from ticks, styles from view events."""

    def __init__(self, config: RenderConfig | None = None) -> None:
        self.config = config or RenderConfig()
        self._view: WorkingView | None = None
        self._styles: dict[str, NodeStyle] = {}
        self._selected_id: str | None = None
        self._snapshot: PositionSnapshot | None = None
        self.frames_rendered = 0

    def on_view_changed(self, event: ViewEvent) -> None:
        self._view = event.view
        self._styles = event.styles
        self._selected_id = event.selected_id

    def on_positions(self, snapshot: PositionSnapshot) -> None:
        self._snapshot = snapshot
        self.frames_rendered += 1

    def on_selection(self, selected_id: str | None) -> None:
        self._selected_id = selected_id

    @property
    def frame(self) -> SceneFrame:
        if self._view is None or self._snapshot is None:
            return SceneFrame(tick=0)

        positions = self._snapshot.positions
        nodes = [
            RenderedNode(
                id=node.id,
                position=positions[node.id],
                style=self._styles[node.id],
                stroke=stroke_for(node.id, self._selected_id, self.config),
            )
            for node in self._view.nodes
            if node.id in positions and node.id in self._styles
        ]
        edges = [
            RenderedEdge(e.source, e.target, positions[e.source], positions[e.target])
            for e in self._view.edges
            if e.source in positions and e.target in positions
        ]
        return SceneFrame(tick=self._snapshot.tick, nodes=nodes, edges=edges)


# ============================================================================
# Side list
# ============================================================================


@dataclass(frozen=True)
class ListEntry:
    id: str
    name: str
    subtitle: str
    selected: bool = False

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "subtitle": self.subtitle, "selected": self.selected}


def build_list_entries(view: WorkingView, selected_id: str | None) -> list[ListEntry]:
    """Working-view connections sorted by name, owner excluded."""
    return [
        ListEntry(
            id=node.id,
            name=node.name,
            subtitle=f"{node.role} at {node.company}",
            selected=node.id == selected_id,
        )
        for node in sorted(view.connections, key=lambda n: (n.name.casefold(), n.id))
    ]


class ListView(ViewObserver):
    """Side list, regenerated in full on every view change."""

    EMPTY_TEXT = "No filtered nodes"

    def __init__(self) -> None:
        self._view: WorkingView | None = None
        self._selected_id: str | None = None
        self.entries: list[ListEntry] = []

    def on_view_changed(self, event: ViewEvent) -> None:
        self._view = event.view
        self._selected_id = event.selected_id
        self._rebuild()

    def on_selection(self, selected_id: str | None) -> None:
        self._selected_id = selected_id
        self._rebuild()

    def _rebuild(self) -> None:
        if self._view is None:
            self.entries = []
            return
        self.entries = build_list_entries(self._view, self._selected_id)

    @property
    def header(self) -> str:
        return f"Filtered Connections ({len(self.entries)})"

    @property
    def selected_ids(self) -> list[str]:
        return [e.id for e in self.entries if e.selected]
