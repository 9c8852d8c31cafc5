"""Graph engine: the single owner of view, layout, simulation and selection.

Every transition recomputes the working view from the recipe
(canonical nodes, filter, layout mode, match result) instead of patching
it, then re-runs the layout and either re-seeds the simulation (the node
population changed) or re-pins and reheats the existing one.

Array references are swapped between ticks only; callers drive ticks
through ``step`` (directly or via SimulationRunner), so no transition can
interleave with an integration step.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from linkgraph.graph.config import GraphConfig
from linkgraph.graph.filters import (
    FilterKind,
    ViewFilter,
    WorkingView,
    available_years,
    compute_working_view,
)
from linkgraph.graph.layout import LayoutMode, LayoutPlan, PinnedTarget, Viewport, apply_layout
from linkgraph.graph.simulation import ForceSimulation, PositionSnapshot
from linkgraph.graph.styles import NodeStyle, compute_styles
from linkgraph.graph.views import ListEntry, ViewEvent, ViewObserver, build_list_entries
from linkgraph.ingestion.llm_client import LLMError, RateLimitError
from linkgraph.models import Match, MatchResult, Node, OwnerProfile
from linkgraph.preprocessing.output_parser import MatchParseError
from linkgraph.query.network_query import NetworkQueryService, QueryOutcome, QueryStatus
from linkgraph.storage.history_store import HistoryStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewState:
    """Everything the working view is rebuilt from, plus the result."""

    working: WorkingView
    mode: LayoutMode
    match_result: MatchResult | None = None

    @property
    def filter(self) -> ViewFilter:
        return self.working.filter


class GraphEngine:
    """Owned context for one interactive graph session."""

    def __init__(
        self,
        canonical_nodes: Iterable[Node],
        viewport: Viewport,
        mode: LayoutMode | str = LayoutMode.TIMELINE,
        config: GraphConfig | None = None,
        profile: OwnerProfile | None = None,
        query_service: NetworkQueryService | None = None,
        history: HistoryStore | None = None,
    ) -> None:
        self._canonical: list[Node] = list(canonical_nodes)
        self.viewport = viewport
        self.config = config or GraphConfig()
        self.profile = profile or OwnerProfile()
        self.query_service = query_service
        self.history = history

        self._observers: list[ViewObserver] = []
        self._selected_id: str | None = None
        self._dragging: set[str] = set()
        self._query_seq = 0
        self._applied_seq = 0

        self.last_result: MatchResult | None = history.load_last() if history else None
        self.plan: LayoutPlan | None = None
        self.simulation: ForceSimulation | None = None
        self.styles: dict[str, NodeStyle] = {}

        self.state = ViewState(
            working=compute_working_view(self._canonical, ViewFilter.all()),
            mode=LayoutMode(mode),
        )
        self._refresh(reseed=True)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def canonical(self) -> tuple[Node, ...]:
        return tuple(self._canonical)

    @property
    def working(self) -> WorkingView:
        return self.state.working

    @property
    def mode(self) -> LayoutMode:
        return self.state.mode

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    @property
    def match_map(self) -> dict[str, Match]:
        result = self.state.match_result
        return result.match_map() if result else {}

    @property
    def is_active(self) -> bool:
        return self.simulation is not None and self.simulation.is_active

    def available_years(self) -> list[int]:
        return available_years(self._canonical)

    def list_entries(self) -> list[ListEntry]:
        return build_list_entries(self.working, self._selected_id)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, observer: ViewObserver) -> None:
        """Register an observer and bring it up to date immediately."""
        self._observers.append(observer)
        observer.on_view_changed(self._view_event())
        if self.simulation is not None:
            observer.on_positions(self.simulation.snapshot())

    def unsubscribe(self, observer: ViewObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def _view_event(self) -> ViewEvent:
        return ViewEvent(
            view=self.working,
            mode=self.mode,
            styles=self.styles,
            selected_id=self._selected_id,
        )

    def _notify_activity(self) -> None:
        for observer in list(self._observers):
            observer.on_activity()

    def _publish(self, snapshot: PositionSnapshot) -> None:
        for observer in list(self._observers):
            observer.on_positions(snapshot)

    # ------------------------------------------------------------------
    # Recomputation
    # ------------------------------------------------------------------

    def _transition(
        self,
        view_filter: ViewFilter,
        mode: LayoutMode,
        match_result: MatchResult | None,
    ) -> None:
        working = compute_working_view(self._canonical, view_filter)
        reseed = self.simulation is None or working.node_ids != self.working.node_ids
        self.state = ViewState(working=working, mode=mode, match_result=match_result)
        self._refresh(reseed=reseed)

    def _refresh(self, reseed: bool) -> None:
        working = self.working
        self.plan = apply_layout(self.mode, working.nodes, self.viewport, self.config.layout)

        if reseed or self.simulation is None:
            self.simulation = ForceSimulation(
                working.nodes,
                working.edges,
                self.viewport.center,
                self.config.simulation,
                pins=self.plan.pins,
            )
            self._dragging.clear()
            logger.debug(f"Simulation re-seeded with {len(working)} nodes")
        else:
            self.simulation.set_center(self.viewport.center)
            self.simulation.set_pins(self.plan.pins)
            self.simulation.reheat()
            self._dragging.clear()
            self.simulation.set_alpha_target(0.0)

        self.styles = compute_styles(working, self.match_map, self.config.render)

        if self._selected_id is not None and self._selected_id not in working:
            logger.debug(f"Selection {self._selected_id} left the working view")
            self._selected_id = None

        event = self._view_event()
        snapshot = self.simulation.snapshot()
        for observer in list(self._observers):
            observer.on_view_changed(event)
            observer.on_positions(snapshot)
        self._notify_activity()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def set_filter(self, view_filter: ViewFilter) -> None:
        """Apply a filter; a non-match filter drops match styling."""
        match_result = self.state.match_result if view_filter.kind == FilterKind.BY_MATCH_SET else None
        logger.info(f"Filter -> {view_filter.describe()}")
        self._transition(view_filter, self.mode, match_result)

    def filter_by_year(self, year: int) -> None:
        self.set_filter(ViewFilter.by_year(year))

    def show_all(self) -> None:
        self.set_filter(ViewFilter.all())

    def set_layout_mode(self, mode: LayoutMode | str) -> None:
        mode = LayoutMode(mode)
        logger.info(f"Layout mode -> {mode.value}")
        self._transition(self.state.filter, mode, self.state.match_result)

    def relayout(self) -> None:
        """Re-run the active layout on the same population (rearrange)."""
        self._transition(self.state.filter, self.mode, self.state.match_result)

    def resize(self, viewport: Viewport) -> None:
        """Viewport changes re-run layout, not just rendering."""
        self.viewport = viewport
        self._transition(self.state.filter, self.mode, self.state.match_result)

    def append_nodes(self, nodes: Sequence[Node]) -> None:
        """Grow the canonical set; the active filter is re-evaluated."""
        known = {n.id for n in self._canonical}
        added = [n for n in nodes if n.id not in known and not n.is_owner]
        if not added:
            return
        self._canonical.extend(added)
        self._transition(self.state.filter, self.mode, self.state.match_result)

    def apply_match_result(self, result: MatchResult) -> None:
        """Show the owner plus matched nodes, styled by score.

        Ids are re-evaluated against the current canonical set; unknown ids
        are ignored.
        """
        self.last_result = result
        self._transition(ViewFilter.by_match_set(result.ids), self.mode, result)

    def clear_match_result(self) -> None:
        """Forget the last result and restore the full, unstyled view."""
        self.last_result = None
        if self.history is not None:
            self.history.clear_last()
        self._transition(ViewFilter.all(), self.mode, None)

    def view_history_entry(self, entry_id: str) -> bool:
        if self.history is None:
            return False
        entry = self.history.get(entry_id)
        if entry is None:
            logger.debug(f"History entry {entry_id} not found")
            return False
        self.apply_match_result(entry.result)
        return True

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select(self, node_id: str) -> bool:
        """Select a node from the scene or the list; unknown ids are ignored."""
        if node_id not in self.working:
            logger.debug(f"Ignoring selection of {node_id}: not in working view")
            return False
        self._selected_id = node_id
        for observer in list(self._observers):
            observer.on_selection(node_id)
        return True

    def clear_selection(self) -> None:
        self._selected_id = None
        for observer in list(self._observers):
            observer.on_selection(None)

    # ------------------------------------------------------------------
    # Dragging
    # ------------------------------------------------------------------

    def drag_start(self, node_id: str, x: float, y: float, z: float | None = None) -> None:
        if self.simulation is None or node_id not in self.simulation:
            return
        if not self._dragging:
            self.simulation.set_alpha_target(self.config.simulation.drag_alpha_target)
        self._dragging.add(node_id)
        self.simulation.set_pin(node_id, PinnedTarget(x, y, z))
        self._notify_activity()

    def drag_move(self, node_id: str, x: float, y: float, z: float | None = None) -> None:
        if node_id not in self._dragging:
            return
        self.simulation.set_pin(node_id, PinnedTarget(x, y, z))

    def drag_end(self, node_id: str) -> None:
        """Release axes the layout mode does not own; the owner stays put."""
        if node_id not in self._dragging:
            return
        self._dragging.discard(node_id)
        if not self._dragging:
            self.simulation.set_alpha_target(0.0)
        if self.working.get(node_id).is_owner:
            return
        self.simulation.set_pin(node_id, self.plan.released(node_id))

    # ------------------------------------------------------------------
    # Simulation stepping
    # ------------------------------------------------------------------

    def step(self) -> PositionSnapshot:
        """Advance the simulation one tick and publish positions."""
        self.simulation.tick()
        snapshot = self.simulation.snapshot()
        self._publish(snapshot)
        return snapshot

    def settle(self, max_ticks: int = 300) -> int:
        """Tick until the simulation cools down (or max_ticks); returns ticks run."""
        ticks = 0
        while self.is_active and ticks < max_ticks:
            self.step()
            ticks += 1
        return ticks

    # ------------------------------------------------------------------
    # Network query
    # ------------------------------------------------------------------

    async def ask(self, query: str) -> QueryOutcome:
        """Run a natural-language query and show its matches.

        On any failure the view, simulation and selection are untouched. If a
        newer query has already been applied when this one resolves, its
        result is discarded (last writer wins).
        """
        if self.query_service is None:
            raise RuntimeError("No query service configured")

        self._query_seq += 1
        seq = self._query_seq
        nodes = self.working.connections

        try:
            result = await self.query_service.find_matches(query, self.profile, nodes)
        except RateLimitError as e:
            return QueryOutcome(QueryStatus.RATE_LIMITED, query, message=f"AI cooling down: {e}")
        except MatchParseError as e:
            logger.warning(f"Query {query!r} returned an unusable response: {e}")
            return QueryOutcome(QueryStatus.FAILED, query, message=str(e))
        except LLMError as e:
            return QueryOutcome(QueryStatus.FAILED, query, message=str(e))

        if self.history is not None:
            self.history.append(query, result)

        if seq < self._applied_seq:
            logger.info(f"Discarding result of superseded query {query!r}")
            return QueryOutcome(QueryStatus.SUPERSEDED, query, result=result)

        self._applied_seq = seq
        if self.history is not None:
            self.history.save_last(result)
        self.apply_match_result(result)
        return QueryOutcome(QueryStatus.OK, query, result=result, message=result.explanation)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def scene(self) -> dict[str, Any]:
        """JSON-serializable description of what is on screen."""
        snapshot = self.simulation.snapshot()
        rendered_nodes = []
        for node in self.working.nodes:
            style = self.styles[node.id]
            rendered_nodes.append({
                **node.to_dict(),
                "position": list(snapshot.positions[node.id]),
                "pin": list(self.simulation.pin(node.id).as_tuple(self.config.simulation.dimensions)),
                "selected": node.id == self._selected_id,
                **style.to_dict(),
            })

        result = self.state.match_result
        return {
            "mode": self.mode.value,
            "filter": self.state.filter.to_dict(),
            "viewport": {"width": self.viewport.width, "height": self.viewport.height},
            "tick": snapshot.tick,
            "alpha": snapshot.alpha,
            "nodes": rendered_nodes,
            "edges": [e.to_dict() for e in self.working.edges],
            "list": [entry.to_dict() for entry in self.list_entries()],
            "selected_id": self._selected_id,
            "explanation": result.explanation if result else None,
        }
