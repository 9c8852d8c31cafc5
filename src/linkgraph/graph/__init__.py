"""Layout and state-reconciliation engine for the network graph.

Provides:
- View filtering (all, by year, by match set)
- Layout strategies (timeline, clusters, organic)
- NumPy force simulation with per-axis pins
- Styles, scene and side-list observers
- GraphEngine, the owned context tying them together
"""

from linkgraph.graph.config import GraphConfig, LayoutConfig, RenderConfig, SimulationConfig
from linkgraph.graph.engine import GraphEngine, ViewState
from linkgraph.graph.filters import (
    FilterKind,
    ViewFilter,
    WorkingView,
    available_years,
    compute_working_view,
)
from linkgraph.graph.layout import (
    LayoutMode,
    LayoutPlan,
    PinnedTarget,
    TimeScale,
    Viewport,
    apply_layout,
)
from linkgraph.graph.scheduler import SimulationRunner
from linkgraph.graph.simulation import ForceSimulation, PositionSnapshot
from linkgraph.graph.styles import NodeStyle, Stroke, compute_styles
from linkgraph.graph.views import ListView, SceneView, ViewEvent, ViewObserver

__all__ = [
    # Config
    "GraphConfig",
    "LayoutConfig",
    "RenderConfig",
    "SimulationConfig",
    # Filters
    "FilterKind",
    "ViewFilter",
    "WorkingView",
    "available_years",
    "compute_working_view",
    # Layout
    "LayoutMode",
    "LayoutPlan",
    "PinnedTarget",
    "TimeScale",
    "Viewport",
    "apply_layout",
    # Simulation
    "ForceSimulation",
    "PositionSnapshot",
    "SimulationRunner",
    # Rendering
    "NodeStyle",
    "Stroke",
    "compute_styles",
    "ListView",
    "SceneView",
    "ViewEvent",
    "ViewObserver",
    # Engine
    "GraphEngine",
    "ViewState",
]
