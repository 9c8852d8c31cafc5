"""Configuration for layout, simulation and rendering."""

from dataclasses import dataclass, field


@dataclass
class LayoutConfig:
    """Configuration for the positional layout strategies."""

    # Time axis occupies [margin_top, height - margin_bottom]
    margin_top: float = 50.0
    margin_bottom: float = 50.0

    # Timeline: horizontal spacing cap between nodes of one year
    max_spacing: float = 180.0

    # Clusters: width per member, capped at a fraction of the viewport
    cluster_node_width: float = 60.0
    cluster_max_width_fraction: float = 0.7


@dataclass
class SimulationConfig:
    """Configuration for the force simulation."""

    dimensions: int = 2  # 2 or 3

    # Link springs (owner <-> connection)
    link_distance: float = 120.0
    link_strength: float = 0.1

    # Many-body charge (negative = repulsion)
    owner_charge: float = -800.0
    node_charge: float = -150.0
    distance_min: float = 1.0

    # Positional springs; y dominates so time beats lateral drift
    x_strength: float = 0.1
    y_strength: float = 0.3
    z_strength: float = 0.1

    # Cooling schedule
    alpha_min: float = 0.001
    alpha_decay: float | None = None  # None -> 1 - alpha_min ** (1 / 300)
    velocity_decay: float = 0.4
    drag_alpha_target: float = 0.3
    reheat_alpha: float = 1.0

    # Seeding
    initial_radius: float = 10.0
    seed: int = 0

    @property
    def effective_alpha_decay(self) -> float:
        if self.alpha_decay is not None:
            return self.alpha_decay
        return 1 - self.alpha_min ** (1 / 300)

    @property
    def axis_strengths(self) -> tuple[float, ...]:
        return (self.x_strength, self.y_strength, self.z_strength)[: self.dimensions]


@dataclass
class RenderConfig:
    """Configuration for derived visual attributes."""

    owner_radius: float = 15.0
    radius_min: float = 3.0
    radius_max: float = 12.0
    match_radius_bonus: float = 5.0

    owner_fill: str = "#ffffff"
    match_fill: str = "#00ff88"
    hue_step: float = 36.0  # degrees per (year mod 10)
    saturation: float = 0.7
    lightness: float = 0.6

    stroke: str = "#ffffff"
    stroke_width: float = 1.5
    selected_stroke: str = "#ffd400"
    selected_stroke_width: float = 4.0

    owner_font_size: int = 14
    node_font_size: int = 10
    owner_label_offset: float = 20.0
    node_label_offset: float = 8.0


@dataclass
class GraphConfig:
    """Combined configuration for the graph engine."""

    layout: LayoutConfig = field(default_factory=LayoutConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
