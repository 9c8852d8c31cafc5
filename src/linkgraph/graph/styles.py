"""Derived visual attributes, computed once per working-view change.

Precedence between match and selection highlighting is fixed by channel:
match state owns fill and radius, selection owns the stroke. The stroke is
derived from the selected id at frame time, so neither pass can overwrite
the other regardless of order.
"""

import colorsys
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping

from linkgraph.graph.config import RenderConfig
from linkgraph.graph.filters import WorkingView
from linkgraph.models import EPOCH, Match, Node


@dataclass(frozen=True)
class NodeStyle:
    """Visual attributes of one node, independent of selection."""

    radius: float
    fill: str
    label: str
    label_offset: float
    font_size: int
    tooltip: str
    score: float | None = None  # set when the node is matched

    @property
    def matched(self) -> bool:
        return self.score is not None

    def to_dict(self) -> dict:
        return {
            "radius": self.radius,
            "fill": self.fill,
            "label": self.label,
            "label_offset": self.label_offset,
            "font_size": self.font_size,
            "tooltip": self.tooltip,
            "score": self.score,
        }


@dataclass(frozen=True)
class Stroke:
    color: str
    width: float


def year_color(year: int, config: RenderConfig) -> str:
    """Deterministic hue from ``year mod 10``, fixed saturation/lightness."""
    hue = ((year % 10) * config.hue_step) % 360 / 360
    r, g, b = colorsys.hls_to_rgb(hue, config.lightness, config.saturation)
    return "#{:02x}{:02x}{:02x}".format(round(r * 255), round(g * 255), round(b * 255))


def recency_radius(date: datetime, start: datetime, end: datetime, config: RenderConfig) -> float:
    """Linear radius between min and max by position of date in [start, end]."""
    span = (end - start).total_seconds() or 1.0
    recency = (date - start).total_seconds() / span
    return config.radius_min + recency * (config.radius_max - config.radius_min)


def match_radius(score: float, config: RenderConfig) -> float:
    return config.radius_min + (score / 100) * (config.radius_max - config.radius_min) + config.match_radius_bonus


def tooltip_for(node: Node) -> str:
    return f"{node.name}\n{node.role}\n{node.company}\n{node.connected_date:%Y-%m-%d}"


def compute_styles(
    view: WorkingView,
    matches: Mapping[str, Match] | None,
    config: RenderConfig,
) -> dict[str, NodeStyle]:
    """Style every node in the view.

    Recency bounds come from the view's connections, so radii are relative
    to what is displayed.
    """
    matches = matches or {}
    dates = [n.connected_date for n in view.connections]
    start = min(dates, default=EPOCH)
    end = max(dates, default=EPOCH)

    styles: dict[str, NodeStyle] = {}
    for node in view.nodes:
        if node.is_owner:
            styles[node.id] = NodeStyle(
                radius=config.owner_radius,
                fill=config.owner_fill,
                label=node.first_name,
                label_offset=config.owner_label_offset,
                font_size=config.owner_font_size,
                tooltip=tooltip_for(node),
            )
            continue

        match = matches.get(node.id)
        if match is not None:
            radius = match_radius(match.score, config)
            fill = config.match_fill
        else:
            radius = recency_radius(node.connected_date, start, end, config)
            fill = year_color(node.year, config)

        styles[node.id] = NodeStyle(
            radius=radius,
            fill=fill,
            label=node.first_name,
            label_offset=config.node_label_offset,
            font_size=config.node_font_size,
            tooltip=tooltip_for(node),
            score=match.score if match is not None else None,
        )
    return styles


def stroke_for(node_id: str, selected_id: str | None, config: RenderConfig) -> Stroke:
    if selected_id is not None and node_id == selected_id:
        return Stroke(config.selected_stroke, config.selected_stroke_width)
    return Stroke(config.stroke, config.stroke_width)
