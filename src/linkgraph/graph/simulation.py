"""Force simulation: damped iterative relaxation with NumPy.

Forces, applied in order each tick and scaled by the cooling parameter alpha:

1. Link springs pulling owner/connection pairs toward a rest length
2. Pairwise many-body charge (owner repels harder than connections)
3. Per-axis positional springs toward the pinned target if the axis has one,
   otherwise toward the viewport center

Pinned axes are then snapped to their target with zero velocity, so a pin
is kinematically fixed. The positional force uses one strength per axis for
both the centre spring and the pin spring; the snap is what makes a pin
stronger than the centre pull. Soft pins would need a separate, stronger pin
strength. A simulation instance is bound to one node
population; a different population needs a new instance.
"""

import logging
import math
from dataclasses import dataclass
from typing import Mapping, Sequence

import numpy as np

from linkgraph.graph.config import SimulationConfig
from linkgraph.graph.layout import PinnedTarget
from linkgraph.models import OWNER_ID, Edge, Node

logger = logging.getLogger(__name__)

# Rows per block when computing pairwise charge, bounds memory at O(block * n)
_CHARGE_BLOCK = 512


@dataclass(frozen=True)
class PositionSnapshot:
    """Positions published after one integration step."""

    tick: int
    alpha: float
    positions: dict[str, tuple[float, ...]]


class ForceSimulation:
    """Iterative physics relaxation over one node/edge population."""

    def __init__(
        self,
        nodes: Sequence[Node],
        edges: Sequence[Edge],
        center: Sequence[float],
        config: SimulationConfig | None = None,
        pins: Mapping[str, PinnedTarget] | None = None,
    ) -> None:
        self.config = config or SimulationConfig()
        dims = self.config.dimensions
        if dims not in (2, 3):
            raise ValueError(f"dimensions must be 2 or 3, got {dims}")

        self.ids: tuple[str, ...] = tuple(n.id for n in nodes)
        self._index = {node_id: i for i, node_id in enumerate(self.ids)}
        count = len(self.ids)

        padded = list(center)[:dims] + [0.0] * (dims - len(center))
        self.center = np.asarray(padded, dtype=float)

        self.positions = np.zeros((count, dims))
        self.velocities = np.zeros((count, dims))
        self.fixed = np.full((count, dims), np.nan)
        self.charges = np.array(
            [self.config.owner_charge if i == OWNER_ID else self.config.node_charge for i in self.ids],
            dtype=float,
        )

        links = [(self._index[e.source], self._index[e.target]) for e in edges
                 if e.source in self._index and e.target in self._index]
        self._sources = np.array([s for s, _ in links], dtype=int)
        self._targets = np.array([t for _, t in links], dtype=int)
        degree = np.bincount(np.concatenate([self._sources, self._targets]), minlength=count)
        if links:
            source_degree = degree[self._sources]
            self._bias = source_degree / (source_degree + degree[self._targets])
        else:
            self._bias = np.zeros(0)

        self.alpha = self.config.reheat_alpha
        self.alpha_target = 0.0
        self.tick_count = 0
        self._rng = np.random.default_rng(self.config.seed)

        if pins:
            self.set_pins(pins)
        self._initialize_positions()

    # ------------------------------------------------------------------
    # Population and pins
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.ids)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    def _initialize_positions(self) -> None:
        """Phyllotaxis seeding around the center; pinned axes start on the pin."""
        count, dims = self.positions.shape
        if count == 0:
            return

        i = np.arange(count, dtype=float)
        radius = self.config.initial_radius * np.sqrt(0.5 + i)
        yaw = i * math.pi * (3 - math.sqrt(5))
        if dims == 2:
            offsets = np.column_stack([radius * np.cos(yaw), radius * np.sin(yaw)])
        else:
            roll = i * math.pi * 20 / (9 + math.sqrt(221))
            offsets = np.column_stack([
                radius * np.sin(roll) * np.cos(yaw),
                radius * np.cos(roll),
                radius * np.sin(roll) * np.sin(yaw),
            ])

        seeded = self.center[None, :] + offsets
        self.positions = np.where(np.isnan(self.fixed), seeded, self.fixed)

    def set_pin(self, node_id: str, pin: PinnedTarget) -> None:
        """Replace a node's pin on every axis (None frees the axis)."""
        index = self._index.get(node_id)
        if index is None:
            logger.debug(f"Ignoring pin for node {node_id} outside the simulation")
            return
        dims = self.positions.shape[1]
        self.fixed[index] = [np.nan if v is None else float(v) for v in pin.as_tuple(dims)]

    def set_pins(self, pins: Mapping[str, PinnedTarget]) -> None:
        """Free every axis, then apply the given pins."""
        self.fixed[:] = np.nan
        for node_id, pin in pins.items():
            self.set_pin(node_id, pin)

    def set_center(self, center: Sequence[float]) -> None:
        """Move the fallback target of free axes (viewport resize)."""
        dims = self.positions.shape[1]
        self.center = np.asarray(list(center)[:dims] + [0.0] * (dims - len(center)), dtype=float)

    def pin(self, node_id: str) -> PinnedTarget:
        row = self.fixed[self._index[node_id]]
        values = [None if np.isnan(v) else float(v) for v in row]
        return PinnedTarget(*values)

    def position(self, node_id: str) -> tuple[float, ...]:
        return tuple(float(v) for v in self.positions[self._index[node_id]])

    # ------------------------------------------------------------------
    # Energy
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        min_alpha = self.config.alpha_min
        return self.alpha >= min_alpha or self.alpha_target >= min_alpha

    def reheat(self, alpha: float | None = None) -> None:
        """Raise alpha so the population visibly re-relaxes."""
        self.alpha = self.config.reheat_alpha if alpha is None else alpha

    def set_alpha_target(self, target: float) -> None:
        self.alpha_target = target

    # ------------------------------------------------------------------
    # Integration
    # ------------------------------------------------------------------

    def _jiggle(self, shape) -> np.ndarray:
        return (self._rng.random(shape) - 0.5) * 1e-6

    def _apply_links(self) -> None:
        if len(self._sources) == 0:
            return
        cfg = self.config
        s, t = self._sources, self._targets

        delta = (self.positions[t] + self.velocities[t]) - (self.positions[s] + self.velocities[s])
        zero = delta == 0
        if zero.any():
            delta[zero] = self._jiggle(int(zero.sum()))

        distance = np.linalg.norm(delta, axis=1)
        scale = (distance - cfg.link_distance) / distance * self.alpha * cfg.link_strength
        delta *= scale[:, None]

        np.add.at(self.velocities, t, -delta * self._bias[:, None])
        np.add.at(self.velocities, s, delta * (1 - self._bias)[:, None])

    def _apply_charge(self) -> None:
        count = len(self.ids)
        if count < 2:
            return
        min_dist2 = self.config.distance_min ** 2
        weights = self.charges * self.alpha

        for start in range(0, count, _CHARGE_BLOCK):
            rows = np.arange(start, min(start + _CHARGE_BLOCK, count))
            # delta[r, j] = pos[j] - pos[rows[r]]
            delta = self.positions[None, :, :] - self.positions[rows][:, None, :]
            self_mask = np.zeros((len(rows), count), dtype=bool)
            self_mask[np.arange(len(rows)), rows] = True

            zero = (delta == 0) & ~self_mask[:, :, None]
            if zero.any():
                delta[zero] = self._jiggle(int(zero.sum()))

            dist2 = np.einsum("rjk,rjk->rj", delta, delta)
            dist2 = np.where(dist2 < min_dist2, np.sqrt(min_dist2 * dist2), dist2)
            dist2[self_mask] = 1.0

            factor = np.where(self_mask, 0.0, weights[None, :] / dist2)
            self.velocities[rows] += np.einsum("rjk,rj->rk", delta, factor)

    def _apply_positional(self) -> None:
        # Pinned axes are overwritten by the snap in tick()
        strengths = np.asarray(self.config.axis_strengths, dtype=float)
        target = np.where(np.isnan(self.fixed), self.center[None, :], self.fixed)
        self.velocities += (target - self.positions) * strengths[None, :] * self.alpha

    def tick(self) -> None:
        """Advance one integration step."""
        cfg = self.config
        self.alpha += (self.alpha_target - self.alpha) * cfg.effective_alpha_decay

        if len(self.ids):
            self._apply_links()
            self._apply_charge()
            self._apply_positional()

            free = np.isnan(self.fixed)
            self.velocities *= 1 - cfg.velocity_decay
            self.positions = np.where(free, self.positions + self.velocities, self.fixed)
            self.velocities = np.where(free, self.velocities, 0.0)

        self.tick_count += 1

    def snapshot(self) -> PositionSnapshot:
        return PositionSnapshot(
            tick=self.tick_count,
            alpha=self.alpha,
            positions={
                node_id: tuple(float(v) for v in self.positions[i])
                for i, node_id in enumerate(self.ids)
            },
        )
