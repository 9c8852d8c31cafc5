"""Frame-paced driver for the engine's simulation.

The runner sleeps while the simulation is cool and wakes whenever the engine
reports new energy (view change, reheat, drag). Ticks and transitions share
one event loop, so a transition always lands between two ticks.
"""

import asyncio
import logging

from linkgraph.config import settings
from linkgraph.graph.engine import GraphEngine
from linkgraph.graph.views import ViewObserver

logger = logging.getLogger(__name__)


class SimulationRunner(ViewObserver):
    """Steps a GraphEngine at a fixed interval while it is active."""

    def __init__(self, engine: GraphEngine, interval: float | None = None) -> None:
        self.engine = engine
        self.interval = settings.simulation_tick_interval if interval is None else interval
        self._wake = asyncio.Event()
        self._task: asyncio.Task | None = None
        self.ticks = 0

    def on_activity(self) -> None:
        self._wake.set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Subscribe to the engine and start ticking in the background."""
        if self.running:
            return
        self.engine.subscribe(self)
        self._wake.set()
        self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        self.engine.unsubscribe(self)
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def run(self) -> None:
        while True:
            await self._wake.wait()
            self._wake.clear()
            while self.engine.is_active:
                self.engine.step()
                self.ticks += 1
                await asyncio.sleep(self.interval)
            logger.debug(f"Simulation cooled after {self.ticks} ticks")

    async def run_until_settled(self, max_ticks: int | None = None) -> int:
        """Tick in the foreground until the simulation cools; returns ticks run."""
        max_ticks = max_ticks or settings.simulation_max_ticks
        ticks = 0
        while self.engine.is_active and ticks < max_ticks:
            self.engine.step()
            ticks += 1
            await asyncio.sleep(self.interval)
        self.ticks += ticks
        return ticks
