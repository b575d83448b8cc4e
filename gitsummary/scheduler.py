"""Scheduler — background summarization loop, woken early when ingestion completes."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gitsummary.engines.summarizer.runner import SummarizerRunner

logger = structlog.get_logger(__name__)

SUMMARIZER_LOOP = "summarizer"


class EngineLoop:
    """Single engine scheduling loop with trigger/timeout wake mechanism."""

    def __init__(
        self,
        name: str,
        run_fn: Callable[[], Awaitable[int]],
        interval: float,
    ) -> None:
        self.name = name
        self.run_fn = run_fn
        self.interval = interval
        self.trigger = asyncio.Event()

    async def run_once(self) -> int:
        """One cycle; errors are logged so the loop survives them."""
        try:
            processed = await self.run_fn()
        except Exception:
            logger.exception("engine.error", engine=self.name)
            return 0
        logger.info("engine.cycle", engine=self.name, processed=processed)
        return processed

    async def loop(self) -> None:
        """Run the engine forever, waking on trigger or timeout."""
        while True:
            try:
                await asyncio.wait_for(self.trigger.wait(), timeout=self.interval)
                self.trigger.clear()
            except asyncio.TimeoutError:
                pass
            await self.run_once()


class Scheduler:
    """Manages lifecycle of EngineLoop tasks."""

    def __init__(self, loops: list[EngineLoop]) -> None:
        self._loops = {loop.name: loop for loop in loops}
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    async def start(self) -> None:
        """Start all engine loops as asyncio tasks and kick each once."""
        self._tasks = [
            asyncio.create_task(loop.loop(), name=f"engine-{loop.name}")
            for loop in self._loops.values()
        ]
        for loop in self._loops.values():
            loop.trigger.set()
        logger.info("scheduler.started", engines=list(self._loops))

    async def stop(self) -> None:
        """Cancel all engine loops and wait for them to exit."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        logger.info("scheduler.stopped")

    def wake(self, name: str) -> bool:
        """Run loop *name* now instead of at its next interval."""
        loop = self._loops.get(name)
        if loop is None:
            return False
        loop.trigger.set()
        return True


def create_scheduler(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    summarizer_runner: SummarizerRunner,
    summarize_interval: float,
) -> Scheduler:
    """Build a Scheduler whose only loop drains the summary backlog."""

    async def _drain_summaries() -> int:
        result = await summarizer_runner.drain(session_factory)
        return result.success + result.failed

    return Scheduler([EngineLoop(SUMMARIZER_LOOP, _drain_summaries, summarize_interval)])
