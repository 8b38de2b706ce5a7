"""Scheduler — periodic re-materialization of weighted aggregates.

Precomputed aggregates lag raw inserts and weight edits until the next
refresh; the interval bounds that lag.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Awaitable, Callable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from commitlens.dao.aggregate_dao import AggregateDAO

logger = structlog.get_logger(__name__)


class RefreshLoop:
    """Single job loop that wakes on trigger or interval timeout."""

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

    async def loop(self) -> None:
        """Run the job forever, waking on trigger or timeout."""
        while True:
            try:
                await asyncio.wait_for(self.trigger.wait(), timeout=self.interval)
                self.trigger.clear()
            except asyncio.TimeoutError:
                pass

            try:
                processed = await self.run_fn()
                logger.info("job.cycle", job=self.name, processed=processed)
            except Exception:
                logger.exception("job.error", job=self.name)


class Scheduler:
    """Manages lifecycle of all RefreshLoop tasks."""

    def __init__(self, loops: list[RefreshLoop]) -> None:
        self._loops = loops
        self._tasks: list[asyncio.Task[None]] = []

    async def start(self) -> None:
        """Start every loop as an asyncio task and run each once immediately."""
        self._tasks = [
            asyncio.create_task(loop.loop(), name=f"job-{loop.name}") for loop in self._loops
        ]
        for loop in self._loops:
            loop.trigger.set()
        logger.info("scheduler.started", jobs=[loop.name for loop in self._loops])

    async def stop(self) -> None:
        """Cancel all loops and wait for them to exit."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        logger.info("scheduler.stopped")


def _env_float(key: str, default: float) -> float:
    return float(os.environ.get(key, default))


def create_scheduler(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    aggregate_dao: AggregateDAO,
) -> Scheduler:
    """Build a Scheduler that refreshes every aggregate dimension periodically."""
    refresh_interval = _env_float("COMMITLENS_REFRESH_INTERVAL", 900)

    async def _refresh_aggregates() -> int:
        async with session_factory() as session:
            async with session.begin():
                written = await aggregate_dao.refresh(session)
        logger.info("aggregate.refreshed", **written)
        return sum(written.values())

    return Scheduler([RefreshLoop("aggregate_refresh", _refresh_aggregates, refresh_interval)])
