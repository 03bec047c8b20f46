"""Periodic trigger for update runs.

Scheduled runs are detached from any HTTP request: each one is started as
its own asyncio task and its outcome only reaches the logs.
"""

import asyncio
import logging
from typing import Optional

from promptrelay.services.content_cache import ContentCache
from promptrelay.services.update_orchestrator import UpdateOrchestrator

logger = logging.getLogger(__name__)


async def run_scheduled_update(orchestrator: UpdateOrchestrator) -> None:
    """Run one update and log the outcome. Never raises."""
    logger.info("[SCHEDULER] Scheduled update triggered")
    try:
        result = await orchestrator.run()
    except Exception as e:
        logger.error(f"[SCHEDULER] Scheduled update failed: {type(e).__name__}: {e}")
        return
    logger.info(
        f"[SCHEDULER] Scheduled update stored new content | "
        f"tier={result.tier_used.value} | attempts={result.attempts}"
    )


class UpdateScheduler:
    """Fires a detached update run every ``interval_seconds``."""

    def __init__(
        self,
        orchestrator: UpdateOrchestrator,
        interval_seconds: float,
        cache: Optional[ContentCache] = None,
        run_on_startup: bool = False,
    ):
        self.orchestrator = orchestrator
        self.interval_seconds = interval_seconds
        self.cache = cache
        self.run_on_startup = run_on_startup
        self._loop_task: Optional[asyncio.Task] = None
        self._runs: set[asyncio.Task] = set()

    def trigger(self) -> asyncio.Task:
        """Start one detached run and return its task."""
        task = asyncio.create_task(run_scheduled_update(self.orchestrator))
        self._runs.add(task)
        task.add_done_callback(self._runs.discard)
        return task

    async def _cache_is_empty(self) -> bool:
        if self.cache is None:
            return True
        try:
            return not await self.cache.get(self.orchestrator.cache_key)
        except Exception as e:
            logger.warning(f"[SCHEDULER] Could not read cache at startup: {e}")
            return True

    async def _loop(self) -> None:
        if self.run_on_startup and await self._cache_is_empty():
            logger.info("[SCHEDULER] Cache empty at startup, triggering initial update")
            self.trigger()

        while True:
            await asyncio.sleep(self.interval_seconds)
            self.trigger()

    def start(self) -> None:
        """Start the periodic loop on the running event loop."""
        if self._loop_task is not None:
            return
        self._loop_task = asyncio.create_task(self._loop())
        logger.info(f"[SCHEDULER] Started, interval={self.interval_seconds}s")

    async def stop(self) -> None:
        """Cancel the periodic loop and any in-flight runs."""
        tasks = list(self._runs)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
            self._loop_task = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("[SCHEDULER] Stopped")
