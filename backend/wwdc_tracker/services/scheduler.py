"""
Periodic refresh driver: runs aggregation passes on a timer or on demand,
never more than one at a time.
"""
from __future__ import annotations

import asyncio
import logging
import math
import time
from contextlib import suppress
from dataclasses import replace
from enum import Enum
from typing import Callable, Optional

from wwdc_tracker.config import LIVE_REFRESH_INTERVAL_SECONDS, REFRESH_INTERVAL_SECONDS
from wwdc_tracker.core.aggregator import Aggregator
from wwdc_tracker.models import AggregationSnapshot, ArticleKind

logger = logging.getLogger(__name__)


class RefreshState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    COOLDOWN = "cooldown"


class RefreshError(RuntimeError):
    """A manually triggered pass failed as a whole."""


class RefreshScheduler:
    """
    Drives an Aggregator on a countdown.

    Timer-driven passes swallow pass-level failures after logging them and
    simply retry on the next tick; manual passes raise RefreshError. Either
    way the connection is marked down and the last good snapshot stays
    available.
    """

    def __init__(
        self,
        aggregator: Aggregator,
        interval: float = REFRESH_INTERVAL_SECONDS,
        live_interval: float = LIVE_REFRESH_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        tick: float = 1.0,
    ):
        self.aggregator = aggregator
        self.interval = interval
        self.live_interval = live_interval
        self.clock = clock
        self.tick = tick

        self.state = RefreshState.IDLE
        self.snapshot: Optional[AggregationSnapshot] = None
        self.is_connected = True
        self.last_error: Optional[str] = None

        self._in_flight = False
        self._next_run_at: Optional[float] = None  # None: due immediately
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        """True while an aggregation pass is in flight."""
        return self._in_flight

    @property
    def seconds_until_next(self) -> int:
        if self._next_run_at is None:
            return 0
        return max(0, math.ceil(self._next_run_at - self.clock()))

    def current_interval(self) -> float:
        if self.snapshot is not None and self.snapshot.live_status.is_live:
            return self.live_interval
        return self.interval

    def start(self) -> None:
        """Start the background loop; the first pass runs right away."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run_loop())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        if not self._in_flight:
            self.state = RefreshState.IDLE

    async def trigger_now(self) -> Optional[AggregationSnapshot]:
        """
        Run a pass immediately.

        Returns:
            The snapshot now on display, or None if a pass was already running

        Raises:
            RefreshError: If the pass itself failed
        """
        return await self._run_pass(foreground=True)

    async def _run_loop(self) -> None:
        while True:
            remaining = self.seconds_until_next
            if remaining > 0 or self._in_flight:
                await asyncio.sleep(min(remaining, self.tick) if remaining > 0 else self.tick)
                continue
            await self._run_pass(foreground=False)

    async def _run_pass(self, foreground: bool) -> Optional[AggregationSnapshot]:
        if self._in_flight:
            logger.debug("Refresh requested while a pass is running; ignored")
            return None

        self._in_flight = True
        self.state = RefreshState.FETCHING
        try:
            snapshot = await self.aggregator.run_pass()
        except Exception as e:
            self.is_connected = False
            self.last_error = f"{type(e).__name__}: {e}"
            if foreground:
                logger.exception("Manual refresh failed")
                raise RefreshError(self.last_error) from e
            logger.warning("Background refresh failed, retrying on next tick: %s", self.last_error)
            return None
        else:
            self._accept(snapshot)
            return self.snapshot
        finally:
            self._in_flight = False
            self.state = RefreshState.COOLDOWN
            self._next_run_at = self.clock() + self.current_interval()

    def _accept(self, snapshot: AggregationSnapshot) -> None:
        self.is_connected = True
        self.last_error = None

        if snapshot.all_failed and self.snapshot is not None:
            # Keep showing the last good articles, with the fresh errors and live item attached
            kept = [a for a in self.snapshot.articles if a.kind is not ArticleKind.LIVE]
            live = [a for a in snapshot.articles if a.kind is ArticleKind.LIVE]
            logger.warning("Every source failed; keeping %d articles from the previous pass", len(kept))
            self.snapshot = replace(
                self.snapshot,
                articles=tuple(live + kept),
                errors=snapshot.errors,
                live_status=snapshot.live_status,
            )
            return

        self.snapshot = snapshot
