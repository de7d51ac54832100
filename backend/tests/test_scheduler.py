from __future__ import annotations

import asyncio
from datetime import date, time
from typing import List, Optional

import pytest

from wwdc_tracker.core.aggregator import Aggregator
from wwdc_tracker.core.event_clock import EventClock, EventWindow
from wwdc_tracker.models import AggregationSnapshot, ArticleKind, SourceError
from wwdc_tracker.services.scheduler import RefreshError, RefreshScheduler, RefreshState

from conftest import NOW, StubFetcher, make_article, make_snapshot


class FakeClock:
    def __init__(self, value: float = 1000.0):
        self.value = value

    def __call__(self) -> float:
        return self.value


class StubAggregator:
    """Returns queued snapshots (or raises queued exceptions) from run_pass."""

    def __init__(self, *outcomes, gate: Optional[asyncio.Event] = None):
        self.outcomes: List = list(outcomes)
        self.gate = gate
        self.calls = 0

    async def run_pass(self, now=None) -> AggregationSnapshot:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def test_initial_state_is_idle_and_due():
    scheduler = RefreshScheduler(StubAggregator(make_snapshot()))

    assert scheduler.state is RefreshState.IDLE
    assert scheduler.seconds_until_next == 0
    assert scheduler.is_running is False
    assert scheduler.snapshot is None


@pytest.mark.asyncio
async def test_completed_pass_enters_cooldown_with_full_interval():
    clock = FakeClock()
    snapshot = make_snapshot([make_article()])
    scheduler = RefreshScheduler(StubAggregator(snapshot), interval=120, live_interval=30, clock=clock)

    result = await scheduler.trigger_now()

    assert result is snapshot
    assert scheduler.state is RefreshState.COOLDOWN
    assert scheduler.seconds_until_next == 120
    clock.value += 45.5
    assert scheduler.seconds_until_next == 75


@pytest.mark.asyncio
async def test_live_snapshot_shortens_interval():
    scheduler = RefreshScheduler(
        StubAggregator(make_snapshot(is_live=True)), interval=120, live_interval=30, clock=FakeClock()
    )

    await scheduler.trigger_now()

    assert scheduler.seconds_until_next == 30


@pytest.mark.asyncio
async def test_manual_trigger_while_fetching_is_a_no_op():
    gate = asyncio.Event()
    aggregator = StubAggregator(make_snapshot([make_article()]), gate=gate)
    scheduler = RefreshScheduler(aggregator, clock=FakeClock())

    first = asyncio.create_task(scheduler.trigger_now())
    await asyncio.sleep(0)

    assert scheduler.is_running is True
    assert scheduler.state is RefreshState.FETCHING
    assert await scheduler.trigger_now() is None

    gate.set()
    assert await first is not None
    assert aggregator.calls == 1
    assert scheduler.is_running is False


@pytest.mark.asyncio
async def test_manual_failure_raises_and_marks_connection_down():
    clock = FakeClock()
    scheduler = RefreshScheduler(StubAggregator(RuntimeError("clock exploded")), interval=120, clock=clock)

    with pytest.raises(RefreshError):
        await scheduler.trigger_now()

    assert scheduler.is_connected is False
    assert "clock exploded" in scheduler.last_error
    assert scheduler.state is RefreshState.COOLDOWN
    assert scheduler.seconds_until_next == 120


@pytest.mark.asyncio
async def test_background_failure_is_silent_and_keeps_last_snapshot():
    good = make_snapshot([make_article()])
    scheduler = RefreshScheduler(StubAggregator(good, RuntimeError("network down")), clock=FakeClock())

    await scheduler.trigger_now()
    result = await scheduler._run_pass(foreground=False)

    assert result is None
    assert scheduler.is_connected is False
    assert scheduler.snapshot is good


@pytest.mark.asyncio
async def test_recovery_marks_connection_up_again():
    good = make_snapshot([make_article()])
    scheduler = RefreshScheduler(StubAggregator(RuntimeError("down"), good), clock=FakeClock())

    await scheduler._run_pass(foreground=False)
    assert scheduler.is_connected is False

    await scheduler.trigger_now()
    assert scheduler.is_connected is True
    assert scheduler.last_error is None


@pytest.mark.asyncio
async def test_total_source_failure_keeps_previous_articles():
    article = make_article()
    good = make_snapshot([article])
    failed = make_snapshot(errors=[SourceError("9to5Mac", "HTTP 500"), SourceError("NewsAPI", "HTTP 503")])
    scheduler = RefreshScheduler(StubAggregator(good, failed), clock=FakeClock())

    await scheduler.trigger_now()
    shown = await scheduler.trigger_now()

    assert [a.id for a in shown.articles] == [article.id]
    assert [e.source for e in shown.errors] == ["9to5Mac", "NewsAPI"]


@pytest.mark.asyncio
async def test_start_runs_first_pass_and_stop_cancels():
    aggregator = StubAggregator(make_snapshot([make_article()]))
    scheduler = RefreshScheduler(aggregator, interval=120, clock=FakeClock(), tick=0.01)

    scheduler.start()
    for _ in range(20):
        await asyncio.sleep(0)
        if aggregator.calls:
            break
    await asyncio.sleep(0)
    await scheduler.stop()

    assert aggregator.calls == 1
    assert scheduler.snapshot is not None
    assert scheduler.state is RefreshState.IDLE


@pytest.mark.asyncio
async def test_timer_expiry_starts_next_pass():
    clock = FakeClock()
    aggregator = StubAggregator(make_snapshot([make_article()]))
    scheduler = RefreshScheduler(aggregator, interval=120, clock=clock, tick=0.01)

    await scheduler.trigger_now()
    scheduler.start()
    await asyncio.sleep(0.05)
    assert aggregator.calls == 1

    clock.value += 120
    for _ in range(50):
        await asyncio.sleep(0.01)
        if aggregator.calls == 2:
            break
    await scheduler.stop()

    assert aggregator.calls == 2


class PinnedAggregator(Aggregator):
    """Real aggregator frozen at one instant inside the keynote window."""

    async def run_pass(self, now=None) -> AggregationSnapshot:
        return await super().run_pass(NOW)


@pytest.mark.asyncio
async def test_total_source_failure_while_live_keeps_previous_articles():
    articles = [make_article("A", "https://e.com/a"), make_article("B", "https://e.com/b")]
    fetcher = StubFetcher("feed", articles)
    window = EventWindow(
        start_date=date(2025, 6, 9),
        end_date=date(2025, 6, 13),
        daily_start=time(18, 30),
        daily_end=time(22, 30),
    )
    scheduler = RefreshScheduler(PinnedAggregator([fetcher], clock=EventClock(window)), clock=FakeClock())

    first = await scheduler.trigger_now()
    assert first.live_status.is_live is True

    fetcher.error = "HTTP 500"
    shown = await scheduler.trigger_now()

    assert shown.articles[0].kind is ArticleKind.LIVE
    assert {"A", "B"} <= {a.title for a in shown.articles}
    assert len(shown.articles) == 3
    assert [(e.source, e.message) for e in shown.errors] == [("feed", "HTTP 500")]
