"""
Merge, classify, rank and diff the per-source results of one refresh pass.
"""
from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import datetime, timedelta
from typing import AbstractSet, Dict, FrozenSet, Iterable, List, Optional, Sequence

import httpx

from wwdc_tracker.config import (
    BREAKING_WINDOW_MINUTES,
    MAX_FEED_ITEMS,
    TRACKED_CODENAMES,
    URGENCY_KEYWORDS,
)
from wwdc_tracker.core.event_clock import EventClock
from wwdc_tracker.models import (
    AggregationSnapshot,
    Article,
    ArticleKind,
    LiveStatus,
    SourceResult,
)
from wwdc_tracker.sources.collector import Fetcher, collect_sources
from wwdc_tracker.sources.live import LIVE_SOURCE_NAME, live_announcement
from wwdc_tracker.utils import ensure_utc, now_utc

logger = logging.getLogger(__name__)

URGENCY_RE = re.compile(
    r"\b(?:%s)\b" % "|".join(re.escape(term) for term in (*URGENCY_KEYWORDS, *TRACKED_CODENAMES)),
    re.IGNORECASE,
)


def deduplicate(articles: Iterable[Article]) -> List[Article]:
    """Keep one article per id; a later duplicate replaces an earlier one."""
    by_id: Dict[str, Article] = {}
    for article in articles:
        by_id[article.id] = article
    return list(by_id.values())


def is_breaking(
    article: Article,
    now: datetime,
    window: timedelta = timedelta(minutes=BREAKING_WINDOW_MINUTES),
) -> bool:
    """
    Decide whether an article counts as breaking news.

    An article is breaking when it was published within ``window`` of ``now``
    or when its title carries an urgency keyword or a tracked version name.
    Keyword matches are breaking regardless of age: the classifier favours
    over-marking to under-marking. This also covers keyword headlines from
    the current day.

    Args:
        article: Normalized article
        now: Reference instant
        window: Trailing recency window

    Returns:
        True if breaking
    """
    if ensure_utc(now) - article.timestamp <= window:
        return True
    return URGENCY_RE.search(article.title) is not None


def classify(articles: Iterable[Article], now: datetime) -> List[Article]:
    return [replace(article, is_breaking=is_breaking(article, now)) for article in articles]


def priority(article: Article) -> tuple:
    return (article.kind is ArticleKind.LIVE, article.is_breaking, article.timestamp)


def rank(articles: Iterable[Article]) -> List[Article]:
    """Live items first, then breaking, then newest first. Stable for ties."""
    return sorted(articles, key=priority, reverse=True)


def build_snapshot(
    results: Sequence[SourceResult],
    live_status: LiveStatus,
    now: datetime,
    previous_ids: AbstractSet[str] = frozenset(),
    max_items: int = MAX_FEED_ITEMS,
) -> AggregationSnapshot:
    """
    Turn adapter results into a ranked snapshot.

    Never raises for failed sources: their errors are carried on the
    snapshot, and a pass where everything failed yields an empty one.

    Args:
        results: One SourceResult per adapter
        live_status: Event status for this pass
        now: Reference instant for breaking classification
        previous_ids: Article ids of the prior snapshot, for novelty
        max_items: Cap applied after sorting

    Returns:
        AggregationSnapshot
    """
    merged = [article for result in results for article in result.articles]
    unique = deduplicate(merged)
    ranked = rank(classify(unique, now))[:max_items]
    errors = tuple(result.error for result in results if result.error is not None)

    return AggregationSnapshot(
        articles=tuple(ranked),
        previous_ids=frozenset(previous_ids),
        errors=errors,
        live_status=live_status,
        fetched_at=ensure_utc(now),
    )


class Aggregator:
    """Runs full aggregation passes and remembers the ids of the last one."""

    def __init__(
        self,
        fetchers: Sequence[Fetcher],
        clock: Optional[EventClock] = None,
        max_items: int = MAX_FEED_ITEMS,
        live_mode: Optional[bool] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.fetchers = list(fetchers)
        self.clock = clock or EventClock()
        self.max_items = max_items
        # None follows the event window; True/False pins the search mode
        self.live_mode = live_mode
        # Borrowed from the caller; each pass opens its own client otherwise
        self.client = client
        self.previous_ids: FrozenSet[str] = frozenset()

    async def run_pass(self, now: Optional[datetime] = None) -> AggregationSnapshot:
        """
        Fetch every source, rank the result and advance the novelty baseline.

        Args:
            now: Reference instant (defaults to the current time)

        Returns:
            The new AggregationSnapshot
        """
        now = ensure_utc(now) if now is not None else now_utc()
        status = self.clock.status(now)
        live_mode = status.is_event_window if self.live_mode is None else self.live_mode

        results = await collect_sources(self.fetchers, client=self.client, live_mode=live_mode, now=now)
        results.append(SourceResult(source=LIVE_SOURCE_NAME, articles=live_announcement(status, now)))

        snapshot = build_snapshot(results, status, now, self.previous_ids, self.max_items)
        if snapshot.all_failed:
            # The previous articles stay on display, so they stay seen
            self.previous_ids = self.previous_ids | snapshot.ids
        else:
            self.previous_ids = snapshot.ids

        logger.info(
            "Aggregated %d articles (%d new, %d source errors)",
            len(snapshot.articles), len(snapshot.new_ids), len(snapshot.errors),
        )
        return snapshot
