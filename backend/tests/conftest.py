from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional

import pytest

from wwdc_tracker.core.aggregator import build_snapshot
from wwdc_tracker.models import (
    AggregationSnapshot,
    Article,
    ArticleKind,
    LiveStatus,
    SourceError,
    SourceResult,
)
from wwdc_tracker.sources.common import make_article_id

# Monday of the configured event week, 17:00 UTC = 19:00 in Madrid
NOW = datetime(2025, 6, 9, 17, 0, tzinfo=timezone.utc)


def make_article(
    title: str = "Story",
    url: str = "https://example.com/story",
    kind: ArticleKind = ArticleKind.PRESS,
    timestamp: Optional[datetime] = None,
    source_name: str = "Example",
    is_breaking: bool = False,
) -> Article:
    return Article(
        id=make_article_id(kind, url, title),
        kind=kind,
        title=title,
        description="",
        url=url,
        timestamp=timestamp or NOW,
        source_name=source_name,
        is_breaking=is_breaking,
    )


def make_status(is_live: bool = False) -> LiveStatus:
    return LiveStatus(
        is_live=is_live,
        is_event_window=is_live,
        minutes_until_start=0,
        minutes_until_end=60 if is_live else 0,
        reference_time="19:00",
        display_time="10:00 AM",
        reference_zone="Europe/Madrid",
        display_zone="America/Los_Angeles",
    )


def make_snapshot(
    articles: Iterable[Article] = (),
    errors: Iterable[SourceError] = (),
    is_live: bool = False,
) -> AggregationSnapshot:
    results = [SourceResult(source="test", articles=list(articles))]
    results += [SourceResult(source=e.source, error=e) for e in errors]
    return build_snapshot(results, make_status(is_live), NOW)


class StubFetcher:
    """Source adapter returning canned results."""

    def __init__(
        self,
        name: str,
        articles: Iterable[Article] = (),
        error: Optional[str] = None,
        exc: Optional[Exception] = None,
    ):
        self.name = name
        self.articles = list(articles)
        self.error = error
        self.exc = exc
        self.calls: List[bool] = []

    async def fetch(self, client=None, live_mode=False, now=None) -> SourceResult:
        self.calls.append(live_mode)
        if self.exc is not None:
            raise self.exc
        if self.error is not None:
            return SourceResult.failed(self.name, self.error)
        return SourceResult(source=self.name, articles=list(self.articles))


@pytest.fixture
def now() -> datetime:
    return NOW
