"""
File: wwdc_tracker/models.py
Internal data structures shared by the parser, adapters, clock and ranker.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple


class ArticleKind(str, Enum):
    """Closed set of upstream categories; drives display and ranking only."""

    OFFICIAL = "official"  # Apple's own feeds
    PRESS = "press"        # tech press RSS
    NEWS = "news"          # keyword search API
    LIVE = "live"          # synthetic keynote announcement


@dataclass(frozen=True)
class RawFeedItem:
    """Fields pulled out of one feed entry, before normalization."""

    title: str = ""
    description: str = ""
    link: str = ""
    published: str = ""
    author: str = ""
    content: str = ""


@dataclass(frozen=True)
class Article:
    """Canonical, normalized news record.

    ``is_breaking`` is left False by every adapter and only set by the ranker.
    """

    id: str
    kind: ArticleKind
    title: str
    description: str
    url: str
    timestamp: datetime
    source_name: str
    author: Optional[str] = None
    is_breaking: bool = False


@dataclass(frozen=True)
class SourceError:
    source: str
    message: str


@dataclass
class SourceResult:
    """Outcome of one adapter call: articles, or an error and no articles."""

    source: str
    articles: List[Article] = field(default_factory=list)
    error: Optional[SourceError] = None

    @classmethod
    def failed(cls, source: str, message: str) -> "SourceResult":
        return cls(source=source, articles=[], error=SourceError(source, message))


@dataclass(frozen=True)
class LiveStatus:
    is_live: bool
    is_event_window: bool
    minutes_until_start: int
    minutes_until_end: int
    reference_time: str
    display_time: str
    reference_zone: str
    display_zone: str


@dataclass(frozen=True)
class AggregationSnapshot:
    """Result of one aggregation pass, replaced wholesale every cycle."""

    articles: Tuple[Article, ...]
    previous_ids: FrozenSet[str]
    errors: Tuple[SourceError, ...]
    live_status: LiveStatus
    fetched_at: datetime

    @property
    def ids(self) -> FrozenSet[str]:
        return frozenset(article.id for article in self.articles)

    @property
    def new_ids(self) -> FrozenSet[str]:
        return self.ids - self.previous_ids

    def is_new(self, article: Article) -> bool:
        return article.id not in self.previous_ids

    @property
    def all_failed(self) -> bool:
        """True when sources reported errors and no real article came back.

        The synthetic live item does not count: it is added on every live
        pass whether or not any upstream answered.
        """
        return bool(self.errors) and all(a.kind is ArticleKind.LIVE for a in self.articles)


__all__ = [
    "ArticleKind",
    "RawFeedItem",
    "Article",
    "SourceError",
    "SourceResult",
    "LiveStatus",
    "AggregationSnapshot",
]
