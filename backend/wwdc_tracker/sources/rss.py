"""
RSS fetchers for Apple's own feeds and the tech press.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

import httpx

from wwdc_tracker.config import APPLE_KEYWORDS, HTTP_HEADERS
from wwdc_tracker.core.feed_parser import FeedParser, get_feed_parser, select_description
from wwdc_tracker.core.text import clean, contains_keyword, truncate
from wwdc_tracker.models import Article, ArticleKind, RawFeedItem, SourceResult
from wwdc_tracker.sources.common import build_client, http_error_message, make_article_id
from wwdc_tracker.utils import now_utc, parse_utc_datetime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedSource:
    """Configuration for one RSS upstream."""

    name: str
    url: str
    kind: ArticleKind
    keywords: Optional[Tuple[str, ...]] = None  # relevance filter, None keeps everything
    fallback_description: str = ""
    max_items: Optional[int] = None


DEFAULT_FEEDS: Tuple[FeedSource, ...] = (
    FeedSource(
        name="Apple Developer",
        url="https://developer.apple.com/news/rss/news.rss",
        kind=ArticleKind.OFFICIAL,
        fallback_description="Read more about this announcement from Apple.",
    ),
    FeedSource(
        name="Apple Newsroom",
        url="https://www.apple.com/newsroom/rss-feed.rss",
        kind=ArticleKind.OFFICIAL,
        fallback_description="Read more about this announcement from Apple.",
    ),
    FeedSource(
        name="9to5Mac",
        url="https://9to5mac.com/feed/",
        kind=ArticleKind.PRESS,
        keywords=APPLE_KEYWORDS,
        fallback_description="Read the latest Apple news and WWDC updates from 9to5Mac.",
        max_items=20,
    ),
    FeedSource(
        name="TechCrunch",
        url="https://techcrunch.com/tag/apple/feed/",
        kind=ArticleKind.PRESS,
    ),
)


class RssFeedFetcher:
    """Fetches one RSS feed and maps its items to Articles."""

    def __init__(self, source: FeedSource, parser: Optional[FeedParser] = None):
        self.source = source
        self.parser = parser or get_feed_parser()

    @property
    def name(self) -> str:
        return self.source.name

    def to_article(self, item: RawFeedItem, fetched_at: datetime) -> Optional[Article]:
        """
        Normalize one parsed item.

        Args:
            item: Raw fields from the parser
            fetched_at: Timestamp used when the item has no usable date

        Returns:
            Article, or None when the item has neither title nor link
        """
        title = clean(item.title)
        link = item.link.strip()
        if not title and not link:
            return None

        description = select_description(item) or self.source.fallback_description
        author = clean(item.author) or None

        return Article(
            id=make_article_id(self.source.kind, link, title),
            kind=self.source.kind,
            title=title,
            description=truncate(description),
            url=link,
            timestamp=parse_utc_datetime(item.published, default=fetched_at),
            source_name=self.source.name,
            author=author,
        )

    def parse(self, text: str, fetched_at: datetime) -> List[Article]:
        articles: List[Article] = []
        for item in self.parser.parse(text):
            article = self.to_article(item, fetched_at)
            if article is None:
                continue
            if self.source.keywords and not contains_keyword(
                f"{article.title} {article.description}", self.source.keywords
            ):
                continue
            articles.append(article)

        if self.source.max_items is not None:
            articles.sort(key=lambda article: article.timestamp, reverse=True)
            articles = articles[: self.source.max_items]
        return articles

    async def fetch(
        self,
        client: Optional[httpx.AsyncClient] = None,
        live_mode: bool = False,
        now: Optional[datetime] = None,
    ) -> SourceResult:
        """
        Download and parse the feed.

        Never raises for upstream problems: non-2xx responses and transport
        errors come back as a SourceResult carrying a SourceError.

        Args:
            client: Shared HTTP client (a private one is opened if omitted)
            live_mode: Unused by RSS feeds
            now: Fetch time, used as the fallback publication date

        Returns:
            SourceResult for this feed
        """
        fetched_at = now or now_utc()
        try:
            if client is None:
                async with build_client() as own_client:
                    response = await own_client.get(self.source.url, headers=HTTP_HEADERS)
            else:
                response = await client.get(self.source.url, headers=HTTP_HEADERS)
        except httpx.HTTPError as e:
            logger.warning("Error fetching %s feed: %s", self.name, e)
            return SourceResult.failed(self.name, f"{type(e).__name__}: {e}")

        if not response.is_success:
            logger.warning("%s feed returned HTTP %s", self.name, response.status_code)
            return SourceResult.failed(self.name, http_error_message(response))

        articles = self.parse(response.text, fetched_at)
        logger.info("%s feed: %d articles", self.name, len(articles))
        return SourceResult(source=self.name, articles=articles)


def default_rss_fetchers(parser: Optional[FeedParser] = None) -> List[RssFeedFetcher]:
    return [RssFeedFetcher(source, parser) for source in DEFAULT_FEEDS]
