"""
File: wwdc_tracker/sources/newsapi.py
NewsAPI keyword search fetcher. Returns pre-structured JSON, so no feed parsing.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

import httpx

from wwdc_tracker.config import (
    HTTP_HEADERS,
    NEWS_DESCRIPTION_FALLBACK_CHARS,
    NEWS_KEYWORDS,
    NEWS_LIVE_KEYWORDS,
    NEWS_LIVE_LOOKBACK_HOURS,
    NEWS_LIVE_QUERY_TERMS,
    NEWS_LOOKBACK_DAYS,
    NEWS_PAGE_SIZE,
    NEWS_QUERY_TERMS,
    NEWS_SOURCES,
    NEWSAPI_URL,
)
from wwdc_tracker.core.text import clean, contains_keyword, truncate
from wwdc_tracker.models import Article, ArticleKind, SourceResult
from wwdc_tracker.settings import settings
from wwdc_tracker.sources.common import build_client, http_error_message, make_article_id
from wwdc_tracker.utils import extract_domain_from_url, now_utc, parse_utc_datetime

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    401: "API key invalid or missing",
    429: "rate limit exceeded",
}


def iso(dt: datetime) -> str:
    return dt.replace(microsecond=0).isoformat().replace("+00:00", "Z")


def build_query(terms: Sequence[str]) -> str:
    return " OR ".join(terms)


class NewsApiFetcher:
    """Searches NewsAPI's /everything endpoint for WWDC coverage."""

    name = "NewsAPI"
    kind = ArticleKind.NEWS

    def __init__(self, api_key: Optional[str] = None, sources: Optional[Sequence[str]] = None):
        self.api_key = settings.NEWS_API_KEY if api_key is None else api_key
        self.sources = list(sources) if sources is not None else list(NEWS_SOURCES)

    def keywords(self, live_mode: bool) -> Sequence[str]:
        return NEWS_LIVE_KEYWORDS if live_mode else NEWS_KEYWORDS

    def build_params(self, now: datetime, live_mode: bool) -> Dict[str, Any]:
        """
        Query parameters for one search.

        Live mode narrows both the query and the recency window (hours rather
        than days).
        """
        if live_mode:
            query = build_query(NEWS_LIVE_QUERY_TERMS)
            since = iso(now - timedelta(hours=NEWS_LIVE_LOOKBACK_HOURS))
        else:
            query = build_query(NEWS_QUERY_TERMS)
            since = (now - timedelta(days=NEWS_LOOKBACK_DAYS)).date().isoformat()

        return {
            "q": query,
            "sources": ",".join(self.sources),
            "sortBy": "publishedAt",
            "language": "en",
            "pageSize": NEWS_PAGE_SIZE,
            "from": since,
        }

    def to_article(self, raw: Dict[str, Any], fetched_at: datetime) -> Optional[Article]:
        title = clean(raw.get("title"))
        url = (raw.get("url") or "").strip()
        if not title and not url:
            return None

        description = clean(raw.get("description"))
        if not description:
            description = clean((raw.get("content") or "")[:NEWS_DESCRIPTION_FALLBACK_CHARS])

        source = raw.get("source") or {}
        source_name = (source.get("name") if isinstance(source, dict) else None) or extract_domain_from_url(url)

        return Article(
            id=make_article_id(self.kind, url, title),
            kind=self.kind,
            title=title,
            description=truncate(description),
            url=url,
            timestamp=parse_utc_datetime(raw.get("publishedAt"), default=fetched_at),
            source_name=source_name or self.name,
            author=clean(raw.get("author")) or None,
        )

    def filter_relevant(self, articles: List[Article], live_mode: bool) -> List[Article]:
        """Keep articles whose title or description mentions a topic keyword."""
        keywords = self.keywords(live_mode)
        kept = [a for a in articles if contains_keyword(f"{a.title} {a.description}", keywords)]
        if len(kept) < len(articles):
            logger.debug("NewsAPI relevance filter dropped %d articles", len(articles) - len(kept))
        return kept

    def error_message(self, response: httpx.Response, payload: Dict[str, Any]) -> str:
        if response.status_code in STATUS_MESSAGES:
            return STATUS_MESSAGES[response.status_code]
        message = payload.get("message") if isinstance(payload, dict) else None
        return message or http_error_message(response)

    async def fetch(
        self,
        client: Optional[httpx.AsyncClient] = None,
        live_mode: bool = False,
        now: Optional[datetime] = None,
    ) -> SourceResult:
        """
        Run the keyword search.

        Args:
            client: Shared HTTP client (a private one is opened if omitted)
            live_mode: Use the narrow conference query and hour-based window
            now: Reference time for the recency window and date fallback

        Returns:
            SourceResult; missing key, non-2xx and transport errors become
            a SourceError instead of an exception
        """
        if not self.api_key:
            logger.warning("NewsAPI skipped: NEWS_API_KEY not configured")
            return SourceResult.failed(self.name, "NEWS_API_KEY not configured")

        fetched_at = now or now_utc()
        params = self.build_params(fetched_at, live_mode)
        headers = {**HTTP_HEADERS, "X-API-Key": self.api_key}

        try:
            if client is None:
                async with build_client() as own_client:
                    response = await own_client.get(NEWSAPI_URL, params=params, headers=headers)
            else:
                response = await client.get(NEWSAPI_URL, params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("Error fetching NewsAPI: %s", e)
            return SourceResult.failed(self.name, f"{type(e).__name__}: {e}")

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if not response.is_success or not isinstance(payload, dict) or payload.get("status") == "error":
            message = self.error_message(response, payload if isinstance(payload, dict) else {})
            logger.warning("NewsAPI error %s: %s", response.status_code, message)
            return SourceResult.failed(self.name, message)

        articles = [
            article
            for article in (self.to_article(raw, fetched_at) for raw in payload.get("articles") or [])
            if article is not None
        ]
        relevant = self.filter_relevant(articles, live_mode)
        logger.info(
            "NewsAPI: %d of %d articles relevant (live_mode=%s)", len(relevant), len(articles), live_mode
        )
        return SourceResult(source=self.name, articles=relevant)
