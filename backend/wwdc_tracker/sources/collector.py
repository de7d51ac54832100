"""
News collection coordinator that fans out to every source concurrently.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import List, Optional, Protocol, Sequence

import httpx

from wwdc_tracker.core.feed_parser import get_feed_parser
from wwdc_tracker.models import SourceResult
from wwdc_tracker.settings import settings
from wwdc_tracker.sources.common import build_client
from wwdc_tracker.sources.newsapi import NewsApiFetcher
from wwdc_tracker.sources.rss import default_rss_fetchers

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    name: str

    async def fetch(
        self,
        client: Optional[httpx.AsyncClient] = None,
        live_mode: bool = False,
        now: Optional[datetime] = None,
    ) -> SourceResult:
        ...


def default_fetchers() -> List[Fetcher]:
    """RSS feeds plus the NewsAPI search, configured from settings."""
    parser = get_feed_parser(settings.FEED_PARSER)
    return [*default_rss_fetchers(parser), NewsApiFetcher()]


def _settle(fetcher: Fetcher, outcome) -> SourceResult:
    if isinstance(outcome, BaseException):
        if not isinstance(outcome, Exception):
            raise outcome
        logger.error("Unexpected error in %s fetcher: %r", fetcher.name, outcome)
        return SourceResult.failed(fetcher.name, f"{type(outcome).__name__}: {outcome}")
    return outcome


async def collect_sources(
    fetchers: Sequence[Fetcher],
    client: Optional[httpx.AsyncClient] = None,
    live_mode: bool = False,
    now: Optional[datetime] = None,
) -> List[SourceResult]:
    """
    Call every fetcher concurrently and wait for all of them.

    Args:
        fetchers: Source adapters
        client: Shared HTTP client; one is opened for the pass if omitted
        live_mode: Forwarded to every fetcher
        now: Fetch time forwarded to every fetcher

    Returns:
        One SourceResult per fetcher, in fetcher order. Exceptions that
        escape a fetcher are turned into failed results.
    """
    if client is None:
        async with build_client() as own_client:
            return await collect_sources(fetchers, own_client, live_mode, now)

    outcomes = await asyncio.gather(
        *(fetcher.fetch(client, live_mode=live_mode, now=now) for fetcher in fetchers),
        return_exceptions=True,
    )
    return [_settle(fetcher, outcome) for fetcher, outcome in zip(fetchers, outcomes)]
