"""
Common utilities for news source fetchers.
"""
from __future__ import annotations

import httpx

from wwdc_tracker.config import HTTP_HEADERS, REQUEST_TIMEOUT_SECONDS
from wwdc_tracker.models import ArticleKind
from wwdc_tracker.utils import generate_id


def make_article_id(kind: ArticleKind, url: str, title: str = "") -> str:
    """
    Generate a deterministic unique ID for an article.

    Args:
        kind: Source category of the article
        url: Article URL
        title: Used in place of the URL when the URL is empty

    Returns:
        16-character hexadecimal string ID
    """
    return generate_id(kind.value, url.strip() or title.strip())


def build_client(timeout: float = REQUEST_TIMEOUT_SECONDS) -> httpx.AsyncClient:
    """HTTP client with the tracker's identifying and cache-defeating headers."""
    return httpx.AsyncClient(headers=HTTP_HEADERS, timeout=timeout, follow_redirects=True)


def http_error_message(response: httpx.Response) -> str:
    return f"HTTP {response.status_code}"
