"""
Shared utility functions for the tracker.
"""
from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse

import tldextract
from dateutil import parser as dateparser

# Bundled public suffix snapshot only; never fetch the list at runtime
_extract = tldextract.TLDExtract(suffix_list_urls=())


def now_utc() -> datetime:
    """
    Get current UTC datetime with timezone information.

    Returns:
        Current UTC datetime
    """
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_utc_datetime(date_string: Optional[str], default: Optional[datetime] = None) -> datetime:
    """
    Parse a date string and convert to UTC datetime.

    Args:
        date_string: Date string in various formats (RFC 822, ISO 8601), or None
        default: Value used when the string is missing or unparseable
            (defaults to the current time)

    Returns:
        UTC datetime object
    """
    fallback = ensure_utc(default) if default is not None else now_utc()
    if not date_string or not date_string.strip():
        return fallback

    try:
        parsed_date = dateparser.parse(date_string.strip())
    except (ValueError, OverflowError):
        return fallback
    return ensure_utc(parsed_date)


def extract_domain_from_url(url: str) -> str:
    """
    Extract the registered domain from a URL.

    Args:
        url: Full URL string

    Returns:
        Normalized domain name in lowercase, empty string if none
    """
    if not url:
        return ""
    extracted = _extract(url)
    if extracted.suffix and extracted.domain:
        return f"{extracted.domain}.{extracted.suffix}".lower()
    return urlparse(url).netloc.lower()


def generate_id(*parts: str) -> str:
    """
    Generate a deterministic short ID from multiple string parts.

    Args:
        *parts: Variable number of string arguments

    Returns:
        16-character hexadecimal string
    """
    key = "|".join(parts).encode("utf-8", "ignore")
    return hashlib.sha256(key).hexdigest()[:16]
