"""
Application configuration with environment variable support.
"""
from __future__ import annotations

import os
from datetime import date, time
from typing import Tuple


def _get_env_int(key: str, default: int) -> int:
    """Get integer value from environment variable with fallback."""
    try:
        return int(os.getenv(key, default))
    except (ValueError, TypeError):
        return default


def _get_env_list(key: str, default: list[str], separator: str = ",") -> list[str]:
    """Get list value from environment variable with fallback."""
    value = os.getenv(key)
    if not value:
        return default
    return [item.strip() for item in value.split(separator) if item.strip()]


def _get_env_date(key: str, default: date) -> date:
    """Get ISO date (YYYY-MM-DD) from environment variable with fallback."""
    try:
        return date.fromisoformat(os.getenv(key, ""))
    except ValueError:
        return default


def _get_env_time(key: str, default: time) -> time:
    """Get HH:MM time from environment variable with fallback."""
    try:
        return time.fromisoformat(os.getenv(key, ""))
    except ValueError:
        return default


# Text normalization
DESCRIPTION_MAX_CHARS: int = _get_env_int("DESCRIPTION_MAX_CHARS", 300)
MIN_DESCRIPTION_CHARS: int = _get_env_int("MIN_DESCRIPTION_CHARS", 50)
ELLIPSIS = "..."

# Substrings that betray markup the cleaner could not remove
MARKUP_MARKERS: Tuple[str, ...] = ("class=", "src=")

# Ranking
BREAKING_WINDOW_MINUTES: int = _get_env_int("BREAKING_WINDOW_MINUTES", 60)
MAX_FEED_ITEMS: int = _get_env_int("MAX_FEED_ITEMS", 100)

# Words that mark a headline as urgent, matched as whole words
URGENCY_KEYWORDS: Tuple[str, ...] = (
    "breaking",
    "live",
    "announces",
    "announced",
    "unveils",
    "unveiled",
    "launches",
)

# Product versions expected at the tracked event
TRACKED_CODENAMES: Tuple[str, ...] = (
    "iOS 26",
    "macOS 16",
    "watchOS 12",
    "tvOS 19",
    "visionOS 3",
    "Xcode 17",
    "Swift 7",
)

# Refresh scheduling (seconds)
REFRESH_INTERVAL_SECONDS: int = _get_env_int("REFRESH_INTERVAL_SECONDS", 120)
LIVE_REFRESH_INTERVAL_SECONDS: int = _get_env_int("LIVE_REFRESH_INTERVAL_SECONDS", 30)

# HTTP Client Configuration
REQUEST_TIMEOUT_SECONDS: int = _get_env_int("REQUEST_TIMEOUT_SECONDS", 15)
USER_AGENT = "WWDC25Tracker/1.0"
HTTP_HEADERS = {
    "User-Agent": USER_AGENT,
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

# Event window, evaluated in EVENT_REFERENCE_ZONE
EVENT_START_DATE: date = _get_env_date("EVENT_START_DATE", date(2025, 6, 9))
EVENT_END_DATE: date = _get_env_date("EVENT_END_DATE", date(2025, 6, 13))
EVENT_DAILY_START: time = _get_env_time("EVENT_DAILY_START", time(18, 30))
EVENT_DAILY_END: time = _get_env_time("EVENT_DAILY_END", time(22, 30))
EVENT_WEEKDAYS: Tuple[int, ...] = (0, 1, 2, 3, 4)  # Monday..Friday
EVENT_REFERENCE_ZONE: str = os.getenv("EVENT_REFERENCE_ZONE", "Europe/Madrid")
EVENT_DISPLAY_ZONE: str = os.getenv("EVENT_DISPLAY_ZONE", "America/Los_Angeles")

# Synthetic live announcement
LIVE_STREAM_URL = "https://www.apple.com/apple-events/"
LIVE_STREAM_SOURCE = "Apple Live Stream"
LIVE_STREAM_TITLE = "🔴 WWDC25 Keynote Live Now"
LIVE_STREAM_DESCRIPTION = "Apple's WWDC 2025 keynote is currently streaming live from Apple Park"

# NewsAPI search
NEWSAPI_URL = "https://newsapi.org/v2/everything"
NEWS_LOOKBACK_DAYS: int = _get_env_int("NEWS_LOOKBACK_DAYS", 7)
NEWS_LIVE_LOOKBACK_HOURS: int = _get_env_int("NEWS_LIVE_LOOKBACK_HOURS", 24)
NEWS_PAGE_SIZE: int = _get_env_int("NEWS_PAGE_SIZE", 50)
NEWS_DESCRIPTION_FALLBACK_CHARS = 200

NEWS_SOURCES: list[str] = _get_env_list(
    "NEWS_SOURCES",
    [
        "techcrunch",
        "the-verge",
        "ars-technica",
        "wired",
        "engadget",
        "9to5mac",
        "macrumors",
        "appleinsider",
    ],
)

NEWS_QUERY_TERMS: Tuple[str, ...] = (
    "WWDC 2025",
    "WWDC25",
    "Apple WWDC",
    "iOS 26",
    "Apple keynote",
)

NEWS_KEYWORDS: Tuple[str, ...] = (
    "apple",
    "wwdc",
    "ios",
    "macos",
    "iphone",
    "ipad",
    "mac",
    "tim cook",
    "craig federighi",
    "cupertino",
    "keynote",
    "developer",
    "xcode",
    "swift",
    "app store",
)

# Live mode narrows the search to the conference itself
NEWS_LIVE_QUERY_TERMS: Tuple[str, ...] = (
    '"WWDC 2025"',
    '"WWDC25"',
    '"Apple WWDC 2025"',
    '"Worldwide Developers Conference 2025"',
    '"Apple keynote 2025"',
    '"Apple developer conference"',
    '"iOS 26"',
    '"macOS 16"',
    '"watchOS 12"',
    '"tvOS 19"',
    '"visionOS 3"',
    '"Xcode 17"',
    '"Swift 7"',
    '"Craig Federighi" AND WWDC',
    '"Tim Cook" AND keynote',
)

NEWS_LIVE_KEYWORDS: Tuple[str, ...] = (
    "wwdc",
    "worldwide developers conference",
    "apple developer conference",
    "apple keynote",
    "ios 26",
    "macos 16",
    "watchos 12",
    "tvos 19",
    "visionos 3",
    "xcode 17",
    "swift 7",
    "craig federighi",
    "developer beta",
    "apple park",
)

# RSS relevance filter for general Apple blogs
APPLE_KEYWORDS: Tuple[str, ...] = (
    "apple",
    "ios",
    "ipad",
    "iphone",
    "mac",
    "macos",
    "wwdc",
    "keynote",
    "tim cook",
    "craig federighi",
    "app store",
    "siri",
    "watch",
    "airpods",
    "vision",
    "visionos",
    "tvos",
    "watchos",
    "xcode",
    "swift",
    "developer",
    "cupertino",
    "apple park",
)

# Logging Configuration
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT: str = os.getenv(
    "LOG_FORMAT",
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
