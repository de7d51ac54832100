"""
Feed parsing: raw RSS text in, RawFeedItem records out.

The default parser works on regular expressions rather than an XML tree so
that truncated or otherwise malformed feeds still yield whatever items they
contain. A feedparser-backed implementation with the same contract can be
selected instead; callers only depend on ``FeedParser.parse``.
"""
from __future__ import annotations

import re
from typing import Dict, List, Optional, Protocol, Sequence

import feedparser

from wwdc_tracker.config import MARKUP_MARKERS, MIN_DESCRIPTION_CHARS
from wwdc_tracker.core.text import clean
from wwdc_tracker.models import RawFeedItem

_ITEM_RE = re.compile(r"<item\b[^>]*>([\s\S]*?)</item>", re.IGNORECASE)

_field_patterns: Dict[str, tuple[re.Pattern, re.Pattern]] = {}


def _patterns_for(tag: str) -> tuple[re.Pattern, re.Pattern]:
    """Return (CDATA, plain) patterns for ``tag``, compiled once."""
    if tag not in _field_patterns:
        name = re.escape(tag)
        opening = rf"<{name}(?:\s[^>]*)?>"
        closing = rf"</{name}>"
        _field_patterns[tag] = (
            re.compile(rf"{opening}\s*<!\[CDATA\[([\s\S]*?)\]\]>\s*{closing}", re.IGNORECASE),
            re.compile(rf"{opening}([\s\S]*?){closing}", re.IGNORECASE),
        )
    return _field_patterns[tag]


def extract_field(block: str, tag: str) -> str:
    """
    Extract the text of ``tag`` from an item block.

    The CDATA-wrapped form is tried first, then the plain form.

    Args:
        block: Contents of one ``<item>`` element
        tag: Element name, namespaced names like ``dc:creator`` allowed

    Returns:
        Field text, empty string if the element is missing
    """
    cdata_re, plain_re = _patterns_for(tag)
    match = cdata_re.search(block) or plain_re.search(block)
    return match.group(1).strip() if match else ""


def _first_field(block: str, tags: Sequence[str]) -> str:
    for tag in tags:
        value = extract_field(block, tag)
        if value:
            return value
    return ""


def has_markup_residue(text: str) -> bool:
    return any(marker in text for marker in MARKUP_MARKERS)


def select_description(item: RawFeedItem, min_length: int = MIN_DESCRIPTION_CHARS) -> str:
    """
    Pick the cleaned description for an item.

    Falls back to the full-content body when the primary description is
    missing, shorter than ``min_length`` or still carries markup markers.

    Args:
        item: Parsed feed item
        min_length: Minimum acceptable description length

    Returns:
        Cleaned description text (may be empty)
    """
    description = clean(item.description)
    if len(description) >= min_length and not has_markup_residue(description):
        return description

    content = clean(item.content)
    return content or description


class FeedParser(Protocol):
    def parse(self, text: str) -> List[RawFeedItem]:
        ...


class RegexFeedParser:
    """Tolerant RSS 2.0 item extractor."""

    AUTHOR_TAGS = ("dc:creator", "author")

    def split_items(self, text: str) -> List[str]:
        if not text:
            return []
        return _ITEM_RE.findall(text)

    def parse(self, text: str) -> List[RawFeedItem]:
        """
        Extract every item in document order.

        Args:
            text: Raw feed text; may be malformed or an HTML error page

        Returns:
            List of RawFeedItem, empty if no items were found
        """
        return [
            RawFeedItem(
                title=extract_field(block, "title"),
                description=extract_field(block, "description"),
                link=extract_field(block, "link"),
                published=extract_field(block, "pubDate"),
                author=_first_field(block, self.AUTHOR_TAGS),
                content=extract_field(block, "content:encoded"),
            )
            for block in self.split_items(text)
        ]


class FeedparserFeedParser:
    """Same contract backed by the feedparser library (also reads Atom)."""

    def parse(self, text: str) -> List[RawFeedItem]:
        if not text:
            return []
        feed = feedparser.parse(text)

        items: List[RawFeedItem] = []
        for entry in feed.entries:
            content = ""
            if entry.get("content"):
                content = entry.content[0].get("value", "")
            items.append(
                RawFeedItem(
                    title=entry.get("title", ""),
                    description=entry.get("summary", ""),
                    link=entry.get("link", ""),
                    published=entry.get("published", "") or entry.get("updated", ""),
                    author=entry.get("author", ""),
                    content=content,
                )
            )
        return items


_PARSERS = {
    "regex": RegexFeedParser,
    "feedparser": FeedparserFeedParser,
}


def get_feed_parser(name: Optional[str] = None) -> FeedParser:
    """Return a parser instance by name ("regex" when not given)."""
    try:
        return _PARSERS[name or "regex"]()
    except KeyError:
        raise ValueError(f"Unknown feed parser: {name!r}") from None
