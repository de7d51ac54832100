"""
HTML-ish text cleanup for feed titles and descriptions.
"""
from __future__ import annotations

import re
from typing import Iterable, Optional

from wwdc_tracker.config import DESCRIPTION_MAX_CHARS, ELLIPSIS

_TAG_RE = re.compile(r"<[^>]*>")
_ENTITY_RE = re.compile(r"&[a-zA-Z0-9#]+;")
_WHITESPACE_RE = re.compile(r"\s+")

ENTITY_TABLE = {
    "&lt;": "<",
    "&gt;": ">",
    "&amp;": "&",
    "&quot;": '"',
    "&#39;": "'",
    "&#039;": "'",
    "&apos;": "'",
    "&nbsp;": " ",
    "&#160;": " ",
    "&copy;": "©",
    "&reg;": "®",
    "&trade;": "™",
}


def strip_tags(text: str) -> str:
    return _TAG_RE.sub(" ", text)


def decode_entities(text: str) -> str:
    """Decode the known entity table; any other ``&name;`` becomes a space."""
    return _ENTITY_RE.sub(lambda match: ENTITY_TABLE.get(match.group(0).lower(), " "), text)


def clean(text: Optional[str]) -> str:
    """
    Turn markup-laden feed text into plain text.

    Tags are stripped twice, before and after entity decoding, so markup that
    arrived entity-escaped (``&lt;p&gt;``) is removed as well. Decoding can
    expose new ``&name;`` tokens (``&amp;lt;``), so the catch-all runs again
    at the end.

    Args:
        text: Raw text, may be None

    Returns:
        Single-spaced plain text, empty string for empty input
    """
    if not text:
        return ""
    result = strip_tags(text)
    result = decode_entities(result)
    result = strip_tags(result)
    result = _ENTITY_RE.sub(" ", result)
    return _WHITESPACE_RE.sub(" ", result).strip()


def truncate(text: str, limit: int = DESCRIPTION_MAX_CHARS, marker: str = ELLIPSIS) -> str:
    """Cut ``text`` to ``limit`` characters and append ``marker`` when it was longer."""
    if len(text) <= limit:
        return text
    return text[:limit] + marker


def contains_keyword(text: str, keywords: Iterable[str]) -> bool:
    """Case-folded substring match against any keyword."""
    folded = text.casefold()
    return any(keyword.casefold() in folded for keyword in keywords)
