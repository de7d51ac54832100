"""
Synthetic "keynote is live" item injected while the event clock reports live.
"""
from __future__ import annotations

from datetime import datetime
from typing import List

from wwdc_tracker.config import (
    LIVE_STREAM_DESCRIPTION,
    LIVE_STREAM_SOURCE,
    LIVE_STREAM_TITLE,
    LIVE_STREAM_URL,
)
from wwdc_tracker.models import Article, ArticleKind, LiveStatus
from wwdc_tracker.sources.common import make_article_id

LIVE_SOURCE_NAME = LIVE_STREAM_SOURCE


def live_announcement(status: LiveStatus, now: datetime) -> List[Article]:
    if not status.is_live:
        return []
    return [
        Article(
            id=make_article_id(ArticleKind.LIVE, LIVE_STREAM_URL),
            kind=ArticleKind.LIVE,
            title=LIVE_STREAM_TITLE,
            description=LIVE_STREAM_DESCRIPTION,
            url=LIVE_STREAM_URL,
            timestamp=now,
            source_name=LIVE_STREAM_SOURCE,
        )
    ]
