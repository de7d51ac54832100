# wwdc_tracker/schemas.py
from dataclasses import asdict
from datetime import datetime
from pydantic import BaseModel, Field
from typing import Literal, Optional, List

from wwdc_tracker.models import AggregationSnapshot, Article, LiveStatus

class LiveStatusResponse(BaseModel):
    is_live: bool
    is_event_window: bool
    minutes_until_start: int
    minutes_until_end: int
    reference_time: str                       # e.g. "19:05" in the reference zone
    display_time: str                         # e.g. "10:05 AM" in the display zone
    reference_zone: str
    display_zone: str

    @classmethod
    def from_status(cls, status: LiveStatus) -> "LiveStatusResponse":
        return cls(**asdict(status))

class ArticleResponse(BaseModel):
    id: str
    kind: Literal["official", "press", "news", "live"]
    title: str
    description: str = ""
    url: str
    timestamp: datetime
    source_name: str
    author: Optional[str] = None
    is_breaking: bool
    is_new: bool = False                      # transient, recomputed each pass

    @classmethod
    def from_article(cls, article: Article, is_new: bool) -> "ArticleResponse":
        return cls(
            id=article.id,
            kind=article.kind.value,
            title=article.title,
            description=article.description,
            url=article.url,
            timestamp=article.timestamp,
            source_name=article.source_name,
            author=article.author,
            is_breaking=article.is_breaking,
            is_new=is_new,
        )

class SourceErrorResponse(BaseModel):
    source: str
    message: str

class FeedResponse(BaseModel):
    articles: List[ArticleResponse] = Field(default_factory=list)
    errors: List[SourceErrorResponse] = Field(default_factory=list)
    live_status: Optional[LiveStatusResponse] = None
    fetched_at: Optional[datetime] = None
    connected: bool = True
    is_refreshing: bool = False
    seconds_until_refresh: int = 0

    @classmethod
    def from_snapshot(
        cls,
        snapshot: Optional[AggregationSnapshot],
        articles: Optional[List[Article]] = None,
        **state,
    ) -> "FeedResponse":
        if snapshot is None:
            return cls(**state)
        selected = snapshot.articles if articles is None else articles
        return cls(
            articles=[ArticleResponse.from_article(a, snapshot.is_new(a)) for a in selected],
            errors=[SourceErrorResponse(source=e.source, message=e.message) for e in snapshot.errors],
            live_status=LiveStatusResponse.from_status(snapshot.live_status),
            fetched_at=snapshot.fetched_at,
            **state,
        )
