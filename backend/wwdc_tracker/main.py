"""
Main FastAPI application and routing layer.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from wwdc_tracker.config import LOG_FORMAT, LOG_LEVEL
from wwdc_tracker.core.aggregator import Aggregator
from wwdc_tracker.core.event_clock import EventClock
from wwdc_tracker.models import ArticleKind
from wwdc_tracker.schemas import FeedResponse, LiveStatusResponse
from wwdc_tracker.services.scheduler import RefreshError, RefreshScheduler
from wwdc_tracker.settings import settings
from wwdc_tracker.sources.collector import default_fetchers
from wwdc_tracker.utils import now_utc

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger("uvicorn")


def _live_mode_setting() -> Optional[bool]:
    return {"on": True, "off": False}.get(settings.NEWS_LIVE_MODE)


def build_scheduler() -> RefreshScheduler:
    """Wire the default sources, clock and aggregator into a scheduler."""
    clock = EventClock()
    aggregator = Aggregator(default_fetchers(), clock=clock, live_mode=_live_mode_setting())
    return RefreshScheduler(aggregator)


event_clock = EventClock()
scheduler = build_scheduler()


def build_feed_response(kind: Optional[ArticleKind] = None, breaking_only: bool = False) -> FeedResponse:
    """
    Serialize the scheduler's current snapshot.

    Args:
        kind: Only include articles of this kind
        breaking_only: Only include breaking articles

    Returns:
        FeedResponse with refresh state attached
    """
    snapshot = scheduler.snapshot
    articles = None
    if snapshot is not None and (kind is not None or breaking_only):
        articles = [
            article for article in snapshot.articles
            if (kind is None or article.kind is kind) and (article.is_breaking or not breaking_only)
        ]

    return FeedResponse.from_snapshot(
        snapshot,
        articles,
        connected=scheduler.is_connected,
        is_refreshing=scheduler.is_running,
        seconds_until_refresh=scheduler.seconds_until_next,
    )


# Initialize FastAPI app
app = FastAPI(
    title="WWDC Live Tracker API",
    version="0.1.0",
    description="Aggregated, ranked Apple/WWDC news with keynote live status"
)


@app.on_event("startup")
async def start_refresh():
    """Start the background refresh loop."""
    if settings.AUTO_REFRESH:
        scheduler.start()
        logger.info("Refresh scheduler started (every %ss)", scheduler.interval)


@app.on_event("shutdown")
async def stop_refresh():
    await scheduler.stop()


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "as_of": now_utc().isoformat(),
        "service": "wwdc-tracker",
        "connected": scheduler.is_connected,
    }


@app.get("/live-status", response_model=LiveStatusResponse)
async def get_live_status():
    """Keynote status computed from the current time."""
    return LiveStatusResponse.from_status(event_clock.status(now_utc()))


@app.get("/feed", response_model=FeedResponse)
async def get_feed(
    kind: Optional[ArticleKind] = Query(None, description="Only articles of this kind"),
    breaking_only: bool = Query(False, description="Only breaking articles"),
):
    """Latest aggregated feed; stale data is kept when a refresh fails."""
    return build_feed_response(kind, breaking_only)


@app.post("/refresh", response_model=FeedResponse)
async def refresh_feed():
    """
    Run an aggregation pass now.

    Returns 409 if a pass is already running and 502 if the pass failed.
    """
    try:
        snapshot = await scheduler.trigger_now()
    except RefreshError as e:
        raise HTTPException(status_code=502, detail=f"Refresh failed: {e}")

    if snapshot is None:
        raise HTTPException(status_code=409, detail="A refresh is already in progress")
    return build_feed_response()


if __name__ == "__main__":
    # For development
    import uvicorn
    uvicorn.run("wwdc_tracker.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
