from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from wwdc_tracker import main
from wwdc_tracker.core.aggregator import Aggregator
from wwdc_tracker.core.event_clock import EventClock
from wwdc_tracker.models import ArticleKind
from wwdc_tracker.services.scheduler import RefreshScheduler

from conftest import NOW, StubFetcher, make_article

ARTICLES = [
    make_article("Apple unveils iOS 26", "https://e.com/ios", kind=ArticleKind.OFFICIAL,
                 timestamp=NOW - timedelta(days=2)),
    make_article("Weekly recap", "https://e.com/recap", kind=ArticleKind.PRESS,
                 timestamp=NOW - timedelta(days=2)),
]


class FailingAggregator:
    async def run_pass(self, now=None):
        raise RuntimeError("event clock unavailable")


@pytest.fixture
def client(monkeypatch):
    aggregator = Aggregator([StubFetcher("feed", ARTICLES), StubFetcher("NewsAPI", error="HTTP 500")],
                            clock=EventClock())
    monkeypatch.setattr(main, "scheduler", RefreshScheduler(aggregator))
    return TestClient(main.app)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["service"] == "wwdc-tracker"


def test_live_status_shape(client):
    response = client.get("/live-status")

    assert response.status_code == 200
    body = response.json()
    assert set(body) >= {"is_live", "is_event_window", "minutes_until_start", "minutes_until_end",
                         "reference_time", "display_time"}


def test_feed_is_empty_before_first_pass(client):
    body = client.get("/feed").json()

    assert body["articles"] == []
    assert body["fetched_at"] is None
    assert body["connected"] is True


def test_refresh_returns_ranked_feed_with_novelty(client):
    response = client.post("/refresh")

    assert response.status_code == 200
    body = response.json()
    titles = [a["title"] for a in body["articles"]]
    assert titles[-2:] == ["Apple unveils iOS 26", "Weekly recap"]
    assert all(a["is_new"] for a in body["articles"])
    assert body["errors"] == [{"source": "NewsAPI", "message": "HTTP 500"}]
    assert body["seconds_until_refresh"] > 0

    again = client.post("/refresh").json()
    assert not any(a["is_new"] for a in again["articles"])


def test_feed_filters(client):
    client.post("/refresh")

    breaking = client.get("/feed", params={"breaking_only": True}).json()["articles"]
    assert "Apple unveils iOS 26" in [a["title"] for a in breaking]
    assert "Weekly recap" not in [a["title"] for a in breaking]

    official = client.get("/feed", params={"kind": "official"}).json()["articles"]
    assert [a["title"] for a in official] == ["Apple unveils iOS 26"]


def test_refresh_failure_returns_502_and_marks_disconnected(monkeypatch):
    scheduler = RefreshScheduler(FailingAggregator())
    monkeypatch.setattr(main, "scheduler", scheduler)

    response = TestClient(main.app).post("/refresh")

    assert response.status_code == 502
    assert scheduler.is_connected is False


def test_refresh_while_running_returns_409(client):
    main.scheduler._in_flight = True

    response = client.post("/refresh")

    assert response.status_code == 409
