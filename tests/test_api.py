"""
API Integration Tests — Endpoint Verification

Tests every public API endpoint using FastAPI's TestClient.
The pipeline runs on a fake classifier and the scroll profiler on a
fake clock, so nothing touches the network or a model.

These tests catch:
  - Schema mismatches (response model vs actual data)
  - Route registration issues
  - Status-code mapping for rule management errors
  - Response format regressions
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import api.main as main
from realitycheck.pipeline import AnalysisPipeline
from realitycheck.scroll import ScrollProfiler
from realitycheck.sentiment import SentimentScorer

SHOUTING = "I HATE YOU!!! YOU ARE SO STUPID!!!"
WATCHED = "they are all watching me and tracking everything I do"
RAGE_DELTAS = [200, 200, -200, -200, 200, 50, -50, -200, 200, 50, -50, -200]


# --- Fixtures ---

@pytest.fixture
def engine(monkeypatch, fake_classifier, clock):
    pipeline = AnalysisPipeline(SentimentScorer(fake_classifier))
    profiler = ScrollProfiler(clock=clock)
    monkeypatch.setattr(main, "_pipeline", pipeline)
    monkeypatch.setattr(main, "_scroll", profiler)
    return pipeline, profiler


@pytest.fixture
def client(engine):
    """Create a test client for the Reality Check API."""
    with TestClient(main.app) as c:
        yield c


def _rage_events():
    events = [{"position": 0, "timestamp_ms": 0}]
    position = 0
    for i, delta in enumerate(RAGE_DELTAS, start=1):
        position += delta
        events.append({"position": position, "timestamp_ms": i * 100})
    return events


# ============================================================
# HEALTH
# ============================================================

class TestHealth:

    def test_health_fields(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        data = r.json()
        assert data["status"] == "operational"
        assert data["classifier"] == "fake"
        assert data["pipeline"]["initialized"] is True
        assert data["pipeline"]["sentiment_ready"] is True
        assert "pattern_version" in data
        assert "hit_rate" in data["cache"]

    def test_health_degraded_without_classifier(self, monkeypatch):
        monkeypatch.setattr(main, "_pipeline", AnalysisPipeline())
        with TestClient(main.app) as c:
            data = c.get("/health").json()
        assert data["status"] == "degraded"
        assert data["classifier"] is None


# ============================================================
# ANALYSIS
# ============================================================

class TestAnalyze:

    def test_shouting(self, client):
        r = client.post("/analyze", json={"text": SHOUTING, "platform": "twitter"})
        assert r.status_code == 200
        data = r.json()
        types = {i["type"] for i in data["rage_indicators"]}
        assert {"verbal_aggression", "caps_lock", "exclamation_spam"} <= types
        assert data["sentiment"]["valence"] < 0
        assert data["summary"]["risk_level"] == "medium"
        assert data["summary"]["primary_concerns"] == [
            "aggressive language patterns", "high emotional intensity",
        ]
        assert 0.0 <= data["risk_score"] <= 1.0

    def test_persecution(self, client):
        data = client.post("/analyze", json={"text": WATCHED, "id": "msg-1"}).json()
        assert [d["type"] for d in data["distortions"]] == ["persecution"]
        assert data["distortions"][0]["rule_id"] == "persecution_watching"
        assert data["summary"]["primary_concerns"][0] == "persecution thinking patterns"
        assert data["id"] == "msg-1"

    def test_empty_text_is_zero_record(self, client):
        data = client.post("/analyze", json={"text": ""}).json()
        assert data["sentiment"] == {"valence": 0.0, "arousal": 0.0, "confidence": 0.0}
        assert data["distortions"] == []
        assert data["rage_indicators"] == []
        assert data["risk_score"] == 0.0

    def test_unknown_platform_rejected(self, client):
        r = client.post("/analyze", json={"text": SHOUTING, "platform": "myspace"})
        assert r.status_code == 422

    def test_internal_failure_is_structured_500(self, engine, monkeypatch):
        pipeline, _ = engine

        async def explode(item):
            raise RuntimeError("boom")

        monkeypatch.setattr(pipeline, "analyze_content", explode)
        with TestClient(main.app, raise_server_exceptions=False) as c:
            r = c.post("/analyze", json={"text": SHOUTING})
        assert r.status_code == 500
        assert "detail" in r.json()
        assert "boom" not in r.text


class TestAnalyzeBatch:

    def test_batch_alignment(self, client):
        r = client.post("/analyze/batch", json={"items": [
            {"text": "hi"}, {"text": SHOUTING}, {"text": WATCHED},
        ]})
        assert r.status_code == 200
        data = r.json()
        assert len(data["results"]) == 3
        assert data["results"][0] is None
        assert data["results"][1]["rage_indicators"]
        assert data["results"][2]["distortions"]
        assert data["analyzed"] == 2
        assert data["aggregate"] is None

    def test_batch_aggregate(self, client):
        data = client.post("/analyze/batch", json={
            "items": [{"text": SHOUTING}, {"text": WATCHED}],
            "aggregate": True,
        }).json()
        agg = data["aggregate"]
        assert agg is not None
        assert len(agg["distortions"]) == 1
        assert len(agg["rage_indicators"]) == len(data["results"][0]["rage_indicators"])

    def test_empty_batch(self, client):
        data = client.post("/analyze/batch", json={"items": []}).json()
        assert data["results"] == []
        assert data["analyzed"] == 0


# ============================================================
# RULES
# ============================================================

class TestRules:

    def test_list_rules(self, client):
        data = client.get("/rules").json()
        assert data["total"] == 18
        assert data["enabled"] == 18
        assert {r["category"] for r in data["rules"]} >= {"persecution", "conspiracy"}

    def test_disable_then_enable(self, client):
        r = client.post("/rules/persecution_watching/disable")
        assert r.status_code == 200
        assert r.json()["enabled"] is False
        assert client.post("/analyze", json={"text": WATCHED}).json()["distortions"] == []
        assert client.get("/rules").json()["enabled"] == 17

        r = client.post("/rules/persecution_watching/enable")
        assert r.json()["enabled"] is True
        assert len(client.post("/analyze", json={"text": WATCHED}).json()["distortions"]) == 1

    def test_unknown_rule_404(self, client):
        assert client.post("/rules/nope/enable").status_code == 404
        assert client.post("/rules/nope/disable").status_code == 404

    def test_add_rule(self, client):
        r = client.post("/rules", json={
            "id": "catastrophizing_ruined",
            "pattern": r"\b(?:everything|my life)\b.*\bruined\b",
            "weight": 0.6,
            "category": "catastrophizing",
        })
        assert r.status_code == 201
        assert client.get("/rules").json()["rules"][-1]["id"] == "catastrophizing_ruined"
        data = client.post("/analyze", json={"text": "my life is totally ruined now"}).json()
        assert any(d["rule_id"] == "catastrophizing_ruined" for d in data["distortions"])

    def test_duplicate_rule_409(self, client):
        r = client.post("/rules", json={
            "id": "persecution_watching", "pattern": r"\bx\b",
            "weight": 0.5, "category": "persecution",
        })
        assert r.status_code == 409

    def test_malformed_pattern_400(self, client):
        r = client.post("/rules", json={
            "id": "broken_rule", "pattern": "(unclosed",
            "weight": 0.5, "category": "conspiracy",
        })
        assert r.status_code == 400
        assert client.get("/rules").json()["total"] == 18

    @pytest.mark.parametrize("body", [
        {"id": "w", "pattern": "x", "weight": 0.0, "category": "persecution"},
        {"id": "w", "pattern": "x", "weight": 1.5, "category": "persecution"},
        {"id": "w", "pattern": "x", "weight": 0.5, "category": "profanity"},
        {"id": "Bad Id", "pattern": "x", "weight": 0.5, "category": "persecution"},
    ])
    def test_invalid_rule_422(self, client, body):
        assert client.post("/rules", json=body).status_code == 422


# ============================================================
# SCROLL + FUSION
# ============================================================

class TestScroll:

    def test_rage_scroll_events(self, client, clock):
        clock.now = 1200
        r = client.post("/scroll/events", json={"events": _rage_events()})
        assert r.status_code == 200
        data = r.json()
        assert data["accepted"] == 12
        assert data["ignored"] == 0
        assert data["state"]["is_rage_scrolling"] is True
        assert data["state"]["is_scrolling"] is True

    def test_state_and_metrics(self, client, clock):
        clock.now = 1200
        client.post("/scroll/events", json={"events": _rage_events()})

        state = client.get("/scroll/state").json()
        assert state["rapid_scroll_count"] == 8

        clock.now = 1500
        state = client.get("/scroll/state").json()
        assert state["is_scrolling"] is False
        assert state["rapid_scroll_count"] == 7

        metrics = client.get("/scroll/metrics", params={"window_ms": 1000}).json()
        assert metrics["window_ms"] == 1000
        # samples newer than t=500
        assert len(metrics["samples"]) == 7

    def test_stale_events_ignored(self, client, clock):
        clock.now = 300
        data = client.post("/scroll/events", json={"events": [
            {"position": 0, "timestamp_ms": 0},
            {"position": 100, "timestamp_ms": 200},
            {"position": 300, "timestamp_ms": 200},
        ]}).json()
        assert data["accepted"] == 1
        assert data["ignored"] == 1

    def test_metrics_window_validated(self, client):
        assert client.get("/scroll/metrics", params={"window_ms": 0}).status_code == 422

    def test_events_required(self, client):
        assert client.post("/scroll/events", json={"events": []}).status_code == 422


class TestFusedRisk:

    def test_text_risk_without_scroll(self, client):
        data = client.post("/risk/fused", json={"text_risk": 0.5}).json()
        assert data["scroll_intensity"] == 0.0
        assert data["scroll_weight"] == pytest.approx(0.2)
        assert data["fused_risk"] == pytest.approx(0.4)
        assert data["risk_level"] == "low"

    def test_rage_scroll_raises_risk(self, client, clock):
        clock.now = 1200
        client.post("/scroll/events", json={"events": _rage_events()})
        data = client.post("/risk/fused", json={"text_risk": 0.5, "scroll_weight": 0.5}).json()
        assert data["scroll_intensity"] > 0.6
        assert data["fused_risk"] > 0.5

    def test_fused_from_text(self, client):
        data = client.post("/risk/fused", json={"text": SHOUTING}).json()
        assert data["text_risk"] > 0.5

    def test_needs_text_or_risk(self, client):
        assert client.post("/risk/fused", json={}).status_code == 400
