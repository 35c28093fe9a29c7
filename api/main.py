"""
Reality Check API — Main Application

POST /analyze                 — Analyze one text unit (record + risk + summary)
POST /analyze/batch           — Analyze several items, index-aligned
GET  /rules                   — List distortion rules
POST /rules                   — Add a distortion rule
POST /rules/{rule_id}/enable  — Enable a distortion rule
POST /rules/{rule_id}/disable — Disable a distortion rule
POST /scroll/events           — Feed scroll position events
GET  /scroll/state            — Current scroll state + rage-scroll reading
GET  /scroll/metrics          — Recent scroll samples
POST /risk/fused              — Text risk fused with rage-scroll intensity
GET  /health                  — Health check
"""

from __future__ import annotations

import re
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.requests import Request

from realitycheck import __version__
from realitycheck.config import settings
from realitycheck.cache import ReadingCache
from realitycheck.classifiers.factory import get_classifier
from realitycheck.logging import setup_logging, get_logger
from realitycheck.models import AnalysisRecord, ContentItem
from realitycheck.patterns import PATTERN_VERSION, RuleConfig
from realitycheck.pipeline import AnalysisPipeline
from realitycheck.scorer import fuse_risk, risk_level
from realitycheck.scroll import ScrollProfiler
from realitycheck.sentiment import SentimentScorer
from realitycheck.schemas.analysis import (
    AnalyzeRequest,
    AnalyzeBatchRequest,
    AnalysisResponse,
    AnalyzeBatchResponse,
    RuleRequest,
    RuleResponse,
    RuleListResponse,
    ScrollEventsRequest,
    ScrollEventsResponse,
    ScrollStateResponse,
    ScrollMetricsResponse,
    FusedRiskRequest,
    FusedRiskResponse,
    HealthResponse,
)

logger = get_logger("api")


# Lazy process-wide engine state. Tests replace these directly.
_pipeline: Optional[AnalysisPipeline] = None
_scroll: Optional[ScrollProfiler] = None


def _get_pipeline() -> AnalysisPipeline:
    global _pipeline
    if _pipeline is None:
        scorer = SentimentScorer(
            classifier=get_classifier(settings.CLASSIFIER),
            cache=ReadingCache(ttl_seconds=settings.CACHE_TTL),
            max_length=settings.MAX_TEXT_LENGTH,
        )
        _pipeline = AnalysisPipeline(sentiment=scorer)
    return _pipeline


def _get_scroll() -> ScrollProfiler:
    global _scroll
    if _scroll is None:
        # Browser clients report Date.now() timestamps, so read wall-clock ms
        _scroll = ScrollProfiler(clock=lambda: time.time() * 1000.0)
    return _scroll


# ============================================================
# STARTUP / SHUTDOWN
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire up dependencies on startup."""
    setup_logging()
    logger.info("Reality Check API starting",
                extra={"provider": settings.CLASSIFIER})
    await _get_pipeline().initialize()
    yield
    logger.info("Reality Check API shutting down")


app = FastAPI(
    title="Reality Check API",
    description="Behavioral signal extraction and risk fusion for text and scroll telemetry",
    version=f"{__version__} (patterns {PATTERN_VERSION})",
    lifespan=lifespan,
)

# CORS: set REALITYCHECK_CORS_ORIGINS in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    allow_credentials=False,
)


# ============================================================
# GLOBAL ERROR HANDLER
# ============================================================

@app.exception_handler(Exception)
async def global_error_handler(request: Request, exc: Exception):
    """Catch unhandled exceptions — return structured error, don't leak internals."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}",
        extra={"error": str(exc), "path": request.url.path, "method": request.method},
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error. The analysis could not be completed.",
        },
    )


def _record_response(
    pipeline: AnalysisPipeline, record: AnalysisRecord, item_id: str = "",
) -> dict:
    summary = pipeline.get_analysis_summary(record)
    return {
        **record.to_dict(),
        "risk_score": summary.risk_score,
        "summary": summary.to_dict(),
        "id": item_id,
    }


def _content_item(request: AnalyzeRequest) -> ContentItem:
    return ContentItem(
        text=request.text,
        platform=request.platform,
        content_type=request.content_type,
        id=request.id,
    )


# ============================================================
# ANALYSIS
# ============================================================

@app.post("/analyze", response_model=AnalysisResponse)
async def analyze(request: AnalyzeRequest):
    """Analyze one text unit for sentiment, distortions and rage language."""
    pipeline = _get_pipeline()
    record = await pipeline.analyze_content(_content_item(request))
    if record is None:
        raise HTTPException(500, "Analysis failed. Please try again.")

    result = _record_response(pipeline, record, request.id)
    logger.info(
        f"Analysis complete: risk={result['risk_score']}",
        extra={"risk_score": result["risk_score"],
               "duration_ms": result["processing_time_ms"]},
    )
    return result


@app.post("/analyze/batch", response_model=AnalyzeBatchResponse)
async def analyze_batch(request: AnalyzeBatchRequest):
    """Analyze several items concurrently. Null slots had nothing to report."""
    pipeline = _get_pipeline()
    records = await pipeline.analyze_batch([_content_item(i) for i in request.items])

    results = [
        _record_response(pipeline, record, item.id) if record is not None else None
        for item, record in zip(request.items, records)
    ]
    analyzed = [r for r in records if r is not None]

    aggregate = None
    if request.aggregate and analyzed:
        aggregate = _record_response(pipeline, pipeline.aggregate_analyses(analyzed))

    return {"results": results, "analyzed": len(analyzed), "aggregate": aggregate}


# ============================================================
# RULES
# ============================================================

@app.get("/rules", response_model=RuleListResponse)
async def list_rules():
    """Return all distortion rules with their enabled state."""
    rules = _get_pipeline().distortion_detector.get_rules()
    return {
        "pattern_version": PATTERN_VERSION,
        "total": len(rules),
        "enabled": sum(1 for r in rules if r.enabled),
        "rules": [r.to_dict() for r in rules],
    }


@app.post("/rules", response_model=RuleResponse, status_code=201)
async def add_rule(request: RuleRequest):
    """Add a distortion rule. Applies to analyses started after this call."""
    detector = _get_pipeline().distortion_detector
    if detector.rules.get(request.id) is not None:
        raise HTTPException(409, f"Rule already exists: {request.id}")

    try:
        re.compile(request.pattern)
    except re.error as e:
        raise HTTPException(400, f"Invalid pattern: {e}")

    try:
        rule = RuleConfig(
            id=request.id,
            pattern=request.pattern,
            weight=request.weight,
            category=request.category,
            enabled=request.enabled,
            description=request.description,
        )
        detector.add_rule(rule)
    except ValueError as e:
        raise HTTPException(400, str(e))

    logger.info("Distortion rule added", extra={"rule_id": rule.id})
    return rule.to_dict()


def _toggle_rule(rule_id: str, enabled: bool) -> dict:
    detector = _get_pipeline().distortion_detector
    changed = detector.enable_rule(rule_id) if enabled else detector.disable_rule(rule_id)
    if not changed:
        raise HTTPException(404, f"Unknown rule: {rule_id}")
    logger.info(
        "Distortion rule %s", "enabled" if enabled else "disabled",
        extra={"rule_id": rule_id},
    )
    return detector.rules.get(rule_id).to_dict()


@app.post("/rules/{rule_id}/enable", response_model=RuleResponse)
async def enable_rule(rule_id: str):
    return _toggle_rule(rule_id, True)


@app.post("/rules/{rule_id}/disable", response_model=RuleResponse)
async def disable_rule(rule_id: str):
    return _toggle_rule(rule_id, False)


# ============================================================
# SCROLL TELEMETRY
# ============================================================

def _scroll_state(profiler: ScrollProfiler) -> dict:
    return {
        **profiler.current_state().to_dict(),
        "is_rage_scrolling": profiler.is_rage_scrolling(),
        "rage_scroll_intensity": round(profiler.rage_scroll_intensity(), 4),
    }


@app.post("/scroll/events", response_model=ScrollEventsResponse)
async def scroll_events(request: ScrollEventsRequest):
    """
    Feed scroll events in order. The first batch after startup anchors
    the profiler at its first event.
    """
    profiler = _get_scroll()
    events = request.events
    if not profiler.is_active:
        first = events[0]
        profiler.start(first.position, first.timestamp_ms)
        events = events[1:]

    accepted = sum(
        1 for e in events
        if profiler.handle_scroll(e.position, e.timestamp_ms) is not None
    )
    return {
        "accepted": accepted,
        "ignored": len(events) - accepted,
        "state": _scroll_state(profiler),
    }


@app.get("/scroll/state", response_model=ScrollStateResponse)
async def scroll_state():
    return _scroll_state(_get_scroll())


@app.get("/scroll/metrics", response_model=ScrollMetricsResponse)
async def scroll_metrics(
    window_ms: float = Query(30_000.0, gt=0, le=300_000.0),
):
    samples = _get_scroll().recent_metrics(window_ms)
    return {"window_ms": window_ms, "samples": [s.to_dict() for s in samples]}


# ============================================================
# RISK FUSION
# ============================================================

@app.post("/risk/fused", response_model=FusedRiskResponse)
async def fused_risk(request: FusedRiskRequest):
    """Blend a text risk (given, or computed from text) with rage-scroll intensity."""
    if request.text_risk is not None:
        text_risk = request.text_risk
    elif request.text is not None:
        pipeline = _get_pipeline()
        record = await pipeline.analyze_content(request.text)
        if record is None:
            raise HTTPException(500, "Analysis failed. Please try again.")
        text_risk = pipeline.calculate_risk_score(record)
    else:
        raise HTTPException(400, "Provide either text or text_risk.")

    weight = settings.SCROLL_WEIGHT if request.scroll_weight is None else request.scroll_weight
    intensity = _get_scroll().rage_scroll_intensity()
    fused = fuse_risk(text_risk, intensity, weight)

    return {
        "text_risk": round(text_risk, 4),
        "scroll_intensity": round(intensity, 4),
        "scroll_weight": weight,
        "fused_risk": round(fused, 4),
        "risk_level": risk_level(fused),
    }


# ============================================================
# HEALTH
# ============================================================

@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check. Degraded means rule-based analysis only."""
    pipeline = _get_pipeline()
    status = pipeline.status()
    return {
        "status": "degraded" if status.degraded else "operational",
        "version": __version__,
        "pattern_version": PATTERN_VERSION,
        "classifier": pipeline.sentiment.classifier.name if pipeline.sentiment.classifier else None,
        "pipeline": status.to_dict(),
        "cache": pipeline.sentiment.cache.stats,
    }


# --- Request Logging Middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with method, path, status, duration."""
    path = request.url.path
    if path == "/health":
        return await call_next(request)

    start = time.time()
    response = await call_next(request)
    duration_ms = round((time.time() - start) * 1000, 1)

    logger.info(
        f"{request.method} {path} → {response.status_code} ({duration_ms}ms)",
        extra={
            "method": request.method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        },
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host=settings.HOST, port=settings.PORT)
