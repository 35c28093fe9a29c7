"""
API Schemas — Request and Response Models

Pydantic models for the Reality Check API.
"""

from __future__ import annotations

from typing import Optional
from pydantic import BaseModel, Field

from realitycheck.models import ContentType, DistortionType, Platform


# ============================================================
# ANALYSIS
# ============================================================

class AnalyzeRequest(BaseModel):
    """POST /analyze request body."""
    text: str = Field(..., max_length=50_000,
                      description="Text unit to analyze (message, post, comment).")
    platform: Platform = Field(Platform.UNKNOWN, description="Where the text was extracted from.")
    content_type: ContentType = Field(ContentType.UNKNOWN)
    id: str = Field("", max_length=200)

    model_config = {"json_schema_extra": {"examples": [
        {"text": "They are watching everything I do, I know they're tracking me.",
         "platform": "reddit", "content_type": "comment"},
    ]}}


class AnalyzeBatchRequest(BaseModel):
    """POST /analyze/batch request body."""
    items: list[AnalyzeRequest] = Field(..., max_length=100)
    aggregate: bool = Field(False, description="Also return an aggregate of the analyzed items.")


class SentimentResponse(BaseModel):
    valence: float
    arousal: float
    confidence: float


class RageIndicatorResponse(BaseModel):
    type: str
    intensity: float
    matched_text: str
    context: str


class DistortionResponse(BaseModel):
    type: str
    severity: float
    matched_text: str
    context: str
    keywords: list[str] = []
    rule_id: str = ""


class SummaryResponse(BaseModel):
    sentiment_category: str
    risk_level: str
    risk_score: float
    primary_concerns: list[str]
    recommendations: list[str]


class AnalysisResponse(BaseModel):
    """POST /analyze response body."""
    sentiment: SentimentResponse
    distortions: list[DistortionResponse]
    rage_indicators: list[RageIndicatorResponse]
    confidence: float
    processing_time_ms: float
    risk_score: float
    summary: SummaryResponse
    id: str = ""


class AnalyzeBatchResponse(BaseModel):
    """POST /analyze/batch response body. Results are index-aligned; null = nothing to report."""
    results: list[Optional[AnalysisResponse]]
    analyzed: int
    aggregate: Optional[AnalysisResponse] = None


# ============================================================
# RULES
# ============================================================

class RuleRequest(BaseModel):
    """POST /rules request body."""
    id: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9_]+$")
    pattern: str = Field(..., min_length=1, max_length=2_000)
    weight: float = Field(..., gt=0.0, le=1.0)
    category: DistortionType
    enabled: bool = True
    description: str = ""


class RuleResponse(BaseModel):
    id: str
    pattern: str
    weight: float
    category: str
    enabled: bool
    description: str = ""


class RuleListResponse(BaseModel):
    pattern_version: str
    total: int
    enabled: int
    rules: list[RuleResponse]


# ============================================================
# SCROLL
# ============================================================

class ScrollEvent(BaseModel):
    position: float
    timestamp_ms: Optional[float] = Field(None, description="Event time in ms; defaults to the server clock.")


class ScrollEventsRequest(BaseModel):
    """POST /scroll/events request body."""
    events: list[ScrollEvent] = Field(..., min_length=1, max_length=1_000)


class ScrollSampleResponse(BaseModel):
    velocity: float
    direction: str
    dwell_time_ms: float
    rapid_scroll_count: int
    timestamp_ms: float


class ScrollStateResponse(BaseModel):
    is_scrolling: bool
    rapid_scroll_count: int
    current_velocity: float
    dwell_time_ms: float
    is_rage_scrolling: bool
    rage_scroll_intensity: float


class ScrollEventsResponse(BaseModel):
    accepted: int
    ignored: int
    state: ScrollStateResponse


class ScrollMetricsResponse(BaseModel):
    window_ms: float
    samples: list[ScrollSampleResponse]


# ============================================================
# RISK FUSION
# ============================================================

class FusedRiskRequest(BaseModel):
    """POST /risk/fused request body. Supply text or a precomputed text_risk."""
    text: Optional[str] = Field(None, max_length=50_000)
    text_risk: Optional[float] = Field(None, ge=0.0, le=1.0)
    scroll_weight: Optional[float] = Field(None, ge=0.0, le=1.0)


class FusedRiskResponse(BaseModel):
    text_risk: float
    scroll_intensity: float
    scroll_weight: float
    fused_risk: float
    risk_level: str


# ============================================================
# HEALTH
# ============================================================

class HealthResponse(BaseModel):
    status: str
    version: str
    pattern_version: str
    classifier: Optional[str]
    pipeline: dict
    cache: dict
