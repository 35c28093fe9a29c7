"""
Reality Check — Behavioral Signal Extraction & Risk Fusion Engine

Reads short runs of text and scroll telemetry and turns them into a
bounded, confidence-weighted risk signal.

Public API:
  - RageDetector:       Aggressive-language indicators (rule-based, zero API cost)
  - DistortionDetector: Cognitive-distortion indicators (rule-based)
  - SentimentScorer:    Classifier-backed valence/arousal readings
  - ScrollProfiler:     Scroll velocity/dwell sampling and rage-scroll detection
  - AnalysisPipeline:   Concurrent per-item analysis, batching, aggregation
  - calculate_risk_score / get_analysis_summary / fuse_risk
  - ClassifierProvider: Abstract classifier interface for provider swapping

Usage:
    from realitycheck import AnalysisPipeline, ScrollProfiler
    from realitycheck import get_classifier, SentimentScorer
"""

__version__ = "0.1.0"

from realitycheck.models import (
    AnalysisRecord,
    ContentItem,
    ContentType,
    DistortionIndicator,
    DistortionType,
    Platform,
    RageIndicator,
    RageType,
    ScrollDirection,
    ScrollSample,
    SentimentReading,
)
from realitycheck.patterns import PATTERN_VERSION, RuleConfig, RuleSet
from realitycheck.rage import RageDetector
from realitycheck.distortion import DistortionDetector, DistortionSummary
from realitycheck.sentiment import RuleEnhancer, SentimentScorer
from realitycheck.scroll import ScrollProfiler, ScrollState
from realitycheck.pipeline import AnalysisPipeline, PipelineStatus
from realitycheck.scorer import (
    AnalysisSummary,
    calculate_risk_score,
    fuse_risk,
    get_analysis_summary,
)
from realitycheck.classifiers import ClassifierProvider
from realitycheck.classifiers.factory import get_classifier

__all__ = [
    "AnalysisRecord",
    "ContentItem",
    "ContentType",
    "DistortionIndicator",
    "DistortionType",
    "Platform",
    "RageIndicator",
    "RageType",
    "ScrollDirection",
    "ScrollSample",
    "SentimentReading",
    "PATTERN_VERSION",
    "RuleConfig",
    "RuleSet",
    "RageDetector",
    "DistortionDetector",
    "DistortionSummary",
    "RuleEnhancer",
    "SentimentScorer",
    "ScrollProfiler",
    "ScrollState",
    "AnalysisPipeline",
    "PipelineStatus",
    "AnalysisSummary",
    "calculate_risk_score",
    "fuse_risk",
    "get_analysis_summary",
    "ClassifierProvider",
    "get_classifier",
]
