"""
Data Model — Indicators, Readings, Samples, Records

Immutable value records shared by the detectors, the scroll profiler
and the analysis pipeline. Scores are clamped at construction, so no
record can carry an intensity, severity or confidence outside its range.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

# Texts shorter than this (after stripping) are "nothing to analyze"
MIN_TEXT_LENGTH = 10

# Upper bound on an indicator's context snippet
CONTEXT_LIMIT = 110


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def is_analyzable(text: Optional[str]) -> bool:
    """True when text is long enough to be worth scanning."""
    return bool(text) and len(text.strip()) >= MIN_TEXT_LENGTH


def clip(fragment: str, limit: int = CONTEXT_LIMIT) -> str:
    """Cut an echoed fragment down to `limit` characters."""
    return fragment if len(fragment) <= limit else fragment[:limit].rstrip()


def extract_context(text: str, match: str, padding: int) -> str:
    """
    Return a snippet of `text` around the first occurrence of `match`.

    The padding shrinks so the snippet stays within CONTEXT_LIMIT. A match
    longer than the limit is cut to its first CONTEXT_LIMIT characters.
    Falls back to the (clipped) match when it cannot be located.
    """
    if not match:
        return match
    idx = text.lower().find(match.lower())
    if idx == -1:
        return clip(match)
    if len(match) >= CONTEXT_LIMIT:
        return clip(text[idx:idx + len(match)])

    pad = max(0, min(padding, (CONTEXT_LIMIT - len(match)) // 2))
    start = max(0, idx - pad)
    end = min(len(text), idx + len(match) + pad)
    return text[start:end].strip()


# ============================================================
# ENUMS
# ============================================================

class RageType(str, Enum):
    VERBAL_AGGRESSION = "verbal_aggression"
    THREAT_LANGUAGE = "threat_language"
    CAPS_LOCK = "caps_lock"
    EXCLAMATION_SPAM = "exclamation_spam"
    PROFANITY = "profanity"


class DistortionType(str, Enum):
    PERSECUTION = "persecution"
    GRANDIOSITY = "grandiosity"
    CONSPIRACY = "conspiracy"
    CATASTROPHIZING = "catastrophizing"
    ALL_OR_NOTHING = "all_or_nothing"
    MIND_READING = "mind_reading"
    FORTUNE_TELLING = "fortune_telling"


class ScrollDirection(str, Enum):
    UP = "up"
    DOWN = "down"


class Platform(str, Enum):
    """Where a content item was extracted from."""
    CHATGPT = "chatgpt"
    CLAUDE = "claude"
    GEMINI = "gemini"
    TWITTER = "twitter"
    REDDIT = "reddit"
    FACEBOOK = "facebook"
    YOUTUBE = "youtube"
    UNKNOWN = "unknown"


class ContentType(str, Enum):
    USER_MESSAGE = "user_message"
    AI_RESPONSE = "ai_response"
    SOCIAL_POST = "social_post"
    COMMENT = "comment"
    FEED_ITEM = "feed_item"
    UNKNOWN = "unknown"


# ============================================================
# INDICATORS
# ============================================================

@dataclass(frozen=True)
class RageIndicator:
    """A single aggressive-language signal raised by the rage detector."""
    type: RageType
    intensity: float        # 0.0 to 1.0
    matched_text: str       # The fragment(s) that triggered the indicator
    context: str            # Bounded snippet around the first match

    def __post_init__(self):
        object.__setattr__(self, "intensity", clamp(self.intensity))

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "intensity": round(self.intensity, 4),
            "matched_text": self.matched_text,
            "context": self.context,
        }


@dataclass(frozen=True)
class DistortionIndicator:
    """A cognitive-distortion match raised by one distortion rule."""
    type: DistortionType
    severity: float         # 0.0 to 1.0
    matched_text: str
    context: str
    keywords: tuple[str, ...] = ()
    rule_id: str = ""

    def __post_init__(self):
        object.__setattr__(self, "severity", clamp(self.severity))

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "severity": round(self.severity, 4),
            "matched_text": self.matched_text,
            "context": self.context,
            "keywords": list(self.keywords),
            "rule_id": self.rule_id,
        }


# ============================================================
# SENTIMENT
# ============================================================

@dataclass(frozen=True)
class SentimentReading:
    """Emotional reading of a text: valence, arousal and confidence."""
    valence: float = 0.0      # -1.0 to 1.0
    arousal: float = 0.0      # 0.0 to 1.0
    confidence: float = 0.0   # 0.0 to 1.0

    def __post_init__(self):
        object.__setattr__(self, "valence", clamp(self.valence, -1.0, 1.0))
        object.__setattr__(self, "arousal", clamp(self.arousal))
        object.__setattr__(self, "confidence", clamp(self.confidence))

    @classmethod
    def zero(cls) -> "SentimentReading":
        return cls(0.0, 0.0, 0.0)

    def to_dict(self) -> dict:
        return {
            "valence": round(self.valence, 4),
            "arousal": round(self.arousal, 4),
            "confidence": round(self.confidence, 4),
        }


# ============================================================
# SCROLL TELEMETRY
# ============================================================

@dataclass(frozen=True)
class ScrollSample:
    """One scroll event, published atomically to the profiler history."""
    velocity: float                 # pixels per second, non-negative
    direction: ScrollDirection
    dwell_time_ms: float            # 0 while actively scrolling
    rapid_scroll_count: int
    timestamp_ms: float             # monotonic

    def to_dict(self) -> dict:
        return {
            "velocity": round(self.velocity, 2),
            "direction": self.direction.value,
            "dwell_time_ms": round(self.dwell_time_ms, 2),
            "rapid_scroll_count": self.rapid_scroll_count,
            "timestamp_ms": self.timestamp_ms,
        }


# ============================================================
# CONTENT + ANALYSIS
# ============================================================

@dataclass(frozen=True)
class ContentItem:
    """A unit of text delivered by the extraction layer."""
    text: str
    timestamp: float = field(default_factory=lambda: time.time() * 1000)
    platform: Platform = Platform.UNKNOWN
    content_type: ContentType = ContentType.UNKNOWN
    id: str = ""


@dataclass(frozen=True)
class AnalysisRecord:
    """Merged output of all analyzers for one text unit (or an aggregate)."""
    sentiment: SentimentReading
    distortions: tuple[DistortionIndicator, ...] = ()
    rage_indicators: tuple[RageIndicator, ...] = ()
    confidence: float = 0.0
    processing_time_ms: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "distortions", tuple(self.distortions))
        object.__setattr__(self, "rage_indicators", tuple(self.rage_indicators))
        object.__setattr__(self, "confidence", clamp(self.confidence))

    @classmethod
    def empty(cls) -> "AnalysisRecord":
        return cls(sentiment=SentimentReading.zero())

    def to_dict(self) -> dict:
        return {
            "sentiment": self.sentiment.to_dict(),
            "distortions": [d.to_dict() for d in self.distortions],
            "rage_indicators": [r.to_dict() for r in self.rage_indicators],
            "confidence": round(self.confidence, 4),
            "processing_time_ms": round(self.processing_time_ms, 3),
        }
