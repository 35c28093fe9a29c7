"""
Sentiment Scorer — Valence / Arousal Readings

Wraps a pluggable classifier (see realitycheck.classifiers) and turns its
{label, score} output into a SentimentReading, then nudges the reading
with a small lexical rule layer.

Availability is explicit: score() returns None when no reading could be
produced (no classifier, classifier still loading, classifier error,
nothing left after normalization). It never raises.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Optional, Sequence

from realitycheck.cache import ReadingCache
from realitycheck.classifiers import ClassifierProvider
from realitycheck.models import SentimentReading, clamp

logger = logging.getLogger(__name__)

DEFAULT_MAX_LENGTH = 512

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^\w\s.!?,\-'\"()]")


def normalize_text(text: str, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Collapse whitespace, drop unusual symbols, trim and truncate."""
    if not text:
        return ""
    cleaned = _WHITESPACE.sub(" ", text)
    cleaned = _DISALLOWED.sub("", cleaned)
    return cleaned.strip()[:max_length]


def reading_from_label(result: Any) -> SentimentReading:
    """
    Map a classifier {label, score} result onto valence/arousal.

    Negative content is treated as more arousing than positive content
    of the same score. Unknown labels carry confidence only; malformed
    results yield the zero reading.
    """
    if not isinstance(result, dict):
        return SentimentReading.zero()
    try:
        score = float(result.get("score"))
    except (TypeError, ValueError):
        return SentimentReading.zero()
    if not math.isfinite(score):
        return SentimentReading.zero()

    label = str(result.get("label", "")).upper()
    if label == "POSITIVE":
        return SentimentReading(score, min(score * 1.2, 1.0), score)
    if label == "NEGATIVE":
        return SentimentReading(-score, min(score * 1.5, 1.0), score)
    return SentimentReading(0.0, 0.0, score)


# ============================================================
# LEXICAL ENHANCER
# ============================================================

HIGH_AROUSAL_WORDS = (
    "urgent", "emergency", "crisis", "panic", "excited", "thrilled",
    "angry", "furious", "rage", "hate", "love", "amazing", "terrible",
    "shocking", "incredible", "outrageous", "awesome", "devastating",
)
LOW_AROUSAL_WORDS = (
    "calm", "peaceful", "relaxed", "tired", "bored", "dull",
    "quiet", "still", "gentle", "soft", "mild", "content",
)
POSITIVE_WORDS = (
    "happy", "joy", "pleased", "satisfied", "grateful", "thankful",
    "wonderful", "excellent", "great", "good", "nice", "beautiful",
)
NEGATIVE_WORDS = (
    "sad", "disappointed", "frustrated", "angry", "upset", "worried",
    "terrible", "awful", "bad", "horrible", "disgusting", "annoying",
)
INTENSIFIERS = ("very", "extremely", "incredibly", "totally", "completely")


class RuleEnhancer:
    """
    Adjusts a reading by keyword presence.

    Keywords match as substrings of the lower-cased text, each counted
    once. Confidence passes through untouched.
    """

    high_arousal_boost = 0.2
    low_arousal_penalty = 0.15
    valence_step = 0.15
    intensifier_boost = 0.1

    def enhance(self, text: str, reading: SentimentReading) -> SentimentReading:
        lower = text.lower()

        arousal_boost = 0.0
        arousal_boost += self.high_arousal_boost * sum(w in lower for w in HIGH_AROUSAL_WORDS)
        arousal_boost -= self.low_arousal_penalty * sum(w in lower for w in LOW_AROUSAL_WORDS)
        if any(w in lower for w in INTENSIFIERS):
            arousal_boost += self.intensifier_boost

        valence_boost = 0.0
        valence_boost += self.valence_step * sum(w in lower for w in POSITIVE_WORDS)
        valence_boost -= self.valence_step * sum(w in lower for w in NEGATIVE_WORDS)

        return clamp_reading(SentimentReading(
            valence=reading.valence + valence_boost,
            arousal=reading.arousal + arousal_boost,
            confidence=reading.confidence,
        ))


def clamp_reading(reading: SentimentReading) -> SentimentReading:
    """Clamp every field into range. Idempotent."""
    return SentimentReading(
        valence=clamp(reading.valence, -1.0, 1.0),
        arousal=clamp(reading.arousal),
        confidence=clamp(reading.confidence),
    )


# ============================================================
# SCORER
# ============================================================

class SentimentScorer:
    """Classifier-backed sentiment scoring with caching and enhancement."""

    def __init__(
        self,
        classifier: Optional[ClassifierProvider] = None,
        enhancer: Optional[RuleEnhancer] = None,
        cache: Optional[ReadingCache] = None,
        max_length: int = DEFAULT_MAX_LENGTH,
    ):
        self.classifier = classifier
        self.enhancer = enhancer if enhancer is not None else RuleEnhancer()
        self.cache = cache if cache is not None else ReadingCache()
        self.max_length = max_length

    @property
    def is_ready(self) -> bool:
        return self.classifier is not None and self.classifier.is_ready

    @property
    def is_loading(self) -> bool:
        return self.classifier is not None and self.classifier.is_loading

    async def start_loading(self) -> bool:
        """Load the classifier. Returns readiness; False when none is configured."""
        if self.classifier is None:
            logger.info("No sentiment classifier configured, sentiment disabled")
            return False
        return await self.classifier.load()

    async def score_raw(self, text: str) -> Optional[SentimentReading]:
        """Classifier reading without lexical enhancement."""
        normalized = normalize_text(text, self.max_length)
        if not normalized or not self.is_ready:
            return None

        provider = self.classifier.name
        cached = await self.cache.get(normalized, provider)
        if cached is not None:
            return cached

        try:
            result = await self.classifier.classify(normalized)
        except Exception as e:
            logger.warning(
                "Sentiment classification failed",
                extra={"provider": provider, "error": str(e),
                       "error_type": type(e).__name__},
            )
            return None

        reading = reading_from_label(result)
        await self.cache.put(normalized, provider, reading)
        return reading

    async def score(self, text: str) -> Optional[SentimentReading]:
        """Enhanced reading for `text`, or None when unavailable."""
        reading = await self.score_raw(text)
        if reading is None:
            return None
        return self.enhancer.enhance(text, reading)

    async def score_batch(self, texts: Sequence[str]) -> list[Optional[SentimentReading]]:
        """
        Score several texts. Output is index-aligned with the input.

        Cache hits are served directly; everything else goes to the
        classifier in one classify_batch() call. If that call fails, the
        uncached slots come back None.
        """
        if not texts:
            return []
        raw: list[Optional[SentimentReading]] = [None] * len(texts)
        if not self.is_ready:
            return raw

        provider = self.classifier.name
        pending: list[tuple[int, str]] = []
        for index, text in enumerate(texts):
            normalized = normalize_text(text, self.max_length)
            if not normalized:
                continue
            cached = await self.cache.get(normalized, provider)
            if cached is not None:
                raw[index] = cached
            else:
                pending.append((index, normalized))

        if pending:
            try:
                results = await self.classifier.classify_batch([t for _, t in pending])
                if len(results) != len(pending):
                    raise ValueError(
                        f"classify_batch returned {len(results)} results for {len(pending)} texts"
                    )
            except Exception as e:
                logger.warning(
                    "Batch sentiment classification failed",
                    extra={"provider": provider, "items": len(pending),
                           "error": str(e), "error_type": type(e).__name__},
                )
                results = []

            for (index, normalized), result in zip(pending, results):
                reading = reading_from_label(result)
                await self.cache.put(normalized, provider, reading)
                raw[index] = reading

        return [
            self.enhancer.enhance(text, reading) if reading is not None else None
            for text, reading in zip(texts, raw)
        ]

    def status(self) -> dict:
        return {
            "provider": self.classifier.name if self.classifier else None,
            "ready": self.is_ready,
            "loading": self.is_loading,
            "cache": self.cache.stats,
        }
