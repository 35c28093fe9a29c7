"""
Analysis Pipeline — Per-Item Fan-Out and Aggregation

Runs the three analyzers over each content item concurrently and merges
their output into one AnalysisRecord:

  1. SentimentScorer   (async, classifier-backed, may be unavailable)
  2. DistortionDetector (sync, rule-based, run in a worker thread)
  3. RageDetector       (sync, rule-based, run in a worker thread)

Failures are contained: a detector error becomes an empty result, an
unavailable sentiment becomes the zero reading, and a failing batch item
becomes a None slot without touching its neighbours.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Union

from realitycheck import scorer
from realitycheck.config import settings
from realitycheck.distortion import DistortionDetector
from realitycheck.models import (
    AnalysisRecord,
    ContentItem,
    DistortionIndicator,
    RageIndicator,
    SentimentReading,
    is_analyzable,
)
from realitycheck.rage import RageDetector
from realitycheck.sentiment import SentimentScorer

logger = logging.getLogger(__name__)

ContentInput = Union[ContentItem, str]

# Marks "no reading supplied" (None means "no reading available")
_UNSCORED = object()


@dataclass(frozen=True)
class PipelineStatus:
    initialized: bool
    sentiment_ready: bool
    distortion_ready: bool
    rage_ready: bool
    degraded: bool

    def to_dict(self) -> dict:
        return {
            "initialized": self.initialized,
            "sentiment_ready": self.sentiment_ready,
            "distortion_ready": self.distortion_ready,
            "rage_ready": self.rage_ready,
            "degraded": self.degraded,
        }


def _text_of(item: ContentInput) -> str:
    return item.text if isinstance(item, ContentItem) else (item or "")


class AnalysisPipeline:
    """
    Orchestrates sentiment, distortion and rage analysis.

    Construct with explicit collaborators in tests; the defaults build a
    scorer with no classifier (rule-based analysis only).
    """

    def __init__(
        self,
        sentiment: Optional[SentimentScorer] = None,
        distortion_detector: Optional[DistortionDetector] = None,
        rage_detector: Optional[RageDetector] = None,
    ):
        self.sentiment = sentiment if sentiment is not None else SentimentScorer()
        self.distortion_detector = distortion_detector or DistortionDetector()
        self.rage_detector = rage_detector or RageDetector()
        self._initialized = False
        self._init_lock = asyncio.Lock()
        self._load_task: Optional[asyncio.Task] = None

    # ============================================================
    # LIFECYCLE
    # ============================================================

    async def initialize(
        self,
        max_attempts: Optional[int] = None,
        interval: Optional[float] = None,
    ) -> PipelineStatus:
        """
        Start classifier loading and wait a bounded time for it.

        Polls readiness up to `max_attempts` times, `interval` seconds
        apart, and stops early once loading has finished either way.
        A classifier that is still not ready leaves the pipeline
        degraded (rule-based only) rather than failing.
        """
        max_attempts = settings.INIT_ATTEMPTS if max_attempts is None else max_attempts
        interval = settings.INIT_INTERVAL if interval is None else interval

        async with self._init_lock:
            if self._initialized:
                return self.status()

            logger.info("Initializing analysis pipeline")
            self._load_task = asyncio.create_task(self.sentiment.start_loading())
            # Let a load that needs no I/O finish before the first poll
            await asyncio.sleep(0)

            attempts = 0
            while attempts < max_attempts:
                if self.sentiment.is_ready or self._load_task.done():
                    break
                await asyncio.sleep(interval)
                attempts += 1

            self._initialized = True

            if self.sentiment.is_ready:
                logger.info("Analysis pipeline ready", extra={"attempts": attempts})
            else:
                logger.warning(
                    "Sentiment classifier not ready, continuing without it",
                    extra={"attempts": attempts},
                )
            return self.status()

    def status(self) -> PipelineStatus:
        sentiment_ready = self.sentiment.is_ready
        return PipelineStatus(
            initialized=self._initialized,
            sentiment_ready=sentiment_ready,
            distortion_ready=True,
            rage_ready=True,
            degraded=self._initialized and not sentiment_ready,
        )

    # ============================================================
    # ANALYSIS
    # ============================================================

    async def analyze_content(self, item: ContentInput) -> Optional[AnalysisRecord]:
        """Analyze one item. Returns None only if analysis itself breaks."""
        if not self._initialized:
            await self.initialize()

        try:
            record, _ = await self._analyze(_text_of(item))
        except Exception as e:
            logger.error(
                "Content analysis failed",
                extra={"error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            return None

        logger.debug(
            "Content analyzed",
            extra={"duration_ms": round(record.processing_time_ms, 3)},
        )
        return record

    async def analyze_batch(
        self, items: Sequence[ContentInput],
    ) -> list[Optional[AnalysisRecord]]:
        """
        Analyze several items concurrently. Output is index-aligned.

        An item with no sentiment, no distortions and no rage indicators
        has nothing to report and yields None, as does an item whose
        analysis failed.
        """
        if not items:
            return []
        if not self._initialized:
            await self.initialize()

        texts = [_text_of(item) for item in items]
        readings = await self._score_sentiments(texts)
        outcomes = await asyncio.gather(
            *[self._analyze(text, reading) for text, reading in zip(texts, readings)],
            return_exceptions=True,
        )

        results: list[Optional[AnalysisRecord]] = []
        for index, outcome in enumerate(outcomes):
            if isinstance(outcome, BaseException):
                logger.error(
                    "Batch item analysis failed",
                    extra={"item_index": index, "error": str(outcome),
                           "error_type": type(outcome).__name__},
                    exc_info=outcome,
                )
                results.append(None)
                continue

            record, has_sentiment = outcome
            if not has_sentiment and not record.distortions and not record.rage_indicators:
                results.append(None)
            else:
                results.append(record)

        logger.info(
            "Batch analyzed",
            extra={"items": len(items),
                   "analyzed": sum(1 for r in results if r is not None)},
        )
        return results

    async def _analyze(
        self, text: str, sentiment: object = _UNSCORED,
    ) -> tuple[AnalysisRecord, bool]:
        """Run the detectors; score sentiment too unless a reading was passed in."""
        start = time.perf_counter()

        detectors = (
            self._run_detector("distortion", self.distortion_detector.detect, text),
            self._run_detector("rage", self.rage_detector.detect, text),
        )
        if sentiment is _UNSCORED:
            sentiment, distortions, rage_indicators = await asyncio.gather(
                self._score_sentiment(text), *detectors,
            )
        else:
            distortions, rage_indicators = await asyncio.gather(*detectors)

        record = AnalysisRecord(
            sentiment=sentiment if sentiment is not None else SentimentReading.zero(),
            distortions=distortions,
            rage_indicators=rage_indicators,
            confidence=self._calculate_confidence(sentiment, distortions, rage_indicators),
            processing_time_ms=(time.perf_counter() - start) * 1000,
        )
        return record, sentiment is not None

    async def _score_sentiment(self, text: str) -> Optional[SentimentReading]:
        if not is_analyzable(text):
            return None
        return await self.sentiment.score(text)

    async def _score_sentiments(self, texts: Sequence[str]) -> list[Optional[SentimentReading]]:
        """One batched classifier pass over the analyzable texts, index-aligned."""
        readings: list[Optional[SentimentReading]] = [None] * len(texts)
        indices = [i for i, text in enumerate(texts) if is_analyzable(text)]
        if indices:
            scored = await self.sentiment.score_batch([texts[i] for i in indices])
            for i, reading in zip(indices, scored):
                readings[i] = reading
        return readings

    async def _run_detector(self, name: str, detect: Callable[[str], list], text: str) -> list:
        try:
            return await asyncio.to_thread(detect, text)
        except Exception as e:
            logger.warning(
                "%s detector failed, treating as no indicators", name,
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            return []

    @staticmethod
    def _calculate_confidence(
        sentiment: Optional[SentimentReading],
        distortions: Sequence[DistortionIndicator],
        rage_indicators: Sequence[RageIndicator],
    ) -> float:
        """Unweighted mean of whichever evidence factors are present."""
        factors: list[float] = []

        if sentiment is not None and sentiment.confidence > 0:
            factors.append(sentiment.confidence)
        if distortions:
            mean_severity = sum(d.severity for d in distortions) / len(distortions)
            factors.append(min(1.0, 0.2 * len(distortions) + mean_severity))
        if rage_indicators:
            mean_intensity = sum(r.intensity for r in rage_indicators) / len(rage_indicators)
            factors.append(min(1.0, 0.2 * len(rage_indicators) + mean_intensity))

        return sum(factors) / len(factors) if factors else 0.0

    # ============================================================
    # AGGREGATION + SCORING
    # ============================================================

    def aggregate_analyses(self, records: Sequence[AnalysisRecord]) -> AnalysisRecord:
        """Fold several records into one. Empty input gives the zero record."""
        if not records:
            return AnalysisRecord.empty()

        n = len(records)
        sentiment = SentimentReading(
            valence=sum(r.sentiment.valence for r in records) / n,
            arousal=sum(r.sentiment.arousal for r in records) / n,
            confidence=sum(r.sentiment.confidence for r in records) / n,
        )
        return AnalysisRecord(
            sentiment=sentiment,
            # concatenated, then re-sorted so the strongest indicator leads
            distortions=sorted(
                (d for r in records for d in r.distortions),
                key=lambda d: d.severity, reverse=True,
            ),
            rage_indicators=sorted(
                (i for r in records for i in r.rage_indicators),
                key=lambda i: i.intensity, reverse=True,
            ),
            confidence=sum(r.confidence for r in records) / n,
            processing_time_ms=sum(r.processing_time_ms for r in records),
        )

    def calculate_risk_score(self, record: AnalysisRecord) -> float:
        return scorer.calculate_risk_score(
            record, self.distortion_detector, self.rage_detector,
        )

    def get_analysis_summary(self, record: AnalysisRecord) -> scorer.AnalysisSummary:
        return scorer.get_analysis_summary(
            record, self.distortion_detector, self.rage_detector,
        )
