"""
Risk Scorer

Turns an AnalysisRecord into a single bounded risk score and a
human-readable summary. Pure functions of the record: nothing here
touches the classifier or any mutable state beyond the detectors'
rule tables.

Weights:
    sentiment   0.3   max(0, (-valence + arousal) / 2)
    distortion  0.4   re-detected over the joined distortion contexts
    rage        0.3   weighted indicator intensities
"""

from __future__ import annotations

from dataclasses import dataclass, field

from realitycheck.distortion import DistortionDetector
from realitycheck.models import AnalysisRecord, clamp
from realitycheck.rage import RageDetector

SENTIMENT_WEIGHT = 0.3
DISTORTION_WEIGHT = 0.4
RAGE_WEIGHT = 0.3

HIGH_RISK_THRESHOLD = 0.7
MEDIUM_RISK_THRESHOLD = 0.4

RECOMMENDATIONS: dict[str, list[str]] = {
    "high": [
        "Consider taking a break from this content",
        "Practice mindfulness or grounding techniques",
    ],
    "medium": [
        "Be mindful of your emotional state",
        "Consider diversifying your content consumption",
    ],
    "low": [],
}


@dataclass
class AnalysisSummary:
    """Human-readable digest of one record."""
    sentiment_category: str
    risk_level: str
    risk_score: float
    primary_concerns: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "sentiment_category": self.sentiment_category,
            "risk_level": self.risk_level,
            "risk_score": round(self.risk_score, 4),
            "primary_concerns": list(self.primary_concerns),
            "recommendations": list(self.recommendations),
        }


def sentiment_risk(record: AnalysisRecord) -> float:
    s = record.sentiment
    return max(0.0, (-s.valence + s.arousal) / 2)


def calculate_risk_score(
    record: AnalysisRecord,
    distortion_detector: DistortionDetector,
    rage_detector: RageDetector,
) -> float:
    """Weighted risk in [0, 1]."""
    distortion_text = " ".join(d.context for d in record.distortions)
    score = (
        SENTIMENT_WEIGHT * sentiment_risk(record)
        + DISTORTION_WEIGHT * distortion_detector.calculate_distortion_risk(distortion_text)
        + RAGE_WEIGHT * rage_detector.calculate_rage_risk(record.rage_indicators)
    )
    return clamp(score)


def risk_level(score: float) -> str:
    if score > HIGH_RISK_THRESHOLD:
        return "high"
    if score > MEDIUM_RISK_THRESHOLD:
        return "medium"
    return "low"


def sentiment_category(record: AnalysisRecord) -> str:
    valence = record.sentiment.valence
    if valence > 0.3:
        category = "positive"
    elif valence < -0.3:
        category = "negative"
    else:
        category = "neutral"
    if record.sentiment.arousal > 0.6:
        category += " high-arousal"
    return category


def get_analysis_summary(
    record: AnalysisRecord,
    distortion_detector: DistortionDetector,
    rage_detector: RageDetector,
) -> AnalysisSummary:
    score = calculate_risk_score(record, distortion_detector, rage_detector)
    level = risk_level(score)

    concerns: list[str] = []
    if record.distortions:
        top = max(record.distortions, key=lambda d: d.severity)
        concerns.append(f"{top.type.value} thinking patterns")
    if record.rage_indicators:
        concerns.append("aggressive language patterns")
    if record.sentiment.arousal > 0.8:
        concerns.append("high emotional intensity")

    return AnalysisSummary(
        sentiment_category=sentiment_category(record),
        risk_level=level,
        risk_score=score,
        primary_concerns=concerns,
        recommendations=list(RECOMMENDATIONS[level]),
    )


def fuse_risk(text_risk: float, scroll_intensity: float, scroll_weight: float = 0.2) -> float:
    """Blend text risk with rage-scroll intensity."""
    w = clamp(scroll_weight)
    return clamp((1.0 - w) * clamp(text_risk) + w * clamp(scroll_intensity))
