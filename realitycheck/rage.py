"""
Rage Detector — Aggressive Language Signals

Deterministic, rule-based. Zero API cost.

Runs three layers over a text:
  1. Rule table (verbal aggression, threat language, extreme anger)
  2. Structural detectors that always run: caps lock, exclamation spam
  3. Profanity families, aggregated into a single indicator

Layers are additive: one phrase can raise several indicator types.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Sequence

from realitycheck.models import (
    RageIndicator,
    RageType,
    clamp,
    clip,
    extract_context,
    is_analyzable,
)
from realitycheck.patterns import PROFANITY_PATTERNS, RuleSet, default_rage_rules

logger = logging.getLogger(__name__)

# Snippet padding either side of a match
CONTEXT_PADDING = 30

# Risk weight per indicator type
RAGE_TYPE_WEIGHTS: dict[RageType, float] = {
    RageType.THREAT_LANGUAGE: 1.0,
    RageType.VERBAL_AGGRESSION: 0.9,
    RageType.PROFANITY: 0.6,
    RageType.CAPS_LOCK: 0.4,
    RageType.EXCLAMATION_SPAM: 0.3,
}
_DEFAULT_TYPE_WEIGHT = 0.5

# Damping so one maximal indicator does not saturate risk
_RISK_DAMPING = 2.0

INTENSITY_WORDS = (
    "extremely", "incredibly", "absolutely", "completely", "totally",
    "utterly", "ridiculously", "insanely", "massively", "hugely",
)

_LETTERS = re.compile(r"[A-Za-z]")
_CAPITALS = re.compile(r"[A-Z]")
_CAPS_RUN = re.compile(r"[A-Z]{3,}")
_EXCLAMATION_RUN = re.compile(r"!+")
_REPEATED_PUNCTUATION = re.compile(r"([.!?])\1{2,}")


@dataclass(frozen=True)
class EmotionalIntensity:
    """Lexical intensity reading: a score plus the cues that produced it."""
    intensity: float
    indicators: list[str] = field(default_factory=list)


class RageDetector:
    """
    Scans text for aggressive or threatening language.

    The detector owns its RuleSet; pass one in to share toggles with a
    caller, or let it build a fresh copy of the default table.
    """

    def __init__(self, rules: Optional[RuleSet] = None):
        self.rules = rules if rules is not None else default_rage_rules()

    def detect(self, text: str) -> list[RageIndicator]:
        """Return rage indicators for `text`, highest intensity first."""
        if not is_analyzable(text):
            return []

        indicators: list[RageIndicator] = []

        for rule in self.rules.enabled_rules():
            try:
                found = [m.group(0) for m in rule.compiled.finditer(text) if m.group(0)]
            except re.error as e:
                logger.warning(
                    "Skipping malformed rage rule",
                    extra={"rule_id": rule.id, "error": str(e)},
                )
                continue
            if not found:
                continue
            indicators.append(RageIndicator(
                type=rule.category,
                intensity=min(1.0, rule.weight + 0.1 * (len(found) - 1)),
                matched_text=clip(found[0]),
                context=extract_context(text, found[0], CONTEXT_PADDING),
            ))

        for structural in (
            self._detect_caps_lock(text),
            self._detect_exclamation_spam(text),
            self._detect_profanity(text),
        ):
            if structural is not None:
                indicators.append(structural)

        # sorted() is stable: equal intensities keep detection order
        return sorted(indicators, key=lambda i: i.intensity, reverse=True)

    def calculate_rage_risk(self, indicators: Sequence[RageIndicator]) -> float:
        """Weighted, damped sum of indicator intensities in [0, 1]."""
        if not indicators:
            return 0.0
        total = sum(
            i.intensity * RAGE_TYPE_WEIGHTS.get(i.type, _DEFAULT_TYPE_WEIGHT)
            for i in indicators
        )
        return clamp(total / _RISK_DAMPING)

    # --- Structural detectors ---

    def _detect_caps_lock(self, text: str) -> Optional[RageIndicator]:
        letters = _LETTERS.findall(text)
        if len(letters) <= 10:
            return None
        capitals = _CAPITALS.findall(text)
        if not capitals:
            return None

        caps_ratio = len(capitals) / len(letters)
        runs = _CAPS_RUN.findall(text)
        if caps_ratio <= 0.5 and not runs:
            return None

        anchor = runs[0] if runs else capitals[0]
        return RageIndicator(
            type=RageType.CAPS_LOCK,
            intensity=min(1.0, caps_ratio + 0.2 * len(runs)),
            matched_text=clip(", ".join(runs)) or "excessive caps",
            context=extract_context(text, anchor, CONTEXT_PADDING),
        )

    def _detect_exclamation_spam(self, text: str) -> Optional[RageIndicator]:
        runs = [r for r in _EXCLAMATION_RUN.findall(text) if len(r) > 1]
        if not runs:
            return None

        max_run = max(len(r) for r in runs)
        return RageIndicator(
            type=RageType.EXCLAMATION_SPAM,
            intensity=min(1.0, 0.2 * (max_run - 1) + 0.1 * len(runs)),
            matched_text=clip(", ".join(runs)),
            context=extract_context(text, runs[0], CONTEXT_PADDING),
        )

    def _detect_profanity(self, text: str) -> Optional[RageIndicator]:
        found: list[str] = []
        for pattern in PROFANITY_PATTERNS:
            found.extend(m.group(0) for m in pattern.finditer(text))
        if not found:
            return None

        return RageIndicator(
            type=RageType.PROFANITY,
            intensity=min(1.0, 0.3 * len(found)),
            matched_text=clip(", ".join(found)),
            context=extract_context(text, found[0], CONTEXT_PADDING),
        )

    # --- Supplementary analysis ---

    def analyze_emotional_intensity(self, text: str) -> EmotionalIntensity:
        """
        Score lexical intensity cues independent of the rule table.

        Intensity words add 0.1 each, runs of three or more repeated
        terminal punctuation marks add 0.1 each, and words longer than
        three characters repeated more than twice add 0.05 per extra use.
        """
        cues: list[str] = []
        intensity = 0.0
        lower = text.lower()

        for word in INTENSITY_WORDS:
            if word in lower:
                intensity += 0.1
                cues.append(word)

        repeated = [m.group(0) for m in _REPEATED_PUNCTUATION.finditer(text)]
        if repeated:
            intensity += 0.1 * len(repeated)
            cues.append("repetitive punctuation")

        counts: dict[str, int] = {}
        for word in lower.split():
            if len(word) > 3:
                counts[word] = counts.get(word, 0) + 1
        for word, count in counts.items():
            if count > 2:
                intensity += (count - 2) * 0.05
                cues.append(f'repeated "{word}"')

        return EmotionalIntensity(intensity=clamp(intensity), indicators=cues)
