"""
Distortion Detector — Cognitive Distortion Signals

Deterministic, rule-based. Zero API cost.

Scans text against the distortion RuleSet (18 rules across 7 categories)
and scores each matching rule by its weight plus a capped frequency bonus.
Rules can be enabled, disabled or added at runtime; changes apply to the
next detection call, never to one already running.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from realitycheck.models import (
    DistortionIndicator,
    DistortionType,
    clamp,
    clip,
    extract_context,
    is_analyzable,
)
from realitycheck.patterns import RuleConfig, RuleSet, default_distortion_rules

logger = logging.getLogger(__name__)

CONTEXT_PADDING = 50

# Repetition bonus is capped so frequency never outweighs the rule itself
_MAX_FREQUENCY_BONUS = 0.5

# Risk weight per category
DISTORTION_TYPE_WEIGHTS: dict[DistortionType, float] = {
    DistortionType.PERSECUTION: 0.9,
    DistortionType.CONSPIRACY: 0.8,
    DistortionType.CATASTROPHIZING: 0.7,
    DistortionType.GRANDIOSITY: 0.6,
    DistortionType.MIND_READING: 0.6,
    DistortionType.ALL_OR_NOTHING: 0.5,
    DistortionType.FORTUNE_TELLING: 0.5,
}


@dataclass(frozen=True)
class DistortionSummary:
    """Roll-up of a list of distortion indicators."""
    total_severity: float
    most_severe_type: Optional[DistortionType]
    type_count: dict[DistortionType, int]

    def to_dict(self) -> dict:
        return {
            "total_severity": round(self.total_severity, 4),
            "most_severe_type": (
                self.most_severe_type.value if self.most_severe_type else None
            ),
            "type_count": {t.value: n for t, n in self.type_count.items()},
        }


class DistortionDetector:
    """Scans text for cognitive-distortion language."""

    def __init__(self, rules: Optional[RuleSet] = None):
        self.rules = rules if rules is not None else default_distortion_rules()

    def detect(self, text: str) -> list[DistortionIndicator]:
        """Return distortion indicators for `text`, most severe first."""
        if not is_analyzable(text):
            return []

        distortions: list[DistortionIndicator] = []
        for rule in self.rules.enabled_rules():
            matches = self._match_rule(text, rule)
            if matches:
                distortions.append(self._build_indicator(text, rule, matches))

        return sorted(distortions, key=lambda d: d.severity, reverse=True)

    def get_distortion_summary(
        self, distortions: Sequence[DistortionIndicator]
    ) -> DistortionSummary:
        """
        Summarize indicators. The count map always lists all seven
        categories, zero-filled where nothing matched.
        """
        type_count = {t: 0 for t in DistortionType}
        total = 0.0
        most_severe: Optional[DistortionType] = None
        max_severity = 0.0

        for d in distortions:
            total += d.severity
            type_count[d.type] += 1
            if d.severity > max_severity:
                max_severity = d.severity
                most_severe = d.type

        return DistortionSummary(
            total_severity=clamp(total),
            most_severe_type=most_severe,
            type_count=type_count,
        )

    def calculate_distortion_risk(self, text: str) -> float:
        """Category-weighted count term plus half the total severity, in [0, 1]."""
        summary = self.get_distortion_summary(self.detect(text))

        weighted = sum(
            count * DISTORTION_TYPE_WEIGHTS.get(category, 0.5) * 0.1
            for category, count in summary.type_count.items()
        )
        return clamp(weighted + summary.total_severity * 0.5)

    # --- Rule management ---

    def get_rules(self) -> list[RuleConfig]:
        return self.rules.snapshot()

    def get_rules_by_category(self, category: DistortionType) -> list[RuleConfig]:
        return self.rules.by_category(category)

    def add_rule(self, rule: RuleConfig) -> None:
        if not isinstance(rule.category, DistortionType):
            raise ValueError(
                f"Rule {rule.id}: distortion rules need a DistortionType category"
            )
        self.rules.add(rule)

    def enable_rule(self, rule_id: str) -> bool:
        return self.rules.enable(rule_id)

    def disable_rule(self, rule_id: str) -> bool:
        return self.rules.disable(rule_id)

    # --- Internals ---

    def _match_rule(self, text: str, rule: RuleConfig) -> list[str]:
        try:
            return [m.group(0) for m in rule.compiled.finditer(text) if m.group(0)]
        except re.error as e:
            logger.warning(
                "Skipping malformed distortion rule",
                extra={"rule_id": rule.id, "error": str(e)},
            )
            return []

    def _build_indicator(
        self, text: str, rule: RuleConfig, matches: list[str]
    ) -> DistortionIndicator:
        bonus = min(0.1 * (len(matches) - 1), _MAX_FREQUENCY_BONUS)
        return DistortionIndicator(
            type=rule.category,
            severity=min(1.0, rule.weight + bonus),
            matched_text=clip(matches[0]),
            context=extract_context(text, matches[0], CONTEXT_PADDING),
            keywords=tuple(clip(m.lower().strip()) for m in matches),
            rule_id=rule.id,
        )
