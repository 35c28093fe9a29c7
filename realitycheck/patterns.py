"""
Pattern Library — Versioned Rule Tables

Defines the weighted regex rules the detectors run:
  1. Rage rules (verbal aggression, threat language, extreme anger)
  2. Profanity families (direct, censored, abbreviations)
  3. Cognitive-distortion rules (18 rules across 7 categories)

The tables below are immutable module constants. A detector never reads
them directly: it is constructed with a RuleSet built from them, and that
RuleSet is the only place runtime changes (enable, disable, add) happen.
Two detectors built from two RuleSets never see each other's toggles.

Distortion rules are written as subject clause + predicate clause keyword
clusters rather than single keywords, so an isolated word ("watching",
"special") does not fire on its own.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from functools import cached_property
from typing import Iterable, Optional, Union

from realitycheck.models import DistortionType, RageType

# --- Pattern version (stamped on health responses) ---
PATTERN_VERSION = "1.0.0"

RuleCategory = Union[DistortionType, RageType]


# ============================================================
# RULE CONFIG
# ============================================================

@dataclass
class RuleConfig:
    """
    A single weighted detection rule.

    `pattern` is matched case-insensitively. `enabled` is the only field
    meant to change after construction, and only through a RuleSet.
    """
    id: str
    pattern: str
    weight: float
    category: RuleCategory
    enabled: bool = True
    description: str = ""

    def __post_init__(self):
        if not self.id:
            raise ValueError("Rule id must be non-empty")
        if not (0.0 < self.weight <= 1.0):
            raise ValueError(
                f"Rule {self.id}: weight must be in (0, 1], got {self.weight}"
            )
        if not isinstance(self.category, (DistortionType, RageType)):
            raise ValueError(f"Rule {self.id}: unknown category {self.category!r}")

    @cached_property
    def compiled(self) -> re.Pattern:
        """Compiled matcher. Raises re.error for a malformed pattern."""
        return re.compile(self.pattern, re.IGNORECASE)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pattern": self.pattern,
            "weight": self.weight,
            "category": self.category.value,
            "enabled": self.enabled,
            "description": self.description,
        }


class RuleSet:
    """
    Ordered, runtime-mutable collection of rules owned by one detector.

    Readers get snapshots, so a toggle made during a detection call only
    affects the calls that start after it.
    """

    def __init__(self, rules: Iterable[RuleConfig] = ()):
        self._rules: list[RuleConfig] = []
        self._lock = threading.Lock()
        for rule in rules:
            self.add(rule)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self):
        return iter(self.snapshot())

    def snapshot(self) -> list[RuleConfig]:
        with self._lock:
            return list(self._rules)

    def enabled_rules(self) -> list[RuleConfig]:
        """Rules enabled as of this instant, in table order."""
        with self._lock:
            return [r for r in self._rules if r.enabled]

    def get(self, rule_id: str) -> Optional[RuleConfig]:
        with self._lock:
            for rule in self._rules:
                if rule.id == rule_id:
                    return rule
        return None

    def by_category(self, category: RuleCategory) -> list[RuleConfig]:
        return [r for r in self.snapshot() if r.category == category]

    def add(self, rule: RuleConfig) -> None:
        """Append a rule. Existing rules keep their position."""
        with self._lock:
            if any(r.id == rule.id for r in self._rules):
                raise ValueError(f"Duplicate rule id: {rule.id}")
            self._rules.append(rule)

    def set_enabled(self, rule_id: str, enabled: bool) -> bool:
        """Toggle a rule. Returns False if no rule has that id."""
        with self._lock:
            for rule in self._rules:
                if rule.id == rule_id:
                    rule.enabled = enabled
                    return True
        return False

    def enable(self, rule_id: str) -> bool:
        return self.set_enabled(rule_id, True)

    def disable(self, rule_id: str) -> bool:
        return self.set_enabled(rule_id, False)


# ============================================================
# RAGE RULES
# ============================================================

@dataclass(frozen=True)
class _RuleDef:
    id: str
    pattern: str
    weight: float
    category: RuleCategory
    description: str = ""

    def build(self) -> RuleConfig:
        return RuleConfig(
            id=self.id,
            pattern=self.pattern,
            weight=self.weight,
            category=self.category,
            description=self.description,
        )


RAGE_RULES: tuple[_RuleDef, ...] = (
    # --- Verbal aggression ---
    _RuleDef(
        id="verbal_hate",
        pattern=r"\b(?:hate|despise|loathe|detest|can't stand|disgusts? me|makes? me sick)\b",
        weight=0.7,
        category=RageType.VERBAL_AGGRESSION,
        description="Expressions of hatred or disgust",
    ),
    _RuleDef(
        id="verbal_insult",
        pattern=r"\b(?:idiots?|morons?|stupid|dumb|pathetic|worthless|garbage|trash)\b",
        weight=0.6,
        category=RageType.VERBAL_AGGRESSION,
        description="Insults and name-calling",
    ),
    _RuleDef(
        id="verbal_dismissal",
        pattern=r"\b(?:shut up|shut the hell up|get lost|go away|leave me alone)\b",
        weight=0.5,
        category=RageType.VERBAL_AGGRESSION,
        description="Hostile dismissals",
    ),

    # --- Threat language ---
    _RuleDef(
        id="threat_kill",
        pattern=r"\b(?:i'll kill|gonna kill|want to kill|should die|deserve to die)\b",
        weight=1.0,
        category=RageType.THREAT_LANGUAGE,
        description="Lethal threats",
    ),
    _RuleDef(
        id="threat_destroy",
        pattern=r"\b(?:i'll destroy|gonna destroy|wipe out|eliminate|get rid of)\b",
        weight=0.9,
        category=RageType.THREAT_LANGUAGE,
        description="Threats of destruction or removal",
    ),
    _RuleDef(
        id="threat_pursuit",
        pattern=r"\b(?:hunt down|track down|come after|find you|get you)\b",
        weight=0.8,
        category=RageType.THREAT_LANGUAGE,
        description="Threats of pursuit",
    ),

    # --- Extreme anger phrasing ---
    _RuleDef(
        id="anger_extreme",
        pattern=r"\b(?:furious|enraged|livid|seething|boiling|exploding with rage)\b",
        weight=0.8,
        category=RageType.VERBAL_AGGRESSION,
        description="Extreme anger vocabulary",
    ),
    _RuleDef(
        id="anger_fed_up",
        pattern=r"\b(?:so angry|pissed off|fed up|had enough|can't take it)\b",
        weight=0.6,
        category=RageType.VERBAL_AGGRESSION,
        description="Exasperation phrasing",
    ),
)

# Profanity families, counted together into one aggregated indicator
PROFANITY_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"\b(?:damn|hell|crap|sucks|bullsh\*t|bs)\b", re.IGNORECASE),
    re.compile(r"\b(?:f\*ck|sh\*t|d\*mn|h\*ll)(?!\w)", re.IGNORECASE),
    re.compile(r"\b(?:wtf|stfu|gtfo|fml)\b", re.IGNORECASE),
)


# ============================================================
# DISTORTION RULES
# ============================================================

DISTORTION_RULES: tuple[_RuleDef, ...] = (
    # --- Persecution ---
    _RuleDef(
        id="persecution_watching",
        pattern=r"\b(?:they|everyone|people)\b.*\b(?:watching|monitoring|tracking|following|stalking)\b.*\b(?:me|us)\b",
        weight=0.8,
        category=DistortionType.PERSECUTION,
        description="Belief of being watched or tracked",
    ),
    _RuleDef(
        id="persecution_targeting",
        pattern=r"\b(?:they|everyone)\b.*\b(?:targeting|after|coming for|out to get)\b.*\b(?:me|us)\b",
        weight=0.9,
        category=DistortionType.PERSECUTION,
        description="Belief of being targeted",
    ),
    _RuleDef(
        id="persecution_control",
        pattern=r"\b(?:they|government|system)\b.*\b(?:controlling|manipulating|brainwashing)\b.*\b(?:me|us|people)\b",
        weight=0.7,
        category=DistortionType.PERSECUTION,
        description="Belief of being controlled",
    ),

    # --- Conspiracy ---
    _RuleDef(
        id="conspiracy_deep_state",
        pattern=r"\b(?:deep state|shadow government|cabal|elites)\b.*\b(?:control|run|manipulate)",
        weight=0.6,
        category=DistortionType.CONSPIRACY,
        description="Hidden power structures running events",
    ),
    _RuleDef(
        id="conspiracy_planned",
        pattern=r"\b(?:all planned|orchestrated|coordinated)\b.*\b(?:by|from)\b.*\b(?:them|elites|government)\b",
        weight=0.7,
        category=DistortionType.CONSPIRACY,
        description="Events framed as deliberately orchestrated",
    ),
    _RuleDef(
        id="conspiracy_sheep",
        pattern=r"\b(?:sheep|sheeple|wake up|open your eyes)\b.*\b(?:truth|reality|what.*really)\b",
        weight=0.5,
        category=DistortionType.CONSPIRACY,
        description="Awakening / sheeple framing",
    ),

    # --- Grandiosity ---
    _RuleDef(
        id="grandiosity_chosen",
        pattern=r"\b(?:i am|i'm)\b.*\b(?:chosen|special|enlightened|awakened|above)\b",
        weight=0.6,
        category=DistortionType.GRANDIOSITY,
        description="Self as chosen or awakened",
    ),
    _RuleDef(
        id="grandiosity_superior",
        pattern=r"\b(?:i|me)\b.*\b(?:superior|better than|above)\b.*\b(?:everyone|most people|them)\b",
        weight=0.7,
        category=DistortionType.GRANDIOSITY,
        description="Self as superior to others",
    ),
    _RuleDef(
        id="grandiosity_genius",
        pattern=r"\b(?:i am|i'm)\b.*\b(?:genius|brilliant|extraordinary|gifted)\b",
        weight=0.4,
        category=DistortionType.GRANDIOSITY,
        description="Self as exceptionally gifted",
    ),

    # --- Catastrophizing ---
    _RuleDef(
        id="catastrophizing_end",
        pattern=r"\b(?:end of|collapse|destruction|apocalypse|doom)\b.*\b(?:world|society|everything)\b",
        weight=0.6,
        category=DistortionType.CATASTROPHIZING,
        description="End-of-the-world framing",
    ),
    _RuleDef(
        id="catastrophizing_disaster",
        pattern=r"\b(?:disaster|catastrophe|crisis|emergency)\b.*\b(?:coming|approaching|inevitable)\b",
        weight=0.7,
        category=DistortionType.CATASTROPHIZING,
        description="Imminent disaster framing",
    ),
    _RuleDef(
        id="catastrophizing_worst",
        pattern=r"\b(?:worst|terrible|horrible|awful)\b.*\b(?:ever|possible|imaginable)\b",
        weight=0.5,
        category=DistortionType.CATASTROPHIZING,
        description="Worst-case superlatives",
    ),

    # --- All-or-nothing ---
    _RuleDef(
        id="all_or_nothing_always",
        pattern=r"\b(?:always|never|everyone|no one|everything|nothing)\b.*\b(?:does|is|will)\b",
        weight=0.4,
        category=DistortionType.ALL_OR_NOTHING,
        description="Absolute quantifiers",
    ),
    _RuleDef(
        id="all_or_nothing_perfect",
        pattern=r"\b(?:perfect|complete|total|absolute)\b.*\b(?:failure|success|disaster|victory)\b",
        weight=0.5,
        category=DistortionType.ALL_OR_NOTHING,
        description="Perfect-or-failure framing",
    ),

    # --- Mind reading ---
    _RuleDef(
        id="mind_reading_think",
        pattern=r"\b(?:they|everyone|people)\b.*\b(?:think|believe|know)\b.*\b(?:i am|i'm|about me)\b",
        weight=0.6,
        category=DistortionType.MIND_READING,
        description="Assumed knowledge of others' opinions",
    ),
    _RuleDef(
        id="mind_reading_judging",
        pattern=r"\b(?:they|everyone)\b.*\b(?:judging|laughing at|looking down on)\b.*\b(?:me|us)\b",
        weight=0.7,
        category=DistortionType.MIND_READING,
        description="Assumed judgement by others",
    ),

    # --- Fortune telling ---
    _RuleDef(
        id="fortune_telling_will",
        pattern=r"\b(?:this will|it will|they will)\b.*\b(?:destroy|ruin|end|fail)\b",
        weight=0.5,
        category=DistortionType.FORTUNE_TELLING,
        description="Confident negative predictions",
    ),
    _RuleDef(
        id="fortune_telling_never",
        pattern=r"\b(?:i will never|it will never|nothing will ever)\b.*\b(?:work|succeed|get better)\b",
        weight=0.6,
        category=DistortionType.FORTUNE_TELLING,
        description="Predictions of permanent failure",
    ),
)


def default_rage_rules() -> RuleSet:
    """Fresh RuleSet holding the rage table."""
    return RuleSet(rule.build() for rule in RAGE_RULES)


def default_distortion_rules() -> RuleSet:
    """Fresh RuleSet holding the distortion table."""
    return RuleSet(rule.build() for rule in DISTORTION_RULES)
