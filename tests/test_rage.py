"""
Rage Detector Tests

Covers:
  1. Rule-table matches (verbal aggression, threats, extreme anger)
  2. Structural detectors (caps lock, exclamation spam, profanity)
  3. Risk aggregation and bounds
  4. Determinism, ordering, malformed-rule containment
  5. Emotional-intensity analysis
"""

from __future__ import annotations

import pytest

from realitycheck.models import RageIndicator, RageType
from realitycheck.patterns import RuleConfig, RuleSet, default_rage_rules
from realitycheck.rage import RageDetector

SHOUTING = "I HATE YOU!!! YOU ARE SO STUPID!!!"


@pytest.fixture
def detector():
    return RageDetector()


def _types(indicators):
    return [i.type for i in indicators]


# ============================================================
# SCENARIO: SHOUTED INSULT
# ============================================================

class TestShoutedInsult:

    def test_verbal_aggression_detected(self, detector):
        indicators = detector.detect(SHOUTING)
        verbal = [i for i in indicators if i.type == RageType.VERBAL_AGGRESSION]
        assert len(verbal) >= 1
        matched = {i.matched_text.lower() for i in verbal}
        assert "hate" in matched
        assert "stupid" in matched

    def test_caps_lock_detected(self, detector):
        indicators = detector.detect(SHOUTING)
        caps = [i for i in indicators if i.type == RageType.CAPS_LOCK]
        assert len(caps) == 1
        # every letter is uppercase
        assert caps[0].intensity == 1.0

    def test_exclamation_spam_detected(self, detector):
        indicators = detector.detect(SHOUTING)
        spam = [i for i in indicators if i.type == RageType.EXCLAMATION_SPAM]
        assert len(spam) == 1
        # max run 3, two runs: 0.2*2 + 0.1*2
        assert spam[0].intensity == pytest.approx(0.6)

    def test_combined_risk_above_half(self, detector):
        risk = detector.calculate_rage_risk(detector.detect(SHOUTING))
        assert risk > 0.5
        assert risk == pytest.approx(0.875)


# ============================================================
# RULE TABLE
# ============================================================

class TestRuleMatches:

    def test_threat_language(self, detector):
        indicators = detector.detect("If you do that again I'll kill you, I swear.")
        threats = [i for i in indicators if i.type == RageType.THREAT_LANGUAGE]
        assert len(threats) == 1
        assert threats[0].intensity == pytest.approx(1.0)

    def test_repeated_matches_raise_intensity(self, detector):
        once = detector.detect("You are such an idiot sometimes.")
        thrice = detector.detect("idiot, idiot, what an idiot you are")
        assert once[0].intensity == pytest.approx(0.6)
        assert thrice[0].intensity == pytest.approx(0.8)

    def test_word_boundaries(self, detector):
        # "hell" inside "hello", "hate" inside "whatever"
        assert detector.detect("hello there, whatever works for you") == []

    def test_matched_text_appears_in_context(self, detector):
        text = "Honestly the whole thing makes me sick and I am fed up with it all."
        for indicator in detector.detect(text):
            if indicator.type == RageType.VERBAL_AGGRESSION:
                assert indicator.matched_text in indicator.context

    def test_context_is_bounded(self, detector):
        text = ("a" * 200) + " you are pathetic " + ("b" * 200)
        indicators = detector.detect(text)
        assert indicators
        assert all(len(i.context) <= 110 for i in indicators)

    def test_short_text_yields_nothing(self, detector):
        assert detector.detect("hate!!") == []
        assert detector.detect("   ") == []
        assert detector.detect("") == []


# ============================================================
# STRUCTURAL DETECTORS
# ============================================================

class TestStructural:

    def test_caps_needs_more_than_ten_letters(self, detector):
        assert RageType.CAPS_LOCK not in _types(detector.detect("STOP IT, now."))

    def test_caps_run_in_mostly_lowercase(self, detector):
        indicators = detector.detect("this is honestly UNBELIEVABLE behaviour from them")
        caps = [i for i in indicators if i.type == RageType.CAPS_LOCK]
        assert len(caps) == 1
        assert caps[0].matched_text == "UNBELIEVABLE"

    def test_single_exclamation_ignored(self, detector):
        assert RageType.EXCLAMATION_SPAM not in _types(detector.detect("What a lovely day it is!"))

    def test_profanity_aggregated(self, detector):
        indicators = detector.detect("damn this, wtf is going on, what the h*ll")
        profanity = [i for i in indicators if i.type == RageType.PROFANITY]
        assert len(profanity) == 1
        assert profanity[0].intensity == pytest.approx(0.9)
        assert "damn" in profanity[0].matched_text


# ============================================================
# RISK + BOUNDS
# ============================================================

class TestRisk:

    def test_empty_risk_is_zero(self, detector):
        assert detector.calculate_rage_risk([]) == 0.0

    def test_risk_clamped(self, detector):
        indicators = [
            RageIndicator(RageType.THREAT_LANGUAGE, 1.0, "kill", "kill"),
        ] * 5
        assert detector.calculate_rage_risk(indicators) == 1.0

    def test_indicator_intensity_clamped_at_construction(self):
        assert RageIndicator(RageType.PROFANITY, 3.0, "x", "x").intensity == 1.0
        assert RageIndicator(RageType.PROFANITY, -1.0, "x", "x").intensity == 0.0

    @pytest.mark.parametrize("text", [
        SHOUTING,
        "WTF WTF WTF damn damn crap!!!!!!!!!! I'LL KILL YOU, I'll destroy you, idiot idiot idiot",
        "A perfectly calm sentence about gardening and tea.",
    ])
    def test_everything_in_unit_range(self, detector, text):
        indicators = detector.detect(text)
        assert all(0.0 <= i.intensity <= 1.0 for i in indicators)
        assert 0.0 <= detector.calculate_rage_risk(indicators) <= 1.0


# ============================================================
# DETERMINISM + ORDERING
# ============================================================

class TestOrdering:

    def test_sorted_descending(self, detector):
        indicators = detector.detect(SHOUTING + " damn it, I'll kill you")
        intensities = [i.intensity for i in indicators]
        assert intensities == sorted(intensities, reverse=True)

    def test_deterministic(self, detector):
        text = SHOUTING + " get lost, wtf"
        assert detector.detect(text) == detector.detect(text)

    def test_disabled_rule_skipped(self):
        rules = default_rage_rules()
        detector = RageDetector(rules)
        assert any(i.type == RageType.THREAT_LANGUAGE for i in detector.detect("they should die for this"))
        rules.disable("threat_kill")
        assert not any(i.type == RageType.THREAT_LANGUAGE for i in detector.detect("they should die for this"))

    def test_malformed_rule_skipped(self, caplog):
        rules = RuleSet([
            RuleConfig("broken", r"(unclosed", 0.5, RageType.VERBAL_AGGRESSION),
            RuleConfig("ok", r"\bjerk\b", 0.5, RageType.VERBAL_AGGRESSION),
        ])
        detector = RageDetector(rules)
        indicators = detector.detect("you are a total jerk honestly")
        assert [i.matched_text for i in indicators] == ["jerk"]
        assert "malformed" in caplog.text.lower()


# ============================================================
# EMOTIONAL INTENSITY
# ============================================================

class TestEmotionalIntensity:

    def test_calm_text(self, detector):
        result = detector.analyze_emotional_intensity("The meeting is at noon.")
        assert result.intensity == 0.0
        assert result.indicators == []

    def test_intensity_cues(self, detector):
        result = detector.analyze_emotional_intensity(
            "This is absolutely, utterly ridiculous!!! really really really really"
        )
        assert "absolutely" in result.indicators
        assert "repetitive punctuation" in result.indicators
        assert 'repeated "really"' in result.indicators
        # 2 words * 0.1 + 1 run * 0.1 + 2 extra repeats * 0.05
        assert result.intensity == pytest.approx(0.4)
