"""
Distortion Detector Tests

Covers:
  1. Category detection (persecution scenario, conspiracy, grandiosity)
  2. Severity frequency bonus and its cap
  3. Summary (all seven categories always present)
  4. Risk calculation
  5. Rule management (enable, disable, add, isolation between detectors)
"""

from __future__ import annotations

import pytest

from realitycheck.distortion import DistortionDetector
from realitycheck.models import DistortionIndicator, DistortionType, RageType
from realitycheck.patterns import RuleConfig, RuleSet

WATCHED = "they are all watching me and tracking everything I do"


@pytest.fixture
def detector():
    return DistortionDetector()


# ============================================================
# DETECTION
# ============================================================

class TestDetection:

    def test_persecution_scenario(self, detector):
        indicators = detector.detect(WATCHED)
        assert len(indicators) == 1
        assert indicators[0].type == DistortionType.PERSECUTION
        assert indicators[0].severity >= 0.8
        assert indicators[0].rule_id == "persecution_watching"

    def test_persecution_context_holds_match(self, detector):
        d = detector.detect(WATCHED)[0]
        assert d.matched_text in d.context
        assert d.keywords == (d.matched_text.lower(),)

    def test_conspiracy(self, detector):
        indicators = detector.detect("The deep state elites control the media, wake up")
        assert [d.type for d in indicators] == [DistortionType.CONSPIRACY]
        assert indicators[0].severity == pytest.approx(0.6)

    def test_isolated_keyword_does_not_fire(self, detector):
        assert detector.detect("The birds are watching the feeder in the garden.") == []

    def test_repeated_matches_add_bonus(self, detector):
        text = "I'm brilliant\nI'm brilliant\nI'm brilliant"
        indicators = detector.detect(text)
        genius = [d for d in indicators if d.rule_id == "grandiosity_genius"]
        assert len(genius) == 1
        assert genius[0].severity == pytest.approx(0.6)
        assert len(genius[0].keywords) == 3

    def test_frequency_bonus_capped(self, detector):
        text = "\n".join(["I'm brilliant"] * 8)
        genius = [d for d in detector.detect(text) if d.rule_id == "grandiosity_genius"]
        # 0.4 base + capped 0.5 bonus
        assert genius[0].severity == pytest.approx(0.9)

    def test_short_text_yields_nothing(self, detector):
        assert detector.detect("they me") == []

    def test_sorted_and_deterministic(self, detector):
        text = (
            "They are watching me. It will never get better.\n"
            "The disaster is coming and it is the worst ever.\n"
            "Everyone is judging me, I'm special."
        )
        first = detector.detect(text)
        assert len(first) > 2
        severities = [d.severity for d in first]
        assert severities == sorted(severities, reverse=True)
        assert detector.detect(text) == first

    def test_long_match_echo_is_bounded(self, detector):
        text = "they " + "word " * 200 + "are watching me"
        found = detector.detect(text)
        assert found
        for d in found:
            assert len(d.context) <= 110
            assert len(d.matched_text) <= 110
            assert all(len(k) <= 110 for k in d.keywords)

    def test_severity_in_unit_range(self, detector):
        text = "\n".join(["they are out to get me"] * 12)
        assert all(0.0 <= d.severity <= 1.0 for d in detector.detect(text))


# ============================================================
# SUMMARY + RISK
# ============================================================

class TestSummary:

    def test_empty_summary_lists_all_categories(self, detector):
        summary = detector.get_distortion_summary([])
        assert set(summary.type_count) == set(DistortionType)
        assert all(count == 0 for count in summary.type_count.values())
        assert summary.total_severity == 0.0
        assert summary.most_severe_type is None

    def test_summary_counts_and_most_severe(self, detector):
        indicators = [
            DistortionIndicator(DistortionType.CONSPIRACY, 0.6, "a", "a"),
            DistortionIndicator(DistortionType.PERSECUTION, 0.9, "b", "b"),
            DistortionIndicator(DistortionType.CATASTROPHIZING, 0.9, "c", "c"),
        ]
        summary = detector.get_distortion_summary(indicators)
        assert summary.type_count[DistortionType.CONSPIRACY] == 1
        assert summary.type_count[DistortionType.GRANDIOSITY] == 0
        # first strictly-highest wins ties
        assert summary.most_severe_type == DistortionType.PERSECUTION
        assert summary.total_severity == 1.0

    def test_summary_to_dict(self, detector):
        data = detector.get_distortion_summary([]).to_dict()
        assert len(data["type_count"]) == 7
        assert data["most_severe_type"] is None

    def test_risk_for_persecution(self, detector):
        # 1 * 0.9 * 0.1 + 0.5 * 0.8
        assert detector.calculate_distortion_risk(WATCHED) == pytest.approx(0.49)

    def test_risk_zero_for_clean_text(self, detector):
        assert detector.calculate_distortion_risk("Lovely weather for a picnic today.") == 0.0

    def test_risk_bounded(self, detector):
        text = "\n".join([
            "they are watching me", "they are out to get me",
            "the government is controlling people", "it was all planned by them",
            "the disaster is coming", "the end of the world",
        ] * 5)
        assert 0.0 <= detector.calculate_distortion_risk(text) <= 1.0


# ============================================================
# RULE MANAGEMENT
# ============================================================

class TestRuleManagement:

    def test_default_table(self, detector):
        rules = detector.get_rules()
        assert len(rules) == 18
        assert {r.category for r in rules} == set(DistortionType)
        assert len(detector.get_rules_by_category(DistortionType.PERSECUTION)) == 3

    def test_disable_and_enable(self, detector):
        assert detector.disable_rule("persecution_watching") is True
        assert detector.detect(WATCHED) == []
        assert detector.enable_rule("persecution_watching") is True
        assert len(detector.detect(WATCHED)) == 1

    def test_unknown_rule_id(self, detector):
        assert detector.enable_rule("no_such_rule") is False
        assert detector.disable_rule("no_such_rule") is False

    def test_add_rule_appends(self, detector):
        before = [r.id for r in detector.get_rules()]
        detector.add_rule(RuleConfig(
            id="catastrophizing_ruined",
            pattern=r"\b(?:everything|my life)\b.*\bruined\b",
            weight=0.6,
            category=DistortionType.CATASTROPHIZING,
        ))
        after = [r.id for r in detector.get_rules()]
        assert after[:-1] == before
        assert after[-1] == "catastrophizing_ruined"
        found = detector.detect("my life is completely ruined now")
        assert any(d.rule_id == "catastrophizing_ruined" for d in found)

    def test_duplicate_rule_rejected(self, detector):
        with pytest.raises(ValueError):
            detector.add_rule(RuleConfig(
                "persecution_watching", r"\bx\b", 0.5, DistortionType.PERSECUTION,
            ))
        assert len(detector.get_rules()) == 18

    def test_rage_category_rejected(self, detector):
        with pytest.raises(ValueError):
            detector.add_rule(RuleConfig("rage_rule", r"\bx\b", 0.5, RageType.PROFANITY))

    @pytest.mark.parametrize("weight", [0.0, -0.1, 1.5])
    def test_invalid_weight_rejected(self, weight):
        with pytest.raises(ValueError):
            RuleConfig("bad_weight", r"\bx\b", weight, DistortionType.PERSECUTION)

    def test_detectors_do_not_share_toggles(self):
        a = DistortionDetector()
        b = DistortionDetector()
        a.disable_rule("persecution_watching")
        assert a.detect(WATCHED) == []
        assert len(b.detect(WATCHED)) == 1

    def test_malformed_rule_skipped(self, caplog):
        detector = DistortionDetector(RuleSet([
            RuleConfig("broken", r"[unterminated", 0.5, DistortionType.CONSPIRACY),
            RuleConfig("sheep", r"\bsheeple\b", 0.5, DistortionType.CONSPIRACY),
        ]))
        found = detector.detect("you are all just sheeple honestly")
        assert [d.rule_id for d in found] == ["sheep"]
        assert "broken" in caplog.text or "malformed" in caplog.text.lower()
