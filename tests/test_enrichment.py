"""Tests for the auto-enrichment gate and prompt context assembly."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from designseek.enrichment import (
    EnrichmentPolicy,
    build_index_context,
    decide_enrichment,
)
from designseek.index.models import SearchOutcome
from designseek.index.search import format_matches_for_prompt
from tests.helpers import make_match


def _outcome(*matches, tokens=("button",)):
    return SearchOutcome(matches=list(matches), tokens=list(tokens))


class TestDecideEnrichment:

    def test_no_matches(self):
        decision = decide_enrichment(_outcome())
        assert not decision.should_auto_enrich
        assert decision.reason == "no matches"
        assert decision.target is None

    def test_none_outcome(self):
        assert decide_enrichment(None).reason == "no matches"

    @pytest.mark.parametrize("kind", ["screen", "page"])
    def test_only_components_qualify(self, kind):
        decision = decide_enrichment(_outcome(make_match(kind=kind, score=50)))
        assert not decision.should_auto_enrich
        assert kind in decision.reason

    def test_score_threshold_inclusive(self):
        assert decide_enrichment(_outcome(make_match(score=18.0))).should_auto_enrich
        below = decide_enrichment(_outcome(make_match(score=17.99)))
        assert not below.should_auto_enrich
        assert "below threshold 18" in below.reason

    def test_coverage_threshold(self):
        tokens = ("button", "primary", "large")
        low = decide_enrichment(_outcome(make_match(score=40, matched_tokens=["button"]), tokens=tokens))
        assert not low.should_auto_enrich
        assert "coverage 0.33" in low.reason
        ok = decide_enrichment(
            _outcome(make_match(score=40, matched_tokens=["button", "primary"]), tokens=tokens),
        )
        assert ok.should_auto_enrich

    def test_both_gates_required(self):
        tokens = ("button", "primary")
        high_score_low_coverage = _outcome(make_match(score=99, matched_tokens=[]), tokens=tokens)
        low_score_full_coverage = _outcome(make_match(score=5, matched_tokens=list(tokens)), tokens=tokens)
        assert not decide_enrichment(high_score_low_coverage).should_auto_enrich
        assert not decide_enrichment(low_score_full_coverage).should_auto_enrich

    def test_zero_query_tokens_counts_as_full_coverage(self):
        decision = decide_enrichment(_outcome(make_match(score=20, matched_tokens=[]), tokens=()))
        assert decision.should_auto_enrich

    def test_target_snapshot(self):
        top = make_match(name="Button", node_id="1:2", score=30)
        decision = decide_enrichment(_outcome(top, make_match(name="Other", node_id="9:9", score=20)))
        assert decision.should_auto_enrich
        assert decision.reason == "high-confidence index match"
        target = decision.target
        assert (target.file_id, target.node_id, target.component_name) == ("f1", "1:2", "Button")
        assert (target.platform, target.source, target.score) == ("web", "library", 30)
        assert target.matched_tokens == ["button"]
        assert target.matched_tokens is not top.matched_tokens

    def test_custom_policy(self):
        outcome = _outcome(make_match(score=12))
        assert not decide_enrichment(outcome).should_auto_enrich
        assert decide_enrichment(outcome, EnrichmentPolicy(minimum_score=10)).should_auto_enrich

    def test_policy_from_config(self):
        with patch("designseek.enrichment.config") as mock_config:
            mock_config.ENRICH_MIN_SCORE = 25.0
            mock_config.ENRICH_MIN_COVERAGE = 0.9
            assert EnrichmentPolicy.from_config() == EnrichmentPolicy(25.0, 0.9)

    def test_real_search(self, searcher):
        decision = decide_enrichment(searcher.search("web button"))
        assert decision.should_auto_enrich
        assert decision.target.node_id == "c1"


class TestBuildIndexContext:

    def test_primary_candidate_leads(self, searcher):
        outcome = searcher.search("web button")
        decision = decide_enrichment(outcome)
        context = build_index_context(outcome, decision)
        first, rest = context.split("\n", 1)
        assert first == "PRIMARY CANDIDATE -> node c1 (Button)"
        assert rest == format_matches_for_prompt(outcome)

    def test_plain_summary_without_enrichment(self, searcher):
        outcome = searcher.search("navbar screen")
        decision = decide_enrichment(outcome)
        assert not decision.should_auto_enrich
        assert build_index_context(outcome, decision) == format_matches_for_prompt(outcome)

    def test_empty(self):
        outcome = SearchOutcome()
        assert build_index_context(outcome, decide_enrichment(outcome)) is None
