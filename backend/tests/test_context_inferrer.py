"""Tests for pitchbook context inference."""

from __future__ import annotations

import pytest

from app.core.context_inferrer import context_profile, infer_context
from app.core.prompt_templates import CONTEXT_PROFILES
from app.schemas.generation import ContextTag


class TestInferContext:
    @pytest.mark.parametrize(
        "title, expected",
        [
            ("Project Falcon merger overview", ContextTag.merger_acquisition),
            ("Proposed M&A of Beta Corp", ContextTag.merger_acquisition),
            ("Series B fundraising", ContextTag.investor_pitch),
            ("Acme Q3 Earnings", ContextTag.quarterly_results),
            ("Widget 2.0 launch", ContextTag.product_launch),
            ("FY27 strategy offsite", ContextTag.strategic_plan),
        ],
    )
    def test_title_keywords(self, title, expected):
        assert infer_context(title, None, "standard") == expected

    def test_prompt_text_is_searched(self):
        assert infer_context("Board deck", "Summarise this quarter's earnings", None) == ContextTag.quarterly_results

    def test_rule_order_breaks_ties(self):
        # Both merger and product keywords match; merger rules come first.
        assert infer_context("Acquisition and product roadmap", None, None) == ContextTag.merger_acquisition

    def test_matches_whole_words_only(self):
        # "planet" must not match "plan", "reproduction" must not match "product".
        assert infer_context("Planet reproduction", None, "investor") == ContextTag.investor_pitch

    def test_investor_type_fallback(self):
        assert infer_context("Company overview", None, "investor") == ContextTag.investor_pitch

    def test_default_is_strategic_plan(self):
        assert infer_context("Company overview", "", "standard") == ContextTag.strategic_plan
        assert infer_context(None, None, None) == ContextTag.strategic_plan

    def test_is_deterministic(self):
        args = ("Acme pitch", "Describe the market", "sales")
        assert {infer_context(*args) for _ in range(5)} == {infer_context(*args)}

    def test_case_insensitive(self):
        assert infer_context("QUARTERLY REVIEW", None, None) == ContextTag.quarterly_results


class TestContextProfile:
    def test_every_tag_has_a_profile(self):
        assert set(CONTEXT_PROFILES) == set(ContextTag)

    def test_unknown_falls_back_to_default(self):
        assert context_profile(None) == CONTEXT_PROFILES[ContextTag.strategic_plan]

    def test_quarterly_audience(self):
        assert context_profile(ContextTag.quarterly_results).audience == "investors, analysts, and shareholders"
