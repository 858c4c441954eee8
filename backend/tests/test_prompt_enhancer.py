"""Tests for prompt analysis and enhancement.

Covers:
- analyze_prompt: word count, topic, action, requirements, style hint
- select_template: slide type first, then placeholder kind, else body
- enhance_prompt: purity, single word-count clause, context block, checklist
"""

from __future__ import annotations

import pytest
from conftest import make_pitchbook, make_slide

from app.core.prompt_enhancer import (
    WORD_COUNT_RE,
    analyze_prompt,
    build_system_prompt,
    enhance_leaf,
    enhance_prompt,
    select_template,
    strip_word_counts,
)
from app.core.prompt_resolver import resolve_leaves
from app.core.prompt_templates import (
    DEFAULT_TEMPLATE,
    PLACEHOLDER_TEMPLATES,
    QUALITY_CHECKLIST,
    SLIDE_TEMPLATES,
)
from app.schemas.generation import (
    ContextTag,
    PlaceholderKind,
    PromptMetadata,
    RequirementFlag,
    SlideType,
    StyleHint,
)
from app.schemas.pitchbook import PromptScope, ScopedPrompt


def _word_clauses(text: str) -> list[str]:
    return [match.group(0) for match in WORD_COUNT_RE.finditer(text)]


class TestAnalyzePrompt:
    def test_explicit_word_count(self):
        analysis = analyze_prompt("Write 120 words on revenue growth.")
        assert analysis.word_count == 120
        assert analysis.word_count_requested is True

    def test_word_count_is_clamped(self):
        assert analyze_prompt("Write 5000 words on history").word_count == 2000

    @pytest.mark.parametrize(
        "slide_type, expected",
        [("title", 10), ("body", 150), ("legal", 100), (None, 100)],
    )
    def test_default_word_counts(self, slide_type, expected):
        analysis = analyze_prompt("Describe the team", slide_type)
        assert analysis.word_count == expected
        assert analysis.word_count_requested is False

    def test_topic_after_preposition(self):
        assert analyze_prompt("Write 120 words on revenue growth.").topic == "revenue growth"

    def test_topic_after_action_verb(self):
        assert analyze_prompt("Describe our hiring plan").topic == "our hiring plan"

    def test_action_verb(self):
        assert analyze_prompt("Generate a short intro").action == "generate"
        assert analyze_prompt("Our market position").action is None

    def test_requirement_flags(self):
        analysis = analyze_prompt("List key data and examples, compare vs peers")
        assert set(analysis.requirements) == {
            RequirementFlag.bullet_points,
            RequirementFlag.data_driven,
            RequirementFlag.examples,
            RequirementFlag.comparative,
        }

    def test_style_hint(self):
        assert analyze_prompt("A formal introduction").style_hint == StyleHint.formal
        assert analyze_prompt("A friendly welcome").style_hint == StyleHint.informal
        assert analyze_prompt("A welcome").style_hint is None


class TestSelectTemplate:
    def test_slide_type_wins(self):
        assert select_template("title", "bullet") == SLIDE_TEMPLATES[SlideType.title]
        assert select_template("section-divider", None) == SLIDE_TEMPLATES[SlideType.section_divider]

    def test_placeholder_kind_when_slide_type_unknown(self):
        assert select_template("chart-page", "bullets") == PLACEHOLDER_TEMPLATES[PlaceholderKind.bullet]
        assert select_template("", "subtitle") == PLACEHOLDER_TEMPLATES[PlaceholderKind.heading]

    def test_unknown_types_fall_back_to_body(self):
        assert select_template("mystery", "picture") == DEFAULT_TEMPLATE
        assert select_template(None, None) == DEFAULT_TEMPLATE


class TestEnhancePrompt:
    def test_single_prompt_in_earnings_deck(self):
        metadata = PromptMetadata(
            slide_type="body",
            section_title="Financials",
            pitchbook_title="Acme Q3 Earnings",
        )
        enhanced = enhance_prompt("Write 120 words on revenue growth.", metadata)

        assert enhanced.context == ContextTag.quarterly_results
        assert enhanced.metadata.context == ContextTag.quarterly_results
        assert "120 words" in enhanced.enhanced
        assert "revenue growth" in enhanced.enhanced
        assert "investors, analysts, and shareholders" in enhanced.enhanced
        assert QUALITY_CHECKLIST in enhanced.enhanced

    def test_is_pure(self):
        metadata = PromptMetadata(pitchbook_title="Series A pitch", placeholder_type="bullet")
        ancestors = [ScopedPrompt(scope=PromptScope.pitchbook, text="Be bold", applies_to="Entire pitchbook: X")]
        first = enhance_prompt("List our traction metrics", metadata, ancestors)
        second = enhance_prompt("List our traction metrics", metadata, ancestors)
        assert first.enhanced == second.enhanced
        assert first == second

    def test_requested_word_count_appears_exactly_once(self):
        ancestors = [
            ScopedPrompt(
                scope=PromptScope.pitchbook,
                text="Keep every slide under 50 words and upbeat",
                applies_to="Entire pitchbook: Deck",
            ),
            ScopedPrompt(scope=PromptScope.slide, text="Use 80 words max", applies_to="Slide 2 (Body)"),
        ]
        metadata = PromptMetadata(section_title="Intro in 30 words")
        enhanced = enhance_prompt("Write 120 words on revenue growth.", metadata, ancestors)

        assert _word_clauses(enhanced.enhanced) == ["120 words"]

    @pytest.mark.parametrize("slide_type", ["title", "contents", "legal", "section-divider", "body", "other"])
    @pytest.mark.parametrize("placeholder_type", ["text", "bullet", "heading", "picture"])
    def test_every_template_states_one_length(self, slide_type, placeholder_type):
        metadata = PromptMetadata(slide_type=slide_type, placeholder_type=placeholder_type)
        enhanced = enhance_prompt("Write 42 words about culture", metadata)
        assert _word_clauses(enhanced.enhanced) == ["42 words"]

    def test_default_length_when_not_requested(self):
        enhanced = enhance_prompt("Company name", PromptMetadata(slide_type="title"))
        assert _word_clauses(enhanced.enhanced) == ["10 words"]

    def test_additional_context_block(self):
        ancestors = [
            ScopedPrompt(scope=PromptScope.pitchbook, text="Be upbeat", applies_to="Entire pitchbook: Acme"),
            ScopedPrompt(scope=PromptScope.section, text="Audited figures only", applies_to="Section: Financials"),
        ]
        enhanced = enhance_prompt("Describe margins", PromptMetadata(), ancestors)

        assert "\nAdditional context:\n- Entire pitchbook: Acme: Be upbeat\n- Section: Financials: Audited figures only" in (
            enhanced.enhanced
        )

    def test_no_context_block_without_ancestors(self):
        assert "Additional context" not in enhance_prompt("Describe margins", PromptMetadata()).enhanced

    def test_bullet_format_instruction(self):
        enhanced = enhance_prompt("Key risks", PromptMetadata(slide_type="", placeholder_type="bullet"))
        assert "Format as bullet points with • symbol." in enhanced.enhanced

    def test_requirement_lines_follow_checklist(self):
        enhanced = enhance_prompt("Compare us with peers using data", PromptMetadata())
        text = enhanced.enhanced
        checklist_at = text.index(QUALITY_CHECKLIST)
        data_at = text.index("- Include relevant statistics or data points")
        compare_at = text.index("- Provide clear comparisons with pros/cons")
        assert checklist_at < data_at < compare_at

    def test_explicit_context_is_kept(self):
        metadata = PromptMetadata(pitchbook_title="Acme Q3 Earnings", context=ContextTag.product_launch)
        assert enhance_prompt("Describe the product", metadata).context == ContextTag.product_launch


class TestEnhanceLeaf:
    def test_metadata_comes_from_the_slide(self):
        slide = make_slide(2, {"body": "Write about our moat"}, section_title="Market", layout_name="Two Content")
        pitchbook = make_pitchbook([slide], title="Seed round investor deck")
        leaf = next(resolve_leaves(pitchbook))

        enhanced = enhance_leaf(leaf, pitchbook)

        assert enhanced.metadata.slide_key == "slide_2"
        assert enhanced.metadata.placeholder_id == "body"
        assert enhanced.metadata.section_title == "Market"
        assert enhanced.metadata.slide_title == "Two Content"
        assert enhanced.context == ContextTag.investor_pitch


class TestHelpers:
    def test_strip_word_counts(self):
        assert strip_word_counts("Summarise in about 50 words, with data") == "Summarise, with data"
        assert strip_word_counts(None) == ""

    def test_system_prompt_mentions_profile(self):
        system = build_system_prompt(ContextTag.product_launch)
        assert "product launch" in system
        assert "customers, partners, and media" in system
