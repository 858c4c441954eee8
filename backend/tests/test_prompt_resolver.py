"""Tests for prompt scope resolution.

Covers:
- leaf completeness and ordering (slide number, then placeholder y)
- blank prompts, duplicate layout ids and orphan prompt ids
- ancestor prompt chain (pitchbook, section, slide)
"""

from __future__ import annotations

from conftest import make_pitchbook, make_slide

from app.core.prompt_resolver import (
    ancestor_prompts,
    order_placeholder_ids,
    ordered_placeholders,
    resolve_leaves,
)
from app.schemas.pitchbook import Placeholder, PromptScope


class TestResolveLeaves:
    def test_yields_exactly_the_prompted_placeholders(self):
        slide = make_slide(
            1,
            {"title": "Company name", "body": "Write about growth"},
            placeholders=[
                Placeholder(id="title", type="title", y=0),
                Placeholder(id="body", type="body", y=200),
                Placeholder(id="footer", type="body", y=900),
            ],
        )
        leaves = list(resolve_leaves(make_pitchbook([slide])))

        assert [(leaf.slide_key, leaf.placeholder_id) for leaf in leaves] == [
            ("slide_1", "title"),
            ("slide_1", "body"),
        ]
        assert leaves[0].placeholder_type == "title"

    def test_orders_by_slide_number_then_y(self):
        second = make_slide(
            2,
            {"a": "first prompt", "b": "second prompt"},
            placeholders=[Placeholder(id="a", y=500), Placeholder(id="b", y=10)],
        )
        first = make_slide(1, {"x": "only prompt"})
        leaves = list(resolve_leaves(make_pitchbook([second, first])))

        assert [(leaf.slide.slide_number, leaf.placeholder_id) for leaf in leaves] == [
            (1, "x"),
            (2, "b"),
            (2, "a"),
        ]

    def test_blank_prompts_are_skipped(self):
        slide = make_slide(1, {"a": "   ", "b": "", "c": "Real prompt"})
        leaves = list(resolve_leaves(make_pitchbook([slide])))
        assert [leaf.placeholder_id for leaf in leaves] == ["c"]

    def test_prompt_text_is_trimmed(self):
        slide = make_slide(1, {"a": "  Write about margins  "})
        leaf = next(resolve_leaves(make_pitchbook([slide])))
        assert leaf.original_prompt == "Write about margins"

    def test_duplicate_layout_ids_yield_one_leaf(self):
        slide = make_slide(
            1,
            {"a": "prompt"},
            placeholders=[Placeholder(id="a", y=0), Placeholder(id="a", y=50)],
        )
        assert len(list(resolve_leaves(make_pitchbook([slide])))) == 1

    def test_orphan_prompts_follow_layout_in_natural_order(self):
        slide = make_slide(
            1,
            {"ph10": "ten", "ph2": "two", "main": "main"},
            placeholders=[Placeholder(id="main", type="title", y=0)],
        )
        leaves = list(resolve_leaves(make_pitchbook([slide])))

        assert [leaf.placeholder_id for leaf in leaves] == ["main", "ph2", "ph10"]
        assert leaves[1].placeholder_type == "body"

    def test_slide_without_layout_still_resolves(self):
        slide = make_slide(1, {"b": "two", "a": "one"})
        slide = slide.model_copy(update={"layout": None})
        leaves = list(resolve_leaves(make_pitchbook([slide])))
        assert [leaf.placeholder_id for leaf in leaves] == ["a", "b"]

    def test_no_prompts_yields_nothing(self):
        pitchbook = make_pitchbook([make_slide(1, {}), make_slide(2, {})], pitchbook_prompt="Be concise")
        assert list(resolve_leaves(pitchbook)) == []


class TestAncestorPrompts:
    def test_chain_is_most_general_first(self):
        slide = make_slide(
            3,
            {"a": "prompt"},
            section_title="Financials",
            slide_prompt="Focus on cash flow",
            layout_name="Two Content",
        )
        pitchbook = make_pitchbook(
            [slide],
            title="Acme",
            pitchbook_prompt="Keep it upbeat",
            section_prompts={"Financials": "Use audited numbers"},
        )

        chain = ancestor_prompts(pitchbook, slide)

        assert [p.scope for p in chain] == [PromptScope.pitchbook, PromptScope.section, PromptScope.slide]
        assert chain[0].applies_to == "Entire pitchbook: Acme"
        assert chain[1].applies_to == "Section: Financials"
        assert chain[2].applies_to == "Slide 3 (Two Content)"

    def test_missing_levels_are_omitted(self):
        slide = make_slide(1, {"a": "prompt"}, section_title="Intro")
        pitchbook = make_pitchbook([slide], section_prompts={"Other": "not mine"})
        assert ancestor_prompts(pitchbook, slide) == []

    def test_leaves_carry_the_chain(self):
        slide = make_slide(1, {"a": "prompt"}, slide_prompt="Slide-level note")
        leaf = next(resolve_leaves(make_pitchbook([slide])))
        assert [p.text for p in leaf.ancestor_prompts] == ["Slide-level note"]


class TestOrdering:
    def test_ordered_placeholders_is_stable_for_equal_y(self):
        slide = make_slide(
            1,
            {},
            placeholders=[Placeholder(id="left", y=100), Placeholder(id="right", y=100)],
        )
        assert [p.id for p in ordered_placeholders(slide)] == ["left", "right"]

    def test_order_placeholder_ids_without_slide_is_natural(self):
        assert order_placeholder_ids(None, ["ph10", "ph9", "ph1"]) == ["ph1", "ph9", "ph10"]

    def test_order_placeholder_ids_follows_layout(self):
        slide = make_slide(
            1,
            {"top": "t", "bottom": "b"},
            placeholders=[Placeholder(id="bottom", y=400), Placeholder(id="top", y=0)],
        )
        assert order_placeholder_ids(slide, ["bottom", "unknown", "top"]) == ["top", "bottom", "unknown"]
