"""Tests for core.position_resolver: claim text to page position."""
from __future__ import annotations

import pytest

from core.page_layout import build_lines
from core.position_resolver import (
    ResolverConfig,
    assign_global_indices,
    claim_prefix,
    contains_number,
    fallback_position,
    resolve_position,
    resolve_positions,
    window_size,
)
from model.claim import Claim
from model.layout import PageLayout, TextItem


def _page(page_num: int, *items: tuple[str, float, float, float], width: float = 800, height: float = 1000) -> PageLayout:
    """Items as (text, x, y, width); every glyph is 3 units tall."""
    text_items = [TextItem(text=t, x=x, y=y, width=w, height=3) for t, x, y, w in items]
    return PageLayout(
        pageNum=page_num,
        width=width,
        height=height,
        items=text_items,
        lines=build_lines(text_items),
    )


TRIAL_ITEMS = (
    ("Reduces cardiovascular events", 10, 30, 20),
    ("by 47%", 31, 30, 6),
    ("in clinical trials", 38, 30, 12),
)


# ── helpers ──────────────────────────────────────────────────────────


class TestHelpers:
    def test_contains_number_is_whole_number(self) -> None:
        assert contains_number("by 47% in", "47")
        assert not contains_number("by 147% in", "47")
        assert not contains_number("dose 4.47 mg", "47")
        assert contains_number("dose 2.5 mg", "2.5")

    def test_prefix_prefers_short_first_sentence(self) -> None:
        assert claim_prefix("Drug X works. More text follows here.", False) == "drug x works"

    def test_prefix_falls_back_to_tokens(self) -> None:
        text = "one two three four five six seven eight nine ten eleven twelve thirteen"
        assert claim_prefix(text, False) == "one two three four five"
        assert claim_prefix(text, True) == "one two three four five six seven"

    def test_window_size_bounds(self) -> None:
        assert window_size(0) == 8
        assert window_size(5) == 11
        assert window_size(40) == 18


# ── fallback + ordering ──────────────────────────────────────────────


class TestFallback:
    def test_staggered_pins_without_layouts(self) -> None:
        claims = [Claim(id="a", text="Alpha beta"), Claim(id="b", text="Gamma delta")]
        out = resolve_positions(claims, [])
        assert [c.position.source for c in out] == ["fallback", "fallback"]
        assert [(c.position.x, c.position.y) for c in out] == [(12.0, 12.0), (12.0, 21.0)]
        assert all(c.position.confidence == 0.0 for c in out)

    def test_fallback_wraps(self) -> None:
        assert fallback_position(9).y == pytest.approx(12 + (9 * 9) % 76)

    def test_deterministic(self) -> None:
        claims = [Claim(id=str(i), text=f"claim {i}") for i in range(4)]
        assert resolve_positions(claims, []) == resolve_positions(claims, [])

    def test_global_index_follows_reading_order(self) -> None:
        claims = [
            Claim(id="a", text="x", page=2),
            Claim(id="b", text="y", page=1),
            Claim(id="c", text="z", page=3),
        ]
        out = assign_global_indices(claims)
        assert [c.id for c in out] == ["a", "b", "c"]
        assert [c.globalIndex for c in out] == [2, 1, 3]

    def test_global_index_with_repeated_page(self) -> None:
        claims = [
            Claim(id="a", text="x", page=2),
            Claim(id="b", text="y", page=1),
            Claim(id="c", text="z", page=2),
        ]
        assert [c.globalIndex for c in assign_global_indices(claims)] == [2, 1, 3]

    def test_global_index_keeps_input_order_within_page(self) -> None:
        claims = [Claim(id=str(i), text="t", page=1) for i in range(3)]
        assert [c.globalIndex for c in assign_global_indices(claims)] == [1, 2, 3]


# ── prefix anchor ────────────────────────────────────────────────────


class TestPrefixAnchor:
    def test_numeric_prefix_on_hinted_page(self) -> None:
        claim = Claim(id="c1", text="Reduces cardiovascular events by 47%. Confirmed in trials.", page=1)
        pos = resolve_position(claim, 0, [_page(1, *TRIAL_ITEMS)])
        assert pos.source == "prefix-anchor-numbers"
        assert pos.score == pytest.approx(16.0)
        assert pos.confidence == pytest.approx(1.0)
        assert pos.page == 1
        # Boxed on the first two items only: x 10..37, y 27..30
        assert pos.x == pytest.approx(23.5 / 800 * 100)
        assert pos.y == pytest.approx(28.5 / 1000 * 100)
        assert pos.width == pytest.approx(27 / 800 * 100)

    def test_single_item_line_among_others(self) -> None:
        claim = Claim(id="c1", text="Reduces cardiovascular events by 47%", page=1)
        page = _page(
            1,
            ("Background", 10, 6, 15),
            ("Study design and population", 10, 12, 30),
            ("Primary endpoints", 10, 18, 20),
            ("Reduces cardiovascular events by 47% in clinical trials", 10, 30, 40),
        )
        pos = resolve_position(claim, 0, [page])
        assert pos.source == "prefix-anchor-numbers"
        assert pos.page == 1
        assert pos.x == pytest.approx(3.75)
        assert pos.score >= 13
        assert pos.confidence >= 0.86

    def test_same_page_numeric_hit_wins(self) -> None:
        claim = Claim(id="c1", text="Reduces cardiovascular events by 47%.", page=2)
        pages = [_page(1, *TRIAL_ITEMS), _page(2, *TRIAL_ITEMS)]
        pos = resolve_position(claim, 0, pages)
        assert pos.page == 2
        assert pos.source == "prefix-anchor-numbers"

    def test_plain_prefix_off_page(self) -> None:
        claim = Claim(id="c1", text="Well tolerated across all cohorts in the study", page=3)
        page = _page(1, ("Well tolerated across all cohorts in the study", 100, 200, 300))
        pos = resolve_position(claim, 0, [page])
        assert pos.source == "prefix-anchor"
        # base 10 + tight 1, no page or number bonus
        assert pos.score == pytest.approx(11.0)
        assert pos.confidence == pytest.approx(11 / 15)

    def test_missing_number_blocks_anchor(self) -> None:
        claim = Claim(id="c1", text="Reduces cardiovascular events by 48%.", page=1)
        pos = resolve_position(claim, 0, [_page(1, *TRIAL_ITEMS)])
        assert pos.source != "prefix-anchor-numbers"

    def test_confidence_never_exceeds_one(self) -> None:
        claim = Claim(id="c1", text="Reduces cardiovascular events by 47%.", page=1)
        pos = resolve_position(claim, 0, [_page(1, *TRIAL_ITEMS)], ResolverConfig(prefix_confidence_scale=1.0))
        assert pos.confidence == 1.0


# ── fuzzy + model hint ───────────────────────────────────────────────


class TestFuzzyAndHints:
    def test_windowed_fuzzy_match(self) -> None:
        claim = Claim(id="c1", text="Patients on drug X showed fewer relapses over two years", page=1)
        page = _page(
            1,
            ("fewer relapses were", 50, 400, 80),
            ("observed over two years", 50, 420, 90),
            ("in patients", 50, 440, 40),
        )
        pos = resolve_position(claim, 0, [page])
        assert pos.source == "extracted"
        assert pos.page == 1
        assert 0.0 < pos.confidence < 1.0

    def test_weak_fuzzy_match_beats_fallback(self) -> None:
        claim = Claim(id="c1", text="Outcomes improved for relapse patients", page=1)
        page = _page(1, ("relapse", 60, 500, 20))
        pos = resolve_position(claim, 0, [page])
        assert pos.source == "extracted"
        assert 0.0 < pos.score < 3.0

    def test_fuzzy_threshold_is_configurable(self) -> None:
        claim = Claim(id="c1", text="Outcomes improved for relapse patients", page=1)
        page = _page(1, ("relapse", 60, 500, 20))
        pos = resolve_position(claim, 0, [page], ResolverConfig(fuzzy_min_score=3.0))
        assert pos.source == "fallback"

    def test_model_hint_is_opt_in(self) -> None:
        claim = Claim(id="c1", text="Alpha beta gamma", page=1, x=40, y=60)
        page = _page(1, ("Lorem ipsum dolor", 10, 10, 50))
        assert resolve_position(claim, 0, [page]).source == "fallback"
        hinted = resolve_position(claim, 0, [page], use_model_hint=True)
        assert hinted.source == "model"
        assert (hinted.x, hinted.y) == (40, 60)

    def test_model_hint_needs_layout_for_page(self) -> None:
        claim = Claim(id="c1", text="Alpha beta gamma", page=5, x=40, y=60)
        page = _page(1, ("Lorem ipsum dolor", 10, 10, 50))
        assert resolve_position(claim, 3, [page], use_model_hint=True).source == "fallback"

    def test_unusable_pages_are_ignored(self) -> None:
        claim = Claim(id="c1", text="Reduces cardiovascular events by 47%.", page=1)
        pos = resolve_position(claim, 0, [_page(1, *TRIAL_ITEMS, width=0)])
        assert pos.source == "fallback"

    def test_every_claim_gets_a_position(self) -> None:
        claims = [
            Claim(id="a", text="Reduces cardiovascular events by 47%.", page=1),
            Claim(id="b", text="Completely unrelated sentence", page=1),
        ]
        out = resolve_positions(claims, [_page(1, *TRIAL_ITEMS)])
        assert all(c.position is not None for c in out)
        assert out[0].position.source == "prefix-anchor-numbers"
