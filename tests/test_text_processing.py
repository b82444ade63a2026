"""Tests for core.text_normalizer and core.keywords."""
from __future__ import annotations

from core.keywords import STOP_WORDS, extract_keywords, extract_numbers, tokens
from core.text_normalizer import normalize, normalize_numeric

# ── normalize ────────────────────────────────────────────────────────


class TestNormalize:
    def test_lowercases_and_strips_punctuation(self) -> None:
        assert normalize("Reduced LDL-C by 47%!") == "reduced ldlc by 47"

    def test_collapses_whitespace(self) -> None:
        assert normalize("  a\t\tb \n c  ") == "a b c"

    def test_empty_and_none(self) -> None:
        assert normalize("") == ""
        assert normalize(None) == ""

    def test_idempotent(self) -> None:
        once = normalize("Hello, World -- again")
        assert normalize(once) == once

    def test_numeric_keeps_number_punctuation(self) -> None:
        assert normalize_numeric("Costs $1,200 (2.5%)!") == "costs $1,200 2.5%"


# ── keywords ─────────────────────────────────────────────────────────


class TestExtractKeywords:
    def test_drops_stop_words_and_short_terms(self) -> None:
        words = extract_keywords("The drug is an effective treatment for MS")
        assert words == ["drug", "effective", "treatment"]

    def test_deduplicates_in_first_seen_order(self) -> None:
        assert extract_keywords("relapse rate relapse Rate") == ["relapse", "rate"]

    def test_keeps_accented_terms(self) -> None:
        assert extract_keywords("Naïve patients, snake_case") == ["naïve", "patients", "snake", "case"]

    def test_stop_words_only(self) -> None:
        assert extract_keywords("the and of") == []

    def test_custom_stop_words(self) -> None:
        assert extract_keywords("annual relapse rate", {"annual"}) == ["relapse", "rate"]

    def test_default_stop_words_cover_pronouns(self) -> None:
        assert {"we", "they", "them"} <= STOP_WORDS


class TestTokensAndNumbers:
    def test_tokens_keep_order_and_duplicates(self) -> None:
        assert tokens("A b, a.") == ["a", "b", "a"]

    def test_extract_numbers(self) -> None:
        assert extract_numbers("47% at 2.5 mg and 1,200 patients; 47 again") == [
            "47",
            "2.5",
            "1,200",
        ]

    def test_no_numbers(self) -> None:
        assert extract_numbers("no digits here") == []
