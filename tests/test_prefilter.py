"""Tests for core.prefilter and core.fact_lookup: the two cheap matching tiers."""
from __future__ import annotations

import pytest

from core.fact_lookup import fact_lookup, fact_overlap, reliability_factor
from core.keywords import extract_keywords
from core.prefilter import keyword_overlap, prefilter
from model.reference import Fact, ReferenceDocument, ReferenceFacts


def _ref(ref_id: str, text: str) -> ReferenceDocument:
    return ReferenceDocument(id=ref_id, alias=ref_id.upper(), fullText=text)


def _facts(ref_id: str, *facts: Fact, confirmed: int = 0, rejected: int = 0) -> ReferenceFacts:
    return ReferenceFacts(
        referenceId=ref_id,
        alias=ref_id.upper(),
        facts=list(facts),
        confirmedCount=confirmed,
        rejectedCount=rejected,
    )


# ── Tier 1: prefilter ────────────────────────────────────────────────


class TestPrefilter:
    def test_keyword_overlap_fraction(self) -> None:
        assert keyword_overlap(["relapse", "rate", "annual"], "The annual relapse count") == pytest.approx(2 / 3)

    def test_keyword_overlap_empty(self) -> None:
        assert keyword_overlap([], "anything") == 0.0
        assert keyword_overlap(["x"], "") == 0.0

    def test_ranks_and_drops_zero_scores(self) -> None:
        refs = [
            _ref("a", "nothing relevant"),
            _ref("b", "relapse rate fell"),
            _ref("c", "relapse was rare"),
        ]
        ranked = prefilter("Relapse rate reduced", refs)
        assert [r.reference.id for r in ranked] == ["b", "c"]
        assert ranked[0].score > ranked[1].score
        assert ranked[0].original_index == 1

    def test_stable_for_equal_scores(self) -> None:
        refs = [_ref(str(i), "relapse rate") for i in range(4)]
        assert [r.reference.id for r in prefilter("relapse rate", refs)] == ["0", "1", "2", "3"]

    def test_top_n(self) -> None:
        refs = [_ref(str(i), "relapse rate") for i in range(12)]
        assert len(prefilter("relapse rate", refs)) == 8
        assert len(prefilter("relapse rate", refs, top_n=3)) == 3

    def test_stop_word_claim_has_no_candidates(self) -> None:
        assert prefilter("it is the", [_ref("a", "it is the")]) == []

    def test_accented_keywords_overlap(self) -> None:
        ranked = prefilter("Naïve cohort", [_ref("a", "Outcomes in the naïve cohort")])
        assert [r.reference.id for r in ranked] == ["a"]
        assert ranked[0].score == pytest.approx(1.0)

    @pytest.mark.parametrize(
        "claim, text",
        [
            ("Relapse rate reduced", "relapse rate fell"),
            ("Relapse rate reduced by 47%", "annual relapse"),
            ("Adverse events were mild", "nothing relevant"),
        ],
    )
    def test_appending_text_never_lowers_score(self, claim: str, text: str) -> None:
        keywords = extract_keywords(claim)
        before = keyword_overlap(keywords, text)
        after = keyword_overlap(keywords, text + " Unrelated appendix, zebra migration tables.")
        assert after >= before


# ── Tier 0: fact lookup ──────────────────────────────────────────────


class TestFactLookup:
    FACT = Fact(id="fact_001", text="ARR reduced by 47%", keywords=["ARR", "47%", "reduced"])

    def test_reliability_factor(self) -> None:
        assert reliability_factor(_facts("a", confirmed=2)) == 1.1
        assert reliability_factor(_facts("a", confirmed=1, rejected=3)) == 0.8
        assert reliability_factor(_facts("a", confirmed=2, rejected=2)) == 1.0
        assert reliability_factor(_facts("a")) == 1.0

    def test_fact_overlap_is_case_insensitive(self) -> None:
        assert fact_overlap("the arr was reduced by 47%", self.FACT) == 1.0

    def test_best_fact_found(self) -> None:
        hit = fact_lookup("The ARR was reduced by 47% in year one", [_facts("a", self.FACT)])
        assert hit is not None
        assert hit.reference_id == "a"
        assert hit.reference_name == "A"
        assert hit.fact.id == "fact_001"
        assert hit.score == pytest.approx(1.0)

    def test_confirmed_reference_boosted(self) -> None:
        hit = fact_lookup("ARR reduced by 47%", [_facts("a", self.FACT, confirmed=1)])
        assert hit.score == pytest.approx(1.1)

    def test_below_threshold(self) -> None:
        assert fact_lookup("ARR was measured", [_facts("a", self.FACT)]) is None

    def test_rejected_reference_can_drop_below_threshold(self) -> None:
        fact = Fact(id="f", text="t", keywords=["alpha", "beta", "gamma"])
        claim = "alpha and beta"
        assert fact_lookup(claim, [_facts("a", fact)]).score == pytest.approx(2 / 3)
        assert fact_lookup(claim, [_facts("a", fact, rejected=1)]) is None

    def test_first_fact_wins_ties(self) -> None:
        first = Fact(id="f1", text="one", keywords=["relapse"])
        second = Fact(id="f2", text="two", keywords=["relapse"])
        hit = fact_lookup("relapse rate", [_facts("a", first), _facts("b", second)])
        assert hit.fact.id == "f1"

    def test_empty_inputs(self) -> None:
        assert fact_lookup("relapse rate", []) is None
        assert fact_lookup("the and of", [_facts("a", self.FACT)]) is None

    def test_facts_without_keywords_are_ignored(self) -> None:
        assert fact_lookup("relapse rate", [_facts("a", Fact(id="f", text="relapse rate"))]) is None
