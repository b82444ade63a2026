"""Tests for parsing model replies: semantic matcher and fact extractor."""
from __future__ import annotations

import pytest

from core.anthropic_client import first_text_block, strip_code_fences
from core.fact_extractor import chunk_text, deduplicate_facts, parse_facts
from core.semantic_matcher import build_user_prompt, parse_match_response
from model.matching import SemanticCandidate, SemanticMatchRequest

# ── anthropic client helpers ─────────────────────────────────────────


class TestClientHelpers:
    def test_strip_code_fences(self) -> None:
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'

    def test_first_text_block(self) -> None:
        data = {"content": [{"type": "text", "text": "hi"}]}
        assert first_text_block(data) == "hi"
        assert first_text_block({}) == ""


# ── semantic matcher ─────────────────────────────────────────────────


class TestSemanticMatcherParsing:
    def test_prompt_numbers_candidates(self) -> None:
        request = SemanticMatchRequest(
            claimText="ARR reduced",
            candidates=[SemanticCandidate(name="A", excerpt="x"), SemanticCandidate(name="B")],
        )
        prompt = build_user_prompt(request)
        assert '"ARR reduced"' in prompt
        assert "[1] A\nContent excerpt: x" in prompt
        assert "[2] B\nContent excerpt: No excerpt available" in prompt

    def test_parse_fenced_reply(self) -> None:
        raw = '```json\n{"matched": true, "referenceIndex": 2, "confidence": 1.4, "reasoning": null}\n```'
        result = parse_match_response(raw)
        assert result.matched is True
        assert result.referenceIndex == 2
        assert result.confidence == 1.0
        assert result.reasoning == ""

    def test_not_json(self) -> None:
        with pytest.raises(ValueError):
            parse_match_response("I think reference 2 matches")

    def test_not_an_object(self) -> None:
        with pytest.raises(ValueError):
            parse_match_response("[1, 2]")

    def test_too_many_candidates_rejected(self) -> None:
        with pytest.raises(ValueError):
            SemanticMatchRequest(
                claimText="c", candidates=[SemanticCandidate(name=str(i)) for i in range(9)]
            )


# ── fact extractor ───────────────────────────────────────────────────


class TestFactExtractor:
    def test_short_text_is_one_chunk(self) -> None:
        assert chunk_text("abc", size=10, overlap=2) == ["abc"]

    def test_chunks_overlap(self) -> None:
        chunks = chunk_text("abcdefghij", size=4, overlap=1)
        assert chunks == ["abcd", "defg", "ghij"]

    def test_parse_facts_filters_non_objects(self) -> None:
        assert parse_facts('```\n[{"text": "a"}, 3, "b"]\n```') == [{"text": "a"}]

    def test_parse_facts_requires_array(self) -> None:
        with pytest.raises(ValueError):
            parse_facts('{"text": "a"}')

    def test_deduplicate_and_renumber(self) -> None:
        facts = deduplicate_facts(
            [
                {"id": "x", "text": "ARR reduced by 47%", "keywords": ["ARR"], "page": "3"},
                {"text": "arr reduced BY 47%", "keywords": ["dup"]},
                {"text": "   "},
                {"text": "Headache in 5% of patients", "keywords": "headache", "page": "n/a"},
            ]
        )
        assert [f.id for f in facts] == ["fact_001", "fact_002"]
        assert facts[0].page == 3
        assert facts[1].keywords == ["headache"]
        assert facts[1].page is None
        assert facts[1].category == "other"
