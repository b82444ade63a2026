"""Tests for util.functions and the Claim model coercions."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from model.claim import Claim, FallbackPosition
from util.functions import MAX_ALIAS_CHARS, generate_alias, truncate_for_prompt


class TestGenerateAlias:
    @pytest.mark.parametrize(
        ("filename", "alias"),
        [
            ("2023-04-01_efficacy-study_FINAL.pdf", "Efficacy Study"),
            ("v2_safety_report_DRAFT.pdf", "Safety Report"),
            ("prescribing_information copy.pdf", "Prescribing Information"),
            ("phase3.trial.results.pdf", "Phase3 Trial Results"),
        ],
    )
    def test_cleans_filenames(self, filename: str, alias: str) -> None:
        assert generate_alias(filename) == alias

    def test_falls_back_to_filename(self) -> None:
        assert generate_alias("FINAL.pdf") == "FINAL.pdf"

    def test_caps_length_on_word_boundary(self) -> None:
        alias = generate_alias("_".join(["word"] * 40) + ".pdf")
        assert len(alias) <= MAX_ALIAS_CHARS
        assert alias.endswith("Word")


class TestTruncateForPrompt:
    def test_short_text_untouched(self) -> None:
        assert truncate_for_prompt("abc", 10) == "abc"

    def test_long_text_includes_ellipsis(self) -> None:
        out = truncate_for_prompt("x" * 50, 10)
        assert out == "xxxxxxx..."
        assert len(out) == 10

    def test_empty(self) -> None:
        assert truncate_for_prompt(None) == ""


class TestClaimModel:
    def test_percent_confidence_is_scaled(self) -> None:
        assert Claim(id="a", text="t", confidenceScore=85).confidenceScore == pytest.approx(0.85)

    def test_page_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Claim(id="a", text="t", page=0)

    def test_position_round_trips_through_discriminator(self) -> None:
        claim = Claim(id="a", text="t", position=FallbackPosition(x=12, y=12))
        again = Claim.model_validate_json(claim.model_dump_json())
        assert isinstance(again.position, FallbackPosition)
        assert again.matched is False
