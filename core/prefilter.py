# core/prefilter.py
from dataclasses import dataclass
from functools import lru_cache
from typing import AbstractSet, List, Sequence
from core.keywords import STOP_WORDS, extract_keywords
from core.text_normalizer import normalize
from model.reference import ReferenceDocument

DEFAULT_TOP_N = 8


@dataclass(frozen=True)
class RankedReference:
    reference: ReferenceDocument
    score: float
    original_index: int


@lru_cache(maxsize=256)
def _normalized(text: str) -> str:
    # Reference texts are immutable for a run; normalize each once.
    return normalize(text)


def keyword_overlap(claim_keywords: Sequence[str], reference_text: str) -> float:
    """
    Fraction of claim keywords that occur as substrings of the normalized
    reference text.
    """
    if not claim_keywords or not reference_text:
        return 0.0
    haystack = _normalized(reference_text)
    hits = sum(1 for k in claim_keywords if k in haystack)
    return hits / len(claim_keywords)


def prefilter(
    claim_text: str,
    references: Sequence[ReferenceDocument],
    top_n: int = DEFAULT_TOP_N,
    stop_words: AbstractSet[str] = STOP_WORDS,
) -> List[RankedReference]:
    """
    Tier 1: rank references by keyword overlap with the claim, drop the ones
    with no overlap, keep the best `top_n` (stable for equal scores).
    """
    keywords = extract_keywords(claim_text, stop_words)
    scored = [
        RankedReference(reference=ref, score=keyword_overlap(keywords, ref.fullText), original_index=i)
        for i, ref in enumerate(references)
    ]
    ranked = sorted((r for r in scored if r.score > 0), key=lambda r: r.score, reverse=True)
    return ranked[: max(0, top_n)]
