# core/fact_lookup.py
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence
from core.keywords import extract_keywords
from model.reference import Fact, ReferenceFacts

CANDIDATE_THRESHOLD = 0.6
CONFIRMED_BOOST = 1.1
REJECTED_PENALTY = 0.8


@dataclass(frozen=True)
class FactMatch:
    reference_id: str
    reference_name: str
    fact: Fact
    score: float


def reliability_factor(ref: ReferenceFacts) -> float:
    """Reviewer feedback weighting for every fact of a reference."""
    if ref.confirmedCount > 0 and ref.rejectedCount == 0:
        return CONFIRMED_BOOST
    if ref.rejectedCount > ref.confirmedCount:
        return REJECTED_PENALTY
    return 1.0


def fact_overlap(claim_lower: str, fact: Fact) -> float:
    keywords = [k.lower() for k in fact.keywords]
    if not keywords:
        return 0.0
    return sum(1 for k in keywords if k in claim_lower) / len(keywords)


def _scored(claim_lower: str, reference_facts: Iterable[ReferenceFacts]):
    for ref in reference_facts:
        factor = reliability_factor(ref)
        for fact in ref.facts:
            if fact.keywords:
                yield FactMatch(
                    reference_id=ref.referenceId,
                    reference_name=ref.alias,
                    fact=fact,
                    score=fact_overlap(claim_lower, fact) * factor,
                )


def fact_lookup(
    claim_text: str,
    reference_facts: Sequence[ReferenceFacts],
    threshold: float = CANDIDATE_THRESHOLD,
) -> Optional[FactMatch]:
    """
    Tier 0: best pre-extracted fact whose keywords appear in the claim.

    Score is the fraction of the fact's keywords found in the claim text,
    adjusted by the owning reference's feedback record. Only facts scoring at
    least `threshold` are candidates; the first fact reaching the top score wins.
    """
    if not reference_facts or not extract_keywords(claim_text):
        return None
    claim_lower = claim_text.lower()
    best: Optional[FactMatch] = None
    for match in _scored(claim_lower, reference_facts):
        if match.score >= threshold and (best is None or match.score > best.score):
            best = match
    return best
