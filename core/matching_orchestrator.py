# core/matching_orchestrator.py
"""
Reference substantiation matching.

Each claim walks an escalating tier list and stops at the first decisive tier:

  Tier 0  pre-extracted fact lookup, accepted outright at score >= tier0_accept
  Tier 1  keyword prefilter; no candidates means no overlap
  Tier 2  external semantic matcher over the prefiltered candidates

Claims share a bounded number of slots and hold one for their whole tier walk,
so with a single slot they are processed strictly in input order. Tier-2 calls
are individually timed out, and any failure is recorded on that claim only.
Exactly one result is produced per input claim.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Callable, List, Optional, Sequence, Union

from config.settings import settings
from core.fact_lookup import fact_lookup
from core.prefilter import RankedReference, prefilter
from core.semantic_matcher import SemanticMatcher
from model.claim import (
    Claim,
    MatchedReference,
    MatchedResult,
    MatchResult,
    UnmatchedReason,
    UnmatchedResult,
)
from model.matching import (
    MatchingStats,
    SemanticCandidate,
    SemanticMatchRequest,
    SemanticMatchResponse,
)
from model.reference import ReferenceDocument, ReferenceFacts
from util.functions import truncate_for_prompt
from util.timing import timed

logger = logging.getLogger(__name__)

NO_OVERLAP_REASONING = "No keyword overlap with any reference document"
NO_SEMANTIC_MATCH_REASONING = "AI could not find a supporting reference"
CANCELLED_REASONING = "Matching cancelled before this claim was processed"


@dataclass(frozen=True)
class MatchingConfig:
    tier0_accept: float = 0.75
    tier0_candidate: float = 0.6
    top_n: int = 8
    excerpt_chars: int = 2000
    concurrency: int = 1
    timeout_seconds: Optional[float] = 45.0

    @classmethod
    def from_settings(cls) -> "MatchingConfig":
        return cls(
            tier0_accept=settings.MATCH_TIER0_ACCEPT,
            tier0_candidate=settings.MATCH_TIER0_CANDIDATE,
            top_n=settings.MATCH_TOP_N,
            excerpt_chars=settings.MATCH_EXCERPT_CHARS,
            concurrency=settings.MATCH_CONCURRENCY,
            timeout_seconds=settings.MATCH_TIMEOUT_SECONDS,
        )


@dataclass(frozen=True)
class MatchProgress:
    index: int  # 1-based
    total: int
    claim: Claim


@dataclass(frozen=True)
class ClaimMatched:
    index: int  # 1-based
    claim: Claim


MatchEvent = Union[MatchProgress, ClaimMatched]
ProgressCallback = Callable[[int, int, Claim], None]


@dataclass(frozen=True)
class MatchRun:
    claims: List[Claim]
    stats: MatchingStats


# ---------------- Tier steps ----------------


def tier0_result(
    claim_text: str, facts: Sequence[ReferenceFacts], config: MatchingConfig
) -> Optional[MatchedResult]:
    hit = fact_lookup(claim_text, facts, config.tier0_candidate)
    if hit is None or hit.score < config.tier0_accept:
        return None
    return MatchedResult(
        matchTier=0,
        matchConfidence=min(1.0, hit.score),
        reference=MatchedReference(
            id=hit.reference_id,
            name=hit.reference_name,
            page=hit.fact.page,
            excerpt=hit.fact.text,
        ),
        matchReasoning=(
            f"Direct fact match ({hit.score * 100:.0f}% keyword overlap): "
            f'"{hit.fact.text}"'
        ),
    )


def semantic_request(
    claim_text: str, ranked: Sequence[RankedReference], config: MatchingConfig
) -> SemanticMatchRequest:
    return SemanticMatchRequest(
        claimText=claim_text,
        candidates=[
            SemanticCandidate(
                name=r.reference.alias,
                excerpt=truncate_for_prompt(r.reference.fullText, config.excerpt_chars),
            )
            for r in ranked
        ],
    )


def tier2_result(
    response: SemanticMatchResponse, ranked: Sequence[RankedReference]
) -> MatchResult:
    idx = response.referenceIndex
    if response.matched and idx is not None and 1 <= idx <= len(ranked):
        ref = ranked[idx - 1].reference
        return MatchedResult(
            matchTier=2,
            matchConfidence=response.confidence,
            reference=MatchedReference(
                id=ref.id,
                name=response.referenceName or ref.alias,
                page=response.pageInReference,
                excerpt=response.supportingExcerpt,
            ),
            matchReasoning=response.reasoning,
        )
    return UnmatchedResult(
        reason=UnmatchedReason.no_semantic_match,
        matchReasoning=response.reasoning or NO_SEMANTIC_MATCH_REASONING,
    )


def error_result(message: str) -> UnmatchedResult:
    return UnmatchedResult(
        reason=UnmatchedReason.error, matchReasoning=f"Matching error: {message}"
    )


def cancelled_result() -> UnmatchedResult:
    return UnmatchedResult(
        reason=UnmatchedReason.cancelled, matchReasoning=CANCELLED_REASONING
    )


def _is_cancelled(cancel: Optional[asyncio.Event]) -> bool:
    return cancel is not None and cancel.is_set()


def matching_stats(claims: Sequence[Claim]) -> MatchingStats:
    matched = [c.match for c in claims if isinstance(c.match, MatchedResult)]
    total, n = len(claims), len(matched)
    avg = sum(m.matchConfidence for m in matched if m.matchConfidence) / n if n else 0.0
    return MatchingStats(
        total=total,
        matched=n,
        unmatched=total - n,
        matchRate=round(n / total * 100, 1) if total else 0.0,
        avgConfidence=round(avg * 100, 1),
    )


# ---------------- Orchestrator ----------------


class MatchingOrchestrator:
    def __init__(
        self, matcher: SemanticMatcher, config: MatchingConfig = MatchingConfig()
    ) -> None:
        self._matcher = matcher
        self._config = config

    async def _call_matcher(self, request: SemanticMatchRequest) -> SemanticMatchResponse:
        timeout = self._config.timeout_seconds
        call = self._matcher(request)
        raw = await (asyncio.wait_for(call, timeout) if timeout else call)
        if isinstance(raw, SemanticMatchResponse):
            return raw
        return SemanticMatchResponse.model_validate(raw)

    async def _resolve(
        self,
        claim: Claim,
        references: Sequence[ReferenceDocument],
        facts: Sequence[ReferenceFacts],
        cancel: Optional[asyncio.Event],
    ) -> MatchResult:
        if _is_cancelled(cancel):
            return cancelled_result()

        direct = tier0_result(claim.text, facts, self._config)
        if direct is not None:
            return direct

        ranked = prefilter(claim.text, references, self._config.top_n)
        if not ranked:
            return UnmatchedResult(
                reason=UnmatchedReason.no_overlap, matchReasoning=NO_OVERLAP_REASONING
            )

        request = semantic_request(claim.text, ranked, self._config)
        try:
            response = await self._call_matcher(request)
        except asyncio.TimeoutError:
            logger.warning(
                "match.tier2.timeout claim=%s after=%ss",
                claim.id,
                self._config.timeout_seconds,
            )
            return error_result(
                f"semantic matcher timed out after {self._config.timeout_seconds}s"
            )
        except Exception as e:
            logger.error("match.tier2.error claim=%s err=%s", claim.id, type(e).__name__)
            return error_result(str(e) or type(e).__name__)
        return tier2_result(response, ranked)

    async def match_claim(
        self,
        claim: Claim,
        references: Sequence[ReferenceDocument],
        facts: Sequence[ReferenceFacts] = (),
        cancel: Optional[asyncio.Event] = None,
    ) -> Claim:
        """Run the tier list for one claim; returns a copy carrying `match`."""
        result = await self._resolve(claim, references, facts, cancel)
        tier = result.matchTier if isinstance(result, MatchedResult) else None
        logger.info("match.claim id=%s matched=%s tier=%s", claim.id, result.matched, tier)
        return claim.model_copy(update={"match": result})

    async def stream(
        self,
        claims: Sequence[Claim],
        references: Sequence[ReferenceDocument],
        facts: Sequence[ReferenceFacts] = (),
        cancel: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[MatchEvent]:
        """
        Yield a MatchProgress when a claim takes a slot and starts matching, and
        a ClaimMatched when it finishes (completion order). Closing the
        iterator cancels in-flight work.
        """
        total = len(claims)
        slots = asyncio.Semaphore(max(1, self._config.concurrency))
        events: asyncio.Queue = asyncio.Queue()

        async def _one(index: int, claim: Claim) -> None:
            async with slots:
                events.put_nowait(MatchProgress(index=index, total=total, claim=claim))
                try:
                    enriched = await self.match_claim(claim, references, facts, cancel)
                except Exception as e:
                    logger.error("match.claim.error id=%s err=%s", claim.id, type(e).__name__)
                    enriched = claim.model_copy(
                        update={"match": error_result(str(e) or type(e).__name__)}
                    )
                events.put_nowait(ClaimMatched(index=index, claim=enriched))

        tasks = [
            asyncio.create_task(_one(i, c)) for i, c in enumerate(claims, start=1)
        ]
        try:
            for _ in range(2 * total):
                yield await events.get()
        finally:
            pending = [t for t in tasks if not t.done()]
            for t in pending:
                t.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

    async def match_all(
        self,
        claims: Sequence[Claim],
        references: Sequence[ReferenceDocument],
        facts: Sequence[ReferenceFacts] = (),
        on_progress: Optional[ProgressCallback] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> MatchRun:
        """Match every claim; results keep the input order."""
        results: List[Optional[Claim]] = [None] * len(claims)
        with timed(logger, "match.run", claims=len(claims), refs=len(references)):
            async for event in self.stream(claims, references, facts, cancel):
                if isinstance(event, MatchProgress):
                    if on_progress is not None:
                        on_progress(event.index, event.total, event.claim)
                else:
                    results[event.index - 1] = event.claim
        done = [c for c in results if c is not None]
        stats = matching_stats(done)
        logger.info(
            "match.stats total=%d matched=%d rate=%.1f avg_conf=%.1f",
            stats.total,
            stats.matched,
            stats.matchRate,
            stats.avgConfidence,
        )
        return MatchRun(claims=done, stats=stats)
