# service/matching_service.py
import logging
from typing import AsyncIterator, List, Optional
from core.matching_orchestrator import MatchingConfig, MatchingOrchestrator, matching_stats
from core.semantic_matcher import AnthropicSemanticMatcher
from core.streaming import make_match_stream
from model.api import MatchResultsResponse
from model.claim import Claim
from repository.fact_repository import FactRepository
from repository.job_repository import JobRepository
from repository.match_result_repository import MatchResultRepository
from repository.reference_repository import ReferenceRepository
from util.enums import ErrorMessage
from util.errors import AppError

logger = logging.getLogger(__name__)


class MatchingService:
    def __init__(
        self,
        jobs: JobRepository,
        results: MatchResultRepository,
        references: ReferenceRepository,
        facts: FactRepository,
    ) -> None:
        self._jobs = jobs
        self._results = results
        self._references = references
        self._facts = facts

    async def start(
        self, claims: List[Claim], api_key: str, reference_ids: Optional[List[str]] = None
    ) -> AsyncIterator[bytes]:
        """
        Load the reference library (all of it, or the requested subset), create
        a job and return its NDJSON match stream.
        """
        ids = reference_ids if reference_ids else await self._references.ids()
        references = await self._references.get_many(ids)
        if reference_ids and not references:
            raise AppError.of(ErrorMessage.REFERENCE_NOT_FOUND)
        facts = await self._facts.get_indexed([r.id for r in references])

        job = await self._jobs.create(total=len(claims))
        await self._results.clear(job.id)
        logger.info(
            "match.job job=%s claims=%d refs=%d fact_indexes=%d",
            job.id,
            len(claims),
            len(references),
            len(facts),
        )
        config = MatchingConfig.from_settings()
        matcher = AnthropicSemanticMatcher(
            api_key, http_timeout=config.timeout_seconds or 45.0
        )
        return make_match_stream(
            job_id=job.id,
            orchestrator=MatchingOrchestrator(matcher, config),
            jobs=self._jobs,
            results=self._results,
            claims=claims,
            references=references,
            facts=facts,
        )

    async def get_results(self, job_id: str) -> MatchResultsResponse:
        job = await self._jobs.get(job_id)
        if job is None:
            raise AppError.of(ErrorMessage.JOB_NOT_FOUND)
        claims = await self._results.all(job_id)
        # Completion order in the buffer; report in reading order
        claims.sort(key=lambda c: (c.globalIndex is None, c.globalIndex or 0))
        return MatchResultsResponse(
            jobId=job.id,
            status=job.status,
            claims=claims,
            stats=matching_stats(claims),
        )
