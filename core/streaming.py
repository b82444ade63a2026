# core/streaming.py
import asyncio
import json
import logging
from contextlib import aclosing
from typing import AsyncIterator, Dict, Final, List, Sequence
from core.matching_orchestrator import (
    ClaimMatched,
    MatchingOrchestrator,
    MatchProgress,
    matching_stats,
)
from model.claim import Claim
from model.reference import ReferenceDocument, ReferenceFacts
from repository.job_repository import JobRepository
from repository.match_result_repository import MatchResultRepository
from util.timing import timed
from util.types import ErrorPayload, EventType, ProgressPayload

LINE_SEP: Final[str] = "\n"
logger = logging.getLogger(__name__)


def ndjson_line(obj: Dict[str, object]) -> bytes:
    return (json.dumps(obj, separators=(",", ":")) + LINE_SEP).encode("utf-8")


def event_line(event_type: EventType, payload: Dict[str, object]) -> bytes:
    return ndjson_line({"type": event_type, "payload": payload})


async def make_match_stream(
    *,
    job_id: str,
    orchestrator: MatchingOrchestrator,
    jobs: JobRepository,
    results: MatchResultRepository,
    claims: Sequence[Claim],
    references: Sequence[ReferenceDocument],
    facts: Sequence[ReferenceFacts],
) -> AsyncIterator[bytes]:
    """
    Drive the matching orchestrator and emit NDJSON events:
      - progress when a claim starts matching
      - claim when its result is ready (completion order)
      - done with run stats at the end
    Finished claims are buffered per job so GET /match-results can replay them.
    Closing the stream (client disconnect) cancels the rest of the run.
    """
    total = len(claims)
    cancel = asyncio.Event()
    finished: List[Claim] = []
    completed = False

    logger.info(
        "stream.start job=%s claims=%d refs=%d facts=%d",
        job_id,
        total,
        len(references),
        len(facts),
    )
    await jobs.set_status(job_id, "matching")

    try:
        with timed(logger, "stream.match.all", job=job_id, claims=total):
            events = orchestrator.stream(claims, references, facts, cancel)
            async with aclosing(events):
                async for event in events:
                    if isinstance(event, MatchProgress):
                        payload: ProgressPayload = {
                            "index": event.index,
                            "total": event.total,
                            "claimId": event.claim.id,
                        }
                        yield event_line("progress", dict(payload))
                    elif isinstance(event, ClaimMatched):
                        finished.append(event.claim)
                        await results.append(job_id, event.claim)
                        await jobs.save_progress(
                            job_id, processed=len(finished), total=total
                        )
                        yield event_line(
                            "claim", event.claim.model_dump(mode="json", exclude_none=True)
                        )

        stats = matching_stats(finished)
        await jobs.set_status(job_id, "finished")
        completed = True
        logger.info(
            "stream.done job=%s matched=%d/%d rate=%.1f",
            job_id,
            stats.matched,
            stats.total,
            stats.matchRate,
        )
        yield event_line("done", {"jobId": job_id, "stats": stats.model_dump()})
    except Exception as e:
        logger.error("stream.error job=%s err=%s", job_id, type(e).__name__)
        await jobs.set_status(job_id, "failed")
        completed = True
        error: ErrorPayload = {"message": str(e) or type(e).__name__}
        yield event_line("error", dict(error))
        yield event_line("done", {"jobId": job_id})
    finally:
        if not completed:
            cancel.set()
            logger.warning(
                "stream.cancelled job=%s processed=%d/%d", job_id, len(finished), total
            )
            await jobs.set_status(job_id, "cancelled")
