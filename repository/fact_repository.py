# repository/fact_repository.py
import logging
import time
from typing import List, Optional, Sequence, Tuple
from redis.asyncio import Redis
from config.cache import get_redis
from model.reference import Fact, ReferenceFacts
from repository.namespaces import FACTS, FEEDBACK
from util.enums import ExtractionStatus, FeedbackDecision

logger = logging.getLogger(__name__)

_COUNTER_FIELD = {
    FeedbackDecision.confirmed: "confirmed",
    FeedbackDecision.rejected: "rejected",
}


def _int(h: dict, key: str) -> int:
    v = h.get(key.encode("utf-8"), h.get(key))
    if v is None:
        return 0
    return int(v.decode("utf-8") if isinstance(v, (bytes, bytearray)) else v)


class FactRepository:
    """
    Per-reference fact index (JSON) plus reviewer feedback counters kept in a
    separate hash so increments stay atomic.
    """

    @staticmethod
    async def _client() -> Redis:
        return await get_redis()

    @staticmethod
    def _key(reference_id: str) -> str:
        return f"{FACTS}:{reference_id}"

    @staticmethod
    def _feedback_key(reference_id: str) -> str:
        return f"{FEEDBACK}:{reference_id}"

    async def _counts(self, r: Redis, reference_id: str) -> Tuple[int, int]:
        h = await r.hgetall(self._feedback_key(reference_id))
        return _int(h or {}, "confirmed"), _int(h or {}, "rejected")

    async def get(self, reference_id: str) -> Optional[ReferenceFacts]:
        r = await self._client()
        raw = await r.get(self._key(reference_id))
        if raw is None:
            return None
        stored = ReferenceFacts.model_validate_json(raw)
        confirmed, rejected = await self._counts(r, reference_id)
        return stored.model_copy(
            update={"confirmedCount": confirmed, "rejectedCount": rejected}
        )

    async def get_indexed(self, reference_ids: Sequence[str]) -> List[ReferenceFacts]:
        """Fact indexes ready for Tier-0 lookup; others are skipped."""
        out: List[ReferenceFacts] = []
        for ref_id in reference_ids:
            try:
                facts = await self.get(ref_id)
            except ValueError:
                logger.error("facts.corrupt reference=%s", ref_id)
                continue
            if facts is not None and facts.status == ExtractionStatus.indexed:
                out.append(facts)
        return out

    async def put(self, facts: ReferenceFacts) -> None:
        r = await self._client()
        stamped = facts.model_copy(update={"updatedAt": int(time.time())})
        payload = stamped.model_dump_json(exclude={"confirmedCount", "rejectedCount"})
        await r.set(self._key(facts.referenceId), payload.encode("utf-8"))

    async def set_status(
        self,
        reference_id: str,
        alias: str,
        status: ExtractionStatus,
        *,
        facts: Optional[List[Fact]] = None,
        model: Optional[str] = None,
        error: Optional[str] = None,
    ) -> ReferenceFacts:
        current = await self.get(reference_id)
        updated = ReferenceFacts(
            referenceId=reference_id,
            alias=alias,
            facts=facts if facts is not None else (current.facts if current else []),
            status=status,
            model=model or (current.model if current else None),
            error=error,
        )
        await self.put(updated)
        return await self.get(reference_id) or updated

    async def record_feedback(
        self, reference_id: str, decision: FeedbackDecision
    ) -> Tuple[int, int]:
        r = await self._client()
        await r.hincrby(self._feedback_key(reference_id), _COUNTER_FIELD[decision], 1)
        return await self._counts(r, reference_id)
