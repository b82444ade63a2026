# repository/match_result_repository.py
from typing import List
from redis.asyncio import Redis
from config.cache import get_redis
from config.settings import settings
from model.claim import Claim
from repository.namespaces import MATCHES


class MatchResultRepository:
    """
    Flow:
    - Append each matched claim (position + match result) to a Redis list keyed by jobId.
    - GET /match-results replays the list after the stream has ended or dropped.
    - TTL is refreshed on append/read so results survive active sessions.
    """

    def __init__(self, ttl_seconds: int = settings.PERSISTENCE_TTL_SECONDS) -> None:
        self._ttl = int(ttl_seconds)

    @staticmethod
    def _key(job_id: str) -> str:
        return f"{MATCHES}:{job_id}"

    @staticmethod
    async def _client() -> Redis:
        return await get_redis()

    async def append(self, job_id: str, claim: Claim) -> None:
        r = await self._client()
        payload = claim.model_dump_json(exclude_none=True).encode("utf-8")
        await r.rpush(self._key(job_id), payload)
        await r.expire(self._key(job_id), self._ttl)

    async def all(self, job_id: str) -> List[Claim]:
        r = await self._client()
        vals = await r.lrange(self._key(job_id), 0, -1)
        out: List[Claim] = []
        for raw in vals or []:
            try:
                out.append(Claim.model_validate_json(raw))
            except ValueError:
                # Skip malformed entries instead of failing the whole read
                continue
        if vals:
            await r.expire(self._key(job_id), self._ttl)
        return out

    async def clear(self, job_id: str) -> int:
        r = await self._client()
        return int(await r.delete(self._key(job_id)))
