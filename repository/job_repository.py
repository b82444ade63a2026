# repository/job_repository.py
import time
from typing import Final, Optional
from uuid import uuid4
from redis.asyncio import Redis
from config.cache import get_redis
from config.settings import settings
from model.job import Job, JobStatus
from repository.namespaces import JOBS

KEY_PREFIX: Final[str] = JOBS


def _s(h: dict, key: str, default: str = "") -> str:
    v = h.get(key.encode("utf-8"), h.get(key))
    if v is None:
        return default
    return v.decode("utf-8") if isinstance(v, (bytes, bytearray)) else str(v)


class JobRepository:
    """Matching-run bookkeeping: status plus the latest per-claim progress."""

    def __init__(self, ttl_seconds: int = settings.PERSISTENCE_TTL_SECONDS) -> None:
        self._ttl = int(ttl_seconds)

    @staticmethod
    async def _client() -> Redis:
        return await get_redis()

    @staticmethod
    def _key(job_id: str) -> str:
        return f"{KEY_PREFIX}:{job_id}"

    async def create(self, *, total: int, initial_status: JobStatus = "pending") -> Job:
        job = Job(id=str(uuid4()), status=initial_status, processed=0, total=total)
        r = await self._client()
        await r.hset(
            self._key(job.id),
            mapping={
                "id": job.id,
                "status": job.status,
                "processed": "0",
                "total": str(total),
                "created_ts": str(int(time.time())),
            },
        )
        await r.expire(self._key(job.id), self._ttl)
        return job

    async def get(self, job_id: str) -> Optional[Job]:
        if not job_id:
            return None
        r = await self._client()
        h = await r.hgetall(self._key(job_id))
        if not h:
            return None
        try:
            return Job(
                id=_s(h, "id"),
                status=_s(h, "status") or "pending",
                processed=int(_s(h, "processed", "0") or 0),
                total=int(_s(h, "total", "0") or 0),
            )
        except ValueError:
            return None

    async def set_status(self, job_id: str, status: JobStatus) -> None:
        r = await self._client()
        await r.hset(self._key(job_id), mapping={"status": status})
        await r.expire(self._key(job_id), self._ttl)

    async def save_progress(self, job_id: str, *, processed: int, total: int) -> None:
        """Keep only the latest snapshot; `processed` counts finished claims."""
        r = await self._client()
        await r.hset(
            self._key(job_id),
            mapping={
                "processed": str(processed),
                "total": str(total),
                "progress_ts": str(int(time.time())),
            },
        )
        await r.expire(self._key(job_id), self._ttl)
