# repository/reference_repository.py
import logging
from typing import List, Optional, Sequence
from uuid import uuid4
from redis.asyncio import Redis
from config.cache import get_redis
from model.reference import ReferenceDocument
from repository.namespaces import REFERENCE_INDEX, REFERENCES

logger = logging.getLogger(__name__)


class ReferenceRepository:
    """
    Reference library. Documents are stored as JSON under their id and listed
    through an index set; they do not expire.
    """

    @staticmethod
    async def _client() -> Redis:
        return await get_redis()

    @staticmethod
    def _key(reference_id: str) -> str:
        return f"{REFERENCES}:{reference_id}"

    @staticmethod
    def new_id() -> str:
        return uuid4().hex[:12]

    async def put(self, ref: ReferenceDocument) -> None:
        r = await self._client()
        await r.set(self._key(ref.id), ref.model_dump_json().encode("utf-8"))
        await r.sadd(REFERENCE_INDEX, ref.id)

    async def get(self, reference_id: str) -> Optional[ReferenceDocument]:
        r = await self._client()
        raw = await r.get(self._key(reference_id))
        if raw is None:
            return None
        return ReferenceDocument.model_validate_json(raw)

    async def get_many(self, reference_ids: Sequence[str]) -> List[ReferenceDocument]:
        if not reference_ids:
            return []
        r = await self._client()
        raws = await r.mget([self._key(i) for i in reference_ids])
        out: List[ReferenceDocument] = []
        for ref_id, raw in zip(reference_ids, raws):
            if raw is None:
                logger.warning("reference.missing id=%s", ref_id)
                continue
            try:
                out.append(ReferenceDocument.model_validate_json(raw))
            except ValueError:
                logger.error("reference.corrupt id=%s", ref_id)
        return out

    async def ids(self) -> List[str]:
        r = await self._client()
        members = await r.smembers(REFERENCE_INDEX)
        return sorted(
            m.decode("utf-8") if isinstance(m, (bytes, bytearray)) else str(m)
            for m in members or []
        )

    async def all(self) -> List[ReferenceDocument]:
        """Every reference, oldest upload first."""
        refs = await self.get_many(await self.ids())
        return sorted(refs, key=lambda ref: (ref.uploadedAt or 0, ref.id))
