# service/reference_service.py
import logging
import time
from typing import List, Optional
from fastapi import BackgroundTasks, UploadFile
from starlette.concurrency import run_in_threadpool
from config.settings import settings
from core.fact_extractor import extract_facts
from core.pdf_text import extract_full_text
from model.api import ReferenceSummary
from model.reference import ReferenceDocument, ReferenceFacts
from repository.fact_repository import FactRepository
from repository.reference_repository import ReferenceRepository
from util.enums import ErrorMessage, ExtractionStatus, FeedbackDecision
from util.errors import AppError
from util.functions import generate_alias

logger = logging.getLogger(__name__)


class ReferenceService:
    def __init__(self, references: ReferenceRepository, facts: FactRepository) -> None:
        self._references = references
        self._facts = facts

    async def upload(self, file: UploadFile, alias: Optional[str] = None) -> ReferenceDocument:
        """
        Parse the PDF, derive an alias from the filename when none is given,
        and store the reference. Logs sizes only, never document text.
        """
        data = await file.read()
        text, page_count = await run_in_threadpool(extract_full_text, data)
        if not text.strip():
            logger.warning("reference.empty file_bytes=%d", len(data))
            raise AppError.of(ErrorMessage.EMPTY_DOCUMENT)

        filename = file.filename or "reference.pdf"
        ref = ReferenceDocument(
            id=self._references.new_id(),
            alias=(alias or "").strip() or generate_alias(filename),
            fullText=text,
            filename=filename,
            pageCount=page_count,
            uploadedAt=int(time.time()),
        )
        await self._references.put(ref)
        await self._facts.set_status(ref.id, ref.alias, ExtractionStatus.pending)
        logger.info(
            "reference.stored id=%s pages=%d chars=%d", ref.id, page_count, len(text)
        )
        return ref

    async def require(self, reference_id: str) -> ReferenceDocument:
        ref = await self._references.get(reference_id)
        if ref is None:
            raise AppError.of(ErrorMessage.REFERENCE_NOT_FOUND)
        return ref

    async def list(self) -> List[ReferenceSummary]:
        out: List[ReferenceSummary] = []
        for ref in await self._references.all():
            facts = await self._facts.get(ref.id)
            out.append(
                ReferenceSummary(
                    id=ref.id,
                    alias=ref.alias,
                    filename=ref.filename,
                    pageCount=ref.pageCount,
                    chars=len(ref.fullText),
                    factsStatus=facts.status if facts else None,
                    factsCount=len(facts.facts) if facts else 0,
                )
            )
        return out

    async def get_facts(self, reference_id: str) -> ReferenceFacts:
        ref = await self.require(reference_id)
        facts = await self._facts.get(reference_id)
        return facts or ReferenceFacts(referenceId=ref.id, alias=ref.alias)

    async def trigger_extraction(
        self, reference_id: str, api_key: str, background: BackgroundTasks
    ) -> ExtractionStatus:
        if not api_key:
            raise AppError.of(ErrorMessage.API_KEY_REQUIRED)
        ref = await self.require(reference_id)
        await self._facts.set_status(ref.id, ref.alias, ExtractionStatus.extracting)
        background.add_task(self.run_extraction, ref, api_key)
        logger.info("facts.queued reference=%s", ref.id)
        return ExtractionStatus.extracting

    async def run_extraction(self, ref: ReferenceDocument, api_key: str) -> None:
        """Background task: build the fact index and record the outcome."""
        model = settings.ANTHROPIC_MODEL
        try:
            facts = await extract_facts(ref.fullText, api_key=api_key, model=model)
        except Exception as e:
            logger.error("facts.failed reference=%s err=%s", ref.id, type(e).__name__)
            await self._facts.set_status(
                ref.id,
                ref.alias,
                ExtractionStatus.failed,
                error=str(e) or type(e).__name__,
            )
            return
        await self._facts.set_status(
            ref.id, ref.alias, ExtractionStatus.indexed, facts=facts, model=model
        )
        logger.info("facts.indexed reference=%s count=%d", ref.id, len(facts))

    async def record_feedback(
        self, reference_id: str, decision: FeedbackDecision
    ) -> ReferenceFacts:
        await self.require(reference_id)
        await self._facts.record_feedback(reference_id, decision)
        logger.info("facts.feedback reference=%s decision=%s", reference_id, decision.value)
        return await self.get_facts(reference_id)
