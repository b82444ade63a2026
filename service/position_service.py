# service/position_service.py
import logging
from typing import List, Optional
from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool
from config.settings import settings
from core.pdf_text import extract_page_layouts
from core.position_resolver import resolve_positions
from model.claim import Claim
from model.layout import PageLayout
from util.enums import ErrorMessage
from util.errors import AppError

logger = logging.getLogger(__name__)


class PositionService:
    async def extract_layout(self, file: UploadFile) -> List[PageLayout]:
        data = await file.read()
        # PyMuPDF is blocking; keep it off the event loop
        pages = await run_in_threadpool(extract_page_layouts, data)
        if not pages:
            logger.warning("layout.empty bytes=%d", len(data))
            raise AppError.of(ErrorMessage.EMPTY_DOCUMENT)
        logger.info(
            "layout.ok pages=%d items=%d",
            len(pages),
            sum(len(p.items) for p in pages),
        )
        return pages

    async def resolve(
        self,
        claims: List[Claim],
        pages: List[PageLayout],
        use_model_hint: Optional[bool] = None,
    ) -> List[Claim]:
        hint = settings.POSITION_USE_MODEL_HINT if use_model_hint is None else use_model_hint
        return resolve_positions(claims, pages, use_model_hint=hint)
