# service/api_key_validation_service.py
import logging
import httpx
from fastapi import status
from config.settings import settings
from core.anthropic_client import probe_key
from util.enums import ErrorMessage
from util.errors import AppError

logger = logging.getLogger(__name__)

_REJECTED = (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)


class ApiKeyValidationService:
    """
    Users bring their own Anthropic key; check it once before any matching or
    fact extraction is spent on it.
    """

    async def validate_key(self, api_key: str) -> None:
        model = settings.ANTHROPIC_MODEL
        try:
            code = await probe_key(
                api_key=api_key, model=model, api_url=settings.ANTHROPIC_API_URL
            )
        except httpx.RequestError as e:
            logger.error("api.key.request_error err=%s", type(e).__name__)
            raise AppError.of(ErrorMessage.INTERNAL_ERROR)

        if code // 100 == 2:
            logger.info("api.key.validated model=%s", model)
            return
        if code in _REJECTED:
            logger.warning("api.key.invalid status=%d", code)
            raise AppError.of(ErrorMessage.INVALID_API_KEY)

        logger.error("api.key.unexpected status=%d", code)
        raise AppError.of(ErrorMessage.INTERNAL_ERROR)
