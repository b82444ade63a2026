# controller/validation_controller.py
from fastapi import APIRouter, Depends
from controller.controller_dependencies import rate_limited
from model.api import ValidateKeyRequest, ValidateKeyResponse
from service.api_key_validation_service import ApiKeyValidationService
from util.constants import InternalURIs

validation_router = APIRouter(dependencies=rate_limited())


@validation_router.post(InternalURIs.VALIDATE_API_KEY, response_model=ValidateKeyResponse)
async def validate_api_key(
    payload: ValidateKeyRequest,
    service: ApiKeyValidationService = Depends(ApiKeyValidationService),
) -> ValidateKeyResponse:
    """200 with ok=true, or the AppError raised for a rejected/unreachable key."""
    await service.validate_key(payload.apiKey.strip())
    return ValidateKeyResponse(ok=True)
