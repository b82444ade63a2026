# controller/position_controller.py
from fastapi import APIRouter, Depends, File, UploadFile, status
from controller.controller_dependencies import (
    enforce_max_upload_size,
    get_position_service,
    rate_limited,
)
from model.api import (
    ExtractLayoutResponse,
    ResolvePositionsRequest,
    ResolvePositionsResponse,
)
from service.position_service import PositionService
from util.constants import InternalURIs

position_router = APIRouter(dependencies=rate_limited())


@position_router.post(
    InternalURIs.EXTRACT_LAYOUT,
    response_model=ExtractLayoutResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(enforce_max_upload_size)],
)
async def extract_layout(
    file: UploadFile = File(...),
    service: PositionService = Depends(get_position_service),
) -> ExtractLayoutResponse:
    return ExtractLayoutResponse(pages=await service.extract_layout(file))


@position_router.post(
    InternalURIs.RESOLVE_POSITIONS,
    response_model=ResolvePositionsResponse,
    response_model_exclude_none=True,
)
async def resolve_positions(
    payload: ResolvePositionsRequest,
    service: PositionService = Depends(get_position_service),
) -> ResolvePositionsResponse:
    claims = await service.resolve(payload.claims, payload.pages, payload.useModelHint)
    return ResolvePositionsResponse(claims=claims)
