# controller/matching_controller.py
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from controller.controller_dependencies import get_matching_service, rate_limited
from model.api import MatchClaimsRequest, MatchResultsResponse
from service.matching_service import MatchingService
from util.constants import InternalURIs

matching_router = APIRouter(dependencies=rate_limited())


@matching_router.post(InternalURIs.MATCH_CLAIMS)
async def match_claims(
    payload: MatchClaimsRequest,
    service: MatchingService = Depends(get_matching_service),
):
    generator = await service.start(payload.claims, payload.apiKey, payload.referenceIds)
    return StreamingResponse(generator, media_type="application/x-ndjson")


@matching_router.get(
    InternalURIs.MATCH_RESULTS,
    response_model=MatchResultsResponse,
    response_model_exclude_none=True,
)
async def match_results(
    job_id: str,
    service: MatchingService = Depends(get_matching_service),
) -> MatchResultsResponse:
    return await service.get_results(job_id)
