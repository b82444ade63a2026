# controller/reference_controller.py
from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    File,
    Form,
    UploadFile,
    status,
)
from controller.controller_dependencies import (
    enforce_max_upload_size,
    get_reference_service,
    rate_limited,
)
from model.api import (
    ExtractionStartedResponse,
    FeedbackRequest,
    FeedbackResponse,
    ReferenceFactsResponse,
    ReferenceListResponse,
    ValidateKeyRequest,
)
from model.reference import ReferenceDocument
from service.reference_service import ReferenceService
from util.constants import InternalURIs

reference_router = APIRouter(dependencies=rate_limited())


@reference_router.post(
    InternalURIs.REFERENCES,
    response_model=ReferenceDocument,
    response_model_exclude={"fullText"},
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_max_upload_size)],
)
async def upload_reference(
    background: BackgroundTasks,
    file: UploadFile = File(...),
    alias: str | None = Form(None),
    apiKey: str | None = Form(None),
    service: ReferenceService = Depends(get_reference_service),
) -> ReferenceDocument:
    ref = await service.upload(file, alias)
    if apiKey:
        await service.trigger_extraction(ref.id, apiKey, background)
    return ref


@reference_router.get(InternalURIs.REFERENCES, response_model=ReferenceListResponse)
async def list_references(
    service: ReferenceService = Depends(get_reference_service),
) -> ReferenceListResponse:
    return ReferenceListResponse(references=await service.list())


@reference_router.get(InternalURIs.REFERENCE_FACTS, response_model=ReferenceFactsResponse)
async def get_reference_facts(
    reference_id: str,
    service: ReferenceService = Depends(get_reference_service),
) -> ReferenceFactsResponse:
    facts = await service.get_facts(reference_id)
    return ReferenceFactsResponse(
        referenceId=facts.referenceId,
        facts=facts.facts,
        status=facts.status,
        model=facts.model,
        confirmedCount=facts.confirmedCount,
        rejectedCount=facts.rejectedCount,
        error=facts.error,
    )


@reference_router.post(
    InternalURIs.REFERENCE_FACTS,
    response_model=ExtractionStartedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def extract_reference_facts(
    reference_id: str,
    payload: ValidateKeyRequest,
    background: BackgroundTasks,
    service: ReferenceService = Depends(get_reference_service),
) -> ExtractionStartedResponse:
    state = await service.trigger_extraction(reference_id, payload.apiKey, background)
    return ExtractionStartedResponse(referenceId=reference_id, status=state)


@reference_router.post(InternalURIs.REFERENCE_FEEDBACK, response_model=FeedbackResponse)
async def reference_feedback(
    reference_id: str,
    payload: FeedbackRequest,
    service: ReferenceService = Depends(get_reference_service),
) -> FeedbackResponse:
    facts = await service.record_feedback(reference_id, payload.decision)
    return FeedbackResponse(
        referenceId=reference_id,
        confirmedCount=facts.confirmedCount,
        rejectedCount=facts.rejectedCount,
    )
