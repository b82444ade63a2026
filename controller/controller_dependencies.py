# controller/controller_dependencies.py
from fastapi import Depends, File, HTTPException, Request, UploadFile
from fastapi_limiter.depends import RateLimiter
from config.settings import settings
from repository.fact_repository import FactRepository
from repository.job_repository import JobRepository
from repository.match_result_repository import MatchResultRepository
from repository.reference_repository import ReferenceRepository
from service.matching_service import MatchingService
from service.position_service import PositionService
from service.reference_service import ReferenceService


def get_position_service() -> PositionService:
    return PositionService()


def get_reference_service() -> ReferenceService:
    return ReferenceService(ReferenceRepository(), FactRepository())


def get_matching_service() -> MatchingService:
    _jobs = JobRepository()
    _results = MatchResultRepository()
    _references = ReferenceRepository()
    _facts = FactRepository()
    return MatchingService(_jobs, _results, _references, _facts)


def _too_large() -> HTTPException:
    # JSON envelope for 413
    return HTTPException(
        status_code=413,
        detail={
            "ok": False,
            "error": "file_too_large",
            "maxMb": settings.MAX_FILE_MB,
        },
    )


async def enforce_max_upload_size(
    request: Request, file: UploadFile = File(...)
) -> UploadFile:
    max_bytes = settings.MAX_FILE_MB * 1024 * 1024
    cl = request.headers.get("content-length")
    if cl and cl.isdigit() and int(cl) > max_bytes:
        raise _too_large()

    # Hard cap while reading, works even without Content-Length
    blob = await file.read(max_bytes + 1)
    if len(blob) > max_bytes:
        raise _too_large()

    await file.seek(0)
    return file


def rate_limited() -> list:
    """Router-level limiter shared by every /api/v1 controller."""
    return [
        Depends(
            RateLimiter(
                times=settings.RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS
            )
        )
    ]
