# model/api.py
from pydantic import BaseModel, Field
from model.claim import Claim
from model.job import JobStatus
from model.layout import PageLayout
from model.matching import MatchingStats
from model.reference import Fact
from util.enums import ExtractionStatus, FeedbackDecision


class ValidateKeyRequest(BaseModel):
    apiKey: str = Field(min_length=1)


class ValidateKeyResponse(BaseModel):
    ok: bool


class ExtractLayoutResponse(BaseModel):
    pages: list[PageLayout]


class ResolvePositionsRequest(BaseModel):
    claims: list[Claim]
    pages: list[PageLayout] = Field(default_factory=list)
    useModelHint: bool | None = None


class ResolvePositionsResponse(BaseModel):
    claims: list[Claim]


class ReferenceSummary(BaseModel):
    id: str
    alias: str
    filename: str | None = None
    pageCount: int | None = None
    chars: int = 0
    factsStatus: ExtractionStatus | None = None
    factsCount: int = 0


class ReferenceListResponse(BaseModel):
    references: list[ReferenceSummary]


class ReferenceFactsResponse(BaseModel):
    referenceId: str
    facts: list[Fact]
    status: ExtractionStatus | None = None
    model: str | None = None
    confirmedCount: int = 0
    rejectedCount: int = 0
    error: str | None = None


class ExtractionStartedResponse(BaseModel):
    referenceId: str
    status: ExtractionStatus


class FeedbackRequest(BaseModel):
    decision: FeedbackDecision


class FeedbackResponse(BaseModel):
    referenceId: str
    confirmedCount: int
    rejectedCount: int


class MatchClaimsRequest(BaseModel):
    claims: list[Claim]
    apiKey: str = Field(min_length=1)
    referenceIds: list[str] | None = None


class MatchResultsResponse(BaseModel):
    jobId: str
    status: JobStatus
    claims: list[Claim]
    stats: MatchingStats
