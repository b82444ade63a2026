# model/reference.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from util.enums import ExtractionStatus


class ReferenceDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    alias: str
    fullText: str = ""
    filename: str | None = None
    pageCount: int | None = None
    uploadedAt: int | None = None


class Fact(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    category: str = "other"
    keywords: list[str] = Field(default_factory=list)
    page: int | None = None

    @field_validator("keywords", mode="before")
    @classmethod
    def _clean_keywords(cls, v):
        if not v:
            return []
        if isinstance(v, str):
            v = [v]
        return [str(k).strip() for k in v if str(k).strip()]

    @field_validator("page", mode="before")
    @classmethod
    def _loose_page(cls, v):
        # Extractors sometimes answer "3", "p. 3" or "unknown".
        try:
            return int(v) if v is not None else None
        except (TypeError, ValueError):
            return None


class ReferenceFacts(BaseModel):
    """Pre-extracted fact index for one reference plus reviewer feedback counters."""

    referenceId: str
    alias: str
    facts: list[Fact] = Field(default_factory=list)
    confirmedCount: int = 0
    rejectedCount: int = 0
    status: ExtractionStatus = ExtractionStatus.pending
    model: str | None = None
    error: str | None = None
    updatedAt: int | None = None
