# model/matching.py
from typing import Any
from pydantic import BaseModel, Field, field_validator


class SemanticCandidate(BaseModel):
    name: str
    excerpt: str = Field(default="", max_length=2000)


class SemanticMatchRequest(BaseModel):
    claimText: str
    candidates: list[SemanticCandidate] = Field(default_factory=list, max_length=8)


class SemanticMatchResponse(BaseModel):
    matched: bool = False
    referenceIndex: int | None = None
    referenceName: str | None = None
    confidence: float | None = None
    supportingExcerpt: str | None = None
    pageInReference: Any = None
    reasoning: str = ""

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, v):
        if v is None:
            return None
        return max(0.0, min(1.0, float(v)))

    @field_validator("reasoning", mode="before")
    @classmethod
    def _none_reasoning(cls, v):
        return "" if v is None else v


class MatchingStats(BaseModel):
    total: int
    matched: int
    unmatched: int
    matchRate: float
    avgConfidence: float
