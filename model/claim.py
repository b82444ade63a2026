# model/claim.py
from enum import Enum
from typing import Annotated, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ClaimStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class UnmatchedReason(str, Enum):
    no_overlap = "no_overlap"
    no_semantic_match = "no_semantic_match"
    error = "error"
    cancelled = "cancelled"


# ---------------- Positions ----------------


class _PositionBase(BaseModel):
    """Percent-of-page box; (x, y) is the box center."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float = 0.0
    height: float = 0.0
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    score: float = 0.0
    page: int | None = None


class PrefixAnchorPosition(_PositionBase):
    source: Literal["prefix-anchor", "prefix-anchor-numbers"] = "prefix-anchor"


class ExtractedPosition(_PositionBase):
    source: Literal["extracted"] = "extracted"


class ModelPosition(_PositionBase):
    source: Literal["model"] = "model"


class FallbackPosition(_PositionBase):
    source: Literal["fallback"] = "fallback"


Position = Annotated[
    Union[PrefixAnchorPosition, ExtractedPosition, ModelPosition, FallbackPosition],
    Field(discriminator="source"),
]


# ---------------- Match results ----------------


class MatchedReference(BaseModel):
    id: str
    name: str
    page: int | str | None = None
    excerpt: str | None = None


class MatchedResult(BaseModel):
    matched: Literal[True] = True
    matchTier: Literal[0, 1, 2]
    matchConfidence: float | None = None
    reference: MatchedReference
    matchReasoning: str = ""


class UnmatchedResult(BaseModel):
    matched: Literal[False] = False
    reason: UnmatchedReason
    matchReasoning: str = ""


MatchResult = Union[MatchedResult, UnmatchedResult]


# ---------------- Claim ----------------


class Claim(BaseModel):
    id: str
    text: str
    confidenceScore: float = Field(default=0.0, ge=0.0, le=1.0)
    page: int = Field(default=1, ge=1)
    status: ClaimStatus = ClaimStatus.pending
    # Detector hints (percent of page); never authoritative.
    x: float | None = None
    y: float | None = None
    position: Position | None = None
    globalIndex: int | None = None
    match: MatchResult | None = None

    @field_validator("confidenceScore", mode="before")
    @classmethod
    def _percent_to_unit(cls, v):
        # Detectors report 0-100 ints; the model keeps 0..1.
        if isinstance(v, (int, float)) and v > 1:
            return v / 100.0
        return v

    @property
    def matched(self) -> bool:
        return isinstance(self.match, MatchedResult)
