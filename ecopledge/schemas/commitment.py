"""
Commitment request / response schemas.

POST   /commitments                 → CommitmentCreateRequest → CommitmentCreateResponse
GET    /commitments/{id}            → CommitmentDetailResponse
PATCH  /commitments/{id}            → CommitmentUpdateRequest → CommitmentResponse
POST   /commitments/{id}/like       → LikeResponse
POST   /commitments/{id}/comments   → CommentCreateRequest → CommentResponse
GET    /commitments/{id}/comments   → CommentListResponse
GET    /commitments/user/{user_id}  → CommitmentListResponse
GET    /wall                        → WallFeedResponse
GET    /wall/trending               → TrendingResponse
GET    /wall/stats                  → WallStatsResponse
"""
from __future__ import annotations

from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ecopledge.models.commitment import CommitmentStatus, MediaType, Visibility
from ecopledge.schemas.common import Pagination, strip_required

TEXT_MIN_LENGTH = 10
TEXT_MAX_LENGTH = 2000
COMMENT_MAX_LENGTH = 1000


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class CommitmentCreateRequest(BaseModel):
    """A free-text sustainability commitment to interpret and persist."""
    model_config = ConfigDict(use_enum_values=True)

    text: Annotated[str, Field(
        min_length=TEXT_MIN_LENGTH,
        max_length=TEXT_MAX_LENGTH,
        description="Free-text commitment. Stripped of leading/trailing whitespace.",
        examples=["I will bike to work every weekday"],
    )]
    media_url: Optional[str] = Field(default=None, max_length=1024)
    media_type: Optional[MediaType] = Field(
        default=None, description="Defaults to `text`.", examples=["image"],
    )
    duration: Optional[str] = Field(
        default=None,
        max_length=64,
        description='Horizon used for the carbon estimate. Defaults to "1 month".',
        examples=["3 months"],
    )
    visibility: Optional[Visibility] = Field(
        default=None, description="Defaults to `public`.", examples=["private"],
    )

    @field_validator("text", mode="before")
    @classmethod
    def strip_text(cls, v):
        return strip_required(v, "text")


class CommitmentUpdateRequest(BaseModel):
    """Partial update; omitted fields are left untouched."""
    model_config = ConfigDict(use_enum_values=True)

    text: Optional[Annotated[str, Field(min_length=TEXT_MIN_LENGTH, max_length=TEXT_MAX_LENGTH)]] = None
    media_url: Optional[str] = Field(default=None, max_length=1024)
    media_type: Optional[MediaType] = None
    duration: Optional[str] = Field(default=None, max_length=64)
    visibility: Optional[Visibility] = None
    status: Optional[CommitmentStatus] = Field(
        default=None,
        description="Forward-only: active → completed → archived.",
    )

    @field_validator("text", mode="before")
    @classmethod
    def strip_text(cls, v):
        return strip_required(v, "text") if v is not None else v


class CommentCreateRequest(BaseModel):
    text: Annotated[str, Field(min_length=1, max_length=COMMENT_MAX_LENGTH)]

    @field_validator("text", mode="before")
    @classmethod
    def strip_text(cls, v):
        return strip_required(v, "comment text")


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class EstimatedSavingsOut(BaseModel):
    per_period: float
    total: float
    unit: str


class CommitmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    text: str
    media_type: str
    media_url: Optional[str] = None
    category: str
    frequency: str
    duration: Optional[str] = None
    visibility: str
    estimated_carbon_savings: EstimatedSavingsOut
    actual_carbon_saved: float
    status: str
    like_count: int
    comment_count: int
    created_at: str
    is_liked: Optional[bool] = Field(
        default=None, description="Only set on the wall feed for an authenticated viewer.",
    )


class MilestoneResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    commitment_id: int
    title: str
    description: str
    target_value: float
    current_value: int
    status: str = Field(description='"pending" | "in_progress" | "completed"')
    estimated_carbon_savings: float
    completed_at: Optional[str] = None


class InterpretationOut(BaseModel):
    category: str
    frequency: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    extracted_details: str
    degraded: bool = Field(description="True when the oracle was unavailable and defaults were used.")


class CarbonEstimateOut(BaseModel):
    per_period: float
    total: float
    unit: str
    confidence: str = Field(description='"high" | "medium" | "low"')
    explanation: str
    degraded: bool


class CommitmentCreateResponse(BaseModel):
    """The creation bundle: commitment, interpretation, estimate and milestones."""
    commitment: CommitmentResponse
    interpretation: InterpretationOut
    carbon_estimate: CarbonEstimateOut
    milestones: list[MilestoneResponse]


class CommitmentDetailResponse(BaseModel):
    commitment: CommitmentResponse
    milestones: list[MilestoneResponse]


class CommitmentListResponse(BaseModel):
    total: int
    items: list[CommitmentResponse]


class LikeResponse(BaseModel):
    liked: bool
    like_count: int


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    commitment_id: int
    user_id: int
    text: str
    created_at: str


class CommentListResponse(BaseModel):
    total: int
    items: list[CommentResponse]


class WallFeedResponse(BaseModel):
    items: list[CommitmentResponse]
    pagination: Pagination


class TrendingResponse(BaseModel):
    items: list[CommitmentResponse]


class CategoryBreakdownOut(BaseModel):
    category: str
    count: int
    carbon_saved: float


class WallStatsResponse(BaseModel):
    total_commitments: int
    total_carbon_saved: float
    active_users: int
    category_breakdown: list[CategoryBreakdownOut]
