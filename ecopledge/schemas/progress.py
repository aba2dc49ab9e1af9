"""
Progress request / response schemas.

POST /commitments/{id}/progress    → ProgressUpdateRequest → ProgressResultResponse
GET  /commitments/{id}/progress    → ProgressListResponse
GET  /commitments/{id}/milestones  → MilestoneListResponse
GET  /dashboard/me                 → DashboardResponse
"""
from __future__ import annotations

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ecopledge.schemas.commitment import MilestoneResponse
from ecopledge.schemas.common import strip_required


class ProgressUpdateRequest(BaseModel):
    amount: Annotated[str, Field(
        min_length=1,
        max_length=256,
        description="What was done, in the user's words.",
        examples=["biked 12 km"],
    )]
    note: Optional[Annotated[str, Field(max_length=500)]] = None
    delta_carbon_saved: float = Field(
        default=0.0,
        ge=0,
        description="kg CO2 saved by this update. Must be non-negative.",
        examples=[2.4],
    )

    @field_validator("amount", mode="before")
    @classmethod
    def strip_amount(cls, v):
        return strip_required(v, "amount")

    @field_validator("note", mode="before")
    @classmethod
    def strip_note(cls, v):
        return v.strip() if isinstance(v, str) else v


class ProgressUpdateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    commitment_id: int
    user_id: int
    amount: str
    note: Optional[str] = None
    delta_carbon_saved: float
    date: str


class CommitmentProgressOut(BaseModel):
    actual_carbon_saved: float


class ProgressResultResponse(BaseModel):
    progress_update: ProgressUpdateResponse
    updated_milestones: list[MilestoneResponse]
    commitment: CommitmentProgressOut


class ProgressListResponse(BaseModel):
    total: int
    items: list[ProgressUpdateResponse]


class MilestoneListResponse(BaseModel):
    total: int
    items: list[MilestoneResponse]


class DashboardStats(BaseModel):
    total_carbon_saved: float
    level: int
    badges: list[str]
    active_commitments: int
    completed_commitments: int
    total_milestones: int
    completed_milestones: int


class CarbonHistoryPoint(BaseModel):
    day: str = Field(description="ISO date (UTC).")
    carbon_saved: float


class CategoryBreakdown(BaseModel):
    category: str
    count: int
    carbon_saved: float


class RecentProgress(BaseModel):
    id: int
    commitment_id: int
    commitment_text: str
    category: str
    amount: str
    note: Optional[str] = None
    delta_carbon_saved: float
    date: str


class DashboardResponse(BaseModel):
    stats: DashboardStats
    carbon_history: list[CarbonHistoryPoint] = Field(description="Last 30 days, oldest first.")
    category_breakdown: list[CategoryBreakdown]
    recent_progress: list[RecentProgress] = Field(description="Last 10 updates, newest first.")
