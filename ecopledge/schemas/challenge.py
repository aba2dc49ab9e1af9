"""
Challenge schemas.

POST /challenges              → ChallengeCreateRequest → ChallengeResponse
POST /challenges/{id}/join    → ChallengeResponse
GET  /challenges/{id}         → ChallengeResponse
GET  /challenges              → ChallengeListResponse
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ecopledge.models.commitment import Visibility
from ecopledge.schemas.common import strip_required


class ChallengeCreateRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: Annotated[str, Field(min_length=5, max_length=200, examples=["Car-free October"])]
    description: Annotated[str, Field(min_length=10, max_length=2000)]
    start_date: datetime
    end_date: datetime
    target_carbon_savings: float = Field(ge=0, description="kg CO2 the group aims to save.")
    visibility: Optional[Visibility] = Field(default=None, description="Defaults to `public`.")

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v, info):
        return strip_required(v, info.field_name)

    @field_validator("start_date", "end_date")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return v.replace(tzinfo=timezone.utc) if v.tzinfo is None else v

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class ChallengeResponse(BaseModel):
    id: int
    created_by_user_id: Optional[int] = None
    title: str
    description: str
    start_date: str
    end_date: str
    visibility: str
    phase: str = Field(description='"upcoming" | "active" | "completed"')
    target_carbon_savings: float
    current_carbon_savings: float
    participant_ids: list[int]
    participant_count: int


class ChallengeListResponse(BaseModel):
    total: int
    items: list[ChallengeResponse]
