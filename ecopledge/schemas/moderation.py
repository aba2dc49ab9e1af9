"""
Moderation schemas.

POST  /flags                → FlagCreateRequest → FlagResponse
GET   /admin/flags          → FlagListResponse
PATCH /admin/flags/{id}     → FlagResolveRequest → FlagResponse
POST  /admin/reminders      → ReminderRunResponse
"""
from __future__ import annotations

from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ecopledge.models.flag import FlagContentType
from ecopledge.schemas.common import strip_required


class FlagCreateRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    content_type: FlagContentType
    content_id: int = Field(ge=1)
    reason: Annotated[str, Field(min_length=10, max_length=1000)]

    @field_validator("reason", mode="before")
    @classmethod
    def strip_reason(cls, v):
        return strip_required(v, "reason")


class FlagResolveRequest(BaseModel):
    action: Literal["resolve", "delete"] = Field(
        default="resolve",
        description='"resolve" keeps the content, "delete" removes it.',
    )


class FlagResponse(BaseModel):
    id: int
    content_type: str
    content_id: int
    flagged_by_user_id: int
    reason: str
    status: str
    resolved_by_user_id: Optional[int] = None
    resolved_at: Optional[str] = None
    created_at: str


class FlagListResponse(BaseModel):
    total: int
    items: list[FlagResponse]


class ReminderRunResponse(BaseModel):
    idle_days: int
    sent: int
