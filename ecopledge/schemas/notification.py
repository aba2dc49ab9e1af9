"""
Notification schemas.

GET   /notifications            → NotificationListResponse
PATCH /notifications/{id}/read  → NotificationResponse
"""
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str = Field(description='"like" | "comment" | "milestone" | "reminder" | "admin" | "challenge"')
    message: str
    data: Optional[dict[str, Any]] = Field(default=None, description="Context specific to each type.")
    read: bool
    created_at: str


class NotificationListResponse(BaseModel):
    unread_count: int
    items: list[NotificationResponse]
