"""
Notifications router.

GET   /notifications             — caller's notifications (newest first) + unread count
PATCH /notifications/{id}/read   — mark one as read
"""
from __future__ import annotations

import json
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ecopledge.core.auth import get_current_user
from ecopledge.db.base import enum_value, get_db
from ecopledge.models.notification import Notification
from ecopledge.models.user import User
from ecopledge.schemas.notification import NotificationListResponse, NotificationResponse
from ecopledge.services.notifications import list_notifications, mark_notification_read

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _parse_payload(raw: Optional[str]) -> Optional[dict[str, Any]]:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (ValueError, TypeError):
        return None


def _notification_to_response(n: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=n.id,
        type=enum_value(n.type),
        message=n.message,
        data=_parse_payload(n.payload),
        read=n.read,
        created_at=n.created_at.isoformat() if n.created_at else "",
    )


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List the caller's notifications",
)
def get_notifications(
    unread_only: bool = Query(default=False, description="Only unread notifications."),
    limit: int = Query(default=50, ge=1, le=200, description="Page size."),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    unread_count, items = list_notifications(db, user, unread_only=unread_only, limit=limit)
    return NotificationListResponse(
        unread_count=unread_count,
        items=[_notification_to_response(n) for n in items],
    )


@router.patch(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark a notification as read",
    responses={404: {"description": "No such notification for the caller"}},
)
def read_notification(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _notification_to_response(mark_notification_read(db, user, notification_id))
