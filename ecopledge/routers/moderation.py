"""
Moderation router.

POST  /flags               — report a commitment or comment
GET   /admin/flags         — review queue (admin)
PATCH /admin/flags/{id}    — resolve a flag, optionally deleting the content (admin)
POST  /admin/reminders     — notify owners of idle active commitments (admin)
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ecopledge.core.auth import get_current_user, require_role
from ecopledge.db.base import enum_value, get_db
from ecopledge.models.flag import Flag, FlagStatus
from ecopledge.models.user import User, UserRole
from ecopledge.schemas.common import ErrorResponse
from ecopledge.schemas.moderation import (
    FlagCreateRequest,
    FlagListResponse,
    FlagResolveRequest,
    FlagResponse,
    ReminderRunResponse,
)
from ecopledge.services import moderation as service
from ecopledge.services.progress import REMINDER_IDLE_DAYS, send_progress_reminders

router = APIRouter(tags=["moderation"])

require_admin = require_role(UserRole.admin.value)


def _flag_to_response(f: Flag) -> FlagResponse:
    return FlagResponse(
        id=f.id,
        content_type=enum_value(f.content_type),
        content_id=f.content_id,
        flagged_by_user_id=f.flagged_by_user_id,
        reason=f.reason,
        status=enum_value(f.status),
        resolved_by_user_id=f.resolved_by_user_id,
        resolved_at=f.resolved_at.isoformat() if f.resolved_at else None,
        created_at=f.created_at.isoformat() if f.created_at else "",
    )


@router.post(
    "/flags",
    response_model=FlagResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Flag a commitment or comment",
    responses={
        403: {"model": ErrorResponse, "description": "Commitment is private"},
        404: {"model": ErrorResponse, "description": "Flagged content not found"},
    },
)
def flag_content(
    payload: FlagCreateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    flag = service.flag_content(db, user, payload.content_type, payload.content_id, payload.reason)
    return _flag_to_response(flag)


@router.get(
    "/admin/flags",
    response_model=FlagListResponse,
    summary="List flags by status (admin)",
    responses={403: {"model": ErrorResponse, "description": "Caller is not an admin"}},
)
def list_flags(
    flag_status: str = Query(
        default=FlagStatus.open.value,
        alias="status",
        pattern=f"^({FlagStatus.open.value}|{FlagStatus.resolved.value})$",
    ),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    items = service.list_flags(db, flag_status)
    return FlagListResponse(total=len(items), items=[_flag_to_response(f) for f in items])


@router.patch(
    "/admin/flags/{flag_id}",
    response_model=FlagResponse,
    summary="Resolve a flag (admin)",
    responses={
        403: {"model": ErrorResponse, "description": "Caller is not an admin"},
        404: {"model": ErrorResponse, "description": "Flag not found"},
        409: {"model": ErrorResponse, "description": "Flag already resolved"},
    },
)
def resolve_flag(
    flag_id: int,
    payload: FlagResolveRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return _flag_to_response(service.resolve_flag(db, flag_id, admin, payload.action))


@router.post(
    "/admin/reminders",
    response_model=ReminderRunResponse,
    summary="Send progress reminders for idle commitments (admin)",
    responses={403: {"model": ErrorResponse, "description": "Caller is not an admin"}},
)
def send_reminders(
    idle_days: int = Query(default=REMINDER_IDLE_DAYS, ge=1, le=365),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    sent = send_progress_reminders(db, idle_days=idle_days)
    return ReminderRunResponse(idle_days=idle_days, sent=sent)
