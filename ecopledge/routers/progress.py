"""
Progress router.

POST /commitments/{id}/progress     — record a progress event (owner only)
GET  /commitments/{id}/progress     — last 50 progress events (newest first)
GET  /commitments/{id}/milestones   — milestones in creation order
GET  /dashboard/me                  — aggregate stats for the caller
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ecopledge.core.auth import get_current_user, get_optional_user
from ecopledge.core.errors import EcoPledgeException, ProgressRecordingError
from ecopledge.db.base import get_db
from ecopledge.models.progress_update import ProgressUpdate
from ecopledge.models.user import User
from ecopledge.routers.commitments import milestone_to_response
from ecopledge.schemas.common import ErrorResponse
from ecopledge.schemas.progress import (
    CommitmentProgressOut,
    DashboardResponse,
    MilestoneListResponse,
    ProgressListResponse,
    ProgressResultResponse,
    ProgressUpdateRequest,
    ProgressUpdateResponse,
)
from ecopledge.services import progress as service
from ecopledge.services.commitments import get_commitment

logger = logging.getLogger(__name__)

router = APIRouter(tags=["progress"])


def _progress_to_response(p: ProgressUpdate) -> ProgressUpdateResponse:
    return ProgressUpdateResponse(
        id=p.id,
        commitment_id=p.commitment_id,
        user_id=p.user_id,
        amount=p.amount,
        note=p.note,
        delta_carbon_saved=p.delta_carbon_saved,
        date=p.date.isoformat() if p.date else "",
    )


@router.post(
    "/commitments/{commitment_id}/progress",
    response_model=ProgressResultResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record progress on a commitment",
    responses={
        401: {"model": ErrorResponse, "description": "No or invalid bearer token"},
        403: {"model": ErrorResponse, "description": "Caller is not the owner; nothing is written"},
        404: {"model": ErrorResponse, "description": "Commitment not found"},
        500: {"model": ErrorResponse, "description": "Recording failed; nothing was committed"},
    },
)
def add_progress(
    commitment_id: int,
    payload: ProgressUpdateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Appends a progress event, adds `delta_carbon_saved` to the commitment and
    to the caller's totals (level and badges are re-evaluated), and advances
    every open milestone by one step.
    """
    try:
        result = service.record_progress(
            db=db,
            commitment_id=commitment_id,
            caller=user,
            amount=payload.amount,
            note=payload.note,
            delta_carbon_saved=payload.delta_carbon_saved,
        )
    except EcoPledgeException:
        db.rollback()
        raise
    except Exception as exc:
        db.rollback()
        logger.exception("progress update failed for commitment %s", commitment_id)
        raise ProgressRecordingError() from exc

    return ProgressResultResponse(
        progress_update=_progress_to_response(result.progress_update),
        updated_milestones=[milestone_to_response(m) for m in result.updated_milestones],
        commitment=CommitmentProgressOut(actual_carbon_saved=result.actual_carbon_saved),
    )


@router.get(
    "/commitments/{commitment_id}/progress",
    response_model=ProgressListResponse,
    summary="List progress events for a commitment",
)
def list_progress(
    commitment_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    get_commitment(db, commitment_id, viewer)
    items = service.list_progress_updates(db, commitment_id)
    return ProgressListResponse(
        total=len(items),
        items=[_progress_to_response(p) for p in items],
    )


@router.get(
    "/commitments/{commitment_id}/milestones",
    response_model=MilestoneListResponse,
    summary="List milestones for a commitment",
)
def list_milestones(
    commitment_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    get_commitment(db, commitment_id, viewer)
    items = service.list_milestones(db, commitment_id)
    return MilestoneListResponse(
        total=len(items),
        items=[milestone_to_response(m) for m in items],
    )


@router.get(
    "/dashboard/me",
    response_model=DashboardResponse,
    summary="Dashboard aggregate for the caller",
)
def dashboard(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Stats, 30-day carbon history, per-category breakdown and the last 10 updates."""
    return service.get_dashboard(db, user)
