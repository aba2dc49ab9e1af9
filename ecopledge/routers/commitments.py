"""
Commitments router.

POST   /commitments                  — interpret, estimate and create a commitment
GET    /commitments/user/{user_id}   — a user's commitments (public only for others)
GET    /commitments/{id}             — one commitment + its milestones
PATCH  /commitments/{id}             — owner-only partial update
DELETE /commitments/{id}             — owner-only delete
POST   /commitments/{id}/like        — toggle like
POST   /commitments/{id}/comments    — add a comment
GET    /commitments/{id}/comments    — list comments (newest first)
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ecopledge.core.auth import get_current_user, get_optional_user
from ecopledge.core.errors import CommitmentCreationError, EcoPledgeException
from ecopledge.db.base import enum_value, get_db
from ecopledge.models.comment import Comment
from ecopledge.models.commitment import Commitment, CommitmentStatus
from ecopledge.models.milestone import Milestone
from ecopledge.models.user import User
from ecopledge.schemas.common import ErrorResponse
from ecopledge.schemas.commitment import (
    CarbonEstimateOut,
    CommentCreateRequest,
    CommentListResponse,
    CommentResponse,
    CommitmentCreateRequest,
    CommitmentCreateResponse,
    CommitmentDetailResponse,
    CommitmentListResponse,
    CommitmentResponse,
    CommitmentUpdateRequest,
    EstimatedSavingsOut,
    InterpretationOut,
    LikeResponse,
    MilestoneResponse,
)
from ecopledge.services import commitments as service
from ecopledge.services.oracle import Oracle, get_oracle

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/commitments", tags=["commitments"])


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def commitment_to_response(c: Commitment, is_liked: Optional[bool] = None) -> CommitmentResponse:
    return CommitmentResponse(
        id=c.id,
        user_id=c.user_id,
        text=c.text,
        media_type=enum_value(c.media_type),
        media_url=c.media_url,
        category=enum_value(c.category),
        frequency=enum_value(c.frequency),
        duration=c.duration,
        visibility=enum_value(c.visibility),
        estimated_carbon_savings=EstimatedSavingsOut(
            per_period=c.estimated_per_period,
            total=c.estimated_total,
            unit=c.estimated_unit,
        ),
        actual_carbon_saved=c.actual_carbon_saved,
        status=enum_value(c.status),
        like_count=c.like_count,
        comment_count=c.comment_count,
        created_at=c.created_at.isoformat() if c.created_at else "",
        is_liked=is_liked,
    )


def milestone_to_response(m: Milestone) -> MilestoneResponse:
    return MilestoneResponse(
        id=m.id,
        commitment_id=m.commitment_id,
        title=m.title,
        description=m.description or "",
        target_value=m.target_value,
        current_value=m.current_value,
        status=enum_value(m.status),
        estimated_carbon_savings=m.estimated_carbon_savings,
        completed_at=m.completed_at.isoformat() if m.completed_at else None,
    )


def _comment_to_response(c: Comment) -> CommentResponse:
    return CommentResponse(
        id=c.id,
        commitment_id=c.commitment_id,
        user_id=c.user_id,
        text=c.text,
        created_at=c.created_at.isoformat() if c.created_at else "",
    )


# ---------------------------------------------------------------------------
# POST /commitments
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=CommitmentCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a commitment from free text",
    responses={
        401: {"model": ErrorResponse, "description": "No or invalid bearer token"},
        422: {"model": ErrorResponse, "description": "Validation error (text too short, bad enum, etc.)"},
        500: {"model": ErrorResponse, "description": "Creation failed; nothing was committed"},
    },
)
def create_commitment(
    payload: CommitmentCreateRequest,
    user: User = Depends(get_current_user),
    oracle: Oracle = Depends(get_oracle),
    db: Session = Depends(get_db),
):
    """
    Interpret the text (category / frequency), estimate carbon savings,
    persist the commitment, update the owner's stats and badges, and attach
    up to 3 suggested milestones.

    When the oracle is unavailable the deterministic fallbacks are used and
    `interpretation.degraded` / `carbon_estimate.degraded` are true.
    """
    try:
        result = service.create_commitment(
            db=db,
            owner=user,
            text=payload.text,
            oracle=oracle,
            media_url=payload.media_url,
            media_type=payload.media_type,
            duration=payload.duration,
            visibility=payload.visibility,
        )
    except EcoPledgeException:
        db.rollback()
        raise
    except Exception as exc:
        db.rollback()
        logger.exception("commitment creation failed for user %s", user.id)
        raise CommitmentCreationError() from exc

    i, e = result.interpretation, result.carbon_estimate
    return CommitmentCreateResponse(
        commitment=commitment_to_response(result.commitment),
        interpretation=InterpretationOut(
            category=i.category,
            frequency=i.frequency,
            parameters=i.parameters,
            extracted_details=i.extracted_details,
            degraded=i.degraded,
        ),
        carbon_estimate=CarbonEstimateOut(
            per_period=e.per_period,
            total=e.total,
            unit=e.unit,
            confidence=e.confidence,
            explanation=e.explanation,
            degraded=e.degraded,
        ),
        milestones=[milestone_to_response(m) for m in result.milestones],
    )


# ---------------------------------------------------------------------------
# GET /commitments/user/{user_id}
# ---------------------------------------------------------------------------

@router.get(
    "/user/{user_id}",
    response_model=CommitmentListResponse,
    summary="List a user's commitments (newest first)",
)
def list_user_commitments(
    user_id: int,
    status_filter: Optional[CommitmentStatus] = Query(
        default=None, alias="status", description="Filter by status. Omit for all.",
    ),
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Owners see all their commitments; other viewers only see public ones."""
    items = service.list_user_commitments(db, user_id, viewer, status_filter)
    return CommitmentListResponse(
        total=len(items),
        items=[commitment_to_response(c) for c in items],
    )


# ---------------------------------------------------------------------------
# /commitments/{id}
# ---------------------------------------------------------------------------

@router.get(
    "/{commitment_id}",
    response_model=CommitmentDetailResponse,
    summary="Get a commitment with its milestones",
    responses={
        403: {"description": "Commitment is private"},
        404: {"description": "Commitment not found"},
    },
)
def get_commitment(
    commitment_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    c = service.get_commitment(db, commitment_id, viewer)
    return CommitmentDetailResponse(
        commitment=commitment_to_response(c),
        milestones=[milestone_to_response(m) for m in c.milestones],
    )


@router.patch(
    "/{commitment_id}",
    response_model=CommitmentResponse,
    summary="Update a commitment (owner only)",
    responses={
        403: {"description": "Caller is not the owner"},
        404: {"description": "Commitment not found"},
        409: {"description": "Status transition not allowed"},
    },
)
def update_commitment(
    commitment_id: int,
    payload: CommitmentUpdateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    c = service.update_commitment(
        db, commitment_id, user, payload.model_dump(exclude_unset=True)
    )
    return commitment_to_response(c)


@router.delete(
    "/{commitment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a commitment (owner only)",
    responses={
        403: {"description": "Caller is not the owner"},
        404: {"description": "Commitment not found"},
    },
)
def delete_commitment(
    commitment_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service.delete_commitment(db, commitment_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Social interactions
# ---------------------------------------------------------------------------

@router.post(
    "/{commitment_id}/like",
    response_model=LikeResponse,
    summary="Toggle like on a commitment",
)
def like_commitment(
    commitment_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Likes if not yet liked by the caller, unlikes otherwise."""
    liked, like_count = service.toggle_like(db, commitment_id, user)
    return LikeResponse(liked=liked, like_count=like_count)


@router.post(
    "/{commitment_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a commitment",
)
def add_comment(
    commitment_id: int,
    payload: CommentCreateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    comment = service.add_comment(db, commitment_id, user, payload.text)
    return _comment_to_response(comment)


@router.get(
    "/{commitment_id}/comments",
    response_model=CommentListResponse,
    summary="List comments on a commitment (newest first)",
)
def list_comments(
    commitment_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    service.get_commitment(db, commitment_id, viewer)
    items = service.list_comments(db, commitment_id)
    return CommentListResponse(
        total=len(items),
        items=[_comment_to_response(c) for c in items],
    )
