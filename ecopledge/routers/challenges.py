"""
Challenges router.

POST /challenges             — create a challenge (creator joins automatically)
POST /challenges/{id}/join   — join a public challenge; notifies the creator
GET  /challenges/{id}        — challenge details with derived progress
GET  /challenges             — public challenges by phase
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ecopledge.core.auth import get_current_user, get_optional_user
from ecopledge.db.base import enum_value, get_db
from ecopledge.models.challenge import Challenge
from ecopledge.models.user import User
from ecopledge.schemas.challenge import (
    ChallengeCreateRequest,
    ChallengeListResponse,
    ChallengeResponse,
)
from ecopledge.schemas.common import ErrorResponse
from ecopledge.services import challenges as service
from ecopledge.services.challenges import ChallengePhase

router = APIRouter(prefix="/challenges", tags=["challenges"])


def _challenge_to_response(db: Session, c: Challenge) -> ChallengeResponse:
    participant_ids = c.participant_ids
    return ChallengeResponse(
        id=c.id,
        created_by_user_id=c.created_by_user_id,
        title=c.title,
        description=c.description,
        start_date=c.start_date.isoformat(),
        end_date=c.end_date.isoformat(),
        visibility=enum_value(c.visibility),
        phase=service.phase_of(c),
        target_carbon_savings=c.target_carbon_savings,
        current_carbon_savings=service.challenge_progress(db, c),
        participant_ids=participant_ids,
        participant_count=len(participant_ids),
    )


@router.post(
    "",
    response_model=ChallengeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a challenge",
    responses={
        401: {"model": ErrorResponse, "description": "No or invalid bearer token"},
        422: {"model": ErrorResponse, "description": "Validation error (dates, lengths, target)"},
    },
)
def create_challenge(
    payload: ChallengeCreateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    c = service.create_challenge(
        db,
        creator=user,
        title=payload.title,
        description=payload.description,
        start_date=payload.start_date,
        end_date=payload.end_date,
        target_carbon_savings=payload.target_carbon_savings,
        visibility=payload.visibility,
    )
    return _challenge_to_response(db, c)


@router.get("", response_model=ChallengeListResponse, summary="List public challenges")
def list_challenges(
    phase: str = Query(
        default=ChallengePhase.ACTIVE,
        alias="status",
        pattern=(
            f"^({ChallengePhase.ACTIVE}|{ChallengePhase.UPCOMING}|"
            f"{ChallengePhase.COMPLETED}|{ChallengePhase.ALL})$"
        ),
    ),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    items = service.list_challenges(db, phase=phase, limit=limit)
    return ChallengeListResponse(
        total=len(items),
        items=[_challenge_to_response(db, c) for c in items],
    )


@router.get(
    "/{challenge_id}",
    response_model=ChallengeResponse,
    summary="Get a challenge",
    responses={
        403: {"model": ErrorResponse, "description": "Challenge is not public and caller is not a participant"},
        404: {"model": ErrorResponse, "description": "Challenge not found"},
    },
)
def get_challenge(
    challenge_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    return _challenge_to_response(db, service.get_challenge(db, challenge_id, viewer))


@router.post(
    "/{challenge_id}/join",
    response_model=ChallengeResponse,
    summary="Join a challenge",
    responses={
        403: {"model": ErrorResponse, "description": "Challenge is not public"},
        404: {"model": ErrorResponse, "description": "Challenge not found"},
        409: {"model": ErrorResponse, "description": "Already a participant"},
    },
)
def join_challenge(
    challenge_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _challenge_to_response(db, service.join_challenge(db, challenge_id, user))
