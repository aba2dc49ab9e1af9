"""
Users router.

GET   /users/me       — caller's profile and gamification stats
PATCH /users/me       — update username / bio / location
GET   /users/{id}     — public profile
GET   /leaderboard    — users ranked by carbon saved, commitments or level
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ecopledge.core.auth import get_current_user
from ecopledge.db.base import get_db
from ecopledge.models.user import User
from ecopledge.schemas.user import (
    LeaderboardEntry,
    LeaderboardResponse,
    ProfileUpdateRequest,
    UserResponse,
)
from ecopledge.services.social import LeaderboardMetric, get_leaderboard, get_user, update_profile

router = APIRouter(tags=["users"])


def user_to_response(u: User) -> UserResponse:
    return UserResponse(
        id=u.id,
        name=u.name,
        username=u.username,
        image=u.image,
        bio=u.bio,
        location=u.location,
        total_carbon_saved=u.total_carbon_saved,
        total_commitments=u.total_commitments,
        completed_milestones=u.completed_milestones,
        level=u.level,
        badges=u.badge_ids,
    )


@router.get("/users/me", response_model=UserResponse, summary="Current user profile")
def me(user: User = Depends(get_current_user)):
    return user_to_response(user)


@router.patch("/users/me", response_model=UserResponse, summary="Update current user profile")
def update_me(
    payload: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return user_to_response(update_profile(db, user, payload.model_dump(exclude_unset=True)))


@router.get(
    "/users/{user_id}",
    response_model=UserResponse,
    summary="Public user profile",
    responses={404: {"description": "User not found"}},
)
def user_profile(user_id: int, db: Session = Depends(get_db)):
    return user_to_response(get_user(db, user_id))


@router.get("/leaderboard", response_model=LeaderboardResponse, summary="Leaderboard")
def leaderboard(
    metric: str = Query(
        default=LeaderboardMetric.CARBON_SAVED,
        pattern=f"^({LeaderboardMetric.CARBON_SAVED}|{LeaderboardMetric.COMMITMENTS}|{LeaderboardMetric.LEVEL})$",
        description=(
            f'"{LeaderboardMetric.CARBON_SAVED}", '
            f'"{LeaderboardMetric.COMMITMENTS}" or '
            f'"{LeaderboardMetric.LEVEL}".'
        ),
    ),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    users = get_leaderboard(db, metric=metric, limit=limit)
    return LeaderboardResponse(
        metric=metric,
        items=[
            LeaderboardEntry(rank=i, user=user_to_response(u))
            for i, u in enumerate(users, start=1)
        ],
    )
