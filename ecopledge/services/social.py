"""
Social ranking surfaces: public wall feed and its aggregates (trending,
top contributors, stats), leaderboard and user profiles.
Read-mostly; update_profile is the only write.
"""
from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ecopledge.core.errors import UserNotFoundError
from ecopledge.db.base import enum_value
from ecopledge.models.commitment import Commitment, CommitmentLike, CommitmentStatus, Visibility
from ecopledge.models.user import User


class WallSort:
    RECENT  = "recent"
    IMPACT  = "impact"
    POPULAR = "popular"


class LeaderboardMetric:
    CARBON_SAVED = "carbon_saved"
    COMMITMENTS  = "commitments"
    LEVEL        = "level"


PROFILE_FIELDS = ("username", "bio", "location")

TRENDING_WINDOW_DAYS = 7


def get_wall_feed(
    db: Session,
    viewer: Optional[User] = None,
    sort: str = WallSort.RECENT,
    category: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> dict[str, Any]:
    """Public, active commitments with per-viewer `is_liked` flags and pagination."""
    q = db.query(Commitment).filter(
        Commitment.visibility == Visibility.public,
        Commitment.status == CommitmentStatus.active,
    )
    if category and category != "all":
        q = q.filter(Commitment.category == category)
    if search:
        q = q.filter(Commitment.text.ilike(f"%{search}%"))

    if sort == WallSort.IMPACT:
        q = q.order_by(Commitment.estimated_total.desc(), Commitment.id.desc())
    elif sort == WallSort.POPULAR:
        q = q.order_by(Commitment.like_count.desc(), Commitment.id.desc())
    else:
        q = q.order_by(Commitment.created_at.desc(), Commitment.id.desc())

    total = q.count()
    items = q.offset((page - 1) * limit).limit(limit).all()

    liked_ids: set[int] = set()
    if viewer is not None and items:
        liked_ids = {
            row.commitment_id
            for row in db.query(CommitmentLike.commitment_id).filter(
                CommitmentLike.user_id == viewer.id,
                CommitmentLike.commitment_id.in_([c.id for c in items]),
            )
        }

    return {
        "items": [(c, c.id in liked_ids) for c in items],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if limit else 0,
        },
    }


def get_leaderboard(
    db: Session,
    metric: str = LeaderboardMetric.CARBON_SAVED,
    limit: int = 50,
) -> list[User]:
    q = db.query(User)
    if metric == LeaderboardMetric.COMMITMENTS:
        q = q.order_by(User.total_commitments.desc(), User.id)
    elif metric == LeaderboardMetric.LEVEL:
        q = q.order_by(User.level.desc(), User.total_carbon_saved.desc(), User.id)
    else:
        q = q.order_by(User.total_carbon_saved.desc(), User.id)
    return q.limit(limit).all()


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


def update_profile(db: Session, user: User, changes: dict[str, Any]) -> User:
    for name in PROFILE_FIELDS:
        if name in changes:
            setattr(user, name, changes[name])
    db.commit()
    db.refresh(user)
    return user


# ---------------------------------------------------------------------------
# Wall aggregates
# ---------------------------------------------------------------------------

def _public_active():
    return (
        Commitment.visibility == Visibility.public,
        Commitment.status == CommitmentStatus.active,
    )


def get_trending(db: Session, limit: int = 10, now: Optional[datetime] = None) -> list[Commitment]:
    """Public, active commitments from the last TRENDING_WINDOW_DAYS, most engaged first."""
    since = (now or datetime.now(tz=timezone.utc)) - timedelta(days=TRENDING_WINDOW_DAYS)
    return (
        db.query(Commitment)
        .filter(*_public_active(), Commitment.created_at >= since)
        .order_by(
            Commitment.like_count.desc(),
            Commitment.comment_count.desc(),
            Commitment.id.desc(),
        )
        .limit(limit)
        .all()
    )


def get_top_contributors(db: Session, limit: int = 10) -> list[dict[str, Any]]:
    """Users ranked by carbon saved across their public, active commitments."""
    saved = func.coalesce(func.sum(Commitment.actual_carbon_saved), 0.0).label("carbon_saved")
    rows = (
        db.query(User, saved, func.count(Commitment.id).label("commitment_count"))
        .join(Commitment, Commitment.user_id == User.id)
        .filter(*_public_active())
        .group_by(User.id)
        .order_by(saved.desc(), User.id)
        .limit(limit)
        .all()
    )
    return [
        {"user": user, "total_carbon_saved": float(carbon), "commitment_count": count}
        for user, carbon, count in rows
    ]


def get_wall_stats(db: Session) -> dict[str, Any]:
    public_active = _public_active()
    total_commitments = db.query(func.count(Commitment.id)).filter(*public_active).scalar()
    # Carbon counts every public commitment, finished ones included.
    total_carbon = (
        db.query(func.coalesce(func.sum(Commitment.actual_carbon_saved), 0.0))
        .filter(Commitment.visibility == Visibility.public)
        .scalar()
    )
    active_users = (
        db.query(func.count(func.distinct(Commitment.user_id))).filter(*public_active).scalar()
    )
    breakdown = (
        db.query(
            Commitment.category,
            func.count(Commitment.id),
            func.coalesce(func.sum(Commitment.actual_carbon_saved), 0.0),
        )
        .filter(*public_active)
        .group_by(Commitment.category)
        .order_by(Commitment.category)
        .all()
    )
    return {
        "total_commitments": total_commitments or 0,
        "total_carbon_saved": float(total_carbon or 0.0),
        "active_users": active_users or 0,
        "category_breakdown": [
            {"category": enum_value(category), "count": count, "carbon_saved": float(carbon)}
            for category, count, carbon in breakdown
        ],
    }
