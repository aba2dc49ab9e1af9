"""
Commitment lifecycle: creation pipeline plus owner-guarded mutations and
the like / comment interactions.

Public API
----------
create_commitment(db, owner, text, oracle, ...)     -> CreationResult  (commits)
get_commitment(db, commitment_id, viewer)           -> Commitment
update_commitment(db, commitment_id, caller, ...)   -> Commitment      (commits)
delete_commitment(db, commitment_id, caller)        -> None            (commits)
toggle_like(db, commitment_id, caller)              -> (liked, like_count)
add_comment(db, commitment_id, caller, text)        -> Comment
list_comments(db, commitment_id)                    -> list[Comment]
list_user_commitments(db, owner_id, viewer, status) -> list[Commitment]

Creation runs every step inside one session and commits once, so on a
transactional engine the commitment, its milestones and the owner's stats
land together or not at all.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.orm import Session

from ecopledge.core.config import settings
from ecopledge.core.errors import (
    AuthorizationDeniedError,
    InvalidStatusTransitionError,
    NotFoundError,
)
from ecopledge.db.base import enum_value
from ecopledge.models.comment import Comment
from ecopledge.models.commitment import (
    Commitment,
    CommitmentLike,
    CommitmentStatus,
    MediaType,
    Visibility,
)
from ecopledge.models.milestone import Milestone, MilestoneStatus
from ecopledge.models.user import User
from ecopledge.services.carbon import CarbonEstimate, estimate_carbon_savings
from ecopledge.services.gamification import BadgeEvent, apply_stats_delta, evaluate_badges
from ecopledge.services.milestones import suggest_milestones
from ecopledge.services.notifications import notify_comment, notify_like
from ecopledge.services.oracle import Interpretation, Oracle, interpret_commitment

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("text", "media_url", "media_type", "duration", "visibility", "status")

# current status -> statuses it may move to
_STATUS_TRANSITIONS: dict[str, set[str]] = {
    CommitmentStatus.active.value: {CommitmentStatus.completed.value, CommitmentStatus.archived.value},
    CommitmentStatus.completed.value: {CommitmentStatus.archived.value},
    CommitmentStatus.archived.value: set(),
}


@dataclass
class CreationResult:
    commitment: Commitment
    interpretation: Interpretation
    carbon_estimate: CarbonEstimate
    milestones: list[Milestone]


def _load(db: Session, commitment_id: int) -> Commitment:
    commitment = db.get(Commitment, commitment_id)
    if commitment is None:
        raise NotFoundError("commitment", commitment_id)
    return commitment


def _require_owner(commitment: Commitment, caller: User, action: str) -> None:
    if commitment.user_id != caller.id:
        raise AuthorizationDeniedError(action, "commitment", commitment.id)


# ---------------------------------------------------------------------------
# Creation pipeline
# ---------------------------------------------------------------------------

def create_commitment(
    db: Session,
    owner: User,
    text: str,
    oracle: Oracle,
    media_url: Optional[str] = None,
    media_type: Optional[str] = None,
    duration: Optional[str] = None,
    visibility: Optional[str] = None,
) -> CreationResult:
    """
    interpret -> estimate -> persist commitment -> owner stats + badges
    -> suggest and persist milestones -> commit.
    """
    duration = duration or settings.DEFAULT_DURATION

    interpretation = interpret_commitment(text, oracle)
    estimate = estimate_carbon_savings(interpretation, duration, oracle)

    commitment = Commitment(
        user_id=owner.id,
        text=text,
        media_url=media_url,
        media_type=media_type or MediaType.text,
        category=interpretation.category,
        frequency=interpretation.frequency,
        duration=duration,
        visibility=visibility or Visibility.public,
        estimated_per_period=estimate.per_period,
        estimated_total=estimate.total,
        estimated_unit=estimate.unit,
        actual_carbon_saved=0.0,
        status=CommitmentStatus.active,
        like_count=0,
        comment_count=0,
    )
    db.add(commitment)
    db.flush()  # get commitment.id before fan-out

    apply_stats_delta(db, owner.id, commitments_delta=1)
    evaluate_badges(db, owner.id, BadgeEvent.COMMITMENT_CREATED)

    milestones = [
        Milestone(
            commitment_id=commitment.id,
            title=s.title,
            description=s.description,
            target_value=s.target_value,
            current_value=0,
            estimated_carbon_savings=s.estimated_carbon_savings,
            status=MilestoneStatus.pending,
        )
        for s in suggest_milestones(text, interpretation, oracle)
    ]
    db.add_all(milestones)
    db.flush()

    db.commit()
    db.refresh(commitment)
    for m in milestones:
        db.refresh(m)

    logger.info(
        "commitment %s created for user %s (category=%s frequency=%s degraded=%s)",
        commitment.id, owner.id, interpretation.category, interpretation.frequency,
        interpretation.degraded or estimate.degraded,
    )
    return CreationResult(
        commitment=commitment,
        interpretation=interpretation,
        carbon_estimate=estimate,
        milestones=milestones,
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def get_commitment(db: Session, commitment_id: int, viewer: Optional[User]) -> Commitment:
    """404 if absent; 403 if private and the viewer is not the owner."""
    commitment = _load(db, commitment_id)
    if enum_value(commitment.visibility) == Visibility.private.value and (
        viewer is None or viewer.id != commitment.user_id
    ):
        raise AuthorizationDeniedError("view", "commitment", commitment.id)
    return commitment


def list_comments(db: Session, commitment_id: int) -> list[Comment]:
    return (
        db.query(Comment)
        .filter(Comment.commitment_id == commitment_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .all()
    )


def list_user_commitments(
    db: Session,
    owner_id: int,
    viewer: Optional[User],
    status: Optional[str] = None,
) -> list[Commitment]:
    """Owners see everything they own; everyone else sees public commitments only."""
    q = db.query(Commitment).filter(Commitment.user_id == owner_id)
    if status:
        q = q.filter(Commitment.status == status)
    if viewer is None or viewer.id != owner_id:
        q = q.filter(Commitment.visibility == Visibility.public)
    return q.order_by(Commitment.created_at.desc(), Commitment.id.desc()).all()


# ---------------------------------------------------------------------------
# Owner mutations
# ---------------------------------------------------------------------------

def update_commitment(
    db: Session,
    commitment_id: int,
    caller: User,
    changes: dict[str, Any],
) -> Commitment:
    commitment = _load(db, commitment_id)
    _require_owner(commitment, caller, "update")

    for name in UPDATABLE_FIELDS:
        if name not in changes or changes[name] is None:
            continue
        value = enum_value(changes[name])
        if name == "status":
            current = enum_value(commitment.status)
            if value != current and value not in _STATUS_TRANSITIONS[current]:
                raise InvalidStatusTransitionError(current, value)
        setattr(commitment, name, value)

    db.commit()
    db.refresh(commitment)
    return commitment


def delete_commitment(db: Session, commitment_id: int, caller: User) -> None:
    """Milestones, likes, comments and progress updates go with it."""
    commitment = _load(db, commitment_id)
    _require_owner(commitment, caller, "delete")
    db.delete(commitment)
    db.commit()


# ---------------------------------------------------------------------------
# Social interactions
# ---------------------------------------------------------------------------

def toggle_like(db: Session, commitment_id: int, caller: User) -> tuple[bool, int]:
    """
    Like if the caller has not liked yet, unlike otherwise.
    like_count is re-derived from the like set, so it always equals its size.
    """
    commitment = _load(db, commitment_id)
    existing = (
        db.query(CommitmentLike)
        .filter(
            CommitmentLike.commitment_id == commitment.id,
            CommitmentLike.user_id == caller.id,
        )
        .first()
    )

    if existing is not None:
        db.delete(existing)
        liked = False
    else:
        db.add(CommitmentLike(commitment_id=commitment.id, user_id=caller.id))
        liked = True
    db.flush()

    commitment.like_count = (
        db.query(CommitmentLike)
        .filter(CommitmentLike.commitment_id == commitment.id)
        .count()
    )
    db.flush()

    if liked and commitment.user_id != caller.id:
        notify_like(db, commitment.user_id, caller.name, commitment.id)

    db.commit()
    return liked, commitment.like_count


def add_comment(db: Session, commitment_id: int, caller: User, text: str) -> Comment:
    commitment = _load(db, commitment_id)

    comment = Comment(commitment_id=commitment.id, user_id=caller.id, text=text)
    db.add(comment)
    commitment.comment_count = (commitment.comment_count or 0) + 1
    db.flush()

    if commitment.user_id != caller.id:
        notify_comment(db, commitment.user_id, caller.name, commitment.id, comment.id)

    db.commit()
    db.refresh(comment)
    return comment
