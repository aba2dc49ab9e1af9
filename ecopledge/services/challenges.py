"""
Challenges: time-boxed group goals.

The creator is enrolled on creation; each later join notifies the creator.
Progress is computed on read from participants' progress updates dated
inside the challenge window.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ecopledge.core.errors import AlreadyJoinedError, AuthorizationDeniedError, NotFoundError
from ecopledge.db.base import enum_value
from ecopledge.models.challenge import Challenge, ChallengeParticipant
from ecopledge.models.commitment import Visibility
from ecopledge.models.progress_update import ProgressUpdate
from ecopledge.models.user import User
from ecopledge.services.notifications import notify_challenge

logger = logging.getLogger(__name__)


class ChallengePhase:
    ACTIVE    = "active"
    UPCOMING  = "upcoming"
    COMPLETED = "completed"
    ALL       = "all"


def _utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def phase_of(challenge: Challenge, now: Optional[datetime] = None) -> str:
    now = now or _now()
    if _utc(challenge.start_date) > now:
        return ChallengePhase.UPCOMING
    if _utc(challenge.end_date) < now:
        return ChallengePhase.COMPLETED
    return ChallengePhase.ACTIVE


def _load(db: Session, challenge_id: int) -> Challenge:
    challenge = db.get(Challenge, challenge_id)
    if challenge is None:
        raise NotFoundError("challenge", challenge_id)
    return challenge


def create_challenge(
    db: Session,
    creator: User,
    title: str,
    description: str,
    start_date: datetime,
    end_date: datetime,
    target_carbon_savings: float,
    visibility: Optional[str] = None,
) -> Challenge:
    challenge = Challenge(
        created_by_user_id=creator.id,
        title=title,
        description=description,
        start_date=_utc(start_date),
        end_date=_utc(end_date),
        target_carbon_savings=target_carbon_savings,
        visibility=visibility or Visibility.public,
    )
    challenge.participants.append(ChallengeParticipant(user_id=creator.id))
    db.add(challenge)
    db.commit()
    db.refresh(challenge)
    logger.info("challenge %s created by user %s", challenge.id, creator.id)
    return challenge


def get_challenge(db: Session, challenge_id: int, viewer: Optional[User] = None) -> Challenge:
    """Non-public challenges are visible to their participants only."""
    challenge = _load(db, challenge_id)
    if enum_value(challenge.visibility) != Visibility.public.value and (
        viewer is None or viewer.id not in challenge.participant_ids
    ):
        raise AuthorizationDeniedError("view", "challenge", challenge.id)
    return challenge


def join_challenge(db: Session, challenge_id: int, user: User) -> Challenge:
    challenge = _load(db, challenge_id)
    if enum_value(challenge.visibility) != Visibility.public.value:
        raise AuthorizationDeniedError("join", "challenge", challenge.id)
    if user.id in challenge.participant_ids:
        raise AlreadyJoinedError(challenge.id)

    challenge.participants.append(ChallengeParticipant(user_id=user.id))
    db.flush()

    if challenge.created_by_user_id is not None and challenge.created_by_user_id != user.id:
        notify_challenge(
            db, challenge.created_by_user_id,
            f"{user.name} joined your challenge: {challenge.title}",
            challenge.id,
        )

    db.commit()
    db.refresh(challenge)
    return challenge


def list_challenges(
    db: Session,
    phase: str = ChallengePhase.ACTIVE,
    limit: int = 20,
    now: Optional[datetime] = None,
) -> list[Challenge]:
    """Public challenges in the given phase, latest start first."""
    now = now or _now()
    q = db.query(Challenge).filter(Challenge.visibility == Visibility.public)
    if phase == ChallengePhase.ACTIVE:
        q = q.filter(Challenge.start_date <= now, Challenge.end_date >= now)
    elif phase == ChallengePhase.UPCOMING:
        q = q.filter(Challenge.start_date > now)
    elif phase == ChallengePhase.COMPLETED:
        q = q.filter(Challenge.end_date < now)
    return q.order_by(Challenge.start_date.desc(), Challenge.id.desc()).limit(limit).all()


def challenge_progress(db: Session, challenge: Challenge) -> float:
    """Carbon saved by participants between start_date and end_date."""
    ids = challenge.participant_ids
    if not ids:
        return 0.0
    total = (
        db.query(func.coalesce(func.sum(ProgressUpdate.delta_carbon_saved), 0.0))
        .filter(
            ProgressUpdate.user_id.in_(ids),
            ProgressUpdate.date >= _utc(challenge.start_date),
            ProgressUpdate.date <= _utc(challenge.end_date),
        )
        .scalar()
    )
    return float(total or 0.0)
