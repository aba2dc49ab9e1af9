"""
Progress tracker: records progress events and advances milestones.

Public API
----------
record_progress(db, commitment_id, caller, amount, note, delta)  -> ProgressResult (commits)
list_progress_updates(db, commitment_id, limit)                  -> list[ProgressUpdate]
list_milestones(db, commitment_id)                               -> list[Milestone]
current_streak(db, user_id, today)                               -> int
get_dashboard(db, user)                                          -> dict
send_progress_reminders(db, idle_days, now)                      -> int (commits)

Milestone state machine
-----------------------
pending -> in_progress -> completed, one way only. Every progress event adds
exactly 1 to current_value of each open milestone (pending or in_progress),
regardless of the carbon delta. Completed milestones are never loaded again.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ecopledge.core.errors import AuthorizationDeniedError, NotFoundError
from ecopledge.db.base import enum_value
from ecopledge.models.commitment import Commitment, CommitmentStatus
from ecopledge.models.milestone import Milestone, MilestoneStatus
from ecopledge.models.progress_update import ProgressUpdate
from ecopledge.models.user import User
from ecopledge.services.gamification import BadgeEvent, apply_stats_delta, evaluate_badges
from ecopledge.services.notifications import notify_milestone, notify_reminder

logger = logging.getLogger(__name__)

HISTORY_DAYS = 30
RECENT_PROGRESS_LIMIT = 10
STREAK_LOOKBACK_DAYS = 31
REMINDER_IDLE_DAYS = 7


@dataclass
class ProgressResult:
    progress_update: ProgressUpdate
    updated_milestones: list[Milestone]
    actual_carbon_saved: float


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


# ---------------------------------------------------------------------------
# Milestones
# ---------------------------------------------------------------------------

def _advance_milestone(db: Session, milestone: Milestone, owner_id: int, now: datetime) -> None:
    milestone.current_value = (milestone.current_value or 0) + 1
    status = enum_value(milestone.status)

    if milestone.current_value >= milestone.target_value and status != MilestoneStatus.completed.value:
        milestone.status = MilestoneStatus.completed
        milestone.completed_at = now
        db.flush()
        apply_stats_delta(db, owner_id, milestones_delta=1)
        notify_milestone(db, owner_id, milestone.title, milestone.commitment_id)
        logger.info(
            "milestone %s of commitment %s completed", milestone.id, milestone.commitment_id
        )
    elif milestone.current_value > 0 and status == MilestoneStatus.pending.value:
        milestone.status = MilestoneStatus.in_progress


# ---------------------------------------------------------------------------
# Streaks
# ---------------------------------------------------------------------------

def current_streak(db: Session, user_id: int, today: Optional[date] = None) -> int:
    """Consecutive days, ending today, on which the user logged any progress."""
    today = today or _now().date()
    since = datetime.combine(
        today - timedelta(days=STREAK_LOOKBACK_DAYS), datetime.min.time(), tzinfo=timezone.utc
    )
    rows = (
        db.query(ProgressUpdate.date)
        .filter(ProgressUpdate.user_id == user_id, ProgressUpdate.date >= since)
        .all()
    )
    active_days = {row.date.date() for row in rows}

    streak = 0
    day = today
    while day in active_days:
        streak += 1
        day -= timedelta(days=1)
    return streak


# ---------------------------------------------------------------------------
# Public: write path
# ---------------------------------------------------------------------------

def record_progress(
    db: Session,
    commitment_id: int,
    caller: User,
    amount: str,
    note: Optional[str] = None,
    delta_carbon_saved: Optional[float] = None,
) -> ProgressResult:
    """
    Owner-only. Appends a ProgressUpdate, adds the delta to the commitment
    and the owner's aggregate, and advances every open milestone by one.
    Authorization is checked before anything is written.
    """
    commitment = db.get(Commitment, commitment_id)
    if commitment is None:
        raise NotFoundError("commitment", commitment_id)
    if commitment.user_id != caller.id:
        raise AuthorizationDeniedError("update", "commitment", commitment.id)

    delta = max(0.0, float(delta_carbon_saved or 0))
    now = _now()

    progress = ProgressUpdate(
        commitment_id=commitment.id,
        user_id=caller.id,
        amount=amount,
        note=note,
        delta_carbon_saved=delta,
        date=now,
    )
    db.add(progress)
    commitment.actual_carbon_saved = (commitment.actual_carbon_saved or 0.0) + delta
    db.flush()

    apply_stats_delta(db, caller.id, carbon_delta=delta)

    open_milestones: list[Milestone] = (
        db.query(Milestone)
        .filter(
            Milestone.commitment_id == commitment.id,
            Milestone.status.in_([MilestoneStatus.pending, MilestoneStatus.in_progress]),
        )
        .order_by(Milestone.id)
        .all()
    )
    for milestone in open_milestones:
        _advance_milestone(db, milestone, caller.id, now)
    db.flush()

    streak = current_streak(db, caller.id, today=now.date())
    evaluate_badges(db, caller.id, BadgeEvent.STREAK, data={"days": streak})

    db.commit()
    db.refresh(progress)
    db.refresh(commitment)
    for m in open_milestones:
        db.refresh(m)

    return ProgressResult(
        progress_update=progress,
        updated_milestones=open_milestones,
        actual_carbon_saved=commitment.actual_carbon_saved,
    )


# ---------------------------------------------------------------------------
# Public: reads
# ---------------------------------------------------------------------------

def list_progress_updates(db: Session, commitment_id: int, limit: int = 50) -> list[ProgressUpdate]:
    return (
        db.query(ProgressUpdate)
        .filter(ProgressUpdate.commitment_id == commitment_id)
        .order_by(ProgressUpdate.date.desc(), ProgressUpdate.id.desc())
        .limit(limit)
        .all()
    )


def list_milestones(db: Session, commitment_id: int) -> list[Milestone]:
    return (
        db.query(Milestone)
        .filter(Milestone.commitment_id == commitment_id)
        .order_by(Milestone.created_at, Milestone.id)
        .all()
    )


def get_dashboard(db: Session, user: User) -> dict:
    commitments = db.query(Commitment).filter(Commitment.user_id == user.id).all()
    commitment_ids = [c.id for c in commitments]

    milestones = (
        db.query(Milestone).filter(Milestone.commitment_id.in_(commitment_ids)).all()
        if commitment_ids else []
    )

    since = _now() - timedelta(days=HISTORY_DAYS)
    history_rows = (
        db.query(ProgressUpdate)
        .filter(ProgressUpdate.user_id == user.id, ProgressUpdate.date >= since)
        .all()
    )
    per_day: dict[str, float] = defaultdict(float)
    for p in history_rows:
        per_day[p.date.date().isoformat()] += p.delta_carbon_saved

    per_category: dict[str, dict] = {}
    for c in commitments:
        bucket = per_category.setdefault(enum_value(c.category), {"count": 0, "carbon_saved": 0.0})
        bucket["count"] += 1
        bucket["carbon_saved"] += c.actual_carbon_saved

    recent = (
        db.query(ProgressUpdate, Commitment)
        .join(Commitment, Commitment.id == ProgressUpdate.commitment_id)
        .filter(ProgressUpdate.user_id == user.id)
        .order_by(ProgressUpdate.date.desc(), ProgressUpdate.id.desc())
        .limit(RECENT_PROGRESS_LIMIT)
        .all()
    )

    return {
        "stats": {
            "total_carbon_saved": user.total_carbon_saved,
            "level": user.level,
            "badges": user.badge_ids,
            "active_commitments": sum(
                1 for c in commitments if enum_value(c.status) == CommitmentStatus.active.value
            ),
            "completed_commitments": sum(
                1 for c in commitments if enum_value(c.status) == CommitmentStatus.completed.value
            ),
            "total_milestones": len(milestones),
            "completed_milestones": sum(
                1 for m in milestones if enum_value(m.status) == MilestoneStatus.completed.value
            ),
        },
        "carbon_history": [
            {"day": day, "carbon_saved": total} for day, total in sorted(per_day.items())
        ],
        "category_breakdown": [
            {"category": cat, **bucket} for cat, bucket in sorted(per_category.items())
        ],
        "recent_progress": [
            {
                "id": p.id,
                "commitment_id": c.id,
                "commitment_text": c.text,
                "category": enum_value(c.category),
                "amount": p.amount,
                "note": p.note,
                "delta_carbon_saved": p.delta_carbon_saved,
                "date": p.date.isoformat(),
            }
            for p, c in recent
        ],
    }


# ---------------------------------------------------------------------------
# Reminders
# ---------------------------------------------------------------------------

def send_progress_reminders(
    db: Session,
    idle_days: int = REMINDER_IDLE_DAYS,
    now: Optional[datetime] = None,
) -> int:
    """
    Nudge owners of active commitments with no progress for `idle_days`
    (counting from creation when there is none yet). Returns how many
    reminders were queued.
    """
    cutoff = (now or _now()) - timedelta(days=idle_days)
    last = (
        db.query(
            ProgressUpdate.commitment_id.label("commitment_id"),
            func.max(ProgressUpdate.date).label("last_date"),
        )
        .group_by(ProgressUpdate.commitment_id)
        .subquery()
    )
    idle = (
        db.query(Commitment)
        .outerjoin(last, last.c.commitment_id == Commitment.id)
        .filter(
            Commitment.status == CommitmentStatus.active,
            func.coalesce(last.c.last_date, Commitment.created_at) < cutoff,
        )
        .order_by(Commitment.id)
        .all()
    )
    for c in idle:
        notify_reminder(
            db, c.user_id,
            f'No progress in {idle_days} days on "{c.text[:60]}". Log an update to keep going!',
            c.id,
        )
    db.commit()
    logger.info("queued %d progress reminders (idle_days=%d)", len(idle), idle_days)
    return len(idle)
