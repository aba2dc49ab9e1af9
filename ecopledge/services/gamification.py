"""
Gamification Engine — per-user aggregate stats, level and badges.

Level
-----
LEVEL_THRESHOLDS is an ascending table in kg CO2. A user's level is the
1-based index of the highest threshold not exceeding total_carbon_saved
(minimum 1). It is recomputed on every stats delta, so it only ever depends
on the running total and never on the order or batching of deltas.

Badges
------
BADGE_RULES is an ordered, immutable tuple of BadgeRule. A rule fires when
its condition holds AND the badge is not yet held; each fired badge gets one
`user_badges` row and one `milestone` notification. Evaluation order is the
tuple order.

  first_commitment   event == commitment_created and total_commitments == 1
  commitment_5/10    total_commitments >= 5 / 10
  first_milestone    event == milestone_completed and completed_milestones == 1
  carbon_10kg/...    total_carbon_saved >= 10 / 100 / 1000
  7/30_day_streak    event == streak and data["days"] == 7 / 30

Both tables are plain module data and can be swapped per call
(`thresholds=` / `rules=`) for testing.

Concurrency
-----------
The user row is read with SELECT ... FOR UPDATE, which serializes concurrent
stats updates for one user on PostgreSQL (SQLite ignores it). Flush only;
db.commit() belongs to the root operation.
"""
from __future__ import annotations

import logging
from bisect import bisect_right
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy.orm import Session

from ecopledge.core.errors import UserNotFoundError
from ecopledge.models.user import User, UserBadge
from ecopledge.services.notifications import notify_badge

logger = logging.getLogger(__name__)


class BadgeEvent:
    COMMITMENT_CREATED  = "commitment_created"
    MILESTONE_COMPLETED = "milestone_completed"
    PROGRESS_UPDATE     = "progress_update"
    STREAK              = "streak"


LEVEL_THRESHOLDS: tuple[float, ...] = (0, 10, 50, 100, 250, 500, 1000, 2500, 5000, 10000)


@dataclass(frozen=True)
class BadgeContext:
    event: str
    total_commitments: int
    completed_milestones: int
    total_carbon_saved: float
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BadgeRule:
    badge_id: str
    title: str
    condition: Callable[[BadgeContext], bool]


def _streak_of(days: int) -> Callable[[BadgeContext], bool]:
    return lambda c: c.event == BadgeEvent.STREAK and c.data.get("days") == days


BADGE_RULES: tuple[BadgeRule, ...] = (
    BadgeRule(
        "first_commitment", "First Step",
        lambda c: c.event == BadgeEvent.COMMITMENT_CREATED and c.total_commitments == 1,
    ),
    BadgeRule("commitment_5", "5 Commitments", lambda c: c.total_commitments >= 5),
    BadgeRule("commitment_10", "10 Commitments", lambda c: c.total_commitments >= 10),
    BadgeRule(
        "first_milestone", "First Milestone",
        lambda c: c.event == BadgeEvent.MILESTONE_COMPLETED and c.completed_milestones == 1,
    ),
    BadgeRule("carbon_10kg", "10kg CO2 Saved", lambda c: c.total_carbon_saved >= 10),
    BadgeRule("carbon_100kg", "100kg CO2 Saved", lambda c: c.total_carbon_saved >= 100),
    BadgeRule("carbon_1000kg", "1 Ton CO2 Saved", lambda c: c.total_carbon_saved >= 1000),
    BadgeRule("7_day_streak", "7 Day Streak", _streak_of(7)),
    BadgeRule("30_day_streak", "30 Day Streak", _streak_of(30)),
)


# ---------------------------------------------------------------------------
# Level
# ---------------------------------------------------------------------------

def level_for(total_carbon_saved: float, thresholds: Sequence[float] = LEVEL_THRESHOLDS) -> int:
    return max(1, bisect_right(thresholds, total_carbon_saved))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_user_for_update(db: Session, user_id: int) -> Optional[User]:
    return (
        db.query(User)
        .filter(User.id == user_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def evaluate_badges(
    db: Session,
    user_id: int,
    event: str,
    data: Optional[dict[str, Any]] = None,
    rules: Sequence[BadgeRule] = BADGE_RULES,
) -> list[str]:
    """
    Award every rule that fires and is not yet held. Returns the newly
    awarded badge ids in rule order; [] for an unknown user.
    """
    user = db.get(User, user_id)
    if user is None:
        return []

    ctx = BadgeContext(
        event=event,
        total_commitments=user.total_commitments,
        completed_milestones=user.completed_milestones,
        total_carbon_saved=user.total_carbon_saved,
        data=data or {},
    )
    held = set(user.badge_ids)
    fired: list[BadgeRule] = []
    for rule in rules:
        if rule.badge_id in held or not rule.condition(ctx):
            continue
        user.badges.append(UserBadge(badge_id=rule.badge_id))
        held.add(rule.badge_id)
        fired.append(rule)

    if not fired:
        return []

    db.flush()
    for rule in fired:
        logger.info("user %s earned badge %s (event=%s)", user_id, rule.badge_id, event)
        notify_badge(db, user_id, rule.badge_id, rule.title)
    return [rule.badge_id for rule in fired]


def apply_stats_delta(
    db: Session,
    user_id: int,
    carbon_delta: float = 0,
    commitments_delta: int = 0,
    milestones_delta: int = 0,
    thresholds: Sequence[float] = LEVEL_THRESHOLDS,
    rules: Sequence[BadgeRule] = BADGE_RULES,
) -> User:
    """
    Add the deltas to the user's aggregate, recompute the level and flush.
    A positive carbon delta also runs badge evaluation (event=progress_update).
    Raises UserNotFoundError if the user does not exist.
    """
    user = _load_user_for_update(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    user.total_carbon_saved = (user.total_carbon_saved or 0.0) + (carbon_delta or 0)
    user.total_commitments = (user.total_commitments or 0) + (commitments_delta or 0)
    user.completed_milestones = (user.completed_milestones or 0) + (milestones_delta or 0)

    previous_level = user.level
    user.level = level_for(user.total_carbon_saved, thresholds)
    if previous_level is not None and user.level != previous_level:
        logger.info("user %s level %s -> %s", user_id, previous_level, user.level)

    db.flush()

    if carbon_delta and carbon_delta > 0:
        evaluate_badges(
            db, user_id, BadgeEvent.PROGRESS_UPDATE,
            data={"carbon_delta": carbon_delta},
            rules=rules,
        )
    return user
