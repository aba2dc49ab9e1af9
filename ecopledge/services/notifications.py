"""
Notification sink.

create_notification() is fire-and-forget from the caller's point of view:
the insert runs inside its own SAVEPOINT, and a failure is logged and rolled
back without touching the surrounding unit of work. Flush only; the root
operation commits.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ecopledge.core.errors import NotFoundError
from ecopledge.models.notification import Notification, NotificationType
from ecopledge.models.user import User

logger = logging.getLogger(__name__)


def create_notification(
    db: Session,
    user_id: int,
    type: NotificationType,
    message: str,
    data: Optional[dict[str, Any]] = None,
) -> Optional[Notification]:
    savepoint = db.begin_nested()
    try:
        notification = Notification(
            user_id=user_id,
            type=type,
            message=message[:500],
            payload=json.dumps(data or {}, default=str),
            read=False,
        )
        db.add(notification)
        db.flush()
        savepoint.commit()
        return notification
    except SQLAlchemyError:
        savepoint.rollback()
        logger.exception("failed to create %s notification for user %s", type, user_id)
        return None


def notify_like(db: Session, owner_id: int, liker_name: str, commitment_id: int) -> None:
    create_notification(
        db, owner_id, NotificationType.like,
        f"{liker_name} liked your commitment",
        {"commitment_id": commitment_id},
    )


def notify_comment(
    db: Session, owner_id: int, commenter_name: str, commitment_id: int, comment_id: int
) -> None:
    create_notification(
        db, owner_id, NotificationType.comment,
        f"{commenter_name} commented on your commitment",
        {"commitment_id": commitment_id, "comment_id": comment_id},
    )


def notify_milestone(db: Session, user_id: int, milestone_title: str, commitment_id: int) -> None:
    create_notification(
        db, user_id, NotificationType.milestone,
        f"Congratulations! You've completed the milestone: {milestone_title}",
        {"commitment_id": commitment_id},
    )


def notify_badge(db: Session, user_id: int, badge_id: str, badge_title: str) -> None:
    create_notification(
        db, user_id, NotificationType.milestone,
        f'You\'ve earned the "{badge_title}" badge!',
        {"badge": badge_id},
    )



def notify_reminder(db: Session, user_id: int, message: str, commitment_id: int) -> None:
    create_notification(
        db, user_id, NotificationType.reminder, message, {"commitment_id": commitment_id},
    )


def notify_challenge(db: Session, user_id: int, message: str, challenge_id: int) -> None:
    create_notification(
        db, user_id, NotificationType.challenge, message, {"challenge_id": challenge_id},
    )


def notify_flag_resolved(
    db: Session, reporter_id: int, flag_id: int, content_type: str, removed: bool
) -> None:
    outcome = "was removed" if removed else "was reviewed and kept"
    create_notification(
        db, reporter_id, NotificationType.admin,
        f"The {content_type} you reported {outcome}. Thanks for flagging it.",
        {"flag_id": flag_id, "removed": removed},
    )

# ---------------------------------------------------------------------------
# Inbox reads
# ---------------------------------------------------------------------------

def list_notifications(
    db: Session,
    user: User,
    unread_only: bool = False,
    limit: int = 50,
) -> tuple[int, list[Notification]]:
    """Return (unread_count, page) for the user, newest first."""
    q = db.query(Notification).filter(Notification.user_id == user.id)
    if unread_only:
        q = q.filter(Notification.read == False)  # noqa: E712
    items = (
        q.order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )
    unread_count = (
        db.query(Notification)
        .filter(Notification.user_id == user.id, Notification.read == False)  # noqa: E712
        .count()
    )
    return unread_count, items


def mark_notification_read(db: Session, user: User, notification_id: int) -> Notification:
    # Another user's notification is indistinguishable from a missing one.
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user.id)
        .first()
    )
    if notification is None:
        raise NotFoundError("notification", notification_id)
    if not notification.read:
        notification.read = True
        db.commit()
        db.refresh(notification)
    return notification
