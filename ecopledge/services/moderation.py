"""
Content moderation: user flags and the admin review queue.

A flag targets one commitment or comment. Resolving it either keeps the
content or deletes it; in both cases the reporter gets an `admin`
notification. Deleting a comment also decrements its commitment's
comment_count.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ecopledge.core.errors import FlagAlreadyResolvedError, NotFoundError
from ecopledge.db.base import enum_value
from ecopledge.models.comment import Comment
from ecopledge.models.commitment import Commitment
from ecopledge.models.flag import Flag, FlagContentType, FlagStatus
from ecopledge.models.user import User
from ecopledge.services.commitments import get_commitment
from ecopledge.services.notifications import notify_flag_resolved

logger = logging.getLogger(__name__)


class FlagAction:
    RESOLVE = "resolve"
    DELETE  = "delete"


def _target(db: Session, content_type: str, content_id: int):
    model = Commitment if content_type == FlagContentType.commitment.value else Comment
    return db.get(model, content_id)


def flag_content(
    db: Session,
    reporter: User,
    content_type: str,
    content_id: int,
    reason: str,
) -> Flag:
    """404 if the target does not exist; private commitments of others are not flaggable."""
    content_type = enum_value(content_type)
    if content_type == FlagContentType.commitment.value:
        get_commitment(db, content_id, reporter)
    elif _target(db, content_type, content_id) is None:
        raise NotFoundError(content_type, content_id)

    flag = Flag(
        content_type=content_type,
        content_id=content_id,
        flagged_by_user_id=reporter.id,
        reason=reason,
        status=FlagStatus.open,
    )
    db.add(flag)
    db.commit()
    db.refresh(flag)
    logger.info("user %s flagged %s %s", reporter.id, content_type, content_id)
    return flag


def list_flags(db: Session, status: str = FlagStatus.open.value) -> list[Flag]:
    return (
        db.query(Flag)
        .filter(Flag.status == status)
        .order_by(Flag.created_at.desc(), Flag.id.desc())
        .all()
    )


def resolve_flag(
    db: Session,
    flag_id: int,
    moderator: User,
    action: str = FlagAction.RESOLVE,
    now: Optional[datetime] = None,
) -> Flag:
    flag = db.get(Flag, flag_id)
    if flag is None:
        raise NotFoundError("flag", flag_id)
    if enum_value(flag.status) == FlagStatus.resolved.value:
        raise FlagAlreadyResolvedError(flag.id)

    flag.status = FlagStatus.resolved
    flag.resolved_by_user_id = moderator.id
    flag.resolved_at = now or datetime.now(tz=timezone.utc)

    removed = False
    if action == FlagAction.DELETE:
        content_type = enum_value(flag.content_type)
        target = _target(db, content_type, flag.content_id)
        if target is not None:
            if isinstance(target, Comment):
                parent = db.get(Commitment, target.commitment_id)
                if parent is not None and parent.comment_count:
                    parent.comment_count -= 1
            db.delete(target)
            removed = True
            logger.info(
                "moderator %s removed %s %s (flag %s)",
                moderator.id, content_type, flag.content_id, flag.id,
            )
    db.flush()

    notify_flag_resolved(
        db, flag.flagged_by_user_id, flag.id, enum_value(flag.content_type), removed,
    )

    db.commit()
    db.refresh(flag)
    return flag
