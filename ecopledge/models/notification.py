"""
Notification — user-facing inbox record.

data: JSON-encoded dict stored as Text (commitment_id, comment_id, badge ...).
read only ever moves False -> True.
"""
from datetime import datetime
from sqlalchemy import Integer, String, Text, Boolean, DateTime, Enum, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column
import enum

from ecopledge.db.base import Base


class NotificationType(str, enum.Enum):
    like = "like"
    comment = "comment"
    milestone = "milestone"
    reminder = "reminder"
    admin = "admin"
    challenge = "challenge"


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(
        Enum(NotificationType, name="notification_type_enum"), nullable=False
    )
    message: Mapped[str] = mapped_column(String(500), nullable=False)
    payload: Mapped[str | None] = mapped_column(
        "data", Text, nullable=True,
        comment="JSON-encoded dict with context specific to each notification type",
    )
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
