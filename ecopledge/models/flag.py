"""
Flag — a user report against a commitment or a comment.

content_id is polymorphic over content_type, so it carries no foreign key;
the flag outlives the content when a moderator deletes it.
status only ever moves open -> resolved.
"""
from datetime import datetime
from sqlalchemy import Integer, Text, DateTime, Enum, ForeignKey, Index, func
from sqlalchemy.orm import Mapped, mapped_column
import enum

from ecopledge.db.base import Base


class FlagContentType(str, enum.Enum):
    commitment = "commitment"
    comment = "comment"


class FlagStatus(str, enum.Enum):
    open = "open"
    resolved = "resolved"


class Flag(Base):
    __tablename__ = "flags"
    __table_args__ = (
        Index("ix_flags_content", "content_type", "content_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    content_type: Mapped[str] = mapped_column(
        Enum(FlagContentType, name="flag_content_type_enum"), nullable=False
    )
    content_id: Mapped[int] = mapped_column(Integer, nullable=False)
    flagged_by_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        Enum(FlagStatus, name="flag_status_enum"),
        nullable=False,
        default=FlagStatus.open,
        index=True,
    )
    resolved_by_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
