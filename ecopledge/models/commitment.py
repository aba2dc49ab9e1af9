"""
Commitment — a user's declared sustainability action, plus its like set.

estimated_* columns are written once at creation by the carbon estimator.
actual_carbon_saved is only ever incremented by the progress tracker.
like_count mirrors the number of rows in commitment_likes.
"""
from datetime import datetime
from sqlalchemy import (
    Integer, String, Text, Float, DateTime, Enum, ForeignKey, UniqueConstraint, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
import enum

from ecopledge.db.base import Base


class Category(str, enum.Enum):
    transport = "transport"
    energy = "energy"
    food = "food"
    waste = "waste"
    water = "water"
    consumption = "consumption"
    other = "other"


class Frequency(str, enum.Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"
    once = "once"


class Visibility(str, enum.Enum):
    public = "public"
    private = "private"
    group = "group"


class MediaType(str, enum.Enum):
    text = "text"
    image = "image"
    video = "video"


class CommitmentStatus(str, enum.Enum):
    active = "active"
    completed = "completed"
    archived = "archived"


class Commitment(Base):
    __tablename__ = "commitments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    media_type: Mapped[str] = mapped_column(
        Enum(MediaType, name="media_type_enum"), nullable=False, default=MediaType.text
    )
    media_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    category: Mapped[str] = mapped_column(
        Enum(Category, name="category_enum"), nullable=False, index=True
    )
    frequency: Mapped[str] = mapped_column(
        Enum(Frequency, name="frequency_enum"), nullable=False
    )
    duration: Mapped[str | None] = mapped_column(String(64), nullable=True)
    visibility: Mapped[str] = mapped_column(
        Enum(Visibility, name="visibility_enum"),
        nullable=False,
        default=Visibility.public,
        index=True,
    )
    estimated_per_period: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    estimated_total: Mapped[float] = mapped_column(Float, nullable=False, default=0.0, index=True)
    estimated_unit: Mapped[str] = mapped_column(String(16), nullable=False, default="kg CO2")
    actual_carbon_saved: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    status: Mapped[str] = mapped_column(
        Enum(CommitmentStatus, name="commitment_status_enum"),
        nullable=False,
        default=CommitmentStatus.active,
        index=True,
    )
    like_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    comment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    likes: Mapped[list["CommitmentLike"]] = relationship(
        cascade="all, delete-orphan"
    )
    milestones: Mapped[list["Milestone"]] = relationship(  # noqa: F821
        cascade="all, delete-orphan", order_by="Milestone.id"
    )
    comments: Mapped[list["Comment"]] = relationship(  # noqa: F821
        cascade="all, delete-orphan"
    )
    progress_updates: Mapped[list["ProgressUpdate"]] = relationship(  # noqa: F821
        cascade="all, delete-orphan"
    )


class CommitmentLike(Base):
    __tablename__ = "commitment_likes"
    __table_args__ = (
        UniqueConstraint("commitment_id", "user_id", name="uq_commitment_like"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    commitment_id: Mapped[int] = mapped_column(
        ForeignKey("commitments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
