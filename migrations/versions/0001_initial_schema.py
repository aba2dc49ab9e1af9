"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_ENUMS = {
    "user_role_enum": ("user", "admin"),
    "media_type_enum": ("text", "image", "video"),
    "category_enum": ("transport", "energy", "food", "waste", "water", "consumption", "other"),
    "frequency_enum": ("daily", "weekly", "monthly", "once"),
    "visibility_enum": ("public", "private", "group"),
    "commitment_status_enum": ("active", "completed", "archived"),
    "milestone_status_enum": ("pending", "in_progress", "completed"),
    "notification_type_enum": ("like", "comment", "milestone", "reminder", "admin", "challenge"),
}


def _enum(name: str) -> sa.Enum:
    return sa.Enum(*_ENUMS[name], name=name, create_type=False)


def upgrade() -> None:
    # --- ENUM types ---
    for name, values in _ENUMS.items():
        sa.Enum(*values, name=name).create(op.get_bind(), checkfirst=True)

    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("username", sa.String(64), nullable=True),
        sa.Column("image", sa.String(512), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("location", sa.String(128), nullable=True),
        sa.Column("role", _enum("user_role_enum"), nullable=False, server_default="user"),
        sa.Column("api_token", sa.String(128), nullable=False),
        sa.Column("total_carbon_saved", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_commitments", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("completed_milestones", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_api_token", "users", ["api_token"], unique=True)
    op.create_index("ix_users_total_carbon_saved", "users", ["total_carbon_saved"])
    op.create_index("ix_users_level", "users", ["level"])

    # --- user_badges ---
    op.create_table(
        "user_badges",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("badge_id", sa.String(64), nullable=False),
        sa.Column("awarded_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "badge_id", name="uq_user_badge"),
    )
    op.create_index("ix_user_badges_id", "user_badges", ["id"])
    op.create_index("ix_user_badges_user_id", "user_badges", ["user_id"])

    # --- commitments ---
    op.create_table(
        "commitments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("media_type", _enum("media_type_enum"), nullable=False, server_default="text"),
        sa.Column("media_url", sa.String(1024), nullable=True),
        sa.Column("category", _enum("category_enum"), nullable=False),
        sa.Column("frequency", _enum("frequency_enum"), nullable=False),
        sa.Column("duration", sa.String(64), nullable=True),
        sa.Column("visibility", _enum("visibility_enum"), nullable=False, server_default="public"),
        sa.Column("estimated_per_period", sa.Float(), nullable=False, server_default="0"),
        sa.Column("estimated_total", sa.Float(), nullable=False, server_default="0"),
        sa.Column("estimated_unit", sa.String(16), nullable=False, server_default="kg CO2"),
        sa.Column("actual_carbon_saved", sa.Float(), nullable=False, server_default="0"),
        sa.Column("status", _enum("commitment_status_enum"), nullable=False, server_default="active"),
        sa.Column("like_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("comment_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_commitments_id", "commitments", ["id"])
    op.create_index("ix_commitments_user_id", "commitments", ["user_id"])
    op.create_index("ix_commitments_category", "commitments", ["category"])
    op.create_index("ix_commitments_visibility", "commitments", ["visibility"])
    op.create_index("ix_commitments_estimated_total", "commitments", ["estimated_total"])
    op.create_index("ix_commitments_status", "commitments", ["status"])
    op.create_index("ix_commitments_created_at", "commitments", ["created_at"])

    # --- commitment_likes ---
    op.create_table(
        "commitment_likes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("commitment_id", sa.Integer(), sa.ForeignKey("commitments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("commitment_id", "user_id", name="uq_commitment_like"),
    )
    op.create_index("ix_commitment_likes_id", "commitment_likes", ["id"])
    op.create_index("ix_commitment_likes_commitment_id", "commitment_likes", ["commitment_id"])
    op.create_index("ix_commitment_likes_user_id", "commitment_likes", ["user_id"])

    # --- milestones ---
    op.create_table(
        "milestones",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("commitment_id", sa.Integer(), sa.ForeignKey("commitments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("target_value", sa.Float(), nullable=False),
        sa.Column("current_value", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", _enum("milestone_status_enum"), nullable=False, server_default="pending"),
        sa.Column("estimated_carbon_savings", sa.Float(), nullable=False, server_default="0"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_milestones_id", "milestones", ["id"])
    op.create_index("ix_milestones_commitment_id", "milestones", ["commitment_id"])
    op.create_index("ix_milestones_status", "milestones", ["status"])

    # --- progress_updates ---
    op.create_table(
        "progress_updates",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("commitment_id", sa.Integer(), sa.ForeignKey("commitments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", sa.String(256), nullable=False),
        sa.Column("note", sa.String(500), nullable=True),
        sa.Column("delta_carbon_saved", sa.Float(), nullable=False, server_default="0"),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_progress_updates_id", "progress_updates", ["id"])
    op.create_index("ix_progress_updates_commitment_id", "progress_updates", ["commitment_id"])
    op.create_index("ix_progress_updates_user_id", "progress_updates", ["user_id"])
    op.create_index("ix_progress_updates_date", "progress_updates", ["date"])

    # --- comments ---
    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("commitment_id", sa.Integer(), sa.ForeignKey("commitments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comments_id", "comments", ["id"])
    op.create_index("ix_comments_commitment_id", "comments", ["commitment_id"])
    op.create_index("ix_comments_user_id", "comments", ["user_id"])

    # --- notifications ---
    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", _enum("notification_type_enum"), nullable=False),
        sa.Column("message", sa.String(500), nullable=False),
        sa.Column("data", sa.Text(), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_id", "notifications", ["id"])
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_read", "notifications", ["read"])


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("comments")
    op.drop_table("progress_updates")
    op.drop_table("milestones")
    op.drop_table("commitment_likes")
    op.drop_table("commitments")
    op.drop_table("user_badges")
    op.drop_table("users")

    for name in reversed(list(_ENUMS)):
        op.execute(f"DROP TYPE IF EXISTS {name}")
