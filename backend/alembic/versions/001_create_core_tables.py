"""Create core tables

Revision ID: 001
Revises: None
Create Date: 2025-01-15 00:00:00.000000+00:00

What:  Taxonomy masters, events with their membership/swipe/photo rows,
       per-user preference rows, chat and participation history.

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _ts(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        nullable=nullable,
        server_default=None if nullable else sa.text("CURRENT_TIMESTAMP"),
    )


def _active() -> sa.Column:
    return sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true())


def upgrade() -> None:
    # ── Taxonomy masters ──────────────────────────────────────────────────
    op.create_table(
        "tags",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("kind", sa.String(30), nullable=False),
        _active(),
        _ts("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_tags_kind", "tags", ["kind"])

    op.create_table(
        "interests",
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("icon", sa.String(16), nullable=True),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _active(),
        sa.PrimaryKeyConstraint("code"),
    )
    op.create_index("ix_interests_category", "interests", ["category"])

    op.create_table(
        "food_categories",
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("icon", sa.String(16), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _active(),
        sa.PrimaryKeyConstraint("code"),
    )

    op.create_table(
        "travel_styles",
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("icon", sa.String(16), nullable=True),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _active(),
        sa.PrimaryKeyConstraint("code"),
    )

    # ── Events ────────────────────────────────────────────────────────────
    op.create_table(
        "events",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("creator_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("event_type", sa.String(30), nullable=False),
        sa.Column("address_text", sa.String(500), nullable=True),
        sa.Column("lat", sa.Float(), nullable=True),
        sa.Column("lng", sa.Float(), nullable=True),
        _ts("start_at", nullable=True),
        _ts("end_at", nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("budget_min", sa.Integer(), nullable=True),
        sa.Column("budget_max", sa.Integer(), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default=sa.text("'THB'")),
        sa.Column(
            "status", sa.String(20), nullable=False, server_default=sa.text("'published'")
        ),
        sa.Column("cover_image_url", sa.String(1024), nullable=True),
        sa.Column("confirmed_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        _ts("deleted_at", nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("capacity IS NULL OR capacity >= 1", name="ck_events_capacity_positive"),
        sa.CheckConstraint("confirmed_count >= 0", name="ck_events_confirmed_non_negative"),
        sa.CheckConstraint(
            "capacity IS NULL OR confirmed_count <= capacity",
            name="ck_events_confirmed_within_capacity",
        ),
    )
    op.create_index("ix_events_creator_id", "events", ["creator_id"])
    op.create_index("idx_events_status_created_at", "events", ["status", "created_at"])

    for table in ("event_tags", "event_categories"):
        op.create_table(
            table,
            sa.Column("event_id", sa.Uuid(), nullable=False),
            sa.Column("tag_id", sa.Uuid(), nullable=False),
            sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["tag_id"], ["tags.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("event_id", "tag_id"),
        )

    op.create_table(
        "event_interests",
        sa.Column("event_id", sa.Uuid(), nullable=False),
        sa.Column("interest_code", sa.String(50), nullable=False),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["interest_code"], ["interests.code"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("event_id", "interest_code"),
    )

    op.create_table(
        "event_members",
        sa.Column("event_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        _ts("joined_at"),
        _ts("confirmed_at", nullable=True),
        _ts("left_at", nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("event_id", "user_id"),
    )
    op.create_index("idx_event_members_user_status", "event_members", ["user_id", "status"])

    op.create_table(
        "event_swipes",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("event_id", sa.Uuid(), nullable=False),
        sa.Column("direction", sa.String(10), nullable=False),
        _ts("created_at"),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "event_id"),
    )
    op.create_index("ix_event_swipes_event_id", "event_swipes", ["event_id"])

    op.create_table(
        "event_photos",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("event_id", sa.Uuid(), nullable=False),
        sa.Column("url", sa.String(1024), nullable=False),
        sa.Column("sort_no", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _ts("created_at"),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_id", "sort_no", name="uq_event_photos_event_sort"),
    )

    # ── Per-user selections ───────────────────────────────────────────────
    op.create_table(
        "user_tags",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("tag_id", sa.Uuid(), nullable=False),
        _ts("created_at"),
        sa.ForeignKeyConstraint(["tag_id"], ["tags.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "tag_id"),
    )

    op.create_table(
        "user_interests",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("interest_code", sa.String(50), nullable=False),
        _ts("created_at"),
        sa.ForeignKeyConstraint(["interest_code"], ["interests.code"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "interest_code"),
    )

    op.create_table(
        "food_preferences",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("category_code", sa.String(50), nullable=False),
        sa.Column("preference_level", sa.Integer(), nullable=False),
        _ts("created_at"),
        _ts("updated_at"),
        sa.ForeignKeyConstraint(
            ["category_code"], ["food_categories.code"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("user_id", "category_code"),
        sa.CheckConstraint(
            "preference_level BETWEEN 1 AND 3", name="ck_food_preferences_level_range"
        ),
    )

    op.create_table(
        "travel_preferences",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("style_code", sa.String(50), nullable=False),
        _ts("created_at"),
        sa.ForeignKeyConstraint(["style_code"], ["travel_styles.code"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "style_code"),
    )

    # ── Chat ──────────────────────────────────────────────────────────────
    op.create_table(
        "chat_rooms",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("event_id", sa.Uuid(), nullable=False),
        _ts("created_at"),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_id"),
    )

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("room_id", sa.Uuid(), nullable=False),
        sa.Column("sender_id", sa.Uuid(), nullable=False),
        sa.Column("message_type", sa.String(20), nullable=False, server_default=sa.text("'text'")),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("media_url", sa.String(1024), nullable=True),
        _ts("created_at"),
        sa.ForeignKeyConstraint(["room_id"], ["chat_rooms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_chat_messages_room_created", "chat_messages", ["room_id", "created_at"]
    )

    # ── History ───────────────────────────────────────────────────────────
    op.create_table(
        "user_event_history",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("event_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        _ts("completed_at", nullable=True),
        _ts("created_at"),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_id", "user_id", name="uq_user_event_history_event_user"),
    )
    op.create_index("ix_user_event_history_user_id", "user_event_history", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_user_event_history_user_id", table_name="user_event_history")
    op.drop_table("user_event_history")
    op.drop_index("idx_chat_messages_room_created", table_name="chat_messages")
    op.drop_table("chat_messages")
    op.drop_table("chat_rooms")
    op.drop_table("travel_preferences")
    op.drop_table("food_preferences")
    op.drop_table("user_interests")
    op.drop_table("user_tags")
    op.drop_table("event_photos")
    op.drop_index("ix_event_swipes_event_id", table_name="event_swipes")
    op.drop_table("event_swipes")
    op.drop_index("idx_event_members_user_status", table_name="event_members")
    op.drop_table("event_members")
    op.drop_table("event_interests")
    op.drop_table("event_categories")
    op.drop_table("event_tags")
    op.drop_index("idx_events_status_created_at", table_name="events")
    op.drop_index("ix_events_creator_id", table_name="events")
    op.drop_table("events")
    op.drop_table("travel_styles")
    op.drop_table("food_categories")
    op.drop_index("ix_interests_category", table_name="interests")
    op.drop_table("interests")
    op.drop_index("ix_tags_kind", table_name="tags")
    op.drop_table("tags")
