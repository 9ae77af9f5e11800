"""Initial schema: users, events, rsvps with indexes and constraints.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(60), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'attendee'")),
        *_timestamps(),
        sa.CheckConstraint("role IN ('organizer', 'attendee')", name="check_user_role"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    # Emails are lower-cased before insert, so this is a case-insensitive unique index
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("time", sa.String(50), nullable=False),
        sa.Column("location", sa.String(200), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("attendee_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("organizer_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("capacity IS NULL OR capacity > 0", name="check_capacity_positive"),
        sa.CheckConstraint("attendee_count >= 0", name="check_attendee_count_non_negative"),
        # Backstop for the conditional claim in the RSVP service
        sa.CheckConstraint(
            "capacity IS NULL OR attendee_count <= capacity",
            name="check_attendee_count_lte_capacity",
        ),
    )
    op.create_index("ix_events_id", "events", ["id"])
    op.create_index("ix_events_organizer_id", "events", ["organizer_id"])
    # Every listing filters or sorts on date
    op.create_index("ix_events_date", "events", ["date"])
    # filter=public: WHERE is_public AND date >= now ORDER BY date
    op.create_index("ix_events_public_date", "events", ["is_public", "date"])

    op.create_table(
        "rsvps",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "event_id",
            sa.Integer(),
            sa.ForeignKey("events.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'attending'")),
        *_timestamps(),
        sa.UniqueConstraint("event_id", "user_id", name="uq_rsvp_event_user"),
        sa.CheckConstraint(
            "status IN ('attending', 'not_attending', 'maybe')", name="check_rsvp_status"
        ),
    )
    op.create_index("ix_rsvps_id", "rsvps", ["id"])
    op.create_index("ix_rsvps_event_id", "rsvps", ["event_id"])
    op.create_index("ix_rsvps_user_id", "rsvps", ["user_id"])


def downgrade() -> None:
    op.drop_table("rsvps")
    op.drop_table("events")
    op.drop_table("users")
