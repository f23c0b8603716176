"""initial event ranking schema

Revision ID: 20261017_000001
Revises: 
Create Date: 2026-10-17 00:00:01.000000
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261017_000001"
down_revision = None
branch_labels = None
depends_on = None


signal_type_enum = postgresql.ENUM(
    "favorite", "calendar", "share", "view_source", "hide", name="signal_type", create_type=False
)
signal_polarity_enum = postgresql.ENUM("positive", "negative", name="signal_polarity", create_type=False)


def upgrade() -> None:
    """Create events, the signal log, and the centroid cache."""
    signal_type_enum.create(op.get_bind(), checkfirst=True)
    signal_polarity_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "events",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("url", sa.String(length=1024), nullable=True),
        sa.Column("location", sa.String(length=500), nullable=True),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("embedding", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("score_rarity", sa.Integer(), nullable=True),
        sa.Column("score_unique", sa.Integer(), nullable=True),
        sa.Column("score_magnitude", sa.Integer(), nullable=True),
        sa.Column("score_override", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("score_rarity >= 0 AND score_rarity <= 10", name="ck_events_score_rarity_range"),
        sa.CheckConstraint("score_unique >= 0 AND score_unique <= 10", name="ck_events_score_unique_range"),
        sa.CheckConstraint(
            "score_magnitude >= 0 AND score_magnitude <= 10", name="ck_events_score_magnitude_range"
        ),
        sa.CheckConstraint("score >= 0 AND score <= 30", name="ck_events_score_total_range"),
    )
    op.create_index("ix_events_start_at", "events", ["start_at"], unique=False)
    op.create_index("ix_events_score", "events", ["score"], unique=False)

    op.create_table(
        "user_signals",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "event_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("events.id", ondelete="CASCADE", name="fk_user_signals_event_id_events"),
            nullable=False,
        ),
        sa.Column("signal_type", signal_type_enum, nullable=False),
        sa.Column("polarity", signal_polarity_enum, nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("signaled_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("deactivated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "uq_user_signals_active_identity",
        "user_signals",
        ["user_id", "event_id", "signal_type"],
        unique=True,
        postgresql_where=sa.text("active"),
    )
    op.create_index("ix_user_signals_user_active", "user_signals", ["user_id", "active"], unique=False)

    op.create_table(
        "user_taste_profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("positive_centroid", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("negative_centroid", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("computed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("signal_version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", name="uq_user_taste_profiles_user"),
    )


def downgrade() -> None:
    """Drop the event ranking schema."""
    op.drop_table("user_taste_profiles")
    op.drop_index("ix_user_signals_user_active", table_name="user_signals")
    op.drop_index("uq_user_signals_active_identity", table_name="user_signals")
    op.drop_table("user_signals")
    op.drop_index("ix_events_score", table_name="events")
    op.drop_index("ix_events_start_at", table_name="events")
    op.drop_table("events")
    signal_polarity_enum.drop(op.get_bind(), checkfirst=True)
    signal_type_enum.drop(op.get_bind(), checkfirst=True)
