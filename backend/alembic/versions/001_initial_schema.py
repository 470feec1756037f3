"""Initial schema — activity windows, registrations, exclusivity claims, login sessions,
network cool-downs.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "activity_windows",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("title", sa.String(200), nullable=False, server_default=""),
        sa.Column("latitude", sa.Float(precision=53), nullable=False),
        sa.Column("longitude", sa.Float(precision=53), nullable=False),
        sa.Column("radius_meters", sa.Float, nullable=False),
        sa.Column("opens_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("closes_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("capacity", sa.Integer, nullable=False, server_default="0"),
        sa.Column("current_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("exclusive", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("version", sa.Integer, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("current_count >= 0", name="ck_activity_windows_count_nonnegative"),
    )

    op.create_table(
        "registration_records",
        sa.Column(
            "activity_id", sa.String(64),
            sa.ForeignKey("activity_windows.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("identity_id", sa.String(128), primary_key=True),
        sa.Column("requester_handle", sa.String(320), nullable=False),
        sa.Column("latitude", sa.Float(precision=53), nullable=False),
        sa.Column("longitude", sa.Float(precision=53), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_registration_records_activity_submitted",
        "registration_records", ["activity_id", "submitted_at"],
    )

    op.create_table(
        "exclusivity_claims",
        sa.Column(
            "activity_id", sa.String(64),
            sa.ForeignKey("activity_windows.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("claimant_handle", sa.String(320), nullable=False),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "login_sessions",
        sa.Column("identity_id", sa.String(128), primary_key=True),
        sa.Column("handle", sa.String(320), nullable=False),
        sa.Column("network_address", sa.String(64), nullable=False),
        sa.Column("login_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_activity", sa.DateTime(timezone=True), nullable=False),
        sa.Column("active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("version", sa.Integer, nullable=False),
    )

    op.create_table(
        "network_cooldowns",
        sa.Column("network_address", sa.String(64), primary_key=True),
        sa.Column("identity_id", sa.String(128), nullable=False),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("blocked_until", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version", sa.Integer, nullable=False),
    )


def downgrade() -> None:
    op.drop_table("network_cooldowns")
    op.drop_table("login_sessions")
    op.drop_table("exclusivity_claims")
    op.drop_index("ix_registration_records_activity_submitted", "registration_records")
    op.drop_table("registration_records")
    op.drop_table("activity_windows")
