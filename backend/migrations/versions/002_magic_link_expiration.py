"""Add magic link expiration to bookings.

Revision ID: 002_magic_link_expiration
Revises: 001_bookings_and_analytics
Create Date: 2026-10-19

Existing rows keep magic_link_expires_at NULL, which means their links
never expire. New bookings get a one-hour expiry from the application.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "002_magic_link_expiration"
down_revision: str | None = "001_bookings_and_analytics"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.add_column(
        "bookings",
        sa.Column("magic_link_expires_at", sa.DateTime(timezone=True), nullable=True),
    )
    # Expiry checks run on every magic link resolution
    op.create_index(
        "bookings_magic_link_expires_at_idx", "bookings", ["magic_link_expires_at"]
    )


def downgrade() -> None:
    op.drop_index("bookings_magic_link_expires_at_idx", table_name="bookings")
    op.drop_column("bookings", "magic_link_expires_at")
