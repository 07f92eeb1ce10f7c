"""Create bookings and booking_analytics tables.

Revision ID: 001_bookings_and_analytics
Revises:
Create Date: 2026-10-19

- bookings: one row per appointment, addressed by UUID, by the
  human-readable booking_id and by its magic link token.
- booking_analytics: append-only access and interaction events, owned
  by a booking and deleted with it.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = "001_bookings_and_analytics"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

appointment_type = sa.Enum(
    "CONSULTATION",
    "TUTORIAL",
    "ASSESSMENT",
    "GROUP_SESSION",
    "WORKSHOP",
    name="appointment_type",
)
booking_status = sa.Enum(
    "PENDING_CONFIRMATION",
    "CONFIRMED",
    "CANCELLED",
    "COMPLETED",
    name="booking_status",
)
payment_status = sa.Enum(
    "PENDING",
    "COMPLETED",
    "FAILED",
    "REFUNDED",
    "CANCELLED",
    name="payment_status",
)


def upgrade() -> None:
    # =========================================================================
    # bookings
    # =========================================================================
    op.create_table(
        "bookings",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("booking_id", sa.String(255), nullable=False, unique=True),
        sa.Column("magic_link_id", sa.String(50), nullable=False, unique=True),
        sa.Column("user_name", sa.String(255), nullable=False),
        sa.Column("user_phone", sa.String(50), nullable=False),
        sa.Column("appointment_type", appointment_type, nullable=False),
        sa.Column("appointment_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "booking_details",
            JSONB(),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column(
            "status",
            booking_status,
            server_default="PENDING_CONFIRMATION",
            nullable=False,
        ),
        sa.Column(
            "payment_status",
            payment_status,
            server_default="PENDING",
            nullable=False,
        ),
        sa.Column("payment_id", sa.String(255), nullable=True),
        sa.Column("payment_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("payment_currency", sa.String(3), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payment_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_accessed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "access_count", sa.Integer(), server_default=sa.text("0"), nullable=False
        ),
    )
    op.create_index("bookings_user_phone_idx", "bookings", ["user_phone"])
    op.create_index("bookings_status_idx", "bookings", ["status"])
    op.create_index("bookings_payment_status_idx", "bookings", ["payment_status"])
    op.create_index("bookings_appointment_date_idx", "bookings", ["appointment_date"])
    op.create_index("bookings_created_at_idx", "bookings", ["created_at"])

    # =========================================================================
    # booking_analytics
    # =========================================================================
    op.create_table(
        "booking_analytics",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "booking_id",
            UUID(as_uuid=True),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index(
        "booking_analytics_booking_id_idx", "booking_analytics", ["booking_id"]
    )
    op.create_index(
        "booking_analytics_event_type_idx", "booking_analytics", ["event_type"]
    )
    op.create_index(
        "booking_analytics_timestamp_idx", "booking_analytics", ["timestamp"]
    )


def downgrade() -> None:
    op.drop_table("booking_analytics")
    op.drop_table("bookings")
    payment_status.drop(op.get_bind(), checkfirst=True)
    booking_status.drop(op.get_bind(), checkfirst=True)
    appointment_type.drop(op.get_bind(), checkfirst=True)
