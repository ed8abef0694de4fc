"""Create pricing rules, seasons, timeslots, options, history and bookings."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

ENUMS = {
    "ruletype": (
        "early_bird",
        "last_minute",
        "demand_based",
        "quantity",
        "customer_type",
        "custom",
    ),
    "appliesto": ("all", "specific"),
    "dayofweek": (
        "all",
        "monday",
        "tuesday",
        "wednesday",
        "thursday",
        "friday",
        "saturday",
        "sunday",
        "weekday",
        "weekend",
    ),
    "bookingstatus": ("pending", "acknowledged", "completed", "cancelled", "missed"),
}


def _enum(name: str) -> postgresql.ENUM:
    # Types are created once up front; columns only reference them.
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
            onupdate=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUMS.items():
        sa.Enum(*values, name=name).create(bind, checkfirst=True)

    rule_type = _enum("ruletype")
    applies_to = _enum("appliesto")
    day_of_week = _enum("dayofweek")
    booking_status = _enum("bookingstatus")

    json_type = sa.JSON().with_variant(
        postgresql.JSONB(astext_type=sa.Text()), "postgresql"
    )

    op.create_table(
        "pricing_rules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("rule_type", rule_type, nullable=False),
        sa.Column("applies_to", applies_to, nullable=False, server_default="all"),
        sa.Column("service_ids", json_type, nullable=False),
        sa.Column("staff_ids", json_type, nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="10"),
        sa.Column(
            "adjustment_type",
            sa.String(length=20),
            nullable=False,
            server_default="percentage",
        ),
        sa.Column(
            "adjustment_value", sa.Numeric(10, 2), nullable=False, server_default="0"
        ),
        sa.Column("conditions", json_type, nullable=False),
        sa.Column("valid_from", sa.Date(), nullable=True),
        sa.Column("valid_to", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index(
        "ix_pricing_rules_active_priority", "pricing_rules", ["is_active", "priority"]
    )

    op.create_table(
        "pricing_seasons",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column(
            "adjustment_type",
            sa.String(length=20),
            nullable=False,
            server_default="percentage",
        ),
        sa.Column(
            "adjustment_value", sa.Numeric(10, 2), nullable=False, server_default="0"
        ),
        sa.Column("applies_to", applies_to, nullable=False, server_default="all"),
        sa.Column("service_ids", json_type, nullable=False),
        sa.Column(
            "recurs_yearly", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "pricing_timeslots",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("day_of_week", day_of_week, nullable=False, server_default="all"),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column(
            "adjustment_type",
            sa.String(length=20),
            nullable=False,
            server_default="percentage",
        ),
        sa.Column(
            "adjustment_value", sa.Numeric(10, 2), nullable=False, server_default="0"
        ),
        sa.Column("applies_to", applies_to, nullable=False, server_default="all"),
        sa.Column("service_ids", json_type, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "pricing_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_id", sa.Integer(), nullable=False),
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("final_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("adjustments", json_type, nullable=False),
        sa.Column("price_date", sa.Date(), nullable=False),
        sa.Column("price_time", sa.String(length=5), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ix_pricing_history_booking_id", "pricing_history", ["booking_id"]
    )

    op.create_table(
        "pricing_options",
        sa.Column("key", sa.String(length=64), primary_key=True),
        sa.Column("value", sa.String(length=255), nullable=False),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("service_id", sa.Integer(), nullable=False),
        sa.Column("staff_id", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("booking_time", sa.String(length=5), nullable=False),
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column(
            "status", booking_status, nullable=False, server_default="pending"
        ),
        *_timestamps(),
    )
    op.create_index("ix_bookings_service_id", "bookings", ["service_id"])
    op.create_index("ix_bookings_booking_date", "bookings", ["booking_date"])


def downgrade() -> None:
    op.drop_index("ix_bookings_booking_date", table_name="bookings")
    op.drop_index("ix_bookings_service_id", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("pricing_options")
    op.drop_index("ix_pricing_history_booking_id", table_name="pricing_history")
    op.drop_table("pricing_history")
    op.drop_table("pricing_timeslots")
    op.drop_table("pricing_seasons")
    op.drop_index("ix_pricing_rules_active_priority", table_name="pricing_rules")
    op.drop_table("pricing_rules")

    bind = op.get_bind()
    for name, values in ENUMS.items():
        sa.Enum(*values, name=name).drop(bind, checkfirst=True)
