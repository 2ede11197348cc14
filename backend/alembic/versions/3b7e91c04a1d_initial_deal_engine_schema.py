"""initial deal engine schema

Revision ID: 3b7e91c04a1d
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3b7e91c04a1d"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]


def upgrade() -> None:
    # Reference data
    op.create_table(
        "airports",
        sa.Column("code", sa.Text(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("city", sa.Text(), nullable=False),
        sa.Column("country", sa.Text(), nullable=False),
        sa.Column("popular", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )
    op.create_table(
        "airlines",
        sa.Column("code", sa.Text(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("logo", sa.Text(), nullable=True),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("first_name", sa.Text(), nullable=True),
        sa.Column("last_name", sa.Text(), nullable=True),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "subscriptions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("plan_type", sa.Text(), nullable=False, server_default="free"),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("current_period_start", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("current_period_end", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("stripe_customer_id", sa.Text(), nullable=True),
        sa.Column("stripe_subscription_id", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_subscriptions_status", "subscriptions", ["status"])
    op.create_index("ix_subscriptions_stripe_subscription_id", "subscriptions", ["stripe_subscription_id"])

    op.create_table(
        "user_preferences",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("origin_airports", sa.JSON(), nullable=False),
        sa.Column("destination_preference", sa.Text(), nullable=False, server_default="all"),
        sa.Column("specific_destinations", sa.JSON(), nullable=False),
        sa.Column("airline_preference", sa.Text(), nullable=False, server_default="all"),
        sa.Column("airlines", sa.JSON(), nullable=False),
        sa.Column("travel_class", sa.Text(), nullable=False, server_default="economy"),
        sa.Column("premium_economy", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("business", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("first", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("min_discount", sa.Integer(), nullable=False, server_default=sa.text("20")),
        sa.Column("notification_frequency", sa.Text(), nullable=False, server_default="daily"),
        *_timestamps(),
    )

    op.create_table(
        "flights",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("origin", sa.Text(), nullable=False),
        sa.Column("destination", sa.Text(), nullable=False),
        sa.Column("airline", sa.Text(), nullable=False),
        sa.Column("cabin_class", sa.Text(), nullable=False, server_default="economy"),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("currency", sa.Text(), nullable=False, server_default="USD"),
        sa.Column("departure_time", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("arrival_time", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("booking_url", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_flights_origin", "flights", ["origin"])
    op.create_index("ix_flights_destination", "flights", ["destination"])
    op.create_index("ix_flights_airline", "flights", ["airline"])
    op.create_index("ix_flights_departure_time", "flights", ["departure_time"])
    op.create_index("ix_flights_created_at", "flights", ["created_at"])

    # Append-only; read by route tuple within a trailing window
    op.create_table(
        "price_history",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("origin", sa.Text(), nullable=False),
        sa.Column("destination", sa.Text(), nullable=False),
        sa.Column("airline", sa.Text(), nullable=False),
        sa.Column("cabin_class", sa.Text(), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("currency", sa.Text(), nullable=False, server_default="USD"),
        sa.Column("observed_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index(
        "ix_price_history_route_observed",
        "price_history",
        ["origin", "destination", "airline", "cabin_class", "observed_at"],
    )

    deal_quality = sa.Enum("good", "great", "amazing", name="deal_quality")
    op.create_table(
        "deals",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("flight_id", sa.Uuid(), sa.ForeignKey("flights.id", ondelete="CASCADE"), nullable=False),
        sa.Column("regular_price", sa.Float(), nullable=False),
        sa.Column("discount_percentage", sa.Integer(), nullable=False),
        sa.Column("deal_quality", deal_quality, nullable=False),
        sa.Column("featured", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True), nullable=False),
        *_timestamps(),
    )
    # One deal per flight; the upsert targets this index
    op.create_index("ix_deals_flight_id", "deals", ["flight_id"], unique=True)
    op.create_index("ix_deals_discount_percentage", "deals", ["discount_percentage"])
    op.create_index("ix_deals_featured", "deals", ["featured"])
    op.create_index("ix_deals_expires_at", "deals", ["expires_at"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("deal_id", sa.Uuid(), sa.ForeignKey("deals.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("last_error", sa.Text(), nullable=True),
        *_timestamps(),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("opened_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("clicked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("user_id", "deal_id", name="uq_notifications_user_deal"),
        sa.CheckConstraint(
            "status IN ('pending','sent','failed')",
            name="notification_status_valid_values",
        ),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_deal_id", "notifications", ["deal_id"])
    op.create_index("ix_notifications_status_created", "notifications", ["status", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_notifications_status_created", table_name="notifications")
    op.drop_index("ix_notifications_deal_id", table_name="notifications")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("ix_deals_expires_at", table_name="deals")
    op.drop_index("ix_deals_featured", table_name="deals")
    op.drop_index("ix_deals_discount_percentage", table_name="deals")
    op.drop_index("ix_deals_flight_id", table_name="deals")
    op.drop_table("deals")
    sa.Enum(name="deal_quality").drop(op.get_bind(), checkfirst=True)

    op.drop_index("ix_price_history_route_observed", table_name="price_history")
    op.drop_table("price_history")

    for name in ("created_at", "departure_time", "airline", "destination", "origin"):
        op.drop_index(f"ix_flights_{name}", table_name="flights")
    op.drop_table("flights")

    op.drop_table("user_preferences")
    op.drop_index("ix_subscriptions_stripe_subscription_id", table_name="subscriptions")
    op.drop_index("ix_subscriptions_status", table_name="subscriptions")
    op.drop_table("subscriptions")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    op.drop_table("airlines")
    op.drop_table("airports")
