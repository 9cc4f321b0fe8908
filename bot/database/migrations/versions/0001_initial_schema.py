"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17 00:00:00

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("guild_id", sa.BigInteger(), nullable=False),
        sa.Column("username", sa.String(100), nullable=True),
        sa.Column("xp", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("last_message_time", sa.Float(), nullable=True),
        sa.Column("created_at", sa.Float(), nullable=True),
        sa.UniqueConstraint("user_id", "guild_id", name="uq_users_user_guild"),
    )
    op.create_index("idx_users_guild_xp", "users", ["guild_id", "xp"])

    op.create_table(
        "economy",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("guild_id", sa.BigInteger(), nullable=False),
        sa.Column("money", sa.BigInteger(), nullable=False, server_default="1000"),
        sa.Column("bank_money", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("bank_level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("daily_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_daily", sa.Float(), nullable=True),
        sa.Column("last_steal", sa.Float(), nullable=True),
        sa.Column("total_winnings", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("total_losses", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("total_stolen", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("total_stolen_from", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("games_played", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.Float(), nullable=True),
        sa.UniqueConstraint("user_id", "guild_id", name="uq_economy_user_guild"),
    )
    op.create_index("idx_economy_guild_money", "economy", ["guild_id", "money"])

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("guild_id", sa.BigInteger(), nullable=False),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("event_name", sa.String(200), nullable=False),
        sa.Column("start_date", sa.Float(), nullable=False),
        sa.Column("end_date", sa.Float(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.Float(), nullable=True),
    )
    op.create_index("idx_events_guild_active", "events", ["guild_id", "is_active"])

    op.create_table(
        "event_participants",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("guild_id", sa.BigInteger(), nullable=False),
        sa.Column("participation_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("coins_received", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("items_received", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("rewards_claimed", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("event_id", "user_id", "guild_id", name="uq_event_participant"),
    )

    op.create_table(
        "shop_inventory",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("guild_id", sa.BigInteger(), nullable=False),
        sa.Column("item_id", sa.String(100), nullable=False),
        sa.Column("item_name", sa.String(200), nullable=False),
        sa.Column("item_description", sa.Text(), nullable=True),
        sa.Column("price", sa.BigInteger(), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("rarity", sa.String(20), nullable=False),
        sa.Column("effects", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("is_event_item", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("event_type", sa.String(50), nullable=True),
        sa.Column("date_added", sa.String(10), nullable=False),
    )
    op.create_index("idx_shop_guild", "shop_inventory", ["guild_id"])

    op.create_table(
        "user_inventory",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("guild_id", sa.BigInteger(), nullable=False),
        sa.Column("item_id", sa.String(100), nullable=False),
        sa.Column("item_name", sa.String(200), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("effects", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("purchased_at", sa.Float(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("idx_inventory_user_guild", "user_inventory", ["user_id", "guild_id"])


def downgrade() -> None:
    op.drop_index("idx_inventory_user_guild", table_name="user_inventory")
    op.drop_table("user_inventory")
    op.drop_index("idx_shop_guild", table_name="shop_inventory")
    op.drop_table("shop_inventory")
    op.drop_table("event_participants")
    op.drop_index("idx_events_guild_active", table_name="events")
    op.drop_table("events")
    op.drop_index("idx_economy_guild_money", table_name="economy")
    op.drop_table("economy")
    op.drop_index("idx_users_guild_xp", table_name="users")
    op.drop_table("users")
