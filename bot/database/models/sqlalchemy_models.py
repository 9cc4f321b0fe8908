"""
bot/database/models/sqlalchemy_models.py
SQLAlchemy models: the schema created at startup and the Alembic target
"""

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class UserLevel(Base):
    """XP progress per member and guild"""
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("user_id", "guild_id", name="uq_users_user_guild"),
        Index("idx_users_guild_xp", "guild_id", "xp"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, nullable=False)
    guild_id = Column(BigInteger, nullable=False)
    username = Column(String(100), nullable=True)
    xp = Column(BigInteger, nullable=False, default=0)
    level = Column(Integer, nullable=False, default=1)
    last_message_time = Column(Float, nullable=True)  # unix seconds
    created_at = Column(Float, nullable=True)


class Economy(Base):
    """Wallet, bank and cooldown stamps per member and guild"""
    __tablename__ = "economy"
    __table_args__ = (
        UniqueConstraint("user_id", "guild_id", name="uq_economy_user_guild"),
        Index("idx_economy_guild_money", "guild_id", "money"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, nullable=False)
    guild_id = Column(BigInteger, nullable=False)
    money = Column(BigInteger, nullable=False, default=1000)
    bank_money = Column(BigInteger, nullable=False, default=0)
    bank_level = Column(Integer, nullable=False, default=1)
    daily_streak = Column(Integer, nullable=False, default=0)
    last_daily = Column(Float, nullable=True)
    last_steal = Column(Float, nullable=True)
    total_winnings = Column(BigInteger, nullable=False, default=0)
    total_losses = Column(BigInteger, nullable=False, default=0)
    total_stolen = Column(BigInteger, nullable=False, default=0)
    total_stolen_from = Column(BigInteger, nullable=False, default=0)
    games_played = Column(Integer, nullable=False, default=0)
    created_at = Column(Float, nullable=True)


class Event(Base):
    """Seasonal event run in a guild"""
    __tablename__ = "events"
    __table_args__ = (Index("idx_events_guild_active", "guild_id", "is_active"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    guild_id = Column(BigInteger, nullable=False)
    event_type = Column(String(50), nullable=False)
    event_name = Column(String(200), nullable=False)
    start_date = Column(Float, nullable=False)
    end_date = Column(Float, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(Float, nullable=True)


class EventParticipant(Base):
    """Per-member participation tally for one event"""
    __tablename__ = "event_participants"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", "guild_id", name="uq_event_participant"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(BigInteger, nullable=False)
    guild_id = Column(BigInteger, nullable=False)
    participation_count = Column(Integer, nullable=False, default=0)
    coins_received = Column(BigInteger, nullable=False, default=0)
    items_received = Column(Text, nullable=False, default="[]")  # JSON list
    rewards_claimed = Column(Integer, nullable=False, default=0)


class ShopItem(Base):
    """Today's shop snapshot for a guild"""
    __tablename__ = "shop_inventory"
    __table_args__ = (Index("idx_shop_guild", "guild_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    guild_id = Column(BigInteger, nullable=False)
    item_id = Column(String(100), nullable=False)
    item_name = Column(String(200), nullable=False)
    item_description = Column(Text, nullable=True)
    price = Column(BigInteger, nullable=False)
    category = Column(String(50), nullable=False)
    rarity = Column(String(20), nullable=False)
    effects = Column(Text, nullable=False, default="[]")  # JSON list
    is_event_item = Column(Boolean, nullable=False, default=False)
    event_type = Column(String(50), nullable=True)
    date_added = Column(String(10), nullable=False)  # YYYY-MM-DD


class InventoryItem(Base):
    """Item owned by a member"""
    __tablename__ = "user_inventory"
    __table_args__ = (Index("idx_inventory_user_guild", "user_id", "guild_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, nullable=False)
    guild_id = Column(BigInteger, nullable=False)
    item_id = Column(String(100), nullable=False)
    item_name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    effects = Column(Text, nullable=False, default="[]")  # JSON list
    purchased_at = Column(Float, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
