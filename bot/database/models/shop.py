# bot/database/models/shop.py
import json
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional


@dataclass
class ShopListing:
    guild_id: int
    item_id: str
    item_name: str
    item_description: str
    price: int
    category: str
    rarity: str
    effects: List[str] = field(default_factory=list)
    is_event_item: bool = False
    event_type: Optional[str] = None
    date_added: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ShopListing":
        return cls(
            guild_id=int(row["guild_id"]),
            item_id=row["item_id"],
            item_name=row["item_name"],
            item_description=row["item_description"] or "",
            price=int(row["price"]),
            category=row["category"],
            rarity=row["rarity"],
            effects=json.loads(row["effects"] or "[]"),
            is_event_item=bool(row["is_event_item"]),
            event_type=row["event_type"],
            date_added=row["date_added"],
        )


@dataclass
class OwnedItem:
    id: int
    user_id: int
    guild_id: int
    item_id: str
    item_name: str
    quantity: int
    effects: List[str]
    purchased_at: float
    is_active: bool

    @property
    def consumable(self) -> bool:
        return any(
            tag in effect for effect in self.effects for tag in ("instant", "boost", "potion", "drink")
        )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "OwnedItem":
        return cls(
            id=int(row["id"]),
            user_id=int(row["user_id"]),
            guild_id=int(row["guild_id"]),
            item_id=row["item_id"],
            item_name=row["item_name"],
            quantity=int(row["quantity"]),
            effects=json.loads(row["effects"] or "[]"),
            purchased_at=float(row["purchased_at"]),
            is_active=bool(row["is_active"]),
        )
