from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import (
    Field,  # type: ignore
    Relationship,
    SQLModel,
)

# NOTE: Relationship foreign key ID fields (e.g., styling_tip_id) are typed as required, but
# the corresponding relationship object fields (e.g., styling_tip) are typed as optional to
# allow creation using only the ID while satisfying the type checker, requiring explicit
# checks or assertions before accessing the object's attributes later.


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WardrobeItem(SQLModel, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: str = Field(index=True)
    name: str
    image_url: str
    category: str
    color: str
    season: str
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime | None = None
    outfit_items: list["OutfitItem"] = Relationship(
        back_populates="wardrobe_item",
        sa_relationship_kwargs={"cascade": "all, delete"},
    )


class StylingTip(SQLModel, table=True):
    """
    A saved outfit: a named, ordered selection of wardrobe items for an occasion.
    """

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: str = Field(index=True)
    title: str
    description: str
    occasion: str
    created_at: datetime = Field(default_factory=utcnow, index=True)
    outfit_items: list["OutfitItem"] = Relationship(
        back_populates="styling_tip",
        sa_relationship_kwargs={
            "cascade": "all, delete",
            "order_by": "OutfitItem.position",
        },
    )


class OutfitItem(SQLModel, table=True):
    """Links a wardrobe item into a styling tip. Positions start at 1."""

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    styling_tip_id: UUID = Field(foreign_key="stylingtip.id", index=True)
    styling_tip: Optional["StylingTip"] = Relationship(back_populates="outfit_items")
    wardrobe_item_id: UUID = Field(foreign_key="wardrobeitem.id", index=True)
    wardrobe_item: Optional["WardrobeItem"] = Relationship(
        back_populates="outfit_items"
    )
    position: int
