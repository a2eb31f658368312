import logging

from sqlmodel import Session, select

from ..settings import get_settings
from ..store import ANONYMOUS_USER_ID
from . import create_db_and_tables, engine
from .models import OutfitItem, StylingTip, WardrobeItem

settings = get_settings()

wardrobe_data = {
    "white_tee": {
        "name": "White T-Shirt",
        "category": "Tops",
        "color": "White",
        "season": "All Seasons",
    },
    "striped_sweater": {
        "name": "Striped Sweater",
        "category": "Tops",
        "color": "Black",
        "season": "Fall/Winter",
    },
    "crochet_top": {
        "name": "Crochet Top",
        "category": "Tops",
        "color": "Yellow",
        "season": "Spring/Summer",
    },
    "wide_leg_pants": {
        "name": "Wide-Leg Pants",
        "category": "Bottoms",
        "color": "Brown",
        "season": "All Seasons",
    },
    "jeans": {
        "name": "Slim Fit Jeans",
        "category": "Bottoms",
        "color": "Blue",
        "season": "All Seasons",
    },
    "blazer": {
        "name": "Oversized Blazer",
        "category": "Outerwear",
        "color": "Gray",
        "season": "Fall/Winter",
    },
    "summer_dress": {
        "name": "Linen Summer Dress",
        "category": "Dresses",
        "color": "Green",
        "season": "Spring/Summer",
    },
    "loafers": {
        "name": "Chunky Loafers",
        "category": "Footwear",
        "color": "Black",
        "season": "All Seasons",
    },
    "sneakers": {
        "name": "White Sneakers",
        "category": "Footwear",
        "color": "White",
        "season": "All Seasons",
    },
    "scarf": {
        "name": "Silk Scarf",
        "category": "Accessories",
        "color": "Red",
        "season": "Fall/Winter",
    },
}

styling_tips_data = [
    {
        "title": "Office Ready",
        "description": "Custom outfit for Work",
        "occasion": "Work",
        "items": ["striped_sweater", "wide_leg_pants", "blazer", "loafers"],
    },
    {
        "title": "Weekend Denim",
        "description": "Custom outfit for Casual",
        "occasion": "Casual",
        "items": ["white_tee", "jeans", "sneakers"],
    },
]


def seed():
    create_db_and_tables()
    user_id = settings.AUTH0_SEED_USER_ID or ANONYMOUS_USER_ID

    with Session(engine) as session:
        existing = session.exec(
            select(WardrobeItem).where(WardrobeItem.user_id == user_id)
        ).first()
        if existing is not None:
            logging.info(f"User {user_id!r} already has wardrobe items, skipping seed")
            return

        # Add wardrobe items
        items: dict[str, WardrobeItem] = {}
        for key, item_data in wardrobe_data.items():
            item = WardrobeItem(
                user_id=user_id,
                image_url=f"/placeholder.svg?height=300&width=300&text={key}",
                **item_data,
            )
            session.add(item)
            items[key] = item

        # Add styling tips with their items in order
        for tip_data in styling_tips_data:
            tip = StylingTip(
                user_id=user_id,
                title=tip_data["title"],
                description=tip_data["description"],
                occasion=tip_data["occasion"],
            )
            session.add(tip)
            for position, key in enumerate(tip_data["items"], start=1):
                session.add(
                    OutfitItem(
                        styling_tip_id=tip.id,
                        wardrobe_item_id=items[key].id,
                        position=position,
                    )
                )

        session.commit()
        logging.info(
            f"Seeded {len(items)} wardrobe items and {len(styling_tips_data)} styling tips for user {user_id!r}"
        )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed()
