"""
Wardrobe store gateway: CRUD for wardrobe items and styling tips.

Database failures never propagate out of this module. They are logged, the session is
rolled back, and callers get an empty list, None or False instead. The one exception is a
styling tip that was saved without its items, which raises PartialSaveError so it can be
told apart from a save that failed entirely.
"""

import logging
from typing import Any, Sequence
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from . import db

ANONYMOUS_USER_ID = "00000000-0000-0000-0000-000000000000"


class PartialSaveError(Exception):
    """A styling tip was created, but its item associations could not be saved."""

    def __init__(self, styling_tip_id: UUID):
        super().__init__(
            f"Styling tip {styling_tip_id} was created without its items."
        )
        self.styling_tip_id = styling_tip_id


class NewWardrobeItem(BaseModel):
    user_id: str
    name: str
    image_url: str
    category: str
    color: str
    season: str


class NewStylingTip(BaseModel):
    user_id: str
    title: str
    description: str
    occasion: str


def get_wardrobe_items(session: Session, user_id: str) -> Sequence[db.WardrobeItem]:
    try:
        return session.exec(
            select(db.WardrobeItem)
            .where(db.WardrobeItem.user_id == user_id)
            .order_by(db.WardrobeItem.created_at.desc())  # type: ignore
        ).all()
    except SQLAlchemyError:
        logging.exception("Error fetching wardrobe items")
        session.rollback()
        return []


def get_wardrobe_item(
    session: Session, user_id: str, item_id: UUID
) -> db.WardrobeItem | None:
    try:
        return session.exec(
            select(db.WardrobeItem)
            .where(db.WardrobeItem.id == item_id)
            .where(db.WardrobeItem.user_id == user_id)
        ).one_or_none()
    except SQLAlchemyError:
        logging.exception("Error fetching wardrobe item")
        session.rollback()
        return None


def add_wardrobe_item(session: Session, fields: NewWardrobeItem) -> db.WardrobeItem | None:
    try:
        item = db.WardrobeItem(**fields.model_dump())
        session.add(item)
        session.commit()
        session.refresh(item)
        return item
    except SQLAlchemyError:
        logging.exception("Error adding wardrobe item")
        session.rollback()
        return None


def update_wardrobe_item(
    session: Session, item_id: UUID, fields: dict[str, Any]
) -> db.WardrobeItem | None:
    try:
        item = session.get(db.WardrobeItem, item_id)
        if item is None:
            return None
        for key, value in fields.items():
            if key in ("id", "user_id", "created_at"):
                continue
            setattr(item, key, value)
        item.updated_at = db.utcnow()
        session.add(item)
        session.commit()
        session.refresh(item)
        return item
    except SQLAlchemyError:
        logging.exception("Error updating wardrobe item")
        session.rollback()
        return None


def delete_wardrobe_item(session: Session, item_id: UUID) -> bool:
    try:
        item = session.get(db.WardrobeItem, item_id)
        if item is None:
            return False
        # Cascades to the outfit items referencing this wardrobe item
        session.delete(item)
        session.commit()
        return True
    except SQLAlchemyError:
        logging.exception("Error deleting wardrobe item")
        session.rollback()
        return False


def tip_items(tip: db.StylingTip) -> list[db.WardrobeItem]:
    """The wardrobe items of a styling tip, ordered by position."""
    items: list[db.WardrobeItem] = []
    for outfit_item in sorted(tip.outfit_items, key=lambda oi: oi.position):
        assert outfit_item.wardrobe_item is not None
        items.append(outfit_item.wardrobe_item)
    return items


def get_styling_tips(session: Session, user_id: str) -> Sequence[db.StylingTip]:
    try:
        return session.exec(
            select(db.StylingTip)
            .where(db.StylingTip.user_id == user_id)
            .order_by(db.StylingTip.created_at.desc())  # type: ignore
            .options(
                selectinload(db.StylingTip.outfit_items).selectinload(  # type: ignore
                    db.OutfitItem.wardrobe_item  # type: ignore
                )
            )
        ).all()
    except SQLAlchemyError:
        logging.exception("Error fetching styling tips")
        session.rollback()
        return []


def get_styling_tip(
    session: Session, user_id: str, tip_id: UUID
) -> db.StylingTip | None:
    try:
        return session.exec(
            select(db.StylingTip)
            .where(db.StylingTip.id == tip_id)
            .where(db.StylingTip.user_id == user_id)
        ).one_or_none()
    except SQLAlchemyError:
        logging.exception("Error fetching styling tip")
        session.rollback()
        return None


def add_styling_tip(
    session: Session, fields: NewStylingTip, item_ids: Sequence[UUID]
) -> db.StylingTip | None:
    """
    Save a styling tip along with its items, in the given order.

    The tip is committed first and its item associations second, with positions starting
    at 1. Returns None if the tip itself could not be saved.

    Raises:
        PartialSaveError: If the tip was saved but its items were not. The tip is left in
            place; its ID is available on the exception.
    """
    try:
        tip = db.StylingTip(**fields.model_dump())
        session.add(tip)
        session.commit()
        session.refresh(tip)
        tip_id = tip.id
    except SQLAlchemyError:
        logging.exception("Error adding styling tip")
        session.rollback()
        return None

    try:
        for position, item_id in enumerate(item_ids, start=1):
            session.add(
                db.OutfitItem(
                    styling_tip_id=tip_id, wardrobe_item_id=item_id, position=position
                )
            )
        session.commit()
    except SQLAlchemyError as error:
        logging.exception(f"Error adding outfit items to styling tip {tip_id}")
        session.rollback()
        raise PartialSaveError(tip_id) from error

    try:
        session.refresh(tip)
    except SQLAlchemyError:
        # The tip and its items are committed; only the reload failed
        logging.exception(f"Error reloading saved styling tip {tip_id}")
        session.rollback()
    return tip


def delete_styling_tip(session: Session, tip_id: UUID) -> bool:
    try:
        tip = session.get(db.StylingTip, tip_id)
        if tip is None:
            return False
        # Cascades to the outfit items of this tip
        session.delete(tip)
        session.commit()
        return True
    except SQLAlchemyError:
        logging.exception("Error deleting styling tip")
        session.rollback()
        return False
