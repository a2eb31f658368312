"""
Outfit composition: placing wardrobe items into slots and scoring the result.

A composition session is transient. Items are placed into one of five slots based on their
category; each of the top, bottom, outerwear and footwear slots holds at most one item, while
accessories are unbounded.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Literal, Sequence
from uuid import UUID

from pydantic import BaseModel

from .db.models import WardrobeItem
from .trends import TrendItem

Slot = Literal["top", "bottom", "outerwear", "footwear", "accessory"]

# NOTE: dresses occupy the top slot only, so a dress and a bottom can be worn together
CATEGORY_TO_SLOT: dict[str, Slot] = {
    "Tops": "top",
    "Bottoms": "bottom",
    "Outerwear": "outerwear",
    "Dresses": "top",
    "Footwear": "footwear",
    "Accessories": "accessory",
}

ESSENTIAL_SLOTS: tuple[Slot, ...] = ("top", "bottom", "footwear")

MIN_ITEMS_TO_SCORE = 2
MIN_ITEMS_TO_SAVE = 2
COVERAGE_SATURATION = 5
COVERAGE_POINTS = 50
ESSENTIALS_POINTS = 30
COLOR_POINTS = 20
COLOR_PENALTY_WINDOW = 3
TREND_MATCH_LIMIT = 2


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def slot_for_category(category: str) -> Slot:
    return CATEGORY_TO_SLOT.get(category, "accessory")


@dataclass
class SlotAssignment:
    item: WardrobeItem
    slot: Slot


class StyleScore(BaseModel):
    total: int
    """Overall score in [0, 100]."""
    coverage: float
    essentials: float
    color: float


def coverage_score(item_count: int) -> float:
    return min(item_count / COVERAGE_SATURATION, 1) * COVERAGE_POINTS


def essentials_score(slots: Iterable[Slot]) -> float:
    present = set(slots)
    count = sum(1 for slot in ESSENTIAL_SLOTS if slot in present)
    return count / len(ESSENTIAL_SLOTS) * ESSENTIALS_POINTS


def color_score(colors: Iterable[str]) -> float:
    unique_colors = len(set(colors))
    penalty = min(max(unique_colors - 1, 0), COLOR_PENALTY_WINDOW)
    return (1 - penalty / COLOR_PENALTY_WINDOW) * COLOR_POINTS


def feedback_for_score(score: int) -> str:
    if score >= 80:
        return "Great outfit! Well-balanced and coordinated."
    elif score >= 60:
        return "Good outfit. Consider adding accessories for more style."
    elif score >= 40:
        return "Basic outfit. Try adding more coordinated pieces."
    else:
        return "Incomplete outfit. Add more essential items."


def trend_keywords(trend: TrendItem) -> list[str]:
    """Lower-cased title and category tags of a trend, skipping empty strings."""
    keywords = [trend.title, *trend.categories]
    return [keyword.lower() for keyword in keywords if keyword.strip()]


def keywords_overlap(a: str, b: str) -> bool:
    """Whether either string contains the other. Empty strings never overlap."""
    if not a or not b:
        return False
    return a in b or b in a


class OutfitComposer:
    """Holds the slot assignments of one outfit being composed, in selection order."""

    def __init__(self, items: Iterable[WardrobeItem] = ()):
        self._assignments: list[SlotAssignment] = []
        for item in items:
            self.add_item(item)

    @property
    def assignments(self) -> Sequence[SlotAssignment]:
        return tuple(self._assignments)

    @property
    def items(self) -> list[WardrobeItem]:
        return [assignment.item for assignment in self._assignments]

    def __len__(self) -> int:
        return len(self._assignments)

    def add_item(self, item: WardrobeItem) -> SlotAssignment:
        """
        Place an item into the slot for its category.

        If a non-accessory slot is already taken, the new item replaces the previous one in
        place. Accessories are always appended.
        """
        assignment = SlotAssignment(item=item, slot=slot_for_category(item.category))

        if assignment.slot != "accessory":
            for index, existing in enumerate(self._assignments):
                if existing.slot == assignment.slot:
                    self._assignments[index] = assignment
                    return assignment

        self._assignments.append(assignment)
        return assignment

    def remove_item(self, item_id: UUID) -> bool:
        remaining = [a for a in self._assignments if a.item.id != item_id]
        removed = len(remaining) != len(self._assignments)
        self._assignments = remaining
        return removed

    def clear(self):
        self._assignments = []

    def style_score(self) -> StyleScore:
        if len(self._assignments) < MIN_ITEMS_TO_SCORE:
            return StyleScore(total=0, coverage=0, essentials=0, color=0)

        coverage = coverage_score(len(self._assignments))
        essentials = essentials_score(a.slot for a in self._assignments)
        color = color_score(a.item.color for a in self._assignments)
        total = round_half_up(coverage + essentials + color)
        return StyleScore(
            total=max(0, min(100, total)),
            coverage=coverage,
            essentials=essentials,
            color=color,
        )

    def feedback(self) -> str:
        return feedback_for_score(self.style_score().total)

    def trend_matches(
        self, trends: Iterable[TrendItem], limit: int = TREND_MATCH_LIMIT
    ) -> list[TrendItem]:
        """
        Trends that relate to the outfit, in catalog order.

        A trend matches when one of its keywords and an outfit category contain one another,
        or when a keyword contains the color of an outfit item.
        """
        if not self._assignments:
            return []

        categories = [a.item.category.lower() for a in self._assignments]
        colors = [a.item.color.lower() for a in self._assignments]

        matches: list[TrendItem] = []
        for trend in trends:
            if len(matches) >= limit:
                break
            for keyword in trend_keywords(trend):
                if any(keywords_overlap(keyword, c) for c in categories) or any(
                    color and color in keyword for color in colors
                ):
                    matches.append(trend)
                    break
        return matches

    def validate_for_save(self, name: str) -> str | None:
        """Return a message explaining why the outfit can't be saved, or None if it can."""
        if len(self._assignments) < MIN_ITEMS_TO_SAVE:
            return "Please add at least 2 items to your outfit."
        if not name.strip():
            return "Please provide a name for your outfit."
        return None
