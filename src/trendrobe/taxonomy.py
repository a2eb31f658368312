"""Canonical wardrobe labels: categories, seasons and the color palette."""

from typing import Literal

Category = Literal["Tops", "Bottoms", "Outerwear", "Dresses", "Footwear", "Accessories"]
Season = Literal["All Seasons", "Spring/Summer", "Fall/Winter"]

CATEGORIES: tuple[str, ...] = (
    "Tops",
    "Bottoms",
    "Outerwear",
    "Dresses",
    "Footwear",
    "Accessories",
)
SEASONS: tuple[str, ...] = ("All Seasons", "Spring/Summer", "Fall/Winter")

PALETTE: tuple[str, ...] = (
    "Black",
    "White",
    "Blue",
    "Red",
    "Green",
    "Yellow",
    "Brown",
    "Gray",
    "Pink",
    "Purple",
    "Orange",
)

DEFAULT_CATEGORY = "Tops"
DEFAULT_COLOR = "Blue"
DEFAULT_SEASON = "All Seasons"

# Keywords found in image classification labels, checked in this order
LABEL_KEYWORD_TO_CATEGORY: dict[str, str] = {
    "shirt": "Tops",
    "t-shirt": "Tops",
    "blouse": "Tops",
    "sweater": "Tops",
    "jacket": "Outerwear",
    "coat": "Outerwear",
    "blazer": "Outerwear",
    "pants": "Bottoms",
    "jeans": "Bottoms",
    "skirt": "Bottoms",
    "shorts": "Bottoms",
    "dress": "Dresses",
    "shoes": "Footwear",
    "boots": "Footwear",
    "sneakers": "Footwear",
    "hat": "Accessories",
    "scarf": "Accessories",
    "bag": "Accessories",
    "jewelry": "Accessories",
}


def match_palette_color(value: str) -> str | None:
    """Return the first palette color whose name occurs in `value`, ignoring case."""
    lowered = value.lower()
    for color in PALETTE:
        if color.lower() in lowered:
            return color
    if "grey" in lowered:
        return "Gray"
    return None


def normalize_color(value: str) -> str:
    """
    Loosely normalize a free-text color against the palette.

    "navy blue" becomes "Blue" and "GREY" becomes "Gray". Colors outside the
    palette are kept, stripped and title-cased ("teal" becomes "Teal").
    """
    stripped = value.strip()
    return match_palette_color(stripped) or stripped.title()


def category_for_label(label: str) -> str | None:
    """Map a free-form classifier label (e.g. "jersey, T-shirt, tee shirt") to a category."""
    lowered = label.lower()
    for keyword, category in LABEL_KEYWORD_TO_CATEGORY.items():
        if keyword in lowered:
            return category
    return None
