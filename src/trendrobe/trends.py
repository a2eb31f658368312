"""Fashion trend data, served from a process-wide cache."""

import logging
import threading
import time
from functools import lru_cache
from typing import Callable

from pydantic import BaseModel, Field

from .settings import get_settings

PLACEHOLDER_IMAGE = "/placeholder.svg?height=200&width=200"


class TrendItem(BaseModel):
    title: str
    description: str
    image: str = PLACEHOLDER_IMAGE
    growth: int = Field(ge=0, le=100)
    """Growth of interest in the trend, in percent."""
    categories: list[str] = []
    source: str = "Fashion Trend Data"
    link: str | None = None
    pub_date: str | None = None


class TrendCategory(BaseModel):
    name: str
    count: int


class PaletteColor(BaseModel):
    color: str
    """Hex color code."""
    name: str


class ChartDataset(BaseModel):
    label: str
    data: list[int]
    background_color: str
    border_color: str


class ChartData(BaseModel):
    labels: list[str] = []
    datasets: list[ChartDataset] = []


class SeasonalTrend(BaseModel):
    title: str
    description: str
    image: str = PLACEHOLDER_IMAGE


class TrendBundle(BaseModel):
    trend_items: list[TrendItem] = []
    trending_categories: list[TrendCategory] = []
    color_palettes: dict[str, list[PaletteColor]] = {}
    chart_data: ChartData = Field(default_factory=ChartData)
    seasonal_trends: dict[str, list[SeasonalTrend]] = {}


def _trend(
    title: str, description: str, growth: int, categories: list[str]
) -> TrendItem:
    return TrendItem(
        title=title, description=description, growth=growth, categories=categories
    )


def _season(title: str, description: str) -> SeasonalTrend:
    return SeasonalTrend(title=title, description=description)


def get_fallback_trend_data() -> TrendBundle:
    """The static trend bundle served in place of a live trends feed."""
    return TrendBundle(
        trend_items=[
            _trend(
                "Oversized Blazers",
                "Oversized blazers continue to dominate both street style and office wear.",
                78,
                ["Outerwear", "Office", "Fall"],
            ),
            _trend(
                "Wide-Leg Pants",
                "Wide-leg pants offer comfort and style for all occasions.",
                65,
                ["Bottoms", "Casual", "Year-round"],
            ),
            _trend(
                "Chunky Loafers",
                "Chunky loafers add an edgy touch to any outfit.",
                52,
                ["Footwear", "Office", "Fall"],
            ),
            _trend(
                "Crochet Tops",
                "Crochet tops bring texture and a handmade feel to summer looks.",
                45,
                ["Tops", "Summer", "Casual"],
            ),
            _trend(
                "Leather Bomber Jackets",
                "Leather bomber jackets make a comeback for edgy winter style.",
                42,
                ["Outerwear", "Winter", "Casual"],
            ),
            _trend(
                "Cargo Pants",
                "Utility-inspired cargo pants blend function and fashion.",
                38,
                ["Bottoms", "Spring", "Casual"],
            ),
            _trend(
                "Statement Collars",
                "Bold, decorative collars add personality to simple outfits.",
                35,
                ["Accessories", "Feminine", "Spring"],
            ),
            _trend(
                "Platform Boots",
                "Platform boots add height and edge to any ensemble.",
                32,
                ["Footwear", "Edgy", "Fall"],
            ),
        ],
        trending_categories=[
            TrendCategory(name=name, count=count)
            for name, count in [
                ("Outerwear", 15),
                ("Bottoms", 12),
                ("Footwear", 10),
                ("Tops", 8),
                ("Dresses", 7),
                ("Accessories", 6),
                ("Activewear", 5),
                ("Formal", 4),
            ]
        ],
        color_palettes={
            palette: [PaletteColor(color=color, name=name) for color, name in colors]
            for palette, colors in {
                "Earth Tones": [
                    ("#A0522D", "Sienna"),
                    ("#8B4513", "SaddleBrown"),
                    ("#CD853F", "Peru"),
                    ("#DEB887", "BurlyWood"),
                ],
                "Pastels": [
                    ("#FFB6C1", "LightPink"),
                    ("#ADD8E6", "LightBlue"),
                    ("#FAFAD2", "LightGoldenrodYellow"),
                    ("#D8BFD8", "Thistle"),
                ],
                "Bold Brights": [
                    ("#FF4500", "OrangeRed"),
                    ("#9932CC", "DarkOrchid"),
                    ("#1E90FF", "DodgerBlue"),
                    ("#32CD32", "LimeGreen"),
                ],
                "Neutrals": [
                    ("#000000", "Black"),
                    ("#FFFFFF", "White"),
                    ("#808080", "Gray"),
                    ("#A9A9A9", "DarkGray"),
                ],
            }.items()
        },
        chart_data=ChartData(
            labels=["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep"],
            datasets=[
                ChartDataset(
                    label=label,
                    data=data,
                    background_color=f"rgba({rgb}, 0.5)",
                    border_color=f"rgb({rgb})",
                )
                for label, data, rgb in [
                    (
                        "Oversized Blazers",
                        [10, 15, 25, 32, 38, 45, 58, 70, 78],
                        "147, 51, 234",
                    ),
                    (
                        "Wide-Leg Pants",
                        [12, 18, 22, 28, 35, 42, 50, 58, 65],
                        "59, 130, 246",
                    ),
                    (
                        "Chunky Loafers",
                        [8, 12, 18, 25, 30, 35, 42, 48, 52],
                        "236, 72, 153",
                    ),
                    (
                        "Crochet Tops",
                        [5, 8, 12, 18, 22, 28, 35, 40, 45],
                        "16, 185, 129",
                    ),
                    (
                        "Leather Bomber Jackets",
                        [7, 10, 15, 20, 25, 30, 35, 38, 42],
                        "245, 158, 11",
                    ),
                ]
            ],
        ),
        seasonal_trends={
            "Spring/Summer 2023": [
                _season(
                    "Crochet Tops",
                    "Crochet tops bring texture and a handmade feel to summer looks.",
                ),
                _season("Linen Sets", "Matching linen sets offer effortless summer style."),
                _season("Pastel Blazers", "Soft-colored blazers for a fresh spring look."),
            ],
            "Fall/Winter 2023": [
                _season(
                    "Leather Bomber Jackets",
                    "Leather bomber jackets make a comeback for edgy winter style.",
                ),
                _season("Chunky Knits", "Oversized sweaters and cardigans for cozy winter days."),
                _season("Plaid Everything", "Classic plaid patterns return for fall in various forms."),
            ],
            "Resort 2024": [
                _season("Linen Sets", "Matching linen sets offer effortless resort style."),
                _season("Tropical Prints", "Bold tropical patterns for vacation vibes."),
                _season("Crochet Dresses", "Lightweight crochet dresses for beach days."),
            ],
            "Spring/Summer 2024 Preview": [
                _season("Sheer Layers", "Transparent layers create dimension for next season."),
                _season("Utility Details", "Functional pockets and straps on everyday pieces."),
                _season("Saturated Colors", "Vibrant, bold colors dominate the upcoming season."),
            ],
        },
    )


class TrendProvider:
    """
    Serves the trend bundle, refreshing it from `source` at most once per `refresh_seconds`.

    If the source fails, the fallback bundle is served instead and the failure is logged.
    """

    def __init__(
        self,
        source: Callable[[], TrendBundle] = get_fallback_trend_data,
        refresh_seconds: float = 60 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._source = source
        self._refresh_seconds = refresh_seconds
        self._clock = clock
        self._bundle: TrendBundle | None = None
        self._fetched_at = 0.0
        self._lock = threading.Lock()

    def get_trend_data(self) -> TrendBundle:
        with self._lock:
            now = self._clock()
            if (
                self._bundle is not None
                and now - self._fetched_at < self._refresh_seconds
            ):
                return self._bundle

            try:
                bundle = self._source()
            except Exception:
                logging.exception("Fetching trend data failed, serving fallback data")
                return get_fallback_trend_data()

            self._bundle = bundle
            self._fetched_at = now
            return bundle

    def get_trend_items(self) -> list[TrendItem]:
        return self.get_trend_data().trend_items


@lru_cache
def get_trend_provider() -> TrendProvider:
    """Get the process-wide trend provider. Use as a FastAPI dependency."""
    return TrendProvider(refresh_seconds=get_settings().TREND_CACHE_SECONDS)
