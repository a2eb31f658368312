"""
Wardrobe analytics: distributions, trend alignment, gap analysis and insights.

All computations are single passes over an in-memory wardrobe snapshot. An empty wardrobe
produces an empty report rather than an error.
"""

from collections import Counter
from typing import Literal, Sequence

from pydantic import BaseModel

from .composition import keywords_overlap, round_half_up, trend_keywords
from .db.models import WardrobeItem
from .trends import TrendItem

RECOMMENDED_QUANTITIES: dict[str, int] = {
    "Tops": 5,
    "Bottoms": 4,
    "Outerwear": 2,
    "Footwear": 3,
    "Dresses": 2,
    "Accessories": 3,
}

TRENDING_SCORE_RANGE = (70, 99)
NON_TRENDING_SCORE_RANGE = (30, 69)
TREND_MATCH_SCORE_RANGE = (40, 99)
TREND_MATCH_LIMIT = 5

IMBALANCE_PERCENTAGE = 40
MIN_SEASONS = 2
MIN_COLORS = 4
ALIGNED_SCORE = 60
MIN_ALIGNED_CATEGORIES = 2
MIN_ITEMS_FOR_TREND_INSIGHT = 5
MAX_INSIGHTS_FOR_POSITIVE = 1
MIN_ITEMS_FOR_POSITIVE = 10

InsightKind = Literal["imbalance", "seasonal", "color", "trend", "gaps", "positive"]


class TrendAlignment(BaseModel):
    category: str
    count: int
    is_trending: bool
    trend_score: int


class WardrobeGap(BaseModel):
    category: str
    current: int
    recommended: int
    gap: int
    completeness: int
    """Percentage of the recommended quantity owned, capped at 100."""


class Insight(BaseModel):
    type: InsightKind
    title: str
    description: str


class WardrobeReport(BaseModel):
    total_items: int = 0
    category_breakdown: dict[str, int] = {}
    color_distribution: dict[str, int] = {}
    seasonal_distribution: dict[str, int] = {}
    trend_alignment: list[TrendAlignment] = []
    wardrobe_gaps: list[WardrobeGap] = []
    insights: list[Insight] = []


def _scale(fraction: float, score_range: tuple[int, int]) -> int:
    low, high = score_range
    fraction = max(0.0, min(1.0, fraction))
    return low + round_half_up((high - low) * fraction)


def matching_trends(category: str, trends: Sequence[TrendItem]) -> list[TrendItem]:
    lowered = category.lower()
    return [
        trend
        for trend in trends
        if any(keywords_overlap(lowered, keyword) for keyword in trend_keywords(trend))
    ]


def compute_trend_alignment(
    category_breakdown: dict[str, int], trends: Sequence[TrendItem]
) -> list[TrendAlignment]:
    """
    Score how well each owned category lines up with current trends.

    A category is trending when its name and a trend keyword contain one another. Trending
    categories score between 70 and 99, scaled by the highest growth among the matching
    trends. Other categories score between 30 and 69, scaled by their share of the wardrobe.
    """
    total = sum(category_breakdown.values())
    alignment: list[TrendAlignment] = []
    for category, count in category_breakdown.items():
        matches = matching_trends(category, trends)
        if matches:
            best_growth = max(trend.growth for trend in matches)
            score = _scale(best_growth / 100, TRENDING_SCORE_RANGE)
        else:
            score = _scale(count / total if total else 0, NON_TRENDING_SCORE_RANGE)
        alignment.append(
            TrendAlignment(
                category=category,
                count=count,
                is_trending=bool(matches),
                trend_score=score,
            )
        )
    # sorted() is stable, so ties keep their first-seen order
    return sorted(alignment, key=lambda entry: entry.trend_score, reverse=True)


def compute_wardrobe_gaps(category_breakdown: dict[str, int]) -> list[WardrobeGap]:
    gaps: list[WardrobeGap] = []
    for category, recommended in RECOMMENDED_QUANTITIES.items():
        current = category_breakdown.get(category, 0)
        gap = max(0, recommended - current)
        if gap == 0:
            continue
        gaps.append(
            WardrobeGap(
                category=category,
                current=current,
                recommended=recommended,
                gap=gap,
                completeness=min(100, round_half_up(current / recommended * 100)),
            )
        )
    return sorted(gaps, key=lambda entry: entry.gap, reverse=True)


def _largest_category(category_breakdown: dict[str, int]) -> str:
    # Ties go to the category seen last
    largest = None
    for category, count in category_breakdown.items():
        if largest is None or count >= category_breakdown[largest]:
            largest = category
    assert largest is not None
    return largest


def generate_insights(report: WardrobeReport) -> list[Insight]:
    if report.total_items == 0:
        return []

    insights: list[Insight] = []

    largest = _largest_category(report.category_breakdown)
    percentage = round_half_up(
        report.category_breakdown[largest] / report.total_items * 100
    )
    if percentage > IMBALANCE_PERCENTAGE:
        insights.append(
            Insight(
                type="imbalance",
                title="Category Imbalance",
                description=f"Your wardrobe is {percentage}% {largest}. Consider diversifying with other categories.",
            )
        )

    if len(report.seasonal_distribution) < MIN_SEASONS:
        insights.append(
            Insight(
                type="seasonal",
                title="Limited Seasonal Coverage",
                description="Your wardrobe is focused on limited seasons. Consider adding items for other seasons.",
            )
        )

    if len(report.color_distribution) < MIN_COLORS:
        insights.append(
            Insight(
                type="color",
                title="Limited Color Palette",
                description="Your wardrobe has limited color variety. Consider adding more colors for versatility.",
            )
        )

    aligned = [a for a in report.trend_alignment if a.trend_score > ALIGNED_SCORE]
    if (
        len(aligned) < MIN_ALIGNED_CATEGORIES
        and report.total_items > MIN_ITEMS_FOR_TREND_INSIGHT
    ):
        insights.append(
            Insight(
                type="trend",
                title="Low Trend Alignment",
                description="Your wardrobe has few on-trend items. Consider adding some current trends.",
            )
        )

    if report.wardrobe_gaps:
        categories = ", ".join(gap.category for gap in report.wardrobe_gaps)
        insights.append(
            Insight(
                type="gaps",
                title="Wardrobe Gaps Detected",
                description=f"You're missing some essential items in {categories}.",
            )
        )

    if (
        len(insights) <= MAX_INSIGHTS_FOR_POSITIVE
        and report.total_items > MIN_ITEMS_FOR_POSITIVE
    ):
        insights.append(
            Insight(
                type="positive",
                title="Well-Balanced Wardrobe",
                description="Your wardrobe has good variety across categories, seasons, and colors.",
            )
        )

    return insights


def analyze_wardrobe(
    items: Sequence[WardrobeItem], trends: Sequence[TrendItem]
) -> WardrobeReport:
    if not items:
        return WardrobeReport()

    category_breakdown = dict(Counter(item.category for item in items))
    report = WardrobeReport(
        total_items=len(items),
        category_breakdown=category_breakdown,
        color_distribution=dict(Counter(item.color for item in items)),
        seasonal_distribution=dict(Counter(item.season for item in items)),
        trend_alignment=compute_trend_alignment(category_breakdown, trends),
        wardrobe_gaps=compute_wardrobe_gaps(category_breakdown),
    )
    report.insights = generate_insights(report)
    return report


def trend_match_percentages(
    items: Sequence[WardrobeItem],
    trends: Sequence[TrendItem],
    limit: int = TREND_MATCH_LIMIT,
) -> dict[str, int]:
    """
    How closely the wardrobe matches each of the first `limit` trends, as a percentage.

    The percentage lies between 40 and 99 and grows with the share of wardrobe items whose
    category or color relates to one of the trend's keywords.
    """
    if not items or not trends:
        return {}

    percentages: dict[str, int] = {}
    for trend in trends[:limit]:
        keywords = trend_keywords(trend)
        matching = sum(
            1
            for item in items
            if any(
                keywords_overlap(item.category.lower(), keyword)
                or (item.color and item.color.lower() in keyword)
                for keyword in keywords
            )
        )
        percentages[trend.title] = _scale(matching / len(items), TREND_MATCH_SCORE_RANGE)
    return percentages
