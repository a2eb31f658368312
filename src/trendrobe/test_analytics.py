from . import db
from .analytics import (
    analyze_wardrobe,
    compute_trend_alignment,
    compute_wardrobe_gaps,
    trend_match_percentages,
)
from .trends import TrendItem, get_fallback_trend_data

trends = get_fallback_trend_data().trend_items


def make_item(
    category: str, color: str = "Blue", season: str = "All Seasons"
) -> db.WardrobeItem:
    return db.WardrobeItem(
        user_id="auth0|1",
        name=f"{color} {category}",
        image_url="/placeholder.svg",
        category=category,
        color=color,
        season=season,
    )


class TestDistributions:
    def test_counts(self):
        items = [
            make_item("Tops", "Blue", "All Seasons"),
            make_item("Tops", "Red", "Spring/Summer"),
            make_item("Bottoms", "Blue", "All Seasons"),
        ]

        report = analyze_wardrobe(items, trends)

        assert report.total_items == 3
        assert report.category_breakdown == {"Tops": 2, "Bottoms": 1}
        assert report.color_distribution == {"Blue": 2, "Red": 1}
        assert report.seasonal_distribution == {"All Seasons": 2, "Spring/Summer": 1}

    def test_empty_wardrobe(self):
        report = analyze_wardrobe([], trends)

        assert report.total_items == 0
        assert report.category_breakdown == {}
        assert report.color_distribution == {}
        assert report.seasonal_distribution == {}
        assert report.trend_alignment == []
        assert report.wardrobe_gaps == []
        assert report.insights == []


class TestWardrobeGaps:
    def test_partial_category(self):
        gaps = compute_wardrobe_gaps({"Tops": 2})
        tops = next(gap for gap in gaps if gap.category == "Tops")
        assert tops.gap == 3
        assert tops.completeness == 40
        assert tops.recommended == 5

    def test_full_category_is_excluded(self):
        gaps = compute_wardrobe_gaps({"Tops": 6})
        assert "Tops" not in [gap.category for gap in gaps]

    def test_sorted_by_gap_size(self):
        gaps = compute_wardrobe_gaps(
            {"Tops": 5, "Bottoms": 4, "Outerwear": 1, "Footwear": 0, "Dresses": 2}
        )
        assert [(gap.category, gap.gap) for gap in gaps] == [
            ("Footwear", 3),
            ("Accessories", 3),
            ("Outerwear", 1),
        ]

    def test_completeness_rounds(self):
        gaps = compute_wardrobe_gaps({"Footwear": 2})
        footwear = next(gap for gap in gaps if gap.category == "Footwear")
        assert footwear.completeness == 67


class TestTrendAlignment:
    def test_score_ranges(self):
        alignment = compute_trend_alignment(
            {"Outerwear": 2, "Dresses": 1, "Swimwear": 5}, trends
        )
        by_category = {entry.category: entry for entry in alignment}

        assert by_category["Outerwear"].is_trending
        assert 70 <= by_category["Outerwear"].trend_score <= 99
        for category in ("Dresses", "Swimwear"):
            assert not by_category[category].is_trending
            assert 30 <= by_category[category].trend_score <= 69

    def test_trending_score_follows_growth(self):
        # Oversized Blazers (growth 78) is the strongest Outerwear trend
        alignment = compute_trend_alignment({"Outerwear": 1}, trends)
        assert alignment[0].trend_score == 93

    def test_sorted_descending(self):
        alignment = compute_trend_alignment(
            {"Dresses": 1, "Accessories": 1, "Outerwear": 1}, trends
        )
        scores = [entry.trend_score for entry in alignment]
        assert scores == sorted(scores, reverse=True)
        assert alignment[0].category == "Outerwear"

    def test_matches_either_direction(self):
        custom = [TrendItem(title="Tops", description="", growth=100, categories=[])]
        alignment = compute_trend_alignment({"Crop Tops": 1}, custom)
        assert alignment[0].is_trending
        assert alignment[0].trend_score == 99

    def test_deterministic(self):
        breakdown = {"Tops": 3, "Dresses": 2, "Footwear": 1}
        assert compute_trend_alignment(breakdown, trends) == compute_trend_alignment(
            breakdown, trends
        )


class TestInsights:
    def test_small_wardrobe(self):
        items = [
            make_item("Tops", "Blue"),
            make_item("Tops", "Blue"),
            make_item("Bottoms", "Black"),
        ]

        report = analyze_wardrobe(items, trends)

        assert [insight.type for insight in report.insights] == [
            "imbalance",
            "seasonal",
            "color",
            "gaps",
        ]
        assert report.insights[0].description.startswith("Your wardrobe is 67% Tops.")
        assert report.insights[-1].description == (
            "You're missing some essential items in Tops, Bottoms, Footwear, Accessories, Outerwear, Dresses."
        )

    def test_low_trend_alignment(self):
        colors = ["Red", "Blue", "Green", "Black", "White", "Pink"]
        items = [make_item("Dresses", color) for color in colors]

        report = analyze_wardrobe(items, trends)

        assert "trend" in [insight.type for insight in report.insights]

    def test_balanced_wardrobe(self):
        counts = {
            "Tops": 5,
            "Bottoms": 4,
            "Outerwear": 2,
            "Footwear": 3,
            "Dresses": 2,
            "Accessories": 3,
        }
        colors = ["Black", "White", "Blue", "Red", "Green"]
        seasons = ["All Seasons", "Spring/Summer", "Fall/Winter"]
        items = []
        for category, count in counts.items():
            for _ in range(count):
                items.append(
                    make_item(category, colors[len(items) % 5], seasons[len(items) % 3])
                )

        report = analyze_wardrobe(items, trends)

        assert report.wardrobe_gaps == []
        assert [insight.type for insight in report.insights] == ["positive"]
        assert report.insights[0].title == "Well-Balanced Wardrobe"

    def test_positive_insight_needs_more_than_ten_items(self):
        items = [
            make_item("Tops", "Black", "All Seasons"),
            make_item("Bottoms", "White", "Spring/Summer"),
            make_item("Outerwear", "Blue", "Fall/Winter"),
            make_item("Footwear", "Red", "All Seasons"),
        ]

        report = analyze_wardrobe(items, trends)

        assert "positive" not in [insight.type for insight in report.insights]

    def test_idempotent(self):
        items = [
            make_item("Tops", "Blue"),
            make_item("Footwear", "Black", "Fall/Winter"),
            make_item("Dresses", "Red", "Spring/Summer"),
        ]
        assert analyze_wardrobe(items, trends) == analyze_wardrobe(items, trends)


class TestTrendMatchPercentages:
    def test_empty(self):
        assert trend_match_percentages([], trends) == {}
        assert trend_match_percentages([make_item("Tops")], []) == {}

    def test_top_five_in_range(self):
        items = [make_item("Outerwear"), make_item("Tops"), make_item("Dresses")]

        percentages = trend_match_percentages(items, trends)

        assert list(percentages) == [trend.title for trend in trends[:5]]
        assert all(40 <= value <= 99 for value in percentages.values())
        # One of three items is outerwear
        assert percentages["Oversized Blazers"] == 60
        assert percentages["Wide-Leg Pants"] == 40
