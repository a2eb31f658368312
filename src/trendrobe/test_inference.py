from unittest.mock import Mock, patch

import pytest
import requests

from .cache import InMemoryTTLCache, NullCache
from .inference import (
    InferenceProxy,
    InferenceTask,
    InvalidTaskError,
    build_request,
    suggest_item_details,
)


def make_proxy(api_key: str | None = "hf_test", cache=None) -> InferenceProxy:
    return InferenceProxy(
        api_key=api_key,
        base_url="https://hf.example/models/",
        cache=cache if cache is not None else NullCache(),
    )


def make_response(status_code: int = 200, json_data=None, text: str = "") -> Mock:
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = json_data
    return response


class TestBuildRequest:
    def test_classify_image(self):
        image = "a" * 80
        request = build_request("classify-image", {"image": image})
        assert request.model == "microsoft/resnet-50"
        assert request.payload == {"inputs": image}
        assert request.cache_key == "classify-" + "a" * 50

    def test_extract_colors(self):
        request = build_request("extract-colors", {"image": "abc"})
        assert request.model == "facebook/detr-resnet-50"
        assert request.cache_key == "colors-abc"

    def test_styling_tips(self):
        request = build_request(
            "generate-styling-tips",
            {"items": ["Blue Tops", "Black Bottoms"], "occasion": "Work"},
        )
        assert request.model == "gpt2"
        assert request.payload["inputs"] == (
            "Generate styling tips for the following clothing items: "
            "Blue Tops, Black Bottoms. Consider the occasion: Work."
        )
        assert request.payload["parameters"]["max_length"] == 150
        assert request.cache_key == "styling-Blue Tops-Black Bottoms-Work"

    def test_trend_match(self):
        request = build_request(
            "analyze-trend-match",
            {"images": ["x", "y"], "trends": ["Oversized Blazers", "Cargo Pants"]},
        )
        assert request.model == "facebook/bart-large-mnli"
        assert request.payload["inputs"]["premise"] == "Outfit containing: 2 items."
        assert request.cache_key == "trend-match-Oversized Blazers-Cargo Pants"

    def test_unknown_task(self):
        with pytest.raises(InvalidTaskError, match="Invalid task"):
            build_request("summarize", {})

    def test_wrong_data_shape(self):
        with pytest.raises(InvalidTaskError, match="Invalid data"):
            build_request("generate-styling-tips", {"items": "Blue Tops"})


class TestInvoke:
    @patch("trendrobe.inference.requests.post")
    def test_success(self, mock_post):
        mock_post.return_value = make_response(json_data=[{"label": "jersey"}])

        outcome = make_proxy().invoke("classify-image", {"image": "abc"})

        assert outcome.ok
        assert outcome.status_code == 200
        assert outcome.result == [{"label": "jersey"}]
        args, kwargs = mock_post.call_args
        assert args[0] == "https://hf.example/models/microsoft/resnet-50"
        assert kwargs["headers"]["Authorization"] == "Bearer hf_test"
        assert kwargs["json"] == {"inputs": "abc"}

    @patch("trendrobe.inference.requests.post")
    def test_invalid_task(self, mock_post):
        outcome = make_proxy().invoke("summarize", {})

        assert outcome.status_code == 400
        assert outcome.error == "Invalid task"
        mock_post.assert_not_called()

    @patch("trendrobe.inference.requests.post")
    def test_missing_api_key(self, mock_post):
        outcome = make_proxy(api_key=None).invoke("classify-image", {"image": "abc"})

        assert outcome.status_code == 500
        assert outcome.error == "API key not configured"
        mock_post.assert_not_called()

    @patch("trendrobe.inference.requests.post")
    def test_cache_hit_skips_request(self, mock_post):
        mock_post.return_value = make_response(json_data=[{"label": "jersey"}])
        proxy = make_proxy(cache=InMemoryTTLCache())

        proxy.invoke("classify-image", {"image": "abc"})
        outcome = proxy.invoke("classify-image", {"image": "abc"})

        assert outcome.result == [{"label": "jersey"}]
        assert mock_post.call_count == 1

    @patch("trendrobe.inference.requests.post")
    def test_cached_result_expires(self, mock_post):
        mock_post.return_value = make_response(json_data=[{"label": "jersey"}])
        now = [0.0]
        proxy = InferenceProxy(
            api_key="hf_test",
            base_url="https://hf.example/models",
            cache=InMemoryTTLCache(clock=lambda: now[0]),
            cache_ttl=3600,
        )

        proxy.invoke("classify-image", {"image": "abc"})
        now[0] = 3599
        proxy.invoke("classify-image", {"image": "abc"})
        assert mock_post.call_count == 1

        now[0] = 3600
        proxy.invoke("classify-image", {"image": "abc"})
        assert mock_post.call_count == 2

    @patch("trendrobe.inference.requests.post")
    def test_missing_api_key_checked_before_task(self, mock_post):
        outcome = make_proxy(api_key=None).invoke("summarize", {})

        assert outcome.status_code == 500
        assert outcome.error == "API key not configured"

    @patch("trendrobe.inference.requests.post")
    def test_remote_error_keeps_status(self, mock_post):
        mock_post.return_value = make_response(
            status_code=503, json_data={"error": "Model is loading"}
        )
        cache = InMemoryTTLCache()

        outcome = make_proxy(cache=cache).invoke("classify-image", {"image": "abc"})

        assert outcome.status_code == 503
        assert outcome.error == {"error": "Model is loading"}
        assert len(cache) == 0

    @patch("trendrobe.inference.requests.post")
    def test_remote_error_without_json(self, mock_post):
        mock_post.return_value = make_response(status_code=502, text="Bad Gateway")

        outcome = make_proxy().invoke("classify-image", {"image": "abc"})

        assert outcome.status_code == 502
        assert outcome.error == "Bad Gateway"

    @patch("trendrobe.inference.requests.post")
    def test_network_failure(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("unreachable")

        outcome = make_proxy().invoke("classify-image", {"image": "abc"})

        assert outcome.status_code == 500
        assert outcome.error == "Failed to process request"

    @patch("trendrobe.inference.requests.post")
    def test_invoke_or_none(self, mock_post):
        mock_post.side_effect = requests.Timeout()

        assert make_proxy().invoke_or_none(InferenceTask.CLASSIFY_IMAGE, {"image": "abc"}) is None


class TestSuggestItemDetails:
    def test_first_matching_label_wins(self):
        classification = [
            {"label": "suit, suit of clothes", "score": 0.5},
            {"label": "jean, blue jean, denim", "score": 0.3},
            {"label": "jersey, T-shirt, tee shirt", "score": 0.1},
        ]

        suggestion = suggest_item_details(classification, None)

        assert suggestion.category == "Tops"
        assert suggestion.name == "jersey, T-shirt, tee shirt"

    def test_color_from_detection_labels(self):
        colors = [{"label": "person"}, {"label": "dark grey"}, {"label": "red"}]

        suggestion = suggest_item_details(None, colors)

        assert suggestion.color == "Gray"

    def test_defaults(self):
        suggestion = suggest_item_details({"error": "loading"}, [])

        assert suggestion.name is None
        assert suggestion.category == "Tops"
        assert suggestion.color == "Blue"
        assert suggestion.season == "All Seasons"
