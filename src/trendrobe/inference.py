"""
Proxy to the Hugging Face Inference API.

Each task maps to one hosted model and one payload shape. Successful responses are cached
for a fixed time, keyed by the task and its input. Failures are returned as structured
errors with an HTTP status code rather than raised, so callers can skip AI enrichment and
carry on.
"""

import logging
from enum import StrEnum
from functools import lru_cache
from typing import Any

import requests
from pydantic import BaseModel, ValidationError

from .cache import InMemoryTTLCache, ResponseCache
from .settings import get_settings
from .taxonomy import (
    DEFAULT_CATEGORY,
    DEFAULT_COLOR,
    DEFAULT_SEASON,
    category_for_label,
    match_palette_color,
)

CACHE_KEY_IMAGE_PREFIX_LENGTH = 50


class InferenceTask(StrEnum):
    CLASSIFY_IMAGE = "classify-image"
    EXTRACT_COLORS = "extract-colors"
    GENERATE_STYLING_TIPS = "generate-styling-tips"
    ANALYZE_TREND_MATCH = "analyze-trend-match"


class ImageData(BaseModel):
    image: str
    """Base64-encoded image, without the data URL prefix."""


class StylingTipsData(BaseModel):
    items: list[str]
    occasion: str


class TrendMatchData(BaseModel):
    images: list[str]
    trends: list[str]


class InferenceRequest(BaseModel):
    model: str
    payload: dict[str, Any]
    cache_key: str


class InferenceResult(BaseModel):
    result: Any | None = None
    error: Any | None = None
    status_code: int = 200

    @property
    def ok(self) -> bool:
        return self.error is None


class InvalidTaskError(ValueError):
    pass


def build_request(task: str, data: dict[str, Any]) -> InferenceRequest:
    """
    Build the model, payload and cache key for a task.

    Raises:
        InvalidTaskError: If the task is unknown or its data doesn't have the expected shape.
    """
    try:
        task = InferenceTask(task)
    except ValueError:
        raise InvalidTaskError("Invalid task")

    try:
        match task:
            case InferenceTask.CLASSIFY_IMAGE:
                image = ImageData.model_validate(data).image
                return InferenceRequest(
                    model="microsoft/resnet-50",
                    payload={"inputs": image},
                    cache_key=f"classify-{image[:CACHE_KEY_IMAGE_PREFIX_LENGTH]}",
                )
            case InferenceTask.EXTRACT_COLORS:
                image = ImageData.model_validate(data).image
                return InferenceRequest(
                    model="facebook/detr-resnet-50",
                    payload={"inputs": image},
                    cache_key=f"colors-{image[:CACHE_KEY_IMAGE_PREFIX_LENGTH]}",
                )
            case InferenceTask.GENERATE_STYLING_TIPS:
                tips_data = StylingTipsData.model_validate(data)
                return InferenceRequest(
                    model="gpt2",
                    payload={
                        "inputs": (
                            "Generate styling tips for the following clothing items: "
                            f"{', '.join(tips_data.items)}. "
                            f"Consider the occasion: {tips_data.occasion}."
                        ),
                        "parameters": {
                            "max_length": 150,
                            "temperature": 0.7,
                            "top_p": 0.9,
                        },
                    },
                    cache_key=f"styling-{'-'.join(tips_data.items)}-{tips_data.occasion}",
                )
            case InferenceTask.ANALYZE_TREND_MATCH:
                match_data = TrendMatchData.model_validate(data)
                return InferenceRequest(
                    model="facebook/bart-large-mnli",
                    payload={
                        "inputs": {
                            "premise": f"Outfit containing: {len(match_data.images)} items.",
                            "hypothesis": f"This outfit matches these trends: {', '.join(match_data.trends)}.",
                        }
                    },
                    cache_key=f"trend-match-{'-'.join(match_data.trends)}",
                )
    except ValidationError as error:
        raise InvalidTaskError(f"Invalid data for task '{task}'") from error


class InferenceProxy:
    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str,
        cache: ResponseCache,
        cache_ttl: float = 60 * 60,
        timeout: float = 30.0,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._cache = cache
        self._cache_ttl = cache_ttl
        self._timeout = timeout

    def invoke(self, task: str, data: dict[str, Any]) -> InferenceResult:
        if not self._api_key:
            logging.error("Hugging Face API key is not configured")
            return InferenceResult(error="API key not configured", status_code=500)

        try:
            request = build_request(task, data)
        except InvalidTaskError as error:
            return InferenceResult(error=str(error), status_code=400)

        cached = self._cache.get(request.cache_key)
        if cached is not None:
            return InferenceResult(result=cached)

        try:
            response = requests.post(
                f"{self._base_url}/{request.model}",
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
                json=request.payload,
                timeout=self._timeout,
            )
            if not response.ok:
                try:
                    error = response.json()
                except ValueError:
                    error = response.text
                logging.error(f"Hugging Face API error for task '{task}': {error!r}")
                return InferenceResult(error=error, status_code=response.status_code)

            result = response.json()
        except (requests.RequestException, ValueError):
            logging.exception(f"Error processing Hugging Face request for task '{task}'")
            return InferenceResult(error="Failed to process request", status_code=500)

        self._cache.put(request.cache_key, result, self._cache_ttl)
        return InferenceResult(result=result)

    def invoke_or_none(self, task: InferenceTask, data: dict[str, Any]) -> Any | None:
        """Invoke a task, returning None on any failure."""
        outcome = self.invoke(task, data)
        if not outcome.ok:
            logging.info(f"Skipping AI enrichment, task '{task}' failed: {outcome.error!r}")
            return None
        return outcome.result


@lru_cache
def get_inference_proxy() -> InferenceProxy:
    """Get the process-wide inference proxy. Use as a FastAPI dependency."""
    settings = get_settings()
    return InferenceProxy(
        api_key=settings.HUGGING_FACE_API_KEY,
        base_url=settings.HUGGING_FACE_API_URL,
        cache=InMemoryTTLCache(max_entries=settings.INFERENCE_CACHE_MAX_ENTRIES),
        cache_ttl=settings.INFERENCE_CACHE_SECONDS,
        timeout=settings.INFERENCE_TIMEOUT_SECONDS,
    )


class ItemSuggestion(BaseModel):
    name: str | None = None
    category: str = DEFAULT_CATEGORY
    color: str = DEFAULT_COLOR
    season: str = DEFAULT_SEASON


def _labels(predictions: Any) -> list[str]:
    if not isinstance(predictions, list):
        return []
    return [
        prediction["label"]
        for prediction in predictions
        if isinstance(prediction, dict) and isinstance(prediction.get("label"), str)
    ]


def suggest_item_details(classification: Any, colors: Any) -> ItemSuggestion:
    """
    Turn raw classification and object detection results into wardrobe item details.

    Predictions are expected in the Hugging Face shape, a list of {"label", "score"}
    objects ordered by score. The first label that maps to a category sets the category
    and the suggested name; the first detection label that names a palette color sets
    the color. Anything missing falls back to the defaults.
    """
    suggestion = ItemSuggestion()

    for label in _labels(classification):
        category = category_for_label(label)
        if category is not None:
            suggestion.category = category
            suggestion.name = label
            break

    for label in _labels(colors):
        color = match_palette_color(label)
        if color is not None:
            suggestion.color = color
            break

    return suggestion
