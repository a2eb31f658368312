"""Sniffing the format of uploaded wardrobe images."""

import io
from typing import NamedTuple

from PIL import Image, UnidentifiedImageError


class ImageFormat(NamedTuple):
    extension: str
    content_type: str


# Keyed by PIL format name; the extension is the one used for stored objects
SUPPORTED_FORMATS: dict[str, ImageFormat] = {
    "JPEG": ImageFormat(".jpg", "image/jpeg"),
    "PNG": ImageFormat(".png", "image/png"),
    "WEBP": ImageFormat(".webp", "image/webp"),
    "GIF": ImageFormat(".gif", "image/gif"),
}


def format_from_pil(pil_format: str | None) -> ImageFormat:
    """
    Look up a supported format by its PIL name, ignoring case.

    Raises:
        ValueError: If PIL could not name the format, or the format is not supported
    """
    if pil_format is None:
        raise ValueError("PIL format is None")

    image_format = SUPPORTED_FORMATS.get(pil_format.upper())
    if image_format is None:
        raise ValueError(f"Unsupported image format: {pil_format}")
    return image_format


def identify_image(data: bytes) -> ImageFormat:
    """
    Identify an uploaded image by its content rather than its file name.

    Raises:
        ValueError: If the data is not an image in one of the supported formats
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            pil_format = image.format
    except UnidentifiedImageError:
        raise ValueError("Uploaded file is not a recognized image")

    return format_from_pil(pil_format)
