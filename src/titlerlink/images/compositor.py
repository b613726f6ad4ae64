"""Overlay compositor — draws an overlay bitmap over a base bitmap."""

from __future__ import annotations

import logging

from PIL import Image

from titlerlink.errors.exceptions import ImageDecodeError
from titlerlink.utils.image import (
    base64_to_bytes,
    blank_image,
    encode_png_base64,
    open_image,
    resize_to_width,
)

logger = logging.getLogger(__name__)

DEFAULT_SIZE = 72


def composite(base: str | bytes, overlay: str | bytes, size: int = DEFAULT_SIZE) -> str:
    """Composite overlay onto base and return the result as base64 PNG.

    The overlay is scaled to the base width (aspect kept) and drawn at (0, 0)
    with source-over blending, both layers at full opacity. A layer that fails
    to decode is replaced by a transparent size×size blank. Same inputs give
    byte-identical output.
    """
    base_img = _decode_layer(base, size, "base")
    overlay_img = _decode_layer(overlay, size, "overlay")

    overlay_img = resize_to_width(overlay_img, base_img.width)
    if overlay_img.height > base_img.height:
        overlay_img = overlay_img.crop((0, 0, base_img.width, base_img.height))

    result = base_img.copy()
    result.alpha_composite(overlay_img, dest=(0, 0))
    return encode_png_base64(result)


def _decode_layer(data: str | bytes, size: int, layer: str) -> Image.Image:
    try:
        raw = base64_to_bytes(data) if isinstance(data, str) else data
        return open_image(raw)
    except ImageDecodeError as e:
        logger.error("Cannot decode %s image, using blank: %s", layer, e)
        return blank_image(size)
