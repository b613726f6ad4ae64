"""Image loading, decoding and encoding utilities."""

from __future__ import annotations

import base64
import binascii
import io
from pathlib import Path

from PIL import Image, ImageOps

from titlerlink.errors.exceptions import ImageDecodeError

_SUPPORTED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".tiff", ".tif", ".bmp", ".webp"}
MAX_IMAGE_SIZE_BYTES = 50 * 1024 * 1024  # 50 MB
_URL_SCHEMES = ("http://", "https://")
_DATA_URI_MARKER = ";base64,"


def load_image(path: str | Path, max_bytes: int = MAX_IMAGE_SIZE_BYTES) -> bytes:
    """Load an image file and return raw bytes."""
    path = Path(path)
    _validate_path(path, max_bytes)
    return path.read_bytes()


def image_to_base64(image_bytes: bytes) -> str:
    """Encode raw image bytes to a base64 string."""
    return base64.b64encode(image_bytes).decode("ascii")


def base64_to_bytes(data: str) -> bytes:
    """Decode base64 image data, with or without a ``data:`` URI prefix."""
    if data.startswith("data:") and _DATA_URI_MARKER in data:
        data = data.split(_DATA_URI_MARKER, 1)[1]
    # MIME-wrapped data carries line breaks
    data = "".join(data.split())
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"Not valid base64 image data: {e}", ref=data[:32]) from e


def is_url(ref: str) -> bool:
    return ref.startswith(_URL_SCHEMES)


def open_image(image_bytes: bytes) -> Image.Image:
    """Decode image bytes into an RGBA image."""
    try:
        img = Image.open(io.BytesIO(image_bytes))
        img.load()
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(f"Cannot decode image: {e}") from e
    return img.convert("RGBA")


def fit_image(img: Image.Image, size: int) -> Image.Image:
    """Scale to cover a size×size square, then center-crop to it."""
    return ImageOps.fit(img, (size, size), method=Image.Resampling.LANCZOS)


def resize_to_width(img: Image.Image, width: int) -> Image.Image:
    """Scale to the given width, keeping the aspect ratio."""
    if img.width == width:
        return img
    height = max(1, round(img.height * width / img.width))
    return img.resize((width, height), Image.Resampling.LANCZOS)


def blank_image(size: int) -> Image.Image:
    """Fully transparent size×size RGBA image."""
    return Image.new("RGBA", (size, size), (0, 0, 0, 0))


def encode_png_base64(img: Image.Image) -> str:
    return image_to_base64(_pil_to_png_bytes(img))


def _pil_to_png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def _validate_path(path: Path, max_bytes: int) -> None:
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    if path.is_symlink():
        raise ValueError(f"Symlinks not allowed: {path}")
    if path.suffix.lower() not in _SUPPORTED_EXTENSIONS:
        raise ValueError(f"Unsupported file type: {path.suffix}")
    size = path.stat().st_size
    if size > max_bytes:
        raise ValueError(f"File too large ({size} bytes, max {max_bytes})")
