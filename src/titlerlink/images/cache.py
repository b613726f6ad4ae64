"""Image asset cache — decoded, resized, re-encoded bitmaps keyed by reference."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Mapping

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from titlerlink.errors.exceptions import ImageDecodeError
from titlerlink.utils.image import (
    MAX_IMAGE_SIZE_BYTES,
    base64_to_bytes,
    encode_png_base64,
    fit_image,
    is_url,
    load_image,
    open_image,
)

logger = logging.getLogger(__name__)

_DEFAULT_SIZE = 72
_DEFAULT_FETCH_TIMEOUT = 5.0  # seconds


class ImageCache:
    """Process-lifetime cache of base64 PNG images.

    A reference may be a name seeded from the remote image set, a local path,
    an http(s) URL or base64 data. Anything not already cached is decoded,
    fitted to a size×size square and stored under the reference it was
    requested by. Nothing expires; entries go away only through ``remove``.
    """

    def __init__(
        self,
        size: int = _DEFAULT_SIZE,
        max_bytes: int = MAX_IMAGE_SIZE_BYTES,
        fetch_timeout: float = _DEFAULT_FETCH_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._images: dict[str, str] = {}
        self._size = size
        self._max_bytes = max_bytes
        self._fetch_timeout = fetch_timeout
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def size(self) -> int:
        return self._size

    def set_image(self, name: str, data: str) -> None:
        """Store already-encoded image data verbatim."""
        self._images[name] = data

    def seed(self, images: Mapping[str, str]) -> int:
        """Store a bulk image set. Returns the number of images stored."""
        for name, data in images.items():
            logger.debug("Caching image data for %s", name)
            self.set_image(name, data)
        return len(images)

    def peek(self, ref: str) -> str | None:
        return self._images.get(ref)

    def remove(self, ref: str) -> bool:
        return self._images.pop(ref, None) is not None

    async def get_image(self, ref: str) -> str | None:
        """Return cached image data for ref, loading it on first use.

        Load or decode failures are logged and give None; nothing is cached.
        """
        cached = self._images.get(ref)
        if cached is not None:
            return cached

        try:
            raw = await self._load(ref)
            encoded = await asyncio.to_thread(self._normalize, raw)
        except ImageDecodeError as e:
            logger.error("Error loading image %s: %s", _short(ref), e)
            return None

        self._images[ref] = encoded
        return encoded

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    def __contains__(self, ref: object) -> bool:
        return ref in self._images

    def __len__(self) -> int:
        return len(self._images)

    async def _load(self, ref: str) -> bytes:
        if is_url(ref):
            try:
                return await self._download(ref)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                raise ImageDecodeError(f"Cannot fetch {ref}: {e}", ref=ref) from e
        if not ref.startswith("data:") and os.path.isfile(ref):
            try:
                return await asyncio.to_thread(load_image, ref, self._max_bytes)
            except (OSError, ValueError) as e:
                raise ImageDecodeError(str(e), ref=ref) from e
        return base64_to_bytes(ref)

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _download(self, url: str) -> bytes:
        if self._client is None:
            self._client = httpx.AsyncClient()
            self._owns_client = True
        response = await self._client.get(url, timeout=self._fetch_timeout, follow_redirects=True)
        response.raise_for_status()
        return response.content

    def _normalize(self, raw: bytes) -> str:
        return encode_png_base64(fit_image(open_image(raw), self._size))


def _short(ref: str, limit: int = 64) -> str:
    return ref if len(ref) <= limit else ref[:limit] + "..."
