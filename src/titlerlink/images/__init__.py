"""Image subsystem — asset cache and overlay compositing."""

from titlerlink.images.cache import ImageCache
from titlerlink.images.compositor import composite

__all__ = ["ImageCache", "composite"]
