"""Error handling — exception hierarchy for remote, payload and image failures."""

from titlerlink.errors.exceptions import (
    ImageDecodeError,
    MalformedStateError,
    RemoteQueryError,
    TitlerLinkError,
)

__all__ = [
    "TitlerLinkError",
    "RemoteQueryError",
    "MalformedStateError",
    "ImageDecodeError",
]
