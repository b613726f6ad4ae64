"""Custom exception hierarchy for titlerlink."""

from __future__ import annotations

from typing import Any


class TitlerLinkError(Exception):
    """Base exception for all titlerlink errors."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message


class RemoteQueryError(TitlerLinkError):
    """The remote application rejected a query or did not answer in time.

    Recovered by leaving the key pending for the next reconciliation pass.
    """

    def __init__(
        self,
        message: str = "",
        actor_id: str = "",
        feedback_id: str = "",
        original: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.actor_id = actor_id
        self.feedback_id = feedback_id
        self.original = original


class MalformedStateError(TitlerLinkError):
    """A feedback state record could not be parsed into a mapping."""

    def __init__(self, message: str = "", raw: Any = None) -> None:
        super().__init__(message)
        self.raw = raw


class ImageDecodeError(TitlerLinkError):
    """An image source could not be loaded or decoded."""

    def __init__(self, message: str = "", ref: str = "") -> None:
        super().__init__(message)
        self.ref = ref
