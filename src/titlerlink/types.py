"""Shared Pydantic models for titlerlink."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ── Enums ──


class PlayState(StrEnum):
    RUNNING = "running"
    PAUSED = "paused"
    UNKNOWN = "unknown"


class FeedbackKind(StrEnum):
    BOOLEAN = "boolean"
    ADVANCED = "advanced"


# ── Payloads ──

# Fields the controller knows how to render, in the order they are copied.
PAYLOAD_FIELDS: tuple[str, ...] = (
    "text",
    "size",
    "color",
    "bgcolor",
    "alignment",
    "png64",
    "pngalignment",
    "show_topbar",
    "imageBuffer",
    "imagePosition",
    "value",
)


class FeedbackPayload(BaseModel):
    """Style/bitmap result handed to the controller for one feedback.

    An empty payload means "render the default style".
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    text: str | None = None
    size: int | float | str | None = None
    color: int | str | None = None
    bgcolor: int | str | None = None
    alignment: str | None = None
    png64: str | None = None
    pngalignment: str | None = None
    show_topbar: bool | str | None = None
    image_buffer: Any = Field(default=None, alias="imageBuffer")
    image_position: Any = Field(default=None, alias="imagePosition")
    value: Any = None

    @property
    def is_empty(self) -> bool:
        return not self.as_style()

    def as_style(self) -> dict[str, Any]:
        """Return only the populated fields, keyed the way the controller expects."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def as_boolean(self) -> bool:
        return bool(self.value)


# ── Remote events ──


class FeedbackChange(BaseModel):
    """A change notification pushed by the remote application."""

    actor_id: str
    feedback_id: str
    options: dict[str, Any] = Field(default_factory=dict)
    state: dict[str, Any] | str | None = None

    @property
    def has_state(self) -> bool:
        return bool(self.state)


class PendingKey(BaseModel):
    """The parts a pending cache key was derived from, kept so it can be re-queried."""

    model_config = ConfigDict(frozen=True)

    actor_id: str
    feedback_id: str
    options: dict[str, Any] = Field(default_factory=dict)
