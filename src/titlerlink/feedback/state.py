"""Feedback state processing — from a raw remote state record to a display payload.

A state record passes through three stages:

1. Play-state selection: ``<field>_running`` / ``<field>_paused`` variants are
   folded into ``<field>`` according to the play-state looked up under the
   record's query key (``overlayQueryKey`` → ``overlayImageName``,
   ``pngQueryKey`` → ``png``). The variant and query-key fields are always removed.
2. Overlay image resolution: a named overlay is composited onto ``png64``,
   or becomes ``png64`` when there is no base; a bare ``imageName`` is loaded
   into ``png64``.
3. Adaptation: only the fields the controller renders are kept.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from pydantic import ValidationError

from titlerlink.errors.exceptions import MalformedStateError
from titlerlink.images.cache import ImageCache
from titlerlink.images.compositor import composite
from titlerlink.remote import RawState
from titlerlink.types import PAYLOAD_FIELDS, FeedbackPayload, PlayState

logger = logging.getLogger(__name__)

# (query key field, field selected by play-state)
PLAY_STATE_FIELDS: tuple[tuple[str, str], ...] = (
    ("overlayQueryKey", "overlayImageName"),
    ("pngQueryKey", "png"),
)

_INLINE_IMAGE_FIELDS = ("image64", "png")
_IMAGE_REF_FIELDS = ("imageName", "imageUrl", "imagePath")

PlayStatesFn = Callable[[], Awaitable[Mapping[str, Any]]]


def parse_state(raw: RawState) -> dict[str, Any]:
    """Turn a raw state record into a mapping. Empty replies give ``{}``."""
    if raw is None or raw == "" or raw == b"":
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    if not isinstance(raw, (str, bytes)):
        raise MalformedStateError(f"Unsupported state record type: {type(raw).__name__}", raw=raw)
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedStateError(f"State record is not JSON: {e}", raw=raw) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MalformedStateError(
            f"State record must be a JSON object, got {type(data).__name__}", raw=raw
        )
    return data


def needs_play_states(state: Mapping[str, Any]) -> bool:
    return any(query_field in state for query_field, _ in PLAY_STATE_FIELDS)


def lookup_play_state(play_states: Mapping[str, Any], query_key: Any) -> PlayState:
    record = play_states.get(query_key) if isinstance(query_key, str) else None
    if not isinstance(record, Mapping) or "playState" not in record:
        return PlayState.UNKNOWN
    try:
        return PlayState(record["playState"])
    except ValueError:
        logger.debug("Unrecognized play state %r for %s", record["playState"], query_key)
        return PlayState.UNKNOWN


def select_play_state_variants(
    state: Mapping[str, Any], play_states: Mapping[str, Any]
) -> dict[str, Any]:
    """Fold play-state variants into their generic field. Returns a new mapping."""
    result = dict(state)
    for query_field, target in PLAY_STATE_FIELDS:
        if query_field not in result:
            continue
        play_state = lookup_play_state(play_states, result.pop(query_field))
        for variant in (PlayState.RUNNING, PlayState.PAUSED):
            field = f"{target}_{variant}"
            if field not in result:
                continue
            value = result.pop(field)
            if play_state == variant:
                result[target] = value
    return result


class FeedbackStateProcessor:
    """Runs the three processing stages against one session's image cache."""

    def __init__(
        self,
        images: ImageCache,
        play_states_fn: PlayStatesFn | None = None,
        image_size: int = 72,
    ) -> None:
        self._images = images
        self._play_states_fn = play_states_fn
        self._image_size = image_size

    async def process(self, raw: RawState) -> FeedbackPayload:
        state = parse_state(raw)
        if needs_play_states(state):
            state = select_play_state_variants(state, await self._play_states())
        if state.get("overlayImageName") or state.get("imageName"):
            state = await self.apply_overlay_image(state)
        return await self.to_payload(state)

    async def apply_overlay_image(self, state: Mapping[str, Any]) -> dict[str, Any]:
        result = dict(state)
        if "overlayImageName" in result:
            name = str(result.pop("overlayImageName"))
            layer = await self._images.get_image(name)
            if layer is None:
                logger.warning("Overlay image '%s' is not available", name)
            elif result.get("png64"):
                result["png64"] = await asyncio.to_thread(
                    composite, result["png64"], layer, self._image_size
                )
            else:
                result["png64"] = layer
        elif result.get("imageName"):
            data = await self._images.get_image(str(result.pop("imageName")))
            if data is not None:
                result["png64"] = data
        return result

    async def to_payload(self, state: Mapping[str, Any]) -> FeedbackPayload:
        fields = {name: state[name] for name in PAYLOAD_FIELDS if name in state}

        inline = next((state[f] for f in _INLINE_IMAGE_FIELDS if state.get(f)), None)
        if not fields.get("png64") and inline:
            fields["png64"] = inline

        image_ref = next((state[f] for f in _IMAGE_REF_FIELDS if state.get(f)), None)
        if not fields.get("png64") and image_ref:
            data = await self._images.get_image(str(image_ref))
            if data is not None:
                fields["png64"] = data

        try:
            return FeedbackPayload.model_validate(fields)
        except ValidationError as e:
            invalid = {err["loc"][0] for err in e.errors() if err["loc"]}
            logger.warning("Dropping feedback fields with unexpected types: %s", sorted(invalid))
            fields = {name: value for name, value in fields.items() if name not in invalid}

        try:
            return FeedbackPayload.model_validate(fields)
        except ValidationError as e:
            raise MalformedStateError(f"State record has invalid fields: {e}", raw=dict(state)) from e

    async def _play_states(self) -> Mapping[str, Any]:
        if self._play_states_fn is None:
            return {}
        try:
            states = await self._play_states_fn()
        except Exception as e:
            logger.warning("Cannot read play states, treating all as unknown: %s", e)
            return {}
        return states if isinstance(states, Mapping) else {}
