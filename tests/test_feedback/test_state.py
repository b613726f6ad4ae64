"""Tests for feedback state processing."""

import base64
import io
import json

import pytest
from PIL import Image

from titlerlink.errors.exceptions import MalformedStateError
from titlerlink.feedback.state import (
    FeedbackStateProcessor,
    lookup_play_state,
    needs_play_states,
    parse_state,
    select_play_state_variants,
)
from titlerlink.images.cache import ImageCache
from titlerlink.types import PlayState


def _pixel(b64, xy=(0, 0)):
    return Image.open(io.BytesIO(base64.b64decode(b64))).convert("RGBA").getpixel(xy)


class TestParseState:
    def test_json_string(self):
        assert parse_state('{"text": "LIVE"}') == {"text": "LIVE"}

    def test_bytes(self):
        assert parse_state(b'{"value": true}') == {"value": True}

    def test_mapping_is_copied(self):
        raw = {"text": "x"}
        parsed = parse_state(raw)
        parsed["text"] = "y"
        assert raw == {"text": "x"}

    @pytest.mark.parametrize("raw", [None, "", b"", "null"])
    def test_empty_replies(self, raw):
        assert parse_state(raw) == {}

    def test_invalid_json(self):
        with pytest.raises(MalformedStateError):
            parse_state("{not json")

    def test_non_object_json(self):
        with pytest.raises(MalformedStateError):
            parse_state("[1, 2]")

    def test_unsupported_type(self):
        with pytest.raises(MalformedStateError):
            parse_state(42)


class TestPlayStates:
    def test_lookup_known(self):
        assert lookup_play_state({"q": {"playState": "running"}}, "q") == PlayState.RUNNING

    def test_lookup_missing_is_unknown(self):
        assert lookup_play_state({}, "q") == PlayState.UNKNOWN
        assert lookup_play_state({"q": {}}, "q") == PlayState.UNKNOWN
        assert lookup_play_state({"q": {"playState": "spinning"}}, "q") == PlayState.UNKNOWN

    def test_needs_play_states(self):
        assert needs_play_states({"overlayQueryKey": "q"})
        assert needs_play_states({"pngQueryKey": "q"})
        assert not needs_play_states({"text": "x"})

    def test_running_selects_running_variant(self):
        state = {
            "overlayImageName": "play_layer",
            "overlayImageName_running": "play_layer_red",
            "overlayImageName_paused": "play_layer_yellow",
            "overlayQueryKey": "{91883451}",
        }
        result = select_play_state_variants(state, {"{91883451}": {"playState": "running"}})
        assert result == {"overlayImageName": "play_layer_red"}

    def test_paused_selects_paused_variant(self):
        state = {
            "overlayImageName_running": "red",
            "overlayImageName_paused": "yellow",
            "overlayQueryKey": "q",
        }
        result = select_play_state_variants(state, {"q": {"playState": "paused"}})
        assert result == {"overlayImageName": "yellow"}

    def test_unknown_keeps_generic_and_removes_variants(self):
        state = {
            "overlayImageName": "play_layer",
            "overlayImageName_running": "red",
            "overlayImageName_paused": "yellow",
            "overlayQueryKey": "q",
        }
        result = select_play_state_variants(state, {})
        assert result == {"overlayImageName": "play_layer"}

    def test_png_variants(self):
        state = {"png_running": "AAA", "png_paused": "BBB", "pngQueryKey": "q", "text": "T"}
        result = select_play_state_variants(state, {"q": {"playState": "running"}})
        assert result == {"png": "AAA", "text": "T"}

    def test_input_not_mutated(self):
        state = {"overlayImageName_running": "red", "overlayQueryKey": "q"}
        select_play_state_variants(state, {"q": {"playState": "running"}})
        assert "overlayQueryKey" in state


class FakePlayStates:
    def __init__(self, states=None, fail=False):
        self.states = states or {}
        self.fail = fail
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.fail:
            raise RuntimeError("unreachable")
        return self.states


class TestFeedbackStateProcessor:
    async def test_plain_state(self):
        processor = FeedbackStateProcessor(ImageCache())
        payload = await processor.process('{"text": "LIVE", "bgcolor": 16711680, "extra": 1}')
        assert payload.as_style() == {"text": "LIVE", "bgcolor": 16711680}

    async def test_play_states_only_fetched_when_needed(self):
        play_states = FakePlayStates()
        processor = FeedbackStateProcessor(ImageCache(), play_states)
        await processor.process({"text": "x"})
        assert play_states.calls == 0
        await processor.process({"text": "x", "overlayQueryKey": "q"})
        assert play_states.calls == 1

    async def test_play_state_failure_means_unknown(self):
        processor = FeedbackStateProcessor(ImageCache(), FakePlayStates(fail=True))
        payload = await processor.process(
            {"png_running": "AAA", "png_paused": "BBB", "pngQueryKey": "q", "text": "T"}
        )
        assert payload.as_style() == {"text": "T"}

    async def test_overlay_composited_onto_png64(self, make_png64):
        images = ImageCache()
        images.set_image("play_layer_red", make_png64(36, 36, (255, 0, 0, 255)))
        processor = FeedbackStateProcessor(
            images, FakePlayStates({"q": {"playState": "running"}})
        )
        payload = await processor.process(
            {
                "png64": make_png64(72, 72, (0, 0, 255, 255)),
                "overlayImageName": "play_layer",
                "overlayImageName_running": "play_layer_red",
                "overlayQueryKey": "q",
                "text": " ",
            }
        )
        style = payload.as_style()
        assert set(style) == {"png64", "text"}
        assert _pixel(style["png64"]) == (255, 0, 0, 255)

    async def test_overlay_without_base_becomes_png64(self, make_png64):
        images = ImageCache()
        layer = make_png64(72, 72)
        images.set_image("layer", layer)
        processor = FeedbackStateProcessor(images)
        payload = await processor.process({"overlayImageName": "layer"})
        assert payload.png64 == layer

    async def test_missing_overlay_leaves_base(self, make_png64):
        base = make_png64(72, 72)
        processor = FeedbackStateProcessor(ImageCache())
        payload = await processor.process({"png64": base, "overlayImageName": "nope"})
        assert payload.png64 == base

    async def test_image_name_resolved(self):
        images = ImageCache()
        images.set_image("logo", "AAAA")
        processor = FeedbackStateProcessor(images)
        payload = await processor.process({"imageName": "logo", "text": "x"})
        assert payload.as_style() == {"png64": "AAAA", "text": "x"}

    async def test_image64_fallback(self):
        processor = FeedbackStateProcessor(ImageCache())
        payload = await processor.process({"image64": "BBBB"})
        assert payload.png64 == "BBBB"

    async def test_png64_takes_precedence(self):
        processor = FeedbackStateProcessor(ImageCache())
        payload = await processor.process({"png64": "AAAA", "image64": "BBBB"})
        assert payload.png64 == "AAAA"

    async def test_image_path_fallback(self, tmp_path, make_png):
        path = tmp_path / "icon.png"
        path.write_bytes(make_png(10, 10))
        processor = FeedbackStateProcessor(ImageCache())
        payload = await processor.process({"imagePath": str(path)})
        assert payload.png64 is not None

    async def test_unloadable_image_gives_no_png(self):
        processor = FeedbackStateProcessor(ImageCache())
        payload = await processor.process({"imageUrl": "not-a-real-path", "text": "x"})
        assert payload.as_style() == {"text": "x"}

    async def test_advanced_fields_keep_controller_names(self):
        processor = FeedbackStateProcessor(ImageCache())
        payload = await processor.process({"imagePosition": "center", "show_topbar": False})
        assert payload.as_style() == {"imagePosition": "center", "show_topbar": False}

    async def test_numeric_text_is_coerced(self):
        processor = FeedbackStateProcessor(ImageCache())
        payload = await processor.process(json.dumps({"text": 12}))
        assert payload.text == "12"

    async def test_invalid_field_is_dropped(self):
        processor = FeedbackStateProcessor(ImageCache())
        payload = await processor.process({"text": ["not", "text"], "bgcolor": 255})
        assert payload.as_style() == {"bgcolor": 255}

    async def test_boolean_text_is_dropped(self):
        processor = FeedbackStateProcessor(ImageCache())
        payload = await processor.process({"text": True, "value": True, "color": "#fff"})
        assert payload.as_style() == {"value": True, "color": "#fff"}
