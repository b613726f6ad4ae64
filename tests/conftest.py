import asyncio
import base64
import io

import pytest
from PIL import Image


@pytest.fixture
def make_png():
    """Factory for in-memory PNG bytes."""

    def _make(width=72, height=72, color=(255, 0, 0, 255)):
        buf = io.BytesIO()
        Image.new("RGBA", (width, height), color).save(buf, format="PNG")
        return buf.getvalue()

    return _make


@pytest.fixture
def make_png64(make_png):
    """Factory for base64-encoded PNGs."""

    def _make(*args, **kwargs):
        return base64.b64encode(make_png(*args, **kwargs)).decode("ascii")

    return _make


@pytest.fixture
def sample_image_bytes():
    """Minimal valid PNG for testing (1x1 white pixel)."""
    return base64.b64decode(
        "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR4"
        "nGP4z8BQDwAEgAF/pooBPQAAAABJRU5ErkJggg=="
    )


class FakeRemote:
    """In-memory stand-in for the remote titling application."""

    def __init__(self):
        self.states = {}  # "actor~feedback" -> raw state record
        self.play_states = {}
        self.image_set = {}
        self.queries = []
        self.play_state_calls = 0
        self.fail_with = None
        self.gate = None

    async def query_feedback_state(self, actor_id, feedback_id, options):
        self.queries.append((actor_id, feedback_id, dict(options)))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        return self.states.get(f"{actor_id}~{feedback_id}")

    async def get_play_states(self, namespace):
        self.play_state_calls += 1
        return self.play_states

    async def get_image_set(self, namespace):
        return self.image_set


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def settle():
    """Let pending callbacks and tasks run for the given number of seconds."""

    async def _settle(seconds=0.0):
        await asyncio.sleep(seconds)
        for _ in range(5):
            await asyncio.sleep(0)

    return _settle
