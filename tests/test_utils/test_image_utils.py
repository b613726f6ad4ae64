"""Tests for image helpers."""

import base64

import pytest
from PIL import Image

from titlerlink.errors.exceptions import ImageDecodeError
from titlerlink.utils.image import (
    base64_to_bytes,
    blank_image,
    fit_image,
    is_url,
    load_image,
    open_image,
    resize_to_width,
)


class TestBase64:
    def test_plain(self):
        assert base64_to_bytes(base64.b64encode(b"abc").decode()) == b"abc"

    def test_data_uri(self):
        assert base64_to_bytes("data:image/png;base64," + base64.b64encode(b"abc").decode()) == b"abc"

    def test_line_breaks_ignored(self):
        encoded = base64.b64encode(b"abcdefghijklmnop").decode()
        assert base64_to_bytes(encoded[:8] + "\r\n" + encoded[8:] + "\n") == b"abcdefghijklmnop"

    def test_invalid(self):
        with pytest.raises(ImageDecodeError):
            base64_to_bytes("not-a-real-path")


class TestOpenImage:
    def test_converts_to_rgba(self, sample_image_bytes):
        assert open_image(sample_image_bytes).mode == "RGBA"

    def test_garbage(self):
        with pytest.raises(ImageDecodeError):
            open_image(b"garbage")


class TestGeometry:
    def test_fit_covers_and_crops(self):
        img = fit_image(Image.new("RGBA", (300, 100)), 72)
        assert img.size == (72, 72)

    def test_resize_to_width_keeps_aspect(self):
        img = resize_to_width(Image.new("RGBA", (36, 18)), 72)
        assert img.size == (72, 36)

    def test_resize_same_width_is_noop(self):
        src = Image.new("RGBA", (72, 10))
        assert resize_to_width(src, 72) is src

    def test_blank_is_transparent(self):
        img = blank_image(72)
        assert img.size == (72, 72)
        assert img.getpixel((0, 0)) == (0, 0, 0, 0)


class TestLoadImage:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_image(tmp_path / "nope.png")

    def test_reads_bytes(self, tmp_path, sample_image_bytes):
        path = tmp_path / "one.png"
        path.write_bytes(sample_image_bytes)
        assert load_image(path) == sample_image_bytes


class TestIsUrl:
    def test_schemes(self):
        assert is_url("https://example.com/a.png")
        assert is_url("http://example.com/a.png")
        assert not is_url("/tmp/a.png")
