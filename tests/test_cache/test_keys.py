"""Tests for cache key derivation."""

from titlerlink.cache.keys import (
    derive_key,
    hash_options,
    make_logical_id,
    split_logical_id,
)


class TestLogicalId:
    def test_joins_with_tilde(self):
        assert make_logical_id("A1", "F1") == "A1~F1"

    def test_missing_actor(self):
        assert make_logical_id("", "F1") == "F1"

    def test_split_round_trip(self):
        assert split_logical_id("A1~F1") == ("A1", "F1")

    def test_split_keeps_later_separators(self):
        assert split_logical_id("A1~F1~extra") == ("A1", "F1~extra")

    def test_split_bare_id(self):
        assert split_logical_id("F1") == ("", "F1")


class TestHashOptions:
    def test_returns_128_bit_hex(self):
        h = hash_options({"input": 1})
        assert len(h) == 32
        assert all(c in "0123456789abcdef" for c in h)

    def test_matches_compact_json_md5(self):
        import hashlib

        expected = hashlib.md5(b'{"inputName":"Sheet 1","index":2}').hexdigest()
        assert hash_options({"inputName": "Sheet 1", "index": 2}) == expected


class TestDeriveKey:
    def test_empty_options_is_logical_id(self):
        assert derive_key("A1~F1", {}) == "A1~F1"
        assert derive_key("A1~F1", None) == "A1~F1"

    def test_options_append_hash(self):
        key = derive_key("A1~F1", {"input": "cam1"})
        assert key.startswith("A1~F1+")
        assert key == f"A1~F1+{hash_options({'input': 'cam1'})}"

    def test_deterministic(self):
        assert derive_key("A1~F1", {"a": 1, "b": "x"}) == derive_key("A1~F1", {"a": 1, "b": "x"})

    def test_different_values_different_keys(self):
        assert derive_key("A1~F1", {"a": 1}) != derive_key("A1~F1", {"a": 2})

    def test_insertion_order_changes_key(self):
        # Options are hashed in the order given, without sorting
        assert derive_key("A1~F1", {"a": 1, "b": 2}) != derive_key("A1~F1", {"b": 2, "a": 1})

    def test_prefix_covers_all_variants(self):
        k1 = derive_key("A1~F1", {"a": 1})
        k2 = derive_key("A1~F1", {"a": 2})
        assert k1.startswith("A1~")
        assert k2.startswith("A1~")
