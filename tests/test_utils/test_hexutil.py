"""Tests for hex helpers."""

from __future__ import annotations

import pytest

from vault_guardian.utils.hexutil import decode_hex, encode_hex, strip_0x, to_quantity


class TestHexutil:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("0xabcd", "abcd"), ("0Xabcd", "abcd"), ("abcd", "abcd"), ("", "")],
    )
    def test_strip_0x(self, value, expected):
        assert strip_0x(value) == expected

    def test_decode_with_and_without_prefix(self):
        assert decode_hex("0xdeadbeef") == decode_hex("deadbeef") == b"\xde\xad\xbe\xef"

    def test_decode_empty(self):
        assert decode_hex("0x") == b""

    @pytest.mark.parametrize("bad", ["0xabc", "xyz1", "0xgg"])
    def test_decode_rejects(self, bad):
        with pytest.raises(ValueError, match="invalid hex string"):
            decode_hex(bad)

    def test_encode(self):
        assert encode_hex(b"\x00\xff") == "0x00ff"

    def test_quantity(self):
        assert to_quantity(0) == "0x0"
        assert to_quantity(255) == "0xff"
