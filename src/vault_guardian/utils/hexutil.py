"""Hex string helpers — optional ``0x`` prefixes and strict decoding."""

from __future__ import annotations

import binascii


def strip_0x(value: str) -> str:
    """Remove a leading ``0x`` / ``0X`` prefix if present."""
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def decode_hex(value: str) -> bytes:
    """Decode a hex string with an optional ``0x`` prefix.

    Raises:
        ValueError: If the string has odd length or non-hex characters.
    """
    try:
        return binascii.unhexlify(strip_0x(value.strip()))
    except (binascii.Error, ValueError) as exc:
        msg = f"invalid hex string: {exc}"
        raise ValueError(msg) from exc


def encode_hex(data: bytes) -> str:
    """Encode bytes as a ``0x``-prefixed lowercase hex string."""
    return "0x" + data.hex()


def to_quantity(n: int) -> str:
    """Encode an integer as a JSON-RPC quantity (``0x`` hex, no leading zeros)."""
    return hex(n)
